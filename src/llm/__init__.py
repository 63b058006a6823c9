"""LLM client abstraction, adapters and retry."""
