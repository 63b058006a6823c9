"""Core domain models, validation and errors."""
