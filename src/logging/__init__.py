"""Structured logging with pipeline context."""
