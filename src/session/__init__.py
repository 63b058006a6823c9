"""Durable batch sessions and their backends."""
