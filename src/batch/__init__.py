"""Batch processing: ledger, controller, retry."""
