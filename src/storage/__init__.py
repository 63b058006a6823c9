"""Image storage collaborators."""
