"""Public API: controller wiring and owner lifecycle."""
