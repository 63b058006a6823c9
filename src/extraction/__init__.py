"""Receipt extraction from images."""
