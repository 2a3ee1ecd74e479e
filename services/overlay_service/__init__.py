"""Composites platform-specific text hooks onto background images."""
