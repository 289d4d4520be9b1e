"""GPS acquisition module."""
