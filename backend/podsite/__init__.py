"""Hearing Decoded podcast site backend."""
