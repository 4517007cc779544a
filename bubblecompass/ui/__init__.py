"""Dial rendering and HTTP shell."""
