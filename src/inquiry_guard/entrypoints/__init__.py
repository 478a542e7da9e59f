"""Entrypoints - outer surfaces of the application."""
