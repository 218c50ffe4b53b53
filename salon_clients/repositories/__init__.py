"""Persistence contracts and the bundled SQLite backend."""
