"""Environment variables configuration."""

import os
from typing import Optional


def get_db_path() -> Optional[str]:
    """Returns the SQLite database path, or None to use the default location."""
    return os.getenv("SALON_DB_PATH") or None


def get_export_filename_prefix() -> str:
    """Returns the prefix used for exported client files."""
    return os.getenv("EXPORT_FILENAME_PREFIX", "clientes")


def get_undo_window_seconds() -> int:
    """Returns how long the undo notice stays visible after a single delete."""
    raw = os.getenv("UNDO_WINDOW_SECONDS", "8")
    try:
        return max(int(raw), 0)
    except ValueError:
        return 8


def get_copy_suffix() -> str:
    """Returns the marker appended to the name of a duplicated client."""
    return os.getenv("COPY_SUFFIX", " (Copia)")
