"""
Per-platform locations for the desktop build.

The packaged application keeps its SQLite database in the operating
system's standard application-data directory, namespaced by product
name, so that reinstalling or updating the app never touches user data.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

APP_NAME = "Ebers"
DATABASE_FILENAME = "database.db"


def app_data_path(platform: Optional[str] = None, home: Optional[Union[str, Path]] = None) -> Path:
    """Return the application data directory for ``platform``.

    ``platform`` uses :data:`sys.platform` values (``darwin``, ``win32``,
    ``linux``); unknown platforms fall back to a dotfile directory in the
    user's home.
    """
    platform = platform or sys.platform
    home = Path(home) if home is not None else Path.home()
    if platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    if platform == "win32":
        return home / "AppData" / "Roaming" / APP_NAME
    if platform.startswith("linux"):
        return home / ".config" / APP_NAME
    return home / f".{APP_NAME.lower()}"


def database_path(platform: Optional[str] = None, home: Optional[Union[str, Path]] = None) -> Path:
    return app_data_path(platform, home) / DATABASE_FILENAME
