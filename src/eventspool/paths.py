"""Per-platform root directory resolution.

Resolution order:
1. EVENTSPOOL_HOME environment variable (all platforms), joined with <dir>
2. macOS: ~/Library/Preferences/<dir>
3. Linux: $XDG_CONFIG_HOME/<dir>, or ~/.config/<dir>
4. Windows: %LOCALAPPDATA%/<dir>/Config (platformdirs when the variable is unset)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from .exceptions import UnsupportedPlatformError

HOME_ENV_VAR = "EVENTSPOOL_HOME"


def _local_appdata() -> Path:
    if appdata := os.environ.get("LOCALAPPDATA"):
        return Path(appdata)

    from platformdirs import user_data_dir

    return Path(user_data_dir(appauthor=False))


def resolve_root(dir_name: str, platform: str | None = None) -> Path:
    """Return the storage root for *dir_name* on the current platform.

    Args:
        dir_name: Directory name under the platform's config location.
        platform: Override for ``sys.platform`` (tests).

    Raises:
        UnsupportedPlatformError: No convention is known for the platform.
    """
    if env_home := os.environ.get(HOME_ENV_VAR):
        return Path(env_home) / dir_name

    platform = platform or sys.platform

    if platform == "darwin":
        return Path.home() / "Library" / "Preferences" / dir_name

    if platform.startswith("linux"):
        base = os.environ.get("XDG_CONFIG_HOME")
        config_home = Path(base) if base else Path.home() / ".config"
        return config_home / dir_name

    if platform == "win32":
        return _local_appdata() / dir_name / "Config"

    raise UnsupportedPlatformError(platform)
