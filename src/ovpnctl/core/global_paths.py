"""Platform directory locations for ovpnctl.

Follows the XDG layout on Linux (and the platform equivalents elsewhere)
through ``platformdirs``. Directories are created lazily by the code that
writes into them.
"""

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_state_dir

APP_NAME = "ovpnctl"


class GlobalPath:
    """Well-known directories for config, data, state and logs."""

    @classmethod
    def home(cls) -> str:
        """User home directory, overridable for tests."""
        return os.environ.get("OVPNCTL_TEST_HOME", str(Path.home()))

    @classmethod
    def data(cls) -> str:
        """Application data directory (the sqlite store lives here)."""
        return user_data_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        return str(Path(cls.data()) / "log")

    @classmethod
    def config(cls) -> str:
        return user_config_dir(APP_NAME)

    @classmethod
    def state(cls) -> str:
        return user_state_dir(APP_NAME)
