from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from scanstream.config import PROJECT_ROOT

logger = logging.getLogger(__name__)

APP_DIR_NAME = "scanstream"


def _user_data_dir() -> Path:
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    return (base / APP_DIR_NAME).resolve()


def _writable(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / ".write_test"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
    except OSError:
        logger.debug("State dir %s is not writable", path, exc_info=True)
        return False
    return True


def get_app_state_dir() -> Path:
    """Directory for logs and other local state.

    ``SCANSTREAM_STATE_DIR`` wins when set. Otherwise ``<project>/.app_state``
    is used when writable (running from a checkout), then the per-user data
    directory of the platform.
    """
    override = os.getenv("SCANSTREAM_STATE_DIR", "").strip()
    if override:
        return Path(override).expanduser().resolve()
    local = PROJECT_ROOT / ".app_state"
    if _writable(local):
        return local
    return _user_data_dir()
