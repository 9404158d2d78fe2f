"""Build/version metadata.

Build scripts can stamp a version through the environment. Otherwise the
installed distribution's version is used, and a source checkout reports
``0.0.0-dev``.
"""

from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError, version

DIST_NAME = "scan-stream"
DEV_VERSION = "0.0.0-dev"


def _installed_version() -> str:
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        return DEV_VERSION


def get_build_info() -> dict[str, str]:
    """Version, git sha and build date.

    Environment overrides: SCANSTREAM_VERSION, SCANSTREAM_GIT_SHA and
    SCANSTREAM_BUILD_DATE (ISO date or datetime).
    """
    return {
        "version": os.getenv("SCANSTREAM_VERSION", "").strip() or _installed_version(),
        "git_sha": os.getenv("SCANSTREAM_GIT_SHA", "").strip() or "dev",
        "build_date": os.getenv("SCANSTREAM_BUILD_DATE", "").strip(),
    }


def get_version_string() -> str:
    info = get_build_info()
    suffix = ", ".join(p for p in (info["git_sha"], info["build_date"]) if p)
    return f"v{info['version']} ({suffix})"
