"""Version information for lokal-core."""

from __future__ import annotations

from lokal_schemas.version import VersionInfo

VERSION = VersionInfo(major=0, minor=1, patch=0)
