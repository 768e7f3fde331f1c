"""Post-export fixups for the generated iOS project.

The exported Xcode project needs App Transport Security relaxed so the app
can reach backends on the local network. Development exports additionally
allow plain HTTP to ``localhost`` and a few common LAN addresses used for
device testing.
"""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path
from typing import Any
from xml.parsers.expat import ExpatError

from shipgate.exceptions import PostProcessError

logger = logging.getLogger(__name__)

INFO_PLIST = "Info.plist"

DEVELOPMENT_LAN_HOSTS = ("192.168.1.100", "192.168.0.100", "10.0.0.1")


def _ensure_dict(parent: dict[str, Any], key: str) -> dict[str, Any]:
    value = parent.get(key)
    if not isinstance(value, dict):
        value = {}
        parent[key] = value
    return value


def apply_transport_security(project_dir: Path, *, development: bool) -> bool:
    """Patch ``Info.plist`` in an exported iOS project.

    Args:
        project_dir: Directory the iOS project was exported to.
        development: Whether this is a development export.

    Returns:
        ``True`` if the plist was updated, ``False`` if the export has no
        ``Info.plist``.

    Raises:
        PostProcessError: The plist could not be read or written back.
    """
    plist_path = project_dir / INFO_PLIST
    if not plist_path.is_file():
        logger.debug("No %s in %s, skipping transport security update", INFO_PLIST, project_dir)
        return False

    try:
        with open(plist_path, "rb") as f:
            root = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ExpatError) as exc:
        raise PostProcessError("reading Info.plist", f"{plist_path}: {exc}") from exc
    if not isinstance(root, dict):
        raise PostProcessError("reading Info.plist", f"{plist_path} is not a dictionary")

    ats = _ensure_dict(root, "NSAppTransportSecurity")
    ats["NSAllowsLocalNetworking"] = True

    if development:
        domains = _ensure_dict(ats, "NSExceptionDomains")
        domains["localhost"] = {"NSExceptionAllowsInsecureHTTPLoads": True}
        for host in DEVELOPMENT_LAN_HOSTS:
            if host not in domains:
                domains[host] = {
                    "NSExceptionAllowsInsecureHTTPLoads": True,
                    "NSIncludesSubdomains": False,
                }

    try:
        with open(plist_path, "wb") as f:
            plistlib.dump(root, f)
    except (OSError, TypeError, OverflowError) as exc:
        raise PostProcessError("writing Info.plist", f"{plist_path}: {exc}") from exc

    logger.info("Updated %s with ATS settings", plist_path)
    return True
