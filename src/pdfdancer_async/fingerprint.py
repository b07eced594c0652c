"""
Device fingerprint generation for request attribution.

The fingerprint is a SHA-256 hex digest over a handful of best-effort client
data points plus a random salt persisted once per installation.
"""

import hashlib
import locale
import logging
import os
import secrets
import socket
import sys
import time
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

SDK_LANGUAGE = "python"
DEFAULT_SALT_PATH = Path.home() / ".pdfdancer" / "install_salt"
LOCALTIME_PATH = Path("/etc/localtime")


def _sha256(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def get_install_salt(salt_path: Optional[Union[str, Path]] = None) -> str:
    """
    Return the per-installation salt, creating and persisting it on first use.
    Falls back to an unpersisted random salt when the file cannot be used.
    """
    path = Path(salt_path) if salt_path is not None else DEFAULT_SALT_PATH
    try:
        if path.is_file():
            salt = path.read_text(encoding="utf-8").strip()
            if salt:
                return salt
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        salt = secrets.token_hex(16)
        path.write_text(salt, encoding="utf-8")
        os.chmod(path, 0o600)
        return salt
    except OSError as e:
        logger.warning("Could not persist install salt at %s: %s", path, e)
        return secrets.token_hex(16)


def get_client_ip() -> str:
    try:
        address = socket.gethostbyname(socket.gethostname())
    except OSError:
        return "server-unknown"
    if address.startswith("127."):
        return "server-unknown"
    return address


def get_hostname() -> str:
    try:
        return socket.gethostname() or "unknown"
    except OSError:
        return "unknown"


def get_timezone() -> str:
    """
    IANA zone name (e.g. "Europe/Berlin"), which unlike the abbreviation does
    not change with daylight saving time.
    """
    zone = os.environ.get("TZ", "").lstrip(":")
    if not zone:
        try:
            zone = os.path.realpath(LOCALTIME_PATH)
        except OSError:
            zone = ""
    if "zoneinfo/" in zone:
        zone = zone.split("zoneinfo/", 1)[1]
    if zone and not zone.startswith("/"):
        return zone
    # standard-time abbreviation, the same all year
    return time.tzname[0] if time.tzname and time.tzname[0] else "unknown"


def get_locale() -> str:
    language, _ = locale.getlocale()
    return language or "unknown"


def generate_fingerprint(user_id: Optional[str] = None,
                         salt_path: Optional[Union[str, Path]] = None) -> str:
    """
    Generate the device fingerprint.

    Args:
        user_id: Optional user id mixed into the digest; "unknown" when absent
        salt_path: Location of the installation salt (defaults to ~/.pdfdancer/install_salt)

    Returns:
        64 lowercase hex characters
    """
    fingerprint_data = (
            _sha256(get_client_ip())
            + _sha256(user_id or "unknown")
            + sys.platform
            + SDK_LANGUAGE
            + get_timezone()
            + get_locale()
            + _sha256(get_hostname())
            + get_install_salt(salt_path)
    )
    return _sha256(fingerprint_data)
