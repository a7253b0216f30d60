"""Credential providers handed to the MQTT transport.

A provider is called before every connection attempt and returns a
``(username, password)`` pair. The broker ignores the username; the password
is a JWT signed with the device key. Providers have no error channel: when a
token cannot be minted they return ``INVALID_JWT`` so the broker rejects the
connection instead of the client crashing in its network thread.

The caching providers share ``Device._lock`` so overlapping reconnects of one
device never mint more than one token for the same cache miss.
"""
import logging
import os
from datetime import timedelta
from typing import Callable, Optional, Tuple, Union

from .device import Device
from .errors import IoTCoreError, PersistenceWarning

LOG = logging.getLogger(__name__)

USERNAME = "unused"
INVALID_JWT = "invalid-jwt"
TOKEN_FILE_MODE = 0o600

CredentialsProvider = Callable[[], Tuple[str, str]]
PersistErrorHandler = Callable[[PersistenceWarning], None]


def _mint(device: Device, ttl: timedelta) -> Optional[str]:
    try:
        return device.new_jwt(ttl)
    except IoTCoreError as exc:
        LOG.error("Failed to create JWT for %s: %s", device.device_id, exc)
        return None


def jwt_credentials(device: Device, ttl: timedelta) -> CredentialsProvider:
    def provide():
        token = _mint(device, ttl)
        return USERNAME, token or INVALID_JWT
    return provide


def cached_credentials(device: Device, ttl: timedelta) -> CredentialsProvider:
    def provide():
        with device._lock:
            if device._cached_jwt and device.verify_jwt(device._cached_jwt):
                LOG.debug("Reusing cached JWT for %s", device.device_id)
                return USERNAME, device._cached_jwt
            token = _mint(device, ttl)
            if token is None:
                return USERNAME, INVALID_JWT
            device._cached_jwt = token
            return USERNAME, token
    return provide


def _read_token(path) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as exc:
        LOG.warning("Ignoring unreadable JWT cache %s: %s", path, exc)
        return ""


def _write_token(path, token: str):
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TOKEN_FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(token)
    # O_CREAT only applies the mode to new files
    os.chmod(path, TOKEN_FILE_MODE)


def persistent_credentials(device: Device, ttl: timedelta, path: Union[str, os.PathLike],
                           on_error: Optional[PersistErrorHandler] = None) -> CredentialsProvider:
    def provide():
        with device._lock:
            cached = _read_token(path)
            if cached and device.verify_jwt(cached):
                LOG.debug("Reusing JWT from %s", path)
                return USERNAME, cached
            token = _mint(device, ttl)
            if token is None:
                return USERNAME, INVALID_JWT
            try:
                _write_token(path, token)
            except OSError as exc:
                warning = PersistenceWarning(path, exc)
                warning.__cause__ = exc
                if on_error is not None:
                    on_error(warning)
                else:
                    LOG.warning("%s", warning)
            return USERNAME, token
    return provide
