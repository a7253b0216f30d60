"""Options for ``build_connection_config`` and ``new_client``.

Each option is a callable ``option(device, config)`` that writes into the
``ConnectionConfig`` being built. Options run in the order given; an
exception from any of them aborts the build.
"""
from datetime import timedelta

from . import credentials


def jwt_ttl(ttl: timedelta):
    """Mint a new JWT with the given lifetime on every connection attempt."""
    def option(device, config):
        config.credentials_provider = credentials.jwt_credentials(device, ttl)
    return option


def cache_jwt(ttl: timedelta):
    """Keep the last JWT in memory and reuse it while it is still valid."""
    def option(device, config):
        config.credentials_provider = credentials.cached_credentials(device, ttl)
    return option


def persistently_cache_jwt(ttl: timedelta, path, on_error=None):
    """Like cache_jwt, but the token lives in a file and survives restarts.

    ``on_error`` receives a PersistenceWarning when the file cannot be
    written; without it the failure is logged.
    """
    def option(device, config):
        config.credentials_provider = credentials.persistent_credentials(
            device, ttl, path, on_error=on_error)
    return option


def keepalive(seconds: int):
    def option(device, config):
        if seconds <= 0:
            raise ValueError(f"keepalive must be positive, got {seconds}")
        config.keepalive = seconds
    return option
