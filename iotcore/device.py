"""Device identity, topic names and per-device JWT handling."""
import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Union

from . import tokens
from .errors import KeyLoadError, TokenInvalidError

LOG = logging.getLogger(__name__)


@dataclass
class Device:
    project_id: str
    registry_id: str
    device_id: str
    priv_key_path: Union[str, os.PathLike]
    region: str
    # JWT cache shared by the credential providers built for this device.
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False,
                                  repr=False, compare=False)
    _cached_jwt: str = field(default="", init=False, repr=False, compare=False)

    def client_id(self) -> str:
        """Fully-qualified device name the broker expects as MQTT client id."""
        return (f"projects/{self.project_id}/locations/{self.region}"
                f"/registries/{self.registry_id}/devices/{self.device_id}")

    def config_topic(self) -> str:
        return f"/devices/{self.device_id}/config"

    def command_topic(self) -> str:
        # The broker only accepts the wildcard form; subscribing to a single
        # command subfolder is not supported.
        return f"/devices/{self.device_id}/commands/#"

    def telemetry_topic(self) -> str:
        return f"/devices/{self.device_id}/events"

    def state_topic(self) -> str:
        """Topic for device state; only honoured if the registry enables it."""
        return f"/devices/{self.device_id}/state"

    def new_jwt(self, ttl: timedelta) -> str:
        key = tokens.load_private_key(self.priv_key_path)
        return tokens.new_jwt(key, self.project_id, ttl)

    def check_jwt(self, token: str) -> dict:
        """Return the token's claims or raise TokenInvalidError/KeyLoadError."""
        public_key = tokens.load_private_key(self.priv_key_path).public_key()
        return tokens.check_jwt(token, public_key, self.project_id)

    def verify_jwt(self, token: str) -> bool:
        """True only for a well-formed, correctly signed, unexpired token.

        Any failure, including an unreadable key, yields False. Use
        ``check_jwt`` to see why a token was rejected.
        """
        try:
            self.check_jwt(token)
        except (TokenInvalidError, KeyLoadError) as exc:
            LOG.debug("JWT for %s not usable: %s", self.device_id, exc)
            return False
        return True
