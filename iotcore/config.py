"""Settings read from IOTCORE_* environment variables."""
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional

from . import options
from .broker import DEFAULT_BROKER, MQTTBroker
from .certs import device_id_from_cert
from .device import Device
from .errors import ConfigError

CACHE_MODES = ("none", "memory", "file")


@dataclass
class Settings:
    project_id: str
    registry_id: str
    private_key: str
    device_id: str = ""
    device_cert: Optional[str] = None
    region: str = "us-central1"
    ca_certs: str = "roots.pem"
    broker_host: str = DEFAULT_BROKER.host
    broker_port: int = DEFAULT_BROKER.port
    jwt_ttl: int = 3600  # seconds
    jwt_cache: str = "memory"
    jwt_cache_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        missing = [name for name in ("IOTCORE_PROJECT_ID", "IOTCORE_REGISTRY_ID", "IOTCORE_PRIVATE_KEY")
                   if not env.get(name)]
        if missing:
            raise ConfigError(f"missing required settings: {', '.join(missing)}")
        settings = cls(
            project_id=env["IOTCORE_PROJECT_ID"],
            registry_id=env["IOTCORE_REGISTRY_ID"],
            private_key=env["IOTCORE_PRIVATE_KEY"],
            device_id=env.get("IOTCORE_DEVICE_ID", ""),
            device_cert=env.get("IOTCORE_DEVICE_CERT") or None,
            region=env.get("IOTCORE_REGION", "us-central1"),
            ca_certs=env.get("IOTCORE_CA_CERTS", "roots.pem"),
            broker_host=env.get("IOTCORE_BROKER_HOST", DEFAULT_BROKER.host),
            broker_port=_int(env, "IOTCORE_BROKER_PORT", DEFAULT_BROKER.port),
            jwt_ttl=_int(env, "IOTCORE_JWT_TTL", 3600),
            jwt_cache=env.get("IOTCORE_JWT_CACHE", "memory").lower(),
            jwt_cache_path=env.get("IOTCORE_JWT_CACHE_PATH") or None,
            log_level=env.get("IOTCORE_LOG_LEVEL", "INFO").upper(),
        )
        settings.validate()
        return settings

    def validate(self):
        if self.jwt_cache not in CACHE_MODES:
            raise ConfigError(f"IOTCORE_JWT_CACHE must be one of {CACHE_MODES}, got {self.jwt_cache!r}")
        if self.jwt_cache == "file" and not self.jwt_cache_path:
            raise ConfigError("IOTCORE_JWT_CACHE_PATH is required when IOTCORE_JWT_CACHE=file")
        if not self.device_id and not self.device_cert:
            raise ConfigError("set IOTCORE_DEVICE_ID or IOTCORE_DEVICE_CERT")

    def device(self) -> Device:
        device_id = self.device_id or device_id_from_cert(self.device_cert)
        return Device(project_id=self.project_id, registry_id=self.registry_id, device_id=device_id,
                      priv_key_path=self.private_key, region=self.region)

    def broker(self) -> MQTTBroker:
        return MQTTBroker(self.broker_host, self.broker_port)

    def ttl(self) -> timedelta:
        return timedelta(seconds=self.jwt_ttl)

    def options(self) -> list:
        ttl = self.ttl()
        if self.jwt_cache == "file":
            return [options.persistently_cache_jwt(ttl, self.jwt_cache_path)]
        if self.jwt_cache == "memory":
            return [options.cache_jwt(ttl)]
        return [options.jwt_ttl(ttl)]


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
