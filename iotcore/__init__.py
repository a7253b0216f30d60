"""Device-side helpers for connecting to Cloud IoT Core over MQTT.

Builds the client id and topic names the broker requires, sets up TLS, and
authenticates each connection with a short-lived ES256 JWT signed by the
device key.
"""
from .broker import DEFAULT_BROKER, DEFAULT_BROKER_443, LTS_BROKER, LTS_BROKER_443, MQTTBroker
from .certs import device_id_from_cert, load_trust_bundle
from .client import DEFAULT_TTL, ConnectionConfig, build_connection_config, connect, new_client
from .credentials import INVALID_JWT, USERNAME
from .device import Device
from .errors import (CertError, CertNotFoundError, CertParseError, ConfigError, IoTCoreError,
                     KeyLoadError, PersistenceWarning, SigningError, TokenInvalidError,
                     TrustBundleError)
from .options import cache_jwt, jwt_ttl, keepalive, persistently_cache_jwt

__version__ = "0.1.0"
