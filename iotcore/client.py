"""Build TLS + JWT connection settings and paho MQTT clients for a device."""
import logging
import ssl
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, List

import paho.mqtt.client as mqtt
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from .broker import MQTTBroker
from .certs import TrustBundle, load_trust_bundle
from .credentials import CredentialsProvider, jwt_credentials
from .device import Device

LOG = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=1)
DEFAULT_KEEPALIVE = 60

Option = Callable[[Device, "ConnectionConfig"], None]


@dataclass
class ConnectionConfig:
    broker: MQTTBroker
    client_id: str
    ssl_context: ssl.SSLContext
    credentials_provider: CredentialsProvider
    ca_certs: List[x509.Certificate] = field(default_factory=list)
    keepalive: int = DEFAULT_KEEPALIVE

    @property
    def broker_url(self) -> str:
        return self.broker.url()


def _tls_context(certs: List[x509.Certificate]) -> ssl.SSLContext:
    cadata = "".join(c.public_bytes(serialization.Encoding.PEM).decode("ascii") for c in certs)
    ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cadata=cadata)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    return ctx


def build_connection_config(device: Device, broker: MQTTBroker, trust_bundle: TrustBundle,
                            *options: Option) -> ConnectionConfig:
    """Assemble the connection settings for ``device``.

    Defaults to a fresh JWT with a one minute lifetime on every connection
    attempt; pass options from ``iotcore.options`` to change that. Options are
    applied in order and any exception they raise propagates unchanged.
    """
    certs = load_trust_bundle(trust_bundle)
    config = ConnectionConfig(
        broker=broker,
        client_id=device.client_id(),
        ssl_context=_tls_context(certs),
        credentials_provider=jwt_credentials(device, DEFAULT_TTL),
        ca_certs=certs,
    )
    for option in options:
        option(device, config)
    return config


def new_client(device: Device, broker: MQTTBroker, trust_bundle: TrustBundle,
               *options: Option) -> mqtt.Client:
    """Return a paho client that authenticates with fresh credentials on every (re)connect."""
    config = build_connection_config(device, broker, trust_bundle, *options)
    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=config.client_id,
                         userdata=config, protocol=mqtt.MQTTv311)
    client.tls_set_context(config.ssl_context)

    def on_pre_connect(client, userdata):
        client.username_pw_set(*userdata.credentials_provider())

    client.on_pre_connect = on_pre_connect
    LOG.info("Created MQTT client %s for %s", config.client_id, config.broker_url)
    return client


def connect(client: mqtt.Client):
    """Connect a client made by new_client to its configured broker."""
    config = client.user_data_get()
    if not isinstance(config, ConnectionConfig):
        raise TypeError("client was not created by iotcore.new_client")
    LOG.info("Connecting to %s", config.broker_url)
    return client.connect(config.broker.host, config.broker.port, keepalive=config.keepalive)
