from dataclasses import dataclass


@dataclass(frozen=True)
class MQTTBroker:
    host: str
    port: int

    def url(self) -> str:
        return f"ssl://{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.url()


DEFAULT_BROKER = MQTTBroker("mqtt.googleapis.com", 8883)
DEFAULT_BROKER_443 = MQTTBroker("mqtt.googleapis.com", 443)

# Long-term support domain, pinned to its own root CA set.
LTS_BROKER = MQTTBroker("mqtt.2030.ltsapis.goog", 8883)
LTS_BROKER_443 = MQTTBroker("mqtt.2030.ltsapis.goog", 443)
