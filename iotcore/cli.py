#!/usr/bin/env python3
# Command-line helper for a single device: inspect names, mint JWTs, publish.
import argparse
import logging
import os
import sys

from . import client as mqtt_client
from .certs import device_id_from_cert
from .config import Settings
from .errors import IoTCoreError

LOG = logging.getLogger("iotcore.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iotcore", description="Cloud IoT Core MQTT device helper")
    parser.add_argument("--device-id", help="overrides IOTCORE_DEVICE_ID")
    parser.add_argument("--private-key", help="overrides IOTCORE_PRIVATE_KEY")
    parser.add_argument("--ca-certs", help="overrides IOTCORE_CA_CERTS")
    parser.add_argument("--log-level", help="overrides IOTCORE_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("client-id", help="print the MQTT client id")
    sub.add_parser("topics", help="print the device topics")
    sub.add_parser("jwt", help="mint and print a JWT")
    verify = sub.add_parser("verify", help="exit 0 if TOKEN is a valid JWT for this device")
    verify.add_argument("token")
    cert = sub.add_parser("device-id", help="print the device id from a device certificate")
    cert.add_argument("cert")
    publish = sub.add_parser("publish", help="publish PAYLOAD as telemetry")
    publish.add_argument("payload")
    publish.add_argument("--state", action="store_true", help="publish to the state topic instead")
    publish.add_argument("--timeout", type=float, default=10.0, help="seconds to wait for the PUBACK")
    return parser


def load_settings(args) -> Settings:
    env = dict(os.environ)
    overrides = {"IOTCORE_DEVICE_ID": args.device_id,
                 "IOTCORE_PRIVATE_KEY": args.private_key,
                 "IOTCORE_CA_CERTS": args.ca_certs}
    env.update({name: value for name, value in overrides.items() if value})
    return Settings.from_env(env)


def publish(settings: Settings, payload: str, state: bool, timeout: float) -> int:
    device = settings.device()
    topic = device.state_topic() if state else device.telemetry_topic()
    client = mqtt_client.new_client(device, settings.broker(), settings.ca_certs, *settings.options())
    try:
        mqtt_client.connect(client)
    except OSError as e:
        LOG.error("Failed to connect to %s: %s", settings.broker(), e)
        return 2
    client.loop_start()
    try:
        info = client.publish(topic, payload.encode("utf-8"), qos=1)
        info.wait_for_publish(timeout=timeout)
        if not info.is_published():
            LOG.error("Publish to %s not acknowledged within %.1fs", topic, timeout)
            return 2
        LOG.info("Published %d bytes to %s", len(payload), topic)
        return 0
    except (RuntimeError, ValueError) as e:
        LOG.error("Failed to publish to %s: %s", topic, e)
        return 2
    finally:
        client.disconnect()
        client.loop_stop()


def run(args) -> int:
    if args.command == "device-id":
        print(device_id_from_cert(args.cert))
        return 0

    settings = load_settings(args)
    device = settings.device()
    if args.command == "client-id":
        print(device.client_id())
    elif args.command == "topics":
        for topic in (device.config_topic(), device.command_topic(),
                      device.telemetry_topic(), device.state_topic()):
            print(topic)
    elif args.command == "jwt":
        print(device.new_jwt(settings.ttl()))
    elif args.command == "verify":
        try:
            device.check_jwt(args.token)
        except IoTCoreError as e:
            LOG.warning("Invalid JWT: %s", e)
            return 1
        print("valid")
    elif args.command == "publish":
        return publish(settings, args.payload, args.state, args.timeout)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    level = args.log_level or os.getenv("IOTCORE_LOG_LEVEL", "INFO")
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(levelname)s %(message)s")
    try:
        return run(args)
    except IoTCoreError as e:
        LOG.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
