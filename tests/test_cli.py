import pytest

from iotcore import cli

from .conftest import make_cert


@pytest.fixture(autouse=True)
def env(monkeypatch, key_path):
    monkeypatch.setenv("IOTCORE_PROJECT_ID", "myproject")
    monkeypatch.setenv("IOTCORE_REGISTRY_ID", "myregistry")
    monkeypatch.setenv("IOTCORE_DEVICE_ID", "foo")
    monkeypatch.setenv("IOTCORE_PRIVATE_KEY", str(key_path))
    monkeypatch.delenv("IOTCORE_DEVICE_CERT", raising=False)
    monkeypatch.delenv("IOTCORE_JWT_CACHE", raising=False)


def test_client_id(capsys):
    assert cli.main(["client-id"]) == 0
    assert capsys.readouterr().out.strip() == \
        "projects/myproject/locations/us-central1/registries/myregistry/devices/foo"


def test_device_id_flag_overrides_env(capsys):
    assert cli.main(["--device-id", "bar", "topics"]) == 0
    assert capsys.readouterr().out.split() == [
        "/devices/bar/config", "/devices/bar/commands/#", "/devices/bar/events", "/devices/bar/state"]


def test_jwt_then_verify(capsys):
    assert cli.main(["jwt"]) == 0
    token = capsys.readouterr().out.strip()
    assert cli.main(["verify", token]) == 0
    assert capsys.readouterr().out.strip() == "valid"


def test_verify_rejects_garbage():
    assert cli.main(["verify", "not-a-jwt"]) == 1


def test_jwt_with_other_key_fails_verify(capsys, other_key_path):
    assert cli.main(["--private-key", str(other_key_path), "jwt"]) == 0
    token = capsys.readouterr().out.strip()
    assert cli.main(["verify", token]) == 1


def test_device_id(capsys, tmp_path):
    cert = tmp_path / "device.crt"
    cert.write_bytes(make_cert("cert-device"))
    assert cli.main(["device-id", str(cert)]) == 0
    assert capsys.readouterr().out.strip() == "cert-device"


def test_library_errors_exit_2(monkeypatch, tmp_path):
    assert cli.main(["device-id", str(tmp_path / "missing.crt")]) == 2
    monkeypatch.delenv("IOTCORE_PROJECT_ID")
    assert cli.main(["client-id"]) == 2


def test_publish_to_telemetry(monkeypatch, roots_path):
    published = []

    class FakeInfo:
        def wait_for_publish(self, timeout=None):
            pass

        def is_published(self):
            return True

    class FakeClient:
        def publish(self, topic, payload, qos=0):
            published.append((topic, payload, qos))
            return FakeInfo()

        def loop_start(self):
            pass

        def loop_stop(self):
            pass

        def disconnect(self):
            pass

    created = []

    def fake_new_client(device, broker, trust_bundle, *options):
        created.append((device.client_id(), broker.url(), trust_bundle, len(options)))
        return FakeClient()

    monkeypatch.setattr(cli.mqtt_client, "new_client", fake_new_client)
    monkeypatch.setattr(cli.mqtt_client, "connect", lambda client: 0)
    monkeypatch.setenv("IOTCORE_CA_CERTS", str(roots_path))

    assert cli.main(["publish", '{"temp": 18.0}']) == 0
    assert published == [("/devices/foo/events", b'{"temp": 18.0}', 1)]
    assert created[0][1:] == ("ssl://mqtt.googleapis.com:8883", str(roots_path), 1)

    assert cli.main(["publish", "--state", "ok"]) == 0
    assert published[-1][0] == "/devices/foo/state"


def test_publish_connect_failure(monkeypatch, roots_path):
    def refuse(client):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(cli.mqtt_client, "new_client", lambda *a: object())
    monkeypatch.setattr(cli.mqtt_client, "connect", refuse)
    monkeypatch.setenv("IOTCORE_CA_CERTS", str(roots_path))
    assert cli.main(["publish", "x"]) == 2


def test_device_id_on_directory_exits_2(tmp_path):
    assert cli.main(["device-id", str(tmp_path)]) == 2
