import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from iotcore import Device


def write_key(path, key):
    path.write_bytes(key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    return path


def make_cert(common_name=None, key=None):
    key = key or ec.generate_private_key(ec.SECP256R1())
    attrs = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Devices")]
    if common_name is not None:
        attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    name = x509.Name(attrs)
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - datetime.timedelta(days=1))
            .not_valid_after(now + datetime.timedelta(days=30))
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            .sign(key, hashes.SHA256()))
    return cert.public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def key_path(tmp_path):
    return write_key(tmp_path / "device.pem", ec.generate_private_key(ec.SECP256R1()))


@pytest.fixture
def other_key_path(tmp_path):
    return write_key(tmp_path / "other.pem", ec.generate_private_key(ec.SECP256R1()))


@pytest.fixture
def device(key_path):
    return Device(project_id="myproject", registry_id="myregistry", device_id="foo",
                  priv_key_path=key_path, region="us-central1")


@pytest.fixture
def roots_pem():
    return make_cert("Root CA 1") + make_cert("Root CA 2")


@pytest.fixture
def roots_path(tmp_path, roots_pem):
    path = tmp_path / "roots.pem"
    path.write_bytes(roots_pem)
    return path


@pytest.fixture
def count_mints(monkeypatch):
    """Count Device.new_jwt calls across all devices."""
    calls = []
    original = Device.new_jwt

    def counting(self, ttl):
        calls.append(ttl)
        return original(self, ttl)

    monkeypatch.setattr(Device, "new_jwt", counting)
    return calls
