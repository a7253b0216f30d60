"""Certificate helpers: CA trust bundles and device ids from device certs."""
import logging
import os
import re
from typing import BinaryIO, List, Union

from cryptography import x509
from cryptography.x509.oid import NameOID

from .errors import CertError, CertNotFoundError, CertParseError, TrustBundleError

LOG = logging.getLogger(__name__)

PEM_LABEL = re.compile(rb"-----BEGIN ([A-Z0-9 ]+)-----")

TrustBundle = Union[bytes, str, os.PathLike, BinaryIO]


def _read_bundle(source: TrustBundle) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as f:
            return f.read()
    data = source.read()
    # PEM is ASCII; stray characters only ever sit outside the base64 blocks
    return data.encode("ascii", errors="replace") if isinstance(data, str) else data


def load_trust_bundle(source: TrustBundle) -> List[x509.Certificate]:
    """Parse a PEM concatenation of CA certificates.

    ``source`` is PEM bytes, a path, or a readable stream.
    """
    try:
        data = _read_bundle(source)
    except OSError as exc:
        raise TrustBundleError(f"failed to read CA certs: {exc}") from exc
    try:
        certs = x509.load_pem_x509_certificates(data)
    except ValueError as exc:
        raise TrustBundleError(f"no CA certificates parsed: {exc}") from exc
    LOG.debug("Loaded %d CA certificates", len(certs))
    return certs


def device_id_from_cert(cert_path: Union[str, os.PathLike]) -> str:
    """Return the subject Common Name of a device certificate.

    Provisioned device certificates carry the device id as CN.
    """
    try:
        with open(cert_path, "rb") as f:
            data = f.read()
    except FileNotFoundError as exc:
        raise CertNotFoundError(f"cert file does not exist: {cert_path}") from exc
    except OSError as exc:
        raise CertError(f"failed to read cert {cert_path}: {exc}") from exc

    label = PEM_LABEL.search(data)
    if label is None or label.group(1) != b"CERTIFICATE":
        raise CertParseError(f"failed to decode PEM certificate {cert_path}")
    try:
        cert = x509.load_pem_x509_certificate(data[label.start():])
    except ValueError as exc:
        raise CertParseError(f"failed to parse certificate {cert_path}: {exc}") from exc

    names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    return names[0].value if names else ""
