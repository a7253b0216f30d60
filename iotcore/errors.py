"""Exceptions raised by iotcore."""


class IoTCoreError(Exception):
    """Base class for every error raised by this package."""


class KeyLoadError(IoTCoreError):
    """The device private key could not be read or parsed."""


class SigningError(IoTCoreError):
    """A JWT could not be signed."""


class TokenInvalidError(IoTCoreError):
    """A JWT failed verification (bad signature, algorithm, audience or expiry)."""


class TrustBundleError(IoTCoreError):
    """No CA certificate could be parsed from the trust bundle."""


class CertError(IoTCoreError):
    """A device certificate could not be read."""


class CertNotFoundError(CertError):
    """The device certificate file does not exist."""


class CertParseError(CertError):
    """The file holds no parseable PEM certificate."""


class ConfigError(IoTCoreError):
    """Missing or malformed environment configuration."""


class PersistenceWarning(IoTCoreError, UserWarning):
    """A minted JWT could not be written to its cache file.

    Never raised; handed to an ``on_error`` callback or logged. The token is
    still used for the current connection attempt.
    """

    def __init__(self, path, message):
        super().__init__(f"failed to persist JWT to {path}: {message}")
        self.path = path
