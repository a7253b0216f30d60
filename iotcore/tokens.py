"""ES256 JWT minting and verification for device authentication.

The broker accepts a JWT in place of an MQTT password. Tokens carry the
project id as audience and are short-lived; callers decide how long a token
lives and whether to reuse it (see ``iotcore.credentials``).
"""
import logging
import os
import time
from datetime import timedelta
from typing import Optional, Union

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .errors import KeyLoadError, SigningError, TokenInvalidError

LOG = logging.getLogger(__name__)

ALGORITHM = "ES256"
REQUIRED_CLAIMS = ["aud", "iat", "exp"]


def load_private_key(path: Union[str, os.PathLike]) -> ec.EllipticCurvePrivateKey:
    # Read on every call so a rotated key file is picked up on the next mint.
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as exc:
        raise KeyLoadError(f"failed to read private key {path}: {exc}") from exc
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyLoadError(f"failed to parse private key {path}: {exc}") from exc
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise KeyLoadError(f"private key {path} is not an elliptic-curve key")
    return key


def new_jwt(private_key: ec.EllipticCurvePrivateKey, audience: str, ttl: timedelta,
            now: Optional[float] = None) -> str:
    issued = int(time.time() if now is None else now)
    claims = {
        "aud": audience,
        "iat": issued,
        "exp": issued + int(ttl.total_seconds()),
    }
    try:
        return jwt.encode(claims, private_key, algorithm=ALGORITHM)
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise SigningError(f"failed to sign JWT: {exc}") from exc


def check_jwt(token: str, public_key: ec.EllipticCurvePublicKey, audience: str) -> dict:
    """Return the claims of a valid token, raise TokenInvalidError otherwise.

    The header algorithm is checked before the signature so a token signed
    with any other scheme (HS256 with the public key as secret, ``none``) is
    rejected outright.
    """
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as exc:
        raise TokenInvalidError(f"malformed JWT: {exc}") from exc
    alg = header.get("alg")
    if alg != ALGORITHM:
        raise TokenInvalidError(f"unexpected signing method {alg!r}")
    try:
        return jwt.decode(token, public_key, algorithms=[ALGORITHM], audience=audience,
                          options={"require": REQUIRED_CLAIMS})
    except jwt.PyJWTError as exc:
        raise TokenInvalidError(str(exc)) from exc


def verify_jwt(token: str, public_key: ec.EllipticCurvePublicKey, audience: str) -> bool:
    try:
        check_jwt(token, public_key, audience)
    except TokenInvalidError as exc:
        LOG.debug("Rejected JWT: %s", exc)
        return False
    return True
