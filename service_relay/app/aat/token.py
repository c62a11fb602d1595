"""
Application Authentication Token issuance and verification.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from shared.errors import SigningError
from shared.logging import get_logger

AAT_VERSION = "0.0.1"
SUPPORTED_VERSIONS = frozenset({AAT_VERSION})

ED25519_KEY_SIZE = 32
ED25519_SIGNATURE_SIZE = 64

KeyMaterial = Union[bytes, str]

logger = get_logger("relay.aat")


@dataclass(frozen=True)
class AuthToken:
    """Signed credential presented with every relay."""
    version: str
    client_public_key: bytes
    application_public_key: bytes
    application_signature: bytes

    def to_wire(self) -> Dict[str, str]:
        """Hex-encoded form sent to relay nodes."""
        return {
            "version": self.version,
            "app_pub_key": self.application_public_key.hex(),
            "client_pub_key": self.client_public_key.hex(),
            "signature": self.application_signature.hex(),
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "AuthToken":
        try:
            return cls(
                version=str(data["version"]),
                client_public_key=bytes.fromhex(data["client_pub_key"]),
                application_public_key=bytes.fromhex(data["app_pub_key"]),
                application_signature=bytes.fromhex(data["signature"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SigningError("Malformed AAT", details={"error": str(e)})

    def __repr__(self) -> str:
        return (
            f"AuthToken(version={self.version!r}, "
            f"client_public_key={self.client_public_key.hex()!r}, "
            f"application_public_key={self.application_public_key.hex()!r})"
        )


def signing_digest(version: str, client_public_key: bytes, application_public_key: bytes) -> bytes:
    """SHA3-256 of the canonical token JSON with an empty signature."""
    message = json.dumps(
        {
            "app_pub_key": application_public_key.hex(),
            "client_pub_key": client_public_key.hex(),
            "signature": "",
            "version": version,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha3_256(message.encode("utf-8")).digest()


def _to_bytes(value: KeyMaterial, name: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return bytes.fromhex(value)
        except ValueError:
            raise SigningError(f"{name} is not valid hex")
    raise SigningError(f"{name} must be bytes or a hex string")


def _load_private_key(raw: bytes) -> Ed25519PrivateKey:
    # Pocket keybases export seed || public key; the bare seed is accepted too.
    if len(raw) not in (ED25519_KEY_SIZE, 2 * ED25519_KEY_SIZE):
        raise SigningError(
            "Application private key has the wrong length",
            details={"length": len(raw)}
        )
    private_key = Ed25519PrivateKey.from_private_bytes(raw[:ED25519_KEY_SIZE])
    if len(raw) == 2 * ED25519_KEY_SIZE and raw[ED25519_KEY_SIZE:] != _public_bytes(private_key):
        raise SigningError("Application private key does not match its embedded public key")
    return private_key


def _public_bytes(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def issue(version: str,
          client_public_key: KeyMaterial,
          application_public_key: KeyMaterial,
          application_private_key: KeyMaterial) -> AuthToken:
    """Sign a new AAT with the application's private key.

    Ed25519 signatures are deterministic, so identical inputs always
    produce an identical token.

    Raises:
        SigningError: unsupported version, malformed keys, or a private
            key that does not belong to ``application_public_key``.
    """
    if version not in SUPPORTED_VERSIONS:
        raise SigningError(f"Unsupported AAT version: {version}", details={"version": version})

    client_key = _to_bytes(client_public_key, "client_public_key")
    app_key = _to_bytes(application_public_key, "application_public_key")
    private_raw = _to_bytes(application_private_key, "application_private_key")

    for name, key in (("client_public_key", client_key), ("application_public_key", app_key)):
        if len(key) != ED25519_KEY_SIZE:
            raise SigningError(f"{name} has the wrong length", details={"length": len(key)})

    try:
        private_key = _load_private_key(private_raw)
        if _public_bytes(private_key) != app_key:
            raise SigningError("Application private key does not match application_public_key")
        signature = private_key.sign(signing_digest(version, client_key, app_key))
    except SigningError:
        raise
    except (ValueError, TypeError) as e:
        raise SigningError("AAT signing failed", details={"error": str(e)})

    logger.info(
        "Issued AAT",
        version=version,
        application_public_key=app_key.hex(),
        client_public_key=client_key.hex()
    )

    return AuthToken(
        version=version,
        client_public_key=client_key,
        application_public_key=app_key,
        application_signature=signature,
    )


def verify(token: Any) -> bool:
    """Check the token signature against its application key. Never raises."""
    try:
        if not isinstance(token, AuthToken) or token.version not in SUPPORTED_VERSIONS:
            return False
        if len(token.client_public_key) != ED25519_KEY_SIZE:
            return False
        if len(token.application_signature) != ED25519_SIGNATURE_SIZE:
            return False
        public_key = Ed25519PublicKey.from_public_bytes(token.application_public_key)
        public_key.verify(
            token.application_signature,
            signing_digest(token.version, token.client_public_key, token.application_public_key),
        )
        return True
    except (InvalidSignature, ValueError, TypeError, AttributeError):
        return False
