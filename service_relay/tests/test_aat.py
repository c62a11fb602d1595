"""
Unit tests for AAT issuance and verification.
"""

import pytest
from dataclasses import replace

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_relay.app.aat import AAT_VERSION, AuthToken, issue, verify
from shared.errors import SigningError
from shared.test_helpers import generate_keypair


class TestIssue:
    """Test cases for issue()."""

    @pytest.fixture
    def app_keys(self):
        return generate_keypair()

    @pytest.fixture
    def client_keys(self):
        return generate_keypair()

    def test_issued_token_verifies(self, app_keys, client_keys):
        """A freshly issued token verifies against its application key."""
        token = issue(AAT_VERSION, client_keys.public_key, app_keys.public_key, app_keys.private_key)

        assert verify(token) is True
        assert token.version == "0.0.1"
        assert token.client_public_key == bytes.fromhex(client_keys.public_key)
        assert token.application_public_key == bytes.fromhex(app_keys.public_key)
        assert len(token.application_signature) == 64

    def test_self_issued_token(self, app_keys):
        """Client and application may be the same key."""
        token = issue(AAT_VERSION, app_keys.public_key, app_keys.public_key, app_keys.private_key)
        assert verify(token)

    def test_accepts_bare_seed_and_bytes(self, app_keys, client_keys):
        """A 32-byte seed and raw bytes are accepted as well as hex."""
        token = issue(
            AAT_VERSION,
            bytes.fromhex(client_keys.public_key),
            bytes.fromhex(app_keys.public_key),
            bytes.fromhex(app_keys.seed),
        )
        assert verify(token)

    def test_issue_is_deterministic(self, app_keys, client_keys):
        """Ed25519 gives identical tokens for identical inputs."""
        first = issue(AAT_VERSION, client_keys.public_key, app_keys.public_key, app_keys.private_key)
        second = issue(AAT_VERSION, client_keys.public_key, app_keys.public_key, app_keys.private_key)
        assert first == second

    @pytest.mark.parametrize("private_key", [
        "not-hex",
        "abcd",
        "00" * 16,
        "00" * 48,
        "",
    ])
    def test_malformed_private_key(self, app_keys, client_keys, private_key):
        """Malformed private keys raise SigningError."""
        with pytest.raises(SigningError) as exc_info:
            issue(AAT_VERSION, client_keys.public_key, app_keys.public_key, private_key)
        assert exc_info.value.code == "SIGNING_ERROR"

    def test_private_key_of_another_application(self, app_keys, client_keys):
        """A private key that does not match the application key is refused."""
        other = generate_keypair()
        with pytest.raises(SigningError):
            issue(AAT_VERSION, client_keys.public_key, app_keys.public_key, other.private_key)

    def test_embedded_public_key_mismatch(self, app_keys, client_keys):
        """The trailing half of a 64-byte key must be the derived public key."""
        tampered = app_keys.seed + generate_keypair().public_key
        with pytest.raises(SigningError):
            issue(AAT_VERSION, client_keys.public_key, app_keys.public_key, tampered)

    def test_wrong_length_client_key(self, app_keys):
        with pytest.raises(SigningError):
            issue(AAT_VERSION, "abcd", app_keys.public_key, app_keys.private_key)

    def test_unsupported_version(self, app_keys, client_keys):
        with pytest.raises(SigningError):
            issue("0.0.2", client_keys.public_key, app_keys.public_key, app_keys.private_key)


class TestVerify:
    """Test cases for verify()."""

    @pytest.fixture
    def token(self):
        app_keys = generate_keypair()
        return issue(AAT_VERSION, generate_keypair().public_key, app_keys.public_key, app_keys.private_key)

    def test_tampered_client_key(self, token):
        forged = replace(token, client_public_key=bytes.fromhex(generate_keypair().public_key))
        assert verify(forged) is False

    def test_tampered_application_key(self, token):
        forged = replace(token, application_public_key=bytes.fromhex(generate_keypair().public_key))
        assert verify(forged) is False

    def test_tampered_signature(self, token):
        signature = bytearray(token.application_signature)
        signature[0] ^= 0xFF
        assert verify(replace(token, application_signature=bytes(signature))) is False

    def test_tampered_version(self, token):
        assert verify(replace(token, version="9.9.9")) is False

    @pytest.mark.parametrize("value", [
        None,
        "token",
        {"version": "0.0.1"},
        AuthToken("0.0.1", b"", b"", b""),
        AuthToken("0.0.1", b"\x00" * 32, b"\x00" * 31, b"\x00" * 64),
        AuthToken("0.0.1", "not-bytes", "not-bytes", "not-bytes"),
    ])
    def test_malformed_input_returns_false(self, value):
        """verify never raises on malformed input."""
        assert verify(value) is False

    def test_token_is_immutable(self, token):
        with pytest.raises(AttributeError):
            token.version = "0.0.2"


class TestWireForm:
    """Test cases for the hex wire form."""

    def test_wire_form_round_trips(self):
        app_keys = generate_keypair()
        token = issue(AAT_VERSION, app_keys.public_key, app_keys.public_key, app_keys.private_key)

        wire = token.to_wire()

        assert wire == {
            "version": "0.0.1",
            "app_pub_key": app_keys.public_key,
            "client_pub_key": app_keys.public_key,
            "signature": token.application_signature.hex(),
        }
        assert AuthToken.from_wire(wire) == token

    def test_from_wire_rejects_bad_hex(self):
        with pytest.raises(SigningError):
            AuthToken.from_wire({"version": "0.0.1", "app_pub_key": "zz", "client_pub_key": "", "signature": ""})

    def test_from_wire_rejects_missing_fields(self):
        with pytest.raises(SigningError):
            AuthToken.from_wire({"version": "0.0.1"})

    def test_repr_omits_signature(self):
        app_keys = generate_keypair()
        token = issue(AAT_VERSION, app_keys.public_key, app_keys.public_key, app_keys.private_key)
        assert token.application_signature.hex() not in repr(token)
