"""Shared fixtures for issuance tests."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from tls_identity.ca.key_generator import KeyPairGenerator
from tls_identity.domain.models import KeyPair

# Smaller keys keep the suite fast; production code always uses 4096 bits
TEST_KEY_SIZE = 2048


@pytest.fixture(scope="session")
def key_pair() -> KeyPair:
    """A reusable RSA key pair for component tests."""
    return KeyPair(rsa.generate_private_key(public_exponent=65537, key_size=TEST_KEY_SIZE))


@pytest.fixture(scope="session")
def other_key_pair() -> KeyPair:
    return KeyPair(rsa.generate_private_key(public_exponent=65537, key_size=TEST_KEY_SIZE))


@pytest.fixture
def fast_keys(monkeypatch):
    """Make KeyPairGenerator produce test-sized keys."""
    monkeypatch.setattr(KeyPairGenerator, "KEY_SIZE", TEST_KEY_SIZE)


@pytest.fixture
def expired_certificate(key_pair) -> x509.Certificate:
    """A self-signed certificate that expired years ago."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "expired.example")])
    not_before = datetime(2020, 1, 1, tzinfo=timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key_pair.public_key)
        .serial_number(42)
        .not_valid_before(not_before)
        .not_valid_after(not_before + timedelta(days=30))
        .sign(key_pair.private_key, hashes.SHA256())
    )
