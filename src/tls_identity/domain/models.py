"""Value objects shared by the issuance components."""

import re
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

# Unescaped comma plus surrounding whitespace between RDNs
_SEPARATOR = re.compile(r"(?<!\\)\s*,\s*")


@dataclass
class KeyPair:
    """Holds a freshly generated RSA key pair.

    Instances live only for the duration of one issuance call.
    """

    private_key: rsa.RSAPrivateKey

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self.private_key.public_key()


@dataclass(frozen=True)
class DistinguishedName:
    """Identity used as both issuer and subject of a self-signed certificate."""

    common_name: str
    country: str | None = None
    organization: str | None = None
    organizational_unit: str | None = None

    # RDN order of the produced name: C, O, OU, CN
    _ATTRIBUTES = (
        ("country", NameOID.COUNTRY_NAME),
        ("organization", NameOID.ORGANIZATION_NAME),
        ("organizational_unit", NameOID.ORGANIZATIONAL_UNIT_NAME),
        ("common_name", NameOID.COMMON_NAME),
    )

    @classmethod
    def parse(cls, value: str) -> "DistinguishedName":
        """Parse a ``C=AU, O=Org, OU=Unit, CN=host`` style string.

        Raises:
            ValueError: If the string is malformed or lacks a common name.
        """
        name = x509.Name.from_rfc4514_string(_SEPARATOR.sub(",", value.strip()))
        fields: dict[str, str] = {}
        for field_name, oid in cls._ATTRIBUTES:
            attributes = name.get_attributes_for_oid(oid)
            if attributes:
                fields[field_name] = str(attributes[0].value)

        if "common_name" not in fields:
            raise ValueError(f"Distinguished name has no CN: {value!r}")
        return cls(**fields)

    def to_x509_name(self) -> x509.Name:
        return x509.Name(
            [
                x509.NameAttribute(oid, getattr(self, field_name))
                for field_name, oid in self._ATTRIBUTES
                if getattr(self, field_name) is not None
            ]
        )

    def __str__(self) -> str:
        labels = {"country": "C", "organization": "O", "organizational_unit": "OU", "common_name": "CN"}
        return ", ".join(
            f"{labels[field_name]}={getattr(self, field_name)}"
            for field_name, _ in self._ATTRIBUTES
            if getattr(self, field_name) is not None
        )


@dataclass(frozen=True)
class ArtifactLayout:
    """File locations of the issued identities under one base directory."""

    base_directory: Path

    @property
    def server_certificate(self) -> Path:
        return self.base_directory / "cert.pem"

    @property
    def server_private_key(self) -> Path:
        return self.base_directory / "privatekey.pem"

    @property
    def client_certificate(self) -> Path:
        return self.base_directory / "client-cert.pem"

    @property
    def client_private_key(self) -> Path:
        return self.base_directory / "client-privatekey.pem"

    @property
    def key_store(self) -> Path:
        return self.base_directory / "keystore.jks"

    @property
    def trust_store(self) -> Path:
        return self.base_directory / "truststore.jks"
