"""
Pytest configuration and shared fixtures for the probe tests.
"""
import ipaddress
import socket
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    """Reference instant used by certificate tests."""
    return FIXED_NOW


@pytest.fixture
def closed_port():
    """A loopback port that nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def _name(common_name, organization):
    attributes = []
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    if organization is not None:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    return x509.Name(attributes)


@pytest.fixture
def make_certificate():
    """
    Factory building DER certificates.

    Issuer and subject keys differ unless ``self_signed`` is set; no chain
    is needed because the inspector never verifies signatures.
    """
    def factory(
        subject_cn="www.example.com",
        subject_org=None,
        issuer_cn="Test CA",
        issuer_org="Test Org",
        not_before=FIXED_NOW - timedelta(days=90),
        not_after=FIXED_NOW + timedelta(days=90),
        dns_names=("www.example.com",),
        ip_addresses=(),
        serial_number=0x1234ABCD,
        self_signed=False,
    ):
        subject_key = ec.generate_private_key(ec.SECP256R1())
        signing_key = subject_key if self_signed else ec.generate_private_key(ec.SECP256R1())

        subject = _name(subject_cn, subject_org)
        issuer = subject if self_signed else _name(issuer_cn, issuer_org)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(subject_key.public_key())
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )

        general_names = [x509.DNSName(name) for name in dns_names]
        general_names += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in ip_addresses]
        if general_names:
            builder = builder.add_extension(
                x509.SubjectAlternativeName(general_names), critical=False
            )

        certificate = builder.sign(signing_key, hashes.SHA256())
        return certificate.public_bytes(serialization.Encoding.DER)

    return factory
