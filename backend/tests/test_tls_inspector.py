"""
Tests for TLS certificate inspection
"""
import re
import socket
import ssl
from datetime import timedelta

import pytest
from cryptography import x509
from unittest.mock import Mock, patch

from netdiag.config import TimeoutPolicy
from netdiag.errors import (
    DomainNotFoundError,
    InvalidCertificateError,
    ProbeTimeoutError,
    SslCheckFailedError,
    SslNotAvailableError,
    ValidationError,
)
from netdiag.probes.tls_inspector import TLSHandshake, TLSInspector, _signature_algorithm

SHA1_FINGERPRINT = re.compile(r"^([0-9A-F]{2}:){19}[0-9A-F]{2}$")
SHA256_FINGERPRINT = re.compile(r"^([0-9A-F]{2}:){31}[0-9A-F]{2}$")

CIPHER = ("TLS_AES_256_GCM_SHA384", "TLSv1.3", 256)


def _handshake(cert_der):
    return TLSHandshake(cert_der=cert_der, protocol="TLSv1.3", cipher=CIPHER)


class TestCertificateParsing:
    """Test X.509 parsing and derived judgments"""

    def test_ca_issued_certificate(self, make_certificate, fixed_now):
        der = make_certificate(
            subject_cn="www.example.com",
            issuer_cn="Test CA",
            issuer_org="Test Org",
            not_after=fixed_now + timedelta(days=90),
            dns_names=("www.example.com", "example.com"),
            ip_addresses=("10.0.0.1",),
        )
        inspector = TLSInspector()

        result = inspector._parse_certificate(_handshake(der), "www.example.com", fixed_now)

        assert result.valid is True
        assert result.issuer == "Test CA"
        assert result.issuer_organization == "Test Org"
        assert result.subject == "www.example.com"
        assert result.days_until_expiry == 90
        assert result.subject_alt_names == ["www.example.com", "example.com", "10.0.0.1"]
        assert result.is_self_signed is False
        assert result.is_wildcard is False
        assert result.serial_number == "1234ABCD"
        assert result.protocol == "TLSv1.3"
        assert result.cipher == "TLS_AES_256_GCM_SHA384 (TLSv1.3)"
        assert result.public_key_algorithm == "ECDSA"
        assert result.public_key_size == 256
        assert result.signature_algorithm == "ecdsa-with-SHA256"
        assert SHA1_FINGERPRINT.match(result.fingerprint)
        assert SHA256_FINGERPRINT.match(result.fingerprint_sha256)

    def test_self_signed_certificate_is_invalid(self, make_certificate, fixed_now):
        der = make_certificate(subject_cn="example.com", subject_org="Example", self_signed=True)

        result = TLSInspector()._parse_certificate(_handshake(der), "example.com", fixed_now)

        assert result.is_self_signed is True
        assert result.valid is False
        assert result.issuer == "example.com"

    def test_expired_certificate(self, make_certificate, fixed_now):
        der = make_certificate(
            not_before=fixed_now - timedelta(days=400),
            not_after=fixed_now - timedelta(days=5),
        )

        result = TLSInspector()._parse_certificate(_handshake(der), "www.example.com", fixed_now)

        assert result.valid is False
        assert result.days_until_expiry == -5

    def test_not_yet_valid_certificate(self, make_certificate, fixed_now):
        der = make_certificate(not_before=fixed_now + timedelta(days=1))

        result = TLSInspector()._parse_certificate(_handshake(der), "www.example.com", fixed_now)

        assert result.valid is False

    def test_wildcard_from_alt_names(self, make_certificate, fixed_now):
        der = make_certificate(dns_names=("example.com", "*.example.com"))

        result = TLSInspector()._parse_certificate(_handshake(der), "example.com", fixed_now)

        assert result.is_wildcard is True

    def test_missing_names_fall_back(self, make_certificate, fixed_now):
        """No issuer CN/O gives the placeholder; no subject CN gives the host"""
        der = make_certificate(subject_cn=None, issuer_cn=None, issuer_org=None, dns_names=())

        result = TLSInspector()._parse_certificate(_handshake(der), "example.com", fixed_now)

        assert result.issuer == "Unknown Issuer"
        assert result.subject == "example.com"
        assert result.subject_alt_names == []

    def test_missing_cipher_reported_as_unknown(self, make_certificate, fixed_now):
        handshake = TLSHandshake(cert_der=make_certificate(), protocol=None, cipher=None)

        result = TLSInspector()._parse_certificate(handshake, "www.example.com", fixed_now)

        assert result.protocol == "unknown"
        assert result.cipher == "unknown"

    def test_unlisted_signature_algorithm_uses_dotted_oid(self):
        cert = Mock()
        cert.signature_algorithm_oid = x509.ObjectIdentifier("1.2.3.4.5")

        assert _signature_algorithm(cert) == "1.2.3.4.5"

    def test_garbage_certificate(self, fixed_now):
        with pytest.raises(InvalidCertificateError):
            TLSInspector()._parse_certificate(_handshake(b"not a certificate"), "example.com", fixed_now)


class TestInspect:
    """Test the async inspect flow with the handshake stubbed out"""

    @pytest.mark.asyncio
    async def test_domain_is_normalized(self, make_certificate, fixed_now):
        inspector = TLSInspector(clock=lambda: fixed_now)
        with patch.object(
            inspector, "_fetch_certificate", return_value=_handshake(make_certificate())
        ) as fetch:
            result = await inspector.inspect("EXAMPLE.com:8443/path")

        fetch.assert_called_once_with("example.com", 443)
        assert result.issuer == "Test CA"

    @pytest.mark.asyncio
    async def test_empty_domain_rejected(self):
        inspector = TLSInspector()
        with patch.object(inspector, "_fetch_certificate") as fetch:
            with pytest.raises(ValidationError):
                await inspector.inspect("https://")
        fetch.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raised,expected", [
        (socket.gaierror(-2, "Name or service not known"), DomainNotFoundError),
        (ConnectionRefusedError(111, "Connection refused"), SslNotAvailableError),
        (socket.timeout("timed out"), ProbeTimeoutError),
        (ssl.SSLError(1, "[SSL: SSLV3_ALERT_CERTIFICATE_UNKNOWN] sslv3 alert certificate unknown"),
         InvalidCertificateError),
        (RuntimeError("boom"), SslCheckFailedError),
    ])
    async def test_handshake_failures_classified(self, raised, expected):
        inspector = TLSInspector()
        with patch.object(inspector, "_fetch_certificate", side_effect=raised):
            with pytest.raises(expected) as exc_info:
                await inspector.inspect("example.com")

        # the executor may hand back a copy of the worker's exception
        cause = exc_info.value.__cause__
        assert exc_info.value.details["domain"] == "example.com"
        assert isinstance(cause, type(raised))
        assert cause.args == raised.args

    @pytest.mark.asyncio
    async def test_missing_certificate_passes_through(self):
        inspector = TLSInspector()
        error = SslCheckFailedError("SSL check failed: No certificate found", {"domain": "example.com"})
        with patch.object(inspector, "_fetch_certificate", side_effect=error):
            with pytest.raises(SslCheckFailedError, match="No certificate found"):
                await inspector.inspect("example.com")


class TestClassifyError:
    """Test the failure taxonomy mapping"""

    def test_timeout_details(self):
        inspector = TLSInspector(TimeoutPolicy(ssl_check_ms=1500))

        error = inspector.classify_error(socket.timeout("timed out"), "example.com")

        assert isinstance(error, ProbeTimeoutError)
        assert str(error) == "SSL check timeout after 1500ms"
        assert error.details == {"domain": "example.com", "timeout": 1500}

    def test_domain_not_found_message(self):
        error = TLSInspector().classify_error(socket.gaierror(-2, "unknown"), "nope.invalid")

        assert str(error) == "Domain not found: nope.invalid"
        assert error.retryable is True

    def test_refused_is_ssl_not_available(self):
        error = TLSInspector().classify_error(ConnectionRefusedError(), "example.com")

        assert error.code == "SSL_NOT_AVAILABLE"
        assert "may not support HTTPS" in str(error)
