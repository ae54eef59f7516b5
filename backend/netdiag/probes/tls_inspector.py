"""
TLS Inspector Module

TLS/SSL certificate acquisition and analysis.
Reports whatever certificate a server presents on port 443 together with
validity, self-signed and wildcard judgments.  Trust is derived, never
enforced: chain verification is disabled for the handshake.
"""

import ssl
import socket
import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from datetime import datetime, timezone
import logging

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa
from cryptography.x509.oid import NameOID, SignatureAlgorithmOID

from ..config import DEFAULT_TIMEOUT_POLICY, TimeoutPolicy
from ..errors import (
    DiagnosticError,
    DomainNotFoundError,
    InvalidCertificateError,
    ProbeTimeoutError,
    SslCheckFailedError,
    SslNotAvailableError,
)
from ..validators import normalize_domain
from . import certificate_analysis as analysis
from .schemas import SslResult

logger = logging.getLogger(__name__)

HTTPS_PORT = 443
UNKNOWN_ISSUER = "Unknown Issuer"

SIGNATURE_ALGORITHM_NAMES = {
    SignatureAlgorithmOID.RSA_WITH_MD5: "md5WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA1: "sha1WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA224: "sha224WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA256: "sha256WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA384: "sha384WithRSAEncryption",
    SignatureAlgorithmOID.RSA_WITH_SHA512: "sha512WithRSAEncryption",
    SignatureAlgorithmOID.RSASSA_PSS: "RSASSA-PSS",
    SignatureAlgorithmOID.ECDSA_WITH_SHA1: "ecdsa-with-SHA1",
    SignatureAlgorithmOID.ECDSA_WITH_SHA224: "ecdsa-with-SHA224",
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "ecdsa-with-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "ecdsa-with-SHA384",
    SignatureAlgorithmOID.ECDSA_WITH_SHA512: "ecdsa-with-SHA512",
    SignatureAlgorithmOID.DSA_WITH_SHA1: "dsa-with-sha1",
    SignatureAlgorithmOID.DSA_WITH_SHA224: "dsa-with-sha224",
    SignatureAlgorithmOID.DSA_WITH_SHA256: "dsa-with-sha256",
    SignatureAlgorithmOID.ED25519: "ed25519",
    SignatureAlgorithmOID.ED448: "ed448",
}


@dataclass
class TLSHandshake:
    """Raw material captured from one TLS session"""
    cert_der: bytes
    protocol: Optional[str]
    cipher: Optional[Tuple[str, str, int]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TLSInspector:
    """
    TLS/SSL certificate inspection and analysis.

    Features:
    - Certificate extraction and parsing
    - Issuer / subject / SAN extraction
    - SHA-1 and SHA-256 fingerprints
    - Expiration and not-yet-valid analysis
    - Self-signed and wildcard detection
    - Negotiated protocol and cipher reporting
    """

    def __init__(
        self,
        policy: Optional[TimeoutPolicy] = None,
        port: int = HTTPS_PORT,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize TLS inspector.

        Args:
            policy: Timeout policy; ``ssl_check_ms`` bounds connect and handshake
            port: TLS port to connect to
            clock: Returns the current timezone-aware time
        """
        self.policy = policy or DEFAULT_TIMEOUT_POLICY
        self.port = port
        self.clock = clock

    @property
    def timeout(self) -> float:
        return self.policy.ssl_check_seconds

    async def inspect(self, domain: str) -> SslResult:
        """
        Inspect the certificate served by a domain.

        Args:
            domain: Domain, optionally with scheme, port or path

        Returns:
            SslResult with certificate details and validity judgment

        Raises:
            ValidationError: If no host name can be extracted
            DiagnosticError: One of the TLS failure kinds
        """
        hostname = normalize_domain(domain)
        logger.info(f"Inspecting TLS certificate for {hostname}:{self.port}")

        # Run in thread pool to avoid blocking
        loop = asyncio.get_running_loop()
        try:
            handshake = await loop.run_in_executor(
                None,
                self._fetch_certificate,
                hostname,
                self.port
            )
        except DiagnosticError:
            raise
        except Exception as e:
            error = self.classify_error(e, hostname)
            logger.warning(f"TLS inspection failed for {hostname}: {error.code} {e}")
            raise error from e

        return self._parse_certificate(handshake, hostname, self.clock())

    def _fetch_certificate(self, hostname: str, port: int) -> TLSHandshake:
        """Synchronous TLS handshake returning the peer certificate"""
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        with socket.create_connection((hostname, port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=hostname) as ssock:
                cert_der = ssock.getpeercert(binary_form=True)
                if not cert_der:
                    raise SslCheckFailedError(
                        "SSL check failed: No certificate found",
                        {"domain": hostname},
                    )
                return TLSHandshake(
                    cert_der=cert_der,
                    protocol=ssock.version(),
                    cipher=ssock.cipher(),
                )

    def classify_error(self, error: BaseException, hostname: str) -> DiagnosticError:
        """Map a transport-level exception onto the TLS failure taxonomy"""
        if isinstance(error, socket.gaierror):
            return DomainNotFoundError(
                f"Domain not found: {hostname}",
                {"domain": hostname},
            )

        if isinstance(error, ConnectionRefusedError):
            return SslNotAvailableError(
                "SSL is not available for this domain. The domain may not support HTTPS.",
                {"domain": hostname},
            )

        if isinstance(error, (socket.timeout, asyncio.TimeoutError)):
            return ProbeTimeoutError(
                f"SSL check timeout after {self.policy.ssl_check_ms}ms",
                {"domain": hostname, "timeout": self.policy.ssl_check_ms},
            )

        message = str(error) or type(error).__name__
        if "certificate" in message.lower():
            return InvalidCertificateError(
                f"Invalid or self-signed certificate: {message}",
                {"domain": hostname, "error": message},
            )

        return SslCheckFailedError(
            f"SSL check failed: {message}",
            {"domain": hostname, "error": message},
        )

    def _parse_certificate(
        self,
        handshake: TLSHandshake,
        hostname: str,
        now: datetime,
    ) -> SslResult:
        """Parse X.509 certificate and derive judgments"""
        try:
            cert = x509.load_der_x509_certificate(handshake.cert_der)

            issuer_cn = _name_attribute(cert.issuer, NameOID.COMMON_NAME)
            issuer_org = _name_attribute(cert.issuer, NameOID.ORGANIZATION_NAME)
            issuer_country = _name_attribute(cert.issuer, NameOID.COUNTRY_NAME)
            subject_cn = _name_attribute(cert.subject, NameOID.COMMON_NAME)
            subject_org = _name_attribute(cert.subject, NameOID.ORGANIZATION_NAME)

            # Extract validity dates
            not_before = cert.not_valid_before_utc if hasattr(cert, 'not_valid_before_utc') else cert.not_valid_before
            not_after = cert.not_valid_after_utc if hasattr(cert, 'not_valid_after_utc') else cert.not_valid_after

            # Make timezone-aware if needed
            if not_before.tzinfo is None:
                not_before = not_before.replace(tzinfo=timezone.utc)
            if not_after.tzinfo is None:
                not_after = not_after.replace(tzinfo=timezone.utc)

            sans = _subject_alt_names(cert)
            public_key_algorithm, public_key_size = _public_key_info(cert)

            fingerprint = analysis.format_fingerprint(cert.fingerprint(hashes.SHA1()))
            fingerprint_sha256 = analysis.format_fingerprint(cert.fingerprint(hashes.SHA256()))
            serial_number = format(cert.serial_number, 'X')
            signature_algorithm = _signature_algorithm(cert)
        except ValueError as e:
            raise InvalidCertificateError(
                f"Invalid certificate presented by {hostname}: {e}",
                {"domain": hostname, "error": str(e)},
            ) from e

        issuer = issuer_cn or issuer_org or UNKNOWN_ISSUER
        subject = subject_cn or hostname
        self_signed = analysis.is_self_signed(issuer_cn, subject_cn, issuer_org, subject_org)

        cipher = handshake.cipher
        result = SslResult(
            valid=analysis.evaluate_validity(not_before, not_after, self_signed, now),
            issuer=issuer,
            subject=subject,
            valid_from=not_before,
            valid_to=not_after,
            days_until_expiry=analysis.days_until_expiry(not_after, now),
            serial_number=serial_number,
            fingerprint=fingerprint,
            fingerprint_sha256=fingerprint_sha256,
            subject_alt_names=sans,
            is_wildcard=analysis.is_wildcard(subject, sans),
            is_self_signed=self_signed,
            protocol=handshake.protocol or "unknown",
            cipher=f"{cipher[0]} ({cipher[1]})" if cipher else "unknown",
            issuer_organization=issuer_org or "",
            issuer_country=issuer_country or "",
            signature_algorithm=signature_algorithm,
            public_key_algorithm=public_key_algorithm,
            public_key_size=public_key_size,
        )

        logger.info(
            f"Certificate for {hostname}: issuer={result.issuer} "
            f"expires_in={result.days_until_expiry}d valid={result.valid}"
        )
        return result


def _name_attribute(name: x509.Name, oid: x509.ObjectIdentifier) -> Optional[str]:
    attributes = name.get_attributes_for_oid(oid)
    if not attributes:
        return None
    value = attributes[0].value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _subject_alt_names(cert: x509.Certificate) -> List[str]:
    try:
        san_ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return []

    names = []
    for entry in san_ext.value:
        if isinstance(entry, x509.DNSName):
            names.append(entry.value)
        elif isinstance(entry, x509.IPAddress):
            names.append(str(entry.value))
    return analysis.dedupe_alt_names(names)


def _public_key_info(cert: x509.Certificate) -> Tuple[str, int]:
    try:
        public_key = cert.public_key()
    except Exception as e:
        # unsupported key types still leave the rest of the certificate usable
        logger.debug(f"Unsupported public key: {e}")
        return "Unknown", 0

    if isinstance(public_key, rsa.RSAPublicKey):
        algorithm = "RSA"
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        algorithm = "ECDSA"
    elif isinstance(public_key, ed25519.Ed25519PublicKey):
        algorithm = "Ed25519"
    elif isinstance(public_key, ed448.Ed448PublicKey):
        algorithm = "Ed448"
    elif isinstance(public_key, dsa.DSAPublicKey):
        algorithm = "DSA"
    else:
        algorithm = type(public_key).__name__
    return algorithm, getattr(public_key, "key_size", 0)


def _signature_algorithm(cert: x509.Certificate) -> str:
    oid = cert.signature_algorithm_oid
    return SIGNATURE_ALGORITHM_NAMES.get(oid, oid.dotted_string)
