"""
Probe Result Schemas

Pydantic models for probe results.  Every model is frozen and has a fixed
shape with explicit defaults so results can be stored or exported
verbatim.
"""

from typing import List, Dict
from pydantic import BaseModel, ConfigDict, Field, model_validator
from enum import Enum
from datetime import datetime, timezone


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PortState(str, Enum):
    """TCP connect outcome. Filtered ports are reported as closed."""
    OPEN = "open"
    CLOSED = "closed"


class ReachabilityResult(BaseModel):
    """Liveness probe outcome for one vantage point"""
    model_config = ConfigDict(frozen=True)

    alive: bool
    response_time_ms: float = Field(ge=0)
    vantage_point: str


class HttpCheckResult(BaseModel):
    """HTTP(S) endpoint check outcome"""
    model_config = ConfigDict(frozen=True)

    status_code: int = Field(ge=100, le=599)
    response_time_ms: float = Field(default=0, ge=0)
    headers: Dict[str, str] = Field(default_factory=dict)


class PortRecord(BaseModel):
    """Single port classification"""
    model_config = ConfigDict(frozen=True)

    port: int = Field(ge=1, le=65535)
    service: str = "Unknown"
    state: PortState


class PortScanResult(BaseModel):
    """Complete TCP port scan result for one host"""
    model_config = ConfigDict(frozen=True)

    host: str
    scanned_ports: List[int] = Field(default_factory=list)
    open_ports: List[PortRecord] = Field(default_factory=list)
    closed_ports: List[int] = Field(default_factory=list)
    scan_duration_ms: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_partition(self):
        open_numbers = [record.port for record in self.open_ports]
        if any(record.state != PortState.OPEN for record in self.open_ports):
            raise ValueError("open_ports may only contain open port records")
        if sorted(open_numbers + list(self.closed_ports)) != sorted(self.scanned_ports):
            raise ValueError(
                "every scanned port must appear exactly once in open_ports or closed_ports"
            )
        return self

    @property
    def open_port_numbers(self) -> List[int]:
        return [record.port for record in self.open_ports]

    @property
    def open_count(self) -> int:
        return len(self.open_ports)


class CertificateInfo(BaseModel):
    """TLS certificate details and derived trust judgments"""
    model_config = ConfigDict(frozen=True)

    issuer: str = "Unknown Issuer"
    subject: str = ""
    valid_from: datetime = _EPOCH
    valid_to: datetime = _EPOCH
    days_until_expiry: int = 0
    serial_number: str = ""
    fingerprint: str = ""         # SHA-1
    fingerprint_sha256: str = ""
    subject_alt_names: List[str] = Field(default_factory=list)
    is_wildcard: bool = False
    is_self_signed: bool = False
    protocol: str = "unknown"
    cipher: str = "unknown"

    # Descriptive extras
    issuer_organization: str = ""
    issuer_country: str = ""
    signature_algorithm: str = ""
    public_key_algorithm: str = ""
    public_key_size: int = 0


class SslResult(CertificateInfo):
    """Certificate details plus the overall validity judgment"""
    valid: bool = True
