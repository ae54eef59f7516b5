"""
Certificate judgments derived from raw certificate fields.

All functions are pure; ``now`` is passed in explicitly.
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, List, Optional

SECONDS_PER_DAY = 86400
EXPIRY_WARNING_DAYS = 30


def days_until_expiry(valid_to: datetime, now: datetime) -> int:
    """Whole days left on the certificate, rounded up; negative once expired."""
    return math.ceil((valid_to - now).total_seconds() / SECONDS_PER_DAY)


def is_expiring_within_30_days(days: int) -> bool:
    return 0 < days <= EXPIRY_WARNING_DAYS


def is_certificate_expired(days: int) -> bool:
    return days < 0


def is_wildcard(subject: str, subject_alt_names: Iterable[str]) -> bool:
    if subject.startswith("*."):
        return True
    return any(name.startswith("*.") for name in subject_alt_names)


def is_self_signed(
    issuer_cn: Optional[str],
    subject_cn: Optional[str],
    issuer_org: Optional[str],
    subject_org: Optional[str],
) -> bool:
    """
    Heuristic self-signed check on names only.

    Issuer and subject must agree on both common name and organisation.
    Missing attributes compare equal to each other.  No chain validation
    is attempted.
    """
    return issuer_cn == subject_cn and issuer_org == subject_org


def evaluate_validity(
    valid_from: datetime,
    valid_to: datetime,
    self_signed: bool,
    now: datetime,
) -> bool:
    """A certificate is valid unless expired, not yet valid, or self-signed."""
    valid = True
    if now > valid_to:
        valid = False
    if now < valid_from:
        valid = False
    if self_signed:
        valid = False
    return valid


def dedupe_alt_names(names: Iterable[str]) -> List[str]:
    """Strip ``DNS:`` / ``IP Address:`` prefixes and drop repeats, keeping first-seen order."""
    seen: List[str] = []
    for raw in names:
        value = raw.strip()
        for prefix in ("DNS:", "IP Address:"):
            if value.startswith(prefix):
                value = value[len(prefix):].strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def format_fingerprint(digest: bytes) -> str:
    """``b'\\xab\\xcd'`` -> ``'AB:CD'``"""
    return ":".join(f"{byte:02X}" for byte in digest)
