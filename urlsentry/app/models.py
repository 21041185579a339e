"""
models.py

Request/response records shared by the scanner, the list store and the API.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple

SAFE_MAX_SCORE = 25
DANGEROUS_MIN_SCORE = 85


class Status(str, Enum):
    WHITELISTED = "whitelisted"
    BLACKLISTED = "blacklisted"
    KNOWN_PHISH = "known_phish"
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    DANGEROUS = "dangerous"
    UNKNOWN = "unknown"

    @classmethod
    def from_score(cls, score: int) -> "Status":
        """Map a heuristic score onto safe / suspicious / dangerous."""
        if score <= SAFE_MAX_SCORE:
            return cls.SAFE
        if score >= DANGEROUS_MIN_SCORE:
            return cls.DANGEROUS
        return cls.SUSPICIOUS


@dataclass(frozen=True)
class CertificateInfo:
    issuer: Optional[str] = None
    validity_duration_days: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["CertificateInfo"]:
        if not isinstance(data, dict) or not data:
            return None
        days = data.get("validity_duration_days", data.get("validityDurationDays"))
        try:
            days = int(round(float(days))) if days is not None else None
        except (TypeError, ValueError, OverflowError):
            days = None
        return cls(issuer=data.get("issuer"), validity_duration_days=days)


@dataclass(frozen=True)
class DomSignals:
    password_forms: int = 0
    body_keywords: Tuple[str, ...] = ()
    suspicious_form_actions: Tuple[str, ...] = ()
    hidden_elements: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["DomSignals"]:
        """Accepts snake_case keys or the camelCase keys sent by the extension."""
        if not isinstance(data, dict):
            return None

        def pick(snake, camel, default):
            value = data.get(snake, data.get(camel))
            return default if value is None else value

        def as_int(value) -> int:
            try:
                return int(value)
            except (TypeError, ValueError, OverflowError):
                return 0

        def as_tuple(value) -> Tuple[str, ...]:
            if isinstance(value, str):
                return (value,)
            try:
                return tuple(str(v) for v in value)
            except TypeError:
                return ()

        return cls(
            password_forms=as_int(pick("password_forms", "passwordForms", 0)),
            body_keywords=as_tuple(pick("body_keywords", "bodyKeywords", ())),
            suspicious_form_actions=as_tuple(pick("suspicious_form_actions", "suspiciousFormActions", ())),
            hidden_elements=as_int(pick("hidden_elements", "hiddenElements", 0)),
        )


@dataclass(frozen=True)
class AnalysisRequest:
    raw_url: str
    dom_signals: Optional[DomSignals] = None
    certificate_info: Optional[CertificateInfo] = None
    context_id: Optional[str] = None


@dataclass(frozen=True)
class ListEntry:
    domain_root: Optional[str] = None
    full_url: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["ListEntry"]:
        domain_root = data.get("domain_root") or None
        full_url = data.get("url") or None
        if domain_root is None and full_url is None:
            return None
        return cls(domain_root=domain_root, full_url=full_url, reason=data.get("reason") or None)


class ScoreReason(NamedTuple):
    message: str
    weight: int

    def __str__(self) -> str:
        if not self.weight:
            return self.message
        return f"{self.message} ({self.weight:+d})"


@dataclass(frozen=True)
class AnalysisResult:
    resolved_url: str
    domain: str
    status: Status
    score: int
    reasons: Tuple[str, ...] = ()
    details: Optional[Any] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "url": self.resolved_url,
            "domain": self.domain,
            "status": self.status.value,
            "score": self.score,
            "reasons": list(self.reasons),
        }
        if self.details is not None:
            result["details"] = self.details
        return result
