from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class ThreatLevel(str, Enum):
    SAFE = "safe"
    LOW = "low"
    SUSPICIOUS = "suspicious"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Action(str, Enum):
    ALLOW = "ALLOW"
    SOFT_BLOCK = "SOFT-BLOCK"
    HARD_BLOCK = "HARD-BLOCK"


class Category(str, Enum):
    """Policy tags produced outside the keyword taxonomy."""
    GENERAL = "general"
    TRUSTED = "trusted"
    INTERNAL_SYSTEM = "internal_system"
    VERIFIED_AUTHORITY = "verified_authority"
    UNAUTHORIZED_BANKING = "unauthorized_banking"
    EDUCATIONAL_GOVERNMENT = "educational_government"
    PHISHING_IMPERSONATION = "phishing_impersonation"
    DATA_COLLECTION = "data_collection"


@dataclass(frozen=True)
class FeatureSet:
    entropy: float = 0.0
    matched_keywords: Tuple[str, ...] = ()
    is_typosquat: bool = False
    suspicious_tld: bool = False
    typosquat_targets: Tuple[str, ...] = ()
    tracking_matches: int = 0
    is_whitelisted: bool = False
    is_authority: bool = False
    matched_bank_keyword: Optional[str] = None
    violation: Optional[str] = None
    deep_scan: bool = False
    content_matches: Tuple[str, ...] = ()
    fetch_error: bool = False

    def to_dict(self):
        data = {
            "entropy": self.entropy,
            "matchedKeywords": list(self.matched_keywords),
            "isTyposquat": self.is_typosquat,
            "suspiciousTLD": self.suspicious_tld,
        }
        # Optional evidence only when it carries something
        if self.typosquat_targets:
            data["typosquatTargets"] = list(self.typosquat_targets)
        if self.tracking_matches:
            data["trackingMatches"] = self.tracking_matches
        if self.is_whitelisted:
            data["isWhitelisted"] = True
        if self.is_authority:
            data["isAuthority"] = True
        if self.matched_bank_keyword:
            data["matchedBankKeyword"] = self.matched_bank_keyword
        if self.violation:
            data["violation"] = self.violation
        if self.deep_scan:
            data["deepScan"] = True
            data["contentMatches"] = list(self.content_matches)
        if self.fetch_error:
            data["fetchError"] = True
        return data


@dataclass(frozen=True)
class Verdict:
    domain: str
    full_target: str
    risk_score: int
    threat_level: ThreatLevel
    action: Action
    categories: FrozenSet[str] = field(default_factory=frozenset)
    features: FeatureSet = field(default_factory=FeatureSet)

    @property
    def category(self) -> str:
        if not self.categories:
            return Category.GENERAL.value
        return ", ".join(sorted(self.categories))

    def to_dict(self):
        return {
            "domain": self.domain,
            "fullTarget": self.full_target,
            "riskScore": self.risk_score,
            "threatLevel": self.threat_level.value,
            "action": self.action.value,
            "category": self.category,
            "features": self.features.to_dict(),
        }
