import json
import logging
import os
import threading
from dataclasses import dataclass, field, fields, replace
from typing import Dict, Optional, Tuple

logger = logging.getLogger("domainguard.rules")


@dataclass(frozen=True)
class KeywordCategory:
    name: str
    words: Tuple[str, ...]
    weight: float
    # Body-scan weight; 0 keeps the category out of the content pass
    content_weight: float = 0


@dataclass(frozen=True)
class TyposquatPolicy:
    weight: int = 90
    max_distance: int = 2
    # Distance 2 only counts for names longer than this
    long_name_length: int = 6


@dataclass(frozen=True)
class TrackingPolicy:
    words: Tuple[str, ...] = ()
    base_weight: int = 20
    per_match: int = 5
    volume_threshold: int = 2


@dataclass(frozen=True)
class HeuristicWeights:
    entropy_threshold: float = 4.8
    entropy_weight: int = 20
    length_threshold: int = 70
    length_weight: int = 15
    suspicious_tld_weight: int = 20
    trusted_tld_bonus: int = -10
    max_dots: int = 4
    subdomain_weight: int = 30
    repeat_hit_weight: int = 5
    max_repeat_hits: int = 3
    path_divisor: int = 3


@dataclass(frozen=True)
class ContentPolicy:
    min_hits: int = 2
    trap_static_ceiling: int = 50
    trap_content_floor: int = 80
    trap_boost: int = 20
    max_matches_reported: int = 10


@dataclass(frozen=True)
class DecisionThresholds:
    hard_block: int = 90
    soft_block: int = 65
    medium: int = 40
    suspicious: int = 16


@dataclass(frozen=True)
class RuleTables:
    version: str
    internal_domains: Tuple[str, ...]
    whitelist: Tuple[str, ...]
    banking_keywords: Tuple[str, ...]
    bank_suffix: str
    high_trust_suffixes: Tuple[str, ...]
    authority_suffixes: Tuple[str, ...]
    authority_score: int
    unauthorized_banking_score: int
    brand_watchlist: Tuple[str, ...]
    keyword_categories: Tuple[KeywordCategory, ...]
    suspicious_tlds: Tuple[str, ...]
    trusted_tlds: Tuple[str, ...]
    typosquat: TyposquatPolicy = field(default_factory=TyposquatPolicy)
    tracking: TrackingPolicy = field(default_factory=TrackingPolicy)
    heuristics: HeuristicWeights = field(default_factory=HeuristicWeights)
    content: ContentPolicy = field(default_factory=ContentPolicy)
    thresholds: DecisionThresholds = field(default_factory=DecisionThresholds)


def _words(*items):
    # Keep first-seen order, drop repeats so hit counts stay distinct
    return tuple(dict.fromkeys(items))


DEFAULT_RULES = RuleTables(
    version="2024.1",
    internal_domains=("localhost", "127.0.0.1", "vercel.app", "onrender.com", "supabase.co"),
    whitelist=(
        "google.com", "github.com", "microsoft.com", "openai.com", "amazon.com", "amazon.in",
        "wikipedia.org", "stackoverflow.com", "gov.in", "nic.in", "youtube.com", "apple.com",
        "facebook.com", "instagram.com", "twitter.com", "linkedin.com", "whatsapp.com",
        "netflix.com", "spotify.com", "gmail.com", "outlook.com", "office.com", "zoom.us",
        "slack.com", "discord.com", "reddit.com", "medium.com", "quora.com", "canvas",
        "instructure.com", "blackboard.com", "ucla.edu", "mit.edu", "stanford.edu",
        "bitly.com", "t.co", "tinyurl.com", "dropbox.com", "drive.google.com", "adobe.com",
        "vercel.app", "onrender.com", "supabase.co",
    ),
    banking_keywords=(
        "bank", "sbi", "hdfc", "icici", "axis", "kotak", "pnb", "bob", "canara", "unionbank",
        "rbi", "chase", "boa", "citi", "amex", "wellsfargo", "hsbc", "paytm", "phonepe",
    ),
    bank_suffix="bank.in",
    high_trust_suffixes=("gov", "edu", "mil", "org", "int", "gov.in"),
    authority_suffixes=("gov", "edu", "mil", "nic.in", "gov.in", "ac.in", "edu.in"),
    authority_score=5,
    unauthorized_banking_score=95,
    brand_watchlist=(
        "google", "facebook", "amazon", "apple", "microsoft", "netflix", "paypal", "instagram",
        "whatsapp", "twitter", "linkedin", "youtube", "gmail", "outlook", "office",
    ),
    keyword_categories=(
        KeywordCategory("gambling", _words(
            "bet", "betting", "casino", "slot", "slots", "poker", "roulette", "jackpot",
            "lottery", "lotto", "spinwin", "winmoney", "fastwin"), 35, 80),
        KeywordCategory("scam", _words(
            "earnmoney", "quickmoney", "freecash", "makemoneyfast", "getrich", "workfromhome",
            "onlinejob", "dailyincome", "easyincome", "doublemoney", "scam", "fraud", "fake",
            "phishing", "trap", "clickbait"), 40, 80),
        KeywordCategory("phishing", _words(
            "login", "verify", "secure", "account", "suspended", "password", "reset", "confirm",
            "update", "billing", "signin", "urgent", "immediate", "verify-now", "login-now",
            "secure-verify", "account-verify", "password-reset", "verify-identity",
            "verify-account", "update-payment", "verify-payment"), 45, 100),
        KeywordCategory("piracy", _words(
            "mod", "modapk", "cracked", "hacktool", "premium-unlocked", "free-premium",
            "apk-download", "patched", "license-bypass"), 30, 80),
        KeywordCategory("malware", _words(
            "malware", "virus", "trojan", "spyware", "keylogger", "rat", "payload", "backdoor",
            "rootkit", "exe", "dmg", "zip"), 70, 100),
        KeywordCategory("adult", _words(
            "porn", "xxx", "adult", "sex", "nude", "camgirl", "escort", "erotic"), 40, 90),
        KeywordCategory("social_scam", _words(
            "giveaway", "claim-now", "free-offer", "limited-offer", "click-now", "bonus",
            "reward", "survey-win", "free-gift", "winner", "congratulations"), 30),
        KeywordCategory("fraud", _words(
            "upi-refund", "bank-alert", "kyc-update", "loan-approval", "creditcard-offer",
            "instant-loan", "verify-upi", "bank-alert", "account-alert",
            "suspicious-activity"), 60),
        KeywordCategory("crypto", _words(
            "crypto", "bitcoin", "doubler", "forex", "mining", "ethereum", "btc",
            "cryptocurrency", "bitcoin-doubler", "free-bitcoin", "crypto-mining",
            "invest-crypto", "guaranteed-returns", "airdrop"), 40),
    ),
    suspicious_tlds=(
        ".xyz", ".top", ".club", ".info", ".live", ".loan", ".gq", ".cf", ".tk", ".ml", ".ga",
        ".cn", ".ru",
    ),
    trusted_tlds=(
        ".com", ".net", ".org", ".gov", ".edu", ".in", ".io", ".co", ".me", ".app", ".dev",
    ),
    tracking=TrackingPolicy(words=(
        "analytics", "pixel", "telemetry", "collect", "event", "measure", "beacon", "metrics",
        "tracker", "log",
    )),
)

_TUPLE_FIELDS = (
    "internal_domains", "whitelist", "banking_keywords", "high_trust_suffixes",
    "authority_suffixes", "brand_watchlist", "suspicious_tlds", "trusted_tlds",
)
_POLICY_FIELDS = ("typosquat", "heuristics", "content", "thresholds")


def _number(value, label):
    # bool is an int subclass; "90" from a hand-edited file is not a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number, got {value!r}")
    return value


def _merge_policy(policy, values: Dict):
    name = type(policy).__name__
    types = {f.name: f.type for f in fields(policy)}
    for key, value in values.items():
        if key not in types:
            raise ValueError(f"Unknown {name} field {key!r}")
        if types[key] in (int, float):
            _number(value, f"{name}.{key}")
    return replace(policy, **values)


def rules_from_dict(data: Dict, base: RuleTables = DEFAULT_RULES) -> RuleTables:
    """
    Build rule tables from a (possibly partial) JSON document.

    Keys that are absent keep the value from ``base``; nested policies are
    merged field by field so a file can override a single threshold.
    """
    changes = {}
    for key in _TUPLE_FIELDS:
        if key in data:
            changes[key] = tuple(str(v).lower() for v in data[key])

    if "version" in data:
        changes["version"] = str(data["version"])
    if "bank_suffix" in data:
        changes["bank_suffix"] = str(data["bank_suffix"]).lower()
    for key in ("authority_score", "unauthorized_banking_score"):
        if key in data:
            changes[key] = _number(data[key], key)

    for key in _POLICY_FIELDS:
        if key in data:
            changes[key] = _merge_policy(getattr(base, key), data[key])

    if "tracking" in data:
        tracking = dict(data["tracking"])
        if "words" in tracking:
            tracking["words"] = _words(*(str(w).lower() for w in tracking["words"]))
        changes["tracking"] = _merge_policy(base.tracking, tracking)

    if "keyword_categories" in data:
        changes["keyword_categories"] = tuple(
            KeywordCategory(
                name=name,
                words=_words(*(str(w).lower() for w in entry["words"])),
                weight=_number(entry["weight"], f"{name}.weight"),
                content_weight=_number(entry.get("content_weight", 0), f"{name}.content_weight"),
            )
            for name, entry in data["keyword_categories"].items()
        )

    return replace(base, **changes)


def load_rule_tables(path: Optional[str]) -> RuleTables:
    if not path:
        return DEFAULT_RULES
    if not os.path.exists(path):
        logger.warning(f"Rule file {path} not found, using built-in tables")
        return DEFAULT_RULES
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    tables = rules_from_dict(data)
    logger.info(f"Loaded rule tables v{tables.version} from {path}")
    return tables


class RuleStore:
    """Holds the active rule tables. Readers grab a reference; reload swaps it."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = threading.Lock()
        self._tables = load_rule_tables(path)

    def current(self) -> RuleTables:
        return self._tables

    def reload(self) -> RuleTables:
        tables = load_rule_tables(self.path)
        with self._lock:
            self._tables = tables
        return tables
