import logging
from typing import Optional

from .heuristics import calculate_entropy
from .normalizer import NormalizedTarget
from .rules import RuleTables
from .verdict import Action, Category, FeatureSet, ThreatLevel, Verdict

logger = logging.getLogger("domainguard.overrides")


def matches_domain(hostname: str, domain: str) -> bool:
    return hostname == domain or hostname.endswith("." + domain)


def is_whole_token(main_name: str, keyword: str) -> bool:
    return (
        main_name == keyword
        or main_name.startswith(keyword + "-")
        or main_name.endswith("-" + keyword)
    )


class OverrideResolver:
    """
    Policy checks that settle a verdict before any scoring happens.

    Order matters: internal systems, whitelist, banking policy, then the
    general authority suffixes. Returns None when nothing applies.
    """

    def __init__(self, rules: RuleTables):
        self.rules = rules

    def _verdict(self, target, category, score=0, level=ThreatLevel.SAFE,
                 action=Action.ALLOW, **features):
        return Verdict(
            domain=target.hostname,
            full_target=target.full_target,
            risk_score=score,
            threat_level=level,
            action=action,
            categories=frozenset([category.value]),
            features=FeatureSet(entropy=calculate_entropy(target.hostname), **features),
        )

    def resolve(self, target: NormalizedTarget) -> Optional[Verdict]:
        rules = self.rules
        hostname = target.hostname

        if any(matches_domain(hostname, d) for d in rules.internal_domains):
            return self._verdict(target, Category.INTERNAL_SYSTEM, is_whitelisted=True)

        if any(matches_domain(hostname, d) for d in rules.whitelist):
            return self._verdict(target, Category.TRUSTED, is_whitelisted=True)

        banking = self._resolve_banking(target)
        if banking:
            return banking

        if any(matches_domain(hostname, s) for s in rules.authority_suffixes):
            return self._verdict(
                target, Category.EDUCATIONAL_GOVERNMENT,
                score=rules.authority_score, is_authority=True,
            )
        return None

    def _resolve_banking(self, target: NormalizedTarget) -> Optional[Verdict]:
        rules = self.rules
        trusted_host = matches_domain(target.hostname, rules.bank_suffix) or any(
            matches_domain(target.hostname, s) for s in rules.high_trust_suffixes
        )

        for keyword in rules.banking_keywords:
            if keyword not in target.main_name:
                continue
            if trusted_host:
                return self._verdict(
                    target, Category.VERIFIED_AUTHORITY,
                    is_whitelisted=True, matched_bank_keyword=keyword,
                )
            # Loose substrings ("bobcat") fall through to normal scoring
            if is_whole_token(target.main_name, keyword):
                logger.info(f"Unauthorized banking name: {target.hostname} ({keyword})")
                return self._verdict(
                    target, Category.UNAUTHORIZED_BANKING,
                    score=rules.unauthorized_banking_score,
                    level=ThreatLevel.CRITICAL, action=Action.HARD_BLOCK,
                    matched_bank_keyword=keyword, violation="commercial_tld_mismatch",
                )
        return None
