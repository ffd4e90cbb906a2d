from typing import NamedTuple

from .decision import clamp_score, decide
from .heuristics import HeuristicAggregator, calculate_entropy
from .keyword_scanner import KeywordScanner
from .normalizer import NormalizedTarget, normalize_target
from .override_resolver import OverrideResolver
from .rules import RuleStore, RuleTables
from .typosquat import TyposquatDetector
from .verdict import Category, FeatureSet, Verdict


class _Stages(NamedTuple):
    tables: RuleTables
    overrides: OverrideResolver
    typosquat: TyposquatDetector
    keywords: KeywordScanner
    heuristics: HeuristicAggregator


class RiskEngine:
    """
    Static scoring pipeline: overrides, typosquatting, keyword taxonomy,
    heuristics, then the decision policy. Pure computation, no I/O.
    """

    def __init__(self, rule_store: RuleStore):
        self.rule_store = rule_store
        self._stages = None

    def _bind(self) -> _Stages:
        # Rebuild the stages whenever a reload swapped the tables
        tables = self.rule_store.current()
        stages = self._stages
        if stages is None or stages.tables is not tables:
            stages = _Stages(
                tables=tables,
                overrides=OverrideResolver(tables),
                typosquat=TyposquatDetector(tables),
                keywords=KeywordScanner(tables),
                heuristics=HeuristicAggregator(tables),
            )
            self._stages = stages
        return stages

    @property
    def rules(self) -> RuleTables:
        return self._bind().tables

    @property
    def keyword_scanner(self) -> KeywordScanner:
        return self._bind().keywords

    def analyze(self, raw: str, is_background: bool = False) -> Verdict:
        return self.analyze_target(normalize_target(raw), is_background)

    def analyze_target(self, target: NormalizedTarget, is_background: bool = False) -> Verdict:
        stages = self._bind()

        override = stages.overrides.resolve(target)
        if override is not None:
            return override

        entropy = calculate_entropy(target.hostname)
        categories = set()
        score = 0

        # 1. Typosquatting
        typo = stages.typosquat.check(target.main_name)
        if typo.is_typosquat:
            score += typo.score
            categories.add(Category.PHISHING_IMPERSONATION.value)

        # 2. TLD reputation
        tld_delta, suspicious_tld = stages.heuristics.tld_adjustment(target)
        score += tld_delta

        # 3. Keyword taxonomy
        scan = stages.keywords.scan(target, is_background)
        score += scan.score
        categories |= scan.categories

        # 4. Structural heuristics
        has_risk_flags = bool(categories) or suspicious_tld or typo.is_typosquat
        score += stages.heuristics.structure_adjustment(target, entropy, has_risk_flags)

        risk_score = clamp_score(score)
        threat_level, action = decide(risk_score, stages.tables.thresholds)
        return Verdict(
            domain=target.hostname,
            full_target=target.full_target,
            risk_score=risk_score,
            threat_level=threat_level,
            action=action,
            categories=frozenset(categories),
            features=FeatureSet(
                entropy=entropy,
                matched_keywords=tuple(scan.matched_keywords),
                is_typosquat=typo.is_typosquat,
                suspicious_tld=suspicious_tld,
                typosquat_targets=typo.targets,
                tracking_matches=scan.tracking_matches,
            ),
        )
