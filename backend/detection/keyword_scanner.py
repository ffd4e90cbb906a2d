from dataclasses import dataclass, field
from typing import List, Set

from .normalizer import NormalizedTarget
from .rules import KeywordCategory, RuleTables
from .verdict import Category


@dataclass
class KeywordScan:
    score: float = 0
    categories: Set[str] = field(default_factory=set)
    matched_keywords: List[str] = field(default_factory=list)
    tracking_matches: int = 0


def find_hits(text: str, words) -> List[str]:
    if not text:
        return []
    return [w for w in words if w in text]


class KeywordScanner:
    """
    Weighted taxonomy scan over the hostname and the path+query.

    Hostname hits carry the full category weight, path hits a third of it.
    Repeated hits add a small, capped increment on top.
    """

    def __init__(self, rules: RuleTables):
        self.rules = rules

    def _contribution(self, category: KeywordCategory, hits: int, is_path: bool) -> float:
        h = self.rules.heuristics
        weight = category.weight / h.path_divisor if is_path else category.weight
        return weight + min(hits - 1, h.max_repeat_hits) * h.repeat_hit_weight

    def scan(self, target: NormalizedTarget, is_background: bool = False) -> KeywordScan:
        result = KeywordScan()

        for category in self.rules.keyword_categories:
            seen = set()
            for text, is_path in ((target.hostname, False), (target.path_and_query, True)):
                hits = find_hits(text, category.words)
                if not hits:
                    continue
                result.categories.add(category.name)
                result.score += self._contribution(category, len(hits), is_path)
                for word in hits:
                    if word not in seen:
                        seen.add(word)
                        result.matched_keywords.append(word)

        self._scan_tracking(target, is_background, result)
        return result

    def _scan_tracking(self, target, is_background, result):
        # Passive telemetry only counts in volume or when hidden from the user
        policy = self.rules.tracking
        hits = [
            w for w in policy.words
            if w in target.hostname or w in target.path_and_query
        ]
        if not hits:
            return
        result.tracking_matches = len(hits)
        result.matched_keywords.extend(hits)
        result.categories.add(Category.DATA_COLLECTION.value)
        if is_background or len(hits) > policy.volume_threshold:
            result.score += policy.base_weight + len(hits) * policy.per_match

    def scan_content(self, body: str) -> KeywordScan:
        """Body text scan: a category needs several distinct hits to count."""
        result = KeywordScan()
        min_hits = self.rules.content.min_hits
        for category in self.rules.keyword_categories:
            if not category.content_weight:
                continue
            hits = find_hits(body, category.words)
            result.matched_keywords.extend(hits)
            if len(hits) >= min_hits:
                result.score += category.content_weight
                result.categories.add(f"{category.name}_content")
        return result
