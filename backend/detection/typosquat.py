from dataclasses import dataclass
from typing import Tuple

from .rules import RuleTables


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


@dataclass(frozen=True)
class TyposquatResult:
    is_typosquat: bool = False
    score: int = 0
    targets: Tuple[str, ...] = ()


class TyposquatDetector:
    def __init__(self, rules: RuleTables):
        self.rules = rules

    def is_lookalike(self, main_name: str, brand: str) -> bool:
        if main_name == brand:
            return False
        policy = self.rules.typosquat
        dist = levenshtein(main_name, brand)
        if dist == 1:
            return True
        # Short names sit 2 edits away from too many brands
        return dist == policy.max_distance and len(main_name) > policy.long_name_length

    def check(self, main_name: str) -> TyposquatResult:
        targets = tuple(b for b in self.rules.brand_watchlist if self.is_lookalike(main_name, b))
        if not targets:
            return TyposquatResult()
        return TyposquatResult(True, self.rules.typosquat.weight, targets)
