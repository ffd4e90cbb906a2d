import collections
import math

from .normalizer import NormalizedTarget
from .rules import RuleTables


def calculate_entropy(text):
    """Shannon entropy of the character distribution, rounded to 2 places."""
    if not text: return 0.0
    counter = collections.Counter(text)
    total = len(text)
    ent = -sum((count/total) * math.log2(count/total) for count in counter.values())
    return round(ent, 2)


class HeuristicAggregator:
    def __init__(self, rules: RuleTables):
        self.rules = rules

    def tld_adjustment(self, target: NormalizedTarget):
        """
        Returns: (score delta, suspicious_tld flag)
        """
        h = self.rules.heuristics
        if any(target.hostname.endswith(tld) for tld in self.rules.suspicious_tlds):
            return h.suspicious_tld_weight, True
        if any(target.hostname.endswith(tld) for tld in self.rules.trusted_tlds):
            return h.trusted_tld_bonus, False
        return 0, False

    def structure_adjustment(self, target: NormalizedTarget, entropy, has_risk_flags):
        h = self.rules.heuristics
        score = 0

        # Entropy and length only amplify an existing signal
        if has_risk_flags:
            if entropy > h.entropy_threshold: score += h.entropy_weight
            if len(target.hostname) > h.length_threshold: score += h.length_weight

        # Subdomain stacking (secure.login.paypal.verify.example.com)
        if target.dot_count > h.max_dots: score += h.subdomain_weight

        return score
