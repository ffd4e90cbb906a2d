from dataclasses import replace

from backend.detection.rules import DEFAULT_RULES
from backend.detection.typosquat import TyposquatDetector, levenshtein


def test_levenshtein():
    assert levenshtein("amaz0n", "amazon") == 1
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("same", "same") == 0

def test_single_edit_is_flagged():
    result = TyposquatDetector(DEFAULT_RULES).check("amaz0n")
    assert result.is_typosquat
    assert result.score == 90
    assert result.targets == ("amazon",)

def test_exact_brand_is_not_a_typosquat():
    assert not TyposquatDetector(DEFAULT_RULES).check("google").is_typosquat

def test_two_edits_needs_a_long_name():
    detector = TyposquatDetector(DEFAULT_RULES)
    assert detector.check("micr0s0ft").is_typosquat
    assert not detector.check("appqq").is_typosquat

def test_weight_applied_once_for_several_brands():
    rules = replace(DEFAULT_RULES, brand_watchlist=("abcdef", "abcdeg"))
    result = TyposquatDetector(rules).check("abcdeh")
    assert result.targets == ("abcdef", "abcdeg")
    assert result.score == 90
