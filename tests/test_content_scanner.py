import asyncio

import httpx
import pytest

from backend.detection.content_scanner import ContentScanner
from backend.detection.risk_engine import RiskEngine
from backend.detection.rules import RuleStore
from backend.detection.verdict import Action, ThreatLevel, Verdict

PHISHING_PAGE = "<html><form>Login to verify your account password</form></html>"
GAMBLING_PAGE = "<html>Best casino, poker and a daily jackpot</html>"


@pytest.fixture
def engine():
    return RiskEngine(RuleStore())

def make_scanner(engine, handler, **kwargs):
    return ContentScanner(engine, transport=httpx.MockTransport(handler), **kwargs)

def escalate(scanner, verdict):
    return asyncio.run(scanner.escalate(verdict))


def test_trap_boost_on_clean_domain(engine):
    """Clean domain serving phishing content: 100 + trap boost, capped at 100."""
    scanner = make_scanner(engine, lambda request: httpx.Response(200, text=PHISHING_PAGE))
    static = engine.analyze("example.com")
    v = escalate(scanner, static)
    assert v.risk_score == 100
    assert v.action == Action.HARD_BLOCK
    assert "phishing_content" in v.categories
    assert v.features.deep_scan
    assert "login" in v.features.content_matches
    assert static.risk_score == 0  # original verdict untouched

def test_error_status_is_still_scanned(engine):
    scanner = make_scanner(engine, lambda request: httpx.Response(404, text=GAMBLING_PAGE))
    static = Verdict(
        domain="x.com", full_target="https://x.com", risk_score=55,
        threat_level=ThreatLevel.MEDIUM, action=Action.ALLOW, categories=frozenset({"scam"}),
    )
    v = escalate(scanner, static)
    assert v.risk_score == 80
    assert v.action == Action.SOFT_BLOCK
    assert v.categories == {"scam", "gambling_content"}

def test_single_mention_does_not_escalate(engine):
    scanner = make_scanner(engine, lambda request: httpx.Response(200, text="News: a casino opened"))
    v = escalate(scanner, engine.analyze("example.com"))
    assert v.risk_score == 0
    assert v.features.deep_scan
    assert not v.features.fetch_error

def test_connection_error_is_neutral(engine):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    static = engine.analyze("free-bitcoin-doubler.xyz")
    v = escalate(make_scanner(engine, handler), static)
    assert v.risk_score == static.risk_score
    assert v.action == static.action
    assert v.features.fetch_error

def test_unexpected_transport_error_keeps_static_verdict(engine):
    def handler(request):
        raise UnicodeError("bad label")

    static = engine.analyze("free-bitcoin-doubler.xyz")
    v = escalate(make_scanner(engine, handler), static)
    assert v.risk_score == static.risk_score == 75
    assert v.features.fetch_error

def test_slow_server_hits_timeout(engine):
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, text=PHISHING_PAGE)

    scanner = make_scanner(engine, handler, timeout=0.05)
    v = escalate(scanner, engine.analyze("example.com"))
    assert v.risk_score == 0
    assert v.features.fetch_error

def test_oversized_body_is_neutral(engine):
    scanner = make_scanner(engine, lambda request: httpx.Response(200, text=PHISHING_PAGE * 100), max_bytes=1000)
    v = escalate(scanner, engine.analyze("example.com"))
    assert v.risk_score == 0
    assert v.features.fetch_error

@pytest.mark.parametrize("host", ["sbi.com", "google.com", "worldbank.org"])
def test_blocked_or_overridden_targets_are_not_fetched(engine, host):
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(200, text=PHISHING_PAGE)

    static = engine.analyze(host)
    assert escalate(make_scanner(engine, handler), static) is static
    assert calls == []

@pytest.mark.parametrize("host", ["example.com", "amaz0n.com", "free-bitcoin-doubler.xyz", "a.b.c.d.example.net"])
def test_content_pass_never_lowers_score(engine, host):
    scanner = make_scanner(engine, lambda request: httpx.Response(200, text="nothing to see"))
    static = engine.analyze(host)
    assert escalate(scanner, static).risk_score >= static.risk_score
