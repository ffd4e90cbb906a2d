import asyncio
import logging
from dataclasses import dataclass, replace
from typing import FrozenSet, Optional, Tuple

import httpx

from .decision import clamp_score, decide
from .risk_engine import RiskEngine
from .verdict import ThreatLevel, Verdict

logger = logging.getLogger("domainguard.content")

USER_AGENT = "DomainGuard-ContentScan/1.0"


class ContentTooLarge(Exception):
    pass


@dataclass(frozen=True)
class ContentScan:
    score: int = 0
    categories: FrozenSet[str] = frozenset()
    matches: Tuple[str, ...] = ()
    fetch_error: bool = False


class ContentScanner:
    """
    Second-pass scan over a page body.

    A single bounded GET (hard total timeout, size cap); any status code is
    scanned. Failures return a neutral scan so the static verdict stands.
    """

    def __init__(self, engine: RiskEngine, timeout: float = 2.5, max_bytes: int = 500_000,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.engine = engine
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.transport = transport

    async def fetch_body(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        ) as client:
            async with client.stream("GET", url) as response:
                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self.max_bytes:
                    raise ContentTooLarge(f"{url} declares {declared} bytes")

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        raise ContentTooLarge(f"{url} exceeded {self.max_bytes} bytes")
                return body.decode(response.encoding or "utf-8", errors="replace")

    async def scan(self, url: str, static_score: int) -> ContentScan:
        try:
            body = await asyncio.wait_for(self.fetch_body(url), timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError, ContentTooLarge, LookupError) as e:
            # Cannot judge what we could not read
            logger.debug(f"Content fetch failed for {url}: {e!r}")
            return ContentScan(fetch_error=True)
        except Exception as e:
            logger.warning(f"Unexpected content fetch error for {url}: {e!r}")
            return ContentScan(fetch_error=True)

        body = body.lower()
        if not body:
            return ContentScan()

        policy = self.engine.rules.content
        result = self.engine.keyword_scanner.scan_content(body)
        score = result.score

        # Clean-looking domain serving high-risk content
        if static_score < policy.trap_static_ceiling and score >= policy.trap_content_floor:
            score += policy.trap_boost
            logger.info(f"Content trap detected on {url} (static {static_score}, content {score})")

        return ContentScan(
            score=clamp_score(score),
            categories=frozenset(result.categories),
            matches=tuple(result.matched_keywords[:policy.max_matches_reported]),
        )

    def should_escalate(self, verdict: Verdict) -> bool:
        # Overrides are final and blocked targets need no fetch
        if verdict.threat_level == ThreatLevel.SAFE:
            return False
        return verdict.risk_score < self.engine.rules.thresholds.hard_block

    async def escalate(self, verdict: Verdict) -> Verdict:
        """Derive a new verdict from the static one; the score can only go up."""
        if not self.should_escalate(verdict):
            return verdict

        content = await self.scan(verdict.full_target, verdict.risk_score)
        final_score = max(verdict.risk_score, content.score)
        threat_level, action = decide(final_score, self.engine.rules.thresholds)

        return replace(
            verdict,
            risk_score=final_score,
            threat_level=threat_level,
            action=action,
            categories=verdict.categories | content.categories,
            features=replace(
                verdict.features,
                deep_scan=True,
                content_matches=content.matches,
                fetch_error=content.fetch_error,
            ),
        )
