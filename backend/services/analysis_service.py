import asyncio
import datetime
import logging
import threading

from backend.config import CACHE_CAPACITY, CACHE_TTL, FETCH_MAX_BYTES, FETCH_TIMEOUT, RULES_PATH
from backend.detection.content_scanner import ContentScanner
from backend.detection.normalizer import NormalizedTarget, normalize_target
from backend.detection.risk_engine import RiskEngine
from backend.detection.rules import RuleStore
from backend.detection.verdict import Action, ThreatLevel, Verdict
from core.database import enqueue_log
from core.models import VerdictLog
from .broadcast import broadcast_verdict, build_log_entry, is_alert
from .verdict_cache import VerdictCache

logger = logging.getLogger("domainguard.analysis")

# Cache scan modes
STATIC = "static"
STATIC_BACKGROUND = "static:bg"
DEEP = "deep"
DEEP_BACKGROUND = "deep:bg"


def scan_mode(deep_scan: bool, is_background: bool) -> str:
    if deep_scan:
        return DEEP_BACKGROUND if is_background else DEEP
    return STATIC_BACKGROUND if is_background else STATIC


def neutral_verdict(target: NormalizedTarget) -> Verdict:
    return Verdict(
        domain=target.hostname,
        full_target=target.full_target,
        risk_score=0,
        threat_level=ThreatLevel.LOW,
        action=Action.ALLOW,
    )


class AnalysisService:
    """
    Front door for both lookup surfaces: cache, static pipeline, optional
    content escalation, then fire-and-forget publication of the verdict.
    """

    def __init__(self, engine: RiskEngine, content_scanner: ContentScanner, cache: VerdictCache):
        self.engine = engine
        self.content_scanner = content_scanner
        self.cache = cache
        self._pending = set()
        # Bumped on every rule reload; verdicts scored before a bump are not cached
        self._generation = 0
        self._generation_lock = threading.Lock()

    def _store(self, key, verdict: Verdict, generation: int):
        with self._generation_lock:
            if generation == self._generation:
                self.cache.put(key, verdict)

    def _cached_static(self, target: NormalizedTarget, is_background: bool):
        key = (target.hostname, target.path_and_query, scan_mode(False, is_background))
        verdict = self.cache.get(key)
        if verdict is None:
            generation = self._generation
            verdict = self.engine.analyze_target(target, is_background)
            self._store(key, verdict, generation)
        return verdict

    async def analyze(self, raw: str, deep_scan: bool = False, is_background: bool = False) -> Verdict:
        target = normalize_target(raw)
        key = (target.hostname, target.path_and_query, scan_mode(deep_scan, is_background))

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        generation = self._generation
        try:
            verdict = self._cached_static(target, is_background)
            if deep_scan:
                verdict = await self.content_scanner.escalate(verdict)
        except Exception:
            logger.exception(f"Analysis failed for {raw!r}, returning neutral verdict")
            return neutral_verdict(target)

        # A failed fetch is not worth remembering; the next deep scan may succeed
        if deep_scan and not verdict.features.fetch_error:
            self._store(key, verdict, generation)
        return verdict

    def lookup(self, raw: str) -> Verdict:
        """Hostname-only path for the gateway: cache plus pure computation, never fetches."""
        target = normalize_target(raw)
        try:
            return self._cached_static(target, False)
        except Exception:
            logger.exception(f"Lookup failed for {raw!r}, failing open")
            return neutral_verdict(target)

    def publish(self, verdict: Verdict, source: str, device_hash=None):
        """Hand the verdict to the log sink and the broadcast channel without waiting on either."""
        entry = build_log_entry(verdict, source, device_hash)
        enqueue_log(VerdictLog(
            time=datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            domain=verdict.domain,
            full_target=verdict.full_target,
            risk_score=verdict.risk_score,
            threat_level=verdict.threat_level.value,
            action=verdict.action.value,
            category=verdict.category,
            features=entry["features"],
            source=entry["source"],
            device_hash=device_hash,
        ))

        task = asyncio.create_task(broadcast_verdict(entry, is_alert(verdict)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def reload_rules(self):
        tables = self.engine.rule_store.reload()
        # Cached and in-flight verdicts were computed against the old tables
        with self._generation_lock:
            self._generation += 1
            self.cache.clear()
        logger.info(f"Rule tables v{tables.version} active")
        return tables


rule_store = RuleStore(RULES_PATH)
risk_engine = RiskEngine(rule_store)
analysis_service = AnalysisService(
    risk_engine,
    ContentScanner(risk_engine, timeout=FETCH_TIMEOUT, max_bytes=FETCH_MAX_BYTES),
    VerdictCache(capacity=CACHE_CAPACITY, ttl=CACHE_TTL),
)
