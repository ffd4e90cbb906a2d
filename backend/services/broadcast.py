import datetime
import logging
import time

import socketio

from backend.config import ALERT_SCORE
from backend.detection.verdict import Action, Verdict

logger = logging.getLogger("domainguard.broadcast")

# --- Socket.IO Server ---
sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins='*')


def build_log_entry(verdict: Verdict, source: str, device_hash=None):
    entry = verdict.to_dict()
    entry.update({
        "source": source or "manual",
        "deviceHash": device_hash,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    })
    return entry


def is_alert(verdict: Verdict) -> bool:
    return verdict.risk_score >= ALERT_SCORE or verdict.action != Action.ALLOW


async def broadcast_verdict(entry: dict, alert: bool = False):
    """Push a verdict to live observers. Best-effort: failures are logged only."""
    try:
        await sio.emit("new_analysis", entry)
        if alert:
            await sio.emit("alert", {
                "id": str(int(time.time() * 1000)),
                "domain": entry["domain"],
                "risk_score": entry["riskScore"],
                "threat_level": entry["threatLevel"],
                "action": entry["action"],
                "timestamp": entry["timestamp"],
            })
    except Exception as e:
        logger.warning(f"Broadcast failed for {entry.get('domain')}: {e}")


async def broadcast_status(active: bool):
    try:
        await sio.emit("status_update", {"active": active})
    except Exception as e:
        logger.warning(f"Status broadcast failed: {e}")


@sio.event
async def connect(sid, environ):
    logger.info(f"Socket connected: {sid}")
    await sio.emit("status", {"status": "online"}, to=sid)


@sio.event
async def disconnect(sid):
    logger.info(f"Socket disconnected: {sid}")
