from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional, List


class VerdictLog(BaseModel):
    time: str
    domain: str
    full_target: str
    risk_score: int
    threat_level: str
    action: str
    category: str
    features: Dict[str, Any] = {}
    source: Optional[str] = "unknown"
    device_hash: Optional[str] = None

# --- API REQUEST SCHEMAS ---

class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    domain: Optional[str] = None
    source: Optional[str] = "manual"
    deep_scan: bool = Field(False, alias="deepScan")
    is_background: bool = Field(False, alias="isBackgroundData")

class DnsQueryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    domain: Optional[str] = None
    device_hash: Optional[str] = Field(None, alias="deviceHash")

class BatchAnalyzeRequest(BaseModel):
    domains: List[str]
    source: Optional[str] = "batch"

class ProtectionToggle(BaseModel):
    active: bool

# --- API RESPONSE SCHEMAS ---

class GenericResponse(BaseModel):
    status: str
    message: Optional[str] = None

class VerdictResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    domain: str
    full_target: str = Field(alias="fullTarget")
    risk_score: int = Field(alias="riskScore")
    threat_level: str = Field(alias="threatLevel")
    action: str
    category: str
    features: Dict[str, Any]

class ActionResponse(BaseModel):
    action: str

class ProtectionStatus(BaseModel):
    active: bool

class SystemHealthResponse(BaseModel):
    status: str
    cpu_usage: float
    ram_usage: float
    uptime_hours: float

class CacheStatsResponse(BaseModel):
    size: int
    capacity: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int

class LogEntry(BaseModel):
    time: str
    domain: str
    risk_score: int
    threat_level: str
    action: str
    category: str
    source: str
