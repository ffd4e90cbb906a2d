import os
import time

# Optional JSON file overriding the built-in rule tables
RULES_PATH = os.getenv("DOMAINGUARD_RULES_PATH")

CACHE_CAPACITY = int(os.getenv("DOMAINGUARD_CACHE_CAPACITY", "2000"))
CACHE_TTL = float(os.getenv("DOMAINGUARD_CACHE_TTL", "3600"))

# Deep scan budget
FETCH_TIMEOUT = float(os.getenv("DOMAINGUARD_FETCH_TIMEOUT", "2.5"))
FETCH_MAX_BYTES = int(os.getenv("DOMAINGUARD_FETCH_MAX_BYTES", "500000"))

# Verdicts at or above this score are also pushed as alerts
ALERT_SCORE = int(os.getenv("DOMAINGUARD_ALERT_SCORE", "50"))

START_TIME = time.time()

# Default State
PROTECTION_ACTIVE = True
