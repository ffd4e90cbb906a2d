import time

from backend.config import PROTECTION_ACTIVE, START_TIME


class RuntimeState:
    """Process-wide switches toggled from the API."""

    def __init__(self):
        self.start_time = START_TIME
        self.protection_active = PROTECTION_ACTIVE

    @property
    def uptime(self):
        return time.time() - self.start_time


state = RuntimeState()
