"""
Client for the spreadsheet-backed activity endpoint (a Google Apps Script web app).
Every call degrades to "no result" instead of raising, so callers can fall
back to local accounting while the remote is unreachable or misconfigured.
"""

import json
import logging
import time
from typing import Callable, List, Optional

import requests

logger = logging.getLogger(__name__)

# Plain text avoids a CORS preflight on the Apps Script side
REQUEST_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}


class CircuitBreaker:
    """
    Opens after `failure_threshold` consecutive failures (or an explicit trip)
    and lets a single probe through once `reset_timeout` seconds have passed.
    """

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"

    def __init__(self, failure_threshold: int = 3, reset_timeout: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        self.failure_threshold = max(1, failure_threshold)
        self.reset_timeout = reset_timeout
        self.clock = clock
        self.failures = 0
        self.opened_at: Optional[float] = None

    @property
    def state(self) -> str:
        if self.opened_at is None:
            return self.CLOSED
        if self.clock() - self.opened_at >= self.reset_timeout:
            return self.HALF_OPEN
        return self.OPEN

    def allow_request(self) -> bool:
        return self.state != self.OPEN

    def record_success(self):
        if self.opened_at is not None:
            logger.info("Sheet endpoint reachable again, closing circuit breaker.")
        self.failures = 0
        self.opened_at = None

    def record_failure(self):
        self.failures += 1
        if self.state == self.HALF_OPEN or self.failures >= self.failure_threshold:
            self._open()

    def trip(self):
        self.failures = max(self.failures, self.failure_threshold)
        self._open()

    def _open(self):
        self.opened_at = self.clock()
        logger.warning(f"Circuit breaker open for {self.reset_timeout}s after {self.failures} failure(s).")


class SheetGateway:
    def __init__(self, url: Optional[str], timeout: float = 10.0, breaker: Optional[CircuitBreaker] = None):
        self.url = url
        self.timeout = timeout
        self.breaker = breaker or CircuitBreaker()

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def offline(self) -> bool:
        return not self.configured or not self.breaker.allow_request()

    def call(self, payload: dict) -> Optional[dict]:
        """POSTs an action envelope. Returns the decoded JSON, or None on any failure."""
        if not self.configured:
            logger.warning("APPS_SCRIPT_URL is not configured. Running in offline mode.")
            return None
        if not self.breaker.allow_request():
            logger.info(f"Circuit breaker open, skipping remote call for {payload.get('action')}.")
            return None

        logger.info(f"Sending {payload.get('action')} to sheet endpoint")
        try:
            response = requests.post(self.url, data=json.dumps(payload), headers=REQUEST_HEADERS, timeout=self.timeout)
            text = response.text
        except requests.RequestException as e:
            logger.error(f"Sheet endpoint connectivity error: {e}")
            self.breaker.record_failure()
            return None

        if not text or text.strip() in ("", "undefined"):
            logger.error(f"Empty response from sheet endpoint for {payload.get('action')}")
            self.breaker.record_failure()
            return None

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            self._diagnose(text)
            return None

        if isinstance(data, dict) and data.get("status") == "error":
            logger.error(f"Sheet endpoint returned an error for {payload.get('action')}: {data.get('message')}")
            self.breaker.record_failure()
            return None

        self.breaker.record_success()
        return data

    def _diagnose(self, text: str):
        # The Apps Script runtime answers with an HTML/text error page when a tab is missing
        if "getDataRange" in text or "Users" in text:
            logger.critical("DATABASE ERROR: the Google Sheet is missing the 'Users' or 'Logs' tabs. "
                            "Switching to offline mode.")
            self.breaker.trip()
            return
        if "script.google.com" in text:
            logger.error("Access error: the script deployment must be shared with 'Anyone', not 'Only myself'.")
        else:
            logger.error(f"Unparseable response from sheet endpoint: {text[:200]}")
        self.breaker.record_failure()

    # --- Actions ---
    def login(self, school_id: str) -> Optional[dict]:
        result = self.call({"action": "LOGIN", "schoolId": school_id})
        return result.get("user") if isinstance(result, dict) and result.get("user") else None

    def register(self, name: str, school_id: str, class_room: Optional[str] = None) -> Optional[dict]:
        result = self.call({"action": "REGISTER", "name": name, "schoolId": school_id, "classRoom": class_room})
        return result.get("user") if isinstance(result, dict) and result.get("user") else None

    def log_activity(self, envelope: dict) -> Optional[int]:
        """Returns the authoritative new point total, or None when the remote had no answer."""
        result = self.call(envelope)
        if not isinstance(result, dict) or result.get("newTotalPoints") is None:
            return None
        try:
            return int(result["newTotalPoints"])
        except (TypeError, ValueError):
            logger.error(f"Malformed newTotalPoints from sheet endpoint: {result.get('newTotalPoints')!r}")
            return None

    def leaderboard(self) -> Optional[List[dict]]:
        result = self.call({"action": "GET_LEADERBOARD"})
        if isinstance(result, list):
            return result
        if isinstance(result, dict) and isinstance(result.get("leaders"), list):
            return result["leaders"]
        return None

    def admin_stats(self) -> Optional[dict]:
        result = self.call({"action": "GET_ADMIN_STATS"})
        return result if isinstance(result, dict) else None
