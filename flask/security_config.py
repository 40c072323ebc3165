# Security Configuration for the GDIP services
# Input validation helpers, login throttling and response headers

import re
import threading
import time
from datetime import date, datetime
from typing import Optional


class SecurityValidator:
    """Centralized input validation and sanitization"""

    @staticmethod
    def sanitize_string(value, max_length: int = 255) -> str:
        """Strip control characters and surrounding whitespace; cap the length."""
        if value is None:
            return ""

        # Remove null bytes and control characters
        value = re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', str(value))

        return value.strip()[:max_length]

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format"""
        if not email or not isinstance(email, str):
            return False

        return bool(re.match(VALIDATION_PATTERNS['email'], email.strip()))

    @staticmethod
    def validate_phone(phone: str) -> bool:
        """7 to 25 characters of digits and common separators."""
        if not isinstance(phone, str):
            return False
        return bool(re.match(VALIDATION_PATTERNS['phone'], phone.strip()))

    @staticmethod
    def parse_date(value: str) -> Optional[date]:
        """Parse YYYY-MM-DD; None when the shape or the calendar date is wrong."""
        if not isinstance(value, str) or not re.match(VALIDATION_PATTERNS['date'], value.strip()):
            return None
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            return None

    @staticmethod
    def validate_password(password) -> Optional[str]:
        """Return an error message, or None when the password is acceptable."""
        if not isinstance(password, str) or not password:
            return "Password is required"
        if len(password) < 8:
            return "Password must be at least 8 characters long"
        if len(password) > 128:
            return "Password must be no more than 128 characters long"
        return None


class RateLimiter:
    """
    Simple in-process rate limiting, keyed by an arbitrary identifier.

    Keys are client supplied (login keys embed the submitted email), so the
    map is swept of expired keys every `sweep_interval` seconds and capped at
    `max_keys`, evicting the least recently touched key.
    """

    def __init__(self, max_keys: int = 10000, sweep_interval: int = 60):
        self.attempts = {}
        self.max_keys = max_keys
        self.sweep_interval = sweep_interval
        self._last_sweep = 0.0
        self._lock = threading.Lock()

    def is_rate_limited(self, identifier: str, max_attempts: int = 5, window_minutes: int = 15,
                        now: Optional[float] = None) -> bool:
        """Record an attempt for identifier and report whether it is over the limit."""
        current_time = time.time() if now is None else now
        window_start = current_time - (window_minutes * 60)

        with self._lock:
            if current_time - self._last_sweep >= self.sweep_interval:
                self._sweep(window_start)
                self._last_sweep = current_time

            # Clean old attempts; re-inserting keeps the dict in last-touched order
            recent = [
                attempt_time for attempt_time in self.attempts.pop(identifier, [])
                if attempt_time > window_start
            ]

            if len(recent) >= max_attempts:
                self.attempts[identifier] = recent
                return True

            while len(self.attempts) >= self.max_keys:
                del self.attempts[next(iter(self.attempts))]

            recent.append(current_time)
            self.attempts[identifier] = recent
            return False

    def reset(self, identifier: str) -> None:
        with self._lock:
            self.attempts.pop(identifier, None)

    def clear(self) -> None:
        with self._lock:
            self.attempts.clear()
            self._last_sweep = 0.0

    def _sweep(self, window_start: float) -> None:
        expired = [key for key, times in self.attempts.items() if not times or times[-1] <= window_start]
        for key in expired:
            del self.attempts[key]


# Global rate limiter instance
rate_limiter = RateLimiter()

# JSON API: no framing, no inline content
SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    'Content-Security-Policy': "default-src 'none'; frame-ancestors 'none'",
}

# Input validation patterns
VALIDATION_PATTERNS = {
    'email': r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$',
    'phone': r'^[\d\s\-\+\(\)\.]{7,25}$',
    'date': r'^\d{4}-\d{2}-\d{2}$',
}
