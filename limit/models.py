"""Value objects returned by the limiter services."""

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class RateLimiterStats:
    """Snapshot of a rate limiter at a given point in time.

    Attributes:
        tokens: Stored token count, before projecting refill up to ``now``
        last_refill: When the stored token count was written
        max_tokens: Bucket capacity
        refill_duration: Time to refill from empty to ``max_tokens``
        now: When the snapshot was taken
        refill_rate_per_ms: Tokens accrued per millisecond
        refilled_tokens: ``tokens`` plus accrued refill, uncapped
        capped_token_count: ``refilled_tokens`` capped at ``max_tokens``
    """

    tokens: float
    last_refill: datetime
    max_tokens: float
    refill_duration: timedelta
    now: datetime
    refill_rate_per_ms: float
    refilled_tokens: float
    capped_token_count: float

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds between ``last_refill`` and ``now``."""
        return (self.now - self.last_refill) / timedelta(milliseconds=1)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "tokens": self.tokens,
            "last_refill": self.last_refill.isoformat(),
            "max_tokens": self.max_tokens,
            "refill_duration_ms": self.refill_duration / timedelta(milliseconds=1),
            "now": self.now.isoformat(),
            "elapsed_ms": self.elapsed_ms,
            "refill_rate_per_ms": self.refill_rate_per_ms,
            "refilled_tokens": self.refilled_tokens,
            "capped_token_count": self.capped_token_count,
        }

    def __str__(self) -> str:
        refill_ms = self.refill_duration / timedelta(milliseconds=1)
        return (
            "--- RateLimiterStats ---\n"
            f"    tokens stored:       {self.tokens}\n"
            f"    last refill:         {self.last_refill.isoformat()}\n"
            f"    now:                 {self.now.isoformat()}\n"
            f"    elapsed ms:          {self.elapsed_ms}\n"
            f"    refill rate/ms:      {self.refill_rate_per_ms}\n"
            f"    refilled tokens:     {self.refilled_tokens}\n"
            f"    capped token count:  {self.capped_token_count}\n"
            f"    max tokens:          {self.max_tokens}\n"
            f"    refill duration:     {refill_ms} ms\n"
        )
