"""Eligibility clock: the 48-hour maturation lock on a holding.

Two authorities exist:
  - the remote consignment-check collaborator (unlock flag / remaining time)
  - the local clock computed from purchase_time

Remote wins whenever it carries a signal. The local clock is only a fallback
and never overrides a remote "locked".
"""

import math
import re
from dataclasses import dataclass
from typing import Any

from src.cm_common.datetime_utils import normalize_epoch_seconds
from src.cm_common.enums import EligibilitySource

MATURATION_HOURS = 48

_REMAINING_TEXT = re.compile(r"(\d+):(\d{2}):(\d{2})")


@dataclass(frozen=True)
class MaturationCheck:
    passed: bool
    hours_left: int
    has_valid_purchase_time: bool


@dataclass(frozen=True)
class RemoteEligibility:
    """Consignment-check payload reduced to the fields the engine trusts."""

    unlocked: bool | None = None
    remaining_seconds: int | None = None
    remaining_text: str | None = None

    @property
    def has_signal(self) -> bool:
        return self.unlocked is not None or self.remaining_seconds is not None

    @classmethod
    def from_wire(cls, raw: dict[str, Any] | None) -> "RemoteEligibility":
        if not raw:
            return cls()
        unlocked: bool | None = None
        if isinstance(raw.get("can_consign"), bool):
            unlocked = raw["can_consign"]
        elif isinstance(raw.get("unlocked"), bool):
            unlocked = raw["unlocked"]

        remaining: int | None = None
        text = raw.get("remaining_text") if isinstance(raw.get("remaining_text"), str) else None
        raw_seconds = raw.get("remaining_seconds")
        if raw_seconds is not None and not isinstance(raw_seconds, bool):
            try:
                remaining = max(0, int(float(raw_seconds)))
            except (TypeError, ValueError):
                remaining = None
        # a parseable remaining_text overrides remaining_seconds
        parsed = parse_remaining_text(text) if text is not None else None
        if parsed is not None:
            remaining = parsed

        if unlocked is None and remaining is not None:
            unlocked = remaining <= 0
        return cls(unlocked=unlocked, remaining_seconds=remaining, remaining_text=text)


@dataclass(frozen=True)
class Eligibility:
    unlocked: bool
    remaining_seconds: int | None
    source: EligibilitySource
    has_valid_purchase_time: bool = True

    @property
    def hours_left(self) -> int | None:
        if self.unlocked:
            return 0
        if self.remaining_seconds is None:
            return None
        return math.ceil(self.remaining_seconds / 3600)


def check_maturation(
    purchase_time: object, now: int, window_hours: int = MATURATION_HOURS
) -> MaturationCheck:
    """Local clock: has the maturation window elapsed since purchase?

    An unusable purchase time (missing, non-positive, in the future) never
    passes and reports the full window as remaining.
    """
    ts = normalize_epoch_seconds(purchase_time)
    if ts is None or ts <= 0 or ts > now:
        return MaturationCheck(passed=False, hours_left=window_hours, has_valid_purchase_time=False)

    elapsed_hours = (now - ts) / 3600
    return MaturationCheck(
        passed=elapsed_hours >= window_hours,
        hours_left=max(0, math.ceil(window_hours - elapsed_hours)),
        has_valid_purchase_time=True,
    )


def local_remaining_seconds(
    purchase_time: object, now: int, window_hours: int = MATURATION_HOURS
) -> int | None:
    ts = normalize_epoch_seconds(purchase_time)
    if ts is None or ts <= 0 or ts > now:
        return None
    return max(0, ts + window_hours * 3600 - now)


def resolve_eligibility(
    remote: RemoteEligibility | None,
    purchase_time: object,
    now: int,
    window_hours: int = MATURATION_HOURS,
) -> Eligibility:
    if remote is not None and remote.has_signal:
        unlocked = bool(remote.unlocked)
        remaining = remote.remaining_seconds
        if unlocked:
            remaining = 0
        elif remaining is None:
            # Remote says locked without a duration: borrow the local estimate for display only
            estimate = local_remaining_seconds(purchase_time, now, window_hours)
            remaining = estimate if estimate else None
        return Eligibility(unlocked=unlocked, remaining_seconds=remaining, source=EligibilitySource.REMOTE)

    local = check_maturation(purchase_time, now, window_hours)
    return Eligibility(
        unlocked=local.passed,
        remaining_seconds=local_remaining_seconds(purchase_time, now, window_hours),
        source=EligibilitySource.LOCAL,
        has_valid_purchase_time=local.has_valid_purchase_time,
    )


def parse_remaining_text(text: str) -> int | None:
    """'12:05:09' -> 43509; None if the text has no H:MM:SS."""
    match = _REMAINING_TEXT.search(text)
    if not match:
        return None
    hours, minutes, seconds = (int(g) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def format_countdown(seconds: int) -> str:
    """43509 -> '12:05:09'."""
    seconds = max(0, seconds)
    return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}:{seconds % 60:02d}"
