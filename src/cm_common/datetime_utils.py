"""Epoch time utilities."""

import time


def epoch_now() -> int:
    """Current time as whole epoch seconds."""
    return int(time.time())


def normalize_epoch_seconds(value: object) -> int | None:
    """Coerce an epoch timestamp to whole seconds.

    Accepts seconds or milliseconds (anything above 1e12 is treated as ms),
    as int, float, or numeric string. Returns None when unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        raw = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if raw != raw or raw in (float("inf"), float("-inf")):
        return None
    if raw > 1e12:
        raw = raw / 1000
    return int(raw // 1)
