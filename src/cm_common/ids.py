"""Identifier normalisation.

Upstream ids arrive as ints, numeric strings, or missing. Zero is the
backend's "unset" marker, so it is treated the same as missing.
"""


def clean_id(value: object) -> str | None:
    """Return a non-empty, non-zero id as str, else None: 12 -> '12', 0 -> None, '' -> None."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        if float(text) == 0:
            return None
    except ValueError:
        pass
    return text


def first_id(*candidates: object) -> str | None:
    """First candidate that survives clean_id."""
    for candidate in candidates:
        cleaned = clean_id(candidate)
        if cleaned is not None:
            return cleaned
    return None
