"""
Deterministic rollout bucketing.

The hash is the journal's original 31-multiplier string hash over UTF-16
code units with signed 32-bit wraparound. It must not change: stored
rollout percentages only mean the same thing for an existing user while
that user keeps landing in the same bucket.
"""

from __future__ import annotations

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - 0x100000000 if value & _INT32_SIGN else value


def string_hash(text: str) -> int:
    """
    Non-negative, order-sensitive hash of a string.

    Example:
        >>> string_hash("")
        0
        >>> string_hash("a")
        97
    """
    h = 0
    data = text.encode("utf-16-le")
    for index in range(0, len(data), 2):
        code_unit = data[index] | (data[index + 1] << 8)
        h = _to_int32(_to_int32(h << 5) - h + code_unit)
    return abs(h)


def rollout_bucket(identity: str, flag_key: str) -> int:
    """Bucket in [1, 100] for an identity and flag key."""
    return string_hash(identity + flag_key) % 100 + 1


def is_in_rollout(rollout_percentage: int, identity: str, flag_key: str) -> bool:
    """
    True if the identity falls inside the rollout.

    100 and above always include; 0 and below always exclude.
    """
    if rollout_percentage >= 100:
        return True
    if rollout_percentage <= 0:
        return False
    return rollout_bucket(identity, flag_key) <= rollout_percentage


__all__ = ["string_hash", "rollout_bucket", "is_in_rollout"]
