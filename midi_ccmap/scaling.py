"""
Linear scaling and clipping of source values into destination ranges.
"""

from .messages import DestinationType


def _div_trunc(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero (Python's // floors)."""
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def scale(value: int, source_max: int, value_from: int, value_to: int) -> int:
    """
    Map value in 0..source_max linearly onto value_from..value_to.

    The division truncates toward zero, so negative spans round up.

    Args:
        value: Source value, 0..source_max.
        source_max: 127 for 7-bit sources, 16383 for pitch bend.
        value_from: Output for value 0.
        value_to: Output for value source_max.

    Returns:
        The unclipped result.
    """
    return value_from + _div_trunc(value * (value_to - value_from), source_max)


def clip(value: int, dest_type: DestinationType) -> int:
    """Clamp value to the legal range of dest_type."""
    value_range = dest_type.value_range
    if value_range is None:
        raise ValueError(f"Destination type {dest_type} has no value range")
    low, high = value_range
    return max(low, min(high, value))


def scale_and_clip(
    value: int,
    source_max: int,
    value_from: int,
    value_to: int,
    dest_type: DestinationType,
) -> int:
    """Scale, then clip for the destination."""
    return clip(scale(value, source_max, value_from, value_to), dest_type)
