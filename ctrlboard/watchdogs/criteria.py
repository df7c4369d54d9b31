"""Criterion combination for watchdog verdicts.

Each watchdog criterion is reduced to an ``(enabled, fired)`` pair. Disabled
criteria take no part in the combination; adding a criterion means adding
one more pair, never another branch.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import NamedTuple, Union


class CombineMode(str, Enum):
    AND = "and"
    OR = "or"


class Criterion(NamedTuple):
    enabled: bool
    fired: bool


def combine_criteria(
    criteria: Iterable[Union[Criterion, tuple[bool, bool]]],
    mode: Union[CombineMode, str] = CombineMode.OR,
) -> bool:
    """Combine enabled criteria with AND/OR.

    Args:
        criteria: ``(enabled, fired)`` pairs
        mode: "and" requires every enabled criterion to fire, anything else
            is treated as "or" (any enabled criterion fires)

    Returns:
        False when no criterion is enabled, otherwise the combined verdict

    Example:
        >>> combine_criteria([(True, True), (True, False)], "and")
        False
        >>> combine_criteria([(True, True), (True, False)], "or")
        True
        >>> combine_criteria([(False, True)], "or")
        False
    """
    fired = [bool(f) for enabled, f in criteria if enabled]
    if not fired:
        return False
    if str(getattr(mode, "value", mode)).lower() == CombineMode.AND.value:
        return all(fired)
    return any(fired)
