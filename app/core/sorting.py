"""Natural ordering for room and common names ("Room 2" before "Room 10")."""

import re
from typing import Callable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")

_DIGITS = re.compile(r"(\d+)")


def natural_key(name: str) -> Tuple[Tuple[int, int, str], ...]:
    """Split into text and digit runs; digits compare as integers, text case-insensitively."""
    parts = _DIGITS.split(name or "")
    key = []
    for part in parts:
        if not part:
            continue
        if part.isdigit():
            key.append((0, int(part), ""))
        else:
            key.append((1, 0, part.casefold()))
    return tuple(key)


def natural_sorted(items: Iterable[T], key: Callable[[T], str] = str) -> List[T]:
    return sorted(items, key=lambda item: natural_key(key(item)))
