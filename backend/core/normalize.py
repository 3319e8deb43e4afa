"""
Exercise name normalization.

The normalized name is the lookup key for master exercises, so every
comparison and every stored key must go through normalize_exercise_name.
"""
import re

_WHITESPACE = re.compile(r"\s+")


def normalize_exercise_name(name: str) -> str:
    """
    Reduce a raw exercise name to its comparison key.

    - lowercase
    - strip leading/trailing whitespace
    - collapse runs of interior whitespace to a single space

    >>> normalize_exercise_name("  Bench   Press ")
    'bench press'
    """
    if not name:
        return ""
    return _WHITESPACE.sub(" ", name.lower()).strip()
