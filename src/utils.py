"""Shared text utilities used across the support agent."""

import re

_PUNCTUATION = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")


def normalize_message(value: str) -> str:
    """Lowercase a message, drop punctuation and collapse whitespace.

    Examples:
        >>> normalize_message("  Where is my ORDER?!  ")
        'where is my order'
        >>> normalize_message("Cancel   it, please.")
        'cancel it please'
    """
    value = _PUNCTUATION.sub(" ", value.lower())
    return _WHITESPACE.sub(" ", value).strip()


def tokenize(value: str) -> list[str]:
    """Split a message into lowercase word tokens."""
    return re.findall(r"[a-z0-9']+", value.lower())


def contains_term(text: str, term: str) -> bool:
    """Check for a whole-word (or whole-phrase) occurrence of ``term`` in lowercase ``text``."""
    return re.search(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])", text) is not None
