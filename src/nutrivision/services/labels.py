"""Classifier label normalization."""

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_label(raw: str | None) -> str:
    """Turn a raw classifier label into display text.

    ``"fried_rice "`` and ``"fried  rice"`` both become ``"fried rice"``.
    """
    if not raw:
        return ""
    return _WHITESPACE.sub(" ", raw.replace("_", " ")).strip()
