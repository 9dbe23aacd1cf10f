"""Whole-word vocabulary redaction.

A matched term keeps its first character and every following character is
replaced by ``MASK_CHAR``, so ``"damn"`` becomes ``"d***"``. Matching is
case-insensitive and a match may not touch a word character on either side,
so ``"cat"`` never fires inside ``"category"`` while ``"$hit"`` still matches
on its own.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, List, Pattern, Tuple, Union

from counsel.errors import StartupError


MASK_CHAR = "*"


def _mask(match: "re.Match[str]") -> str:
    word = match.group(0)
    return word[:1] + MASK_CHAR * (len(word) - 1)


def _compile(term: str) -> Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)


def _normalize_terms(terms: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    ordered: List[str] = []
    for term in terms:
        cleaned = term.strip().lower()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        ordered.append(cleaned)
    return tuple(ordered)


class Vocabulary:
    """Ordered, read-only set of disallowed terms with precompiled patterns."""

    def __init__(self, terms: Iterable[str] = ()) -> None:
        self._terms = _normalize_terms(terms)
        self._patterns = tuple(_compile(term) for term in self._terms)

    @property
    def terms(self) -> Tuple[str, ...]:
        return self._terms

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: object) -> bool:
        return isinstance(term, str) and term.strip().lower() in self._terms

    def redact(self, text: str) -> str:
        # One pass per term, applied to the output of the previous term.
        for pattern in self._patterns:
            text = pattern.sub(_mask, text)
        return text


def redact(text: str, vocabulary: Union[Vocabulary, Iterable[str]]) -> str:
    if not isinstance(vocabulary, Vocabulary):
        vocabulary = Vocabulary(vocabulary)
    return vocabulary.redact(text)


def load_vocabulary(path: Union[str, Path]) -> Vocabulary:
    """Read a JSON array of terms. Any problem is fatal to startup."""
    source = Path(path)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except OSError as exc:
        raise StartupError(f"Cannot read vocabulary file {source}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise StartupError(f"Vocabulary file {source} is not valid JSON: {exc}") from exc

    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise StartupError(f"Vocabulary file {source} must contain a JSON array of strings")
    return Vocabulary(data)
