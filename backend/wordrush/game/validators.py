"""Answer validation for the five categories of a turn.

Two interchangeable strategies share one interface: :class:`HeuristicValidator`
judges an answer purely by its shape, :class:`LexiconValidator` additionally
requires it to appear in reference word lists. The strategy is picked from
configuration by :func:`build_validator`.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from ..logging_config import get_logger
from .exceptions import AnswerRejected

logger = get_logger("validators")

__all__ = [
    "CATEGORIES",
    "HeuristicValidator",
    "Lexicon",
    "LexiconValidator",
    "Validator",
    "build_validator",
    "check_submission",
    "normalize_answer",
]

CATEGORIES: tuple[str, ...] = ("name", "place", "animal", "thing", "movie")

DEFAULT_LEXICON_DIR = Path(__file__).resolve().parents[1] / "data"

_VOWELS = frozenset("aeiou")
_RARE_BIGRAMS: tuple[str, ...] = ("qj", "xv", "zx", "jj", "kk", "fq", "jh", "kjh", "xq", "pz")

_WHITESPACE = re.compile(r"\s+")
_SINGLE_WORD = re.compile(r"^[a-z]+$")
_WORDS_WITH_SPACES = re.compile(r"^[a-z ]+$")
_CONSONANT_RUN = re.compile(r"[bcdfghjklmnpqrstvwxyz]{4,}")
_TRIPLE_CHAR = re.compile(r"(.)\1\1")
_REPEATED_UNIT = re.compile(r"(..)\1{2,}|(...)\1{2,}")
_RARE_LETTERS = re.compile(r"[qxz]")

_MIN_ANSWER_LENGTH = 2
_MIN_HEURISTIC_LENGTH = 3
_MAX_HEURISTIC_LENGTH = 12
_MAX_RARE_LETTERS = 2

INVALID_ENTRIES_MESSAGE = "Invalid entries! Use real-looking words (letters only, vowels, no junk)."
DUPLICATE_ENTRIES_MESSAGE = "Answers must all be different."


def normalize_answer(raw: Any) -> str:
    if not isinstance(raw, str):
        return ""
    return _WHITESPACE.sub(" ", raw.strip()).casefold()


def _has_rare_bigram(token: str) -> bool:
    return any(bigram in token for bigram in _RARE_BIGRAMS)


class Validator(ABC):
    """Decides whether a raw answer is acceptable for a letter and category."""

    kind = "base"

    def validate(self, raw: Any, letter: str, category: str) -> bool:
        token = normalize_answer(raw)
        if len(token) < _MIN_ANSWER_LENGTH:
            return False
        if token[0] != str(letter or "").casefold()[:1]:
            return False
        return self._accepts(token, category)

    @abstractmethod
    def _accepts(self, token: str, category: str) -> bool:
        raise NotImplementedError


class HeuristicValidator(Validator):
    """Accepts single words that look like real words, without reference data."""

    kind = "heuristic"

    def _accepts(self, token: str, category: str) -> bool:
        if not _SINGLE_WORD.match(token):
            return False
        if not _MIN_HEURISTIC_LENGTH <= len(token) <= _MAX_HEURISTIC_LENGTH:
            return False
        if not any(ch in _VOWELS for ch in token):
            return False
        if _TRIPLE_CHAR.search(token):
            return False
        # Clusters like "str" or "tch" are fine; four in a row are not.
        if _CONSONANT_RUN.search(token):
            return False
        if _has_rare_bigram(token):
            return False
        if len(_RARE_LETTERS.findall(token)) > _MAX_RARE_LETTERS:
            return False
        if _REPEATED_UNIT.search(token):
            return False
        return True


def _read_entries(path: Path) -> frozenset[str]:
    if not path.exists():
        logger.warning("lexicon file missing: %s", path)
        return frozenset()
    entries = set()
    with path.open(encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            entries.add(normalize_answer(line))
    return frozenset(entries)


@dataclass(frozen=True)
class Lexicon:
    """Reference sets used by :class:`LexiconValidator`."""

    names: frozenset[str] = field(default_factory=frozenset)
    places: frozenset[str] = field(default_factory=frozenset)
    animals: frozenset[str] = field(default_factory=frozenset)
    movies: frozenset[str] = field(default_factory=frozenset)
    words: frozenset[str] = field(default_factory=frozenset)
    nouns: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_iterables(cls, **sets: Iterable[str]) -> "Lexicon":
        return cls(**{key: frozenset(normalize_answer(v) for v in values) for key, values in sets.items()})

    @classmethod
    def from_directory(cls, directory: str | Path) -> "Lexicon":
        """Load ``<set>.txt`` files (one entry per line) from ``directory``."""
        base = Path(directory)
        lexicon = cls(
            names=_read_entries(base / "names.txt"),
            places=_read_entries(base / "places.txt"),
            animals=_read_entries(base / "animals.txt"),
            movies=_read_entries(base / "movies.txt"),
            words=_read_entries(base / "words.txt"),
            nouns=_read_entries(base / "nouns.txt"),
        )
        logger.info(
            "lexicon loaded from %s: names=%d places=%d animals=%d movies=%d words=%d nouns=%d",
            base,
            len(lexicon.names),
            len(lexicon.places),
            len(lexicon.animals),
            len(lexicon.movies),
            len(lexicon.words),
            len(lexicon.nouns),
        )
        return lexicon

    def contains(self, token: str, category: str) -> bool:
        if category == "name":
            return token in self.names
        if category == "place":
            return token in self.places
        if category == "animal":
            return token in self.animals
        if category == "movie":
            return token in self.movies
        if category == "thing":
            return token in self.words or token in self.nouns
        return False


class LexiconValidator(Validator):
    """Accepts answers found in the category's reference set that also look like words."""

    kind = "lexicon"

    def __init__(self, lexicon: Lexicon) -> None:
        self.lexicon = lexicon

    def _accepts(self, token: str, category: str) -> bool:
        if not _WORDS_WITH_SPACES.match(token):
            return False
        if not self.lexicon.contains(token, category):
            return False
        return self._looks_like_word(token)

    def _looks_like_word(self, token: str) -> bool:
        # Names such as "Lyn" are allowed without a vowel.
        if token not in self.lexicon.names and not any(ch in _VOWELS for ch in token):
            return False
        if _CONSONANT_RUN.search(token):
            return False
        if _has_rare_bigram(token):
            return False
        if _TRIPLE_CHAR.search(token):
            return False
        return True


def build_validator(kind: str, lexicon_dir: str | Path | None = None) -> Validator:
    kind = (kind or "").strip().lower()
    if kind == HeuristicValidator.kind:
        return HeuristicValidator()
    if kind == LexiconValidator.kind:
        return LexiconValidator(Lexicon.from_directory(lexicon_dir or DEFAULT_LEXICON_DIR))
    raise ValueError(f"unknown validator: {kind!r}")


def check_submission(
    answers: Mapping[str, Any] | None,
    letter: str,
    validator: Validator,
    *,
    require_distinct: bool = False,
) -> None:
    """Raise :class:`AnswerRejected` unless all five answers are acceptable."""
    answers = answers if isinstance(answers, Mapping) else {}

    for category in CATEGORIES:
        if not validator.validate(answers.get(category), letter, category):
            raise AnswerRejected(INVALID_ENTRIES_MESSAGE)

    if require_distinct:
        tokens = [normalize_answer(answers.get(category)) for category in CATEGORIES]
        if len(set(tokens)) != len(tokens):
            raise AnswerRejected(DUPLICATE_ENTRIES_MESSAGE)
