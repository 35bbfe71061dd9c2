"""Scoring and validation of submitted DISG answers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from questions import ADJECTIVE_MAPPING, DISG_QUESTIONS, QUESTION_COUNT, TRAIT_CODES

POINTS_TOTAL = 100
VALID_SCORES = (1, 2, 3, 4)


@dataclass(frozen=True)
class AnswerItem:
    word: str
    score: object  # the rank 1-4; left untyped so the range check can report bad input


@dataclass(frozen=True)
class ScoreVector:
    D: int
    I: int
    S: int
    G: int

    def __getitem__(self, trait: str) -> int:
        if trait not in TRAIT_CODES:
            raise KeyError(trait)
        return getattr(self, trait)

    @property
    def total(self) -> int:
        return self.D + self.I + self.S + self.G

    def as_dict(self) -> Dict[str, int]:
        return {trait: self[trait] for trait in TRAIT_CODES}

    @classmethod
    def from_mapping(cls, values: Mapping[str, int]) -> "ScoreVector":
        return cls(**{trait: int(values[trait]) for trait in TRAIT_CODES})


class ScoringError(ValueError):
    """A submission that could not come from a properly completed questionnaire."""

    kind = "ScoringError"

    def __init__(self, message: str, **details: object):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_dict(self) -> Dict[str, object]:
        return {"error": self.message, "kind": self.kind, **self.details}


class MalformedAnswers(ScoringError):
    kind = "MalformedAnswers"


class WrongAnswerCount(ScoringError):
    kind = "WrongAnswerCount"

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Es müssen genau {expected} Antworten vorhanden sein (erhalten: {actual})",
            expected=expected,
            actual=actual,
        )
        self.expected = expected
        self.actual = actual


class UnknownAdjective(ScoringError):
    kind = "UnknownAdjective"

    def __init__(self, word: str):
        super().__init__(f"Unbekanntes Adjektiv: {word}", word=word)
        self.word = word


class ScoreOutOfRange(ScoringError):
    kind = "ScoreOutOfRange"

    def __init__(self, word: str, score: object):
        super().__init__(f"Ungültige Punktzahl für {word}: {score}", word=word, score=score)
        self.word = word
        self.score = score


class InvalidRowPermutation(ScoringError):
    kind = "InvalidRowPermutation"

    def __init__(self, row_id: int):
        super().__init__(
            f"Zeile {row_id}: Jede Punktzahl (1-4) muss genau einmal vergeben werden",
            row_id=row_id,
        )
        self.row_id = row_id


class CatalogIntegrityError(RuntimeError):
    """Validated answers did not add up to 100 points; the catalog data is broken."""


def parse_answers(payload: object) -> List[AnswerItem]:
    """Turn a JSON list of ``{"word": ..., "score": ...}`` objects into answers.

    The answer count is checked before the item shapes, as in ``score_answers``.
    """
    if not isinstance(payload, list):
        raise MalformedAnswers("Antworten müssen als Liste übermittelt werden")
    if len(payload) != QUESTION_COUNT:
        raise WrongAnswerCount(QUESTION_COUNT, len(payload))

    answers: List[AnswerItem] = []
    for position, item in enumerate(payload, start=1):
        if not isinstance(item, dict) or not isinstance(item.get("word"), str):
            raise MalformedAnswers(f"Antwort {position} ist ungültig", position=position)
        answers.append(AnswerItem(word=item["word"], score=item.get("score")))
    return answers


def _is_valid_score(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in VALID_SCORES


def score_answers(answers: Sequence[AnswerItem]) -> ScoreVector:
    """Validate a complete submission and reduce it to the four trait totals.

    Checks run in a fixed order so the same bad input always reports the same
    error: answer count, known words, score range, then one rank permutation
    per catalog row.
    """
    if len(answers) != QUESTION_COUNT:
        raise WrongAnswerCount(QUESTION_COUNT, len(answers))

    for answer in answers:
        if answer.word not in ADJECTIVE_MAPPING:
            raise UnknownAdjective(answer.word)

    for answer in answers:
        if not _is_valid_score(answer.score):
            raise ScoreOutOfRange(answer.word, answer.score)

    first_score_by_word: Dict[str, object] = {}
    for answer in answers:
        first_score_by_word.setdefault(answer.word, answer.score)

    for row in DISG_QUESTIONS:
        row_scores = [first_score_by_word.get(word) for word in row.words]
        if None in row_scores or sorted(row_scores) != list(VALID_SCORES):  # type: ignore[type-var]
            raise InvalidRowPermutation(row.id)

    totals = {trait: 0 for trait in TRAIT_CODES}
    for answer in answers:
        totals[ADJECTIVE_MAPPING[answer.word]] += answer.score  # type: ignore[operator]

    scores = ScoreVector.from_mapping(totals)
    if scores.total != POINTS_TOTAL:
        raise CatalogIntegrityError(f"Gesamtpunktzahl muss {POINTS_TOTAL} sein, ist aber {scores.total}")
    return scores


def rank_traits(scores: ScoreVector, traits: Iterable[str] = TRAIT_CODES) -> List[str]:
    """Order traits by score, highest first; ties keep D, I, S, G order."""
    candidates = list(traits)
    return sorted(candidates, key=lambda trait: (-scores[trait], TRAIT_CODES.index(trait)))


def dominant_trait(scores: ScoreVector) -> str:
    return rank_traits(scores)[0]


def secondary_trait(scores: ScoreVector) -> str:
    dominant = dominant_trait(scores)
    return rank_traits(scores, [trait for trait in TRAIT_CODES if trait != dominant])[0]


def profile_codes(scores: ScoreVector) -> Tuple[str, str]:
    return dominant_trait(scores), secondary_trait(scores)
