"""DISG questionnaire catalog: 10 rows with 4 adjectives each."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

TRAIT_CODES: Tuple[str, ...] = ("D", "I", "S", "G")


class CatalogError(RuntimeError):
    """Raised at import time when the catalog data is malformed."""


@dataclass(frozen=True)
class Adjective:
    word: str
    trait: str


@dataclass(frozen=True)
class QuestionRow:
    id: int
    adjectives: Tuple[Adjective, ...]

    @property
    def words(self) -> Tuple[str, ...]:
        return tuple(adjective.word for adjective in self.adjectives)


def _row(row_id: int, *pairs: Tuple[str, str]) -> QuestionRow:
    return QuestionRow(id=row_id, adjectives=tuple(Adjective(word, trait) for word, trait in pairs))


DISG_QUESTIONS: Tuple[QuestionRow, ...] = (
    _row(1, ("optimistisch", "I"), ("selbstsicher", "D"), ("genau", "G"), ("harmonisch", "S")),
    _row(2, ("ergebnisorientiert", "D"), ("beständig", "S"), ("enthusiastisch", "I"), ("selbstdiszipliniert", "G")),
    _row(3, ("nachdenkend", "G"), ("kontaktfreudig", "I"), ("zuhörend", "S"), ("wagemutig", "D")),
    _row(4, ("positiv", "I"), ("risikofreudig", "D"), ("zurückhaltend", "G"), ("unterstützend", "S")),
    _row(5, ("geduldig", "S"), ("spontan", "I"), ("entscheidungsfreudig", "D"), ("kontrolliert", "G")),
    _row(6, ("kritisch", "G"), ("impulsiv", "I"), ("zuverlässig", "S"), ("zielorientiert", "D")),
    _row(7, ("gesellig", "I"), ("unauffällig", "S"), ("furchtlos", "D"), ("strukturiert", "G")),
    _row(8, ("bestimmend", "D"), ("sorgfältig", "G"), ("teamfähig", "S"), ("begeistert", "I")),
    _row(9, ("vertrauensvoll", "S"), ("analytisch", "G"), ("beliebt", "I"), ("kraftvoll", "D")),
    _row(10, ("hartnäckig", "D"), ("überzeugend", "I"), ("planend", "G"), ("vermittelnd", "S")),
)

QUESTION_COUNT = sum(len(row.adjectives) for row in DISG_QUESTIONS)


def build_adjective_mapping(rows: Tuple[QuestionRow, ...]) -> Dict[str, str]:
    """Flatten the catalog into a word -> trait lookup, checking its integrity.

    Every row must carry one adjective per trait code and no word may appear
    twice anywhere in the catalog.
    """
    mapping: Dict[str, str] = {}
    for row in rows:
        traits = sorted(adjective.trait for adjective in row.adjectives)
        if traits != sorted(TRAIT_CODES):
            raise CatalogError(f"Row {row.id} must contain each of {', '.join(TRAIT_CODES)} exactly once")
        for adjective in row.adjectives:
            if adjective.word in mapping:
                raise CatalogError(f"Adjective {adjective.word!r} appears more than once")
            mapping[adjective.word] = adjective.trait
    return mapping


ADJECTIVE_MAPPING: Mapping[str, str] = MappingProxyType(build_adjective_mapping(DISG_QUESTIONS))
