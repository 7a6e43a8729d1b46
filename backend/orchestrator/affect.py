"""
Reply affect classification.

Purpose:
- Map assistant reply text to one Affect label for avatar animation.
- Keep callers independent of the heuristic behind AffectClassifier.

This module contains NO I/O, NO async, NO side effects.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from orchestrator.enums.affect import Affect
from spec import AFFECT_MIN_MATCHES


class AffectClassifier(ABC):
    """Stable contract: text in, one Affect label out."""

    @abstractmethod
    def classify(self, text: str) -> Affect:
        raise NotImplementedError


@dataclass(frozen=True)
class KeywordCategory:
    """A named keyword list and the label it maps to."""
    name: str
    label: Affect
    keywords: tuple[str, ...]


# Declaration order is the tie-break order.
DEFAULT_CATEGORIES: tuple[KeywordCategory, ...] = (
    KeywordCategory(
        name="celebrating",
        label=Affect.APPROVING,
        keywords=(
            "congratulations", "great job", "well done", "excellent", "amazing",
            "fantastic", "wonderful", "awesome", "perfect", "brilliant",
            "impressive", "outstanding", "success", "achievement", "celebrate",
            "hooray", "yay", "bravo", "superb", "🎉", "🎊", "✨", "🌟", "⭐",
            "🏆", "👏", "good job", "nice work", "proud",
        ),
    ),
    KeywordCategory(
        name="thinking",
        label=Affect.THINKING_DEEP,
        keywords=(
            "let me explain", "think about", "consider this", "ponder", "analyze",
            "understand", "concept", "theory", "principle", "reason", "because",
            "therefore", "complex", "intricate", "detailed", "specifically",
            "let's explore", "imagine", "suppose", "hypothesis", "question",
        ),
    ),
    KeywordCategory(
        name="angry",
        label=Affect.CONCERNED,
        keywords=(
            "careful", "watch out", "warning", "danger", "oops", "mistake",
            "error", "incorrect", "wrong", "avoid", "don't", "shouldn't",
            "risky", "concern", "worried", "caution", "alert", "attention",
            "important", "critical", "serious", "issue", "problem", "⚠️",
            "❗", "❌",
        ),
    ),
)


class KeywordAffectClassifier(AffectClassifier):
    """
    Coarse keyword-frequency heuristic.

    Scoring:
    - Each keyword found in the lowercased text scores 1 for its
      category (presence, not repeat count).
    - Highest score wins; ties go to the earlier category.
    - Fewer than min_matches hits keeps the neutral default.
    """

    def __init__(
        self,
        categories: Sequence[KeywordCategory] = DEFAULT_CATEGORIES,
        *,
        min_matches: int = AFFECT_MIN_MATCHES,
        default: Affect = Affect.IDLE,
    ) -> None:
        self._categories = tuple(
            KeywordCategory(
                name=c.name,
                label=c.label,
                keywords=tuple(k.lower() for k in c.keywords),
            )
            for c in categories
        )
        self._min_matches = min_matches
        self._default = default

    def scores(self, text: str) -> dict[str, int]:
        """Per-category hit counts, in declaration order."""
        lowered = text.lower()
        return {
            c.name: sum(1 for keyword in c.keywords if keyword in lowered)
            for c in self._categories
        }

    def classify(self, text: str) -> Affect:
        best: KeywordCategory | None = None
        best_score = 0

        scores = self.scores(text)
        for category in self._categories:
            score = scores[category.name]
            # Strict '>' keeps the earlier category on ties
            if score > best_score:
                best, best_score = category, score

        if best is None or best_score < self._min_matches:
            return self._default
        return best.label
