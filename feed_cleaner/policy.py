"""Visibility policy: classification outcome to action."""

from dataclasses import dataclass
from enum import Enum

from .models.items import MUTED_RESULT, Category, ClassificationResult

HIDE_THRESHOLD = 7
LOW_INFORMATIVENESS = "low_informativeness"


class Action(Enum):
    """What to do with a classified item."""
    HIDE = "hide"
    BADGE = "badge"


@dataclass(frozen=True)
class Label:
    """Explanation shown on an indicator."""
    reason: str
    explanation: str
    score_text: str


@dataclass(frozen=True)
class PolicyDecision:
    """Action for one item, with the label when it is concealed."""
    action: Action
    score: int
    label: Label | None = None

    @property
    def reason(self) -> str | None:
        return self.label.reason if self.label else None


# Highest priority first
CATEGORY_LABELS: tuple[tuple[Category, str, str], ...] = (
    (Category.PROMOTIONAL, "Promotional content", "0/10"),
    (Category.ENGAGEMENT_BAIT, "Engagement bait", "0/10"),
    (Category.ENTERTAINMENT, "Entertainment only", "0/10"),
    (Category.ACTIVITY, "Activity post", "0/10"),
    (Category.SUGGESTION, "People suggestion", "0/10"),
    (Category.MUTED, "Contains muted words", "Muted"),
)


def label_for(result: ClassificationResult) -> Label:
    """Pick the indicator label for a concealed item."""
    for category, explanation, score_text in CATEGORY_LABELS:
        if result.category is category:
            return Label(category.value, explanation, score_text)
    return Label(LOW_INFORMATIVENESS, "Low informativeness", f"{result.score}/10")


class PolicyEngine:
    """Maps classification results to hide or badge actions.

    Scores below 7 are hidden, and a score of 0 is always hidden; muted
    items are hidden regardless of score.
    """

    def __init__(self, threshold: int = HIDE_THRESHOLD):
        self.threshold = threshold

    def decide(self, result: ClassificationResult, muted: bool = False) -> PolicyDecision:
        if muted:
            return PolicyDecision(Action.HIDE, MUTED_RESULT.score, label_for(MUTED_RESULT))

        if result.score == 0 or result.score < self.threshold:
            return PolicyDecision(Action.HIDE, result.score, label_for(result))

        return PolicyDecision(Action.BADGE, result.score)
