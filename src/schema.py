# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import InvalidInput


@dataclass(frozen=True)
class ScoreVector:
    """Raw classifier output for one record: scores[i] belongs to labels[i]."""
    scores: Tuple[float, ...]
    labels: Tuple[str, ...]

    def __post_init__(self):
        # храним кортежи, чтобы вектор нельзя было поменять после классификации
        object.__setattr__(self, "scores", tuple(float(s) for s in self.scores))
        object.__setattr__(self, "labels", tuple(str(l) for l in self.labels))
        if len(self.scores) != len(self.labels):
            raise InvalidInput(
                f"scores/labels length mismatch: {len(self.scores)} != {len(self.labels)}",
                {"scores": len(self.scores), "labels": len(self.labels)},
            )

    def __len__(self):
        return len(self.scores)


@dataclass(frozen=True)
class PredictionRecord:
    label: str
    score: float
    original_index: int

    def to_dict(self) -> dict:
        return {"label": self.label, "score": self.score, "original_index": self.original_index}


@dataclass(frozen=True)
class InputRecord:
    id: str
    title: str
    description: str = ""

    @property
    def text(self) -> str:
        """Title and description joined, the way the model was trained on them."""
        return f"{self.title or ''} {self.description or ''}".strip()


@dataclass(frozen=True)
class TriageEntry:
    """
    Report entry for one triaged record.
    error заполняется только в режиме on_error="skip".
    """
    record_id: str
    title: str
    predictions: Tuple[PredictionRecord, ...] = field(default_factory=tuple)
    recommended: bool = False
    error: Optional[str] = None

    @property
    def top(self) -> Optional[PredictionRecord]:
        return self.predictions[0] if self.predictions else None

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "title": self.title,
            "predictions": [p.to_dict() for p in self.predictions],
            "recommended": self.recommended,
            "error": self.error,
        }

