# -*- coding: utf-8 -*-
"""
TriageOrchestrator — классификатор + top-K + порог рекомендации.

predict()  — одна issue, ранжирование без порога (диагностика);
triage()   — пачка issues: пустой title пропускаем, top-K, recommended
             если лучший score >= threshold, запись уходит в Reporter.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import structlog

from .classifier import Classifier
from .errors import ClassifierUnavailable, InvalidInput, InvalidRecord
from .reporting import Reporter
from .schema import InputRecord, PredictionRecord, TriageEntry
from .sources import ConfigSource
from .topk import DEFAULT_K, check_k, rank
from .utils import cfg_get

logger = structlog.get_logger(__name__)

DEFAULT_THRESHOLD = 0.30
ON_ERROR_MODES = ("raise", "skip")

DEMO_ISSUE = InputRecord(
    id="Any-ID",
    title="Crash in SqlConnection when using TransactionScope",
    description="I'm using SqlClient in netcoreapp2.0. Sqlclient.Close() crashes in Linux but works on Windows",
)


@dataclass(frozen=True)
class TriageSettings:
    top_k: int = DEFAULT_K
    threshold: float = DEFAULT_THRESHOLD
    on_error: str = "raise"  # raise | skip

    def __post_init__(self):
        object.__setattr__(self, "top_k", check_k(self.top_k))
        if self.on_error not in ON_ERROR_MODES:
            raise InvalidInput(f"on_error must be one of {ON_ERROR_MODES}, got {self.on_error!r}")
        object.__setattr__(self, "threshold", float(self.threshold))

    @classmethod
    def from_config(cls, cfg: dict) -> "TriageSettings":
        top_k = cfg_get(cfg, "triage.top_k", DEFAULT_K)
        threshold = cfg_get(cfg, "triage.threshold", DEFAULT_THRESHOLD)
        try:
            top_k, threshold = int(top_k), float(threshold)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"bad triage settings: top_k={top_k!r} threshold={threshold!r}",
                               {"top_k": top_k, "threshold": threshold}) from e
        return cls(top_k=top_k, threshold=threshold,
                   on_error=str(cfg_get(cfg, "triage.on_error", "raise")))


class TriageOrchestrator:
    """
    Состояния между вызовами нет: каждый predict/triage возвращает свежий список,
    общий только загруженный классификатор (он read-only).
    """

    def __init__(self, classifier: Classifier, settings: Optional[TriageSettings] = None,
                 reporter: Optional[Reporter] = None):
        self.classifier = classifier
        self.settings = settings or TriageSettings()
        self.reporter = reporter

    def predict(self, record: InputRecord) -> List[PredictionRecord]:
        vector = self.classifier.predict(record)
        return rank(vector, self.settings.top_k)

    def decide(self, predictions: Sequence[PredictionRecord]) -> bool:
        return bool(predictions) and predictions[0].score >= self.settings.threshold

    def triage_record(self, record: InputRecord) -> TriageEntry:
        predictions = self.predict(record)
        recommended = self.decide(predictions)
        entry = TriageEntry(record_id=record.id, title=record.title,
                            predictions=tuple(predictions), recommended=recommended)
        if self.reporter is not None:
            self.reporter.emit(record.id, entry.predictions, recommended, title=record.title)
        return entry

    def triage(self, records: Iterable[InputRecord], on_error: Optional[str] = None) -> List[TriageEntry]:
        mode = on_error or self.settings.on_error
        if mode not in ON_ERROR_MODES:
            raise InvalidInput(f"on_error must be one of {ON_ERROR_MODES}, got {mode!r}")
        entries = []
        skipped = 0
        for record in records:
            if not record.title:
                skipped += 1
                logger.debug("triage.skip_empty_title", id=record.id)
                continue
            try:
                entries.append(self.triage_record(record))
            except (ClassifierUnavailable, InvalidRecord) as e:
                if mode == "raise":
                    raise
                logger.warning("triage.record_failed", id=record.id, error=str(e))
                entries.append(TriageEntry(record_id=record.id, title=record.title, error=str(e)))
        logger.info(
            "triage.done",
            total=len(entries),
            recommended=sum(1 for e in entries if e.recommended),
            failed=sum(1 for e in entries if e.error),
            skipped_empty=skipped,
            threshold=self.settings.threshold,
        )
        return entries

    def run(self, source: ConfigSource, on_error: Optional[str] = None) -> List[TriageEntry]:
        return self.triage(source.load_issues(), on_error=on_error)

    def diagnose(self, record: InputRecord = DEMO_ISSUE) -> List[PredictionRecord]:
        """Прогон одной захардкоженной issue — быстрая проверка, что модель живая."""
        predictions = self.predict(record)
        # у JoblibClassifier есть свой argmax, у произвольного Classifier — нет
        model_label = getattr(self.classifier, "predicted_label", None)
        logger.info(
            "diagnose",
            title=record.title,
            ranked=[(p.label, round(p.score, 4)) for p in predictions],
            result=model_label(record) if model_label else (predictions[0].label if predictions else None),
        )
        return predictions
