# -*- coding: utf-8 -*-
import pathlib
from typing import List, Protocol, Sequence

import pandas as pd
import structlog

from .schema import PredictionRecord, TriageEntry

logger = structlog.get_logger(__name__)


class Reporter(Protocol):
    def emit(self, record_id: str, predictions: Sequence[PredictionRecord], recommended: bool,
             title: str = "") -> None: ...


class LogReporter:
    def emit(self, record_id, predictions, recommended, title=""):
        logger.info(
            "triage.entry",
            id=record_id,
            title=title,
            labels=[p.label for p in predictions],
            scores=[round(p.score, 4) for p in predictions],
            recommended=recommended,
        )


class MemoryReporter:
    def __init__(self):
        self.entries: List[TriageEntry] = []

    def emit(self, record_id, predictions, recommended, title=""):
        self.entries.append(TriageEntry(record_id=record_id, title=title,
                                        predictions=tuple(predictions), recommended=recommended))


class CsvReporter:
    """
    Копит строки и пишет csv на close(): id, title, label_1..K, score_1..K, recommended.
    """

    def __init__(self, path: str = "reports/area_triage.csv"):
        self.path = path
        self.rows: List[dict] = []

    def emit(self, record_id, predictions, recommended, title=""):
        row = {"id": record_id, "title": title}
        for n, p in enumerate(predictions, start=1):
            row[f"label_{n}"] = p.label
            row[f"score_{n}"] = p.score
        row["recommended"] = bool(recommended)
        self.rows.append(row)

    def close(self) -> pd.DataFrame:
        df = pd.DataFrame(self.rows)
        if not df.empty:
            # recommended всегда последним столбцом
            df = df[[c for c in df.columns if c != "recommended"] + ["recommended"]]
        pathlib.Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.path, index=False, encoding="utf-8")
        logger.info("report_saved", path=self.path, rows=len(df))
        return df


class MultiReporter:
    def __init__(self, *reporters):
        self.reporters = [r for r in reporters if r is not None]

    def emit(self, record_id, predictions, recommended, title=""):
        for r in self.reporters:
            r.emit(record_id, predictions, recommended, title=title)
