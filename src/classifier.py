# -*- coding: utf-8 -*-
"""
Classifier — адаптер над joblib-бандлом модели областей (area) issues.

Формат бандла тот же, что у остальных моделей проекта:
    {"vect_word": TfidfVectorizer, "vect_char": TfidfVectorizer | None,
     "clf": estimator, "classes": array of labels}
Старые бандлы с одним "vect" тоже читаются.
"""
import os, re, threading
from typing import Optional, Protocol

import joblib
import numpy as np
import structlog
from scipy.sparse import hstack

from .errors import ClassifierUnavailable, InvalidRecord
from .schema import InputRecord, ScoreVector

logger = structlog.get_logger(__name__)

_RE_SPACES = re.compile(r"\s+")
_RE_URL = re.compile(r"https?://\S+|www\.\S+")


class Classifier(Protocol):
    def predict(self, record: InputRecord) -> ScoreVector: ...


def clean_text(s: str) -> str:
    s = (s or "").strip()
    s = _RE_URL.sub(" ", s)
    return _RE_SPACES.sub(" ", s).strip()


class JoblibClassifier:
    """
    Модель грузится один раз (лениво, под локом), дальше только чтение —
    predict можно звать из нескольких потоков.
    """

    def __init__(self, model_path: str = "models/area.joblib", bundle: Optional[dict] = None):
        self.model_path = model_path
        self._bundle = None
        self._lock = threading.Lock()
        if bundle is not None:
            self._bundle = self._validate(bundle)

    @classmethod
    def load(cls, model_path: str) -> "JoblibClassifier":
        c = cls(model_path)
        c.bundle  # eager
        return c

    @property
    def bundle(self) -> dict:
        if self._bundle is None:
            with self._lock:
                if self._bundle is None:
                    self._bundle = self._validate(self._read(self.model_path))
        return self._bundle

    @staticmethod
    def _read(path: str) -> dict:
        if not os.path.exists(path):
            raise ClassifierUnavailable(f"model file not found: {path}", {"path": path})
        try:
            bundle = joblib.load(path)
        except Exception as e:
            raise ClassifierUnavailable(f"cannot load model {path}: {e}", {"path": path}) from e
        logger.info("model_loaded", path=path)
        return bundle

    @staticmethod
    def _validate(bundle) -> dict:
        if not isinstance(bundle, dict) or "clf" not in bundle:
            raise ClassifierUnavailable("model bundle must be a dict with a 'clf' entry")
        vect_word = bundle.get("vect_word") or bundle.get("vect")
        vect_char = bundle.get("vect_char")
        if vect_word is None and vect_char is None:
            raise ClassifierUnavailable("model bundle has no vectorizer")
        clf = bundle["clf"]
        classes = bundle.get("classes")
        if classes is None:
            classes = getattr(clf, "classes_", None)
        if classes is None or len(classes) == 0:
            raise ClassifierUnavailable("model bundle has no classes")
        return {"vect_word": vect_word, "vect_char": vect_char, "clf": clf,
                "classes": [str(c) for c in classes]}

    @property
    def labels(self):
        return list(self.bundle["classes"])

    def _to_features(self, text: str):
        b = self.bundle
        Xw = b["vect_word"].transform([text]) if b["vect_word"] is not None else None
        Xc = b["vect_char"].transform([text]) if b["vect_char"] is not None else None
        if Xw is not None and Xc is not None:
            return hstack([Xw, Xc], format="csr")
        return Xw if Xw is not None else Xc

    def _raw_scores(self, record: InputRecord) -> np.ndarray:
        text = clean_text(record.text)
        if not text:
            raise InvalidRecord(f"record {record.id!r} has neither title nor description",
                                {"id": record.id})
        X = self._to_features(text)
        clf = self.bundle["clf"]
        # калиброванные модели отдают вероятности, OVA-перцептрон — только margin
        if hasattr(clf, "predict_proba"):
            scores = clf.predict_proba(X)[0]
        elif hasattr(clf, "decision_function"):
            scores = np.atleast_1d(clf.decision_function(X)[0])
            # бинарная модель даёт один margin: > 0 означает classes[1]
            if scores.shape == (1,) and len(self.labels) == 2:
                scores = np.array([-scores[0], scores[0]])
        else:
            raise ClassifierUnavailable("estimator has neither predict_proba nor decision_function")
        return np.asarray(scores, dtype=float)

    def predict(self, record: InputRecord) -> ScoreVector:
        scores = self._raw_scores(record)
        labels = self.labels
        if len(scores) != len(labels):
            raise ClassifierUnavailable(
                f"model returned {len(scores)} scores for {len(labels)} classes",
                {"scores": len(scores), "labels": len(labels)},
            )
        return ScoreVector(scores=tuple(scores.tolist()), labels=tuple(labels))

    def predicted_label(self, record: InputRecord) -> str:
        """Собственный argmax модели — то, что она сама назвала бы ответом."""
        text = clean_text(record.text)
        if not text:
            raise InvalidRecord(f"record {record.id!r} has neither title nor description",
                                {"id": record.id})
        return str(self.bundle["clf"].predict(self._to_features(text))[0])
