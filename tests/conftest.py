# -*- coding: utf-8 -*-
import joblib
import numpy as np
import pytest
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.linear_model import LogisticRegression
from scipy.sparse import hstack

from src.schema import InputRecord, ScoreVector
from src.errors import ClassifierUnavailable

TRAIN = [
    ("area-sqlclient", "Crash in SqlConnection when using TransactionScope"),
    ("area-sqlclient", "SqlClient Close() hangs on Linux"),
    ("area-sqlclient", "SqlConnection pool exhausted under load"),
    ("area-sqlclient", "SqlCommand timeout ignored in async calls"),
    ("area-websockets", "WebSockets communication is slow"),
    ("area-websockets", "WebSocket close handshake never completes"),
    ("area-websockets", "ClientWebSocket throws on large frames"),
    ("area-websockets", "SignalR WebSockets connection drops"),
    ("area-json", "JsonSerializer fails on nested dictionaries"),
    ("area-json", "Utf8JsonReader rejects valid json comments"),
    ("area-json", "JsonDocument parse is slow for big payloads"),
    ("area-json", "System.Text.Json ignores property naming policy"),
]


@pytest.fixture(scope="session")
def bundle():
    y = np.array([a for a, _ in TRAIN])
    texts = [t for _, t in TRAIN]
    vect_word = TfidfVectorizer(ngram_range=(1, 2), min_df=1)
    vect_char = TfidfVectorizer(analyzer="char_wb", ngram_range=(3, 4), min_df=1)
    X = hstack([vect_word.fit_transform(texts), vect_char.fit_transform(texts)], format="csr")
    clf = LogisticRegression(max_iter=500, random_state=42)
    clf.fit(X, y)
    return {"vect_word": vect_word, "vect_char": vect_char, "clf": clf, "classes": np.unique(y)}


@pytest.fixture()
def model_path(bundle, tmp_path):
    p = tmp_path / "area.joblib"
    joblib.dump(bundle, p)
    return str(p)


class FakeClassifier:
    """Отдаёт заранее заданные скоры по id записи."""

    def __init__(self, vectors, labels=("bug", "feature", "doc", "perf")):
        self.vectors = vectors
        self.labels = tuple(labels)
        self.calls = []

    def predict(self, record: InputRecord) -> ScoreVector:
        self.calls.append(record.id)
        v = self.vectors[record.id]
        if isinstance(v, Exception):
            raise v
        return ScoreVector(scores=tuple(v), labels=self.labels)


@pytest.fixture()
def fake_classifier():
    return FakeClassifier({
        "hi": [0.1, 0.3, 0.2, 0.05],
        "lo": [0.29, 0.1, 0.2, 0.05],
        "e2e": [0.1, 0.7, 0.2, 0.05],
        "down": ClassifierUnavailable("model is gone"),
    })
