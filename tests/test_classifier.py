# -*- coding: utf-8 -*-
import pytest
from src.classifier import JoblibClassifier, clean_text
from src.schema import InputRecord
from src.triage import TriageOrchestrator
from src.errors import ClassifierUnavailable, InvalidRecord

def test_predict_returns_full_vector(model_path):
    clf = JoblibClassifier.load(model_path)
    v = clf.predict(InputRecord("1", "SqlConnection pool exhausted under load"))
    assert v.labels == ("area-json", "area-sqlclient", "area-websockets")
    assert len(v.scores) == 3
    assert abs(sum(v.scores) - 1.0) < 1e-6

def test_orchestrator_with_real_model(model_path):
    orch = TriageOrchestrator(JoblibClassifier(model_path))
    preds = orch.predict(InputRecord("1", "SqlConnection pool exhausted under load"))
    assert preds[0].label == "area-sqlclient"
    assert len({p.original_index for p in preds}) == 3
    assert orch.diagnose()[0].label in ("area-json", "area-sqlclient", "area-websockets")

def test_missing_model(tmp_path):
    clf = JoblibClassifier(str(tmp_path / "nope.joblib"))
    with pytest.raises(ClassifierUnavailable):
        clf.predict(InputRecord("1", "x"))

def test_corrupt_model(tmp_path):
    p = tmp_path / "bad.joblib"
    p.write_bytes(b"not a pickle")
    with pytest.raises(ClassifierUnavailable):
        JoblibClassifier.load(str(p))

def test_bundle_without_vectorizer(bundle):
    with pytest.raises(ClassifierUnavailable):
        JoblibClassifier(bundle={"clf": bundle["clf"], "classes": bundle["classes"]})

def test_empty_record(bundle):
    clf = JoblibClassifier(bundle=bundle)
    with pytest.raises(InvalidRecord):
        clf.predict(InputRecord("1", "  ", "https://example.com/x"))

def test_inconsistent_classes(bundle):
    broken = dict(bundle, classes=["only-one"])
    clf = JoblibClassifier(bundle=broken)
    with pytest.raises(ClassifierUnavailable):
        clf.predict(InputRecord("1", "WebSocket close"))

def test_clean_text():
    assert clean_text("  see  https://github.com/x/y \n now ") == "see now"

def test_binary_margin_model():
    from sklearn.feature_extraction.text import TfidfVectorizer
    from sklearn.svm import LinearSVC
    texts = ["sql crash on close", "sql connection hangs", "websocket slow", "websocket frame error"]
    y = ["area-sqlclient", "area-sqlclient", "area-websockets", "area-websockets"]
    vect = TfidfVectorizer().fit(texts)
    svc = LinearSVC(random_state=42).fit(vect.transform(texts), y)
    clf = JoblibClassifier(bundle={"vect": vect, "clf": svc, "classes": svc.classes_})
    v = clf.predict(InputRecord("1", "sql crash"))
    assert v.labels == ("area-sqlclient", "area-websockets")
    assert v.scores[0] == -v.scores[1]
    assert v.scores[0] > v.scores[1]
