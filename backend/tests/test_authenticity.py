import logging
import random
from dataclasses import replace

import pytest
import requests

from app.config import load_settings
from app.schemas.validation import ImageCapture
from app.services.validation.authenticity import (
    ClassifierAuthenticity, ClassifierError, HttpImageClassifier, SimulatedAuthenticity,
    SkipAuthenticity, build_authenticity,
)

CAPTURE = ImageCapture.from_bytes(b"\xff\xd8\xff" + b"0" * 100, mime_type="image/jpeg", original_name="x.jpg")


def _hive_payload(score):
    return {"status": [{"response": {"output": [{"classes": [
        {"class": "not_ai_generated", "score": 1 - score},
        {"class": "ai_generated", "score": score},
    ]}]}}]}


def test_simulated_always_passes_with_confidence_range():
    strategy = SimulatedAuthenticity(random.Random(0))
    for _ in range(200):
        check = strategy(CAPTURE)
        assert check.passed is True
        assert 85 <= check.confidence <= 100
        assert check.simulated
        assert "simulated" in check.message


@pytest.mark.parametrize("p, passed, confidence", [
    (0.0, True, 100),
    (0.2, True, 80),
    (0.49, True, 51),
    (0.5, False, 50),
    (0.93, False, 7),
])
def test_classifier_threshold(p, passed, confidence):
    check = ClassifierAuthenticity(lambda c: p)(CAPTURE)
    assert check.passed is passed
    assert check.confidence == confidence
    assert check.ai_probability == p
    assert not check.simulated


def test_classifier_failure_fails_open(caplog):
    def boom(capture):
        raise requests.Timeout("read timed out")

    with caplog.at_level(logging.WARNING):
        check = ClassifierAuthenticity(boom)(CAPTURE)
    assert check.passed is True
    assert "unavailable" in check.message
    assert "read timed out" in caplog.text


def test_skip_returns_none():
    assert SkipAuthenticity()(CAPTURE) is None


def test_parse_ai_probability():
    assert HttpImageClassifier.parse_ai_probability(_hive_payload(0.8)) == 0.8
    assert HttpImageClassifier.parse_ai_probability({"status": [{"response": {"output": [{"classes": []}]}}]}) == 0.0
    with pytest.raises(ClassifierError):
        HttpImageClassifier.parse_ai_probability({"unexpected": True})


class _FakeResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self._payload


class _FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def test_http_classifier_posts_image_with_timeout():
    session = _FakeSession(_FakeResponse(_hive_payload(0.1)))
    clf = HttpImageClassifier("https://detector.test/sync", api_key="k", timeout=3, session=session)
    assert clf(CAPTURE) == 0.1
    url, kwargs = session.calls[0]
    assert url == "https://detector.test/sync"
    assert kwargs["timeout"] == 3
    assert kwargs["headers"] == {"Authorization": "Token k"}
    assert kwargs["files"]["media"] == ("x.jpg", CAPTURE.data, "image/jpeg")


def test_http_error_fails_open():
    session = _FakeSession(_FakeResponse({}, status=503))
    strategy = ClassifierAuthenticity(HttpImageClassifier("https://detector.test", session=session))
    check = strategy(CAPTURE)
    assert check.passed


def test_build_authenticity_modes():
    base = load_settings()
    assert isinstance(build_authenticity(replace(base, ai_detection_mode="simulated")), SimulatedAuthenticity)
    assert isinstance(build_authenticity(replace(base, ai_detection_mode="classifier")), ClassifierAuthenticity)
    assert isinstance(build_authenticity(replace(base, ai_detection_mode="skip")), SkipAuthenticity)
    assert isinstance(build_authenticity(replace(base, ai_detection_mode="bogus")), SimulatedAuthenticity)


def test_legacy_enabled_flag_selects_classifier(monkeypatch):
    monkeypatch.delenv("AI_DETECTION_MODE", raising=False)
    monkeypatch.setenv("AI_DETECTION_ENABLED", "true")
    assert load_settings().ai_detection_mode == "classifier"
