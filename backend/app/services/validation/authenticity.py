# backend/app/services/validation/authenticity.py
"""
AI 生成画像判定の差し替え可能な境界。

- SimulatedAuthenticity: 判定無効時（既定）。常に合格、信頼度 85-100 の乱数
- ClassifierAuthenticity: 外部分類器の AI 生成確率 p で判定。p < 0.5 で合格
  分類器が失敗しても提出は止めない（合格＋警告）
- HttpImageClassifier: 外部 API を requests でタイムアウト付きで呼ぶ分類器
"""
from __future__ import annotations
import logging
import random
from typing import Callable, Optional, Protocol

import requests

from app.config import Settings
from app.schemas.validation import AuthenticityCheck, ImageCapture
from .scoring import round_half_up

logger = logging.getLogger(__name__)

AI_PROBABILITY_THRESHOLD = 0.5

Classifier = Callable[[ImageCapture], float]


class AuthenticityStrategy(Protocol):
    def __call__(self, capture: ImageCapture) -> Optional[AuthenticityCheck]: ...


class SimulatedAuthenticity:
    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def __call__(self, capture: ImageCapture) -> AuthenticityCheck:
        confidence = round_half_up((0.85 + self._rng.random() * 0.15) * 100)
        return AuthenticityCheck(
            passed=True,
            confidence=int(confidence),
            simulated=True,
            message="Real photo detected (simulated)",
        )


class ClassifierAuthenticity:
    def __init__(self, classifier: Classifier):
        self._classifier = classifier

    def __call__(self, capture: ImageCapture) -> AuthenticityCheck:
        try:
            p = float(self._classifier(capture))
        except Exception as e:
            logger.warning("AI detection unavailable, skipping check: %s", e)
            return AuthenticityCheck(
                passed=True,
                message="AI detection unavailable, skipping check",
            )

        passed = p < AI_PROBABILITY_THRESHOLD
        return AuthenticityCheck(
            passed=passed,
            confidence=int(round_half_up((1 - p) * 100)),
            ai_probability=p,
            message="Real photo detected" if passed else "Possible AI-generated image",
        )


class SkipAuthenticity:
    def __call__(self, capture: ImageCapture) -> None:
        logger.warning("authenticity check skipped; score uses remaining checks")
        return None


class ClassifierError(RuntimeError):
    pass


class HttpImageClassifier:
    """multipart で画像を送り、ai_generated クラスのスコアを返す。"""

    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def __call__(self, capture: ImageCapture) -> float:
        headers = {"Authorization": f"Token {self.api_key}"} if self.api_key else {}
        name = capture.original_name or "capture.jpg"
        resp = self._session.post(
            self.url,
            headers=headers,
            files={"media": (name, capture.data, capture.mime_type)},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return self.parse_ai_probability(resp.json())

    @staticmethod
    def parse_ai_probability(payload: dict) -> float:
        try:
            classes = payload["status"][0]["response"]["output"][0]["classes"]
        except (KeyError, IndexError, TypeError) as e:
            raise ClassifierError(f"unexpected classifier response: {e!r}") from e
        for c in classes:
            if c.get("class") == "ai_generated":
                return float(c.get("score", 0.0))
        return 0.0


def build_authenticity(settings: Settings) -> AuthenticityStrategy:
    mode = settings.ai_detection_mode
    if mode == "classifier":
        return ClassifierAuthenticity(HttpImageClassifier(
            settings.ai_detection_url,
            api_key=settings.ai_detection_api_key,
            timeout=settings.ai_detection_timeout,
        ))
    if mode == "skip":
        return SkipAuthenticity()
    if mode != "simulated":
        logger.warning("unknown AI_DETECTION_MODE %r, using simulated", mode)
    return SimulatedAuthenticity()
