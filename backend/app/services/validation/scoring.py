# backend/app/services/validation/scoring.py
from __future__ import annotations
from math import floor
from typing import Iterable, Optional


def round_half_up(value: float, ndigits: int = 0) -> float:
    # round() は偶数丸めなので使わない
    q = 10 ** ndigits
    return floor(value * q + 0.5) / q


def overall_score(results: Iterable[Optional[bool]]) -> int:
    """定義済み（bool）の検証のうち合格した割合を 0-100 の整数で返す。"""
    defined = [r for r in results if isinstance(r, bool)]
    if not defined:
        return 0
    passed = sum(1 for r in defined if r)
    return int(round_half_up(100 * passed / len(defined)))
