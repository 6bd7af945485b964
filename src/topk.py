# -*- coding: utf-8 -*-
"""
Top-K ранжирование классов по вектору скоров.

Один проход по скорам, в буфере держим не больше k пар (score, index)
по убыванию score. Индекс едет вместе со скором, поэтому одинаковые скоры
на разных позициях не схлопываются в один класс. При равенстве выигрывает
более ранний индекс.
"""
import math
from numbers import Integral
from typing import List, Sequence, Tuple

from .errors import InternalError, InvalidInput
from .schema import PredictionRecord, ScoreVector

DEFAULT_K = 3


def check_k(k) -> int:
    if isinstance(k, bool) or not isinstance(k, Integral) or k < 1:
        raise InvalidInput(f"k must be a positive integer, got {k!r}", {"k": k})
    return int(k)


def top_k_indices(scores: Sequence[float], k: int) -> List[Tuple[float, int]]:
    """(score, index) pairs of the k best scores, descending, earlier index first on ties."""
    k = check_k(k)
    buf: List[Tuple[float, int]] = []
    for i, s in enumerate(scores):
        s = float(s)
        if math.isnan(s):
            raise InvalidInput(f"score at index {i} is NaN", {"index": i})
        if len(buf) == k and s <= buf[-1][0]:
            continue
        # после всех, у кого score >= s: так равные скоры сохраняют порядок индексов
        pos = len(buf)
        while pos > 0 and buf[pos - 1][0] < s:
            pos -= 1
        buf.insert(pos, (s, i))
        if len(buf) > k:
            buf.pop()
    return buf


def assemble_predictions(ranked: Sequence[Tuple[float, int]],
                         labels: Sequence[str]) -> List[PredictionRecord]:
    out = []
    for score, idx in ranked:
        if not 0 <= idx < len(labels):
            raise InternalError(f"ranked index {idx} outside of {len(labels)} labels",
                                {"index": idx, "labels": len(labels)})
        out.append(PredictionRecord(label=str(labels[idx]), score=score, original_index=idx))
    return out


def select_top_k(scores: Sequence[float], labels: Sequence[str], k: int = DEFAULT_K) -> List[PredictionRecord]:
    """
    Вернуть min(k, len(scores)) предсказаний по убыванию score.

    Длины scores и labels должны совпадать, k >= 1, иначе InvalidInput.
    Если классов меньше k — просто короче список, без нулевых заглушек.
    """
    if len(scores) != len(labels):
        raise InvalidInput(
            f"scores/labels length mismatch: {len(scores)} != {len(labels)}",
            {"scores": len(scores), "labels": len(labels)},
        )
    return assemble_predictions(top_k_indices(scores, k), labels)


def rank(vector: ScoreVector, k: int = DEFAULT_K) -> List[PredictionRecord]:
    return select_top_k(vector.scores, vector.labels, k)
