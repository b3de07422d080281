"""Deterministic rubric scoring from conversation features.

A dimension's score comes from two features only: a band chosen by
conversation length and code presence, and whether the dimension's signal
shows up in the candidate's turns. Identical sessions score identically.
"""
from __future__ import annotations

import re
from statistics import mean
from typing import Dict, Iterable, List, Sequence, Tuple

from config.prompt_config import Rubric
from flow_manager.models import ConversationEntry

from .models import RubricScore

LONG_CONVERSATION = 10
MEDIUM_CONVERSATION = 5
STRENGTH_THRESHOLD = 4
IMPROVEMENT_THRESHOLD = 3
MIN_RECOMMENDATIONS = 2


def _round1(value: float) -> float:
    """Round a float to one decimal place with stable formatting."""
    return float(f"{value:.1f}")


def dimension_key(dimension: str) -> str:
    """``"Time/space complexity"`` -> ``"time_space_complexity"``."""
    return re.sub(r"[^a-z0-9]+", "_", dimension.lower()).strip("_")


def score_band(history_length: int, has_code: bool) -> Tuple[int, int]:
    """Eligible (low, high) scores for a conversation of this length."""

    if history_length > LONG_CONVERSATION and has_code:
        return 4, 5
    if history_length > MEDIUM_CONVERSATION:
        return 3, 4
    return 2, 3


def has_signal(key: str, user_texts: Sequence[str], rubric: Rubric, has_code: bool) -> bool:
    keywords = [word.lower() for word in rubric.signals.get(key, []) if word.strip()]
    if not keywords:
        return has_code
    return any(word in text for text in user_texts for word in keywords)


def nearest_guidance(score: int, guidance: Dict[str, str]) -> str:
    levels: List[Tuple[int, str]] = []
    for level, text in guidance.items():
        try:
            levels.append((int(level), text))
        except ValueError:
            continue
    if not levels:
        return ""
    _, text = min(levels, key=lambda item: (abs(item[0] - score), -item[0]))
    return text


def feedback_for(key: str, score: int, rubric: Rubric) -> str:
    if score >= STRENGTH_THRESHOLD and rubric.highlights.get(key):
        return rubric.highlights[key]
    return nearest_guidance(score, rubric.guidance) or "No feedback available for this dimension."


def score_dimensions(rubric: Rubric, history: Sequence[ConversationEntry], has_code: bool) -> List[RubricScore]:
    low, high = score_band(len(history), has_code)
    floor = max(1, min(rubric.scale, default=1))
    ceiling = min(5, max(rubric.scale, default=5))
    user_texts = [entry.content.lower() for entry in history if entry.role == "user"]
    scores: List[RubricScore] = []
    for dimension in rubric.dimensions:
        key = dimension_key(dimension)
        raw = high if has_signal(key, user_texts, rubric, has_code) else low
        score = max(floor, min(ceiling, raw))
        scores.append(RubricScore(dimension=dimension, score=score, feedback=feedback_for(key, score, rubric)))
    return scores


def overall_score(scores: Iterable[RubricScore]) -> float:
    values = [item.score for item in scores]
    return _round1(mean(values)) if values else 0.0


def strengths(scores: Iterable[RubricScore]) -> List[str]:
    return [f"Strong {item.dimension.lower()}: {item.feedback}" for item in scores if item.score >= STRENGTH_THRESHOLD]


def improvements(scores: Iterable[RubricScore]) -> List[str]:
    return [f"Focus on {item.dimension.lower()}: {item.feedback}" for item in scores if item.score <= IMPROVEMENT_THRESHOLD]


def recommendations(scores: Iterable[RubricScore], rubric: Rubric) -> List[str]:
    picked: List[str] = []
    for item in scores:
        if item.score > IMPROVEMENT_THRESHOLD:
            continue
        text = rubric.recommendations.get(dimension_key(item.dimension))
        if text and text not in picked:
            picked.append(text)
    for text in rubric.general_recommendations:
        if len(picked) >= MIN_RECOMMENDATIONS:
            break
        if text not in picked:
            picked.append(text)
    return picked


__all__ = [
    "dimension_key",
    "feedback_for",
    "has_signal",
    "improvements",
    "nearest_guidance",
    "overall_score",
    "recommendations",
    "score_band",
    "score_dimensions",
    "strengths",
]
