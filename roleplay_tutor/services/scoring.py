"""Pronunciation verdicts from transcription confidence.

Recognizer confidence is used as a pronunciation-quality proxy: low
confidence usually means the recognizer struggled with how something was
said. Confidence evidence always wins over the model's own verdict, and
missing data never resolves to ``correct``.
"""
import math
from typing import Any, List, Optional

from roleplay_tutor.domain.practice import ConfidenceMetrics, TranscriptSegment, Verdict

BELOW_THRESHOLD_CONFIDENCE = 0.88
MIN_LOWEST_CONFIDENCE = 0.82
MIN_AVERAGE_CONFIDENCE = 0.90
MAX_BELOW_THRESHOLD_RATIO = 0.3
PASSING_SCORE = 88


def _as_number(value: Any) -> Optional[float]:
    """Return value as a float when it is a real number (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return float(value)


def clamp_score(score: Any) -> Optional[float]:
    """Clamp a numeric score into [0, 100]; non-numeric scores become None."""
    numeric = _as_number(score)
    if numeric is None:
        return None
    return max(0.0, min(100.0, numeric))


def compute_confidence_metrics(segments: Optional[List[TranscriptSegment]]) -> Optional[ConfidenceMetrics]:
    """Aggregate per-segment confidence.

    Returns None for a missing or empty list. Segments without a numeric
    confidence still count toward ``segment_count``.
    """
    if not segments:
        return None

    confidences = [c for c in (_as_number(s.confidence) for s in segments) if c is not None]

    if not confidences:
        return ConfidenceMetrics(segment_count=len(segments), below_threshold_count=0)

    return ConfidenceMetrics(
        segment_count=len(segments),
        average_confidence=sum(confidences) / len(confidences),
        lowest_confidence=min(confidences),
        below_threshold_count=sum(1 for c in confidences if c < BELOW_THRESHOLD_CONFIDENCE),
    )


def coerce_verdict(provisional_verdict: Any, score: Any, metrics: Optional[ConfidenceMetrics]) -> Verdict:
    """Turn the model's verdict and score plus confidence metrics into a final verdict.

    First matching rule wins:
        1. lowest confidence < 0.82
        2. average confidence < 0.90
        3. more than max(1, floor(30% of segments)) segments below 0.88
        4. clamped numeric score < 88
        5. the model's verdict if it is exactly "correct"
    Rules 1-4 yield ``needs_improvement``.
    """
    if metrics is not None:
        if metrics.lowest_confidence is not None and metrics.lowest_confidence < MIN_LOWEST_CONFIDENCE:
            return Verdict.NEEDS_IMPROVEMENT
        if metrics.average_confidence is not None and metrics.average_confidence < MIN_AVERAGE_CONFIDENCE:
            return Verdict.NEEDS_IMPROVEMENT
        allowed_below = max(1, math.floor(metrics.segment_count * MAX_BELOW_THRESHOLD_RATIO))
        if metrics.below_threshold_count > allowed_below:
            return Verdict.NEEDS_IMPROVEMENT

    numeric_score = clamp_score(score)
    if numeric_score is not None and numeric_score < PASSING_SCORE:
        return Verdict.NEEDS_IMPROVEMENT

    if provisional_verdict == Verdict.CORRECT.value:
        return Verdict.CORRECT
    return Verdict.NEEDS_IMPROVEMENT
