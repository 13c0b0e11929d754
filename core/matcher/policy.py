"""
Threshold policy for automatic matches.

Pure decisions only; MatchLifecycleManager applies them.
"""

from enum import Enum

from core.enums import PropertyMatchStatus


class RescoreDecision(str, Enum):
    UNCHANGED = "unchanged"
    UPDATE = "update"
    REMOVE = "remove"
    KEEP_AND_UPDATE = "keep_and_update"   # below threshold but the family engaged


def should_create(score: int, min_score: int) -> bool:
    return score >= min_score


def is_high_score(score: int, threshold: int) -> bool:
    return score >= threshold


def decide_rescore(
    current_score: int,
    new_score: int,
    status: PropertyMatchStatus,
    min_score: int,
) -> RescoreDecision:
    """
    What to do with an existing match after its score is recomputed.

    A match that dropped below min_score is removed only while it is still
    MatchIdentified; once the family has acted on it the row stays and only
    the score moves.
    """
    if new_score >= min_score:
        return RescoreDecision.UNCHANGED if new_score == current_score else RescoreDecision.UPDATE
    if status == PropertyMatchStatus.MATCH_IDENTIFIED:
        return RescoreDecision.REMOVE
    return RescoreDecision.KEEP_AND_UPDATE
