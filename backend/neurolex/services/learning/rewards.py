"""
XP rewards and levels.

Every graded study review earns XP, failed recalls included, whether the
grade came from the learner or from the AI evaluation.
"""

from neurolex.config.settings import settings


def review_xp(grade: int) -> int:
    """XP for one graded study review."""
    return 10 + 2 * grade


def level_for_xp(xp: int, xp_per_level: int = None) -> int:
    """Level reached with `xp` total experience (levels start at 1)."""
    per_level = xp_per_level or settings.XP_PER_LEVEL
    return max(xp, 0) // per_level + 1
