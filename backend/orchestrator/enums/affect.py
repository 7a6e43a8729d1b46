"""
Affect label enumeration.

Rules:
- This enum is the fixed contract between the reply classifier and
  the avatar animation state.
- No behavior, no helper methods, no side effects.
- Classification lives in orchestrator.affect.
"""

from __future__ import annotations

from enum import Enum


class Affect(str, Enum):
    """
    Animation-state tags attached to every assistant reply.

    IDLE is the neutral default and the value the avatar returns to
    when playback ends.
    """

    IDLE = "idle"
    ANALYZING = "analyzing"
    THINKING_DEEP = "thinking_deep"
    PRESENTING = "presenting"
    APPROVING = "approving"
    CONCERNED = "concerned"
    GAVEL_TAP = "gavel_tap"
