"""
Reply language enumeration.
"""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Languages the assistant can be asked to reply in."""

    EN = "en"
    ZH = "zh"
