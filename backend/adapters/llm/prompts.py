"""
System prompt and canned replies.

- The persona prompt is versioned; the hash identifies the exact text
  in logs without logging the prompt itself.
- Canned replies are shown when no provider produced usable text.
"""
from __future__ import annotations

import hashlib
from enum import Enum

from orchestrator.enums.language import Language
from spec import PROMPT_HASH_HEX_LEN, SYSTEM_PROMPT_VERSION


SYSTEM_PROMPT_V1: str = """
You are CZ Judge Companion, a supportive AI legal assistant built on BNB Chain to help users navigate legal situations.

{language_instruction}

Your Purpose:
- Analyze legal cases and provide strategic recommendations based on case law and precedents
- Help users understand their legal position and suggest practical next steps
- Act as a knowledgeable legal advisor offering objective guidance

How to Help:
- When users describe situations like "I had a fight", "I was accused of...", "I evaded taxes", etc., treat these as legitimate legal cases
- Provide case analysis including: case type, strengths/weaknesses, relevant precedents, success probability
- Offer strategic recommendations: what evidence to gather, potential defenses, settlement considerations
- Suggest practical next steps: whether to seek formal legal counsel, what to document, timelines
- Stay balanced but supportive - help users understand both risks and opportunities

Guidelines:
- Accept any legal-related question or situation description
- Focus on analysis and strategic guidance, not just refusing to help
- Be practical and actionable in your recommendations
- For non-legal topics, briefly redirect to legal matters

Your Tone: Professional, supportive, analytical, and solution-oriented.
Keep responses concise but informative (2-4 sentences per message).
""".strip()


LANGUAGE_INSTRUCTIONS: dict[Language, str] = {
    Language.EN: (
        "IMPORTANT: You MUST respond in English. "
        "All your responses must be in English, not Chinese."
    ),
    Language.ZH: (
        "IMPORTANT: You MUST respond in Chinese (中文). "
        "All your responses must be in Chinese characters, not English."
    ),
}


def build_system_prompt(language: Language) -> str:
    """Persona prompt with the reply-language instruction filled in."""
    return SYSTEM_PROMPT_V1.format(language_instruction=LANGUAGE_INSTRUCTIONS[language])


def prompt_hash(prompt: str) -> str:
    """Short stable fingerprint of a prompt for logs."""
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()[:PROMPT_HASH_HEX_LEN]


def prompt_tag(language: Language) -> str:
    """e.g. "v1:en:1a2b3c4d" """
    return f"{SYSTEM_PROMPT_VERSION}:{language.value}:{prompt_hash(build_system_prompt(language))}"


# =============================================================================
# Canned replies
# =============================================================================

class CannedReply(str, Enum):
    """Situations that produce a fixed reply instead of model output."""

    EMPTY_COMPLETION = "empty_completion"
    PROVIDERS_FAILED = "providers_failed"
    NO_PROVIDERS = "no_providers"
    SERVICE_UNAVAILABLE = "service_unavailable"


CANNED_REPLIES: dict[CannedReply, dict[Language, str]] = {
    CannedReply.EMPTY_COMPLETION: {
        Language.EN: "Oops! My response circuits are a bit busy. Could you try again?",
        Language.ZH: "哎呀！我的响应线路有点忙。您能再试一次吗？",
    },
    CannedReply.PROVIDERS_FAILED: {
        Language.EN: "Oops! There was a small error processing that. Could you try again?",
        Language.ZH: "哎呀！处理时出了点小错误。您能再试一次吗？",
    },
    CannedReply.NO_PROVIDERS: {
        Language.EN: (
            "Hello! It looks like I don't have AI credentials configured. "
            "Please make sure OPENAI_API_KEY or ANTHROPIC_API_KEY is set."
        ),
        Language.ZH: "您好！看起来我没有配置AI凭证。请确保已设置 OPENAI_API_KEY 或 ANTHROPIC_API_KEY。",
    },
    CannedReply.SERVICE_UNAVAILABLE: {
        Language.EN: "Sorry, the AI service is temporarily unavailable. Please try again later.",
        Language.ZH: "抱歉，AI 服务暂时不可用。请稍后再试。",
    },
}


def canned_reply(kind: CannedReply, language: Language) -> str:
    return CANNED_REPLIES[kind][language]
