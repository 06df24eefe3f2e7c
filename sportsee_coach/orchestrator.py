"""
SportSee Coach Orchestrator
===========================

One chat turn: assemble messages, call the LLM, validate the reply
against the user's real data, substitute the honest fallback when the
reply fails validation or the LLM is unavailable, then clean up the text.

`now` comes from the caller; nothing here reads the clock.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Iterable

from sportsee_coach.sessions import parse_sessions
from sportsee_coach.llm_client import LLMClient, LLMError
from sportsee_coach.evidence_gate import EvidenceGate
from sportsee_coach.fallback import HonestFallbackGenerator, FallbackOptions, FOCUS_BPM, FOCUS_GENERAL, NO_DATA_REPLY
from sportsee_coach.context_builder import ContextBuilder
from sportsee_coach.prompts import build_messages_with_system, RUDE_MESSAGE_OVERRIDE
from sportsee_coach.profiling import might_be_medical_query


MAX_HISTORY_MESSAGES = 50
SHORT_QUESTION_MAX_WORDS = 5

LLM_FAILURE_REPLY = "Désolé, je n'ai pas pu répondre. Erreur: {error}"

# Question classifiers (French)
CHART_QUESTION_PATTERN = re.compile(r'graphique|km|bpm|distance|cardiaque|performance|activit', re.IGNORECASE)
BPM_QUESTION_PATTERN = re.compile(r'bpm|cardiaque|rythme', re.IGNORECASE)
SHORT_BPM_QUESTION_PATTERN = re.compile(
    r'^\s*(?:quels?|quelles?|as-tu|donne|quelle est)\b.*\b(?:bpm|rythme|cardiaque)', re.IGNORECASE
)
RUDE_PATTERN = re.compile(r'\b(?:tg|ta gueule|putain|merde|connard|salope)\b', re.IGNORECASE)
PLAN_REQUEST_PATTERN = re.compile(r'plan|prochaine\s+[ée]tape|que faire|exemple de plan', re.IGNORECASE)
ADVICE_REQUEST_PATTERN = re.compile(r'conseil|que faire|comment faire|plan', re.IGNORECASE)

# Reply clean-up
NEXT_STEP_MENTION = re.compile(r'prochaines?\s+étapes?', re.IGNORECASE)
NEXT_STEP_SECTION = re.compile(r'\n?\s*Prochaine étape[s\s:]*[\s\S]*$', re.IGNORECASE)
ADVICE_HEADER = re.compile(r'\*\*Conseils ?:?\*\*', re.IGNORECASE)
ADVICE_SECTION = re.compile(r'\n?\s*\*\*Conseils[\s\S]*$', re.IGNORECASE)
EMOJI_PATTERN = re.compile('[\u231A-\u32FF\u2600-\u27BF\U0001F000-\U0001FAFF\uFE0F]')


@dataclass
class ChatRequest:
    """Chat request from user (already sanitized)."""
    messages: List[Dict[str, str]]
    user_context: Optional[str] = None
    include_context: bool = True
    model: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 512


@dataclass
class ChatResponse:
    """Chat response to user."""
    reply: str
    model: Optional[str] = None
    validated: bool = False
    fallback_used: bool = False
    issues: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class QuestionTraits:
    about_charts: bool
    about_bpm: bool
    short_bpm: bool
    rude: bool
    wants_plan: bool
    wants_advice: bool


def classify_question(text: str) -> QuestionTraits:
    text = text or ""
    about_bpm = bool(BPM_QUESTION_PATTERN.search(text))
    short_bpm = about_bpm and (
        bool(SHORT_BPM_QUESTION_PATTERN.search(text))
        or len(text.split()) <= SHORT_QUESTION_MAX_WORDS
    )
    return QuestionTraits(
        about_charts=bool(CHART_QUESTION_PATTERN.search(text)),
        about_bpm=about_bpm,
        short_bpm=short_bpm,
        rude=bool(RUDE_PATTERN.search(text)),
        wants_plan=bool(PLAN_REQUEST_PATTERN.search(text)),
        wants_advice=bool(ADVICE_REQUEST_PATTERN.search(text)),
    )


def clean_reply(reply: str, traits: QuestionTraits) -> str:
    """Drop unsolicited 'Prochaine étape' / 'Conseils' sections and emojis."""
    if not traits.wants_plan and NEXT_STEP_MENTION.search(reply):
        reply = NEXT_STEP_SECTION.sub('', reply).strip()
    if not traits.wants_advice and ADVICE_HEADER.search(reply):
        reply = ADVICE_SECTION.sub('', reply).strip()
    return EMOJI_PATTERN.sub('', reply).strip()


class CoachOrchestrator:
    """
    Chat turn handler.

    The core pieces (context builder, evidence gate, fallback) are pure;
    only the LLM call may fail or time out, and both collapse to the fallback.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        evidence_gate: Optional[EvidenceGate] = None,
        fallback: Optional[HonestFallbackGenerator] = None,
        context_builder: Optional[ContextBuilder] = None
    ):
        self.llm = llm_client
        self.evidence_gate = evidence_gate or EvidenceGate()
        self.fallback = fallback or HonestFallbackGenerator()
        self.context_builder = context_builder or ContextBuilder()

    def handle_chat(
        self,
        request: ChatRequest,
        activities: Optional[Iterable],
        now,
        profile=None,
        statistics=None
    ) -> ChatResponse:
        sessions = parse_sessions(activities)
        question = self._last_user_message(request.messages)
        traits = classify_question(question)

        if might_be_medical_query(question):
            logging.info("Chat question looks medical; relying on the system prompt refusal rules")

        # Empty store result means nothing is recorded
        if traits.about_charts and not sessions and request.user_context is None:
            return ChatResponse(reply=NO_DATA_REPLY)

        messages = self._build_messages(request, sessions, traits, now, profile, statistics)

        try:
            resp = self.llm.generate(
                messages,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                model=request.model
            )
        except LLMError as e:
            logging.warning(f"LLM unavailable ({'timeout' if e.is_timeout else 'error'}): {e}")
            if sessions:
                reply = self._fallback(sessions, traits, now)
                return ChatResponse(
                    reply=clean_reply(reply, traits),
                    fallback_used=True,
                    issues=[str(e)]
                )
            return ChatResponse(reply=LLM_FAILURE_REPLY.format(error=e), issues=[str(e)])

        reply = resp.text
        validated = False
        fallback_used = False
        issues: List[str] = []

        if traits.about_charts and sessions:
            verdict = self.evidence_gate.validate(reply, sessions, now)
            validated = verdict.valid
            if not verdict.valid:
                logging.warning(f"Replacing LLM reply with honest fallback: {verdict.issues}")
                issues = verdict.issues
                reply = self._fallback(sessions, traits, now)
                fallback_used = True

        return ChatResponse(
            reply=clean_reply(reply, traits),
            model=resp.model,
            validated=validated,
            fallback_used=fallback_used,
            issues=issues
        )

    def _build_messages(self, request, sessions, traits, now, profile, statistics) -> List[Dict[str, str]]:
        history = list(request.messages)[-MAX_HISTORY_MESSAGES:]

        context = request.user_context
        if context is None and request.include_context:
            context = self.context_builder.build(profile, statistics, sessions, now)

        messages = build_messages_with_system(history, context)
        if traits.rude:
            messages.append({'role': 'system', 'content': RUDE_MESSAGE_OVERRIDE})
        return messages

    def _fallback(self, sessions, traits: QuestionTraits, now) -> str:
        return self.fallback.generate(sessions, now, FallbackOptions(
            focus=FOCUS_BPM if traits.about_bpm else FOCUS_GENERAL,
            short=traits.short_bpm,
            include_advice=traits.wants_advice,
        ))

    @staticmethod
    def _last_user_message(messages: List[Dict[str, str]]) -> str:
        for message in reversed(messages or []):
            if message.get('role') == 'user':
                return message.get('content', '')
        return ''
