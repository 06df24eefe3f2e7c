"""
SportSee Coach - Anti-hallucination core of the AI coach
========================================================

Grounds every LLM answer in the user's real SportSee activity data:

- Temporal windowing (current week, trailing 4 weeks)
- Bounded context block injected into the system prompt
- Evidence gate that rejects invented numbers
- Deterministic honest fallback built only from real data

Key Design Principles:
1. The backend computes every number - the LLM only explains
2. "now" is always passed in; no hidden clock reads in the core
3. Context stays under 2000 characters
"""

from sportsee_coach.sessions import ActivitySession, HeartRate, parse_sessions
from sportsee_coach.statistics import calculate_data_statistics
from sportsee_coach.context_builder import ContextBuilder, build_user_context
from sportsee_coach.evidence_gate import EvidenceGate, validate_response
from sportsee_coach.fallback import HonestFallbackGenerator, generate_honest_fallback
from sportsee_coach.orchestrator import CoachOrchestrator
from sportsee_coach.llm_client import LLMClient, MistralClient, GeminiClient

__all__ = [
    'ActivitySession',
    'HeartRate',
    'parse_sessions',
    'calculate_data_statistics',
    'ContextBuilder',
    'build_user_context',
    'EvidenceGate',
    'validate_response',
    'HonestFallbackGenerator',
    'generate_honest_fallback',
    'CoachOrchestrator',
    'LLMClient',
    'MistralClient',
    'GeminiClient',
]
