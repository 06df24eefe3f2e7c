"""
SportSee Coach Profiling Heuristics
===================================

Deterministic, table-driven classifiers:

- estimate_user_level: training level from session volume (first matching rule wins)
- detect_user_profile: conversation register from keyword counts
- might_be_medical_query: keyword flag, used for logging only

Thresholds live in the tables below; the control flow never hard-codes them.
"""

from typing import List, Dict, Iterable, Union

from sportsee_coach.sessions import parse_sessions


LEVEL_BEGINNER = "beginner"
LEVEL_INTERMEDIATE = "intermediate"
LEVEL_ADVANCED = "advanced"

LEVEL_LABELS_FR = {
    LEVEL_BEGINNER: "débutant",
    LEVEL_INTERMEDIATE: "intermédiaire",
    LEVEL_ADVANCED: "avancé",
}

MIN_SESSIONS_FOR_LEVEL = 5
FREQUENCY_PERIOD_DAYS = 30

# Ordered (label, strict lower bounds); every bound must be exceeded.
LEVEL_RULES = [
    (LEVEL_ADVANCED, {'avg_distance_km': 10, 'avg_duration_min': 60, 'frequency': 3}),
    (LEVEL_INTERMEDIATE, {'avg_distance_km': 5, 'avg_duration_min': 30, 'frequency': 2}),
]


def estimate_user_level(activities: Iterable) -> str:
    sessions = parse_sessions(activities)
    if len(sessions) < MIN_SESSIONS_FOR_LEVEL:
        return LEVEL_BEGINNER

    metrics = {
        'avg_distance_km': sum(s.distance_km for s in sessions) / len(sessions),
        'avg_duration_min': sum(s.duration_min for s in sessions) / len(sessions),
        'frequency': len(sessions) / FREQUENCY_PERIOD_DAYS,
    }
    for label, bounds in LEVEL_RULES:
        if all(metrics[name] > bound for name, bound in bounds.items()):
            return label
    return LEVEL_BEGINNER


# ==============================================================================
# CONVERSATION PROFILE
# ==============================================================================

PROFILE_BEGINNER = "BEGINNER"
PROFILE_INTERMEDIATE = "INTERMEDIATE"
PROFILE_EXPERT = "EXPERT"

PROFILE_MIN_MATCHES = 2

# Checked in this order; first profile reaching PROFILE_MIN_MATCHES wins.
PROFILE_KEYWORDS = [
    (PROFILE_EXPERT, [
        'seuil', 'anaérobie', 'anaerobique', 'vo2', "test d'effort", 'fractionnaire',
        'lactate', 'threshold', 'trail', 'ultramarathon', 'fartlek', 'interval',
        'marathon', 'semi-marathon', 'performance', 'compétition',
        'entraînement spécifique', 'ratio', 'aerobie',
    ]),
    (PROFILE_BEGINNER, [
        'commencer', 'débuter', 'débutant', 'première', 'jamais', 'reprendre',
        'expérience', 'nul', 'pas sportif', 'ne sais pas', 'comment on fait',
        'aucune idée', 'tout nouveau', 'basique',
    ]),
]

MEDICAL_KEYWORDS = [
    'douleur', 'mal', 'blessure', 'médecin', 'docteur', 'diagnostic', 'symptôme',
    'maladie', 'infection', 'pharmacie', 'médicament', 'opération', 'chirurgie',
    'allergie', 'fracture', 'hernie', 'tendinite', 'arthrose', 'sciatique',
]


def _message_text(messages: Iterable[Union[str, Dict[str, str]]]) -> str:
    parts = []
    for message in messages or []:
        if isinstance(message, str):
            parts.append(message)
        elif message and message.get('content'):
            parts.append(message['content'])
    return " ".join(parts).lower()


def detect_user_profile(messages: List[Union[str, Dict[str, str]]]) -> str:
    """Classify the user's register from their messages; INTERMEDIATE when unsure."""
    text = _message_text(messages)
    if not text:
        return PROFILE_INTERMEDIATE

    for profile, keywords in PROFILE_KEYWORDS:
        score = sum(1 for keyword in keywords if keyword in text)
        if score >= PROFILE_MIN_MATCHES:
            return profile
    return PROFILE_INTERMEDIATE


def might_be_medical_query(content: str) -> bool:
    if not content or not isinstance(content, str):
        return False
    lowered = content.lower()
    return any(keyword in lowered for keyword in MEDICAL_KEYWORDS)
