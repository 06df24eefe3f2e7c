"""
SportSee Coach Claim Extraction
===============================

Regex extraction of the quantities an LLM reply asserts. One named function
per rule so each can be checked against literal strings.

The phrase detectors (no BPM this week, "dernières séances", refusals) match
the French wording the coach prompt asks for. If the prompt wording changes,
they silently stop matching.
"""

import re
from typing import List


ACTIVITY_COUNT_PATTERN = re.compile(r'(?<![\d.,])(\d+)\s*(?:activit[ée]s?|s[ée]ances?)', re.IGNORECASE)
KM_PATTERN = re.compile(r'(\d+(?:[.,]\d+)?)\s*km\b', re.IGNORECASE)
BPM_PATTERN = re.compile(r'(\d+)\s*(?:bpm|beats?|pulsations?)', re.IGNORECASE)
ISO_DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}')
NUMBER_PATTERN = re.compile(r'\d+(?:[.,]\d+)?')

DASH_BPM_PATTERN = re.compile(r'-\s*\d+\s*BPM', re.IGNORECASE)
BPM_WORD_PATTERN = re.compile(r'bpm', re.IGNORECASE)
ACTIVITY_WORD_PATTERN = re.compile(r'activit[eé]', re.IGNORECASE)
TOTAL_WORD_PATTERN = re.compile(r'total', re.IGNORECASE)
NO_BPM_THIS_WEEK_PATTERN = re.compile(r'aucun\s+.*bpm\s+.*semaine', re.IGNORECASE)
RECENT_SESSIONS_PATTERN = re.compile(r'derni[aè]res\s+s[eé]ances', re.IGNORECASE)
REFUSAL_PATTERN = re.compile(r'd[ée]sol[ée]|coach|sp[ée]cialis', re.IGNORECASE)

REFUSAL_MAX_CHARS = 300


def _to_float(token: str) -> float:
    return float(token.replace(',', '.'))


def claimed_activity_count(text: str) -> int:
    """Largest integer directly followed by activité(s)/séance(s); 0 if none."""
    counts = [int(m) for m in ACTIVITY_COUNT_PATTERN.findall(text or '')]
    return max(counts) if counts else 0


def claimed_km(text: str) -> float:
    """Largest decimal followed by 'km' (comma or dot separator); 0.0 if none."""
    values = [_to_float(m) for m in KM_PATTERN.findall(text or '')]
    return max(values) if values else 0.0


def claimed_bpms(text: str) -> List[int]:
    """Every integer followed by bpm/beats/pulsations, in order."""
    return [int(m) for m in BPM_PATTERN.findall(text or '')]


def mentioned_dates(text: str) -> List[str]:
    """ISO YYYY-MM-DD substrings, in order."""
    return ISO_DATE_PATTERN.findall(text or '')


def extract_numbers(text: str) -> List[float]:
    """Every number in the text (decimals included)."""
    return [_to_float(m) for m in NUMBER_PATTERN.findall(text or '')]


def distinct_number_count(text: str) -> int:
    return len(set(extract_numbers(text)))


def mentions_bpm(text: str) -> bool:
    return bool(BPM_WORD_PATTERN.search(text or ''))


def has_dash_bpm(text: str) -> bool:
    """'- 150 BPM' style list items."""
    return bool(DASH_BPM_PATTERN.search(text or ''))


def mentions_activity_word(text: str) -> bool:
    return bool(ACTIVITY_WORD_PATTERN.search(text or ''))


def mentions_total(text: str) -> bool:
    return bool(TOTAL_WORD_PATTERN.search(text or ''))


def states_no_bpm_this_week(text: str) -> bool:
    """'Aucun BPM enregistré cette semaine' and close variants."""
    return bool(NO_BPM_THIS_WEEK_PATTERN.search(text or ''))


def lists_recent_sessions(text: str) -> bool:
    return bool(RECENT_SESSIONS_PATTERN.search(text or ''))


def looks_like_refusal(text: str) -> bool:
    """Short off-topic refusal ('Désolé, je suis un coach sportif...')."""
    text = text or ''
    return len(text) < REFUSAL_MAX_CHARS and bool(REFUSAL_PATTERN.search(text))
