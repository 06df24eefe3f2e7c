"""
SportSee Coach Evidence Gate
============================

Guardrail against hallucinated numbers in LLM replies.

Extracts the quantities a reply asserts (activity count, km, BPM, dates)
and checks them against statistics recomputed over the trailing 4 complete
weeks, the period the dashboard charts show.

A false alarm only costs a fallback reply; a missed hallucination shows
the user a wrong number. Tolerances are tuned for the former.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Iterable, Optional

from sportsee_coach.sessions import ActivitySession, parse_sessions
from sportsee_coach.statistics import DataStatistics, calculate_data_statistics, format_number
from sportsee_coach import extraction


# ==============================================================================
# TOLERANCES
# ==============================================================================
COUNT_TOLERANCE_RATIO = 0.5         # claimed activity count vs real total
KM_TOLERANCE_RATIO = 0.3            # claimed km vs real total km
KM_GROSS_CLAIM = 10                 # km claim that is always suspicious...
KM_GROSS_REAL_MAX = 5               # ...when the real total is below this
BPM_TOLERANCE = 20                  # absolute, vs real average BPM
MAX_NUMBERS_FOR_SPARSE_DATA = 4     # this many distinct numbers...
SPARSE_DATA_ACTIVITIES = 2          # ...for at most this many sessions
FORMAT_MIN_CHARS = 100              # longer single-line replies need structure


@dataclass
class ValidationVerdict:
    valid: bool
    issues: List[str] = field(default_factory=list)
    stats: DataStatistics = field(default_factory=DataStatistics)
    exemption: Optional[str] = None


class EvidenceGate:
    """
    Validates an LLM reply against the user's real activity data.

    Usage:
        verdict = EvidenceGate().validate(reply, activities, now)
        if not verdict.valid: ...
    """

    def validate(self, reply: str, activities: Iterable, now) -> ValidationVerdict:
        reply = reply or ""
        sessions = parse_sessions(activities)
        stats = calculate_data_statistics(sessions, now)

        exemption = self._exemption(reply, sessions)
        if exemption:
            return ValidationVerdict(valid=True, issues=[], stats=stats, exemption=exemption)

        issues = self._check(reply, sessions, stats)
        if issues:
            logging.warning(f"Evidence gate rejected reply: {issues}")
        return ValidationVerdict(valid=not issues, issues=issues, stats=stats)

    def _exemption(self, reply: str, sessions: List[ActivitySession]) -> Optional[str]:
        """
        Detailed day-by-day BPM answers are the wanted behaviour; the aggregate
        checks below would reject them, so they are accepted up front.
        """
        dates = extraction.mentioned_dates(reply)
        bpms = extraction.claimed_bpms(reply)
        real_dates = {s.iso_date for s in sessions}

        if (
            extraction.mentions_bpm(reply)
            and dates
            and (bpms or extraction.has_dash_bpm(reply))
            and any(d in real_dates for d in dates)
        ):
            return "bpm_by_date"
        if extraction.states_no_bpm_this_week(reply):
            return "no_bpm_this_week"
        if extraction.lists_recent_sessions(reply) and dates and bpms:
            return "recent_sessions"
        return None

    def _check(self, reply: str, sessions: List[ActivitySession], stats: DataStatistics) -> List[str]:
        issues = []
        count = extraction.claimed_activity_count(reply)
        km = extraction.claimed_km(reply)

        # Nothing recorded: any count or distance is invented
        if stats.total_activities == 0:
            if count > 0:
                issues.append(
                    f"L'IA invente {count} activité(s) alors qu'il n'y en a aucune sur les 4 dernières semaines"
                )
            if km > 0:
                issues.append(
                    f"L'IA invente {format_number(km)}km alors que l'utilisateur n'a pas de données"
                )
            return issues

        if count > 0:
            if abs(count - stats.total_activities) > stats.total_activities * COUNT_TOLERANCE_RATIO:
                issues.append(
                    f"L'IA dit {count} activité(s) mais le total réel est {stats.total_activities}"
                )
        elif extraction.mentions_activity_word(reply) and extraction.mentions_total(reply):
            issues.append(
                "L'IA évoque un total d'activités sans indiquer le nombre ou sans l'aligner avec les données réelles"
            )

        # A single session's distance is a legitimate figure to quote
        matches_session = any(math.isclose(s.distance_km, km) for s in sessions)
        if km > 0 and stats.total_km > 0 and not matches_session:
            if abs(km - stats.total_km) > stats.total_km * KM_TOLERANCE_RATIO:
                issues.append(
                    f"L'IA dit {format_number(km)}km mais le total réel est {format_number(stats.total_km)}km"
                )

        if km > KM_GROSS_CLAIM and stats.total_km < KM_GROSS_REAL_MAX:
            issues.append(
                f"HALLUCINATION KM: L'IA dit {format_number(km)}km "
                f"mais le total réel est seulement {format_number(stats.total_km)}km"
            )

        if (
            extraction.distinct_number_count(reply) >= MAX_NUMBERS_FOR_SPARSE_DATA
            and stats.total_activities <= SPARSE_DATA_ACTIVITIES
            and not extraction.mentions_bpm(reply)
        ):
            issues.append("Trop de chiffres pour si peu de séances réelles : suspicion d'hallucination")

        if stats.avg_bpm > 0:
            for bpm in extraction.claimed_bpms(reply):
                if abs(bpm - stats.avg_bpm) > BPM_TOLERANCE:
                    issues.append(
                        f"L'IA mentionne {bpm} BPM, très éloigné de la moyenne réelle ({stats.avg_bpm} BPM)"
                    )

        if stats.total_activities == 1 and count > 1:
            issues.append(
                f"HALLUCINATION: L'IA dit {count} activités mais l'utilisateur n'en a qu'une"
            )

        if (
            len(reply) > FORMAT_MIN_CHARS
            and '\n' not in reply
            and ':' not in reply
            and not extraction.looks_like_refusal(reply)
        ):
            issues.append("La réponse n'est pas bien formatée")

        return issues


def validate_response(reply: str, activities: Iterable, now) -> ValidationVerdict:
    """Module-level shortcut for EvidenceGate().validate()."""
    return EvidenceGate().validate(reply, activities, now)
