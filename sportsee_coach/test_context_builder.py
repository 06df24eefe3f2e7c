"""
Context Builder Tests
=====================
"""

import re
from datetime import date, timedelta

from sportsee_coach.sessions import ActivitySession, HeartRate, UserProfile, NutritionStatistics
from sportsee_coach.context_builder import (
    ContextBuilder, build_user_context, CONTEXT_HEADER, CONTEXT_INSTRUCTION, NO_ACTIVITY_TEXT, MAX_CONTEXT_CHARS
)


NOW = date(2025, 11, 24)  # Monday

PROFILE = UserProfile(first_name="Sophie", last_name="Martin")


def _session(day, km, bpm=None, low=0, high=0):
    hr = HeartRate(min=low, max=high, average=bpm) if bpm else None
    return ActivitySession(date=day, distance_km=km, duration_min=30, heart_rate=hr)


SESSIONS = [
    _session(date(2025, 11, 3), 4.0, 148, 120, 170),
    _session(date(2025, 11, 10), 4.1),
    _session(date(2025, 11, 17), 4.2, 152, 130, 175),
    _session(date(2025, 11, 25), 5.0, 155, 130, 170),
]


class TestEmptyData:

    def test_states_absence_without_figures(self):
        context = build_user_context(None, None, [], NOW)

        assert context.startswith(CONTEXT_HEADER)
        assert "DATE ACTUELLE: 2025-11-24" in context
        assert NO_ACTIVITY_TEXT in context
        assert context.endswith(CONTEXT_INSTRUCTION)
        assert not re.search(r'\d+(?:[.,]\d+)?\s*km', context, re.IGNORECASE)
        assert not re.search(r'\d+\s*bpm', context, re.IGNORECASE)


class TestSections:

    def test_fixed_order(self):
        context = build_user_context(PROFILE, NutritionStatistics(calorie_count=1930), SESSIONS, NOW)
        markers = [
            CONTEXT_HEADER,
            "DATE ACTUELLE:",
            "Profil:",
            "DONNÉES DES GRAPHIQUES:",
            "Fréquence cardiaque - Semaine courante",
            "Activités récentes:",
            "Niveau estimé:",
            CONTEXT_INSTRUCTION,
        ]
        positions = [context.index(marker) for marker in markers]
        assert positions == sorted(positions)

    def test_absent_fields_are_omitted(self):
        context = build_user_context(PROFILE, NutritionStatistics(calorie_count=1930), SESSIONS, NOW)
        assert "Prénom: Sophie" in context
        assert "Calories brûlées: 1930 kcal" in context
        assert "Protéines" not in context
        assert "Lipides" not in context

    def test_weekly_kilometres(self):
        context = build_user_context(None, None, SESSIONS, NOW)
        assert "Kilométrage - 4 dernières semaines (2025-10-27 à 2025-11-23):" in context
        assert "  Semaine 1: 0km (0 séance)" in context
        assert "  Semaine 2: 4km (1 séance)" in context
        assert "  Total: 12.3km" in context

    def test_current_week_heart_rate(self):
        context = build_user_context(None, None, SESSIONS, date(2025, 11, 26))
        assert "  Mardi (2025-11-25): Min=130 Max=170 Avg=155 bpm" in context
        assert "  Moyenne semaine: 155 bpm" in context

    def test_empty_current_week(self):
        context = build_user_context(None, None, SESSIONS[:3], NOW)
        assert "  Aucune activité cette semaine" in context

    def test_sessions_without_bpm_are_still_activity(self):
        context = build_user_context(None, None, [_session(date(2025, 11, 24), 6.0)], date(2025, 11, 26))
        assert "  Lundi (2025-11-24): BPM non enregistré" in context
        assert "  Aucun BPM enregistré cette semaine" in context
        assert "Aucune activité cette semaine" not in context

    def test_future_sessions_left_out_of_heart_rate(self):
        """A session later this week is not reported, as in the recent-sessions list."""
        context = build_user_context(None, None, SESSIONS, NOW)
        assert "Mardi (2025-11-25)" not in context
        assert "  Aucune activité cette semaine" in context

    def test_recent_sessions_exclude_future(self):
        context = build_user_context(None, None, SESSIONS, NOW)
        assert "2025-11-17: 4.2km, 30min, 152 BPM" in context
        assert "2025-11-10: 4.1km, 30min, BPM non enregistré" in context
        assert "2025-11-25: 5km" not in context

    def test_level_label(self):
        assert "Niveau estimé: débutant" in build_user_context(None, None, SESSIONS, NOW)


class TestBounds:

    def test_large_history_stays_bounded(self):
        sessions = [
            _session(NOW - timedelta(days=i), 10.0 + i / 10, 140 + i % 20, 100, 190)
            for i in range(300)
        ]
        context = build_user_context(PROFILE, None, sessions, NOW)

        assert len(context) <= MAX_CONTEXT_CHARS
        assert context.startswith(CONTEXT_HEADER)
        assert context.endswith(CONTEXT_INSTRUCTION)

    def test_tight_budget_truncates_body(self):
        context = ContextBuilder(max_chars=300).build(PROFILE, None, SESSIONS, NOW)
        assert len(context) <= 300
        assert context.startswith(CONTEXT_HEADER)
        assert context.endswith(CONTEXT_INSTRUCTION)
