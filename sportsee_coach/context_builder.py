"""
SportSee Coach Context Builder
==============================

Builds the user-data block sent to the LLM as grounding context.
NO LLM calls - pure Python logic.

Key Requirements:
1. Never empty: missing data is stated explicitly, so the model can't guess
2. Sections in a fixed order: date, profile, weekly km, current-week BPM,
   recent sessions, estimated level, closing instruction
3. Bounded to MAX_CONTEXT_CHARS; the header and the closing instruction survive truncation
4. Absent profile fields are omitted, never rendered as 0
"""

from datetime import date, datetime, timedelta
from typing import Optional, List, Iterable

from sportsee_coach.sessions import (
    ActivitySession, UserProfile, NutritionStatistics,
    parse_sessions, parse_profile, parse_statistics
)
from sportsee_coach.windows import current_week_window, trailing_4_weeks_window, bucket_into_weeks, round_km
from sportsee_coach.statistics import round_half_up, format_number
from sportsee_coach.profiling import estimate_user_level, LEVEL_LABELS_FR


# The upstream prompt treats these two lines as authoritative; keep them verbatim.
CONTEXT_HEADER = "[DONNÉES UTILISATEUR SPORTSEE - À UTILISER IMPÉRATIVEMENT]"
CONTEXT_INSTRUCTION = "⚠️ INSTRUCTION: Utilise UNIQUEMENT ces données pour répondre. Ne invente rien."

NO_ACTIVITY_TEXT = "⚠️ Données d'activité: aucune donnée d'activité disponible pour le moment."

MAX_CONTEXT_CHARS = 2000
MAX_RECENT_SESSIONS = 7

DAY_NAMES_FR = ['Lundi', 'Mardi', 'Mercredi', 'Jeudi', 'Vendredi', 'Samedi', 'Dimanche']


def _as_date(now) -> date:
    return now.date() if isinstance(now, datetime) else now


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


class ContextBuilder:
    """
    Builds the bounded context block from profile, nutrition statistics and sessions.

    Never raises on missing input: None profile/statistics and empty
    activities degrade to omitted sections.
    """

    def __init__(self, max_chars: int = MAX_CONTEXT_CHARS, max_recent: int = MAX_RECENT_SESSIONS):
        self.max_chars = max_chars
        self.max_recent = max_recent

    def build(
        self,
        profile,
        statistics,
        activities: Optional[Iterable],
        now
    ) -> str:
        today = _as_date(now)
        sessions = parse_sessions(activities)

        sections = []

        profile_text = self._build_profile(parse_profile(profile), parse_statistics(statistics))
        if profile_text:
            sections.append(profile_text)

        recent_limit = self.max_recent
        if sessions:
            sections.append(self._build_weekly_km(sessions, today))
            sections.append(self._build_week_heart_rate(sessions, today))
            recent_index = len(sections)
            sections.append(self._build_recent_sessions(sessions, today, recent_limit))
            sections.append(f"Niveau estimé: {LEVEL_LABELS_FR[estimate_user_level(sessions)]}")

            # Shrink the session listing first when over budget
            while len(self._assemble(today, sections)) > self.max_chars and recent_limit > 1:
                recent_limit -= 1
                sections[recent_index] = self._build_recent_sessions(sessions, today, recent_limit)
        else:
            sections.append(NO_ACTIVITY_TEXT)

        context = self._assemble(today, sections)
        if len(context) > self.max_chars:
            context = self._truncate(today, sections)
        return context

    def _assemble(self, today: date, sections: List[str]) -> str:
        return "\n".join([
            CONTEXT_HEADER,
            f"📅 DATE ACTUELLE: {today.isoformat()}",
            "\n\n".join(sections),
            "",
            CONTEXT_INSTRUCTION,
        ])

    def _truncate(self, today: date, sections: List[str]) -> str:
        """Cut the body so that header and instruction always fit."""
        head = f"{CONTEXT_HEADER}\n📅 DATE ACTUELLE: {today.isoformat()}\n"
        tail = f"\n\n{CONTEXT_INSTRUCTION}"
        budget = max(self.max_chars - len(head) - len(tail), 0)
        body = "\n\n".join(sections)[:budget]
        # Don't leave a half line
        if "\n" in body:
            body = body[:body.rindex("\n")]
        return head + body + tail

    def _build_profile(
        self,
        profile: Optional[UserProfile],
        statistics: Optional[NutritionStatistics]
    ) -> Optional[str]:
        parts = []
        if profile and profile.first_name:
            parts.append(f"Prénom: {profile.first_name}")
        if statistics:
            if statistics.calorie_count:
                parts.append(f"Calories brûlées: {statistics.calorie_count} kcal")
            if statistics.protein_count:
                parts.append(f"Protéines: {statistics.protein_count}g")
            if statistics.carbohydrate_count:
                parts.append(f"Glucides: {statistics.carbohydrate_count}g")
            if statistics.lipid_count:
                parts.append(f"Lipides: {statistics.lipid_count}g")
        if not parts:
            return None
        return "Profil:\n" + "\n".join(parts)

    def _build_weekly_km(self, sessions: List[ActivitySession], today: date) -> str:
        window = trailing_4_weeks_window(today)
        buckets = bucket_into_weeks(window.select(sessions), window.start)

        lines = [
            "📊 DONNÉES DES GRAPHIQUES:",
            "",
            f"🏃 Kilométrage - 4 dernières semaines ({window.start.isoformat()} à {window.end.isoformat()}):",
        ]
        for bucket in buckets:
            lines.append(
                f"  Semaine {bucket.index}: {format_number(bucket.distance_km)}km "
                f"({_plural(bucket.count, 'séance')})"
            )
        total = round_km(sum(b.distance_km for b in buckets))
        lines.append(f"  Total: {total:.1f}km | Moyenne: {total / len(buckets):.1f}km/semaine")
        return "\n".join(lines)

    def _build_week_heart_rate(self, sessions: List[ActivitySession], today: date) -> str:
        window = current_week_window(today)
        lines = [f"❤️ Fréquence cardiaque - Semaine courante ({window.start.isoformat()} à {window.end.isoformat()}):"]

        day_averages = []
        has_sessions = False
        for offset in range(7):
            day = window.start + timedelta(days=offset)
            if day > today:
                break
            on_day = [s for s in sessions if s.date == day]
            if not on_day:
                continue
            has_sessions = True
            rates = [s.heart_rate for s in on_day if s.avg_bpm > 0]
            if not rates:
                lines.append(f"  {DAY_NAMES_FR[offset]} ({day.isoformat()}): BPM non enregistré")
                continue
            # Several sessions on one day: widest range, mean of averages
            average = round_half_up(sum(hr.average for hr in rates) / len(rates))
            lows = [hr.min for hr in rates if hr.min > 0]
            highs = [hr.max for hr in rates if hr.max > 0]
            day_averages.append(average)
            lines.append(
                f"  {DAY_NAMES_FR[offset]} ({day.isoformat()}): "
                f"Min={min(lows) if lows else 'N/A'} Max={max(highs) if highs else 'N/A'} Avg={average} bpm"
            )

        if day_averages:
            lines.append(f"  Moyenne semaine: {round_half_up(sum(day_averages) / len(day_averages))} bpm")
        elif has_sessions:
            lines.append("  Aucun BPM enregistré cette semaine")
        else:
            lines.append("  Aucune activité cette semaine")
        return "\n".join(lines)

    def _build_recent_sessions(self, sessions: List[ActivitySession], today: date, limit: int) -> str:
        past = sorted((s for s in sessions if s.date <= today), key=lambda s: s.date)
        if not past:
            return "Activités récentes: aucune activité passée disponible."

        lines = ["Activités récentes:"]
        for s in past[-limit:]:
            bpm = f"{s.avg_bpm} BPM" if s.avg_bpm else "BPM non enregistré"
            lines.append(f"{s.iso_date}: {format_number(s.distance_km)}km, {s.duration_min}min, {bpm}")
        return "\n".join(lines)


def build_user_context(profile, statistics, activities, now) -> str:
    """Convenience wrapper around ContextBuilder().build()."""
    return ContextBuilder().build(profile, statistics, activities, now)
