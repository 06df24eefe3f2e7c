"""
SportSee Coach Honest Fallback
==============================

Deterministic, data-grounded reply used when the LLM answer is rejected
or the LLM is unreachable. Never calls the LLM: the same sessions and the
same `now` always give the same text.
"""

from dataclasses import dataclass
from typing import List, Iterable, Optional

from sportsee_coach.sessions import ActivitySession, parse_sessions
from sportsee_coach.statistics import (
    DataStatistics, HeartRateSummary, calculate_data_statistics, summarize_heart_rate, format_number
)
from sportsee_coach.windows import current_week_window, trailing_4_weeks_window, bucket_into_weeks


FOCUS_GENERAL = "general"
FOCUS_BPM = "bpm"

NO_DATA_REPLY = (
    "Réponse sécurisée: je n'ai pas trouvé de données d'activité sur les 4 dernières semaines. "
    "Dès que vous enregistrez une activité, je pourrai détailler vos graphiques."
)
NO_BPM_THIS_WEEK_REPLY = "Vous n'avez pas de données BPM enregistrées cette semaine."

RECENT_BPM_SESSIONS = 3


@dataclass(frozen=True)
class FallbackOptions:
    focus: str = FOCUS_GENERAL
    short: bool = False
    include_advice: bool = False


def _hr_range(session: ActivitySession) -> str:
    hr = session.heart_rate
    low = hr.min if hr and hr.min else 'N/A'
    high = hr.max if hr and hr.max else 'N/A'
    avg = hr.average if hr and hr.average else 'N/A'
    return f"{session.iso_date} : {low}-{high} BPM (moy {avg})"


class HonestFallbackGenerator:
    """Renders short or detailed factual replies from the trailing-window statistics."""

    def generate(self, activities: Iterable, now, options: Optional[FallbackOptions] = None) -> str:
        options = options or FallbackOptions()
        focus = FOCUS_BPM if options.focus == FOCUS_BPM else FOCUS_GENERAL

        sessions = parse_sessions(activities)
        stats = calculate_data_statistics(sessions, now)
        recent = trailing_4_weeks_window(now).select(sessions)
        # The trailing window excludes the current week, so read it from all sessions
        this_week = current_week_window(now).select(sessions)
        week_hr = summarize_heart_rate(this_week)

        if stats.total_activities == 0:
            if options.short and focus == FOCUS_BPM:
                if week_hr.average > 0:
                    return self._week_bpm_line(week_hr, stats)
                return NO_BPM_THIS_WEEK_REPLY
            return NO_DATA_REPLY

        if options.short:
            if focus == FOCUS_BPM:
                return self._short_bpm(recent, week_hr, stats, now)
            bpm = f", moy BPM: {stats.avg_bpm}" if stats.avg_bpm > 0 else ""
            return f"Résumé : {stats.total_activities} activité(s), {format_number(stats.total_km)} km{bpm}."

        return self._detailed(recent, this_week, stats, focus, options.include_advice)

    def _week_bpm_line(self, week_hr: HeartRateSummary, stats: DataStatistics) -> str:
        low = week_hr.min or stats.min_bpm or week_hr.average
        high = week_hr.max or stats.max_bpm or week_hr.average
        return (
            f"Vos données BPM cette semaine : {week_hr.sessions} séance(s). "
            f"Moyenne: {week_hr.average} BPM (plage {low}-{high})."
        )

    def _short_bpm(
        self,
        recent: List[ActivitySession],
        week_hr: HeartRateSummary,
        stats: DataStatistics,
        now
    ) -> str:
        if week_hr.sessions > 0 and week_hr.average > 0:
            return self._week_bpm_line(week_hr, stats)

        # Say so plainly, then give the latest week that does have heart-rate data
        window = trailing_4_weeks_window(now)
        for bucket in reversed(bucket_into_weeks(recent, window.start)):
            in_week = [s for s in recent if bucket.start <= s.date <= bucket.end]
            hr = summarize_heart_rate(in_week)
            if hr.average > 0:
                low = hr.min or hr.average
                high = hr.max or hr.average
                return (
                    f"{NO_BPM_THIS_WEEK_REPLY}\n"
                    f"Dernière semaine avec des séances (du {bucket.start.isoformat()} au {bucket.end.isoformat()}) : "
                    f"{hr.sessions} séance(s). Moyenne: {hr.average} BPM (plage {low}-{high})."
                )
        return NO_BPM_THIS_WEEK_REPLY

    def _detailed(
        self,
        recent: List[ActivitySession],
        this_week: List[ActivitySession],
        stats: DataStatistics,
        focus: str,
        include_advice: bool
    ) -> str:
        lines = [
            "## Analyse de vos activités",
            "",
            "**Résumé :**",
            f"- Total: {stats.total_activities} activité(s) enregistrée(s)",
            f"- Distance totale: {format_number(stats.total_km)}km",
        ]
        if stats.avg_bpm > 0:
            lines.append(f"- Fréquence cardiaque moyenne: {stats.avg_bpm} BPM")
            lines.append(f"- Plage: {stats.min_bpm} - {stats.max_bpm} BPM")

        if focus == FOCUS_BPM and stats.avg_bpm > 0:
            latest = sorted(recent, key=lambda s: s.date, reverse=True)[:RECENT_BPM_SESSIONS]
            lines.append("")
            lines.append("**Focus BPM :**")
            if this_week:
                lines.append(f"- Semaine en cours : {len(this_week)} séance(s)")
                for s in sorted(this_week, key=lambda s: s.date):
                    lines.append(f"  - {_hr_range(s)}")
            else:
                lines.append("- Aucun BPM enregistré cette semaine. Voici les dernières séances disponibles :")
            for s in latest:
                lines.append(f"- {_hr_range(s)}")

        if include_advice:
            lines.append("")
            lines.append("**Conseils :**")
            if stats.total_activities < 3:
                lines.append("- Augmentez progressivement la fréquence de vos séances (visez 2-3 par semaine)")
            lines.append("- Maintenez une hydratation régulière")
            lines.append("- Écoutez votre corps et variez les intensités")
            lines.append("")
            lines.append("Continuez vos efforts !")

        return "\n".join(lines)


def generate_honest_fallback(activities: Iterable, now, options: Optional[FallbackOptions] = None) -> str:
    return HonestFallbackGenerator().generate(activities, now, options)
