"""
SportSee Coach HTTP Activity Store
==================================

ActivityStore backed by the SportSee backend API:

- GET /api/user-info                                 -> {profile, statistics}
- GET /api/user-activity?startWeek=...&endWeek=...   -> [session, ...]

The user is identified by the Bearer token; `user_id` is accepted for
interface compatibility only.
"""

import logging
from datetime import date
from typing import Optional, List, Dict, Any

import requests

from sportsee_coach.sessions import (
    ActivitySession, UserProfile, NutritionStatistics,
    parse_sessions, parse_profile, parse_statistics
)


REQUEST_TIMEOUT_SECONDS = 10

ENDPOINTS = {
    'user_info': '/api/user-info',
    'user_activity': '/api/user-activity',
}


class ActivityStoreError(Exception):
    """The SportSee backend could not be reached or answered with an error."""


class SportSeeApiStore:
    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self._user_info: Optional[Dict[str, Any]] = None

    def _get(self, endpoint: str, params: Optional[Dict[str, str]] = None):
        url = f"{self.base_url}{ENDPOINTS[endpoint]}"
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f"Bearer {self.token}",
        }
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise ActivityStoreError("Le serveur met trop de temps à répondre.") from e
        except requests.RequestException as e:
            raise ActivityStoreError(f"Impossible de se connecter au serveur {self.base_url}") from e

        if not resp.ok:
            logging.error(f"SportSee API {endpoint} failed: {resp.status_code} {resp.text[:200]}")
            raise ActivityStoreError(f"Erreur lors de la communication avec le serveur ({resp.status_code})")
        try:
            return resp.json()
        except ValueError as e:
            raise ActivityStoreError("Réponse invalide du serveur") from e

    def _fetch_user_info(self) -> Dict[str, Any]:
        if self._user_info is None:
            self._user_info = self._get('user_info') or {}
        return self._user_info

    def get_profile(self, user_id: Optional[int] = None) -> Optional[UserProfile]:
        return parse_profile(self._fetch_user_info().get('profile'))

    def get_statistics(self, user_id: Optional[int] = None) -> Optional[NutritionStatistics]:
        return parse_statistics(self._fetch_user_info().get('statistics'))

    def get_activities(
        self,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[ActivitySession]:
        params = None
        if start_date and end_date:
            params = {'startWeek': start_date.isoformat(), 'endWeek': end_date.isoformat()}
        payload = self._get('user_activity', params)
        if not isinstance(payload, list):
            raise ActivityStoreError("Réponse invalide du serveur")
        return sorted(parse_sessions(payload), key=lambda s: s.date)
