"""
Session Parsing Tests
=====================
"""

import unittest
from datetime import date, datetime

from sportsee_coach.sessions import (
    HeartRate, ActivitySession, parse_local_date, parse_session, parse_sessions,
    parse_heart_rate, parse_profile, parse_statistics
)


class TestSessionParsing(unittest.TestCase):

    def test_local_date_ignores_time_and_zone(self):
        """Late-evening UTC timestamps must not drift to the next day."""
        self.assertEqual(parse_local_date("2025-11-18T23:30:00Z"), date(2025, 11, 18))
        self.assertEqual(parse_local_date(datetime(2025, 11, 18, 23, 59)), date(2025, 11, 18))

    def test_invalid_date_raises(self):
        with self.assertRaises(ValueError):
            parse_local_date("18/11/2025")
        with self.assertRaises(ValueError):
            parse_local_date(None)

    def test_sportsee_payload(self):
        session = parse_session({
            "date": "2025-11-18",
            "distance": 5.8,
            "duration": 38,
            "heartRate": {"min": 140, "max": 178, "average": 163},
            "caloriesBurned": 422,
        })
        self.assertEqual(session.date, date(2025, 11, 18))
        self.assertEqual(session.distance_km, 5.8)
        self.assertEqual(session.heart_rate, HeartRate(min=140, max=178, average=163))
        self.assertEqual(session.avg_bpm, 163)
        self.assertEqual(session.calories_burned, 422)

    def test_missing_heart_rate(self):
        session = parse_session({"date": "2025-11-18", "distance": 3, "duration": 20})
        self.assertIsNone(session.heart_rate)
        self.assertEqual(session.avg_bpm, 0)

    def test_malformed_entries_are_skipped(self):
        raw = [
            {"date": "not-a-date", "distance": 3},
            {"distance": 3},
            {"date": "2025-11-18", "distance": -1, "duration": 10},
            {"date": "2025-11-19", "distance": 4.2, "duration": 25},
            ActivitySession(date=date(2025, 11, 20), distance_km=1.0, duration_min=5),
        ]
        sessions = parse_sessions(raw)
        self.assertEqual([s.date for s in sessions], [date(2025, 11, 19), date(2025, 11, 20)])

    def test_none_is_empty(self):
        self.assertEqual(parse_sessions(None), [])

    def test_average_only_heart_rate(self):
        self.assertEqual(parse_heart_rate(150), HeartRate(average=150))

    def test_profile_and_statistics(self):
        profile = parse_profile({"firstName": "Sophie", "lastName": "Martin"})
        self.assertEqual(profile.first_name, "Sophie")

        stats = parse_statistics({"calorieCount": 1930, "proteinCount": 155})
        self.assertEqual(stats.calorie_count, 1930)
        self.assertEqual(stats.protein_count, 155)
        self.assertIsNone(stats.lipid_count)


if __name__ == '__main__':
    unittest.main()
