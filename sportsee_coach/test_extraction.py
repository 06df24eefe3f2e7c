"""
Claim Extraction Tests
======================

Each rule is checked against literal French replies.
"""

from sportsee_coach import extraction


class TestQuantities:

    def test_activity_count_takes_largest(self):
        assert extraction.claimed_activity_count("3 séances cette semaine, 12 activités au total") == 12

    def test_activity_count_ignores_decimal_tail(self):
        assert extraction.claimed_activity_count("2.5 séances") == 0

    def test_activity_count_none(self):
        assert extraction.claimed_activity_count("Bonne séance !") == 0

    def test_km_accepts_comma(self):
        assert extraction.claimed_km("12,5 km puis 3km") == 12.5

    def test_bpm_variants(self):
        assert extraction.claimed_bpms("150 bpm, 160 BPM et 70 pulsations") == [150, 160, 70]

    def test_dates(self):
        assert extraction.mentioned_dates("Le 2025-11-18 puis le 2025-11-20") == ["2025-11-18", "2025-11-20"]

    def test_distinct_numbers(self):
        assert extraction.distinct_number_count("3 fois 3, puis 4.0 et 4") == 2


class TestPhrases:

    def test_no_bpm_this_week(self):
        assert extraction.states_no_bpm_this_week("Aucun relevé BPM enregistré cette semaine.")
        assert not extraction.states_no_bpm_this_week("Votre BPM cette semaine est stable.")

    def test_recent_sessions(self):
        assert extraction.lists_recent_sessions("Voici vos dernières séances :")

    def test_dash_bpm(self):
        assert extraction.has_dash_bpm("2025-11-18 : 140 - 178 BPM")

    def test_refusal_must_be_short(self):
        assert extraction.looks_like_refusal("Désolé, je suis un coach sportif.")
        assert not extraction.looks_like_refusal("Désolé " + "x" * 400)
        assert not extraction.looks_like_refusal("Belle progression.")
