"""
Orchestrator Tests
==================

Full chat turns against MockLLMClient.
"""

from datetime import date

import pytest

from sportsee_coach.sessions import ActivitySession, HeartRate
from sportsee_coach.llm_client import MockLLMClient, LLMError
from sportsee_coach.context_builder import CONTEXT_HEADER
from sportsee_coach.prompts import COACH_AI_SYSTEM_PROMPT, RUDE_MESSAGE_OVERRIDE
from sportsee_coach.fallback import NO_DATA_REPLY
from sportsee_coach.orchestrator import (
    CoachOrchestrator, ChatRequest, MAX_HISTORY_MESSAGES,
    classify_question, clean_reply
)


NOW = date(2025, 11, 24)  # Monday


def _session(day, km, bpm=None, low=0, high=0):
    hr = HeartRate(min=low, max=high, average=bpm) if bpm else None
    return ActivitySession(date=day, distance_km=km, duration_min=30, heart_rate=hr)


def _ask(text, **kwargs):
    return ChatRequest(messages=[{'role': 'user', 'content': text}], **kwargs)


@pytest.fixture
def sessions():
    return [
        _session(date(2025, 11, 3), 4.0, 148, 120, 170),
        _session(date(2025, 11, 10), 4.1, 150, 125, 172),
        _session(date(2025, 11, 17), 4.2, 152, 130, 175),
    ]


class TestValidation:

    def test_grounded_reply_is_kept(self, sessions):
        reply = "Vous avez couru 12.3km sur les 4 dernières semaines."
        llm = MockLLMClient([reply])
        response = CoachOrchestrator(llm).handle_chat(_ask("Combien de km ai-je couru ?"), sessions, NOW)

        assert response.reply == reply
        assert response.validated
        assert not response.fallback_used
        assert response.model == "mock"

    def test_hallucinated_reply_is_replaced(self, sessions):
        llm = MockLLMClient(["Vous avez couru 80km en 25 séances."])
        response = CoachOrchestrator(llm).handle_chat(_ask("Combien de km ai-je couru ?"), sessions, NOW)

        assert response.fallback_used
        assert not response.validated
        assert response.issues
        assert response.reply.startswith("## Analyse de vos activités")
        assert "12.3km" in response.reply

    def test_short_bpm_question_gets_short_fallback(self):
        activities = [{
            "date": "2025-11-18", "distance": 5.8, "duration": 38,
            "heartRate": {"min": 140, "max": 178, "average": 163}, "caloriesBurned": 422,
        }]
        llm = MockLLMClient(["Votre BPM moyen est de 190 bpm."])
        response = CoachOrchestrator(llm).handle_chat(_ask("Quel est mon bpm ?"), activities, NOW)

        assert response.fallback_used
        assert "Moyenne: 163 BPM (plage 140-178)" in response.reply

    def test_small_talk_is_not_validated(self, sessions):
        llm = MockLLMClient(["Bonjour ! Prêt pour 100 séances ?"])
        response = CoachOrchestrator(llm).handle_chat(_ask("Salut coach"), sessions, NOW)

        assert response.reply == "Bonjour ! Prêt pour 100 séances ?"
        assert not response.validated
        assert not response.fallback_used

    def test_chart_question_without_data(self):
        llm = MockLLMClient()
        response = CoachOrchestrator(llm).handle_chat(_ask("Montre mon graphique de km"), [], NOW)

        assert response.reply == NO_DATA_REPLY
        assert "chargement" not in response.reply
        assert llm.calls == []

    def test_chart_question_with_client_context_reaches_llm(self):
        llm = MockLLMClient(["Vous avez couru 5km."])
        request = _ask("Montre mon graphique de km", user_context="Kilométrage: 5km")
        response = CoachOrchestrator(llm).handle_chat(request, [], NOW)

        assert response.reply == "Vous avez couru 5km."
        assert llm.last_messages[1]["content"] == "Kilométrage: 5km"


class TestLLMFailure:

    def test_fallback_when_data_exists(self, sessions):
        llm = MockLLMClient(error=LLMError("Request timed out", is_timeout=True))
        response = CoachOrchestrator(llm).handle_chat(_ask("Comment améliorer mon endurance ?"), sessions, NOW)

        assert response.fallback_used
        assert response.issues == ["Request timed out"]
        assert "- Total: 3 activité(s) enregistrée(s)" in response.reply

    def test_apology_without_data(self):
        llm = MockLLMClient(error=LLMError("Request timed out", is_timeout=True))
        response = CoachOrchestrator(llm).handle_chat(_ask("Salut"), [], NOW)

        assert response.reply == "Désolé, je n'ai pas pu répondre. Erreur: Request timed out"
        assert not response.fallback_used


class TestMessages:

    def test_context_follows_system_prompt(self, sessions):
        llm = MockLLMClient(["Bonjour !"])
        CoachOrchestrator(llm).handle_chat(_ask("Salut"), sessions, NOW)

        assert llm.last_messages[0]['content'].startswith(COACH_AI_SYSTEM_PROMPT)
        assert llm.last_messages[1]['content'].startswith(CONTEXT_HEADER)
        assert llm.last_messages[-1] == {'role': 'user', 'content': 'Salut'}

    def test_client_context_wins(self, sessions):
        llm = MockLLMClient(["Bonjour !"])
        CoachOrchestrator(llm).handle_chat(_ask("Salut", user_context="Contexte client"), sessions, NOW)
        assert llm.last_messages[1]['content'] == "Contexte client"

    def test_context_can_be_disabled(self, sessions):
        llm = MockLLMClient(["Bonjour !"])
        CoachOrchestrator(llm).handle_chat(_ask("Salut", include_context=False), sessions, NOW)
        assert [m['role'] for m in llm.last_messages] == ['system', 'user']

    def test_rude_message_override(self):
        llm = MockLLMClient(["D'accord."])
        CoachOrchestrator(llm).handle_chat(_ask("ta gueule"), [], NOW)
        assert llm.last_messages[-1] == {'role': 'system', 'content': RUDE_MESSAGE_OVERRIDE}

    def test_history_is_capped(self):
        history = [
            {'role': 'user' if i % 2 == 0 else 'assistant', 'content': f"message {i}"}
            for i in range(60)
        ]
        llm = MockLLMClient(["Ok."])
        CoachOrchestrator(llm).handle_chat(ChatRequest(messages=history), [], NOW)
        assert len(llm.last_messages) == 2 + MAX_HISTORY_MESSAGES


class TestCleanReply:

    def test_unsolicited_next_step_and_emoji_removed(self):
        traits = classify_question("Combien de km ?")
        assert clean_reply("Bonne séance 💪\n\nProchaine étape : courir 5km", traits) == "Bonne séance"

    def test_requested_plan_is_kept(self):
        traits = classify_question("Donne-moi un plan")
        assert "Prochaine étape" in clean_reply("Voici.\nProchaine étape : courir", traits)

    def test_unsolicited_advice_removed(self):
        traits = classify_question("Combien de km ?")
        assert clean_reply("Résumé.\n\n**Conseils :**\n- Boire", traits) == "Résumé."
