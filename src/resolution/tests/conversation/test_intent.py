"""
Tests for bilingual customer intent detection.
"""

import pytest

from resolution.conversation.intent import detect_customer_intent
from resolution.conversation.models import ConversationEvent


@pytest.mark.parametrize("message", [
    "Bye",
    "ok thanks, bye!",
    "Goodbye",
    "مع السلامة",
    "شكرا، الله يعطيك العافية",
    "باي",
])
def test_goodbye_phrases(message):
    assert detect_customer_intent(message) == ConversationEvent.CUSTOMER_GOODBYE


@pytest.mark.parametrize("message", [
    "No thanks",
    "That’s all, appreciate it",
    "nothing else",
    "لا شكرا",
    "خلاص",
    "تمام بس",
])
def test_satisfied_phrases(message):
    assert detect_customer_intent(message) == ConversationEvent.CUSTOMER_SATISFIED


def test_goodbye_wins_over_satisfaction():
    assert detect_customer_intent("no thanks, bye") == ConversationEvent.CUSTOMER_GOODBYE


@pytest.mark.parametrize("message", [
    "maybe tomorrow works better",
    "see you at 3pm then",
    "thanks",
    "شكرا",
    "can you change the address?",
    "السلام عليكم",
    "",
])
def test_everything_else_is_a_message(message):
    """Test that near-misses do not trigger closure."""
    assert detect_customer_intent(message) == ConversationEvent.MESSAGE_RECEIVED


def test_none_message_is_a_message():
    assert detect_customer_intent(None) == ConversationEvent.MESSAGE_RECEIVED
