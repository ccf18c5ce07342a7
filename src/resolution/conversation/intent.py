"""
Customer Intent Detection

Bilingual (English / Arabic) phrase matching that maps an inbound message to
a lifecycle event. A heuristic, not a language model.

Premature closure costs more than a missed goodbye, so the phrase sets are
kept narrow: bare "thanks" / "شكرا" and greetings such as "سلام" are not
treated as goodbyes, and phrases only match on word boundaries.
"""

import re
from typing import Iterable, Pattern

from resolution.conversation.models import ConversationEvent

GOODBYE_PHRASES = (
    "bye",
    "goodbye",
    "good bye",
    "thanks bye",
    "مع السلامة",
    "باي",
    "الله يعطيك العافية",
    "يعطيك العافية",
)

SATISFIED_PHRASES = (
    "no thanks",
    "no thank you",
    "that's all",
    "that is all",
    "nothing else",
    "لا شكرا",
    "لا ما احتاج",
    "خلاص",
    "تمام بس",
    "كذا تمام",
    "لا بس كذا",
    "ما احتاج شي",
)


def _compile(phrases: Iterable[str]) -> Pattern:
    alternatives = "|".join(re.escape(p) for p in sorted(phrases, key=len, reverse=True))
    return re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE)


_GOODBYE_RE = _compile(GOODBYE_PHRASES)
_SATISFIED_RE = _compile(SATISFIED_PHRASES)


def _normalize(message: str) -> str:
    text = message.replace("’", "'").replace("‘", "'")
    return re.sub(r"\s+", " ", text).strip().lower()


def detect_customer_intent(message: str) -> ConversationEvent:
    """
    Classify an inbound message.

    Goodbye is checked before satisfaction; anything else is MESSAGE_RECEIVED.
    """
    text = _normalize(message or "")
    if _GOODBYE_RE.search(text):
        return ConversationEvent.CUSTOMER_GOODBYE
    if _SATISFIED_RE.search(text):
        return ConversationEvent.CUSTOMER_SATISFIED
    return ConversationEvent.MESSAGE_RECEIVED
