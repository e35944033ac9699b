from enum import Enum


class Intent(str, Enum):
    ORDER = "order"
    GENERAL = "general"


ORDER_KEYWORDS = (
    "order", "menu", "food", "hungry", "eat", "delivery",
    "pickup", "want", "get", "buy", "purchase", "place",
)


def classify_intent(text: str) -> Intent:
    """Case-insensitive substring match against ORDER_KEYWORDS."""
    lowered = (text or "").lower()
    if any(keyword in lowered for keyword in ORDER_KEYWORDS):
        return Intent.ORDER
    return Intent.GENERAL
