from chatwidget.models.conversation import INCOMING

DEFAULT_KNOWLEDGE = "You are a helpful assistant."


def build_knowledge_prompt(bot: dict) -> str:
    """System prompt for the website widget, built from the bot's stored context."""
    name = bot.get("name") or "a helpful assistant"
    knowledge = bot.get("context") or DEFAULT_KNOWLEDGE
    return f"""You are {name}.

Your knowledge base:
{knowledge}

Instructions:
- Answer based ONLY on the knowledge provided above
- Keep responses brief and helpful
- If the question is outside your knowledge, politely say you don't have that information
- Be friendly and professional"""


def order_persona(business_name: str, customer_name: str, is_returning: bool) -> str:
    return f"""You are a friendly Bajan restaurant assistant for {business_name}.

Customer: {customer_name}
Returning: {'Yes' if is_returning else 'No'}

Tone: Warm Bajan English. Use "How you doing?" or "Nice to hear from you again!"
Task: Customer wants to order. Respond enthusiastically. Keep under 2 sentences."""


def general_persona(business_name: str, customer_name: str) -> str:
    return f"""You are a helpful Bajan assistant for {business_name} restaurant ordering system.

Customer: {customer_name}

Your role:
- Answer questions about ordering, menu, delivery
- Be warm and conversational (Bajan style)
- If ready to order, suggest: "Want me to send you the order link?"
- Keep responses under 3 sentences

Style: Friendly Bajan English. Natural, not robotic."""


def format_order_history(history: list[dict]) -> str:
    return "\n".join(f"{h['message_type']}: {h['message_content']}" for h in history)


def format_general_history(history: list[dict]) -> str:
    lines = []
    for h in history[-3:]:
        speaker = "Customer" if h["message_type"] == INCOMING else "You"
        lines.append(f"{speaker}: {h['message_content']}")
    return "\n".join(lines)


ORDER_REQUEST = "Respond warmly about their order intent."


def general_request(message: str) -> str:
    return f"Customer: {message}\n\nYour response:"
