import asyncio

from chatwidget.api.whatsapp_api import InboundMessage
from chatwidget.core.errors import CompletionError, CompletionErrorKind
from chatwidget.services.whatsapp_agent import (
    APOLOGY_MESSAGE,
    FALLBACK_GENERAL_REPLY,
    FALLBACK_ORDER_REPLY,
    WhatsAppAgent,
)
from tests.fakes import FakeCompletion, FakeStore, FakeWhatsApp

PHONE = "15551234567"


class Sleeper:
    def __init__(self):
        self.pauses = []

    async def __call__(self, seconds):
        self.pauses.append(seconds)


def _agent(store=None, completion=None, whatsapp=None, **kwargs):
    sleeper = Sleeper()
    agent = WhatsAppAgent(
        store=store if store is not None else FakeStore(),
        completion=completion,
        whatsapp=whatsapp or FakeWhatsApp(),
        sleep=sleeper,
        **kwargs,
    )
    return agent, sleeper


def _inbound(text, message_id="wamid.1", name="Ana"):
    return InboundMessage(phone_number=PHONE, message_id=message_id, text=text, customer_name=name)


def test_order_intent_sends_reply_button_and_records_order():
    store, completion, whatsapp = FakeStore(), FakeCompletion("Ready when you are!"), FakeWhatsApp()
    agent, sleeper = _agent(store, completion, whatsapp)

    asyncio.run(agent.handle(_inbound("I want to order food")))

    assert whatsapp.sent == [
        ("read", "wamid.1"),
        ("text", PHONE, "Ready when you are!"),
        ("button", PHONE, "Ana"),
    ]
    assert store.orders == [{"customer_id": 1, "phone_number": PHONE, "status": "pending"}]
    assert store.conversations[-1]["message_type"] == "outgoing"
    assert store.conversations[-1]["message_content"] == "Ready when you are!"
    assert sleeper.pauses == [2.0, 1.0]

    prompt = completion.calls[0]["system_prompt"]
    assert "Customer: Ana" in prompt
    assert "Returning: No" in prompt
    assert completion.calls[0]["message"] == "Respond warmly about their order intent."
    assert completion.calls[0]["history"] == "incoming: I want to order food"


def test_general_intent_sends_single_reply_without_order():
    store, completion, whatsapp = FakeStore(), FakeCompletion("We open at 9."), FakeWhatsApp()
    agent, _ = _agent(store, completion, whatsapp)

    asyncio.run(agent.handle(_inbound("what time do you open")))

    assert whatsapp.sent == [("read", "wamid.1"), ("text", PHONE, "We open at 9.")]
    assert store.orders == []
    assert completion.calls[0]["message"] == "Customer: what time do you open\n\nYour response:"
    assert completion.calls[0]["history"] == "Customer: what time do you open"


def test_pipeline_steps_run_in_order():
    store = FakeStore()
    agent, _ = _agent(store, FakeCompletion())

    asyncio.run(agent.handle(_inbound("buy coffee")))

    assert store.calls == [
        "has_processed_message",
        "get_or_create_customer",
        "save_conversation",
        "get_conversation_history",
        "create_order_record",
        "save_conversation",
    ]


def test_returning_customer_and_name_fallback():
    store, completion = FakeStore(), FakeCompletion()
    agent, _ = _agent(store, completion)

    asyncio.run(agent.handle(_inbound("hello", message_id="wamid.1", name=None)))
    asyncio.run(agent.handle(_inbound("place an order", message_id="wamid.2", name=None)))

    prompt = completion.calls[-1]["system_prompt"]
    assert "Customer: friend" in prompt
    assert "Returning: Yes" in prompt


def test_completion_failure_sends_apology():
    completion = FakeCompletion()
    completion.error = CompletionError(CompletionErrorKind.RATE_LIMITED, "quota")
    whatsapp = FakeWhatsApp()
    agent, _ = _agent(FakeStore(), completion, whatsapp)

    asyncio.run(agent.handle(_inbound("hello")))

    assert whatsapp.sent[-1] == ("text", PHONE, APOLOGY_MESSAGE)


def test_missing_store_sends_apology():
    whatsapp = FakeWhatsApp()
    agent = WhatsAppAgent(store=None, completion=None, whatsapp=whatsapp)

    asyncio.run(agent.handle(_inbound("hello")))

    assert whatsapp.sent == [("text", PHONE, APOLOGY_MESSAGE)]


def test_canned_replies_without_completion_service():
    whatsapp = FakeWhatsApp()
    agent, _ = _agent(FakeStore(), None, whatsapp)

    asyncio.run(agent.handle(_inbound("menu?", message_id="wamid.1")))
    asyncio.run(agent.handle(_inbound("thanks", message_id="wamid.2")))

    texts = [m[2] for m in whatsapp.sent if m[0] == "text"]
    assert texts == [FALLBACK_ORDER_REPLY, FALLBACK_GENERAL_REPLY]


def test_zero_delays_skip_sleeping():
    agent, sleeper = _agent(FakeStore(), FakeCompletion(), typing_delay=0, button_delay=0)

    asyncio.run(agent.handle(_inbound("order now")))

    assert sleeper.pauses == []


def test_custom_classifier_is_used():
    from chatwidget.services.intent import Intent

    store = FakeStore()
    agent, _ = _agent(store, FakeCompletion(), classify=lambda text: Intent.GENERAL)

    asyncio.run(agent.handle(_inbound("I want to order food")))

    assert store.orders == []


def test_redelivery_during_typing_pause_is_dropped():
    store, whatsapp = FakeStore(), FakeWhatsApp()

    async def yielding_sleep(seconds):
        await asyncio.sleep(0)

    agent = WhatsAppAgent(store=store, completion=FakeCompletion(), whatsapp=whatsapp, sleep=yielding_sleep)

    async def deliver_twice():
        await asyncio.gather(agent.handle(_inbound("hello")), agent.handle(_inbound("hello")))

    asyncio.run(deliver_twice())

    assert [m for m in whatsapp.sent if m[0] == "read"] == [("read", "wamid.1")]
    assert store.customers[PHONE]["total_interactions"] == 1
    assert [e["message_type"] for e in store.conversations] == ["incoming", "outgoing"]


def test_later_redelivery_is_caught_by_the_conversation_log():
    store = FakeStore()
    agent, _ = _agent(store, FakeCompletion())

    asyncio.run(agent.handle(_inbound("hello")))
    asyncio.run(agent.handle(_inbound("hello")))

    assert store.calls.count("has_processed_message") == 2
    assert store.calls.count("get_or_create_customer") == 1
