from tests.fakes import VERIFY_TOKEN


def _envelope(text="hello", message_id="wamid.1", phone="15551234567", name="Ana", msg_type="text"):
    message = {"from": phone, "id": message_id, "type": msg_type}
    if msg_type == "text":
        message["text"] = {"body": text}
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "changes": [
                    {
                        "value": {
                            "contacts": [{"profile": {"name": name}}],
                            "messages": [message],
                        }
                    }
                ]
            }
        ],
    }


def test_verification_echoes_challenge(client):
    response = client.get(
        "/webhook",
        params={"hub.mode": "subscribe", "hub.verify_token": VERIFY_TOKEN, "hub.challenge": "1158201444"},
    )

    assert response.status_code == 200
    assert response.text == "1158201444"


def test_verification_rejects_wrong_token(client):
    response = client.get(
        "/webhook",
        params={"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "1158201444"},
    )

    assert response.status_code == 403
    assert response.content == b""


def test_verification_rejects_when_no_token_configured(make_client):
    client = make_client(WHATSAPP_VERIFY_TOKEN=None)

    response = client.get("/webhook", params={"hub.mode": "subscribe", "hub.challenge": "42"})

    assert response.status_code == 403


def test_inbound_message_is_acknowledged_and_processed(client, whatsapp, store):
    response = client.post("/webhook", json=_envelope("what time do you open", message_id="wamid.9"))

    assert response.status_code == 200
    assert response.text == "OK"
    assert whatsapp.sent[0] == ("read", "wamid.9")
    assert whatsapp.sent[-1] == ("text", "15551234567", "Generated reply")
    assert [e["message_type"] for e in store.conversations] == ["incoming", "outgoing"]


def test_pipeline_failure_still_acknowledges(client, whatsapp, store):
    store.failing.add("get_or_create_customer")

    response = client.post("/webhook", json=_envelope("hello"))

    assert response.status_code == 200
    assert whatsapp.sent[-1] == (
        "text",
        "15551234567",
        "Sorry, I'm having some trouble right now. Give me a second!",
    )


def test_non_text_and_foreign_payloads_are_ignored(client, whatsapp, store):
    image = client.post("/webhook", json=_envelope(msg_type="image"))
    foreign = client.post("/webhook", json={"object": "page", "entry": []})
    status_only = client.post(
        "/webhook",
        json={"object": "whatsapp_business_account", "entry": [{"changes": [{"value": {"statuses": []}}]}]},
    )
    garbage = client.post("/webhook", content=b"not json", headers={"Content-Type": "application/json"})

    for response in (image, foreign, status_only, garbage):
        assert response.status_code == 200
    assert whatsapp.sent == []
    assert store.calls == []


def test_redelivered_message_is_processed_once(client, whatsapp, store):
    client.post("/webhook", json=_envelope("hello", message_id="wamid.dup"))
    client.post("/webhook", json=_envelope("hello", message_id="wamid.dup"))

    assert len(store.conversations) == 2
    assert store.customers["15551234567"]["total_interactions"] == 1


def test_malformed_deliveries_are_still_acknowledged(client, whatsapp, store):
    text_as_string = _envelope()
    text_as_string["entry"][0]["changes"][0]["value"]["messages"][0]["text"] = "hi"
    entry_as_object = {"object": "whatsapp_business_account", "entry": {"changes": []}}

    invalid_utf8 = client.post("/webhook", content=b"\xff\xfe{", headers={"Content-Type": "application/json"})
    wrong_entry = client.post("/webhook", json=entry_as_object)
    wrong_text = client.post("/webhook", json=text_as_string)

    for response in (invalid_utf8, wrong_entry, wrong_text):
        assert response.status_code == 200
        assert response.text == "OK"
    # A text field that is not an object carries no body
    assert store.conversations[0]["message_content"] == ""
