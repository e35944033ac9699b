import pytest
from fastapi.testclient import TestClient

from chatwidget import create_app
from chatwidget.api.deps import AppServices
from chatwidget.services.whatsapp_agent import WhatsAppAgent
from tests.fakes import FakeCompletion, FakeStore, FakeWhatsApp, make_settings


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def whatsapp():
    return FakeWhatsApp()


@pytest.fixture
def make_client(store, completion, whatsapp):
    def _make(with_store=True, with_completion=True, **overrides):
        settings = make_settings(**overrides)
        app_store = store if with_store else None
        app_completion = completion if with_completion else None
        agent = WhatsAppAgent(app_store, app_completion, whatsapp, typing_delay=0, button_delay=0)
        services = AppServices(
            settings=settings,
            store=app_store,
            completion=app_completion,
            whatsapp=whatsapp,
            agent=agent,
        )
        return TestClient(create_app(settings, services))

    return _make


@pytest.fixture
def client(make_client):
    return make_client()
