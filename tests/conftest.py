import os

import pytest
from unittest.mock import AsyncMock

# Settings are read when panikkar.core.config is imported, so the test
# environment has to be in place before any panikkar import.
os.environ.setdefault("META_BOT_TOKEN", "test-token")
os.environ.setdefault("META_NUMBER_ID", "1234567890")
os.environ.setdefault("META_VERIFY_TOKEN", "test-verify-token")
os.environ.setdefault("API_TOKEN", "test-api-token")
os.environ["SESSION_STORE"] = "memory"
os.environ["SESSION_TIMEOUT_MINUTES"] = "30"
os.environ["SESSION_RESUME_MINUTES"] = "10"
os.environ["APP_TIMEZONE"] = "Asia/Kolkata"

from panikkar.services.conversation.flow_router import FlowRouter  # noqa: E402
from panikkar.services.conversation.flows import FLOW_CLASSES  # noqa: E402
from panikkar.services.external import PanikkarApi  # noqa: E402
from panikkar.services.session import InMemorySessionStore, SessionManager  # noqa: E402
from panikkar.services.whatsapp import WhatsAppClient  # noqa: E402
from tests.helpers import CATEGORIES  # noqa: E402


@pytest.fixture
def messenger():
    """WhatsApp client that records every outgoing message."""
    return AsyncMock(spec=WhatsAppClient)


@pytest.fixture
def api():
    """Backend facade with neutral defaults; tests override what they need."""
    mock = AsyncMock(spec=PanikkarApi)
    mock.list_categories.return_value = CATEGORIES
    mock.get_category.side_effect = lambda category_id: next(
        (c for c in CATEGORIES if c["id"] == category_id), None
    )
    mock.get_user_by_phone.return_value = None
    mock.get_worker_by_user.return_value = None
    mock.is_message_processed.return_value = False
    mock.list_open_jobs.return_value = []
    return mock


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def sessions(store):
    return SessionManager(store)


@pytest.fixture
def router(sessions, messenger, api):
    """Flow router with every production flow registered."""
    router = FlowRouter(sessions, messenger)
    for flow_class in FLOW_CLASSES:
        router.register(flow_class(messenger, sessions, api))
    return router
