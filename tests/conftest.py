"""
Shared fixtures for the session lifecycle tests.
"""

import pytest

from companion_client.core.host import StaticCodeProvider
from companion_client.core.login import LoginCoordinator
from companion_client.core.reconciler import IdentitySwitchReconciler
from companion_client.core.session import SessionStore
from companion_client.core.storage import MemoryStore

from .helpers.fakes import FakeExchange, login_payload


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def session_store(store) -> SessionStore:
    return SessionStore.create(store)


@pytest.fixture
def reconciler(store) -> IdentitySwitchReconciler:
    return IdentitySwitchReconciler(store)


@pytest.fixture
def exchange() -> FakeExchange:
    return FakeExchange([login_payload(1, "token-1")])


@pytest.fixture
def code_provider() -> StaticCodeProvider:
    return StaticCodeProvider("code-abc")


@pytest.fixture
def coordinator(exchange, session_store, code_provider, reconciler) -> LoginCoordinator:
    return LoginCoordinator(exchange, session_store, code_provider, reconciler)
