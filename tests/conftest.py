"""Shared pytest fixtures: in-memory session storage and a recording fake REST client."""
from __future__ import annotations

import pytest

from fakes import FakeApi
from storefront.core.session_storage import MemorySessionStorage
from storefront.services.session import Session


@pytest.fixture()
def storage() -> MemorySessionStorage:
    return MemorySessionStorage()


@pytest.fixture()
def session(storage) -> Session:
    return Session(storage)


@pytest.fixture()
def api(session) -> FakeApi:
    return FakeApi(session)
