"""Shared test fixtures for hg-tui tests."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import pytest
import requests

from hgtui.fetch import Fetcher
from hgtui.models import GlobalInfo
from hgtui.state import AppState

FIXTURES = Path(__file__).parent / "fixtures"
BASE_URL = "https://hellogithub.test/periodical"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Routes periodical URLs to the HTML fixtures and records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any] | None]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay = 0.0
        self.error: Exception | None = None
        self.status_code = 200
        self._counter_lock = threading.Lock()

    def route(self, url: str, params: dict[str, Any] | None) -> str:
        path = url[len(BASE_URL):]
        if path == "/search":
            query = (params or {}).get("q", "")
            return load_fixture("empty.html" if query == "nothing" else "search.html")
        if path.startswith("/volume/"):
            return load_fixture("volume.html")
        if path.startswith("/category/"):
            return load_fixture("category.html")
        return load_fixture("landing.html")

    def get(self, url: str, params: dict[str, Any] | None = None, **kwargs: Any) -> FakeResponse:
        with self._counter_lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.calls.append((url, params))
            if self.delay:
                threading.Event().wait(self.delay)
            if self.error is not None:
                raise self.error
            return FakeResponse(self.route(url, params), self.status_code)
        finally:
            with self._counter_lock:
                self.in_flight -= 1

    def paths(self) -> list[str]:
        return [url[len(BASE_URL):] for url, _ in self.calls]


@pytest.fixture
def fixture_html():
    return load_fixture


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fetcher(session: FakeSession) -> Fetcher:
    return Fetcher(BASE_URL, session=session)


@pytest.fixture
def info() -> GlobalInfo:
    return GlobalInfo(max_volume=80, project_count=2890, star_count="68.5k")


@pytest.fixture
def app_state(fetcher: Fetcher, info: GlobalInfo) -> AppState:
    return AppState(fetcher, info)


@pytest.fixture
def type_text():
    """Type characters into the search box the way the dispatcher does."""

    def _type(state: AppState, text: str) -> None:
        for char in text:
            state.handle_char(char)

    return _type
