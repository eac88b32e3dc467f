from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hgtui.errors import EmptyResult
from hgtui.fetch import Fetcher, open_link, resolve_category, resolve_volume
from hgtui.models import AppMode, Category, GlobalInfo, Message, MessageLevel, Project, SearchMode
from hgtui.parsing import parse

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No results. Check the search keyword."


@dataclass
class InputState:
    text: str = ""
    mode: SearchMode = SearchMode.NORMAL
    active: bool = True

    def is_empty(self) -> bool:
        return not self.text

    def clear(self) -> str:
        content = self.text
        self.text = ""
        self.mode = SearchMode.NORMAL
        return content

    def handle_char(self, char: str) -> SearchMode:
        if not self.text:
            self.mode = SearchMode.from_query(char)
        self.text += char
        return self.mode

    def handle_backspace(self) -> None:
        self.text = self.text[:-1]
        if not self.text:
            self.mode = SearchMode.NORMAL


@dataclass
class ResultSet:
    projects: list[Project] = field(default_factory=list)
    selected: int | None = None
    active: bool = False

    def replace(self, projects: list[Project]) -> None:
        self.projects = list(projects)
        self.selected = 0 if self.projects else None

    def is_empty(self) -> bool:
        return not self.projects

    def next(self, step: int) -> None:
        if not self.projects:
            return
        current = self.selected or 0
        self.selected = min(current + step, len(self.projects) - 1)

    def prev(self, step: int) -> None:
        if not self.projects:
            return
        current = self.selected or 0
        self.selected = max(current - step, 0)

    def first(self) -> None:
        if self.projects:
            self.selected = 0

    def last(self) -> None:
        if self.projects:
            self.selected = len(self.projects) - 1

    def selected_project(self) -> Project:
        if self.selected is None or not 0 <= self.selected < len(self.projects):
            raise LookupError(f"No project at selection {self.selected} of {len(self.projects)}")
        return self.projects[self.selected]


@dataclass
class StatusInfo:
    max_volume: int
    mode: SearchMode = SearchMode.NORMAL
    page_no: int = 1

    def set_mode(self, mode: SearchMode) -> None:
        if mode is not self.mode:
            self.mode = mode
            self.page_no = 1

    def set_page_no(self, page_no: int) -> None:
        page_no = max(1, page_no)
        if self.mode is SearchMode.VOLUME:
            page_no = min(page_no, self.max_volume)
        self.page_no = page_no


class AppState:
    """Everything the screen shows, mutated only by the dispatcher thread."""

    def __init__(self, fetcher: Fetcher, info: GlobalInfo) -> None:
        self.fetcher = fetcher
        self.info = info
        self.input = InputState()
        self.results = ResultSet()
        self.status = StatusInfo(max_volume=info.max_volume)
        self.mode = AppMode.SEARCH
        self.current_category: Category | None = None
        self.detail: Project | None = None
        self.message = Message(MessageLevel.TIPS, "")

    def handle_char(self, char: str) -> SearchMode:
        # Status follows the listing on screen, not the pending query.
        return self.input.handle_char(char)

    def search(self, explicit_query: str | None = None) -> None:
        if explicit_query is None and self.input.is_empty():
            return
        query = explicit_query if explicit_query is not None else self.input.clear()
        mode = SearchMode.from_query(query)
        max_volume = self.info.max_volume

        category: Category | None = None
        page_no = 1
        if mode is SearchMode.VOLUME:
            page_no = resolve_volume(query, max_volume)
        elif mode is SearchMode.CATEGORY:
            category = resolve_category(query)
            same_listing = self.status.mode is SearchMode.CATEGORY and category is self.current_category
            page_no = self.status.page_no if same_listing else 1

        logger.info("Search %r mode=%s page=%d", query, mode.value, page_no)
        projects = parse(self.fetcher.fetch(query, mode, max_volume, page_no), mode)
        if not projects:
            raise EmptyResult(NO_RESULTS_MESSAGE)

        self.current_category = category
        self.status.set_mode(mode)
        self.status.set_page_no(page_no)
        self.results.replace(projects)
        self.switch_to_view()

    def page(self, page_no: int) -> None:
        mode = self.status.mode
        if mode is SearchMode.VOLUME:
            page_no = max(1, min(page_no, self.info.max_volume))
            html = self.fetcher.fetch_volume(page_no)
        elif mode is SearchMode.CATEGORY and self.current_category is not None:
            page_no = max(1, page_no)
            html = self.fetcher.fetch_category(self.current_category, page_no)
        else:
            return

        projects = parse(html, mode)
        if not projects:
            raise EmptyResult(NO_RESULTS_MESSAGE)
        self.results.replace(projects)
        self.status.set_page_no(page_no)

    def next_page(self) -> None:
        self.page(self.status.page_no + 1)

    def prev_page(self) -> None:
        self.page(self.status.page_no - 1)

    def display_detail(self) -> None:
        self.detail = self.results.selected_project()
        self.mode = AppMode.DETAIL

    def open_browser(self, url: str | None = None) -> None:
        if url is None:
            url = self.results.selected_project().url
        open_link(url)

    def switch_to_view(self) -> None:
        self.input.active = False
        self.results.active = True
        if self.results.selected is None:
            self.results.first()
        self.mode = AppMode.VIEW

    def switch_to_search(self) -> None:
        self.results.active = False
        self.input.active = True
        self.mode = AppMode.SEARCH

    def popup(self, message: Message) -> None:
        self.message = message
        self.mode = AppMode.POPUP
