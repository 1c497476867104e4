import logging
import threading
from typing import Callable

from backend.app.errors import StaleSearchError
from backend.app.models import SearchCriteria, SearchPage
from backend.app.services.pipeline import search

logger = logging.getLogger(__name__)

FIRST_PAGE = 1
MAX_PAGES = 5

PageFetcher = Callable[[SearchCriteria, str, str | None], SearchPage]


class PageTokenChain:
    """
    Page number -> continuation token. Page 1 never needs a token. Entries
    are only ever appended, and nothing past MAX_PAGES is stored.
    """

    def __init__(self, tokens: dict[int, str | None] | None = None):
        self._tokens: dict[int, str | None] = {FIRST_PAGE: None}
        for page, token in sorted((tokens or {}).items()):
            self.record(page, token)

    def __contains__(self, page: int) -> bool:
        return page in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def token_for(self, page: int) -> str | None:
        if page not in self._tokens:
            raise KeyError(page)
        return self._tokens[page]

    def record(self, page: int, token: str | None) -> bool:
        if not token or page <= FIRST_PAGE or page > MAX_PAGES:
            return False
        if page in self._tokens:
            return False
        self._tokens[page] = token
        return True

    def pages(self) -> list[int]:
        return sorted(self._tokens)

    def as_dict(self) -> dict[int, str | None]:
        return dict(self._tokens)


class PaginationSession:
    """
    Drives one search through pages 1..MAX_PAGES.

    Only one pipeline call runs at a time per session. Every call is tagged
    with the generation it started in; new_search bumps the generation
    before it queues, so a page fetch that finishes after a newer search was
    requested is dropped instead of overwriting the newer state.
    """

    def __init__(self, fetcher: PageFetcher = search):
        self.fetcher = fetcher
        self.criteria: SearchCriteria | None = None
        self.translated_keyword: str | None = None
        self.chain = PageTokenChain()
        self.current_page = FIRST_PAGE
        self.last_page: SearchPage | None = None
        self.fetched_pages: set[int] = set()
        self._generation = 0
        self._generation_lock = threading.Lock()
        self._fetch_lock = threading.Lock()

    def _next_generation(self) -> int:
        with self._generation_lock:
            self._generation += 1
            return self._generation

    def _is_current(self, generation: int) -> bool:
        with self._generation_lock:
            return generation == self._generation

    @property
    def active(self) -> bool:
        return self.criteria is not None

    def new_search(self, criteria: SearchCriteria, translated_keyword: str) -> SearchPage:
        generation = self._next_generation()
        with self._fetch_lock:
            if not self._is_current(generation):
                raise StaleSearchError("search superseded before it started")

            page = self.fetcher(criteria, translated_keyword, None)

            if not self._is_current(generation):
                logger.info("Discarding superseded search for %r", translated_keyword)
                raise StaleSearchError("search superseded by a newer one")

            chain = PageTokenChain()
            chain.record(FIRST_PAGE + 1, page.next_token)
            self.criteria = criteria
            self.translated_keyword = translated_keyword
            self.chain = chain
            self.current_page = FIRST_PAGE
            self.fetched_pages = {FIRST_PAGE}
            self.last_page = page
            return page

    def can_goto(self, page: int) -> bool:
        if not self.active:
            return False
        if page < FIRST_PAGE or page > MAX_PAGES:
            return False
        if page not in self.chain:
            return False
        return page != self.current_page

    def goto_page(self, page: int) -> SearchPage | None:
        """
        Returns None, without touching the network, when the page cannot be
        navigated to. The request is tied to the search that is active when it
        arrives; if a newer search starts first, StaleSearchError is raised.
        """
        with self._generation_lock:
            generation = self._generation

        if not self.can_goto(page):
            logger.debug("Rejected navigation to page %s (current %s)", page, self.current_page)
            return None

        with self._fetch_lock:
            # Re-check under the lock: another navigation may have moved us.
            if not self._is_current(generation):
                raise StaleSearchError("navigation superseded by a newer search")
            if not self.can_goto(page):
                return None

            token = self.chain.token_for(page)
            result = self.fetcher(self.criteria, self.translated_keyword, token)

            if not self._is_current(generation):
                logger.info("Discarding page %d fetched for a superseded search", page)
                raise StaleSearchError("navigation superseded by a newer search")

            self.current_page = page
            self.fetched_pages.add(page)
            self.chain.record(page + 1, result.next_token)
            self.last_page = result
            return result

    def page_status(self, page: int) -> str:
        """
        current: on screen. known: token recorded, not fetched yet in this
        search. visited: fetched earlier in this search. unknown: no token.
        """
        if self.active and page == self.current_page:
            return "current"
        if page not in self.chain:
            return "unknown"
        if page in self.fetched_pages:
            return "visited"
        return "known"

    def available_pages(self) -> list[int]:
        return self.chain.pages()
