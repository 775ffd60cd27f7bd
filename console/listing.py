"""List-view controller shared by the users, categories and workspaces screens.

The controller owns page, page size, sort, filters and a debounced search,
and fetches exactly once per dependency change. Each fetch is tagged with a
monotonically increasing ticket; a response is applied only if it is newer
than the last applied one, and nothing is applied after `close()`.
"""

import logging
import math
import time
from dataclasses import dataclass, field

from django.conf import settings

from .exceptions import AuthError, ConsoleError

logger = logging.getLogger(__name__)

PAGE_SIZES = (5, 10, 25, 50)
ASC, DESC = "asc", "desc"


class Debouncer:
    """Trailing debounce driven by an injectable monotonic clock.

    Every `push` restarts the quiet period; `poll` commits the latest value
    once `delay` seconds have passed since the last push.
    """

    def __init__(self, delay, clock=time.monotonic):
        self.delay = delay
        self.clock = clock
        self._value = None
        self._deadline = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def push(self, value):
        self._value = value
        self._deadline = self.clock() + self.delay

    def poll(self):
        """Return `(True, value)` when a value commits, else `(False, None)`."""
        if self._deadline is not None and self.clock() >= self._deadline:
            self._deadline = None
            return True, self._value
        return False, None

    def cancel(self):
        self._deadline = None


@dataclass(frozen=True)
class Sort:
    field: str = None
    direction: str = ASC

    def toggled(self, field):
        """Same column flips the direction; another column starts ascending."""
        if field == self.field:
            return Sort(field, DESC if self.direction == ASC else ASC)
        return Sort(field, ASC)


@dataclass(frozen=True)
class Ticket:
    seq: int
    page: int
    page_size: int
    params: dict = field(default_factory=dict)


class ListController:
    """State machine behind a paginated, filterable, sortable table.

    `loader(page, page_size, params)` returns an `api.Page`; `deleter(id)`
    removes one record server-side.
    """

    def __init__(self, loader, page_size=10, sort=None, filters=None, deleter=None,
                 debounce=None, clock=time.monotonic, on_auth_error=None):
        if page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}")
        self.loader = loader
        self.deleter = deleter
        self.on_auth_error = on_auth_error

        self.page = 1
        self.page_size = page_size
        self.sort = sort
        self.filters = dict(filters or {})
        self.search_draft = ""
        self.search = ""

        self.items = []
        self.total = 0
        self.last_page = 1
        self.loading = False
        self.error = None
        self.pending_delete = None

        delay = settings.DASHBOARD_SEARCH_DEBOUNCE if debounce is None else debounce
        self._debouncer = Debouncer(delay, clock)
        self._seq = 0
        self._applied = 0
        self._closed = False

    # --- dependencies ---
    def start(self):
        return self.refresh()

    def set_page(self, page):
        page = max(1, int(page))
        if self.total_pages:
            page = min(page, self.total_pages)
        if page == self.page:
            return False
        self.page = page
        self.refresh()
        return True

    def set_page_size(self, page_size):
        if page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}")
        if page_size == self.page_size:
            return False
        self.page_size = page_size
        self.page = 1
        self.refresh()
        return True

    def toggle_sort(self, field):
        self.sort = (self.sort or Sort()).toggled(field)
        self.page = 1
        self.refresh()

    def set_filters(self, **changes):
        """Merge filter changes; any change resets to page 1 and fetches once."""
        merged = {**self.filters, **changes}
        if merged == self.filters:
            return False
        self.filters = merged
        self.page = 1
        self.refresh()
        return True

    def type_search(self, text):
        self.search_draft = text
        self._debouncer.push(text)

    def tick(self):
        """Commit the debounced search once the quiet period has elapsed."""
        committed, value = self._debouncer.poll()
        if not committed:
            return False
        return self._commit_search(value)

    def commit_search(self):
        """Commit the draft now, e.g. when a line-based prompt submits it."""
        self._debouncer.cancel()
        return self._commit_search(self.search_draft)

    def _commit_search(self, value):
        if value == self.search:
            return False
        self.search = value
        self.page = 1
        self.refresh()
        return True

    def query_params(self):
        params = dict(self.filters)
        if self.search:
            params["search"] = self.search
        if self.sort and self.sort.field:
            params["sort"] = self.sort.field
            params["direction"] = self.sort.direction
        return params

    # --- fetch lifecycle ---
    def begin_fetch(self) -> Ticket:
        self._seq += 1
        self.loading = True
        return Ticket(self._seq, self.page, self.page_size, self.query_params())

    def resolve(self, ticket, page) -> bool:
        if not self._accepts(ticket):
            return False
        self._applied = ticket.seq
        self.items = list(page.items)
        self.total = page.total
        self.last_page = page.last_page
        self.error = None
        self.loading = ticket.seq < self._seq
        return True

    def reject(self, ticket, exc) -> bool:
        """Record a failed fetch; items and total stay as they were."""
        if not self._accepts(ticket):
            return False
        self._applied = ticket.seq
        self.error = exc.message
        self.loading = ticket.seq < self._seq
        if isinstance(exc, AuthError) and self.on_auth_error:
            self.on_auth_error()
        return True

    def refresh(self) -> Ticket:
        ticket = self.begin_fetch()
        try:
            page = self.loader(ticket.page, ticket.page_size, ticket.params)
        except ConsoleError as exc:
            self.reject(ticket, exc)
        else:
            self.resolve(ticket, page)
        return ticket

    def close(self):
        """Detach from the view: pending search is dropped, late responses ignored."""
        self._closed = True
        self._debouncer.cancel()

    def _accepts(self, ticket) -> bool:
        if self._closed:
            logger.debug("Discarding response #%s after close", ticket.seq)
            return False
        if ticket.seq <= self._applied:
            logger.debug("Discarding stale response #%s (applied #%s)", ticket.seq, self._applied)
            return False
        return True

    # --- delete with confirmation ---
    def request_delete(self, item):
        self.pending_delete = item

    def cancel_delete(self):
        self.pending_delete = None

    def confirm_delete(self) -> bool:
        item, self.pending_delete = self.pending_delete, None
        if item is None:
            return False
        try:
            self.deleter(item["id"])
        except ConsoleError as exc:
            self.error = f"Error deleting record: {exc.message}"
            if isinstance(exc, AuthError) and self.on_auth_error:
                self.on_auth_error()
            return False
        self.items = [i for i in self.items if i.get("id") != item["id"]]
        self.total = max(0, self.total - 1)
        if not self.items and self.page > 1:
            self.set_page(self.page - 1)
        else:
            self.page = min(self.page, max(1, self.total_pages))
        return True

    # --- derived ---
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def range_text(self):
        """`Showing a to b of n`, or None when there is nothing to show."""
        if self.total == 0:
            return None
        first = (self.page - 1) * self.page_size + 1
        last = min(self.page * self.page_size, self.total)
        return f"Showing {first} to {last} of {self.total}"
