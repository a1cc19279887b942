from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from .config import ListingSettings
from .debounce import SearchDebouncer
from .equality import diff_fields
from .errors import ConfigurationError, PersistenceReadFailure, RequestFailure
from .log import get_logger, log_action
from .models import ListConfiguration, ListState, PageResult, SavedListState
from .ports import PersistencePort, RequestPort
from .registry import ListRegistry
from .view import ListView, build_view, known_attr_names

logger = get_logger(__name__)

QUERY_CONFIG_FIELDS = frozenset(
    {"endpoint", "version", "meta", "page", "per_page", "sort_by", "sort_order", "search", "filters", "pagination_mode"}
)
# query fields the user can also change through handlers
INTERACTIVE_FIELDS = ("per_page", "sort_by", "sort_order", "search", "filters")

ResponseHook = Callable[[Any], None]
SelectionHook = Callable[[frozenset[Any]], None]
Subscriber = Callable[[ListView], None]


class ListController:
    """Owns the state of one list and keeps it in sync with the request port.

    Handlers that change the query (page, per page, search, sort, filters,
    refresh) await a fetch and re-raise ``RequestFailure`` after recording it
    in state. Every state change bumps ``version``; ``view`` is rebuilt at
    most once per version and subscribers receive each new view.

    Only the most recent fetch may write its outcome: a response that
    resolves after a newer fetch started is dropped.
    """

    def __init__(
        self,
        config: ListConfiguration,
        *,
        request_handler: RequestPort | None,
        state_manager: PersistencePort | None = None,
        registry: ListRegistry | None = None,
        settings: ListingSettings | None = None,
        on_response: ResponseHook | None = None,
        on_selection_change: SelectionHook | None = None,
        after_page_change: ResponseHook | None = None,
        after_load_more: ResponseHook | None = None,
    ) -> None:
        if request_handler is None:
            raise ConfigurationError("ListController: request_handler is required.")
        self.config = config
        self.settings = settings or ListingSettings()
        self._request = request_handler
        self._state_manager = state_manager
        self._registry = registry
        self._on_response = on_response
        self._on_selection_change = on_selection_change
        self._after_page_change = after_page_change
        self._after_load_more = after_load_more

        self._state = ListState.from_configuration(config)
        self._version = 0
        self._view: ListView | None = None
        self._subscribers: list[Subscriber] = []
        self._generation = 0
        self._in_flight: int | None = None
        self._mounted = False
        self._unmounted = False
        self.search_input = SearchDebouncer(
            self.set_search,
            delay_ms=self.settings.debounce_ms,
            initial=self._state.search,
        )

    # -- published view -------------------------------------------------

    @property
    def version(self) -> int:
        return self._version

    @property
    def view(self) -> ListView:
        if self._view is None or self._view.version != self._version:
            self._view = build_view(self._state, self.config, self.context(), self._version)
        return self._view

    @property
    def is_mounted(self) -> bool:
        return self._mounted and not self._unmounted

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def context(self, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
        state = self._state
        context = {
            "endpoint": self.config.endpoint,
            "version": self.config.version,
            "meta": dict(self.config.meta),
            "search": state.search,
            "page": state.page,
            "per_page": state.per_page,
            "sort_by": state.sort_by,
            "sort_order": state.sort_order,
            "filters": dict(state.filters),
            "attr_settings": {name: dict(setting) for name, setting in state.attr_settings.items()},
            "is_refresh": False,
            "list_id": self.config.list_id,
        }
        if extra:
            context.update(extra)
        return context

    def query(self, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
        state = self._state
        query = {
            "endpoint": self.config.endpoint,
            "version": self.config.version,
            "meta": dict(self.config.meta),
            "page": state.page,
            "per_page": state.per_page,
            "search": state.search,
            "sort_by": state.sort_by,
            "sort_order": state.sort_order,
            "filters": dict(state.filters),
        }
        if extra:
            query.update(extra)
        return query

    # -- lifecycle --------------------------------------------------------

    async def on_mount(self) -> ListView:
        if self._mounted:
            raise RuntimeError("ListController.on_mount() called twice")
        self._mounted = True

        self._restore_saved_state()
        if self.config.is_load_more:
            self._update(page=1)
        self._seed_attr_settings()
        if self.config.list_id and self._registry is not None:
            self._registry.register(self.config.list_id, self.refresh)

        return await self.set_page(self._state.page)

    async def on_config_change(self, config: ListConfiguration) -> bool:
        """Apply a new configuration; returns True when it caused a refetch."""
        diff = diff_fields(self.config, config)
        previous = self.config
        self.config = config
        if not diff:
            return False

        if "list_id" in diff and self._registry is not None:
            if previous.list_id:
                self._registry.unregister(previous.list_id, self.refresh)
            if config.list_id and self.is_mounted:
                self._registry.register(config.list_id, self.refresh)

        if not diff.keys() & QUERY_CONFIG_FIELDS:
            self._seed_attr_settings()
            self._touch()
            return False

        if config.is_load_more or "page" not in diff:
            page = 1
        else:
            page = config.page
        switched = bool({"endpoint", "version"} & diff.keys())
        # a new endpoint or version starts from its configuration; otherwise
        # only the fields that changed overwrite what the user picked
        reset = INTERACTIVE_FIELDS if switched else [name for name in INTERACTIVE_FIELDS if name in diff]
        changes: dict[str, Any] = {name: getattr(config, name) for name in reset}
        if "filters" in changes:
            changes["filters"] = dict(changes["filters"])
        changes["page"] = page
        if {"endpoint", "pagination_mode"} & diff.keys():
            changes["items"] = []
            changes["count"] = 0
        if "endpoint" in diff:
            changes["attr_settings"] = {}
        self._update(**changes)
        if switched:
            self._restore_saved_state()
            if config.is_load_more:
                self._update(page=1)
        self._seed_attr_settings()
        self.search_input.sync(self._state.search)
        if not self.is_mounted:
            return False
        await self._fetch()
        return True

    def on_unmount(self) -> None:
        if self._unmounted:
            return
        self._unmounted = True
        self.search_input.dispose()
        if self.config.list_id and self._registry is not None:
            self._registry.unregister(self.config.list_id, self.refresh)
        # in-flight responses must not touch a discarded list
        self._generation += 1
        self._subscribers.clear()

    # -- handlers ---------------------------------------------------------

    async def set_page(self, page: int | None, extra: Mapping[str, Any] | None = None) -> ListView:
        new_page = int(page) if page else None
        if new_page is not None and new_page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        self._update(page=new_page)
        if new_page is None:
            return self.view
        return await self._fetch(extra)

    async def set_per_page(self, per_page: int) -> ListView:
        if per_page < 1:
            raise ValueError(f"per_page must be >= 1, got {per_page}")
        self._update(per_page=per_page, page=1)
        return await self._fetch()

    async def set_search(self, search: str | None) -> ListView:
        value = search or ""
        if value == self._state.search:
            return self.view
        self._update(search=value, page=1)
        self.search_input.sync(value)
        return await self._fetch()

    async def set_sort(self, by: str, order: str | None = None) -> ListView:
        self._update(sort_by=by, sort_order=order or self._state.sort_order, page=1)
        return await self._fetch()

    async def set_filters(self, filters: Mapping[str, Any] | None) -> ListView:
        self._update(filters=dict(filters or {}), page=1)
        return await self._fetch()

    async def load_more(self) -> ListView:
        """Fetch the next page; a no-op while another fetch is in flight.

        After a failed fetch the accumulated pages are gone, so load-more
        lists start again from page 1.
        """
        if self._in_flight is not None:
            return self.view
        if self.config.is_load_more and self._state.error is not None:
            self._update(page=1)
        else:
            self._update(page=(self._state.page or 0) + 1)
        return await self._fetch()

    async def refresh(self, extra: Mapping[str, Any] | None = None) -> ListView:
        context = {"is_refresh": True} if extra is None else dict(extra)
        if self.config.is_load_more:
            self._update(page=1, items=[])
        elif self._state.page is None:
            self._update(page=1)
        return await self._fetch(context)

    def update_attr(self, name: str, key: str, value: Any) -> None:
        settings = {attr: dict(setting) for attr, setting in self._state.attr_settings.items()}
        settings.setdefault(name, {})[key] = value
        self._update(attr_settings=settings)
        self._persist()

    def set_selection(self, ids: Iterable[Any]) -> None:
        selection = frozenset(ids)
        if selection == self._state.selection:
            return
        self._update(selection=selection)
        if self._on_selection_change:
            self._on_selection_change(selection)

    def update_item_by_id(self, patch: Mapping[str, Any], item_id: Any) -> bool:
        id_key = self.config.id_key
        found = False
        items: list[dict[str, Any]] = []
        for item in self._state.items:
            if item.get(id_key) == item_id:
                found = True
                items.append({**item, **patch})
            else:
                items.append(item)
        if found:
            self._update(items=items)
        return found

    # -- fetch protocol ---------------------------------------------------

    async def _fetch(self, extra: Mapping[str, Any] | None = None) -> ListView:
        if self._unmounted:
            raise RuntimeError("ListController used after on_unmount()")
        self._generation += 1
        token = self._generation
        snapshot = list(self._state.items)
        page = self._state.page
        query = self.query(extra)
        action = "refresh" if query.get("is_refresh") else "fetch"

        changes: dict[str, Any] = {"error": None}
        if not self._state.is_initializing:
            changes["is_loading"] = True
        self._update(**changes)

        self._in_flight = token
        started = time.monotonic()
        try:
            raw = await self._request(query)
            result = self._normalize(raw)
        except asyncio.CancelledError:
            if token == self._generation:
                self._update(is_loading=False)
            raise
        except Exception as exc:
            failure = RequestFailure.wrap(exc)
            current = token == self._generation
            if current:
                self._update(error=failure, items=[], count=0, is_initializing=False, is_loading=False)
            self._log(action, "failure" if current else "stale_failure", page, started, failure.code, logging.WARNING)
            if failure is exc:
                raise
            raise failure from exc
        finally:
            if self._in_flight == token:
                self._in_flight = None

        if token != self._generation:
            self._log(action, "stale", page, started)
            return self.view

        if self.config.is_load_more and page and page > 1:
            items = snapshot + list(result.items)
        else:
            items = list(result.items)
        had_selection = bool(self._state.selection)
        self._update(
            items=items,
            count=result.count,
            response=raw,
            selection=frozenset(),
            is_initializing=False,
            is_loading=False,
        )
        self._seed_attr_settings()
        self._persist()
        self._log(action, "success", page, started)

        if self._on_response:
            self._on_response(raw)
        if self.config.is_load_more:
            if self._after_load_more:
                self._after_load_more(raw)
        elif self._after_page_change:
            self._after_page_change(raw)
        if had_selection and self._on_selection_change:
            self._on_selection_change(frozenset())
        return self.view

    @staticmethod
    def _normalize(raw: Any) -> PageResult:
        if isinstance(raw, PageResult):
            return raw
        if isinstance(raw, Mapping):
            payload = raw
        else:
            payload = {"items": getattr(raw, "items", None), "count": getattr(raw, "count", None)}
        try:
            return PageResult.model_validate(dict(payload))
        except ValidationError as exc:
            raise RequestFailure(
                code="INVALID_RESPONSE",
                message="Request handler must return items and a non-negative count",
                details=str(exc),
            ) from exc

    # -- state plumbing ---------------------------------------------------

    def _update(self, **changes: Any) -> None:
        changed = False
        for name, value in changes.items():
            current = getattr(self._state, name)
            if isinstance(current, BaseException) or isinstance(value, BaseException):
                differs = current is not value
            else:
                differs = current is not value and current != value
            setattr(self._state, name, value)
            changed = changed or differs
        if changed:
            self._touch()

    def _touch(self) -> None:
        self._version += 1
        if not self._subscribers:
            return
        view = self.view
        for callback in list(self._subscribers):
            callback(view)

    def _seed_attr_settings(self) -> None:
        settings = self._state.attr_settings
        missing = [name for name in known_attr_names(self.config.attrs, self._state.items) if name not in settings]
        if not missing:
            return
        seeded = {attr: dict(setting) for attr, setting in settings.items()}
        for name in missing:
            seeded[name] = {"visible": True}
        self._update(attr_settings=seeded)

    def _restore_saved_state(self) -> None:
        if self._state_manager is None:
            return
        context = self.context()
        try:
            self._state_manager.init(context)
            raw = self._state_manager.get(context)
            if raw is None:
                return
            try:
                overrides = SavedListState.model_validate(dict(raw)).overrides()
            except ValidationError as exc:
                raise PersistenceReadFailure(f"Invalid saved state for {self.config.endpoint}") from exc
        except Exception as exc:
            logger.warning("ignoring saved list state for %s: %s", self.config.endpoint, exc)
            return
        if "filters" in overrides:
            overrides["filters"] = dict(overrides["filters"])
        self._update(**overrides)
        self.search_input.sync(self._state.search)

    def _persist(self) -> None:
        if self._state_manager is None:
            return
        try:
            self._state_manager.set(self.context())
        except Exception:
            logger.exception("could not persist list state for %s", self.config.endpoint)

    def _log(
        self,
        action: str,
        outcome: str,
        page: int | None,
        started: float,
        error_code: str | None = None,
        level: int = logging.INFO,
    ) -> None:
        log_action(
            logger,
            list_id=self.config.list_id,
            endpoint=self.config.endpoint,
            action=action,
            outcome=outcome,
            page=page,
            duration_ms=int((time.monotonic() - started) * 1000),
            error_code=error_code,
            level=level,
        )
