from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .config import ListingSettings
from .controller import ListController, ResponseHook, SelectionHook
from .errors import ConfigurationError
from .models import ListConfiguration
from .ports import PersistencePort, RequestPort
from .registry import ListRegistry


class ListProvider:
    """Root of a tree of lists: shared request port, persistence port and registry."""

    def __init__(
        self,
        request_handler: RequestPort | None,
        state_manager: PersistencePort | None = None,
        *,
        registry: ListRegistry | None = None,
        settings: ListingSettings | None = None,
    ) -> None:
        if request_handler is None:
            raise ConfigurationError("ListProvider: request_handler is required.")
        self.request_handler = request_handler
        self.state_manager = state_manager
        self.registry = registry or ListRegistry()
        self.settings = settings or ListingSettings()

    def configure(self, endpoint: str, **overrides: Any) -> ListConfiguration:
        values: dict[str, Any] = {
            "per_page": self.settings.default_per_page,
            "sort_order": self.settings.default_sort_order,
        }
        values.update(overrides)
        return ListConfiguration(endpoint=endpoint, **values)

    def create_list(
        self,
        config: ListConfiguration,
        *,
        request_handler: RequestPort | None = None,
        on_response: ResponseHook | None = None,
        on_selection_change: SelectionHook | None = None,
        after_page_change: ResponseHook | None = None,
        after_load_more: ResponseHook | None = None,
    ) -> ListController:
        return ListController(
            config,
            request_handler=request_handler or self.request_handler,
            state_manager=self.state_manager,
            registry=self.registry,
            settings=self.settings,
            on_response=on_response,
            on_selection_change=on_selection_change,
            after_page_change=after_page_change,
            after_load_more=after_load_more,
        )

    async def refresh_list(self, list_id: str | None = None, options: Mapping[str, Any] | None = None) -> None:
        await self.registry.refresh_list(list_id, options)

    def list_info(self) -> dict[str, Any]:
        return self.registry.list_info()
