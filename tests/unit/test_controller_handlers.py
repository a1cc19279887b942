import pytest

from listing_core import InMemoryStateStore, ListConfiguration, ListController, ListingSettings

ROWS = [{"id": 1, "name": "alice", "email": "a@x"}, {"id": 2, "name": "bob", "email": "b@x"}]


class _StubRequest:
    def __init__(self, items=None, count: int | None = None) -> None:
        self.items = ROWS if items is None else items
        self.count = len(self.items) if count is None else count
        self.queries: list[dict] = []

    async def __call__(self, query):
        self.queries.append(dict(query))
        return {"items": self.items, "count": self.count}


async def _mounted(config: ListConfiguration | None = None, **kwargs) -> tuple[ListController, _StubRequest]:
    request = kwargs.pop("request", None) or _StubRequest()
    controller = ListController(config or ListConfiguration(endpoint="users", page=2), request_handler=request, **kwargs)
    await controller.on_mount()
    return controller, request


@pytest.mark.asyncio
async def test_set_search_resets_page_and_skips_unchanged_values() -> None:
    controller, request = await _mounted()

    await controller.set_search("ali")
    await controller.set_search("ali")

    assert len(request.queries) == 2
    assert request.queries[-1]["search"] == "ali"
    assert request.queries[-1]["page"] == 1


@pytest.mark.asyncio
async def test_set_sort_per_page_and_filters_reset_page() -> None:
    controller, request = await _mounted()

    await controller.set_page(4)
    await controller.set_sort("name", "asc")
    assert (request.queries[-1]["sort_by"], request.queries[-1]["sort_order"], request.queries[-1]["page"]) == ("name", "asc", 1)

    await controller.set_page(4)
    await controller.set_per_page(50)
    assert (request.queries[-1]["per_page"], request.queries[-1]["page"]) == (50, 1)

    await controller.set_page(4)
    await controller.set_filters({"status": "open"})
    assert (request.queries[-1]["filters"], request.queries[-1]["page"]) == ({"status": "open"}, 1)


@pytest.mark.asyncio
async def test_set_sort_keeps_current_order_when_omitted() -> None:
    controller, request = await _mounted(ListConfiguration(endpoint="users", sort_order="asc"))

    view = await controller.set_sort("email")

    assert view.sort_by == "email"
    assert view.sort_order == "asc"


@pytest.mark.asyncio
async def test_set_filters_replaces_wholesale() -> None:
    controller, request = await _mounted(ListConfiguration(endpoint="users", filters={"status": "open", "role": "admin"}))

    view = await controller.set_filters({"role": "user"})

    assert dict(view.filters) == {"role": "user"}


@pytest.mark.asyncio
async def test_has_active_filters_compares_against_configured_baseline() -> None:
    controller, _ = await _mounted(ListConfiguration(endpoint="users", filters={"status": "open"}))
    assert controller.view.has_active_filters is False

    await controller.set_filters({"status": "closed"})
    assert controller.view.has_active_filters is True

    await controller.set_filters({"status": "open", "q": None})
    assert controller.view.has_active_filters is False


@pytest.mark.asyncio
async def test_selection_is_cleared_by_every_successful_fetch() -> None:
    changes: list[frozenset] = []
    controller, _ = await _mounted(on_selection_change=changes.append)

    controller.set_selection([1, 2])
    assert controller.view.selection == frozenset({1, 2})

    view = await controller.refresh()

    assert view.selection == frozenset()
    assert view.error is None
    assert changes == [frozenset({1, 2}), frozenset()]


@pytest.mark.asyncio
async def test_update_item_by_id_merges_patch_without_refetch() -> None:
    controller, request = await _mounted()
    fetches = len(request.queries)

    assert controller.update_item_by_id({"name": "Bobby"}, 2) is True
    assert controller.update_item_by_id({"name": "ghost"}, 99) is False

    assert len(request.queries) == fetches
    assert list(controller.view.items) == [ROWS[0], {"id": 2, "name": "Bobby", "email": "b@x"}]
    assert ROWS[1]["name"] == "bob"


@pytest.mark.asyncio
async def test_update_item_by_id_honours_configured_id_key() -> None:
    rows = [{"uuid": "u-1", "name": "alice"}]
    controller, _ = await _mounted(ListConfiguration(endpoint="users", id_key="uuid"), request=_StubRequest(rows))

    assert controller.update_item_by_id({"name": "Alice"}, "u-1") is True
    assert controller.view.items[0]["name"] == "Alice"


@pytest.mark.asyncio
async def test_attr_settings_seeded_from_configured_attrs_before_fetch() -> None:
    config = ListConfiguration(endpoint="users", attrs=["name", {"name": "email", "label": "E-mail", "sortable": True}])
    controller = ListController(config, request_handler=_StubRequest())

    assert dict(controller.view.attr_settings) == {}
    await controller.on_mount()

    view = controller.view
    assert {name: dict(setting) for name, setting in view.attr_settings.items()} == {
        "name": {"visible": True},
        "email": {"visible": True},
    }
    assert view.attrs == ("name", "email")
    assert view.serialized_attrs[1].label == "E-mail"
    assert view.serialized_attrs[1].to_dict() == {"name": "email", "label": "E-mail", "sortable": True}


@pytest.mark.asyncio
async def test_attr_settings_fall_back_to_record_keys() -> None:
    controller, _ = await _mounted()

    assert controller.view.attrs == ("id", "name", "email")
    assert all(controller.view.is_visible(name) for name in ("id", "name", "email"))


@pytest.mark.asyncio
async def test_update_attr_changes_visibility_and_persists_without_fetch() -> None:
    store = InMemoryStateStore()
    controller, request = await _mounted(state_manager=store)
    fetches = len(request.queries)

    controller.update_attr("email", "visible", False)

    assert controller.view.is_visible("email") is False
    assert store.entries["listing--users--1"]["attr_settings"]["email"] == {"visible": False}
    assert len(request.queries) == fetches


@pytest.mark.asyncio
async def test_view_is_memoized_per_version_and_published_to_subscribers() -> None:
    controller, _ = await _mounted()
    published: list = []
    unsubscribe = controller.subscribe(published.append)

    first = controller.view
    assert controller.view is first

    controller.set_selection([1])
    assert controller.view is not first
    assert controller.view.version == first.version + 1
    assert published == [controller.view]

    controller.set_selection([1])
    assert len(published) == 1

    unsubscribe()
    controller.set_selection([])
    assert len(published) == 1


@pytest.mark.asyncio
async def test_search_input_uses_configured_debounce_delay() -> None:
    controller, _ = await _mounted(settings=ListingSettings(debounce_ms=120))

    assert controller.search_input.delay_ms == 120
