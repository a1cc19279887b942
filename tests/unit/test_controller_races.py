import asyncio

import pytest

from listing_core import ListConfiguration, ListController, RequestFailure


class _GatedRequest:
    def __init__(self) -> None:
        self.calls: list[tuple[dict, asyncio.Future]] = []

    async def __call__(self, query):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((dict(query), future))
        return await future

    def resolve(self, index: int, items: list[dict], count: int) -> None:
        self.calls[index][1].set_result({"items": items, "count": count})

    def fail(self, index: int, error: Exception) -> None:
        self.calls[index][1].set_exception(error)


async def _mounted(request: _GatedRequest, **config) -> ListController:
    controller = ListController(ListConfiguration(endpoint="users", **config), request_handler=request)
    mount = asyncio.create_task(controller.on_mount())
    await asyncio.sleep(0)
    request.resolve(0, [{"id": "first"}], 30)
    await mount
    return controller


@pytest.mark.asyncio
async def test_slow_superseded_response_is_dropped() -> None:
    request = _GatedRequest()
    controller = await _mounted(request)

    slow = asyncio.create_task(controller.set_page(2))
    await asyncio.sleep(0)
    fast = asyncio.create_task(controller.set_page(3))
    await asyncio.sleep(0)

    request.resolve(2, [{"id": "page-3"}], 30)
    await fast
    request.resolve(1, [{"id": "page-2"}], 30)
    await slow

    view = controller.view
    assert view.page == 3
    assert list(view.items) == [{"id": "page-3"}]
    assert view.is_loading is False


@pytest.mark.asyncio
async def test_stale_failure_is_reraised_but_does_not_touch_state() -> None:
    request = _GatedRequest()
    controller = await _mounted(request)

    slow = asyncio.create_task(controller.set_search("a"))
    await asyncio.sleep(0)
    fast = asyncio.create_task(controller.set_search("ab"))
    await asyncio.sleep(0)

    request.resolve(2, [{"id": "ab"}], 1)
    await fast
    request.fail(1, RequestFailure(code="TIMEOUT_ERROR", message="late"))

    with pytest.raises(RequestFailure):
        await slow

    view = controller.view
    assert view.error is None
    assert view.search == "ab"
    assert list(view.items) == [{"id": "ab"}]


@pytest.mark.asyncio
async def test_loading_flag_follows_latest_fetch() -> None:
    request = _GatedRequest()
    controller = await _mounted(request)

    first = asyncio.create_task(controller.set_page(2))
    await asyncio.sleep(0)
    second = asyncio.create_task(controller.set_page(3))
    await asyncio.sleep(0)

    request.resolve(1, [{"id": "page-2"}], 30)
    await first
    assert controller.view.is_loading is True

    request.resolve(2, [{"id": "page-3"}], 30)
    await second
    assert controller.view.is_loading is False


@pytest.mark.asyncio
async def test_cancelled_fetch_releases_loading_flag() -> None:
    request = _GatedRequest()
    controller = await _mounted(request)

    pending = asyncio.create_task(controller.set_page(2))
    await asyncio.sleep(0)
    assert controller.view.is_loading is True

    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    assert controller.view.is_loading is False
