import httpx
import pytest

from pdfdancer_async import ValidationException
from pdfdancer_async.retry import Transport
from pdfdancer_async.session import Session
from pdfdancer_async.snapshot_cache import SnapshotCache
from tests.fake_server import (
    BASE_URL, TOKEN, FAST_RETRY, FakeDancerServer, document, element, page, mock_http_client, open_client
)


def _two_page_document():
    return document(
        page(0, [element("P1", "PARAGRAPH", 0, 10, 10, text="Hello")]),
        page(1, [element("I1", "IMAGE", 1, 50, 50)]),
    )


async def _cache(server):
    session = Session(Transport(mock_http_client(server), FAST_RETRY), BASE_URL, TOKEN)
    await session.create(b"%PDF")
    return SnapshotCache(session)


@pytest.mark.asyncio
async def test_document_snapshot_fetched_once():
    server = FakeDancerServer(_two_page_document())
    cache = await _cache(server)

    first = await cache.get_document_snapshot()
    second = await cache.get_document_snapshot()

    assert first is second
    assert server.calls('GET', '/pdf/document/snapshot') == 1
    assert first.page_count == 2
    assert [p.page_index for p in first.pages] == [0, 1]


@pytest.mark.asyncio
async def test_page_snapshot_served_from_document_snapshot():
    server = FakeDancerServer(_two_page_document())
    cache = await _cache(server)
    await cache.get_document_snapshot()

    page_snapshot = await cache.get_page_snapshot(1)

    assert [e.internal_id for e in page_snapshot.elements] == ["I1"]
    assert server.calls('GET', '/pdf/page/1/snapshot') == 0
    assert cache.cached_page_indexes() == [1]


@pytest.mark.asyncio
async def test_page_snapshot_fetched_without_document_snapshot():
    server = FakeDancerServer(_two_page_document())
    cache = await _cache(server)

    await cache.get_page_snapshot(0)
    await cache.get_page_snapshot(0)

    assert server.calls('GET', '/pdf/page/0/snapshot') == 1
    assert server.calls('GET', '/pdf/document/snapshot') == 0
    assert not cache.has_document_snapshot


@pytest.mark.asyncio
async def test_elements_are_tied_to_their_page():
    snapshot = document(page(0), page(1, [element("T1", "TEXT_LINE", 7, 0, 0, text="x")]))
    cache = await _cache(FakeDancerServer(snapshot))

    page_snapshot = await cache.get_page_snapshot(1)

    assert page_snapshot.elements[0].position.page_index == 1


@pytest.mark.asyncio
async def test_invalidate_drops_everything():
    server = FakeDancerServer(_two_page_document())
    cache = await _cache(server)
    await cache.get_document_snapshot()
    await cache.get_page_snapshot(0)
    await cache.get_page_refs()

    cache.invalidate()

    assert not cache.has_document_snapshot
    assert cache.cached_page_indexes() == []
    await cache.get_page_refs()
    assert server.calls('GET', '/pdf/document/snapshot') == 2


@pytest.mark.asyncio
async def test_forced_refresh_replaces_page_entries():
    server = FakeDancerServer(_two_page_document())
    cache = await _cache(server)
    await cache.get_page_snapshot(0)

    server.set_snapshot(document(page(0, [element("P2", "PARAGRAPH", 0, 1, 1, text="Fresh")])))
    await cache.get_document_snapshot(force_refresh=True)
    page_snapshot = await cache.get_page_snapshot(0)

    assert [e.internal_id for e in page_snapshot.elements] == ["P2"]


@pytest.mark.asyncio
async def test_page_refs_carry_size():
    cache = await _cache(FakeDancerServer(_two_page_document()))

    refs = await cache.get_page_refs()

    assert [ref.page_index for ref in refs] == [0, 1]
    assert refs[0].page_size.name == "A4"


@pytest.mark.asyncio
async def test_fetch_with_types_bypasses_cache():
    server = FakeDancerServer(_two_page_document())
    cache = await _cache(server)
    await cache.get_document_snapshot()

    await cache.fetch_document_snapshot(types="PARAGRAPH")

    requests = server.requests_to('GET', '/pdf/document/snapshot')
    assert len(requests) == 2
    assert requests[1].url.params['types'] == "PARAGRAPH"


@pytest.mark.asyncio
async def test_negative_page_index_rejected():
    server = FakeDancerServer()
    cache = await _cache(server)
    with pytest.raises(ValidationException):
        await cache.get_page_snapshot(-1)
    assert server.calls('GET', '/pdf/page/-1/snapshot') == 0


@pytest.mark.asyncio
async def test_unknown_element_types_are_skipped():
    snapshot = document(page(0, [element("X1", "HOLOGRAM", 0, 0, 0), element("I1", "IMAGE", 0, 0, 0)]))
    server = FakeDancerServer().on('GET', '/pdf/document/snapshot', httpx.Response(200, json=snapshot))
    cache = await _cache(server)

    snapshot = await cache.get_document_snapshot()

    assert [e.internal_id for e in snapshot.all_elements()] == ["I1"]


@pytest.mark.asyncio
async def test_client_refresh_and_typed_snapshots():
    server = FakeDancerServer(_two_page_document())
    pdf = await open_client(server)
    await pdf.select_images()

    snapshot = await pdf.refresh()
    page_snapshot = await pdf.get_page_snapshot(1, types="IMAGE")

    assert snapshot.total_element_count() == 2
    assert server.calls('GET', '/pdf/document/snapshot') == 2
    assert page_snapshot.page_index == 1
    assert server.requests_to('GET', '/pdf/page/1/snapshot')[0].url.params['types'] == "IMAGE"
