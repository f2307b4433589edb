import asyncio
from datetime import datetime, timezone

import pytest

from feeds import FETCH_ERROR, ProjectsFeed, filter_by_category, load_projects
from schemas import Project


def make_project(pid, category, featured=False):
    return Project(
        id=pid,
        title=f"project {pid}",
        description="d",
        stack=["Python"],
        category=category,
        featured=featured,
        created_at=datetime(2024, 1, int(pid), tzinfo=timezone.utc),
    )


PROJECTS = [
    make_project("3", "devops", featured=True),
    make_project("2", "backend"),
    make_project("1", "devops"),
]


class ControlledGateway:
    """Every read blocks until the test resolves its future."""

    def __init__(self, projects):
        self.projects = projects
        self.reads: list[asyncio.Future] = []
        self.featured_reads = 0

    async def _read(self, featured):
        future = asyncio.get_running_loop().create_future()
        self.reads.append(future)
        outcome = await future
        if isinstance(outcome, Exception):
            raise outcome
        return [p for p in self.projects if p.featured or not featured]

    async def get_documents(self, collection, featured=None, access_token=None):
        return await self._read(False)

    async def get_featured_documents(self, collection):
        self.featured_reads += 1
        return await self._read(True)


async def reads_started(gateway, count):
    for _ in range(10):
        if len(gateway.reads) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} reads, saw {len(gateway.reads)}")


def ids(projects):
    return [p.id for p in projects]


def test_filter_by_category():
    assert ids(filter_by_category(PROJECTS, "devops")) == ["3", "1"]
    assert filter_by_category(PROJECTS, None) == PROJECTS
    assert filter_by_category(PROJECTS, "frontend") == []


@pytest.mark.asyncio
async def test_update_publishes_loading_then_data():
    gateway = ControlledGateway(PROJECTS)
    feed = ProjectsFeed(gateway)
    states = []
    feed.subscribe(states.append)

    feed.update(category="devops")
    assert feed.state.loading is True
    assert feed.state.error is None

    await reads_started(gateway, 1)
    gateway.reads[0].set_result(None)
    await feed.settle()

    assert [s.loading for s in states] == [True, False]
    assert ids(feed.state.data) == ["3", "1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("resolve_order", [(0, 1, 2), (2, 1, 0), (1, 2, 0), (2, 0, 1)])
async def test_latest_options_win_regardless_of_completion_order(resolve_order):
    gateway = ControlledGateway(PROJECTS)
    feed = ProjectsFeed(gateway)

    feed.update(category="devops")
    feed.update(category="frontend")
    feed.update(category="backend")
    await reads_started(gateway, 3)

    for index in resolve_order:
        gateway.reads[index].set_result(None)
        await asyncio.sleep(0)
    await feed.settle()

    assert ids(feed.state.data) == ["2"]
    assert feed.state.loading is False


@pytest.mark.asyncio
async def test_stale_failure_does_not_overwrite_newer_result():
    gateway = ControlledGateway(PROJECTS)
    feed = ProjectsFeed(gateway)

    feed.update()
    feed.update(category="backend")
    await reads_started(gateway, 2)
    gateway.reads[1].set_result(None)
    await asyncio.sleep(0)
    gateway.reads[0].set_result(RuntimeError("connection reset"))
    await feed.settle()

    assert feed.state.error is None
    assert ids(feed.state.data) == ["2"]


@pytest.mark.asyncio
async def test_failure_maps_to_fixed_message():
    gateway = ControlledGateway(PROJECTS)
    feed = ProjectsFeed(gateway)

    task = feed.update()
    await reads_started(gateway, 1)
    gateway.reads[0].set_result(ConnectionError("boom"))
    await task

    assert feed.state.error == FETCH_ERROR
    assert feed.state.loading is False
    assert feed.state.data is None


@pytest.mark.asyncio
async def test_no_mutation_after_close():
    gateway = ControlledGateway(PROJECTS)
    feed = ProjectsFeed(gateway)
    states = []
    feed.subscribe(states.append)

    feed.update()
    await reads_started(gateway, 1)
    before = feed.state
    feed.close()
    gateway.reads[0].set_result(None)
    await feed.settle()

    assert feed.state is before
    assert len(states) == 1
    with pytest.raises(RuntimeError):
        feed.update()


@pytest.mark.asyncio
async def test_unsubscribed_listener_is_not_called():
    gateway = ControlledGateway(PROJECTS)
    feed = ProjectsFeed(gateway)
    states = []
    unsubscribe = feed.subscribe(states.append)

    unsubscribe()
    feed.update()
    await reads_started(gateway, 1)
    gateway.reads[0].set_result(None)
    await feed.settle()

    assert states == []
    assert feed.state.data == PROJECTS


@pytest.mark.asyncio
async def test_featured_only_uses_featured_read(gateway, backend):
    projects = await load_projects(gateway, featured_only=True)

    assert [p.title for p in projects] == ["CI pipeline"]


@pytest.mark.asyncio
async def test_load_projects_against_backend_keeps_newest_first(gateway):
    projects = await load_projects(gateway)
    assert [p.title for p in projects] == ["Log shipper", "Billing API", "CI pipeline"]

    devops = await load_projects(gateway, category="devops")
    assert [p.title for p in devops] == ["Log shipper", "CI pipeline"]
