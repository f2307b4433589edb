"""Latest-request-wins project feed.

A feed owns one FeedState. Every update() starts a read tagged with a
sequence number; when the read finishes it only publishes if its number is
still the newest and the feed is open. Superseded reads are left to finish
and their results are dropped.
"""
import asyncio
from typing import Callable, Iterable, List, Optional, Set

from pydantic import BaseModel

from database import PROJECTS, Gateway
from logging_config import get_logger
from schemas import Project, ProjectCategory

logger = get_logger(__name__)

FETCH_ERROR = "Erro ao carregar projetos. Tente novamente."

FeedListener = Callable[["FeedState"], None]


class FeedOptions(BaseModel):
    featured_only: bool = False
    category: Optional[ProjectCategory] = None


class FeedState(BaseModel):
    data: Optional[List[Project]] = None
    loading: bool = True
    error: Optional[str] = None


def filter_by_category(projects: Iterable[Project], category: Optional[str]) -> List[Project]:
    if not category:
        return list(projects)
    return [p for p in projects if p.category == category]


async def load_projects(gateway: Gateway, featured_only: bool = False, category: Optional[str] = None) -> List[Project]:
    if featured_only:
        result = await gateway.get_featured_documents(PROJECTS)
    else:
        result = await gateway.get_documents(PROJECTS)
    return filter_by_category(result, category)


class ProjectsFeed:
    def __init__(self, gateway: Gateway):
        self._gateway = gateway
        self.state = FeedState()
        self.options = FeedOptions()
        self._seq = 0
        self._closed = False
        self._pending: Set[asyncio.Task] = set()
        self._listeners: List[FeedListener] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes) -> None:
        self.state = self.state.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self.state)

    def update(self, featured_only: bool = False, category: Optional[str] = None) -> asyncio.Task:
        if self._closed:
            raise RuntimeError("feed is closed")
        options = FeedOptions(featured_only=featured_only, category=category)
        self.options = options
        self._seq += 1
        self._publish(loading=True, error=None)

        task = asyncio.get_running_loop().create_task(self._run(self._seq, options))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _is_current(self, seq: int) -> bool:
        return not self._closed and seq == self._seq

    async def _run(self, seq: int, options: FeedOptions) -> None:
        try:
            result = await load_projects(self._gateway, options.featured_only, options.category)
        except Exception as e:
            if not self._is_current(seq):
                return
            logger.warning("projects_feed_failed", error=str(e), error_type=type(e).__name__)
            self._publish(error=FETCH_ERROR, loading=False)
            return

        if not self._is_current(seq):
            logger.debug("projects_feed_result_dropped", seq=seq, latest=self._seq, closed=self._closed)
            return
        self._publish(data=result, loading=False)

    async def settle(self) -> None:
        """Wait for every in-flight read, including superseded ones."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()
