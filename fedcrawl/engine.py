"""Discovery engine — concurrent breadth-first walk of the peer graph.

Every admitted hostname goes through the same pipeline:

  1. resolve its base URL             (:class:`~fedcrawl.resolver.EndpointResolver`)
  2. fetch its NodeInfo descriptor    (:class:`~fedcrawl.nodeinfo.NodeInfoFetcher`)
  3. keep it only if the software matches ``software``
  4. bump the aggregate counters and report progress
  5. in the background: persist the descriptor and submit its peers

Steps 1-4 run while holding a permit from a fixed-size pool; the dispatch
loop blocks on that pool, which caps the number of hostnames being classified
at once.  Step 5 runs without a permit.

The run ends on quiescence: the frontier is empty and no admission or
background job is outstanding.  The engine then sets its completion event;
it never exits the process itself.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Coroutine

from fedcrawl.client import build_client
from fedcrawl.config import DEFAULT_CONCURRENCY, DEFAULT_DENYLIST, DEFAULT_SOFTWARE, CrawlerConfig
from fedcrawl.errors import CrawlError
from fedcrawl.nodeinfo import NodeInfoFetcher
from fedcrawl.peers import PeerLister
from fedcrawl.resolver import EndpointResolver
from fedcrawl.store import DescriptorStore, InstanceDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Progress:
    domain: str
    users: int
    instances: int
    queued: int
    visited: int

    def format(self) -> str:
        return (
            f"Found {self.domain: <26} Users: {self.users} Instances: {self.instances} "
            f"Queue: {self.queued} Already fetched: {self.visited}"
        )


@dataclass(frozen=True)
class CrawlStats:
    instances: int
    users: int
    visited: int


def print_progress(progress: Progress) -> None:
    print(progress.format(), flush=True)


class CrawlState:
    """Shared mutable state of one run.

    Each field has its own lock; no caller holds two of them at once or holds
    one across network I/O.
    """

    def __init__(self) -> None:
        self.visited: set[str] = set()
        self.instances = 0
        self.users = 0
        self.visited_lock = asyncio.Lock()
        self._instances_lock = asyncio.Lock()
        self._users_lock = asyncio.Lock()

    async def record_instance(self, users: int | None) -> tuple[int, int]:
        """Count one matching instance; returns ``(users, instances)`` after the update."""
        async with self._users_lock:
            if users is not None:
                self.users += users
            total_users = self.users
        async with self._instances_lock:
            self.instances += 1
            total_instances = self.instances
        return total_users, total_instances


class DiscoveryEngine:
    """Crawls the peer graph reachable from a seed hostname.

    Args:
        resolver:    Maps hostnames to base URLs.
        fetcher:     Fetches NodeInfo descriptors.
        peer_lister: Lists the peers of an instance.
        store:       Persists matching descriptors.
        software:    NodeInfo ``software.name`` to keep (case-sensitive).
        concurrency: Size of the permit pool.
        denylist:    Domain suffixes that are never admitted.
        on_progress: Called once per matching instance.

    An engine instance is single-use: call :meth:`run` once.
    """

    def __init__(
        self,
        resolver: EndpointResolver,
        fetcher: NodeInfoFetcher,
        peer_lister: PeerLister,
        store: DescriptorStore,
        *,
        software: str = DEFAULT_SOFTWARE,
        concurrency: int = DEFAULT_CONCURRENCY,
        denylist: tuple[str, ...] = DEFAULT_DENYLIST,
        on_progress: Callable[[Progress], None] = print_progress,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._resolver = resolver
        self._fetcher = fetcher
        self._peer_lister = peer_lister
        self._store = store
        self.software = software
        self.concurrency = concurrency
        self.denylist = denylist
        self._on_progress = on_progress

        self.state = CrawlState()
        self._frontier: asyncio.Queue[str] = asyncio.Queue()
        self._permits = asyncio.Semaphore(concurrency)
        self._held_permits = 0
        # Admitted-but-unfinished hostnames plus running background jobs.
        self._outstanding = 0
        self._tasks: set[asyncio.Task] = set()
        self._done = asyncio.Event()
        self._started = False

        # Hostnames currently in steps 1-4, and the highest value seen.
        self.admitting = 0
        self.peak_admitting = 0

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    def is_allowed(self, hostname: str) -> bool:
        return not any(hostname.endswith(bad) for bad in self.denylist)

    async def submit(self, hostname: str) -> bool:
        """Admit *hostname* to the frontier unless seen before or denylisted.

        Returns:
            ``True`` if the hostname was enqueued by this call.
        """
        if not self.is_allowed(hostname):
            return False
        async with self.state.visited_lock:
            if hostname in self.state.visited:
                return False
            self.state.visited.add(hostname)
            self._outstanding += 1
            self._frontier.put_nowait(hostname)
        return True

    async def run(self, seed: str) -> CrawlStats:
        """Crawl from *seed* until quiescence and return the final counters."""
        if self._started:
            raise RuntimeError("DiscoveryEngine.run() can only be called once")
        self._started = True

        await self.submit(seed)
        dispatcher = asyncio.create_task(self._dispatch())
        # A denylisted seed leaves nothing to do.
        self._check_quiescence()
        try:
            await self._done.wait()
        finally:
            dispatcher.cancel()
            for task in list(self._tasks):
                task.cancel()
            try:
                await dispatcher
            except asyncio.CancelledError:
                pass
        stats = self.stats
        logger.info(
            "crawl complete — %d instance(s), %d user(s), %d host(s) seen",
            stats.instances,
            stats.users,
            stats.visited,
        )
        return stats

    @property
    def stats(self) -> CrawlStats:
        return CrawlStats(
            instances=self.state.instances,
            users=self.state.users,
            visited=len(self.state.visited),
        )

    @property
    def queued(self) -> int:
        """Number of hostnames waiting in the frontier."""
        return self._frontier.qsize()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    # ------------------------------------------------------------------ #
    # Scheduling                                                           #
    # ------------------------------------------------------------------ #

    async def _dispatch(self) -> None:
        """Hand frontier entries to admission tasks, one permit each."""
        while True:
            hostname = await self._frontier.get()
            await self._permits.acquire()
            self._held_permits += 1
            self._spawn(self._admit(hostname))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("crawl task failed unexpectedly: %r", exc, exc_info=exc)

    def _start_job(self, coro: Coroutine[Any, Any, None]) -> None:
        self._outstanding += 1
        self._spawn(self._run_job(coro))

    async def _run_job(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        finally:
            self._finish()

    def _finish(self) -> None:
        self._outstanding -= 1
        self._check_quiescence()

    def _check_quiescence(self) -> None:
        if self._outstanding == 0 and self._frontier.empty() and self._held_permits == 0:
            logger.debug("quiescent — %d host(s) seen", len(self.state.visited))
            self._done.set()

    # ------------------------------------------------------------------ #
    # Per-hostname pipeline                                                #
    # ------------------------------------------------------------------ #

    async def _admit(self, hostname: str) -> None:
        self.admitting += 1
        self.peak_admitting = max(self.peak_admitting, self.admitting)
        try:
            await self._classify(hostname)
        finally:
            self.admitting -= 1
            self._held_permits -= 1
            self._permits.release()
            self._finish()

    async def _classify(self, hostname: str) -> None:
        try:
            base_url = await self._resolver.resolve(hostname)
            nodeinfo = await self._fetcher.fetch(base_url)
        except CrawlError as exc:
            logger.debug("dropping %s: %s", hostname, exc)
            return

        if nodeinfo.software.name != self.software:
            logger.debug("dropping %s: runs %s", hostname, nodeinfo.software.name)
            return

        users, instances = await self.state.record_instance(nodeinfo.usage.users.total)
        self._on_progress(
            Progress(
                domain=hostname,
                users=users,
                instances=instances,
                queued=self.queued,
                visited=len(self.state.visited),
            )
        )

        descriptor = InstanceDescriptor(domain=hostname, base_url=base_url, nodeinfo=nodeinfo)
        self._start_job(self._persist(descriptor))
        self._start_job(self._discover_peers(hostname, base_url))

    async def _persist(self, descriptor: InstanceDescriptor) -> None:
        try:
            await self._store.save(descriptor)
        except CrawlError as exc:
            logger.debug("not saving %s: %s", descriptor.domain, exc)

    async def _discover_peers(self, hostname: str, base_url: str) -> None:
        try:
            peers = await self._peer_lister.list_peers(base_url)
        except CrawlError as exc:
            logger.debug("no peers for %s: %s", hostname, exc)
            return
        for peer in peers:
            await self.submit(peer)


async def crawl(config: CrawlerConfig, on_progress: Callable[[Progress], None] = print_progress) -> CrawlStats:
    """Run a full crawl described by *config*.

    Raises:
        PersistenceError: the output directory could not be created.
    """
    store = DescriptorStore(config.target_dir)
    store.ensure()

    async with build_client(config.timeout) as client:
        engine = DiscoveryEngine(
            EndpointResolver(client),
            NodeInfoFetcher(client),
            PeerLister(client),
            store,
            software=config.software,
            concurrency=config.concurrency,
            denylist=config.denylist,
            on_progress=on_progress,
        )
        return await engine.run(config.seed)
