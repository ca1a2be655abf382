"""Serialized writes of the game document.

Request handlers read the document, change one field and write the whole
document back. Two of those landing at once would interleave, so every write
goes through a WriteQueue: jobs run one at a time, in the order they were
enqueued, on a single worker task.

Worker model:
  - 1 asyncio task owned by the queue, started from the app lifespan
  - the blocking file write runs on a dedicated 1-thread executor, isolated
    from FastAPI's default executor
  - when another job is already waiting, the worker sleeps `delay` seconds
    before starting it so other pending work on the loop gets a turn
"""

import asyncio
import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .config import WRITE_QUEUE_DELAY, WRITE_QUEUE_SHUTDOWN_TIMEOUT
from .errors import StorageError
from .store import save_document

log = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Outcome of one queued write. Truthy when the document was saved."""

    ok: bool
    error: Exception | None = None

    def __bool__(self):
        return self.ok

    @property
    def message(self) -> str:
        if self.ok:
            return "saved"
        if isinstance(self.error, StorageError):
            return self.error.message
        return f"{type(self.error).__name__}: {self.error}"


class WriteQueue:
    """FIFO of document writes with exactly one write in flight."""

    def __init__(self, save=save_document, delay: float = WRITE_QUEUE_DELAY):
        self._save = save
        self.delay = delay
        self._queue: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None
        self._executor: ThreadPoolExecutor | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        """Jobs waiting to start (the one being written is not counted)."""
        return self._queue.qsize() if self._queue is not None else 0

    def start(self) -> None:
        """Spawn the worker task on the running loop. No-op if already running."""
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="writer")
        self._worker = asyncio.get_running_loop().create_task(self._run(), name="write-queue")
        log.info(f"Write queue started (delay={self.delay}s)")

    async def enqueue(self, doc: dict) -> WriteResult:
        """Queue a full-document write and wait for it to finish.

        The document is copied at enqueue time. Never raises for a failed
        write: the failure comes back as WriteResult(ok=False, error=...).
        """
        self.start()
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((copy.deepcopy(doc), future))
        return await future

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            doc, future = await self._queue.get()
            try:
                await loop.run_in_executor(self._executor, self._save, doc)
                result = WriteResult(ok=True)
            except asyncio.CancelledError:
                if not future.done():
                    future.set_result(WriteResult(ok=False, error=StorageError("Write interrupted by shutdown")))
                raise
            except Exception as e:
                log.error(f"Write failed: {e}")
                result = WriteResult(ok=False, error=e)
            if not future.done():
                future.set_result(result)
            self._queue.task_done()

            if not self._queue.empty():
                await asyncio.sleep(self.delay)

    async def stop(self, timeout: float = WRITE_QUEUE_SHUTDOWN_TIMEOUT) -> None:
        """Let queued writes finish (up to timeout), then stop the worker.

        Jobs still queued after the timeout are resolved as failed.
        """
        if self._worker is None:
            return
        log.info(f"Write queue: stopping ({self.pending} pending)...")
        if self.running:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=timeout)
            except TimeoutError:
                log.warning(f"Write queue did not drain within {timeout}s")

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            if not future.done():
                future.set_result(WriteResult(ok=False, error=StorageError("Write queue stopped")))
            self._queue.task_done()

        self._executor.shutdown(wait=False)
        self._executor = None
        log.info("Write queue stopped")
