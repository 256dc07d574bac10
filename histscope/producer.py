#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Search producer: runs one history query in the background and streams
the results into a channel for the picker.

EntryChannel is single-producer/single-consumer and unbounded, so the
producer never waits on the picker. The producer closes it exactly once;
a close carrying an error means the query failed.
"""

import queue
import threading
from typing import Iterator, List, Optional, Tuple

from histscope.debug_logger import DebugLogger, get_logger
from histscope.errors import ChannelClosedError
from histscope.filters import describe_filter
from histscope.models import HistoryEntry, SearchDirection, SearchFilter, SearchQuery
from histscope.store import HistoryStore

_END = object()

DEFAULT_BATCH_SIZE = 256
DEFAULT_BATCH_TIMEOUT = 0.05  # seconds


class EntryChannel:
    """Unbounded one-way stream of history entries with an explicit close."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._drained = False
        self.error: Optional[BaseException] = None

    def send(self, entry: HistoryEntry) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosedError("send on closed channel")
            self._queue.put(entry)

    def close(self, error: Optional[BaseException] = None) -> None:
        """Mark end-of-stream. error is set when the producer failed."""
        with self._lock:
            if self._closed:
                raise ChannelClosedError("channel already closed")
            self._closed = True
            self.error = error
            self._queue.put(_END)

    def receive_batch(
        self,
        max_items: int = DEFAULT_BATCH_SIZE,
        timeout: float = DEFAULT_BATCH_TIMEOUT,
    ) -> Tuple[List[HistoryEntry], bool]:
        """
        Take whatever is ready, waiting at most `timeout` for the first item.

        Returns:
            (entries, finished): finished is True once the end-of-stream
            marker has been consumed; every later call returns ([], True).
        """
        batch: List[HistoryEntry] = []
        if self._drained:
            return batch, True
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return batch, False
        while True:
            if item is _END:
                self._drained = True
                return batch, True
            batch.append(item)  # type: ignore[arg-type]
            if len(batch) >= max_items:
                return batch, False
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return batch, False

    def __iter__(self) -> Iterator[HistoryEntry]:
        """Block for entries until the channel is closed."""
        while not self._drained:
            item = self._queue.get()
            if item is _END:
                self._drained = True
                return
            yield item  # type: ignore[misc]


class SearchProducer:
    """
    Issues one store query per start() on a background thread.

    At most one query runs at a time: start() refuses while the previous
    one is alive, and join() must be called before the next start().
    A store failure is re-raised from join().
    """

    def __init__(self, store: HistoryStore, logger: Optional[DebugLogger] = None) -> None:
        self.store = store
        self.logger = logger or get_logger()
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, search_filter: SearchFilter, scope_name: str = "") -> EntryChannel:
        """Launch the query and return the channel it streams into."""
        if self._thread is not None:
            raise RuntimeError("previous search has not been joined")
        channel = EntryChannel()
        query = SearchQuery(filter=search_filter, direction=SearchDirection.BACKWARD)
        self._error = None
        self._thread = threading.Thread(
            target=self._run,
            args=(query, channel, scope_name),
            name="histscope-producer",
            daemon=True,
        )
        self._thread.start()
        return channel

    def _run(self, query: SearchQuery, channel: EntryChannel, scope_name: str) -> None:
        started = self.logger.query_start(scope_name, describe_filter(query.filter))
        rows = 0
        try:
            for entry in self.store.search(query):
                channel.send(entry)
                rows += 1
        except Exception as e:
            # Handed to the consumer through the channel and to join()
            self._error = e
            self.logger.query_end(scope_name, started, rows, error=str(e))
            channel.close(error=e)
            return
        self.logger.query_end(scope_name, started, rows)
        channel.close()

    def join(self) -> None:
        """Wait for the running query to finish; re-raise its failure."""
        thread = self._thread
        if thread is None:
            return
        thread.join()
        self._thread = None
        error, self._error = self._error, None
        if error is not None:
            raise error
