# subburn/workers/channel.py
import queue

from ..models.job import ProgressEvent


class ProgressChannel:
    """Unbounded FIFO from one monitor thread to the UI poll loop."""

    def __init__(self):
        self._q: queue.SimpleQueue = queue.SimpleQueue()

    def put(self, event: ProgressEvent) -> None:
        self._q.put(event)

    def poll(self) -> ProgressEvent | None:
        try:
            return self._q.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> list[ProgressEvent]:
        events = []
        while (event := self.poll()) is not None:
            events.append(event)
        return events
