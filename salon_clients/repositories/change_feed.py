"""In-process change feed used by the bundled SQLite backend."""

from .interfaces.change_feed import ChangeListener, IClientChangeFeed, Unsubscribe
from ..config import logger as log


class LocalChangeFeed(IClientChangeFeed):
    """Fans out change events to listeners registered in this process."""

    def __init__(self):
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        self._listeners.append(listener)
        log.debug("feed.clients", "subscribe", listeners=len(self._listeners))

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
                log.debug("feed.clients", "unsubscribe", listeners=len(self._listeners))

        return unsubscribe

    def publish(self, event: str) -> None:
        """Notifies every listener. A failing listener does not stop the others."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                log.error("feed.clients", "listener failed", event=event, error=str(e))

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
