"""Interface for the realtime client change feed."""

from abc import ABC, abstractmethod
from typing import Callable


ChangeListener = Callable[[str], None]
Unsubscribe = Callable[[], None]


class IClientChangeFeed(ABC):
    """Notifies that something changed in the clients table.

    Events carry only the kind of change ("insert", "update", "delete");
    subscribers are expected to refetch, never to patch their copy.
    """

    @abstractmethod
    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        """Registers a listener and returns the function that removes it."""
        pass
