"""Process-wide access to the backend collaborators.

Entry points (scripts, an app's startup hook) build a ``Container`` once and
register it with ``set_container``; use cases such as ``save_client`` fall
back to it when no container is passed explicitly.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from .repositories.interfaces.change_feed import IClientChangeFeed
from .repositories.interfaces.client_repository import IClientRepository
from .repositories.interfaces.tag_repository import ITagRepository


@dataclass
class Container:
    """Client store, tag store and the change feed they publish to."""

    clients: IClientRepository
    tags: ITagRepository
    feed: IClientChangeFeed


_container: Optional[Container] = None


def get_container() -> Container:
    """Returns the registered container.

    Raises:
        RuntimeError: If nothing was registered yet.
    """
    if _container is None:
        raise RuntimeError(
            "No client backend registered. Call set_container() at startup."
        )
    return _container


def set_container(container: Container) -> None:
    global _container
    _container = container


def reset_container() -> None:
    global _container
    _container = None


@contextmanager
def use_container(container: Container) -> Iterator[Container]:
    """Registers ``container`` for the duration of the block, then restores."""
    global _container
    previous = _container
    _container = container
    try:
        yield container
    finally:
        _container = previous
