"""
Sequential id generation for topology entities.

Ids have the form ``<prefix><counter>`` (e.g. ``v100``). A generator is bound
to one store through two supplier functions: ``content`` returns the refs the
store currently holds and ``contains`` tests whether an id is taken.

The counter is initialised lazily from the store content, on first use and
after ``reset()`` only. Ids inserted manually in between are not folded into
the counter; the collision check in ``next()`` still skips them.
"""

import logging
import threading
from typing import Callable, Iterable, Optional

from .refs import Ref

logger = logging.getLogger(__name__)


class IdGenerator:
    """Namespace-scoped ``<prefix><n>`` id source with reserve-on-read."""

    def __init__(
        self,
        prefix: str,
        content: Callable[[], Iterable[Ref]],
        contains: Optional[Callable[[str], bool]] = None,
    ):
        if prefix is None:
            raise ValueError("Id prefix must not be None")
        self.prefix = prefix
        self._content = content
        self._contains = contains or self._scan_contains
        self._counter = 0
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def counter(self) -> int:
        """The counter of the next candidate id (not the last returned one)."""
        return self._counter

    @property
    def initialized(self) -> bool:
        return self._initialized

    def next(self) -> str:
        """Return the next unused id and reserve it."""
        with self._lock:
            self._initialize_if_needed()
            try:
                while self._contains(self._create_id()):
                    self._counter += 1
                return self._create_id()
            finally:
                self._counter += 1

    def reset(self) -> None:
        with self._lock:
            self._counter = 0
            self._initialized = False

    def extract_integer(self, entity_id: str) -> int:
        """Numeric suffix of ``entity_id``; 0 when it does not parse."""
        try:
            return int(entity_id[len(self.prefix):].strip())
        except (ValueError, TypeError):
            return 0

    def _create_id(self) -> str:
        return f"{self.prefix}{self._counter}"

    def _init_value(self) -> int:
        suffixes = [
            self.extract_integer(ref.id)
            for ref in self._content()
            if ref.id.startswith(self.prefix)
        ]
        if not suffixes:
            return 0
        return max(suffixes) + 1

    def _initialize_if_needed(self) -> None:
        if not self._initialized:
            self._counter = self._init_value()
            self._initialized = True
            logger.debug(
                "Id generator %r initialised at %d", self.prefix, self._counter
            )

    def _scan_contains(self, entity_id: str) -> bool:
        return any(ref.id == entity_id for ref in self._content())
