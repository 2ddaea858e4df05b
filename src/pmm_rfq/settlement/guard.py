"""Reentrancy exclusion for settlement entry points."""

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from ..errors import ReentrantCall

F = TypeVar("F", bound=Callable)


class ReentrancyGuard:
    """Explicit entered flag; a nested ``enter`` raises ``ReentrantCall``."""

    def __init__(self):
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    @contextmanager
    def enter(self) -> Iterator[None]:
        if self._entered:
            raise ReentrantCall()
        self._entered = True
        try:
            yield
        finally:
            self._entered = False


def nonreentrant(method: F) -> F:
    """Wrap a method in its instance's ``_guard``."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._guard.enter():
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
