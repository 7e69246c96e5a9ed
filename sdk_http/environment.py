"""Environment - supplies the base URL that request paths are appended to."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Environment(Protocol):
    def base_url(self) -> str: ...


class StaticEnvironment:
    """Environment with a fixed base URL."""

    __slots__ = ("_base_url",)

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url

    def base_url(self) -> str:
        return self._base_url

    def __repr__(self) -> str:
        return f"StaticEnvironment({self._base_url!r})"
