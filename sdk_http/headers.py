"""Headers - Case-insensitive, insertion-ordered header container.

Shared by HttpRequest and HttpResponse. Lookups ignore case; the spelling
used by the most recent set is the one sent on the wire. Setting a header
that already exists under a different case overwrites the same logical
header in place (its position in iteration order is kept).
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping

USER_AGENT = "User-Agent"
CONTENT_TYPE = "Content-Type"
CONTENT_ENCODING = "Content-Encoding"

_UNSET: Any = object()


class Headers:
    """Ordered mapping of header name to a single value."""

    __slots__ = ("_items",)

    def __init__(
        self,
        initial: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
    ) -> None:
        # lowercase name -> (original name, value)
        self._items: dict[str, tuple[str, str]] = {}
        if initial is None:
            return
        pairs = initial.items() if isinstance(initial, Mapping) else initial
        for name, value in pairs:
            self.header(name, value)

    def header(self, name: str, value: str = _UNSET) -> Any:
        """Get or set a header.

        With one argument, returns the value for ``name`` (or None).
        With two, sets it unconditionally and returns self for chaining.

        Raises:
            ValueError: If ``value`` is None.
        """
        if value is _UNSET:
            entry = self._items.get(name.lower())
            return entry[1] if entry is not None else None
        if value is None:
            raise ValueError(f"Header {name!r} must have a value, got None")
        self._items[name.lower()] = (name, str(value))
        return self

    def header_if_not_present(self, name: str, value: str) -> Headers:
        """Set ``name`` only if no header with that name (any case) exists."""
        if value is None:
            raise ValueError(f"Header {name!r} must have a value, got None")
        if name.lower() not in self._items:
            self._items[name.lower()] = (name, str(value))
        return self

    def get(self, name: str, default: str | None = None) -> str | None:
        entry = self._items.get(name.lower())
        return entry[1] if entry is not None else default

    def remove(self, name: str) -> str | None:
        entry = self._items.pop(name.lower(), None)
        return entry[1] if entry is not None else None

    def items(self) -> list[tuple[str, str]]:
        """Return (name, value) pairs in insertion order, names as last set."""
        return list(self._items.values())

    def copy(self) -> Headers:
        return Headers(self.items())

    def __iter__(self) -> Iterator[str]:
        return iter([name for name, _ in self._items.values()])

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __getitem__(self, name: str) -> str:
        entry = self._items.get(name.lower())
        if entry is None:
            raise KeyError(name)
        return entry[1]

    def __setitem__(self, name: str, value: str) -> None:
        self.header(name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return {k: v for k, (_, v) in self._items.items()} == {
            k: v for k, (_, v) in other._items.items()
        }

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"
