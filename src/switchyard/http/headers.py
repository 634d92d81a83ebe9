"""Case-insensitive HTTP headers.

``Headers`` is the immutable request side: raw byte pairs from the ASGI
scope, decoded on access. ``MutableHeaders`` is the response side, built
up by middleware through ``ctx.set()``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive request headers.

    Built from the raw ASGI pairs, which stay available through ``raw``.
    Lookups go through an index of decoded values keyed by lowercased
    name, in arrival order. Indexing returns the first value of a
    repeated header; ``get_list`` returns them all.
    """

    __slots__ = ("_index", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._index: dict[str, list[str]] = {}
        for name, value in raw:
            key = name.decode("latin-1").lower()
            self._index.setdefault(key, []).append(value.decode("latin-1"))

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> Headers:
        """Build headers from a plain ``{name: value}`` mapping."""
        return cls(
            tuple(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in headers.items()
            )
        )

    def __getitem__(self, key: str) -> str:
        values = self._index.get(key.lower())
        if not values:
            raise KeyError(key)
        return values[0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._index.get(key.lower())
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """All values for *key*, in the order they arrived."""
        return list(self._index.get(key.lower(), ()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw


class MutableHeaders(MutableMapping[str, str]):
    """Case-insensitive response headers, one value per name.

    Keeps the casing of the first assignment for output and the order
    headers were first set in.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        # lowercased name -> (display name, value)
        self._items: dict[str, tuple[str, str]] = {}

    def __getitem__(self, key: str) -> str:
        return self._items[key.lower()][1]

    def __setitem__(self, key: str, value: str) -> None:
        existing = self._items.get(key.lower())
        display = existing[0] if existing is not None else key
        self._items[key.lower()] = (display, str(value))

    def __delitem__(self, key: str) -> None:
        del self._items[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (display for display, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._items

    def __repr__(self) -> str:
        return f"MutableHeaders({dict(self.items())!r})"

    def raw(self) -> list[tuple[bytes, bytes]]:
        """Header pairs encoded for an ASGI ``http.response.start`` message."""
        return [
            (display.lower().encode("latin-1"), value.encode("latin-1"))
            for display, value in self._items.values()
        ]
