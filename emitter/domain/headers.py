"""Ordered response header collection."""

import re
from collections.abc import MutableMapping
from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union

LOCATION = "Location"

_INVALID_NAME = re.compile(r"[\x00-\x20\x7f:]")
_INVALID_VALUE = re.compile(r"[\r\n\x00]")

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def _validate(name: str, value: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError("Header name must be a non-empty string")
    if _INVALID_NAME.search(name):
        raise ValueError(f"Invalid header name: {name!r}")
    if not isinstance(value, str):
        raise ValueError(f"Header value for {name!r} must be a string")
    if _INVALID_VALUE.search(value):
        raise ValueError(f"Invalid header value for {name!r}")
    try:
        name.encode("latin-1")
        value.encode("latin-1")
    except UnicodeEncodeError:
        raise ValueError(f"Header {name!r} is not latin-1 encodable") from None


class HeaderSet(MutableMapping):
    """Header names mapped to values, emitted in insertion order.

    Names are kept exactly as supplied, so ``Location`` and ``location`` are
    distinct entries. Assigning to an existing name replaces its value but
    keeps its original position.
    """

    def __init__(self, headers: Optional[HeaderSource] = None) -> None:
        self._items: dict[str, str] = {}
        if headers is not None:
            self.update(headers)

    def __getitem__(self, name: str) -> str:
        return self._items[name]

    def __setitem__(self, name: str, value: str) -> None:
        _validate(name, value)
        self._items[name] = value

    def __delitem__(self, name: str) -> None:
        del self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderSet({list(self._items.items())!r})"

    def copy(self) -> "HeaderSet":
        return HeaderSet(self._items)

    def is_redirect(self) -> bool:
        """Return True when a Location entry is present."""
        return LOCATION in self._items

    def lines(self) -> list[str]:
        """Return ``Name: Value`` lines in emission order."""
        return [f"{name}: {value}" for name, value in self._items.items()]
