"""Operator address: the join key between topology nodes and metric rows.

An address is the path of an operator inside the dataflow, as printed by the
runtime's logs (``[0, 8, 10]``). Addresses compare lexicographically by their
elements and are hashable, so they serve as dict keys and sort keys
throughout the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from flowprof.errors import InputError


@dataclass(frozen=True, order=True)
class Address:
    """Immutable sequence of non-negative integers.

    Attributes:
        path: Address elements, outermost scope first.
    """

    path: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        for element in self.path:
            if isinstance(element, bool) or not isinstance(element, int):
                raise InputError(
                    f"address element must be an integer, got {element!r}"
                )
            if element < 0:
                raise InputError(
                    f"address element must be non-negative, got {element}"
                )

    @classmethod
    def of(cls, elements: Iterable[int]) -> Address:
        """Build an address from any iterable of integers."""
        return cls(tuple(elements))

    @classmethod
    def coerce(cls, value: Any) -> Address:
        """Accept an ``Address``, an integer list, or an ``{"addr": [...]}`` mapping."""
        if isinstance(value, Address):
            return value
        if isinstance(value, dict):
            if "addr" not in value:
                raise InputError(f"operator reference missing 'addr': {value!r}")
            value = value["addr"]
        if isinstance(value, (list, tuple)):
            return cls(tuple(value))
        raise InputError(f"cannot interpret {value!r} as an operator address")

    @classmethod
    def parse(cls, text: str) -> Address:
        """Parse the bracketed log form, e.g. ``"[0, 8, 10]"``.

        Raises:
            InputError: If the text is not bracketed or holds a non-integer.
        """
        s = text.strip()
        if not (s.startswith("[") and s.endswith("]")):
            raise InputError(f"addr must be bracketed: {text!r}")
        elements = []
        for part in s[1:-1].split(","):
            part = part.strip()
            if not part:
                continue
            if not (part.isascii() and part.isdigit()):
                raise InputError(f"bad addr element {part!r} in {text!r}")
            elements.append(int(part))
        return cls(tuple(elements))

    def to_list(self) -> list[int]:
        return list(self.path)

    def __len__(self) -> int:
        return len(self.path)

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.path) + "]"
