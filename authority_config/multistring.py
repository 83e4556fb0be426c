"""String-or-list values.

A :class:`MultiString` decodes from either a bare JSON string or an array of
strings and always holds an ordered list internally. Encoding picks the wire
shape from the cardinality: ``""`` for no elements, a bare string for one,
and an array otherwise.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import overload

from .document import ArrayNode, Node, OtherNode, StringNode, dumps_value, node_kind, node_to_value, parse_node
from .errors import InvalidTargetError, ParseError
from .logging import get_logger

__all__ = ["MultiString", "unmarshal_multi_string"]

logger = get_logger(__name__)


class MultiString(Sequence[str]):
    """Ordered sequence of strings with a cardinality-dependent wire form."""

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[str] | str | None = None) -> None:
        if isinstance(values, str):
            # a bare string is one element, matching its wire form
            values = [values] if values else []
        self._values: list[str] = list(values) if values is not None else []

    @classmethod
    def from_json(cls, data: str | bytes) -> "MultiString":
        target = cls()
        target.load_json(data)
        return target

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> list[str]: ...

    def __getitem__(self, index: int | slice) -> str | list[str]:
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MultiString):
            return self._values == other._values
        if isinstance(other, (list, tuple)):
            return self._values == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MultiString({self._values!r})"

    def first(self) -> str:
        """Return the first element, or ``""`` when there are none.

        The empty sentinel is indistinguishable from a blank first element;
        use :meth:`has_empties` or ``len()`` to tell the two apart.
        """

        if self._values:
            return self._values[0]
        return ""

    def has_empties(self) -> bool:
        """Return ``True`` if there are no elements or any element is blank."""

        if not self._values:
            return True
        return any(not value for value in self._values)

    def to_list(self) -> list[str]:
        return list(self._values)

    def encode(self) -> str | list[str]:
        if not self._values:
            return ""
        if len(self._values) == 1:
            return self._values[0]
        return list(self._values)

    def to_node(self) -> Node:
        encoded = self.encode()
        if isinstance(encoded, str):
            return StringNode(encoded)
        return ArrayNode(tuple(StringNode(value) for value in encoded))

    def to_json(self) -> str:
        return dumps_value(self.encode())

    def decode(self, node: Node | None) -> None:
        """Populate from a string node, an array of string nodes, or nothing.

        A blank string node decodes to an empty sequence, so ``[""]`` does not
        survive a round trip; :meth:`has_empties` reports both the same way.
        """

        if node is None or (isinstance(node, OtherNode) and node.kind == "null"):
            self._values = []
            return
        if isinstance(node, StringNode):
            # "" is the encoding of an empty sequence
            self._values = [node.value] if node.value else []
            return
        raw = dumps_value(node_to_value(node))
        if not isinstance(node, ArrayNode):
            logger.debug("Rejected multi-string node of kind %s", node_kind(node))
            raise ParseError(raw, f"cannot decode {node_kind(node)} into a string or array of strings")
        values: list[str] = []
        for position, item in enumerate(node.items):
            if not isinstance(item, StringNode):
                logger.debug("Rejected multi-string element %d of kind %s", position, node_kind(item))
                raise ParseError(raw, f"element {position} is {node_kind(item)}, expected string")
            values.append(item.value)
        self._values = values

    def load_json(self, data: str | bytes) -> None:
        """Decode JSON text; zero-length input resets to an empty sequence."""

        self.decode(parse_node(data))


def unmarshal_multi_string(target: MultiString | None, data: str | bytes) -> MultiString:
    """Decode ``data`` into ``target`` and return it.

    ``None`` is rejected with :class:`InvalidTargetError`, which is distinct
    from decoding into an existing instance and ending up empty.
    """

    if target is None:
        raise InvalidTargetError("MultiString")
    target.load_json(data)
    return target
