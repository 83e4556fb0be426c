"""Discriminated document nodes for decoded JSON configuration values.

Adapters inspect the node variant instead of the raw text so that string and
array encodings are told apart without peeking at leading bytes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ParseError

__all__ = [
    "StringNode",
    "ArrayNode",
    "OtherNode",
    "Node",
    "node_kind",
    "node_from_value",
    "node_to_value",
    "parse_node",
    "dumps_value",
]

OTHER_KINDS = ("null", "number", "boolean", "object")


@dataclass(frozen=True, slots=True)
class StringNode:
    value: str


@dataclass(frozen=True, slots=True)
class ArrayNode:
    items: tuple["Node", ...]


@dataclass(frozen=True, slots=True)
class OtherNode:
    """Any node that is neither a string nor an array."""

    kind: str
    value: Any = None

    def __post_init__(self) -> None:
        if self.kind not in OTHER_KINDS:
            raise ValueError(f"Unsupported node kind '{self.kind}'")


Node = StringNode | ArrayNode | OtherNode


def node_kind(node: Node | None) -> str:
    """Return a short name for the node variant, used in error messages."""

    if node is None:
        return "nothing"
    if isinstance(node, StringNode):
        return "string"
    if isinstance(node, ArrayNode):
        return "array"
    return node.kind


def node_from_value(value: Any) -> Node:
    """Wrap an already-decoded JSON value in its node variant."""

    if isinstance(value, str):
        return StringNode(value)
    if isinstance(value, (list, tuple)):
        return ArrayNode(tuple(node_from_value(item) for item in value))
    if value is None:
        return OtherNode("null")
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return OtherNode("boolean", value)
    if isinstance(value, (int, float)):
        return OtherNode("number", value)
    if isinstance(value, Mapping):
        return OtherNode("object", dict(value))
    raise TypeError(f"Cannot represent {type(value).__name__} as a document node")


def node_to_value(node: Node) -> Any:
    if isinstance(node, StringNode):
        return node.value
    if isinstance(node, ArrayNode):
        return [node_to_value(item) for item in node.items]
    return node.value


def parse_node(data: str | bytes) -> Node | None:
    """Decode JSON text into a node.

    Zero-length input returns ``None`` so callers can treat an absent field
    separately from a malformed one.
    """

    if isinstance(data, (bytes, bytearray)):
        if not data:
            return None
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(bytes(data).decode("utf-8", "replace"), exc) from exc
    else:
        text = data
    if not text:
        return None
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(text, exc, message=f"error unmarshalling {text}: {exc.msg}") from exc
    return node_from_value(value)


def dumps_value(value: Any) -> str:
    """Serialize a JSON value compactly, keeping non-ASCII characters verbatim."""

    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
