"""Field tables and the generic map loader.

A fixed-field table maps a property name to ``setter(target, node)``. A
pattern-field table maps a predicate on the property name to
``setter(target, name, node)``; extensions (``x-``) are the usual pattern.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type

from oagraph.diagnostics import DiagnosticKind
from oagraph.exceptions import ReaderError
from oagraph.parser.context import ParsingContext
from oagraph.parser.nodes import NODE_ERRORS, MapNode, ParseNode

logger = logging.getLogger(__name__)

FieldSetter = Callable[[Any, ParseNode], None]
PatternSetter = Callable[[Any, str, ParseNode], None]
FixedFields = Dict[str, FieldSetter]
PatternFields = Dict[Callable[[str], bool], PatternSetter]


def is_extension(name: str) -> bool:
    return name.startswith("x-")


def set_extension(target: Any, name: str, node: ParseNode) -> None:
    target.extensions[name] = node.create_any()


EXTENSION_FIELDS: PatternFields = {is_extension: set_extension}


def parse_map(
    node: MapNode,
    target: Any,
    fixed_fields: FixedFields,
    pattern_fields: Optional[PatternFields] = None,
    context: Optional[ParsingContext] = None,
    unknown: Optional[PatternSetter] = None,
) -> Any:
    """Populate ``target`` from a map node.

    Every field is loaded on its own: a failing field is recorded and the
    next field is still read.

    Args:
        node: Map node to read
        target: Element being populated
        fixed_fields: Setters by property name
        pattern_fields: Setters by name predicate (extensions by default)
        context: Parsing context (defaults to the node's)
        unknown: Setter for names no table matches; when None an
            ``UNKNOWN_FIELD`` warning is recorded

    Returns:
        ``target``
    """
    context = context or node.context
    pattern_fields = EXTENSION_FIELDS if pattern_fields is None else pattern_fields

    with context.at(node.pointer):
        for name, child in node.items():
            try:
                if name in fixed_fields:
                    fixed_fields[name](target, child)
                    continue
                for predicate, setter in pattern_fields.items():
                    if predicate(name):
                        setter(target, name, child)
                        break
                else:
                    if unknown is not None:
                        unknown(target, name, child)
                    else:
                        context.warning(
                            f"{name} is not a valid property at {node.location}",
                            child.pointer,
                            DiagnosticKind.UNKNOWN_FIELD,
                        )
            except NODE_ERRORS as exc:
                context.record(exc, child.pointer)
    return target


def ignore(target: Any, node: ParseNode) -> None:
    """Setter for fields read elsewhere (version markers, pre-scanned lists)."""


def string_field(attribute: str) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, node.get_string())
    return setter


def bool_field(attribute: str) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, node.get_bool())
    return setter


def int_field(attribute: str) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, node.get_int())
    return setter


def number_field(attribute: str) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, node.get_number())
    return setter


def any_field(attribute: str) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, node.create_any())
    return setter


def enum_field(attribute: str, enum_type: Type[Enum]) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, get_enum(node, enum_type))
    return setter


def string_list_field(attribute: str) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, node.create_simple_list(lambda item: item.get_string()))
    return setter


def string_map_field(attribute: str) -> FieldSetter:
    def setter(target: Any, node: ParseNode) -> None:
        setattr(target, attribute, node.create_simple_map(lambda item: item.get_string()))
    return setter


def get_enum(node: ParseNode, enum_type: Type[Enum]) -> Enum:
    value = node.get_string()
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ReaderError(f"'{value}' is not one of {allowed} at {node.location}", node.pointer)


def raw_list_field(attribute: str) -> FieldSetter:
    """Setter for a list of arbitrary values (``enum``, ``examples``); nulls are kept."""
    def setter(target: Any, node: ParseNode) -> None:
        if not isinstance(node.value, list):
            raise ReaderError(f"Expected a list at {node.location}", node.pointer)
        setattr(target, attribute, list(node.create_any()))
    return setter
