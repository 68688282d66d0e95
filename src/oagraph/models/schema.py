"""Schema object covering the 2.0, 3.0 and 3.1 keyword sets."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from oagraph.models.base import Node, NodeKind
from oagraph.models.reference import ReferenceDescriptor


@dataclass(eq=False)
class Discriminator(Node):
    property_name: str = ""
    mapping: Dict[str, str] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Xml(Node):
    name: Optional[str] = None
    namespace: Optional[str] = None
    prefix: Optional[str] = None
    attribute: bool = False
    wrapped: bool = False
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Schema(Node):
    """A schema in the union of all three dialects.

    The model keeps both exclusive-bound forms: ``exclusive_minimum`` and
    ``exclusive_maximum`` are the 3.0 boolean flags paired with
    ``minimum``/``maximum``, while ``v31_exclusive_minimum`` and
    ``v31_exclusive_maximum`` hold the 3.1 numeric bounds. ``type`` is a
    string or, for 3.1 input, a list of type names. ``nullable`` is the
    3.0 flag; the serializer folds it into a type list for 3.1.

    ``additional_properties_allowed`` is False only for an explicit
    ``additionalProperties: false``.
    """
    kind = NodeKind.SCHEMA

    title: Optional[str] = None
    schema_dialect: Optional[str] = None
    id: Optional[str] = None
    comment: Optional[str] = None
    vocabulary: Dict[str, bool] = field(default_factory=dict)
    dynamic_ref: Optional[str] = None
    dynamic_anchor: Optional[str] = None
    definitions: Dict[str, "Schema"] = field(default_factory=dict)

    type: Optional[Union[str, List[str]]] = None
    const: Any = None
    format: Optional[str] = None
    description: Optional[str] = None

    maximum: Optional[float] = None
    exclusive_maximum: bool = False
    minimum: Optional[float] = None
    exclusive_minimum: bool = False
    v31_exclusive_maximum: Optional[float] = None
    v31_exclusive_minimum: Optional[float] = None
    max_length: Optional[int] = None
    min_length: Optional[int] = None
    pattern: Optional[str] = None
    multiple_of: Optional[float] = None
    default: Any = None

    read_only: bool = False
    write_only: bool = False
    all_of: List["Schema"] = field(default_factory=list)
    one_of: List["Schema"] = field(default_factory=list)
    any_of: List["Schema"] = field(default_factory=list)
    not_: Optional["Schema"] = None
    required: List[str] = field(default_factory=list)

    items: Optional["Schema"] = None
    max_items: Optional[int] = None
    min_items: Optional[int] = None
    unique_items: bool = False

    properties: Dict[str, "Schema"] = field(default_factory=dict)
    pattern_properties: Dict[str, "Schema"] = field(default_factory=dict)
    max_properties: Optional[int] = None
    min_properties: Optional[int] = None
    additional_properties_allowed: bool = True
    additional_properties: Optional["Schema"] = None
    unevaluated_properties: Optional[bool] = None

    discriminator: Optional[Discriminator] = None
    example: Any = None
    examples: List[Any] = field(default_factory=list)
    enum: List[Any] = field(default_factory=list)
    nullable: bool = False
    external_docs: Optional[Any] = None
    deprecated: bool = False
    xml: Optional[Xml] = None

    extensions: Dict[str, Any] = field(default_factory=dict)
    unrecognized_keywords: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None

    @property
    def type_names(self) -> List[str]:
        """``type`` as a list, empty when unset."""
        if self.type is None:
            return []
        if isinstance(self.type, str):
            return [self.type]
        return list(self.type)
