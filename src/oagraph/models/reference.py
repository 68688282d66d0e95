"""Reference model: descriptors, lazily resolved holders and pointer parsing.

A :class:`ReferenceHolder` stands in for a reusable node that lives
elsewhere: in the host document's component registry, or in another
document reached through the external resolver. The holder keeps only a
lookup key (the descriptor); the target is owned by the registry entry and
is bound on first access.
"""

from __future__ import annotations

import copy
import logging
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Tuple

from oagraph.exceptions import MalformedReferenceError
from oagraph.models.base import Node, NodeKind, SpecVersion
from oagraph.utils.pointers import escape_segment, unescape_segment

if TYPE_CHECKING:
    from oagraph.models.components import ComponentRegistry
    from oagraph.models.document import Document

logger = logging.getLogger(__name__)

# Swagger 2.0 has top-level sections for only some kinds
V2_SECTIONS: Dict[NodeKind, str] = {
    NodeKind.SCHEMA: "definitions",
    NodeKind.PARAMETER: "parameters",
    NodeKind.REQUEST_BODY: "parameters",
    NodeKind.RESPONSE: "responses",
    NodeKind.SECURITY_SCHEME: "securityDefinitions",
}


@dataclass(frozen=True)
class ReferenceDescriptor:
    """Address of a reusable node.

    Equality and hashing use ``(id, kind, external_resource)``; the host
    document is a weak back-reference and takes no part in identity.

    An id starting with ``/`` is a document-relative JSON pointer rather
    than a component name. When ``external_resource`` equals ``id`` the
    reference addresses the whole external resource.
    """
    id: str
    kind: NodeKind
    external_resource: Optional[str] = None
    host_ref: Optional[weakref.ReferenceType] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise MalformedReferenceError(f"Reference of kind '{self.kind}' is missing an id")
        if not isinstance(self.kind, NodeKind):
            raise TypeError(f"kind must be a NodeKind, got {type(self.kind).__name__}")

    @classmethod
    def create(
        cls,
        reference_id: str,
        kind: NodeKind,
        host_document: Optional["Document"] = None,
        external_resource: Optional[str] = None,
    ) -> "ReferenceDescriptor":
        """Build a descriptor holding a weak reference to its host document."""
        host_ref = weakref.ref(host_document) if host_document is not None else None
        return cls(reference_id, kind, external_resource or None, host_ref)

    @property
    def host_document(self) -> Optional["Document"]:
        """The document local references resolve in, if it is still alive."""
        return self.host_ref() if self.host_ref is not None else None

    @property
    def is_external(self) -> bool:
        return self.external_resource is not None

    @property
    def is_pointer(self) -> bool:
        """Whether the id is a JSON pointer rather than a component name."""
        return self.id.startswith("/")

    def rebind(self, host_document: Optional["Document"]) -> "ReferenceDescriptor":
        """Same address, different host document."""
        return ReferenceDescriptor.create(self.id, self.kind, host_document, self.external_resource)

    def to_pointer(self, version: SpecVersion = SpecVersion.V3) -> str:
        """Render the ``$ref`` value for a dialect.

        Examples:
            >>> ReferenceDescriptor("Pet", NodeKind.SCHEMA).to_pointer()
            '#/components/schemas/Pet'
            >>> ReferenceDescriptor("Pet", NodeKind.SCHEMA).to_pointer(SpecVersion.V2)
            '#/definitions/Pet'
        """
        if self.is_external and self.id == self.external_resource:
            return self.external_resource

        if self.is_pointer:
            fragment = self.id
        elif version == SpecVersion.V2 and self.kind in V2_SECTIONS:
            fragment = f"/{V2_SECTIONS[self.kind]}/{escape_segment(self.id)}"
        else:
            fragment = f"/components/{self.kind.value}/{escape_segment(self.id)}"

        prefix = self.external_resource or ""
        return f"{prefix}#{fragment}"


def parse_reference_pointer(pointer: str, kind: NodeKind) -> Tuple[Optional[str], str]:
    """Split a ``$ref`` value into ``(external_resource, id)``.

    Component pointers (``#/components/<section>/<id>`` and the 2.0
    ``#/definitions/<id>`` family) yield the bare component id; any other
    rooted fragment is kept whole as a JSON-pointer id.

    Args:
        pointer: Raw ``$ref`` string
        kind: Kind the referencing field expects

    Returns:
        Tuple of external resource (None for local) and reference id

    Raises:
        MalformedReferenceError: If the pointer is empty or its fragment is
            not a JSON pointer
    """
    if not isinstance(pointer, str) or not pointer.strip():
        raise MalformedReferenceError("Reference pointer is empty", pointer)

    resource, _, fragment = pointer.partition("#")
    external = resource or None

    if not fragment:
        if external is None:
            raise MalformedReferenceError(f"Reference pointer '{pointer}' has no target", pointer)
        # Whole-resource reference
        return external, external

    if not fragment.startswith("/"):
        raise MalformedReferenceError(
            f"The reference string '{pointer}' has invalid format", pointer
        )

    segments = fragment[1:].split("/")
    if len(segments) == 3 and segments[0] == "components" and segments[2]:
        return external, unescape_segment(segments[2])
    if len(segments) == 2 and segments[0] in V2_SECTIONS.values() and segments[1]:
        return external, unescape_segment(segments[1])
    if kind == NodeKind.TAG and len(segments) == 1 and segments[0]:
        return external, unescape_segment(segments[0])

    return external, fragment


class ReferenceHolder(Node):
    """A node that stands in for another node of the same kind.

    Subclasses bind ``kind`` and ``target_type``. Every attribute of the
    target type can be read on the holder: it is read through from the
    resolved target, or reads as the field default while unresolved.
    ``description`` and ``summary`` are local overrides stored on the holder
    and never written back to the shared target.
    """
    is_reference_holder: ClassVar[bool] = True
    target_type: ClassVar[type] = Node

    _own_attributes = frozenset({"reference", "description", "summary"})

    def __init__(
        self,
        reference_id: str,
        host_document: Optional["Document"] = None,
        external_resource: Optional[str] = None,
    ):
        if self.kind is None:
            raise TypeError(f"{type(self).__name__} does not bind a node kind")
        self.reference = ReferenceDescriptor.create(
            reference_id, self.kind, host_document, external_resource
        )
        self._target: Optional[Node] = None
        self._description: Optional[str] = None
        self._summary: Optional[str] = None

    @classmethod
    def from_target(cls, target: Node, reference_id: str) -> "ReferenceHolder":
        """Holder that is bound to ``target`` up front (no host document)."""
        holder = cls(reference_id)
        holder._target = target
        return holder

    @classmethod
    def from_descriptor(cls, descriptor: ReferenceDescriptor) -> "ReferenceHolder":
        return cls(descriptor.id, descriptor.host_document, descriptor.external_resource)

    def resolve(self) -> Optional[Node]:
        """Bind and return the target, or None if it cannot be found.

        A successful lookup is cached on this holder; a miss is not, so a
        holder created before its component was registered binds later.
        """
        if self._target is not None:
            return self._target

        target = _lookup(self.reference)
        seen = {self.reference}
        # A registry entry may itself be an alias of another component
        while target is not None and target.is_reference_holder:
            if target.reference in seen:
                logger.debug(f"Reference alias loop at {self.reference.to_pointer()}")
                target = None
                break
            seen.add(target.reference)
            target = target._target if target._target is not None else _lookup(target.reference)

        if target is None:
            logger.debug(f"Unresolved reference {self.reference.to_pointer()}")
            return None

        self._target = target
        return target

    @property
    def target(self) -> Optional[Node]:
        return self.resolve()

    @property
    def unresolved_reference(self) -> bool:
        """True until resolution succeeds."""
        return self.resolve() is None

    @property
    def description(self) -> Optional[str]:
        if self._description:
            return self._description
        return getattr(self.target, "description", None)

    @description.setter
    def description(self, value: Optional[str]) -> None:
        self._description = value

    @property
    def summary(self) -> Optional[str]:
        if self._summary:
            return self._summary
        return getattr(self.target, "summary", None)

    @summary.setter
    def summary(self, value: Optional[str]) -> None:
        self._summary = value

    @property
    def overrides(self) -> Dict[str, str]:
        """Non-empty local overrides, in writing order."""
        values = {"summary": self._summary, "description": self._description}
        return {name: value for name, value in values.items() if value}

    def copy_target_with_overrides(self) -> Optional[Node]:
        """Shallow copy of the target with the local overrides applied."""
        target = self.resolve()
        if target is None:
            return None
        result = copy.copy(target)
        for name, value in self.overrides.items():
            if hasattr(result, name):
                setattr(result, name, value)
        return result

    def copy(self) -> "ReferenceHolder":
        """Copy descriptor and overrides; the copy resolves on its own."""
        duplicate = type(self).from_descriptor(self.reference)
        duplicate._description = self._description
        duplicate._summary = self._summary
        return duplicate

    __copy__ = copy

    def __getattr__(self, name: str) -> Any:
        # Only reached for names not found on the holder itself
        if name.startswith("_"):
            raise AttributeError(name)
        target = self.resolve()
        if target is not None:
            return getattr(target, name)
        return _field_default(self.target_type, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or name in self._own_attributes:
            super().__setattr__(name, value)
            return
        raise AttributeError(
            f"'{name}' is read from the target of {self.reference.to_pointer()}; "
            f"edit the component instead"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferenceHolder):
            return NotImplemented
        return self.reference == other.reference

    def __hash__(self) -> int:
        return hash(self.reference)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reference.to_pointer()!r})"


def _lookup(descriptor: ReferenceDescriptor) -> Optional[Node]:
    host = descriptor.host_document
    if host is None:
        return None
    return host.resolve_reference(descriptor)


def _field_default(target_type: type, name: str) -> Any:
    # A blank target gives the documented defaults, including computed properties
    blank = target_type()
    if not hasattr(blank, name):
        raise AttributeError(f"{target_type.__name__} has no attribute '{name}'")
    return getattr(blank, name)


def resolve_reference(holder: ReferenceHolder) -> Optional[Node]:
    """Resolve a holder; never raises on a miss."""
    return holder.resolve()


def register(registry: "ComponentRegistry", kind: NodeKind, reference_id: str, node: Node) -> bool:
    """Register ``node`` under ``(kind, reference_id)`` unless the key exists.

    Returns:
        True if an insertion occurred
    """
    return registry.register(kind, reference_id, node)


def is_reference_holder(node: Any) -> bool:
    return isinstance(node, ReferenceHolder)
