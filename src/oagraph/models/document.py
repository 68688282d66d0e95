"""Document root, reference lookup and the workspace external resolver."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urljoin, urlsplit

from oagraph.models.base import Node, NodeKind
from oagraph.models.components import ComponentRegistry
from oagraph.models.elements import (
    ExternalDocs,
    Info,
    PathItem,
    Paths,
    SecurityRequirement,
    Server,
    Tag,
)
from oagraph.models.reference import ReferenceDescriptor

logger = logging.getLogger(__name__)


class ExternalResolver(Protocol):
    """Looks up reusable nodes that live outside the host document."""

    def resolve_external(self, resource: str, kind: NodeKind, reference_id: str) -> Optional[Node]:
        ...


@dataclass(eq=False)
class Document(Node):
    """Root of one graph and owner of its component registry.

    Local references resolve in ``components``; references carrying an
    external resource are handed to ``external_resolver``.
    """
    info: Info = field(default_factory=Info)
    json_schema_dialect: Optional[str] = None
    servers: List[Server] = field(default_factory=list)
    paths: Paths = field(default_factory=Paths)
    webhooks: Dict[str, PathItem] = field(default_factory=dict)
    components: ComponentRegistry = field(default_factory=ComponentRegistry)
    security: List[SecurityRequirement] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)
    external_docs: Optional[ExternalDocs] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    external_resolver: Optional[ExternalResolver] = field(default=None, repr=False)

    def resolve_reference(self, descriptor: ReferenceDescriptor) -> Optional[Node]:
        """Find the node a descriptor addresses, or None.

        Args:
            descriptor: Address of the node

        Returns:
            The registered (or located) node; None on a miss
        """
        if descriptor.is_external:
            if self.external_resolver is None:
                logger.debug(f"No external resolver for {descriptor.external_resource}")
                return None
            try:
                return self.external_resolver.resolve_external(
                    descriptor.external_resource, descriptor.kind, descriptor.id
                )
            except Exception as e:
                logger.debug(f"External resolution of {descriptor.to_pointer()} failed: {e}")
                return None

        if descriptor.kind == NodeKind.TAG and not descriptor.is_pointer:
            for tag in self.tags:
                if tag.name == descriptor.id:
                    return tag
            return None

        if descriptor.is_pointer:
            return self.locate(descriptor.id, descriptor.kind, exclude=descriptor)

        return self.components.get(descriptor.kind, descriptor.id)

    def locate(
        self,
        pointer: str,
        kind: Optional[NodeKind] = None,
        exclude: Optional[ReferenceDescriptor] = None,
    ) -> Optional[Node]:
        """Find the node at a document-relative JSON pointer by walking the graph.

        Args:
            pointer: Pointer such as ``/paths/~1pets/get/responses/200``
            kind: Only accept a node of this kind
            exclude: Descriptor of the holder asking, which must not match itself

        Returns:
            The node at ``pointer``, or None
        """
        from oagraph.graph.locator import NodeLocator

        locator = NodeLocator(pointer, kind, exclude)
        return locator.find(self)

    def register_component(self, kind: NodeKind, reference_id: str, node: Node) -> bool:
        """Register a component under ``(kind, reference_id)`` unless already present."""
        return self.components.register(kind, reference_id, node)


class Workspace:
    """Already-loaded documents and fragments keyed by resource location.

    Implements :class:`ExternalResolver`. Nothing is fetched: the host adds
    every document a reference may point into. A relative resource that is
    not itself a key is looked up again against ``base_url``, which is either
    a URL or a directory.
    """

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url
        self._documents: Dict[str, Document] = {}
        self._fragments: Dict[str, Node] = {}

    def add_document(self, location: str, document: Document) -> None:
        """Add a document and let it resolve its own external references here."""
        if document is None:
            raise ValueError("document must not be None")
        self._documents[location] = document
        if document.external_resolver is None:
            document.external_resolver = self
        logger.debug(f"Workspace document added: {location}")

    def add_fragment(self, location: str, node: Node) -> None:
        """Add a standalone element (e.g. a schema file) addressed as a whole."""
        self._fragments[location] = node

    def get_document(self, location: str) -> Optional[Document]:
        return self._documents.get(location)

    @property
    def locations(self) -> List[str]:
        return [*self._documents, *self._fragments]

    def _key(self, resource: str) -> str:
        if resource in self._documents or resource in self._fragments or not self.base_url:
            return resource
        if urlsplit(self.base_url).scheme in ("http", "https", "file"):
            return urljoin(self.base_url, resource)
        return str((Path(self.base_url) / resource).resolve())

    def resolve_external(self, resource: str, kind: NodeKind, reference_id: str) -> Optional[Node]:
        if reference_id == resource:
            return self._fragments.get(self._key(resource))

        document = self._documents.get(self._key(resource))
        if document is None:
            logger.debug(f"Workspace has no document at {resource}")
            return None

        return document.resolve_reference(ReferenceDescriptor.create(reference_id, kind, document))
