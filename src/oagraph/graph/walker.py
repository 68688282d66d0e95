"""Depth-first, cycle-safe traversal of a document graph.

The :class:`Walker` owns traversal order and the ancestor chain; a
:class:`Visitor` receives callbacks and sees the current location as a
JSON pointer (``visitor.path_string``) and as contextual keys
(``visitor.current_keys``).
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple

from oagraph.graph.loops import LoopDetector
from oagraph.models.base import Node, OperationType
from oagraph.models.components import ComponentRegistry
from oagraph.models.document import Document
from oagraph.models.elements import (
    Callback,
    Contact,
    Encoding,
    Example,
    ExternalDocs,
    Header,
    Info,
    License,
    Link,
    MediaType,
    OAuthFlow,
    OAuthFlows,
    Operation,
    Parameter,
    PathItem,
    Paths,
    RequestBody,
    Response,
    Responses,
    SecurityRequirement,
    SecurityScheme,
    Server,
    ServerVariable,
    Tag,
)
from oagraph.models.reference import ReferenceHolder
from oagraph.models.schema import Discriminator, Schema, Xml
from oagraph.utils.pointers import escape_segment

logger = logging.getLogger(__name__)


@dataclass
class CurrentKeys:
    """Map keys of the enclosing elements at the current location."""
    path: Optional[str] = None
    operation: Optional[OperationType] = None
    response: Optional[str] = None
    content: Optional[str] = None
    callback: Optional[str] = None
    link: Optional[str] = None
    header: Optional[str] = None
    example: Optional[str] = None
    encoding: Optional[str] = None
    server_variable: Optional[str] = None


class Visitor:
    """Callback target of a :class:`Walker`.

    Every ``visit_<element>`` method defaults to :meth:`visit_node`, so a
    subclass can observe everything by overriding one method or pick
    specific kinds.
    """

    def __init__(self):
        self._segments: List[str] = []
        self.current_keys = CurrentKeys()

    def enter(self, segment: Any) -> None:
        self._segments.append(escape_segment(str(segment)))

    def exit(self) -> None:
        self._segments.pop()

    @property
    def path_string(self) -> str:
        """Location as a URI fragment; the root is ``#/``."""
        return "#/" + "/".join(self._segments)

    @property
    def pointer(self) -> str:
        """Location as a document-relative JSON pointer; the root is ``""``."""
        return "".join("/" + segment for segment in self._segments)

    def visit_node(self, node: Any) -> None:
        pass

    def visit_collection(self, collection: Any) -> None:
        """Called for list and map containers such as ``servers`` or ``content``."""

    def visit_reference_holder(self, node: Node) -> None:
        """Called for holders and for elements carrying their own reference."""

    def visit_cycle(self, node: Node) -> None:
        """Called instead of the kind callback when ``node`` is its own ancestor."""

    def visit_document(self, node: Document) -> None:
        self.visit_node(node)

    def visit_info(self, node: Info) -> None:
        self.visit_node(node)

    def visit_contact(self, node: Contact) -> None:
        self.visit_node(node)

    def visit_license(self, node: License) -> None:
        self.visit_node(node)

    def visit_server(self, node: Server) -> None:
        self.visit_node(node)

    def visit_server_variable(self, node: ServerVariable) -> None:
        self.visit_node(node)

    def visit_paths(self, node: Paths) -> None:
        self.visit_node(node)

    def visit_path_item(self, node: PathItem) -> None:
        self.visit_node(node)

    def visit_operation(self, node: Operation) -> None:
        self.visit_node(node)

    def visit_parameter(self, node: Parameter) -> None:
        self.visit_node(node)

    def visit_request_body(self, node: RequestBody) -> None:
        self.visit_node(node)

    def visit_responses(self, node: Responses) -> None:
        self.visit_node(node)

    def visit_response(self, node: Response) -> None:
        self.visit_node(node)

    def visit_media_type(self, node: MediaType) -> None:
        self.visit_node(node)

    def visit_encoding(self, node: Encoding) -> None:
        self.visit_node(node)

    def visit_header(self, node: Header) -> None:
        self.visit_node(node)

    def visit_example(self, node: Example) -> None:
        self.visit_node(node)

    def visit_link(self, node: Link) -> None:
        self.visit_node(node)

    def visit_callback(self, node: Callback) -> None:
        self.visit_node(node)

    def visit_schema(self, node: Schema) -> None:
        self.visit_node(node)

    def visit_discriminator(self, node: Discriminator) -> None:
        self.visit_node(node)

    def visit_xml(self, node: Xml) -> None:
        self.visit_node(node)

    def visit_security_scheme(self, node: SecurityScheme) -> None:
        self.visit_node(node)

    def visit_oauth_flows(self, node: OAuthFlows) -> None:
        self.visit_node(node)

    def visit_oauth_flow(self, node: OAuthFlow) -> None:
        self.visit_node(node)

    def visit_security_requirement(self, node: SecurityRequirement) -> None:
        self.visit_node(node)

    def visit_tag(self, node: Tag) -> None:
        self.visit_node(node)

    def visit_external_docs(self, node: ExternalDocs) -> None:
        self.visit_node(node)

    def visit_components(self, node: ComponentRegistry) -> None:
        self.visit_node(node)


class Walker:
    """Drives a :class:`Visitor` over a graph.

    Args:
        visitor: Callback target
        descend_into_references: When False a holder only produces
            ``visit_reference_holder``. When True the kind callback also
            fires and the resolved target is walked, under the cycle check.
    """

    def __init__(self, visitor: Visitor, descend_into_references: bool = False):
        if not isinstance(visitor, Visitor):
            raise TypeError(f"visitor must be a Visitor, got {type(visitor).__name__}")
        self.visitor = visitor
        self.descend_into_references = descend_into_references
        self.ancestors = LoopDetector()
        self._table: Dict[type, Tuple[Callable[[Any], None], Callable[[Any], None]]] = {
            Document: (visitor.visit_document, self._walk_document),
            Info: (visitor.visit_info, self._walk_info),
            Contact: (visitor.visit_contact, _no_children),
            License: (visitor.visit_license, _no_children),
            Server: (visitor.visit_server, self._walk_server),
            ServerVariable: (visitor.visit_server_variable, _no_children),
            Paths: (visitor.visit_paths, self._walk_paths),
            PathItem: (visitor.visit_path_item, self._walk_path_item),
            Operation: (visitor.visit_operation, self._walk_operation),
            Parameter: (visitor.visit_parameter, self._walk_parameter),
            Header: (visitor.visit_header, self._walk_parameter),
            RequestBody: (visitor.visit_request_body, self._walk_request_body),
            Responses: (visitor.visit_responses, self._walk_responses),
            Response: (visitor.visit_response, self._walk_response),
            MediaType: (visitor.visit_media_type, self._walk_media_type),
            Encoding: (visitor.visit_encoding, self._walk_encoding),
            Example: (visitor.visit_example, _no_children),
            Link: (visitor.visit_link, self._walk_link),
            Callback: (visitor.visit_callback, self._walk_callback),
            Schema: (visitor.visit_schema, self._walk_schema),
            Discriminator: (visitor.visit_discriminator, _no_children),
            Xml: (visitor.visit_xml, _no_children),
            SecurityScheme: (visitor.visit_security_scheme, self._walk_security_scheme),
            OAuthFlows: (visitor.visit_oauth_flows, self._walk_oauth_flows),
            OAuthFlow: (visitor.visit_oauth_flow, _no_children),
            SecurityRequirement: (visitor.visit_security_requirement, self._walk_security_requirement),
            Tag: (visitor.visit_tag, self._walk_tag),
            ExternalDocs: (visitor.visit_external_docs, _no_children),
        }

    def walk(self, root: Node) -> None:
        """Walk ``root`` and everything reachable from it."""
        if root is None:
            raise ValueError("Cannot walk None")
        self._walk(None, root)

    # Core

    @contextmanager
    def _location(self, segment: Any) -> Iterator[None]:
        if segment is None:
            yield
            return
        self.visitor.enter(segment)
        try:
            yield
        finally:
            self.visitor.exit()

    @contextmanager
    def _key(self, name: str, value: Any) -> Iterator[None]:
        previous = getattr(self.visitor.current_keys, name)
        setattr(self.visitor.current_keys, name, value)
        try:
            yield
        finally:
            setattr(self.visitor.current_keys, name, previous)

    def _walk(self, segment: Any, node: Any, definition: bool = False) -> None:
        if node is None:
            return
        with self._location(segment):
            target = node
            keys: List[Hashable] = []

            if self._is_reference(node, definition):
                self.visitor.visit_reference_holder(node)
                if not self.descend_into_references:
                    return
                if isinstance(node, ReferenceHolder):
                    keys.append(node.reference)
                    target = node.resolve()
                    if target is None:
                        return

            keys.append(id(target))
            looped = self.ancestors.find(keys)
            if looped is not None:
                self.ancestors.save_loop(looped, self.visitor.pointer)
                self.visitor.visit_cycle(node)
                return

            entry = self._entry(target)
            if entry is None:
                logger.debug(f"No walk rule for {type(target).__name__} at {self.visitor.path_string}")
                return
            visit, children = entry

            self.ancestors.push(keys, self.visitor.pointer)
            try:
                visit(target)
                children(target)
            finally:
                self.ancestors.pop()

    def _entry(self, node: Any):
        for cls in type(node).__mro__:
            if cls in self._table:
                return self._table[cls]
        return None

    @staticmethod
    def _is_reference(node: Any, definition: bool) -> bool:
        if isinstance(node, ReferenceHolder):
            return True
        if definition:
            return False
        return getattr(node, "kind", None) is not None and getattr(node, "reference", None) is not None

    def _walk_list(self, segment: str, items: List[Any], always: bool = False) -> None:
        if not items and not always:
            return
        with self._location(segment):
            self.visitor.visit_collection(items)
            for index, item in enumerate(items):
                self._walk(index, item)

    def _walk_map(self, segment: str, items: Dict[Any, Any], key_name: Optional[str] = None) -> None:
        if not items:
            return
        with self._location(segment):
            self.visitor.visit_collection(items)
            for key, item in items.items():
                if key_name is None:
                    self._walk(key, item)
                    continue
                with self._key(key_name, key):
                    self._walk(key, item)

    # Structure

    def _walk_document(self, document: Document) -> None:
        self._walk("info", document.info)
        self._walk_list("servers", document.servers, always=True)
        self._walk("paths", document.paths)
        self._walk_map("webhooks", document.webhooks)
        self._walk_components(document.components)
        self._walk_list("security", document.security)
        self._walk_list("tags", document.tags, always=True)
        self._walk("externalDocs", document.external_docs)

    def _walk_components(self, components: ComponentRegistry) -> None:
        if components.is_empty():
            return
        with self._location("components"):
            self.visitor.visit_components(components)
            for kind in components.kinds():
                with self._location(kind.value):
                    for reference_id, node in components.items_of(kind):
                        if _is_self_alias(node, reference_id):
                            continue
                        self._walk(reference_id, node, definition=True)

    def _walk_info(self, info: Info) -> None:
        self._walk("contact", info.contact)
        self._walk("license", info.license)

    def _walk_server(self, server: Server) -> None:
        self._walk_map("variables", server.variables, "server_variable")

    def _walk_paths(self, paths: Paths) -> None:
        for path, item in paths.items():
            with self._key("path", path):
                self._walk(path, item)

    def _walk_path_item(self, item: PathItem) -> None:
        for operation_type, operation in item.operations.items():
            with self._key("operation", operation_type):
                self._walk(operation_type.value, operation)
        self._walk_list("servers", item.servers)
        self._walk_list("parameters", item.parameters)

    def _walk_operation(self, operation: Operation) -> None:
        self._walk_list("parameters", operation.parameters)
        self._walk("requestBody", operation.request_body)
        self._walk("responses", operation.responses)
        self._walk_map("callbacks", operation.callbacks, "callback")
        self._walk_list("tags", operation.tags, always=True)
        if operation.security is not None:
            self._walk_list("security", operation.security)
        self._walk_list("servers", operation.servers)
        self._walk("externalDocs", operation.external_docs)

    def _walk_parameter(self, parameter: Parameter | Header) -> None:
        self._walk("schema", parameter.schema)
        self._walk_map("examples", parameter.examples, "example")
        self._walk_map("content", parameter.content, "content")

    def _walk_request_body(self, body: RequestBody) -> None:
        self._walk_map("content", body.content, "content")

    def _walk_responses(self, responses: Responses) -> None:
        for status, response in responses.items():
            with self._key("response", status):
                self._walk(status, response)

    def _walk_response(self, response: Response) -> None:
        self._walk_map("content", response.content, "content")
        self._walk_map("headers", response.headers, "header")
        self._walk_map("links", response.links, "link")

    def _walk_media_type(self, media_type: MediaType) -> None:
        self._walk("schema", media_type.schema)
        self._walk_map("examples", media_type.examples, "example")
        self._walk_map("encoding", media_type.encoding, "encoding")

    def _walk_encoding(self, encoding: Encoding) -> None:
        self._walk_map("headers", encoding.headers, "header")

    def _walk_link(self, link: Link) -> None:
        self._walk("server", link.server)

    def _walk_callback(self, callback: Callback) -> None:
        for expression, item in callback.path_items.items():
            self._walk(str(expression), item)

    def _walk_security_scheme(self, scheme: SecurityScheme) -> None:
        self._walk("flows", scheme.flows)

    def _walk_oauth_flows(self, flows: OAuthFlows) -> None:
        self._walk("implicit", flows.implicit)
        self._walk("password", flows.password)
        self._walk("clientCredentials", flows.client_credentials)
        self._walk("authorizationCode", flows.authorization_code)

    def _walk_security_requirement(self, requirement: SecurityRequirement) -> None:
        for scheme in requirement:
            if isinstance(scheme, ReferenceHolder):
                self._walk(scheme.reference.id, scheme)

    def _walk_tag(self, tag: Tag) -> None:
        self._walk("externalDocs", tag.external_docs)

    def _walk_schema(self, schema: Schema) -> None:
        self._walk_map("$defs", schema.definitions)
        self._walk_list("allOf", schema.all_of)
        self._walk_list("anyOf", schema.any_of)
        self._walk_list("oneOf", schema.one_of)
        self._walk("not", schema.not_)
        self._walk("items", schema.items)
        self._walk_map("properties", schema.properties)
        self._walk_map("patternProperties", schema.pattern_properties)
        self._walk("additionalProperties", schema.additional_properties)
        self._walk("externalDocs", schema.external_docs)


def _no_children(node: Any) -> None:
    pass


def _is_self_alias(node: Any, reference_id: str) -> bool:
    # A registry entry that is a holder pointing at its own key adds nothing
    return (
        isinstance(node, ReferenceHolder)
        and not node.reference.is_external
        and node.reference.id == reference_id
    )


def walk(root: Node, visitor: Visitor, descend_into_references: bool = False) -> None:
    """Walk ``root`` with a new :class:`Walker`."""
    Walker(visitor, descend_into_references).walk(root)
