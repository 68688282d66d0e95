"""Version-projected serializer.

:class:`VersionedSerializer` renders a document graph (or any element of
one) into writer events for one dialect. Holders are written as reference
objects or inlined according to :class:`WriterSettings`; anything already
on the ancestor chain is written as a reference so that cyclic graphs
terminate. Constructs a dialect cannot express are omitted or downgraded,
and each such loss is recorded as a ``VERSION_DOWNGRADE_LOSSY`` diagnostic.
"""

import logging
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Set
from urllib.parse import urlsplit

from oagraph.diagnostics import Diagnostic, DiagnosticKind
from oagraph.expressions import render_any
from oagraph.graph.loops import LoopDetector
from oagraph.models.base import Node, NodeKind, ParameterLocation, ParameterStyle, SecuritySchemeType, SpecVersion
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
from oagraph.models.reference import ReferenceDescriptor, ReferenceHolder
from oagraph.models.schema import Discriminator, Schema, Xml
from oagraph.output.settings import InliningPolicy, WriterSettings
from oagraph.output.writers import TreeWriter, Writer, create_writer

logger = logging.getLogger(__name__)

OPENAPI_VERSIONS = {
    SpecVersion.V3: "3.0.4",
    SpecVersion.V3_1: "3.1.1",
}

# Kinds that can be written as a reference object in each dialect
REFERENCE_FORMS: Dict[SpecVersion, FrozenSet[NodeKind]] = {
    SpecVersion.V2: frozenset({
        NodeKind.SCHEMA,
        NodeKind.PARAMETER,
        NodeKind.RESPONSE,
        NodeKind.SECURITY_SCHEME,
    }),
    SpecVersion.V3: frozenset(NodeKind) - {NodeKind.PATH_ITEM, NodeKind.TAG},
    SpecVersion.V3_1: frozenset(NodeKind) - {NodeKind.TAG},
}

V2_COMPONENT_SECTIONS = {
    NodeKind.SCHEMA: "definitions",
    NodeKind.PARAMETER: "parameters",
    NodeKind.RESPONSE: "responses",
    NodeKind.SECURITY_SCHEME: "securityDefinitions",
}

FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

V2_COLLECTION_FORMATS = {
    ParameterStyle.SIMPLE: "csv",
    ParameterStyle.SPACE_DELIMITED: "ssv",
    ParameterStyle.PIPE_DELIMITED: "pipes",
}


class VersionedSerializer:
    """Writes graph elements for one dialect.

    Args:
        writer: Event sink
        version: Target dialect
        settings: Inlining settings (defaults keep every reference)
        diagnostic: Collector for lossy-downgrade records
    """

    def __init__(
        self,
        writer: Writer,
        version: SpecVersion,
        settings: Optional[WriterSettings] = None,
        diagnostic: Optional[Diagnostic] = None,
    ):
        if not isinstance(writer, Writer):
            raise TypeError(f"writer must be a Writer, got {type(writer).__name__}")
        self.writer = writer
        self.version = SpecVersion(version)
        self.settings = settings or WriterSettings()
        self.diagnostic = diagnostic if diagnostic is not None else Diagnostic()
        self.diagnostic.specification_version = self.version.value
        self._loops = LoopDetector()
        self._fields: Dict[type, Callable[[Any], None]] = {
            Document: self._write_document,
            Info: self._write_info,
            Contact: self._write_contact,
            License: self._write_license,
            Server: self._write_server,
            ServerVariable: self._write_server_variable,
            Paths: self._write_paths,
            PathItem: self._write_path_item,
            Operation: self._write_operation,
            Parameter: self._write_parameter,
            Header: self._write_header,
            RequestBody: self._write_request_body,
            Responses: self._write_responses,
            Response: self._write_response,
            MediaType: self._write_media_type,
            Encoding: self._write_encoding,
            Example: self._write_example,
            Link: self._write_link,
            Callback: self._write_callback,
            Schema: self._write_schema_fields,
            Discriminator: self._write_discriminator,
            Xml: self._write_xml,
            SecurityScheme: self._write_security_scheme,
            OAuthFlows: self._write_oauth_flows,
            OAuthFlow: self._write_oauth_flow,
            SecurityRequirement: self._write_security_requirement,
            Tag: self._write_tag,
            ExternalDocs: self._write_external_docs,
        }

    @property
    def is_v2(self) -> bool:
        return self.version == SpecVersion.V2

    @property
    def is_v31(self) -> bool:
        return self.version == SpecVersion.V3_1

    def serialize(self, root: Node) -> None:
        """Write ``root`` and everything reachable from it."""
        if root is None:
            raise ValueError("Cannot serialize None")
        self.write_node(root, definition=True)

    def has_reference_form(self, kind: Optional[NodeKind]) -> bool:
        return kind in REFERENCE_FORMS[self.version]

    # Reference handling

    def write_node(
        self,
        node: Any,
        definition: bool = False,
        fields: Optional[Callable[[Any], None]] = None,
    ) -> None:
        """Write one element.

        Args:
            node: Element or holder
            definition: True for component definitions, which are always
                written in full
            fields: Field writer to use instead of the one for the node type
        """
        if isinstance(node, ReferenceHolder):
            self._write_holder(node, fields)
            return

        reference = getattr(node, "reference", None)
        if (
            not definition
            and isinstance(reference, ReferenceDescriptor)
            and self.has_reference_form(node.kind)
            and self.settings.policy_for(node) == InliningPolicy.REFERENCE
        ):
            self._write_reference(reference, {})
            return

        self._write_direct(node, fields or self._fields_for(node))

    def _write_holder(self, holder: ReferenceHolder, fields: Optional[Callable[[Any], None]]) -> None:
        descriptor = holder.reference
        target = holder.resolve()
        if target is None:
            self._write_reference(descriptor, holder.overrides)
            return

        keys: List[Hashable] = [descriptor, id(target)]
        if self._loops.find(keys) is not None:
            self._write_reference(descriptor, holder.overrides)
            return

        if (
            self.has_reference_form(descriptor.kind)
            and self.settings.policy_for(holder) == InliningPolicy.REFERENCE
        ):
            self._write_reference(descriptor, holder.overrides)
            return

        inlined = holder.copy_target_with_overrides()
        self._loops.push(keys, self.writer.pointer)
        try:
            (fields or self._fields_for(inlined))(inlined)
        finally:
            self._loops.pop()

    def _write_direct(self, node: Any, fields: Callable[[Any], None]) -> None:
        key = id(node)
        if key in self._loops:
            # Anonymous element that contains itself: point at its first output
            self._write_pointer_reference("#" + (self._loops.pointer_of(key) or ""))
            return
        self._loops.push([key], self.writer.pointer)
        try:
            fields(node)
        finally:
            self._loops.pop()

    def _write_reference(self, descriptor: ReferenceDescriptor, overrides: Dict[str, str]) -> None:
        w = self.writer
        w.start_object()
        w.write_property("$ref", descriptor.to_pointer(self.version))
        for name, value in overrides.items():
            w.write_property(name, value)
        w.end_object()

    def _write_pointer_reference(self, pointer: str) -> None:
        self.writer.start_object()
        self.writer.write_property("$ref", pointer)
        self.writer.end_object()

    def _fields_for(self, node: Any) -> Callable[[Any], None]:
        for cls in type(node).__mro__:
            if cls in self._fields:
                return self._fields[cls]
        raise TypeError(f"Cannot serialize {type(node).__name__}")

    def _entry(self, key: Any, node: Any) -> None:
        self.write_node(node)

    def _lossy(self, message: str) -> None:
        self.diagnostic.add_info(message, self.writer.pointer, DiagnosticKind.VERSION_DOWNGRADE_LOSSY)

    # Document

    def _write_document(self, document: Document) -> None:
        w = self.writer
        w.start_object()
        if self.is_v2:
            w.write_property("swagger", "2.0")
        else:
            w.write_property("openapi", OPENAPI_VERSIONS[self.version])
        w.write_required_object("info", document.info, self.write_node)

        if self.is_v31:
            w.write_property("jsonSchemaDialect", document.json_schema_dialect)
        elif document.json_schema_dialect:
            self._lossy("jsonSchemaDialect is not supported and was dropped")

        if self.is_v2:
            self._write_v2_host(document.servers)
        else:
            w.write_optional_collection("servers", document.servers, self.write_node)

        w.write_property_name("paths")
        self.write_node(document.paths)

        if self.is_v31:
            w.write_optional_map("webhooks", document.webhooks, self._entry)
        elif document.webhooks:
            self._lossy("webhooks are not supported and were dropped")

        if self.is_v2:
            self._write_v2_components(document.components)
        elif not document.components.is_empty():
            w.write_property_name("components")
            self._write_components(document.components)

        w.write_optional_collection("security", document.security, self.write_node)
        w.write_optional_collection("tags", document.tags, self.write_node)
        w.write_optional_object("externalDocs", document.external_docs, self.write_node)
        w.write_extensions(document.extensions)
        w.end_object()

    def _write_components(self, components: ComponentRegistry) -> None:
        w = self.writer
        w.start_object()
        for kind in components.kinds():
            if kind == NodeKind.TAG:
                continue
            if kind == NodeKind.PATH_ITEM and not self.is_v31:
                self._lossy("components.pathItems is not supported and was dropped")
                continue
            w.write_property_name(kind.value)
            self._write_definitions(components, kind)
        w.write_extensions(components.extensions)
        w.end_object()

    def _write_definitions(self, components: ComponentRegistry, kind: NodeKind, fields=None) -> None:
        w = self.writer
        w.start_object()
        for reference_id, node in components.items_of(kind):
            w.write_property_name(reference_id)
            self.write_node(node, definition=True, fields=fields)
        w.end_object()

    def _write_v2_components(self, components: ComponentRegistry) -> None:
        w = self.writer
        for kind in components.kinds():
            if kind not in V2_COMPONENT_SECTIONS and kind != NodeKind.TAG:
                self._lossy(f"components.{kind.value} is not supported and was dropped")

        for kind, section in V2_COMPONENT_SECTIONS.items():
            entries = components.items_of(kind)
            if kind == NodeKind.SECURITY_SCHEME:
                entries = [(name, node) for name, node in entries if self._v2_scheme_supported(node)]
            if not entries:
                continue
            w.write_property_name(section)
            w.start_object()
            for reference_id, node in entries:
                w.write_property_name(reference_id)
                self.write_node(node, definition=True)
            w.end_object()

    def _write_v2_host(self, servers: List[Server]) -> None:
        if not servers:
            return
        w = self.writer
        first = urlsplit(_expand_variables(servers[0]))
        if first.netloc:
            w.write_property("host", first.netloc)
        if first.path:
            w.write_property("basePath", first.path)

        schemes: List[str] = []
        for server in servers:
            parts = urlsplit(_expand_variables(server))
            if (parts.netloc, parts.path) != (first.netloc, first.path):
                self._lossy(f"Server '{server.url}' cannot be expressed as host/basePath and was dropped")
                continue
            if parts.scheme and parts.scheme not in schemes:
                schemes.append(parts.scheme)
        w.write_optional_collection("schemes", schemes, w.write_value)

    # Info

    def _write_info(self, info: Info) -> None:
        w = self.writer
        w.start_object()
        w.write_required_property("title", info.title)
        if self.is_v31:
            w.write_property("summary", info.summary)
        w.write_property("description", info.description)
        w.write_property("termsOfService", info.terms_of_service)
        w.write_optional_object("contact", info.contact, self.write_node)
        w.write_optional_object("license", info.license, self.write_node)
        w.write_required_property("version", info.version)
        w.write_extensions(info.extensions)
        w.end_object()

    def _write_contact(self, contact: Contact) -> None:
        w = self.writer
        w.start_object()
        w.write_property("name", contact.name)
        w.write_property("url", contact.url)
        w.write_property("email", contact.email)
        w.write_extensions(contact.extensions)
        w.end_object()

    def _write_license(self, license: License) -> None:
        w = self.writer
        w.start_object()
        w.write_required_property("name", license.name)
        if self.is_v31:
            w.write_property("identifier", license.identifier)
        w.write_property("url", license.url)
        w.write_extensions(license.extensions)
        w.end_object()

    def _write_server(self, server: Server) -> None:
        w = self.writer
        w.start_object()
        w.write_required_property("url", server.url)
        w.write_property("description", server.description)
        w.write_optional_map("variables", server.variables, self._entry)
        w.write_extensions(server.extensions)
        w.end_object()

    def _write_server_variable(self, variable: ServerVariable) -> None:
        w = self.writer
        w.start_object()
        w.write_optional_collection("enum", variable.enum, w.write_value)
        w.write_required_property("default", variable.default)
        w.write_property("description", variable.description)
        w.write_extensions(variable.extensions)
        w.end_object()

    def _write_external_docs(self, docs: ExternalDocs) -> None:
        w = self.writer
        w.start_object()
        w.write_property("description", docs.description)
        w.write_required_property("url", docs.url)
        w.write_extensions(docs.extensions)
        w.end_object()

    def _write_tag(self, tag: Tag) -> None:
        w = self.writer
        w.start_object()
        w.write_required_property("name", tag.name)
        w.write_property("description", tag.description)
        w.write_optional_object("externalDocs", tag.external_docs, self.write_node)
        w.write_extensions(tag.extensions)
        w.end_object()

    # Paths and operations

    def _write_paths(self, paths: Paths) -> None:
        self.writer.write_map(paths, self._entry, paths.extensions)

    def _write_path_item(self, item: PathItem) -> None:
        w = self.writer
        w.start_object()
        if not self.is_v2:
            w.write_property("summary", item.summary)
            w.write_property("description", item.description)
        for operation_type, operation in item.operations.items():
            w.write_property_name(operation_type.value)
            self.write_node(operation)
        if not self.is_v2:
            w.write_optional_collection("servers", item.servers, self.write_node)
        elif item.servers:
            self._lossy("Path item servers are not supported and were dropped")
        w.write_optional_collection("parameters", item.parameters, self.write_node)
        w.write_extensions(item.extensions)
        w.end_object()

    def _write_operation(self, operation: Operation) -> None:
        if self.is_v2:
            self._write_v2_operation(operation)
            return
        w = self.writer
        w.start_object()
        w.write_optional_collection("tags", operation.tags, lambda tag: w.write_value(_tag_name(tag)))
        w.write_property("summary", operation.summary)
        w.write_property("description", operation.description)
        w.write_optional_object("externalDocs", operation.external_docs, self.write_node)
        w.write_property("operationId", operation.operation_id)
        w.write_optional_collection("parameters", operation.parameters, self.write_node)
        w.write_optional_object("requestBody", operation.request_body, self.write_node)
        w.write_required_object("responses", operation.responses, self.write_node)
        w.write_optional_map("callbacks", operation.callbacks, self._entry)
        w.write_property("deprecated", operation.deprecated, False)
        if operation.security is not None:
            w.write_required_collection("security", operation.security, self.write_node)
        w.write_optional_collection("servers", operation.servers, self.write_node)
        w.write_extensions(operation.extensions)
        w.end_object()

    def _write_v2_operation(self, operation: Operation) -> None:
        w = self.writer
        body = operation.request_body
        if isinstance(body, ReferenceHolder):
            body = body.copy_target_with_overrides()
            if body is None:
                self._lossy(f"Unresolved request body {operation.request_body.reference.to_pointer()} was dropped")

        produces: List[str] = []
        for response in operation.responses.values():
            for media_type in response.content:
                if media_type not in produces:
                    produces.append(media_type)

        w.start_object()
        w.write_optional_collection("tags", operation.tags, lambda tag: w.write_value(_tag_name(tag)))
        w.write_property("summary", operation.summary)
        w.write_property("description", operation.description)
        w.write_optional_object("externalDocs", operation.external_docs, self.write_node)
        w.write_property("operationId", operation.operation_id)
        w.write_optional_collection("consumes", list(body.content) if body is not None else [], w.write_value)
        w.write_optional_collection("produces", produces, w.write_value)

        if operation.parameters or body is not None:
            w.write_property_name("parameters")
            w.start_array()
            for parameter in operation.parameters:
                self.write_node(parameter)
            if body is not None:
                self._write_v2_body(body)
            w.end_array()

        w.write_required_object("responses", operation.responses, self.write_node)
        if operation.callbacks:
            self._lossy("callbacks are not supported and were dropped")
        w.write_property("deprecated", operation.deprecated, False)
        if operation.security is not None:
            w.write_required_collection("security", operation.security, self.write_node)
        if operation.servers:
            self._lossy("Operation servers are not supported and were dropped")
        w.write_extensions(operation.extensions)
        w.end_object()

    def _write_v2_body(self, body: RequestBody) -> None:
        w = self.writer
        content = body.content
        form = [media for name, media in content.items() if name in FORM_MEDIA_TYPES]
        if content and len(form) == len(content):
            schema = form[0].schema
            if schema is None:
                return
            required = set(schema.required)
            for name, property_schema in schema.properties.items():
                encoding = form[0].encoding.get(name)
                w.start_object()
                w.write_required_property("name", name)
                w.write_property("in", "formData")
                w.write_property("description", property_schema.description)
                w.write_property("required", name in required, False)
                if property_schema.type_names == ["string"] and property_schema.format == "binary":
                    w.write_property("type", "file")
                else:
                    self._write_v2_simple_schema(
                        property_schema, _collection_format(encoding) if encoding is not None else "multi"
                    )
                w.end_object()
            return

        extensions = dict(body.extensions)
        name = extensions.pop("x-bodyName", None) or "body"
        schema = next((media.schema for media in content.values() if media.schema is not None), None)

        w.start_object()
        w.write_required_property("name", name)
        w.write_property("in", "body")
        w.write_property("description", body.description)
        w.write_property("required", body.required, False)
        w.write_property_name("schema")
        if schema is None:
            w.start_object()
            w.end_object()
        else:
            self._write_schema(schema)
        w.write_extensions(extensions)
        w.end_object()

    def _write_callback(self, callback: Callback) -> None:
        self.writer.write_map(callback.path_items, self._entry, callback.extensions)

    # Parameters

    def _write_parameter(self, parameter: Parameter) -> None:
        w = self.writer
        w.start_object()
        w.write_required_property("name", parameter.name)
        w.write_required_property("in", _enum_value(parameter.location))
        if self.is_v2:
            if parameter.location == ParameterLocation.COOKIE:
                self._lossy(f"Cookie parameter '{parameter.name}' has no 2.0 equivalent")
            self._write_v2_parameter_fields(parameter)
        else:
            self._write_parameter_fields(parameter)
        w.write_extensions(parameter.extensions)
        w.end_object()

    def _write_header(self, header: Header) -> None:
        w = self.writer
        w.start_object()
        if self.is_v2:
            self._write_v2_parameter_fields(header)
        else:
            self._write_parameter_fields(header)
        w.write_extensions(header.extensions)
        w.end_object()

    def _write_parameter_fields(self, parameter: Parameter | Header) -> None:
        w = self.writer
        w.write_property("description", parameter.description)
        w.write_property("required", parameter.required, False)
        w.write_property("deprecated", parameter.deprecated, False)
        w.write_property("allowEmptyValue", parameter.allow_empty_value, False)
        w.write_property("style", _enum_value(parameter.style))
        w.write_property("explode", parameter.explode)
        w.write_property("allowReserved", parameter.allow_reserved, False)
        w.write_optional_object("schema", parameter.schema, self._write_schema)
        w.write_raw_property("example", parameter.example)
        w.write_optional_map("examples", parameter.examples, self._entry)
        w.write_optional_map("content", parameter.content, self._entry)

    def _write_v2_parameter_fields(self, parameter: Parameter | Header) -> None:
        w = self.writer
        w.write_property("description", parameter.description)
        w.write_property("required", parameter.required, False)
        w.write_property("allowEmptyValue", parameter.allow_empty_value, False)
        schema = parameter.schema
        if schema is None:
            schema = next((media.schema for media in parameter.content.values() if media.schema is not None), None)
        if schema is not None:
            self._write_v2_simple_schema(schema, _collection_format(parameter))

    def _write_v2_simple_schema(self, schema: Schema, collection_format: Optional[str] = None, seen: Optional[Set[int]] = None) -> None:
        """Flatten schema keywords into 2.0 parameter, header or items fields."""
        w = self.writer
        seen = set() if seen is None else seen
        seen.add(id(schema))

        type_names = [name for name in schema.type_names if name != "null"]
        w.write_property("type", type_names[0] if type_names else None)
        w.write_property("format", schema.format)
        if schema.items is not None and id(schema.items) not in seen:
            w.write_property_name("items")
            w.start_object()
            self._write_v2_simple_schema(schema.items, seen=seen)
            w.end_object()
        if type_names and type_names[0] == "array":
            w.write_property("collectionFormat", collection_format)
        w.write_raw_property("default", schema.default)
        self._write_bounds(schema)
        w.write_property("maxLength", schema.max_length)
        w.write_property("minLength", schema.min_length)
        w.write_property("pattern", schema.pattern)
        w.write_property("maxItems", schema.max_items)
        w.write_property("minItems", schema.min_items)
        w.write_property("uniqueItems", schema.unique_items, False)
        if schema.enum:
            w.write_raw_property("enum", list(schema.enum))
        w.write_property("multipleOf", schema.multiple_of)

    # Bodies and responses

    def _write_request_body(self, body: RequestBody) -> None:
        w = self.writer
        w.start_object()
        w.write_property("description", body.description)
        w.write_required_map("content", body.content, self._entry)
        w.write_property("required", body.required, False)
        w.write_extensions(body.extensions)
        w.end_object()

    def _write_responses(self, responses: Responses) -> None:
        self.writer.write_map(responses, self._entry, responses.extensions)

    def _write_response(self, response: Response) -> None:
        w = self.writer
        w.start_object()
        w.write_required_property("description", response.description)
        if self.is_v2:
            schema = next((media.schema for media in response.content.values() if media.schema is not None), None)
            w.write_optional_object("schema", schema, self._write_schema)
            examples = {}
            for name, media in response.content.items():
                value = _media_example(media)
                if value is not None:
                    examples[name] = value
            w.write_raw_property("examples", examples or None)
            w.write_optional_map("headers", response.headers, self._entry)
            if response.links:
                self._lossy("Response links are not supported and were dropped")
        else:
            w.write_optional_map("headers", response.headers, self._entry)
            w.write_optional_map("content", response.content, self._entry)
            w.write_optional_map("links", response.links, self._entry)
        w.write_extensions(response.extensions)
        w.end_object()

    def _write_media_type(self, media: MediaType) -> None:
        w = self.writer
        w.start_object()
        w.write_optional_object("schema", media.schema, self._write_schema)
        w.write_raw_property("example", media.example)
        w.write_optional_map("examples", media.examples, self._entry)
        w.write_optional_map("encoding", media.encoding, self._entry)
        w.write_extensions(media.extensions)
        w.end_object()

    def _write_encoding(self, encoding: Encoding) -> None:
        w = self.writer
        w.start_object()
        w.write_property("contentType", encoding.content_type)
        w.write_optional_map("headers", encoding.headers, self._entry)
        w.write_property("style", _enum_value(encoding.style))
        w.write_property("explode", encoding.explode)
        w.write_property("allowReserved", encoding.allow_reserved, False)
        w.write_extensions(encoding.extensions)
        w.end_object()

    def _write_example(self, example: Example) -> None:
        w = self.writer
        w.start_object()
        w.write_property("summary", example.summary)
        w.write_property("description", example.description)
        w.write_raw_property("value", example.value)
        w.write_property("externalValue", example.external_value)
        w.write_extensions(example.extensions)
        w.end_object()

    def _write_link(self, link: Link) -> None:
        w = self.writer
        w.start_object()
        w.write_property("operationRef", link.operation_ref)
        w.write_property("operationId", link.operation_id)
        w.write_optional_map("parameters", link.parameters, lambda key, value: w.write_raw(render_any(value)))
        w.write_raw_property("requestBody", render_any(link.request_body))
        w.write_property("description", link.description)
        w.write_optional_object("server", link.server, self.write_node)
        w.write_extensions(link.extensions)
        w.end_object()

    # Security

    def _write_security_scheme(self, scheme: SecurityScheme) -> None:
        if self.is_v2:
            self._write_v2_security_scheme(scheme)
            return
        w = self.writer
        w.start_object()
        w.write_required_property("type", _enum_value(scheme.type))
        w.write_property("description", scheme.description)
        w.write_property("name", scheme.name)
        w.write_property("in", _enum_value(scheme.location))
        w.write_property("scheme", scheme.scheme)
        w.write_property("bearerFormat", scheme.bearer_format)
        w.write_optional_object("flows", scheme.flows, self.write_node)
        w.write_property("openIdConnectUrl", scheme.open_id_connect_url)
        w.write_extensions(scheme.extensions)
        w.end_object()

    def _v2_scheme_supported(self, node: Any) -> bool:
        scheme = node.resolve() if isinstance(node, ReferenceHolder) else node
        if scheme is None:
            return True
        if scheme.type == SecuritySchemeType.API_KEY:
            return True
        if scheme.type == SecuritySchemeType.HTTP and (scheme.scheme or "").lower() == "basic":
            return True
        if scheme.type == SecuritySchemeType.OAUTH2 and scheme.flows is not None and _v2_flow(scheme.flows):
            return True
        self._lossy(f"Security scheme of type '{_enum_value(scheme.type)}' has no 2.0 equivalent and was dropped")
        return False

    def _write_v2_security_scheme(self, scheme: SecurityScheme) -> None:
        w = self.writer
        w.start_object()
        if scheme.type == SecuritySchemeType.API_KEY:
            w.write_property("type", "apiKey")
            w.write_property("description", scheme.description)
            w.write_property("name", scheme.name)
            w.write_property("in", _enum_value(scheme.location))
        elif scheme.type == SecuritySchemeType.HTTP:
            w.write_property("type", "basic")
            w.write_property("description", scheme.description)
        elif scheme.type == SecuritySchemeType.OAUTH2:
            w.write_property("type", "oauth2")
            w.write_property("description", scheme.description)
            selected = _v2_flow(scheme.flows) if scheme.flows is not None else None
            if selected is not None:
                flow_name, flow = selected
                w.write_property("flow", flow_name)
                if flow_name in ("implicit", "accessCode"):
                    w.write_property("authorizationUrl", flow.authorization_url)
                if flow_name in ("password", "application", "accessCode"):
                    w.write_property("tokenUrl", flow.token_url)
                w.write_required_map("scopes", flow.scopes, lambda key, value: w.write_value(value))
                if len(_oauth_flows(scheme.flows)) > 1:
                    self._lossy("Only the first OAuth2 flow is kept in 2.0")
        w.write_extensions(scheme.extensions)
        w.end_object()

    def _write_oauth_flows(self, flows: OAuthFlows) -> None:
        w = self.writer
        w.start_object()
        w.write_optional_object("implicit", flows.implicit, self.write_node)
        w.write_optional_object("password", flows.password, self.write_node)
        w.write_optional_object("clientCredentials", flows.client_credentials, self.write_node)
        w.write_optional_object("authorizationCode", flows.authorization_code, self.write_node)
        w.write_extensions(flows.extensions)
        w.end_object()

    def _write_oauth_flow(self, flow: OAuthFlow) -> None:
        w = self.writer
        w.start_object()
        w.write_property("authorizationUrl", flow.authorization_url)
        w.write_property("tokenUrl", flow.token_url)
        w.write_property("refreshUrl", flow.refresh_url)
        w.write_required_map("scopes", flow.scopes, lambda key, value: w.write_value(value))
        w.write_extensions(flow.extensions)
        w.end_object()

    def _write_security_requirement(self, requirement: SecurityRequirement) -> None:
        w = self.writer
        w.start_object()
        for scheme, scopes in requirement.items():
            w.write_required_collection(_scheme_name(scheme), scopes, w.write_value)
        w.end_object()

    # Schema

    def _write_schema(self, schema: Schema, parent_required: Optional[Set[str]] = None, property_name: Optional[str] = None) -> None:
        self.write_node(schema, fields=lambda node: self._write_schema_fields(node, parent_required, property_name))

    def _write_schema_fields(
        self,
        schema: Schema,
        parent_required: Optional[Set[str]] = None,
        property_name: Optional[str] = None,
    ) -> None:
        """Write one schema object in the target dialect.

        Args:
            schema: Schema to write
            parent_required: ``required`` names of the enclosing schema when
                ``schema`` is one of its properties
            property_name: Name of that property
        """
        w = self.writer
        w.start_object()

        if self.is_v31:
            w.write_property("$id", schema.id)
            w.write_property("$schema", schema.schema_dialect)
            w.write_property("$comment", schema.comment)
            w.write_optional_map("$vocabulary", schema.vocabulary, lambda key, value: w.write_value(value))
            w.write_property("$dynamicRef", schema.dynamic_ref)
            w.write_property("$dynamicAnchor", schema.dynamic_anchor)
            w.write_optional_map("$defs", schema.definitions, lambda key, value: self._write_schema(value))
        else:
            dropped = [
                keyword
                for keyword, value in (
                    ("$id", schema.id),
                    ("$schema", schema.schema_dialect),
                    ("$comment", schema.comment),
                    ("$vocabulary", schema.vocabulary),
                    ("$dynamicRef", schema.dynamic_ref),
                    ("$dynamicAnchor", schema.dynamic_anchor),
                    ("$defs", schema.definitions),
                    ("patternProperties", schema.pattern_properties),
                    ("unevaluatedProperties", schema.unevaluated_properties is not None),
                )
                if value
            ]
            if dropped:
                self._lossy(f"Schema keywords not supported and dropped: {', '.join(dropped)}")

        w.write_property("title", schema.title)
        w.write_property("multipleOf", schema.multiple_of)
        self._write_bounds(schema)
        w.write_property("maxLength", schema.max_length)
        w.write_property("minLength", schema.min_length)
        w.write_property("pattern", schema.pattern)
        w.write_property("maxItems", schema.max_items)
        w.write_property("minItems", schema.min_items)
        w.write_property("uniqueItems", schema.unique_items, False)
        w.write_property("maxProperties", schema.max_properties)
        w.write_property("minProperties", schema.min_properties)
        w.write_optional_collection("required", schema.required, w.write_value)

        enum = list(schema.enum)
        if self.is_v31:
            w.write_raw_property("const", schema.const)
        elif schema.const is not None:
            if enum:
                self._lossy("const dropped in favour of enum")
            else:
                enum = [schema.const]
        if enum:
            w.write_raw_property("enum", enum)

        self._write_type(schema)
        self._write_composition(schema)

        w.write_optional_object("items", schema.items, self._write_schema)
        required = set(schema.required)
        w.write_optional_map(
            "properties",
            schema.properties,
            lambda name, value: self._write_schema(value, required, name),
        )
        if self.is_v31:
            w.write_optional_map("patternProperties", schema.pattern_properties, lambda key, value: self._write_schema(value))

        if not schema.additional_properties_allowed:
            w.write_property("additionalProperties", False)
        else:
            w.write_optional_object("additionalProperties", schema.additional_properties, self._write_schema)
        if self.is_v31:
            w.write_property("unevaluatedProperties", schema.unevaluated_properties)

        w.write_property("description", schema.description)
        w.write_property("format", self._schema_format(schema))
        w.write_raw_property("default", schema.default)

        if not self.is_v31 and (schema.nullable or "null" in schema.type_names):
            if self.is_v2:
                if "x-nullable" not in schema.extensions:
                    w.write_property("x-nullable", True)
            else:
                w.write_property("nullable", True)

        if schema.discriminator is not None:
            if self.is_v2:
                w.write_property("discriminator", schema.discriminator.property_name)
            else:
                w.write_optional_object("discriminator", schema.discriminator, self.write_node)

        read_only = schema.read_only
        if self.is_v2 and property_name is not None and property_name in (parent_required or ()):
            read_only = False
        w.write_property("readOnly", read_only, False)
        if not self.is_v2:
            w.write_property("writeOnly", schema.write_only, False)
        elif schema.write_only:
            self._lossy("writeOnly is not supported and was dropped")

        w.write_optional_object("xml", schema.xml, self.write_node)
        w.write_optional_object("externalDocs", schema.external_docs, self.write_node)

        if self.is_v31:
            w.write_raw_property("example", schema.example)
            if schema.examples:
                w.write_raw_property("examples", list(schema.examples))
        else:
            example = schema.example
            if example is None and schema.examples:
                example = schema.examples[0]
            w.write_raw_property("example", example)

        if not self.is_v2:
            w.write_property("deprecated", schema.deprecated, False)

        w.write_extensions(schema.unrecognized_keywords)
        w.write_extensions(schema.extensions)
        w.end_object()

    def _write_type(self, schema: Schema) -> None:
        w = self.writer
        type_names = schema.type_names
        if self.is_v31:
            if schema.nullable and type_names and "null" not in type_names:
                type_names = [*type_names, "null"]
            if len(type_names) == 1:
                w.write_property("type", type_names[0])
            elif type_names:
                w.write_raw_property("type", type_names)
            return

        concrete = [name for name in type_names if name != "null"]
        if len(concrete) > 1:
            self._lossy(f"Type list {type_names} reduced to '{concrete[0]}'")
        if concrete:
            w.write_property("type", concrete[0])

    def _write_composition(self, schema: Schema) -> None:
        w = self.writer
        if not self.is_v2:
            w.write_optional_collection("allOf", schema.all_of, self._write_schema)
            w.write_optional_collection("oneOf", schema.one_of, self._write_schema)
            w.write_optional_collection("anyOf", schema.any_of, self._write_schema)
            w.write_optional_object("not", schema.not_, self._write_schema)
            return

        all_of = list(schema.all_of)
        alternatives = schema.any_of or schema.one_of
        if alternatives:
            if all_of:
                self._lossy("anyOf/oneOf are not supported and were dropped")
            else:
                all_of = [alternatives[0]]
                self._lossy("anyOf/oneOf downgraded to allOf with the first entry")
        if schema.not_ is not None:
            self._lossy("not is not supported and was dropped")
        w.write_optional_collection("allOf", all_of, self._write_schema)

    def _write_bounds(self, schema: Schema) -> None:
        w = self.writer
        bounds = (
            ("maximum", "exclusiveMaximum", schema.maximum, schema.exclusive_maximum, schema.v31_exclusive_maximum),
            ("minimum", "exclusiveMinimum", schema.minimum, schema.exclusive_minimum, schema.v31_exclusive_minimum),
        )
        for name, exclusive_name, value, flag, numeric in bounds:
            if self.is_v31:
                if numeric is not None:
                    w.write_property(name, value)
                    w.write_property(exclusive_name, numeric)
                elif flag and value is not None:
                    w.write_property(exclusive_name, value)
                else:
                    w.write_property(name, value)
                continue

            if numeric is not None:
                if value is not None and value != numeric:
                    self._lossy(f"{name} {value} replaced by the exclusive bound {numeric}")
                w.write_property(name, numeric)
                w.write_property(exclusive_name, True)
            else:
                w.write_property(name, value)
                w.write_property(exclusive_name, flag, False)

    def _schema_format(self, schema: Schema) -> Optional[str]:
        if schema.format or not self.is_v2:
            return schema.format
        # 2.0 has no composition to carry it, so lift the first one found
        for member in (*schema.all_of, *schema.any_of, *schema.one_of):
            if member.format:
                return member.format
        return None

    def _write_discriminator(self, discriminator: Discriminator) -> None:
        w = self.writer
        w.start_object()
        w.write_required_property("propertyName", discriminator.property_name)
        w.write_optional_map("mapping", discriminator.mapping, lambda key, value: w.write_value(value))
        w.write_extensions(discriminator.extensions)
        w.end_object()

    def _write_xml(self, xml: Xml) -> None:
        w = self.writer
        w.start_object()
        w.write_property("name", xml.name)
        w.write_property("namespace", xml.namespace)
        w.write_property("prefix", xml.prefix)
        w.write_property("attribute", xml.attribute, False)
        w.write_property("wrapped", xml.wrapped, False)
        w.write_extensions(xml.extensions)
        w.end_object()


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _tag_name(tag: Any) -> str:
    if isinstance(tag, ReferenceHolder):
        return tag.reference.id
    return tag.name


def _scheme_name(scheme: Any) -> str:
    if isinstance(scheme, ReferenceHolder):
        return scheme.reference.id
    return str(scheme)


def _expand_variables(server: Server) -> str:
    url = server.url or ""
    for name, variable in server.variables.items():
        url = url.replace("{" + name + "}", variable.default)
    return url


def _collection_format(parameter: Parameter | Header) -> Optional[str]:
    location = getattr(parameter, "location", None)
    style = parameter.style
    if style is None:
        style = ParameterStyle.FORM if location in (ParameterLocation.QUERY, ParameterLocation.COOKIE) else ParameterStyle.SIMPLE
    explode = parameter.explode if parameter.explode is not None else style == ParameterStyle.FORM
    if style == ParameterStyle.FORM:
        return "multi" if explode else "csv"
    return V2_COLLECTION_FORMATS.get(style)


def _media_example(media: MediaType) -> Any:
    if media.example is not None:
        return media.example
    for example in media.examples.values():
        if example.value is not None:
            return example.value
    return None


def _oauth_flows(flows: OAuthFlows) -> List[tuple]:
    candidates = (
        ("implicit", flows.implicit),
        ("password", flows.password),
        ("application", flows.client_credentials),
        ("accessCode", flows.authorization_code),
    )
    return [(name, flow) for name, flow in candidates if flow is not None]


def _v2_flow(flows: OAuthFlows) -> Optional[tuple]:
    available = _oauth_flows(flows)
    return available[0] if available else None


def serialize(
    root: Node,
    version: SpecVersion = SpecVersion.V3,
    settings: Optional[WriterSettings] = None,
    writer: Optional[Writer] = None,
    diagnostic: Optional[Diagnostic] = None,
) -> Writer:
    """Serialize ``root`` into ``writer`` (a new :class:`TreeWriter` by default).

    Returns:
        The writer, holding the output
    """
    writer = writer if writer is not None else TreeWriter()
    VersionedSerializer(writer, version, settings, diagnostic).serialize(root)
    return writer


def render(
    root: Node,
    version: SpecVersion = SpecVersion.V3,
    format_name: str = "json",
    settings: Optional[WriterSettings] = None,
    indent: int = 2,
    diagnostic: Optional[Diagnostic] = None,
) -> str:
    """Serialize ``root`` to JSON or YAML text."""
    writer = create_writer(format_name, indent)
    serialize(root, version, settings, writer, diagnostic)
    return writer.getvalue()


def to_json(root: Node, version: SpecVersion = SpecVersion.V3, settings: Optional[WriterSettings] = None, indent: int = 2) -> str:
    return render(root, version, "json", settings, indent)


def to_yaml(root: Node, version: SpecVersion = SpecVersion.V3, settings: Optional[WriterSettings] = None, indent: int = 2) -> str:
    return render(root, version, "yaml", settings, indent)
