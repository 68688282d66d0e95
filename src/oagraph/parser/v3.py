"""Reader for OpenAPI 3.0 and 3.1 documents."""

import logging
from typing import Any, Callable, Dict, Optional

from oagraph.diagnostics import DiagnosticKind
from oagraph.exceptions import ReaderError
from oagraph.expressions import RuntimeExpression, build_any
from oagraph.models.base import NodeKind, OperationType, ParameterLocation, ParameterStyle, SecuritySchemeType
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
from oagraph.models.reference import ReferenceDescriptor, ReferenceHolder, parse_reference_pointer
from oagraph.models.references import holder_for
from oagraph.models.schema import Discriminator, Schema, Xml
from oagraph.parser.context import ParsingContext
from oagraph.parser.fields import (
    EXTENSION_FIELDS,
    FixedFields,
    any_field,
    bool_field,
    enum_field,
    ignore,
    int_field,
    is_extension,
    number_field,
    parse_map,
    raw_list_field,
    set_extension,
    string_field,
    string_list_field,
    string_map_field,
)
from oagraph.parser.nodes import NODE_ERRORS, ListNode, MapNode, ParseNode

logger = logging.getLogger(__name__)


def _any_name(name: str) -> bool:
    return True


def _unrecognized_keyword(schema: Schema, name: str, node: ParseNode) -> None:
    schema.unrecognized_keywords[name] = node.create_any()


class V3Reader:
    """Loads a 3.0 or 3.1 document into the graph model.

    Field tables are built per reader so that dialect differences (3.1
    adds ``webhooks``, ``jsonSchemaDialect`` and the JSON Schema 2020-12
    keywords) are decided once.

    Args:
        context: Parsing context carrying the host document and diagnostic
    """

    def __init__(self, context: ParsingContext):
        self.context = context
        self.document = context.document
        self._build_tables()

    @property
    def is_v31(self) -> bool:
        return self.context.is_v31

    def read(self, root: ParseNode) -> Document:
        """Populate the context document from the root node."""
        node = root.check_map_node("document")
        parse_map(node, self.document, self.document_fields)

        if "info" not in node:
            self.context.error("Info is a REQUIRED field at #/", "", DiagnosticKind.REQUIRED_FIELD)
        has_other_roots = self.is_v31 and ("webhooks" in node or "components" in node)
        if "paths" not in node and not has_other_roots:
            self.context.error("Paths is a REQUIRED field at #/", "", DiagnosticKind.REQUIRED_FIELD)
        return self.document

    # References

    def load_reference(self, node: ParseNode, kind: NodeKind) -> Optional[ReferenceHolder]:
        """Holder for a ``$ref`` object, or None when ``node`` is not one.

        ``summary`` and ``description`` next to ``$ref`` become the holder's
        local overrides; other siblings are ignored.
        """
        if not isinstance(node, MapNode):
            return None
        pointer = node.get_reference_pointer()
        if pointer is None:
            return None
        external, reference_id = parse_reference_pointer(pointer, kind)
        holder = holder_for(kind, reference_id, self.document, external)
        for name in ("summary", "description"):
            child = node.get(name)
            if child is not None:
                setattr(holder, name, child.get_string())
        return holder

    def define(self, kind: NodeKind, reference_id: str, component: Any) -> None:
        """Register a component definition under its section name."""
        if not isinstance(component, ReferenceHolder) and getattr(component, "reference", None) is None:
            component.reference = ReferenceDescriptor.create(reference_id, kind, self.document)
        if not self.document.register_component(kind, reference_id, component):
            self.context.warning(f"Duplicate component {kind.value}/{reference_id} ignored")

    # Field tables

    def _build_tables(self) -> None:
        schema = self.load_schema

        self.document_fields: FixedFields = {
            "openapi": ignore,
            "info": lambda d, n: setattr(d, "info", self.load_info(n)),
            "servers": lambda d, n: setattr(d, "servers", n.create_list(self.load_server)),
            "paths": lambda d, n: setattr(d, "paths", self.load_paths(n)),
            "components": lambda d, n: self.load_components(n),
            "security": lambda d, n: setattr(d, "security", n.create_list(self.load_security_requirement)),
            "tags": lambda d, n: setattr(d, "tags", n.create_list(self.load_tag)),
            "externalDocs": lambda d, n: setattr(d, "external_docs", self.load_external_docs(n)),
        }
        if self.is_v31:
            self.document_fields["jsonSchemaDialect"] = string_field("json_schema_dialect")
            self.document_fields["webhooks"] = lambda d, n: setattr(d, "webhooks", n.create_map(self.load_path_item))

        self.info_fields: FixedFields = {
            "title": string_field("title"),
            "description": string_field("description"),
            "termsOfService": string_field("terms_of_service"),
            "contact": lambda i, n: setattr(i, "contact", self.load_contact(n)),
            "license": lambda i, n: setattr(i, "license", self.load_license(n)),
            "version": string_field("version"),
        }
        self.contact_fields: FixedFields = {
            "name": string_field("name"),
            "url": string_field("url"),
            "email": string_field("email"),
        }
        self.license_fields: FixedFields = {
            "name": string_field("name"),
            "url": string_field("url"),
        }
        if self.is_v31:
            self.info_fields["summary"] = string_field("summary")
            self.license_fields["identifier"] = string_field("identifier")

        self.server_fields: FixedFields = {
            "url": string_field("url"),
            "description": string_field("description"),
            "variables": lambda s, n: setattr(s, "variables", n.create_map(self.load_server_variable)),
        }
        self.server_variable_fields: FixedFields = {
            "enum": string_list_field("enum"),
            "default": string_field("default"),
            "description": string_field("description"),
        }
        self.external_docs_fields: FixedFields = {
            "description": string_field("description"),
            "url": string_field("url"),
        }
        self.tag_fields: FixedFields = {
            "name": string_field("name"),
            "description": string_field("description"),
            "externalDocs": lambda t, n: setattr(t, "external_docs", self.load_external_docs(n)),
        }

        self.path_item_fields: FixedFields = {
            "summary": string_field("summary"),
            "description": string_field("description"),
            "servers": lambda p, n: setattr(p, "servers", n.create_list(self.load_server)),
            "parameters": lambda p, n: setattr(p, "parameters", n.create_list(self.load_parameter)),
        }
        for operation_type in OperationType:
            self.path_item_fields[operation_type.value] = self._operation_setter(operation_type)

        self.operation_fields: FixedFields = {
            "tags": lambda o, n: setattr(o, "tags", n.create_simple_list(self.load_tag_reference)),
            "summary": string_field("summary"),
            "description": string_field("description"),
            "externalDocs": lambda o, n: setattr(o, "external_docs", self.load_external_docs(n)),
            "operationId": string_field("operation_id"),
            "parameters": lambda o, n: setattr(o, "parameters", n.create_list(self.load_parameter)),
            "requestBody": lambda o, n: setattr(o, "request_body", self.load_request_body(n)),
            "responses": lambda o, n: setattr(o, "responses", self.load_responses(n)),
            "callbacks": lambda o, n: setattr(o, "callbacks", n.create_map(self.load_callback)),
            "deprecated": bool_field("deprecated"),
            "security": lambda o, n: setattr(o, "security", n.create_list(self.load_security_requirement)),
            "servers": lambda o, n: setattr(o, "servers", n.create_list(self.load_server)),
        }

        self.header_fields: FixedFields = {
            "description": string_field("description"),
            "required": bool_field("required"),
            "deprecated": bool_field("deprecated"),
            "allowEmptyValue": bool_field("allow_empty_value"),
            "style": enum_field("style", ParameterStyle),
            "explode": bool_field("explode"),
            "allowReserved": bool_field("allow_reserved"),
            "schema": lambda p, n: setattr(p, "schema", schema(n)),
            "example": any_field("example"),
            "examples": lambda p, n: setattr(p, "examples", n.create_map(self.load_example)),
            "content": lambda p, n: setattr(p, "content", n.create_map(self.load_media_type)),
        }
        self.parameter_fields: FixedFields = {
            "name": string_field("name"),
            "in": enum_field("location", ParameterLocation),
            **self.header_fields,
        }

        self.request_body_fields: FixedFields = {
            "description": string_field("description"),
            "content": lambda b, n: setattr(b, "content", n.create_map(self.load_media_type)),
            "required": bool_field("required"),
        }
        self.response_fields: FixedFields = {
            "description": string_field("description"),
            "headers": lambda r, n: setattr(r, "headers", n.create_map(self.load_header)),
            "content": lambda r, n: setattr(r, "content", n.create_map(self.load_media_type)),
            "links": lambda r, n: setattr(r, "links", n.create_map(self.load_link)),
        }
        self.media_type_fields: FixedFields = {
            "schema": lambda m, n: setattr(m, "schema", schema(n)),
            "example": any_field("example"),
            "examples": lambda m, n: setattr(m, "examples", n.create_map(self.load_example)),
            "encoding": lambda m, n: setattr(m, "encoding", n.create_map(self.load_encoding)),
        }
        self.encoding_fields: FixedFields = {
            "contentType": string_field("content_type"),
            "headers": lambda e, n: setattr(e, "headers", n.create_map(self.load_header)),
            "style": enum_field("style", ParameterStyle),
            "explode": bool_field("explode"),
            "allowReserved": bool_field("allow_reserved"),
        }
        self.example_fields: FixedFields = {
            "summary": string_field("summary"),
            "description": string_field("description"),
            "value": any_field("value"),
            "externalValue": string_field("external_value"),
        }
        self.link_fields: FixedFields = {
            "operationRef": string_field("operation_ref"),
            "operationId": string_field("operation_id"),
            "parameters": lambda link, n: setattr(link, "parameters", n.create_map(lambda p: build_any(p.create_any()))),
            "requestBody": lambda link, n: setattr(link, "request_body", build_any(n.create_any())),
            "description": string_field("description"),
            "server": lambda link, n: setattr(link, "server", self.load_server(n)),
        }

        self.security_scheme_fields: FixedFields = {
            "type": enum_field("type", SecuritySchemeType),
            "description": string_field("description"),
            "name": string_field("name"),
            "in": enum_field("location", ParameterLocation),
            "scheme": string_field("scheme"),
            "bearerFormat": string_field("bearer_format"),
            "flows": lambda s, n: setattr(s, "flows", self.load_oauth_flows(n)),
            "openIdConnectUrl": string_field("open_id_connect_url"),
        }
        self.oauth_flows_fields: FixedFields = {
            "implicit": lambda f, n: setattr(f, "implicit", self.load_oauth_flow(n)),
            "password": lambda f, n: setattr(f, "password", self.load_oauth_flow(n)),
            "clientCredentials": lambda f, n: setattr(f, "client_credentials", self.load_oauth_flow(n)),
            "authorizationCode": lambda f, n: setattr(f, "authorization_code", self.load_oauth_flow(n)),
        }
        self.oauth_flow_fields: FixedFields = {
            "authorizationUrl": string_field("authorization_url"),
            "tokenUrl": string_field("token_url"),
            "refreshUrl": string_field("refresh_url"),
            "scopes": string_map_field("scopes"),
        }

        self.schema_fields: FixedFields = {
            "title": string_field("title"),
            "multipleOf": number_field("multiple_of"),
            "maximum": number_field("maximum"),
            "exclusiveMaximum": self._exclusive_bound("maximum"),
            "minimum": number_field("minimum"),
            "exclusiveMinimum": self._exclusive_bound("minimum"),
            "maxLength": int_field("max_length"),
            "minLength": int_field("min_length"),
            "pattern": string_field("pattern"),
            "maxItems": int_field("max_items"),
            "minItems": int_field("min_items"),
            "uniqueItems": bool_field("unique_items"),
            "maxProperties": int_field("max_properties"),
            "minProperties": int_field("min_properties"),
            "required": string_list_field("required"),
            "enum": raw_list_field("enum"),
            "type": self._schema_type,
            "allOf": lambda s, n: setattr(s, "all_of", n.create_list(schema)),
            "oneOf": lambda s, n: setattr(s, "one_of", n.create_list(schema)),
            "anyOf": lambda s, n: setattr(s, "any_of", n.create_list(schema)),
            "not": lambda s, n: setattr(s, "not_", schema(n)),
            "items": lambda s, n: setattr(s, "items", schema(n)),
            "properties": lambda s, n: setattr(s, "properties", n.create_map(schema)),
            "additionalProperties": self._additional_properties,
            "description": string_field("description"),
            "format": string_field("format"),
            "default": any_field("default"),
            "nullable": bool_field("nullable"),
            "discriminator": lambda s, n: setattr(s, "discriminator", self.load_discriminator(n)),
            "readOnly": bool_field("read_only"),
            "writeOnly": bool_field("write_only"),
            "xml": lambda s, n: setattr(s, "xml", self.load_xml(n)),
            "externalDocs": lambda s, n: setattr(s, "external_docs", self.load_external_docs(n)),
            "example": any_field("example"),
            "deprecated": bool_field("deprecated"),
        }
        if self.is_v31:
            self.schema_fields.update({
                "$id": string_field("id"),
                "$schema": string_field("schema_dialect"),
                "$comment": string_field("comment"),
                "$vocabulary": lambda s, n: setattr(s, "vocabulary", n.create_simple_map(lambda v: v.get_bool())),
                "$dynamicRef": string_field("dynamic_ref"),
                "$dynamicAnchor": string_field("dynamic_anchor"),
                "$defs": lambda s, n: setattr(s, "definitions", n.create_map(schema)),
                "const": any_field("const"),
                "examples": raw_list_field("examples"),
                "patternProperties": lambda s, n: setattr(s, "pattern_properties", n.create_map(schema)),
                "unevaluatedProperties": bool_field("unevaluated_properties"),
            })

        self.discriminator_fields: FixedFields = {
            "propertyName": string_field("property_name"),
            "mapping": string_map_field("mapping"),
        }
        self.xml_fields: FixedFields = {
            "name": string_field("name"),
            "namespace": string_field("namespace"),
            "prefix": string_field("prefix"),
            "attribute": bool_field("attribute"),
            "wrapped": bool_field("wrapped"),
        }

        self.component_sections: Dict[str, tuple] = {
            NodeKind.SCHEMA.value: (NodeKind.SCHEMA, self.load_schema),
            NodeKind.RESPONSE.value: (NodeKind.RESPONSE, self.load_response),
            NodeKind.PARAMETER.value: (NodeKind.PARAMETER, self.load_parameter),
            NodeKind.EXAMPLE.value: (NodeKind.EXAMPLE, self.load_example),
            NodeKind.REQUEST_BODY.value: (NodeKind.REQUEST_BODY, self.load_request_body),
            NodeKind.HEADER.value: (NodeKind.HEADER, self.load_header),
            NodeKind.SECURITY_SCHEME.value: (NodeKind.SECURITY_SCHEME, self.load_security_scheme),
            NodeKind.LINK.value: (NodeKind.LINK, self.load_link),
            NodeKind.CALLBACK.value: (NodeKind.CALLBACK, self.load_callback),
        }
        if self.is_v31:
            self.component_sections[NodeKind.PATH_ITEM.value] = (NodeKind.PATH_ITEM, self.load_path_item)

    def _operation_setter(self, operation_type: OperationType):
        def setter(item: PathItem, node: ParseNode) -> None:
            item.operations[operation_type] = self.load_operation(node)
        return setter

    def _exclusive_bound(self, bound: str):
        def setter(schema: Schema, node: ParseNode) -> None:
            value = node.get_scalar_value()
            if isinstance(value, bool):
                setattr(schema, f"exclusive_{bound}", value)
            elif self.is_v31:
                setattr(schema, f"v31_exclusive_{bound}", node.get_number())
            else:
                raise ReaderError(f"Expected a boolean at {node.location}", node.pointer)
        return setter

    @staticmethod
    def _schema_type(schema: Schema, node: ParseNode) -> None:
        if isinstance(node, ListNode):
            schema.type = node.create_simple_list(lambda item: item.get_string())
        else:
            schema.type = node.get_string()

    def _additional_properties(self, schema: Schema, node: ParseNode) -> None:
        if isinstance(node.value, bool):
            schema.additional_properties_allowed = node.value
        else:
            schema.additional_properties = self.load_schema(node)

    # Structure

    def load_info(self, node: ParseNode) -> Info:
        return parse_map(node.check_map_node("info"), Info(), self.info_fields)

    def load_contact(self, node: ParseNode) -> Contact:
        return parse_map(node.check_map_node("contact"), Contact(), self.contact_fields)

    def load_license(self, node: ParseNode) -> License:
        return parse_map(node.check_map_node("license"), License(), self.license_fields)

    def load_server(self, node: ParseNode) -> Server:
        return parse_map(node.check_map_node("server"), Server(), self.server_fields)

    def load_server_variable(self, node: ParseNode) -> ServerVariable:
        return parse_map(node.check_map_node("server variable"), ServerVariable(), self.server_variable_fields)

    def load_external_docs(self, node: ParseNode) -> ExternalDocs:
        return parse_map(node.check_map_node("externalDocs"), ExternalDocs(), self.external_docs_fields)

    def load_tag(self, node: ParseNode) -> Tag:
        return parse_map(node.check_map_node("tag"), Tag(), self.tag_fields)

    def load_tag_reference(self, node: ParseNode) -> ReferenceHolder:
        """Operation tags are names, bound to the document tag list."""
        return holder_for(NodeKind.TAG, node.get_string(), self.document)

    def load_paths(self, node: ParseNode) -> Paths:
        paths = Paths()
        pattern_fields = {
            is_extension: set_extension,
            _any_name: lambda p, name, n: p.__setitem__(name, self.load_path_item(n)),
        }
        return parse_map(node.check_map_node("paths"), paths, {}, pattern_fields)

    def load_path_item(self, node: ParseNode) -> PathItem:
        holder = self.load_reference(node, NodeKind.PATH_ITEM)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("path item"), PathItem(), self.path_item_fields)

    def load_operation(self, node: ParseNode) -> Operation:
        return parse_map(node.check_map_node("operation"), Operation(), self.operation_fields)

    def load_components(self, node: ParseNode) -> None:
        fields: FixedFields = {
            name: self._component_section(kind, loader)
            for name, (kind, loader) in self.component_sections.items()
        }
        parse_map(node.check_map_node("components"), self.document.components, fields)

    def _component_section(self, kind: NodeKind, loader: Callable[[ParseNode], Any]):
        def setter(registry: Any, node: ParseNode) -> None:
            for reference_id, child in node.check_map_node(kind.value).items():
                try:
                    self.define(kind, reference_id, loader(child))
                except NODE_ERRORS as exc:
                    self.context.record(exc, child.pointer)
        return setter

    # Parameters and bodies

    def load_parameter(self, node: ParseNode) -> Parameter:
        holder = self.load_reference(node, NodeKind.PARAMETER)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("parameter"), Parameter(), self.parameter_fields)

    def load_header(self, node: ParseNode) -> Header:
        holder = self.load_reference(node, NodeKind.HEADER)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("header"), Header(), self.header_fields)

    def load_request_body(self, node: ParseNode) -> RequestBody:
        holder = self.load_reference(node, NodeKind.REQUEST_BODY)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("requestBody"), RequestBody(), self.request_body_fields)

    def load_responses(self, node: ParseNode) -> Responses:
        pattern_fields = {
            is_extension: set_extension,
            _any_name: lambda r, name, n: r.__setitem__(name, self.load_response(n)),
        }
        return parse_map(node.check_map_node("responses"), Responses(), {}, pattern_fields)

    def load_response(self, node: ParseNode) -> Response:
        holder = self.load_reference(node, NodeKind.RESPONSE)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("response"), Response(), self.response_fields)

    def load_media_type(self, node: ParseNode) -> MediaType:
        return parse_map(node.check_map_node("media type"), MediaType(), self.media_type_fields)

    def load_encoding(self, node: ParseNode) -> Encoding:
        return parse_map(node.check_map_node("encoding"), Encoding(), self.encoding_fields)

    def load_example(self, node: ParseNode) -> Example:
        holder = self.load_reference(node, NodeKind.EXAMPLE)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("example"), Example(), self.example_fields)

    def load_link(self, node: ParseNode) -> Link:
        holder = self.load_reference(node, NodeKind.LINK)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("link"), Link(), self.link_fields)

    def load_callback(self, node: ParseNode) -> Callback:
        holder = self.load_reference(node, NodeKind.CALLBACK)
        if holder is not None:
            return holder
        pattern_fields = {
            is_extension: set_extension,
            _any_name: lambda c, name, n: c.path_items.__setitem__(RuntimeExpression.build(name), self.load_path_item(n)),
        }
        return parse_map(node.check_map_node("callback"), Callback(), {}, pattern_fields)

    # Security

    def load_security_scheme(self, node: ParseNode) -> SecurityScheme:
        holder = self.load_reference(node, NodeKind.SECURITY_SCHEME)
        if holder is not None:
            return holder
        return parse_map(node.check_map_node("security scheme"), SecurityScheme(), self.security_scheme_fields)

    def load_oauth_flows(self, node: ParseNode) -> OAuthFlows:
        return parse_map(node.check_map_node("flows"), OAuthFlows(), self.oauth_flows_fields)

    def load_oauth_flow(self, node: ParseNode) -> OAuthFlow:
        return parse_map(node.check_map_node("flow"), OAuthFlow(), self.oauth_flow_fields)

    def load_security_requirement(self, node: ParseNode) -> SecurityRequirement:
        """Scheme names become holders bound to ``securitySchemes``."""
        requirement = SecurityRequirement()
        for name, child in node.check_map_node("security requirement").items():
            try:
                scheme = holder_for(NodeKind.SECURITY_SCHEME, name, self.document)
                requirement[scheme] = child.create_simple_list(lambda item: item.get_string())
            except NODE_ERRORS as exc:
                self.context.record(exc, child.pointer)
        return requirement

    # Schema

    def load_schema(self, node: ParseNode) -> Schema:
        holder = self.load_reference(node, NodeKind.SCHEMA)
        if holder is not None:
            return holder
        return parse_map(
            node.check_map_node("schema"),
            Schema(),
            self.schema_fields,
            EXTENSION_FIELDS,
            unknown=_unrecognized_keyword,
        )

    def load_discriminator(self, node: ParseNode) -> Discriminator:
        return parse_map(node.check_map_node("discriminator"), Discriminator(), self.discriminator_fields)

    def load_xml(self, node: ParseNode) -> Xml:
        return parse_map(node.check_map_node("xml"), Xml(), self.xml_fields)
