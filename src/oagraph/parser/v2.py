"""Reader for Swagger 2.0 documents.

2.0 input is lifted into the 3.x model on the way in:

- ``host``, ``basePath`` and ``schemes`` become servers;
- ``in: body`` parameters become request bodies, and ``in: formData``
  parameters become one form body whose schema has a property per field;
- ``produces`` fans a response schema out into one media type per type;
- ``definitions``, ``parameters``, ``responses`` and
  ``securityDefinitions`` fill the component registry;
- ``collectionFormat`` becomes ``style``/``explode``.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from oagraph.diagnostics import DiagnosticKind
from oagraph.exceptions import ReaderError
from oagraph.models.base import NodeKind, OperationType, ParameterLocation, ParameterStyle, SecuritySchemeType
from oagraph.models.document import Document
from oagraph.models.elements import (
    Encoding,
    Header,
    MediaType,
    OAuthFlow,
    OAuthFlows,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    SecurityScheme,
    Server,
)
from oagraph.models.reference import ReferenceHolder, parse_reference_pointer
from oagraph.models.references import holder_for
from oagraph.models.schema import Discriminator, Schema
from oagraph.parser.context import ParsingContext
from oagraph.parser.fields import (
    FixedFields,
    any_field,
    bool_field,
    enum_field,
    ignore,
    int_field,
    number_field,
    parse_map,
    raw_list_field,
    string_field,
    string_map_field,
)
from oagraph.parser.nodes import NODE_ERRORS, ListNode, MapNode, ParseNode
from oagraph.parser.v3 import V3Reader
from oagraph.utils.pointers import escape_segment

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/json"
DEFAULT_FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
FORM_MEDIA_TYPES = (DEFAULT_FORM_MEDIA_TYPE, "multipart/form-data")

OAUTH_FLOW_ATTRIBUTES = {
    "implicit": "implicit",
    "password": "password",
    "application": "client_credentials",
    "accessCode": "authorization_code",
}

# Operation parameters split by where they end up in the 3.x model
SplitParameters = Tuple[List[Parameter], Optional[Any], List[ParseNode]]


class V2Reader(V3Reader):
    """Loads a Swagger 2.0 document into the 3.x-shaped graph model."""

    def __init__(self, context: ParsingContext):
        self.consumes: List[str] = []
        self.produces: List[str] = []
        self.host: Optional[str] = None
        self.base_path: Optional[str] = None
        self.schemes: List[str] = []
        self._raw_parameters: Dict[str, Any] = {}
        # (consumes, produces) in effect for the operation being read
        self._media: Tuple[List[str], List[str]] = ([], [])
        super().__init__(context)

    def read(self, root: ParseNode) -> Document:
        node = root.check_map_node("document")
        self._prescan(node)
        parse_map(node, self.document, self.document_fields)
        self.document.servers = self._servers()

        if "info" not in node:
            self.context.error("Info is a REQUIRED field at #/", "", DiagnosticKind.REQUIRED_FIELD)
        if "paths" not in node:
            self.context.error("Paths is a REQUIRED field at #/", "", DiagnosticKind.REQUIRED_FIELD)
        return self.document

    def _prescan(self, node: MapNode) -> None:
        # Operations need the global media types and parameter kinds up front
        for name in ("consumes", "produces"):
            child = node.get(name)
            if child is None:
                continue
            try:
                setattr(self, name, child.create_simple_list(lambda item: item.get_string()))
            except NODE_ERRORS as exc:
                self.context.record(exc, child.pointer)
        self._media = (self.consumes, self.produces)

        parameters = node.get("parameters")
        if isinstance(parameters, MapNode):
            self._raw_parameters = {str(key): value for key, value in parameters.value.items()}

    def _servers(self) -> List[Server]:
        base_path = self.base_path or ""
        if not self.host:
            return [Server(url=base_path)] if base_path else []
        if not self.schemes:
            return [Server(url=f"//{self.host}{base_path}")]
        return [Server(url=f"{scheme}://{self.host}{base_path}") for scheme in self.schemes]

    # Field tables

    def _build_tables(self) -> None:
        super()._build_tables()

        self.document_fields = {
            "swagger": ignore,
            "info": self.document_fields["info"],
            "host": lambda d, n: setattr(self, "host", n.get_string()),
            "basePath": lambda d, n: setattr(self, "base_path", n.get_string()),
            "schemes": lambda d, n: setattr(self, "schemes", n.create_simple_list(lambda item: item.get_string())),
            "consumes": ignore,
            "produces": ignore,
            "paths": self.document_fields["paths"],
            "definitions": self._component_section(NodeKind.SCHEMA, self.load_schema),
            "parameters": self._global_parameters,
            "responses": self._component_section(NodeKind.RESPONSE, self.load_response),
            "securityDefinitions": self._component_section(NodeKind.SECURITY_SCHEME, self.load_security_scheme),
            "security": self.document_fields["security"],
            "tags": self.document_fields["tags"],
            "externalDocs": self.document_fields["externalDocs"],
        }

        self.path_item_fields = {
            operation_type.value: self._operation_setter(operation_type)
            for operation_type in OperationType
            if operation_type != OperationType.TRACE
        }

        self.operation_fields = {
            name: setter
            for name, setter in self.operation_fields.items()
            if name not in ("requestBody", "callbacks", "servers")
        }
        self.operation_fields.update({
            "consumes": ignore,
            "produces": ignore,
            "schemes": ignore,
            "parameters": self._operation_parameters,
        })

        self.simple_schema_fields: FixedFields = {
            "type": self._simple_type,
            "format": string_field("format"),
            "items": lambda s, n: setattr(s, "items", self.load_items(n)),
            "collectionFormat": ignore,
            "default": any_field("default"),
            "maximum": number_field("maximum"),
            "exclusiveMaximum": bool_field("exclusive_maximum"),
            "minimum": number_field("minimum"),
            "exclusiveMinimum": bool_field("exclusive_minimum"),
            "maxLength": int_field("max_length"),
            "minLength": int_field("min_length"),
            "pattern": string_field("pattern"),
            "maxItems": int_field("max_items"),
            "minItems": int_field("min_items"),
            "uniqueItems": bool_field("unique_items"),
            "enum": raw_list_field("enum"),
            "multipleOf": number_field("multiple_of"),
        }

        for name in ("nullable", "oneOf", "anyOf", "not", "writeOnly", "deprecated"):
            self.schema_fields.pop(name, None)
        self.schema_fields.update({
            "exclusiveMaximum": bool_field("exclusive_maximum"),
            "exclusiveMinimum": bool_field("exclusive_minimum"),
            "x-nullable": bool_field("nullable"),
            "discriminator": lambda s, n: setattr(s, "discriminator", Discriminator(property_name=n.get_string())),
        })

    # Parameters

    def _global_parameters(self, document: Document, node: ParseNode) -> None:
        for reference_id, child in node.check_map_node("parameters").items():
            try:
                location = child.value.get("in") if isinstance(child.value, dict) else None
                if location == "body":
                    self.define(NodeKind.REQUEST_BODY, reference_id, self.load_body_parameter(child, self.consumes))
                elif location == "formData":
                    # Merged into the form body of each operation referencing it
                    continue
                else:
                    self.define(NodeKind.PARAMETER, reference_id, self.load_parameter(child))
            except NODE_ERRORS as exc:
                self.context.record(exc, child.pointer)

    def split_parameters(self, node: ParseNode) -> SplitParameters:
        """Separate plain parameters from the body and form fields.

        Returns:
            Tuple of parameters, the body parameter (node or request-body
            holder) and form field nodes
        """
        if not isinstance(node, ListNode):
            raise ReaderError(f"Expected a list at {node.location}", node.pointer)

        parameters: List[Parameter] = []
        body: Optional[Any] = None
        form: List[ParseNode] = []
        for child in node:
            try:
                pointer = child.get_reference_pointer()
                if pointer is not None:
                    external, reference_id = parse_reference_pointer(pointer, NodeKind.PARAMETER)
                    raw = self._raw_parameters.get(reference_id) if external is None else None
                    location = raw.get("in") if isinstance(raw, dict) else None
                    if location == "body":
                        body = self.load_reference(child, NodeKind.REQUEST_BODY)
                    elif location == "formData":
                        form.append(ParseNode.create(self.context, raw, f"/parameters/{escape_segment(reference_id)}"))
                    else:
                        parameters.append(self.load_reference(child, NodeKind.PARAMETER))
                    continue

                location = child.value.get("in") if isinstance(child.value, dict) else None
                if location == "body":
                    body = child
                elif location == "formData":
                    form.append(child)
                else:
                    parameters.append(self.load_parameter(child))
            except NODE_ERRORS as exc:
                self.context.record(exc, child.pointer)
        return parameters, body, form

    def build_request_body(self, body: Optional[Any], form: List[ParseNode], consumes: List[str]) -> Optional[Any]:
        if isinstance(body, ReferenceHolder):
            return body
        if body is not None:
            return self.load_body_parameter(body, consumes)
        if form:
            return self.load_form_body(form, consumes)
        return None

    def _operation_parameters(self, operation: Operation, node: ParseNode) -> None:
        parameters, body, form = self.split_parameters(node)
        operation.parameters = parameters
        request_body = self.build_request_body(body, form, self._media[0])
        if request_body is not None:
            operation.request_body = request_body

    def load_parameter(self, node: ParseNode) -> Parameter:
        holder = self.load_reference(node, NodeKind.PARAMETER)
        if holder is not None:
            return holder
        mapping = node.check_map_node("parameter")
        parameter = Parameter()
        fields: FixedFields = {
            "name": string_field("name"),
            "in": enum_field("location", ParameterLocation),
            "description": string_field("description"),
            "required": bool_field("required"),
            "allowEmptyValue": bool_field("allow_empty_value"),
        }
        self._read_simple_schema(mapping, parameter, fields)
        self._apply_collection_format(mapping, parameter, parameter.location)
        return parameter

    def load_header(self, node: ParseNode) -> Header:
        mapping = node.check_map_node("header")
        header = Header()
        self._read_simple_schema(mapping, header, {"description": string_field("description")})
        self._apply_collection_format(mapping, header, ParameterLocation.HEADER)
        return header

    def _read_simple_schema(self, mapping: MapNode, target: Any, fields: FixedFields) -> None:
        # Item fields live on the parameter in 2.0 and on its schema in 3.x
        schema = Schema()
        target_fields = dict(fields)
        for name, setter in self.simple_schema_fields.items():
            target_fields[name] = _on_schema(schema, setter)
        parse_map(mapping, target, target_fields)
        if any(name in mapping for name in self.simple_schema_fields):
            target.schema = schema

    def load_items(self, node: ParseNode) -> Schema:
        return parse_map(node.check_map_node("items"), Schema(), self.simple_schema_fields)

    @staticmethod
    def _simple_type(schema: Schema, node: ParseNode) -> None:
        value = node.get_string()
        if value == "file":
            schema.type = "string"
            schema.format = schema.format or "binary"
        else:
            schema.type = value

    def _apply_collection_format(self, mapping: MapNode, target: Any, location: Optional[ParameterLocation]) -> None:
        child = mapping.get("collectionFormat")
        collection_format = child.get_string() if child is not None else None
        schema = target.schema
        if collection_format is None:
            if schema is None or "array" not in schema.type_names:
                return
            collection_format = "csv"

        query_like = location in (None, ParameterLocation.QUERY, ParameterLocation.COOKIE)
        if collection_format == "multi":
            target.style, target.explode = ParameterStyle.FORM, True
        elif collection_format == "csv":
            if query_like:
                target.style, target.explode = ParameterStyle.FORM, False
            else:
                target.style = ParameterStyle.SIMPLE
        elif collection_format == "ssv":
            target.style = ParameterStyle.SPACE_DELIMITED
        elif collection_format == "pipes":
            target.style = ParameterStyle.PIPE_DELIMITED
        elif collection_format == "tsv":
            self.context.diagnostic.add_info(
                "collectionFormat 'tsv' has no 3.x equivalent and was dropped",
                child.pointer,
                DiagnosticKind.VERSION_DOWNGRADE_LOSSY,
            )
        else:
            raise ReaderError(f"'{collection_format}' is not a valid collectionFormat at {child.location}", child.pointer)

    def load_body_parameter(self, node: ParseNode, consumes: List[str]) -> RequestBody:
        """Turn an ``in: body`` parameter into a request body."""
        mapping = node.check_map_node("parameter")
        body = RequestBody()
        schemas: List[Any] = []

        def body_name(target: RequestBody, child: ParseNode) -> None:
            name = child.get_string()
            if name != "body":
                target.extensions["x-bodyName"] = name

        fields: FixedFields = {
            "name": body_name,
            "in": ignore,
            "description": string_field("description"),
            "required": bool_field("required"),
            "schema": lambda b, n: schemas.append(self.load_schema(n)),
        }
        parse_map(mapping, body, fields)
        schema = schemas[0] if schemas else None
        body.content = {media_type: MediaType(schema=schema) for media_type in consumes or [DEFAULT_MEDIA_TYPE]}
        return body

    def load_form_body(self, nodes: List[ParseNode], consumes: List[str]) -> RequestBody:
        """Merge ``in: formData`` parameters into one object schema."""
        schema = Schema(type="object")
        encoding: Dict[str, Encoding] = {}
        for node in nodes:
            try:
                mapping = node.check_map_node("parameter")
                field = Parameter()
                fields: FixedFields = {
                    "name": string_field("name"),
                    "in": ignore,
                    "description": string_field("description"),
                    "required": bool_field("required"),
                    "allowEmptyValue": bool_field("allow_empty_value"),
                }
                self._read_simple_schema(mapping, field, fields)
                self._apply_collection_format(mapping, field, None)

                property_schema = field.schema or Schema()
                if field.description:
                    property_schema.description = field.description
                schema.properties[field.name] = property_schema
                if field.required:
                    schema.required.append(field.name)
                if field.style is not None:
                    encoding[field.name] = Encoding(style=field.style, explode=field.explode)
            except NODE_ERRORS as exc:
                self.context.record(exc, node.pointer)

        media_types = [media_type for media_type in consumes if media_type in FORM_MEDIA_TYPES]
        return RequestBody(
            content={
                media_type: MediaType(schema=schema, encoding=dict(encoding))
                for media_type in media_types or [DEFAULT_FORM_MEDIA_TYPE]
            }
        )

    # Paths and operations

    def load_path_item(self, node: ParseNode) -> PathItem:
        holder = self.load_reference(node, NodeKind.PATH_ITEM)
        if holder is not None:
            return holder
        mapping = node.check_map_node("path item")
        shared: Dict[str, Any] = {}

        def path_parameters(item: PathItem, child: ParseNode) -> None:
            item.parameters, shared["body"], shared["form"] = self.split_parameters(child)

        fields = dict(self.path_item_fields)
        fields["parameters"] = path_parameters
        item = parse_map(mapping, PathItem(), fields)

        # Path-level body fields apply to every operation without its own body
        body = self.build_request_body(shared.get("body"), shared.get("form") or [], self.consumes)
        if body is not None:
            for operation in item.operations.values():
                if operation.request_body is None:
                    operation.request_body = body
        return item

    def load_operation(self, node: ParseNode) -> Operation:
        mapping = node.check_map_node("operation")
        previous = self._media
        self._media = (
            self._media_types(mapping, "consumes", self.consumes),
            self._media_types(mapping, "produces", self.produces),
        )
        try:
            return parse_map(mapping, Operation(), self.operation_fields)
        finally:
            self._media = previous

    def _media_types(self, mapping: MapNode, name: str, default: List[str]) -> List[str]:
        child = mapping.get(name)
        if child is None:
            return default
        try:
            return child.create_simple_list(lambda item: item.get_string())
        except NODE_ERRORS as exc:
            self.context.record(exc, child.pointer)
            return default

    def load_response(self, node: ParseNode) -> Response:
        holder = self.load_reference(node, NodeKind.RESPONSE)
        if holder is not None:
            return holder
        mapping = node.check_map_node("response")
        parts: Dict[str, Any] = {}
        fields: FixedFields = {
            "description": string_field("description"),
            "schema": lambda r, n: parts.__setitem__("schema", self.load_schema(n)),
            "headers": lambda r, n: setattr(r, "headers", n.create_map(self.load_header)),
            "examples": lambda r, n: parts.__setitem__("examples", n.check_map_node("examples").value),
        }
        response = parse_map(mapping, Response(), fields)

        schema = parts.get("schema")
        if schema is not None:
            for media_type in self._media[1] or [DEFAULT_MEDIA_TYPE]:
                response.content[media_type] = MediaType(schema=schema)
        for media_type, value in parts.get("examples", {}).items():
            response.content.setdefault(str(media_type), MediaType(schema=schema)).example = value
        return response

    # Security

    def load_security_scheme(self, node: ParseNode) -> SecurityScheme:
        holder = self.load_reference(node, NodeKind.SECURITY_SCHEME)
        if holder is not None:
            return holder
        mapping = node.check_map_node("security scheme")
        parts: Dict[str, Any] = {}

        def part(name: str):
            return lambda s, n: parts.__setitem__(name, n.get_string())

        fields: FixedFields = {
            "type": part("type"),
            "description": string_field("description"),
            "name": string_field("name"),
            "in": enum_field("location", ParameterLocation),
            "flow": part("flow"),
            "authorizationUrl": part("authorizationUrl"),
            "tokenUrl": part("tokenUrl"),
            "scopes": lambda s, n: parts.__setitem__("scopes", n.create_simple_map(lambda v: v.get_string())),
        }
        scheme = parse_map(mapping, SecurityScheme(), fields)

        scheme_type = parts.get("type")
        if scheme_type == "basic":
            scheme.type = SecuritySchemeType.HTTP
            scheme.scheme = "basic"
        elif scheme_type == "apiKey":
            scheme.type = SecuritySchemeType.API_KEY
        elif scheme_type == "oauth2":
            scheme.type = SecuritySchemeType.OAUTH2
            scheme.flows = self._oauth_flows(mapping, parts)
        elif scheme_type is not None:
            self.context.error(f"'{scheme_type}' is not a valid security scheme type", mapping.child_pointer("type"))
        return scheme

    def _oauth_flows(self, mapping: MapNode, parts: Dict[str, Any]) -> OAuthFlows:
        flows = OAuthFlows()
        flow = OAuthFlow(
            authorization_url=parts.get("authorizationUrl"),
            token_url=parts.get("tokenUrl"),
            scopes=parts.get("scopes", {}),
        )
        attribute = OAUTH_FLOW_ATTRIBUTES.get(parts.get("flow"))
        if attribute is None:
            self.context.error(f"'{parts.get('flow')}' is not a valid OAuth2 flow", mapping.child_pointer("flow"))
        else:
            setattr(flows, attribute, flow)
        return flows


def _on_schema(schema: Schema, setter):
    def apply(target: Any, node: ParseNode) -> None:
        setter(schema, node)
    return apply
