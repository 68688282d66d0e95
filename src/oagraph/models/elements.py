"""Typed graph elements.

Every element is a mutable dataclass compared by identity; the graph may
contain cycles and shared nodes, so structural equality is never used.
Reusable kinds carry an optional ``reference`` descriptor, set when the
element itself knows the component address it was defined under.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from oagraph.models.base import (
    Node,
    NodeKind,
    OperationType,
    ParameterLocation,
    ParameterStyle,
    SecuritySchemeType,
)
from oagraph.models.reference import ReferenceDescriptor
from oagraph.models.schema import Schema


@dataclass(eq=False)
class Contact(Node):
    name: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class License(Node):
    """License information; ``identifier`` is an SPDX expression (3.1 only)."""
    name: str = ""
    identifier: Optional[str] = None
    url: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Info(Node):
    title: str = ""
    version: str = ""
    summary: Optional[str] = None
    description: Optional[str] = None
    terms_of_service: Optional[str] = None
    contact: Optional[Contact] = None
    license: Optional[License] = None
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class ServerVariable(Node):
    default: str = ""
    enum: List[str] = field(default_factory=list)
    description: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Server(Node):
    url: str = ""
    description: Optional[str] = None
    variables: Dict[str, ServerVariable] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class ExternalDocs(Node):
    url: str = ""
    description: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Tag(Node):
    """Tag declared at document level; operations refer to tags by name."""
    kind = NodeKind.TAG

    name: str = ""
    description: Optional[str] = None
    external_docs: Optional[ExternalDocs] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


@dataclass(eq=False)
class Example(Node):
    kind = NodeKind.EXAMPLE

    summary: Optional[str] = None
    description: Optional[str] = None
    value: Any = None
    external_value: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


@dataclass(eq=False)
class Header(Node):
    kind = NodeKind.HEADER

    description: Optional[str] = None
    required: bool = False
    deprecated: bool = False
    allow_empty_value: bool = False
    style: Optional[ParameterStyle] = None
    explode: Optional[bool] = None
    allow_reserved: bool = False
    schema: Optional[Schema] = None
    example: Any = None
    examples: Dict[str, Example] = field(default_factory=dict)
    content: Dict[str, "MediaType"] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


@dataclass(eq=False)
class Encoding(Node):
    content_type: Optional[str] = None
    headers: Dict[str, Header] = field(default_factory=dict)
    style: Optional[ParameterStyle] = None
    explode: Optional[bool] = None
    allow_reserved: bool = False
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class MediaType(Node):
    schema: Optional[Schema] = None
    example: Any = None
    examples: Dict[str, Example] = field(default_factory=dict)
    encoding: Dict[str, Encoding] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Parameter(Node):
    """Operation parameter.

    ``location`` holds the ``in`` field. When ``explode`` is None the
    style default applies (true for ``form``, false otherwise).
    """
    kind = NodeKind.PARAMETER

    name: str = ""
    location: Optional[ParameterLocation] = None
    description: Optional[str] = None
    required: bool = False
    deprecated: bool = False
    allow_empty_value: bool = False
    style: Optional[ParameterStyle] = None
    explode: Optional[bool] = None
    allow_reserved: bool = False
    schema: Optional[Schema] = None
    example: Any = None
    examples: Dict[str, Example] = field(default_factory=dict)
    content: Dict[str, MediaType] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


@dataclass(eq=False)
class RequestBody(Node):
    kind = NodeKind.REQUEST_BODY

    description: Optional[str] = None
    content: Dict[str, MediaType] = field(default_factory=dict)
    required: bool = False
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


@dataclass(eq=False)
class Link(Node):
    """Design-time link between a response and another operation.

    ``parameters`` values and ``request_body`` hold either a
    :class:`~oagraph.expressions.RuntimeExpression` or a raw value.
    """
    kind = NodeKind.LINK

    operation_ref: Optional[str] = None
    operation_id: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    request_body: Any = None
    description: Optional[str] = None
    server: Optional[Server] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


@dataclass(eq=False)
class Response(Node):
    kind = NodeKind.RESPONSE

    description: Optional[str] = None
    headers: Dict[str, Header] = field(default_factory=dict)
    content: Dict[str, MediaType] = field(default_factory=dict)
    links: Dict[str, Link] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


class Responses(Dict[str, Any], Node):
    """Status code (or ``default``) to response, in declaration order."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.extensions: Dict[str, Any] = {}


@dataclass(eq=False)
class OAuthFlow(Node):
    authorization_url: Optional[str] = None
    token_url: Optional[str] = None
    refresh_url: Optional[str] = None
    scopes: Dict[str, str] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class OAuthFlows(Node):
    implicit: Optional[OAuthFlow] = None
    password: Optional[OAuthFlow] = None
    client_credentials: Optional[OAuthFlow] = None
    authorization_code: Optional[OAuthFlow] = None
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class SecurityScheme(Node):
    kind = NodeKind.SECURITY_SCHEME

    type: Optional[SecuritySchemeType] = None
    description: Optional[str] = None
    name: Optional[str] = None
    location: Optional[ParameterLocation] = None
    scheme: Optional[str] = None
    bearer_format: Optional[str] = None
    flows: Optional[OAuthFlows] = None
    open_id_connect_url: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


class SecurityRequirement(Dict[Any, List[str]], Node):
    """Security scheme reference to the scopes it requires."""


@dataclass(eq=False)
class Operation(Node):
    """A single API operation on a path.

    ``security`` is None when the operation inherits the document
    requirements; an empty list removes them.
    """
    tags: List[Tag] = field(default_factory=list)
    summary: Optional[str] = None
    description: Optional[str] = None
    external_docs: Optional[ExternalDocs] = None
    operation_id: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: Responses = field(default_factory=Responses)
    callbacks: Dict[str, "Callback"] = field(default_factory=dict)
    deprecated: bool = False
    security: Optional[List[SecurityRequirement]] = None
    servers: List[Server] = field(default_factory=list)
    extensions: Dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class PathItem(Node):
    kind = NodeKind.PATH_ITEM

    summary: Optional[str] = None
    description: Optional[str] = None
    operations: Dict[OperationType, Operation] = field(default_factory=dict)
    servers: List[Server] = field(default_factory=list)
    parameters: List[Parameter] = field(default_factory=list)
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


@dataclass(eq=False)
class Callback(Node):
    """Runtime expression to the path item invoked out of band."""
    kind = NodeKind.CALLBACK

    path_items: Dict[Any, PathItem] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[ReferenceDescriptor] = None


class Paths(Dict[str, PathItem], Node):
    """Path template to path item, in declaration order."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.extensions: Dict[str, Any] = {}
