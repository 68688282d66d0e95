"""Document graph model."""

from oagraph.models.base import (
    Node,
    NodeKind,
    OperationType,
    ParameterLocation,
    ParameterStyle,
    SecuritySchemeType,
    SpecVersion,
)
from oagraph.models.components import ComponentRegistry
from oagraph.models.document import Document, ExternalResolver, Workspace
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
from oagraph.models.reference import (
    ReferenceDescriptor,
    ReferenceHolder,
    is_reference_holder,
    parse_reference_pointer,
    register,
    resolve_reference,
)
from oagraph.models.references import (
    CallbackReference,
    ExampleReference,
    HeaderReference,
    LinkReference,
    ParameterReference,
    PathItemReference,
    RequestBodyReference,
    ResponseReference,
    SchemaReference,
    SecuritySchemeReference,
    TagReference,
    holder_for,
)
from oagraph.models.schema import Discriminator, Schema, Xml

__all__ = [
    "Callback",
    "CallbackReference",
    "ComponentRegistry",
    "Contact",
    "Discriminator",
    "Document",
    "Encoding",
    "Example",
    "ExampleReference",
    "ExternalDocs",
    "ExternalResolver",
    "Header",
    "HeaderReference",
    "Info",
    "License",
    "Link",
    "LinkReference",
    "MediaType",
    "Node",
    "NodeKind",
    "OAuthFlow",
    "OAuthFlows",
    "Operation",
    "OperationType",
    "Parameter",
    "ParameterLocation",
    "ParameterReference",
    "ParameterStyle",
    "PathItem",
    "PathItemReference",
    "Paths",
    "ReferenceDescriptor",
    "ReferenceHolder",
    "RequestBody",
    "RequestBodyReference",
    "Response",
    "ResponseReference",
    "Responses",
    "Schema",
    "SchemaReference",
    "SecurityRequirement",
    "SecurityScheme",
    "SecuritySchemeReference",
    "SecuritySchemeType",
    "Server",
    "ServerVariable",
    "SpecVersion",
    "Tag",
    "TagReference",
    "Workspace",
    "Xml",
    "holder_for",
    "is_reference_holder",
    "parse_reference_pointer",
    "register",
    "resolve_reference",
]
