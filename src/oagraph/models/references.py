"""Reference holders bound to each reusable kind."""

from oagraph.models.base import NodeKind
from oagraph.models.elements import (
    Callback,
    Example,
    Header,
    Link,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    SecurityScheme,
    Tag,
)
from oagraph.models.reference import ReferenceHolder
from oagraph.models.schema import Schema


class SchemaReference(ReferenceHolder):
    kind = NodeKind.SCHEMA
    target_type = Schema


class ResponseReference(ReferenceHolder):
    kind = NodeKind.RESPONSE
    target_type = Response


class ParameterReference(ReferenceHolder):
    kind = NodeKind.PARAMETER
    target_type = Parameter


class ExampleReference(ReferenceHolder):
    kind = NodeKind.EXAMPLE
    target_type = Example


class RequestBodyReference(ReferenceHolder):
    kind = NodeKind.REQUEST_BODY
    target_type = RequestBody


class HeaderReference(ReferenceHolder):
    kind = NodeKind.HEADER
    target_type = Header


class SecuritySchemeReference(ReferenceHolder):
    kind = NodeKind.SECURITY_SCHEME
    target_type = SecurityScheme


class LinkReference(ReferenceHolder):
    kind = NodeKind.LINK
    target_type = Link


class CallbackReference(ReferenceHolder):
    kind = NodeKind.CALLBACK
    target_type = Callback


class PathItemReference(ReferenceHolder):
    kind = NodeKind.PATH_ITEM
    target_type = PathItem


class TagReference(ReferenceHolder):
    """Operation tag, resolved by name against the document tag list."""
    kind = NodeKind.TAG
    target_type = Tag


HOLDER_TYPES = {
    holder.kind: holder
    for holder in (
        SchemaReference,
        ResponseReference,
        ParameterReference,
        ExampleReference,
        RequestBodyReference,
        HeaderReference,
        SecuritySchemeReference,
        LinkReference,
        CallbackReference,
        PathItemReference,
        TagReference,
    )
}


def holder_for(kind: NodeKind, reference_id: str, host_document=None, external_resource=None) -> ReferenceHolder:
    """Create the holder class registered for ``kind``."""
    return HOLDER_TYPES[kind](reference_id, host_document, external_resource)
