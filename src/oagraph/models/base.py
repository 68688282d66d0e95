"""Enumerations and the base class shared by every graph node."""

from enum import Enum
from typing import ClassVar, Optional


class SpecVersion(str, Enum):
    """Dialects a graph can be read from and projected into."""
    V2 = "2.0"
    V3 = "3.0"
    V3_1 = "3.1"


class NodeKind(str, Enum):
    """Reusable element kinds.

    Values are the 3.x ``components`` section names; declaration order is
    the order sections are written in.
    """
    SCHEMA = "schemas"
    RESPONSE = "responses"
    PARAMETER = "parameters"
    EXAMPLE = "examples"
    REQUEST_BODY = "requestBodies"
    HEADER = "headers"
    SECURITY_SCHEME = "securitySchemes"
    LINK = "links"
    CALLBACK = "callbacks"
    PATH_ITEM = "pathItems"
    TAG = "tags"


class OperationType(str, Enum):
    """HTTP methods a path item can hold operations for."""
    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, Enum):
    """Where a parameter is carried."""
    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class ParameterStyle(str, Enum):
    """Parameter serialization styles."""
    MATRIX = "matrix"
    LABEL = "label"
    FORM = "form"
    SIMPLE = "simple"
    SPACE_DELIMITED = "spaceDelimited"
    PIPE_DELIMITED = "pipeDelimited"
    DEEP_OBJECT = "deepObject"


class SecuritySchemeType(str, Enum):
    """Security scheme types."""
    API_KEY = "apiKey"
    HTTP = "http"
    OAUTH2 = "oauth2"
    OPEN_ID_CONNECT = "openIdConnect"
    MUTUAL_TLS = "mutualTLS"


class Node:
    """Base class of every element in the document graph.

    Reusable kinds set ``kind``; structural elements (info, operations,
    media types, ...) leave it as None.
    """
    kind: ClassVar[Optional[NodeKind]] = None
    is_reference_holder: ClassVar[bool] = False
