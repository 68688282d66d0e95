"""Writers and the version-projected serializer."""

from oagraph.output.serializer import (
    OPENAPI_VERSIONS,
    VersionedSerializer,
    render,
    serialize,
    to_json,
    to_yaml,
)
from oagraph.output.settings import InliningPolicy, WriterSettings
from oagraph.output.writers import (
    JsonWriter,
    TreeWriter,
    Writer,
    YamlWriter,
    create_writer,
)

__all__ = [
    "OPENAPI_VERSIONS",
    "InliningPolicy",
    "JsonWriter",
    "TreeWriter",
    "VersionedSerializer",
    "Writer",
    "WriterSettings",
    "YamlWriter",
    "create_writer",
    "render",
    "serialize",
    "to_json",
    "to_yaml",
]
