"""oagraph - Graph model and multi-version serializer for OpenAPI descriptions.

oagraph reads Swagger 2.0, OpenAPI 3.0 and OpenAPI 3.1 documents into one typed
graph with lazily resolved references, walks it safely through cycles and
writes it back out in any of the three dialects.
"""

__version__ = "0.1.0"
__author__ = "rpapub"
__email__ = "contact@rpapub.dev"
__description__ = "Graph model and multi-version serializer for OpenAPI descriptions"

from oagraph.config import OagraphConfig, load_config
from oagraph.diagnostics import Diagnostic, DiagnosticKind
from oagraph.models import Document, SpecVersion, Workspace
from oagraph.output import WriterSettings, render, serialize
from oagraph.parser import ReadResult, load_document, read_document
from oagraph.services import check_references, consolidate

__all__ = [
    "__version__",
    "__author__",
    "__email__",
    "__description__",
    "Diagnostic",
    "DiagnosticKind",
    "Document",
    "OagraphConfig",
    "ReadResult",
    "SpecVersion",
    "Workspace",
    "WriterSettings",
    "check_references",
    "consolidate",
    "load_config",
    "load_document",
    "read_document",
    "render",
    "serialize",
]
