"""Reading documents: format decoding, dialect detection and the entry points."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from oagraph.config import OagraphConfig, ReferenceResolution
from oagraph.diagnostics import Diagnostic
from oagraph.exceptions import ReaderError
from oagraph.models.base import SpecVersion
from oagraph.models.document import Document, Workspace
from oagraph.parser.context import ParsingContext
from oagraph.parser.nodes import ParseNode
from oagraph.parser.v2 import V2Reader
from oagraph.parser.v3 import V3Reader
from oagraph.services.references import check_references

logger = logging.getLogger(__name__)

Decoder = Callable[[str], Any]

SUFFIX_FORMATS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


class _StringDateLoader(yaml.SafeLoader):
    """Safe loader that keeps dates and timestamps as strings."""


_StringDateLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _load_yaml(text: str) -> Any:
    return yaml.load(text, Loader=_StringDateLoader)


class ReaderRegistry:
    """Maps format names to text decoders.

    Passed explicitly to :func:`read_document`; there is no process-wide
    instance.
    """

    def __init__(self):
        self._decoders: Dict[str, Decoder] = {}

    def register(self, format_name: str, decoder: Decoder) -> None:
        self._decoders[format_name.lower()] = decoder

    def get(self, format_name: str) -> Decoder:
        decoder = self._decoders.get(format_name.lower())
        if decoder is None:
            raise ReaderError(f"No reader registered for format '{format_name}'")
        return decoder

    @property
    def formats(self) -> List[str]:
        return list(self._decoders)

    def decode(self, text: str, format_name: str) -> Any:
        """Decode text with the decoder registered for ``format_name``.

        Raises:
            ReaderError: Unknown format or text the decoder rejects
        """
        decoder = self.get(format_name)
        try:
            return decoder(text)
        except (ValueError, yaml.YAMLError) as e:
            raise ReaderError(f"Invalid {format_name} input: {e}")


def create_default_registry() -> ReaderRegistry:
    """Registry with ``json`` and ``yaml`` (alias ``yml``) decoders."""
    registry = ReaderRegistry()
    registry.register("json", json.loads)
    registry.register("yaml", _load_yaml)
    registry.register("yml", _load_yaml)
    return registry


def detect_version(data: Any) -> SpecVersion:
    """Dialect of a decoded document.

    Raises:
        ReaderError: No ``openapi``/``swagger`` marker, or an unsupported one
    """
    if not isinstance(data, dict):
        raise ReaderError("Document root must be a mapping", "")

    openapi = data.get("openapi")
    if openapi is not None:
        openapi = str(openapi)
        if openapi.startswith("3.0"):
            return SpecVersion.V3
        if openapi.startswith("3.1"):
            return SpecVersion.V3_1
        raise ReaderError(f"Unsupported OpenAPI version '{openapi}'", "/openapi")

    swagger = data.get("swagger")
    if swagger is not None:
        if str(swagger) == "2.0":
            return SpecVersion.V2
        raise ReaderError(f"Unsupported Swagger version '{swagger}'", "/swagger")

    raise ReaderError("Document has no 'openapi' or 'swagger' version field", "")


@dataclass
class ReadResult:
    """Best-effort document and everything noticed while reading it."""
    document: Document
    diagnostic: Diagnostic = field(default_factory=Diagnostic)

    @property
    def has_errors(self) -> bool:
        return self.diagnostic.has_errors()


def read_document(
    source: Union[str, Dict[str, Any]],
    format: Optional[str] = None,
    config: Optional[OagraphConfig] = None,
    registry: Optional[ReaderRegistry] = None,
    workspace: Optional[Workspace] = None,
    location: Optional[str] = None,
) -> ReadResult:
    """Read a 2.0, 3.0 or 3.1 document.

    Problems are reported in the returned diagnostic; a document is always
    returned, empty when the input could not be decoded or has no known
    dialect.

    Args:
        source: Document text, or already-decoded data
        format: Format name for text input; sniffed when omitted
        config: Reader configuration (reference checking)
        registry: Decoders to use (defaults to json and yaml)
        workspace: Workspace to add the document to
        location: Resource location of the document in the workspace

    Returns:
        ReadResult with the document and diagnostic
    """
    diagnostic = Diagnostic()

    data: Any = source
    if isinstance(source, str):
        registry = registry or create_default_registry()
        format_name = format or ("json" if source.lstrip().startswith("{") else "yaml")
        try:
            data = registry.decode(source, format_name)
        except ReaderError as e:
            diagnostic.add_error(str(e), "")
            return ReadResult(Document(), diagnostic)

    try:
        version = detect_version(data)
    except ReaderError as e:
        diagnostic.add_error(str(e), e.pointer or "")
        return ReadResult(Document(), diagnostic)

    diagnostic.specification_version = version.value
    context = ParsingContext(diagnostic, version)
    reader = V2Reader(context) if version == SpecVersion.V2 else V3Reader(context)
    document = reader.read(ParseNode.create(context, data))

    if workspace is not None and location is not None:
        workspace.add_document(location, document)

    if config is not None and config.reader.reference_resolution == ReferenceResolution.LOCAL:
        diagnostic.extend(check_references(document))

    logger.info(
        f"Read {version.value} document: {len(diagnostic.errors)} errors, "
        f"{len(diagnostic.warnings)} warnings, {len(document.components)} components"
    )
    return ReadResult(document, diagnostic)


def load_document(
    path: Union[str, Path],
    config: Optional[OagraphConfig] = None,
    registry: Optional[ReaderRegistry] = None,
    workspace: Optional[Workspace] = None,
) -> ReadResult:
    """Read a document file; the format comes from the file suffix.

    When a workspace is given the document is added under its resolved path.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    format_name = SUFFIX_FORMATS.get(path.suffix.lower())
    logger.debug(f"Loading {path} as {format_name or 'sniffed format'}")
    return read_document(
        text,
        format=format_name,
        config=config,
        registry=registry,
        workspace=workspace,
        location=str(path.resolve()) if workspace is not None else None,
    )
