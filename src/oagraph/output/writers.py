"""Writer event sinks.

A :class:`Writer` receives structural events (start/end object and array,
property names, scalar and raw values). :class:`TreeWriter` assembles them
into plain Python containers; :class:`JsonWriter` and :class:`YamlWriter`
render that tree as text.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import yaml

from oagraph.utils.pointers import join_pointer

logger = logging.getLogger(__name__)


class Writer(ABC):
    """Base class for output sinks.

    Subclasses implement the structural events; the ``write_*`` helpers
    encode the omission rules shared by every dialect: None is never
    written, optional collections and maps are skipped when empty, and
    values equal to their documented default are suppressed.
    """

    @abstractmethod
    def start_object(self) -> None:
        pass

    @abstractmethod
    def end_object(self) -> None:
        pass

    @abstractmethod
    def start_array(self) -> None:
        pass

    @abstractmethod
    def end_array(self) -> None:
        pass

    @abstractmethod
    def write_property_name(self, name: str) -> None:
        pass

    @abstractmethod
    def write_value(self, value: Any) -> None:
        """Write a scalar (str, bool, int, float or None)."""
        pass

    @abstractmethod
    def write_raw(self, value: Any) -> None:
        """Write an arbitrary JSON-compatible value verbatim."""
        pass

    @property
    @abstractmethod
    def pointer(self) -> str:
        """JSON pointer of the next value to be written."""
        pass

    def write_property(self, name: str, value: Any, default: Any = None) -> None:
        """Write ``name: value`` unless value is None or equals ``default``."""
        if value is None:
            return
        if default is not None and type(value) is type(default) and value == default:
            return
        self.write_property_name(name)
        self.write_value(value)

    def write_required_property(self, name: str, value: Any) -> None:
        """Write ``name: value``; a missing value is written as ``""``."""
        self.write_property_name(name)
        self.write_value("" if value is None else value)

    def write_raw_property(self, name: str, value: Any) -> None:
        if value is None:
            return
        self.write_property_name(name)
        self.write_raw(value)

    def write_optional_object(self, name: str, value: Any, write: Callable[[Any], None]) -> None:
        if value is None:
            return
        self.write_property_name(name)
        write(value)

    def write_required_object(self, name: str, value: Any, write: Callable[[Any], None]) -> None:
        self.write_property_name(name)
        if value is None:
            self.start_object()
            self.end_object()
            return
        write(value)

    def write_optional_collection(self, name: str, items: Optional[Iterable[Any]], write: Callable[[Any], None]) -> None:
        if not items:
            return
        self.write_required_collection(name, items, write)

    def write_required_collection(self, name: str, items: Optional[Iterable[Any]], write: Callable[[Any], None]) -> None:
        self.write_property_name(name)
        self.start_array()
        for item in items or ():
            write(item)
        self.end_array()

    def write_optional_map(self, name: str, items: Optional[Mapping[Any, Any]], write: Callable[[Any, Any], None]) -> None:
        if not items:
            return
        self.write_required_map(name, items, write)

    def write_required_map(self, name: str, items: Optional[Mapping[Any, Any]], write: Callable[[Any, Any], None]) -> None:
        self.write_property_name(name)
        self.write_map(items or {}, write)

    def write_map(self, items: Mapping[Any, Any], write: Callable[[Any, Any], None], extensions: Optional[Dict[str, Any]] = None) -> None:
        """Write a map object whose values are produced by ``write(key, value)``."""
        self.start_object()
        for key, value in items.items():
            self.write_property_name(str(key))
            write(key, value)
        self.write_extensions(extensions)
        self.end_object()

    def write_extensions(self, extensions: Optional[Dict[str, Any]]) -> None:
        """Write ``x-`` extension values verbatim."""
        for name, value in (extensions or {}).items():
            self.write_property_name(name)
            self.write_raw(value)


@dataclass
class _Scope:
    container: Any
    segment: Optional[str]
    name: Optional[str] = None


class TreeWriter(Writer):
    """Builds dicts and lists from writer events.

    Example:
        >>> writer = TreeWriter()
        >>> writer.start_object()
        >>> writer.write_property("title", "Pets")
        >>> writer.end_object()
        >>> writer.result
        {'title': 'Pets'}
    """

    def __init__(self):
        self._stack: List[_Scope] = []
        self._result: Any = None
        self._complete = False

    @property
    def result(self) -> Any:
        """The finished tree."""
        if self._stack:
            raise ValueError("Writer has unclosed objects or arrays")
        return self._result

    @property
    def pointer(self) -> str:
        segments = [scope.segment for scope in self._stack if scope.segment is not None]
        slot = self._slot()
        if slot is not None:
            segments.append(slot)
        return join_pointer(segments)

    def start_object(self) -> None:
        self._open({})

    def end_object(self) -> None:
        self._close(dict)

    def start_array(self) -> None:
        self._open([])

    def end_array(self) -> None:
        self._close(list)

    def write_property_name(self, name: str) -> None:
        if not self._stack or not isinstance(self._stack[-1].container, dict):
            raise ValueError(f"Property name '{name}' written outside an object")
        scope = self._stack[-1]
        if scope.name is not None:
            raise ValueError(f"Property '{scope.name}' has no value")
        scope.name = name

    def write_value(self, value: Any) -> None:
        self._attach(value)

    def write_raw(self, value: Any) -> None:
        self._attach(copy.deepcopy(value))

    def _slot(self) -> Optional[str]:
        if not self._stack:
            return None
        scope = self._stack[-1]
        if isinstance(scope.container, list):
            return str(len(scope.container))
        return scope.name

    def _open(self, container: Any) -> None:
        segment = self._slot()
        self._attach(container)
        self._stack.append(_Scope(container, segment))

    def _close(self, expected: type) -> None:
        if not self._stack or not isinstance(self._stack[-1].container, expected):
            raise ValueError(f"Unbalanced end of {expected.__name__}")
        scope = self._stack.pop()
        if scope.name is not None:
            raise ValueError(f"Property '{scope.name}' has no value")

    def _attach(self, value: Any) -> None:
        if not self._stack:
            if self._complete:
                raise ValueError("Writer already holds a complete value")
            self._result = value
            self._complete = True
            return
        scope = self._stack[-1]
        if isinstance(scope.container, list):
            scope.container.append(value)
            return
        if scope.name is None:
            raise ValueError("Value written without a property name")
        scope.container[scope.name] = value
        scope.name = None


class JsonWriter(TreeWriter):
    """Renders the tree as JSON text."""

    def __init__(self, indent: int = 2):
        super().__init__()
        self.indent = indent

    def getvalue(self) -> str:
        return json.dumps(self.result, indent=self.indent, ensure_ascii=False) + "\n"


class _BlockDumper(yaml.SafeDumper):
    """Safe dumper that never emits anchors for repeated values."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


class YamlWriter(TreeWriter):
    """Renders the tree as block-style YAML text."""

    def __init__(self, indent: int = 2):
        super().__init__()
        self.indent = indent

    def getvalue(self) -> str:
        return yaml.dump(
            self.result,
            Dumper=_BlockDumper,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            indent=self.indent,
        )


WRITER_TYPES: Dict[str, type] = {
    "json": JsonWriter,
    "yaml": YamlWriter,
}


def create_writer(format_name: str, indent: int = 2) -> TreeWriter:
    """Text writer for a format name (``json`` or ``yaml``)."""
    try:
        writer_type = WRITER_TYPES[format_name]
    except KeyError:
        raise ValueError(f"Unknown output format '{format_name}'. Available: {list(WRITER_TYPES)}")
    return writer_type(indent=indent)
