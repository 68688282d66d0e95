"""Parse nodes: typed views over decoded JSON/YAML data.

Each node knows the JSON pointer of the value it wraps, so every
diagnostic the reader records can name the offending location.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar

from oagraph.exceptions import MalformedReferenceError, ReaderError, RuntimeExpressionError
from oagraph.utils.pointers import escape_segment

if TYPE_CHECKING:
    from oagraph.parser.context import ParsingContext

T = TypeVar("T")

# Failures that drop a single node and are recorded instead of raised
NODE_ERRORS = (ReaderError, MalformedReferenceError, RuntimeExpressionError)


class ParseNode:
    """Base parse node.

    Subclasses override the operations that make sense for their shape; the
    defaults raise :class:`ReaderError` so a value of the wrong shape is
    reported at its pointer.
    """

    def __init__(self, context: "ParsingContext", value: Any, pointer: str = ""):
        self.context = context
        self.value = value
        self.pointer = pointer

    @staticmethod
    def create(context: "ParsingContext", value: Any, pointer: str = "") -> "ParseNode":
        """Wrap ``value`` in the node class matching its shape."""
        if isinstance(value, dict):
            return MapNode(context, value, pointer)
        if isinstance(value, list):
            return ListNode(context, value, pointer)
        return ValueNode(context, value, pointer)

    @property
    def location(self) -> str:
        """Pointer as a URI fragment (``#/`` for the root)."""
        return "#" + (self.pointer or "/")

    def child_pointer(self, segment: Any) -> str:
        return f"{self.pointer}/{escape_segment(str(segment))}"

    def check_map_node(self, name: str) -> "MapNode":
        raise ReaderError(f"{name} must be a map/object at {self.location}", self.pointer)

    def get_scalar_value(self) -> Any:
        raise ReaderError(f"Expected a scalar value at {self.location}", self.pointer)

    def get_reference_pointer(self) -> Optional[str]:
        return None

    def create_map(self, fn: Callable[["ParseNode"], T]) -> Dict[str, T]:
        raise ReaderError(f"Expected a map at {self.location}", self.pointer)

    def create_simple_map(self, fn: Callable[["ValueNode"], T]) -> Dict[str, T]:
        raise ReaderError(f"Expected a map at {self.location}", self.pointer)

    def create_list(self, fn: Callable[["ParseNode"], T]) -> List[T]:
        raise ReaderError(f"Expected a list at {self.location}", self.pointer)

    def create_simple_list(self, fn: Callable[["ValueNode"], T]) -> List[T]:
        raise ReaderError(f"Expected a list at {self.location}", self.pointer)

    def create_any(self) -> Any:
        """The raw value, for examples, defaults and extensions."""
        return self.value

    # Typed scalar access

    def get_string(self) -> str:
        value = self.get_scalar_value()
        if value is None or isinstance(value, bool):
            raise ReaderError(f"Expected a string at {self.location}", self.pointer)
        return value if isinstance(value, str) else str(value)

    def get_bool(self) -> bool:
        value = self.get_scalar_value()
        if not isinstance(value, bool):
            raise ReaderError(f"Expected a boolean at {self.location}", self.pointer)
        return value

    def get_int(self) -> int:
        value = self.get_scalar_value()
        if isinstance(value, bool) or not isinstance(value, int):
            raise ReaderError(f"Expected an integer at {self.location}", self.pointer)
        return value

    def get_number(self) -> float:
        value = self.get_scalar_value()
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ReaderError(f"Expected a number at {self.location}", self.pointer)
        return value

    def _collect(self, pointer: str, fn: Callable[[], T]) -> Tuple[bool, Optional[T]]:
        # One bad entry is recorded and dropped; its siblings are kept
        try:
            return True, fn()
        except NODE_ERRORS as exc:
            self.context.record(exc, pointer)
            return False, None


class MapNode(ParseNode):
    """Mapping node; keys are always strings (YAML status codes included)."""

    def items(self) -> Iterator[Tuple[str, ParseNode]]:
        for key, value in self.value.items():
            yield str(key), ParseNode.create(self.context, value, self.child_pointer(key))

    def get(self, name: str) -> Optional[ParseNode]:
        if name not in self.value:
            return None
        return ParseNode.create(self.context, self.value[name], self.child_pointer(name))

    def __contains__(self, name: object) -> bool:
        return name in self.value

    def check_map_node(self, name: str) -> "MapNode":
        return self

    def get_reference_pointer(self) -> Optional[str]:
        if "$ref" not in self.value:
            return None
        pointer = self.value["$ref"]
        if not isinstance(pointer, str):
            raise MalformedReferenceError(
                f"The reference string '{pointer}' has invalid format", str(pointer)
            )
        return pointer

    def create_map(self, fn: Callable[[ParseNode], T]) -> Dict[str, T]:
        result: Dict[str, T] = {}
        for key, child in self.items():
            ok, value = self._collect(child.pointer, lambda: fn(child))
            if ok and value is not None:
                result[key] = value
        return result

    def create_simple_map(self, fn: Callable[["ValueNode"], T]) -> Dict[str, T]:
        return self.create_map(fn)


class ListNode(ParseNode):
    """Sequence node."""

    def __iter__(self) -> Iterator[ParseNode]:
        for index, value in enumerate(self.value):
            yield ParseNode.create(self.context, value, self.child_pointer(index))

    def __len__(self) -> int:
        return len(self.value)

    def create_list(self, fn: Callable[[ParseNode], T]) -> List[T]:
        result: List[T] = []
        for child in self:
            ok, value = self._collect(child.pointer, lambda: fn(child))
            if ok and value is not None:
                result.append(value)
        return result

    def create_simple_list(self, fn: Callable[["ValueNode"], T]) -> List[T]:
        return self.create_list(fn)


class ValueNode(ParseNode):
    """Scalar node."""

    def get_scalar_value(self) -> Any:
        return self.value

