"""Runtime expressions used by callback keys and link parameters.

Grammar::

    expression = "$url" | "$method" | "$statusCode"
               | "$request." source | "$response." source
    source     = "header." token | "query." name | "path." name
               | "body" ["#" json-pointer]

A string that does not start with ``$`` is a composite expression: text
with expressions embedded in braces, e.g.
``http://notify.example.com?url={$request.body#/callbackUrl}``.
"""

import re
from typing import Any, List, Optional

from oagraph.exceptions import RuntimeExpressionError

PREFIX = "$"

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_EMBEDDED = re.compile(r"{(?P<expression>\$[^{}]*)}")


class RuntimeExpression:
    """Base class; expressions compare equal and hash by their text."""

    @property
    def expression(self) -> str:
        raise NotImplementedError

    @staticmethod
    def build(expression: str) -> "RuntimeExpression":
        """Parse an expression string.

        Args:
            expression: Raw expression text

        Returns:
            The matching expression object

        Raises:
            RuntimeExpressionError: If the text does not match the grammar
        """
        if not expression:
            raise RuntimeExpressionError("Runtime expression must not be empty")

        if not expression.startswith(PREFIX):
            return CompositeExpression(expression)

        if expression == UrlExpression.URL:
            return UrlExpression()
        if expression == MethodExpression.METHOD:
            return MethodExpression()
        if expression == StatusCodeExpression.STATUS_CODE:
            return StatusCodeExpression()
        if expression.startswith(RequestExpression.REQUEST):
            return RequestExpression(SourceExpression.build(expression[len(RequestExpression.REQUEST):]))
        if expression.startswith(ResponseExpression.RESPONSE):
            return ResponseExpression(SourceExpression.build(expression[len(ResponseExpression.RESPONSE):]))

        raise RuntimeExpressionError(f"The runtime expression '{expression}' has invalid format")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuntimeExpression):
            return NotImplemented
        return self.expression == other.expression

    def __hash__(self) -> int:
        return hash(self.expression)

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.expression!r})"


class UrlExpression(RuntimeExpression):
    URL = "$url"

    @property
    def expression(self) -> str:
        return self.URL


class MethodExpression(RuntimeExpression):
    METHOD = "$method"

    @property
    def expression(self) -> str:
        return self.METHOD


class StatusCodeExpression(RuntimeExpression):
    STATUS_CODE = "$statusCode"

    @property
    def expression(self) -> str:
        return self.STATUS_CODE


class SourceExpression(RuntimeExpression):
    """Part of a request or response: header, query, path or body."""

    def __init__(self, value: Optional[str]):
        self.value = value

    @staticmethod
    def build(expression: str) -> "SourceExpression":
        if expression.startswith(HeaderExpression.HEADER):
            token = expression[len(HeaderExpression.HEADER):]
            if not _TOKEN.match(token):
                raise RuntimeExpressionError(f"Invalid header name in runtime expression '{expression}'")
            return HeaderExpression(token)
        if expression.startswith(QueryExpression.QUERY):
            name = expression[len(QueryExpression.QUERY):]
            if not name:
                raise RuntimeExpressionError(f"Missing query name in runtime expression '{expression}'")
            return QueryExpression(name)
        if expression.startswith(PathExpression.PATH):
            name = expression[len(PathExpression.PATH):]
            if not name:
                raise RuntimeExpressionError(f"Missing path name in runtime expression '{expression}'")
            return PathExpression(name)
        if expression == BodyExpression.BODY:
            return BodyExpression()
        if expression.startswith(BodyExpression.BODY + BodyExpression.POINTER_PREFIX):
            pointer = expression[len(BodyExpression.BODY) + 1:]
            if pointer and not pointer.startswith("/"):
                raise RuntimeExpressionError(f"Invalid body pointer in runtime expression '{expression}'")
            return BodyExpression(pointer)

        raise RuntimeExpressionError(f"The source expression '{expression}' has invalid format")


class HeaderExpression(SourceExpression):
    HEADER = "header."

    @property
    def expression(self) -> str:
        return self.HEADER + self.value


class QueryExpression(SourceExpression):
    QUERY = "query."

    @property
    def expression(self) -> str:
        return self.QUERY + self.value


class PathExpression(SourceExpression):
    PATH = "path."

    @property
    def expression(self) -> str:
        return self.PATH + self.value


class BodyExpression(SourceExpression):
    """Whole body, or the part at a JSON pointer."""
    BODY = "body"
    POINTER_PREFIX = "#"

    def __init__(self, pointer: Optional[str] = None):
        super().__init__(pointer or None)

    @property
    def expression(self) -> str:
        if not self.value:
            return self.BODY
        return self.BODY + self.POINTER_PREFIX + self.value


class RequestExpression(RuntimeExpression):
    REQUEST = "$request."

    def __init__(self, source: SourceExpression):
        if source is None:
            raise ValueError("source must not be None")
        self.source = source

    @property
    def expression(self) -> str:
        return self.REQUEST + self.source.expression


class ResponseExpression(RuntimeExpression):
    RESPONSE = "$response."

    def __init__(self, source: SourceExpression):
        if source is None:
            raise ValueError("source must not be None")
        self.source = source

    @property
    def expression(self) -> str:
        return self.RESPONSE + self.source.expression


class CompositeExpression(RuntimeExpression):
    """Template string with embedded ``{$...}`` expressions."""

    def __init__(self, expression: str):
        self._template = expression
        self.contained_expressions: List[RuntimeExpression] = [
            RuntimeExpression.build(match.group("expression"))
            for match in _EMBEDDED.finditer(expression)
        ]

    @property
    def expression(self) -> str:
        return self._template


def build_any(value: Any) -> Any:
    """Expression for ``$``-prefixed strings; any other value unchanged.

    Used for link parameters and request bodies, which hold either a
    runtime expression or a constant.
    """
    if isinstance(value, str) and value.startswith(PREFIX):
        return RuntimeExpression.build(value)
    return value


def render_any(value: Any) -> Any:
    """Inverse of :func:`build_any`."""
    if isinstance(value, RuntimeExpression):
        return value.expression
    return value
