"""Serializer settings: which references are written inline."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from oagraph.models.base import Node

if TYPE_CHECKING:
    from oagraph.config import WriterConfig


class InliningPolicy(str, Enum):
    """How a referencing node is written."""
    REFERENCE = "reference"
    INLINE = "inline"


@dataclass
class WriterSettings:
    """Serializer settings.

    Attributes:
        inline_local_references: Inline holders that resolve in the host document
        inline_external_references: Inline holders that resolve in another document
        inlining_policy: Optional callable deciding per node; overrides both flags
    """
    inline_local_references: bool = False
    inline_external_references: bool = False
    inlining_policy: Optional[Callable[[Node], InliningPolicy]] = None

    @classmethod
    def from_config(cls, config: "WriterConfig") -> "WriterSettings":
        return cls(
            inline_local_references=config.inline_local_references,
            inline_external_references=config.inline_external_references,
        )

    def policy_for(self, node: Node) -> InliningPolicy:
        """Policy for a holder or an element carrying its own reference."""
        if self.inlining_policy is not None:
            return InliningPolicy(self.inlining_policy(node))
        external = node.reference.is_external
        inline = self.inline_external_references if external else self.inline_local_references
        return InliningPolicy.INLINE if inline else InliningPolicy.REFERENCE
