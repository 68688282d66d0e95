"""Ancestor-chain tracking for cycle-safe traversal."""

import logging
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class LoopDetector:
    """Keys of the nodes on the current descent chain.

    Each chain entry is a frame of one or more keys (a holder enters with
    its descriptor and its target's identity) together with the pointer at
    which the frame was entered. Membership is scoped to the chain: popping
    a frame forgets it, so a node reached again by an unrelated path is not
    a loop.
    """

    def __init__(self):
        self._frames: List[Tuple[Hashable, ...]] = []
        self._pointers: Dict[Hashable, str] = {}
        self.loops: List[Tuple[str, str]] = []

    def push(self, keys: Sequence[Hashable], pointer: str = "") -> bool:
        """Enter a frame unless one of its keys is already on the chain.

        Returns:
            False when entering would re-enter an ancestor
        """
        for key in keys:
            if key in self._pointers:
                return False
        frame = tuple(keys)
        self._frames.append(frame)
        for key in frame:
            self._pointers[key] = pointer
        return True

    def pop(self) -> None:
        frame = self._frames.pop()
        for key in frame:
            del self._pointers[key]

    def find(self, keys: Sequence[Hashable]) -> Optional[Hashable]:
        """First of ``keys`` that is on the chain, or None."""
        for key in keys:
            if key in self._pointers:
                return key
        return None

    def pointer_of(self, key: Hashable) -> Optional[str]:
        """Pointer at which ``key`` entered the chain."""
        return self._pointers.get(key)

    def save_loop(self, key: Hashable, pointer: str) -> None:
        """Record that ``pointer`` re-enters the ancestor entered under ``key``."""
        ancestor = self._pointers.get(key, "")
        self.loops.append((ancestor, pointer))
        logger.debug(f"Loop detected: {pointer} -> {ancestor}")

    @property
    def depth(self) -> int:
        return len(self._frames)

    def __contains__(self, key: object) -> bool:
        return key in self._pointers
