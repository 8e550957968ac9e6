"""Prefix tree used to match request paths against route patterns."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence


@dataclass
class Node:
    """One segment of a route pattern; ``pattern`` is set on terminal nodes."""

    pattern: str = ""
    part: str = ""
    children: list[Node] = field(default_factory=list)
    iswild: bool = False

    def _child_for(self, part: str) -> Optional[Node]:
        return next((child for child in self.children if child.part == part), None)

    def _matching_children(self, part: str) -> list[Node]:
        return [child for child in self.children if child.part == part or child.iswild]

    def insert(self, pattern: str, parts: Sequence[str], height: int = 0) -> None:
        """Insert ``pattern`` whose segments are ``parts``, starting at depth ``height``."""
        if height == len(parts):
            self.pattern = pattern
            return

        part = parts[height]
        child = self._child_for(part)
        if child is None:
            child = Node(part=part, iswild=part.startswith((":", "*")))
            self.children.append(child)
        child.insert(pattern, parts, height + 1)

    def search(self, parts: Sequence[str], height: int = 0) -> Optional[Node]:
        """Find the terminal node matching the path segments ``parts``."""
        if height == len(parts) or self.part.startswith("*"):
            return self if self.pattern else None

        for child in self._matching_children(parts[height]):
            found = child.search(parts, height + 1)
            if found is not None:
                return found
        return None

    def collect_patterns(self) -> list[str]:
        """Return every pattern stored in this subtree, in depth-first order."""
        patterns = [self.pattern] if self.pattern else []
        for child in self.children:
            patterns.extend(child.collect_patterns())
        return patterns