"""DNS-aware trie for fast filtering of domain names.

Matches domains against exact entries and wildcarded zone cuts. Providing
"*.org", "google.com" and "*.mail.google.com" builds:

    .
    +-- org
    |   +-- *
    +-- com
        +-- google          (terminal)
            +-- mail
                +-- *

With wildcard_match(), google.com and anything below (but not including)
org or mail.google.com matches. With exact_match(), only google.com does.

A "+.zone" pattern adds a "+" sentinel that covers the zone apex as well
as anything below it. It only takes part in wildcard matching.

The trie is built once and never mutated afterwards, so a single instance
can be queried from many threads without locking.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

import structlog

from dnstrie.labels import (
    APEX_WILDCARD,
    ROOT_LABEL,
    WILDCARD,
    join_labels,
    reverse_labels,
    split_wildcard,
)

logger = structlog.get_logger()


@dataclass
class TrieNode:
    """One label position in the trie.

    children maps a label (or sentinel) to the next node. terminal is set
    when some inserted pattern ends exactly here.
    """

    label: str
    children: dict[str, TrieNode] = field(default_factory=dict)
    terminal: bool = False


class DomainTrie:
    """Trie over reversed domain labels with zone-cut wildcards.

    Use build_trie() or DomainTrie.from_patterns() to create one.
    """

    def __init__(self, validator: Callable[[str], bool] | None = None) -> None:
        """Initialize an empty trie.

        Args:
            validator: Optional predicate applied to every pattern and
                query before it is split into labels.
        """
        self._root = TrieNode(label=ROOT_LABEL)
        self._validator = validator
        self._pattern_count = 0

    @classmethod
    def from_patterns(
        cls,
        patterns: Iterable[str],
        validator: Callable[[str], bool] | None = None,
        strict: bool = False,
    ) -> DomainTrie:
        """Build a trie from patterns. See build_trie()."""
        return build_trie(patterns, validator=validator, strict=strict)

    @property
    def root(self) -> TrieNode:
        return self._root

    @property
    def pattern_count(self) -> int:
        return self._pattern_count

    def __len__(self) -> int:
        return self._pattern_count

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and self.wildcard_match(domain)

    def __repr__(self) -> str:
        return f"DomainTrie(patterns={self._pattern_count})"

    def empty(self) -> bool:
        """Return True if no pattern was ever inserted."""
        return not self._root.children and not self._root.terminal

    def _insert(self, labels: list[str]) -> None:
        node = self._root
        for label in labels:
            child = node.children.get(label)
            if child is None:
                child = TrieNode(label=label)
                node.children[label] = child
            node = child
        if not node.terminal:
            node.terminal = True
            self._pattern_count += 1

    def _query_labels(self, domain: str) -> list[str] | None:
        # Queries are concrete names; a wildcard marker makes them malformed.
        if split_wildcard(domain)[1] is not None:
            return None
        return reverse_labels(domain, self._validator)

    def exact_match(self, domain: str) -> bool:
        """Match only fully qualified domains that were inserted verbatim.

        Zone wildcards are ignored: with "*.google.com" inserted,
        "www.google.com" does not match.
        """
        labels = self._query_labels(domain)
        if labels is None:
            return False

        node = self._root
        for label in labels:
            child = node.children.get(label)
            if child is None:
                return False
            node = child
        return node.terminal

    def wildcard_match(self, domain: str) -> bool:
        """Match exact entries and zone wildcards.

        At every level the wildcard sentinels are checked before the
        label itself, so "*.google.com" matches "foo.google.com" and
        "bar.foo.google.com" but not "google.com". "+.google.com" also
        matches "google.com".
        """
        labels = self._query_labels(domain)
        if labels is None:
            return False

        node = self._root
        for label in labels:
            if WILDCARD in node.children or APEX_WILDCARD in node.children:
                return True
            child = node.children.get(label)
            if child is None:
                return False
            node = child
        return node.terminal or APEX_WILDCARD in node.children

    def match(self, domain: str, wildcard: bool = True) -> bool:
        """Match a domain with wildcard or exact semantics."""
        if wildcard:
            return self.wildcard_match(domain)
        return self.exact_match(domain)

    def node_count(self) -> int:
        """Count total nodes in the trie, root included."""
        count = 0
        stack = [self._root]
        while stack:
            node = stack.pop()
            count += 1
            stack.extend(node.children.values())
        return count

    def _walk(self, node: TrieNode, path: list[str]) -> Iterator[list[str]]:
        if node.terminal:
            yield list(path)
        for label, child in node.children.items():
            path.append(label)
            yield from self._walk(child, path)
            path.pop()

    def patterns(self) -> list[str]:
        """Return the inserted patterns in dotted form, sorted."""
        return sorted(join_labels(path) for path in self._walk(self._root, []))


def build_trie(
    patterns: Iterable[str],
    validator: Callable[[str], bool] | None = None,
    strict: bool = False,
) -> DomainTrie:
    """Build a DomainTrie from domain patterns.

    Patterns are plain domains ("www.google.com") or zone wildcards
    ("*.google.com", "+.google.com"). Use validation.normalize() first on
    patterns received from untrusted or unreliable sources.

    Args:
        patterns: Patterns to insert, in order.
        validator: Optional predicate; patterns it refuses are rejected.
            The same predicate is applied to queries.
        strict: Raise on the first rejected pattern instead of skipping it.

    Returns:
        The built trie. Empty if no pattern was accepted.

    Raises:
        ValueError: If strict is set and a pattern is rejected.
    """
    trie = DomainTrie(validator=validator)
    inserted = 0
    skipped = 0

    for pattern in patterns:
        labels = reverse_labels(pattern, validator)
        if labels is None:
            if strict:
                raise ValueError(f"Failed to build DomainTrie: invalid pattern {pattern!r}")
            skipped += 1
            logger.debug("Skipping invalid pattern", pattern=pattern)
            continue
        trie._insert(labels)
        inserted += 1

    logger.info(
        "Domain trie built",
        inserted=inserted,
        skipped=skipped,
        patterns=trie.pattern_count,
        nodes=trie.node_count(),
    )
    return trie
