"""dnstrie - DNS-aware trie for filtering domain names.

Builds an index from exact domains and zone wildcards, then answers
whether arbitrary domains are covered by it.

Usage:
    from dnstrie import build_trie

    trie = build_trie(["*.google.com", "www.google.org"])

    trie.wildcard_match("foo.google.com")   # True
    trie.exact_match("foo.google.com")      # False
    trie.exact_match("www.google.org")      # True

Patterns can be checked before insertion by passing a validator, e.g.
validation.is_possible_domain, which rejects malformed names and names
without a public suffix.
"""

from dnstrie.labels import APEX_WILDCARD, WILDCARD, join_labels, reverse_labels, split_wildcard
from dnstrie.loader import load_patterns, read_patterns
from dnstrie.trie import DomainTrie, TrieNode, build_trie
from dnstrie.validation import (
    ValidationMode,
    get_validator,
    has_listed_suffix,
    is_listed_suffix,
    is_possible_domain,
    is_registerable_domain,
    is_valid,
    normalize,
)

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "APEX_WILDCARD",
    "WILDCARD",
    "DomainTrie",
    "TrieNode",
    "build_trie",
    "reverse_labels",
    "split_wildcard",
    "join_labels",
    "load_patterns",
    "read_patterns",
    "ValidationMode",
    "get_validator",
    "normalize",
    "is_valid",
    "has_listed_suffix",
    "is_listed_suffix",
    "is_possible_domain",
    "is_registerable_domain",
]
