"""Tests for the DNS-aware DomainTrie."""

from __future__ import annotations

import pytest

from dnstrie.trie import DomainTrie, TrieNode, build_trie
from dnstrie.validation import is_possible_domain

PATTERNS = [
    "*.google.com",
    "www.google.org",
    "*.biz",
    "notarealdomain",
    "*nadji.us",
    "onizuka.homelinux.org",
]


class TestBuildTrie:
    """Tests for trie construction."""

    def test_structure(self):
        """Patterns share their reversed prefix and end at terminal nodes."""
        trie = build_trie(["www.google.com", "*.google.com"])

        expected = TrieNode(
            label=".",
            children={
                "com": TrieNode(
                    label="com",
                    children={
                        "google": TrieNode(
                            label="google",
                            children={
                                "www": TrieNode(label="www", terminal=True),
                                "*": TrieNode(label="*", terminal=True),
                            },
                        ),
                    },
                ),
            },
        )
        assert trie.root == expected

    def test_order_independent(self):
        """Insertion order does not change the shape of the trie."""
        patterns = ["*.google.com", "www.google.com", "google.com", "mail.google.org"]
        forward = build_trie(patterns)
        backward = build_trie(list(reversed(patterns)))
        assert forward.root == backward.root
        assert forward.patterns() == backward.patterns()

    def test_duplicates_are_idempotent(self):
        """Inserting the same pattern twice adds nothing."""
        trie = build_trie(["google.com", "google.com"])
        assert trie.pattern_count == 1
        assert len(trie) == 1
        assert trie.node_count() == 3

    def test_node_count_shared_suffix(self):
        """root -> com -> openai -> api, chat = 5 nodes."""
        trie = build_trie(["api.openai.com", "chat.openai.com"])
        assert trie.node_count() == 5

    def test_intermediate_pattern_marks_inner_node(self):
        """A pattern ending on an existing inner node only flips its terminal flag."""
        trie = build_trie(["www.google.com", "google.com"])
        assert trie.node_count() == 4
        assert trie.root.children["com"].children["google"].terminal is True

    def test_invalid_patterns_skipped(self):
        """Malformed patterns are skipped without affecting the rest."""
        trie = build_trie(["", "a..b", "google.com", ".com"])
        assert trie.patterns() == ["google.com"]

    def test_strict_raises(self):
        """Strict construction fails on the first rejected pattern."""
        with pytest.raises(ValueError, match="invalid pattern"):
            build_trie(["google.com", "a..b"], strict=True)

    def test_strict_accepts_valid_patterns(self):
        """Strict construction succeeds when every pattern is accepted."""
        trie = build_trie(["google.com", "*.google.com"], strict=True)
        assert trie.pattern_count == 2

    def test_validator_rejects_patterns(self):
        """The validator filters patterns during construction."""
        trie = build_trie(PATTERNS, validator=is_possible_domain)
        assert trie.patterns() == [
            "*.biz",
            "*.google.com",
            "onizuka.homelinux.org",
            "www.google.org",
        ]

    def test_from_patterns(self):
        """DomainTrie.from_patterns is equivalent to build_trie."""
        trie = DomainTrie.from_patterns(["*.google.com"])
        assert trie.root == build_trie(["*.google.com"]).root

    def test_patterns_round_trip(self):
        """patterns() renders sentinels back as wildcard prefixes."""
        trie = build_trie(["www.google.org", "+.example.org", "*.google.com"])
        assert trie.patterns() == ["*.google.com", "+.example.org", "www.google.org"]

    def test_accepts_generator(self):
        """Any iterable of patterns can be used."""
        trie = build_trie(p for p in ["a.com", "b.com"])
        assert trie.pattern_count == 2


class TestEmpty:
    """Tests for empty tries."""

    def test_no_patterns(self):
        """A trie built from nothing is empty and matches nothing."""
        trie = build_trie([])
        assert trie.empty() is True
        assert trie.exact_match("google.com") is False
        assert trie.wildcard_match("google.com") is False
        assert trie.node_count() == 1

    def test_only_rejected_patterns(self):
        """Only rejected patterns still leaves the trie empty."""
        trie = build_trie(["notarealdomain", "*nadji.us"], validator=is_possible_domain)
        assert trie.empty() is True

    def test_single_pattern(self):
        """One valid pattern makes the trie non-empty."""
        assert build_trie(["com"]).empty() is False


class TestExactMatch:
    """Tests for exact matching."""

    @pytest.mark.parametrize(
        ("domain", "match"),
        [
            ("www.google.org", True),
            ("www.google.com", False),
            ("google.com", False),
            ("google.biz", False),
            ("foo.google.biz", False),
            ("bar.foo.google.biz", False),
            ("notarealdomain", False),
            ("foo.nadji.us", False),
            ("nadji.us", False),
            ("*.biz", False),
            ("onizuka.homelinux.org", True),
        ],
    )
    def test_exact_match_validated(self, domain, match):
        """Only verbatim entries match; wildcards are ignored."""
        trie = build_trie(PATTERNS, validator=is_possible_domain)
        assert trie.exact_match(domain) is match

    def test_unvalidated_single_label(self):
        """Without a validator any label sequence is indexed."""
        trie = build_trie(["notarealdomain"])
        assert trie.exact_match("notarealdomain") is True
        assert trie.exact_match("sub.notarealdomain") is False
        assert trie.wildcard_match("sub.notarealdomain") is False

    def test_prefix_of_entry_does_not_match(self):
        """Reaching a non-terminal inner node is not a match."""
        trie = build_trie(["www.google.com"])
        assert trie.exact_match("google.com") is False
        assert trie.exact_match("com") is False

    def test_malformed_query(self):
        """Malformed queries fail closed."""
        trie = build_trie(["google.com"])
        assert trie.exact_match("") is False
        assert trie.exact_match("google..com") is False


class TestWildcardMatch:
    """Tests for wildcard matching."""

    @pytest.mark.parametrize(
        ("domain", "match"),
        [
            ("www.google.org", True),
            ("www.google.com", True),
            ("google.com", False),
            ("google.biz", True),
            ("foo.google.biz", True),
            ("bar.foo.google.biz", True),
            ("notarealdomain", False),
            ("foo.nadji.us", False),
            ("nadji.us", False),
            ("*.biz", False),
            ("onizuka.homelinux.org", True),
        ],
    )
    def test_wildcard_match_validated(self, domain, match):
        """Zone wildcards cover any depth below the cut."""
        trie = build_trie(PATTERNS, validator=is_possible_domain)
        assert trie.wildcard_match(domain) is match

    def test_zone_apex_not_covered(self):
        """*.a.b requires at least one label below the cut."""
        trie = build_trie(["*.a.b"])
        assert trie.wildcard_match("x.a.b") is True
        assert trie.wildcard_match("y.x.a.b") is True
        assert trie.wildcard_match("a.b") is False
        assert trie.exact_match("x.a.b") is False
        assert trie.exact_match("y.x.a.b") is False

    def test_zone_apex_inserted_separately(self):
        """The apex matches when it is its own entry."""
        trie = build_trie(["*.a.b", "a.b"])
        assert trie.wildcard_match("a.b") is True
        assert trie.exact_match("a.b") is True

    def test_wildcard_takes_priority_over_label(self):
        """A wildcard sibling short-circuits before exact descent."""
        trie = build_trie(["*.google.com", "www.google.com"])
        assert trie.wildcard_match("www.google.com") is True
        assert trie.wildcard_match("deep.www.google.com") is True

    def test_unrelated_zone(self):
        trie = build_trie(["*.google.com"])
        assert trie.wildcard_match("foo.google.org") is False
        assert trie.wildcard_match("com") is False

    def test_contains(self):
        """The in operator uses wildcard matching."""
        trie = build_trie(["*.google.com"])
        assert "foo.google.com" in trie
        assert "google.com" not in trie
        assert 42 not in trie


class TestApexWildcard:
    """Tests for the "+." zone sentinel."""

    def test_apex_and_below(self):
        """+.zone covers the zone itself and everything below it."""
        trie = build_trie(["+.example.org"])
        assert trie.wildcard_match("example.org") is True
        assert trie.wildcard_match("www.example.org") is True
        assert trie.wildcard_match("a.b.example.org") is True
        assert trie.wildcard_match("org") is False
        assert trie.wildcard_match("other.org") is False

    def test_exact_match_ignores_apex_sentinel(self):
        """Exact matching never treats "+" as a wildcard."""
        trie = build_trie(["+.example.org"])
        assert trie.exact_match("example.org") is False
        assert trie.exact_match("www.example.org") is False

    def test_marker_query_fails_closed(self):
        """Queries carrying a wildcard marker never match."""
        trie = build_trie(["+.example.org", "*.example.org"])
        assert trie.wildcard_match("+.example.org") is False
        assert trie.exact_match("*.example.org") is False


class TestMatch:
    """Tests for the unified match entry point."""

    @pytest.fixture
    def trie(self):
        return build_trie(["*.google.com", "www.google.org"])

    def test_scenario_wildcard_only(self, trie):
        assert trie.match("foo.google.com") is True
        assert trie.match("foo.google.com", wildcard=False) is False

    def test_scenario_exact_entry(self, trie):
        assert trie.match("www.google.org") is True
        assert trie.match("www.google.org", wildcard=False) is True

    def test_biz_zone(self):
        trie = build_trie(["*.biz"])
        assert trie.match("google.biz") is True
        assert trie.match("biz") is False
