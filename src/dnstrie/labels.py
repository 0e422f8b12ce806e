"""Label handling for DNS-aware matching.

Domain names are split on "." and reversed so that the TLD comes first:
"www.google.co.uk" becomes ["uk", "co", "google", "www"]. A leading
wildcard marker is stripped and replaced by a sentinel label appended to
the end of the reversed sequence:

    *.google.com  ->  ["com", "google", "*"]
    +.google.com  ->  ["com", "google", "+"]

"*" covers one or more labels below the zone cut. "+" covers the zone
apex itself as well as anything below it.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

ROOT_LABEL = "."
WILDCARD = "*"
APEX_WILDCARD = "+"

SENTINELS = frozenset({WILDCARD, APEX_WILDCARD})


def split_wildcard(domain: str) -> tuple[str, str | None]:
    """Strip a leading wildcard marker from a domain.

    Only the literal prefixes "*." and "+." at position 0 count as markers.

    Returns:
        Tuple of (domain without the marker, sentinel label or None).

    Examples:
        >>> split_wildcard("*.google.com")
        ('google.com', '*')
        >>> split_wildcard("foo.*.google.com")
        ('foo.*.google.com', None)
        >>> split_wildcard("*google.com")
        ('*google.com', None)
    """
    if len(domain) < 2:
        return domain, None
    if domain[0] in SENTINELS and domain[1] == ".":
        return domain[2:], domain[0]
    return domain, None


def reverse_labels(
    domain: str,
    validator: Callable[[str], bool] | None = None,
) -> list[str] | None:
    """Convert a domain or pattern into its reversed label sequence.

    Args:
        domain: Domain name, optionally prefixed with "*." or "+.".
        validator: Optional predicate run against the domain with any
            wildcard marker removed.

    Returns:
        Labels ordered from TLD to most specific, with the wildcard
        sentinel last when present. None if the domain is empty, has an
        empty label, or is refused by the validator.
    """
    base, sentinel = split_wildcard(domain)
    if not base:
        return None

    labels = base.split(".")
    if "" in labels:
        return None

    if validator is not None and not validator(base):
        return None

    labels.reverse()
    if sentinel is not None:
        labels.append(sentinel)
    return labels


def join_labels(labels: Sequence[str]) -> str:
    """Rebuild a dotted domain from a reversed label sequence.

    Inverse of reverse_labels() for any sequence it accepts.

    Examples:
        >>> join_labels(["com", "google", "www"])
        'www.google.com'
        >>> join_labels(["com", "google", "*"])
        '*.google.com'
    """
    return ".".join(reversed(labels))
