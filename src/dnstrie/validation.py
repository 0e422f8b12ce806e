"""Domain validity checks and normalization.

All functions accept both punycode and unicode (IDN) domains. Unicode
input is converted to ASCII-compatible encoding with the IDNA codec
before checking.

Suffix checks use the Public Suffix List snapshot bundled with tldextract,
including privately managed suffixes (e.g. github.io). No network fetch
is performed.

Example:
    validator = get_validator(ValidationMode.POSSIBLE)
    trie = build_trie(patterns, validator=validator)
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Callable
from enum import Enum

import tldextract

_extract = tldextract.TLDExtract(
    cache_dir=None,
    suffix_list_urls=(),
    include_psl_private_domains=True,
)

_DNS_NAME_RE = re.compile(
    r"^([a-zA-Z0-9_][a-zA-Z0-9_-]{0,62})(\.[a-zA-Z0-9_][a-zA-Z0-9_-]{0,62})*[._]?$"
)

MAX_NAME_LENGTH = 255

# tldextract parses URLs, so these must never reach it
_URL_DELIMITERS = frozenset("@#/?:[]\\")


class ValidationMode(Enum):
    """Which check patterns and queries must pass before matching."""

    NONE = "none"
    VALID = "valid"
    POSSIBLE = "possible"
    REGISTERABLE = "registerable"


def _to_ascii(domain: str) -> str | None:
    try:
        return domain.encode("idna").decode("ascii")
    except UnicodeError:
        return None


def _hostname_tail(domain: str) -> str:
    """Return the trailing labels of domain that contain no URL delimiters.

    Listed suffixes never contain such characters, so the suffix of the
    full name is always found within the tail.
    """
    tail: list[str] = []
    for label in reversed(domain.split(".")):
        if _URL_DELIMITERS.intersection(label):
            break
        tail.append(label)
    return ".".join(reversed(tail))


def normalize(domain: str) -> str:
    """Sanitize a domain name so common inconsistencies do not occur.

    Domains coming from third parties should always be normalized before
    storing and further processing. This will:
    - trim leading and trailing whitespace
    - lowercase
    - convert to punycode

    A leading "*." or "+." wildcard marker is kept as is.

    Raises:
        ValueError: If the punycode conversion fails.

    Examples:
        >>> normalize("  GOOGLE.cOm")
        'google.com'
        >>> normalize("ésta.bien.es")
        'xn--sta-9la.bien.es'
    """
    cleaned = domain.strip().lower()
    ascii_domain = _to_ascii(cleaned)
    if ascii_domain is None:
        raise ValueError(f"Failed to normalize domain {domain!r}")
    return ascii_domain


def _is_dns_name(domain: str) -> bool:
    if not domain or len(domain.replace(".", "")) > MAX_NAME_LENGTH:
        return False
    try:
        ipaddress.ip_address(domain)
    except ValueError:
        return bool(_DNS_NAME_RE.match(domain))
    return False


def is_valid(domain: str) -> bool:
    """Check that a domain is IDNA convertible and a syntactic DNS name.

    Leading and trailing whitespace and case are ignored.
    """
    ascii_domain = _to_ascii(domain.strip().lower())
    if ascii_domain is None:
        return False
    return _is_dns_name(ascii_domain)


def has_listed_suffix(domain: str) -> bool:
    """Check that a domain ends in a suffix from the Public Suffix List.

    Converts to ASCII so the suffix check succeeds for IDNs, but does no
    other normalization. Reserved TLDs like "test" or "localhost" are not
    listed.
    """
    ascii_domain = _to_ascii(domain)
    if ascii_domain is None:
        return False
    hostname = _hostname_tail(ascii_domain)
    return bool(hostname) and bool(_extract(hostname).suffix)


def is_listed_suffix(etld: str) -> bool:
    """Check that etld is itself a public or private suffix.

    Examples:
        >>> is_listed_suffix("com")
        True
        >>> is_listed_suffix("foo.com")
        False
    """
    ascii_etld = _to_ascii(etld)
    if ascii_etld is None:
        return False
    if _hostname_tail(ascii_etld) != ascii_etld:
        return False
    result = _extract(ascii_etld)
    return bool(result.suffix) and not result.domain and not result.subdomain


def is_possible_domain(domain: str) -> bool:
    """Check that a domain is a syntactic DNS name with a listed suffix.

    Unlike is_valid(), surrounding whitespace makes the domain invalid.
    """
    ascii_domain = _to_ascii(domain)
    if ascii_domain is None:
        return False
    return _is_dns_name(ascii_domain) and has_listed_suffix(ascii_domain)


def is_registerable_domain(domain: str) -> bool:
    """Check that a domain could be registered by a third party.

    The domain must be a possible domain but not a suffix itself. Whether
    it is actually registered is not checked.
    """
    ascii_domain = _to_ascii(domain)
    if ascii_domain is None:
        return False
    return is_possible_domain(ascii_domain) and not is_listed_suffix(ascii_domain)


_VALIDATORS: dict[ValidationMode, Callable[[str], bool]] = {
    ValidationMode.VALID: is_valid,
    ValidationMode.POSSIBLE: is_possible_domain,
    ValidationMode.REGISTERABLE: is_registerable_domain,
}


def get_validator(mode: ValidationMode | str) -> Callable[[str], bool] | None:
    """Return the predicate for a validation mode, or None for no checks.

    Raises:
        ValueError: If mode is not a known validation mode.
    """
    return _VALIDATORS.get(ValidationMode(mode))
