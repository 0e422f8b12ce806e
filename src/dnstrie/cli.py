"""dfilter - filter domains on stdin against a match file."""

from __future__ import annotations

import io
import json
import logging
import sys
from typing import TextIO

import click
import structlog
from click.core import ParameterSource
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dnstrie.config import FilterConfig, flatten_config, load_config_from_file
from dnstrie.loader import load_patterns
from dnstrie.trie import DomainTrie, build_trie
from dnstrie.validation import (
    ValidationMode,
    get_validator,
    has_listed_suffix,
    is_possible_domain,
    is_registerable_domain,
    is_valid,
    normalize,
)

console = Console()
err_console = Console(stderr=True)

logger = structlog.get_logger()

LOG_LEVELS = ["debug", "info", "warning", "error"]


def _configure_logging(log_level: str, verbose: bool) -> None:
    effective_log_level = "debug" if verbose else log_level

    # stdout carries the filtered domains, so logs go to stderr
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, effective_log_level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _normalize_patterns(patterns: list[str]) -> list[str]:
    normalized: list[str] = []
    for pattern in patterns:
        try:
            normalized.append(normalize(pattern))
        except ValueError:
            logger.debug("Skipping pattern that failed normalization", pattern=pattern)
    return normalized


def _build_from_config(config: FilterConfig) -> DomainTrie:
    """Load the match file and build the trie described by config.

    Raises:
        FileNotFoundError: If the match file doesn't exist
        ValueError: If the match file can't be decoded, or a pattern is
            invalid while strict is set
    """
    patterns = load_patterns(config.match_file)
    if config.normalize:
        patterns = _normalize_patterns(patterns)
    return build_trie(
        patterns,
        validator=get_validator(config.validate_mode),
        strict=config.strict,
    )


def _load_trie_or_exit(config: FilterConfig) -> DomainTrie:
    if not config.match_file:
        err_console.print("[red]Must provide match file![/red]")
        sys.exit(2)
    try:
        return _build_from_config(config)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Failed to make trie: {escape(str(e))}[/red]")
        sys.exit(1)


def _line_matches(trie: DomainTrie, line: str, config: FilterConfig) -> bool:
    domain = line
    if config.normalize:
        try:
            domain = normalize(line)
        except ValueError:
            return False
    return trie.match(domain, wildcard=config.wildcard)


def _open_stdin() -> TextIO:
    """Return stdin decoded so undecodable bytes survive as surrogates."""
    stdin = sys.stdin
    if isinstance(stdin, io.TextIOWrapper):
        stdin.reconfigure(errors="surrogateescape")
    return stdin


def run_filter(config: FilterConfig) -> None:
    """Print stdin lines that match the trie (or don't, when inverted).

    Lines are echoed back byte for byte. A line that isn't valid text in
    the input encoding never matches.
    """
    trie = _load_trie_or_exit(config)
    if trie.empty():
        logger.warning("No usable patterns in match file", match_file=config.match_file)

    stdin = _open_stdin()
    encoding = getattr(stdin, "encoding", None) or "utf-8"
    lines = 0
    printed = 0
    for raw in stdin:
        line = raw.rstrip("\r\n")
        lines += 1
        if _line_matches(trie, line, config) != config.invert:
            click.echo(line.encode(encoding, "surrogateescape"))
            printed += 1

    logger.info("Filter finished", lines=lines, printed=printed, invert=config.invert)


@click.group(invoke_without_command=True)
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True),
    help="Path to YAML or TOML config file",
)
@click.option(
    "--match-file", "-m",
    type=click.Path(),
    default=None,
    help="File of domain matches, one per line",
)
@click.option(
    "--wildcard/--no-wildcard",
    default=None,
    help="Accept wildcard matches (*.zone and +.zone)",
)
@click.option(
    "--invert/--no-invert",
    default=None,
    help="Print domains that do not match instead",
)
@click.option(
    "--validate",
    "validate_mode",
    type=click.Choice([mode.value for mode in ValidationMode], case_sensitive=False),
    default=None,
    help="Check patterns and domains must pass (default: none)",
)
@click.option(
    "--normalize/--no-normalize",
    "normalize_input",
    default=None,
    help="Trim, lowercase and punycode patterns and domains",
)
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Fail on the first invalid pattern instead of skipping it",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (default: warning, use --verbose for debug)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(
    ctx: click.Context,
    config_file: str | None,
    match_file: str | None,
    wildcard: bool | None,
    invert: bool | None,
    validate_mode: str | None,
    normalize_input: bool | None,
    strict: bool | None,
    log_level: str | None,
    verbose: bool,
):
    """dfilter - filter domains from stdin against a match file.

    Reads one domain per line and prints those matching the patterns in
    the match file. Patterns are exact domains (www.google.org) or zone
    wildcards: *.google.com matches anything below google.com, +.google.com
    also matches google.com itself.

    Examples:

        cat domains.txt | dfilter --match-file blocklist.txt

        cat domains.txt | dfilter -m blocklist.txt --wildcard

        cat domains.txt | dfilter -m allowlist.txt --wildcard --invert

    Use 'dfilter COMMAND --help' for more info on specific commands.
    """
    file_config: dict = {}
    if config_file:
        try:
            file_config = flatten_config(load_config_from_file(config_file))
        except (FileNotFoundError, ValueError) as e:
            err_console.print(f"[red]Failed to load config: {escape(str(e))}[/red]")
            sys.exit(1)

    overrides = dict(file_config)
    flags = {
        "match_file": ("match_file", match_file),
        "wildcard": ("wildcard", wildcard),
        "invert": ("invert", invert),
        "validate_mode": ("validate_mode", validate_mode),
        "normalize": ("normalize_input", normalize_input),
        "strict": ("strict", strict),
        "log_level": ("log_level", log_level),
    }
    for key, (param, value) in flags.items():
        if ctx.get_parameter_source(param) is ParameterSource.COMMANDLINE:
            overrides[key] = value

    try:
        config = FilterConfig(**overrides)
    except ValidationError as e:
        err_console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        sys.exit(1)

    _configure_logging(config.log_level, verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    if ctx.invoked_subcommand is None:
        run_filter(config)


@main.command()
def version():
    """Show version information."""
    from dnstrie import __version__

    console.print(f"[bold]Version:[/bold] {__version__}")
    console.print(f"[bold]Python:[/bold] {sys.version}")


@main.command()
@click.argument("domains", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def check(domains: tuple[str, ...], json_output: bool):
    """Check domains for validity and public suffix membership.

    Examples:

        dfilter check google.com ésta.bien.es foo.test
    """
    results = []
    for domain in domains:
        try:
            normalized: str | None = normalize(domain)
        except ValueError:
            normalized = None
        results.append(
            {
                "domain": domain,
                "normalized": normalized,
                "valid": is_valid(domain),
                "listed_suffix": has_listed_suffix(domain),
                "possible": is_possible_domain(domain),
                "registerable": is_registerable_domain(domain),
            }
        )

    if json_output:
        click.echo(json.dumps(results, indent=2, ensure_ascii=False))
        return

    table = Table()
    table.add_column("Domain", style="cyan")
    table.add_column("Normalized", style="dim")
    table.add_column("Valid", justify="center")
    table.add_column("Listed Suffix", justify="center")
    table.add_column("Possible", justify="center")
    table.add_column("Registerable", justify="center")

    def _mark(value: bool) -> str:
        return "[green]yes[/green]" if value else "[red]no[/red]"

    for result in results:
        table.add_row(
            escape(result["domain"]),
            escape(result["normalized"]) if result["normalized"] else "[red]invalid[/red]",
            _mark(result["valid"]),
            _mark(result["listed_suffix"]),
            _mark(result["possible"]),
            _mark(result["registerable"]),
        )
    console.print(table)


@main.command()
@click.option(
    "--match-file", "-m",
    type=click.Path(),
    default=None,
    help="File of domain matches (overrides the group option)",
)
@click.option("--limit", type=int, default=50, help="Maximum patterns to list (default: 50)")
@click.pass_context
def show(ctx: click.Context, match_file: str | None, limit: int):
    """Show the patterns indexed from a match file."""
    config: FilterConfig = ctx.obj["config"]
    if match_file is not None:
        config = config.model_copy(update={"match_file": match_file})

    trie = _load_trie_or_exit(config)
    patterns = trie.patterns()

    summary = (
        f"[bold]Match file:[/bold] {escape(str(config.match_file))}\n"
        f"[bold]Patterns:[/bold] {trie.pattern_count}\n"
        f"[bold]Nodes:[/bold] {trie.node_count()}\n"
        f"[bold]Validation:[/bold] {config.validate_mode.value}"
    )
    console.print(Panel(summary, title="Domain Trie"))

    if not patterns:
        console.print("No patterns indexed", style="yellow")
        return

    table = Table()
    table.add_column("Pattern", style="cyan")
    table.add_column("Kind")
    for pattern in patterns[:limit]:
        if pattern.startswith("*."):
            kind = "wildcard"
        elif pattern.startswith("+."):
            kind = "zone"
        else:
            kind = "exact"
        table.add_row(escape(pattern), kind)
    console.print(table)
    if len(patterns) > limit:
        console.print(f"... and {len(patterns) - limit} more", style="dim")
