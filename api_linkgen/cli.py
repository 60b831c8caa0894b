"""CLI entry point for api-linkgen.

Handles argument parsing and dispatches to generate or list-links mode.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from api_linkgen.config_loader import ConfigError, load_generator_config
from api_linkgen.link_generator import add_link_definitions
from api_linkgen.models import GeneratorConfig
from api_linkgen.openapi_tools import (
    LinkGenerationError,
    UnresolvedReferenceError,
    is_reference,
    resolve_component_ref,
)
from api_linkgen.spec_loader import SUPPORTED_FORMATS, SpecLoadError, dump_spec, load_spec


LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass
class GenerateArgs:
    """Parsed arguments for generate mode."""

    spec: Path
    out: Path
    config: Path | None
    output_format: str | None
    verbose: bool


@dataclass
class ListLinksArgs:
    """Parsed arguments for list-links mode."""

    spec: Path
    output: str


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with generate and list-links subcommands."""
    parser = argparse.ArgumentParser(
        prog="api-linkgen",
        description="Infer OpenAPI links between operations from the path hierarchy and parameters.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Execution mode")

    # Generate subcommand
    generate_parser = subparsers.add_parser(
        "generate",
        help="Add inferred link definitions to an OpenAPI spec",
    )
    generate_parser.add_argument(
        "--spec",
        type=Path,
        required=True,
        help="Path to OpenAPI specification file (YAML or JSON)",
    )
    generate_parser.add_argument(
        "--out",
        type=Path,
        required=True,
        help="Path of the output specification file",
    )
    generate_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to generator configuration file (YAML)",
    )
    generate_parser.add_argument(
        "--format",
        choices=SUPPORTED_FORMATS,
        default=None,
        dest="output_format",
        help="Output format (default: detected from the --out suffix)",
    )
    generate_parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Log candidate and rejection details to stderr",
    )

    # List-links subcommand
    list_links_parser = subparsers.add_parser(
        "list-links",
        help="List all response links declared in an OpenAPI spec",
    )
    list_links_parser.add_argument(
        "--spec",
        type=Path,
        required=True,
        help="Path to OpenAPI specification file (YAML or JSON)",
    )
    list_links_parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    return parser


def parse_generate_args(namespace: argparse.Namespace) -> GenerateArgs:
    """Convert parsed namespace to GenerateArgs dataclass."""
    return GenerateArgs(
        spec=namespace.spec,
        out=namespace.out,
        config=namespace.config,
        output_format=namespace.output_format,
        verbose=namespace.verbose,
    )


def parse_list_links_args(namespace: argparse.Namespace) -> ListLinksArgs:
    """Convert parsed namespace to ListLinksArgs dataclass."""
    return ListLinksArgs(spec=namespace.spec, output=namespace.output)


def parse_args(args: list[str] | None = None) -> GenerateArgs | ListLinksArgs:
    """Parse command-line arguments and return typed args dataclass.

    Args:
        args: Command-line arguments to parse. If None, uses sys.argv[1:].

    Returns:
        GenerateArgs or ListLinksArgs depending on the subcommand.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.command == "generate":
        return parse_generate_args(namespace)
    elif namespace.command == "list-links":
        return parse_list_links_args(namespace)
    else:
        # Should not happen with required=True on subparsers
        parser.error(f"Unknown command: {namespace.command}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        parsed = parse_args(argv)

        if isinstance(parsed, GenerateArgs):
            return run_generate(parsed)
        else:
            return run_list_links(parsed)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


def configure_logging(verbose: bool) -> None:
    """Send library log records to stderr; DEBUG when verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def run_generate(args: GenerateArgs) -> int:
    """Run generate mode.

    Loads the spec, adds inferred links, and writes the result to --out.
    """
    configure_logging(args.verbose)

    config = GeneratorConfig()
    if args.config is not None:
        try:
            config = load_generator_config(args.config)
        except ConfigError as e:
            print(f"Error loading config: {e}", file=sys.stderr)
            return 1

    try:
        spec = load_spec(args.spec)
    except SpecLoadError as e:
        print(f"Error loading spec: {e}", file=sys.stderr)
        return 1

    try:
        result = add_link_definitions(spec, config)
    except LinkGenerationError as e:
        print(f"Error generating links: {e}", file=sys.stderr)
        return 1

    try:
        dump_spec(result.document, args.out, args.output_format)
    except SpecLoadError as e:
        print(f"Error writing spec: {e}", file=sys.stderr)
        return 1

    print(f"Added {result.links_added} links")
    for added in result.links:
        target = f"{added.method.value.upper()} {added.to_path}"
        print(f"  {added.status_code} GET {added.from_path} → {added.name} → {target}")
    return 0


def run_list_links(args: ListLinksArgs) -> int:
    """Run list-links mode.

    Lists every operation with response links, sorted by path and method.
    """
    try:
        spec = load_spec(args.spec)
    except SpecLoadError as e:
        print(f"Error loading spec: {e}", file=sys.stderr)
        return 1

    operations = _extract_links(spec)

    if args.output == "json":
        print(json.dumps({"operations": operations}, indent=2))
        return 0

    for operation in operations:
        print(f"{operation['method']} {operation['path']}")
        if operation["operation_id"]:
            print(f"  operationId: {operation['operation_id']}")
        for link in operation["links"]:
            print(f"    {link['status_code']} → {link['name']} → {link['target']}")
        print()

    total_links = sum(len(op["links"]) for op in operations)
    print(f"Total: {total_links} links on {len(operations)} operations")
    return 0


def _extract_links(spec: dict[str, Any]) -> list[dict[str, Any]]:
    """Collect response links per operation.

    Returns:
        List of {path, method, operation_id, links: [{status_code, name, target}]}
        for operations that declare at least one link. Link targets are the
        operationId, operationRef, or $ref of the link entry.
    """
    operations: list[dict[str, Any]] = []
    paths = spec.get("paths", {})
    if not isinstance(paths, dict):
        return operations

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method, operation in path_item.items():
            # Skip non-dict entries and OpenAPI extension fields (e.g., $ref, x-custom)
            if not isinstance(operation, dict) or method.startswith("$"):
                continue

            links = []
            responses = operation.get("responses", {})
            if not isinstance(responses, dict):
                continue
            for status_code, response_def in responses.items():
                if is_reference(response_def):
                    try:
                        response_def = resolve_component_ref(spec, response_def, "responses")
                    except UnresolvedReferenceError:
                        continue
                if not isinstance(response_def, dict):
                    continue
                response_links = response_def.get("links") or {}
                if not isinstance(response_links, dict):
                    continue
                for link_name, link_def in response_links.items():
                    if not isinstance(link_def, dict):
                        continue
                    target = (
                        link_def.get("operationId")
                        or link_def.get("operationRef")
                        or link_def.get("$ref")
                        or "?"
                    )
                    links.append({
                        "status_code": str(status_code),
                        "name": link_name,
                        "target": target,
                    })

            if links:
                operations.append({
                    "path": path,
                    "method": method.upper(),
                    "operation_id": operation.get("operationId"),
                    "links": links,
                })

    operations.sort(key=lambda op: (op["path"], op["method"]))
    return operations


if __name__ == "__main__":
    sys.exit(main())
