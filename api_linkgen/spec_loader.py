"""Spec Loader - reads and writes OpenAPI documents as YAML or JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml


SUPPORTED_FORMATS = ("yaml", "json")


class SpecLoadError(Exception):
    """Raised when a spec cannot be read or written."""


class _NoAliasDumper(yaml.SafeDumper):
    """SafeDumper that writes shared objects in full instead of as &anchors."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def detect_format(path: Path) -> str:
    """Return 'yaml' for .yaml/.yml files, otherwise 'json'."""
    if path.suffix.lower() in (".yaml", ".yml"):
        return "yaml"
    return "json"


def load_spec(path: Path) -> dict[str, Any]:
    """Load an OpenAPI document from a YAML or JSON file.

    Raises:
        SpecLoadError: If the file is missing, unparseable, or not a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            if detect_format(path) == "yaml":
                spec = yaml.safe_load(f)
            else:
                spec = json.load(f)
    except FileNotFoundError:
        raise SpecLoadError(f"Spec file not found: {path}")
    except OSError as e:
        raise SpecLoadError(f"Cannot read spec file: {e}") from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SpecLoadError(f"Failed to parse spec: {e}") from e

    # Handle empty files (yaml.safe_load returns None for empty content)
    if spec is None:
        return {}
    if not isinstance(spec, dict):
        raise SpecLoadError(f"Spec must be a mapping at the top level: {path}")
    return spec


def dump_spec(document: dict[str, Any], path: Path, output_format: str | None = None) -> None:
    """Write an OpenAPI document, keeping key order.

    Args:
        document: The document to write.
        path: Destination file.
        output_format: 'yaml' or 'json'. Detected from the suffix if None.

    Raises:
        SpecLoadError: If the format is unsupported or the file cannot be written.
    """
    fmt = output_format or detect_format(path)
    if fmt not in SUPPORTED_FORMATS:
        raise SpecLoadError(
            f"Unsupported output format '{fmt}'. Valid options: {', '.join(SUPPORTED_FORMATS)}"
        )

    try:
        with open(path, "w", encoding="utf-8") as f:
            if fmt == "yaml":
                yaml.dump(
                    document,
                    f,
                    Dumper=_NoAliasDumper,
                    sort_keys=False,
                    allow_unicode=True,
                    default_flow_style=False,
                )
            else:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")
    except OSError as e:
        raise SpecLoadError(f"Cannot write spec file: {e}") from e
