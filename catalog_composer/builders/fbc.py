"""File-based catalog (FBC) helpers shared by the builders.

An FBC is a stream of blobs, each a mapping with a ``schema`` key
(``olm.package``, ``olm.channel``, ``olm.bundle``, ...). Streams are either
YAML multi-document files or concatenated JSON objects.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

PACKAGE_SCHEMA = "olm.package"
CHANNEL_SCHEMA = "olm.channel"
BUNDLE_SCHEMA = "olm.bundle"

FBC_SUFFIXES = (".yaml", ".yml", ".json")


def load_blobs(text: str) -> list[dict[str, Any]]:
    """Parse an FBC stream into a list of blobs.

    Raises:
        ValueError: If the stream does not parse or holds a non-mapping blob
    """
    stripped = text.strip()
    if not stripped:
        return []

    if stripped[0] in "{[":
        documents = _load_json_stream(stripped)
    else:
        try:
            documents = [doc for doc in yaml.safe_load_all(stripped) if doc is not None]
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e

    blobs: list[dict[str, Any]] = []
    for doc in documents:
        items = doc if isinstance(doc, list) else [doc]
        for item in items:
            if not isinstance(item, dict):
                raise ValueError(f"expected a mapping, got {type(item).__name__}")
            blobs.append(item)
    return blobs


def _load_json_stream(text: str) -> list[Any]:
    decoder = json.JSONDecoder()
    documents = []
    pos = 0
    while pos < len(text):
        try:
            doc, end = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON: {e}") from e
        documents.append(doc)
        pos = end
        while pos < len(text) and text[pos].isspace():
            pos += 1
    return documents


def load_file(path: Path) -> list[dict[str, Any]]:
    """Load all blobs from one FBC file."""
    with open(path, "r", encoding="utf-8") as f:
        return load_blobs(f.read())


def dump_blobs(blobs: list[dict[str, Any]], output_type: str) -> str:
    """Serialize blobs as a YAML multi-document or JSON stream."""
    if output_type == "yaml":
        return yaml.safe_dump_all(blobs, sort_keys=False, explicit_start=True)
    if output_type == "json":
        return "".join(json.dumps(blob, indent=2) + "\n" for blob in blobs)
    raise ValueError(f"unsupported output type {output_type!r}, expected 'yaml' or 'json'")


def write_file(path: Path, blobs: list[dict[str, Any]], output_type: str) -> None:
    content = dump_blobs(blobs, output_type)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.debug(f"Wrote {len(blobs)} blobs to {path}")


def check_blobs(blobs: list[dict[str, Any]]) -> list[str]:
    """Return every consistency problem found in a catalog's blobs.

    Checks that packages are named, that channels and bundles belong to a
    declared package, and that channel entries point at bundles of the
    same package.
    """
    problems: list[str] = []
    packages: set[str] = set()
    bundles: dict[str, set[str]] = {}

    for index, blob in enumerate(blobs):
        schema = blob.get("schema")
        if not schema:
            problems.append(f"blob {index}: missing schema")
            continue
        if schema == PACKAGE_SCHEMA:
            name = blob.get("name")
            if not name:
                problems.append(f"blob {index}: {PACKAGE_SCHEMA} must have a name")
            elif name in packages:
                problems.append(f"package {name!r} is declared more than once")
            else:
                packages.add(name)
        elif schema == BUNDLE_SCHEMA:
            bundles.setdefault(blob.get("package", ""), set()).add(blob.get("name", ""))

    for index, blob in enumerate(blobs):
        schema = blob.get("schema")
        if schema not in (CHANNEL_SCHEMA, BUNDLE_SCHEMA):
            continue
        name = blob.get("name")
        package = blob.get("package")
        label = f"{schema} {name!r}" if name else f"blob {index}"
        if not name:
            problems.append(f"blob {index}: {schema} must have a name")
        if not package:
            problems.append(f"{label}: missing package")
            continue
        if package not in packages:
            problems.append(f"{label}: package {package!r} is not declared")
            continue
        if schema == CHANNEL_SCHEMA:
            known = bundles.get(package, set())
            for entry in blob.get("entries") or []:
                entry_name = entry.get("name") if isinstance(entry, dict) else None
                if entry_name not in known:
                    problems.append(
                        f"{label}: entry {entry_name!r} is not a bundle of package {package!r}"
                    )

    return problems
