"""Parse catalog and composite configuration documents.

Documents may be YAML or JSON. Only the first document of a stream is read.
"""

import json
import logging
from typing import IO, Any, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from catalog_composer.errors import ConfigDecodeError, ConfigUnmarshalError, SchemaMismatchError

from .schemas import (
    CATALOG_SCHEMA,
    COMPOSITE_SCHEMA,
    CatalogConfig,
    CompositeConfig,
)

logger = logging.getLogger(__name__)

ConfigSource = Union[str, bytes, IO[str], IO[bytes]]

ModelT = TypeVar("ModelT", bound=BaseModel)


def _read_text(source: ConfigSource, kind: str) -> str:
    data = source.read() if hasattr(source, "read") else source
    if isinstance(data, bytes):
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ConfigDecodeError(f"decoding {kind} config: {e}") from e
    return data


def decode_document(source: ConfigSource, kind: str) -> Any:
    """Decode the first YAML or JSON document of a stream.

    Input whose first non-whitespace character is ``{`` is decoded as JSON;
    anything else as YAML.

    Raises:
        ConfigDecodeError: If the stream is empty or not valid YAML/JSON
    """
    text = _read_text(source, kind)
    stripped = text.lstrip()
    if stripped.startswith("{"):
        try:
            document, _ = json.JSONDecoder().raw_decode(stripped)
        except json.JSONDecodeError as e:
            raise ConfigDecodeError(f"decoding {kind} config: {e}") from e
        return document

    try:
        document = next(iter(yaml.safe_load_all(text)), None)
    except yaml.YAMLError as e:
        raise ConfigDecodeError(f"decoding {kind} config: {e}") from e
    if document is None:
        raise ConfigDecodeError(f"decoding {kind} config: document is empty")
    return document


def parse_document(source: ConfigSource, model: type[ModelT], expected_schema: str, kind: str) -> ModelT:
    """Decode a document, map it onto ``model`` and check its schema field."""
    document = decode_document(source, kind)
    if not isinstance(document, dict):
        raise ConfigUnmarshalError(
            f"unmarshalling {kind} config: expected a mapping, got {type(document).__name__}"
        )
    try:
        config = model.model_validate(document)
    except ValidationError as e:
        raise ConfigUnmarshalError(f"unmarshalling {kind} config: {e}") from e

    actual = config.schema_id  # type: ignore[attr-defined]
    if actual != expected_schema:
        raise SchemaMismatchError(kind, expected_schema, actual)
    return config


def parse_catalog_config(source: ConfigSource) -> CatalogConfig:
    """Parse the catalog configuration (schema olm.composite.catalogs)."""
    config = parse_document(source, CatalogConfig, CATALOG_SCHEMA, "catalog")
    logger.debug(f"Parsed catalog config with {len(config.catalogs)} catalogs")
    return config


def parse_composite_config(source: ConfigSource) -> CompositeConfig:
    """Parse the composite configuration (schema olm.composite)."""
    config = parse_document(source, CompositeConfig, COMPOSITE_SCHEMA, "composite")
    logger.debug(f"Parsed composite config with {len(config.components)} components")
    return config
