"""Catalog-builder matrix assembly.

Maps every catalog name to the builders it supports:

    {"stable": {"olm.builder.basic": BasicBuilder(...)}, ...}

Field validation is collected across all catalogs before failing; builder
resolution stops at the first unknown schema.
"""

import logging
from typing import Sequence

from catalog_composer.builders.registry import BuilderRegistry
from catalog_composer.builders.schemas import Builder, BuilderConfig
from catalog_composer.errors import CatalogValidationError, UnknownBuilderSchemaError

from .schemas import Catalog

logger = logging.getLogger(__name__)

BuilderMap = dict[str, Builder]
CatalogBuilderMap = dict[str, BuilderMap]


def validate_catalog(catalog: Catalog) -> list[str]:
    """Return the field errors of one catalog."""
    errors = []
    if not catalog.destination.working_dir:
        errors.append("destination.workingDir must not be an empty string")
    return errors


def build_catalog_builder_map(
    catalogs: Sequence[Catalog],
    output_type: str,
    registry: BuilderRegistry,
) -> CatalogBuilderMap:
    """Validate every catalog, then construct its builders.

    A catalog name that appears more than once keeps its first definition.

    Raises:
        CatalogValidationError: Listing every catalog with field errors
        UnknownBuilderSchemaError: For the first schema with no registered factory
    """
    setup_errors: dict[str, list[str]] = {}
    for catalog in catalogs:
        errors = validate_catalog(catalog)
        if errors:
            setup_errors.setdefault(catalog.name, []).extend(errors)

    if setup_errors:
        raise CatalogValidationError(setup_errors)

    catalog_builder_map: CatalogBuilderMap = {}
    for catalog in catalogs:
        if catalog.name in catalog_builder_map:
            logger.warning(f"Catalog {catalog.name!r} is defined more than once, keeping the first definition")
            continue

        config = BuilderConfig(output_type=output_type, working_dir=catalog.destination.working_dir)
        builder_map: BuilderMap = {}
        for schema in catalog.builders:
            try:
                builder_map[schema] = registry.resolve(schema, config)
            except UnknownBuilderSchemaError as e:
                raise UnknownBuilderSchemaError(schema, catalog=catalog.name) from e
            logger.debug(f"Catalog {catalog.name!r}: resolved builder for {schema}")
        catalog_builder_map[catalog.name] = builder_map

    return catalog_builder_map
