"""Composite template rendering.

A render is one linear pass:
1. Parse the catalog and composite documents (fatal on any error)
2. Assemble the catalog-builder matrix (fatal on any error)
3. For each component, in document order: build, then optionally validate

Processing stops at the first failing component; components already built
are left in place.
"""

import logging
import os
from typing import Mapping, Optional

from catalog_composer.builders.registry import BuilderRegistry
from catalog_composer.builders.schemas import BuilderFactory, CancellationCheck, ImageRegistry
from catalog_composer.errors import (
    ComponentBuildError,
    ComponentValidateError,
    ConfigDecodeError,
    UnknownComponentCatalogError,
    UnknownComponentSchemaError,
)

from .matrix import CatalogBuilderMap, build_catalog_builder_map
from .parser import ConfigSource, parse_catalog_config, parse_composite_config
from .schemas import Component

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_TYPE = os.environ.get("CATALOG_COMPOSER_OUTPUT_TYPE", "yaml")


class CompositeTemplate:
    """Renders the components of a composite configuration into their catalogs.

    Example:
        template = CompositeTemplate(
            catalog_file=open("catalogs.yaml", "rb"),
            contribution_file=open("contributions.yaml", "rb"),
            registry=my_image_registry,
        )
        template.render(validate=True)
    """

    def __init__(
        self,
        catalog_file: Optional[ConfigSource] = None,
        contribution_file: Optional[ConfigSource] = None,
        output_type: str = DEFAULT_OUTPUT_TYPE,
        registry: Optional[ImageRegistry] = None,
        validate: bool = False,
        builder_registry: Optional[BuilderRegistry] = None,
        extra_builders: Optional[Mapping[str, BuilderFactory]] = None,
    ):
        self.catalog_file = catalog_file
        self.contribution_file = contribution_file
        self.output_type = output_type
        self.registry = registry
        self.validate = validate
        self.builder_registry = builder_registry if builder_registry is not None else BuilderRegistry.with_defaults()
        for schema, factory in (extra_builders or {}).items():
            self.builder_registry.register(schema, factory)

    def register_builder(self, schema: str, factory: BuilderFactory) -> None:
        """Register (or override) the builder used for a template schema."""
        self.builder_registry.register(schema, factory)

    def render(
        self,
        cancellation_check: Optional[CancellationCheck] = None,
        validate: Optional[bool] = None,
    ) -> None:
        """Build every component, validating each one if requested.

        Args:
            cancellation_check: Passed to every build/validate call
            validate: Overrides the ``validate`` flag given at construction

        Raises:
            CompositeTemplateError: The first error encountered
        """
        should_validate = self.validate if validate is None else validate

        if self.catalog_file is None:
            raise ConfigDecodeError("decoding catalog config: no catalog configuration provided")
        if self.contribution_file is None:
            raise ConfigDecodeError("decoding composite config: no composite configuration provided")

        catalog_config = parse_catalog_config(self.catalog_file)
        composite_config = parse_composite_config(self.contribution_file)
        logger.info(
            f"Parsed {len(catalog_config.catalogs)} catalogs and "
            f"{len(composite_config.components)} components"
        )

        catalog_builder_map = build_catalog_builder_map(
            catalog_config.catalogs, self.output_type, self.builder_registry
        )
        logger.info(f"Assembled builders for catalogs: {', '.join(catalog_builder_map) or '<none>'}")

        for component in composite_config.components:
            self._process_component(component, catalog_builder_map, cancellation_check, should_validate)

        logger.info(f"Rendered {len(composite_config.components)} components")

    def _process_component(
        self,
        component: Component,
        catalog_builder_map: CatalogBuilderMap,
        cancellation_check: Optional[CancellationCheck],
        should_validate: bool,
    ) -> None:
        builder_map = catalog_builder_map.get(component.name)
        if builder_map is None:
            raise UnknownComponentCatalogError(component.name, list(catalog_builder_map))

        schema = component.strategy.template.schema_id
        builder = builder_map.get(schema)
        if builder is None:
            raise UnknownComponentSchemaError(component.name, schema)

        path = component.destination.path
        logger.info(f"Building component {component.name!r} with {schema} into {path!r}")
        try:
            builder.build(cancellation_check, self.registry, path, component.strategy.template)
        except Exception as e:
            raise ComponentBuildError(component.name, e) from e

        if should_validate:
            logger.info(f"Validating component {component.name!r}")
            try:
                builder.validate(cancellation_check, path)
            except Exception as e:
                raise ComponentValidateError(component.name, e) from e
