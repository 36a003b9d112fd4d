"""Builder registry - maps template schemas to builder factories.

Each CompositeTemplate owns its own registry, seeded from
DEFAULT_BUILDER_FACTORIES. Registering a schema on one registry never
affects another.
"""

import logging
from typing import Mapping, Optional

from catalog_composer.errors import UnknownBuilderSchemaError

from .schemas import (
    BASIC_BUILDER_SCHEMA,
    CUSTOM_BUILDER_SCHEMA,
    RAW_BUILDER_SCHEMA,
    SEMVER_BUILDER_SCHEMA,
    Builder,
    BuilderConfig,
    BuilderFactory,
)
from .semver import SemverBuilder
from .strategies import BasicBuilder, CustomBuilder, RawBuilder

logger = logging.getLogger(__name__)

DEFAULT_BUILDER_FACTORIES: Mapping[str, BuilderFactory] = {
    BASIC_BUILDER_SCHEMA: BasicBuilder,
    SEMVER_BUILDER_SCHEMA: SemverBuilder,
    RAW_BUILDER_SCHEMA: RawBuilder,
    CUSTOM_BUILDER_SCHEMA: CustomBuilder,
}


class BuilderRegistry:
    """Registry of builder factories keyed by template schema."""

    def __init__(self, factories: Optional[Mapping[str, BuilderFactory]] = None):
        self._factories: dict[str, BuilderFactory] = dict(factories or {})

    @classmethod
    def with_defaults(cls) -> "BuilderRegistry":
        """Create a registry holding the basic, semver, raw and custom builders."""
        return cls(DEFAULT_BUILDER_FACTORIES)

    def register(self, schema: str, factory: BuilderFactory) -> None:
        """Associate a schema with a factory, replacing any existing entry."""
        if schema in self:
            logger.debug(f"Overriding builder factory for schema: {schema}")
        self._factories[schema] = factory

    def resolve(self, schema: str, config: BuilderConfig) -> Builder:
        """Construct a new builder for a schema.

        Raises:
            UnknownBuilderSchemaError: If no factory is registered for the schema
        """
        factory = self._factories.get(schema)
        if factory is None:
            raise UnknownBuilderSchemaError(schema)
        return factory(config)

    def schemas(self) -> list[str]:
        """Get all registered schema identifiers."""
        return list(self._factories.keys())

    def __contains__(self, schema: object) -> bool:
        return schema in self._factories
