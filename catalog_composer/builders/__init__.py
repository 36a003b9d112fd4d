"""Catalog builders.

A builder turns one component's template into file-based catalog content:
- basic: olm.template.basic documents
- semver: olm.semver documents (channels generated from versions)
- raw: FBC copied through
- custom: output of a user-supplied command
"""

from .registry import DEFAULT_BUILDER_FACTORIES, BuilderRegistry
from .schemas import (
    BASIC_BUILDER_SCHEMA,
    CUSTOM_BUILDER_SCHEMA,
    RAW_BUILDER_SCHEMA,
    SEMVER_BUILDER_SCHEMA,
    Builder,
    BuilderConfig,
    BuilderFactory,
    ImageRegistry,
)
from .semver import SemverBuilder
from .strategies import BasicBuilder, CustomBuilder, RawBuilder

__all__ = [
    "BASIC_BUILDER_SCHEMA",
    "SEMVER_BUILDER_SCHEMA",
    "RAW_BUILDER_SCHEMA",
    "CUSTOM_BUILDER_SCHEMA",
    "Builder",
    "BuilderConfig",
    "BuilderFactory",
    "ImageRegistry",
    "BuilderRegistry",
    "DEFAULT_BUILDER_FACTORIES",
    "BasicBuilder",
    "SemverBuilder",
    "RawBuilder",
    "CustomBuilder",
]
