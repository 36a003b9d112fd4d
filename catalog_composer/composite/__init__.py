"""Composite template resolution and build dispatch.

Reconciles the catalog configuration with the composite configuration and
runs each component's builder.
"""

from .fetcher import HttpGetter, fetch_catalog_config
from .matrix import BuilderMap, CatalogBuilderMap, build_catalog_builder_map
from .parser import parse_catalog_config, parse_composite_config
from .schemas import (
    CATALOG_SCHEMA,
    COMPOSITE_SCHEMA,
    Catalog,
    CatalogConfig,
    Component,
    CompositeConfig,
    TemplateDefinition,
)
from .template import CompositeTemplate

__all__ = [
    "CATALOG_SCHEMA",
    "COMPOSITE_SCHEMA",
    "Catalog",
    "CatalogConfig",
    "Component",
    "CompositeConfig",
    "TemplateDefinition",
    "BuilderMap",
    "CatalogBuilderMap",
    "CompositeTemplate",
    "HttpGetter",
    "build_catalog_builder_map",
    "fetch_catalog_config",
    "parse_catalog_config",
    "parse_composite_config",
]
