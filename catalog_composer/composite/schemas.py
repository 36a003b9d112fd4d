"""Schemas for the catalog and composite configuration documents.

Both documents are authored independently:
- CatalogConfig: which catalogs exist and which builder schemas each supports
- CompositeConfig: which components contribute to which catalog, and how

Missing keys decode to empty values so that field-level problems surface
during matrix assembly (where they are aggregated), not as shape errors.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

CATALOG_SCHEMA = "olm.composite.catalogs"
COMPOSITE_SCHEMA = "olm.composite"


class CatalogDestination(BaseModel):
    """Where a catalog's content lives."""

    model_config = ConfigDict(populate_by_name=True)

    working_dir: str = Field(
        default="",
        alias="workingDir",
        description="Directory the catalog's builders write beneath (required)",
    )


class Catalog(BaseModel):
    """A named target output definition."""

    name: str = Field(default="", description="Unique catalog name")
    destination: CatalogDestination = Field(default_factory=CatalogDestination)
    builders: list[str] = Field(
        default_factory=list,
        description="Builder schemas this catalog supports (e.g. 'olm.builder.basic')",
    )


class CatalogConfig(BaseModel):
    """Top-level catalog configuration document."""

    model_config = ConfigDict(populate_by_name=True)

    schema_id: str = Field(default="", alias="schema")
    catalogs: list[Catalog] = Field(default_factory=list)


class ComponentDestination(BaseModel):
    path: str = Field(default="", description="Where the builder writes, relative to the catalog's workingDir")


class TemplateDefinition(BaseModel):
    """Schema-specific template strategy.

    Only ``schema`` is interpreted here; everything else is for the builder.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    schema_id: str = Field(default="", alias="schema")
    config: Optional[dict[str, Any]] = Field(
        default=None,
        description="Builder-specific settings (input/output files, command, ...)",
    )


class BuildStrategy(BaseModel):
    name: str = ""
    template: TemplateDefinition = Field(default_factory=TemplateDefinition)


class Component(BaseModel):
    """A contribution to one catalog."""

    name: str = Field(default="", description="Name of the catalog this component builds")
    destination: ComponentDestination = Field(default_factory=ComponentDestination)
    strategy: BuildStrategy = Field(default_factory=BuildStrategy)


class CompositeConfig(BaseModel):
    """Top-level composite/contribution configuration document."""

    model_config = ConfigDict(populate_by_name=True)

    schema_id: str = Field(default="", alias="schema")
    components: list[Component] = Field(default_factory=list)
