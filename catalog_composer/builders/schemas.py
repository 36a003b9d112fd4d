"""Builder capability types.

A builder materializes catalog content for one template schema and can
validate what it produced. Builders are selected by schema identifier
through the BuilderRegistry.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from catalog_composer.composite.schemas import TemplateDefinition

BASIC_BUILDER_SCHEMA = "olm.builder.basic"
SEMVER_BUILDER_SCHEMA = "olm.builder.semver"
RAW_BUILDER_SCHEMA = "olm.builder.raw"
CUSTOM_BUILDER_SCHEMA = "olm.builder.custom"

OUTPUT_TYPES = ("yaml", "json")

# Returns True once the render should stop
CancellationCheck = Callable[[], bool]


class BuilderConfig(BaseModel):
    """Configuration shared by every builder of one catalog."""

    output_type: str = Field(default="yaml", description="Serialization of rendered content: 'yaml' or 'json'")
    working_dir: str = Field(default="", description="The owning catalog's destination.workingDir")


@runtime_checkable
class ImageRegistry(Protocol):
    """Renders bundle images into olm.bundle blobs."""

    def render_bundle(self, image: str) -> dict[str, Any]: ...


@runtime_checkable
class Builder(Protocol):
    """Protocol for catalog builder implementations."""

    def build(
        self,
        cancellation_check: Optional[CancellationCheck],
        registry: Optional[ImageRegistry],
        dir: str,
        template: "TemplateDefinition",
    ) -> None: ...

    def validate(
        self,
        cancellation_check: Optional[CancellationCheck],
        dir: str,
    ) -> None: ...


BuilderFactory = Callable[[BuilderConfig], Builder]
