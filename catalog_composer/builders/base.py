"""Shared build/validate flow for the default builders.

Subclasses only decide how a template turns into FBC blobs (``render``);
resolving paths, serializing output and validating the result live here.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from catalog_composer.errors import TemplateBuildError, TemplateValidationError

from . import fbc
from .schemas import (
    OUTPUT_TYPES,
    BuilderConfig,
    CancellationCheck,
    ImageRegistry,
)

if TYPE_CHECKING:
    from catalog_composer.composite.schemas import TemplateDefinition

logger = logging.getLogger(__name__)


def raise_if_cancelled(cancellation_check: Optional[CancellationCheck], action: str) -> None:
    if cancellation_check is not None and cancellation_check():
        raise InterruptedError(f"{action}: cancelled")


class CatalogBuilder:
    """Base class for builders that write FBC files beneath a working directory."""

    schema_id: str = ""

    def __init__(self, config: BuilderConfig):
        self.config = config

    def __repr__(self) -> str:
        return f"{type(self).__name__}(output_type={self.config.output_type!r}, working_dir={self.config.working_dir!r})"

    def destination(self, dir: str) -> Path:
        """Resolve a component's destination path against the working directory."""
        if self.config.working_dir:
            return Path(self.config.working_dir) / dir
        return Path(dir)

    def build(
        self,
        cancellation_check: Optional[CancellationCheck],
        registry: Optional[ImageRegistry],
        dir: str,
        template: "TemplateDefinition",
    ) -> None:
        raise_if_cancelled(cancellation_check, f"building {dir!r}")

        if template.schema_id != self.schema_id:
            raise TemplateBuildError(
                f"template schema {template.schema_id!r} does not match builder schema {self.schema_id!r}"
            )
        if self.config.output_type not in OUTPUT_TYPES:
            raise TemplateBuildError(
                f"unsupported output type {self.config.output_type!r}, expected one of {', '.join(OUTPUT_TYPES)}"
            )

        settings = template.config or {}
        blobs = self.render(cancellation_check, registry, settings)

        output_path = self.destination(dir) / self.output_name(settings)
        try:
            fbc.write_file(output_path, blobs, self.config.output_type)
        except OSError as e:
            raise TemplateBuildError(f"writing {output_path}: {e}") from e
        logger.info(f"{self.schema_id}: wrote {len(blobs)} blobs to {output_path}")

    def validate(
        self,
        cancellation_check: Optional[CancellationCheck],
        dir: str,
    ) -> None:
        raise_if_cancelled(cancellation_check, f"validating {dir!r}")

        destination = self.destination(dir)
        if not destination.is_dir():
            raise TemplateValidationError(str(destination), ["directory does not exist"])

        files = sorted(
            path for path in destination.rglob("*")
            if path.is_file() and path.suffix.lower() in fbc.FBC_SUFFIXES
        )
        if not files:
            raise TemplateValidationError(str(destination), ["no catalog files found"])

        blobs: list[dict[str, Any]] = []
        problems: list[str] = []
        for path in files:
            try:
                blobs.extend(fbc.load_file(path))
            except (OSError, ValueError) as e:
                problems.append(f"{path.relative_to(destination)}: {e}")
        problems.extend(fbc.check_blobs(blobs))

        if problems:
            raise TemplateValidationError(str(destination), problems)
        logger.debug(f"{self.schema_id}: {len(blobs)} blobs in {destination} are valid")

    def output_name(self, settings: dict[str, Any]) -> str:
        return str(settings.get("output") or f"catalog.{self.config.output_type}")

    def read_input(self, settings: dict[str, Any]) -> list[dict[str, Any]]:
        """Load the blobs of the template's ``config.input`` file."""
        input_path = settings.get("input")
        if not input_path:
            raise TemplateBuildError(f"{self.schema_id}: config.input must not be empty")
        try:
            return fbc.load_file(Path(input_path))
        except OSError as e:
            raise TemplateBuildError(f"reading template input {input_path!r}: {e}") from e
        except ValueError as e:
            raise TemplateBuildError(f"parsing template input {input_path!r}: {e}") from e

    def read_template_document(self, settings: dict[str, Any], expected_schema: str) -> dict[str, Any]:
        """Load a single-document template input and check its schema."""
        documents = self.read_input(settings)
        if len(documents) != 1:
            raise TemplateBuildError(
                f"{self.schema_id}: expected exactly one {expected_schema} document, found {len(documents)}"
            )
        document = documents[0]
        if document.get("schema") != expected_schema:
            raise TemplateBuildError(
                f"{self.schema_id}: template input has schema {document.get('schema')!r}, should be {expected_schema!r}"
            )
        return document

    def render(
        self,
        cancellation_check: Optional[CancellationCheck],
        registry: Optional[ImageRegistry],
        settings: dict[str, Any],
    ) -> list[dict[str, Any]]:
        raise NotImplementedError


def render_bundle_image(registry: Optional[ImageRegistry], image: str, schema_id: str) -> dict[str, Any]:
    """Render a bundle image through the image registry."""
    if registry is None:
        raise TemplateBuildError(f"{schema_id}: bundle image {image!r} requires an image registry")
    try:
        blob = registry.render_bundle(image)
    except Exception as e:
        raise TemplateBuildError(f"rendering bundle image {image!r}: {e}") from e
    if not isinstance(blob, dict):
        raise TemplateBuildError(f"rendering bundle image {image!r}: registry returned {type(blob).__name__}")
    return blob
