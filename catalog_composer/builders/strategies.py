"""Basic, raw and custom catalog builders."""

import logging
import shlex
import subprocess
from typing import Any, Optional

from catalog_composer.errors import TemplateBuildError

from . import fbc
from .base import CatalogBuilder, raise_if_cancelled, render_bundle_image
from .schemas import (
    BASIC_BUILDER_SCHEMA,
    CUSTOM_BUILDER_SCHEMA,
    RAW_BUILDER_SCHEMA,
    CancellationCheck,
    ImageRegistry,
)

logger = logging.getLogger(__name__)

BASIC_TEMPLATE_SCHEMA = "olm.template.basic"


class BasicBuilder(CatalogBuilder):
    """Renders an olm.template.basic document.

    Entries are copied through; bundle entries that only name an image are
    rendered through the image registry.
    """

    schema_id = BASIC_BUILDER_SCHEMA

    def render(
        self,
        cancellation_check: Optional[CancellationCheck],
        registry: Optional[ImageRegistry],
        settings: dict[str, Any],
    ) -> list[dict[str, Any]]:
        document = self.read_template_document(settings, BASIC_TEMPLATE_SCHEMA)
        entries = document.get("entries") or []
        if not isinstance(entries, list):
            raise TemplateBuildError(f"{BASIC_TEMPLATE_SCHEMA}: entries must be a list")

        blobs: list[dict[str, Any]] = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise TemplateBuildError(f"{BASIC_TEMPLATE_SCHEMA}: entries must be mappings")
            if _is_image_reference(entry):
                raise_if_cancelled(cancellation_check, f"rendering {entry['image']!r}")
                blobs.append(render_bundle_image(registry, entry["image"], self.schema_id))
            else:
                blobs.append(entry)
        return blobs


def _is_image_reference(entry: dict[str, Any]) -> bool:
    return (
        entry.get("schema") == fbc.BUNDLE_SCHEMA
        and bool(entry.get("image"))
        and set(entry) <= {"schema", "image"}
    )


class RawBuilder(CatalogBuilder):
    """Copies an FBC file through unchanged."""

    schema_id = RAW_BUILDER_SCHEMA

    def render(
        self,
        cancellation_check: Optional[CancellationCheck],
        registry: Optional[ImageRegistry],
        settings: dict[str, Any],
    ) -> list[dict[str, Any]]:
        return self.read_input(settings)


class CustomBuilder(CatalogBuilder):
    """Runs a user-supplied command whose stdout is FBC content.

    The command runs in the catalog's working directory.
    """

    schema_id = CUSTOM_BUILDER_SCHEMA

    def render(
        self,
        cancellation_check: Optional[CancellationCheck],
        registry: Optional[ImageRegistry],
        settings: dict[str, Any],
    ) -> list[dict[str, Any]]:
        command = settings.get("command")
        if not command:
            raise TemplateBuildError(f"{self.schema_id}: config.command must not be empty")
        args = settings.get("args") or []
        if not isinstance(args, list) or not all(isinstance(arg, str) for arg in args):
            raise TemplateBuildError(f"{self.schema_id}: config.args must be a list of strings")

        argv = [str(command), *args]
        printable = " ".join(shlex.quote(part) for part in argv)
        logger.info(f"Running custom template command: {printable}")
        try:
            result = subprocess.run(
                argv,
                cwd=self.config.working_dir or None,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise TemplateBuildError(f"running {printable}: {e}") from e

        if result.returncode != 0:
            raise TemplateBuildError(
                f"running {printable}: exited with code {result.returncode}: {result.stderr.strip()}"
            )

        try:
            return fbc.load_blobs(result.stdout)
        except ValueError as e:
            raise TemplateBuildError(f"parsing output of {printable}: {e}") from e
