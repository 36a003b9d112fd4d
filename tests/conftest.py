"""Shared fixtures: recording builders, fake collaborators, document writers."""

import textwrap
from pathlib import Path
from typing import Any, Optional

import pytest

from catalog_composer.builders.registry import BuilderRegistry
from catalog_composer.builders.schemas import BuilderConfig


class RecordingBuilder:
    """Builder that records every call into a shared log."""

    def __init__(self, config: BuilderConfig, calls: list, fail_build: set, fail_validate: set):
        self.config = config
        self.calls = calls
        self.fail_build = fail_build
        self.fail_validate = fail_validate

    def build(self, cancellation_check, registry, dir, template):
        self.calls.append(("build", dir, template.schema_id, registry, cancellation_check))
        if dir in self.fail_build:
            raise RuntimeError(f"cannot build {dir}")

    def validate(self, cancellation_check, dir):
        self.calls.append(("validate", dir, cancellation_check))
        if dir in self.fail_validate:
            raise RuntimeError(f"invalid content in {dir}")


class RecordingFactory:
    """Builder factory that remembers every builder it constructed."""

    def __init__(self):
        self.calls: list = []
        self.built: list[RecordingBuilder] = []
        self.fail_build: set[str] = set()
        self.fail_validate: set[str] = set()

    def __call__(self, config: BuilderConfig) -> RecordingBuilder:
        builder = RecordingBuilder(config, self.calls, self.fail_build, self.fail_validate)
        self.built.append(builder)
        return builder

    def of(self, kind: str) -> list:
        return [call for call in self.calls if call[0] == kind]


class FakeImageRegistry:
    """Image registry serving pre-rendered bundles."""

    def __init__(self, bundles: Optional[dict[str, dict[str, Any]]] = None):
        self.bundles = bundles or {}
        self.requested: list[str] = []

    def render_bundle(self, image: str) -> dict[str, Any]:
        self.requested.append(image)
        if image not in self.bundles:
            raise LookupError(f"image {image} not found")
        return self.bundles[image]


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code


class FakeHttpGetter:
    def __init__(self, responses: Optional[dict[str, FakeResponse]] = None, error: Optional[Exception] = None):
        self.responses = responses or {}
        self.error = error
        self.urls: list[str] = []

    def get(self, url: str) -> FakeResponse:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.responses[url]


def make_bundle(package: str, version: str, image: Optional[str] = None) -> dict[str, Any]:
    return {
        "schema": "olm.bundle",
        "name": f"{package}.v{version}",
        "package": package,
        "image": image or f"quay.io/example/{package}-bundle:v{version}",
        "properties": [
            {"type": "olm.package", "value": {"packageName": package, "version": version}},
        ],
    }


def dedent(text: str) -> str:
    return textwrap.dedent(text).strip() + "\n"


@pytest.fixture
def factory() -> RecordingFactory:
    return RecordingFactory()


@pytest.fixture
def recording_registry(factory) -> BuilderRegistry:
    """Registry where the basic and semver schemas build RecordingBuilders."""
    return BuilderRegistry({
        "olm.builder.basic": factory,
        "olm.builder.semver": factory,
    })


@pytest.fixture
def write_file(tmp_path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(content))
        return path

    return _write


@pytest.fixture
def stable_catalog_doc() -> str:
    return dedent("""
        schema: olm.composite.catalogs
        catalogs:
          - name: stable
            destination:
              workingDir: /tmp/x
            builders:
              - olm.builder.basic
    """)
