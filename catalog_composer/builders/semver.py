"""Semver builder.

Generates channels from bundle versions instead of listing them by hand.
An ``olm.semver`` template groups bundle images into maturity tiers:

    schema: olm.semver
    generateMajorChannels: true
    generateMinorChannels: false
    candidate:
      bundles:
        - image: quay.io/example/operator-bundle:v1.0.0-rc1
    stable:
      bundles:
        - image: quay.io/example/operator-bundle:v1.0.0

Each tier yields ``<tier>-v<major>`` and/or ``<tier>-v<major>.<minor>``
channels whose entries form a replaces chain in semantic version order.
"""

import logging
import re
from typing import Any, Optional

from catalog_composer.errors import TemplateBuildError

from . import fbc
from .base import CatalogBuilder, raise_if_cancelled, render_bundle_image
from .schemas import SEMVER_BUILDER_SCHEMA, CancellationCheck, ImageRegistry

logger = logging.getLogger(__name__)

SEMVER_TEMPLATE_SCHEMA = "olm.semver"

# Least to most stable
TIERS = ("candidate", "fast", "stable")

_SEMVER_PATTERN = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


def version_key(version: str) -> tuple:
    """Sort key ordering versions by semver precedence.

    Raises:
        ValueError: If the version is not a semantic version
    """
    match = _SEMVER_PATTERN.match(version)
    if match is None:
        raise ValueError(f"{version!r} is not a semantic version")
    core = (int(match["major"]), int(match["minor"]), int(match["patch"]))
    pre = match["pre"]
    if pre is None:
        return core + ((1,),)
    identifiers = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in pre.split(".")
    )
    return core + ((0, identifiers),)


def bundle_version(bundle: dict[str, Any]) -> str:
    """Read the version from a bundle's olm.package property."""
    for prop in bundle.get("properties") or []:
        if isinstance(prop, dict) and prop.get("type") == fbc.PACKAGE_SCHEMA:
            version = (prop.get("value") or {}).get("version")
            if version:
                return str(version)
    raise TemplateBuildError(f"bundle {bundle.get('name')!r} has no {fbc.PACKAGE_SCHEMA} version property")


class SemverBuilder(CatalogBuilder):
    schema_id = SEMVER_BUILDER_SCHEMA

    def render(
        self,
        cancellation_check: Optional[CancellationCheck],
        registry: Optional[ImageRegistry],
        settings: dict[str, Any],
    ) -> list[dict[str, Any]]:
        document = self.read_template_document(settings, SEMVER_TEMPLATE_SCHEMA)
        major = bool(document.get("generateMajorChannels", True))
        minor = bool(document.get("generateMinorChannels", False))
        if not (major or minor):
            raise TemplateBuildError(
                f"{SEMVER_TEMPLATE_SCHEMA}: one of generateMajorChannels or generateMinorChannels must be true"
            )

        rendered: dict[str, dict[str, Any]] = {}  # image -> bundle blob
        tiers: dict[str, list[dict[str, Any]]] = {}
        for tier in TIERS:
            images = self._tier_images(document, tier)
            if not images:
                continue
            tiers[tier] = []
            for image in images:
                if image not in rendered:
                    raise_if_cancelled(cancellation_check, f"rendering {image!r}")
                    rendered[image] = render_bundle_image(registry, image, self.schema_id)
                tiers[tier].append(rendered[image])

        if not rendered:
            raise TemplateBuildError(f"{SEMVER_TEMPLATE_SCHEMA}: no bundles listed in any tier")

        bundles = list(rendered.values())
        package = self._package_name(bundles)
        keys = {}
        for bundle in bundles:
            version = bundle_version(bundle)
            try:
                keys[bundle["name"]] = version_key(version)
            except ValueError as e:
                raise TemplateBuildError(f"bundle {bundle['name']!r}: {e}") from e

        channels: dict[str, list[str]] = {}
        tier_channels: dict[str, list[str]] = {}
        for tier, tier_bundles in tiers.items():
            for bundle in tier_bundles:
                major_version, minor_version = keys[bundle["name"]][:2]
                names = []
                if major:
                    names.append(f"{tier}-v{major_version}")
                if minor:
                    names.append(f"{tier}-v{major_version}.{minor_version}")
                for name in names:
                    members = channels.setdefault(name, [])
                    if bundle["name"] not in members:
                        members.append(bundle["name"])
                    if name not in tier_channels.setdefault(tier, []):
                        tier_channels[tier].append(name)

        channel_blobs = []
        for name, members in channels.items():
            ordered = sorted(members, key=lambda member: keys[member])
            entries = []
            for index, member in enumerate(ordered):
                entry: dict[str, Any] = {"name": member}
                if index > 0:
                    entry["replaces"] = ordered[index - 1]
                entries.append(entry)
            channel_blobs.append(
                {"schema": fbc.CHANNEL_SCHEMA, "name": name, "package": package, "entries": entries}
            )

        most_stable = [tier for tier in TIERS if tier in tier_channels][-1]
        default_channel = max(
            tier_channels[most_stable],
            key=lambda name: max(keys[member] for member in channels[name]),
        )
        logger.debug(f"{package}: {len(channel_blobs)} channels, default {default_channel}")

        package_blob = {"schema": fbc.PACKAGE_SCHEMA, "name": package, "defaultChannel": default_channel}
        ordered_bundles = sorted(bundles, key=lambda bundle: keys[bundle["name"]])
        return [package_blob, *channel_blobs, *ordered_bundles]

    def _tier_images(self, document: dict[str, Any], tier: str) -> list[str]:
        section = document.get(tier) or {}
        if not isinstance(section, dict):
            raise TemplateBuildError(f"{SEMVER_TEMPLATE_SCHEMA}: {tier} must be a mapping")
        images = []
        for entry in section.get("bundles") or []:
            image = entry.get("image") if isinstance(entry, dict) else None
            if not image:
                raise TemplateBuildError(f"{SEMVER_TEMPLATE_SCHEMA}: {tier} bundles must each have an image")
            images.append(str(image))
        return images

    def _package_name(self, bundles: list[dict[str, Any]]) -> str:
        for bundle in bundles:
            if not bundle.get("name"):
                raise TemplateBuildError(f"{SEMVER_TEMPLATE_SCHEMA}: rendered bundle has no name")
        packages = sorted({str(bundle.get("package") or "") for bundle in bundles})
        if len(packages) != 1 or not packages[0]:
            raise TemplateBuildError(
                f"{SEMVER_TEMPLATE_SCHEMA}: bundles must all belong to one package, found {packages}"
            )
        return packages[0]
