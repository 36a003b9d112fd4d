"""Tests for the default catalog builders."""

import json
import sys

import pytest
import yaml

from catalog_composer.builders import (
    BasicBuilder,
    BuilderConfig,
    CustomBuilder,
    RawBuilder,
    SemverBuilder,
)
from catalog_composer.builders.fbc import check_blobs, load_blobs
from catalog_composer.builders.semver import version_key
from catalog_composer.composite.schemas import TemplateDefinition
from catalog_composer.errors import TemplateBuildError, TemplateValidationError
from tests.conftest import FakeImageRegistry, make_bundle

PACKAGE = {"schema": "olm.package", "name": "example-operator", "defaultChannel": "stable"}
CHANNEL = {
    "schema": "olm.channel",
    "name": "stable",
    "package": "example-operator",
    "entries": [{"name": "example-operator.v1.0.0"}],
}
BUNDLE = make_bundle("example-operator", "1.0.0")


def template(schema, **config):
    return TemplateDefinition.model_validate({"schema": schema, "config": config})


def read_output(path):
    return load_blobs(path.read_text())


@pytest.fixture
def raw_input(tmp_path):
    path = tmp_path / "input" / "raw.yaml"
    path.parent.mkdir()
    path.write_text(yaml.safe_dump_all([PACKAGE, CHANNEL, BUNDLE], sort_keys=False))
    return path


# --- Raw ---


def test_raw_builder_copies_blobs_as_yaml(tmp_path, raw_input):
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path / "catalog")))

    builder.build(None, None, "example-operator", template("olm.builder.raw", input=str(raw_input)))

    output = tmp_path / "catalog" / "example-operator" / "catalog.yaml"
    assert read_output(output) == [PACKAGE, CHANNEL, BUNDLE]
    assert output.read_text().startswith("---")


def test_raw_builder_writes_json_stream(tmp_path, raw_input):
    builder = RawBuilder(BuilderConfig(output_type="json", working_dir=str(tmp_path)))

    builder.build(None, None, "out", template("olm.builder.raw", input=str(raw_input), output="index.json"))

    text = (tmp_path / "out" / "index.json").read_text()
    assert text.lstrip().startswith("{")
    assert load_blobs(text) == [PACKAGE, CHANNEL, BUNDLE]


def test_builder_rejects_unknown_output_type(tmp_path, raw_input):
    builder = RawBuilder(BuilderConfig(output_type="toml", working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="unsupported output type 'toml'"):
        builder.build(None, None, "out", template("olm.builder.raw", input=str(raw_input)))


def test_builder_rejects_other_template_schema(tmp_path, raw_input):
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="does not match builder schema"):
        builder.build(None, None, "out", template("olm.builder.basic", input=str(raw_input)))


def test_builder_requires_input(tmp_path):
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="config.input must not be empty"):
        builder.build(None, None, "out", template("olm.builder.raw"))


def test_builder_reports_missing_input_file(tmp_path):
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="reading template input"):
        builder.build(None, None, "out", template("olm.builder.raw", input=str(tmp_path / "missing.yaml")))


def test_build_honors_cancellation(tmp_path, raw_input):
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(InterruptedError):
        builder.build(lambda: True, None, "out", template("olm.builder.raw", input=str(raw_input)))

    assert not (tmp_path / "out").exists()


# --- Basic ---


def test_basic_builder_renders_image_references(tmp_path):
    input_path = tmp_path / "basic.yaml"
    input_path.write_text(yaml.safe_dump({
        "schema": "olm.template.basic",
        "entries": [PACKAGE, CHANNEL, {"schema": "olm.bundle", "image": BUNDLE["image"]}],
    }))
    registry = FakeImageRegistry({BUNDLE["image"]: BUNDLE})
    builder = BasicBuilder(BuilderConfig(working_dir=str(tmp_path)))

    builder.build(None, registry, "out", template("olm.builder.basic", input=str(input_path)))

    assert registry.requested == [BUNDLE["image"]]
    assert read_output(tmp_path / "out" / "catalog.yaml") == [PACKAGE, CHANNEL, BUNDLE]


def test_basic_builder_needs_registry_for_images(tmp_path):
    input_path = tmp_path / "basic.yaml"
    input_path.write_text(yaml.safe_dump({
        "schema": "olm.template.basic",
        "entries": [{"schema": "olm.bundle", "image": "quay.io/example/bundle:v1"}],
    }))
    builder = BasicBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="requires an image registry"):
        builder.build(None, None, "out", template("olm.builder.basic", input=str(input_path)))


def test_basic_builder_checks_input_schema(tmp_path, raw_input):
    builder = BasicBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="expected exactly one olm.template.basic document"):
        builder.build(None, None, "out", template("olm.builder.basic", input=str(raw_input)))


def test_basic_builder_wraps_registry_errors(tmp_path):
    input_path = tmp_path / "basic.yaml"
    input_path.write_text(yaml.safe_dump({
        "schema": "olm.template.basic",
        "entries": [{"schema": "olm.bundle", "image": "quay.io/example/unknown:v1"}],
    }))
    builder = BasicBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="rendering bundle image") as exc_info:
        builder.build(None, FakeImageRegistry(), "out", template("olm.builder.basic", input=str(input_path)))

    assert isinstance(exc_info.value.__cause__, LookupError)


# --- Semver ---


def test_version_key_orders_by_semver_precedence():
    versions = ["1.10.0", "1.2.0", "1.2.0-rc.1", "1.2.0-alpha", "0.9.9", "v1.2.1"]

    assert sorted(versions, key=version_key) == [
        "0.9.9", "1.2.0-alpha", "1.2.0-rc.1", "1.2.0", "v1.2.1", "1.10.0",
    ]


def test_version_key_rejects_non_semver():
    with pytest.raises(ValueError):
        version_key("1.2")


def test_semver_builder_generates_channels(tmp_path):
    bundles = {
        "v1.0.0": make_bundle("example-operator", "1.0.0"),
        "v1.1.0": make_bundle("example-operator", "1.1.0"),
        "v2.0.0-rc.1": make_bundle("example-operator", "2.0.0-rc.1"),
    }
    registry = FakeImageRegistry({b["image"]: b for b in bundles.values()})
    input_path = tmp_path / "semver.yaml"
    input_path.write_text(yaml.safe_dump({
        "schema": "olm.semver",
        "generateMajorChannels": True,
        "generateMinorChannels": True,
        "candidate": {"bundles": [{"image": b["image"]} for b in bundles.values()]},
        "stable": {"bundles": [
            {"image": bundles["v1.1.0"]["image"]},
            {"image": bundles["v1.0.0"]["image"]},
        ]},
    }))
    builder = SemverBuilder(BuilderConfig(working_dir=str(tmp_path)))

    builder.build(None, registry, "out", template("olm.builder.semver", input=str(input_path)))

    blobs = read_output(tmp_path / "out" / "catalog.yaml")
    package = blobs[0]
    channels = {b["name"]: b for b in blobs if b["schema"] == "olm.channel"}
    assert package == {"schema": "olm.package", "name": "example-operator", "defaultChannel": "stable-v1"}
    assert sorted(channels) == [
        "candidate-v1", "candidate-v1.0", "candidate-v1.1", "candidate-v2", "candidate-v2.0",
        "stable-v1", "stable-v1.0", "stable-v1.1",
    ]
    assert channels["stable-v1"]["entries"] == [
        {"name": "example-operator.v1.0.0"},
        {"name": "example-operator.v1.1.0", "replaces": "example-operator.v1.0.0"},
    ]
    assert len(registry.requested) == 3
    assert check_blobs(blobs) == []


def test_semver_builder_rejects_mixed_packages(tmp_path):
    first = make_bundle("one", "1.0.0")
    second = make_bundle("two", "1.0.0")
    registry = FakeImageRegistry({first["image"]: first, second["image"]: second})
    input_path = tmp_path / "semver.yaml"
    input_path.write_text(yaml.safe_dump({
        "schema": "olm.semver",
        "stable": {"bundles": [{"image": first["image"]}, {"image": second["image"]}]},
    }))
    builder = SemverBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="one package"):
        builder.build(None, registry, "out", template("olm.builder.semver", input=str(input_path)))


def test_semver_builder_requires_a_channel_kind(tmp_path):
    input_path = tmp_path / "semver.yaml"
    input_path.write_text(yaml.safe_dump({
        "schema": "olm.semver",
        "generateMajorChannels": False,
        "generateMinorChannels": False,
    }))
    builder = SemverBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="generateMajorChannels or generateMinorChannels"):
        builder.build(None, FakeImageRegistry(), "out", template("olm.builder.semver", input=str(input_path)))


# --- Custom ---


def test_custom_builder_writes_command_output(tmp_path):
    script = "import json; print(json.dumps({'schema': 'olm.package', 'name': 'generated'}))"
    builder = CustomBuilder(BuilderConfig(output_type="json", working_dir=str(tmp_path)))

    builder.build(
        None, None, "out",
        template("olm.builder.custom", command=sys.executable, args=["-c", script], output="catalog.json"),
    )

    output = json.loads((tmp_path / "out" / "catalog.json").read_text())
    assert output == {"schema": "olm.package", "name": "generated"}


def test_custom_builder_reports_command_failure(tmp_path):
    script = "import sys; sys.stderr.write('template broken'); sys.exit(3)"
    builder = CustomBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="exited with code 3: template broken"):
        builder.build(None, None, "out", template("olm.builder.custom", command=sys.executable, args=["-c", script]))


def test_custom_builder_requires_command(tmp_path):
    builder = CustomBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateBuildError, match="config.command must not be empty"):
        builder.build(None, None, "out", template("olm.builder.custom"))


# --- Validate ---


def test_validate_accepts_consistent_catalog(tmp_path, raw_input):
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path / "catalog")))
    builder.build(None, None, "out", template("olm.builder.raw", input=str(raw_input)))

    builder.validate(None, "out")


def test_validate_reports_every_problem(tmp_path):
    destination = tmp_path / "out"
    destination.mkdir()
    orphan_channel = dict(CHANNEL, package="missing-operator")
    dangling_entry = dict(CHANNEL, entries=[{"name": "example-operator.v9.9.9"}])
    (destination / "catalog.yaml").write_text(
        yaml.safe_dump_all([PACKAGE, orphan_channel, dangling_entry, {"name": "no-schema"}])
    )
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateValidationError) as exc_info:
        builder.validate(None, "out")

    problems = exc_info.value.problems
    assert len(problems) == 3
    assert any("missing schema" in p for p in problems)
    assert any("'missing-operator' is not declared" in p for p in problems)
    assert any("'example-operator.v9.9.9'" in p for p in problems)


def test_validate_fails_on_missing_directory(tmp_path):
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateValidationError, match="directory does not exist"):
        builder.validate(None, "nothing-here")


def test_validate_fails_on_empty_directory(tmp_path):
    (tmp_path / "out").mkdir()
    builder = RawBuilder(BuilderConfig(working_dir=str(tmp_path)))

    with pytest.raises(TemplateValidationError, match="no catalog files found"):
        builder.validate(None, "out")


def test_load_blobs_reads_concatenated_json():
    text = json.dumps(PACKAGE, indent=2) + "\n" + json.dumps(CHANNEL)

    assert load_blobs(text) == [PACKAGE, CHANNEL]
