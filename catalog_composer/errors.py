"""Error taxonomy for composite template rendering.

Every failure is fatal to the render. Errors raised while processing a
component wrap the builder's own error, which stays reachable through
``__cause__``.
"""

from typing import Optional


class CompositeTemplateError(Exception):
    """Base class for all composite template errors."""


# --- Fetching ---


class ConfigOpenError(CompositeTemplateError):
    """A local configuration file could not be opened."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"opening catalog config file {path!r}: {reason}")


class ConfigFetchError(CompositeTemplateError):
    """A remote configuration file could not be retrieved."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"fetching remote catalog config file {path!r}: {reason}")


# --- Parsing ---


class ConfigDecodeError(CompositeTemplateError):
    """The document is neither valid YAML nor valid JSON."""


class ConfigUnmarshalError(CompositeTemplateError):
    """The decoded document does not match the expected structure."""


class SchemaMismatchError(CompositeTemplateError):
    """The document's ``schema`` field is not the expected constant."""

    def __init__(self, kind: str, expected: str, actual: str):
        self.kind = kind
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{kind} configuration file has unknown schema {actual!r}, should be {expected!r}"
        )


# --- Matrix assembly ---


class CatalogValidationError(CompositeTemplateError):
    """One or more catalogs failed field validation.

    ``errors`` maps each offending catalog name to all of its field errors.
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        lines = []
        for catalog, problems in errors.items():
            lines.append(f"\nCatalog {catalog}:")
            lines.extend(f"  - {problem}" for problem in problems)
        super().__init__(
            "catalog configuration file field validation failed: " + "\n".join(lines)
        )


class UnknownBuilderSchemaError(CompositeTemplateError):
    """No builder factory is registered for a schema."""

    def __init__(self, schema: str, catalog: Optional[str] = None):
        self.schema = schema
        self.catalog = catalog
        if catalog is None:
            message = f"unknown schema {schema!r}"
        else:
            message = f"getting builder {schema!r} for catalog {catalog!r}: unknown schema {schema!r}"
        super().__init__(message)


# --- Component processing ---


class UnknownComponentCatalogError(CompositeTemplateError):
    """A component names a catalog absent from the catalog configuration."""

    def __init__(self, component: str, available: list[str]):
        self.component = component
        self.available = available
        listed = ", ".join(available) if available else "<none>"
        super().__init__(
            f"building component {component!r}: component does not exist in the catalog "
            f"configuration. Available components are: {listed}"
        )


class UnknownComponentSchemaError(CompositeTemplateError):
    """A component requests a template schema its catalog does not support."""

    def __init__(self, component: str, schema: str):
        self.component = component
        self.schema = schema
        super().__init__(
            f"building component {component!r}: no builder found for template schema {schema!r}"
        )


class ComponentBuildError(CompositeTemplateError):
    """The builder failed while building a component."""

    def __init__(self, component: str, error: BaseException):
        self.component = component
        super().__init__(f"building component {component!r}: {error}")


class ComponentValidateError(CompositeTemplateError):
    """The builder failed while validating a component's output."""

    def __init__(self, component: str, error: BaseException):
        self.component = component
        super().__init__(f"validating component {component!r}: {error}")


# --- Raised by builders ---


class TemplateBuildError(CompositeTemplateError):
    """A builder could not render its template."""


class TemplateValidationError(CompositeTemplateError):
    """Rendered catalog content is inconsistent."""

    def __init__(self, directory: str, problems: list[str]):
        self.directory = directory
        self.problems = problems
        detail = "\n".join(f"  - {problem}" for problem in problems)
        super().__init__(f"catalog content in {directory!r} is invalid:\n{detail}")
