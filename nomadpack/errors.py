"""Error types and error-context helpers used to report rich failures."""

from __future__ import annotations

from dataclasses import dataclass, field


class CacheError(Exception):
    """Base class for failures raised by cache operations."""

    message = "cache error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)


class CachePathRequiredError(CacheError):
    message = "cache path is required"


class InvalidCachePathError(CacheError):
    message = "invalid cache path"


class InvalidRegistryRevisionError(CacheError):
    message = "invalid revision"


class InvalidRegistrySourceError(CacheError):
    message = "invalid registry source"


class NoRegistriesAddedError(CacheError):
    message = "no registries were added to the cache"


class PackNameRequiredError(CacheError):
    message = "pack name is required"


class PackNotFoundError(CacheError):
    message = "pack not found"


class RegistryNameRequiredError(CacheError):
    message = "registry name is required"


class RegistryNotFoundError(CacheError):
    message = "registry not found"


class RegistrySourceRequiredError(CacheError):
    message = "registry source is required"


class NoTemplatesRenderedError(Exception):
    """Raised when a render run produces no parent templates."""

    message = "no templates were rendered by the renderer process run"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)


# Prefixes used when building cache error contexts.
REGISTRY_CONTEXT_PREFIX_CACHE_PATH = "Cache Path: "
REGISTRY_CONTEXT_PREFIX_REGISTRY_SOURCE = "Registry Source: "
REGISTRY_CONTEXT_PREFIX_REGISTRY_NAME = "Registry Name: "
REGISTRY_CONTEXT_PREFIX_PACK_NAME = "Pack Name: "
REGISTRY_CONTEXT_PREFIX_REF = "Ref: "

# Prefixes used when building UI error contexts.
UI_CONTEXT_PREFIX_GIT_REGISTRY_URL = "Git Registry URL: "
UI_CONTEXT_PREFIX_PACK_NAME = "Pack Name: "
UI_CONTEXT_PREFIX_PACK_PATH = "Pack Path: "
UI_CONTEXT_PREFIX_PACK_REF = "Pack Ref: "
UI_CONTEXT_PREFIX_TEMPLATE_NAME = "Template Name: "
UI_CONTEXT_PREFIX_JOB_NAME = "Job Name: "
UI_CONTEXT_PREFIX_DEPLOYMENT_NAME = "Deployment Name: "
UI_CONTEXT_PREFIX_REGION = "Region: "
UI_CONTEXT_PREFIX_HCL_RANGE = "HCL Range: "
UI_CONTEXT_PREFIX_REGISTRY_NAME = "Registry Name: "
UI_CONTEXT_PREFIX_REGISTRY_PATH = "Registry Path: "
UI_CONTEXT_PREFIX_REGISTRY_TARGET = "Registry Target: "


@dataclass
class ErrorContext:
    """Context strings gathered while performing cache operations."""

    contexts: list[str] = field(default_factory=list)

    def add(self, prefix: str, val: str) -> None:
        """Append ``prefix + val`` to the stored contexts."""
        self.contexts.append(prefix + val)

    def append(self, context: ErrorContext) -> None:
        """Append every entry of another context to this one."""
        self.contexts.extend(context.get_all())

    def copy(self) -> ErrorContext:
        """Return a new context holding the same entries."""
        return ErrorContext(contexts=list(self.contexts))

    def get_all(self) -> list[str]:
        """Return all stored context strings."""
        return self.contexts

    def __str__(self) -> str:
        return "\n".join(self.contexts)


@dataclass
class UIErrorContext:
    """Context strings shown to users alongside an error."""

    contexts: list[str] = field(default_factory=list)

    def add(self, prefix: str, val: str) -> None:
        """Append ``prefix + val`` to the stored contexts."""
        self.contexts.append(prefix + val)

    def append(self, context: UIErrorContext) -> None:
        """Append every entry of another context to this one."""
        self.contexts.extend(context.get_all())

    def copy(self) -> UIErrorContext:
        """Return a new context holding the same entries."""
        return UIErrorContext(contexts=list(self.contexts))

    def get_all(self) -> list[str]:
        """Return all stored context strings."""
        return self.contexts

    def __str__(self) -> str:
        return "\n".join(self.contexts)


@dataclass(frozen=True)
class Pos:
    """A position within a source file."""

    line: int = 0
    column: int = 0
    byte: int = 0


@dataclass(frozen=True)
class Range:
    """A span of a source file."""

    filename: str = ""
    start: Pos = field(default_factory=Pos)
    end: Pos = field(default_factory=Pos)

    def __str__(self) -> str:
        if self.start.line == self.end.line:
            return (
                f"{self.filename}:{self.start.line},{self.start.column}"
                f"-{self.end.column}"
            )
        return (
            f"{self.filename}:{self.start.line},{self.start.column}"
            f"-{self.end.line},{self.end.column}"
        )


@dataclass
class Diagnostic:
    """A single configuration diagnostic."""

    summary: str = ""
    detail: str = ""
    subject: Range = field(default_factory=Range)
    severity: str = "error"


class WrappedUIContext(Exception):
    """An error with a short subject and context for console output."""

    def __init__(
        self,
        err: BaseException,
        subject: str,
        context: UIErrorContext | None = None,
    ) -> None:
        self.err = err
        self.subject = subject
        self.context = context if context is not None else UIErrorContext()
        super().__init__(subject)

    def __str__(self) -> str:
        return f"{self.subject}: {self.err}: \n{self.context}"


def hcl_diags_to_wrapped_ui_context(diags) -> list[WrappedUIContext]:
    """Convert diagnostics into wrapped UI errors."""
    wrapped = []
    for diag in diags:
        context = UIErrorContext()
        context.add(UI_CONTEXT_PREFIX_HCL_RANGE, str(diag.subject))
        wrapped.append(
            WrappedUIContext(
                err=Exception(diag.detail), subject=diag.summary, context=context
            )
        )
    return wrapped