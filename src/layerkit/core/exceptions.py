from __future__ import annotations

from typing import Any, Dict, Mapping


class LayerKitError(Exception):
    """Base exception for layerkit."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigurationError(LayerKitError, ValueError):
    """Raised when the layer manager configuration is invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        LayerKitError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class BuildConfigError(ConfigurationError):
    """Raised when the bundler configuration file cannot be loaded."""


class ManifestError(ConfigurationError):
    """Raised when package.json is missing or unreadable."""


class ServiceDefinitionError(ConfigurationError):
    """Raised when the service definition file is missing or unparsable."""


class CompilationError(LayerKitError, RuntimeError):
    """Raised when the bundler fails or reports compilation errors."""

    def __init__(
        self,
        message: str,
        *,
        errors: list[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if errors:
            ctx["errors"] = list(errors)
        LayerKitError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)


class InstallError(LayerKitError, RuntimeError):
    """Raised when the package installer exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        layer: str | None = None,
        command: str | None = None,
        returncode: int | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if layer:
            ctx["layer"] = layer
        if command:
            ctx["command"] = command
        if returncode is not None:
            ctx["returncode"] = returncode
        LayerKitError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)


__all__ = [
    "LayerKitError",
    "ConfigurationError",
    "BuildConfigError",
    "ManifestError",
    "ServiceDefinitionError",
    "CompilationError",
    "InstallError",
]
