"""Structured error taxonomy.

Every failure carries the target identity and the offending library or
dependency name so the pipeline can report one outcome per target.
"""

from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import (
    ERR_ADAPTER,
    ERR_ARTIFACT,
    ERR_CONFIG,
    ERR_INTERNAL,
    ERR_LOCATOR,
    ERR_POLICY,
    ERR_VERIFICATION,
)


@dataclass
class ScriptError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"
    target: str | None = None
    library: str | None = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "kind": self.kind,
            "message": self.message,
            "target": self.target,
            "library": self.library,
        }


@dataclass
class ConfigError(ScriptError):
    code: int = ERR_CONFIG
    kind: str = "invalid_config"


@dataclass
class LocatorError(ScriptError):
    code: int = ERR_LOCATOR
    kind: str = "locator_error"


@dataclass
class LibraryNotFound(LocatorError):
    kind: str = "not_found"


@dataclass
class NoStaticArtifact(LibraryNotFound):
    kind: str = "no_static_artifact"


@dataclass
class AmbiguousOverride(LocatorError):
    code: int = ERR_CONFIG
    kind: str = "ambiguous_override"


@dataclass
class PolicyError(ScriptError):
    code: int = ERR_POLICY
    kind: str = "policy_error"


@dataclass
class ForbiddenDynamicDependency(PolicyError):
    kind: str = "forbidden_dynamic_dependency"


@dataclass
class AdapterError(ScriptError):
    code: int = ERR_ADAPTER
    kind: str = "unsupported_operation"


@dataclass
class VerificationError(ScriptError):
    code: int = ERR_VERIFICATION
    kind: str = "verification_error"


@dataclass
class ExtraDependency(VerificationError):
    kind: str = "extra_dependency"


@dataclass
class ArtifactError(ScriptError):
    code: int = ERR_ARTIFACT
    kind: str = "artifact_unreadable"
