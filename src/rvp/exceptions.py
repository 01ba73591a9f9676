"""
Error taxonomy for rvp.

Every error the engine raises derives from :class:`RvpError`, so callers
(the CLI in particular) can catch the whole family in one place while still
telling configuration defects apart from per-resource failures.
"""

from __future__ import annotations

from typing import Sequence


class RvpError(Exception):
    """Base class for all rvp errors."""

    pass


class ConfigError(RvpError):
    """Raised when an extraction config cannot be loaded, saved or validated."""

    pass


class SelectorError(ConfigError):
    """Raised when a selector path is not valid CSS."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"invalid selector {path!r}: {reason}")


class ParameterError(RvpError):
    """Raised when URL parameters do not fit the resources of a config."""

    pass


class MissingParametersError(ParameterError):
    """Raised when resources with a placeholder were given no parameter."""

    def __init__(self, indices: Sequence[int]) -> None:
        self.indices = list(indices)
        positions = ", ".join(str(i) for i in self.indices)
        super().__init__(f"this config needs parameters for resource(s) {positions}")


class ParamCountMismatchError(ParameterError):
    """Raised when the positional parameter count differs from the resource count."""

    def __init__(self, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"expected {expected} parameter(s), one per resource, got {got}")


class FetchError(RvpError):
    """Raised when a page cannot be retrieved (DNS, connection, TLS, timeout)."""

    kind = "network"

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"failed to fetch {url}: {reason}")


class TypingError(RvpError):
    """Raised when matched text cannot be coerced into the declared type."""

    pass


class NotANumberError(TypingError):
    def __init__(self, field: str, raw: str) -> None:
        self.field = field
        self.raw = raw
        super().__init__(f"failed to parse number for {field!r} from {raw!r}")


class ExtractionError(RvpError):
    """Raised when one field of a resource fails; the whole resource is discarded."""

    def __init__(self, field: str, cause: Exception) -> None:
        self.field = field
        self.cause = cause
        super().__init__(f"field {field!r}: {cause}")
