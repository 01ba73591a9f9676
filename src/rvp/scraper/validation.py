"""
Up-front validation of extraction configs.

Runs before any network activity so that a bad selector or URL in the last
resource does not surface only after the first ones have been fetched.
"""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse

from rvp.exceptions import ConfigError, SelectorError
from rvp.schema.models import URL_PARAM_PLACEHOLDER, Config, Resource

from .selectors import compile_selector


class URLValidationError(ConfigError):
    """Raised when a resource URL is not an absolute http(s) URL."""

    pass


def validate_url(url: str) -> None:
    # stand-in value so a placeholder inside the host still parses
    try:
        parsed = urlparse(url.replace(URL_PARAM_PLACEHOLDER, "0"))
    except ValueError as e:
        raise URLValidationError(f"resource URL is malformed: {url!r} ({e})") from e
    if parsed.scheme not in ("http", "https"):
        raise URLValidationError(f"resource URL must use http or https: {url!r}")
    if not parsed.netloc:
        raise URLValidationError(f"resource URL has no host: {url!r}")


def validate_resources(resources: Iterable[Resource]) -> None:
    """Compile every selector and check every URL, raising on the first defect."""
    for index, resource in enumerate(resources):
        try:
            validate_url(resource.url)
        except URLValidationError as e:
            raise URLValidationError(f"resource {index}: {e}") from e

        for selector in resource.selectors:
            try:
                compile_selector(selector.path)
            except SelectorError as e:
                raise SelectorError(e.path, f"{e.reason} (resource {index}, field {selector.name!r})") from e


def validate_config(config: Config) -> None:
    validate_resources(config.resources)
