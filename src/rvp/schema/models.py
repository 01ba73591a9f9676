"""
Data model for extraction configs.

A config is a named, ordered list of resources; each resource is a URL
template plus the ordered selectors evaluated against the page it points to.
Resources and selectors are frozen so that nothing can change them while an
extraction is running; editing replaces the element at an index instead.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rvp.exceptions import ConfigError

URL_PARAM_PLACEHOLDER = "%%"


class SelectorType(str, Enum):
    """How the text matched by a selector is typed."""

    STRING = "String"
    NUMBER = "Number"

    def __str__(self) -> str:
        return self.value


class Selector(BaseModel):
    """A named CSS path to a single value on a page."""

    model_config = ConfigDict(frozen=True)

    path: str
    name: str
    parsed_type: SelectorType = SelectorType.STRING

    @field_validator("path", "name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class Resource(BaseModel):
    """A web page and the selectors to evaluate on it."""

    model_config = ConfigDict(frozen=True)

    url: str
    selectors: List[Selector] = Field(default_factory=list)

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @property
    def needs_parameter(self) -> bool:
        return URL_PARAM_PLACEHOLDER in self.url

    def with_parameter(self, value: str) -> Resource:
        """Return a copy whose URL has the placeholder replaced by ``value``, literally."""
        return self.model_copy(update={"url": self.url.replace(URL_PARAM_PLACEHOLDER, value)})

    def __str__(self) -> str:
        return self.url


class Config(BaseModel):
    """A named set of resources replayed together by ``rvp batch``."""

    name: str
    description: Optional[str] = None
    resources: List[Resource] = Field(default_factory=list)

    @property
    def needs_parameters(self) -> bool:
        return any(resource.needs_parameter for resource in self.resources)

    # --- index-based editing ---

    def _check_resource_index(self, index: int) -> None:
        if not 0 <= index < len(self.resources):
            raise ConfigError(f"no resource at index {index} (config has {len(self.resources)})")

    def _check_selector_index(self, resource_index: int, selector_index: int) -> None:
        self._check_resource_index(resource_index)
        count = len(self.resources[resource_index].selectors)
        if not 0 <= selector_index < count:
            raise ConfigError(
                f"no selector at index {selector_index} in resource {resource_index} (resource has {count})"
            )

    def add_resource(self, resource: Resource) -> int:
        if not isinstance(resource, Resource):
            raise ConfigError(f"expected a Resource, got {type(resource).__name__}")
        self.resources.append(resource)
        return len(self.resources) - 1

    def update_resource_url(self, index: int, url: str) -> Resource:
        self._check_resource_index(index)
        try:
            updated = Resource(url=url, selectors=self.resources[index].selectors)
        except ValidationError as e:
            raise ConfigError(f"invalid URL for resource {index}: {e}") from e
        self.resources[index] = updated
        return updated

    def remove_resource(self, index: int) -> Resource:
        self._check_resource_index(index)
        return self.resources.pop(index)

    def add_selector(self, resource_index: int, selector: Selector) -> int:
        self._check_resource_index(resource_index)
        if not isinstance(selector, Selector):
            raise ConfigError(f"expected a Selector, got {type(selector).__name__}")
        resource = self.resources[resource_index]
        selectors = [*resource.selectors, selector]
        self.resources[resource_index] = resource.model_copy(update={"selectors": selectors})
        return len(selectors) - 1

    def update_selector(
        self,
        resource_index: int,
        selector_index: int,
        *,
        name: Optional[str] = None,
        path: Optional[str] = None,
        parsed_type: Optional[SelectorType] = None,
    ) -> Selector:
        self._check_selector_index(resource_index, selector_index)
        resource = self.resources[resource_index]
        current = resource.selectors[selector_index]
        try:
            updated = Selector(
                path=current.path if path is None else path,
                name=current.name if name is None else name,
                parsed_type=current.parsed_type if parsed_type is None else parsed_type,
            )
        except ValidationError as e:
            raise ConfigError(f"invalid selector {selector_index} in resource {resource_index}: {e}") from e
        selectors = list(resource.selectors)
        selectors[selector_index] = updated
        self.resources[resource_index] = resource.model_copy(update={"selectors": selectors})
        return updated

    def remove_selector(self, resource_index: int, selector_index: int) -> Selector:
        self._check_selector_index(resource_index, selector_index)
        resource = self.resources[resource_index]
        selectors = list(resource.selectors)
        removed = selectors.pop(selector_index)
        self.resources[resource_index] = resource.model_copy(update={"selectors": selectors})
        return removed
