"""
Per-resource extraction: one fetch, every selector, in declared order.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from rvp.config.config import ExtractionSettings
from rvp.exceptions import ExtractionError, RvpError
from rvp.schema.models import Resource, Selector, SelectorType

from .fetcher import HtmlFetcher
from .selectors import compile_selector, match
from .values import ParsedValue, Value, type_value

logger = structlog.get_logger(__name__)


class Extractor:
    """
    Extracts the values of one resource at a time.

    The page is fetched exactly once and every selector is evaluated against
    that single document. Extraction is all-or-nothing per resource: the first
    field that fails aborts the resource and its partial values are dropped.
    """

    def __init__(self, fetcher: HtmlFetcher, settings: Optional[ExtractionSettings] = None) -> None:
        self.fetcher = fetcher
        self.settings = settings or ExtractionSettings()

    async def extract(self, resource: Resource) -> List[ParsedValue]:
        """
        Fetch ``resource.url`` and evaluate its selectors.

        Raises:
            FetchError: the page could not be retrieved
            ExtractionError: a field could not be matched or typed
        """
        if resource.needs_parameter:
            raise ExtractionError("url", ValueError(f"unsubstituted placeholder in {resource.url}"))

        document = await self.fetcher.fetch(resource.url)

        values: List[ParsedValue] = []
        for selector in resource.selectors:
            try:
                raw = match(document, compile_selector(selector.path))
                value = type_value(raw, selector, self.settings.nan_policy)
            except RvpError as e:
                logger.warning("Field extraction failed", url=resource.url, field=selector.name, error=str(e))
                raise ExtractionError(selector.name, e) from e
            values.append(ParsedValue(name=selector.name, value=value))

        logger.debug("Resource extracted", url=resource.url, fields=len(values))
        return values

    async def grab_one(self, path: str, url: str, parsed_type: SelectorType = SelectorType.STRING) -> Value:
        """Extract a single ad-hoc value from ``url``."""
        selector = Selector(path=path, name=path, parsed_type=parsed_type)
        compile_selector(path)
        values = await self.extract(Resource(url=url, selectors=[selector]))
        return values[0].value
