"""
CSS selector matching against a parsed page.

Selector syntax is handled by soupsieve, the engine behind BeautifulSoup's
``select``. Compiling is separate from matching so that a malformed path is
reported when a config is validated, before anything is fetched.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Union

import soupsieve
import structlog

from rvp.exceptions import SelectorError

if TYPE_CHECKING:
    from .fetcher import Document

logger = structlog.get_logger(__name__)


@lru_cache(maxsize=512)
def compile_selector(path: str) -> soupsieve.SoupSieve:
    """Compile ``path``, raising :class:`SelectorError` if it is not valid CSS."""
    try:
        return soupsieve.compile(path)
    except soupsieve.SelectorSyntaxError as e:
        raise SelectorError(path, str(e).splitlines()[0]) from e


def match(document: Document, selector: Union[str, soupsieve.SoupSieve]) -> str:
    """Return the text of the first element matching ``selector``.

    A selector that matches nothing yields ``""``; that is not an error, it
    lets callers treat fields as optional. The text is every descendant text
    node of the element, stripped, joined by single spaces.
    """
    compiled = compile_selector(selector) if isinstance(selector, str) else selector
    element = compiled.select_one(document.tree)
    if element is None:
        logger.debug("Selector matched nothing", selector=compiled.pattern, url=document.url)
        return ""
    return element.get_text(" ", strip=True)
