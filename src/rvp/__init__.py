"""
rvp - Remote Value Parser.

Extracts values from static web pages with CSS selectors, driven by named
extraction configs that are replayed in batch with URL parameters.
"""

from __future__ import annotations

__version__ = "0.2.0"

from .config import Settings
from .schema import Config, Resource, Selector, SelectorType, load_config, save_config
from .scraper import BatchRunner, Extractor, HtmlFetcher, ParsedValue, normalize, run_batch

__all__ = [
    "__version__",
    "BatchRunner",
    "Config",
    "Extractor",
    "HtmlFetcher",
    "ParsedValue",
    "Resource",
    "Selector",
    "SelectorType",
    "Settings",
    "load_config",
    "normalize",
    "run_batch",
    "save_config",
]
