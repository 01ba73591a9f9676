"""
rvp extraction engine.

Leaf first:
- fetcher: one GET per resource, HTML parsed into a tree
- selectors: CSS path to first-match text, "" when nothing matches
- numbers: noisy numeric text to float
- values: declared types applied to matched text
- extractor: one resource, one fetch, every selector in order
- batch: many resources, parameterized, concurrent, input-ordered
"""

from .batch import BatchResult, BatchRunner, ResourceResult, parameterize, run_batch
from .extractor import Extractor
from .fetcher import Document, HtmlFetcher, parse_document
from .numbers import normalize
from .selectors import compile_selector, match
from .validation import validate_config, validate_resources
from .values import ParsedValue, type_value

__all__ = [
    "BatchResult",
    "BatchRunner",
    "Document",
    "Extractor",
    "HtmlFetcher",
    "ParsedValue",
    "ResourceResult",
    "compile_selector",
    "match",
    "normalize",
    "parameterize",
    "parse_document",
    "run_batch",
    "type_value",
    "validate_config",
    "validate_resources",
]
