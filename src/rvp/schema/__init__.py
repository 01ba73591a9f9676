"""Extraction config model and its TOML/JSON persistence."""

from .formats import ConfigFormat, dumps_config, load_config, loads_config, save_config
from .models import URL_PARAM_PLACEHOLDER, Config, Resource, Selector, SelectorType

__all__ = [
    "URL_PARAM_PLACEHOLDER",
    "Config",
    "ConfigFormat",
    "Resource",
    "Selector",
    "SelectorType",
    "dumps_config",
    "load_config",
    "loads_config",
    "save_config",
]
