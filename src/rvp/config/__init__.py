from .config import (
    BatchSettings,
    ExtractionSettings,
    FetchConfig,
    MonitoringConfig,
    Settings,
    find_settings_file,
    load_settings,
)

__all__ = [
    "BatchSettings",
    "ExtractionSettings",
    "FetchConfig",
    "MonitoringConfig",
    "Settings",
    "find_settings_file",
    "load_settings",
]
