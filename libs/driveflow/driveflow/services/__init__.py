"""Stateful services shared by the stages."""

from driveflow.services.event_bus import EventBus
from driveflow.services.prompt_resolver import ConfigurationResolver, PromptResolution
from driveflow.services.settings_store import AnalysisSettingsStore
from driveflow.services.watermark import WatermarkStore

__all__ = [
    "AnalysisSettingsStore",
    "ConfigurationResolver",
    "EventBus",
    "PromptResolution",
    "WatermarkStore",
]
