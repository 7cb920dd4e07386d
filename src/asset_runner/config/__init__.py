from __future__ import annotations

from asset_runner.config.loader import YamlConfigLoader
from asset_runner.config.models import AppConfig, ConfigLoadRequest

__all__ = ["AppConfig", "ConfigLoadRequest", "YamlConfigLoader"]
