from csv_partial_cache.config.loader import YamlConfigLoader
from csv_partial_cache.config.models import AppConfig, CacheSettings, ConfigLoadRequest, LoggingSettings

__all__ = ["AppConfig", "CacheSettings", "ConfigLoadRequest", "LoggingSettings", "YamlConfigLoader"]
