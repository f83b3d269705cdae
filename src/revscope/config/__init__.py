"""Configuration for revscope."""

from revscope.config.loader import ConfigLoader
from revscope.config.schema import AppConfigSchema, LogSchema, TimeCacheSchema, VisibilitySchema

__all__ = ["AppConfigSchema", "ConfigLoader", "LogSchema", "TimeCacheSchema", "VisibilitySchema"]
