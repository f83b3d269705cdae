"""Schemas for the revscope configuration file."""

from pydantic import BaseModel, Field


class VisibilitySchema(BaseModel):
	"""Settings for the visibility cache."""

	excluded_namespaces: list[str] = Field(default_factory=lambda: ["refs/changes/"])
	max_size: int = Field(default=1024, ge=0)
	expire_after_seconds: float | None = Field(default=30 * 60, gt=0)
	cache_negative: bool = True
	topo_sort: bool = False


class TimeCacheSchema(BaseModel):
	"""Settings for the object time cache."""

	max_size: int = Field(default=10 << 10, ge=0)


class LogSchema(BaseModel):
	"""Settings for history pages."""

	page_size: int = Field(default=100, gt=0)
	topo_sort: bool = False


class AppConfigSchema(BaseModel):
	"""Root of the configuration file."""

	visibility: VisibilitySchema = Field(default_factory=VisibilitySchema)
	time_cache: TimeCacheSchema = Field(default_factory=TimeCacheSchema)
	log: LogSchema = Field(default_factory=LogSchema)
