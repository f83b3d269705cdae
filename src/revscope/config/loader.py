"""
Configuration loader for revscope.

This module provides functionality for loading the cache and history
settings from a YAML file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from xdg.BaseDirectory import xdg_config_home

from revscope.config.schema import AppConfigSchema
from revscope.errors import ConfigParsingError

logger = logging.getLogger(__name__)

LOCAL_CONFIG_NAME = ".revscope.yml"


class ConfigLoader:
	"""
	Loads configuration for revscope using Pydantic schemas.

	Missing files and missing keys fall back to the schema defaults.
	"""

	def __init__(self, config_file: Path | None = None) -> None:
		self._resolved_config_file = self._resolve_config_file(config_file)
		self._app_config = self._load_config()

	@staticmethod
	def _resolve_config_file(config_file: Path | None = None) -> Path | None:
		"""
		Resolve the configuration file path.

		If a config file is specified, use that. Otherwise, look in standard locations:
		1. ./.revscope.yml in the current directory
		2. $XDG_CONFIG_HOME/revscope/config.yml

		Args:
			config_file: Explicitly provided config file path (optional)

		Returns:
			Resolved config file path or None if no suitable file found
		"""
		if config_file:
			path = config_file.expanduser().resolve()
			if not path.exists():
				logger.warning("Specified config file not found: %s", path)
			return path

		local_config = Path(LOCAL_CONFIG_NAME)
		if local_config.exists():
			return local_config

		xdg_config_file = Path(xdg_config_home) / "revscope" / "config.yml"
		if xdg_config_file.exists():
			return xdg_config_file

		return None

	@staticmethod
	def _parse_yaml_file(file_path: Path) -> dict[str, Any]:
		"""
		Parse a YAML file into a dictionary.

		Raises:
			yaml.YAMLError: If the file is not valid YAML or not a mapping
		"""
		with file_path.open(encoding="utf-8") as f:
			content = yaml.safe_load(f)
		if content is None:
			return {}
		if not isinstance(content, dict):
			msg = f"File {file_path} does not contain a valid YAML dictionary"
			raise yaml.YAMLError(msg)
		return content

	def _load_config(self) -> AppConfigSchema:
		"""
		Load configuration from file and parse it into AppConfigSchema.

		Raises:
			ConfigParsingError: If the file exists but cannot be read, parsed or validated.
		"""
		file_config: dict[str, Any] = {}
		path = self._resolved_config_file
		if path is None:
			logger.info("No configuration file specified or found. Using default configuration.")
		elif not path.exists():
			logger.info("Configuration file not found: %s. Using default configuration.", path)
		else:
			try:
				file_config = self._parse_yaml_file(path)
			except yaml.YAMLError as e:
				msg = f"Configuration file {path} does not contain a valid YAML dictionary."
				logger.exception(msg)
				raise ConfigParsingError(msg) from e
			except OSError as e:
				msg = f"Error accessing configuration file {path}: {e}"
				logger.exception(msg)
				raise ConfigParsingError(msg) from e
			logger.info("Loaded configuration from %s", path)

		try:
			return AppConfigSchema(**file_config)
		except ValidationError as e:
			msg = f"Error parsing configuration into schema: {e}"
			logger.exception(msg)
			raise ConfigParsingError(msg) from e

	@property
	def config_file(self) -> Path | None:
		return self._resolved_config_file

	@property
	def get(self) -> AppConfigSchema:
		"""
		Get the current application configuration.

		Returns:
			AppConfigSchema: The current configuration
		"""
		return self._app_config
