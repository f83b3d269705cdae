"""Error types for revscope."""


class RevscopeError(Exception):
	"""Base class for revscope errors."""


class StorageError(RevscopeError):
	"""
	Raised when the underlying object graph cannot be read.

	This covers missing objects referenced from a ref or a parent link,
	corrupt objects and libgit2 failures. It is never raised for an
	expression that simply does not resolve or is not visible; those are
	ordinary negative results.
	"""


class ConfigError(RevscopeError):
	"""Exception raised for configuration errors."""


class ConfigParsingError(ConfigError):
	"""Exception raised when configuration file cannot be parsed."""
