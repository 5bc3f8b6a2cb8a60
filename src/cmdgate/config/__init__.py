"""Configuration management for cmdgate.

Builds a single immutable settings object from environment variables
(``PORT``, ``ADMIN_API_KEY``), an optional ``.env`` file and an optional
YAML file.
"""

from cmdgate.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
