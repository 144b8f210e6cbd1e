"""
Engine configuration.

Configuration comes from an optional dictionary (e.g. parsed from a file or
built by the command line) layered over environment variables, and is
validated with a voluptuous schema before the engine is assembled.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .const import (
    CONF_API_KEY,
    CONF_CONFIDENCE_THRESHOLD,
    CONF_DATABASE_PATH,
    CONF_FALLBACK_CONFIDENCE,
    CONF_FORCE_AUTONOMOUS,
    CONF_LEARN_MIN_CONFIDENCE,
    CONF_MODEL,
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_DATABASE_PATH,
    DEFAULT_FALLBACK_CONFIDENCE,
    DEFAULT_LEARN_MIN_CONFIDENCE,
    DEFAULT_MODEL,
    ENV_API_KEY,
    ENV_DATABASE_PATH,
    ENV_FORCE_AUTONOMOUS,
)
from .exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

_PERCENT = vol.All(vol.Coerce(int), vol.Range(min=0, max=100))

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_DATABASE_PATH, default=DEFAULT_DATABASE_PATH): vol.All(
            vol.Coerce(str), vol.Length(min=1)
        ),
        vol.Optional(CONF_CONFIDENCE_THRESHOLD, default=DEFAULT_CONFIDENCE_THRESHOLD): _PERCENT,
        vol.Optional(CONF_FORCE_AUTONOMOUS, default=False): vol.Boolean(),
        vol.Optional(CONF_API_KEY, default=None): vol.Any(None, str),
        vol.Optional(CONF_MODEL, default=DEFAULT_MODEL): vol.All(str, vol.Length(min=1)),
        vol.Optional(CONF_LEARN_MIN_CONFIDENCE, default=DEFAULT_LEARN_MIN_CONFIDENCE): _PERCENT,
        vol.Optional(CONF_FALLBACK_CONFIDENCE, default=DEFAULT_FALLBACK_CONFIDENCE): _PERCENT,
    }
)

# Environment variable -> configuration key
_ENV_KEYS = {
    ENV_DATABASE_PATH: CONF_DATABASE_PATH,
    ENV_FORCE_AUTONOMOUS: CONF_FORCE_AUTONOMOUS,
    ENV_API_KEY: CONF_API_KEY,
}


@dataclass(frozen=True)
class EngineConfig:
    """Validated engine settings."""

    database_path: str = DEFAULT_DATABASE_PATH
    confidence_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD
    force_autonomous: bool = False
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    learn_min_confidence: int = DEFAULT_LEARN_MIN_CONFIDENCE
    fallback_confidence: int = DEFAULT_FALLBACK_CONFIDENCE

    @property
    def fallback_configured(self) -> bool:
        """True when an API key for the AI fallback is available."""
        return bool(self.api_key)


def load_config(data: Mapping[str, Any] | None = None,
                env: Mapping[str, str] | None = None) -> EngineConfig:
    """Build an EngineConfig from explicit values and the environment.

    Explicit values win over environment variables, which win over defaults.

    Args:
        data: Optional configuration dictionary
        env: Environment mapping, defaults to os.environ

    Returns:
        The validated configuration

    Raises:
        ConfigError: If a value fails validation
    """
    env = os.environ if env is None else env
    merged: dict[str, Any] = {}

    for env_name, key in _ENV_KEYS.items():
        value = env.get(env_name)
        if value is not None and value.strip():
            merged[key] = value.strip()

    merged.update(data or {})

    try:
        validated = CONFIG_SCHEMA(merged)
    except vol.Invalid as err:
        raise ConfigError(f"Invalid configuration: {err}") from err

    api_key = validated[CONF_API_KEY]
    if api_key is not None and not api_key.strip():
        api_key = None

    config = EngineConfig(
        database_path=validated[CONF_DATABASE_PATH],
        confidence_threshold=validated[CONF_CONFIDENCE_THRESHOLD],
        force_autonomous=validated[CONF_FORCE_AUTONOMOUS],
        api_key=api_key,
        model=validated[CONF_MODEL],
        learn_min_confidence=validated[CONF_LEARN_MIN_CONFIDENCE],
        fallback_confidence=validated[CONF_FALLBACK_CONFIDENCE],
    )
    _LOGGER.debug(
        "Loaded configuration (database: %s, threshold: %d, fallback configured: %s)",
        config.database_path,
        config.confidence_threshold,
        config.fallback_configured,
    )
    return config
