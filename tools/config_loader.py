"""Configuration loader.

Reads ``BlameConfig`` from YAML or JSON. A missing default file means
defaults; a missing explicit file or invalid content raises ``ConfigError``.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from schemas.config import BlameConfig

logger = structlog.get_logger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or validated."""


def default_config_path() -> Path:
    """Return the default path to the blamelens configuration.

    Returns:
        Path: Path to ``~/.blamelens/config.yaml``.
    """
    return Path.home() / ".blamelens" / "config.yaml"


def _parse(text: str, path: Path) -> dict:
    looks_json = text.lstrip().startswith("{")
    ext = path.suffix.lower()
    try:
        if ext == ".json" or (ext not in {".yaml", ".yml"} and looks_json):
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"{path}: cannot parse configuration: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: configuration must be a mapping at top-level")
    return data


def load_config(path: Path | None = None) -> BlameConfig:
    """Load configuration from ``path`` or the default location.

    Args:
        path: Explicit file. When None, ``default_config_path()`` is used and
            a missing file yields defaults.

    Raises:
        ConfigError: explicit file missing, unparsable or failing validation.
    """
    explicit = path is not None
    target = Path(path) if explicit else default_config_path()
    if not target.exists():
        if explicit:
            raise ConfigError(f"{target}: configuration file not found")
        return BlameConfig()

    data = _parse(target.read_text(encoding="utf-8"), target)
    try:
        config = BlameConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{target}: invalid configuration: {e}") from e
    logger.debug("config_loaded", path=str(target))
    return config
