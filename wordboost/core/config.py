"""
Practice configuration.
Loaded from the `practice` section of a YAML file, falling back to defaults.
"""
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass
class PracticeConfig:
    """Configuration for a practice session."""
    batch_size: int = 5
    know_quality: int = 5                # swipe right
    dont_know_quality: int = 2           # swipe left
    match_quality: int = 4               # pairing match
    mismatch_cooldown_ms: int = 600      # pairing: clicks ignored after a mismatch
    completion_delay_ms: int = 800       # pairing: pause before leaving a finished round
    undo_limit: Optional[int] = None     # None = unbounded
    persistence_timeout_ms: int = 10000
    persistence_retries: int = 2
    retry_backoff_ms: int = 200

    def __post_init__(self):
        if self.batch_size <= 0:
            raise InvalidArgumentError("batch_size must be positive", "batch_size", self.batch_size)
        if not 3 <= self.know_quality <= 5:
            raise InvalidArgumentError("know_quality must be a passing grade (3-5)",
                                       "know_quality", self.know_quality)
        if not 0 <= self.dont_know_quality < 3:
            raise InvalidArgumentError("dont_know_quality must be a failing grade (0-2)",
                                       "dont_know_quality", self.dont_know_quality)
        if not 0 <= self.match_quality <= 5:
            raise InvalidArgumentError("match_quality must be 0-5", "match_quality", self.match_quality)
        for name in ("mismatch_cooldown_ms", "completion_delay_ms", "persistence_retries", "retry_backoff_ms"):
            if getattr(self, name) < 0:
                raise InvalidArgumentError(f"{name} must be non-negative", name, getattr(self, name))
        if self.persistence_timeout_ms <= 0:
            raise InvalidArgumentError("persistence_timeout_ms must be positive",
                                       "persistence_timeout_ms", self.persistence_timeout_ms)
        if self.undo_limit is not None and self.undo_limit <= 0:
            raise InvalidArgumentError("undo_limit must be positive", "undo_limit", self.undo_limit)

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]] = None) -> "PracticeConfig":
        """
        Build from a config dict with a `practice` section.

        Unknown keys are logged and ignored.
        """
        config = config or {}
        section = config.get("practice", {}) or {}
        known = {f.name for f in fields(cls)}
        for key in section:
            if key not in known:
                logger.warning(f"Ignoring unknown practice setting: {key}")
        return cls(**{k: v for k, v in section.items() if k in known})


def default_config() -> Dict[str, Any]:
    """Default configuration."""
    return {
        "practice": asdict(PracticeConfig()),
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    }


def load_config(config_path: Union[str, Path, None] = None) -> Dict[str, Any]:
    """Load configuration from a YAML file, merged over the defaults."""
    config = default_config()
    if config_path is None:
        return config

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config not found at {path}, using defaults")
        return config

    with open(path) as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise InvalidArgumentError(f"Config file {path} must contain a mapping")

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    return config
