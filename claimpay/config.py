"""
ClaimPay configuration.

Resolution order (last wins):
    1. Dataclass defaults
    2. YAML file (ClaimPayConfig.from_yaml)
    3. Environment: CLAIMPAY_STORE, CLAIMPAY_LOG_LEVEL
    4. Explicit CLI flags

Example claimpay.yaml:

    store_path: .claimpay/claims.jsonl
    log_level: INFO
    strict_recovery_id: false
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from claimpay.core.exceptions import ValidationError


DEFAULT_STORE_PATH = ".claimpay/claims.jsonl"

ENV_STORE     = "CLAIMPAY_STORE"
ENV_LOG_LEVEL = "CLAIMPAY_LOG_LEVEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ClaimPayConfig:
    store_path:         str  = DEFAULT_STORE_PATH
    log_level:          str  = "WARNING"
    strict_recovery_id: bool = False

    def __post_init__(self) -> None:
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValidationError(
                f"Unknown log_level '{self.log_level}'. Valid: {list(_LOG_LEVELS)}"
            )
        if not isinstance(self.strict_recovery_id, bool):
            raise ValidationError("strict_recovery_id must be true or false")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClaimPayConfig":
        known   = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown config keys: {unknown}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, config_file: Path) -> "ClaimPayConfig":
        """Load config from a YAML file. An empty file yields the defaults."""
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValidationError(f"Config file {config_file} must contain a mapping")
        return cls.from_dict(data)

    @classmethod
    def load(
        cls,
        config_file: Optional[Path] = None,
        environ:     Optional[Dict[str, str]] = None,
    ) -> "ClaimPayConfig":
        """File (if given) then environment overrides."""
        environ = os.environ if environ is None else environ
        config  = cls.from_yaml(config_file) if config_file else cls()

        if environ.get(ENV_STORE):
            config.store_path = environ[ENV_STORE]
        if environ.get(ENV_LOG_LEVEL):
            config.log_level = environ[ENV_LOG_LEVEL]
            config.__post_init__()
        return config

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=  getattr(logging, self.log_level),
            format= "%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
