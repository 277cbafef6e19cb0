from __future__ import annotations
from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, Optional
import yaml
from pathlib import Path

from .utils.logging import get_logger

logger = get_logger(__name__)

LEVEL_KEYS = ("l1", "l2", "l3", "l4")
POLICY_NAMES = ("LRU", "BIP", "RANDOM")


class ConfigurationError(ValueError):
    """Raised when a cache level cannot be built from its configuration."""


@dataclass
class CacheLevelConfig:
    """Geometry, timing and replacement policy of one cache level."""
    name: str = "L1"
    enabled: bool = True
    size_bytes: int = 32 * 1024
    associativity: int = 8
    line_size_bytes: int = 64
    access_latency_cycles: int = 1
    policy: str = "LRU"

    @property
    def num_sets(self) -> int:
        return self.size_bytes // (self.line_size_bytes * self.associativity)

    def validate(self):
        """Checks that the geometry divides exactly. Disabled levels are never checked."""
        if not self.enabled:
            return
        for key in ("size_bytes", "associativity", "line_size_bytes", "access_latency_cycles"):
            value = getattr(self, key)
            try:
                setattr(self, key, int(value))
            except (TypeError, ValueError):
                raise ConfigurationError(f"{self.name}: {key} must be an integer, got {value!r}.") from None
        if self.size_bytes <= 0:
            raise ConfigurationError(f"{self.name}: cache size must be positive, got {self.size_bytes}.")
        if self.line_size_bytes <= 0:
            raise ConfigurationError(f"{self.name}: line size must be positive, got {self.line_size_bytes}.")
        if self.associativity <= 0:
            raise ConfigurationError(f"{self.name}: associativity must be positive, got {self.associativity}.")
        if self.access_latency_cycles < 0:
            raise ConfigurationError(f"{self.name}: access latency cannot be negative.")

        way_bytes = self.line_size_bytes * self.associativity
        if self.size_bytes % way_bytes != 0:
            raise ConfigurationError(
                f"{self.name}: size {self.size_bytes} B is not a multiple of "
                f"line size x associativity ({self.line_size_bytes} x {self.associativity} = {way_bytes} B)."
            )

    def update(self, values: Dict[str, Any]):
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key in known:
                setattr(self, key, value)
            else:
                logger.warning("Ignoring unknown key '%s' for cache level %s", key, self.name)


@dataclass
class SimConfig:
    """PyV-CacheSim configuration record."""
    l1: CacheLevelConfig = field(default_factory=lambda: CacheLevelConfig(
        name="L1", size_bytes=32 * 1024, associativity=8, line_size_bytes=64, access_latency_cycles=1))
    l2: CacheLevelConfig = field(default_factory=lambda: CacheLevelConfig(
        name="L2", size_bytes=256 * 1024, associativity=8, line_size_bytes=64, access_latency_cycles=10))
    l3: CacheLevelConfig = field(default_factory=lambda: CacheLevelConfig(
        name="L3", size_bytes=2048 * 1024, associativity=8, line_size_bytes=64, access_latency_cycles=20))
    l4: CacheLevelConfig = field(default_factory=lambda: CacheLevelConfig(
        name="L4", enabled=False, size_bytes=2048 * 1024, associativity=16, line_size_bytes=64,
        access_latency_cycles=40))

    mem_latency_cycles: int = 100

    # Seed for the RANDOM and BIP policies; None draws fresh entropy
    seed: Optional[int] = None

    # Config file
    config_file: str = ""

    # Driver
    report_dir: str = "out/default_run"
    warmup: int = 0
    verbose: bool = False

    def levels(self) -> Dict[str, CacheLevelConfig]:
        return {key: getattr(self, key) for key in LEVEL_KEYS}

    def set_policy(self, policy: str):
        """Applies one replacement policy to every level."""
        for level in self.levels().values():
            level.policy = policy

    def _field_names(self):
        return {f.name for f in fields(self)}

    def update_from_dict(self, values: Dict[str, Any]):
        known = self._field_names()
        for key, value in values.items():
            if key in LEVEL_KEYS:
                if not isinstance(value, dict):
                    raise ConfigurationError(f"Section '{key}' must be a mapping, got {type(value).__name__}.")
                getattr(self, key).update(value)
            elif key == "policy":
                self.set_policy(value)
            elif key in known:
                setattr(self, key, value)
            else:
                logger.warning("Ignoring unknown config key '%s'", key)

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML file."""
        with open(yaml_path, 'r') as f:
            yaml_config = yaml.safe_load(f) or {}
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Config file {yaml_path} must contain a mapping at the top level.")
        self.update_from_dict(yaml_config)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False)

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from YAML config file if provided
        if getattr(args, 'config', None):
            config.config_file = args.config
            if Path(config.config_file).exists():
                config.update_from_yaml(config.config_file)
            else:
                logger.warning("Config file %s not found, using defaults.", config.config_file)

        # 2. Override with command-line arguments
        for key, value in vars(args).items():
            if value is None or key in ("config", "func", "cmd", "trace"):
                continue
            if key == "policy":
                config.set_policy(value)
            elif key == "enable_levels":
                for name in value:
                    getattr(config, name).enabled = True
            elif key == "disable_levels":
                for name in value:
                    getattr(config, name).enabled = False
            elif key == "report":
                config.report_dir = value
            elif key in config._field_names():
                setattr(config, key, value)

        return config
