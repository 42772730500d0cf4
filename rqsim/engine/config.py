from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Sequence, Tuple
import logging
import os
import yaml

from .errors import ConfigurationError
from .item import ITEM_STRIDE
from .queue import CLOSED_POLICIES

log = logging.getLogger(__name__)

# Order of the positional run arguments
ARG_NAMES = ("consumer_count", "producer_count", "consumption_rate", "production_count")

@dataclass(frozen=True)
class RunConfig:
    consumer_count: int
    producer_count: int
    consumption_rate: int
    production_count: int
    tick_s: float = 1.0
    join_timeout_s: float = 3600.0
    closed_put_policy: str = "drop"
    name: str = "resources"

    def __post_init__(self) -> None:
        for key in ARG_NAMES:
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{key} must be an integer, got {value!r}")
            if value <= 0:
                raise ConfigurationError(f"{key} must be > 0, got {value}")
        if self.production_count > ITEM_STRIDE:
            raise ConfigurationError(f"production_count must be <= {ITEM_STRIDE}, got {self.production_count}")
        if self.tick_s <= 0:
            raise ConfigurationError(f"tick_s must be > 0, got {self.tick_s}")
        if self.join_timeout_s <= 0:
            raise ConfigurationError(f"join_timeout_s must be > 0, got {self.join_timeout_s}")
        if self.closed_put_policy not in CLOSED_POLICIES:
            raise ConfigurationError(f"Unknown closed_put_policy: {self.closed_put_policy!r}")

    @property
    def capacity(self) -> int:
        # Room for every item that could ever be outstanding at once.
        return self.production_count * self.producer_count

    @classmethod
    def from_args(cls, args: Sequence[str], **overrides: Any) -> "RunConfig":
        if args is None or len(args) != len(ARG_NAMES):
            raise ConfigurationError(f"Expected {len(ARG_NAMES)} arguments, got {0 if args is None else len(args)}")
        values: Dict[str, Any] = {}
        for key, raw in zip(ARG_NAMES, args):
            try:
                values[key] = int(raw)
            except (TypeError, ValueError):
                raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["capacity"] = self.capacity
        return d

def load_config(path: str) -> Tuple[RunConfig, dict]:
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Config {path} must be a mapping")

    workers = cfg.get("workers", {}) or {}
    consumption = cfg.get("consumption", {}) or {}
    production = cfg.get("production", {}) or {}
    q_cfg = cfg.get("queue", {}) or {}
    timeouts = cfg.get("timeouts", {}) or {}

    try:
        config = RunConfig(
            consumer_count=int(workers["consumers"]),
            producer_count=int(workers["producers"]),
            consumption_rate=int(consumption["rate"]),
            production_count=int(production["count_per_producer"]),
            tick_s=float(consumption.get("tick_s", 1.0)),
            join_timeout_s=float(timeouts.get("join_s", 3600.0)),
            closed_put_policy=str(q_cfg.get("closed_put_policy", "drop")),
            name=str(cfg.get("name", "resources")),
        )
    except ConfigurationError:
        raise
    except KeyError as exc:
        raise ConfigurationError(f"Missing config key {exc.args[0]!r} in {path}") from None
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid config value in {path}: {exc}") from exc

    log.info("Loaded config from %r", path)
    return config, cfg
