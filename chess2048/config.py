# chess2048/config.py
import logging
import os
import tomllib
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Tile value that wins the game once it appears anywhere on the board.
DEFAULT_TARGET_TILE = 512
# Value a pawn takes when it reaches the far rank (always a queen).
DEFAULT_PROMOTION_VALUE = 32
# Smallest tile value that still classifies as a queen.
MIN_QUEEN_VALUE = 17


@dataclass
class RulesConfig:
    target_tile: int = DEFAULT_TARGET_TILE
    promotion_value: int = DEFAULT_PROMOTION_VALUE

    def validate(self):
        """Reset rule values that cannot be played with to their defaults."""
        if not _is_int(self.target_tile) or self.target_tile <= 0:
            logger.warning("Ignoring invalid target_tile=%r, using %d", self.target_tile, DEFAULT_TARGET_TILE)
            self.target_tile = DEFAULT_TARGET_TILE
        if not _is_int(self.promotion_value) or self.promotion_value < MIN_QUEEN_VALUE:
            # promoted pawns must become queens
            logger.warning("Ignoring invalid promotion_value=%r, using %d",
                           self.promotion_value, DEFAULT_PROMOTION_VALUE)
            self.promotion_value = DEFAULT_PROMOTION_VALUE


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class UIConfig:
    engine_name: str = "Chess 2048"


@dataclass
class Config:
    rules: RulesConfig = field(default_factory=RulesConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("rules", "ui"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
                else:
                    logger.warning("Ignoring unknown config key %s.%s", section, k)
        if "log_level" in raw:
            cfg.log_level = str(raw["log_level"]).upper()
        cfg.rules.validate()
        return cfg


def apply_env_overrides(cfg: Config) -> Config:
    """Apply CHESS2048_TARGET_TILE on top of a loaded config."""
    override_target = os.environ.get("CHESS2048_TARGET_TILE")
    if override_target:
        try:
            target = int(override_target)
        except ValueError:
            logger.warning("Ignoring non-integer CHESS2048_TARGET_TILE=%r", override_target)
            return cfg
        if target <= 0:
            logger.warning("Ignoring non-positive CHESS2048_TARGET_TILE=%r", override_target)
            return cfg
        cfg.rules.target_tile = target
    return cfg


# single globally importable config instance
CONFIG = apply_env_overrides(Config.load_from_toml(os.environ.get("CHESS2048_CONFIG_TOML", "config.toml")))
