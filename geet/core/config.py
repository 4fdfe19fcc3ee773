"""core.config
---------------

Configuration loader/manager for GEET. Provides a central API for
loading settings from YAML/TOML/JSON and retrieving them via
:py:meth:`ConfigManager.get`.
"""

import os
import json
import yaml
import toml


class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""


class ConfigManager:
    """
    Loads and manages processing defaults (scales, pixel budgets, iMAD
    settings) from file or built-in values.
    """

    DEFAULT_SCALE: int = 30
    DEFAULT_MAX_PIXELS: float = 1e10
    REDUCE_MAX_PIXELS: float = 1e9
    MAD_ITERATIONS: int = 50
    MAD_TOLERANCE: float = 0.001
    INVARIANT_THRESHOLD: float = 0.05
    DEFAULT_SENSOR: str = "L8"

    def __init__(self, config_path=None):
        self.config = {
            "scale": self.DEFAULT_SCALE,
            "max_pixels": self.DEFAULT_MAX_PIXELS,
            "reduce_max_pixels": self.REDUCE_MAX_PIXELS,
            "mad_iterations": self.MAD_ITERATIONS,
            "mad_tolerance": self.MAD_TOLERANCE,
            "invariant_threshold": self.INVARIANT_THRESHOLD,
            "default_sensor": self.DEFAULT_SENSOR,
            "drive_folder": None,
            "ee_project": None,
        }
        if config_path:
            self.load(config_path)

    @classmethod
    def from_env(cls) -> "ConfigManager":
        """Build a manager from the file named by ``GEET_CONFIG``, if any."""
        return cls(os.getenv("GEET_CONFIG") or None)

    def load(self, path: str) -> None:
        """
        Load configuration from a file (YAML, TOML, or JSON).
        Overwrites existing keys in self.config.
        """
        ext = os.path.splitext(path)[1].lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if ext in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif ext == ".toml":
                    data = toml.load(f)
                elif ext == ".json":
                    data = json.load(f)
                else:
                    raise ConfigValidationError(f"Unsupported config format: {ext}")
        except ConfigValidationError:
            raise
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to load config from {path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config file {path} did not produce a dict")
        self.config.update(data)

    def get(self, key, default=None):
        """
        Retrieve a configuration value by key, or return `default` if not present.

        Args:
            key (str): The configuration parameter to look up.
            default:  The value to return if `key` is not found.
        """
        return self.config.get(key, default)

    def merge(self, other: "ConfigManager") -> None:
        """
        Merge another ConfigManager into this one.
        Values in other.config override this.config.
        """
        if not isinstance(other, ConfigManager):
            raise TypeError("Can only merge ConfigManager instances")
        self.config.update(other.config)
