"""
Configuration management for the intake engine.

Handles loading, updating, and persisting scoring weights, date tiers,
screening filters and classification constants.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Optional
import yaml

logger = logging.getLogger(__name__)

# Default config path relative to project root
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / 'config' / 'engine_config.yaml'


class ConfigManager:
    """
    Manages engine configuration.

    Engines read their values once at construction, so a ConfigManager
    can be updated and saved without affecting engines already built.
    """

    DEFAULT_CONFIG = {
        'scoring': {
            'name_points': 60,
            # [max_day_difference, points]; first tier is the same-day match
            'date_tiers': [[0, 40], [1, 30], [3, 20], [7, 10]],
            'high_confidence_match': 60,
        },
        'name_weights': {
            'last': 0.6,
            'first': 0.3,
            'middle': 0.1,
        },
        'screening': {
            'excluded_statuses': ['screened', 'complete'],
        },
        'classification': {
            'bac_epsilon': 0.0001,
            'none_code': 'none',
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to YAML configuration file
        """
        self.config_path = config_path
        self.config: dict[str, Any] = {}

        if config_path and config_path.exists():
            self.load_config(config_path)
        else:
            logger.info("No config file found, using defaults")
            self.config = copy.deepcopy(self.DEFAULT_CONFIG)

    def load_config(self, path: Path) -> dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Loaded configuration dictionary

        Raises:
            FileNotFoundError: If config file does not exist
            yaml.YAMLError: If config file is invalid
        """
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                loaded_config = yaml.safe_load(f)

            if not loaded_config:
                logger.warning(f"Empty config file at {path}, using defaults")
                self.config = copy.deepcopy(self.DEFAULT_CONFIG)
            else:
                self.config = self._merge_with_defaults(loaded_config)

            self.config_path = path
            logger.info(f"Loaded configuration from {path}")

            return self.config

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise

    def get_section(self, section: str) -> dict[str, Any]:
        """
        Get a copy of one configuration section.

        Raises:
            KeyError: If section not found
        """
        if section not in self.config:
            raise KeyError(f"Configuration section '{section}' not found")
        return copy.deepcopy(self.config[section])

    def get_value(self, section: str, name: str) -> Any:
        """
        Get a single configuration value.

        Args:
            section: Section name (e.g., 'scoring')
            name: Key within the section (e.g., 'name_points')

        Returns:
            The configured value

        Raises:
            KeyError: If section or key not found
        """
        if name not in self.config.get(section, {}):
            raise KeyError(f"'{name}' not found in configuration section '{section}'")
        return copy.deepcopy(self.config[section][name])

    def get_name_weight(self, name: str) -> float:
        """Get a name component weight ('first', 'last', 'middle')."""
        return float(self.get_value('name_weights', name))

    def update_value(self, section: str, name: str, value: Any) -> None:
        """
        Update a single configuration value.

        Name weights must lie in [0, 1].

        Raises:
            ValueError: If a name weight is out of range
        """
        if section == 'name_weights' and not 0.0 <= float(value) <= 1.0:
            raise ValueError(f"Name weight must be between 0 and 1, got {value}")

        self.config.setdefault(section, {})
        old_value = self.config[section].get(name)
        self.config[section][name] = value

        logger.info(f"Updated {section}.{name}: {old_value} -> {value}")

    def save_config(self, path: Optional[Path] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Path to save to (uses self.config_path if not provided)

        Raises:
            ValueError: If no path provided and no config_path set
        """
        save_path = path or self.config_path

        if not save_path:
            raise ValueError("No path provided and no config_path set")

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)

            with open(save_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(
                    self.config,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    indent=2
                )

            logger.info(f"Saved configuration to {save_path}")

        except OSError as e:
            logger.error(f"Failed to save configuration: {e}")
            raise

    def get_all_config(self) -> dict[str, Any]:
        """Get a deep copy of the complete configuration dictionary."""
        return copy.deepcopy(self.config)

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        logger.info("Configuration reset to defaults")

    def _merge_with_defaults(self, loaded_config: dict) -> dict:
        """Merge loaded config with defaults to ensure all keys exist."""
        merged = copy.deepcopy(self.DEFAULT_CONFIG)

        for section, values in loaded_config.items():
            if section in merged and isinstance(values, dict):
                merged[section].update(values)
            else:
                merged[section] = values

        return merged

    def validate_config(self) -> list[str]:
        """
        Validate the current configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        weights = self.config.get('name_weights', {})
        for name in ('first', 'last', 'middle'):
            value = weights.get(name)
            if not isinstance(value, (int, float)):
                errors.append(f"Name weight '{name}' must be numeric, got {type(value)}")
            elif not 0.0 <= value <= 1.0:
                errors.append(f"Name weight '{name}' must be between 0 and 1, got {value}")

        if not errors:
            if weights['last'] < weights['first']:
                errors.append("Last-name weight must be >= first-name weight")
            total = weights['first'] + weights['last'] + weights['middle']
            if abs(total - 1.0) > 1e-9:
                errors.append(f"Name weights must sum to 1.0, got {total}")

        scoring = self.config.get('scoring', {})
        name_points = scoring.get('name_points')
        tiers = scoring.get('date_tiers') or []
        if not isinstance(name_points, int) or name_points < 0:
            errors.append("name_points must be a non-negative integer")
        if not tiers:
            errors.append("date_tiers must contain at least one [days, points] pair")
        else:
            try:
                days = [int(d) for d, _ in tiers]
                points = [int(p) for _, p in tiers]
            except (TypeError, ValueError):
                errors.append("date_tiers entries must be [days, points] integer pairs")
            else:
                if days != sorted(days) or days[0] != 0:
                    errors.append("date_tiers must start at 0 days and be sorted by days")
                if points != sorted(points, reverse=True):
                    errors.append("date_tiers points must be non-increasing")
                if isinstance(name_points, int) and name_points + points[0] > 100:
                    errors.append("name_points plus same-day date points must not exceed 100")

        epsilon = self.config.get('classification', {}).get('bac_epsilon')
        if not isinstance(epsilon, (int, float)) or epsilon < 0:
            errors.append("bac_epsilon must be a non-negative number")

        return errors


def load_engine_config(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Load engine config from YAML, falling back to defaults.

    An unreadable or invalid file is logged and replaced by defaults so
    scoring and classification stay available.

    Args:
        config_path: Path to YAML config (default: config/engine_config.yaml)

    Returns:
        ConfigManager with a validated configuration
    """
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        manager = ConfigManager(path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}. Using defaults.")
        return ConfigManager()

    errors = manager.validate_config()
    if errors:
        logger.warning(f"Invalid config at {path}: {'; '.join(errors)}. Using defaults.")
        manager.reset_to_defaults()
    return manager
