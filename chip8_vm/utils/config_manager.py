"""
Configuration management for the CHIP-8 virtual machine host.

This module provides tools for loading, validating, and managing the host
settings (instruction rate, timer rate, random seed, rendering, logging and
the keyboard map). It supports JSON and YAML files and validates values
before merging them over the defaults.
"""

import os
import json
import logging
import copy
from typing import Dict, Any, Optional, List
import yaml

from ..constants import DEFAULT_TICKS_PER_FRAME, TIMER_HZ, RENDER_MODES, DEFAULT_SCALE, NUM_KEYS
from ..system_configs import SYSTEM_CONFIGS

logger = logging.getLogger("Chip8VM.ConfigManager")

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

class ConfigManager:
    """
    Configuration management for the CHIP-8 host.

    Handles loading, validating, and providing access to configuration
    settings. Keys are addressed with dotted paths such as
    'render.scale'.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (None for default values)
        """
        self.defaults = {
            "system": "chip8",
            "seed": None,
            "timing": {
                "ticks_per_frame": DEFAULT_TICKS_PER_FRAME,
                "timer_hz": TIMER_HZ
            },
            "render": {
                "mode": "ascii",
                "scale": DEFAULT_SCALE,
                "output": "./output/frame.png",
                "dark_mode": True
            },
            "logging": {
                "level": "INFO",
                "file": None
            },
            "keymap": dict(SYSTEM_CONFIGS["chip8"]["keymap"])
        }

        self.config = copy.deepcopy(self.defaults)

        # Set of keys that have been modified from defaults
        self.modified_keys = set()

        if config_path:
            self.load_config(config_path)

        logger.debug("ConfigManager initialized")

    def load_config(self, config_path: str) -> bool:
        """
        Load configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            True if configuration loaded successfully, False otherwise
        """
        try:
            if not os.path.exists(config_path):
                logger.error(f"Configuration file not found: {config_path}")
                return False

            _, ext = os.path.splitext(config_path)
            ext = ext.lower()

            if ext == '.json':
                with open(config_path, 'r') as f:
                    user_config = json.load(f)
            elif ext in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    user_config = yaml.safe_load(f) or {}
            else:
                logger.error(f"Unsupported configuration format: {ext}")
                return False

            validation_errors = self.validate_config(user_config)
            if validation_errors:
                for error in validation_errors:
                    logger.error(f"Configuration validation error: {error}")
                return False

            self._merge_config(user_config)

            logger.info(f"Configuration loaded from {config_path}")
            return True

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading configuration: {e}")
            return False

    def _merge_config(self, user_config: Dict[str, Any], path: str = "", target: Optional[Dict[str, Any]] = None) -> None:
        """
        Merge user configuration over the current values, tracking modified keys.

        Args:
            user_config: User configuration dictionary
            path: Current key path for tracking (internal use)
            target: Dictionary being merged into (internal use)
        """
        if target is None:
            target = self.config

        for key, value in user_config.items():
            current_path = f"{path}.{key}" if path else key

            if isinstance(value, dict) and key in target and isinstance(target[key], dict):
                self._merge_config(value, current_path, target[key])
            else:
                target[key] = value
                self.modified_keys.add(current_path)

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate configuration values.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not isinstance(config, dict):
            return [f"Configuration must be a mapping, got {type(config).__name__}"]

        if "system" in config and (not isinstance(config["system"], str) or config["system"] not in SYSTEM_CONFIGS):
            valid_systems = ", ".join(SYSTEM_CONFIGS.keys())
            errors.append(f"Invalid system type: {config['system']}. Valid options: {valid_systems}")

        if "seed" in config and config["seed"] is not None:
            if not isinstance(config["seed"], int) or isinstance(config["seed"], bool) or config["seed"] < 0:
                errors.append(f"Invalid seed: {config['seed']}. Must be a non-negative integer or null")

        for section in ("timing", "render", "logging"):
            if section in config and not isinstance(config[section], dict):
                errors.append(f"Invalid {section}: must be a mapping, got {type(config[section]).__name__}")

        if isinstance(config.get("timing"), dict):
            timing = config["timing"]

            if "ticks_per_frame" in timing:
                value = timing["ticks_per_frame"]
                if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                    errors.append(f"Invalid timing.ticks_per_frame: {value}. Must be a positive integer")

            if "timer_hz" in timing:
                value = timing["timer_hz"]
                if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                    errors.append(f"Invalid timing.timer_hz: {value}. Must be a positive number")

        if isinstance(config.get("render"), dict):
            render = config["render"]

            if "mode" in render and render["mode"] not in RENDER_MODES:
                valid_modes = ", ".join(RENDER_MODES)
                errors.append(f"Invalid render.mode: {render['mode']}. Valid options: {valid_modes}")

            if "scale" in render:
                if not isinstance(render["scale"], int) or isinstance(render["scale"], bool) or render["scale"] < 1:
                    errors.append(f"Invalid render.scale: {render['scale']}. Must be a positive integer")

            if "dark_mode" in render and not isinstance(render["dark_mode"], bool):
                errors.append(f"Invalid render.dark_mode: {render['dark_mode']}. Must be a boolean")

        if isinstance(config.get("logging"), dict):
            log_config = config["logging"]

            if "level" in log_config and log_config["level"] not in LOG_LEVELS:
                valid_levels = ", ".join(LOG_LEVELS)
                errors.append(f"Invalid logging.level: {log_config['level']}. Valid options: {valid_levels}")

        if "keymap" in config:
            keymap = config["keymap"]
            if not isinstance(keymap, dict):
                errors.append("Invalid keymap: must be a mapping of host key names to key indices")
            else:
                for name, index in keymap.items():
                    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < NUM_KEYS:
                        errors.append(f"Invalid keymap.{name}: {index}. Must be an integer in 0..{NUM_KEYS - 1}")

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'render.scale')
            default: Default value if key not found

        Returns:
            Configuration value or default if not found
        """
        keys = key.split('.')
        value = self.config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'render.scale')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self.modified_keys.add(key)

        logger.debug(f"Configuration updated: {key} = {value}")

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset configuration to defaults.

        Args:
            key: Key path to reset (None for all)
        """
        if key is None:
            self.config = copy.deepcopy(self.defaults)
            self.modified_keys.clear()
            logger.info("Configuration reset to defaults")
        else:
            keys = key.split('.')
            default_value = self._get_default_value(keys)

            config = self.config
            for k in keys[:-1]:
                if k not in config:
                    return
                config = config[k]

            config[keys[-1]] = default_value

            self.modified_keys.discard(key)
            logger.info(f"Configuration key reset to default: {key}")

    def _get_default_value(self, keys: List[str]) -> Any:
        value = self.defaults
        for k in keys:
            if k not in value:
                return None
            value = value[k]
        return copy.deepcopy(value)

    def save_config(self, config_path: str, format: str = 'json') -> bool:
        """
        Save current configuration to file.

        Args:
            config_path: Path to output file
            format: Output format ('json' or 'yaml')

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            directory = os.path.dirname(config_path)
            if directory and not os.path.exists(directory):
                os.makedirs(directory)

            if format.lower() == 'json':
                with open(config_path, 'w') as f:
                    json.dump(self.config, f, indent=2)
            elif format.lower() in ['yaml', 'yml']:
                with open(config_path, 'w') as f:
                    yaml.dump(self.config, f, default_flow_style=False)
            else:
                logger.error(f"Unsupported configuration format: {format}")
                return False

            logger.info(f"Configuration saved to {config_path}")
            return True

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")
            return False

    def get_modified_config(self) -> Dict[str, Any]:
        """
        Get a dictionary containing only modified configuration values.

        Returns:
            Dictionary with modified values
        """
        modified_config = {}

        for key in self.modified_keys:
            value = self.get(key)

            keys = key.split('.')
            current = modified_config

            for k in keys[:-1]:
                if k not in current:
                    current[k] = {}
                current = current[k]

            current[keys[-1]] = value

        return modified_config

    def load_from_dict(self, config_dict: Dict[str, Any]) -> bool:
        """
        Load configuration from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            True if loaded successfully, False otherwise
        """
        validation_errors = self.validate_config(config_dict)
        if validation_errors:
            for error in validation_errors:
                logger.error(f"Configuration validation error: {error}")
            return False

        self._merge_config(config_dict)

        logger.debug("Configuration loaded from dictionary")
        return True

    def get_system_config(self) -> Dict[str, Any]:
        """
        Get the machine configuration with host overrides applied.

        Returns:
            System configuration dictionary
        """
        system_type = self.get("system", "chip8")
        system_config = copy.deepcopy(SYSTEM_CONFIGS.get(system_type, {}))
        system_config["ticks_per_frame"] = self.get("timing.ticks_per_frame", DEFAULT_TICKS_PER_FRAME)
        system_config["timer_hz"] = self.get("timing.timer_hz", TIMER_HZ)
        system_config["keymap"] = dict(self.get("keymap", {}))
        return system_config

    def as_dict(self) -> Dict[str, Any]:
        """Get full configuration as dictionary."""
        return copy.deepcopy(self.config)
