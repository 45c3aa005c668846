"""Loads, validates and caches ParserConfig from JSON or YAML files."""

import json
import logging
import os
from dataclasses import fields
from decimal import Decimal
from typing import Any, Dict, Optional

import yaml

from ..models.core import Category, ParserConfig
from .error_handler import ConfigurationError


logger = logging.getLogger(__name__)


FLOAT_FIELDS = ['min_confidence_threshold', 'overlap_threshold', 'similarity_threshold']
INT_FIELDS = [
    'min_merchant_length', 'extractor_min_merchant_length', 'learning_capacity',
    'learning_eviction', 'context_window', 'bank_sample_size',
]

SEARCH_PATHS = [
    'bankparse.json',
    'bankparse.yml',
    'bankparse.yaml',
    'config/bankparse.json',
    'config/bankparse.yml',
    'config/bankparse.yaml',
    '~/.bankparse/config.json',
    '~/.bankparse/config.yml',
    '~/.bankparse/config.yaml',
]


class ConfigManager:
    """Source of ParserConfig for the CLI and for library callers.

    A missing, unreadable or invalid file never fails the caller: the problem
    is logged and the built-in defaults are used instead.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: Explicit config file; when omitted SEARCH_PATHS are tried in order
        """
        self.config_path = config_path
        self._config_cache: Optional[ParserConfig] = None

    def load_config(self, force_reload: bool = False) -> ParserConfig:
        """Return the cached ParserConfig, reading the file on first use or when forced"""
        if self._config_cache is None or force_reload:
            self._config_cache = self._build_config(self._read_config_file())
        return self._config_cache

    def _build_config(self, data: Dict[str, Any]) -> ParserConfig:
        try:
            values = {key: float(data[key]) for key in FLOAT_FIELDS if key in data}
            values.update({key: int(data[key]) for key in INT_FIELDS if key in data})
            if 'max_amount' in data:
                values['max_amount'] = Decimal(str(data['max_amount']))
            if data.get('default_year') is not None:
                values['default_year'] = int(data['default_year'])
        except (TypeError, ValueError, ArithmeticError) as e:
            logger.warning(f"Invalid configuration value: {e}. Falling back to defaults.")
            return ParserConfig()

        logger.debug(f"Parser settings from {self.config_path or 'search path'}: {sorted(values)}")
        return ParserConfig(
            custom_keyword_map=data.get('custom_keyword_map'),
            custom_bank_profiles=data.get('bank_profiles'),
            **values,
        )

    def _read_config_file(self) -> Dict[str, Any]:
        config_file = self._find_config_file()
        if not config_file or not os.path.exists(config_file):
            logger.info("No configuration file found, using defaults")
            return {}

        if not config_file.endswith(('.json', '.yml', '.yaml')):
            logger.warning(f"Unsupported config file format: {config_file}")
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.endswith('.json'):
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)

            data = {} if data is None else data
            self._validate_config_data(data)
        except (OSError, ValueError, yaml.YAMLError, ConfigurationError) as e:
            logger.error(f"Ignoring configuration file {config_file}: {e}")
            return {}

        logger.info(f"Configuration loaded from {config_file}")
        return data

    def _find_config_file(self) -> Optional[str]:
        if self.config_path:
            return self.config_path

        for path in SEARCH_PATHS:
            path = os.path.expanduser(path)
            if os.path.exists(path):
                return path
        return None

    def _validate_config_data(self, data: Any) -> None:
        """Check types and ranges of a parsed config document.

        Raises:
            ConfigurationError: On the first invalid entry
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a dictionary", self.config_path)

        for key in FLOAT_FIELDS + INT_FIELDS + ['max_amount']:
            if key in data and (isinstance(data[key], bool)
                                or not isinstance(data[key], (int, float, str))):
                raise ConfigurationError(f"{key} must be a number")

        for key in FLOAT_FIELDS:
            if key in data:
                try:
                    value = float(data[key])
                except ValueError:
                    raise ConfigurationError(f"{key} must be a number")
                if not 0 <= value <= 1:
                    raise ConfigurationError(f"{key} must be between 0 and 1")

        if 'custom_keyword_map' in data:
            self._validate_keyword_map(data['custom_keyword_map'])

        if 'bank_profiles' in data:
            self._validate_bank_profiles(data['bank_profiles'])

    def _validate_keyword_map(self, keyword_map: Any) -> None:
        if not isinstance(keyword_map, dict):
            raise ConfigurationError("custom_keyword_map must be a dictionary")
        for name, keywords in keyword_map.items():
            try:
                Category.from_name(name)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
            if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
                raise ConfigurationError(f"Keywords for {name} must be a list of strings")

    def _validate_bank_profiles(self, profiles: Any) -> None:
        """Validate custom bank profile definitions

        Raises:
            ConfigurationError: If a profile definition is invalid
        """
        if not isinstance(profiles, dict):
            raise ConfigurationError("bank_profiles must be a dictionary")

        for key, profile in profiles.items():
            if not isinstance(profile, dict):
                raise ConfigurationError(f"Bank profile {key} must be a dictionary")
            patterns = profile.get('patterns')
            if not isinstance(patterns, list) or not patterns:
                raise ConfigurationError(f"Bank profile {key} needs a non-empty patterns list")
            for list_field in ['patterns', 'date_formats', 'layouts', 'features']:
                value = profile.get(list_field, [])
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise ConfigurationError(f"{list_field} for bank profile {key} must be a list of strings")

    def save_config_template(self, output_path: str) -> None:
        """Write the defaults plus an example keyword map and bank profile.

        The format follows the extension: .yml/.yaml gives YAML, anything else JSON.
        """
        defaults = ParserConfig()
        template: Dict[str, Any] = {
            name: getattr(defaults, name) for name in FLOAT_FIELDS + INT_FIELDS
        }
        template['max_amount'] = str(defaults.max_amount)
        template['custom_keyword_map'] = {
            'Subscriptions': ['patreon', 'github sponsors'],
            'Food': ['blue bottle'],
        }
        template['bank_profiles'] = {
            'first_community': {
                'name': 'First Community Bank',
                'patterns': [r'first\s*community\s*bank'],
                'date_formats': ['MM/DD/YYYY', 'MM/DD'],
                'layouts': ['tabular'],
                'currency': 'USD',
                'features': ['running_balance'],
            }
        }

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            if output_path.endswith(('.yml', '.yaml')):
                yaml.safe_dump(template, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(template, f, indent=2)

        logger.info(f"Configuration template saved to {output_path}")

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Override fields of the cached config; unknown keys are logged and skipped"""
        config = self.load_config()
        known = {f.name for f in fields(ParserConfig)}
        for key, value in updates.items():
            if key not in known:
                logger.warning(f"Unknown configuration key: {key}")
                continue
            setattr(config, key, value)
            logger.debug(f"Configuration override: {key} = {value}")

    def reset_config(self) -> None:
        """Drop the cached config so the next load_config() reads the file again"""
        self._config_cache = None


def get_default_config_manager() -> ConfigManager:
    """ConfigManager that searches the standard locations"""
    return ConfigManager()
