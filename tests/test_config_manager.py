"""Tests for configuration management."""

import json
import os
import shutil
import tempfile
import unittest
from decimal import Decimal

import yaml

from bankparse.models.core import ParserConfig
from bankparse.utils.config_manager import ConfigManager, get_default_config_manager


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.temp_dir, 'test_config.json')

    def tearDown(self):
        """Clean up test fixtures"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_json(self, data):
        with open(self.config_file, 'w') as f:
            json.dump(data, f)

    def test_default_config_loading(self):
        """Test loading default configuration when no file exists"""
        manager = ConfigManager(config_path="nonexistent_file.json")
        config = manager.load_config()

        self.assertIsInstance(config, ParserConfig)
        self.assertEqual(config.min_confidence_threshold, 0.4)
        self.assertEqual(config.max_amount, Decimal('1000000'))
        self.assertEqual(config.learning_capacity, 10000)
        self.assertEqual(config.learning_eviction, 1000)
        self.assertEqual(config.custom_keyword_map, {})
        self.assertEqual(config.custom_bank_profiles, {})

    def test_config_file_loading(self):
        """Test loading configuration from JSON file"""
        self.write_json({
            "min_confidence_threshold": 0.6,
            "max_amount": "50000",
            "context_window": 3,
            "default_year": 2018,
            "custom_keyword_map": {"Food": ["blue bottle"]},
            "bank_profiles": {
                "local": {"name": "Local Credit Union", "patterns": ["local\\s*credit"]}
            }
        })

        config = ConfigManager(config_path=self.config_file).load_config()

        self.assertEqual(config.min_confidence_threshold, 0.6)
        self.assertEqual(config.max_amount, Decimal('50000'))
        self.assertEqual(config.context_window, 3)
        self.assertEqual(config.default_year, 2018)
        self.assertEqual(config.custom_keyword_map, {"Food": ["blue bottle"]})
        self.assertEqual(config.custom_bank_profiles["local"]["name"], "Local Credit Union")

    def test_yaml_config_loading(self):
        """Test loading configuration from YAML file"""
        yaml_file = os.path.join(self.temp_dir, 'config.yml')
        with open(yaml_file, 'w') as f:
            yaml.safe_dump({"similarity_threshold": 0.8, "bank_sample_size": 500}, f)

        config = ConfigManager(config_path=yaml_file).load_config()

        self.assertEqual(config.similarity_threshold, 0.8)
        self.assertEqual(config.bank_sample_size, 500)

    def test_invalid_values_fall_back_to_defaults(self):
        """Test rejection of out-of-range thresholds and unknown categories"""
        for data in [
            {"overlap_threshold": 1.5},
            {"min_merchant_length": True},
            {"custom_keyword_map": {"Groceries": ["milk"]}},
            {"bank_profiles": {"bad": {"name": "No Patterns"}}},
            ["not", "a", "dictionary"],
        ]:
            self.write_json(data)
            config = ConfigManager(config_path=self.config_file).load_config()
            self.assertEqual(config.overlap_threshold, 0.7, data)
            self.assertEqual(config.min_merchant_length, 2, data)
            self.assertEqual(config.custom_keyword_map, {}, data)

    def test_malformed_file_falls_back_to_defaults(self):
        """Test fallback to defaults when the config file is malformed"""
        with open(self.config_file, 'w') as f:
            f.write("{not json")

        config = ConfigManager(config_path=self.config_file).load_config()
        self.assertEqual(config.min_confidence_threshold, 0.4)

    def test_unparseable_number_falls_back_to_defaults(self):
        """Test fallback to defaults for non-numeric settings"""
        self.write_json({"context_window": "wide"})

        config = ConfigManager(config_path=self.config_file).load_config()
        self.assertEqual(config.context_window, 2)

    def test_config_caching(self):
        """Test configuration caching"""
        self.write_json({"context_window": 4})
        manager = ConfigManager(config_path=self.config_file)

        config1 = manager.load_config()
        config2 = manager.load_config()
        self.assertIs(config1, config2)

        config3 = manager.load_config(force_reload=True)
        self.assertIsNot(config1, config3)
        self.assertEqual(config3.context_window, 4)

    def test_save_config_template(self):
        """Test saving configuration template"""
        template_file = os.path.join(self.temp_dir, 'template.json')
        manager = ConfigManager()
        manager.save_config_template(template_file)

        with open(template_file, 'r') as f:
            template = json.load(f)

        self.assertEqual(template['min_confidence_threshold'], 0.4)
        self.assertIn('Subscriptions', template['custom_keyword_map'])
        self.assertIn('first_community', template['bank_profiles'])

        # The template itself must load cleanly
        config = ConfigManager(config_path=template_file).load_config()
        self.assertEqual(config.custom_keyword_map['Food'], ['blue bottle'])
        self.assertIn('first_community', config.custom_bank_profiles)

    def test_save_yaml_template(self):
        """Test saving a YAML configuration template"""
        template_file = os.path.join(self.temp_dir, 'nested', 'template.yaml')
        ConfigManager().save_config_template(template_file)

        with open(template_file, 'r') as f:
            template = yaml.safe_load(f)
        self.assertEqual(template['learning_capacity'], 10000)

    def test_update_config(self):
        """Test updating configuration"""
        manager = ConfigManager(config_path="nonexistent_file.json")
        manager.load_config()

        manager.update_config({'context_window': 5, 'not_a_setting': 1})

        config = manager.load_config()
        self.assertEqual(config.context_window, 5)
        self.assertFalse(hasattr(config, 'not_a_setting'))

    def test_reset_config(self):
        """Test resetting configuration cache"""
        manager = ConfigManager(config_path="nonexistent_file.json")
        config1 = manager.load_config()

        manager.reset_config()
        config2 = manager.load_config()

        self.assertIsNot(config1, config2)

    def test_get_default_config_manager(self):
        """Test that the default config manager is shared"""
        manager = get_default_config_manager()
        self.assertIsInstance(manager, ConfigManager)
        self.assertIsNone(manager.config_path)
