"""
Tests for the ConfigManager module.

This module contains unit tests for loading, validating and overriding
the host configuration.
"""
import unittest
import os
import json
import tempfile
import yaml
from chip8_vm.utils.config_manager import ConfigManager

class TestConfigManager(unittest.TestCase):
    """
    Test cases for the ConfigManager class.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.config = ConfigManager()
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        """Remove temporary files."""
        self.temp_dir.cleanup()

    def write_file(self, name, text):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, 'w') as f:
            f.write(text)
        return path

    def test_defaults(self):
        """Test the default values."""
        self.assertEqual(self.config.get("system"), "chip8")
        self.assertIsNone(self.config.get("seed"))
        self.assertEqual(self.config.get("timing.ticks_per_frame"), 10)
        self.assertEqual(self.config.get("timing.timer_hz"), 60)
        self.assertEqual(self.config.get("render.mode"), "ascii")
        self.assertEqual(self.config.get("keymap.q"), 0x4)
        self.assertEqual(self.config.get("missing.key", "fallback"), "fallback")

    def test_load_yaml(self):
        """Test that a YAML file overrides nested values only."""
        path = self.write_file("vm.yaml", "seed: 42\ntiming:\n  ticks_per_frame: 15\n")

        self.assertTrue(self.config.load_config(path))
        self.assertEqual(self.config.get("seed"), 42)
        self.assertEqual(self.config.get("timing.ticks_per_frame"), 15)
        self.assertEqual(self.config.get("timing.timer_hz"), 60)
        self.assertEqual(self.config.get_modified_config(),
                         {"seed": 42, "timing": {"ticks_per_frame": 15}})

    def test_load_json(self):
        """Test loading a JSON file."""
        path = self.write_file("vm.json", json.dumps({"render": {"mode": "png", "scale": 4}}))

        self.assertTrue(self.config.load_config(path))
        self.assertEqual(self.config.get("render.mode"), "png")
        self.assertEqual(self.config.get("render.scale"), 4)
        self.assertTrue(self.config.get("render.dark_mode"))

    def test_load_failures(self):
        """Test missing files, unknown extensions and malformed content."""
        self.assertFalse(self.config.load_config(os.path.join(self.temp_dir.name, "absent.yaml")))
        self.assertFalse(self.config.load_config(self.write_file("vm.ini", "[vm]\n")))
        self.assertFalse(self.config.load_config(self.write_file("bad.json", "{not json")))
        self.assertFalse(self.config.load_config(self.write_file("bad.yaml", "timing: [1, 2\n")))
        self.assertFalse(self.config.load_config(self.write_file("flat.yaml", "timing: 5\n")))
        self.assertFalse(self.config.load_config(self.write_file("flat.json", "{\"render\": \"png\"}")))
        self.assertEqual(self.config.get_modified_config(), {})

    def test_validation(self):
        """Test that invalid values are reported."""
        cases = [
            {"system": "superchip"},
            {"seed": -1},
            {"seed": "abc"},
            {"timing": {"ticks_per_frame": 0}},
            {"timing": {"ticks_per_frame": True}},
            {"timing": {"timer_hz": 0}},
            {"render": {"mode": "vga"}},
            {"render": {"scale": 0}},
            {"render": {"dark_mode": "yes"}},
            {"logging": {"level": "VERBOSE"}},
            {"keymap": {"q": 16}},
            {"keymap": ["q"]},
            {"timing": 5},
            {"render": "ascii"},
            {"logging": 1},
            {"logging": ["DEBUG"]},
            {"system": ["chip8"]},
        ]
        for case in cases:
            with self.subTest(case=case):
                self.assertTrue(self.config.validate_config(case))
                self.assertFalse(self.config.load_from_dict(case))

        self.assertEqual(self.config.validate_config({"timing": 5}),
                         ["Invalid timing: must be a mapping, got int"])
        self.assertEqual(self.config.validate_config({"seed": None, "timing": {"timer_hz": 30.5}}), [])
        self.assertTrue(self.config.validate_config([1, 2]))

    def test_set_and_reset(self):
        """Test dotted-path updates and resets."""
        self.config.set("render.scale", 3)
        self.config.set("timing.ticks_per_frame", 20)
        self.assertEqual(self.config.get("render.scale"), 3)

        self.config.reset("render.scale")
        self.assertEqual(self.config.get("render.scale"), 15)
        self.assertEqual(self.config.get_modified_config(), {"timing": {"ticks_per_frame": 20}})

        self.config.reset()
        self.assertEqual(self.config.get("timing.ticks_per_frame"), 10)
        self.assertEqual(self.config.get_modified_config(), {})

    def test_save_round_trip(self):
        """Test that a saved configuration loads back unchanged."""
        self.config.set("seed", 9)
        for fmt in ("json", "yaml"):
            with self.subTest(format=fmt):
                path = os.path.join(self.temp_dir.name, "out", f"vm.{fmt}")
                self.assertTrue(self.config.save_config(path, format=fmt))

                reloaded = ConfigManager(path)
                self.assertEqual(reloaded.as_dict(), self.config.as_dict())

        self.assertFalse(self.config.save_config(os.path.join(self.temp_dir.name, "vm.xml"), format="xml"))

    def test_yaml_file_is_readable(self):
        """Test that YAML output is plain mappings."""
        path = os.path.join(self.temp_dir.name, "vm.yaml")
        self.config.save_config(path, format="yaml")
        with open(path) as f:
            data = yaml.safe_load(f)
        self.assertEqual(data["timing"]["timer_hz"], 60)

    def test_system_config_overrides(self):
        """Test that host timing and keymap reach the machine configuration."""
        self.config.load_from_dict({"timing": {"ticks_per_frame": 12}, "keymap": {"q": 0xA}})
        system_config = self.config.get_system_config()

        self.assertEqual(system_config["ticks_per_frame"], 12)
        self.assertEqual(system_config["keymap"]["q"], 0xA)
        self.assertEqual(system_config["keymap"]["w"], 0x5)
        self.assertEqual(system_config["stack_depth"], 16)

if __name__ == '__main__':
    unittest.main()
