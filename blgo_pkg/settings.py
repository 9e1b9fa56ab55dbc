#!/usr/bin/env python3
"""
Settings loader for blgo.
Supports configuration from blgo.yml, blgo.yaml, or blgo.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class BlgoSettings:
    """Load and manage blgo configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'source': None,
        'output': 'generated',
        'templates': None,
        'assets': None,
        'watch': False,
        'serve': None,
        'log_file': None,
        'verbose': False,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['blgo.yml', 'blgo.yaml', 'blgo.json']

    def __init__(self, config_dir: str = None, config_file: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
            config_file: Explicit config file, skips the lookup when given.
        """
        self.config_dir = config_dir or os.getcwd()
        self.explicit_config_file = config_file
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings

        Raises:
            ValueError: If the file is not valid YAML/JSON or not a mapping.
        """
        config_file = self.explicit_config_file or self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ValueError(f"Configuration file {config_file} must contain a mapping")
            unknown = set(loaded_settings) - set(self.DEFAULT_SETTINGS)
            if unknown:
                raise ValueError(
                    f"Unknown setting(s) in {config_file}: {', '.join(sorted(unknown))}"
                )
            self.settings.update(loaded_settings)

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'source': 'content',
            'output': 'generated',
            'templates': 'templates',
            'assets': None,
            'watch': False,
            'serve': None,
        }

        if file_format not in ('yml', 'yaml', 'json'):
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'blgo.{file_format}'
        config_path = os.path.join(self.config_dir, filename)
        if os.path.exists(config_path):
            raise FileExistsError(f"Configuration file already exists: {config_path}")

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# blgo configuration file\n")
                    f.write("# Command-line flags take precedence over these values\n\n")
                    f.write("# Directories\n")
                    f.write("source: content\n")
                    f.write("output: generated\n")
                    f.write("templates: templates\n")
                    f.write("# assets: assets\n\n")
                    f.write("# Development settings\n")
                    f.write("watch: false\n")
                    f.write("# serve: localhost:8080\n")
                else:
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None and key in merged:
                merged[key] = value

        return merged
