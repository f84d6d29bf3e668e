"""YAML configuration loading and validation.

This module loads the ``.content-sync/config.yaml`` file into a CLIConfig,
merges command-line overrides into SyncOptions and reads or writes skill
name maps so a transform's renames can be chained into a later operation.
"""

import os
from dataclasses import replace
from typing import Any, Dict, Optional

import yaml

from src.ops.models import Behavior, SyncOptions

from .errors import ConfigError, ConfigFilesystemError
from .models import CLIConfig


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        dataset_root: "./docs"
        default_behavior: overwrite
        folder_behavior:
          guides: mirror
          notes: skip
        concurrency_limit: 10
        flatten: false
        prefix: null
        exclusion_list: ["http://localhost"]
        errors_file: link-errors.log
        log_level: info

    Every field is optional; missing fields take the CLIConfig defaults.
    """

    DEFAULT_CONFIG_DIR = '.content-sync'
    DEFAULT_CONFIG_FILE = 'config.yaml'

    KNOWN_FIELDS = {
        'dataset_root',
        'default_behavior',
        'folder_behavior',
        'concurrency_limit',
        'flatten',
        'prefix',
        'exclusion_list',
        'errors_file',
        'log_level',
    }

    @classmethod
    def default_path(cls, base_dir: str = '.') -> str:
        return os.path.join(base_dir, cls.DEFAULT_CONFIG_DIR, cls.DEFAULT_CONFIG_FILE)

    @classmethod
    def load(cls, config_path: str) -> CLIConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            CLIConfig with parsed configuration

        Raises:
            ConfigFilesystemError: If the file cannot be read
            ConfigError: If the configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigFilesystemError(config_path, 'read', 'Configuration file not found')
        except PermissionError:
            raise ConfigFilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise ConfigFilesystemError(config_path, 'read', str(e))

        if not content.strip():
            return CLIConfig()

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return CLIConfig()
        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def load_optional(cls, config_path: Optional[str]) -> CLIConfig:
        """Load ``config_path`` when it exists, else return defaults.

        An explicitly given path that does not exist is still an error.
        """
        if config_path:
            return cls.load(config_path)
        default = cls.default_path()
        if os.path.exists(default):
            return cls.load(default)
        return CLIConfig()

    @classmethod
    def save(cls, config_path: str, config: CLIConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            ConfigFilesystemError: If the file cannot be written
        """
        config_dict = {
            'dataset_root': config.dataset_root,
            'default_behavior': config.default_behavior.value,
            'folder_behavior': {k: v.value for k, v in config.folder_behavior.items()},
            'concurrency_limit': config.concurrency_limit,
            'flatten': config.flatten,
            'prefix': config.prefix,
            'exclusion_list': config.exclusion_list,
            'errors_file': config.errors_file,
            'log_level': config.log_level,
        }
        cls._write_yaml(config_path, config_dict)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> CLIConfig:
        """Parse and validate a configuration dictionary.

        Raises:
            ConfigError: If a field has the wrong type or value
        """
        unknown = set(config_dict.keys()) - cls.KNOWN_FIELDS
        if unknown:
            raise ConfigError(f"Unknown fields: {', '.join(sorted(unknown))}")

        config = CLIConfig()

        dataset_root = config_dict.get('dataset_root')
        if dataset_root is not None:
            if not isinstance(dataset_root, str) or not dataset_root.strip():
                raise ConfigError("must be a non-empty string", 'dataset_root')
            config.dataset_root = dataset_root

        if config_dict.get('default_behavior') is not None:
            config.default_behavior = cls._parse_behavior(
                config_dict['default_behavior'], 'default_behavior'
            )

        folder_behavior = config_dict.get('folder_behavior') or {}
        if not isinstance(folder_behavior, dict):
            raise ConfigError("must be a mapping of folder to behavior", 'folder_behavior')
        config.folder_behavior = {
            str(key): cls._parse_behavior(value, f"folder_behavior.{key}")
            for key, value in folder_behavior.items()
        }

        concurrency_limit = config_dict.get('concurrency_limit', config.concurrency_limit)
        if isinstance(concurrency_limit, bool) or not isinstance(concurrency_limit, int):
            raise ConfigError("must be an integer", 'concurrency_limit')
        if concurrency_limit < 1:
            raise ConfigError("must be at least 1", 'concurrency_limit')
        config.concurrency_limit = concurrency_limit

        flatten = config_dict.get('flatten', False)
        if not isinstance(flatten, bool):
            raise ConfigError("must be a boolean", 'flatten')
        config.flatten = flatten

        prefix = config_dict.get('prefix')
        if prefix is not None:
            if not isinstance(prefix, str) or '/' in prefix or '\\' in prefix:
                raise ConfigError("must be a string without path separators", 'prefix')
            config.prefix = prefix or None

        exclusion_list = config_dict.get('exclusion_list') or []
        if not isinstance(exclusion_list, list) or not all(isinstance(e, str) for e in exclusion_list):
            raise ConfigError("must be a list of strings", 'exclusion_list')
        config.exclusion_list = exclusion_list

        errors_file = config_dict.get('errors_file')
        if errors_file is not None:
            if not isinstance(errors_file, str) or not errors_file:
                raise ConfigError("must be a non-empty string", 'errors_file')
            config.errors_file = errors_file

        log_level = config_dict.get('log_level')
        if log_level is not None:
            config.log_level = str(log_level)

        return config

    @staticmethod
    def _parse_behavior(value: Any, field_name: str) -> Behavior:
        try:
            return Behavior.parse(value)
        except ValueError as e:
            raise ConfigError(str(e), field_name)

    @classmethod
    def to_sync_options(
        cls,
        config: CLIConfig,
        default_behavior: Optional[str] = None,
        folder_behavior: Optional[Dict[str, str]] = None,
        concurrency_limit: Optional[int] = None,
        flatten: Optional[bool] = None,
        prefix: Optional[str] = None,
    ) -> SyncOptions:
        """Build SyncOptions from the config, command-line values winning.

        Folder overrides given on the command line are merged into the
        configured table key by key.

        Raises:
            ConfigError: If a behavior or the concurrency limit is invalid
        """
        merged_folders = dict(config.folder_behavior)
        for key, value in (folder_behavior or {}).items():
            merged_folders[key] = cls._parse_behavior(value, f"folder_behavior.{key}")

        options = SyncOptions(
            default_behavior=config.default_behavior,
            folder_behavior=merged_folders or None,
            concurrency_limit=config.concurrency_limit,
            flatten=config.flatten,
            prefix=config.prefix,
        )
        if default_behavior is not None:
            options = replace(
                options, default_behavior=cls._parse_behavior(default_behavior, 'default_behavior')
            )
        if flatten is not None:
            options = replace(options, flatten=flatten)
        if prefix is not None:
            options = replace(options, prefix=prefix or None)
        if concurrency_limit is not None:
            try:
                options = replace(options, concurrency_limit=concurrency_limit)
            except ValueError as e:
                raise ConfigError(str(e), 'concurrency_limit')
        return options

    @classmethod
    def load_skill_map(cls, path: str) -> Dict[str, str]:
        """Read a skill name map written by save_skill_map.

        Raises:
            ConfigFilesystemError: If the file cannot be read
            ConfigError: If the file is not a mapping of strings
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f.read())
        except FileNotFoundError:
            raise ConfigFilesystemError(path, 'read', 'Skill map file not found')
        except OSError as e:
            raise ConfigFilesystemError(path, 'read', str(e))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax in skill map: {str(e)}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Skill map must be a YAML dictionary, got {type(data).__name__}"
            )
        return {str(k): str(v) for k, v in data.items()}

    @classmethod
    def save_skill_map(cls, path: str, skill_name_map: Dict[str, str]) -> None:
        cls._write_yaml(path, dict(sorted(skill_name_map.items())))

    @staticmethod
    def _write_yaml(path: str, data: Dict[str, Any]) -> None:
        yaml_str = yaml.safe_dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )

        parent = os.path.dirname(path)
        if parent:
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError as e:
                raise ConfigFilesystemError(parent, 'create_directory', str(e))

        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise ConfigFilesystemError(path, 'write', 'Permission denied')
        except OSError as e:
            raise ConfigFilesystemError(path, 'write', str(e))
