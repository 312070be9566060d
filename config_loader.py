"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_OUTPUT_DIRECTORY = './drive-export'

# GitHub Action inputs are exposed to the process as INPUT_<NAME> variables
ACTION_INPUTS = {
    'INPUT_GOOGLE_DRIVE_FOLDER_ID': 'drive.folder_id',
    'INPUT_OUTPUT_DIRECTORY_PATH': 'export.output_directory',
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'drive.folder_id')
        cls._validate_required_field(config, 'export.output_directory')

        output_dir = get_nested(config, 'export.output_directory')
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        credentials_file = get_nested(config, 'drive.credentials_file')
        if credentials_file:
            cls._validate_required_field(config, 'drive.credentials_file')
            if not os.path.isfile(credentials_file):
                raise ValueError(f"drive.credentials_file '{credentials_file}' does not exist")

        for field in ('export.slugify_filenames', 'export.include_source_metadata',
                      'advanced.fail_fast', 'advanced.show_progress'):
            value = get_nested(config, field, False)
            if not isinstance(value, bool):
                raise ValueError(f"{field} must be a boolean")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        rate_limit = get_nested(config, 'advanced.rate_limit', 0.0)
        if isinstance(rate_limit, bool) or not isinstance(rate_limit, (int, float)) or rate_limit < 0:
            raise ValueError("advanced.rate_limit must be a non-negative number")

        max_retries = get_nested(config, 'advanced.max_retries', 3)
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError("advanced.max_retries must be a non-negative integer")

        for field, default in (('advanced.max_concurrent_fetches', 8), ('advanced.max_depth', 64)):
            value = get_nested(config, field, default)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{field} must be a positive integer")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('drive', 'export', 'advanced', 'logging'):
            if not isinstance(merged.get(section), dict):
                merged[section] = {}

        if getattr(args, 'folder_id', None):
            merged['drive']['folder_id'] = args.folder_id

        if getattr(args, 'credentials_file', None):
            merged['drive']['credentials_file'] = args.credentials_file

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'report', None):
            merged['export']['report_path'] = args.report

        if getattr(args, 'max_concurrency', None):
            merged['advanced']['max_concurrent_fetches'] = args.max_concurrency

        continue_on_error = getattr(args, 'continue_on_error', None)
        if continue_on_error is not None:
            merged['advanced']['fail_fast'] = not continue_on_error

        progress = getattr(args, 'progress', None)
        if progress is not None:
            merged['advanced']['show_progress'] = progress

        if getattr(args, 'verbose', 0):
            merged['logging']['level'] = 'DEBUG' if args.verbose >= 2 else 'INFO'

        return merged

    @classmethod
    def apply_action_inputs(
        cls,
        config: Dict[str, Any],
        environ: Optional[Mapping[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Fill missing values from GitHub Action style INPUT_* environment variables.

        Values already present in the configuration win; an unsubstituted
        ${VAR} placeholder counts as missing.
        """
        environ = os.environ if environ is None else environ
        merged = copy.deepcopy(config)

        for variable, path in ACTION_INPUTS.items():
            value = environ.get(variable)
            if value and cls._is_unset(get_nested(merged, path)):
                section, key = path.split('.')
                if not isinstance(merged.get(section), dict):
                    merged[section] = {}
                merged[section][key] = value

        return merged

    @classmethod
    def _is_unset(cls, value: Any) -> bool:
        """A value is unset when empty or still an unsubstituted ${VAR} placeholder."""
        if value in (None, ''):
            return True
        return isinstance(value, str) and cls.ENV_VAR_PATTERN.fullmatch(value.strip()) is not None

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "drive.folder_id")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'get_nested', 'DEFAULT_OUTPUT_DIRECTORY']
