"""
Configuration loading for MySQL Backup Rotator.
"""

import os
import re
from typing import Any, Optional

import yaml


class ConfigLoader:
    """Loads configuration from an optional YAML file."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    # (section, key in section) -> BackupOptions field
    OPTION_KEYS = {
        ('server', 'host'): 'host',
        ('server', 'port'): 'port',
        ('server', 'user'): 'user',
        ('server', 'password'): 'password',
        ('backup', 'databases'): 'databases',
        ('backup', 'exclude_databases'): 'exclude_databases',
        ('backup', 'db_row_threshold'): 'db_row_threshold',
        ('backup', 'table_row_threshold'): 'table_row_threshold',
        ('backup', 'batch_size'): 'batch_size',
        ('backup', 'force_split'): 'force_split',
        ('backup', 'exact_row_counts'): 'exact_row_counts',
        ('backup', 'extra_args'): 'extra_args',
        ('mysqldump', 'path'): 'mysqldump_path',
        ('output', 'directory'): 'output_dir',
        ('retention', 'daily'): 'daily_retention',
        ('retention', 'weekly'): 'weekly_retention',
        ('retention', 'monthly'): 'monthly_retention',
        ('retention', 'weekly_weekday'): 'weekly_weekday',
        ('retention', 'monthly_day'): 'monthly_day',
    }

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.config = self._load_config() if config_path else {}

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(f"Configuration file '{self.config_path}' must contain a mapping")

        return self._resolve_env_vars(config)

    def _resolve_env_vars(self, obj: Any) -> Any:
        """Recursively resolve environment variables in config."""
        if isinstance(obj, str):
            matches = self.ENV_VAR_PATTERN.findall(obj)
            for match in matches:
                env_value = os.environ.get(match, '')
                obj = obj.replace(f'${{{match}}}', env_value)
            return obj
        elif isinstance(obj, dict):
            return {k: self._resolve_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_env_vars(item) for item in obj]
        return obj

    def _section(self, name: str) -> dict[str, Any]:
        return self.config.get(name) or {}

    def get_server_settings(self) -> dict[str, Any]:
        """Get MySQL server connection settings."""
        return self._section('server')

    def get_backup_settings(self) -> dict[str, Any]:
        """Get database selection and sizing settings."""
        return self._section('backup')

    def get_mysqldump_settings(self) -> dict[str, Any]:
        """Get mysqldump executable settings."""
        return self._section('mysqldump')

    def get_output_settings(self) -> dict[str, Any]:
        """Get output settings."""
        return self._section('output')

    def get_retention_settings(self) -> dict[str, Any]:
        """Get retention counts and cadence."""
        return self._section('retention')

    def get_logging_settings(self) -> dict[str, Any]:
        """Get logging settings."""
        return dict(self._section('logging'))

    def get_option_values(self) -> dict[str, Any]:
        """Flatten the known sections into BackupOptions field names."""
        values = {}
        for (section, key), option in self.OPTION_KEYS.items():
            section_values = self._section(section)
            if key in section_values:
                values[option] = section_values[key]
        return values
