"""Simple YAML configuration loader for voicechat."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

AUTH_TOKEN_ENV = "VOICECHAT_AUTH_TOKEN"

DEFAULTS: Dict[str, Any] = {
    "audio": {
        "sample_rate": None,  # None = device default rate
        "channels": 1,
        "chunk_size": 1024,
        "wav_layout": "pcm",
    },
    "service": {
        "base_url": "http://localhost:8000/api",
        "endpoint": "/analyze_audio",
        "auth_token": None,
    },
    "logging": {
        "level": "INFO",
        "file_path": "logs/voicechat.log",
        "console_output": True,
    },
}


class VoiceChatConfig:
    """voicechat configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and relative paths resolve against the
                        current directory.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is not None and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load the YAML file (if any) on top of the defaults."""
        config = copy.deepcopy(DEFAULTS)
        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self._resolve_paths(config, Path.cwd())
            return config

        logger.info(f"Loading configuration from: {self.config_file}")
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        _merge(config, loaded)
        self._resolve_paths(config, self.config_file.parent)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any], base_dir: Path) -> None:
        """Resolve the relative log file path against ``base_dir``."""
        log_path = config.get('logging', {}).get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(base_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'service.base_url').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation."""
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_auth_token(self) -> Optional[str]:
        """Bearer token for the analysis service; the environment wins over the file."""
        return os.environ.get(AUTH_TOKEN_ENV) or self.get('service.auth_token')

    def get_service_url(self) -> str:
        """Full URL of the analysis endpoint."""
        base_url = str(self.get('service.base_url', '')).rstrip('/')
        endpoint = str(self.get('service.endpoint', ''))
        if endpoint and not endpoint.startswith('/'):
            endpoint = '/' + endpoint
        return base_url + endpoint


def _merge(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value
