#!/usr/bin/env python3
"""
Configuration module for GitGroup Tools.

Holds defaults for a run and an optional JSON file that overrides them.
Command-line options and environment variables take precedence over both.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "threads": 4,               # Concurrent clone operations
    "api_timeout": 30,          # Seconds per HTTP request, 0 = no limit
    "clone_timeout": 0,         # Seconds per clone, 0 = no limit
    "use_ssh": False,           # Use SSH URLs instead of HTTPS
    "flatten": False,           # Ignore namespace hierarchy on disk
    "max_depth": 64,            # Subgroup nesting bound
    "gitlab_pagination": False, # Follow GitLab Link headers past page 1
    "git_args": "",
    "gitlab_url": None,
    "github_url": None,
}

DEFAULT_CONFIG_FILENAME = ".gitgroup_tools_config.json"

# Environment variables holding access tokens, most specific first
TOKEN_ENV_VARS = {
    "gitlab": ("GITLAB_TOKEN", "GITGROUP_TOKEN"),
    "github": ("GITHUB_TOKEN", "GITGROUP_TOKEN"),
}

BASE_URL_ENV_VARS = {
    "gitlab": "GITLAB_URL",
    "github": "GITHUB_URL",
}


class Config:
    """Configuration manager backed by a JSON file."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file (optional)
        """
        self.config_file = config_file or self._get_default_config_path()
        self.config = self._load_config()

    def _get_default_config_path(self) -> str:
        """Get default configuration file path."""
        return os.path.join(os.path.expanduser("~"), DEFAULT_CONFIG_FILENAME)

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file."""
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.warning(f"Ignoring config file {self.config_file}: not a JSON object")
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Ignoring unreadable config file {self.config_file}: {e}")
        return {}

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if successful, False otherwise
        """
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2)
            return True
        except OSError:
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value, falling back to DEFAULT_CONFIG.

        Args:
            key: Configuration key
            default: Value used when neither the file nor DEFAULT_CONFIG has the key

        Returns:
            Configuration value or default
        """
        if key in self.config:
            return self.config[key]
        return DEFAULT_CONFIG.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self.config[key] = value

    def token_for(self, platform: str, environ: Optional[Dict[str, str]] = None) -> Optional[str]:
        """Access token for a platform from the environment, then the file."""
        environ = os.environ if environ is None else environ
        for name in TOKEN_ENV_VARS.get(platform, ()):
            if environ.get(name):
                return environ[name]
        return self.config.get(f"{platform}_token")

    def base_url_for(self, platform: str, environ: Optional[Dict[str, str]] = None) -> Optional[str]:
        """API base URL override for a platform, if any."""
        environ = os.environ if environ is None else environ
        env_name = BASE_URL_ENV_VARS.get(platform)
        if env_name and environ.get(env_name):
            return environ[env_name]
        return self.get(f"{platform}_url")

    def validate_base_url(self, url: str) -> bool:
        """
        Validate API base URL format.

        Args:
            url: URL to validate

        Returns:
            True if valid, False otherwise
        """
        if not url:
            return False

        url = url.lower()
        return url.startswith(('http://', 'https://'))

    def validate_destination_path(self, path: str) -> bool:
        """
        Validate destination path.

        Args:
            path: Destination path to validate

        Returns:
            True if valid, False otherwise
        """
        if not path:
            return False

        try:
            path_obj = Path(path)
            # Missing directories are created, existing files are not usable
            return not path_obj.exists() or path_obj.is_dir()
        except (OSError, ValueError):
            return False

    def validate_threads(self, threads: Any) -> bool:
        """Thread count must be a positive integer."""
        return isinstance(threads, int) and not isinstance(threads, bool) and threads > 0
