import logging
import os
import re
from pathlib import Path
from typing import Dict, Optional

import yaml

from ctgen.consts import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_ENV_VAR,
    CONFIG_FILE_NAME,
    CONFIG_NAME_DEFAULT,
    CONFIG_NAME_PATTERN,
    PROFILE_DEFAULT_FILENAME,
    PROFILE_FILE_EXTENSIONS,
)
from ctgen.exceptions import InitError, ValidationError
from ctgen.profile import Profile


class ProfileRegistry:
    """Manages named profiles, persisted as a name -> profile path mapping"""

    def __init__(self, config_file: Optional[str] = None):
        default_file = Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        self.config_file = Path(config_file or os.getenv(CONFIG_FILE_ENV_VAR) or default_file).expanduser()
        self.profiles: Dict[str, str] = {}
        self.logger = logging.getLogger(__name__)
        self._init_config_file()
        self._load_profiles()

    def add(self, name: str, path: str = '.', default: bool = False) -> str:
        """Register a profile file under a name.

        Args:
            name: Profile name; empty to use the name declared inside the profile
            path: Profile file, or a directory holding a Ctgen.yml
            default: Register under the default name instead

        Returns:
            The name the profile was registered under

        Raises:
            ValidationError: If the name is invalid or the path is not a loadable profile
        """
        if default:
            name = CONFIG_NAME_DEFAULT

        if name and not re.match(CONFIG_NAME_PATTERN, name):
            raise ValidationError(f'Invalid profile name: {name}. Make sure it matches {CONFIG_NAME_PATTERN}')

        profile_path = self._resolve_profile_path(path)
        profile = Profile.load(profile_path)

        name = name or profile.name
        if not re.match(CONFIG_NAME_PATTERN, name):
            raise ValidationError(f'Invalid profile name: {name!r}. Pass a name matching {CONFIG_NAME_PATTERN}')

        self.profiles[name] = str(profile_path)
        self._save_profiles()
        self.logger.info(f"Added profile '{name}' from {profile_path}")
        return name

    def remove(self, name: str) -> None:
        """Remove a profile by name"""
        if name not in self.profiles:
            raise ValidationError(f"Profile '{name}' not found. Available: {list(self.profiles.keys())}")
        del self.profiles[name]
        self._save_profiles()
        self.logger.info(f"Removed profile '{name}'")

    def list(self) -> Dict[str, str]:
        """List all registered profiles"""
        return dict(self.profiles)

    def get_path(self, name: str) -> Path:
        """Get the profile file registered under a name"""
        if name not in self.profiles:
            raise ValidationError(f"Profile '{name}' not found. Available: {list(self.profiles.keys())}")
        return Path(self.profiles[name])

    def load(self, name: str) -> Profile:
        """Load the profile registered under a name"""
        return Profile.load(self.get_path(name), name)

    def _resolve_profile_path(self, path: str) -> Path:
        if path in ('.', './'):
            candidate = Path.cwd() / PROFILE_DEFAULT_FILENAME
        elif not path.endswith(PROFILE_FILE_EXTENSIONS):
            candidate = Path(path).expanduser() / PROFILE_DEFAULT_FILENAME
        else:
            candidate = Path(path).expanduser()

        if not candidate.is_file():
            raise ValidationError(f'Profile config file not found: {candidate}')
        return candidate.resolve()

    def _init_config_file(self) -> None:
        """Create the registry file on first use"""
        if self.config_file.exists():
            return
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w') as f:
                yaml.safe_dump({'profiles': {}}, f, default_flow_style=False)
        except OSError as e:
            raise InitError(f'Cannot create config file {self.config_file}: {e}') from e
        self.logger.debug(f'Created profile registry at {self.config_file}')

    def _load_profiles(self) -> None:
        """Load profiles from config file"""
        try:
            with open(self.config_file, 'r') as f:
                config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            raise InitError(f'Failed to load profiles from {self.config_file}: {e}') from e

        profiles = config.get('profiles') if isinstance(config, dict) else None
        if isinstance(profiles, dict):
            self.profiles = {str(name): str(path or '') for name, path in profiles.items()}
        self.logger.debug(f'Loaded {len(self.profiles)} profiles from {self.config_file}')

    def _save_profiles(self) -> None:
        """Save profiles to config file"""
        try:
            with open(self.config_file, 'w') as f:
                yaml.safe_dump({'profiles': self.profiles}, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise InitError(f'Cannot write config file {self.config_file}: {e}') from e
        self.logger.debug(f'Saved {len(self.profiles)} profiles to {self.config_file}')
