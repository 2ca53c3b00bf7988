"""Profile model and its persisted YAML format.

A profile document has three top-level sections::

    profile:   # scalar connection/directory directives and ordered id lists
    prompt:    # prompt id -> prompt definition
    target:    # target id -> target definition

Multi-word directives use hyphenated keys (``env-file``, ``target-dir``) which
map onto snake_case attributes through field aliases.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ctgen.exceptions import ValidationError

logger = logging.getLogger(__name__)

# ``False`` means free-text input, a string is a template rendering to a comma-separated list
PromptOptions = Union[bool, str, List[str], Dict[str, str]]


class Prompt(BaseModel):
    """Interactive prompt definition."""

    model_config = ConfigDict(populate_by_name=True)

    condition: Optional[str] = Field(None, description='Template that must render to "1" for the prompt to be asked')
    enumerate: Optional[str] = Field(None, description='Template rendering a comma-separated list; the prompt is asked once per item')
    prompt: str = Field(..., description='Prompt text template')
    options: PromptOptions = Field(False, description='Option template, static list, or value -> label mapping')
    multiple: bool = False
    ordered: bool = False
    required: bool = False
    default: Optional[str] = Field(None, description='Template rendering the suggested free-text answer')

    @field_validator('options', mode='before')
    @classmethod
    def _stringify_options(cls, value: Any) -> Any:
        # YAML turns `0: No` into an int key; option values are always plain strings
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return value

    @field_validator('options')
    @classmethod
    def _unique_labels(cls, value: PromptOptions) -> PromptOptions:
        # A chosen label must map back to exactly one option value
        labels = list(value.values()) if isinstance(value, dict) else value
        if isinstance(labels, list):
            duplicates = sorted({label for label in labels if labels.count(label) > 1})
            if duplicates:
                raise ValueError(f'duplicate option labels: {", ".join(duplicates)}')
        return value


class Target(BaseModel):
    """Output target definition."""

    model_config = ConfigDict(populate_by_name=True)

    condition: Optional[str] = None
    template: str
    target: str
    formatter: Optional[str] = None


class ProfileConfig(BaseModel):
    """Scalar directives and ordered prompt/target ids of a profile."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ''
    env_file: str = Field('', alias='env-file')
    env_var: str = Field('', alias='env-var')
    dsn: str = ''
    target_dir: str = Field('', alias='target-dir')
    templates_dir: str = Field('', alias='templates-dir')
    scripts_dir: str = Field('', alias='scripts-dir')
    prompts: List[str] = Field(default_factory=list)
    targets: List[str] = Field(default_factory=list)


class Profile(BaseModel):
    """Code generation profile: directives, prompts and targets."""

    model_config = ConfigDict(populate_by_name=True)

    config: ProfileConfig = Field(default_factory=ProfileConfig, alias='profile')
    prompt: Dict[str, Prompt] = Field(default_factory=dict)
    target: Dict[str, Target] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.config.name

    def prompts(self) -> List[str]:
        """Prompt ids in declaration order."""
        return list(self.config.prompts)

    def get_prompt(self, prompt_id: str) -> Optional[Prompt]:
        return self.prompt.get(prompt_id)

    def targets(self) -> List[str]:
        """Target ids in declaration order."""
        return list(self.config.targets)

    def get_target(self, target_id: str) -> Optional[Target]:
        return self.target.get(target_id)

    def check_references(self) -> None:
        """Ensure every listed prompt and target id has a definition.

        Raises:
            ValidationError: If an id is listed but not defined
        """
        missing_prompts = [p for p in self.config.prompts if p not in self.prompt]
        if missing_prompts:
            raise ValidationError(f'Profile {self.name!r} lists undefined prompts: {", ".join(missing_prompts)}')

        missing_targets = [t for t in self.config.targets if t not in self.target]
        if missing_targets:
            raise ValidationError(f'Profile {self.name!r} lists undefined targets: {", ".join(missing_targets)}')

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: Optional[str] = None) -> 'Profile':
        """Build and validate a profile from its parsed document.

        Args:
            data: Parsed profile document
            name: Optional name that replaces the profile's own name

        Raises:
            ValidationError: If the document does not describe a valid profile
        """
        try:
            profile = cls.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(f'Invalid profile config: {e}') from e

        if name:
            profile.config.name = name

        profile.check_references()
        return profile

    @classmethod
    def load(cls, path: Union[str, Path], name: Optional[str] = None) -> 'Profile':
        """Load a profile from a YAML file.

        Args:
            path: Path to the profile file
            name: Optional name that replaces the profile's own name

        Returns:
            The validated Profile

        Raises:
            ValidationError: If the file cannot be read or is not a valid profile
        """
        path = Path(path)
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f'Invalid YAML in profile config {path}: {e}') from e
        except OSError as e:
            raise ValidationError(f'Failed to load profile config {path}: {e}') from e

        if not isinstance(data, dict):
            raise ValidationError(f'Profile config {path} must be a mapping')

        profile = cls.from_dict(data, name)
        logger.debug(f'Loaded profile {profile.name!r} from {path}')
        return profile

    def to_dict(self) -> Dict[str, Any]:
        """Persisted form of the profile, using hyphenated keys."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)

    def save(self, path: Union[str, Path]) -> None:
        """Write the profile to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
