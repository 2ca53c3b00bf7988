"""Run-time overrides for profile directives and prompt answers."""

from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ctgen.consts import ANSWER_LIST_SEPARATOR
from ctgen.exceptions import ValidationError
from ctgen.profile import ProfileConfig

Answer = Union[str, List[str], Dict[str, str]]


@dataclass(frozen=True)
class ProfileOverrides:
    """Directives that shadow the profile's own for a single run."""

    env_file: Optional[str] = None
    env_var: Optional[str] = None
    dsn: Optional[str] = None
    target_dir: Optional[str] = None


@dataclass(frozen=True)
class Directives:
    """Effective connection and output directives for a task."""

    env_file: str = ''
    env_var: str = ''
    dsn: str = ''
    target_dir: str = ''


def resolve_directive(config: ProfileConfig, overrides: Optional[ProfileOverrides], field_name: str) -> str:
    """Return the override value for ``field_name`` when set and non-empty, else the profile's value."""
    if overrides is not None:
        value = getattr(overrides, field_name)
        if value:
            return value
    return getattr(config, field_name)


def resolve_directives(config: ProfileConfig, overrides: Optional[ProfileOverrides] = None) -> Directives:
    """Merge profile directives with run-time overrides."""
    return Directives(**{f.name: resolve_directive(config, overrides, f.name) for f in fields(Directives)})


def parse_answer_override(pair: str) -> Tuple[str, Answer]:
    """Parse a ``key=value`` prompt answer override.

    A value containing a comma becomes a list answer, anything else stays a string.

    Raises:
        ValidationError: If the pair has no ``=`` or an empty key
    """
    key, sep, value = pair.partition('=')
    key = key.strip()
    if not sep or not key:
        raise ValidationError(f'Invalid answer override {pair!r}, expected key=value')

    if ANSWER_LIST_SEPARATOR in value:
        return key, [item.strip() for item in value.split(ANSWER_LIST_SEPARATOR)]
    return key, value


def parse_answer_overrides(pairs: Iterable[str]) -> Dict[str, Answer]:
    """Parse several ``key=value`` overrides; later keys win."""
    return dict(parse_answer_override(pair) for pair in pairs)
