"""Template rendering engine for ctgen."""

import dataclasses
import importlib.util
import json
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import inflection
from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound
from slugify import slugify

from ctgen.consts import SCRIPT_FILE_EXT, SCRIPT_HELPER_ATTR, TEMPLATE_FILE_EXT
from ctgen.exceptions import CtGenRuntimeError, ValidationError

logger = logging.getLogger(__name__)


class TemplateEngine(ABC):
    """Renders named templates and ad hoc template strings against a context."""

    @abstractmethod
    def register_templates_directory(self, templates_dir: Path) -> None:
        pass

    @abstractmethod
    def register_helper(self, name: str, helper: Callable[..., Any]) -> None:
        pass

    @abstractmethod
    def register_script_helpers(self, scripts_dir: Path) -> List[str]:
        """Register every helper script found under a directory, returning their names."""
        pass

    @abstractmethod
    def render_template(self, name: str, context: Optional[Mapping[str, Any]] = None) -> str:
        pass

    @abstractmethod
    def render_string(self, source: str, context: Optional[Mapping[str, Any]] = None) -> str:
        pass


def _identifier(value: Any) -> str:
    # slugify normalises separators and accents, inflection splits on case boundaries
    return inflection.underscore(slugify(str(value), separator='_', lowercase=False))


def snake_case(value: Any) -> str:
    return _identifier(value)


def kebab_case(value: Any) -> str:
    return inflection.dasherize(_identifier(value))


def constant_case(value: Any) -> str:
    return _identifier(value).upper()


def pascal_case(value: Any) -> str:
    return inflection.camelize(_identifier(value))


def camel_case(value: Any) -> str:
    identifier = _identifier(value)
    if not identifier:
        return ''
    return inflection.camelize(identifier, uppercase_first_letter=False)


def title_case(value: Any) -> str:
    # inflection.titleize would drop a trailing "_id"
    return ' '.join(word.capitalize() for word in _identifier(value).split('_') if word)


def pluralize(value: Any) -> str:
    return inflection.pluralize(str(value))


def singularize(value: Any) -> str:
    return inflection.singularize(str(value))


INFLECTIONS: Dict[str, Callable[[Any], str]] = {
    'to_singular': singularize,
    'to_plural': pluralize,
    'to_snake_case': snake_case,
    'to_kebab_case': kebab_case,
    'to_screaming_snake_case': constant_case,
    'to_pascal_case': pascal_case,
    'to_camel_case': camel_case,
    'to_title_case': title_case,
    'to_class_case': lambda value: pascal_case(singularize(snake_case(value))),
    'to_table_case': lambda value: pluralize(snake_case(value)),
}


def inflect(value: Any, **options: bool) -> str:
    """Apply the named inflections that are switched on, in the order given.

    ``{{ inflect(table_name, to_singular=true, to_pascal_case=true) }}``

    Raises:
        CtGenRuntimeError: If an option names no known inflection
    """
    result = str(value)
    for option, enabled in options.items():
        if option not in INFLECTIONS:
            raise CtGenRuntimeError(f'Unknown inflection {option!r}, expected one of {", ".join(INFLECTIONS)}')
        if enabled:
            result = INFLECTIONS[option](result)
    return result


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def to_json(value: Any, indent: Optional[int] = None) -> str:
    """Serialize a context value to a JSON string."""
    return json.dumps(value, default=_json_default, ensure_ascii=False, indent=indent)


def concat(*values: Any, separator: str = '') -> str:
    """Concatenate values, flattening lists."""
    parts = []
    for value in values:
        if isinstance(value, (list, tuple)):
            parts.extend(str(v) for v in value)
        elif value is not None:
            parts.append(str(value))
    return separator.join(parts)


DEFAULT_HELPERS: Dict[str, Callable[..., Any]] = {
    'snake_case': snake_case,
    'kebab_case': kebab_case,
    'constant_case': constant_case,
    'pascal_case': pascal_case,
    'camel_case': camel_case,
    'pluralize': pluralize,
    'singularize': singularize,
    'inflect': inflect,
    'title_case': title_case,
    'json': to_json,
    'concat': concat,
}


class JinjaTemplateEngine(TemplateEngine):
    """Template engine with Jinja templating and ctgen helpers."""

    def __init__(self):
        self._template_dirs: List[str] = []

        # Generated files are source code, not HTML
        self.env = Environment(
            loader=FileSystemLoader(self._template_dirs),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        for name, helper in DEFAULT_HELPERS.items():
            self.register_helper(name, helper)

    @classmethod
    def for_directories(cls, templates_dir: Path, scripts_dir: Optional[Path] = None) -> 'JinjaTemplateEngine':
        """Build an engine for a templates directory and an optional helper scripts directory."""
        engine = cls()
        engine.register_templates_directory(templates_dir)
        if scripts_dir is not None:
            engine.register_script_helpers(scripts_dir)
        return engine

    def register_templates_directory(self, templates_dir: Path) -> None:
        """Make ``<name>.jinja`` files under a directory renderable by name.

        Raises:
            ValidationError: If the directory does not exist
        """
        templates_dir = Path(templates_dir)
        if not templates_dir.is_dir():
            raise ValidationError(f'Invalid templates-dir specified: {templates_dir}')

        self._template_dirs.append(str(templates_dir))
        self.env.loader = FileSystemLoader(self._template_dirs)
        logger.debug(f'Registered templates directory {templates_dir}')

    def register_helper(self, name: str, helper: Callable[..., Any]) -> None:
        """Expose a helper as a filter, and as a global function when its name has no dots."""
        self.env.filters[name] = helper
        if '.' not in name:
            self.env.globals[name] = helper

    def register_script_helpers(self, scripts_dir: Path) -> List[str]:
        """Register ``helper`` callables from Python scripts under a directory.

        Nested scripts are named by their relative path joined with dots, e.g.
        ``sql/quote.py`` becomes the ``sql.quote`` filter. Files whose name
        starts with a dot are ignored.

        Returns:
            Names of the registered helpers

        Raises:
            CtGenRuntimeError: If a script fails to load or has no helper callable
        """
        scripts_dir = Path(scripts_dir)
        if not scripts_dir.is_dir():
            logger.debug(f'No scripts directory at {scripts_dir}')
            return []

        names = []
        for script_path in sorted(scripts_dir.rglob(f'*{SCRIPT_FILE_EXT}')):
            if script_path.stem.startswith('.'):
                continue
            name = '.'.join(script_path.relative_to(scripts_dir).with_suffix('').parts)
            self.register_helper(name, self._load_script_helper(name, script_path))
            names.append(name)

        logger.debug(f'Registered {len(names)} script helpers from {scripts_dir}')
        return names

    def _load_script_helper(self, name: str, script_path: Path) -> Callable[..., Any]:
        module_name = f'ctgen_script_helpers.{name}'
        spec = importlib.util.spec_from_file_location(module_name, script_path)
        if spec is None or spec.loader is None:
            raise CtGenRuntimeError(f'Cannot load helper script {script_path}')

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise CtGenRuntimeError(f'Failed to load helper script {script_path}: {e}') from e

        helper = getattr(module, SCRIPT_HELPER_ATTR, None)
        if not callable(helper):
            raise CtGenRuntimeError(f'Helper script {script_path} does not define a callable {SCRIPT_HELPER_ATTR!r}')
        return helper

    def render_template(self, name: str, context: Optional[Mapping[str, Any]] = None) -> str:
        """Render a registered template by name.

        Raises:
            CtGenRuntimeError: If the template is missing or fails to render
        """
        try:
            template = self.env.get_template(f'{name}{TEMPLATE_FILE_EXT}')
        except TemplateNotFound as e:
            raise CtGenRuntimeError(f'Template not found: {name}{TEMPLATE_FILE_EXT}') from e
        except TemplateError as e:
            raise CtGenRuntimeError(f'Failed to compile template {name}: {e}') from e

        try:
            return template.render(**dict(context or {}))
        except Exception as e:
            raise CtGenRuntimeError(f'Failed to render template {name}: {e}') from e

    def render_string(self, source: str, context: Optional[Mapping[str, Any]] = None) -> str:
        """Render a template string.

        Raises:
            CtGenRuntimeError: If the string fails to compile or render
        """
        try:
            return self.env.from_string(source).render(**dict(context or {}))
        except Exception as e:
            raise CtGenRuntimeError(f'Failed to render {source!r}: {e}') from e
