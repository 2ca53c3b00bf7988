"""Task orchestration: connection, prompts, context and generation."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv

from ctgen.consts import ANSWER_LIST_SEPARATOR, CONDITION_TRUE
from ctgen.exceptions import CtGenRuntimeError, ValidationError
from ctgen.overrides import Directives, ProfileOverrides, resolve_directives
from ctgen.profile import Profile, Prompt
from ctgen.reflection import SchemaConnection, SchemaSource, SqlAlchemySchemaSource
from ctgen.renderer import JinjaTemplateEngine, TemplateEngine

from .context import TaskContext
from .generator import GeneratedTarget, TargetGenerator
from .prompt import PromptKind, RenderedPrompt, TaskPrompt

logger = logging.getLogger(__name__)


def _is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, dict):
        return not answer or any(_is_blank(v) for v in answer.values())
    if isinstance(answer, (list, tuple)):
        return not answer
    return False


def _split_list(rendered: str) -> List[str]:
    return [item.strip() for item in rendered.split(ANSWER_LIST_SEPARATOR) if item.strip()]


def _resolve_dir(base: Path, directory: str) -> Path:
    path = Path(directory).expanduser() if directory else base
    return path if path.is_absolute() else base / path


def check_target_dir(path: Path) -> bool:
    """Whether a directory exists and is writable; both checks run concurrently."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        exists = executor.submit(path.is_dir)
        writable = executor.submit(os.access, path, os.W_OK)
        return exists.result() and writable.result()


class Task:
    """
    One code generation run for a profile.

    Construction resolves the connection and output directory and lists the
    prompts that need answers. Callers answer the prompts reported by
    ``unanswered()`` through ``answer()`` until ``is_context_ready()``, then
    call ``run()`` to write the targets.
    """

    def __init__(
        self,
        profile: Profile,
        context_dir: Union[str, Path],
        table: Optional[str] = None,
        overrides: Optional[ProfileOverrides] = None,
        schema_source: Optional[SchemaSource] = None,
        renderer: Optional[TemplateEngine] = None,
        profile_dir: Optional[Union[str, Path]] = None,
    ):
        """Initialize a task.

        Args:
            profile: Loaded profile
            context_dir: Directory the target-dir is resolved against
            table: Subject table, asked for interactively when omitted
            overrides: Run-time directive overrides
            schema_source: Schema source (default: SQLAlchemy)
            renderer: Template engine (default: Jinja engine over the profile's directories)
            profile_dir: Directory relative templates-dir/scripts-dir resolve against (default: context_dir)

        Raises:
            ValidationError: On missing or invalid directives, target-dir or table
            DatabaseError: If connecting or reflecting fails
        """
        self.profile = profile
        self.overrides = overrides
        self.context_dir = Path(context_dir)

        directives = resolve_directives(profile.config, overrides)
        dsn = self._resolve_dsn(directives)
        self.target_dir = self._resolve_target_dir(directives.target_dir)

        self.connection: SchemaConnection = (schema_source or SqlAlchemySchemaSource()).connect(dsn)

        self._table: Optional[str] = None
        self._answers: Dict[str, Any] = {}
        self._context = TaskContext()
        self._prompts = self._build_prompts(table)

        if not any(p.kind in (PromptKind.DATABASE, PromptKind.TABLE) for p in self._prompts):
            self._context.bind(self.connection.get_reflection(), self._table)

        self.renderer = renderer or self._build_renderer(Path(profile_dir) if profile_dir else self.context_dir)

    def _resolve_dsn(self, directives: Directives) -> str:
        """Explicit DSN, else the env-var read after loading the env-file."""
        if directives.dsn:
            return directives.dsn

        if not directives.env_file:
            raise ValidationError('Invalid env-file specified. Either valid DSN or valid env-file is required.')

        env_path = _resolve_dir(self.context_dir, directives.env_file)
        if not env_path.is_file():
            raise ValidationError(f'Invalid env-file specified: {env_path} not found')
        load_dotenv(env_path)

        if not directives.env_var:
            raise ValidationError('Invalid env-var specified. Either valid DSN or valid env-file and env-var is required.')

        dsn = os.getenv(directives.env_var)
        if not dsn:
            raise ValidationError(f'Invalid env-var specified: {directives.env_var} is not set')
        return dsn

    def _resolve_target_dir(self, target_dir: str) -> Path:
        if not target_dir or target_dir == '.':
            path = self.context_dir
        else:
            path = self.context_dir / target_dir
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ValidationError(f'Invalid target-dir specified: cannot create {path}: {e}') from e

        if not check_target_dir(path):
            raise ValidationError(f'Invalid target-dir specified: {path} must exist and be writable')

        logger.info(f'Target directory: {path}')
        return path

    def _build_prompts(self, table: Optional[str]) -> List[TaskPrompt]:
        prompts = []

        database_bound = bool(self.connection.database_name)
        if not database_bound:
            prompts.append(TaskPrompt.database())

        if table is None:
            prompts.append(TaskPrompt.table())
        else:
            # Without a bound database the table is checked once one is chosen
            if database_bound and table not in self.connection.list_table_names():
                raise ValidationError(f'Table does not exist: {table}')
            self._table = table

        for prompt_id in self.profile.prompts():
            prompts.append(TaskPrompt.generic(prompt_id, self.profile.get_prompt(prompt_id)))

        return prompts

    def _build_renderer(self, base_dir: Path) -> TemplateEngine:
        config = self.profile.config
        scripts_dir = _resolve_dir(base_dir, config.scripts_dir) if config.scripts_dir else None
        return JinjaTemplateEngine.for_directories(_resolve_dir(base_dir, config.templates_dir), scripts_dir)

    @property
    def table(self) -> Optional[str]:
        """Subject table"""
        return self._table

    @property
    def database_name(self) -> str:
        return self.connection.database_name

    @property
    def prompts(self) -> List[TaskPrompt]:
        """All prompts in order of appearance"""
        return list(self._prompts)

    @property
    def answers(self) -> Dict[str, Any]:
        return dict(self._answers)

    @property
    def context(self) -> TaskContext:
        return self._context

    def prompt_answer(self, prompt_id: str) -> Any:
        return self._answers.get(prompt_id)

    def find_prompt(self, prompt_id: str) -> TaskPrompt:
        """Generic prompt by id.

        Raises:
            ValidationError: If the profile declares no such prompt
        """
        for prompt in self._prompts:
            if prompt.kind is PromptKind.GENERIC and prompt.prompt_id == prompt_id:
                return prompt
        raise ValidationError(f'Unknown prompt: {prompt_id}')

    def is_answered(self, prompt: TaskPrompt) -> bool:
        if prompt.kind is PromptKind.DATABASE:
            return bool(self.connection.database_name)
        if prompt.kind is PromptKind.TABLE:
            return self._table is not None
        return prompt.prompt_id in self._answers

    def unanswered(self) -> List[TaskPrompt]:
        """Prompts still waiting for an answer, in order of appearance"""
        return [p for p in self._prompts if not self.is_answered(p)]

    def answer(self, prompt: TaskPrompt, value: Any) -> None:
        """Accept an answer to a prompt and fold it into the context.

        Raises:
            DatabaseError: If binding the database fails
            ValidationError: If the table does not exist or a required answer is blank
        """
        if prompt.kind is PromptKind.DATABASE:
            self.connection.set_database_name(str(value))
            self._check_pending_table()
        elif prompt.kind is PromptKind.TABLE:
            if value not in self.connection.list_table_names():
                raise ValidationError(f'Table does not exist: {value}')
            self._table = value
            logger.info(f'Subject table: {value}')
        else:
            if prompt.definition.required and _is_blank(value):
                raise ValidationError(f'Invalid answer to prompt {prompt.prompt_id}: a value is required')
            self._answers[prompt.prompt_id] = value
            logger.debug(f'Answered prompt {prompt.prompt_id}: {value!r}')

        self._update_context()

    def _check_pending_table(self) -> None:
        """Validate a table given before any database was bound.

        An unknown table is dropped and the table prompt is queued again,
        right after the database prompt.

        Raises:
            ValidationError: If the table does not exist in the bound database
        """
        if self._table is None or self._table in self.connection.list_table_names():
            return

        table, self._table = self._table, None
        if not any(p.kind is PromptKind.TABLE for p in self._prompts):
            position = next((i + 1 for i, p in enumerate(self._prompts) if p.kind is PromptKind.DATABASE), 0)
            self._prompts.insert(position, TaskPrompt.table())
        raise ValidationError(f'Table does not exist: {table}')

    def skip_prompt(self, prompt: TaskPrompt) -> None:
        """Record an empty answer for a generic prompt whose condition is not met."""
        if prompt.kind is not PromptKind.GENERIC:
            raise CtGenRuntimeError(f'Cannot skip the {prompt.name} prompt')
        self._answers[prompt.prompt_id] = ''
        logger.debug(f'Skipped prompt {prompt.prompt_id}')
        self._update_context()

    def _update_context(self) -> None:
        if not self._context.is_bound:
            if not (self.connection.database_name and self._table is not None):
                return
            self._context.bind(self.connection.get_reflection(), self._table)

        for prompt_id, answer in self._answers.items():
            self._context.set_prompt_answer(prompt_id, answer)

    def is_context_ready(self) -> bool:
        return self._context.is_bound and not self.unanswered()

    def context_data(self, item: Optional[str] = None) -> Dict[str, Any]:
        data = self._context.to_dict()
        if item is not None:
            data['item'] = item
        return data

    def render(self, source: str, item: Optional[str] = None) -> str:
        """Render a template string against the context"""
        return self.renderer.render_string(source, self.context_data(item))

    def render_template(self, name: str) -> str:
        """Render a named template against the context"""
        return self.renderer.render_template(name, self.context_data())

    def enumerate_prompt(self, definition: Prompt) -> List[str]:
        """Items a prompt is asked for once each; empty when it has no enumerate template."""
        if definition.enumerate is None:
            return []
        return _split_list(self.render(definition.enumerate))

    def render_prompt(self, definition: Prompt, item: Optional[str] = None) -> RenderedPrompt:
        """Evaluate a prompt definition against the context without changing task state.

        Args:
            definition: Prompt definition
            item: Enumerated item, exposed to the templates as ``item``
        """
        ask = True
        if definition.condition is not None:
            ask = self.render(definition.condition, item).strip() == CONDITION_TRUE

        if isinstance(definition.options, str):
            options = _split_list(self.render(definition.options, item))
        elif isinstance(definition.options, (list, dict)):
            options = definition.options.copy()
        else:
            options = False

        default = self.render(definition.default, item) if definition.default is not None else None

        return RenderedPrompt(
            ask=ask,
            prompt=self.render(definition.prompt, item),
            options=options,
            multiple=definition.multiple,
            ordered=definition.ordered,
            required=definition.required,
            default=default,
            item=item,
        )

    def run(self) -> List[GeneratedTarget]:
        """Render all targets and write the output files.

        Raises:
            CtGenRuntimeError: If prompts are outstanding, or rendering or writing fails
        """
        if not self.is_context_ready():
            raise CtGenRuntimeError('Context not ready to run all render tasks.')

        generator = TargetGenerator(self.renderer, self.target_dir, self.context_data())
        return generator.generate_all(self.profile)

    def close(self) -> None:
        self.connection.close()
