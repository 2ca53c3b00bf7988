"""Interactive answering of task prompts."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from ctgen.exceptions import ValidationError
from ctgen.task import PromptKind, RenderedPrompt, Task, TaskPrompt

logger = logging.getLogger(__name__)


class Asker(ABC):
    """Terminal widgets used to answer prompts. Every answer comes back as plain strings."""

    @abstractmethod
    def input(self, prompt: str, default: Optional[str] = None) -> str:
        pass

    @abstractmethod
    def select(self, prompt: str, choices: List[str]) -> str:
        pass

    @abstractmethod
    def multi_select(self, prompt: str, choices: List[str], ordered: bool = False) -> List[str]:
        """Pick any number of choices; when ``ordered``, offer to reorder the picked ones."""
        pass

    @abstractmethod
    def confirm(self, prompt: str, default: bool = False) -> bool:
        pass

    def notify(self, message: str) -> None:
        logger.warning(message)


class RichAsker(Asker):
    """Asker built on rich prompts, selecting options by number."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def input(self, prompt: str, default: Optional[str] = None) -> str:
        if default is None:
            return Prompt.ask(prompt, console=self.console)
        return Prompt.ask(prompt, console=self.console, default=default)

    def select(self, prompt: str, choices: List[str]) -> str:
        self._print_choices(prompt, choices)
        index = IntPrompt.ask(
            'Choice',
            console=self.console,
            choices=[str(i) for i in range(1, len(choices) + 1)],
            show_choices=False,
        )
        return choices[index - 1]

    def multi_select(self, prompt: str, choices: List[str], ordered: bool = False) -> List[str]:
        self._print_choices(prompt, choices)
        selected = [choices[i] for i in self._ask_indexes('Choices (comma-separated numbers)', len(choices))]

        if ordered and len(selected) > 1 and Confirm.ask('Reorder selection?', console=self.console, default=False):
            selected = self.sort(prompt, selected)
        return selected

    def sort(self, prompt: str, items: List[str]) -> List[str]:
        """Ask for a new order of items as a permutation of their numbers."""
        self._print_choices(prompt, items)
        while True:
            indexes = self._ask_indexes('New order (comma-separated numbers)', len(items))
            if sorted(indexes) == list(range(len(items))):
                return [items[i] for i in indexes]
            self.console.print('[red]List every number exactly once[/red]')

    def confirm(self, prompt: str, default: bool = False) -> bool:
        return Confirm.ask(prompt, console=self.console, default=default)

    def notify(self, message: str) -> None:
        self.console.print(f'[yellow]{message}[/yellow]')

    def _print_choices(self, prompt: str, choices: List[str]) -> None:
        table = Table(title=prompt, show_header=False)
        table.add_column('#', style='cyan', justify='right')
        table.add_column('Option')
        for idx, choice in enumerate(choices, 1):
            table.add_row(str(idx), choice)
        self.console.print(table)

    def _ask_indexes(self, prompt: str, count: int) -> List[int]:
        while True:
            response = Prompt.ask(prompt, console=self.console, default='')
            try:
                indexes = [int(part) - 1 for part in response.split(',') if part.strip()]
            except ValueError:
                indexes = None
            if indexes is not None and all(0 <= i < count for i in indexes):
                return indexes
            self.console.print(f'[red]Enter numbers between 1 and {count}[/red]')


def ask_rendered_prompt(asker: Asker, rendered: RenderedPrompt) -> Any:
    """Ask one rendered prompt with the widget its options call for."""
    if rendered.is_confirm:
        return '1' if asker.confirm(rendered.prompt, default=rendered.default == '1') else '0'

    if rendered.is_free_text:
        return asker.input(rendered.prompt, rendered.default)

    if isinstance(rendered.options, dict):
        values = list(rendered.options.keys())
        labels = list(rendered.options.values())
    else:
        values = labels = list(rendered.options)

    if rendered.multiple:
        chosen = asker.multi_select(rendered.prompt, labels, ordered=rendered.ordered)
        return [values[labels.index(label)] for label in chosen]

    return values[labels.index(asker.select(rendered.prompt, labels))]


def _ask_generic(task: Task, asker: Asker, prompt: TaskPrompt) -> None:
    definition = prompt.definition

    if definition.enumerate is None:
        rendered = task.render_prompt(definition)
        if not rendered.ask:
            task.skip_prompt(prompt)
            return
        task.answer(prompt, ask_rendered_prompt(asker, rendered))
        return

    answers = {}
    for item in task.enumerate_prompt(definition):
        rendered = task.render_prompt(definition, item)
        if rendered.ask:
            answers[item] = ask_rendered_prompt(asker, rendered)

    if answers:
        task.answer(prompt, answers)
    else:
        task.skip_prompt(prompt)


def ask_prompts(task: Task, asker: Asker, preset_answers: Optional[Dict[str, Any]] = None) -> None:
    """Answer every outstanding prompt of a task.

    Preset answers are applied first; the remaining prompts are asked in order
    until none is left. An answer rejected by validation is reported through
    the asker and asked again.

    Raises:
        ValidationError: If a preset answer names an unknown prompt or is rejected
        DatabaseError: If binding the selected database fails
    """
    for prompt_id, value in (preset_answers or {}).items():
        task.answer(task.find_prompt(prompt_id), value)

    while True:
        pending = task.unanswered()
        if not pending:
            return

        prompt = pending[0]
        try:
            if prompt.kind is PromptKind.DATABASE:
                task.answer(prompt, asker.select('Select database', task.connection.list_database_names()))
            elif prompt.kind is PromptKind.TABLE:
                task.answer(prompt, asker.select('Select table', task.connection.list_table_names()))
            else:
                _ask_generic(task, asker, prompt)
        except ValidationError as e:
            asker.notify(str(e))
