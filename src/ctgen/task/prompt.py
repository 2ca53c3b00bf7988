"""Task prompts and their rendered form."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from ctgen.profile import Prompt

CONFIRM_OPTION_KEYS = frozenset({'0', '1'})

RenderedOptions = Union[bool, List[str], Dict[str, str]]


class PromptKind(Enum):
    """What a task prompt asks for."""

    DATABASE = 'database'
    TABLE = 'table'
    GENERIC = 'generic'


@dataclass(frozen=True)
class TaskPrompt:
    """
    A question the task needs answered before it can generate.

    Only GENERIC prompts carry a prompt id and definition from the profile.
    """

    kind: PromptKind
    prompt_id: Optional[str] = None
    definition: Optional[Prompt] = None

    @classmethod
    def database(cls) -> 'TaskPrompt':
        return cls(PromptKind.DATABASE)

    @classmethod
    def table(cls) -> 'TaskPrompt':
        return cls(PromptKind.TABLE)

    @classmethod
    def generic(cls, prompt_id: str, definition: Prompt) -> 'TaskPrompt':
        return cls(PromptKind.GENERIC, prompt_id, definition)

    @property
    def name(self) -> str:
        return self.prompt_id if self.kind is PromptKind.GENERIC else self.kind.value


@dataclass
class RenderedPrompt:
    """A prompt definition evaluated against the current context."""

    ask: bool
    prompt: str
    options: RenderedOptions = False
    multiple: bool = False
    ordered: bool = False
    required: bool = False
    default: Optional[str] = None
    item: Optional[str] = None

    @property
    def is_free_text(self) -> bool:
        return not self.options

    @property
    def is_confirm(self) -> bool:
        """A two-option mapping keyed exactly "0"/"1" is a yes/no question."""
        return isinstance(self.options, dict) and set(self.options.keys()) == CONFIRM_OPTION_KEYS
