"""ctgen - code generator driven by Jinja templates and database schema reflection."""

from ctgen.consts import CTGEN_VERSION
from ctgen.exceptions import (
    CtGenError,
    CtGenRuntimeError,
    DatabaseError,
    InitError,
    ValidationError,
)
from ctgen.overrides import ProfileOverrides, parse_answer_overrides
from ctgen.profile import Profile, ProfileConfig, Prompt, Target
from ctgen.registry import ProfileRegistry
from ctgen.task import GeneratedTarget, PromptKind, RenderedPrompt, Task, TaskPrompt

__version__ = CTGEN_VERSION

__all__ = [
    'CtGenError',
    'CtGenRuntimeError',
    'DatabaseError',
    'GeneratedTarget',
    'InitError',
    'Profile',
    'ProfileConfig',
    'ProfileOverrides',
    'ProfileRegistry',
    'Prompt',
    'PromptKind',
    'RenderedPrompt',
    'Target',
    'Task',
    'TaskPrompt',
    'ValidationError',
    'parse_answer_overrides',
]
