"""Task execution engine: prompt resolution, rendering context and target generation."""

from .context import SchemaBinding, TaskContext
from .generator import GeneratedTarget, TargetGenerator
from .orchestrator import Task
from .prompt import PromptKind, RenderedPrompt, TaskPrompt

__all__ = [
    'GeneratedTarget',
    'PromptKind',
    'RenderedPrompt',
    'SchemaBinding',
    'TargetGenerator',
    'Task',
    'TaskContext',
    'TaskPrompt',
]
