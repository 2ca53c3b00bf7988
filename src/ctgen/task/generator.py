"""Target generation: render, write, format."""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ctgen.consts import CONDITION_TRUE
from ctgen.exceptions import CtGenRuntimeError
from ctgen.profile import Profile, Target
from ctgen.renderer import TemplateEngine

logger = logging.getLogger(__name__)

TEMPLATE_DELIMITERS = ('{{', '{%')


@dataclass
class GeneratedTarget:
    """Result of writing one target."""

    target_id: str
    path: Path
    formatter_exit_code: Optional[int] = None

    @property
    def formatter_failed(self) -> bool:
        return self.formatter_exit_code not in (None, 0)


def shell_command(command: str) -> List[str]:
    """Platform shell invocation for a command line."""
    if os.name == 'nt':
        return ['cmd', '/C', command]
    return ['sh', '-c', command]


class TargetGenerator:
    """Renders profile targets against a read-only context and writes them under the target directory."""

    def __init__(self, renderer: TemplateEngine, target_dir: Path, context: Mapping[str, Any]):
        self.renderer = renderer
        self.target_dir = Path(target_dir)
        self.context = context

    def condition_met(self, condition: Optional[str]) -> bool:
        if condition is None:
            return True
        return self.renderer.render_string(condition, self.context).strip() == CONDITION_TRUE

    def generate_all(self, profile: Profile) -> List[GeneratedTarget]:
        """Generate every target in declaration order.

        Generation stops at the first target whose condition is not met;
        that target and every target after it are left ungenerated.
        """
        results = []
        for target_id in profile.targets():
            target = profile.get_target(target_id)
            if target is None:
                continue

            # break, not continue: a failed condition also ends all later targets
            if not self.condition_met(target.condition):
                logger.info(f"Condition for target '{target_id}' not met, skipping it and all remaining targets")
                break

            results.append(self.generate(target_id, target))
        return results

    def resolve_output_path(self, target: Target) -> Path:
        """Absolute output path; the target field is rendered only when it contains template syntax."""
        if any(delimiter in target.target for delimiter in TEMPLATE_DELIMITERS):
            relative = self.renderer.render_string(target.target, self.context).strip()
        else:
            relative = target.target
        return self.target_dir / relative

    def generate(self, target_id: str, target: Target) -> GeneratedTarget:
        """Render and write a single target, then run its formatter if any.

        Raises:
            CtGenRuntimeError: If rendering or writing fails
        """
        output = self.renderer.render_template(target.template, self.context)
        output_path = self.resolve_output_path(target)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8', newline='') as f:
                f.write(output)
        except OSError as e:
            raise CtGenRuntimeError(f'Failed to write target {target_id} to {output_path}: {e}') from e

        logger.info(f"Wrote target '{target_id}' to {output_path}")

        result = GeneratedTarget(target_id=target_id, path=output_path)
        if target.formatter:
            result.formatter_exit_code = self.run_formatter(target_id, target.formatter, output_path)
        return result

    def run_formatter(self, target_id: str, formatter: str, output_path: Path) -> int:
        """Run the formatter command for a written file and wait for it.

        A non-zero exit is logged and returned, never raised.

        Raises:
            CtGenRuntimeError: If the formatter fails to render or the shell cannot be started
        """
        command = self.renderer.render_string(formatter, {'target': str(output_path)})

        try:
            completed = subprocess.run(shell_command(command), capture_output=True, text=True)
        except OSError as e:
            raise CtGenRuntimeError(f'Failed to run formatter for target {target_id}: {e}') from e

        if completed.stdout.strip():
            logger.info(f"Target '{target_id}' formatter output: {completed.stdout.strip()}")
        if completed.returncode != 0:
            logger.warning(
                f"Formatter for target '{target_id}' exited with code {completed.returncode}: {completed.stderr.strip()}"
            )
        return completed.returncode
