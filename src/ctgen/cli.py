"""CLI for ctgen."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ctgen.asker import RichAsker, ask_prompts
from ctgen.consts import CONFIG_NAME_DEFAULT
from ctgen.exceptions import CtGenError, DatabaseError, ValidationError
from ctgen.overrides import ProfileOverrides, parse_answer_overrides
from ctgen.profile import Profile
from ctgen.registry import ProfileRegistry
from ctgen.task import Task

app = typer.Typer(name='ctgen', help='Code Template Generator')
config_app = typer.Typer(help='Manage code template config profiles')
app.add_typer(config_app, name='config')
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


@config_app.command('add')
def config_add(
    path: str = typer.Argument('.', help='Path to Ctgen.yml file, or a directory holding one'),
    name: Optional[str] = typer.Option(None, '--name', help='Add config with specific name'),
    default: bool = typer.Option(False, '--default', help='Add config as default'),
):
    """Add a config profile. If no name is given, the name from the profile file is used."""
    if default and name:
        console.print('[bold red]Error:[/bold red] --default and --name cannot be used together')
        sys.exit(1)

    try:
        registry = ProfileRegistry()
        registered = registry.add(name or '', path, default=default)
        console.print(f'[green]✓[/green] Added profile [bold]{registered}[/bold] ({registry.get_path(registered)})')
    except CtGenError as e:
        console.print(f'[bold red]Error:[/bold red] {e}')
        sys.exit(1)


@config_app.command('list')
def config_list():
    """List all saved config profiles."""
    try:
        profiles = ProfileRegistry().list()
    except CtGenError as e:
        console.print(f'[bold red]Error:[/bold red] {e}')
        sys.exit(1)

    if not profiles:
        console.print('[yellow]No profiles configured[/yellow]')
        console.print('Run [bold]ctgen config add[/bold] to add one')
        return

    table = Table(title='Profiles')
    table.add_column('Name', style='cyan')
    table.add_column('Path', style='dim')
    for profile_name, profile_path in profiles.items():
        table.add_row(profile_name, profile_path)
    console.print(table)


@config_app.command('rm')
def config_rm(name: str = typer.Argument(..., help='Config profile name to remove')):
    """Remove a config profile."""
    try:
        ProfileRegistry().remove(name)
        console.print(f'[green]✓[/green] Removed profile [bold]{name}[/bold]')
    except CtGenError as e:
        console.print(f'[bold red]Error:[/bold red] {e}')
        sys.exit(1)


@app.command()
def run(
    table: Optional[str] = typer.Argument(None, help='Database table name to generate code templates for'),
    profile: str = typer.Option(CONFIG_NAME_DEFAULT, '--profile', '-p', help='Registered profile name'),
    profile_file: Optional[Path] = typer.Option(None, '--profile-file', help='Profile file to use instead of a registered profile'),
    context_dir: Optional[Path] = typer.Option(None, '--context-dir', help='Directory target-dir is relative to (default: current directory)'),
    env_file: Optional[str] = typer.Option(None, '--env-file', envvar='CTGEN_ENV_FILE', help='Override env-file'),
    env_var: Optional[str] = typer.Option(None, '--env-var', envvar='CTGEN_ENV_VAR', help='Override env-var'),
    dsn: Optional[str] = typer.Option(None, '--dsn', envvar='CTGEN_DSN', help='Override dsn'),
    target_dir: Optional[str] = typer.Option(None, '--target-dir', envvar='CTGEN_TARGET_DIR', help='Override target-dir'),
    answers: Optional[List[str]] = typer.Option(None, '--set', '-s', help='Prompt answer as key=value; commas make a list'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Log progress'),
):
    """Run code template generator."""
    _setup_logging(verbose)
    task = None
    try:
        if profile_file is not None:
            profile_path = profile_file.resolve()
            loaded = Profile.load(profile_path)
        else:
            profile_path = ProfileRegistry().get_path(profile)
            loaded = Profile.load(profile_path, profile)

        preset_answers = parse_answer_overrides(answers or [])
        overrides = ProfileOverrides(env_file=env_file, env_var=env_var, dsn=dsn, target_dir=target_dir)

        task = Task(
            loaded,
            (context_dir or Path.cwd()).resolve(),
            table,
            overrides,
            profile_dir=profile_path.parent,
        )

        ask_prompts(task, RichAsker(console), preset_answers)

        console.print(f'[bold]Generating {loaded.name or "profile"} for {task.table}...[/bold]\n')
        generated = task.run()

        if not generated:
            console.print('[yellow]No targets generated[/yellow]')
            return

        results = Table(title='Generated Targets')
        results.add_column('Target', style='cyan')
        results.add_column('File', style='green')
        results.add_column('Formatter', style='yellow')
        for result in generated:
            if result.formatter_exit_code is None:
                formatter_str = '-'
            elif result.formatter_failed:
                formatter_str = f'[red]exit {result.formatter_exit_code}[/red]'
            else:
                formatter_str = '✓'
            results.add_row(result.target_id, str(result.path), formatter_str)
        console.print(results)

    except ValidationError as e:
        console.print(f'[bold red]Validation Error:[/bold red] {e}')
        sys.exit(1)
    except DatabaseError as e:
        console.print(f'[bold red]Database Error:[/bold red] {e}')
        sys.exit(1)
    except CtGenError as e:
        console.print(f'[bold red]Error:[/bold red] {e}')
        sys.exit(1)
    except Exception as e:
        console.print(f'[bold red]Unexpected error:[/bold red] {e}')
        sys.exit(1)
    finally:
        if task is not None:
            task.close()


def main():
    """Entry point for CLI."""
    app()


if __name__ == '__main__':
    main()
