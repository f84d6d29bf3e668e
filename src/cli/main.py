"""Main CLI entry point for the content-sync command.

This module provides the Typer application with one subcommand per path
operation: ``copy``, ``move``, ``check`` and ``validate``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import typer

from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.cli.path_command import PathCommand

app = typer.Typer(
    name="content-sync",
    help="""Copy and move Markdown documentation trees while keeping links valid.

QUICK START:
  content-sync copy guides manual                        # Copy a folder
  content-sync move guides/setup.md manual/              # Move a file
  content-sync copy skills .claude/skills --flatten --prefix pair
  content-sync check move guides manual                  # Pre-flight only
  content-sync validate                                  # Fix and report links""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"content-sync_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _parse_folder_behavior(values: Optional[List[str]]) -> Dict[str, str]:
    """Turn repeated ``FOLDER=BEHAVIOR`` options into a mapping.

    Raises:
        typer.BadParameter: If an entry has no ``=``
    """
    folder_behavior = {}
    for value in values or []:
        folder, sep, behavior = value.partition('=')
        if not sep or not behavior:
            raise typer.BadParameter(
                f"Expected FOLDER=BEHAVIOR, got '{value}'", param_hint="--folder-behavior"
            )
        folder_behavior[folder.strip()] = behavior.strip()
    return folder_behavior


ROOT_OPTION = typer.Option(
    None, "--root", "-r", help="Dataset root (default: config, $CONTENT_SYNC_DATASET_ROOT or repo root)",
)
CONFIG_OPTION = typer.Option(
    None, "--config", "-c", help="Config file (default: .content-sync/config.yaml if present)",
)
BEHAVIOR_OPTION = typer.Option(
    None, "--behavior", "-b", help="Default behavior: overwrite, add, mirror or skip",
)
FOLDER_BEHAVIOR_OPTION = typer.Option(
    None,
    "--folder-behavior",
    "-f",
    help="Per-folder behavior as FOLDER=BEHAVIOR (can be used multiple times)",
    metavar="FOLDER=BEHAVIOR",
)
VERBOSITY_OPTION = typer.Option(0, "--verbosity", "-v", help="Verbosity level: 0=summary, 1=info, 2=debug")
NO_COLOR_OPTION = typer.Option(False, "--no-color", help="Disable colored output")
LOGDIR_OPTION = typer.Option(None, "--logdir", help="Directory for log files (creates timestamped log file)")


def _run_path_operation(
    operation: str,
    source: str,
    target: str,
    root: Optional[str],
    config: Optional[str],
    behavior: Optional[str],
    folder_behavior: Optional[List[str]],
    concurrency: Optional[int],
    flatten: Optional[bool],
    prefix: Optional[str],
    skill_map: Optional[str],
    save_skill_map: Optional[str],
    verbosity: int,
    no_color: bool,
    logdir: Optional[str],
) -> None:
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)
    command = PathCommand(output_handler=output, config_path=config, dataset_root=root)
    exit_code = command.run(
        operation,
        source,
        target,
        default_behavior=behavior,
        folder_behavior=_parse_folder_behavior(folder_behavior),
        concurrency_limit=concurrency,
        flatten=flatten,
        prefix=prefix,
        skill_map_in=skill_map,
        skill_map_out=save_skill_map,
    )
    raise typer.Exit(exit_code)


@app.command("copy")
def copy_command(
    source: str = typer.Argument(..., help="Source path relative to the dataset root"),
    target: str = typer.Argument(..., help="Target path relative to the dataset root"),
    root: Optional[str] = ROOT_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    behavior: Optional[str] = BEHAVIOR_OPTION,
    folder_behavior: Optional[List[str]] = FOLDER_BEHAVIOR_OPTION,
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", help="Maximum files rewritten concurrently",
    ),
    flatten: Optional[bool] = typer.Option(
        None, "--flatten/--no-flatten", help="Collapse nested directories into one segment",
    ),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", help="Prefix for top-level destination directories",
    ),
    skill_map: Optional[str] = typer.Option(
        None, "--skill-map", help="YAML skill name map to apply to copied files",
    ),
    save_skill_map: Optional[str] = typer.Option(
        None, "--save-skill-map", help="Write the renames of this copy to a YAML file",
    ),
    verbosity: int = VERBOSITY_OPTION,
    no_color: bool = NO_COLOR_OPTION,
    logdir: Optional[str] = LOGDIR_OPTION,
) -> None:
    """Copy SOURCE to TARGET and update Markdown links."""
    _run_path_operation(
        "copy", source, target, root, config, behavior, folder_behavior, concurrency,
        flatten, prefix, skill_map, save_skill_map, verbosity, no_color, logdir,
    )


@app.command("move")
def move_command(
    source: str = typer.Argument(..., help="Source path relative to the dataset root"),
    target: str = typer.Argument(..., help="Target path relative to the dataset root"),
    root: Optional[str] = ROOT_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    behavior: Optional[str] = BEHAVIOR_OPTION,
    folder_behavior: Optional[List[str]] = FOLDER_BEHAVIOR_OPTION,
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", help="Maximum files rewritten concurrently",
    ),
    flatten: Optional[bool] = typer.Option(
        None, "--flatten/--no-flatten", help="Collapse nested directories into one segment",
    ),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", help="Prefix for top-level destination directories",
    ),
    skill_map: Optional[str] = typer.Option(
        None, "--skill-map", help="YAML skill name map to apply to moved files",
    ),
    save_skill_map: Optional[str] = typer.Option(
        None, "--save-skill-map", help="Write the renames of this move to a YAML file",
    ),
    verbosity: int = VERBOSITY_OPTION,
    no_color: bool = NO_COLOR_OPTION,
    logdir: Optional[str] = LOGDIR_OPTION,
) -> None:
    """Move SOURCE to TARGET and update Markdown links across the dataset."""
    _run_path_operation(
        "move", source, target, root, config, behavior, folder_behavior, concurrency,
        flatten, prefix, skill_map, save_skill_map, verbosity, no_color, logdir,
    )


@app.command("check")
def check_command(
    operation: str = typer.Argument(..., help="Operation to check: copy or move"),
    source: str = typer.Argument(..., help="Source path relative to the dataset root"),
    target: str = typer.Argument(..., help="Target path relative to the dataset root"),
    root: Optional[str] = ROOT_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    behavior: Optional[str] = BEHAVIOR_OPTION,
    folder_behavior: Optional[List[str]] = FOLDER_BEHAVIOR_OPTION,
    verbosity: int = VERBOSITY_OPTION,
    no_color: bool = NO_COLOR_OPTION,
) -> None:
    """Validate a copy or move without touching any file."""
    if operation not in ("copy", "move"):
        typer.echo(f"Error: operation must be 'copy' or 'move', got '{operation}'", err=True)
        raise typer.Exit(ExitCode.VALIDATION_ERROR)
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)
    command = PathCommand(output_handler=output, config_path=config, dataset_root=root)
    exit_code = command.check(
        operation,
        source,
        target,
        default_behavior=behavior,
        folder_behavior=_parse_folder_behavior(folder_behavior),
    )
    raise typer.Exit(exit_code)


@app.command("validate")
def validate_command(
    root: Optional[str] = ROOT_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    errors_file: Optional[str] = typer.Option(
        None, "--errors-file", help="Report file, relative to the dataset root",
    ),
    verbosity: int = VERBOSITY_OPTION,
    no_color: bool = NO_COLOR_OPTION,
    logdir: Optional[str] = LOGDIR_OPTION,
) -> None:
    """Normalize dataset links, patch broken ../ links and report the rest."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)
    command = PathCommand(output_handler=output, config_path=config, dataset_root=root)
    raise typer.Exit(command.validate(errors_file))


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
