"""
activereduce Command Line Interface

Runs online active learning over example files and manages configuration.
"""
import argparse
import json
import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import get_default_config, load_config, settings
from .errors import ActiveReduceError
from .pipeline import OnlineDriver
from .reductions import build_learner


class CLIError(Exception):
    """CLI-specific error with exit code."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class BaseCommand(ABC):
    """Base class for CLI commands."""

    def __init__(self, console: Console):
        self.console = console

    @abstractmethod
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the command with given arguments."""
        pass

    def _validate_file_exists(self, filepath: str, file_type: str = "File") -> Path:
        """Validate that a file exists."""
        path = Path(filepath)
        if not path.exists():
            raise CLIError(f"{file_type} not found: {filepath}")
        return path


# option name -> argparse destination, for options shared with config files
RUN_OPTIONS = [
    "active", "cs_active", "simulation", "baseline", "mellowness", "oracular",
    "simple_threshold", "range_c", "max_labels", "min_labels", "cost_max",
    "cost_min", "csa_debug", "lda", "csoaa", "active_cover", "loss_function",
    "learning_rate", "power_t", "initial_t", "seed", "final_regressor",
    "checkpoint_dir", "predictions", "raw_predictions",
]


class RunCommand(BaseCommand):
    """Command for running online (active) learning over a data file."""

    def __init__(self, console: Console, config: Optional[Dict[str, Any]] = None):
        super().__init__(console)
        self.config = config or get_default_config()

    def execute(self, args: argparse.Namespace) -> int:
        """Execute a learning run."""
        data_file = self._validate_file_exists(args.data, "Data file")
        options = self._merge_options(args)

        try:
            learner, context = build_learner(options)
            with OnlineDriver(learner, context, training=not args.test_only) as driver:
                summary = driver.run_file(data_file)
        except ActiveReduceError as e:
            raise CLIError(str(e))

        if args.format == "json":
            print(json.dumps(summary, indent=2))
        else:
            self._display_summary(summary)
        return 0

    def _merge_options(self, args: argparse.Namespace) -> Dict[str, Any]:
        options = dict(self.config)
        for name in RUN_OPTIONS:
            value = getattr(args, name, None)
            if value is None or value is False:
                continue
            options[name] = value
        return options

    def _display_summary(self, summary: Dict[str, Any]):
        table = Table(title="Run Summary")
        table.add_column("Statistic", style="cyan")
        table.add_column("Value", style="white")

        for key, value in summary.items():
            if isinstance(value, float):
                text = f"{value:.6f}"
            else:
                text = str(value)
            table.add_row(key.replace("_", " "), text)
        self.console.print(table)


class ConfigCommand(BaseCommand):
    """Command for configuration management."""

    def __init__(self, console: Console, config: Optional[Dict[str, Any]] = None):
        super().__init__(console)
        self.config = config or get_default_config()

    def execute(self, args: argparse.Namespace) -> int:
        """Execute config management."""
        if args.show:
            return self._show_config()
        elif args.get:
            return self._get_config_value(args.get)
        self.console.print("[yellow]No config action specified. Use --help for options.[/yellow]")
        return 1

    def _show_config(self) -> int:
        """Show current configuration."""
        self.console.print("[bold]Current Configuration:[/bold]")
        self.console.print(Panel(
            json.dumps(self.config, indent=2, default=str),
            title="Config",
            expand=False
        ))
        self.console.print(Panel(
            json.dumps(settings.to_dict(), indent=2),
            title="Settings",
            expand=False
        ))
        return 0

    def _get_config_value(self, key: str) -> int:
        """Get specific configuration value."""
        if key not in self.config:
            self.console.print(f"[red]Configuration key not found: {key}[/red]")
            return 1
        self.console.print(str(self.config[key]))
        return 0


class ActiveReduceCLI:
    """Main CLI application class."""

    def __init__(self):
        self.console = Console(stderr=True)

    def run(self, args: List[str]) -> int:
        """Run the CLI with given arguments."""
        parser = create_parser()
        parsed_args = parser.parse_args(args)
        if not parsed_args.command:
            parser.print_help()
            return 1

        setup_logging(parsed_args)

        config = (
            self._load_config_file(parsed_args.config_file)
            if getattr(parsed_args, "config_file", None)
            else get_default_config()
        )

        command = self._create_command(parsed_args, config)
        return command.execute(parsed_args)

    def _load_config_file(self, config_file: str) -> Dict[str, Any]:
        """Load configuration from file."""
        if not Path(config_file).exists():
            raise CLIError(f"Config file not found: {config_file}")
        try:
            return load_config(config_file)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise CLIError(f"Invalid config file {config_file}: {e}")

    def _create_command(self, args: argparse.Namespace, config: Dict[str, Any]) -> BaseCommand:
        """Create appropriate command instance."""
        if args.command == "run":
            return RunCommand(self.console, config)
        elif args.command == "config":
            return ConfigCommand(self.console, config)
        else:
            raise CLIError(f"Unknown command: {args.command}")


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="activereduce",
        description="activereduce - importance-weighted online active learning",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  activereduce run train.txt --active --simulation --mellowness 8
  activereduce run train.txt --active --simulation --min-labels 100 -f model.bin
  activereduce run costs.txt --cs-active 3 --simulation --range-c 0.5
  activereduce config --show
        """
    )

    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose output")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Enable quiet mode")
    parser.add_argument("--config-file", "-c", type=str,
                        help="Path to configuration file (YAML or JSON)")
    parser.add_argument("--version", action="version",
                        version=f"activereduce {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run online learning over a data file")
    run_parser.add_argument("data", help="Example file, one example per line")
    run_parser.add_argument("--predictions", "-p", type=str,
                            help="File to write predictions to")
    run_parser.add_argument("--raw-predictions", "-r", dest="raw_predictions", type=str,
                            help="File to write raw predictions to")
    run_parser.add_argument("--final-regressor", "-f", dest="final_regressor", type=str,
                            help="Base name for model checkpoints")
    run_parser.add_argument("--checkpoint-dir", dest="checkpoint_dir", type=str,
                            help="Directory for model checkpoints")
    run_parser.add_argument("--seed", type=int, help="Random seed for query decisions")
    run_parser.add_argument("--test-only", "-t", dest="test_only", action="store_true",
                            help="Ignore labels and only predict")
    run_parser.add_argument("--format", choices=["table", "json"], default="table",
                            help="Summary output format")

    binary = run_parser.add_argument_group("Active Learning options")
    binary.add_argument("--active", action="store_true", help="enable active learning")
    binary.add_argument("--simulation", action="store_true",
                        help="active learning simulation mode")
    binary.add_argument("--mellowness", type=float,
                        help="mellowness parameter c_0. Default 8 (active), 0.1 (cs_active)")
    binary.add_argument("--oracular", action="store_true", help="using oracular CAL")
    binary.add_argument("--simple-threshold", dest="simple_threshold", action="store_true",
                        help="using simple threshold")
    binary.add_argument("--max-labels", dest="max_labels", type=float,
                        help="maximum number of label queries")
    binary.add_argument("--min-labels", dest="min_labels", type=float,
                        help="minimum number of label queries")

    cs = run_parser.add_argument_group("Cost-sensitive active learning options")
    cs.add_argument("--cs-active", dest="cs_active", type=int, metavar="K",
                    help="cost-sensitive active learning with K costs")
    cs.add_argument("--baseline", action="store_true",
                    help="cost-sensitive active learning baseline")
    cs.add_argument("--range-c", dest="range_c", type=float,
                    help="threshold multiplier for per-label cost uncertainty. Default 0.5")
    cs.add_argument("--cost-max", dest="cost_max", type=float, help="cost upper bound. Default 1")
    cs.add_argument("--cost-min", dest="cost_min", type=float, help="cost lower bound. Default 0")
    cs.add_argument("--csa-debug", dest="csa_debug", action="store_true",
                    help="log per-class query decisions")

    base = run_parser.add_argument_group("Base learner options")
    base.add_argument("--loss-function", dest="loss_function", type=str,
                      help="loss function. Default squared")
    base.add_argument("--learning-rate", "-l", dest="learning_rate", type=float,
                      help="learning rate. Default 0.5")
    base.add_argument("--power-t", dest="power_t", type=float,
                      help="learning rate decay exponent. Default 0.5")
    base.add_argument("--initial-t", dest="initial_t", type=float,
                      help="initial t for the learning rate schedule. Default 1")
    base.add_argument("--lda", action="store_true", help=argparse.SUPPRESS)
    base.add_argument("--csoaa", action="store_true", help=argparse.SUPPRESS)
    base.add_argument("--active-cover", dest="active_cover", action="store_true",
                      help=argparse.SUPPRESS)

    # Config command
    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_group = config_parser.add_mutually_exclusive_group(required=True)
    config_group.add_argument("--show", action="store_true",
                              help="Show current configuration")
    config_group.add_argument("--get", type=str,
                              help="Get configuration value by key")

    return parser


def setup_logging(args: argparse.Namespace):
    """Setup logging based on CLI arguments."""
    if getattr(args, "quiet", False):
        level = logging.ERROR
    elif getattr(args, "verbose", False):
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.LOG_LEVEL)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=Console(stderr=True))]
    )


def main(args: List[str] = None) -> int:
    """Main entry point for CLI."""
    if args is None:
        args = sys.argv[1:]

    cli = ActiveReduceCLI()

    try:
        return cli.run(args)
    except CLIError as e:
        cli.console.print(f"[red]Error: {str(e)}[/red]")
        return e.exit_code
    except KeyboardInterrupt:
        cli.console.print("\n[yellow]Operation interrupted[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
