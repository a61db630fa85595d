"""
Command-line interface for photoimport.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table

from .config import Config, ImportSettings
from .constants import PROGRAM, get_console, get_logger
from .core import PhotoImporter
from .exceptions import ConfigurationError
from .history import HistoryManager
from .progress import ProgressContext
from .report import FileFailure, ImportReport


def setup_logging(console: Console, verbose: bool = False) -> None:
    """Route warnings (everything with --verbose) to the console via rich."""
    logger = get_logger()
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    console_handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(console_handler)
    logger.setLevel(logging.DEBUG)


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    import_help = "Directory tree of pictures and videos to import"
    pictures_help = "Destination root for pictures"
    videos_help = "Destination root for videos"

    if config.get_import_dir():
        import_help += f" (default: {config.get_import_dir()})"
    if config.get_picture_dir():
        pictures_help += f" (default: {config.get_picture_dir()})"
    if config.get_video_dir():
        videos_help += f" (default: {config.get_video_dir()})"

    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Import pictures and videos into dated archive folders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  {PROGRAM} ~/Import --pictures ~/Pictures --videos ~/Videos
  {PROGRAM} --camera-model --prefix IMG_
  {PROGRAM} --yes
        """
    )

    parser.add_argument("import_dir", nargs="?", help=import_help)
    parser.add_argument("--pictures", dest="picture_dir", help=pictures_help)
    parser.add_argument("--videos", dest="video_dir", help=videos_help)
    parser.add_argument("--prefix", help="Text placed before the date in new filenames")
    parser.add_argument("--suffix", help="Text placed after the date in new filenames")
    parser.add_argument(
        "--camera-model", dest="use_camera_model", action=argparse.BooleanOptionalAction,
        default=None, help="Append the camera model to new filenames"
    )
    parser.add_argument(
        "--upload", dest="upload_enabled", action=argparse.BooleanOptionalAction,
        default=None, help="Upload imported pictures to the photo service"
    )
    parser.add_argument(
        "--video-extensions", metavar="LIST",
        help="Comma-separated extensions treated as video (e.g. .mov,.mp4)"
    )
    parser.add_argument(
        "--workers", "-w", type=int, metavar="N",
        help="Number of files processed in parallel (default: 1)"
    )
    parser.add_argument(
        "--yes", "-y", action="store_true",
        help="Auto-confirm processing for saved directories"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )
    return parser


def show_processing_plan(settings: ImportSettings, console: Console) -> None:
    """Display the processing plan before execution."""
    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Import:        [blue]{settings.import_dir}[/blue]")
    console.print(f"  Pictures:      [blue]{settings.picture_dir}[/blue]")
    console.print(f"  Videos:        [blue]{settings.video_dir}[/blue]")
    if settings.filename_prefix or settings.filename_suffix:
        console.print(f"  Name:          [cyan]{settings.filename_prefix}YYYYMMDD_HHMMSS"
                      f"{settings.filename_suffix}[/cyan]")
    console.print(f"  Camera Model:  [cyan]{'Yes' if settings.use_camera_model else 'No'}[/cyan]")
    console.print(f"  Upload:        [cyan]{'Yes' if settings.upload_enabled else 'No'}[/cyan]")
    if settings.workers > 1:
        console.print(f"  Workers:       [cyan]{settings.workers}[/cyan]")
    console.print()


def confirm_processing(console: Console) -> bool:
    """Ask for confirmation when using saved configuration."""
    console.print("[yellow]Confirm processing plan with saved configuration.[/yellow]")

    try:
        response = console.input("Continue? [y/N]: ").strip().lower()
        return response in ['y', 'yes']
    except (EOFError, KeyboardInterrupt):
        console.print("\n[red]Operation cancelled[/red]")
        return False


def print_summary(report: ImportReport, console: Console) -> None:
    """Print processing summary."""
    table = Table(title="Import Summary")
    table.add_column("Category", style="cyan")
    table.add_column("Count", style="green")

    table.add_row("Pictures", str(report.get_pictures()))
    table.add_row("Videos", str(report.get_videos()))
    table.add_row("Uploaded", str(report.get_uploaded()))
    table.add_row("Manual Review", str(report.get_manual()))
    table.add_row("Failed", str(report.get_failed()))
    table.add_row("Junk Skipped", str(report.get_junk()))

    size_mb = report.get_total_size_mb()
    size_str = f"{size_mb/1024:.1f} GB" if size_mb > 1024 else f"{size_mb:.1f} MB"
    table.add_row("Total Size", size_str)
    console.print(table)


def make_console_notifier(console: Console):
    """Notifier that lists failed files in a table."""

    def notify(move_errors: List[FileFailure], upload_errors: List[FileFailure]) -> None:
        table = Table(title="Files Needing Attention")
        table.add_column("File", style="yellow")
        table.add_column("Problem")
        table.add_column("Reason", style="red")
        for failure in move_errors:
            table.add_row(failure.name, "move", failure.reason)
        for failure in upload_errors:
            table.add_row(failure.name, "upload", failure.reason)
        console.print(table)

    return notify


def main(config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args()

    if args.version:
        from . import __version__
        print(__version__)
        return 0

    console = get_console()
    setup_logging(console, args.verbose)

    using_saved_config = args.import_dir is None and args.picture_dir is None \
        and args.video_dir is None

    if args.workers is not None and args.workers < 1:
        print("Error: --workers must be at least 1")
        return 1

    try:
        settings = ImportSettings.from_config(
            config,
            import_dir=args.import_dir,
            picture_dir=args.picture_dir,
            video_dir=args.video_dir,
            filename_prefix=args.prefix,
            filename_suffix=args.suffix,
            use_camera_model=args.use_camera_model,
            upload_enabled=args.upload_enabled,
            video_extensions=args.video_extensions,
            workers=args.workers,
        )
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    settings = replace(settings,
                       import_dir=settings.import_dir.resolve(),
                       picture_dir=settings.picture_dir.resolve(),
                       video_dir=settings.video_dir.resolve())

    if not settings.import_dir.is_dir():
        print(f"Error: Import directory does not exist: {settings.import_dir}")
        return 1

    show_processing_plan(settings, console)

    if using_saved_config and not args.yes:
        if not confirm_processing(console):
            return 0

    config.update_paths(str(settings.import_dir), str(settings.picture_dir),
                        str(settings.video_dir))

    importer = PhotoImporter(settings, notifier=make_console_notifier(console))
    history = HistoryManager(root_dir=config.program_root, import_dir=settings.import_dir)

    try:
        history.attach(get_logger())
        with Progress(console=console) as progress:
            task = progress.add_task("Importing files...", total=None)
            report = importer.run(ProgressContext(progress, task))

        print_summary(report, console)
        history.log_import_summary(settings.picture_dir, settings.video_dir, report)

        problems = report.get_manual() + report.get_failed()
        if problems:
            console.print(f"\n[green]✓ Import completed![/green] [yellow]({problems} files "
                          f"need manual review in {settings.import_dir})[/yellow]")
        else:
            console.print("\n[green]✓ Import completed![/green]")
        return 0

    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[red]Operation cancelled by user[/red]")
        return 1
    except Exception as e:
        console.print(f"\n[red]Fatal error: {e}[/red]")
        return 1
    finally:
        history.detach()


if __name__ == "__main__":
    sys.exit(main())
