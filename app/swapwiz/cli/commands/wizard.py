"""Interactive swap wizard.

Asks whether to create or uninstall swap, gathers and validates input,
confirms, and runs the corresponding workflow.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.progress import BarColumn, DownloadColumn, Progress, TaskID, TimeRemainingColumn

from swapwiz.cli.display import (
    print_active_swap,
    print_create_report,
    print_summary,
    print_uninstall_report,
)
from swapwiz.core.allocator import SwapFileAllocator
from swapwiz.core.config import WizardConfig
from swapwiz.core.environment import detect_container, require_root
from swapwiz.core.errors import ActivationError, InputValidationError, SwapWizardError
from swapwiz.core.swapstate import SwapStateController
from swapwiz.core.workflow import CreateWorkflow, UninstallWorkflow
from swapwiz.utils.formatting import console, print_error, print_info, print_warning
from swapwiz.utils.shell import run_interactive


def run_wizard(config: WizardConfig) -> None:
    """Run the interactive wizard.

    Args:
        config: Wizard configuration supplying defaults and store paths.

    Raises:
        typer.Exit: With code 1 on validation or operational failure.
    """
    try:
        require_root()
    except InputValidationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    console.print("[bold_header]=== Swap Setup Wizard ===[/bold_header]")
    console.print("This will create/enable swap space and make it persistent.")

    if detect_container():
        print_warning(
            "It looks like you're inside a container or unprivileged environment. "
            "Enabling a swap FILE may not be permitted. Proceed only if you know it works here."
        )

    if typer.confirm("Do you want to (re)create/enable swap?", default=True):
        _create(config)
    elif typer.confirm(
        "Do you want to UNINSTALL/disable existing swap and remove its file?",
        default=False,
    ):
        _uninstall(config)
    else:
        print_info("No changes made.")


def _create(config: WizardConfig) -> None:
    """Gather input, confirm, and provision the swap file."""
    controller = SwapStateController()
    print_active_swap(controller.list_devices())

    size_token = typer.prompt(
        "Desired swap size (e.g., 2G, 2048M, 512M)", default=config.default_size
    )
    path = typer.prompt("Swap file path", default=str(config.default_path))
    swappiness = typer.prompt("Swappiness (0-100)", default=str(config.default_swappiness))

    with _zero_fill_progress() as on_progress:
        workflow = CreateWorkflow(
            fstab_path=config.fstab_path,
            sysctl_path=config.sysctl_path,
            allocator=SwapFileAllocator(progress=on_progress),
            controller=controller,
        )
        try:
            target = workflow.build_target(size_token, path, swappiness)
        except InputValidationError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None

        print_summary(target)
        if not typer.confirm("Proceed?", default=True):
            print_info("Aborted.")
            return

        try:
            report = workflow.execute(target, confirm_reuse=_confirm_reuse)
        except ActivationError as e:
            print_error(str(e))
            console.print(f"[muted]{e.hint}[/muted]")
            raise typer.Exit(code=1) from None
        except SwapWizardError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from None

    print_active_swap(controller.list_devices())
    print_create_report(report)

    if typer.confirm("Do you want to print a quick verification (free -h)?", default=True):
        try:
            run_interactive(["free", "-h"])
        except OSError as e:
            print_warning(f"Could not run free: {e}")


def _uninstall(config: WizardConfig) -> None:
    """Disable and remove a swap file and its persistent entries."""
    controller = SwapStateController()
    print_active_swap(controller.list_devices())

    path = typer.prompt("Enter swap file path to remove", default=str(config.default_path))

    workflow = UninstallWorkflow(
        fstab_path=config.fstab_path,
        sysctl_path=config.sysctl_path,
        controller=controller,
    )
    try:
        report = workflow.execute(Path(path.strip()))
    except (SwapWizardError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    print_uninstall_report(report)


def _confirm_reuse(path: Path) -> bool:
    """Ask whether an existing swap file should be kept."""
    print_info(f"Existing swap file detected at {path}.")
    return typer.confirm("Reuse it (skip recreation)?", default=True)


class _ProgressReporter:
    """Adapts allocator progress callbacks to a Rich Progress."""

    def __init__(self, progress: Progress) -> None:
        self._progress = progress
        self._task: TaskID | None = None

    def __call__(self, written: int, total: int) -> None:
        if self._task is None:
            self._progress.start()
            self._task = self._progress.add_task("zero-fill", total=total)
        self._progress.update(self._task, completed=written)
        if written >= total:
            self._progress.stop()


@contextmanager
def _zero_fill_progress() -> Iterator[_ProgressReporter]:
    """Provide a progress callback rendered as a Rich progress bar."""
    progress = Progress(
        "[info]Writing zeros[/info]",
        BarColumn(),
        DownloadColumn(binary_units=True),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    )
    try:
        yield _ProgressReporter(progress)
    finally:
        progress.stop()
