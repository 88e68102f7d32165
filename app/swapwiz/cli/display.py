"""Shared Rich display functions for the wizard.

Provides the tables shown before and after provisioning: active swap
areas, the pre-confirmation summary, and the completion summary.
"""

from rich.table import Table

from swapwiz.core.size import format_mib
from swapwiz.core.swapstate import SwapDevice
from swapwiz.core.workflow import CreateReport, UninstallReport
from swapwiz.models.target import SwapTarget
from swapwiz.utils.formatting import (
    console,
    format_bytes,
    print_info,
    print_success,
    print_warning,
)


def create_devices_table(devices: list[SwapDevice]) -> Table:
    """Create a Rich table listing active swap areas.

    Args:
        devices: Active swap areas.

    Returns:
        Rich Table configured for swap area display.
    """
    table = Table(
        title="Active Swap",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Type", width=10)
    table.add_column("Size", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Prio", justify="right", width=5)

    for device in devices:
        table.add_row(
            device.name,
            device.swap_type,
            format_bytes(device.size_bytes),
            format_bytes(device.used_bytes),
            str(device.priority),
        )

    return table


def print_active_swap(devices: list[SwapDevice]) -> None:
    """Print the active swap areas, or a note that there are none."""
    console.print("\nCurrent active swap (if any):")
    if not devices:
        console.print("[muted]No active swap.[/muted]")
        return
    console.print(create_devices_table(devices))


def create_summary_table(target: SwapTarget) -> Table:
    """Create the summary table shown before the confirmation gate.

    Args:
        target: Validated swap target.

    Returns:
        Rich Table summarizing the planned swap file.
    """
    table = Table(
        title="Summary",
        show_header=False,
        border_style="border",
    )
    table.add_column("Setting", style="muted")
    table.add_column("Value")

    table.add_row(
        "Swap size",
        f"[value]{target.size.raw}[/value] (rounded: {format_mib(target.size.rounded_bytes)})",
    )
    table.add_row("Swap file", f"[value]{target.path}[/value]")
    table.add_row("Swappiness", f"[value]{target.swappiness}[/value]")
    table.add_row("Filesystem", target.fs_type or "unknown")

    return table


def print_summary(target: SwapTarget) -> None:
    """Print the planned swap file and any filesystem advisory."""
    console.print()
    console.print(create_summary_table(target))
    if target.profile.advisory:
        print_warning(target.profile.advisory)


def print_create_report(report: CreateReport) -> None:
    """Print the completion summary of a create run."""
    if report.allocation is not None:
        for warning in report.allocation.warnings:
            print_warning(warning)
    if not report.runtime_swappiness_applied:
        print_warning("Could not apply swappiness to the running kernel.")

    target = report.target
    console.print()
    print_success("All set!")
    console.print(f" - Swap file:  [value]{target.path}[/value]")
    console.print(f" - Size:       {format_mib(target.size.rounded_bytes)}")
    console.print(f" - Swappiness: {target.swappiness}")
    if report.reused:
        console.print(" - Existing swap file reused")
    elif report.allocation is not None:
        console.print(f" - Allocated with {report.allocation.method.value}")
    console.print(" - Persistent across reboots via fstab and sysctl.conf")


def print_uninstall_report(report: UninstallReport) -> None:
    """Print what an uninstall run did."""
    if report.was_active:
        print_info(f"Disabled swap: {report.path}")
    else:
        print_info(f"Swap {report.path} is not active (ok).")

    if report.fstab_lines_removed:
        print_info(f"Removed {report.fstab_lines_removed} fstab entry(ies).")

    if report.file_deleted:
        print_info(f"Deleted file {report.path}")
    else:
        print_info(f"File {report.path} not found (ok).")

    if report.sysctl_lines_removed:
        print_info("Removed vm.swappiness from sysctl.conf.")

    for warning in report.warnings:
        print_warning(warning)

    console.print()
    print_success("Uninstall complete.")
