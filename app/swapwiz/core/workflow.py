"""Create and uninstall workflows.

Sequences the inspector, allocator, swap state controller and persistent
stores. Operator interaction stays in the CLI: the create workflow only
asks back through the ``confirm_reuse`` callback when a valid swap file
already exists at the target path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from swapwiz.core.allocator import SwapFileAllocator
from swapwiz.core.errors import InvalidPathError, PersistenceError
from swapwiz.core.filesystem import FilesystemInspector
from swapwiz.core.persistence import LineStore, fstab_entry_matcher, sysctl_key_matcher
from swapwiz.core.size import parse_size
from swapwiz.core.swapstate import FileClassification, SwapStateController
from swapwiz.models.target import (
    AllocationOutcome,
    SwapTarget,
    parse_swappiness,
    validate_swap_path,
)

logger = logging.getLogger(__name__)

SWAPPINESS_KEY = "vm.swappiness"

# Asked with the swap file path; returns True to reuse the existing file.
ReuseCallback = Callable[[Path], bool]


@dataclass(frozen=True, slots=True)
class CreateReport:
    """Outcome of a completed create workflow.

    Attributes:
        target: The provisioned swap target.
        classification: What occupied the path before the run.
        was_active: Whether the path was active swap and got disabled first.
        reused: Whether an existing swap file was kept instead of recreated.
        allocation: Allocation outcome, None when the file was reused.
        runtime_swappiness_applied: Whether sysctl accepted the live value.
    """

    target: SwapTarget
    classification: FileClassification
    was_active: bool
    reused: bool
    allocation: AllocationOutcome | None = None
    runtime_swappiness_applied: bool = False


@dataclass(slots=True)
class UninstallReport:
    """Outcome of an uninstall workflow.

    Attributes:
        path: Swap file path that was removed.
        was_active: Whether swap was disabled on the path.
        fstab_lines_removed: Mount-table entries removed.
        file_deleted: Whether the swap file was deleted.
        sysctl_lines_removed: Swappiness entries removed.
        warnings: Best-effort steps that failed.
    """

    path: Path
    was_active: bool = False
    fstab_lines_removed: int = 0
    file_deleted: bool = False
    sysctl_lines_removed: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Check if the run changed anything."""
        return bool(
            self.was_active
            or self.fstab_lines_removed
            or self.file_deleted
            or self.sysctl_lines_removed
        )


class CreateWorkflow:
    """Provision, activate and persist a swap file.

    Attributes:
        fstab: Mount-table store.
        sysctl: Kernel tuning store.
    """

    def __init__(
        self,
        *,
        fstab_path: Path,
        sysctl_path: Path,
        inspector: FilesystemInspector | None = None,
        allocator: SwapFileAllocator | None = None,
        controller: SwapStateController | None = None,
    ) -> None:
        """Initialize the workflow.

        Args:
            fstab_path: Mount-table file.
            sysctl_path: Kernel tuning file.
            inspector: Filesystem inspector (default: new instance).
            allocator: Swap file allocator (default: new instance).
            controller: Swap state controller (default: new instance).
        """
        self.fstab = LineStore(fstab_path)
        self.sysctl = LineStore(sysctl_path)
        self._inspector = inspector or FilesystemInspector()
        self._allocator = allocator or SwapFileAllocator()
        self._controller = controller or SwapStateController()

    def build_target(self, size_token: str, path: str | Path, swappiness: str | int) -> SwapTarget:
        """Validate operator input and inspect the target filesystem.

        The parent directory of the swap file is created when missing;
        nothing else is modified.

        Args:
            size_token: Size such as "2G".
            path: Swap file path.
            swappiness: Swappiness value (0-100).

        Returns:
            Validated SwapTarget.

        Raises:
            InputValidationError: If any input is invalid.
        """
        size = parse_size(size_token)
        value = parse_swappiness(swappiness)
        swap_path = validate_swap_path(Path(str(path).strip()))
        if swap_path.is_dir():
            raise InvalidPathError(f"Swap file path is a directory: {swap_path}")

        info = self._inspector.describe(swap_path.parent)
        return SwapTarget(
            path=swap_path,
            size=size,
            swappiness=value,
            profile=info.profile,
            fs_type=info.fs_type,
        )

    def execute(self, target: SwapTarget, confirm_reuse: ReuseCallback) -> CreateReport:
        """Run every mutating step of the create workflow.

        Args:
            target: Validated swap target.
            confirm_reuse: Asked whether to keep an existing swap file.

        Returns:
            CreateReport describing what was done.

        Raises:
            DeactivationError: If the active swap at the path cannot be disabled.
            AllocationError: If the file cannot be allocated.
            ActivationError: If mkswap or swapon fails.
            PersistenceError: If fstab or sysctl.conf cannot be updated.
        """
        was_active = self._controller.deactivate(target.path)

        classification = self._controller.classify_existing_file(target.path)
        reused = classification is FileClassification.VALID_SWAP_FILE and confirm_reuse(
            target.path
        )

        allocation: AllocationOutcome | None = None
        if reused:
            logger.info("Reusing existing swap file %s", target.path)
            self._allocator.secure_permissions(target.path)
        else:
            allocation = self._allocator.allocate(
                target.path, target.size.rounded_bytes, target.profile
            )

        self._controller.activate(target.path, target.profile)

        self.fstab.upsert(fstab_entry_matcher(target.path), target.fstab_line)

        applied = self._controller.set_swappiness(target.swappiness)
        self.sysctl.upsert(sysctl_key_matcher(SWAPPINESS_KEY), target.sysctl_line)

        return CreateReport(
            target=target,
            classification=classification,
            was_active=was_active,
            reused=reused,
            allocation=allocation,
            runtime_swappiness_applied=applied,
        )


class UninstallWorkflow:
    """Disable a swap file and remove it with its persistent entries.

    Every step tolerates state already removed by an earlier run.

    Attributes:
        fstab: Mount-table store.
        sysctl: Kernel tuning store.
    """

    def __init__(
        self,
        *,
        fstab_path: Path,
        sysctl_path: Path,
        controller: SwapStateController | None = None,
    ) -> None:
        """Initialize the workflow.

        Args:
            fstab_path: Mount-table file.
            sysctl_path: Kernel tuning file.
            controller: Swap state controller (default: new instance).
        """
        self.fstab = LineStore(fstab_path)
        self.sysctl = LineStore(sysctl_path)
        self._controller = controller or SwapStateController()

    def execute(self, path: Path) -> UninstallReport:
        """Run the uninstall steps.

        Args:
            path: Swap file path.

        Returns:
            UninstallReport describing what was done.

        Raises:
            DeactivationError: If swapoff fails.
            PersistenceError: If the fstab entry cannot be removed.
            OSError: If the swap file cannot be deleted.
        """
        report = UninstallReport(path=path)
        report.was_active = self._controller.deactivate(path)

        report.fstab_lines_removed = self.fstab.remove(fstab_entry_matcher(path))

        if path.is_file():
            path.unlink()
            report.file_deleted = True
            logger.info("Deleted %s", path)

        try:
            report.sysctl_lines_removed = self.sysctl.remove(sysctl_key_matcher(SWAPPINESS_KEY))
        except PersistenceError as e:
            logger.warning("Could not update %s: %s", self.sysctl.path, e)
            report.warnings.append(str(e))

        if self.sysctl.path.exists() and not self._controller.reload_tuning(self.sysctl.path):
            report.warnings.append(f"Could not reload {self.sysctl.path} with sysctl -p.")

        return report
