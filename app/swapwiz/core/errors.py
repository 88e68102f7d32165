"""Exception hierarchy for swap provisioning.

Every error raised by the core derives from SwapWizardError so the CLI can
report it and pick an exit code in one place.
"""


class SwapWizardError(Exception):
    """Base exception for all swapwiz errors."""


# =============================================================================
# Input validation
# =============================================================================


class InputValidationError(SwapWizardError):
    """Raised when operator input is rejected before any mutation."""


class InvalidSizeError(InputValidationError):
    """Raised when a size token cannot be parsed."""


class MinimumSizeError(InputValidationError):
    """Raised when a size token is below the 1 MiB minimum."""


class InvalidSwappinessError(InputValidationError):
    """Raised when swappiness is not an integer in 0-100."""


class InvalidPathError(InputValidationError):
    """Raised when the swap file path is unusable."""


class PrivilegeError(InputValidationError):
    """Raised when the process lacks administrative privileges."""


# =============================================================================
# Operational failures
# =============================================================================


class FilesystemInspectionError(SwapWizardError):
    """Raised when the filesystem type of a directory cannot be determined."""


class AllocationError(SwapWizardError):
    """Raised when the swap file cannot be allocated."""


class HoleVerificationError(AllocationError):
    """Raised when a copy-on-write filesystem produced a file with holes."""


class ActivationError(SwapWizardError):
    """Raised when formatting or enabling the swap file fails.

    Attributes:
        stage: Either "format" or "enable".
        hint: Remediation hint for the operator.
    """

    def __init__(self, message: str, *, stage: str, hint: str) -> None:
        super().__init__(message)
        self.stage = stage
        self.hint = hint


class PersistenceError(SwapWizardError):
    """Raised when a persistent configuration store cannot be rewritten."""


class DeactivationError(SwapWizardError):
    """Raised when an active swap file cannot be disabled."""
