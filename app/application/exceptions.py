class OnboardingError(RuntimeError):
    """Base class for onboarding workflow failures."""
    pass


class OnboardingValidationError(ValueError):
    """Raised before any network call when user input is incomplete or invalid."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "Invalid input")


class InvalidStepError(OnboardingError):
    """Raised when an action is not available in the current onboarding step."""
    pass


class OnboardingBusyError(OnboardingError):
    """Raised when an action starts while another one is still in flight."""
    pass


class RemoteOperationError(OnboardingError):
    """Raised when the backend clearly rejected a mandatory operation."""

    def __init__(self, operation: str, reason: str, status_code: int | None = None) -> None:
        self.operation = operation
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)
