"""Error taxonomy for the capture and comparison pipeline."""
from typing import Optional


class CaptureError(Exception):
    """Base class for pipeline errors."""


class ResolutionFailure(CaptureError):
    """No selector strategy located an actionable element."""

    def __init__(self, intent: str, attempted: int, screenshot: Optional[str] = None):
        self.intent = intent
        self.attempted = attempted
        self.screenshot = screenshot
        super().__init__(f"Could not resolve '{intent}' after {attempted} strategies")


class NavigationTimeout(CaptureError):
    """A URL-pattern or load-state wait exceeded its budget."""


class CredentialFailure(CaptureError):
    """The login sequence did not reach an authenticated URL."""

    def __init__(self, message: str, screenshot: Optional[str] = None):
        self.screenshot = screenshot
        super().__init__(message)


class CorrelationReadError(CaptureError):
    """A response body could not be read or parsed."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Could not read response body for {url}: {cause}")


class DialogDismissalMiss(CaptureError):
    """No dismissable dialog was present."""


class ComparisonLoadError(CaptureError):
    """One side of a visual comparison failed to load."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to load {url}: {cause}")


class WorkflowError(CaptureError):
    """An illegal state transition was requested."""


class WorkflowFailure(CaptureError):
    """A workflow step failed; the run is aborted."""

    def __init__(self, step_name: str, cause: Exception, document=None):
        self.step_name = step_name
        self.cause = cause
        self.document = document
        super().__init__(f"Step '{step_name}' failed: {cause}")
