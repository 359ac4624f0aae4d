"""
Error taxonomy for the license gate.

Fatal errors end the run with exit status 1. ``InvalidInput``, ``OutOfRange``
and ``ActionFailed`` are recoverable and never leave the action menu loop.
"""

from typing import Optional


class LicenseGateError(Exception):
    """Base class for every error raised by the gate."""


class IPDetectionFailure(LicenseGateError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"all IP detection services failed ({attempts} tried)")


class TransportError(LicenseGateError):
    """The authorization request never produced a response."""


class ProtocolError(LicenseGateError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"failed to parse response (status {status_code}): {body}")


class Denied(LicenseGateError):
    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code
        super().__init__(f"{message} (status: {status_code})")


class NoActionsAvailable(LicenseGateError):
    def __init__(self, directory: str, reason: Optional[str] = None):
        self.directory = directory
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"no action scripts available in {directory}{detail}")


class InstallationFailed(LicenseGateError):
    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"{step} failed: {cause}")


class InvalidInput(LicenseGateError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__("Invalid input. Please enter a number.")


class OutOfRange(LicenseGateError):
    def __init__(self, selection: int, upper: int):
        self.selection = selection
        self.upper = upper
        super().__init__(f"Invalid selection. Please choose between 0 and {upper}.")


class ActionFailed(LicenseGateError):
    def __init__(self, name: str, reason: str, exit_code: Optional[int] = None):
        self.name = name
        self.reason = reason
        self.exit_code = exit_code
        super().__init__(f"{name}: {reason}")
