"""
Exception taxonomy for the relay supervisor.
"""

from typing import Optional


class RelaywatchError(Exception):
    """Base class for supervisor errors"""


class StartError(RelaywatchError):
    """Relay node failed to start (bind failure, misconfiguration, ...)"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class StopError(RelaywatchError):
    """Relay node failed to stop cleanly"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ConfigError(RelaywatchError):
    """Invalid supervisor configuration"""
