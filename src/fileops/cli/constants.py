"""Constants for CLI module."""


class ExitCodes:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    REJECTED = 2
    CANCELLED = 3
    INTERRUPTED = 130


NOTIFICATION_STYLES = {
    "success": "green",
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
}
