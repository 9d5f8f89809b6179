"""Typed failures raised by commands, the router and configuration loading."""

from __future__ import annotations


class TaskError(Exception):
    """Base class for every failure that ends an invocation with a non-zero exit."""

    exit_code = 1


class NotFoundError(TaskError):
    """A referenced value is absent.

    Context.get() never raises this itself; callers that require the value do.
    """


class UnknownCommandError(NotFoundError):
    """No handler is registered under the requested name."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        # Rendered by the router before raising
        self.output = ""
        listing = ", ".join(available) if available else "(none)"
        super().__init__(f"Unknown command: {name}\n\nAvailable commands: {listing}")


class ValidationError(TaskError):
    """Malformed pattern, argument or content."""


class ExecutionError(TaskError):
    """A subprocess exited non-zero or could not be spawned."""


class AgentTimeoutError(ExecutionError):
    """A subprocess ran past its configured bound and was killed."""


class ConfigurationError(TaskError):
    """Missing or malformed configuration."""


class CommandFailure(TaskError):
    """Router-level wrapper around any error raised while running a command."""

    def __init__(self, command: str, cause: BaseException, output: str = "") -> None:
        self.command = command
        self.cause = cause
        self.output = output
        if isinstance(cause, TaskError):
            self.exit_code = cause.exit_code
        super().__init__(f"{command}: {cause}")


def describe(ref_or_key) -> str:
    """Human label for a reference or lookup key, used in error messages."""
    token = getattr(ref_or_key, "token", None)
    if token:
        return token
    return str(getattr(ref_or_key, "id", ref_or_key))


def require(content, ref_or_key, what: str = "Reference"):
    """Return content, raising NotFoundError when a lookup came back empty."""
    if content is None:
        raise NotFoundError(f"{what} not found: {describe(ref_or_key)}")
    return content
