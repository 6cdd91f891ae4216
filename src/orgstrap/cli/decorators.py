"""Decorators for CLI commands."""

from functools import wraps
from typing import Callable, Coroutine, TypeVar

import typer

from ..config import ConfigError
from ..gcloud_client import GcloudError, get_client
from ..operations import OperationError
from .output import out

R = TypeVar("R")


def handle_errors(func: Callable[..., Coroutine[None, None, R]]) -> Callable[..., Coroutine[None, None, R]]:
    """Decorator that turns orgstrap errors into a message and exit code 1."""
    @wraps(func)
    async def wrapper(*args: object, **kwargs: object) -> R:
        try:
            return await func(*args, **kwargs)
        except ConfigError as e:
            out.error(str(e))
            out.hint("See orgstrap.example.yaml for every supported key.")
            raise typer.Exit(1)
        except (OperationError, GcloudError) as e:
            out.error(str(e))
            out.hint("Fix the cause and run again; finished steps are skipped.")
            raise typer.Exit(1)
    return wrapper


def require_gcloud(func: Callable[..., Coroutine[None, None, R]]) -> Callable[..., Coroutine[None, None, R]]:
    """Decorator that checks gcloud availability before running the command."""
    @wraps(func)
    async def wrapper(*args: object, **kwargs: object) -> R:
        client = get_client()
        if not await client.is_available():
            out.error("gcloud is not available.")
            out.hint("Install the Google Cloud CLI and run: [bold]gcloud auth login[/bold]")
            raise typer.Exit(1)
        return await func(*args, **kwargs)
    return handle_errors(wrapper)
