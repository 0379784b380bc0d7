"""Startup helpers for CLI commands.

Centralizes configuration, log file and session creation. Every failure
here is fatal: a red diagnostic is printed and the command exits with code 1
before any UI is drawn.
"""

import logging
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from ..chat import ChatSession
from ..config import ChatConfig, load_config
from ..exceptions import ConfigurationError, StartupError
from ..llm import create_llm_provider
from ..logs import setup_file_logging

# Default console for output
_console = Console()

logger = logging.getLogger(__name__)


def get_config(console: Console | None = None, **overrides: Any) -> ChatConfig:
    """Load configuration from the environment.

    Raises:
        SystemExit: If GOOGLE_CLI is not set or a value is invalid

    Environment variables:
        GOOGLE_CLI: Gemini API key (required)
        GEMINI_MODEL: Model name (default: gemini-2.5-flash)
        PROMPTLINE_SYSTEM_INSTRUCTION: System instruction (default: "answer concisely.")
        PROMPTLINE_LOG_FILE: Diagnostic log path (default: debug.log)
        PROMPTLINE_LOG_LEVEL: debug, info, warning or error (default: debug)
    """
    con = console or _console
    try:
        return load_config(**overrides)
    except ConfigurationError as e:
        con.print(f"[red]fatal: {escape(e.message)}[/red]")
        raise typer.Exit(code=1)


def start_logging(config: ChatConfig, console: Console | None = None) -> logging.Handler:
    """Open (and truncate) the diagnostic log file.

    Raises:
        SystemExit: If the log file cannot be opened
    """
    con = console or _console
    try:
        return setup_file_logging(config.log_file, config.log_level)
    except StartupError as e:
        con.print(f"[red]fatal: {escape(e.message)}[/red]")
        raise typer.Exit(code=1)


def get_session(config: ChatConfig, console: Console | None = None) -> ChatSession:
    """Create the Gemini provider and the chat session around it.

    Raises:
        SystemExit: If the remote client cannot be constructed
    """
    con = console or _console
    try:
        provider = create_llm_provider(
            "gemini",
            api_key=config.api_key.get_secret_value(),
            model=config.model,
        )
    except Exception as e:
        logger.exception("Cannot create Gemini client")
        con.print(f"[red]fatal: cannot create Gemini client: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    return ChatSession(
        provider,
        system_instruction=config.system_instruction,
        temperature=config.temperature,
    )
