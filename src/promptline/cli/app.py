"""Main CLI application using Typer."""
import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from ..chat import Fragment, StreamFailed, StreamSupervisor
from ..logs import teardown_file_logging
from .providers import get_config, get_session, start_logging

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="promptline",
    help="Terminal chat client streaming Gemini replies",
    no_args_is_help=True,
    add_completion=False,
)

# Console for rich output
console = Console()


@app.command()
def chat(
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Gemini model (default: $GEMINI_MODEL or gemini-2.5-flash)"
    ),
    system: str | None = typer.Option(
        None,
        "--system",
        "-s",
        help="System instruction sent with every request"
    ),
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        help="Diagnostic log file, truncated at start (default: debug.log)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, or error"
    ),
):
    """Launch the interactive chat interface (escape or ctrl+c to quit)."""
    from ..ui import run_chat_app

    config = get_config(
        console,
        model=model,
        system_instruction=system,
        log_file=log_file,
        log_level=log_level,
    )
    handler = start_logging(config, console)
    try:
        session = get_session(config, console)
        return_code = asyncio.run(run_chat_app(session))
    finally:
        teardown_file_logging(handler)

    if return_code:
        raise typer.Exit(code=return_code)


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Gemini model (default: $GEMINI_MODEL or gemini-2.5-flash)"
    ),
    system: str | None = typer.Option(
        None,
        "--system",
        "-s",
        help="System instruction sent with the request"
    ),
):
    """Stream a single reply to the terminal."""
    config = get_config(console, model=model, system_instruction=system)
    handler = start_logging(config, console)

    async def _ask() -> bool:
        session = get_session(config, console)
        supervisor = StreamSupervisor(session)
        handle = supervisor.submit(prompt)
        try:
            while supervisor.is_streaming:
                event = await supervisor.read(handle)
                supervisor.apply(event)
                if isinstance(event, Fragment):
                    console.print(event.text, end="", markup=False, highlight=False)
                elif isinstance(event, StreamFailed):
                    console.print(f"\n[red]Error: {escape(event.error)}[/red]")
                    return False
            console.print()
            return True
        finally:
            supervisor.shutdown()
            await session.close()

    try:
        ok = asyncio.run(_ask())
    finally:
        teardown_file_logging(handler)

    if not ok:
        raise typer.Exit(code=1)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
