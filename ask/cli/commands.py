"""CLI commands for ask."""

import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from ask import __version__
from ask.errors import AskError, ConfigError, PersistenceError

# Exit codes
EXIT_QUERY_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INIT_ERROR = 3

app = typer.Typer(
    name="ask",
    help="ask - conversational assistant with per-directory memory",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
err_console = Console(stderr=True)

USAGE_EXAMPLES = """Usage: ask [OPTIONS] QUERY...

Examples:
  ask how do I run tests
  ask "how does this work?"
  ask --analyze what is the project structure
  ask --reset
  ask --info"""


def version_callback(value: bool):
    if value:
        console.print(f"ask version {__version__}")
        raise typer.Exit()


def _fail(message: str, code: int, hint: str | None = None) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    if hint:
        err_console.print(hint, markup=False, highlight=False)
    raise typer.Exit(code)


def _load_config():
    """Load and validate config. Exits with a hint if it is unusable."""
    from ask.config.loader import load_config

    try:
        config = load_config()
    except ValidationError as e:
        _fail(f"Failed to load configuration: {e}", EXIT_CONFIG_ERROR)

    try:
        config.validate_credentials()
    except ConfigError as e:
        _fail(str(e), EXIT_CONFIG_ERROR, hint="Set it with: export ASK_API_KEY='your-api-key'")
    return config


def _build_loop(config, directory: str):
    """Load the directory's store and wire up the agent loop."""
    from ask.agent.loop import AgentLoop
    from ask.providers.litellm_provider import LiteLLMProvider
    from ask.session.manager import StoreManager

    store_manager = StoreManager(config.context_path)
    try:
        store = store_manager.get_or_create(directory)
    except PersistenceError as e:
        _fail(f"Failed to initialize context: {e}", EXIT_INIT_ERROR)

    provider = LiteLLMProvider(
        api_key=config.api_key,
        api_base=config.api_url,
        default_model=config.model,
        timeout=config.timeout,
        max_retries=config.max_retries,
    )
    prompt_caching = config.prompt_caching
    if prompt_caching is None:
        prompt_caching = provider.supports_prompt_caching()

    return AgentLoop(
        store=store,
        store_manager=store_manager,
        provider=provider,
        os_name=config.os_name,
        model=config.model,
        prompt_caching=prompt_caching,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )


@app.command()
def main(
    query: list[str] = typer.Argument(None, help="Question to ask", show_default=False),
    analyze: bool = typer.Option(False, "--analyze", "-a", help="Analyze directory structure before responding"),
    reset: bool = typer.Option(False, "--reset", "-r", help="Clear conversation context for current directory"),
    info: bool = typer.Option(False, "--info", "-i", help="Show context information"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True, help="Show version information"
    ),
):
    """Ask a question with this directory's conversation context."""
    from ask.logging_config import setup_logging

    setup_logging("DEBUG" if verbose else None)
    config = _load_config()
    if not verbose:
        setup_logging(config.log_level)

    # The context key is derived once, here, and passed down explicitly
    directory = str(Path.cwd().resolve())
    loop = _build_loop(config, directory)

    if reset:
        try:
            loop.reset()
        except PersistenceError as e:
            _fail(f"Failed to reset context: {e}", EXIT_INIT_ERROR)
        console.print("Context reset successfully")
        raise typer.Exit()

    if info:
        console.print(loop.info(), end="", markup=False, highlight=False)
        raise typer.Exit()

    if not query:
        console.print(USAGE_EXAMPLES, markup=False, highlight=False)
        raise typer.Exit(EXIT_QUERY_FAILED)

    if analyze:
        err_console.print("Analyzing directory structure...")
        try:
            loop.analyze()
        except AskError as e:
            err_console.print(f"[yellow]Warning:[/yellow] Analysis failed: {escape(str(e))}", highlight=False)
        else:
            err_console.print("Analysis complete.")

    try:
        response = asyncio.run(loop.query(" ".join(query)))
    except AskError as e:
        _fail(str(e), EXIT_QUERY_FAILED)

    console.print(response, markup=False, highlight=False, soft_wrap=True)
