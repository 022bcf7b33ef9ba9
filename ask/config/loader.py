"""Configuration loading utilities."""

from pathlib import Path

from loguru import logger

from ask.config.schema import AskConfig

ENV_FILE_NAME = ".env"


def get_config_dir() -> Path:
    """Get the global configuration directory (~/.config/ask)."""
    return Path.home() / ".config" / "ask"


def get_env_files(cwd: Path | None = None) -> tuple[Path, ...]:
    """
    Env files in increasing priority: global first, then the local one.

    Process environment variables override both.
    """
    local_dir = cwd or Path.cwd()
    return (get_config_dir() / ENV_FILE_NAME, local_dir / ENV_FILE_NAME)


def load_config(env_files: tuple[Path, ...] | None = None) -> AskConfig:
    """
    Load configuration from env files and the environment.

    Missing env files are skipped.

    Args:
        env_files: Optional explicit env files (lowest priority first).

    Returns:
        Loaded configuration.
    """
    files = env_files if env_files is not None else get_env_files()
    existing = tuple(p for p in files if p.is_file())
    logger.debug(f"Loading config from env files: {[str(p) for p in existing] or 'none'}")
    return AskConfig(_env_file=existing or None)
