"""Persistence for per-directory conversation stores."""

import json
from datetime import datetime
from pathlib import Path

from loguru import logger

from ask.errors import PersistenceError
from ask.session.store import ConversationStore
from ask.utils.helpers import atomic_write_text, directory_key, ensure_dir


class StoreManager:
    """
    Loads and saves conversation stores.

    Each directory gets one JSON file in ``context_dir`` named after a short
    hash of its absolute path. Concurrent writers are not coordinated: the
    last save wins.
    """

    def __init__(self, context_dir: Path):
        self.context_dir = context_dir

    def get_store_path(self, directory: str) -> Path:
        """Get the file path for a directory's store."""
        return self.context_dir / f"{directory_key(directory)}.json"

    def get_or_create(self, directory: str) -> ConversationStore:
        """
        Load the store for a directory or start a fresh one.

        Args:
            directory: Absolute directory path.

        Returns:
            The store.
        """
        store = self.load(directory)
        if store is None:
            logger.debug(f"No context for {directory}, starting fresh")
            store = ConversationStore(directory=directory)
        return store

    def load(self, directory: str) -> ConversationStore | None:
        """
        Load a store from disk.

        Returns None when no file exists. A file that cannot be read or
        parsed, or that belongs to another directory, raises PersistenceError.
        """
        path = self.get_store_path(directory)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PersistenceError(f"failed to read context file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise PersistenceError(f"failed to parse context file {path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"failed to parse context file {path}: expected a JSON object")

        try:
            store = ConversationStore.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"failed to parse context file {path}: {e}") from e

        if store.directory != directory:
            raise PersistenceError(
                f"context file directory mismatch: expected {directory}, got {store.directory}"
            )

        logger.debug(f"Loaded {len(store.messages)} messages from {path}")
        return store

    def save(self, store: ConversationStore) -> None:
        """Save a store to disk."""
        store.updated_at = datetime.now()
        path = self.get_store_path(store.directory)

        try:
            ensure_dir(self.context_dir)
            atomic_write_text(path, json.dumps(store.to_dict(), indent=2, ensure_ascii=False))
        except OSError as e:
            raise PersistenceError(f"failed to write context file {path}: {e}") from e

        logger.debug(f"Saved {len(store.messages)} messages to {path}")

    def delete(self, directory: str) -> bool:
        """
        Delete a directory's store file.

        Returns:
            True if deleted, False if not found.
        """
        path = self.get_store_path(directory)
        if path.exists():
            path.unlink()
            return True
        return False
