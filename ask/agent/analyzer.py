"""Directory analysis: file tree, README excerpt and config file detection."""

from fnmatch import fnmatchcase
from pathlib import Path

from loguru import logger

from ask.errors import AnalysisError
from ask.session.store import AnalysisSnapshot
from ask.utils.helpers import truncate_text

CONFIG_FILES = [
    "go.mod",
    "package.json",
    "Cargo.toml",
    "pyproject.toml",
    "requirements.txt",
    "pom.xml",
    "build.gradle",
    "Makefile",
    "docker-compose.yml",
    "Dockerfile",
]

README_FILES = ["README.md", "README.txt", "README", "readme.md", "Readme.md"]

# Always skipped, whatever .gitignore says
COMMON_IGNORES = frozenset({
    "node_modules",
    ".git",
    "vendor",
    "target",
    "dist",
    "build",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
})

MAX_DEPTH = 2
MAX_FILE_SIZE = 50 * 1024
MAX_README_LENGTH = 5000
MAX_TREE_LENGTH = 10000

README_TRUNCATED = "\n\n[README truncated - too large]"
TREE_TRUNCATED = (
    "\n\n[File tree truncated - project too large]"
    "\n[Tip: Use 'ask' without --analyze for less context]"
)


class GitignoreParser:
    """
    Minimal .gitignore matcher.

    Supports comments, blank lines, directory patterns (``dist/``), anchored
    patterns (``/build``) and shell wildcards. Negation (``!pattern``) is
    not supported and such lines are skipped.
    """

    def __init__(self, root: Path):
        self.root = root
        self.patterns: list[str] = []

    def parse(self) -> bool:
        """Read .gitignore from the root; returns False if there is none."""
        self.patterns = []
        path = self.root / ".gitignore"
        if not path.is_file():
            return False
        for raw in path.read_text(encoding="utf-8", errors="replace").splitlines():
            line = raw.strip()
            if not line or line.startswith("#") or line.startswith("!"):
                continue
            self.patterns.append(line)
        return True

    def is_ignored(self, rel_path: str) -> bool:
        """Check a root-relative, slash-separated path against the patterns."""
        parts = [p for p in rel_path.strip("/").split("/") if p]
        if any(part in COMMON_IGNORES for part in parts):
            return True
        return any(self._match(parts, pattern) for pattern in self.patterns)

    @staticmethod
    def _match(parts: list[str], pattern: str) -> bool:
        anchored = pattern.startswith("/") or "/" in pattern.rstrip("/")
        pattern = pattern.strip("/")
        if not pattern:
            return False

        if anchored:
            # Anchored patterns match from the root only
            depth = pattern.count("/") + 1
            return len(parts) >= depth and fnmatchcase("/".join(parts[:depth]), pattern)

        return any(fnmatchcase(part, pattern) for part in parts)


class DirectoryAnalyzer:
    """Builds an AnalysisSnapshot for a project directory."""

    def __init__(self, root: str | Path, max_depth: int = MAX_DEPTH):
        self.root = Path(root)
        self.max_depth = max_depth
        self.gitignore = GitignoreParser(self.root)

    def analyze(self) -> AnalysisSnapshot:
        """
        Scan the directory.

        Raises:
            AnalysisError: if the root is not a readable directory.
        """
        if not self.root.is_dir():
            raise AnalysisError(f"not a directory: {self.root}")

        try:
            tree = self.generate_file_tree()
        except OSError as e:
            raise AnalysisError(f"failed to generate file tree: {e}") from e

        return AnalysisSnapshot(
            file_tree=tree,
            readme_content=self.find_readme(),
            primary_configs=self.detect_config_files(),
        )

    def generate_file_tree(self) -> str:
        """Render an indented tree of the directory, capped in size."""
        try:
            self.gitignore.parse()
        except OSError as e:
            logger.debug(f"Ignoring unreadable .gitignore: {e}")

        lines = [f"{self.root.name}/"]
        self._walk(self.root, "", 0, lines)
        return truncate_text("\n".join(lines) + "\n", MAX_TREE_LENGTH, TREE_TRUNCATED)

    def _walk(self, path: Path, rel: str, depth: int, lines: list[str]) -> None:
        if depth > self.max_depth:
            return
        try:
            entries = sorted(path.iterdir(), key=lambda p: p.name)
        except OSError:
            return  # Unreadable directories are skipped

        indent = "  " * (depth + 1)
        for entry in entries:
            name = entry.name
            if name.startswith(".") and name != ".env.example":
                continue
            entry_rel = f"{rel}/{name}" if rel else name
            if self.gitignore.is_ignored(entry_rel):
                continue

            if entry.is_dir():
                lines.append(f"{indent}{name}/")
                self._walk(entry, entry_rel, depth + 1, lines)
            else:
                try:
                    if entry.stat().st_size >= MAX_FILE_SIZE:
                        continue
                except OSError:
                    continue
                lines.append(f"{indent}{name}")

    def find_readme(self) -> str:
        """Return the first README found, capped in size."""
        for filename in README_FILES:
            path = self.root / filename
            if path.is_file():
                try:
                    content = path.read_text(encoding="utf-8", errors="replace")
                except OSError:
                    continue
                return truncate_text(content, MAX_README_LENGTH, README_TRUNCATED)
        return ""

    def detect_config_files(self) -> list[str]:
        """List well-known config files present at the root."""
        return [name for name in CONFIG_FILES if (self.root / name).exists()]
