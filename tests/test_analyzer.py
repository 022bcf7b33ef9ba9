"""Tests for directory analysis."""

import pytest

from ask.agent.analyzer import (
    MAX_README_LENGTH,
    MAX_TREE_LENGTH,
    README_TRUNCATED,
    DirectoryAnalyzer,
    GitignoreParser,
)
from ask.errors import AnalysisError


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "demo"
    (root / "cmd" / "server").mkdir(parents=True)
    (root / "cmd" / "server" / "main.go").write_text("package main\n")
    (root / "cmd" / "server" / "deep").mkdir()
    (root / "cmd" / "server" / "deep" / "hidden_by_depth.go").write_text("")
    (root / "node_modules" / "left-pad").mkdir(parents=True)
    (root / "logs").mkdir()
    (root / "logs" / "app.log").write_text("log")
    (root / ".secret").write_text("x")
    (root / ".env.example").write_text("ASK_API_KEY=")
    (root / "go.mod").write_text("module demo\n")
    (root / "Makefile").write_text("all:\n")
    (root / "README.md").write_text("# Demo\n\nA demo project.\n")
    (root / "big.bin").write_bytes(b"\0" * (60 * 1024))
    (root / "debug.log").write_text("x")
    (root / ".gitignore").write_text("# comment\n\n*.log\nlogs/\n!keep.log\n")
    return root


def test_analyze_collects_everything(project):
    snapshot = DirectoryAnalyzer(project).analyze()

    assert snapshot.readme_content.startswith("# Demo")
    assert snapshot.primary_configs == ["go.mod", "Makefile"]
    assert snapshot.file_tree.startswith("demo/\n")


def test_tree_layout(project):
    tree = DirectoryAnalyzer(project).generate_file_tree()
    lines = tree.splitlines()

    assert "  cmd/" in lines
    assert "    server/" in lines
    assert "      main.go" in lines
    assert "      deep/" in lines
    assert "  .env.example" in lines
    assert "  go.mod" in lines


def test_tree_respects_depth(project):
    tree = DirectoryAnalyzer(project).generate_file_tree()

    assert "hidden_by_depth.go" not in tree


def test_tree_skips_ignored_hidden_and_large(project):
    tree = DirectoryAnalyzer(project).generate_file_tree()

    assert "node_modules" not in tree
    assert "logs/" not in tree
    assert "debug.log" not in tree
    assert ".secret" not in tree
    assert ".gitignore" not in tree
    assert "big.bin" not in tree


def test_tree_is_truncated(tmp_path):
    for i in range(600):
        (tmp_path / f"file_with_a_long_name_{i:04d}.txt").write_text("")

    tree = DirectoryAnalyzer(tmp_path).generate_file_tree()

    assert len(tree) > MAX_TREE_LENGTH
    assert tree.startswith(tmp_path.name + "/")
    assert "[File tree truncated - project too large]" in tree


def test_readme_preference_and_truncation(tmp_path):
    (tmp_path / "README.txt").write_text("text readme")
    (tmp_path / "README.md").write_text("m" * (MAX_README_LENGTH + 10))

    readme = DirectoryAnalyzer(tmp_path).find_readme()

    assert readme == "m" * MAX_README_LENGTH + README_TRUNCATED


def test_no_readme(tmp_path):
    assert DirectoryAnalyzer(tmp_path).find_readme() == ""


def test_not_a_directory(tmp_path):
    with pytest.raises(AnalysisError):
        DirectoryAnalyzer(tmp_path / "missing").analyze()


class TestGitignoreParser:
    def test_no_file(self, tmp_path):
        assert GitignoreParser(tmp_path).parse() is False

    def test_skips_comments_and_negation(self, tmp_path):
        (tmp_path / ".gitignore").write_text("# c\n\n*.pyc\n!important.pyc\n")
        parser = GitignoreParser(tmp_path)

        assert parser.parse() is True
        assert parser.patterns == ["*.pyc"]

    def test_reparse_does_not_duplicate(self, tmp_path):
        (tmp_path / ".gitignore").write_text("*.pyc\n")
        parser = GitignoreParser(tmp_path)

        parser.parse()
        parser.parse()

        assert parser.patterns == ["*.pyc"]

    def test_repeated_analysis_keeps_patterns_unique(self, project):
        analyzer = DirectoryAnalyzer(project)

        analyzer.analyze()
        analyzer.analyze()

        assert analyzer.gitignore.patterns == ["*.log", "logs/"]

    @pytest.mark.parametrize(
        "patterns,path,expected",
        [
            (["*.log"], "debug.log", True),
            (["*.log"], "nested/dir/debug.log", True),
            (["dist/"], "dist", True),
            (["dist/"], "pkg/dist", True),
            (["/build"], "build", True),
            (["/out"], "src/out", False),
            (["docs/api"], "docs/api", True),
            (["docs/api"], "docs/api/index.html", True),
            (["docs/api"], "other/docs/api", False),
            (["*.log"], "main.go", False),
            ([], "node_modules/pkg/index.js", True),
            ([], "src/__pycache__", True),
            (["*.LOG"], "debug.log", False),
        ],
    )
    def test_matching(self, tmp_path, patterns, path, expected):
        parser = GitignoreParser(tmp_path)
        parser.patterns = patterns

        assert parser.is_ignored(path) is expected
