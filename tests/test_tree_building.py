"""Tests for tree building and path handling utilities."""

import os

from pmp.core.models import FileEntry
from pmp.utils import PathUtils
from pmp.utils.tree_builder import FileTreeBuilder


def file_paths(node):
    """Collect file paths below a node."""
    if node.is_file():
        return {node.path}
    paths = set()
    for child in node.children:
        paths |= file_paths(child)
    return paths


class TestPathUtils:
    """Test path normalization and manipulation utilities."""

    def test_normalize_path_forward_slashes(self):
        """Unix-style paths should remain unchanged."""
        assert PathUtils.normalize_path("src/main.py") == "src/main.py"

    def test_normalize_path_backslashes(self):
        """Windows-style paths should be normalized to forward slashes."""
        assert PathUtils.normalize_path("src\\utils\\helper.py") == "src/utils/helper.py"

    def test_normalize_path_mixed_separators(self):
        assert PathUtils.normalize_path("src/utils\\subfolder/file.py") == "src/utils/subfolder/file.py"

    def test_normalize_path_empty_string(self):
        assert PathUtils.normalize_path("") == ""

    def test_normalize_and_split(self):
        assert PathUtils.normalize_and_split("src\\utils\\helper.py") == ["src", "utils", "helper.py"]
        assert PathUtils.normalize_and_split("README.md") == ["README.md"]

    def test_join_path_components(self):
        assert PathUtils.join_path_components(["src", "utils", "helper.py"]) == "src/utils/helper.py"
        assert PathUtils.join_path_components([]) == ""

    def test_relative_to(self, temp_workspace):
        nested = os.path.join(str(temp_workspace), "src", "main.py")
        assert PathUtils.relative_to(nested, str(temp_workspace)) == "src/main.py"

    def test_is_within(self, temp_workspace):
        root = str(temp_workspace)
        assert PathUtils.is_within(os.path.join(root, "out"), root) is True
        assert PathUtils.is_within(root, root) is True
        assert PathUtils.is_within(os.path.dirname(root), root) is False
        # Sibling with a shared prefix
        assert PathUtils.is_within(root + "_other", root) is False


class TestFileTreeBuilder:
    """Test file tree construction."""

    def test_from_paths_simple_files(self):
        tree = FileTreeBuilder.from_paths("test-repo", ["README.md", "setup.py"])

        assert tree.name == "test-repo"
        assert tree.type == "dir"
        assert [child.name for child in tree.children] == ["README.md", "setup.py"]
        assert all(child.is_file() for child in tree.children)

    def test_from_paths_nested_structure(self):
        paths = [
            "src/main.py",
            "src/utils/helper.py",
            "tests/test_main.py",
            "README.md"
        ]
        tree = FileTreeBuilder.from_paths("test-repo", paths)

        assert len(tree.children) == 3  # src, tests, README.md

        src_dir = next(child for child in tree.children if child.name == "src")
        assert src_dir.is_directory()
        assert src_dir.path == "src"
        assert len(src_dir.children) == 2  # main.py, utils

        utils_dir = next(child for child in src_dir.children if child.name == "utils")
        assert utils_dir.path == "src/utils"
        helper_file = utils_dir.children[0]
        assert helper_file.name == "helper.py"
        assert helper_file.path == "src/utils/helper.py"

    def test_from_paths_with_token_and_size_data(self):
        paths = ["src/main.py", "src/utils/helper.py"]
        tree = FileTreeBuilder.from_paths(
            "test-repo",
            paths,
            token_data={"src/main.py": 150, "src/utils/helper.py": 75},
            size_data={"src/main.py": 2048},
        )

        src_dir = tree.children[0]
        main_file = next(child for child in src_dir.children if child.name == "main.py")
        assert main_file.token_count == 150
        assert main_file.size == 2048

        helper_file = next(child for child in src_dir.children if child.name == "utils").children[0]
        assert helper_file.token_count == 75
        assert helper_file.size is None

    def test_from_paths_without_token_data(self):
        tree = FileTreeBuilder.from_paths("test-repo", ["src/main.py"])
        assert tree.children[0].children[0].token_count == 0

    def test_from_paths_empty_list(self):
        tree = FileTreeBuilder.from_paths("empty-repo", [])
        assert tree.name == "empty-repo"
        assert tree.children == []
        assert tree.total_tokens == 0

    def test_from_paths_duplicate_directories(self):
        paths = [
            "src/file1.py",
            "src/file2.py",
            "src/utils/helper1.py",
            "src/utils/helper2.py"
        ]
        tree = FileTreeBuilder.from_paths("test-repo", paths)

        src_dirs = [child for child in tree.children if child.name == "src"]
        assert len(src_dirs) == 1
        assert len(src_dirs[0].children) == 3  # file1.py, file2.py, utils

        utils_dirs = [child for child in src_dirs[0].children if child.name == "utils"]
        assert len(utils_dirs) == 1
        assert len(utils_dirs[0].children) == 2

    def test_directory_tokens_aggregated(self):
        paths = [
            "src/main.py",
            "src/utils/helper.py",
            "tests/test_main.py"
        ]
        token_data = {
            "src/main.py": 100,
            "src/utils/helper.py": 50,
            "tests/test_main.py": 25
        }

        tree = FileTreeBuilder.from_paths("test-repo", paths, token_data)

        assert tree.total_tokens == 175
        src_dir = next(child for child in tree.children if child.name == "src")
        assert src_dir.total_tokens == 150
        utils_dir = next(child for child in src_dir.children if child.name == "utils")
        assert utils_dir.total_tokens == 50
        tests_dir = next(child for child in tree.children if child.name == "tests")
        assert tests_dir.total_tokens == 25

    def test_calculate_directory_tokens_returns_total(self):
        tree = FileTreeBuilder.from_paths("test-repo", ["a.py", "b/c.py"], {"a.py": 3, "b/c.py": 4})
        assert FileTreeBuilder.calculate_directory_tokens(tree) == 7

    def test_cross_platform_path_handling(self):
        mixed_paths = [
            "src/main.py",
            "src\\utils\\helper.py",
            "tests/test_main.py"
        ]
        tree = FileTreeBuilder.from_paths("test-repo", mixed_paths)

        assert file_paths(tree) == {
            "src/main.py",
            "src/utils/helper.py",
            "tests/test_main.py"
        }

    def test_from_files(self):
        files = [
            FileEntry(path="src/main.py", size=120, content="print(1)\n", token_count=4),
            FileEntry(path="README.md", size=40, content="# Demo\n", token_count=2),
        ]
        tree = FileTreeBuilder.from_files("demo", files)

        assert tree.name == "demo"
        assert tree.total_tokens == 6
        assert file_paths(tree) == {"src/main.py", "README.md"}
        readme = next(child for child in tree.children if child.name == "README.md")
        assert readme.size == 40
