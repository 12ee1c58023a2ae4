"""FileNode tree building utilities."""

from typing import Dict, List, Optional

from ..core.models import FileEntry, FileNode
from .path_utils import PathUtils


class FileTreeBuilder:
    """Builds the project structure tree shown at the top of reports."""

    @staticmethod
    def from_paths(
        project_name: str,
        file_paths: List[str],
        token_data: Optional[Dict[str, int]] = None,
        size_data: Optional[Dict[str, int]] = None,
    ) -> FileNode:
        """
        Build hierarchical FileNode tree from flat list of file paths.

        Args:
            project_name: Name of the project (root node name)
            file_paths: Relative file paths to include in tree
            token_data: Optional mapping of file paths to token counts
            size_data: Optional mapping of file paths to sizes in bytes

        Returns:
            Root FileNode with hierarchical structure, directory token
            totals filled in
        """
        token_data = token_data or {}
        size_data = size_data or {}

        root_node = FileNode(path="", name=project_name, type="dir")
        # Directory path -> node, so each directory is created once
        directories: Dict[str, FileNode] = {"": root_node}

        for file_path in file_paths:
            parts = PathUtils.normalize_and_split(file_path)
            current_node = root_node

            for i, part in enumerate(parts[:-1]):
                dir_path = PathUtils.join_path_components(parts[:i + 1])
                dir_node = directories.get(dir_path)
                if dir_node is None:
                    dir_node = FileNode(path=dir_path, name=part, type="dir")
                    current_node.children.append(dir_node)
                    directories[dir_path] = dir_node
                current_node = dir_node

            current_node.children.append(FileNode(
                path=PathUtils.join_path_components(parts),
                name=parts[-1],
                type="file",
                size=size_data.get(file_path),
                token_count=token_data.get(file_path, 0),
            ))

        FileTreeBuilder.calculate_directory_tokens(root_node)
        return root_node

    @staticmethod
    def from_files(project_name: str, files: List[FileEntry]) -> FileNode:
        """Build the tree for the final file list."""
        return FileTreeBuilder.from_paths(
            project_name,
            [f.path for f in files],
            token_data={f.path: f.token_count for f in files},
            size_data={f.path: f.size for f in files},
        )

    @staticmethod
    def calculate_directory_tokens(tree: FileNode) -> int:
        """
        Calculate total token counts for directory nodes bottom-up.

        Modifies the tree in-place by setting total_tokens on directory nodes.

        Returns:
            Token total of ``tree``.
        """
        if tree.is_file():
            return tree.token_count or 0

        tree.total_tokens = sum(FileTreeBuilder.calculate_directory_tokens(child)
                                for child in tree.children)
        return tree.total_tokens
