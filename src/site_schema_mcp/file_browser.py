"""Repository file browsing with parsed content caching."""

import json
import logging
import os
import posixpath
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import frontmatter
import yaml

from site_schema_mcp.consts import GLOBAL_EXCLUDES, MARKDOWN_FILE_EXTENSIONS
from site_schema_mcp.file_classifier import FileResult, get_extension, is_excluded

LOGGER = logging.getLogger(__name__)


class FileBrowserAdapter(Protocol):
    """Source of repository files."""

    def list_files(self) -> list[FileResult]: ...

    def read_file(self, file_path: str) -> str: ...


class LocalFileBrowserAdapter:
    """File browser adapter for a repository on the local filesystem."""

    def __init__(self, dir_path: Path) -> None:
        """Initialize the adapter.

        Args:
            dir_path: Repository root directory.
        """
        self._dir_path = dir_path

    @property
    def dir_path(self) -> Path:
        return self._dir_path

    def list_files(self) -> list[FileResult]:
        """List all files and directories, skipping globally excluded directories.

        Returns:
            Entries with POSIX paths relative to the repository root.
        """
        results: list[FileResult] = []
        for root, dir_names, file_names in os.walk(self._dir_path):
            rel_root = Path(root).relative_to(self._dir_path).as_posix()
            rel_root = "" if rel_root == "." else rel_root

            kept_dirs = []
            for dir_name in sorted(dir_names):
                rel_path = posixpath.join(rel_root, dir_name)
                if is_excluded(rel_path, GLOBAL_EXCLUDES):
                    continue
                kept_dirs.append(dir_name)
                results.append(FileResult(rel_path, is_file=False, is_directory=True))
            # Prune os.walk in place
            dir_names[:] = kept_dirs

            for file_name in sorted(file_names):
                rel_path = posixpath.join(rel_root, file_name)
                results.append(FileResult(rel_path, is_file=True, is_directory=False))
        return results

    def read_file(self, file_path: str) -> str:
        return (self._dir_path / file_path).read_text(encoding="utf-8")


def parse_markdown(text: str) -> dict[str, Any]:
    """Split a markdown document into frontmatter and body.

    Returns:
        Dict with "frontmatter" (None when the file has no frontmatter block)
        and "markdown" body.
    """
    if not frontmatter.checks(text):
        return {"frontmatter": None, "markdown": text}
    post = frontmatter.loads(text)
    return {"frontmatter": post.metadata, "markdown": post.content}


def parse_file_data(text: str, file_path: str) -> Any:
    """Parse file content according to its extension.

    Returns:
        Parsed data for markdown, YAML, JSON and TOML files, the raw text for
        any other file.

    Raises:
        yaml.YAMLError, ValueError, tomllib.TOMLDecodeError: If the content
            is malformed.
    """
    extension = get_extension(file_path)
    if extension in MARKDOWN_FILE_EXTENSIONS:
        return parse_markdown(text)
    if extension in ("yml", "yaml"):
        return yaml.safe_load(text)
    if extension == "json":
        return json.loads(text)
    if extension == "toml":
        return tomllib.loads(text)
    return text


class FileBrowser:
    """Indexed view of a repository with per-path parsed data cache.

    One instance serves one analysis run; nothing is shared between runs.
    """

    def __init__(self, adapter: FileBrowserAdapter) -> None:
        self._adapter = adapter
        self._files: list[FileResult] | None = None
        self._file_paths: set[str] = set()
        self._directory_paths: set[str] = set()
        self._children: dict[str, list[FileResult]] = {}
        self._file_data: dict[str, Any] = {}
        self.warnings: list[str] = []
        """Messages for files that could not be read or parsed."""

    def list_files(self) -> None:
        """Index the repository files. Subsequent calls are no-ops."""
        if self._files is not None:
            return
        self._files = self._adapter.list_files()
        for file_result in self._files:
            parent = posixpath.dirname(file_result.file_path)
            self._children.setdefault(parent, []).append(file_result)
            if file_result.is_file:
                self._file_paths.add(file_result.file_path)
            elif file_result.is_directory:
                self._directory_paths.add(file_result.file_path)
        LOGGER.debug(
            "Indexed %d files and %d directories",
            len(self._file_paths),
            len(self._directory_paths),
        )

    def file_path_exists(self, file_path: str) -> bool:
        return file_path in self._file_paths

    def directory_path_exists(self, dir_path: str) -> bool:
        return dir_path == "" or dir_path in self._directory_paths

    def read_files_recursively(
        self,
        dir_path: str,
        filter: Callable[[FileResult], bool] | None = None,
    ) -> list[str]:
        """List files under a directory.

        Args:
            dir_path: Directory relative to the repository root, "" for the root.
            filter: Called with entries relative to ``dir_path``. Rejecting a
                directory skips everything below it.

        Returns:
            File paths relative to ``dir_path``.
        """
        self.list_files()
        if not self.directory_path_exists(dir_path):
            return []

        file_paths: list[str] = []

        def walk(directory: str) -> None:
            for entry in self._children.get(directory, []):
                rel_path = (
                    posixpath.relpath(entry.file_path, dir_path)
                    if dir_path
                    else entry.file_path
                )
                rel_result = FileResult(rel_path, entry.is_file, entry.is_directory)
                if filter is not None and not filter(rel_result):
                    continue
                if entry.is_directory:
                    walk(entry.file_path)
                elif entry.is_file:
                    file_paths.append(rel_path)

        walk(dir_path)
        return file_paths

    def get_file_data(self, file_path: str) -> Any:
        """Get the parsed content of a file.

        Args:
            file_path: Path relative to the repository root.

        Returns:
            Parsed data (see parse_file_data), or None for unknown paths and
            files that fail to read or parse.
        """
        if not self.file_path_exists(file_path):
            return None
        if file_path not in self._file_data:
            try:
                text = self._adapter.read_file(file_path)
                self._file_data[file_path] = parse_file_data(text, file_path)
            # JSON, TOML and decoding errors are ValueError subclasses
            except (OSError, ValueError, yaml.YAMLError) as e:
                LOGGER.debug("Failed to parse %s: %s", file_path, e)
                self.warnings.append(f"Failed to parse {file_path}: {e}")
                self._file_data[file_path] = None
        return self._file_data[file_path]
