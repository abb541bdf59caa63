"""Content file classification and glob filtering."""

import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Literal

from site_schema_mcp.consts import (
    DATA_FILE_EXTENSIONS,
    EXCLUDED_DATA_FILES,
    EXCLUDED_MARKDOWN_FILES,
    GLOBAL_EXCLUDES,
    MARKDOWN_FILE_EXTENSIONS,
    ROOT_CONFIG_FILES,
)
from site_schema_mcp.ssg import SSGMatchResult

FileKind = Literal["page", "data"]


@dataclass(frozen=True)
class FileResult:
    """A file or directory entry of a repository listing."""

    file_path: str
    is_file: bool
    is_directory: bool


def get_extension(file_path: str) -> str:
    """Get the file extension without the leading dot."""
    return posixpath.splitext(file_path)[1][1:]


def classify_file(file_path: str) -> FileKind | None:
    """Classify a file as a page or data document by its extension.

    Returns:
        "page" for markdown files, "data" for JSON/YAML/TOML files, else None.
    """
    extension = get_extension(file_path)
    if extension in MARKDOWN_FILE_EXTENSIONS:
        return "page"
    if extension in DATA_FILE_EXTENSIONS:
        return "data"
    return None


def _match_parts(path_parts: list[str], pattern_parts: list[str]) -> bool:
    if not pattern_parts:
        return not path_parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        # ** spans zero or more path segments
        return any(_match_parts(path_parts[i:], rest) for i in range(len(path_parts) + 1))
    if not path_parts or not fnmatchcase(path_parts[0], head):
        return False
    return _match_parts(path_parts[1:], rest)


def match_glob(file_path: str, pattern: str) -> bool:
    """Match a relative POSIX path against a glob pattern.

    ``*``, ``?`` and ``[...]`` never match across ``/``; a ``**`` segment
    matches any number of directories, including none.
    """
    path_parts = [part for part in file_path.strip("/").split("/") if part]
    pattern_parts = [part for part in pattern.strip("/").split("/") if part]
    return _match_parts(path_parts, pattern_parts)


def is_excluded(file_path: str, patterns: Iterable[str]) -> bool:
    """Check if a path matches any of the exclude patterns."""
    return any(match_glob(file_path, pattern) for pattern in patterns)


def get_excluded_page_files(
    ssg_match_result: SSGMatchResult, root_pages_dir: str
) -> list[str]:
    """Get exclude patterns for page files, relative to the pages directory."""
    excluded = [*GLOBAL_EXCLUDES, *EXCLUDED_MARKDOWN_FILES]
    if root_pages_dir == "":
        # Root files are ignored unless the root was configured as pages dir
        if ssg_match_result.pages_dir is None:
            excluded.append("*.*")
        if ssg_match_result.publish_dir:
            excluded.append(ssg_match_result.publish_dir)
        if ssg_match_result.static_dir:
            excluded.append(ssg_match_result.static_dir)
    return excluded


def get_excluded_data_files(
    ssg_match_result: SSGMatchResult, root_data_dir: str
) -> list[str]:
    """Get exclude patterns for data files, relative to the data directory."""
    excluded = [*GLOBAL_EXCLUDES, *EXCLUDED_DATA_FILES]
    if root_data_dir == "":
        excluded.extend(ROOT_CONFIG_FILES)
        if ssg_match_result.data_dir is None:
            excluded.append("*.*")
        if ssg_match_result.publish_dir:
            excluded.append(ssg_match_result.publish_dir)
        if ssg_match_result.static_dir:
            excluded.append(ssg_match_result.static_dir)
    return excluded


def make_content_filter(
    excluded_files: Iterable[str], allowed_extensions: Iterable[str]
) -> Callable[[FileResult], bool]:
    """Create a directory walk filter for content files.

    Excluded paths are rejected, directories are walked into and files are
    kept when their extension is allowed.
    """
    excluded = list(excluded_files)
    extensions = set(allowed_extensions)

    def content_filter(file_result: FileResult) -> bool:
        if is_excluded(file_result.file_path, excluded):
            return False
        if file_result.is_directory:
            return True
        return get_extension(file_result.file_path) in extensions

    return content_filter
