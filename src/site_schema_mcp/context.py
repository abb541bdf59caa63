"""Application context management for site-schema-mcp."""

from pathlib import Path

from site_schema_mcp.file_browser import FileBrowser, LocalFileBrowserAdapter
from site_schema_mcp.settings import get_settings


def get_base_dir() -> Path:
    """Get the configured base directory from settings.

    Returns:
        Resolved base directory path.
    """
    return get_settings().base_dir.resolve()


def create_file_browser() -> FileBrowser:
    """Create a file browser for one analysis run.

    A new browser is created per run so parsed content is never reused
    after files change on disk.
    """
    return FileBrowser(LocalFileBrowserAdapter(get_base_dir()))
