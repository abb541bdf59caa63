"""Static site generator match result."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SSGMatchResult:
    """Directories of a detected static site generator project.

    All directories are relative to the repository root, except ``pages_dir``
    and ``data_dir`` which are relative to ``ssg_dir``. None means the
    directory is unknown; an empty string means the ``ssg_dir`` itself.
    """

    ssg_name: str | None = None
    ssg_dir: str | None = None
    pages_dir: str | None = None
    data_dir: str | None = None
    publish_dir: str | None = None
    static_dir: str | None = None
    page_type_key: str | None = None
    """Frontmatter key holding the page layout, e.g. "layout"."""
