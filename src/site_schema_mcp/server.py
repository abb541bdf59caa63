"""MCP Server implementation using FastMCP."""

import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from site_schema_mcp.context import create_file_browser, get_base_dir
from site_schema_mcp.file_classifier import classify_file
from site_schema_mcp.inference import generator
from site_schema_mcp.inference.builder import build_fields, build_list_field
from site_schema_mcp.inference.fields import Field, PartialObjectModel
from site_schema_mcp.settings import get_settings

LOGGER = logging.getLogger(__name__)

mcp = FastMCP("site-schema-mcp")


@mcp.tool()
def generate_schema(
    pages_dir: str | None = None,
    data_dir: str | None = None,
) -> dict[str, Any]:
    """Infer content models from the page and data files of the repository.

    Args:
        pages_dir: Pages directory relative to the site generator directory.
            Overrides the configured value. When neither is set, root files
            are ignored and the common folder of the pages is reported.
        data_dir: Data directory, same rules as pages_dir.

    Returns:
        Dict with models (page, data and object models), pages_dir, data_dir
        and model_count.
    """
    settings = get_settings()
    ssg_match_result = settings.to_ssg_match_result()
    if pages_dir is not None:
        ssg_match_result = replace(ssg_match_result, pages_dir=pages_dir)
    if data_dir is not None:
        ssg_match_result = replace(ssg_match_result, data_dir=data_dir)

    file_browser = create_file_browser()
    result = generator.generate_schema(
        ssg_match_result,
        file_browser,
        page_dsc_coefficient=settings.page_dsc_coefficient,
        data_dsc_coefficient=settings.data_dsc_coefficient,
    )

    response = result.to_dict()
    response["model_count"] = len(result.models)
    if file_browser.warnings:
        response["warnings"] = file_browser.warnings
    return response


@mcp.tool()
def inspect_file(path: str) -> dict[str, Any]:
    """Infer the field tree of a single page or data file.

    No consolidation with other files is done, so the result shows exactly
    what this file contributes.

    Args:
        path: File path relative to base directory.

    Returns:
        Dict with path, kind ("page" or "data"), fields (or items for data
        files holding an array) and object_models extracted from list items.
    """
    base = get_base_dir()
    abs_path = (base / path).resolve()

    # Security: ensure path is within base_dir
    try:
        rel_path = abs_path.relative_to(base).as_posix()
    except ValueError as e:
        raise ValueError(f"Path must be within base directory: {path}") from e

    if not abs_path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    kind = classify_file(rel_path)
    if kind is None:
        raise ValueError(f"Not a page or data file: {path}")

    file_browser = create_file_browser()
    file_browser.list_files()
    data = file_browser.get_file_data(rel_path)
    if kind == "page":
        data = generator.flatten_page_data(data)

    fields: list[Field] = []
    items: Field | None = None
    object_models: tuple[PartialObjectModel, ...] = ()
    if isinstance(data, dict):
        fields_result = build_fields(data, (rel_path,))
        if fields_result is not None:
            fields, object_models = list(fields_result.fields), fields_result.object_models
    elif isinstance(data, list):
        list_result = build_list_field(data, (rel_path,))
        if list_result is not None:
            items, object_models = list_result.field.items, list_result.object_models

    roots = fields if items is None else [items]
    object_models = generator.collect_referenced_object_models(roots, object_models)
    names = {model.name: f"object_{n}" for n, model in enumerate(object_models, 1)}

    result: dict[str, Any] = {"path": rel_path, "kind": kind}
    if items is not None:
        result["items"] = items.rename_models(names).to_dict()
    else:
        result["fields"] = [f.rename_models(names).to_dict() for f in fields]
    result["object_models"] = [
        {
            "name": names[model.name],
            "fields": [f.to_dict() for f in model.rename_models(names).fields],
        }
        for model in object_models
    ]
    if file_browser.warnings:
        result["warnings"] = file_browser.warnings
    return result


@mcp.tool()
def list_content_files() -> dict[str, Any]:
    """List the files the schema generator would analyze.

    Returns:
        Dict with pages_dir, pages (paths relative to pages_dir), data_dir
        and data (paths relative to data_dir).
    """
    content_files = generator.collect_content_files(
        get_settings().to_ssg_match_result(), create_file_browser()
    )
    return {
        "pages_dir": content_files.pages_dir,
        "pages": content_files.page_files,
        "data_dir": content_files.data_dir,
        "data": content_files.data_files,
    }


def main() -> None:
    """Entry point for the MCP server."""
    args = sys.argv[1:]
    if "--base-dir" in args:
        base_dir_idx = args.index("--base-dir")
        if base_dir_idx + 1 >= len(args):
            print("Error: --base-dir requires a value", file=sys.stderr)
            sys.exit(1)
        os.environ["SITE_SCHEMA_BASE_DIR"] = args[base_dir_idx + 1]
    elif "SITE_SCHEMA_BASE_DIR" not in os.environ:
        print("Error: --base-dir argument is required", file=sys.stderr)
        print("Usage: site-schema-mcp --base-dir /path", file=sys.stderr)
        sys.exit(1)

    get_settings.cache_clear()
    settings = get_settings()
    base_dir = Path(settings.base_dir).resolve()
    if not base_dir.is_dir():
        print(f"Error: Base directory does not exist: {base_dir}", file=sys.stderr)
        sys.exit(1)

    # stdout carries the MCP protocol
    logging.basicConfig(
        level=settings.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    LOGGER.info("Serving content models for %s", base_dir)

    mcp.run()


if __name__ == "__main__":
    main()
