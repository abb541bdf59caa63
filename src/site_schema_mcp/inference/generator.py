"""Schema generator.

Infers page, data and object models for a repository that has no schema:
content files are collected, one field tree is built per file, and the trees
are consolidated into the smallest set of models that describes them.
"""

import logging
import posixpath
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from site_schema_mcp.consts import (
    DATA_DSC_COEFFICIENT,
    DATA_FILE_EXTENSIONS,
    MARKDOWN_FILE_EXTENSIONS,
    PAGE_DSC_COEFFICIENT,
)
from site_schema_mcp.file_browser import FileBrowser
from site_schema_mcp.file_classifier import (
    get_excluded_data_files,
    get_excluded_page_files,
    make_content_filter,
    match_glob,
)
from site_schema_mcp.inference.builder import (
    MARKDOWN_CONTENT_FIELD,
    build_fields,
    build_list_field,
)
from site_schema_mcp.inference.consolidation import (
    FieldsCluster,
    consolidate_object_fields_list_with_dsc,
    merge_object_fields_list,
    merge_similar_fields,
)
from site_schema_mcp.inference.fields import Field, PartialObjectModel
from site_schema_mcp.inference.naming import get_unique_name, snake_case, start_case
from site_schema_mcp.ssg import SSGMatchResult

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartialPageModel:
    """A page shape and the files it was inferred from."""

    fields: tuple[Field, ...]
    file_paths: tuple[str, ...]
    layout: str | None = None

    def rename_models(self, names: dict[str, str]) -> "PartialPageModel":
        fields = tuple(f.rename_models(names) for f in self.fields)
        return PartialPageModel(fields, self.file_paths, self.layout)


@dataclass(frozen=True)
class PartialDataModel:
    """A data shape and the files it was inferred from.

    Data files holding an array have ``items`` instead of ``fields``.
    """

    name: str
    file_paths: tuple[str, ...]
    fields: tuple[Field, ...] | None = None
    items: Field | None = None

    def rename_models(self, names: dict[str, str]) -> "PartialDataModel":
        return PartialDataModel(
            self.name,
            self.file_paths,
            fields=(
                tuple(f.rename_models(names) for f in self.fields)
                if self.fields is not None
                else None
            ),
            items=self.items.rename_models(names) if self.items is not None else None,
        )


class PageModelsResult(NamedTuple):
    page_models: list[PartialPageModel]
    object_models: tuple[PartialObjectModel, ...]


class DataModelsResult(NamedTuple):
    data_models: list[PartialDataModel]
    object_models: tuple[PartialObjectModel, ...]


@dataclass
class SchemaGeneratorResult:
    """Generated models and the content directories they were found in."""

    models: list[dict[str, Any]] = field(default_factory=list)
    pages_dir: str | None = None
    data_dir: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "models": self.models,
            "pages_dir": self.pages_dir,
            "data_dir": self.data_dir,
        }


def generate_schema(
    ssg_match_result: SSGMatchResult,
    file_browser: FileBrowser,
    page_dsc_coefficient: float = PAGE_DSC_COEFFICIENT,
    data_dsc_coefficient: float = DATA_DSC_COEFFICIENT,
) -> SchemaGeneratorResult:
    """Generate models from the content files of a repository.

    Files that cannot be parsed or yield no typed field are skipped.

    Args:
        ssg_match_result: Directories of the detected site generator.
        file_browser: Repository file browser.
        page_dsc_coefficient: Minimal similarity for two page shapes to merge.
        data_dsc_coefficient: Minimal similarity for two data files to merge.

    Returns:
        Page models, then data models, then extracted object models. When the
        pages or data directory was not given, the common folder of the
        generated models is reported instead.
    """
    ssg_dir = ssg_match_result.ssg_dir or ""
    root_pages_dir, page_files, root_data_dir, data_files = collect_content_files(
        ssg_match_result, file_browser
    )

    page_result = generate_page_models_for_files(
        page_files,
        root_pages_dir,
        file_browser,
        page_type_key=ssg_match_result.page_type_key,
        min_coefficient=page_dsc_coefficient,
    )
    data_result = generate_data_models_for_files(
        data_files,
        root_data_dir,
        file_browser,
        min_coefficient=data_dsc_coefficient,
        object_models=page_result.object_models,
    )

    page_models = page_result.page_models
    data_models = data_result.data_models
    object_models = collect_referenced_object_models(
        [f for m in page_models for f in m.fields]
        + [f for m in data_models for f in m.fields or ()]
        + [m.items for m in data_models if m.items is not None],
        data_result.object_models,
    )
    names = {model.name: f"object_{n}" for n, model in enumerate(object_models, 1)}
    page_models = [model.rename_models(names) for model in page_models]
    data_models = [model.rename_models(names) for model in data_models]
    object_models = tuple(model.rename_models(names) for model in object_models)

    pages = analyze_page_file_matching_properties(page_models)
    data = analyze_data_file_matching_properties(data_models)

    pages_dir = ssg_match_result.pages_dir
    if pages_dir is None and pages:
        common_dir, pages = extract_lowest_common_ancestor_folder(pages)
        pages_dir = get_dir(ssg_dir, common_dir)
    data_dir = ssg_match_result.data_dir
    if data_dir is None and data:
        common_dir, data = extract_lowest_common_ancestor_folder(data)
        data_dir = get_dir(ssg_dir, common_dir)

    objects = [
        {
            "type": "object",
            "name": model.name,
            "label": start_case(model.name),
            "fields": [f.to_dict() for f in model.fields],
        }
        for model in object_models
    ]
    LOGGER.info(
        "Generated %d page, %d data and %d object models",
        len(pages),
        len(data),
        len(objects),
    )
    return SchemaGeneratorResult(
        models=pages + data + objects, pages_dir=pages_dir, data_dir=data_dir
    )


def get_dir(ssg_dir: str, content_dir: str) -> str:
    """Join a content directory to the generator directory, "" for the root."""
    full_dir = posixpath.normpath(posixpath.join(ssg_dir, content_dir))
    return "" if full_dir == "." else full_dir


class ContentFiles(NamedTuple):
    """Content files to analyze, relative to their directories."""

    pages_dir: str
    page_files: list[str]
    data_dir: str
    data_files: list[str]


def collect_content_files(
    ssg_match_result: SSGMatchResult, file_browser: FileBrowser
) -> ContentFiles:
    """Collect page and data files, applying extension and exclude filters."""
    file_browser.list_files()

    ssg_dir = ssg_match_result.ssg_dir or ""
    root_pages_dir = get_dir(ssg_dir, ssg_match_result.pages_dir or "")
    root_data_dir = get_dir(ssg_dir, ssg_match_result.data_dir or "")

    page_files = file_browser.read_files_recursively(
        root_pages_dir,
        make_content_filter(
            get_excluded_page_files(ssg_match_result, root_pages_dir),
            MARKDOWN_FILE_EXTENSIONS,
        ),
    )
    data_files = file_browser.read_files_recursively(
        root_data_dir,
        make_content_filter(
            get_excluded_data_files(ssg_match_result, root_data_dir),
            DATA_FILE_EXTENSIONS,
        ),
    )
    LOGGER.info(
        "Found %d page files in '%s' and %d data files in '%s'",
        len(page_files),
        root_pages_dir,
        len(data_files),
        root_data_dir,
    )
    return ContentFiles(root_pages_dir, page_files, root_data_dir, data_files)


def flatten_page_data(data: Any) -> dict[Any, Any] | None:
    """Turn a parsed page into one flat record.

    Markdown pages parse to frontmatter and body; the body is added to the
    frontmatter under ``markdown_content``. Pages without frontmatter are
    not content pages and yield None.
    """
    if isinstance(data, dict) and "frontmatter" in data and "markdown" in data:
        page_frontmatter = data["frontmatter"]
        if not isinstance(page_frontmatter, dict):
            return None
        return {**page_frontmatter, MARKDOWN_CONTENT_FIELD: data["markdown"]}
    if isinstance(data, dict):
        return data
    return None


def generate_page_models_for_files(
    file_paths: Sequence[str],
    dir_path: str,
    file_browser: FileBrowser,
    page_type_key: str | None = None,
    min_coefficient: float = PAGE_DSC_COEFFICIENT,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> PageModelsResult:
    """Infer page models from page files.

    Pages are bucketed by layout when ``page_type_key`` is set. Pages of the
    same layout are merged into one model; pages without a layout are
    clustered by Dice similarity.

    Args:
        file_paths: Page file paths relative to ``dir_path``.
        dir_path: Pages directory relative to the repository root.
        file_browser: Repository file browser.
        page_type_key: Frontmatter key holding the page layout.
        min_coefficient: Minimal similarity for two page shapes to merge.
        object_models: Object models extracted so far.

    Returns:
        Page models ordered by their first file, and the object models.
    """
    shapes: list[tuple[Field, ...]] = []
    shape_files: list[str] = []
    layouts: list[str | None] = []
    for file_path in file_paths:
        data = file_browser.get_file_data(posixpath.join(dir_path, file_path))
        record = flatten_page_data(data)
        if record is None:
            LOGGER.debug("Skipping page without frontmatter: %s", file_path)
            continue
        result = build_fields(record, (file_path,), object_models)
        if result is None:
            LOGGER.debug("Skipping page without typed fields: %s", file_path)
            continue
        object_models = result.object_models
        layout = record.get(page_type_key) if page_type_key else None
        shapes.append(result.fields)
        shape_files.append(file_path)
        layouts.append(layout if isinstance(layout, str) else None)

    buckets: dict[str | None, list[int]] = {}
    for index, layout in enumerate(layouts):
        buckets.setdefault(layout, []).append(index)

    ordered: list[tuple[int, PartialPageModel]] = []
    for layout, indexes in buckets.items():
        clusters, object_models = _cluster_page_shapes(
            [shapes[i] for i in indexes], layout, min_coefficient, object_models
        )
        for cluster in clusters:
            positions = sorted(indexes[i] for i in cluster.indexes)
            files = tuple(shape_files[i] for i in positions)
            ordered.append((positions[0], PartialPageModel(cluster.fields, files, layout)))

    ordered.sort(key=lambda entry: entry[0])
    return PageModelsResult([model for _, model in ordered], object_models)


def _cluster_page_shapes(
    shapes: list[tuple[Field, ...]],
    layout: str | None,
    min_coefficient: float,
    object_models: tuple[PartialObjectModel, ...],
) -> tuple[tuple[FieldsCluster, ...], tuple[PartialObjectModel, ...]]:
    if layout is not None:
        merged = merge_object_fields_list(shapes, (layout,), object_models)
        if merged is not None:
            cluster = FieldsCluster(merged.fields, tuple(range(len(shapes))))
            return (cluster,), merged.object_models
        LOGGER.debug("Pages with layout '%s' differ, clustering by similarity", layout)
    result = consolidate_object_fields_list_with_dsc(
        shapes, (layout or "page",), min_coefficient, object_models
    )
    return result.clusters, result.object_models


def generate_data_models_for_files(
    file_paths: Sequence[str],
    dir_path: str,
    file_browser: FileBrowser,
    min_coefficient: float = DATA_DSC_COEFFICIENT,
    object_models: tuple[PartialObjectModel, ...] = (),
) -> DataModelsResult:
    """Infer data models from data files.

    An object-shaped file absorbs the previously seen object-shaped data
    models similar enough to it. Array-shaped files become list models.
    """
    data_models: list[PartialDataModel] = []
    for file_path in file_paths:
        data = file_browser.get_file_data(posixpath.join(dir_path, file_path))
        model_name = snake_case(posixpath.splitext(posixpath.basename(file_path))[0])
        if isinstance(data, dict):
            result = build_fields(data, (model_name,), object_models)
            if result is None:
                LOGGER.debug("Skipping data file without typed fields: %s", file_path)
                continue
            candidates = [i for i, m in enumerate(data_models) if m.fields is not None]
            merge = merge_similar_fields(
                result.fields,
                [data_models[i].fields or () for i in candidates],
                (model_name,),
                min_coefficient,
                result.object_models,
            )
            object_models = merge.object_models
            merged = {candidates[i] for i in merge.merged_indexes}
            merged_files = [
                p for i in sorted(merged) for p in data_models[i].file_paths
            ]
            data_models = [m for i, m in enumerate(data_models) if i not in merged]
            data_models.append(
                PartialDataModel(
                    model_name, (file_path, *merged_files), fields=merge.merged_fields
                )
            )
        elif isinstance(data, list):
            list_result = build_list_field(data, (model_name,), object_models)
            if list_result is None:
                LOGGER.debug("Skipping data file without typed items: %s", file_path)
                continue
            object_models = list_result.object_models
            data_models.append(
                PartialDataModel(model_name, (file_path,), items=list_result.field.items)
            )
        else:
            LOGGER.debug("Skipping data file without structured data: %s", file_path)
    return DataModelsResult(data_models, object_models)


def _referenced_model_names(fields: Iterable[Field]) -> list[str]:
    names: list[str] = []
    for f in fields:
        names.extend(f.models or ())
        names.extend(_referenced_model_names(f.fields or ()))
        if f.items is not None:
            names.extend(_referenced_model_names([f.items]))
    return names


def collect_referenced_object_models(
    fields: Iterable[Field], object_models: Sequence[PartialObjectModel]
) -> tuple[PartialObjectModel, ...]:
    """Get the object models reachable from ``fields``, in discovery order.

    Shapes extracted while trying merges that were later discarded are not
    reachable and are dropped.
    """
    by_name = {model.name: model for model in object_models}
    referenced: set[str] = set()
    pending = _referenced_model_names(fields)
    while pending:
        name = pending.pop()
        if name in referenced or name not in by_name:
            continue
        referenced.add(name)
        pending.extend(_referenced_model_names(by_name[name].fields))
    return tuple(model for model in object_models if model.name in referenced)


def find_common_ancestor_folder(file_paths: Sequence[str]) -> str:
    """Get the deepest folder containing all given files, "" for the root."""
    return _common_dir([posixpath.dirname(p) for p in file_paths])


def _common_dir(dirs: Sequence[str]) -> str:
    common: list[str] | None = None
    for dir_path in dirs:
        parts = dir_path.split("/") if dir_path else []
        if common is None:
            common = parts
            continue
        j = 0
        while j < len(common) and j < len(parts) and common[j] == parts[j]:
            j += 1
        common = common[:j]
        if not common:
            break
    return "/".join(common or [])


def all_file_paths_in_same_folder(file_paths: Sequence[str]) -> bool:
    return len({posixpath.dirname(p) for p in file_paths}) <= 1


def _relative(path: str, folder: str) -> str:
    return posixpath.relpath(path, folder) if folder else path


def analyze_page_file_matching_properties(
    page_models: Sequence[PartialPageModel],
) -> list[dict[str, Any]]:
    """Assemble page models with names and file matching properties.

    ``match`` is ``*`` when all files of a model share one folder and ``**/*``
    otherwise. If that glob would capture more than one file of another page
    model, the model lists its files explicitly; if it would capture exactly
    one, that file is excluded.
    """
    pages: list[dict[str, Any]] = []
    for index, page_model in enumerate(page_models):
        name = f"page_{index + 1}"
        folder = find_common_ancestor_folder(page_model.file_paths)
        match = "*" if all_file_paths_in_same_folder(page_model.file_paths) else "**/*"
        glob = f"{folder}/{match}" if folder else match
        other_files = [
            p
            for j, other in enumerate(page_models)
            if j != index
            for p in other.file_paths
        ]
        captured = [p for p in other_files if match_glob(p, glob)]

        model: dict[str, Any] = {"type": "page", "name": name, "label": start_case(name)}
        if page_model.layout:
            model["layout"] = page_model.layout
        if folder:
            model["folder"] = folder
        if len(captured) > 1:
            model["match"] = [_relative(p, folder) for p in page_model.file_paths]
        else:
            model["match"] = match
        if len(captured) == 1:
            model["exclude"] = [_relative(captured[0], folder)]
        model["fields"] = [f.to_dict() for f in page_model.fields]
        pages.append(model)
    return pages


def analyze_data_file_matching_properties(
    data_models: Sequence[PartialDataModel],
) -> list[dict[str, Any]]:
    """Assemble data models with unique names and their ``file`` or ``folder``."""
    models: list[dict[str, Any]] = []
    names: list[str] = []
    for data_model in data_models:
        name = get_unique_name(data_model.name, names)
        names.append(name)
        model: dict[str, Any] = {"type": "data", "name": name, "label": start_case(name)}
        if len(data_model.file_paths) == 1:
            model["file"] = data_model.file_paths[0]
        else:
            model["folder"] = find_common_ancestor_folder(data_model.file_paths)
        if data_model.items is not None:
            model["isList"] = True
            model["items"] = data_model.items.to_dict()
        else:
            model["fields"] = [f.to_dict() for f in data_model.fields or ()]
        models.append(model)
    return models


def extract_lowest_common_ancestor_folder(
    models: Sequence[dict[str, Any]],
) -> tuple[str, list[dict[str, Any]]]:
    """Move the folder shared by all models out of their ``file``/``folder``.

    Returns:
        The common folder ("" if none) and the models relative to it.
    """
    dirs = [
        posixpath.dirname(model["file"]) if "file" in model else model.get("folder", "")
        for model in models
    ]
    common_dir = _common_dir(dirs)
    if not common_dir:
        return "", list(models)

    adjusted: list[dict[str, Any]] = []
    for model in models:
        model = dict(model)
        if "file" in model:
            model["file"] = posixpath.relpath(model["file"], common_dir)
        else:
            folder = posixpath.relpath(model["folder"], common_dir)
            if folder == ".":
                del model["folder"]
            else:
                model["folder"] = folder
        adjusted.append(model)
    return common_dir, adjusted
