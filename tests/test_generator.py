"""Tests for generator module."""

from pathlib import Path

import pytest

from site_schema_mcp.file_browser import FileBrowser, LocalFileBrowserAdapter
from site_schema_mcp.inference.fields import Field
from site_schema_mcp.inference.generator import (
    PartialPageModel,
    analyze_page_file_matching_properties,
    collect_content_files,
    extract_lowest_common_ancestor_folder,
    find_common_ancestor_folder,
    flatten_page_data,
    generate_schema,
    get_dir,
)
from site_schema_mcp.ssg import SSGMatchResult


def make_browser(base: Path, files: dict[str, str]) -> FileBrowser:
    """Write files below base and create a browser over it."""
    for rel_path, content in files.items():
        path = base / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return FileBrowser(LocalFileBrowserAdapter(base))


def field_names(model: dict) -> set[str]:
    return {f["name"] for f in model["fields"]}


BLOG_POSTS = {
    "content/posts/a.md": "---\ntitle: A\ndate: 2021-01-05\n---\nBody A\n",
    "content/posts/b.md": "---\ntitle: B\ndate: 2021-01-06\nsummary: Short\n---\nBody B\n",
    "content/posts/c.md": "---\ntitle: C\ndate: 2021-01-07\n---\nBody C\n",
}


class TestGenerateSchemaPages:
    """Tests for page model generation."""

    def test_similar_pages_collapse(self, tmp_path: Path) -> None:
        """Posts differing by one optional field become one model."""
        browser = make_browser(tmp_path, BLOG_POSTS)

        result = generate_schema(SSGMatchResult(pages_dir="content"), browser)

        assert result.pages_dir == "content"
        assert len(result.models) == 1
        model = result.models[0]
        assert model["type"] == "page"
        assert model["name"] == "page_1"
        assert model["label"] == "Page 1"
        assert model["folder"] == "posts"
        assert model["match"] == "*"
        assert field_names(model) == {"title", "date", "summary", "markdown_content"}

    def test_field_types(self, tmp_path: Path) -> None:
        """Frontmatter dates are dates and the body is markdown."""
        browser = make_browser(tmp_path, BLOG_POSTS)

        result = generate_schema(SSGMatchResult(pages_dir="content"), browser)

        fields = {f["name"]: f for f in result.models[0]["fields"]}
        assert fields["date"] == {"type": "date", "name": "date", "label": "Date"}
        assert fields["markdown_content"] == {
            "type": "markdown",
            "name": "markdown_content",
            "label": "Content",
        }

    def test_dissimilar_pages_and_common_folder(self, tmp_path: Path) -> None:
        """Unrelated pages form separate models below a discovered pages dir."""
        browser = make_browser(
            tmp_path,
            {
                "README.md": "---\ntitle: Readme\n---\n",
                "index.md": "---\ntitle: Home\n---\n",
                "content/posts/a.md": "---\ntitle: A\ndate: 2021-01-05\ntags: [x]\n---\n",
                "content/team/jane.md": (
                    "---\nname: Jane\nrole: Editor\navatar: jane.png\n---\n"
                ),
            },
        )

        result = generate_schema(SSGMatchResult(), browser)

        assert result.pages_dir == "content"
        assert [m["name"] for m in result.models] == ["page_1", "page_2"]
        assert [m["folder"] for m in result.models] == ["posts", "team"]
        assert "name" in field_names(result.models[1])

    def test_pages_without_frontmatter_are_skipped(self, tmp_path: Path) -> None:
        """Markdown without frontmatter is not a page."""
        browser = make_browser(
            tmp_path,
            {
                "content/notes.md": "# Just markdown\n",
                "content/post.md": "---\ntitle: A\n---\nBody\n",
            },
        )

        result = generate_schema(SSGMatchResult(pages_dir="content"), browser)

        assert len(result.models) == 1
        assert result.models[0]["match"] == "*"

    def test_malformed_frontmatter_is_reported(self, tmp_path: Path) -> None:
        """Files that fail to parse are skipped with a warning."""
        browser = make_browser(
            tmp_path,
            {
                "content/broken.md": "---\ntitle: [unclosed\n---\nBody\n",
                "content/post.md": "---\ntitle: A\n---\nBody\n",
            },
        )

        result = generate_schema(SSGMatchResult(pages_dir="content"), browser)

        assert len(result.models) == 1
        assert len(browser.warnings) == 1
        assert "content/broken.md" in browser.warnings[0]

    def test_layouts_are_merged(self, tmp_path: Path) -> None:
        """Pages sharing a layout are merged regardless of similarity."""
        browser = make_browser(
            tmp_path,
            {
                "pages/a.md": "---\nlayout: post\ntitle: A\n---\n",
                "pages/b.md": "---\nlayout: post\nauthor: Jane\ncover: b.png\nviews: 3\n---\n",
                "pages/c.md": "---\nlayout: landing\ntitle: C\n---\n",
            },
        )

        result = generate_schema(
            SSGMatchResult(pages_dir="pages", page_type_key="layout"), browser
        )

        assert [m["layout"] for m in result.models] == ["post", "landing"]
        assert field_names(result.models[0]) == {
            "layout",
            "title",
            "author",
            "cover",
            "views",
            "markdown_content",
        }
        assert result.models[0]["match"] == "*"
        assert result.models[0]["exclude"] == ["c.md"]
        assert result.models[1]["match"] == ["c.md"]

    def test_list_item_shapes_become_object_models(self, tmp_path: Path) -> None:
        """Different list item shapes are extracted as named object models."""
        browser = make_browser(
            tmp_path,
            {
                "pages/index.md": (
                    "---\n"
                    "sections:\n"
                    "  - title: Welcome\n"
                    "    image: hero.png\n"
                    "  - label: Sign up\n"
                    "    url: /signup\n"
                    "---\n"
                ),
            },
        )

        result = generate_schema(SSGMatchResult(pages_dir="pages"), browser)

        page, *objects = result.models
        sections = next(f for f in page["fields"] if f["name"] == "sections")
        assert sections["items"] == {"type": "model", "models": ["object_1", "object_2"]}
        assert [o["name"] for o in objects] == ["object_1", "object_2"]
        assert [o["label"] for o in objects] == ["Object 1", "Object 2"]
        assert all(o["type"] == "object" for o in objects)
        assert field_names(objects[0]) == {"title", "image"}

    def test_empty_repository(self, tmp_path: Path) -> None:
        """A repository without content has no models."""
        browser = make_browser(tmp_path, {})

        result = generate_schema(SSGMatchResult(), browser)

        assert result.to_dict() == {"models": [], "pages_dir": None, "data_dir": None}


class TestGenerateSchemaData:
    """Tests for data model generation."""

    def test_data_files(self, tmp_path: Path) -> None:
        """Each data file becomes a model named after it."""
        browser = make_browser(
            tmp_path,
            {
                "data/authors.json": '[{"name": "Jane", "bio": "Writer"}]',
                "data/site-config.yml": "title: Blog\nperPage: 10\n",
                "data/social.toml": 'twitter = "@blog"\n',
            },
        )

        result = generate_schema(SSGMatchResult(data_dir="data"), browser)

        assert result.data_dir == "data"
        by_name = {m["name"]: m for m in result.models}
        assert set(by_name) == {"authors", "site_config", "social"}
        authors = by_name["authors"]
        assert authors["type"] == "data"
        assert authors["file"] == "authors.json"
        assert authors["isList"] is True
        assert authors["items"]["type"] == "object"
        assert field_names(by_name["site_config"]) == {"title", "perPage"}

    def test_similar_data_files_merge(self, tmp_path: Path) -> None:
        """Data files with the same shape share one folder model."""
        browser = make_browser(
            tmp_path,
            {
                "data/team/alice.yml": "name: Alice\nrole: Editor\n",
                "data/team/bob.yml": "name: Bob\nrole: Writer\n",
            },
        )

        result = generate_schema(SSGMatchResult(data_dir="data"), browser)

        assert len(result.models) == 1
        model = result.models[0]
        assert model["folder"] == "team"
        assert "file" not in model

    def test_data_dir_discovery(self, tmp_path: Path) -> None:
        """The common folder of data models is reported as data dir."""
        browser = make_browser(
            tmp_path,
            {
                "config.yml": "title: Site\n",
                "site/data/menu.yml": "items: [a, b]\n",
                "site/data/footer.yml": "text: Hello\ncopyright: 2021\n",
            },
        )

        result = generate_schema(SSGMatchResult(), browser)

        assert result.data_dir == "site/data"
        assert sorted(m["file"] for m in result.models) == ["footer.yml", "menu.yml"]

    def test_duplicate_names_are_unique(self, tmp_path: Path) -> None:
        """Data files with the same stem get suffixed names."""
        browser = make_browser(
            tmp_path,
            {
                "data/en/menu.yml": "items: [a, b]\n",
                "data/fr/menu.json": '{"title": "Menu", "open": true, "order": 1}',
            },
        )

        result = generate_schema(SSGMatchResult(data_dir="data"), browser)

        assert sorted(m["name"] for m in result.models) == ["menu", "menu_1"]

    def test_non_latin_file_names(self, tmp_path: Path) -> None:
        """Data models are named after file stems in any script."""
        browser = make_browser(
            tmp_path,
            {
                "data/ブログ.yaml": "title: Blog\nposts: 3\n",
                "data/設定.yaml": "theme: dark\nlanguage: ja\nsearch: true\n",
            },
        )

        result = generate_schema(SSGMatchResult(data_dir="data"), browser)

        assert sorted((m["name"], m["label"]) for m in result.models) == [
            ("ブログ", "ブログ"),
            ("設定", "設定"),
        ]

    def test_scalar_data_file_is_skipped(self, tmp_path: Path) -> None:
        """Data files without a mapping or array are ignored."""
        browser = make_browser(tmp_path, {"data/version.yml": "1.0\n"})

        result = generate_schema(SSGMatchResult(data_dir="data"), browser)

        assert result.models == []


class TestCollectContentFiles:
    """Tests for collect_content_files function."""

    def test_excludes(self, tmp_path: Path) -> None:
        """Excluded and unsupported files are not collected."""
        browser = make_browser(
            tmp_path,
            {
                "site/content/a.md": "",
                "site/content/README.md": "",
                "site/content/image.png": "",
                "site/content/node_modules/x.md": "",
                "site/data/a.yml": "",
                "site/data/package.json": "",
            },
        )

        result = collect_content_files(
            SSGMatchResult(ssg_dir="site", pages_dir="content", data_dir="data"), browser
        )

        assert result.pages_dir == "site/content"
        assert result.page_files == ["a.md"]
        assert result.data_dir == "site/data"
        assert result.data_files == ["a.yml"]

    def test_root_files_ignored_without_pages_dir(self, tmp_path: Path) -> None:
        """Root files and the publish dir are skipped when scanning the root."""
        browser = make_browser(
            tmp_path,
            {
                "index.md": "",
                "public/index.md": "",
                "docs/guide.md": "",
            },
        )

        result = collect_content_files(SSGMatchResult(publish_dir="public"), browser)

        assert result.pages_dir == ""
        assert result.page_files == ["docs/guide.md"]

    def test_root_files_kept_with_root_pages_dir(self, tmp_path: Path) -> None:
        """An explicit root pages dir keeps root files."""
        browser = make_browser(tmp_path, {"index.md": "", "docs/guide.md": ""})

        result = collect_content_files(SSGMatchResult(pages_dir=""), browser)

        assert result.page_files == ["docs/guide.md", "index.md"]


class TestFlattenPageData:
    """Tests for flatten_page_data function."""

    def test_markdown_page(self) -> None:
        """Frontmatter and body become one record."""
        data = {"frontmatter": {"title": "A"}, "markdown": "Body"}

        assert flatten_page_data(data) == {"title": "A", "markdown_content": "Body"}

    @pytest.mark.parametrize("page_frontmatter", [None, ["a"], "text"])
    def test_no_frontmatter_mapping(self, page_frontmatter: object) -> None:
        """Pages without a frontmatter mapping are skipped."""
        data = {"frontmatter": page_frontmatter, "markdown": "Body"}

        assert flatten_page_data(data) is None

    def test_not_parsed(self) -> None:
        """Unreadable files are skipped."""
        assert flatten_page_data(None) is None


class TestMatchingProperties:
    """Tests for page file matching properties."""

    def test_nested_folders_use_recursive_match(self) -> None:
        """Files in nested folders match with **."""
        model = PartialPageModel(
            fields=(Field(type="string", name="title", label="Title"),),
            file_paths=("blog/a.md", "blog/2021/b.md"),
        )

        pages = analyze_page_file_matching_properties([model])

        assert pages[0]["folder"] == "blog"
        assert pages[0]["match"] == "**/*"
        assert "exclude" not in pages[0]

    def test_single_captured_file_is_excluded(self) -> None:
        """A file of another model under the glob is excluded."""
        fields = (Field(type="string", name="title", label="Title"),)
        posts = PartialPageModel(fields, ("blog/a.md", "blog/b.md"))
        index = PartialPageModel(fields, ("blog/index.md",))

        pages = analyze_page_file_matching_properties([posts, index])

        assert pages[0]["match"] == "*"
        assert pages[0]["exclude"] == ["index.md"]

    def test_several_captured_files_use_file_list(self) -> None:
        """Several foreign files under the glob switch to an explicit list."""
        fields = (Field(type="string", name="title", label="Title"),)
        posts = PartialPageModel(fields, ("blog/a.md", "blog/b.md"))
        others = PartialPageModel(fields, ("blog/x.md", "blog/y.md"))

        pages = analyze_page_file_matching_properties([posts, others])

        assert pages[0]["match"] == ["a.md", "b.md"]
        assert pages[1]["match"] == ["x.md", "y.md"]


class TestFolderHelpers:
    """Tests for folder helper functions."""

    def test_find_common_ancestor_folder(self) -> None:
        """The deepest shared folder is found."""
        assert find_common_ancestor_folder(["a/b/x.md", "a/b/c/y.md"]) == "a/b"
        assert find_common_ancestor_folder(["a/x.md", "b/y.md"]) == ""
        assert find_common_ancestor_folder(["x.md"]) == ""

    def test_partial_segment_is_not_common(self) -> None:
        """Folders are compared by segment, not by prefix."""
        assert find_common_ancestor_folder(["blog/x.md", "blogs/y.md"]) == ""

    def test_extract_lowest_common_ancestor_folder(self) -> None:
        """The shared folder moves out of file and folder properties."""
        models = [
            {"name": "a", "folder": "content/posts"},
            {"name": "b", "folder": "content"},
            {"name": "c", "file": "content/about.md"},
        ]

        common_dir, adjusted = extract_lowest_common_ancestor_folder(models)

        assert common_dir == "content"
        assert adjusted == [
            {"name": "a", "folder": "posts"},
            {"name": "b"},
            {"name": "c", "file": "about.md"},
        ]
        assert models[1] == {"name": "b", "folder": "content"}

    def test_get_dir(self) -> None:
        """Directories are joined and normalized."""
        assert get_dir("", "") == ""
        assert get_dir("site", "") == "site"
        assert get_dir("site", "content/") == "site/content"
        assert get_dir("", "./content") == "content"
