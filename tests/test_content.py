import os
from pathlib import Path

import pytest

from mdsite.config import ConfigError, SiteConfig
from mdsite.content import (
    BuildError,
    ContentProcessor,
    MarkdownFileLoader,
    PageBuilder,
    PageRecord,
)
from mdsite.renderers import MarkdownRenderer
from mdsite.storage import LocalFileStore


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def create_site(tmp_path: Path) -> Path:
    markdown = tmp_path / "markdown"
    write(
        markdown / "index.md",
        "---\ntitle: Home\ncreated: 2024-01-01\n---\n# Welcome\n\nHello there.\n",
    )
    write(
        markdown / "posts" / "a.md",
        "---\ntitle: Post A\ncreated: 2024-03-01\nauthor: Ann\n---\nFirst post body.\n",
    )
    write(
        markdown / "posts" / "draft.md",
        "---\ntitle: Draft\ncreated: 2024-05-01\ndraft: true\n---\nNot yet.\n",
    )
    write(
        markdown / "about.md",
        "---\ntitle: About\ncreated: 2024-02-01\n---\nAbout us.\n",
    )
    write(markdown / "notes.txt", "ignore me")
    return markdown


def make_config(tmp_path: Path, **options) -> SiteConfig:
    options.setdefault("defaults", {"baseUrl": "https://x.test"})
    return SiteConfig.from_options(options, tmp_path)


def make_builder(config: SiteConfig) -> PageBuilder:
    return PageBuilder(config, LocalFileStore(), MarkdownRenderer())


def test_content_processing_collects_non_draft_pages(tmp_path):
    create_site(tmp_path)
    pages = ContentProcessor(make_config(tmp_path)).load()

    assert [p.filename for p in pages] == ["posts/a", "about", "index"]
    assert all(p.get("draft") is not True for p in pages)


def test_loader_only_lists_markdown(tmp_path):
    markdown = create_site(tmp_path)
    files = MarkdownFileLoader(markdown, LocalFileStore()).iter_files()
    assert all(path.suffix == ".md" for path in files)
    assert len(files) == 4


def test_absolute_url_derivation(tmp_path):
    markdown = create_site(tmp_path)
    page = make_builder(make_config(tmp_path)).build(markdown / "posts" / "a.md")

    assert page.filename == "posts/a"
    assert page.url == "/posts/a"
    assert page.absolute_url == "https://x.test/posts/a"


def test_explicit_url_wins(tmp_path):
    markdown = tmp_path / "markdown"
    path = write(
        markdown / "contact.md",
        "---\ncreated: 2024-01-01\nurl: /get-in-touch\n---\nHi\n",
    )
    page = make_builder(make_config(tmp_path)).build(path)

    assert page.url == "/get-in-touch"
    assert page.absolute_url == "https://x.test/get-in-touch"
    assert page.filename == "contact"


def test_draft_returns_none(tmp_path):
    markdown = create_site(tmp_path)
    builder = make_builder(make_config(tmp_path))
    assert builder.build(markdown / "posts" / "draft.md") is None


def test_reading_time_when_configured(tmp_path):
    markdown = tmp_path / "markdown"
    path = write(markdown / "words.md", "---\ncreated: 2024-01-01\n---\none two three four\n")

    page = make_builder(make_config(tmp_path, words_per_minute=2)).build(path)
    assert page.html == "<p>one two three four</p>\n"
    assert page.reading_time == 2

    page = make_builder(make_config(tmp_path)).build(path)
    assert "readingTime" not in page


def test_timestamps_from_frontmatter_and_mtime(tmp_path):
    markdown = tmp_path / "markdown"
    path = write(markdown / "post.md", "---\ncreated: 2024-01-15\n---\nBody\n")
    os.utime(path, ns=(1_700_000_000_123_000_000, 1_700_000_000_123_000_000))

    page = make_builder(make_config(tmp_path)).build(path)
    assert page.created_at == 1705276800000
    assert page.updated_at == 1700000000123

    write(path, "---\ncreated: 2024-01-15\nupdated: 2024-01-16T12:00:00Z\n---\nBody\n")
    page = make_builder(make_config(tmp_path)).build(path)
    assert page.updated_at == 1705406400000


def test_field_precedence_and_order(tmp_path):
    markdown = tmp_path / "markdown"
    path = write(
        markdown / "post.md",
        "---\ntitle: Mine\nauthor: Me\ncreated: 2024-01-01\nfilename: spoofed\nhtml: spoofed\n---\nBody\n",
    )
    config = make_config(
        tmp_path,
        defaults={"baseUrl": "https://x.test", "author": "Default", "language": "en"},
        words_per_minute=200,
    )
    page = make_builder(config).build(path)

    assert page["author"] == "Me"
    assert page["language"] == "en"
    assert page.filename == "post"
    assert page.html == "<p>Body</p>\n"
    assert page["created"] == "2024-01-01T00:00:00.000Z"
    keys = list(page)
    assert keys[:3] == ["baseUrl", "author", "language"]
    assert keys[-5:] == ["updatedAt", "createdAt", "absolute_url", "readingTime", "url"]


def test_missing_created_fails_with_named_error(tmp_path):
    markdown = tmp_path / "markdown"
    path = write(markdown / "post.md", "---\ntitle: No date\n---\nBody\n")

    with pytest.raises(BuildError) as excinfo:
        make_builder(make_config(tmp_path)).build(path)
    assert excinfo.value.source_path == path
    assert "created" in excinfo.value.message


def test_invalid_created_fails(tmp_path):
    markdown = tmp_path / "markdown"
    path = write(markdown / "post.md", "---\ncreated: someday\n---\nBody\n")

    with pytest.raises(BuildError, match="invalid date"):
        make_builder(make_config(tmp_path)).build(path)


def test_malformed_frontmatter_aborts_collection(tmp_path):
    markdown = create_site(tmp_path)
    write(markdown / "broken.md", "---\ntitle: [unclosed\n---\nBody\n")

    with pytest.raises(BuildError) as excinfo:
        ContentProcessor(make_config(tmp_path)).load()
    assert excinfo.value.source_path.name == "broken.md"


def test_malformed_base_url_is_config_error(tmp_path):
    create_site(tmp_path)
    config = make_config(tmp_path, defaults={"baseUrl": "not a url"})
    with pytest.raises(ConfigError) as excinfo:
        ContentProcessor(config).load()
    assert excinfo.value.field == "defaults.baseUrl"


def test_missing_markdown_dir_is_build_error(tmp_path):
    with pytest.raises(BuildError, match="cannot list"):
        ContentProcessor(make_config(tmp_path)).load()


def test_custom_renderer_is_used(tmp_path):
    create_site(tmp_path)

    class UpperRenderer:
        def render(self, markdown):
            return markdown.upper()

    pages = ContentProcessor(make_config(tmp_path), renderer=UpperRenderer()).load()
    assert pages.find("about").html == "ABOUT US.\n"


def test_page_record_is_read_only_mapping():
    record = PageRecord({"filename": "a", "createdAt": 1})
    assert dict(record) == {"filename": "a", "createdAt": 1}
    with pytest.raises(TypeError):
        record["filename"] = "b"
    copy = record.to_dict()
    copy["filename"] = "b"
    assert record.filename == "a"
