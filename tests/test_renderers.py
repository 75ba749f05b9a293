"""Tests for the markdown renderer and attribute blocks."""

from mdsite.protocols import ContentRenderer, FileStore, FrontmatterParser
from mdsite.extractors import YamlFrontmatterParser
from mdsite.renderers import MarkdownRenderer, split_attributes
from mdsite.storage import LocalFileStore


def test_renderer_satisfies_protocols():
    assert isinstance(MarkdownRenderer(), ContentRenderer)
    assert isinstance(LocalFileStore(), FileStore)
    assert isinstance(YamlFrontmatterParser(), FrontmatterParser)


def test_raw_html_passes_through():
    html = MarkdownRenderer().render('<div class="hero"><span>Keep</span></div>\n')
    assert '<div class="hero"><span>Keep</span></div>' in html


def test_bare_urls_are_not_linked():
    html = MarkdownRenderer().render("Visit https://x.test today\n")
    assert "<a " not in html
    assert "https://x.test" in html


def test_no_typographic_substitution():
    html = MarkdownRenderer().render("Wait -- really...\n")
    assert "--" in html
    assert "..." in html


def test_footnotes():
    html = MarkdownRenderer().render("Claim[^1]\n\n[^1]: Source text\n")
    assert "fn-1" in html
    assert "Source text" in html


def test_heading_attributes():
    html = MarkdownRenderer().render("# Title {#intro .big .wide}\n")
    assert html == '<h1 id="intro" class="big wide">Title</h1>\n'


def test_paragraph_attributes():
    html = MarkdownRenderer().render('Lead text {.lead data-x="1 2"}\n')
    assert html == '<p class="lead" data-x="1 2">Lead text</p>\n'


def test_braces_that_are_not_attributes_are_kept():
    assert MarkdownRenderer().render("Set {x}\n") == "<p>Set {x}</p>\n"
    assert split_attributes("text {}") == ("text {}", {})


def test_split_attributes_values():
    text, attrs = split_attributes("Hi {#a .b key=val other='q v'}")
    assert text == "Hi"
    assert attrs == {"id": "a", "key": "val", "other": "q v", "class": "b"}


def test_code_block_plain():
    html = MarkdownRenderer().render("```python\nx = 1 < 2\n```\n")
    assert html == '<pre><code class="language-python">x = 1 &lt; 2\n</code></pre>\n'


def test_code_block_highlighted():
    renderer = MarkdownRenderer(highlight_code=True)
    assert 'class="highlight"' in renderer.render("```python\nx = 1\n```\n")
    fallback = renderer.render("```nosuchlang\nx\n```\n")
    assert 'class="language-nosuchlang"' in fallback


def test_renderer_is_reusable():
    renderer = MarkdownRenderer()
    first = renderer.render("A[^1]\n\n[^1]: one\n")
    second = renderer.render("B[^1]\n\n[^1]: two\n")
    assert "one" not in second
    assert "two" in second
    assert "one" in first


def test_tables_and_strikethrough():
    renderer = MarkdownRenderer()
    table = renderer.render("| a | b |\n|---|---|\n| 1 | 2 |\n")
    assert "<table>" in table
    assert "<th>a</th>" in table
    assert "<td>2</td>" in table
    assert renderer.render("~~gone~~\n") == "<p><del>gone</del></p>\n"


def test_inline_attributes_attach_to_preceding_element():
    renderer = MarkdownRenderer()
    assert (
        renderer.render("see [a](/x){.btn}\n")
        == '<p>see <a href="/x" class="btn">a</a></p>\n'
    )
    assert (
        renderer.render("![logo](/l.png){#logo width=40} here\n")
        == '<p><img src="/l.png" alt="logo" id="logo" width="40" /> here</p>\n'
    )
    assert renderer.render("*hi*{.note}\n") == '<p><em class="note">hi</em></p>\n'
    assert renderer.render("`x`{.k}\n") == '<p><code class="k">x</code></p>\n'


def test_spaced_block_after_inline_element_goes_to_paragraph():
    html = MarkdownRenderer().render("see [a](/x) {.lead}\n")
    assert html == '<p class="lead">see <a href="/x">a</a></p>\n'


def test_inline_braces_that_are_not_attributes_are_kept():
    assert MarkdownRenderer().render("[a](/x){}\n") == '<p><a href="/x">a</a>{}</p>\n'
