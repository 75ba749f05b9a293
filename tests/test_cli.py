from pathlib import Path

from click.testing import CliRunner

from mdsite import __version__
from mdsite.cli import _new_document, _slugify, cli
from mdsite.extractors import extract_frontmatter

TEMPLATE = "<head><!--mdsite meta--></head><body><!--mdsite content--></body>"


def create_project(root: Path) -> Path:
    (root / "markdown" / "posts").mkdir(parents=True)
    (root / "index.html").write_text(TEMPLATE, encoding="utf-8")
    (root / "mdsite.yaml").write_text(
        "output: dist\ndefaults:\n  baseUrl: https://x.test\n  title: Site\n",
        encoding="utf-8",
    )
    (root / "markdown" / "index.md").write_text(
        "---\ntitle: Home\ncreated: 2024-01-01\n---\nHi\n", encoding="utf-8"
    )
    (root / "markdown" / "posts" / "a.md").write_text(
        "---\ntitle: A\ncreated: 2024-02-01\n---\nOne two\n", encoding="utf-8"
    )
    return root


class Answer:
    def __init__(self, value):
        self.value = value

    def ask(self):
        return self.value


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_build_renders_site(monkeypatch, tmp_path):
    create_project(tmp_path)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 2 pages" in result.output
    assert (tmp_path / "dist" / "posts" / "a.html").exists()
    assert (tmp_path / "dist" / "feed.xml").exists()


def test_build_default_layout_with_index_page(monkeypatch, tmp_path):
    create_project(tmp_path)
    (tmp_path / "mdsite.yaml").write_text(
        "defaults:\n  baseUrl: https://x.test\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert (tmp_path / "dist" / "index.html").exists()
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == TEMPLATE


def test_build_options_override_config(monkeypatch, tmp_path):
    create_project(tmp_path)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli,
        ["build", "--output", "public", "--no-feed", "--words-per-minute", "1"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    public = tmp_path / "public"
    assert (public / "index.html").exists()
    assert (public / "sitemap.xml").exists()
    assert not (public / "feed.xml").exists()
    assert '"readingTime":2' in (public / "posts" / "a.html").read_text(encoding="utf-8")


def test_build_reports_document_errors(monkeypatch, tmp_path):
    create_project(tmp_path)
    (tmp_path / "markdown" / "bad.md").write_text("no front matter\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "bad.md" in result.output
    assert not (tmp_path / "dist").exists()


def test_build_reports_config_errors(monkeypatch, tmp_path):
    create_project(tmp_path)
    (tmp_path / "index.html").unlink()
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "html_template" in result.output


def test_preview_prints_index(monkeypatch, tmp_path):
    create_project(tmp_path)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["preview", "--url", "/posts/a"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "<title>Home</title>" in result.output
    assert not (tmp_path / "dist").exists()


def test_serve_starts_dev_server(monkeypatch, tmp_path):
    create_project(tmp_path)
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, config, http_port=None, ws_port=None):
            called["config"] = config
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self):
            called["started"] = True

    monkeypatch.setattr("mdsite.server.DevServer", DummyServer)
    result = CliRunner().invoke(
        cli, ["serve", "--port", "5050", "--ws-port", "5051"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert called["port"] == 5050
    assert called["ws_port"] == 5051
    assert called["started"]
    assert called["config"].output_dir == tmp_path / "dist"


def test_new_creates_document(monkeypatch, tmp_path):
    create_project(tmp_path)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("mdsite.cli.questionary.select", lambda *a, **k: Answer("posts"))
    answers = iter(["My New Post", "my-new-post"])
    monkeypatch.setattr("mdsite.cli.questionary.text", lambda *a, **k: Answer(next(answers)))
    monkeypatch.setattr("mdsite.cli.questionary.confirm", lambda *a, **k: Answer(True))

    result = CliRunner().invoke(cli, ["new"], catch_exceptions=False)
    assert result.exit_code == 0
    target = tmp_path / "markdown" / "posts" / "my-new-post.md"
    data, body = extract_frontmatter(target.read_text(encoding="utf-8"))
    assert data["title"] == "My New Post"
    assert data["draft"] is True
    assert "created" in data
    assert body.strip() == "# My New Post"

    answers = iter(["My New Post", "my-new-post"])
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_new_aborts_on_cancel(monkeypatch, tmp_path):
    create_project(tmp_path)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("mdsite.cli.questionary.select", lambda *a, **k: Answer(None))
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code != 0


def test_new_document_and_slug():
    from datetime import date

    text = _new_document("Hello", date(2024, 1, 2), draft=False)
    assert text == "---\ntitle: Hello\ncreated: 2024-01-02\n---\n\n# Hello\n"
    assert _slugify("Hello, World!") == "hello-world"
    assert _slugify("???") == "untitled"


def test_main_invokes_cli(monkeypatch):
    import mdsite.cli as cli_mod

    called = {}
    monkeypatch.setattr(cli_mod, "cli", lambda: called.setdefault("ran", True))
    cli_mod.main()
    assert called["ran"]


def test_module_main_entrypoint():
    from mdsite.__main__ import main

    assert callable(main)
