import logging

from trivia_app.core.markdown_renderer import MarkdownRenderer
from trivia_app.server.server_config import ServerConfig
from trivia_app.utils.logging_config import configure_logging


def test_defaults_without_environment(monkeypatch):
    for name in ("TRIVIA_HOST", "TRIVIA_PORT", "TRIVIA_ADMIN_PASSWORD", "TRIVIA_RESULT_DISPLAY_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    config = ServerConfig.from_environment()

    assert config == ServerConfig()
    assert config.port == 8000
    assert config.result_display_seconds == 2.5


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TRIVIA_HOST", "127.0.0.1")
    monkeypatch.setenv("TRIVIA_PORT", "9001")
    monkeypatch.setenv("TRIVIA_ADMIN_PASSWORD", "hunter2")
    monkeypatch.setenv("TRIVIA_RESULT_DISPLAY_SECONDS", "1.5")

    config = ServerConfig.from_environment()

    assert config.host == "127.0.0.1"
    assert config.port == 9001
    assert config.admin_password == "hunter2"
    assert config.result_display_seconds == 1.5


def test_configure_logging_returns_package_logger(monkeypatch):
    monkeypatch.setenv("TRIVIA_LOG_LEVEL", "debug")

    logger = configure_logging()

    assert logger.name == "trivia_app"
    assert isinstance(logger, logging.Logger)


def test_markdown_is_rendered_and_html_escaped():
    renderer = MarkdownRenderer()

    assert renderer.render_fragment("What is **2 + 2**?") == "<p>What is <strong>2 + 2</strong>?</p>\n"
    assert renderer.render_inline("<script>x</script> `code`") == (
        "&lt;script&gt;x&lt;/script&gt; <code>code</code>"
    )
    assert renderer.render_fragment("   ") == "<p><em>No content provided.</em></p>"
