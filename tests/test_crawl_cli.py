import json
import logging
from unittest.mock import MagicMock, patch

import pytest

from sitecrawl import crawl
from sitecrawl.crawler.types import CrawlResult


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_ensure_scheme():
    assert crawl.ensure_scheme("example.com") == "https://example.com"
    assert crawl.ensure_scheme("http://example.com") == "http://example.com"


def test_cli_flags_override_config_file(tmp_path):
    config_path = tmp_path / "crawl.json"
    config_path.write_text(
        json.dumps({"seed_url": "https://example.com/", "max_pages": 9, "max_depth": 2}),
        encoding="utf-8",
    )

    args = crawl.parse_args(
        ["--config", str(config_path), "--max_pages", "3", "--skip_unauthorized", "--no_respect_robots"]
    )
    config = crawl.build_config(args)

    assert config.max_pages == 3
    assert config.max_depth == 2
    assert config.skip_unauthorized is True
    assert config.respect_robots is False


def test_positional_url_gets_scheme(tmp_path):
    args = crawl.parse_args(["example.com", "--output_dir", str(tmp_path)])
    config = crawl.build_config(args)

    assert config.seed_url == "https://example.com"
    assert config.output_dir == str(tmp_path)


def test_prompts_when_url_missing(tmp_path):
    args = crawl.parse_args(["--output_dir", str(tmp_path)])

    with patch("builtins.input", return_value="docs.example.com"):
        config = crawl.build_config(args)

    assert config.seed_url == "https://docs.example.com"


def test_bad_seed_exits_with_2(tmp_path):
    with patch("builtins.input", return_value=""):
        code = crawl.main(["--output_dir", str(tmp_path)])

    assert code == 2


def test_main_runs_pipeline_and_prints_summary(tmp_path, capsys):
    result = CrawlResult(
        start_url="https://example.com/",
        domain="example.com",
        pages=[],
        skipped=[],
        failed=[],
        total_time_ms=1500,
        output_path=str(tmp_path / "example_com.json"),
        summary_path=str(tmp_path / "example_com_summary.json"),
    )
    pipeline = MagicMock()
    pipeline.run.return_value = result

    with patch.object(crawl, "CrawlPipeline", return_value=pipeline) as factory:
        code = crawl.main(["https://example.com/", "--output_dir", str(tmp_path), "--max_pages", "4"])

    assert code == 0
    assert factory.call_args.args[0].max_pages == 4
    out = capsys.readouterr().out
    assert "pages crawled: 0" in out
    assert "total time: 1.50s" in out
    assert (tmp_path / "logs" / "crawl.log").exists()


def test_interrupt_exits_with_130(tmp_path):
    pipeline = MagicMock()
    pipeline.run.side_effect = KeyboardInterrupt

    with patch.object(crawl, "CrawlPipeline", return_value=pipeline):
        code = crawl.main(["https://example.com/", "--output_dir", str(tmp_path)])

    assert code == 130
