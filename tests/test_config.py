import json

import pytest

from sitecrawl.crawler.config import CrawlConfig, load_config, save_config
from sitecrawl.crawler.constants import DEFAULT_USER_AGENT
from sitecrawl.crawler.errors import SeedURLError


class TestCrawlConfig:
    def test_defaults(self):
        config = CrawlConfig(seed_url="https://www.example.com/start")

        assert config.max_pages == 50
        assert config.max_depth == 3
        assert config.delay_seconds == 1.0
        assert config.max_retries == 3
        assert config.concurrency == 1
        assert config.respect_robots is False
        assert config.domain == "example.com"
        assert config.headers()["User-Agent"] == DEFAULT_USER_AGENT
        assert "Accept" in config.headers()

    @pytest.mark.parametrize("seed", ["", "example.com", "not a url", "ftp://example.com/"])
    def test_invalid_seed(self, seed):
        with pytest.raises(SeedURLError):
            CrawlConfig(seed_url=seed)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("max_pages", 0),
            ("max_depth", -1),
            ("concurrency", 0),
            ("delay_seconds", -0.5),
            ("timeout_seconds", 0),
            ("max_retries", -1),
            ("user_agent", "  "),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            CrawlConfig(seed_url="https://example.com/", **{field: value})

    def test_robots_enforcement_respects_override(self):
        assert CrawlConfig(seed_url="https://example.com/", respect_robots=True).robots_enforced
        assert not CrawlConfig(
            seed_url="https://example.com/",
            respect_robots=True,
            ignore_restrictions=True,
        ).robots_enforced

    def test_from_dict_type_errors(self):
        with pytest.raises(ValueError, match="max_pages"):
            CrawlConfig.from_dict({"seed_url": "https://example.com/", "max_pages": "many"})
        with pytest.raises(ValueError, match="respect_robots"):
            CrawlConfig.from_dict({"seed_url": "https://example.com/", "respect_robots": "yes"})
        with pytest.raises(ValueError, match="seed_url"):
            CrawlConfig.from_dict({"max_pages": 3})


class TestConfigFiles:
    def test_json_round_trip(self, tmp_path):
        config = CrawlConfig(seed_url="https://example.com/", max_pages=7, skip_unauthorized=True)
        path = tmp_path / "crawl.json"

        save_config(config, path)

        assert json.loads(path.read_text(encoding="utf-8"))["max_pages"] == 7
        assert load_config(path) == config

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "crawl.yaml"
        path.write_text(
            "seed_url: https://example.com/\nmax_depth: 1\nrespect_robots: true\n",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.max_depth == 1
        assert config.respect_robots is True

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "crawl.toml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ValueError, match="Unsupported config suffix"):
            load_config(path)
