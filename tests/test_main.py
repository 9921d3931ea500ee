"""Tests for the ``python -m fedcrawl`` entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

from fedcrawl import __main__ as cli
from fedcrawl.engine import CrawlStats


class TestMain:
    def test_exit_zero_after_crawl(self, tmp_path, monkeypatch):
        monkeypatch.delenv("FEDCRAWL_SEED", raising=False)
        mock_crawl = AsyncMock(return_value=CrawlStats(instances=1, users=2, visited=3))
        with patch.object(cli, "crawl", mock_crawl):
            code = cli.main(["--target-dir", str(tmp_path / "out"), "--seed", "a.example"])
        assert code == 0
        config = mock_crawl.await_args.args[0]
        assert config.target_dir == Path(tmp_path / "out")
        assert config.seed == "a.example"

    def test_env_seed_used_without_flag(self, monkeypatch):
        monkeypatch.setenv("FEDCRAWL_SEED", "env.example")
        mock_crawl = AsyncMock(return_value=CrawlStats(instances=0, users=0, visited=1))
        with patch.object(cli, "crawl", mock_crawl):
            cli.main([])
        assert mock_crawl.await_args.args[0].seed == "env.example"

    def test_unwritable_target_dir_exits_one(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        code = cli.main(["--target-dir", str(blocker / "output")])
        assert code == 1

    def test_non_numeric_concurrency_exits_one(self, monkeypatch, caplog):
        monkeypatch.setenv("FEDCRAWL_CONCURRENCY", "lots")
        mock_crawl = AsyncMock()
        with patch.object(cli, "crawl", mock_crawl):
            code = cli.main([])
        assert code == 1
        mock_crawl.assert_not_called()
        assert "Invalid configuration" in caplog.text

    def test_non_numeric_timeout_exits_one(self, monkeypatch):
        monkeypatch.delenv("FEDCRAWL_CONCURRENCY", raising=False)
        monkeypatch.setenv("FEDCRAWL_TIMEOUT", "soon")
        mock_crawl = AsyncMock()
        with patch.object(cli, "crawl", mock_crawl):
            code = cli.main([])
        assert code == 1
        mock_crawl.assert_not_called()
