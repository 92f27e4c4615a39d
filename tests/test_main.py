"""Tests for the command-line entry point."""

import json

import pytest

from originguard.config import Config
from originguard.constants import FeedSchema
from originguard.main import build_parser, run_check
from originguard.reputation.models import FeedSource

AGGREGATE_URL = "https://feeds.test/config.json"
HOTLIST_URL = "https://feeds.test/hotlist.json"


def test_parser_check_command():
    args = build_parser().parse_args(["check", "a.com", "b.com"])
    assert args.command == "check"
    assert args.origins == ["a.com", "b.com"]
    assert build_parser().parse_args([]).command is None


@pytest.mark.asyncio
async def test_run_check_prints_results(fake_feeds, tmp_path, capsys):
    fake_feeds.set(AGGREGATE_URL, {"whitelist": ["good.com"], "blacklist": [], "fuzzylist": [], "tolerance": 0, "version": 4})
    fake_feeds.set(HOTLIST_URL, ["evil.com"])
    config = Config(
        feeds=[
            FeedSource(name="MetaMask", url=AGGREGATE_URL, schema=FeedSchema.AGGREGATE),
            FeedSource(name="PhishFort", url=HOTLIST_URL, schema=FeedSchema.HOTLIST),
        ],
        fallback_config_path=tmp_path / "missing.json",
        config_dir=tmp_path,
    )

    exit_code = await run_check(config, ["good.com", "evil.com"])

    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert exit_code == 2
    assert lines[0]["origin"] == "good.com"
    assert lines[0]["match_kind"] == "allow"
    assert lines[1]["phishing"] is True
    assert lines[1]["matched_source"] == "PhishFort"
