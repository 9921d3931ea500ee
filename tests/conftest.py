"""pytest configuration for fedcrawl tests."""

from __future__ import annotations

from typing import Any

import pytest

from fedcrawl.nodeinfo import NodeInfo


# Configure asyncio mode for pytest-asyncio
def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


def nodeinfo_document(software: str = "mastodon", users: int | None = 10) -> dict[str, Any]:
    usage: dict[str, Any] = {"users": {}, "localPosts": 42}
    if users is not None:
        usage["users"] = {"total": users, "activeMonth": users // 2, "activeHalfyear": users}
    return {
        "version": "2.0",
        "software": {"name": software, "version": "4.2.1"},
        "protocols": ["activitypub"],
        "services": {"inbound": [], "outbound": []},
        "openRegistrations": True,
        "usage": usage,
        "metadata": {"nodeName": "Test instance"},
    }


@pytest.fixture
def make_nodeinfo():
    def _make(software: str = "mastodon", users: int | None = 10) -> NodeInfo:
        return NodeInfo.model_validate(nodeinfo_document(software, users))

    return _make


@pytest.fixture
def make_document():
    return nodeinfo_document
