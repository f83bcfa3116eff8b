"""Tests for cache key builders."""

import pytest

from promptly_edge.infrastructure.cache.keys import (
    api_key_key,
    plan_key,
    prompt_key,
    usage_key,
    version_key,
)


def test_key_formats() -> None:
    assert api_key_key("ab12") == "apikey:ab12"
    assert prompt_key("p1") == "prompt:p1"
    assert version_key("p1", "1.0.0") == "version:p1:1.0.0"
    assert version_key("p1", None) == "version:p1:latest"
    assert usage_key("t1", "2026-02") == "usage:t1:2026-02"
    assert plan_key("t1") == "plan:t1"


def test_keys_are_deterministic() -> None:
    assert version_key("p1", "2.3.4") == version_key("p1", "2.3.4")


@pytest.mark.parametrize("bad", ["", "a:b"])
def test_rejects_bad_components(bad: str) -> None:
    with pytest.raises(ValueError):
        prompt_key(bad)
