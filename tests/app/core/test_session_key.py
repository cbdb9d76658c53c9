"""Tests for build_session_key."""

import pytest

from app.core.session_key import build_session_key


def test_greater_id_comes_first():
    assert build_session_key("u1", "u2") == "u2-u1"
    assert build_session_key("u2", "u1") == "u2-u1"


def test_symmetric_for_random_ids(faker):
    for _ in range(20):
        a, b = faker.uuid4(), faker.uuid4()
        assert build_session_key(a, b) == build_session_key(b, a)


def test_same_ids():
    assert build_session_key("solo", "solo") == "solo-solo"


@pytest.mark.parametrize("local_id, remote_id", [("", "u2"), ("u1", ""), ("", "")])
def test_empty_id_raises(local_id, remote_id):
    with pytest.raises(ValueError, match="participant ids"):
        build_session_key(local_id, remote_id)
