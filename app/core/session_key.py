"""Session key derivation for a two-party chat."""

from __future__ import annotations

SESSION_KEY_SEPARATOR = "-"


def build_session_key(local_id: str, remote_id: str) -> str:
    """
    Build a deterministic chat id from the two participant ids.

    The greater id comes first, so both sides compute the same key:
    build_session_key("u1", "u2") == build_session_key("u2", "u1") == "u2-u1".
    """
    if not local_id or not remote_id:
        raise ValueError("Both participant ids are required to build a session key")
    if local_id > remote_id:
        return f"{local_id}{SESSION_KEY_SEPARATOR}{remote_id}"
    return f"{remote_id}{SESSION_KEY_SEPARATOR}{local_id}"
