import threading

import pytest

from limitless_auth import SessionCarrier, SessionCredential
from limitless_auth.auth import DEFAULT_SESSION_COOKIE


def test_starts_empty():
    carrier = SessionCarrier()

    assert carrier.current() is None
    assert carrier.cookie_header() is None
    assert carrier.cookie_name == DEFAULT_SESSION_COOKIE


def test_set_replaces_and_clear_empties():
    carrier = SessionCarrier()
    first, second = SessionCredential("a"), SessionCredential("b")

    carrier.set(first)
    carrier.set(second)
    assert carrier.current() == second
    assert carrier.cookie_header() == "limitless_session=b"

    carrier.clear()
    assert carrier.current() is None


def test_clear_if_only_clears_matching_credential():
    carrier = SessionCarrier(credential=SessionCredential("active"))

    assert carrier.clear_if(SessionCredential("stale")) is False
    assert carrier.current() == SessionCredential("active")

    assert carrier.clear_if(SessionCredential("active")) is True
    assert carrier.current() is None
    assert carrier.clear_if(SessionCredential("active")) is False


def test_credential_is_immutable_and_masked():
    credential = SessionCredential("abcdef123456")

    with pytest.raises(Exception):
        credential.token = "other"
    assert "123456" not in repr(credential)
    assert str(credential) == "abcdef123456"


def test_empty_token_rejected():
    with pytest.raises(ValueError):
        SessionCredential("")


def test_concurrent_writers_leave_a_whole_value():
    carrier = SessionCarrier()
    tokens = [f"token-{i}" for i in range(50)]

    def writer(token):
        for _ in range(100):
            carrier.set(SessionCredential(token))
            current = carrier.current()
            assert current is not None and current.token in tokens

    threads = [threading.Thread(target=writer, args=(t,)) for t in tokens]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert carrier.current().token in tokens
