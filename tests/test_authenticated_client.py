import pytest

from limitless_auth import (
    APIError,
    AuthenticatedClient,
    AuthenticationError,
    ClientType,
    SessionInvalidError,
)


@pytest.mark.asyncio
async def test_expired_session_triggers_one_reauthentication(authenticator, exchange):
    first = await authenticator.authenticate()
    client = AuthenticatedClient(authenticator)
    # server forgets the session
    exchange.sessions.clear()

    address = await client.with_retry(lambda: authenticator.http.get("/auth/verify-auth"))

    assert address == first.profile.account
    assert client.last_result is not None
    assert client.last_result.credential != first.credential
    assert authenticator.carrier.current() == client.last_result.credential
    assert exchange.calls["login"] == 2


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(authenticator, exchange):
    client = AuthenticatedClient(authenticator, max_retries=2)
    calls = []

    async def always_unauthorized():
        calls.append(1)
        raise APIError("Unauthorized", 401)

    with pytest.raises(APIError):
        await client.with_retry(always_unauthorized)

    assert len(calls) == 3
    assert exchange.calls["login"] == 2


@pytest.mark.asyncio
async def test_session_invalid_error_also_triggers_reauthentication(authenticator):
    client = AuthenticatedClient(authenticator, client="base")
    calls = []

    async def op():
        calls.append(1)
        if len(calls) == 1:
            raise SessionInvalidError(status=401)
        return "done"

    assert await client.with_retry(op) == "done"
    assert client.last_result.profile.client == "base"


@pytest.mark.asyncio
async def test_other_errors_propagate_without_reauthentication(authenticator, exchange):
    client = AuthenticatedClient(authenticator)

    async def op():
        raise APIError("Bad request", 400)

    with pytest.raises(APIError) as exc:
        await client.with_retry(op)

    assert exc.value.status == 400
    assert exchange.calls["login"] == 0


@pytest.mark.asyncio
async def test_failed_reauthentication_propagates(authenticator, exchange):
    client = AuthenticatedClient(authenticator)
    exchange.reject_logins = True

    async def op():
        raise APIError("Forbidden", 403)

    with pytest.raises(AuthenticationError):
        await client.with_retry(op)


def test_rejects_invalid_arguments(authenticator):
    with pytest.raises(ValueError):
        AuthenticatedClient(authenticator, max_retries=-1)
    with pytest.raises(AuthenticationError):
        AuthenticatedClient(authenticator, client="solana")
    assert AuthenticatedClient(authenticator, client="ETHERSPOT").client is ClientType.ETHERSPOT
