"""Tests for profile sources and outcome notifiers."""

import json

import httpx
import pytest

from apply_autofill.errors import ProfileUnavailableError
from apply_autofill.services.notifier import LogNotifier, WebhookNotifier
from apply_autofill.services.profile import FileProfileClient, RemoteProfileClient

PROFILE_JSON = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@example.com",
    "skills": ["Python", "SQL"],
}


def remote_client(handler, token="secret-token"):
    return RemoteProfileClient(
        base_url="https://api.example.com",
        token=token,
        transport=httpx.MockTransport(handler),
    )


class TestRemoteProfileClient:
    """Backend profile fetches."""

    @pytest.mark.asyncio
    async def test_fetches_profile_with_bearer_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=PROFILE_JSON)

        client = remote_client(handler)
        profile = await client.get_profile()
        await client.close()

        assert profile.first_name == "Jane"
        assert profile.skills == ["Python", "SQL"]
        assert seen == {"path": "/auth/user", "auth": "Bearer secret-token"}

    @pytest.mark.asyncio
    async def test_unwraps_data_envelope(self):
        client = remote_client(lambda request: httpx.Response(200, json={"success": True, "data": PROFILE_JSON}))

        profile = await client.refresh_profile()

        assert profile.email == "jane@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 404])
    async def test_not_found_or_unauthenticated(self, status):
        client = remote_client(lambda request: httpx.Response(status))

        assert await client.get_profile() is None
        with pytest.raises(ProfileUnavailableError):
            await client.refresh_profile()

    @pytest.mark.asyncio
    async def test_missing_token_means_no_profile(self):
        def handler(request):
            raise AssertionError("no request expected")

        client = remote_client(handler, token="")

        assert await client.get_profile() is None

    @pytest.mark.asyncio
    async def test_server_error_propagates(self):
        client = remote_client(lambda request: httpx.Response(503))

        with pytest.raises(httpx.HTTPStatusError):
            await client.get_profile()

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = remote_client(handler)

        with pytest.raises(httpx.ConnectError):
            await client.get_profile()

    @pytest.mark.asyncio
    async def test_invalid_payload_is_unavailable(self):
        client = remote_client(lambda request: httpx.Response(200, json={"education": "nope"}))

        with pytest.raises(ProfileUnavailableError):
            await client.refresh_profile()


class TestFileProfileClient:
    """Profiles read from disk."""

    @pytest.mark.asyncio
    async def test_reads_profile(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text(json.dumps(PROFILE_JSON), encoding="utf-8")

        profile = await FileProfileClient(path).get_profile()

        assert profile.full_name == "Jane Doe"

    @pytest.mark.asyncio
    async def test_free_text_start_date_keeps_profile(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({**PROFILE_JSON, "availableStartDate": "ASAP"}), encoding="utf-8")

        profile = await FileProfileClient(path).get_profile()

        assert profile.full_name == "Jane Doe"
        assert profile.available_start_date is None

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        client = FileProfileClient(tmp_path / "missing.json")

        assert await client.get_profile() is None
        with pytest.raises(ProfileUnavailableError):
            await client.refresh_profile()

    @pytest.mark.asyncio
    async def test_malformed_file(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text("{not json", encoding="utf-8")

        assert await FileProfileClient(path).get_profile() is None


class TestNotifiers:
    """Fire-and-forget event delivery."""

    @pytest.mark.asyncio
    async def test_webhook_posts_event(self):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(204)

        notifier = WebhookNotifier("https://hooks.example.com/autofill", transport=httpx.MockTransport(handler))
        event = {"event": "autofill-complete", "url": "https://x.com", "filledCount": 3, "success": True}

        await notifier.notify(event)
        await notifier.close()

        assert received == [event]

    @pytest.mark.asyncio
    async def test_webhook_failures_are_ignored(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        notifier = WebhookNotifier("https://hooks.example.com/autofill", transport=httpx.MockTransport(handler))

        await notifier.notify({"event": "autofill-complete"})

    def test_webhook_requires_url(self, monkeypatch):
        monkeypatch.setattr("apply_autofill.services.notifier.settings.notify_webhook_url", None)

        with pytest.raises(ValueError):
            WebhookNotifier()

    @pytest.mark.asyncio
    async def test_log_notifier(self):
        await LogNotifier().notify({"event": "autofill-complete", "success": False})
