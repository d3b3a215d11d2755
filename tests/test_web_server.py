"""Tests for the Slack webhook HTTP server."""

import json
import time
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import urlencode

import pytest
from aiohttp import test_utils

from inquiry_bot.errors import EmptyMessageError
from inquiry_bot.inquiry import ReactionIntake
from inquiry_bot.slack import SignatureVerifier
from inquiry_bot.web_server import WebServer

REACTION_EVENT = {
    "type": "event_callback",
    "team_id": "T123",
    "event_id": "Ev123",
    "event": {
        "type": "reaction_added",
        "user": "U_REACTOR",
        "reaction": "eyes",
        "item": {"type": "message", "channel": "C0123456", "ts": "1700000000.000100"},
        "event_ts": "1700000050.000300",
    },
}


@pytest.fixture
def verifier(settings):
    return SignatureVerifier(settings.slack_signing_secret)


@pytest.fixture
def server(settings, verifier, intake, orchestrator):
    return WebServer(settings, verifier, intake, orchestrator)


@pytest.fixture
async def client(server):
    async with test_utils.TestClient(test_utils.TestServer(server.app)) as test_client:
        yield test_client


def signed(verifier, body, content_type="application/json"):
    timestamp = str(int(time.time()))
    return {
        "Content-Type": content_type,
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": verifier.compute_signature(timestamp, body),
    }


async def post_event(client, verifier, payload):
    body = json.dumps(payload).encode("utf-8")
    return await client.post("/api/v1/slack/events", data=body, headers=signed(verifier, body))


async def post_command(client, verifier, command):
    body = urlencode({"command": command, "user_id": "U1", "channel_id": "C0123456"}).encode()
    headers = signed(verifier, body, "application/x-www-form-urlencoded")
    return await client.post("/api/v1/slack/slash", data=body, headers=headers)


class TestHealth:
    """Test the health endpoint."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test that health needs no signature."""
        response = await client.get("/health")

        assert response.status == 200
        assert await response.json() == {"status": "healthy", "service": "inquiry-bot"}


class TestSignatureGate:
    """Test that unsigned requests are rejected."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path", ["/api/v1/slack/events", "/api/v1/slack/slash", "/api/v1/slack/interactive"]
    )
    async def test_unsigned_request(self, client, path):
        """Test that every Slack endpoint requires a valid signature."""
        response = await client.post(path, data=b"{}")

        assert response.status == 401
        assert await response.json() == {"error": "invalid signature"}

    @pytest.mark.asyncio
    async def test_tampered_body(self, client, server, verifier, slack):
        """Test that a body changed after signing is rejected without side effects."""
        body = json.dumps(REACTION_EVENT).encode("utf-8")
        headers = signed(verifier, body)

        response = await client.post(
            "/api/v1/slack/events", data=body.replace(b"eyes", b"eyez"), headers=headers
        )
        await server.drain()

        assert response.status == 401
        slack.fetch_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_request(self, client, verifier):
        """Test that an old but correctly signed request is rejected."""
        body = b'{"type":"url_verification","challenge":"abc"}'
        timestamp = str(int(time.time()) - 600)
        headers = {
            "Content-Type": "application/json",
            "X-Slack-Request-Timestamp": timestamp,
            "X-Slack-Signature": verifier.compute_signature(timestamp, body),
        }

        response = await client.post("/api/v1/slack/events", data=body, headers=headers)

        assert response.status == 401


class TestEvents:
    """Test the Events API endpoint."""

    @pytest.mark.asyncio
    async def test_url_verification(self, client, verifier):
        """Test that the challenge is echoed back."""
        response = await post_event(
            client, verifier, {"type": "url_verification", "challenge": "abc123", "token": "t"}
        )

        assert response.status == 200
        assert await response.json() == {"challenge": "abc123"}

    @pytest.mark.asyncio
    async def test_invalid_json(self, client, verifier):
        """Test that a signed but malformed body is a bad request."""
        body = b"not json"
        response = await client.post(
            "/api/v1/slack/events", data=body, headers=signed(verifier, body)
        )

        assert response.status == 400
        assert await response.json() == {"error": "invalid payload"}

    @pytest.mark.asyncio
    async def test_reaction_processed_in_background(
        self, client, server, verifier, repository, slack
    ):
        """Test that a reaction is acknowledged and then processed."""
        response = await post_event(client, verifier, REACTION_EVENT)

        assert response.status == 200
        assert await response.json() == {"status": "ok"}

        await server.drain()

        inquiry = await repository.get_inquiry_by_message_id("1700000000.000100")
        assert inquiry.status == "completed"
        slack.post_thread_reply.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reaction_on_file_ignored(self, client, server, verifier, slack):
        """Test that reactions on non-message items are ignored."""
        payload = json.loads(json.dumps(REACTION_EVENT))
        payload["event"]["item"]["type"] = "file"

        response = await post_event(client, verifier, payload)
        await server.drain()

        assert response.status == 200
        slack.fetch_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_intake_errors_are_contained(self, settings, verifier, orchestrator):
        """Test that a failing reaction is logged and still acknowledged."""
        intake = MagicMock(spec=ReactionIntake)
        intake.on_reaction = AsyncMock(side_effect=EmptyMessageError("empty"))
        server = WebServer(settings, verifier, intake, orchestrator)

        async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
            response = await post_event(client, verifier, REACTION_EVENT)
            await server.drain()

        assert response.status == 200
        intake.on_reaction.assert_awaited_once_with(
            message_id="1700000000.000100",
            channel_id="C0123456",
            user_id="U_REACTOR",
            reaction="eyes",
            event_type="added",
            event_timestamp="1700000050.000300",
        )

    @pytest.mark.asyncio
    async def test_unsupported_envelope(self, client, verifier):
        """Test that other envelope types are acknowledged."""
        response = await post_event(client, verifier, {"type": "app_rate_limited"})

        assert response.status == 200


class TestSlashCommands:
    """Test slash command handling."""

    @pytest.mark.asyncio
    async def test_help(self, client, verifier):
        """Test the help command."""
        response = await post_command(client, verifier, "/inquiry-help")

        data = await response.json()
        assert data["response_type"] == "ephemeral"
        assert "*Inquiry Bot Help*" in data["text"]
        assert ":eyes:" in data["text"]

    @pytest.mark.asyncio
    async def test_status_without_inquiries(self, client, verifier):
        """Test the status command on a fresh install."""
        response = await post_command(client, verifier, "/inquiry-status")

        data = await response.json()
        assert "✅ Bot is running and operational" in data["text"]
        assert "No recent inquiries processed." in data["text"]

    @pytest.mark.asyncio
    async def test_status_lists_recent_inquiries(self, client, verifier, intake):
        """Test that recent inquiries are listed with their status."""
        await intake.on_reaction(
            "1700000000.000100", "C0123456", "U1", "eyes", "added", "1700000050.000300"
        )

        response = await post_command(client, verifier, "/inquiry-status")

        text = (await response.json())["text"]
        assert "*Recent Activity* (last 1 inquiries):" in text
        assert "✅" in text
        assert "completed" in text
        assert "How to deploy service to staging?" in text

    @pytest.mark.asyncio
    async def test_status_error(self, server):
        """Test the status text when the store is unavailable."""
        server.orchestrator = MagicMock()
        server.orchestrator.list_recent_inquiries = AsyncMock(side_effect=RuntimeError("db down"))

        assert await server.status_text() == "❌ Error retrieving status information"

    @pytest.mark.asyncio
    async def test_unknown_command(self, client, verifier):
        """Test an unrecognized command."""
        response = await post_command(client, verifier, "/inquiry-unknown")

        data = await response.json()
        assert data["text"] == "Unknown command. Use `/inquiry-help` for help."

    @pytest.mark.asyncio
    async def test_undecodable_body(self, client, verifier):
        """Test that a signed body that is not UTF-8 is a bad request."""
        body = b"command=/inquiry-help&text=\xff\xfe"
        headers = signed(verifier, body, "application/x-www-form-urlencoded")
        response = await client.post("/api/v1/slack/slash", data=body, headers=headers)

        assert response.status == 400
        assert await response.json() == {"error": "invalid payload"}


class TestInteractive:
    """Test the interactivity endpoint."""

    @pytest.mark.asyncio
    async def test_acknowledged(self, client, verifier):
        """Test that signed interactive callbacks are acknowledged."""
        body = urlencode({"payload": json.dumps({"type": "block_actions"})}).encode()
        headers = signed(verifier, body, "application/x-www-form-urlencoded")

        response = await client.post("/api/v1/slack/interactive", data=body, headers=headers)

        assert response.status == 200
