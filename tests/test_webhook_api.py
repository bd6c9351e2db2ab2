import json
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from threadbridge.api import webhooks
from threadbridge.security import SIGNATURE_HEADER, WebhookSignatureVerifier, sign_payload


def _app(dispatch=None):
    app = FastAPI()
    app.include_router(webhooks.router)
    app.state.runtime = SimpleNamespace(webhooks=SimpleNamespace(dispatch=dispatch or AsyncMock()))
    # Tests must not depend on a secret in the developer's .env.
    app.dependency_overrides[webhooks.verify_webhook_signature] = WebhookSignatureVerifier(None)
    return app


OPENED = {
    "action": "opened",
    "issue": {"node_id": "I1", "number": 7, "title": "Crash", "body": "x", "labels": [{"name": "bug"}]},
    "repository": {"full_name": "acme/widgets"},
}


class GitHubWebhookEndpointTests(unittest.TestCase):
    def test_get_reports_endpoint_is_alive(self):
        client = TestClient(_app())

        response = client.get("/api/webhooks/github")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"msg": "github webhooks work"})

    def test_ping_is_acknowledged_without_dispatch(self):
        dispatch = AsyncMock()
        client = TestClient(_app(dispatch))

        response = client.post("/api/webhooks/github", json={"zen": "Keep it simple"}, headers={"X-GitHub-Event": "ping"})

        self.assertEqual(response.json(), {"msg": "pong"})
        dispatch.assert_not_awaited()

    def test_event_is_dispatched_in_background(self):
        dispatch = AsyncMock()
        client = TestClient(_app(dispatch))

        response = client.post("/api/webhooks/github", json=OPENED, headers={"X-GitHub-Event": "issues"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"msg": "ok"})
        dispatch.assert_awaited_once()
        event = dispatch.await_args.args[0]
        self.assertEqual(event.action, "opened")
        self.assertEqual(event.issue.number, 7)
        self.assertEqual([label.name for label in event.issue.labels], ["bug"])

    def test_invalid_json_is_rejected(self):
        client = TestClient(_app())

        response = client.post(
            "/api/webhooks/github", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        self.assertEqual(response.status_code, 400)

    def test_payload_without_action_is_rejected(self):
        client = TestClient(_app())

        response = client.post("/api/webhooks/github", json={"issue": {}})

        self.assertEqual(response.status_code, 422)

    def test_service_not_ready(self):
        app = _app()
        app.state.runtime = None
        client = TestClient(app)

        response = client.post("/api/webhooks/github", json=OPENED)

        self.assertEqual(response.status_code, 503)


class SignedWebhookTests(unittest.TestCase):
    def setUp(self):
        self.dispatch = AsyncMock()
        app = _app(self.dispatch)
        app.dependency_overrides[webhooks.verify_webhook_signature] = WebhookSignatureVerifier("s3cret")
        self.client = TestClient(app)

    def test_unsigned_delivery_is_rejected(self):
        response = self.client.post("/api/webhooks/github", json=OPENED)

        self.assertEqual(response.status_code, 401)
        self.dispatch.assert_not_awaited()

    def test_signed_delivery_is_accepted(self):
        body = json.dumps(OPENED).encode("utf-8")

        response = self.client.post(
            "/api/webhooks/github",
            content=body,
            headers={"Content-Type": "application/json", SIGNATURE_HEADER: sign_payload("s3cret", body)},
        )

        self.assertEqual(response.status_code, 200)
        self.dispatch.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
