import json
import unittest

import httpx
import respx

from threadbridge.errors import TrackerAPIError
from threadbridge.services.github_client import GitHubClient, GitHubGraphQLClient

API = "https://api.github.com"
GRAPHQL = "https://api.github.com/graphql"


class GitHubClientTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.http = httpx.AsyncClient(base_url=API)
        self.client = GitHubClient(self.http, "ghs_tok", "acme", "widgets")

    async def asyncTearDown(self):
        await self.http.aclose()

    @respx.mock
    async def test_create_issue_sends_payload_and_token(self):
        route = respx.post(f"{API}/repos/acme/widgets/issues").mock(
            return_value=httpx.Response(201, json={"number": 7, "node_id": "I_7"})
        )

        issue = await self.client.create_issue("Crash", "body", ["bug", "triage"])

        self.assertEqual(issue["number"], 7)
        request = route.calls.last.request
        self.assertEqual(request.headers["Authorization"], "token ghs_tok")
        self.assertEqual(json.loads(request.content), {"title": "Crash", "body": "body", "labels": ["bug", "triage"]})

    @respx.mock
    async def test_list_issues_follows_pages_and_drops_pull_requests(self):
        page2 = f"{API}/repositories/1/issues?state=all&per_page=100&page=2"
        respx.get(f"{API}/repos/acme/widgets/issues").mock(
            return_value=httpx.Response(
                200,
                json=[{"number": 1}, {"number": 2, "pull_request": {}}],
                headers={"Link": f'<{page2}>; rel="next"'},
            )
        )
        respx.get(f"{API}/repositories/1/issues").mock(
            return_value=httpx.Response(200, json=[{"number": 3}])
        )

        issues = await self.client.list_issues()

        self.assertEqual([i["number"] for i in issues], [1, 3])

    @respx.mock
    async def test_list_issues_requests_all_states(self):
        route = respx.get(f"{API}/repos/acme/widgets/issues").mock(
            return_value=httpx.Response(200, json=[])
        )

        await self.client.list_issues()

        params = route.calls.last.request.url.params
        self.assertEqual(params["state"], "all")
        self.assertEqual(params["per_page"], "100")

    @respx.mock
    async def test_401_maps_to_auth_failure(self):
        respx.post(f"{API}/repos/acme/widgets/issues/7/comments").mock(
            return_value=httpx.Response(401, json={"message": "Bad credentials"})
        )

        with self.assertRaises(TrackerAPIError) as ctx:
            await self.client.create_comment(7, "hi")

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertTrue(ctx.exception.is_auth_failure)

    @respx.mock
    async def test_validation_error_is_not_auth_failure(self):
        respx.patch(f"{API}/repos/acme/widgets/issues/7").mock(
            return_value=httpx.Response(422, json={"message": "Validation Failed"})
        )

        with self.assertRaises(TrackerAPIError) as ctx:
            await self.client.update_issue(7, state="closed")

        self.assertEqual(str(ctx.exception), "422: Validation Failed")
        self.assertFalse(ctx.exception.is_auth_failure)

    @respx.mock
    async def test_lock_and_unlock_use_put_and_delete(self):
        lock = respx.put(f"{API}/repos/acme/widgets/issues/7/lock").mock(return_value=httpx.Response(204))
        unlock = respx.delete(f"{API}/repos/acme/widgets/issues/7/lock").mock(return_value=httpx.Response(204))

        await self.client.lock_issue(7)
        await self.client.unlock_issue(7)

        self.assertTrue(lock.called)
        self.assertTrue(unlock.called)

    @respx.mock
    async def test_delete_comment(self):
        route = respx.delete(f"{API}/repos/acme/widgets/issues/comments/555").mock(
            return_value=httpx.Response(204)
        )

        await self.client.delete_comment(555)

        self.assertTrue(route.called)

    @respx.mock
    async def test_created_issue_without_number_is_a_tracker_error(self):
        respx.post(f"{API}/repos/acme/widgets/issues").mock(
            return_value=httpx.Response(201, json={"node_id": "I_7"})
        )

        with self.assertRaises(TrackerAPIError) as ctx:
            await self.client.create_issue("Crash", "body", [])

        self.assertIn("missing number", str(ctx.exception))
        self.assertFalse(ctx.exception.is_auth_failure)

    @respx.mock
    async def test_non_json_comment_reply_is_a_tracker_error(self):
        respx.post(f"{API}/repos/acme/widgets/issues/7/comments").mock(
            return_value=httpx.Response(201, text="<html>proxy</html>")
        )

        with self.assertRaises(TrackerAPIError):
            await self.client.create_comment(7, "hi")

    @respx.mock
    async def test_non_list_page_is_a_tracker_error(self):
        respx.get(f"{API}/repos/acme/widgets/issues/comments").mock(
            return_value=httpx.Response(200, json={"message": "unexpected"})
        )

        with self.assertRaises(TrackerAPIError):
            await self.client.list_comments()

    @respx.mock
    async def test_transport_error_is_wrapped(self):
        respx.get(f"{API}/installation/repositories").mock(side_effect=httpx.ConnectError("refused"))

        with self.assertRaises(TrackerAPIError) as ctx:
            await self.client.probe()

        self.assertIsNone(ctx.exception.status_code)


class GitHubGraphQLClientTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.http = httpx.AsyncClient()
        self.client = GitHubGraphQLClient(self.http, "ghs_tok", GRAPHQL)

    async def asyncTearDown(self):
        await self.http.aclose()

    @respx.mock
    async def test_delete_issue_passes_node_id_as_variable(self):
        route = respx.post(GRAPHQL).mock(
            return_value=httpx.Response(200, json={"data": {"deleteIssue": {"clientMutationId": None}}})
        )

        await self.client.delete_issue('I_"quoted"')

        payload = json.loads(route.calls.last.request.content)
        self.assertEqual(payload["variables"], {"issueId": 'I_"quoted"'})
        self.assertNotIn("quoted", payload["query"])
        self.assertEqual(route.calls.last.request.headers["Authorization"], "bearer ghs_tok")

    @respx.mock
    async def test_errors_in_body_raise(self):
        respx.post(GRAPHQL).mock(
            return_value=httpx.Response(200, json={"errors": [{"message": "Could not resolve to a node"}]})
        )

        with self.assertRaises(TrackerAPIError) as ctx:
            await self.client.delete_issue("I_x")

        self.assertIn("Could not resolve to a node", str(ctx.exception))
        self.assertFalse(ctx.exception.is_auth_failure)

    @respx.mock
    async def test_bad_credentials_is_auth_failure(self):
        respx.post(GRAPHQL).mock(return_value=httpx.Response(401, json={"message": "Bad credentials"}))

        with self.assertRaises(TrackerAPIError) as ctx:
            await self.client.execute("{ viewer { login } }")

        self.assertTrue(ctx.exception.is_auth_failure)


if __name__ == "__main__":
    unittest.main()
