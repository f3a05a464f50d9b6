"""Tests for the browser security headers added to every response."""

import unittest

from revforge.middleware.security_headers import SECURITY_HEADERS
from tests.support import ApiTestCase


class TestSecurityHeaders(ApiTestCase):
    def assertHasSecurityHeaders(self, response, skip: frozenset = frozenset()) -> None:
        for name, value in SECURITY_HEADERS.items():
            if name in skip:
                continue
            with self.subTest(header=name):
                self.assertEqual(response.headers.get(name), value)

    def test_api_response(self) -> None:
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertHasSecurityHeaders(response)
        self.assertEqual(response.headers["x-frame-options"], "DENY")
        self.assertEqual(response.headers["x-content-type-options"], "nosniff")
        self.assertIn("frame-ancestors 'none'", response.headers["content-security-policy"])
        self.assertTrue(
            response.headers["strict-transport-security"].startswith("max-age=63072000")
        )

    def test_error_responses(self) -> None:
        unauthorized = self.client.get("/api/auth/me")
        self.assertEqual(unauthorized.status_code, 401)
        self.assertHasSecurityHeaders(unauthorized)
        bad_body = self.client.post("/api/auth/login", content="{", headers={"Content-Type": "application/json"})
        self.assertEqual(bad_body.status_code, 400)
        self.assertHasSecurityHeaders(bad_body)

    def test_route_guard_redirect(self) -> None:
        response = self.client.get("/admin/leads", follow_redirects=False)
        self.assertEqual(response.status_code, 307)
        self.assertHasSecurityHeaders(response)

    def test_docs_skip_policies_that_block_cdn_assets(self) -> None:
        response = self.client.get("/docs")
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("content-security-policy", response.headers)
        self.assertNotIn("cross-origin-embedder-policy", response.headers)
        self.assertHasSecurityHeaders(
            response,
            skip=frozenset({"Content-Security-Policy", "Cross-Origin-Embedder-Policy"}),
        )


if __name__ == "__main__":
    unittest.main()
