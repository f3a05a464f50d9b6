"""Tests for the edge route guard: path classification, redirects and the HTTP middleware."""

import unittest

import jwt
from fastapi import FastAPI
from fastapi.testclient import TestClient

from revforge.core.security import TokenClaims, create_access_token
from revforge.core.session import AUTH_COOKIE_NAME
from revforge.middleware.route_guard import (
    RouteKind,
    classify_path,
    evaluate_route,
    register_route_guard,
)
from tests.support import ApiTestCase, make_settings

SETTINGS = make_settings()


def _token(role: str) -> str:
    return create_access_token(TokenClaims("user_1", f"{role}@example.com", role), SETTINGS)


class TestClassifyPath(unittest.TestCase):
    def test_excluded(self) -> None:
        for path in ("/api", "/api/auth/me", "/_next/static/chunk.js", "/_next/image", "/static/a.css", "/public/logo.svg", "/favicon.ico"):
            with self.subTest(path=path):
                self.assertEqual(classify_path(path), RouteKind.EXCLUDED)

    def test_public_wins_over_protected_prefix(self) -> None:
        for path in ("/", "/login", "/admin/login", "/dealer/login", "/register", "/catalog/widgets", "/rfq"):
            with self.subTest(path=path):
                self.assertEqual(classify_path(path), RouteKind.PUBLIC)

    def test_protected(self) -> None:
        self.assertEqual(classify_path("/dealer"), RouteKind.DEALER)
        self.assertEqual(classify_path("/dealer/quotes/42"), RouteKind.DEALER)
        for path in ("/admin", "/admin/leads", "/leads", "/products/new", "/users", "/theme"):
            with self.subTest(path=path):
                self.assertEqual(classify_path(path), RouteKind.ADMIN)

    def test_prefix_match_is_per_segment(self) -> None:
        self.assertEqual(classify_path("/administrator"), RouteKind.OTHER)
        self.assertEqual(classify_path("/dealership"), RouteKind.OTHER)
        self.assertEqual(classify_path("/about"), RouteKind.OTHER)


class TestEvaluateRoute(unittest.TestCase):
    def test_no_session_on_admin_route_redirects_to_admin_login(self) -> None:
        decision = evaluate_route("/admin/leads", None)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.redirect_to, "/admin/login?redirect=%2Fadmin%2Fleads")

    def test_no_session_on_dealer_route_redirects_to_dealer_login(self) -> None:
        decision = evaluate_route("/dealer/quotes", None)
        self.assertEqual(decision.redirect_to, "/dealer/login?redirect=%2Fdealer%2Fquotes")

    def test_redirect_keeps_query(self) -> None:
        decision = evaluate_route("/products", None, "page=2")
        self.assertEqual(decision.redirect_to, "/admin/login?redirect=%2Fproducts%3Fpage%3D2")

    def test_undecodable_cookie_counts_as_no_session(self) -> None:
        decision = evaluate_route("/admin", "not-a-jwt")
        self.assertEqual(decision.redirect_to, "/admin/login?redirect=%2Fadmin")

    def test_dealer_on_admin_route_goes_home(self) -> None:
        self.assertEqual(evaluate_route("/admin/leads", _token("dealer")).redirect_to, "/dealer")

    def test_admin_and_viewer_pass_admin_routes(self) -> None:
        self.assertTrue(evaluate_route("/admin/leads", _token("admin")).allowed)
        self.assertTrue(evaluate_route("/admin/leads", _token("viewer")).allowed)

    def test_dealer_routes(self) -> None:
        self.assertTrue(evaluate_route("/dealer", _token("dealer")).allowed)
        self.assertTrue(evaluate_route("/dealer", _token("admin")).allowed)
        self.assertEqual(
            evaluate_route("/dealer/rfqs", _token("viewer")).redirect_to,
            "/dealer/login?redirect=%2Fdealer%2Frfqs",
        )

    def test_signature_is_not_checked(self) -> None:
        forged = jwt.encode({"role": "admin"}, "not-the-server-secret-0123456789abcdef", algorithm="HS256")
        self.assertTrue(evaluate_route("/admin", forged).allowed)

    def test_public_and_excluded_ignore_cookie(self) -> None:
        self.assertTrue(evaluate_route("/admin/login", None).allowed)
        self.assertTrue(evaluate_route("/api/auth/me", None).allowed)


class TestRouteGuardMiddleware(ApiTestCase):
    def test_redirects_anonymous_page_request(self) -> None:
        response = self.client.get("/admin/leads", follow_redirects=False)
        self.assertEqual(response.status_code, 307)
        self.assertEqual(response.headers["location"], "/admin/login?redirect=%2Fadmin%2Fleads")

    def test_dealer_cookie_redirected_home(self) -> None:
        self.client.cookies.set(AUTH_COOKIE_NAME, _token("dealer"))
        response = self.client.get("/analytics", follow_redirects=False)
        self.assertEqual(response.status_code, 307)
        self.assertEqual(response.headers["location"], "/dealer")

    def test_admin_cookie_passes_through(self) -> None:
        self.client.cookies.set(AUTH_COOKIE_NAME, _token("admin"))
        response = self.client.get("/admin/leads", follow_redirects=False)
        # No page is served here, so the request falls through to routing
        self.assertEqual(response.status_code, 404)

    def test_api_routes_are_not_redirected(self) -> None:
        response = self.client.get("/api/auth/me", follow_redirects=False)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Unauthorized"})


class TestConfiguredApiPrefix(unittest.TestCase):
    """The excluded API namespace follows the configured prefix."""

    def test_custom_prefix_is_excluded(self) -> None:
        for path in ("/backend", "/backend/auth/me", "/backend/users"):
            with self.subTest(path=path):
                self.assertEqual(classify_path(path, api_prefix="/backend"), RouteKind.EXCLUDED)

    def test_default_prefix_no_longer_special(self) -> None:
        self.assertEqual(classify_path("/api/auth/me", api_prefix="/backend"), RouteKind.OTHER)

    def test_trailing_slash_and_segment_boundary(self) -> None:
        self.assertEqual(classify_path("/backend/x", api_prefix="/backend/"), RouteKind.EXCLUDED)
        self.assertEqual(classify_path("/backendish", api_prefix="/backend"), RouteKind.OTHER)

    def test_evaluate_route_passes_prefix_through(self) -> None:
        self.assertTrue(evaluate_route("/v2/users", None, api_prefix="/v2").allowed)
        self.assertFalse(evaluate_route("/users", None, api_prefix="/v2").allowed)

    def test_middleware_uses_prefix(self) -> None:
        app = FastAPI()
        register_route_guard(app, "/backend")

        @app.get("/backend/users")
        def list_users() -> dict:
            return {"ok": True}

        with TestClient(app) as client:
            self.assertEqual(client.get("/backend/users").status_code, 200)
            redirected = client.get("/users", follow_redirects=False)
        self.assertEqual(redirected.status_code, 307)
        self.assertEqual(redirected.headers["location"], "/admin/login?redirect=%2Fusers")


if __name__ == "__main__":
    unittest.main()
