"""Unit tests for revforge.core.session: auth cookie attributes and token extraction."""

import unittest

from fastapi import Request, Response

from revforge.core.session import (
    AUTH_COOKIE_MAX_AGE,
    AUTH_COOKIE_NAME,
    clear_auth_cookie,
    get_token_from_request,
    set_auth_cookie,
)


def _request(headers: dict[str, str]) -> Request:
    """Build a bare ASGI request carrying the given headers."""
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": b"",
        "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items()],
    }
    return Request(scope)


class TestSetAuthCookie(unittest.TestCase):
    """The access token cookie is HttpOnly, Lax, root-scoped and lives 24 hours."""

    def test_development_cookie_attributes(self) -> None:
        response = Response()
        set_auth_cookie(response, "tok.en.value", is_production=False)
        header = response.headers["set-cookie"]
        lowered = header.lower()
        self.assertTrue(header.startswith(f"{AUTH_COOKIE_NAME}=tok.en.value"))
        self.assertIn("httponly", lowered)
        self.assertIn("path=/", lowered)
        self.assertIn("samesite=lax", lowered)
        self.assertIn(f"max-age={AUTH_COOKIE_MAX_AGE}", lowered)
        self.assertNotIn("secure", lowered)

    def test_production_cookie_is_secure(self) -> None:
        response = Response()
        set_auth_cookie(response, "tok.en.value", is_production=True)
        self.assertIn("secure", response.headers["set-cookie"].lower())

    def test_max_age_matches_access_token_lifetime(self) -> None:
        self.assertEqual(AUTH_COOKIE_MAX_AGE, 86400)


class TestClearAuthCookie(unittest.TestCase):
    def test_overwrites_with_empty_expired_cookie(self) -> None:
        response = Response()
        clear_auth_cookie(response)
        header = response.headers["set-cookie"]
        self.assertTrue(header.startswith(f"{AUTH_COOKIE_NAME}="))
        self.assertIn(header.split(";")[0], (f"{AUTH_COOKIE_NAME}=", f"{AUTH_COOKIE_NAME}=\"\""))
        self.assertIn("max-age=0", header.lower())
        self.assertIn("path=/", header.lower())


class TestGetTokenFromRequest(unittest.TestCase):
    """Authorization: Bearer wins over the cookie; either alone is enough."""

    def test_bearer_header(self) -> None:
        self.assertEqual(get_token_from_request(_request({"Authorization": "Bearer abc.def"})), "abc.def")

    def test_bearer_scheme_is_case_insensitive(self) -> None:
        self.assertEqual(get_token_from_request(_request({"Authorization": "bearer abc.def"})), "abc.def")

    def test_cookie_fallback(self) -> None:
        request = _request({"Cookie": f"theme=dark; {AUTH_COOKIE_NAME}=from.cookie; other=1"})
        self.assertEqual(get_token_from_request(request), "from.cookie")

    def test_header_preferred_over_cookie(self) -> None:
        request = _request(
            {"Authorization": "Bearer from.header", "Cookie": f"{AUTH_COOKIE_NAME}=from.cookie"}
        )
        self.assertEqual(get_token_from_request(request), "from.header")

    def test_non_bearer_header_falls_back_to_cookie(self) -> None:
        request = _request(
            {"Authorization": "Basic dXNlcjpwYXNz", "Cookie": f"{AUTH_COOKIE_NAME}=from.cookie"}
        )
        self.assertEqual(get_token_from_request(request), "from.cookie")

    def test_nothing_present(self) -> None:
        self.assertIsNone(get_token_from_request(_request({})))
        self.assertIsNone(get_token_from_request(_request({"Authorization": "Bearer "})))
        self.assertIsNone(get_token_from_request(_request({"Cookie": f"{AUTH_COOKIE_NAME}="})))


if __name__ == "__main__":
    unittest.main()
