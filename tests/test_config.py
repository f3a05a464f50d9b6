"""Unit tests for revforge.core.config: settings validation."""

import unittest

from pydantic import ValidationError

from tests.support import TEST_JWT_SECRET, make_settings


class TestSettingsDefaults(unittest.TestCase):
    def test_auth_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.JWT_ALGORITHM, "HS256")
        self.assertEqual(settings.JWT_ISSUER, "revenueforge")
        self.assertEqual(settings.JWT_AUDIENCE, "revenueforge-api")
        self.assertEqual(settings.ACCESS_TOKEN_EXPIRE_MINUTES, 1440)
        self.assertEqual(settings.REFRESH_TOKEN_EXPIRE_DAYS, 7)
        self.assertEqual(settings.RESET_TOKEN_EXPIRE_MINUTES, 60)
        self.assertEqual(settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS, 10)
        self.assertEqual(settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES, 15)
        self.assertEqual(settings.LOCKOUT_THRESHOLD, 10)
        self.assertEqual(settings.LOCKOUT_DURATION_MINUTES, 30)
        self.assertFalse(settings.AUTH_STRICT_TOKEN_TYPE)


class TestProductionDetection(unittest.TestCase):
    """Production means a real signing secret is configured."""

    def test_secret_set_is_production(self) -> None:
        settings = make_settings()
        self.assertTrue(settings.is_production)
        self.assertEqual(settings.JWT_SECRET.get_secret_value(), TEST_JWT_SECRET)

    def test_missing_or_blank_secret_is_not_production(self) -> None:
        self.assertFalse(make_settings(JWT_SECRET=None).is_production)
        blank = make_settings(JWT_SECRET="   ")
        self.assertIsNone(blank.JWT_SECRET)
        self.assertFalse(blank.is_production)


class TestSettingsValidation(unittest.TestCase):
    def test_prod_requires_secret(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(APP_ENV="prod", JWT_SECRET=None)

    def test_prod_rejects_insecure_flag(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(APP_ENV="prod", ALLOW_INSECURE_JWT_SECRET=True)

    def test_prod_with_secret_is_valid(self) -> None:
        self.assertEqual(make_settings(APP_ENV="prod").APP_ENV, "prod")

    def test_database_url_scheme(self) -> None:
        self.assertEqual(
            make_settings(DATABASE_URL=" sqlite:///./revforge.db ").DATABASE_URL,
            "sqlite:///./revforge.db",
        )
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="mysql://root@localhost/revforge")

    def test_only_hmac_algorithms(self) -> None:
        self.assertEqual(make_settings(JWT_ALGORITHM="HS512").JWT_ALGORITHM, "HS512")
        with self.assertRaises(ValidationError):
            make_settings(JWT_ALGORITHM="RS256")

    def test_log_level_normalised(self) -> None:
        self.assertEqual(make_settings(LOG_LEVEL="debug").LOG_LEVEL, "DEBUG")
        with self.assertRaises(ValidationError):
            make_settings(LOG_LEVEL="chatty")

    def test_threshold_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(LOCKOUT_THRESHOLD=0)
        with self.assertRaises(ValidationError):
            make_settings(LOGIN_RATE_LIMIT_WINDOW_MINUTES=0)


if __name__ == "__main__":
    unittest.main()
