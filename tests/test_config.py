"""Tests for hearth.core.config: Settings validation and derived defaults."""

import unittest

from pydantic import ValidationError

from hearth.core.config import MAX_TOKEN_MINUTES, Settings


def _settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite://", "JWT_SECRET": "test-secret"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestDatabaseUrl(unittest.TestCase):
    def test_accepts_postgres_and_sqlite(self) -> None:
        for url in (
            "postgresql://u:p@localhost/db",
            "postgresql+psycopg2://u:p@localhost/db",
            "sqlite://",
            "sqlite:///./hearth.db",
        ):
            self.assertEqual(_settings(DATABASE_URL=url).DATABASE_URL, url)

    def test_postgres_alias_normalized(self) -> None:
        self.assertEqual(
            _settings(DATABASE_URL="postgres://u:p@localhost/db").DATABASE_URL,
            "postgresql://u:p@localhost/db",
        )

    def test_strips_whitespace(self) -> None:
        self.assertEqual(_settings(DATABASE_URL="  sqlite://  ").DATABASE_URL, "sqlite://")

    def test_rejects_other_schemes(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mysql://u:p@localhost/db")

    def test_rejects_empty(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="   ")


class TestTokenSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        s = _settings()
        self.assertEqual(s.JWT_ALGORITHM, "HS256")
        self.assertEqual(s.JWT_EXPIRE_MINUTES, 60 * 24)
        self.assertEqual(s.JWT_REMEMBER_ME_MINUTES, 60 * 24 * 30)

    def test_blank_secret_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_SECRET="   ")

    def test_token_minutes_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_EXPIRE_MINUTES=0)
        with self.assertRaises(ValidationError):
            _settings(JWT_REMEMBER_ME_MINUTES=MAX_TOKEN_MINUTES + 1)
        self.assertEqual(
            _settings(JWT_REMEMBER_ME_MINUTES=MAX_TOKEN_MINUTES).JWT_REMEMBER_ME_MINUTES,
            MAX_TOKEN_MINUTES,
        )


class TestMiscSettings(unittest.TestCase):
    def test_log_level_normalized(self) -> None:
        self.assertEqual(_settings(LOG_LEVEL="debug").LOG_LEVEL, "DEBUG")

    def test_log_level_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(LOG_LEVEL="chatty")

    def test_cookie_secure_follows_env(self) -> None:
        self.assertFalse(_settings(APP_ENV="dev").SESSION_COOKIE_SECURE)
        self.assertTrue(_settings(APP_ENV="prod").SESSION_COOKIE_SECURE)

    def test_cookie_secure_explicit_wins(self) -> None:
        self.assertTrue(_settings(APP_ENV="dev", SESSION_COOKIE_SECURE=True).SESSION_COOKIE_SECURE)

    def test_upload_limit_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(MAX_UPLOAD_BYTES=0)
        self.assertEqual(_settings(MAX_UPLOAD_BYTES=1024).MAX_UPLOAD_BYTES, 1024)


if __name__ == "__main__":
    unittest.main()
