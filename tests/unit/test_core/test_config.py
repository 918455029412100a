"""Unit tests for settings."""
import pytest

from rollcall.core.config import DEFAULT_PARTICIPANT_KEY_SECRET, Settings

PRODUCTION = dict(
    ENVIRONMENT="production",
    SECRET_KEY="prod-secret",
    ADMIN_PASSWORD="$argon2id$v=19$m=65536,t=2,p=1$abc$def",
    PARTICIPANT_KEY_SECRET="prod-key-secret",
    CORS_ORIGINS="https://checkin.example.org",
    SMTP_HOST="smtp.example.org",
    DATABASE_URL="postgresql://u:p@db/rollcall",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("DATABASE_URL", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_HOST", "POSTGRES_DB", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)


@pytest.mark.unit
class TestDatabaseUrl:
    def test_heroku_scheme_rewritten(self):
        s = Settings(DATABASE_URL="postgres://u:p@host/db")
        assert s.get_database_url() == "postgresql://u:p@host/db"

    def test_built_from_parts(self):
        s = Settings(
            POSTGRES_USER="u",
            POSTGRES_PASSWORD="p",
            POSTGRES_HOST="db",
            POSTGRES_DB="rollcall",
        )
        assert s.get_database_url() == "postgresql://u:p@db:5432/rollcall"

    def test_sqlite_fallback_in_development(self):
        s = Settings(ENVIRONMENT="development")
        assert s.get_database_url().startswith("sqlite:///")

    def test_missing_in_production(self):
        s = Settings(ENVIRONMENT="production")
        with pytest.raises(ValueError):
            s.get_database_url()


@pytest.mark.unit
class TestProductionValidation:
    def test_valid_production_config(self):
        Settings(**PRODUCTION).validate_production_config()

    def test_default_key_secret_rejected(self):
        s = Settings(**{**PRODUCTION, "PARTICIPANT_KEY_SECRET": DEFAULT_PARTICIPANT_KEY_SECRET})
        with pytest.raises(ValueError, match="PARTICIPANT_KEY_SECRET"):
            s.validate_production_config()

    def test_wildcard_cors_rejected(self):
        s = Settings(**{**PRODUCTION, "CORS_ORIGINS": "*"})
        with pytest.raises(ValueError, match="CORS_ORIGINS"):
            s.validate_production_config()

    def test_development_skips_checks(self):
        Settings(ENVIRONMENT="development").validate_production_config()


@pytest.mark.unit
def test_cors_origins_parsed_from_string():
    s = Settings(CORS_ORIGINS="https://a.example, https://b.example")
    assert s.CORS_ORIGINS == ["https://a.example", "https://b.example"]
