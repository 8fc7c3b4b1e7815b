from app.core.config import AppConfig, ScreeningConfig, SentryConfig, SiteConfig, UploadConfig


def test_app_config_production_flag(monkeypatch):
    monkeypatch.setenv("APP_ENV", "Production")
    cfg = AppConfig.from_env()
    assert cfg.env == "production"
    assert cfg.is_production is True

    monkeypatch.delenv("APP_ENV", raising=False)
    assert AppConfig.from_env().is_production is False


def test_sentry_config_requires_dsn(monkeypatch):
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    assert SentryConfig.from_env().enabled is False

    monkeypatch.setenv("SENTRY_DSN", "https://public@example.ingest.sentry.io/1")
    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "0.25")
    cfg = SentryConfig.from_env()
    assert cfg.enabled is True
    assert cfg.traces_sample_rate == 0.25


def test_upload_config_defaults_and_overrides(monkeypatch):
    monkeypatch.delenv("UPLOAD_MAX_DOCUMENT_MB", raising=False)
    monkeypatch.delenv("UPLOAD_DOCUMENTS_BUCKET", raising=False)
    cfg = UploadConfig.from_env()
    assert cfg.documents_bucket == "manuscripts"
    assert cfg.max_document_bytes == 16 * 1024 * 1024

    monkeypatch.setenv("UPLOAD_MAX_DOCUMENT_MB", "not-a-number")
    assert UploadConfig.from_env().max_document_bytes == 16 * 1024 * 1024

    monkeypatch.setenv("UPLOAD_MAX_IMAGE_MB", "2")
    assert UploadConfig.from_env().max_image_bytes == 2 * 1024 * 1024


def test_screening_config_clamps_suggestions(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setenv("SCREENING_MAX_SUGGESTIONS", "10")
    cfg = ScreeningConfig.from_env()
    assert cfg.enabled is False
    assert cfg.max_suggestions == 3

    monkeypatch.setenv("SCREENING_MAX_SUGGESTIONS", "1")
    monkeypatch.setenv("GOOGLE_API_KEY", "k")
    cfg = ScreeningConfig.from_env()
    assert cfg.enabled is True
    assert cfg.max_suggestions == 2


def test_site_config_strips_trailing_slash(monkeypatch):
    monkeypatch.setenv("SITE_BASE_URL", "https://journal.example.org/")
    assert SiteConfig.from_env().base_url == "https://journal.example.org"
