import os
from dataclasses import dataclass
from typing import Optional


def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    return lowered in {"1", "true", "yes", "y", "on"}


def _env_int(key: str, default: int) -> int:
    raw = (os.environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    raw = (os.environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class AppConfig:
    """
    应用基础配置（Supabase 连接 + 运行环境）
    """

    env: str  # 'development', 'staging', 'production'
    is_production: bool
    supabase_url: str
    supabase_key: str

    @staticmethod
    def from_env() -> "AppConfig":
        env = (os.environ.get("APP_ENV") or "development").strip().lower()
        supabase_url = (os.environ.get("SUPABASE_URL") or "").strip()
        supabase_key = (os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or "").strip()

        return AppConfig(
            env=env,
            is_production=env == "production",
            supabase_url=supabase_url,
            supabase_key=supabase_key,
        )


# Global Config Instance
app_config = AppConfig.from_env()


@dataclass(frozen=True)
class SentryConfig:
    """
    Sentry 错误上报配置

    中文注释:
    - 未配置 SENTRY_DSN 时整体禁用，本地开发无需任何外部依赖。
    """

    enabled: bool
    dsn: Optional[str]
    environment: str
    traces_sample_rate: float

    @staticmethod
    def from_env() -> "SentryConfig":
        dsn = (os.environ.get("SENTRY_DSN") or "").strip() or None
        environment = (
            os.environ.get("SENTRY_ENVIRONMENT") or os.environ.get("APP_ENV") or "development"
        ).strip()
        return SentryConfig(
            enabled=_env_bool("SENTRY_ENABLED", True) and dsn is not None,
            dsn=dsn,
            environment=environment,
            traces_sample_rate=_env_float("SENTRY_TRACES_SAMPLE_RATE", 0.0),
        )


@dataclass(frozen=True)
class UploadConfig:
    """
    文件上传配置（稿件 / 图片）

    中文注释:
    1) 稿件仅允许 pdf/doc/docx，默认上限 16MB。
    2) 图片（Logo、编委头像）默认上限 4MB。
    3) 上传文件存放在 Supabase Storage 的公开 bucket 中，直接返回 public URL。
    """

    documents_bucket: str
    images_bucket: str
    max_document_bytes: int
    max_image_bytes: int

    @staticmethod
    def from_env() -> "UploadConfig":
        documents_bucket = (os.environ.get("UPLOAD_DOCUMENTS_BUCKET") or "manuscripts").strip()
        images_bucket = (os.environ.get("UPLOAD_IMAGES_BUCKET") or "journal-images").strip()
        max_document_mb = _env_int("UPLOAD_MAX_DOCUMENT_MB", 16)
        max_image_mb = _env_int("UPLOAD_MAX_IMAGE_MB", 4)
        return UploadConfig(
            documents_bucket=documents_bucket,
            images_bucket=images_bucket,
            max_document_bytes=max(1, max_document_mb) * 1024 * 1024,
            max_image_bytes=max(1, max_image_mb) * 1024 * 1024,
        )


@dataclass(frozen=True)
class ScreeningConfig:
    """
    AI 初筛配置（审稿人推荐 / 摘要新颖性）

    中文注释:
    - 未配置 GEMINI_API_KEY 时走本地规则兜底，不会调用外部模型。
    """

    api_key: Optional[str]
    model_name: str
    max_suggestions: int

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def from_env() -> "ScreeningConfig":
        api_key = (
            os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY") or ""
        ).strip() or None
        model_name = (os.environ.get("SCREENING_MODEL_NAME") or "gemini-2.5-flash").strip()
        max_suggestions = _env_int("SCREENING_MAX_SUGGESTIONS", 3)
        return ScreeningConfig(
            api_key=api_key,
            model_name=model_name,
            max_suggestions=min(3, max(2, max_suggestions)),
        )


@dataclass(frozen=True)
class SiteConfig:
    """
    公开站点配置（sitemap / 缓存）
    """

    base_url: str
    public_cache_ttl_sec: float

    @staticmethod
    def from_env() -> "SiteConfig":
        base_url = (os.environ.get("SITE_BASE_URL") or "https://mjstem.org").strip().rstrip("/")
        return SiteConfig(
            base_url=base_url,
            public_cache_ttl_sec=_env_float("PUBLIC_CACHE_TTL_SEC", 30.0),
        )
