import os


def _env(name: str, default):
    value = os.getenv(name)
    if value is None:
        return default
    if isinstance(default, bool):
        return value.lower() in ("1", "true", "yes")
    if isinstance(default, int):
        return int(value)
    return value


class Settings:
    def __init__(self):
        self.app_name = _env("APP_NAME", "Lurnex LMS")
        self.api_version = "1.0.0"
        self.environment = _env("ENVIRONMENT", "development")
        self.secret_key = _env("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = _env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 30)
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = _env("DATABASE_URL", "sqlite:///./lurnex.db")
        self.cors_origins = [
            origin.strip()
            for origin in _env("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
            if origin.strip()
        ]

        self.zoom_account_id = _env("ZOOM_ACCOUNT_ID", "")
        self.zoom_client_id = _env("ZOOM_CLIENT_ID", "")
        self.zoom_client_secret = _env("ZOOM_CLIENT_SECRET", "")
        self.zoom_api_base_url = _env("ZOOM_API_BASE_URL", "https://api.zoom.us/v2")
        self.zoom_oauth_url = _env("ZOOM_OAUTH_URL", "https://zoom.us/oauth/token")
        self.zoom_timeout_seconds = _env("ZOOM_TIMEOUT_SECONDS", 10)

        self.smtp_server = _env("SMTP_SERVER", "")
        self.smtp_port = _env("SMTP_PORT", 587)
        self.smtp_username = _env("SMTP_USERNAME", "")
        self.smtp_password = _env("SMTP_PASSWORD", "")
        self.email_from_name = _env("EMAIL_FROM", "Lurnex LMS")

        self.default_admin_email = _env("DEFAULT_ADMIN_EMAIL", "admin@lurnex.me")
        self.default_admin_password = _env("DEFAULT_ADMIN_PASSWORD", "lurnex123")

        # Scheduling and ledger tunables
        self.edit_window_hours = _env("EDIT_WINDOW_HOURS", 24)
        self.recurrence_max_iterations = _env("RECURRENCE_MAX_ITERATIONS", 500)
        self.credential_history_limit = _env("CREDENTIAL_HISTORY_LIMIT", 5)
        self.temporary_password_length = _env("TEMPORARY_PASSWORD_LENGTH", 10)


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
