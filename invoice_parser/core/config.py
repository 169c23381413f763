from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("invoice-parser", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")

    # Azure Document Intelligence
    az_di_endpoint: str | None = Field(default=None, alias="AZ_DI_ENDPOINT")
    az_di_api_key: str | None = Field(default=None, alias="AZ_DI_API_KEY")

    # Google Gemini
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_base_url: str = Field("https://generativelanguage.googleapis.com", alias="GEMINI_BASE_URL")

    # OpenAI
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o", alias="OPENAI_MODEL")
    openai_base_url: str = Field("https://api.openai.com", alias="OPENAI_BASE_URL")

    # Route + weather
    google_maps_api_key: str | None = Field(default=None, alias="GOOGLE_MAPS_API_KEY")
    google_maps_base_url: str = Field("https://maps.googleapis.com", alias="GOOGLE_MAPS_BASE_URL")
    openweather_api_key: str | None = Field(default=None, alias="OPENWEATHER_API_KEY")
    openweather_base_url: str = Field("https://api.openweathermap.org", alias="OPENWEATHER_BASE_URL")
    route_sample_count: int = Field(10, alias="ROUTE_SAMPLE_COUNT")

    # Outbound HTTP (no retries anywhere, only the transport timeout)
    http_timeout_s: float = Field(60.0, alias="HTTP_TIMEOUT_S")

    # Audit log storage
    api_log_db_path: str = Field("api_logs.db", alias="API_LOG_DB_PATH")
    api_log_workers: int = Field(2, alias="API_LOG_WORKERS")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:4201,http://127.0.0.1:4201", alias="CORS_ORIGINS")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

settings = Settings()
