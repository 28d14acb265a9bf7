from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # inference
    OPENAI_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.3
    LLM_TIMEOUT_S: float = 30.0

    # EXPLAIN sandbox; SANDBOX_DATABASE_URL wins over the PG_* parts
    SANDBOX_DATABASE_URL: str | None = None
    PG_HOST: str = "localhost"
    PG_PORT: int = 5432
    PG_DB: str = "sandbox"
    PG_USER: str = "querylens_ro"
    PG_PASSWORD: str = "querylens_ro_pw"
    STATEMENT_TIMEOUT_MS: int = 30000

    HISTORY_DB_PATH: str = "logs/history.db"
    HISTORY_MAX: int = 5

    LOG_LEVEL: str = "INFO"
    LOG_PATH: str = "logs/querylens.jsonl"
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
