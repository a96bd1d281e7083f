from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./learnpath.db"

    llm_model: str = "gemini-2.0-flash"
    gemini_api_key: str = ""
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"

    # Per use case request bounds (milliseconds)
    questions_timeout_ms: int = 10000
    roadmap_timeout_ms: int = 20000
    lesson_timeout_ms: int = 15000

    roadmap_weeks: int = 8
    question_count: int = 5
    question_option_count: int = 3
    lesson_key_concepts: int = 3
    lesson_examples: int = 1
    lesson_assessment_questions: int = 1

    default_lesson_time_spent: int = 30  # minutes
    passing_score: int = 70

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24
    # Comma-separated emails granted the admin panel on signup
    admin_emails: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
