from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Persistent store
    redis_url: str = "redis://localhost:6379/0"

    # OpenRouter (OpenAI-compatible gateway)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    answer_model: str = "google/gemini-flash-1.5"

    # Google Custom Search
    google_api_key: str = ""
    search_engine_id: str = ""
    max_search_results: int = 5

    # Renderer pool
    browser_pool_size: int = 3
    browser_health_check_interval_s: float = 60.0
    browser_headless: bool = True

    # Scraping
    scrape_navigation_timeout_ms: int = 15000
    scrape_fetch_timeout_s: float = 15.0
    gather_batch_timeout_s: float = 45.0
    max_scraping_results: int = 5

    # App
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
