from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Kiwi MCP search provider
    kiwi_mcp_url: str = "https://mcp.kiwi.com"
    kiwi_timeout_seconds: float = 30.0

    # Search fan-out
    search_tool_name: str = "kiwi_search_flight"
    max_concurrent_searches: int = 10  # 0 = unbounded
    default_currency: str = "EUR"
    default_max_results: int = 5

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"

    # Advisor LLM call
    llm_max_tokens: int = 2000
    llm_temperature: float = 0.2
    llm_cost_per_1k_input: float = 0.0006   # USD
    llm_cost_per_1k_output: float = 0.0024  # USD

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
