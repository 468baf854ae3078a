from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # required config for MVP
    database_url: str = "sqlite:///./intents.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_s: int = 30
    db_pool_recycle_s: int = 1800

    llm_enabled: bool = True
    llm_provider: str = "openai"
    llm_model: str = "gpt-4"  # safe default- override via env
    openai_api_key: str = ""
    llm_temperature: float = 0.0
    llm_timeout_s: int = 30

    knowledge_base_url: str = "https://api.brianknows.org/api/v0/agent/knowledge"
    knowledge_base_api_key: str = ""
    knowledge_base_name: str = "starknet_kb"
    knowledge_base_timeout_s: int = 30

    transaction_processor_url: str = ""
    transaction_processor_timeout_s: int = 30

    default_chain_id: str = "4012"

    log_level: str = "INFO"
    log_json: bool = False

    langsmith_tracing: bool = False
    langsmith_api_key: str = ""
    langsmith_project: str = "intent-resolver"
    langsmith_endpoint: str = "https://api.smith.langchain.com"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def DATABASE_URL(self) -> str:
        return self.database_url

    @property
    def LLM_ENABLED(self) -> bool:
        return self.llm_enabled

    @property
    def LLM_PROVIDER(self) -> str:
        return self.llm_provider

    @property
    def LLM_MODEL(self) -> str:
        return self.llm_model

    @property
    def OPENAI_API_KEY(self) -> str:
        return self.openai_api_key

    @property
    def LLM_TEMPERATURE(self) -> float:
        return self.llm_temperature

    @property
    def LLM_TIMEOUT_S(self) -> int:
        return self.llm_timeout_s

    @property
    def DEFAULT_CHAIN_ID(self) -> str:
        return self.default_chain_id


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader (process-level).
    """
    return Settings()
