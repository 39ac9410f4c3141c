"""
Application settings.

Every value can be overridden through an environment variable of the same name
(case-insensitive) or the project-level '.env' file. Defaults reproduce the
reference behaviour: llama3.2 for generation, nomic-embed-text for
embeddings, top-3 retrieval, 10 stored / 5 prompted messages, one hour of
conversation inactivity swept every 15 minutes, confidence cut-offs 0.7/0.4.

Vector store selection:
    CHROMA_HOST set   -> remote Chroma server
    CHROMA_PATH set   -> local persistent Chroma directory
    neither           -> in-process Chroma (data lost on restart)
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Knowledge assistant configuration. All values come from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_origins: list[str] = Field(default=["http://localhost:5173"])
    log_level: str = Field(default="INFO")

    # Ollama
    ollama_host: str = Field(default="http://localhost:11434")
    llm_model: str = Field(default="llama3.2")
    llm_temperature: float = Field(default=0.7)
    llm_num_predict: int = Field(default=2000)
    embedding_model: str = Field(default="nomic-embed-text")

    # External call budget
    request_timeout: float = Field(default=30.0, gt=0)
    vector_store_retry_attempts: int = Field(default=3, ge=1)

    # Chroma
    chroma_host: str = Field(default="")
    chroma_port: int = Field(default=8000)
    chroma_path: str = Field(default="")
    chroma_collection: str = Field(default="knowledge")

    # Retrieval and prompt
    retrieval_top_k: int = Field(default=3, ge=1)
    prompt_history_window: int = Field(default=5, ge=0)
    confidence_high_threshold: float = Field(default=0.7)
    confidence_medium_threshold: float = Field(default=0.4)

    # Conversations
    conversation_recent_window: int = Field(default=10, ge=1)
    conversation_ttl_seconds: float = Field(default=3600, gt=0)
    conversation_sweep_interval_seconds: float = Field(default=900, gt=0)

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.confidence_medium_threshold > self.confidence_high_threshold:
            raise ValueError("CONFIDENCE_MEDIUM_THRESHOLD must not exceed CONFIDENCE_HIGH_THRESHOLD")
        return self


def get_settings() -> Settings:
    return Settings()
