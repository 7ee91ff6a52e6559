"""Process-wide settings for the glossary service.

Every process (API, gateway, CLI supervisor) builds one ``GlossarySettings``
at startup and passes it down.  Nothing else reads the environment.

Order of precedence (highest → lowest):
    1. Environment variables (``GLOSSARY_COSMOS_ENDPOINT``, etc.)
    2. ``.env`` file
    3. Defaults below

Examples:
    >>> from glossary.core.settings import GlossarySettings
    >>> s = GlossarySettings(api_port=4001)
    >>> s.api_internal_url
    'http://127.0.0.1:4001'
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_STATIC = Path(__file__).resolve().parent.parent / "gateway" / "static"

# Placeholder shipped in sample env files; treated as "no key".
PLACEHOLDER_KEY = "SET_KEY"


class GlossarySettings(BaseSettings):
    """Settings for every glossary process.

    Fields
    ──────
    cosmos_*     : remote Term Store; both endpoint and key are needed
    openai_*     : Azure OpenAI deployment used for explanations
    ai_*         : retry policy, sampling defaults, proxy-mode toggle
    api_* / gateway_* : listen addresses
    """

    model_config = SettingsConfigDict(
        env_prefix="GLOSSARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────────────
    debug: bool = Field(default=False, description="Expose raw error text in 500 bodies")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(default=None, description="JSON logs (None = auto by TTY)")

    # ── Network ──────────────────────────────────────────────────────────
    api_host: str = Field(default="127.0.0.1", description="Glossary API bind address")
    api_port: int = Field(default=3001, description="Glossary API bind port")
    gateway_host: str = Field(default="0.0.0.0", description="Gateway bind address")
    gateway_port: int = Field(default=8080, description="Gateway bind port (the only public one)")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # ── Cosmos DB ────────────────────────────────────────────────────────
    cosmos_endpoint: str | None = Field(default=None, description="Cosmos account endpoint")
    cosmos_key: str | None = Field(default=None, description="Cosmos account key")
    cosmos_db_name: str = Field(default="glossary", description="Database id")
    cosmos_container_name: str = Field(default="terms", description="Container id")
    cosmos_throughput: int = Field(default=400, description="Provisioned RU/s for new containers")

    # ── Azure OpenAI ─────────────────────────────────────────────────────
    openai_endpoint: str | None = Field(default=None, description="Azure OpenAI endpoint")
    openai_deployment: str = Field(default="glossary-model", description="Chat deployment name")
    openai_api_key: str | None = Field(default=None, description="Static key; unset = identity")
    openai_api_version: str = Field(default="2024-06-01")
    openai_token_scope: str = Field(default="https://cognitiveservices.azure.com/.default")
    openai_timeout_seconds: float = Field(default=30.0, description="Per-attempt deadline")

    # ── AI behaviour ─────────────────────────────────────────────────────
    ai_retry_count: int = Field(default=3, ge=1, description="Max attempts per completion")
    ai_retry_base_delay: float = Field(default=0.5, ge=0, description="Backoff base (seconds)")
    ai_default_temperature: float = 0.7
    ai_default_top_p: float = 0.9
    ai_default_frequency_penalty: float = 0.0
    ai_default_presence_penalty: float = 0.0
    ai_enforce_system_prompt: bool = Field(
        default=True,
        description="Replace caller system prompts with the one-sentence IT-term policy",
    )
    ai_enable_explanation: bool = Field(default=True, description="Allow term explanations; advertised in /config.json")
    ai_use_proxy: bool = Field(default=False, description="Gateway relays /api/ai-request upstream")
    ai_proxy_url: str | None = Field(default=None, description="Upstream completion function URL")
    ai_proxy_key: str | None = Field(default=None, description="Function key, sent as ?code=")

    # ── Static assets ────────────────────────────────────────────────────
    static_dir: Path = Field(default=_PACKAGE_STATIC, description="Directory served by the gateway")

    @property
    def cosmos_configured(self) -> bool:
        """True when both Cosmos endpoint and key are present."""
        return bool(self.cosmos_endpoint and self.cosmos_key)

    @property
    def openai_key_configured(self) -> bool:
        return bool(self.openai_api_key and self.openai_api_key != PLACEHOLDER_KEY)

    @property
    def api_internal_url(self) -> str:
        """Loopback address the gateway forwards ``/api`` traffic to."""
        return f"http://127.0.0.1:{self.api_port}"

    def masked(self) -> dict[str, object]:
        """Settings as a dict with secrets replaced by ``***``."""
        data = self.model_dump(mode="json")
        for key in ("cosmos_key", "openai_api_key", "ai_proxy_key"):
            if data.get(key):
                data[key] = "***"
        return data


@lru_cache(maxsize=1)
def get_settings() -> GlossarySettings:
    """Cached settings — loaded once per process."""
    return GlossarySettings()
