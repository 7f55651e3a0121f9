import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class NarrativeServiceConfig:
    api_key: Optional[str]
    model: str = "mistral-large-latest"
    server_url: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 2000
    timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> "NarrativeServiceConfig":
        return cls(
            api_key=os.getenv("MISTRAL_API_KEY") or None,
            model=os.getenv("MISTRAL_MODEL", "mistral-large-latest"),
            server_url=os.getenv("MISTRAL_SERVER_URL") or None,
            timeout_s=float(os.getenv("NARRATIVE_TIMEOUT_S", "30")),
        )


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
