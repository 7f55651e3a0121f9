import logging
from dataclasses import dataclass, field
from typing import List, Optional

from backend.builder import build_prompts, risk_level
from backend.fallback import fallback_narrative, fallback_tone
from backend.llm_client import NarrativeClient, NarrativeServiceError, classify_error
from backend.models import RiskLevel, TransactionRecord

logger = logging.getLogger(__name__)


@dataclass
class Explanation:
    text: str
    source: str  # "llm" | "fallback"
    risk_level: RiskLevel
    tone: str
    truncated: bool = False
    error: Optional[NarrativeServiceError] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "source": self.source,
            "risk_level": self.risk_level.value,
            "tone": self.tone,
            "truncated": self.truncated,
            "error": self.error.to_dict() if self.error else None,
            "warnings": self.warnings,
        }


def explain(record: TransactionRecord, client: NarrativeClient) -> Explanation:
    """LLM narrative for one transaction, or the flag-based fallback if the call fails."""
    flags = record.flags
    level = risk_level(flags)
    tone = fallback_tone(flags)
    warnings = flags.violations()

    try:
        prompts = build_prompts(record)
        narrative = client.generate(prompts.system, prompts.user)
    except NarrativeServiceError as e:
        logger.warning(f"Falling back for {record.transaction_id}: [{e.kind.value}] {e.message}")
        return Explanation(fallback_narrative(flags), "fallback", level, tone, error=e, warnings=warnings)
    except Exception as e:
        err = classify_error(e)
        logger.exception(f"Unexpected failure explaining {record.transaction_id}")
        return Explanation(fallback_narrative(flags), "fallback", level, tone, error=err, warnings=warnings)

    return Explanation(narrative.text, "llm", level, tone, truncated=narrative.truncated, warnings=warnings)
