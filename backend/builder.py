"""
Turns one flagged transaction into the (system, user) prompt pair sent to the LLM.
Pure: no network, no clock, same record -> same prompts.
"""
import logging
from typing import NamedTuple, Optional

from backend.models import DetectionSignal, DetectorFlags, RiskLevel, TransactionRecord
from backend.prompt import DETECTION_SIGNALS, SEPARATOR, SYSTEM_PROMPT, USER_PROMPT_TEMPLATE

logger = logging.getLogger(__name__)

MISSING = "N/A"


class BuilderError(ValueError):
    """Malformed transaction input. Recoverable: log it and keep building."""


class PromptPair(NamedTuple):
    system: str
    user: str


def risk_level(flags: DetectorFlags) -> RiskLevel:
    if flags.fraud_both == 1:
        return RiskLevel.CRITICAL
    if flags.fraud_either == 1:
        return RiskLevel.HIGH
    return RiskLevel.LOW


def check_flags(record: TransactionRecord) -> None:
    problems = record.flags.violations()
    if problems:
        raise BuilderError(f"Inconsistent detector flags for {record.transaction_id}: " + "; ".join(problems))


def withdrawal_tag(ratio: float) -> str:
    if ratio > 0.5:
        return "HIGH - Unusual withdrawal pattern"
    if ratio > 0.2:
        return "MODERATE"
    return "Normal"


def login_tag(attempts: int) -> str:
    return "Potential account compromise signal" if attempts > 1 else "Normal"


def is_unusual_hour(hour: Optional[int]) -> bool:
    return hour is not None and (hour < 6 or hour > 22)


def _text(value) -> str:
    if value is None or value == "":
        return MISSING
    return str(value)


def _money(value: Optional[str], field: str, transaction_id: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise BuilderError(f"{field}={value!r} is not a number (transaction {transaction_id})")


def _format_amount(record: TransactionRecord) -> str:
    try:
        amount = _money(record.amount or "0", "amount", record.transaction_id)
    except BuilderError as e:
        logger.warning(f"{e}; using 0.00")
        amount = 0.0
    return f"{amount:,.2f}"


def _format_balance(record: TransactionRecord) -> str:
    if not record.account_balance:
        return MISSING
    try:
        return f"{_money(record.account_balance, 'account_balance', record.transaction_id):,.2f}"
    except BuilderError as e:
        logger.warning(f"{e}; rendering as {MISSING}")
        return MISSING


def _hour_line(hour: Optional[int]) -> str:
    if hour is None:
        return MISSING
    line = f"{hour}:00"
    if is_unusual_hour(hour):
        line += " (Unusual time - potential red flag)"
    return line


def build_user_prompt(record: TransactionRecord) -> str:
    flags = record.flags
    ratio = record.withdrawal_ratio if record.withdrawal_ratio is not None else 0.0
    attempts = record.login_attempts if record.login_attempts is not None else 1
    withdrawal_pct = f"{ratio * 100:.2f}%"

    return USER_PROMPT_TEMPLATE.format(
        separator=SEPARATOR,
        transaction_id=record.transaction_id,
        account_id=record.account_id,
        amount=_format_amount(record),
        transaction_date=_text(record.transaction_date),
        transaction_type=_text(record.transaction_type),
        location=_text(record.location),
        device_id=_text(record.device_id),
        merchant_id=_text(record.merchant_id),
        channel=_text(record.channel),
        transaction_duration=_text(record.transaction_duration),
        account_balance=_format_balance(record),
        transaction_hour=_text(record.transaction_hour),
        login_attempts=attempts,
        withdrawal_pct=withdrawal_pct,
        detection_signals=DETECTION_SIGNALS[DetectionSignal.from_flags(flags)],
        risk_level=risk_level(flags).value,
        withdrawal_tag=withdrawal_tag(ratio),
        login_tag=login_tag(attempts),
        hour_line=_hour_line(record.transaction_hour),
        customer_age=_text(record.customer_age),
        customer_occupation=_text(record.customer_occupation),
    )


def build_prompts(record: TransactionRecord) -> PromptPair:
    try:
        check_flags(record)
    except BuilderError as e:
        # Upstream data-quality problem; the recorded flags are used as-is.
        logger.warning(str(e))
    return PromptPair(SYSTEM_PROMPT, build_user_prompt(record))
