"""
Loads the labelled transaction CSV produced upstream and shapes it for the dashboard:
detection stats and a graph of transactions chained per account.
"""
import logging
from typing import Dict, List, Tuple

import pandas as pd
from pydantic import ValidationError

from backend.models import TransactionRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "TransactionID", "AccountID", "TransactionAmount",
    "fraud_gmm", "isolation_fraud", "fraud_either", "fraud_both",
]
INT_COLUMNS = [
    "fraud_gmm", "isolation_fraud", "fraud_either", "fraud_both",
    "LoginAttempts", "TransactionDuration", "CustomerAge", "transaction_hour",
]
FLOAT_COLUMNS = ["withdrawal_ratio"]

# CSV column -> TransactionRecord field
COLUMN_MAP = {
    "TransactionID": "transaction_id",
    "AccountID": "account_id",
    "TransactionAmount": "amount",
    "TransactionDate": "transaction_date",
    "TransactionType": "transaction_type",
    "Location": "location",
    "DeviceID": "device_id",
    "MerchantID": "merchant_id",
    "Channel": "channel",
    "LoginAttempts": "login_attempts",
    "TransactionDuration": "transaction_duration",
    "AccountBalance": "account_balance",
    "CustomerAge": "customer_age",
    "CustomerOccupation": "customer_occupation",
    "withdrawal_ratio": "withdrawal_ratio",
    "transaction_hour": "transaction_hour",
    "fraud_gmm": "fraud_gmm",
    "isolation_fraud": "isolation_fraud",
    "fraud_either": "fraud_either",
    "fraud_both": "fraud_both",
}

TIERS = {
    "both": {"color": "#ef4444", "size": 8},
    "one": {"color": "#3b82f6", "size": 6},
    "none": {"color": "#9ca3af", "size": 4},
}


class MissingColumnsError(ValueError):
    pass


def read_csv(source) -> pd.DataFrame:
    """Every column as text; numeric conversion happens in load_transactions."""
    return pd.read_csv(source, dtype=str, keep_default_na=False, skipinitialspace=True)


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    work = df.copy()
    work.columns = [str(c).strip() for c in work.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in work.columns]
    if missing:
        raise MissingColumnsError(f"Missing required columns: {', '.join(missing)}")

    for col in work.columns:
        if col not in INT_COLUMNS and col not in FLOAT_COLUMNS:
            work[col] = work[col].astype(str).str.strip().replace({"nan": "", "None": ""})

    for col in INT_COLUMNS:
        if col in work.columns:
            work[col] = pd.to_numeric(work[col], errors="coerce").round().astype("Int64")
    for col in FLOAT_COLUMNS:
        if col in work.columns:
            work[col] = pd.to_numeric(work[col], errors="coerce")

    return work[work["TransactionID"] != ""]


def _clean(col: str, value):
    if col in INT_COLUMNS:
        return int(value)
    if col in FLOAT_COLUMNS:
        return float(value)
    return value


def load_transactions(df: pd.DataFrame) -> Tuple[List[TransactionRecord], List[str]]:
    """Returns (records, warnings). Invalid rows are skipped and reported, never fatal."""
    work = _prepare(df)
    columns = [c for c in work.columns if c in COLUMN_MAP]
    rows = work[columns].astype(object)

    records, warnings = [], []
    for row in rows.to_dict(orient="records"):
        data = {COLUMN_MAP[k]: _clean(k, v) for k, v in row.items() if pd.notna(v) and v != ""}
        try:
            record = TransactionRecord(**data)
        except ValidationError as e:
            msg = f"Skipping row {row.get('TransactionID')}: {e.error_count()} invalid field(s)"
            logger.warning(msg)
            warnings.append(msg)
            continue

        for problem in record.flags.violations():
            msg = f"{record.transaction_id}: {problem}"
            logger.warning(f"Data quality: {msg}")
            warnings.append(msg)
        records.append(record)

    return records, warnings


def tier(record: TransactionRecord) -> str:
    if record.fraud_both == 1:
        return "both"
    if record.fraud_either == 1:
        return "one"
    return "none"


def detection_stats(records: List[TransactionRecord]) -> Dict[str, int]:
    tiers = [tier(r) for r in records]
    return {
        "total": len(records),
        "both_detected": tiers.count("both"),
        "one_detected": tiers.count("one"),
        "none_detected": tiers.count("none"),
    }


def build_graph(records: List[TransactionRecord]) -> dict:
    nodes = []
    by_account: Dict[str, List[str]] = {}
    for r in records:
        nodes.append({
            "id": r.transaction_id,
            "tier": tier(r),
            **TIERS[tier(r)],
            "record": r.model_dump(by_alias=True, exclude_none=True),
        })
        by_account.setdefault(r.account_id, []).append(r.transaction_id)

    links = []
    for tx_ids in by_account.values():
        for source, target in zip(tx_ids, tx_ids[1:]):
            links.append({"source": source, "target": target})

    return {"nodes": nodes, "links": links}
