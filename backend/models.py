from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    LOW = "Low"


class DetectorFlags(NamedTuple):
    """The four binary detector verdicts of one transaction."""

    fraud_gmm: int
    isolation_fraud: int
    fraud_either: int
    fraud_both: int

    def violations(self) -> List[str]:
        gmm, iso = bool(self.fraud_gmm), bool(self.isolation_fraud)
        out = []
        if bool(self.fraud_either) != (gmm or iso):
            out.append(
                f"fraud_either={self.fraud_either} but fraud_gmm={self.fraud_gmm}, "
                f"isolation_fraud={self.isolation_fraud}"
            )
        if bool(self.fraud_both) != (gmm and iso):
            out.append(
                f"fraud_both={self.fraud_both} but fraud_gmm={self.fraud_gmm}, "
                f"isolation_fraud={self.isolation_fraud}"
            )
        return out


class DetectionSignal(str, Enum):
    """Which of the two detectors flagged a transaction."""

    BOTH = "both"
    GMM_ONLY = "gmm_only"
    ISOLATION_ONLY = "isolation_only"
    NEITHER = "neither"

    @classmethod
    def from_flags(cls, flags: DetectorFlags) -> "DetectionSignal":
        return _SIGNALS[(bool(flags.fraud_gmm), bool(flags.isolation_fraud))]


_SIGNALS = {
    (True, True): DetectionSignal.BOTH,
    (True, False): DetectionSignal.GMM_ONLY,
    (False, True): DetectionSignal.ISOLATION_ONLY,
    (False, False): DetectionSignal.NEITHER,
}


class TransactionRecord(BaseModel):
    """One flagged transaction as shown on the dashboard (camelCase on the wire)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    transaction_id: str = Field(alias="transactionId")
    account_id: str = Field(alias="accountId")
    amount: str

    transaction_date: Optional[str] = Field(default=None, alias="transactionDate")
    transaction_type: Optional[str] = Field(default=None, alias="transactionType")
    location: Optional[str] = None
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    merchant_id: Optional[str] = Field(default=None, alias="merchantId")
    channel: Optional[str] = None

    login_attempts: Optional[int] = Field(default=None, ge=0, alias="loginAttempts")
    transaction_duration: Optional[int] = Field(default=None, ge=0, alias="transactionDuration")
    account_balance: Optional[str] = Field(default=None, alias="accountBalance")
    customer_age: Optional[int] = Field(default=None, alias="customerAge")
    customer_occupation: Optional[str] = Field(default=None, alias="customerOccupation")
    withdrawal_ratio: Optional[float] = Field(default=None, ge=0, le=1, alias="withdrawalRatio")
    transaction_hour: Optional[int] = Field(default=None, ge=0, le=23, alias="transactionHour")

    fraud_gmm: int = Field(ge=0, le=1)
    isolation_fraud: int = Field(ge=0, le=1)
    fraud_either: int = Field(ge=0, le=1)
    fraud_both: int = Field(ge=0, le=1)

    @property
    def flags(self) -> DetectorFlags:
        return DetectorFlags(self.fraud_gmm, self.isolation_fraud, self.fraud_either, self.fraud_both)


# -------- API payloads ----------

class ServiceErrorOut(BaseModel):
    kind: str
    message: str


class NarrativeOut(BaseModel):
    text: str
    transaction_id: str
    account_id: str
    amount: str
    risk_level: RiskLevel
    truncated: bool = False
    warnings: List[str] = []


class ExplanationOut(BaseModel):
    text: str
    source: str
    transaction_id: str
    account_id: str
    amount: str
    risk_level: RiskLevel
    tone: str
    truncated: bool = False
    error: Optional[ServiceErrorOut] = None
    warnings: List[str] = []
