from types import SimpleNamespace

import pytest

from backend.config import NarrativeServiceConfig
from backend.llm_client import NarrativeClient
from backend.models import TransactionRecord


class FakeChat:
    """Stands in for Mistral().chat: records calls, returns or raises what it was given."""

    def __init__(self, content="## RISK CLASSIFICATION\nCritical", finish_reason="stop", error=None):
        self.content = content
        self.finish_reason = finish_reason
        self.error = error
        self.calls = []

    def complete(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(role="assistant", content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message, finish_reason=self.finish_reason)])


class FakeMistral:
    def __init__(self, **kwargs):
        self.chat = FakeChat(**kwargs)


class FakeSDKError(Exception):
    def __init__(self, status_code):
        super().__init__(f"API error occurred: Status {status_code}")
        self.status_code = status_code


@pytest.fixture
def config():
    return NarrativeServiceConfig(api_key="test-key", model="mistral-test")


@pytest.fixture
def make_client(config):
    def _make(**kwargs):
        return NarrativeClient(config, client=FakeMistral(**kwargs))
    return _make


@pytest.fixture
def make_record():
    def _make(gmm=1, iso=1, **overrides):
        data = {
            "transactionId": "TX000123",
            "accountId": "AC00042",
            "amount": "1432.5",
            "transactionDate": "2023-04-11 16:29:14",
            "transactionType": "Debit",
            "location": "San Diego",
            "deviceId": "D000380",
            "merchantId": "M015",
            "channel": "ATM",
            "loginAttempts": 1,
            "transactionDuration": 81,
            "accountBalance": "5112.21",
            "customerAge": 45,
            "customerOccupation": "Doctor",
            "withdrawalRatio": 0.28,
            "transactionHour": 16,
            "fraud_gmm": gmm,
            "isolation_fraud": iso,
            "fraud_either": int(bool(gmm or iso)),
            "fraud_both": int(bool(gmm and iso)),
        }
        data.update(overrides)
        return TransactionRecord(**data)
    return _make


@pytest.fixture
def minimal_record():
    return TransactionRecord(
        transactionId="TX1", accountId="AC1", amount="10",
        fraud_gmm=0, isolation_fraud=0, fraud_either=0, fraud_both=0,
    )
