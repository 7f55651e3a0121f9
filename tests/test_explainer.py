import httpx

from backend.explainer import explain
from backend.fallback import fallback_narrative
from backend.models import RiskLevel
from tests.conftest import FakeSDKError


def test_llm_success(make_client, make_record):
    result = explain(make_record(gmm=1, iso=1), make_client(content="Full report"))
    assert result.source == "llm"
    assert result.text == "Full report"
    assert result.risk_level == RiskLevel.CRITICAL
    assert result.tone == "red"
    assert result.error is None


def test_network_failure_returns_fallback(make_client, make_record):
    record = make_record(gmm=0, iso=0)
    result = explain(record, make_client(error=httpx.ConnectError("down")))
    assert result.source == "fallback"
    assert result.text == fallback_narrative(record.flags)
    assert result.error.kind.value == "Unreachable"


def test_auth_failure_returns_fallback(make_client, make_record):
    record = make_record(gmm=1, iso=0)
    result = explain(record, make_client(error=FakeSDKError(401)))
    assert result.text == fallback_narrative(record.flags)
    assert result.to_dict()["error"]["kind"] == "Unauthorized"


def test_unexpected_client_bug_still_falls_back(make_record):
    class Broken:
        def generate(self, system_prompt, user_prompt):
            raise KeyError("oops")

    record = make_record(gmm=0, iso=1)
    result = explain(record, Broken())
    assert result.source == "fallback"
    assert result.error.kind.value == "Unknown"


def test_flag_violations_are_surfaced(make_client, make_record):
    result = explain(make_record(gmm=0, iso=0, fraud_both=1, fraud_either=1), make_client())
    assert result.risk_level == RiskLevel.CRITICAL
    assert len(result.warnings) == 2


def test_truncated_narrative_passes_through(make_client, make_record):
    result = explain(make_record(), make_client(content="cut", finish_reason="length"))
    assert result.source == "llm"
    assert result.truncated is True
