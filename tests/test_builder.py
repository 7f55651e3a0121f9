import logging

import pytest

from backend.builder import (
    BuilderError,
    build_prompts,
    check_flags,
    login_tag,
    risk_level,
    withdrawal_tag,
)
from backend.models import DetectionSignal, RiskLevel
from backend.prompt import SYSTEM_PROMPT


class TestRiskLevel:
    def test_both_is_critical(self, make_record):
        assert risk_level(make_record(gmm=1, iso=1).flags) == RiskLevel.CRITICAL

    @pytest.mark.parametrize("gmm,iso", [(1, 0), (0, 1)])
    def test_either_is_high(self, make_record, gmm, iso):
        assert risk_level(make_record(gmm=gmm, iso=iso).flags) == RiskLevel.HIGH

    def test_neither_is_low(self, make_record):
        assert risk_level(make_record(gmm=0, iso=0).flags) == RiskLevel.LOW

    def test_fraud_both_takes_precedence_even_if_either_is_zero(self, make_record):
        record = make_record(gmm=1, iso=1, fraud_either=0, fraud_both=1)
        assert risk_level(record.flags) == RiskLevel.CRITICAL

    def test_no_medium_tier(self):
        assert "Medium" not in {level.value for level in RiskLevel}


class TestDetectionSignal:
    @pytest.mark.parametrize("gmm,iso,expected", [
        (1, 1, DetectionSignal.BOTH),
        (1, 0, DetectionSignal.GMM_ONLY),
        (0, 1, DetectionSignal.ISOLATION_ONLY),
        (0, 0, DetectionSignal.NEITHER),
    ])
    def test_from_flags(self, make_record, gmm, iso, expected):
        assert DetectionSignal.from_flags(make_record(gmm=gmm, iso=iso).flags) == expected

    def test_neither_states_both_models_did_not_flag(self, make_record):
        user = build_prompts(make_record(gmm=0, iso=0)).user
        assert "No Fraud Detected:" in user
        assert "• GMM Model: NOT FLAGGED" in user
        assert "• Isolation Forest Model: NOT FLAGGED" in user
        assert "Risk Level: Low" in user

    def test_gmm_only_names_gmm(self, make_record):
        user = build_prompts(make_record(gmm=1, iso=0)).user
        assert "• GMM Model: FLAGGED (Behavioral pattern deviation)" in user
        assert "• Isolation Forest Model: NOT FLAGGED" in user

    def test_swapping_flags_swaps_named_model(self, make_record):
        user = build_prompts(make_record(gmm=0, iso=1)).user
        assert "• GMM Model: NOT FLAGGED" in user
        assert "• Isolation Forest Model: FLAGGED (Statistical outlier detected)" in user
        assert "Risk Level: High" in user

    def test_both_flagged(self, make_record):
        user = build_prompts(make_record(gmm=1, iso=1)).user
        assert "Both ML models detected fraud:" in user
        assert "Risk Level: Critical" in user


class TestIndicators:
    @pytest.mark.parametrize("ratio,tag", [
        (0.51, "HIGH - Unusual withdrawal pattern"),
        (0.5, "MODERATE"),
        (0.21, "MODERATE"),
        (0.2, "Normal"),
        (0.0, "Normal"),
    ])
    def test_withdrawal_tag_boundaries(self, ratio, tag):
        assert withdrawal_tag(ratio) == tag

    def test_withdrawal_ratio_half_is_moderate_in_prompt(self, make_record):
        user = build_prompts(make_record(withdrawalRatio=0.5)).user
        assert "• Withdrawal Ratio: 50.00% (MODERATE)" in user

    def test_login_tag(self):
        assert login_tag(1) == "Normal"
        assert login_tag(2) == "Potential account compromise signal"

    def test_missing_login_attempts_defaults_to_one(self, make_record):
        user = build_prompts(make_record(loginAttempts=None)).user
        assert "• Login Attempts: 1 (Normal)" in user

    def test_two_login_attempts_flagged(self, make_record):
        user = build_prompts(make_record(loginAttempts=2)).user
        assert "• Login Attempts: 2 (Potential account compromise signal)" in user

    @pytest.mark.parametrize("hour,unusual", [(0, True), (5, True), (6, False), (22, False), (23, True)])
    def test_unusual_hour(self, make_record, hour, unusual):
        user = build_prompts(make_record(transactionHour=hour)).user
        assert ("Unusual time - potential red flag" in user) is unusual
        assert f"• Transaction Hour: {hour}:00" in user


class TestFormatting:
    def test_amount_and_balance_use_thousands_separator(self, make_record):
        user = build_prompts(make_record(amount="1432.5", accountBalance="1234567.891")).user
        assert "• Amount: $1,432.50" in user
        assert "• Account Balance: $1,234,567.89" in user

    def test_missing_fields_render_na(self, minimal_record):
        user = build_prompts(minimal_record).user
        assert "• Date/Time: N/A" in user
        assert "• Location: N/A" in user
        assert "• Account Balance: $N/A" in user
        assert "• Transaction Hour: N/A" in user
        assert "• Customer Age: N/A years" in user
        assert "• Withdrawal Ratio: 0.00% (Normal)" in user

    def test_unparseable_amount_renders_zero(self, make_record, caplog):
        with caplog.at_level(logging.WARNING):
            user = build_prompts(make_record(amount="abc")).user
        assert "• Amount: $0.00" in user
        assert "not a number" in caplog.text

    def test_prompts_are_deterministic(self, make_record):
        first = build_prompts(make_record(gmm=1, iso=0))
        second = build_prompts(make_record(gmm=1, iso=0))
        assert first == second
        assert first.system == SYSTEM_PROMPT

    def test_record_is_not_mutated(self, make_record):
        record = make_record()
        before = record.model_dump()
        build_prompts(record)
        assert record.model_dump() == before


class TestFlagConsistency:
    def test_consistent_flags_pass(self, make_record):
        check_flags(make_record(gmm=1, iso=0))

    def test_inconsistent_flags_raise(self, make_record):
        with pytest.raises(BuilderError, match="fraud_both"):
            check_flags(make_record(gmm=1, iso=0, fraud_both=1))

    def test_inconsistent_flags_are_logged_not_fatal(self, make_record, caplog):
        record = make_record(gmm=0, iso=0, fraud_either=1)
        with caplog.at_level(logging.WARNING):
            prompts = build_prompts(record)
        assert "Inconsistent detector flags" in caplog.text
        assert "Risk Level: High" in prompts.user
