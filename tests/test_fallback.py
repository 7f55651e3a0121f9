import pytest

from backend.fallback import fallback_narrative, fallback_tone
from backend.models import DetectorFlags


def test_both_models():
    text = fallback_narrative(DetectorFlags(1, 1, 1, 1))
    assert text.startswith("🔴 FRAUD DETECTED BY BOTH MODELS")
    assert "Both models agree this transaction is fraudulent." in text


@pytest.mark.parametrize("flags,model", [
    (DetectorFlags(1, 0, 1, 0), "GMM Model"),
    (DetectorFlags(0, 1, 1, 0), "Isolation Forest Model"),
])
def test_one_model_names_the_detector(flags, model):
    text = fallback_narrative(flags)
    assert text.startswith("🔵 FRAUD DETECTED BY ONE MODEL")
    assert f"✅ {model} detected fraud" in text


def test_no_fraud():
    text = fallback_narrative(DetectorFlags(0, 0, 0, 0))
    assert text.startswith("⚪ NO FRAUD DETECTED")
    assert "❌ GMM Model: No fraud detected" in text
    assert "❌ Isolation Forest Model: No fraud detected" in text


def test_inconsistent_either_flag_still_produces_text():
    text = fallback_narrative(DetectorFlags(0, 0, 1, 0))
    assert "FRAUD DETECTED BY ONE MODEL" in text


@pytest.mark.parametrize("flags,tone", [
    (DetectorFlags(1, 1, 1, 1), "red"),
    (DetectorFlags(1, 0, 1, 0), "blue"),
    (DetectorFlags(0, 0, 0, 0), "gray"),
])
def test_tone(flags, tone):
    assert fallback_tone(flags) == tone
