from backend.models import DetectorFlags


def fallback_tone(flags: DetectorFlags) -> str:
    if flags.fraud_both == 1:
        return "red"
    if flags.fraud_either == 1:
        return "blue"
    return "gray"


def fallback_narrative(flags: DetectorFlags) -> str:
    """Basic analysis from the detector flags alone, shown when the LLM is unavailable."""
    if flags.fraud_both == 1:
        return (
            "🔴 FRAUD DETECTED BY BOTH MODELS\n\n"
            "✅ GMM Model detected fraud\n"
            "✅ Isolation Forest Model detected fraud\n\n"
            "Both models agree this transaction is fraudulent."
        )
    if flags.fraud_either == 1:
        models = []
        if flags.fraud_gmm == 1:
            models.append("GMM Model")
        if flags.isolation_fraud == 1:
            models.append("Isolation Forest Model")
        fired = " and ".join(models) if models else "An unidentified model"
        return (
            "🔵 FRAUD DETECTED BY ONE MODEL\n\n"
            f"✅ {fired} detected fraud\n\n"
            "Only one model flagged this transaction for review."
        )
    return (
        "⚪ NO FRAUD DETECTED\n\n"
        "❌ GMM Model: No fraud detected\n"
        "❌ Isolation Forest Model: No fraud detected\n\n"
        "Both models indicate this is a legitimate transaction."
    )
