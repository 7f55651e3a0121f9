from backend.models import DetectionSignal

SYSTEM_PROMPT = """You are an expert Financial Fraud Investigator AI Agent specializing in
transaction analysis and risk assessment. Your role is to analyze flagged transactions and provide
clear, actionable fraud investigation reports.

Your reports MUST include:
1. RISK SUMMARY: Executive summary of fraud risk (Critical/High/Medium/Low)
2. DETECTION SIGNALS: Which models flagged this and why
3. BEHAVIORAL ANALYSIS: Deviation from user's normal patterns
4. TRANSACTION CONTEXT: Details about the transaction itself
5. NETWORK ANOMALIES: Any suspicious patterns in the transaction network
6. RISK INDICATORS: Specific fraud markers detected
7. INVESTIGATION RECOMMENDATIONS: Suggested next steps
8. CONFIDENCE & EXPLAINABILITY: Why this flagged, confidence level

Keep language clear and precise. Avoid jargon. Support investigators, not replace them.
Each recommendation should be actionable within compliance frameworks."""

# One block per (GMM, Isolation Forest) outcome
DETECTION_SIGNALS = {
    DetectionSignal.BOTH: """Both ML models detected fraud:
    • GMM Model: FLAGGED (Behavioral anomaly detected)
    • Isolation Forest Model: FLAGGED (Statistical outlier detected)

    Agreement: Both models agree this transaction is suspicious.""",
    DetectionSignal.GMM_ONLY: """Partial Detection:
    • GMM Model: FLAGGED (Behavioral pattern deviation)
    • Isolation Forest Model: NOT FLAGGED (Within normal statistical range)

    Status: One model flagged - requires investigation.""",
    DetectionSignal.ISOLATION_ONLY: """Partial Detection:
    • GMM Model: NOT FLAGGED (Matches user behavior pattern)
    • Isolation Forest Model: FLAGGED (Statistical outlier detected)

    Status: One model flagged - requires investigation.""",
    DetectionSignal.NEITHER: """No Fraud Detected:
    • GMM Model: NOT FLAGGED (Matches user behavior)
    • Isolation Forest Model: NOT FLAGGED (Within normal range)

    Status: Both models indicate legitimate transaction.""",
}

SEPARATOR = "=" * 80

USER_PROMPT_TEMPLATE = """FLAGGED TRANSACTION ANALYSIS REQUEST
{separator}

TRANSACTION DETAILS:
  • Transaction ID: {transaction_id}
  • Account ID: {account_id}
  • Amount: ${amount}
  • Date/Time: {transaction_date}
  • Transaction Type: {transaction_type}
  • Location: {location}
  • Device ID: {device_id}
  • Merchant ID: {merchant_id}
  • Channel: {channel}
  • Transaction Duration: {transaction_duration} seconds
  • Account Balance: ${account_balance}
  • Transaction Hour: {transaction_hour}
  • Login Attempts: {login_attempts}
  • Withdrawal Ratio: {withdrawal_pct}

{separator}
FRAUD DETECTION RESULTS:
{detection_signals}

Risk Level: {risk_level}

{separator}
BEHAVIORAL INDICATORS:
  • Withdrawal Ratio: {withdrawal_pct} ({withdrawal_tag})
  • Login Attempts: {login_attempts} ({login_tag})
  • Transaction Hour: {hour_line}

{separator}
CUSTOMER CONTEXT:
  • Customer Age: {customer_age} years
  • Customer Occupation: {customer_occupation}

{separator}
YOUR TASK:

Generate a comprehensive fraud investigation report covering:

1. RISK CLASSIFICATION
   - Risk Level (Critical/High/Medium/Low)
   - Confidence Score (0-100%)
   - Primary Fraud Type Suspected (if applicable)

2. DETECTION ANALYSIS
   - Which models triggered and why
   - Key behavioral deviations
   - Statistical significance of anomalies

3. FRAUD INDICATORS IDENTIFIED
   - List specific red flags
   - Explain each indicator's significance
   - Connection to known fraud patterns

4. ACCOUNT RISK CONTEXT
   - Is this a one-off or pattern?
   - Account history relevance
   - Repeat offender signals?

5. INVESTIGATION RECOMMENDATIONS
   - Immediate actions (block/challenge/monitor)
   - Investigation priorities
   - Data points to investigate further
   - Next steps for investigator

6. EXPLAINABILITY SUMMARY
   - Plain English explanation
   - Why each model flagged it
   - Confidence reasoning
   - False positive risk assessment

Format the report professionally for use by compliance officers and investigators.
Make it clear why this was flagged and what action to take."""
