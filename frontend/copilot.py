"""
Dashboard side of the narrative flow: calls the backend, turns the answer
(or the lack of one) into a chat message. Nothing here raises to the UI.
"""
import logging

import requests

from backend.fallback import fallback_narrative, fallback_tone
from backend.models import TransactionRecord

logger = logging.getLogger(__name__)

WELCOME = (
    "👋 Hello! I'm your fraud detection assistant. "
    "Click on any transaction in the graph to see which ML model detected fraud."
)


def bot_message(content: str, tone: str = "info") -> dict:
    return {"type": "bot", "content": content, "tone": tone}


def llm_message(data: dict) -> dict:
    content = (
        "Transaction Analysis\n\n"
        f"Transaction ID: {data['transaction_id']}\n"
        f"Account ID: {data['account_id']}\n"
        f"Amount: ${data['amount']}\n\n"
        f"{data['text']}"
    )
    if data.get("truncated"):
        content += "\n\n_(Report truncated at the length limit.)_"
    return bot_message(content, "ai")


def fallback_message(data: dict) -> dict:
    error = data.get("error") or {}
    content = f"⚠️ {error.get('message', 'AI analysis unavailable')}\n\n"
    if error.get("kind") == "Unauthorized":
        content += "🔧 To enable AI-powered analysis, set MISTRAL_API_KEY in backend/.env and restart the backend.\n\n"
    content += f"📊 Basic Analysis:\n{data['text']}"
    return bot_message(content, data.get("tone", "gray"))


def offline_message(record: TransactionRecord) -> dict:
    content = f"⚠️ Unable to connect to AI service. Showing basic analysis:\n\n{fallback_narrative(record.flags)}"
    return bot_message(content, fallback_tone(record.flags))


def request_explanation(backend_url: str, record: TransactionRecord, timeout: float = 60) -> dict:
    try:
        r = requests.post(
            f"{backend_url}/explain",
            json=record.model_dump(by_alias=True, exclude_none=True),
            timeout=timeout,
        )
        r.raise_for_status()
        data = r.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Explain request failed for {record.transaction_id}: {e}")
        return offline_message(record)
    except ValueError:
        logger.error(f"Backend returned invalid JSON for {record.transaction_id}")
        return offline_message(record)

    if data.get("source") == "llm":
        return llm_message(data)
    return fallback_message(data)


def graph_dot(nodes: list, links: list, selected_id: str = None) -> str:
    """Graphviz DOT source for the transaction graph."""
    lines = [
        "graph transactions {",
        '  graph [layout=neato, overlap=false, bgcolor="transparent"];',
        '  node [shape=circle, style=filled, label="", penwidth=0];',
        '  edge [color="#cbd5e1"];',
    ]
    for n in nodes:
        width = n["size"] / 20
        border = ', penwidth=3, color="#111827"' if n["id"] == selected_id else ""
        lines.append(
            f'  "{n["id"]}" [fillcolor="{n["color"]}", width={width:.2f}, tooltip="{n["id"]}"{border}];'
        )
    for link in links:
        lines.append(f'  "{link["source"]}" -- "{link["target"]}";')
    lines.append("}")
    return "\n".join(lines)
