import os

import pandas as pd
import requests
import streamlit as st
from dotenv import load_dotenv

from backend.models import TransactionRecord
from frontend.copilot import WELCOME, bot_message, graph_dot, request_explanation
from frontend.selection import SelectionTracker

load_dotenv()

DEFAULT_BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")

TIER_LABELS = {"both": "🔴 Both models", "one": "🔵 One model", "none": "⚪ No fraud"}

# -------------------- Page + Style --------------------
st.set_page_config(page_title="Fraud Graph Copilot", layout="wide")

st.markdown(
    """
<style>
.block-container { padding-top: 1.2rem; padding-bottom: 2rem; max-width: 1400px; }
.small-muted { color: rgba(255,255,255,0.65); font-size: 0.92rem; }

.badge {
  display:inline-block; padding:4px 10px; border-radius:999px; font-size:0.85rem;
  border:1px solid rgba(255,255,255,0.18); background: rgba(255,255,255,0.04);
  margin-right: 6px; margin-top: 4px;
}
.b-green{border-color:rgba(0,255,160,0.35);}
.b-red{border-color:rgba(255,60,60,0.35);}
.b-blue{border-color:rgba(80,160,255,0.45);}
.b-yellow{border-color:rgba(255,200,0,0.45);}

.msg { border-radius: 14px; padding: 10px 14px; margin-bottom: 10px; white-space: pre-wrap;
       border: 1px solid rgba(255,255,255,0.12); }
.msg-red   { background: rgba(239,68,68,0.10);  border-color: rgba(239,68,68,0.35); }
.msg-blue  { background: rgba(59,130,246,0.10); border-color: rgba(59,130,246,0.35); }
.msg-gray  { background: rgba(156,163,175,0.10); }
.msg-info  { background: rgba(99,102,241,0.08); border-color: rgba(99,102,241,0.30); }
</style>
""",
    unsafe_allow_html=True,
)


# -------------------- Session state --------------------
def init_state():
    if "backend_url" not in st.session_state:
        st.session_state.backend_url = DEFAULT_BACKEND_URL
    if "graph" not in st.session_state:
        st.session_state.graph = None
    if "tracker" not in st.session_state:
        st.session_state.tracker = SelectionTracker()
    if "messages" not in st.session_state:
        st.session_state.messages = [bot_message(WELCOME)]
    if "uploader_key" not in st.session_state:
        st.session_state.uploader_key = 0

init_state()


# -------------------- Helpers --------------------
def ping_backend(url: str):
    try:
        r = requests.get(f"{url}/health", timeout=3)
        if r.status_code == 200:
            return True, r.json()
        return False, None
    except requests.exceptions.RequestException:
        return False, None


def clear_chat():
    st.session_state.messages = [bot_message(WELCOME)]


def render_message(msg: dict):
    if msg["tone"] == "ai":
        with st.container(border=True):
            st.markdown(msg["content"])
    else:
        st.markdown(f"<div class='msg msg-{msg['tone']}'>{msg['content']}</div>", unsafe_allow_html=True)


# -------------------- Header --------------------
ok, health = ping_backend(st.session_state.backend_url)

h1, h2 = st.columns([1.2, 0.8], vertical_alignment="center")
with h1:
    st.markdown("## 🛡️ Fraud Graph Copilot")
    st.markdown("<div class='small-muted'>GMM + Isolation Forest labels → transaction graph → AI investigation report</div>", unsafe_allow_html=True)

with h2:
    badges = []
    if ok:
        badges.append("<span class='badge b-green'>Backend: OK</span>")
        if health and health.get("has_api_key"):
            badges.append("<span class='badge b-blue'>LLM: Ready</span>")
        else:
            badges.append("<span class='badge b-yellow'>LLM: No key</span>")
    else:
        badges.append("<span class='badge b-red'>Backend: Offline</span>")
    st.markdown("".join(badges), unsafe_allow_html=True)
    st.markdown(f"<div class='small-muted'>URL: {st.session_state.backend_url}</div>", unsafe_allow_html=True)

st.markdown("---")

# -------------------- Sidebar --------------------
st.sidebar.header("⚙️ Settings")
st.session_state.backend_url = st.sidebar.text_input("BACKEND_URL", st.session_state.backend_url)
timeout_s = st.sidebar.slider("Timeout (seconds)", 30, 300, 60, 30)

st.sidebar.markdown("---")
if st.sidebar.button("🧹 Clear session (restart)"):
    st.session_state.graph = None
    st.session_state.tracker.clear()
    clear_chat()
    st.session_state.uploader_key += 1
    st.rerun()

# -------------------- Upload --------------------
uploaded = st.file_uploader(
    "📤 Upload labelled transactions (CSV)", type=["csv"], key=f"uploader_{st.session_state.uploader_key}"
)

if uploaded is not None and st.button("🚀 Load graph"):
    files = {"file": (uploaded.name, uploaded.getvalue(), "text/csv")}
    with st.spinner("Loading transactions..."):
        try:
            r = requests.post(f"{st.session_state.backend_url}/graph", files=files, timeout=timeout_s)
        except requests.exceptions.ConnectionError:
            st.error("Cannot reach backend. Ensure FastAPI is running and BACKEND_URL is correct.")
            st.stop()
        except requests.exceptions.ReadTimeout:
            st.error("Backend timed out. Increase timeout.")
            st.stop()

    if r.status_code != 200:
        st.error(f"Backend error ({r.status_code}): {r.text}")
        st.stop()

    st.session_state.graph = r.json()
    st.session_state.tracker.clear()
    clear_chat()
    st.success("✅ Transactions loaded")

graph = st.session_state.graph
if graph is None:
    st.info("Upload the labelled CSV (fraud_gmm, isolation_fraud, fraud_either, fraud_both) to start.")
    st.stop()

# -------------------- Stats --------------------
stats = graph["stats"]
c1, c2, c3, c4 = st.columns(4)
c1.metric("Transactions", f"{stats['total']:,}")
c2.metric("🔴 Both models", f"{stats['both_detected']:,}")
c3.metric("🔵 One model", f"{stats['one_detected']:,}")
c4.metric("⚪ No fraud", f"{stats['none_detected']:,}")

if graph.get("warnings"):
    with st.expander(f"⚠️ Data quality warnings ({len(graph['warnings'])})"):
        for w in graph["warnings"]:
            st.write(f"• {w}")

# -------------------- Graph + Copilot --------------------
nodes = graph["nodes"]
tracker = st.session_state.tracker
left, right = st.columns([0.6, 0.4])

with left:
    st.markdown("### 🕸️ Transaction network")
    tiers = st.multiselect("Show", list(TIER_LABELS), default=list(TIER_LABELS), format_func=TIER_LABELS.get)
    visible = [n for n in nodes if n["tier"] in tiers]
    visible_ids = {n["id"] for n in visible}
    links = [link for link in graph["links"] if link["source"] in visible_ids and link["target"] in visible_ids]
    st.graphviz_chart(graph_dot(visible, links, tracker.selected_id), use_container_width=True)

    options = [None] + [n["id"] for n in visible]
    by_id = {n["id"]: n for n in nodes}
    choice = st.selectbox(
        "Select a transaction",
        options,
        format_func=lambda i: "—" if i is None else f"{i} · {TIER_LABELS[by_id[i]['tier']]}",
    )
    if choice is not None:
        st.dataframe(pd.DataFrame([by_id[choice]["record"]]), width="stretch", hide_index=True)

with right:
    head, btn = st.columns([0.7, 0.3], vertical_alignment="center")
    with head:
        st.markdown("### 🤖 Copilot")
        st.markdown("<div class='small-muted'>AI-Powered Fraud Analysis</div>", unsafe_allow_html=True)
    with btn:
        if st.button("Clear", use_container_width=True):
            clear_chat()
            st.rerun()

    if choice is not None and choice != tracker.selected_id:
        record = TransactionRecord(**by_id[choice]["record"])
        ticket = tracker.select(choice)
        with st.spinner("🔍 Analyzing transaction with AI..."):
            message = request_explanation(st.session_state.backend_url, record, timeout=timeout_s)
        if tracker.resolve(ticket, message):
            st.session_state.messages.append(message)

    for msg in st.session_state.messages:
        render_message(msg)
