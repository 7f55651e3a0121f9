import io
import json
import logging
from datetime import datetime

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.builder import build_prompts, risk_level
from backend.config import ALLOWED_ORIGINS, LOG_LEVEL, NarrativeServiceConfig
from backend.explainer import explain
from backend.llm_client import ErrorKind, NarrativeClient, NarrativeServiceError
from backend.models import ExplanationOut, NarrativeOut, TransactionRecord
from backend.transactions import (
    MissingColumnsError,
    build_graph,
    detection_stats,
    load_transactions,
    read_csv,
)


# -------- Structured logging ----------
class JsonFormatter(logging.Formatter):
    def format(self, record):
        return json.dumps({
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": "fraud-copilot-backend",
        })


handler = logging.StreamHandler()
handler.setFormatter(JsonFormatter())
logging.basicConfig(level=LOG_LEVEL, handlers=[handler])
logger = logging.getLogger("backend")

app = FastAPI(title="Fraud Graph Copilot", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    ErrorKind.UNREACHABLE: 503,
    ErrorKind.UNAUTHORIZED: 502,
    ErrorKind.EMPTY_RESPONSE: 502,
    ErrorKind.UNKNOWN: 500,
}

_narrative_client = None


def get_narrative_client() -> NarrativeClient:
    global _narrative_client
    if _narrative_client is None:
        _narrative_client = NarrativeClient(NarrativeServiceConfig.from_env())
    return _narrative_client


@app.exception_handler(NarrativeServiceError)
async def narrative_error_handler(request: Request, exc: NarrativeServiceError):
    return JSONResponse(status_code=ERROR_STATUS[exc.kind], content={"error": exc.to_dict()})


@app.get("/health")
def health(client: NarrativeClient = Depends(get_narrative_client)):
    return {"status": "ok", "model": client.config.model, "has_api_key": client.has_api_key}


@app.get("/ping")
def ping():
    return {"pong": True}


@app.post("/graph")
async def graph(file: UploadFile = File(...)):
    if not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a CSV file.")

    content = await file.read()
    try:
        df = read_csv(io.BytesIO(content))
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"CSV parsing error: {e}")

    if df.empty:
        raise HTTPException(status_code=400, detail="CSV is empty.")

    try:
        records, warnings = load_transactions(df)
    except MissingColumnsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Loaded {len(records)} transactions from {file.filename} ({len(warnings)} warnings)")
    return {
        "meta": {"n_rows": len(df), "n_transactions": len(records)},
        "stats": detection_stats(records),
        **build_graph(records),
        "warnings": warnings,
    }


@app.post("/narrative", response_model=NarrativeOut)
def narrative(record: TransactionRecord, client: NarrativeClient = Depends(get_narrative_client)):
    prompts = build_prompts(record)
    result = client.generate(prompts.system, prompts.user)
    return NarrativeOut(
        text=result.text,
        transaction_id=record.transaction_id,
        account_id=record.account_id,
        amount=record.amount,
        risk_level=risk_level(record.flags),
        truncated=result.truncated,
        warnings=record.flags.violations(),
    )


@app.post("/explain", response_model=ExplanationOut)
def explain_transaction(record: TransactionRecord, client: NarrativeClient = Depends(get_narrative_client)):
    result = explain(record, client)
    return ExplanationOut(
        transaction_id=record.transaction_id,
        account_id=record.account_id,
        amount=record.amount,
        **result.to_dict(),
    )
