# --- limx: Step-by-step Limit Calculator API (FastAPI) -------------------------
# Purpose: Minimal API that computes a limit with its explanation trail, plus
# the helper endpoints a front end needs (validation, catalog, examples, syntax).
# ------------------------------------------------------------------------------

from __future__ import annotations
import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from limx.catalog import Catalog, CatalogError, load_examples
from limx.config import Settings
from limx.engine import LimitEngine
from limx.log import configure_logging, get_logger
from limx.validation import SYNTAX_HELP, auto_correct, validate_expression

# Load .env / LIMX_* settings and configure structured logging once
_settings = Settings.from_env()
configure_logging(_settings.log_level, format_json=_settings.log_json)
logger = get_logger(__name__)

app = FastAPI(title="limx Limit Calculator API")

# Initialize catalog + engine from YAML
try:
    _catalog = Catalog.from_file(_settings.catalog_path)
except (OSError, CatalogError) as e:
    logger.error("catalog_load_failed", path=_settings.catalog_path, error=str(e))
    raise
_engine = LimitEngine(_catalog, _settings)

# ----------------------------- Schemas ----------------------------------------
class LimitRequest(BaseModel):
    # Function of x, limit point ("0", "oo", "-inf", ...) and direction.
    function: str
    point: str
    direction: str = "both"

class ValidateRequest(BaseModel):
    expression: str

# ----------------------------- Routes -----------------------------------------
@app.get("/health")
def health(): return {"ok": True}

@app.get("/catalog")
def list_catalog():
    """List the fundamental limits recognized before any classification."""
    items = _catalog.list_entries()
    return {"count": len(items), "items": items}

@app.get("/examples")
def list_examples():
    items = load_examples()
    return {"count": len(items), "items": items}

@app.get("/syntax")
def syntax(): return {"help": SYNTAX_HELP}

@app.post("/limit")
def limit(req: LimitRequest):
    """
    Compute the limit. Input errors are reported in the payload (value "Error",
    kind "error") rather than as HTTP errors, so a front end can show the steps.
    """
    res = _engine.calculate(req.function, req.point, req.direction)
    payload = res.to_dict()
    payload["ok"] = not payload["metadata"]["has_error"]
    return payload

@app.post("/validate")
def validate(req: ValidateRequest):
    if len(req.expression) > 500:
        raise HTTPException(status_code=413, detail="Expression too long.")
    report = validate_expression(req.expression)
    return {**report.to_dict(), "corrected": auto_correct(req.expression)}


def run():
    """Serve the API with uvicorn on API_HOST/API_PORT."""
    uvicorn.run(app, host=_settings.api_host, port=_settings.api_port, log_level=_settings.log_level.lower())


if __name__ == "__main__":
    run()
