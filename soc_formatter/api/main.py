"""
SOC Alert Formatter - Main API Server

FastAPI application exposing the alert formatting and whitelist engine.
Callers pass stored templates, mappings and rules in the request body; the
service keeps no state of its own.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from soc_formatter.config import get_settings
from soc_formatter.engine import report
from soc_formatter.engine.sheet_import import entries_to_rules, parse_sheet
from soc_formatter.engine.template_builder import learn_template
from soc_formatter.engine.whitelist_matcher import check_alert
from soc_formatter.engine.whitelist_parser import parse_whitelist_text
from soc_formatter.models.engine_io import (
    FormatInput,
    ImportSheetInput,
    ImportSheetOutput,
    LearnTemplateInput,
    ParseWhitelistInput,
    WhitelistCheckInput,
)
from soc_formatter.models.report import FormatResult
from soc_formatter.models.template import AlertFormatTemplate
from soc_formatter.models.whitelist import WhitelistDecision, WhitelistRule

VERSION = "1.0.0"

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SOC Alert Formatter API",
    description="Alert report formatting and whitelist matching for SOC analysts",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "SOC Alert Formatter API", "version": VERSION}


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/api/v1/format", response_model=FormatResult)
async def format_alert(request: FormatInput):
    """
    Render the analyst report for one alert.

    Accepts either a parsed payload or the raw JSON text, plus the stored
    templates and global field mappings to choose from.
    """
    try:
        output = report.run(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return output.result


@app.post("/api/v1/whitelist/parse", response_model=WhitelistRule)
async def parse_whitelist(request: ParseWhitelistInput):
    """Turn an analyst's free-text whitelist note into a structured rule."""
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Whitelist text is required")

    rule = parse_whitelist_text(request.text)
    if not rule.reason.strip():
        raise HTTPException(status_code=400, detail="Could not determine a whitelist reason")

    logger.info("whitelist_parse.complete", extra={"signature": rule.alert_signature})
    return rule


@app.post("/api/v1/whitelist/check", response_model=WhitelistDecision)
async def check_whitelist(request: WhitelistCheckInput):
    """Decide whether an alert is covered by one of the given rules."""
    return check_alert(request.alert_data, request.rules)


@app.post("/api/v1/whitelist/import-sheet", response_model=ImportSheetOutput)
async def import_sheet(request: ImportSheetInput):
    """Parse a whitelist spreadsheet export and derive rules from its rows."""
    entries = parse_sheet(request.csv_text)
    return ImportSheetOutput(entries=entries, rules=entries_to_rules(entries))


@app.post("/api/v1/templates/learn", response_model=AlertFormatTemplate)
async def learn_format(request: LearnTemplateInput):
    """Build a template from a sample alert and the report it should produce."""
    if not request.expected_format.strip():
        raise HTTPException(status_code=400, detail="Expected format is required")
    try:
        return learn_template(request.sample_payload, request.expected_format)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
