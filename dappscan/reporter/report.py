"""
Report builder for dappscan.

Assembles the renderer-ready report object consumed by the CLI, the HTTP API
and the report store. The risk summary is computed here, everything else is a
reshaping of the findings.
"""

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

from ..analyzer.browser_models import FrontendFindings
from ..analyzer.contracts import ContractFindings
from ..analyzer.risk import score
from ..constants import REPORT_METADATA, VERSION

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_scan_id(now_ms: Optional[int] = None) -> str:
    """scan_<base36 millisecond timestamp>_<6 random base36 chars>"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"scan_{to_base36(now_ms)}_{suffix}"


def build_report(
    *,
    url: str,
    frontend: FrontendFindings,
    contracts: ContractFindings,
    scan_id: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> dict:
    """Build the full report with fixed top-level keys."""
    scan_id = scan_id or generate_scan_id()
    risk_summary = score(frontend, contracts)
    logger.info("Generating security report: %s", scan_id)

    return {
        "scanId": scan_id,
        "url": url,
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "frontendAnalysis": {
            "summary": {
                "buttonsAnalyzed": len(frontend.buttons),
                "walletInteractions": len(frontend.wallet_interactions),
                "externalScripts": len(frontend.external_scripts),
                "apiCalls": len(frontend.api_calls),
            },
            "buttons": [
                {
                    "text": button.text,
                    "action": button.action,
                    "risk": str(button.risk),
                    "element": button.tag_name,
                }
                for button in frontend.buttons
            ],
            "signatures": list(frontend.signatures),
            "apiCalls": list(frontend.api_calls),
            "externalScripts": list(frontend.external_scripts),
            "walletInteractions": [call.to_dict() for call in frontend.wallet_interactions],
        },
        "contractAnalysis": {
            "summary": {
                "contractsFound": len(contracts.addresses),
                "verifiedContracts": contracts.verified_count,
                "functionsDetected": len(contracts.functions),
                "risksIdentified": len(contracts.risks),
            },
            **contracts.to_dict(),
        },
        "riskSummary": risk_summary.to_dict(),
        "metadata": {
            "analysisMethod": REPORT_METADATA["analysisMethod"],
            "tools": list(REPORT_METADATA["tools"]),
            "disclaimers": list(REPORT_METADATA["disclaimers"]),
        },
    }


def summarize_report(report: dict) -> dict:
    """Compact listing entry for a stored report."""
    risk = report.get("riskSummary") or {}
    return {
        "scanId": report.get("scanId"),
        "url": report.get("url"),
        "timestamp": report.get("timestamp"),
        "riskLevel": risk.get("level"),
        "score": risk.get("score"),
    }
