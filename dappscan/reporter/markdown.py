"""Markdown rendering of scan reports."""

from __future__ import annotations


def _bullets(items, fmt=lambda item: f"- {item}", empty: str = "- None") -> str:
    lines = [fmt(item) for item in items or []]
    return "\n".join(lines) if lines else empty


def render_markdown(report: dict) -> str:
    """Render a report produced by `build_report` as Markdown."""
    risk = report["riskSummary"]
    frontend = report["frontendAnalysis"]
    contracts = report["contractAnalysis"]
    fsum = frontend["summary"]
    csum = contracts["summary"]

    addresses = [
        f"- {addr} {'(verified)' if verified else '(unverified)'}"
        for addr, verified in zip(contracts["addresses"], contracts["verified"])
    ]

    sections = [
        "# Web3 dApp Security Report",
        "",
        f"**URL:** {report['url']}  ",
        f"**Scan ID:** {report['scanId']}  ",
        f"**Timestamp:** {report['timestamp']}  ",
        f"**Tool Version:** {report['version']}",
        "",
        "## Risk Summary",
        "",
        f"**Risk Level:** {str(risk['level']).upper()}  ",
        f"**Security Score:** {risk['score']}/100  ",
        "",
        risk.get("summary", ""),
        "",
        "### Issues Identified",
        _bullets(risk["issues"]),
        "",
        "## Frontend Analysis",
        "",
        "### Summary",
        f"- **Interactive Elements:** {fsum['buttonsAnalyzed']}",
        f"- **Wallet Interactions:** {fsum['walletInteractions']}",
        f"- **External Scripts:** {fsum['externalScripts']}",
        f"- **API Calls:** {fsum['apiCalls']}",
        "",
        "### Interactive Elements",
        _bullets(
            frontend["buttons"],
            lambda btn: f"- **{btn['text']}** ({btn['element']}): {btn['action']} - Risk: {btn['risk']}",
        ),
        "",
        "### Signature Requests",
        _bullets(frontend["signatures"]),
        "",
        "### External Scripts",
        _bullets(frontend["externalScripts"]),
        "",
        "## Smart Contract Analysis",
        "",
        "### Summary",
        f"- **Contracts Found:** {csum['contractsFound']}",
        f"- **Verified Contracts:** {csum['verifiedContracts']}",
        f"- **Functions Detected:** {csum['functionsDetected']}",
        f"- **Risks Identified:** {csum['risksIdentified']}",
        "",
        "### Contract Addresses",
        "\n".join(addresses) if addresses else "- None",
        "",
        "### Functions Detected",
        _bullets(contracts["functions"], lambda func: f"- `{func}`"),
        "",
        "### Contract Risks",
        _bullets(contracts["risks"]),
        "",
        "## Disclaimer",
        "",
        _bullets(report["metadata"]["disclaimers"]),
        "",
        "---",
        "",
        f"*Report generated by dappscan v{report['version']} on {report['timestamp']}*",
        "",
    ]
    return "\n".join(sections)
