"""Deterministic risk aggregation.

`score()` turns frontend and contract findings into a 0-100 score, a level and
an ordered issue list. It is a pure function: identical inputs always produce
an identical RiskSummary.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import RISK_LEVEL_DESCRIPTIONS, ElementRisk, RiskLevel
from .browser_models import FrontendFindings
from .contracts import ContractFindings

DEFAULT_SCORING = {
    "start": 100,
    "danger_control": 15,
    "warning_control": 5,
    "many_external_scripts": 10,
    "external_scripts_threshold": 3,
    "no_contracts": 20,
    "unverified_contract": 10,
    "critical_finding": 20,
    "high_finding": 15,
    "other_finding": 5,
}

# Substring markers in contract risk findings (case-sensitive)
CRITICAL_MARKERS = ("SELFDESTRUCT", "Proxy")
HIGH_MARKERS = ("DELEGATECALL", "Dangerous function")

NO_CONTRACTS_ISSUE = "No smart contracts detected - may not be a genuine Web3 application"
NO_ISSUES = "No significant security issues detected"


@dataclass(frozen=True)
class RiskSummary:
    """Overall scan verdict."""

    level: RiskLevel
    score: int
    issues: tuple[str, ...]

    @property
    def summary(self) -> str:
        return (
            f"{RISK_LEVEL_DESCRIPTIONS[self.level]} Security score: {self.score}/100. "
            f"{len(self.issues)} issue(s) identified."
        )

    def to_dict(self) -> dict:
        return {
            "level": str(self.level),
            "score": self.score,
            "issues": list(self.issues),
            "summary": self.summary,
        }


def finding_penalty(finding: str, scoring: dict = DEFAULT_SCORING) -> int:
    """Points deducted for one contract risk finding."""
    if any(marker in finding for marker in CRITICAL_MARKERS):
        return scoring["critical_finding"]
    if any(marker in finding for marker in HIGH_MARKERS):
        return scoring["high_finding"]
    return scoring["other_finding"]


def score(
    frontend: FrontendFindings,
    contracts: ContractFindings,
    scoring: dict = DEFAULT_SCORING,
) -> RiskSummary:
    """Combine prober and analyzer output into one RiskSummary."""
    issues: list[str] = []
    total = scoring["start"]

    danger_controls = sum(1 for b in frontend.buttons if b.risk == ElementRisk.DANGER)
    warning_controls = sum(1 for b in frontend.buttons if b.risk == ElementRisk.WARNING)

    if danger_controls:
        issues.append(f"{danger_controls} high-risk button(s) detected (wallet transactions)")
        total -= danger_controls * scoring["danger_control"]

    if warning_controls:
        issues.append(f"{warning_controls} medium-risk button(s) detected (signatures/redirects)")
        total -= warning_controls * scoring["warning_control"]

    script_count = len(frontend.external_scripts)
    if script_count > scoring["external_scripts_threshold"]:
        issues.append(f"High number of external scripts ({script_count})")
        total -= scoring["many_external_scripts"]

    if not contracts.addresses:
        issues.append(NO_CONTRACTS_ISSUE)
        total -= scoring["no_contracts"]

    unverified = contracts.unverified_count
    if unverified:
        issues.append(f"{unverified} unverified contract(s) detected")
        total -= unverified * scoring["unverified_contract"]

    for finding in contracts.risks:
        issues.append(finding)
        total -= finding_penalty(finding, scoring)

    total = max(0, min(100, total))

    if not issues:
        issues.append(NO_ISSUES)

    verified = contracts.verified_count
    if verified:
        issues.insert(0, f"{verified} verified contract(s) found")

    return RiskSummary(level=RiskLevel.from_score(total), score=total, issues=tuple(issues))
