"""Tests for deterministic risk aggregation."""

from conftest import make_contracts, make_frontend, make_record

from dappscan.analyzer.risk import NO_CONTRACTS_ISSUE, NO_ISSUES, finding_penalty, score
from dappscan.constants import ElementRisk, RiskLevel

ADDR_A = "0x" + "a" * 40
ADDR_B = "0x" + "b" * 40


def test_empty_scan_scores_80_safe():
    summary = score(make_frontend(), make_contracts())
    assert summary.score == 80
    assert summary.level == RiskLevel.SAFE
    assert summary.issues == (NO_CONTRACTS_ISSUE,)


def test_mixed_controls_without_contracts_scores_55_warning():
    frontend = make_frontend((ElementRisk.DANGER, ElementRisk.WARNING, ElementRisk.WARNING))
    summary = score(frontend, make_contracts())
    assert summary.score == 55
    assert summary.level == RiskLevel.WARNING
    assert summary.issues == (
        "1 high-risk button(s) detected (wallet transactions)",
        "2 medium-risk button(s) detected (signatures/redirects)",
        NO_CONTRACTS_ISSUE,
    )


def test_score_is_clamped_at_zero():
    frontend = make_frontend((ElementRisk.DANGER,) * 10, external_scripts=5)
    summary = score(frontend, make_contracts())
    assert summary.score == 0
    assert summary.level == RiskLevel.DANGER


def test_external_scripts_threshold_is_strict():
    assert score(make_frontend(external_scripts=3), make_contracts()).score == 80
    summary = score(make_frontend(external_scripts=4), make_contracts())
    assert summary.score == 70
    assert "High number of external scripts (4)" in summary.issues


def test_contract_findings_penalties():
    contracts = make_contracts(
        make_record(
            ADDR_A,
            verified=False,
            risks=(
                "SELFDESTRUCT - Contract can be destroyed",
                "DELEGATECALL - Dangerous proxy pattern detected",
                "CALL - External calls detected",
            ),
        ),
    )
    summary = score(make_frontend(), contracts)
    # 100 - 10 (unverified) - 20 - 15 - 5
    assert summary.score == 50
    assert summary.level == RiskLevel.WARNING
    assert summary.issues[0] == "1 unverified contract(s) detected"


def test_finding_penalty_markers_are_case_sensitive():
    assert finding_penalty("Proxy contract detected - Implementation can be changed") == 20
    assert finding_penalty("Dangerous function detected: transferOwnership(address)") == 15
    assert finding_penalty("selfdestruct mentioned in lowercase") == 5
    assert finding_penalty("Failed to analyze contract 0x0: boom") == 5


def test_clean_verified_scan_prepends_verified_count():
    contracts = make_contracts(make_record(ADDR_A, verified=True), make_record(ADDR_B, verified=True))
    summary = score(make_frontend((ElementRisk.SAFE,)), contracts)
    assert summary.score == 100
    assert summary.level == RiskLevel.SAFE
    assert summary.issues == ("2 verified contract(s) found", NO_ISSUES)


def test_verified_count_added_after_real_issues():
    contracts = make_contracts(make_record(ADDR_A, verified=True), make_record(ADDR_B, verified=False))
    summary = score(make_frontend(), contracts)
    assert summary.issues == ("1 verified contract(s) found", "1 unverified contract(s) detected")
    assert summary.score == 90


def test_level_breakpoints_are_inclusive():
    assert RiskLevel.from_score(80) == RiskLevel.SAFE
    assert RiskLevel.from_score(79) == RiskLevel.WARNING
    assert RiskLevel.from_score(50) == RiskLevel.WARNING
    assert RiskLevel.from_score(49) == RiskLevel.DANGER


def test_score_is_deterministic():
    frontend = make_frontend((ElementRisk.WARNING,), external_scripts=6)
    contracts = make_contracts(make_record(ADDR_A, risks=("Proxy contract detected - Implementation can be changed",)))
    first = score(frontend, contracts)
    second = score(frontend, contracts)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_summary_text_mentions_score_and_issue_count():
    summary = score(make_frontend(), make_contracts())
    assert summary.to_dict()["summary"].endswith("Security score: 80/100. 1 issue(s) identified.")
    assert summary.to_dict()["level"] == "safe"
