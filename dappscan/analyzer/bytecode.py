"""Heuristic bytecode pattern scanning.

This is pattern matching over the raw hex text, not disassembly: opcode bytes
are searched for anywhere in the string, including inside PUSH data and
metadata. Callers only depend on `extract_selectors`, `detect_proxy` and
`find_risks`, so a real disassembler can replace this module later.
"""

from __future__ import annotations

import re
from typing import Iterable

from ..config import DEFAULT_DANGEROUS_FUNCTIONS, DEFAULT_LARGE_CONTRACT_THRESHOLD

# PUSH4 (0x63) followed by exactly four bytes
PUSH4_SELECTOR = re.compile(r"63([a-fA-F0-9]{8})")

DANGEROUS_OPCODES: dict[str, str] = {
    "ff": "SELFDESTRUCT - Contract can be destroyed",
    "f4": "DELEGATECALL - Dangerous proxy pattern detected",
    "f1": "CALL - External calls detected",
    "f2": "CALLCODE - Legacy external call pattern",
}

PROXY_PATTERNS: tuple[str, ...] = (
    "6010600a",  # common proxy initialization
    "f4",  # DELEGATECALL
    "60008060208180",  # common proxy deployment
)

PROXY_FINDING = "Proxy contract detected - Implementation can be changed"
LARGE_CONTRACT_FINDING = "Large contract size - High complexity detected"
DANGEROUS_FUNCTION_FINDING = "Dangerous function detected: {signature}"


def extract_selectors(bytecode: str) -> list[str]:
    """Return candidate function selectors in first-occurrence order, without duplicates."""
    seen: dict[str, None] = {}
    for match in PUSH4_SELECTOR.finditer(bytecode or ""):
        seen.setdefault(f"0x{match.group(1).lower()}", None)
    return list(seen)


def detect_proxy(bytecode: str) -> bool:
    """
    Cheap proxy predicate.

    Over-approximates: any `f4` byte pair anywhere in the hex text counts, so
    plenty of non-proxy contracts match.
    """
    lowered = (bytecode or "").lower()
    return any(pattern in lowered for pattern in PROXY_PATTERNS)


def find_risks(
    bytecode: str,
    functions: Iterable[str],
    *,
    dangerous_functions: Iterable[str] = DEFAULT_DANGEROUS_FUNCTIONS,
    large_contract_threshold: int = DEFAULT_LARGE_CONTRACT_THRESHOLD,
) -> list[str]:
    """Compute the ordered risk findings for one contract."""
    risks: list[str] = []
    lowered = (bytecode or "").lower()

    for opcode, description in DANGEROUS_OPCODES.items():
        if opcode in lowered:
            risks.append(description)

    if detect_proxy(lowered):
        risks.append(PROXY_FINDING)

    keywords = [keyword.lower() for keyword in dangerous_functions]
    for signature in functions:
        name = signature.lower()
        for keyword in keywords:
            if keyword in name:
                risks.append(DANGEROUS_FUNCTION_FINDING.format(signature=signature))

    if len(bytecode or "") > large_contract_threshold:
        risks.append(LARGE_CONTRACT_FINDING)

    return risks
