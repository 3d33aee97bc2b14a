"""Cross-source divergence reporter.

Resolves every source of a ``ReportRequest``, compares the extracted content
and turns the outcome into findings, recommended actions and a verdict. A
failing source never aborts the report; it is recorded as missing instead.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agent_bridge.config import get_config
from agent_bridge.errors import (
    BridgeError,
    BridgeIOError,
    InvalidHandoffError,
    UnsupportedAgentError,
    UnsupportedModeError,
)
from agent_bridge.models import (
    REPORT_MODES,
    AgentName,
    Finding,
    Report,
    ReportRequest,
    Session,
    SourceSpec,
)
from agent_bridge.resolver import resolve_session

logger = logging.getLogger(__name__)

HANDOFF_FIELDS = frozenset({"mode", "task", "success_criteria", "sources", "constraints"})
SUPPORTED_AGENTS = tuple(agent.value for agent in AgentName)

COMPARE_TASK = "Compare agent outputs"
COMPARE_CRITERIA = [
    "Identify agreements and contradictions",
    "Highlight unavailable sources",
]

ACTION_MISSING = "Provide valid session identifiers or cwd values for unavailable sources."
ACTION_DIVERGENT = "Inspect full transcripts for diverging sources before final decisions."
ACTION_NONE = "No immediate action required."

MODE_VERDICTS = {
    "steer": "STEERING_PLAN_READY",
    "analyze": "ANALYSIS_COMPLETE",
    "feedback": "FEEDBACK_COMPLETE",
}


@dataclass
class _Resolved:
    source: SourceSpec
    session: Session
    evidence: str


@dataclass
class _Missing:
    source: SourceSpec
    error: str
    evidence: str


def _validate_agent(agent: str) -> str:
    agent = agent.strip().lower()
    if agent not in SUPPORTED_AGENTS:
        raise UnsupportedAgentError(f"Unsupported agent: {agent}")
    return agent


def _validate_mode(mode: str) -> str:
    mode = mode.strip().lower()
    if mode not in REPORT_MODES:
        raise UnsupportedModeError(f"Unsupported mode: {mode}")
    return mode


def evidence_tag(source: SourceSpec) -> str:
    """Short citation for a source: ``[agent:<first 8 of id>]`` or ``[agent:latest]``."""
    if source.session_id:
        label = source.session_id[:8]
    elif source.current_session:
        label = "latest"
    else:
        label = "unspecified"
    return f"[{source.agent}:{label}]"


def parse_source_arg(raw: str) -> SourceSpec:
    """Parse an ``agent[:session_id]`` command-line source.

    Raises:
        UnsupportedAgentError: If the agent is not supported.
    """
    agent, _, session_id = raw.partition(":")
    agent = _validate_agent(agent)
    session_id = session_id.strip() or None
    return SourceSpec(agent=agent, session_id=session_id, current_session=session_id is None)


def compare_request(sources: list[SourceSpec], normalize: bool = False) -> ReportRequest:
    """Build the analyze-mode request used to compare agent outputs."""
    return ReportRequest(
        mode="analyze",
        task=COMPARE_TASK,
        success_criteria=list(COMPARE_CRITERIA),
        sources=sources,
        constraints=[],
        normalize=normalize,
    )


def load_handoff(path: str | Path) -> ReportRequest:
    """Load a report request from a handoff JSON file.

    Args:
        path: Path to the handoff file.

    Returns:
        The validated request.

    Raises:
        InvalidHandoffError: If the file is oversized, not UTF-8 JSON, has unknown
            keys or misses required fields.
        UnsupportedAgentError: If a source names an unknown agent.
        UnsupportedModeError: If the mode is unknown.
        BridgeIOError: If the file cannot be read.
    """
    path = Path(path)
    max_size = get_config().limits.max_handoff_size
    try:
        size = path.stat().st_size
        if size > max_size:
            raise InvalidHandoffError(
                f"Invalid handoff: file exceeds {max_size // (1024 * 1024)}MB size limit"
            )
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidHandoffError(f"Invalid handoff: {path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise BridgeIOError(f"Failed to read handoff file: {path}: {exc}") from exc

    try:
        root = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidHandoffError(f"Failed to parse handoff JSON: {path}: {exc}") from exc

    if not isinstance(root, dict):
        raise InvalidHandoffError("Invalid handoff: must be a JSON object")

    extra = [key for key in root if key not in HANDOFF_FIELDS]
    if extra:
        raise InvalidHandoffError(f"Invalid handoff: unexpected fields: {', '.join(extra)}")

    mode = root.get("mode")
    if not isinstance(mode, str):
        raise InvalidHandoffError("Handoff is missing required string field: mode")
    mode = _validate_mode(mode)

    task = root.get("task")
    if not isinstance(task, str):
        raise InvalidHandoffError("Handoff is missing required string field: task")

    criteria = root.get("success_criteria")
    if not isinstance(criteria, list):
        raise InvalidHandoffError("Handoff is missing required array field: success_criteria")
    success_criteria = [c for c in criteria if isinstance(c, str)]
    if not success_criteria:
        raise InvalidHandoffError("Handoff success_criteria must contain at least one string")

    raw_sources = root.get("sources")
    if not isinstance(raw_sources, list):
        raise InvalidHandoffError("Handoff is missing required array field: sources")

    sources = [_handoff_source(entry) for entry in raw_sources]

    constraints = root.get("constraints")
    if not isinstance(constraints, list):
        constraints = []

    try:
        return ReportRequest(
            mode=mode,
            task=task,
            success_criteria=success_criteria,
            sources=sources,
            constraints=[c for c in constraints if isinstance(c, str)],
        )
    except ValidationError as exc:
        raise InvalidHandoffError(f"Invalid handoff: {exc}") from exc


def _handoff_source(entry: Any) -> SourceSpec:
    if not isinstance(entry, dict) or not isinstance(entry.get("agent"), str):
        raise InvalidHandoffError("Each source must include string field: agent")
    agent = _validate_agent(entry["agent"])

    session_id = entry.get("session_id")
    session_id = session_id if isinstance(session_id, str) else None
    current_session = entry.get("current_session") is True
    if session_id is None and not current_session:
        raise InvalidHandoffError(
            "Each source must provide session_id or set current_session=true"
        )

    cwd = entry.get("cwd")
    return SourceSpec(
        agent=agent,
        session_id=session_id,
        current_session=current_session,
        cwd=cwd if isinstance(cwd, str) else None,
    )


def _normalize_content(text: str) -> str:
    return " ".join(text.split())


def _compute_verdict(mode: str, missing: int, unique_contents: int, successes: int) -> str:
    if successes == 0:
        return "INCOMPLETE"
    if mode == "verify":
        return "PASS" if missing == 0 and unique_contents <= 1 else "FAIL"
    return MODE_VERDICTS.get(mode, "INCOMPLETE")


def build_report(request: ReportRequest, default_cwd: str) -> Report:
    """Resolve every source of ``request`` and compare their content.

    Args:
        request: The validated report request.
        default_cwd: Working directory used by sources that do not set one.

    Returns:
        The structured report. Source failures appear as findings, never as
        exceptions.
    """
    resolved: list[_Resolved] = []
    missing: list[_Missing] = []

    for source in request.sources:
        evidence = evidence_tag(source)
        try:
            session = resolve_session(
                source.agent,
                session_id=source.session_id,
                cwd=source.cwd or default_cwd,
                explicit_dir=source.chats_dir,
            )
        except (BridgeError, OSError) as exc:
            logger.debug("Source %s unavailable: %s", evidence, exc)
            missing.append(_Missing(source=source, error=str(exc), evidence=evidence))
        else:
            resolved.append(_Resolved(source=source, session=session, evidence=evidence))

    findings: list[Finding] = []
    for item in missing:
        findings.append(
            Finding(
                severity="P1",
                summary=f"Source unavailable: {item.source.agent} ({item.error})",
                evidence=[item.evidence],
                confidence=0.9,
            )
        )
    for item in resolved:
        for warning in item.session.warnings:
            findings.append(
                Finding(
                    severity="P2",
                    summary=f"Source warning: {warning}",
                    evidence=[item.evidence],
                    confidence=0.75,
                )
            )

    unique_contents = set()
    for item in resolved:
        text = item.session.content.strip()
        unique_contents.add(_normalize_content(text) if request.normalize else text)

    all_evidence = [item.evidence for item in resolved]
    if len(resolved) >= 2:
        if len(unique_contents) > 1:
            findings.append(
                Finding(
                    severity="P1",
                    summary="Divergent agent outputs detected",
                    evidence=all_evidence,
                    confidence=0.75,
                )
            )
        else:
            findings.append(
                Finding(
                    severity="P3",
                    summary="All available agent outputs are aligned",
                    evidence=all_evidence,
                    confidence=0.9,
                )
            )
    else:
        findings.append(
            Finding(
                severity="P2",
                summary="Insufficient comparable sources",
                evidence=all_evidence,
                confidence=0.5,
            )
        )

    actions: list[str] = []
    if missing:
        actions.append(ACTION_MISSING)
    if len(unique_contents) > 1:
        actions.append(ACTION_DIVERGENT)
    if request.constraints:
        actions.append(
            f"Verify recommendations against constraints: {'; '.join(request.constraints)}."
        )
    if not actions:
        actions.append(ACTION_NONE)

    return Report(
        mode=request.mode,
        task=request.task,
        success_criteria=list(request.success_criteria),
        sources_used=[f"{item.evidence} {item.session.source}" for item in resolved],
        verdict=_compute_verdict(request.mode, len(missing), len(unique_contents), len(resolved)),
        findings=findings,
        recommended_next_actions=actions,
        open_questions=[f"Missing source {item.source.agent}: {item.error}" for item in missing],
    )


def report_to_markdown(report: Report) -> str:
    """Render a report as Markdown."""
    lines = [
        "### Agent Bridge Coordinator Report",
        "",
        f"**Mode:** {report.mode}",
        f"**Task:** {report.task}",
        "**Success Criteria:**",
    ]
    lines.extend(f"- {criterion}" for criterion in report.success_criteria)

    lines.extend(["", "**Sources Used:**"])
    lines.extend(f"- {source}" for source in report.sources_used)

    lines.extend(["", f"**Verdict:** {report.verdict}", "", "**Findings:**"])
    for finding in report.findings:
        lines.append(
            f"- **{finding.severity}:** {finding.summary} "
            f"(evidence: {', '.join(finding.evidence)}; confidence: {finding.confidence:.2f})"
        )

    lines.extend(["", "**Recommended Next Actions:**"])
    lines.extend(f"{i}. {action}" for i, action in enumerate(report.recommended_next_actions, 1))

    if report.open_questions:
        lines.extend(["", "**Open Questions:**"])
        lines.extend(f"- {question}" for question in report.open_questions)

    return "\n".join(lines)
