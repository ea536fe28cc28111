"""워크플로 보안 규칙(Workflow security rules).

Rules run in the order of :data:`WORKFLOW_RULES` and each returns zero or
more findings for a single workflow document.
"""
from __future__ import annotations

import re
from typing import Callable, List, Sequence, Tuple

from .document import MappingNode, Node, ScalarNode, collect_uses, scalar_texts
from .models import SEVERITY_RANK, Finding

Rule = Callable[[str, MappingNode], List[Finding]]

UNTRUSTED_TRIGGER = "pull_request_target"
MUTABLE_REFS = frozenset({"main", "master", "head", "latest", "dev", "develop", "trunk"})

_COMMIT_SHA = re.compile(r"^[a-f0-9]{40}$", re.IGNORECASE)
_VERSION_TAG = re.compile(r"^v?\d+(\.\d+){0,2}$", re.IGNORECASE)


def is_unpinned_action(uses: str) -> bool:
    """액션 고정 여부(True unless local, commit-pinned or version-tagged)."""

    reference = uses.strip()
    if reference.startswith("./"):
        return False

    at = reference.rfind("@")
    if at == -1:
        return True

    ref = reference[at + 1 :].strip()
    if not ref or ref.lower() in MUTABLE_REFS:
        return True
    if _COMMIT_SHA.match(ref) or _VERSION_TAG.match(ref):
        return False
    return True


def trigger_names(doc: MappingNode) -> List[str]:
    """트리거 이름 목록(Event names from the ``on`` block in any of its forms)."""

    on_block = doc.get("on")
    if isinstance(on_block, MappingNode):
        return on_block.keys()
    return scalar_texts(on_block)


def check_untrusted_trigger(path: str, doc: MappingNode) -> List[Finding]:
    if UNTRUSTED_TRIGGER not in (name.lower() for name in trigger_names(doc)):
        return []
    on_block = doc.get("on")
    return [
        Finding(
            severity="HIGH",
            rule_id="ACTIONS_PULL_REQUEST_TARGET",
            workflow=path,
            message="Workflow uses pull_request_target, which can expose secrets to untrusted code if misused.",
            evidence={"on": on_block.to_python() if on_block is not None else None},
            recommendation=(
                "Prefer pull_request for forks. If pull_request_target is necessary, avoid checking out "
                "untrusted code and restrict permissions/secrets."
            ),
        )
    ]


def check_permissions(path: str, doc: MappingNode) -> List[Finding]:
    permissions = doc.get("permissions")
    if isinstance(permissions, ScalarNode) and permissions.text().lower() == "write-all":
        return [
            Finding(
                severity="CRITICAL",
                rule_id="ACTIONS_PERMISSIONS_WRITE_ALL",
                workflow=path,
                message="Workflow sets permissions: write-all.",
                evidence={"permissions": permissions.to_python()},
                recommendation=(
                    "Use least privilege, e.g. permissions: { contents: read }. "
                    "Grant write only for specific scopes when required."
                ),
            )
        ]

    if not isinstance(permissions, MappingNode):
        return []

    write_scopes = [
        scope
        for scope, access in permissions.items()
        if isinstance(access, ScalarNode) and access.text().lower() == "write"
    ]
    if not write_scopes:
        return []
    return [
        Finding(
            severity="HIGH",
            rule_id="ACTIONS_PERMISSIONS_WRITE_SCOPES",
            workflow=path,
            message=f"Workflow grants write permissions to: {', '.join(write_scopes)}.",
            evidence={"permissions": permissions.to_python(), "write_scopes": write_scopes},
            recommendation=(
                "Reduce to least privilege. For most CI: contents: read is enough. "
                "Add write scopes only for release/publish jobs."
            ),
        )
    ]


def check_unpinned_actions(path: str, doc: MappingNode) -> List[Finding]:
    unpinned = [uses for uses in collect_uses(doc.get("jobs")) if is_unpinned_action(uses)]
    if not unpinned:
        return []
    return [
        Finding(
            severity="MEDIUM",
            rule_id="ACTIONS_UNPINNED_ACTIONS",
            workflow=path,
            message=f"Workflow uses unpinned or branch-referenced actions ({len(unpinned)}).",
            evidence={"unpinned": unpinned},
            recommendation=(
                "Pin third-party actions to a commit SHA (best) or at least a stable version tag (e.g. v3). "
                "Avoid @main/@master."
            ),
        )
    ]


def _runner_labels(runs_on: Node | None) -> List[str]:
    if isinstance(runs_on, MappingNode):
        return scalar_texts(runs_on.get("labels")) + scalar_texts(runs_on.get("group"))
    return scalar_texts(runs_on)


def check_self_hosted_runners(path: str, doc: MappingNode) -> List[Finding]:
    jobs = doc.get("jobs")
    if not isinstance(jobs, MappingNode):
        return []

    findings: List[Finding] = []
    for job_id, job in jobs.items():
        if not isinstance(job, MappingNode):
            continue
        runs_on = job.get("runs-on")
        if not any("self-hosted" in label.lower() for label in _runner_labels(runs_on)):
            continue
        findings.append(
            Finding(
                severity="MEDIUM",
                rule_id="ACTIONS_SELF_HOSTED_RUNNER",
                workflow=path,
                message=f'Job "{job_id}" runs on self-hosted runner.',
                evidence={"job_id": job_id, "runs-on": runs_on.to_python() if runs_on is not None else None},
                recommendation=(
                    "Ensure self-hosted runners are isolated and not used for untrusted PRs. "
                    "Prefer ephemeral runners; harden network/credentials."
                ),
            )
        )
    return findings


WORKFLOW_RULES: Tuple[Rule, ...] = (
    check_untrusted_trigger,
    check_permissions,
    check_unpinned_actions,
    check_self_hosted_runners,
)


def analyze_document(path: str, doc: MappingNode, rules: Sequence[Rule] = WORKFLOW_RULES) -> List[Finding]:
    """규칙 적용(Apply the ordered rule set to one workflow document)."""

    findings: List[Finding] = []
    for rule in rules:
        findings.extend(rule(path, doc))
    return findings


def parse_error_finding(path: str, error: Exception) -> Finding:
    return Finding(
        severity="LOW",
        rule_id="ACTIONS_WORKFLOW_PARSE_ERROR",
        workflow=path,
        message=f"Could not parse/analyze workflow: {error}",
        recommendation="Ensure workflow YAML is valid and accessible via the API.",
    )


def sort_findings(findings: Sequence[Finding]) -> List[Finding]:
    """심각도 내림차순 정렬(Stable sort, CRITICAL first)."""

    return sorted(findings, key=lambda finding: SEVERITY_RANK[finding.severity], reverse=True)
