"""Tests for the CI workflow document model, rules and scan service."""
from unittest.mock import AsyncMock

import pytest

from workflow_auditor.app.document import (
    MappingNode,
    ScalarNode,
    SequenceNode,
    WorkflowDocumentError,
    collect_uses,
    load_workflow,
)
from workflow_auditor.app.rules import analyze_document, is_unpinned_action, sort_findings
from workflow_auditor.app.service import WorkflowSecurityService, analyze_workflow_text

SHA = "a1b2c3d4e5f6a7b8c9d0a1b2c3d4e5f6a7b8c9d0"


def rule_ids(findings):
    return [finding.rule_id for finding in findings]


class TestDocument:
    def test_on_key_stays_a_string(self):
        doc = load_workflow("on: [push]\njobs: {}\n")
        assert doc.keys() == ["on", "jobs"]
        assert isinstance(doc.get("on"), SequenceNode)

    def test_true_false_still_booleans(self):
        doc = load_workflow("flag: true\nanswer: yes\n")
        assert doc.get("flag") == ScalarNode(True)
        assert doc.get("answer") == ScalarNode("yes")

    def test_non_mapping_document_is_empty(self):
        assert load_workflow("- just\n- a list\n") == MappingNode()
        assert load_workflow("") == MappingNode()

    def test_collect_uses_walks_steps_and_reusable_jobs(self):
        doc = load_workflow(
            """
jobs:
  build:
    steps:
      - uses: actions/checkout@v4
      - run: make
      - uses: actions/setup-node@main
  call:
    uses: acme/workflows/.github/workflows/ci.yml@main
"""
        )
        assert collect_uses(doc.get("jobs")) == [
            "actions/checkout@v4",
            "actions/setup-node@main",
            "acme/workflows/.github/workflows/ci.yml@main",
        ]

    def test_shared_alias_is_not_a_cycle(self):
        doc = load_workflow("base: &runner {runs-on: self-hosted}\njobs:\n  a: *runner\n  b: *runner\n")
        assert doc.get("jobs").get("a") == doc.get("jobs").get("b")

    def test_recursive_alias_is_rejected(self):
        with pytest.raises(WorkflowDocumentError):
            load_workflow("x: &a [*a]\n")

    def test_alias_expansion_is_bounded(self):
        text = (
            "a: &a [x, x, x, x, x, x, x, x, x, x]\n"
            "b: &b [*a, *a, *a, *a, *a, *a, *a, *a, *a, *a]\n"
            "c: &c [*b, *b, *b, *b, *b, *b, *b, *b, *b, *b]\n"
            "d: [*c, *c, *c, *c, *c, *c, *c, *c, *c, *c]\n"
        )
        with pytest.raises(WorkflowDocumentError):
            load_workflow(text)


class TestPinning:
    @pytest.mark.parametrize(
        "uses,unpinned",
        [
            ("actions/checkout@main", True),
            ("actions/checkout@master", True),
            ("actions/checkout@HEAD", True),
            ("actions/checkout@latest", True),
            ("actions/checkout@develop", True),
            ("actions/checkout@feature-x", True),
            ("actions/checkout", True),
            ("actions/checkout@", True),
            ("actions/checkout@v4", False),
            ("actions/checkout@v4.1.2", False),
            ("actions/checkout@4.1", False),
            (f"actions/checkout@{SHA}", False),
            (f"actions/checkout@{SHA.upper()}", False),
            ("./local-action", False),
            ("./.github/actions/setup", False),
        ],
    )
    def test_is_unpinned_action(self, uses, unpinned):
        assert is_unpinned_action(uses) is unpinned


class TestRules:
    def test_pull_request_target_in_list_and_mapping(self):
        for on_block in ("[pull_request_target]", "\n  pull_request_target:\n    types: [opened]"):
            findings = analyze_workflow_text("ci.yml", f"on: {on_block}\njobs: {{}}\n")
            assert rule_ids(findings) == ["ACTIONS_PULL_REQUEST_TARGET"]
            assert findings[0].severity == "HIGH"

    def test_pull_request_target_as_scalar(self):
        findings = analyze_workflow_text("ci.yml", "on: pull_request_target\n")
        assert rule_ids(findings) == ["ACTIONS_PULL_REQUEST_TARGET"]

    def test_write_all_is_critical(self):
        findings = analyze_workflow_text("ci.yml", "on: push\npermissions: write-all\n")
        assert rule_ids(findings) == ["ACTIONS_PERMISSIONS_WRITE_ALL"]
        assert findings[0].severity == "CRITICAL"

    def test_scoped_write_is_high_and_names_scope(self):
        findings = analyze_workflow_text("ci.yml", "on: push\npermissions:\n  contents: write\n  issues: read\n")
        assert rule_ids(findings) == ["ACTIONS_PERMISSIONS_WRITE_SCOPES"]
        assert findings[0].severity == "HIGH"
        assert "contents" in findings[0].message
        assert "issues" not in findings[0].message
        assert findings[0].evidence["write_scopes"] == ["contents"]

    def test_read_only_permissions_produce_nothing(self):
        assert analyze_workflow_text("ci.yml", "on: push\npermissions:\n  contents: read\n") == []

    def test_unpinned_actions_produce_one_summary_finding(self):
        text = """
on: push
jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@main
      - uses: actions/setup-python@v5
      - uses: acme/deploy@master
      - uses: ./local
"""
        findings = analyze_workflow_text(".github/workflows/ci.yml", text)
        assert rule_ids(findings) == ["ACTIONS_UNPINNED_ACTIONS"]
        assert findings[0].severity == "MEDIUM"
        assert findings[0].evidence == {"unpinned": ["actions/checkout@main", "acme/deploy@master"]}
        assert "(2)" in findings[0].message

    def test_self_hosted_runner_one_finding_per_job(self):
        text = """
on: push
jobs:
  a:
    runs-on: self-hosted
  b:
    runs-on: [Self-Hosted, linux]
  c:
    runs-on:
      group: prod
      labels: [self-hosted-gpu]
  d:
    runs-on: ubuntu-latest
"""
        findings = analyze_workflow_text("ci.yml", text)
        assert rule_ids(findings) == ["ACTIONS_SELF_HOSTED_RUNNER"] * 3
        assert [finding.evidence["job_id"] for finding in findings] == ["a", "b", "c"]

    def test_invalid_yaml_is_a_low_parse_error(self):
        findings = analyze_workflow_text("broken.yml", "on: [push\njobs: :\n")
        assert rule_ids(findings) == ["ACTIONS_WORKFLOW_PARSE_ERROR"]
        assert findings[0].severity == "LOW"
        assert findings[0].workflow == "broken.yml"

    def test_recursive_alias_is_a_low_parse_error(self):
        findings = analyze_workflow_text("loop.yml", "on: push\nx: &a [*a]\n")
        assert rule_ids(findings) == ["ACTIONS_WORKFLOW_PARSE_ERROR"]
        assert findings[0].workflow == "loop.yml"

    def test_rules_run_in_fixed_order(self):
        text = """
on: pull_request_target
permissions: write-all
jobs:
  build:
    runs-on: self-hosted
    steps:
      - uses: actions/checkout@main
"""
        findings = analyze_document("ci.yml", load_workflow(text))
        assert rule_ids(findings) == [
            "ACTIONS_PULL_REQUEST_TARGET",
            "ACTIONS_PERMISSIONS_WRITE_ALL",
            "ACTIONS_UNPINNED_ACTIONS",
            "ACTIONS_SELF_HOSTED_RUNNER",
        ]

    def test_sort_findings_is_descending_and_stable(self):
        findings = analyze_workflow_text("a.yml", "on: push\njobs:\n  x:\n    runs-on: self-hosted\n")
        findings += analyze_workflow_text("b.yml", "on: push\npermissions: write-all\n")
        findings += analyze_workflow_text("c.yml", "on: [push\n")
        findings += analyze_workflow_text("d.yml", "on: push\njobs:\n  y:\n    runs-on: self-hosted\n")
        ordered = sort_findings(findings)
        assert [(f.severity, f.workflow) for f in ordered] == [
            ("CRITICAL", "b.yml"),
            ("MEDIUM", "a.yml"),
            ("MEDIUM", "d.yml"),
            ("LOW", "c.yml"),
        ]


class TestWorkflowSecurityService:
    @pytest.mark.asyncio
    async def test_scan_aggregates_and_sorts_across_files(self):
        source = AsyncMock()
        source.default_branch.return_value = "main"
        source.list_workflows.return_value = [".github/workflows/a.yml", ".github/workflows/b.yml"]
        source.fetch_text.side_effect = [
            "on: push\njobs:\n  x:\n    runs-on: self-hosted\n",
            "on: push\npermissions: write-all\n",
        ]

        result = await WorkflowSecurityService(source).scan("https://github.com/acme/app")

        assert result.workflows_scanned == 2
        assert [f.rule_id for f in result.findings] == [
            "ACTIONS_PERMISSIONS_WRITE_ALL",
            "ACTIONS_SELF_HOSTED_RUNNER",
        ]
        source.list_workflows.assert_awaited_once_with("acme", "app", "main")

    @pytest.mark.asyncio
    async def test_explicit_ref_skips_default_branch_lookup(self):
        source = AsyncMock()
        source.list_workflows.return_value = []

        result = await WorkflowSecurityService(source).scan("acme/app", ref="release")

        assert result.workflows_scanned == 0
        assert result.findings == []
        source.default_branch.assert_not_awaited()
        source.list_workflows.assert_awaited_once_with("acme", "app", "release")

    @pytest.mark.asyncio
    async def test_unreadable_file_becomes_parse_error(self):
        source = AsyncMock()
        source.default_branch.return_value = "main"
        source.list_workflows.return_value = [".github/workflows/a.yml"]
        source.fetch_text.side_effect = ValueError("No content for file")

        result = await WorkflowSecurityService(source).scan("acme/app")

        assert result.workflows_scanned == 1
        assert [f.rule_id for f in result.findings] == ["ACTIONS_WORKFLOW_PARSE_ERROR"]

    @pytest.mark.asyncio
    async def test_cyclic_file_does_not_hide_other_findings(self):
        source = AsyncMock()
        source.default_branch.return_value = "main"
        source.list_workflows.return_value = [".github/workflows/a.yml", ".github/workflows/b.yml"]
        source.fetch_text.side_effect = [
            "on: push\npermissions: write-all\n",
            "on: push\nx: &a [*a]\n",
        ]

        result = await WorkflowSecurityService(source).scan("acme/app")

        assert result.workflows_scanned == 2
        assert [(f.rule_id, f.severity, f.workflow) for f in result.findings] == [
            ("ACTIONS_PERMISSIONS_WRITE_ALL", "CRITICAL", ".github/workflows/a.yml"),
            ("ACTIONS_WORKFLOW_PARSE_ERROR", "LOW", ".github/workflows/b.yml"),
        ]

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(self):
        source = AsyncMock()
        source.default_branch.return_value = "main"
        source.list_workflows.side_effect = RuntimeError("api down")

        with pytest.raises(RuntimeError):
            await WorkflowSecurityService(source).scan("acme/app")
