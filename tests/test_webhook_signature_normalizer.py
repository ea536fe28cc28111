"""Tests for webhook signature checks and event normalization."""
import pytest

from webhook_gateway.app.normalizer import normalize_event, should_trigger
from webhook_gateway.app.signature import compute_signature, verify_signature

BODY = b'{"zen": "Keep it logically awesome."}'
REPO = {"html_url": "https://github.com/acme/app"}
SENDER = {"login": "octocat"}


class TestSignature:
    def test_valid_signature(self):
        assert verify_signature("s3cret", BODY, compute_signature("s3cret", BODY))

    def test_header_format(self):
        assert compute_signature("s3cret", BODY).startswith("sha256=")
        assert len(compute_signature("s3cret", BODY)) == len("sha256=") + 64

    @pytest.mark.parametrize(
        "header",
        [None, "", "sha256=deadbeef", "sha1=" + "0" * 40, compute_signature("other", BODY)],
    )
    def test_invalid_signatures(self, header):
        assert verify_signature("s3cret", BODY, header) is False

    def test_reserialized_body_fails(self):
        header = compute_signature("s3cret", BODY)
        assert verify_signature("s3cret", b'{"zen":"Keep it logically awesome."}', header) is False


class TestNormalize:
    def test_ping_never_triggers(self):
        event = normalize_event("ping", {"repository": REPO, "sender": SENDER}, delivery="d-1")
        assert event.type == "ping"
        assert event.repo_url == "https://github.com/acme/app"
        assert event.delivery == "d-1"
        assert should_trigger(event) is False

    def test_push_extracts_branch(self):
        event = normalize_event("push", {"repository": REPO, "sender": SENDER, "ref": "refs/heads/feature/x"})
        assert (event.type, event.branch, event.sender) == ("push", "feature/x", "octocat")
        assert should_trigger(event) is True

    def test_pull_request_fields(self):
        payload = {
            "action": "opened",
            "repository": REPO,
            "sender": SENDER,
            "pull_request": {"number": 7, "title": "Bump deps", "base": {"ref": "main"}, "head": {"ref": "deps"}},
        }
        event = normalize_event("pull_request", payload)
        assert event.type == "pull_request"
        assert (event.action, event.pr_number, event.pr_title, event.base, event.head) == (
            "opened",
            7,
            "Bump deps",
            "main",
            "deps",
        )

    def test_workflow_run_fields(self):
        payload = {
            "action": "completed",
            "repository": REPO,
            "workflow_run": {"name": "CI", "status": "completed", "conclusion": "failure", "head_branch": "main"},
        }
        event = normalize_event("workflow_run", payload)
        assert (event.name, event.status, event.conclusion, event.branch) == ("CI", "completed", "failure", "main")
        assert event.sender is None

    def test_missing_repository_is_unknown(self):
        event = normalize_event("push", {"ref": "refs/heads/main"})
        assert event.type == "unknown"
        assert event.event_name == "push"
        assert event.repo_url is None
        assert should_trigger(event) is False

    def test_non_object_payload_is_unknown(self):
        assert normalize_event("push", ["not", "a", "dict"]).type == "unknown"

    def test_other_event_with_repository_keeps_its_name(self):
        event = normalize_event("release", {"repository": REPO})
        assert event.type == "release"
        assert should_trigger(event) is True

    def test_dump_omits_empty_fields(self):
        record = normalize_event("push", {"repository": REPO, "ref": "refs/heads/main"}).model_dump(
            mode="json", exclude_none=True
        )
        assert set(record) == {"type", "repo_url", "branch", "received_at"}
