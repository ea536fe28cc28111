"""Tests for governance action recommendations."""
import pytest

from action_recommender.app.service import recommend_actions
from repo_scanner.app.models import ScanFindings


@pytest.mark.parametrize(
    "overall,expected",
    [("High", "BLOCK_PR"), ("Medium", "COMMENT"), ("Low", "PASS")],
)
def test_exactly_one_severity_tier_action(overall, expected):
    actions = recommend_actions(overall, ScanFindings())
    assert [action.type for action in actions] == [expected]


def test_secrets_add_an_alert_listing_paths():
    findings = ScanFindings(secrets=[".env", "deploy/id_rsa"], anomalies=[".github/workflows/ci.yml"])
    actions = recommend_actions("Low", findings)
    assert [action.type for action in actions] == ["ALERT", "PASS"]
    assert actions[0].message == "Secrets found: .env, deploy/id_rsa"


def test_anomalies_alone_do_not_alert():
    actions = recommend_actions("Medium", ScanFindings(anomalies=[".github/workflows/ci.yml"]))
    assert [action.type for action in actions] == ["COMMENT"]
    assert actions[0].message == "Medium risk: review recommended."
