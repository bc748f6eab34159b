"""
Unit tests for k8s_extension/tools/access.py
"""

from __future__ import annotations

import pytest

from k8s_extension.client import AccessDecision, AccessQuery
from k8s_extension.errors import CapabilityError, ValidationError
from k8s_extension.tools.access import handle_auth_can_i, parse_query, summarize
from tests.conftest import FakeClient

BASE = {"verb": "get", "resource": "pods", "as": "alice"}


def _decide(allowed: bool, reason: str = ""):
    return lambda query: AccessDecision(allowed=allowed, reason=reason)


# ---------------------------------------------------------------------------
# parse_query() / summarize()
# ---------------------------------------------------------------------------

def test_parse_query_full():
    query = parse_query({
        **BASE,
        "namespace": "prod",
        "apiGroup": "apps",
        "resourceName": "web",
    })
    assert query == AccessQuery(
        subject="alice", verb="get", resource="pods", group="apps", namespace="prod", resource_name="web"
    )


@pytest.mark.parametrize(
    "missing, message",
    [("verb", "verb is required"), ("resource", "resource is required"), ("as", "as is required")],
)
def test_parse_query_required(missing, message):
    args = {k: v for k, v in BASE.items() if k != missing}
    with pytest.raises(ValidationError, match=message):
        parse_query(args)


def test_summarize_namespaced():
    query = AccessQuery(subject="alice", verb="get", resource="pods", namespace="prod")
    assert summarize(query, True) == "alice can get pods in namespace prod: allowed"


def test_summarize_cluster_wide():
    query = AccessQuery(subject="alice", verb="delete", resource="nodes")
    assert summarize(query, False) == "alice can delete nodes cluster-wide: denied"


# ---------------------------------------------------------------------------
# handle_auth_can_i()
# ---------------------------------------------------------------------------

async def test_allowed():
    client = FakeClient(check_access=_decide(True, "RBAC: allowed"))
    outcome = await handle_auth_can_i(client, {**BASE, "namespace": "default"})

    assert outcome.success
    assert outcome.message == "alice can get pods in namespace default: allowed"
    assert outcome.outputs == {"allowed": "true", "reason": "RBAC: allowed"}
    assert client.calls[0][1][0].namespace == "default"


async def test_denied_without_expectation_is_success():
    client = FakeClient(check_access=_decide(False))
    outcome = await handle_auth_can_i(client, BASE)
    assert outcome.success
    assert outcome.outputs["allowed"] == "false"
    assert outcome.message.endswith("cluster-wide: denied")


async def test_expectation_met():
    client = FakeClient(check_access=_decide(False))
    outcome = await handle_auth_can_i(client, {**BASE, "expect": {"allowed": False}})
    assert outcome.success


async def test_expectation_not_met():
    client = FakeClient(check_access=_decide(False))
    outcome = await handle_auth_can_i(client, {**BASE, "expect": {"allowed": True}})

    assert not outcome.success
    assert outcome.message == "permission check failed: expected allowed=true but got allowed=false"
    assert outcome.error == "permission expectation not met"
    assert outcome.error_type == "ExpectationError"


async def test_expectation_without_allowed_is_ignored():
    client = FakeClient(check_access=_decide(False))
    outcome = await handle_auth_can_i(client, {**BASE, "expect": {}})
    assert outcome.success


async def test_expectation_must_be_boolean():
    outcome = await handle_auth_can_i(FakeClient(), {**BASE, "expect": {"allowed": "yes"}})
    assert not outcome.success
    assert outcome.error == "expect.allowed must be a boolean"


@pytest.mark.parametrize("expect", [None, "true", [True]])
async def test_expectation_must_be_object(expect):
    outcome = await handle_auth_can_i(FakeClient(), {**BASE, "expect": expect})
    assert not outcome.success
    assert outcome.error == "expect must be an object"
    assert outcome.error_type == "ValidationError"


async def test_missing_subject_skips_review():
    client = FakeClient()
    outcome = await handle_auth_can_i(client, {"verb": "get", "resource": "pods"})
    assert not outcome.success
    assert outcome.error == "as is required"
    assert client.calls == []


async def test_review_failure():
    def boom(query):
        raise CapabilityError("Unable to connect to the server")

    outcome = await handle_auth_can_i(FakeClient(check_access=boom), BASE)
    assert not outcome.success
    assert outcome.error == "failed to check permissions: Unable to connect to the server"
