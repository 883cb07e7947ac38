# tests/api_server/test_routes.py
"""
HTTP tests for the proofday API: request validation, error mapping and the
full goal flow over the in-process controller.
"""

from proofday.models import PostContent, Verdict

API = "/api/v1"


def _create(client, owner="alice", title="Read chapter 1", **extra):
    response = client.post(f"{API}/goals", json={"owner": owner, "title": title, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def _grade(client, goal_id, answers=("answer one", "answer two")):
    assert client.post(f"{API}/goals/{goal_id}/questions").status_code == 200
    response = client.post(f"{API}/goals/{goal_id}/answers", json={"answers": list(answers)})
    assert response.status_code == 200, response.text
    return response.json()


# ============================================================================
# Service endpoints
# ============================================================================


class TestServiceEndpoints:

    def test_root(self, api_client):
        body = api_client.get("/").json()
        assert body["docs_url"] == "/docs"
        assert "version" in body

    def test_health(self, api_client):
        body = api_client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["controller_available"] is True
        assert body["judge"] == "scripted"
        assert body["dispute_strategy"] == "token"

    def test_health_without_controller(self, unavailable_client):
        body = unavailable_client.get("/health").json()
        assert body == {"status": "degraded", "controller_available": False}

    def test_routes_unavailable_without_controller(self, unavailable_client):
        assert unavailable_client.get(f"{API}/goals/some-id").status_code == 503
        assert unavailable_client.get(f"{API}/feed").status_code == 503

    def test_judge_diagnostics(self, api_client):
        body = api_client.get(f"{API}/diagnostics/judge").json()
        assert body["ok"] is True
        assert body["judge"] == "scripted"


# ============================================================================
# Goals
# ============================================================================


class TestGoalRoutes:

    def test_create_and_get(self, api_client):
        created = _create(api_client, scope="pages 1-20")
        assert created["status"] == "PENDING"
        assert created["scope"] == "pages 1-20"
        fetched = api_client.get(f"{API}/goals/{created['id']}").json()
        assert fetched["id"] == created["id"]

    def test_create_blank_title_is_400(self, api_client):
        response = api_client.post(f"{API}/goals", json={"owner": "alice", "title": "   "})
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"

    def test_create_missing_field_is_422(self, api_client):
        assert api_client.post(f"{API}/goals", json={"owner": "alice"}).status_code == 422

    def test_unknown_field_is_422(self, api_client):
        response = api_client.post(f"{API}/goals", json={"owner": "a", "title": "t", "status": "PASSED"})
        assert response.status_code == 422

    def test_unknown_goal_is_404(self, api_client):
        response = api_client.get(f"{API}/goals/does-not-exist")
        assert response.status_code == 404
        body = response.json()
        assert body["error_type"] == "NotFoundError"
        assert "does-not-exist" in body["detail"]
        assert "collaborator" not in body

    def test_list_by_owner(self, api_client):
        first = _create(api_client, title="one")
        second = _create(api_client, title="two")
        _create(api_client, owner="bob")
        goals = api_client.get(f"{API}/goals", params={"owner": "alice"}).json()["goals"]
        assert {g["id"] for g in goals} == {first["id"], second["id"]}

    def test_list_requires_owner(self, api_client):
        assert api_client.get(f"{API}/goals").status_code == 422
        assert api_client.get(f"{API}/goals", params={"owner": " "}).status_code == 400

    def test_add_note(self, api_client):
        goal = _create(api_client)
        response = api_client.patch(f"{API}/goals/{goal['id']}/notes", json={"text": "started"})
        assert response.status_code == 200
        assert response.json()["notes"] == "started"


# ============================================================================
# Questions and answers
# ============================================================================


class TestGradingRoutes:

    def test_questions(self, api_client):
        goal = _create(api_client)
        response = api_client.post(f"{API}/goals/{goal['id']}/questions")
        body = response.json()
        assert body["goal_id"] == goal["id"]
        assert len(body["questions"]) == 2

    def test_pass_uses_pass_key(self, api_client):
        goal = _create(api_client)
        body = _grade(api_client, goal["id"])
        assert body["pass"] is True
        assert body["status"] == "PASSED"
        assert body["verdicts"] == ["PASS", "PASS"]
        assert "==== LLM TRANSCRIPT ====" in body["transcript"]
        assert body["attestation"] is None

    def test_one_failed_answer_fails(self, api_client, judge):
        judge.verdicts = [Verdict.PASS, Verdict.FAIL]
        goal = _create(api_client)
        body = _grade(api_client, goal["id"])
        assert body["pass"] is False
        assert body["status"] == "FAILED"

    def test_wrong_answer_count_is_400(self, api_client):
        goal = _create(api_client)
        api_client.post(f"{API}/goals/{goal['id']}/questions")
        response = api_client.post(f"{API}/goals/{goal['id']}/answers", json={"answers": ["only one"]})
        assert response.status_code == 400

    def test_answers_before_questions_is_400(self, api_client):
        goal = _create(api_client)
        response = api_client.post(f"{API}/goals/{goal['id']}/answers", json={"answers": ["a", "b"]})
        assert response.status_code == 400

    def test_regrading_blocked_is_409(self, api_client):
        goal = _create(api_client)
        _grade(api_client, goal["id"])
        response = api_client.post(f"{API}/goals/{goal['id']}/questions")
        assert response.status_code == 409
        assert response.json()["error_type"] == "StateError"

    def test_judge_failure_is_502(self, api_client, judge):
        judge.fail_questions = True
        goal = _create(api_client)
        response = api_client.post(f"{API}/goals/{goal['id']}/questions")
        assert response.status_code == 502
        body = response.json()
        assert body["error_type"] == "UpstreamError"
        assert body["collaborator"] == "judge"
        assert api_client.get(f"{API}/goals/{goal['id']}").json()["questions"] is None


# ============================================================================
# Attestation and feed
# ============================================================================


class TestAttestRoutes:

    def test_attest_passed_goal(self, api_client):
        goal = _create(api_client)
        _grade(api_client, goal["id"])
        response = api_client.post(f"{API}/goals/{goal['id']}/attest")
        assert response.status_code == 200
        body = response.json()
        assert body["mocked"] is True
        assert body["attestation_id"] == f"MOCK-PASS-{goal['id']}"
        feed = api_client.get(f"{API}/feed").json()["items"]
        assert [item["id"] for item in feed] == [goal["id"]]
        assert feed[0]["attestation_id"] == body["attestation_id"]

    def test_attest_pending_is_409(self, api_client):
        goal = _create(api_client)
        assert api_client.post(f"{API}/goals/{goal['id']}/attest").status_code == 409

    def test_attest_twice_is_409(self, api_client):
        goal = _create(api_client)
        _grade(api_client, goal["id"])
        assert api_client.post(f"{API}/goals/{goal['id']}/attest").status_code == 200
        assert api_client.post(f"{API}/goals/{goal['id']}/attest").status_code == 409

    def test_mismatched_assertion_is_409(self, api_client):
        goal = _create(api_client)
        _grade(api_client, goal["id"])
        response = api_client.post(f"{API}/goals/{goal['id']}/attest", json={"result": "FAIL"})
        assert response.status_code == 409

    def test_matching_assertion(self, api_client):
        goal = _create(api_client)
        _grade(api_client, goal["id"])
        response = api_client.post(f"{API}/goals/{goal['id']}/attest",
                                   json={"result": "PASS", "disputed": False})
        assert response.status_code == 200

    def test_attestor_failure_is_502(self, api_client, attestor):
        attestor.fail = True
        goal = _create(api_client)
        _grade(api_client, goal["id"])
        response = api_client.post(f"{API}/goals/{goal['id']}/attest")
        assert response.status_code == 502
        assert response.json()["collaborator"] == "attestor"
        assert api_client.get(f"{API}/feed").json()["items"] == []

    def test_feed_limit_validation(self, api_client):
        assert api_client.get(f"{API}/feed", params={"limit": 0}).status_code == 422


# ============================================================================
# Disputes
# ============================================================================


class TestDisputeRoutes:

    def _failed_goal(self, client, judge):
        judge.verdicts = [Verdict.FAIL, Verdict.FAIL]
        goal = _create(client)
        _grade(client, goal["id"])
        assert client.post(f"{API}/goals/{goal['id']}/attest").status_code == 200
        return goal

    def test_dispute_verified(self, api_client, judge, post_verifier):
        goal = self._failed_goal(api_client, judge)
        challenge = api_client.post(f"{API}/goals/{goal['id']}/dispute").json()
        assert challenge["strategy"] == "token"
        assert challenge["marker"].startswith("POD-")
        assert challenge["intent_url"].startswith("https://twitter.com/intent/tweet?text=")
        assert challenge["profile_url"] == "https://proofday.test/u/alice"

        post_verifier.add_post(PostContent(post_id="1790000000000000001",
                                           text=f"I did it. {challenge['marker']}"))
        response = api_client.post(f"{API}/goals/{goal['id']}/dispute/verify",
                                   json={"post_url": "https://x.com/alice/status/1790000000000000001"})
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["verified"] is True
        assert body["result"] == "PASS"
        assert body["attestation_id"] == f"MOCK-PASS-DISPUTED-{goal['id']}"
        assert body["details"]["post_id"] == "1790000000000000001"

        final = api_client.get(f"{API}/goals/{goal['id']}").json()
        assert final["status"] == "PASSED"
        assert final["disputed"] is True
        assert final["dispute_token"] is None

    def test_dispute_without_marker_stays_failed(self, api_client, judge, post_verifier):
        goal = self._failed_goal(api_client, judge)
        api_client.post(f"{API}/goals/{goal['id']}/dispute")
        post_verifier.add_post(PostContent(post_id="42", text="nothing to see"))
        body = api_client.post(f"{API}/goals/{goal['id']}/dispute/verify",
                               json={"post_url": "https://twitter.com/alice/status/42"}).json()
        assert body["verified"] is False
        assert body["result"] == "FAIL"
        assert body["attestation_id"] == f"MOCK-FAIL-DISPUTED-{goal['id']}"

    def test_dispute_on_passed_goal_is_409(self, api_client):
        goal = _create(api_client)
        _grade(api_client, goal["id"])
        assert api_client.post(f"{API}/goals/{goal['id']}/dispute").status_code == 409

    def test_invalid_post_url_is_400(self, api_client, judge):
        goal = self._failed_goal(api_client, judge)
        api_client.post(f"{API}/goals/{goal['id']}/dispute")
        response = api_client.post(f"{API}/goals/{goal['id']}/dispute/verify",
                                   json={"post_url": "https://x.com/alice"})
        assert response.status_code == 400

    def test_unfetchable_post_is_502(self, api_client, judge):
        goal = self._failed_goal(api_client, judge)
        api_client.post(f"{API}/goals/{goal['id']}/dispute")
        response = api_client.post(f"{API}/goals/{goal['id']}/dispute/verify",
                                   json={"post_url": "https://x.com/alice/status/999"})
        assert response.status_code == 502
        assert response.json()["collaborator"] == "post_verifier"
        goal_after = api_client.get(f"{API}/goals/{goal['id']}").json()
        assert goal_after["disputed"] is False


# ============================================================================
# Users
# ============================================================================


class TestUserRoutes:

    def test_register_and_list(self, api_client):
        _create(api_client, owner="carol")
        response = api_client.post(f"{API}/users", json={"username": " bob "})
        assert response.json()["users"] == ["bob", "carol"]
        assert api_client.get(f"{API}/users").json()["users"] == ["bob", "carol"]

    def test_register_blank_is_400(self, api_client):
        assert api_client.post(f"{API}/users", json={"username": ""}).status_code == 400

    def test_public_history(self, api_client):
        goal = _create(api_client)
        body = api_client.get(f"{API}/users/alice/goals").json()
        assert body["username"] == "alice"
        assert [g["id"] for g in body["goals"]] == [goal["id"]]
        assert "notes" not in body["goals"][0]
