"""
Integration tests for API endpoints using SQLite.
"""
import pytest


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestReflections:
    def test_submit_basic(self, client, account_id):
        r = client.post("/reflections", json={
            "account_id": account_id,
            "type_hint": "wellness_check",
            "fields": {"stress_level": 6, "mental_clarity": 7, "notes": "long day"},
        })
        assert r.status_code == 201
        body = r.json()
        assert body["success"] is True
        assert body["category"] == "wellness_check"
        assert body["metrics_recorded"] == ["mental_clarity", "stress_level"]
        assert body["pattern_code"] == "STRESS_STABLE"
        assert "notes" not in body["metrics_recorded"]

    def test_submit_medical_context(self, client, account_id):
        r = client.post("/reflections", json={
            "account_id": account_id,
            "fields": {"stress_level": 9, "energy_level": 3, "context": "medical session notes: patient declined"},
        })
        assert r.status_code == 201
        body = r.json()
        assert body["context_type"] == "medical"
        assert "patient" not in r.text

    def test_garbage_fields_accepted_without_metrics(self, client, account_id):
        r = client.post("/reflections", json={
            "account_id": account_id,
            "fields": {"stress_level": "very", "energy_level": None, "anything": [1, 2]},
        })
        assert r.status_code == 201
        assert r.json()["metrics_recorded"] == []

    def test_huge_integer_is_clamped(self, client, account_id):
        r = client.post("/reflections", json={
            "account_id": account_id,
            "fields": {"stress_level": 10**400},
        })
        assert r.status_code == 201
        assert r.json()["metrics_recorded"] == ["stress_level"]
        assert r.json()["pattern_code"] == "STRESS_RISING"


class TestInsights:
    def test_no_data(self, client, account_id):
        r = client.get(f"/insights/{account_id}")
        assert r.status_code == 200
        body = r.json()
        assert body["has_data"] is False
        assert body["time_range"] == "month"

    def test_after_submission(self, client, account_id):
        client.post("/reflections", json={"account_id": account_id, "fields": {"stress_level": 8, "energy_level": 3}})
        r = client.get(f"/insights/{account_id}", params={"time_range": "week"})
        assert r.status_code == 200
        body = r.json()
        assert body["has_data"] is True
        assert body["metrics"]["average_stress"] == 8.0
        assert body["pattern_codes"] == ["STRESS_RISING"]
        assert body["recommendation_codes"] == ["STRESS_MANAGEMENT_NEEDED", "ENERGY_RESTORATION_NEEDED"]


class TestBurnout:
    def test_insufficient_data_is_calm_200(self, client, account_id):
        r = client.get(f"/burnout/{account_id}/risk")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "insufficient_data"
        assert body["data_points"] == 0
        assert body["required"] == 3
        assert body["assessment"] is None

    def test_provisional_is_flagged(self, client, account_id):
        r = client.get(f"/burnout/{account_id}/risk", params={"policy": "provisional"})
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "provisional"
        assert body["assessment"]["provisional"] is True
        assert body["assessment"]["risk_score"] == 3.5

    def test_plan(self, client, account_id):
        r = client.get(f"/burnout/{account_id}/plan")
        assert r.status_code == 200
        body = r.json()
        assert body["type"] == "preventive"
        assert body["provisional"] is True
        assert body["actions"]
        assert body["resources"]

    def test_trend(self, client, account_id):
        client.post("/reflections", json={"account_id": account_id, "fields": {"stress_level": 8}})
        r = client.get(f"/burnout/{account_id}/trend", params={"weeks": 4})
        assert r.status_code == 200
        body = r.json()
        assert body["weeks"] == 4
        assert len(body["points"]) == 1

    def test_team(self, client):
        r = client.post("/burnout/team", json={
            "org_id": "org-42",
            "team_size": 8,
            "risk_distribution": {"critical": 1, "high": 1, "moderate": 2, "low": 4},
            "average_risk_score": 4.5,
            "trend_counts": {"worsening": 3, "stable": 5},
        })
        assert r.status_code == 200
        body = r.json()
        assert body["team_size"] == 8
        assert body["urgent_interventions_needed"] == 2
        assert body["estimated_cost_impact"] == pytest.approx(15000 * (0.5 + 0.25 + 2 * 0.05))

    def test_team_distribution_exceeds_size(self, client):
        r = client.post("/burnout/team", json={
            "org_id": "org-43", "team_size": 1, "risk_distribution": {"high": 3},
        })
        assert r.status_code == 422


class TestEmotionalLabor:
    _SESSION = {
        "context": "mental_health",
        "duration_minutes": 50,
        "emotional_intensity": 8,
        "trauma_exposure": True,
        "client_emotional_state": "grief",
        "display_rules": ["show_empathy", "hide_shock"],
        "internal_state": 8,
        "displayed_state": 3,
        "control_over_expression": 3,
        "consequence_severity": 9,
    }

    def test_record_session(self, client, account_id):
        r = client.post(f"/emotional-labor/{account_id}/sessions", json={
            "session": self._SESSION, "base_rate": 60,
        })
        assert r.status_code == 201
        body = r.json()
        assert body["context"] == "mental_health"
        assert 1.0 <= body["compensation"]["multiplier"] <= 3.0
        assert body["assessment"]["frequency_of_emotional_labor"] == 9

    def test_analytics(self, client, account_id):
        client.post(f"/emotional-labor/{account_id}/sessions", json={"session": self._SESSION, "base_rate": 60})
        r = client.get(f"/emotional-labor/{account_id}/analytics", params={"time_range": "week"})
        assert r.status_code == 200
        body = r.json()
        assert body["entry_count"] == 1
        assert body["highest_labor_contexts"] == ["mental_health"]

    def test_analytics_empty(self, client, account_id):
        r = client.get(f"/emotional-labor/{account_id}/analytics")
        assert r.status_code == 200
        assert r.json()["recommendations"] == ["Start tracking emotional labor to get insights"]


class TestAttestations:
    def test_issue_and_verify(self, client, account_id):
        r = client.post("/attestations", json={"account_id": account_id, "receipt_type": "readiness"})
        assert r.status_code == 201
        receipt = r.json()
        assert len(receipt["receipt_hash"]) == 64
        assert len(receipt["signature"]) == 64
        assert receipt["verification_url"].endswith(f"/attestations/{receipt['receipt_id']}/verify")

        v = client.get(f"/attestations/{receipt['receipt_id']}/verify")
        assert v.status_code == 200
        assert v.json()["valid"] is True
        assert v.json()["reason"] == "valid"
        assert v.json()["verification_count"] == 1
        assert v.json()["criteria"] is None

    def test_verify_unknown(self, client):
        r = client.get("/attestations/does-not-exist/verify")
        assert r.status_code == 200
        assert r.json() == {
            "valid": False, "reason": "not_found", "receipt_type": None,
            "issued_at": None, "valid_until": None, "verification_count": 0,
            "criteria": None,
        }

    def test_activity(self, client, account_id):
        r = client.post("/attestations/activity", json={"account_id": account_id, "activity": "debrief"})
        assert r.status_code == 201
        assert r.json()["receipt_type"] == "debrief_complete"

    def test_recovery(self, client, account_id):
        r = client.post("/attestations/recovery", json={"account_id": account_id, "stress_level": 3})
        assert r.status_code == 201
        assert r.json()["receipt_type"] == "recovery"

    def test_threshold(self, client, account_id):
        client.post("/reflections", json={"account_id": account_id, "fields": {"stress_level": 2}})
        r = client.post("/attestations/threshold", json={
            "account_id": account_id,
            "criterion": {"type": "stress_below", "value": 5, "weeks": 1},
        })
        assert r.status_code == 201
        body = r.json()
        assert body["receipt_type"] == "wellness_threshold_met"
        assert body["criteria"] == {"type": "stress_below", "threshold": 5.0, "weeks": 1}

        v = client.get(f"/attestations/{body['receipt_id']}/verify").json()
        assert v["valid"] is True
        assert v["criteria"] == {"type": "stress_below", "threshold": 5.0, "weeks": 1}
        assert "stress_level" not in str(v)

    def test_batch_verify(self, client, account_id):
        issued = client.post("/attestations", json={"account_id": account_id, "receipt_type": "readiness"}).json()
        r = client.post("/attestations/verify", json={
            "receipt_ids": [issued["receipt_id"], "missing-receipt", issued["receipt_id"]],
        })
        assert r.status_code == 200
        results = r.json()["results"]
        assert [x["receipt_id"] for x in results] == [issued["receipt_id"], "missing-receipt"]
        assert [x["reason"] for x in results] == ["valid", "not_found"]
        assert results[0]["verification_count"] == 1

    def test_batch_verify_empty_rejected(self, client):
        r = client.post("/attestations/verify", json={"receipt_ids": []})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_list_and_readiness(self, client, account_id):
        client.post("/attestations", json={"account_id": account_id, "receipt_type": "shift_ready"})
        client.post("/attestations/activity", json={"account_id": account_id, "activity": "break"})

        r = client.get(f"/attestations/account/{account_id}")
        assert r.status_code == 200
        items = r.json()["items"]
        assert len(items) == 2
        assert all(i["is_valid"] for i in items)

        ready = client.get(f"/attestations/account/{account_id}/readiness").json()
        assert ready["is_ready"] is True
        assert ready["attestation"]["receipt_type"] == "shift_ready"

    def test_not_ready_without_receipts(self, client, account_id):
        ready = client.get(f"/attestations/account/{account_id}/readiness").json()
        assert ready == {"is_ready": False, "attestation": None}
