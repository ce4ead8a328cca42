"""Tests for country, stage rule and validation endpoints."""

from fastapi.testclient import TestClient


class TestCountries:
    def test_list_countries(self, client: TestClient):
        resp = client.get("/api/v1/countries")
        assert resp.status_code == 200
        countries = {c["name"]: c for c in resp.json()}
        assert countries["Kuwait"] == {"name": "Kuwait", "code": "KW", "is_gulf": True}
        assert countries["Iraq"]["is_gulf"] is False

    def test_classify(self, client: TestClient):
        resp = client.post(
            "/api/v1/rules/classify",
            json={"sender_country": "Kuwait", "receiver_country": "Bahrain"},
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "shipment_type": "IntraGulf",
            "sender_is_gulf": True,
            "receiver_is_gulf": True,
        }

    def test_classify_requires_both(self, client: TestClient):
        resp = client.post("/api/v1/rules/classify", json={"sender_country": "Kuwait"})
        assert resp.status_code == 422


class TestStageRules:
    def test_receiver_block(self, client: TestClient):
        resp = client.post(
            "/api/v1/rules/receiver",
            json={"form_data": {"sender_country": "Qatar", "receiver_country": "Iraq"}},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["stage"] == "receiver"
        assert data["validation_errors"]["receiver_country"] == (
            "Shipping from Gulf countries to Iraq is currently not possible"
        )

    def test_options_forced_signature(self, client: TestClient):
        resp = client.post(
            "/api/v1/rules/options",
            json={"form_data": {"sender_country": "Kuwait", "receiver_country": "Egypt"}},
        )
        signature = resp.json()["fields"]["signature_required"]
        assert signature["checked"] is True
        assert signature["disabled"] is True

    def test_package_weight_max(self, client: TestClient):
        resp = client.post(
            "/api/v1/rules/package",
            json={"form_data": {"sender_country": "Jordan", "receiver_country": "Egypt"}},
        )
        data = resp.json()
        assert data["fields"]["weight"]["validation"]["max"] == 30
        assert data["context"]["shipment_type"] == "International"

    def test_unknown_stage(self, client: TestClient):
        resp = client.post("/api/v1/rules/payment", json={"form_data": {}})
        assert resp.status_code == 404
        assert resp.json()["code"] == "E-1003"
        assert resp.json()["error"] == "Unknown form stage: payment"

    def test_empty_body(self, client: TestClient):
        resp = client.post("/api/v1/rules/sender", json={})
        assert resp.status_code == 200
        assert resp.json()["enabled"] is True


class TestPipeline:
    def test_full_pipeline(self, client: TestClient, complete_form):
        resp = client.post("/api/v1/rules/pipeline", json={"form_data": complete_form})
        assert resp.status_code == 200
        stages = resp.json()["stages"]
        assert [s["stage"] for s in stages] == [
            "sender",
            "receiver",
            "package",
            "service",
            "options",
        ]
        assert all(s["complete"] for s in stages)

    def test_changed_field(self, client: TestClient, complete_form):
        resp = client.post(
            "/api/v1/rules/pipeline",
            json={"form_data": complete_form, "changed_field": "pickup_method"},
        )
        assert [s["stage"] for s in resp.json()["stages"]] == ["options"]


class TestValidation:
    def test_draft_accepts_partial(self, client: TestClient):
        resp = client.post("/api/v1/validate/draft", json={"form_data": {"weight": "2"}})
        assert resp.json() == {"is_valid": True, "errors": {}}

    def test_draft_rejects_malformed(self, client: TestClient):
        resp = client.post("/api/v1/validate/draft", json={"form_data": {"weight": "abc"}})
        assert resp.json()["errors"] == {"weight": "Weight must be a valid number"}

    def test_complete(self, client: TestClient, complete_form):
        resp = client.post("/api/v1/validate/complete", json={"form_data": complete_form})
        assert resp.json()["is_valid"] is True

    def test_complete_reports_all(self, client: TestClient):
        resp = client.post("/api/v1/validate/complete", json={"form_data": {}})
        errors = resp.json()["errors"]
        assert resp.json()["is_valid"] is False
        assert {"sender_name", "receiver_name", "weight", "service_type"} <= set(errors)
