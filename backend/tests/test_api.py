"""
API tests through FastAPI's TestClient.

Each test gets a fresh SQLite database; outbound email is recorded by the
``email_backend`` fixture instead of being sent.
"""

import uuid

SENDER = {"name": "Alex Producer", "email": "alex@example.com"}


def _create_project(client, **overrides):
    payload = {"project_name": "Summer Launch", "client_name": "Acme", **overrides}
    response = client.post("/api/projects", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _create_supplier(client, name, categories):
    response = client.post(
        "/api/suppliers",
        json={
            "supplier_name": name,
            "contact_email": f"{name.lower()}@example.com",
            "service_categories": categories,
            "contact_persons": [{"name": f"{name} Rep", "email": f"rep@{name.lower()}.com", "is_primary": True}],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestSystemEndpoints:
    """Test root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["database"]["connected"] is True
        assert data["llm_available"] is False

    def test_ai_health_without_key(self, client):
        response = client.get("/api/ai-health")
        assert response.status_code == 200
        assert response.json()["data"]["healthy"] is False


class TestErrorEnvelope:
    """Test the standard error envelope."""

    def test_unknown_project(self, client):
        response = client.get(f"/api/projects/{uuid.uuid4()}")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"

    def test_malformed_id(self, client):
        response = client.get("/api/projects/not-a-uuid")
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_missing_fields(self, client):
        response = client.post("/api/projects", json={"client_name": "Acme"})
        assert response.status_code == 422
        errors = response.json()["error"]["details"]["errors"]
        assert any(e["field"].endswith("project_name") for e in errors)

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_brief_too_long(self, client):
        response = client.post(
            "/api/projects",
            json={"project_name": "Big", "client_name": "Acme", "brief_description": "x" * 10001},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"


class TestProjects:
    """Test project endpoints."""

    def test_create_with_generated_assets(self, client):
        project = _create_project(
            client,
            brief_description="Need banners and catering",
            generate_assets=True,
        )
        assert project["project_status"] == "New"

        assets = client.get(f"/api/projects/{project['id']}/assets").json()["data"]
        assert [a["asset_name"] for a in assets] == ["Printing", "Catering"]
        assert {a["status"] for a in assets} == {"Pending"}

    def test_create_without_generation(self, client):
        project = _create_project(client, brief_description="Need banners")
        assets = client.get(f"/api/projects/{project['id']}/assets").json()["data"]
        assert assets == []

    def test_list_by_client(self, client):
        _create_project(client, client_name="Acme")
        _create_project(client, client_name="Globex")
        response = client.get("/api/projects", params={"client_name": "Globex"})
        assert [p["client_name"] for p in response.json()["data"]] == ["Globex"]

    def test_update_and_delete(self, client):
        project = _create_project(client)
        response = client.put(f"/api/projects/{project['id']}", json={"project_status": "Cancelled"})
        assert response.json()["data"]["project_status"] == "Cancelled"

        response = client.delete(f"/api/projects/{project['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["deleted"] == {"assets": 0, "quotes": 0, "messages": 0}
        assert client.get(f"/api/projects/{project['id']}").status_code == 404

    def test_update_with_null_required_field(self, client):
        project = _create_project(client)
        response = client.put(f"/api/projects/{project['id']}", json={"project_name": None})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"
        assert client.get(f"/api/projects/{project['id']}").json()["data"]["project_name"] == "Summer Launch"

    def test_process_brief(self, client):
        project = _create_project(client)
        response = client.post(
            "/api/process-brief",
            json={"project_id": project["id"], "brief_description": "stage and sound"},
        )
        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["strategy"] == "keyword"
        assert [a["asset_name"] for a in data["created_assets"]] == ["Staging", "Audio"]

    def test_ai_allocation_falls_back_without_key(self, client):
        response = client.post("/api/ai-allocate-assets", json={"brief_description": "posters and food"})
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["success"] is False
        assert [a["asset_name"] for a in body["data"]["fallback_assets"]] == ["Printing", "Catering"]
        assert body["warning"]


class TestQuoteWorkflow:
    """Request, submit, chat and accept through the API."""

    def test_full_quote_flow(self, client, email_backend):
        project = _create_project(client, brief_description="Need banners", generate_assets=True, financial_parameters=3000)
        asset = client.get(f"/api/projects/{project['id']}/assets").json()["data"][0]
        printco = _create_supplier(client, "PrintCo", ["Printing"])
        bannerworks = _create_supplier(client, "BannerWorks", ["Printing"])

        suggestions = client.get(f"/api/suppliers/suggestions/{asset['id']}").json()["data"]
        assert {s["id"] for s in suggestions} == {printco["id"], bannerworks["id"]}

        response = client.post(
            "/api/suppliers/send-quote-requests",
            json={"asset_id": asset["id"], "supplier_ids": [printco["id"], bannerworks["id"]], "from": SENDER},
        )
        assert response.status_code == 200, response.text
        results = {r["supplier_name"]: r for r in response.json()["data"]["results"]}
        assert all(r["email_sent"] for r in results.values())

        token = results["BannerWorks"]["access_token"]
        session = client.get(f"/api/portal/session/{token}").json()["data"]
        assert session["asset"]["status"] == "Quoting"
        assert session["supplier"]["supplier_name"] == "BannerWorks"

        response = client.post("/api/portal/submit-quote", json={"token": token, "cost": 900, "notes_capacity": "Ready"})
        assert response.json()["data"]["status"] == "Submitted"
        client.post(
            "/api/portal/submit-quote",
            json={"token": results["PrintCo"]["access_token"], "cost": 1100},
        )

        response = client.post("/api/portal/messages", json={"token": token, "content": "Can start Monday"})
        assert response.status_code == 201

        comparison = client.get(f"/api/quotes/compare/{asset['id']}").json()["data"]
        assert [q["supplier"]["supplier_name"] for q in comparison["quotes"]] == ["BannerWorks", "PrintCo"]

        quote_id = results["BannerWorks"]["quote_id"]
        response = client.post(f"/api/quotes/{quote_id}/accept")
        assert response.status_code == 200, response.text
        accepted = response.json()["data"]
        assert accepted["asset"]["status"] == "Approved"
        assert accepted["rejected_quote_ids"] == [results["PrintCo"]["quote_id"]]

        messages = client.get(f"/api/quotes/{quote_id}/messages").json()["data"]["messages"]
        assert [m["sender_type"] for m in messages] == ["SUPPLIER", "PRODUCER"]

        summary = client.get(f"/api/projects/{project['id']}/summary").json()["data"]
        assert summary["stats"]["total_cost"] == 900.0
        assert summary["budget"]["remaining"] == 2100.0

        status = client.post(f"/api/projects/{project['id']}/refresh-status").json()["data"]
        assert status["project_status"] == "In Progress"

        subjects = [m["subject"] for m in email_backend.sent]
        assert "Your Quote was Accepted" in subjects

    def test_accepting_pending_quote_conflicts(self, client):
        project = _create_project(client, brief_description="banners", generate_assets=True)
        asset = client.get(f"/api/projects/{project['id']}/assets").json()["data"][0]
        supplier = _create_supplier(client, "PrintCo", ["Printing"])
        result = client.post(
            "/api/suppliers/send-quote-requests",
            json={"asset_id": asset["id"], "supplier_ids": [supplier["id"]]},
        ).json()["data"]["results"][0]

        response = client.post(f"/api/quotes/{result['quote_id']}/accept")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_QUOTE_STATUS"

    def test_portal_rejects_unknown_token(self, client):
        response = client.get(f"/api/portal/session/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_preview_quote_requests(self, client):
        project = _create_project(client, brief_description="banners", generate_assets=True)
        asset = client.get(f"/api/projects/{project['id']}/assets").json()["data"][0]
        supplier = _create_supplier(client, "PrintCo", ["Printing"])

        response = client.post(
            "/api/suppliers/preview-quote-requests",
            json={"asset_id": asset["id"], "supplier_ids": [supplier["id"]], "from": SENDER},
        )

        assert response.status_code == 200, response.text
        preview = response.json()["data"]["suppliers"][0]["preview_email"]
        assert preview["subject"] == "Quote Request: Printing"
        assert preview["to"] == "rep@printco.com"


class TestProducerSettingsAndDashboards:
    """Test settings and dashboards."""

    def test_producer_settings_roundtrip(self, client):
        assert client.get("/api/producer-settings").json()["data"] is None
        response = client.put("/api/producer-settings", json={"from_name": "Alex", "from_email": "alex@example.com"})
        assert response.status_code == 200, response.text
        assert client.get("/api/producer-settings").json()["data"]["from_name"] == "Alex"

    def test_dashboards(self, client):
        _create_project(client, client_name="Acme")
        _create_project(client, client_name="Globex")

        producer = client.get("/api/dashboard/producer").json()["data"]
        assert producer["total_projects"] == 2

        client_view = client.get("/api/dashboard/client", params={"client_name": "Acme"}).json()["data"]
        assert [p["project"]["client_name"] for p in client_view["projects"]] == ["Acme"]


class TestSuppliers:
    """Test supplier directory endpoints."""

    def test_filter_by_category(self, client):
        _create_supplier(client, "PrintCo", ["Printing"])
        _create_supplier(client, "SoundWorks", ["Audio"])

        response = client.get("/api/suppliers", params={"category": "audio"})
        assert [s["supplier_name"] for s in response.json()["data"]] == ["SoundWorks"]

        response = client.get("/api/suppliers", params={"q": "print", "category": "Audio"})
        assert response.json()["data"] == []

    def test_update_with_null_name(self, client):
        supplier = _create_supplier(client, "PrintCo", ["Printing"])
        response = client.put(f"/api/suppliers/{supplier['id']}", json={"supplier_name": None})
        assert response.status_code == 400


class TestProjectTracking:
    """Test milestones, action items and quote history endpoints."""

    def test_milestone_lifecycle(self, client):
        project = _create_project(client)
        base = f"/api/projects/{project['id']}/milestones"

        response = client.post(base, json={"milestone_name": "Load-in", "milestone_date": "2026-06-20"})
        assert response.status_code == 201, response.text
        load_in = response.json()["data"]
        client.post(base, json={"milestone_name": "Proofs", "milestone_date": "2026-05-01"})

        assert [m["milestone_name"] for m in client.get(base).json()["data"]] == ["Proofs", "Load-in"]

        response = client.put(f"/api/milestones/{load_in['id']}", json={"status": "completed"})
        assert response.status_code == 200, response.text
        assert response.json()["data"]["status"] == "completed"

        response = client.put(f"/api/milestones/{load_in['id']}", json={"milestone_date": None})
        assert response.status_code == 400

        assert client.delete(f"/api/milestones/{load_in['id']}").status_code == 200
        assert client.delete(f"/api/milestones/{load_in['id']}").status_code == 404

        summary = client.get(f"/api/projects/{project['id']}/summary").json()["data"]
        assert [m["milestone_name"] for m in summary["milestones"]] == ["Proofs"]

    def test_invalid_milestone_status(self, client):
        project = _create_project(client)
        milestone = client.post(
            f"/api/projects/{project['id']}/milestones",
            json={"milestone_name": "Load-in", "milestone_date": "2026-06-20"},
        ).json()["data"]
        response = client.put(f"/api/milestones/{milestone['id']}", json={"status": "done"})
        assert response.status_code == 422

    def test_action_items(self, client):
        project = _create_project(client)
        base = f"/api/projects/{project['id']}/actions"

        response = client.post(
            base,
            json={"action_type": "producer_review_quote", "action_description": "Review bids", "assigned_to": "producer"},
        )
        assert response.status_code == 201, response.text
        review = response.json()["data"]
        client.post(
            base,
            json={"action_type": "supplier_submit_quote", "action_description": "Send bid", "assigned_to": "supplier"},
        )

        summary = client.get(f"/api/projects/{project['id']}/summary").json()["data"]
        assert summary["actions"] == {"producer_actions": 1, "supplier_actions": 1}

        response = client.post(f"/api/actions/{review['id']}/complete")
        assert response.json()["data"]["status"] == "completed"

        pending = client.get(base, params={"status": "pending"}).json()["data"]
        assert [a["action_description"] for a in pending] == ["Send bid"]
        summary = client.get(f"/api/projects/{project['id']}/summary").json()["data"]
        assert summary["actions"] == {"producer_actions": 0, "supplier_actions": 1}

    def test_action_item_for_unknown_project(self, client):
        response = client.post(
            f"/api/projects/{uuid.uuid4()}/actions",
            json={"action_type": "other", "action_description": "Call", "assigned_to": "client"},
        )
        assert response.status_code == 404

    def test_quote_history(self, client):
        project = _create_project(client, brief_description="banners", generate_assets=True)
        asset = client.get(f"/api/projects/{project['id']}/assets").json()["data"][0]
        supplier = _create_supplier(client, "PrintCo", ["Printing"])
        result = client.post(
            "/api/suppliers/send-quote-requests",
            json={"asset_id": asset["id"], "supplier_ids": [supplier["id"]]},
        ).json()["data"]["results"][0]
        client.post("/api/portal/submit-quote", json={"token": result["access_token"], "cost": 250})
        client.post(f"/api/quotes/{result['quote_id']}/accept")

        response = client.get(f"/api/quotes/{result['quote_id']}/history")

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["quote"]["status"] == "Accepted"
        assert [h["status"] for h in data["history"]] == ["Pending", "Submitted", "Accepted"]

    def test_history_for_unknown_quote(self, client):
        assert client.get(f"/api/quotes/{uuid.uuid4()}/history").status_code == 404
