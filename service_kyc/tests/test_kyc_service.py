"""
Unit tests for KYC main service.
"""

import pytest
from fastapi.testclient import TestClient

from service_kyc.app.config import get_kyc_config
from service_kyc.app.main import KycService, create_app


SERVICE_ADMIN = "0x755cdba6ae4f479f7164792b318b2a06c759833b"
ORG_ADMIN = "0xcff1002107105460941f797828f468667aa1a2db"
USER = "0x1111111111111111111111111111111111111111"
STRANGER = "0x9999999999999999999999999999999999999999"


class TestKycService:
    """Test cases for KycService."""

    @pytest.fixture
    def config(self):
        """Create KYC config."""
        return get_kyc_config(service_admin=SERVICE_ADMIN)

    @pytest.fixture
    def client(self, config):
        """Create test client."""
        return TestClient(create_app(config))

    @pytest.fixture
    def register_request(self):
        """Organization registration request."""
        return {
            "name": "acme",
            "description": "Acme identity checks",
            "admin": ORG_ADMIN,
            "supported_tags": ["kyc1", "kyc2", "kyc3"]
        }

    @pytest.fixture
    def acme(self, client, register_request):
        """Register and approve the 'acme' organization."""
        response = client.post("/kyc/orgs", json=register_request, headers={"X-Caller": SERVICE_ADMIN})
        assert response.status_code == 201
        response = client.put(
            "/kyc/orgs/acme/approved", json={"approved": True}, headers={"X-Caller": SERVICE_ADMIN}
        )
        assert response.status_code == 200
        return "acme"

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["service"] == "kyc"
        assert "tag_expressions" in data["capabilities"]

    def test_health_endpoint(self, client):
        """Test health check endpoint."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"] == {"tag_store": "ok"}

    def test_metrics_endpoint(self, client, acme):
        """Test metrics endpoint."""
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "kyc_mutations_total" in response.text
        assert "http_requests_total" in response.text

    def test_get_admin(self, client):
        """Test reading the service admin."""
        response = client.get("/kyc/admin")
        assert response.status_code == 200
        assert response.json() == {"admin": SERVICE_ADMIN}

    def test_register_org(self, client, register_request):
        """Test organization registration."""
        response = client.post("/kyc/orgs", json=register_request, headers={"X-Caller": SERVICE_ADMIN})
        assert response.status_code == 201

        data = response.json()
        assert data["name"] == "acme"
        assert data["admin"] == ORG_ADMIN
        assert data["supported_tags"] == ["kyc1", "kyc2", "kyc3"]
        assert data["approved"] is False

        response = client.get("/kyc/orgs")
        assert response.json() == {"orgs": ["acme"], "total": 1}

    def test_register_org_without_caller(self, client, register_request):
        """Test that mutations require the X-Caller header."""
        response = client.post("/kyc/orgs", json=register_request)
        assert response.status_code == 422

    def test_register_org_not_authorized(self, client, register_request):
        """Test registration by a non admin."""
        response = client.post("/kyc/orgs", json=register_request, headers={"X-Caller": STRANGER})
        assert response.status_code == 403

        data = response.json()
        assert data["code"] == "NON_AUTHORIZED"
        assert data["service_code"] == 0x6d

    def test_register_org_duplicate(self, client, acme, register_request):
        """Test duplicate registration."""
        response = client.post("/kyc/orgs", json=register_request, headers={"X-Caller": SERVICE_ADMIN})
        assert response.status_code == 409
        assert response.json()["code"] == "ORG_ALREADY_EXISTS"

    def test_register_org_invalid_name(self, client, register_request):
        """Test registration with an invalid name."""
        register_request["name"] = "not a name"
        response = client.post("/kyc/orgs", json=register_request, headers={"X-Caller": SERVICE_ADMIN})
        assert response.status_code == 400
        assert response.json()["service_code"] == 0x66

    def test_get_org_not_found(self, client):
        """Test reading an unknown organization."""
        response = client.get("/kyc/orgs/acme")
        assert response.status_code == 404

        data = response.json()
        assert data["code"] == "ORG_NOT_FOUND"
        assert data["message"] == "Kyc org acme not found"

    def test_get_org_supported_tags(self, client, acme):
        """Test reading an organization's tag schema."""
        response = client.get("/kyc/orgs/acme/supported_tags")
        assert response.status_code == 200
        assert response.json() == {"org_name": "acme", "supported_tags": ["kyc1", "kyc2", "kyc3"]}

    def test_update_supported_tags(self, client, acme):
        """Test replacing an organization's tag schema."""
        response = client.put(
            "/kyc/orgs/acme/supported_tags",
            json={"supported_tags": ["kyc4"]},
            headers={"X-Caller": ORG_ADMIN}
        )
        assert response.status_code == 200
        assert response.json()["code"] == 0

        response = client.get("/kyc/orgs/acme")
        assert response.json()["supported_tags"] == ["kyc4"]

    def test_change_org_admin(self, client, acme):
        """Test transferring an organization's admin role."""
        response = client.put(
            "/kyc/orgs/acme/admin", json={"new_admin": STRANGER}, headers={"X-Caller": ORG_ADMIN}
        )
        assert response.status_code == 200

        response = client.get("/kyc/orgs/acme")
        assert response.json()["admin"] == STRANGER

    def test_change_service_admin(self, client):
        """Test transferring the service admin role."""
        response = client.put("/kyc/admin", json={"new_admin": STRANGER}, headers={"X-Caller": SERVICE_ADMIN})
        assert response.status_code == 200

        response = client.get("/kyc/admin")
        assert response.json()["admin"] == STRANGER

    def test_user_tags(self, client, acme):
        """Test assigning and reading user tags."""
        response = client.put(
            f"/kyc/orgs/acme/users/{USER}/tags",
            json={"tags": {"kyc1": ["passed"]}},
            headers={"X-Caller": ORG_ADMIN}
        )
        assert response.status_code == 200

        response = client.get(f"/kyc/orgs/acme/users/{USER}/tags")
        assert response.status_code == 200
        assert response.json() == {"org_name": "acme", "user": USER, "tags": {"kyc1": ["passed"]}}

    def test_user_tags_unsupported(self, client, acme):
        """Test assigning a tag outside the schema."""
        response = client.put(
            f"/kyc/orgs/acme/users/{USER}/tags",
            json={"tags": {"kyc9": ["passed"]}},
            headers={"X-Caller": ORG_ADMIN}
        )
        assert response.status_code == 400

        data = response.json()
        assert data["code"] == "OUT_OF_SUPPORTED_TAGS"
        assert data["service_code"] == 110

    def test_user_tags_unapproved(self, client, register_request):
        """Test assigning tags under an unapproved organization."""
        client.post("/kyc/orgs", json=register_request, headers={"X-Caller": SERVICE_ADMIN})

        response = client.put(
            f"/kyc/orgs/acme/users/{USER}/tags",
            json={"tags": {"kyc1": ["passed"]}},
            headers={"X-Caller": ORG_ADMIN}
        )
        assert response.status_code == 400
        assert response.json()["service_code"] == 0x6c

    def test_eval(self, client, acme):
        """Test expression evaluation."""
        client.put(
            f"/kyc/orgs/acme/users/{USER}/tags",
            json={"tags": {"kyc1": ["passed"]}},
            headers={"X-Caller": ORG_ADMIN}
        )

        response = client.post("/kyc/eval", json={"user": USER, "expression": "acme.kyc1@`passed`"})
        assert response.status_code == 200
        assert response.json() == {"user": USER, "expression": "acme.kyc1@`passed`", "result": True}

        response = client.post("/kyc/eval", json={"user": USER, "expression": "acme.kyc1@`failed`"})
        assert response.json()["result"] is False

    def test_eval_parse_error(self, client):
        """Test evaluation of a malformed expression."""
        response = client.post("/kyc/eval", json={"user": USER, "expression": "acme.kyc1@"})
        assert response.status_code == 400

        data = response.json()
        assert data["code"] == "EXPRESSION_PARSE_ERROR"
        assert data["details"] == {"position": 10}

    def test_events(self, client, acme):
        """Test the event log."""
        response = client.get("/kyc/events")
        assert response.status_code == 200
        assert [e["topic"] for e in response.json()] == ["register_org", "change_org_approved"]

    def test_stats(self, client, acme):
        """Test service statistics."""
        response = client.get("/kyc/stats")
        assert response.status_code == 200

        data = response.json()
        assert data["store"] == {"total_orgs": 1, "approved_orgs": 1, "user_records": 0}
        assert data["events"] == 2


class TestGenesis:
    """Test cases for the genesis organization."""

    def test_genesis_org_created_approved(self):
        """Test that a configured genesis organization starts approved."""
        config = get_kyc_config(
            service_admin=SERVICE_ADMIN,
            genesis_org_name="genesis",
            genesis_supported_tags=["kyc1"]
        )
        service = KycService(config)

        org = service.directory.get_org_info("genesis")
        assert org.approved is True
        assert org.admin == SERVICE_ADMIN
        assert org.supported_tags == ["kyc1"]

    def test_no_genesis_by_default(self):
        """Test that no organization exists without genesis config."""
        service = KycService(get_kyc_config(service_admin=SERVICE_ADMIN, genesis_org_name=None))

        assert service.directory.get_orgs() == []


class TestRequestMetrics:
    """Test cases for HTTP request metrics."""

    @pytest.fixture
    def service(self):
        """Create KycService with an approved 'acme' organization."""
        service = KycService(get_kyc_config(service_admin=SERVICE_ADMIN))
        service.directory.register_org("acme", "", ORG_ADMIN, ["kyc1"], SERVICE_ADMIN)
        service.directory.change_org_approved("acme", True, SERVICE_ADMIN)
        return service

    @pytest.fixture
    def client(self, service):
        """Create test client."""
        return TestClient(service.app)

    def test_requests_labelled_by_route_template(self, service, client):
        """Test that different users' requests share one series."""
        for user in [USER, STRANGER]:
            response = client.get(f"/kyc/orgs/acme/users/{user}/tags")
            assert response.status_code == 200

        registry = service.metrics.registry
        assert registry.get_sample_value("http_requests_total", {
            "method": "GET",
            "endpoint": "/kyc/orgs/{name}/users/{user}/tags",
            "status_code": "200"
        }) == 2.0
        assert registry.get_sample_value("http_requests_total", {
            "method": "GET",
            "endpoint": f"/kyc/orgs/acme/users/{USER}/tags",
            "status_code": "200"
        }) is None

    def test_unknown_path_is_unmatched(self, service, client):
        """Test that requests matching no route share one series."""
        client.get("/no/such/path")
        client.get("/another/missing/path")

        assert service.metrics.registry.get_sample_value("http_requests_total", {
            "method": "GET",
            "endpoint": "unmatched",
            "status_code": "404"
        }) == 2.0


class TestEventLogLimit:
    """Test cases for the configured event log size."""

    def test_event_log_limit_from_config(self):
        """Test that the service keeps at most max_events events."""
        service = KycService(get_kyc_config(service_admin=SERVICE_ADMIN, max_events=1))
        client = TestClient(service.app)

        service.directory.register_org("acme", "", ORG_ADMIN, ["kyc1"], SERVICE_ADMIN)
        service.directory.change_org_approved("acme", True, SERVICE_ADMIN)

        response = client.get("/kyc/events")
        assert response.status_code == 200
        assert response.json() == [
            {"topic": "change_org_approved", "data": {"org_name": "acme", "approved": True}}
        ]
