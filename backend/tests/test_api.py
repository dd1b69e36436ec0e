"""Tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient

from multirec.errors import BackingStoreUnavailable
from multirec.main import app
from multirec.models import Interaction, Product, User
from multirec.stores import EventStore, InteractionStore, SqlAssignmentStore, SqlEventStore, SqlInteractionStore
from multirec.utils.database import create_store_engine, create_session_factory, init_db
from multirec.utils.dependencies import build_services, get_container


class UnavailableInteractionStore(InteractionStore):
    def _fail(self, *args, **kwargs):
        raise BackingStoreUnavailable("interaction")

    products_for_user = _fail
    purchases_by_users_who_bought = _fail
    purchase_counts = _fail
    get_products = _fail
    list_products = _fail


class UnavailableEventStore(EventStore):
    def _fail(self, *args, **kwargs):
        raise BackingStoreUnavailable("event")

    append = _fail
    ping = _fail
    counts_by_model = _fail
    user_events = _fail
    overall_stats = _fail


@pytest.fixture
def engine():
    """Create a test database"""

    engine = create_store_engine("sqlite://")
    init_db(engine)

    db = create_session_factory(engine)()
    db.add_all([User(id=i, username=f"user{i}", email=f"user{i}@example.com") for i in range(1, 5)])
    db.add_all([
        Product(id="A", name="Alpha", category="Fiction", author="Ann", price=10, stock=3, popularity_score=2.0),
        Product(id="B", name="Bravo", category="Fiction", author="Bob", price=12, stock=3, popularity_score=1.0),
        Product(id="C", name="Charlie", category="Science", author="Cid", price=9, stock=3, popularity_score=0.5),
    ])
    purchases = [(1, "A"), (2, "A"), (2, "C"), (3, "A"), (3, "C")]
    db.add_all([Interaction(user_id=u, product_id=p, interaction_type="purchase") for u, p in purchases])
    db.commit()
    db.close()

    yield engine

    engine.dispose()


def override_container(container):
    app.dependency_overrides[get_container] = lambda: container


@pytest.fixture
def container(engine):
    container = build_services(
        SqlInteractionStore(engine),
        SqlAssignmentStore(engine),
        SqlEventStore(engine),
    )
    override_container(container)

    yield container

    app.dependency_overrides.clear()


@pytest.fixture
def client(container):
    """Create a test client"""
    return TestClient(app)


def test_root_endpoint(client):
    """Test root endpoint"""

    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["stores"] == {"interaction": "connected", "assignment": "connected", "event": "connected"}


class StartupOnlyEventStore(SqlEventStore):
    def open(self):
        raise AssertionError("open belongs to application startup")


def test_health_does_not_reopen_stores(engine):
    override_container(build_services(
        SqlInteractionStore(engine),
        SqlAssignmentStore(engine),
        StartupOnlyEventStore(engine),
    ))
    try:
        response = TestClient(app).get("/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["stores"]["event"] == "connected"


def test_health_reports_disconnected_store(engine):
    override_container(build_services(
        SqlInteractionStore(engine),
        SqlAssignmentStore(engine),
        UnavailableEventStore(),
    ))
    try:
        response = TestClient(app).get("/health")
    finally:
        app.dependency_overrides.clear()

    data = response.json()
    assert data["status"] == "degraded"
    assert data["stores"]["event"] == "disconnected"


def test_recommendations_for_assigned_model(client):
    """The assigned model serves the user, consistently"""

    response = client.get("/api/v1/recommendations/1")
    assert response.status_code == 200
    data = response.json()

    assert data["model"] in ("collab", "content", "graph")
    assert len(data["recommendations"]) <= 10
    assert all(r["product_id"] != "A" for r in data["recommendations"])

    again = client.get("/api/v1/recommendations/1").json()
    assert again["model"] == data["model"]

    assignment = client.get("/api/v1/ab/user/1").json()["assignment"]
    assert assignment["model_id"] == data["model_id"]


def test_recommendations_explicit_model(client):
    response = client.get("/api/v1/recommendations/1", params={"model": "collaborative", "limit": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["model"] == "collab"
    assert data["tier"] == "neighborhood"
    assert data["degraded"] is False

    first = data["recommendations"][0]
    assert first["product_id"] == "C"
    assert first["product_name"] == "Charlie"
    assert first["rank"] == 1
    assert first["score"] == pytest.approx(1.0)
    assert first["relative_score"] == pytest.approx(2.0)
    assert first["purchase_count"] == 2


def test_recommendations_unknown_model(client):
    response = client.get("/api/v1/recommendations/1", params={"model": "hybrid"})

    assert response.status_code == 400
    assert "hybrid" in response.json()["detail"]


def test_recommendations_invalid_user(client):
    response = client.get("/api/v1/recommendations/0")

    assert response.status_code == 400


def test_recommendations_invalid_limit(client):
    response = client.get("/api/v1/recommendations/1", params={"limit": 0})

    assert response.status_code == 422


def test_recommendations_tracking_logs_impressions(client):
    """track=true logs one impression per returned product"""

    data = client.get(
        "/api/v1/recommendations/4",
        params={"model": "graph", "limit": 2, "track": "true"},
    ).json()
    assert len(data["recommendations"]) == 2

    counts = client.get(f"/api/v1/events/model/{data['model_id']}/counts").json()
    assert counts == [{"event_type": "impression", "cnt": 2}]


def test_recommendations_store_outage_serves_mock(engine):
    container = build_services(
        UnavailableInteractionStore(),
        SqlAssignmentStore(engine),
        SqlEventStore(engine),
    )
    override_container(container)
    try:
        response = TestClient(app).get("/api/v1/recommendations/1", params={"model": "content", "limit": 3})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    data = response.json()
    assert data["degraded"] is True
    assert data["tier"] == "mock"
    assert [r["product_id"] for r in data["recommendations"]] == ["CONTENT-101", "CONTENT-102", "CONTENT-103"]
    assert data["recommendations"][0]["mock"] is True


def test_category_affinity(client):
    response = client.get("/api/v1/recommendations/1/category-affinity", params={"limit": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["model"] == "graph"
    assert [r["product_id"] for r in data["recommendations"]] == ["B"]


def test_ab_assign_all(client):
    response = client.post("/api/v1/ab/assign-all", params={"models": "1,2,3"})

    assert response.status_code == 200
    assert response.json() == {"assigned": 4, "total": 4, "skipped": 0}

    again = client.post("/api/v1/ab/assign-all", params={"models": "1,2,3"}).json()
    assert again["assigned"] == 0

    stats = client.get("/api/v1/ab/stats").json()
    assert stats["total_users"] == 4


def test_ab_assign_all_defaults(client):
    response = client.post("/api/v1/ab/assign-all")

    assert response.status_code == 200
    assert response.json()["total"] == 4


@pytest.mark.parametrize("models", ["", "a,b", "0"])
def test_ab_assign_all_invalid(client, models):
    response = client.post("/api/v1/ab/assign-all", params={"models": models})

    assert response.status_code == 400


def test_ab_models(client):
    response = client.get("/api/v1/ab/models")

    assert response.status_code == 200
    assert [m["name"] for m in response.json()] == ["collaborative", "content", "graph"]


def test_ab_invalid_user(client):
    assert client.get("/api/v1/ab/user/-1").status_code == 400


def test_log_event(client):
    response = client.post(
        "/api/v1/events",
        json={"user_id": 1, "product_id": "A", "model_id": 1, "event_type": "click", "metadata": {"rank": 1}},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["event_type"] == "click"
    assert data["user_id"] == 1
    assert data["product_id"] == "A"
    assert data["model_id"] == 1
    assert data["metadata"] == {"rank": 1}


def test_log_event_integer_product_id(client):
    response = client.post("/api/v1/events", json={"user_id": 1, "product_id": 5, "event_type": "click"})

    assert response.status_code == 201
    assert response.json()["product_id"] == 5


def test_log_event_requires_type(client):
    response = client.post("/api/v1/events", json={"user_id": 1, "product_id": "A"})

    assert response.status_code == 400
    assert "event_type" in response.json()["detail"]


def test_event_counts(client):
    for event_type in ["impression"] * 3 + ["click"] * 2:
        client.post("/api/v1/events", json={"model_id": 2, "event_type": event_type})

    response = client.get("/api/v1/events/model/2/counts")

    assert response.status_code == 200
    assert "X-Degraded" not in response.headers
    assert {(row["event_type"], row["cnt"]) for row in response.json()} == {("impression", 3), ("click", 2)}


def test_user_events_and_stats(client):
    client.post("/api/v1/events", json={"user_id": 3, "model_id": 1, "event_type": "impression"})
    client.post("/api/v1/events", json={"user_id": 3, "model_id": 1, "event_type": "purchase"})

    events = client.get("/api/v1/events/user/3").json()
    assert [e["event_type"] for e in events["events"]] == ["purchase", "impression"]

    stats = client.get("/api/v1/events/stats").json()
    assert stats["total_events"] == 2
    assert stats["event_types"] == {"impression": 1, "purchase": 1}


def test_event_store_outage(engine):
    """Writes fail with 503 but the event is buffered and counted"""

    container = build_services(
        SqlInteractionStore(engine),
        SqlAssignmentStore(engine),
        UnavailableEventStore(),
    )
    override_container(container)
    try:
        client = TestClient(app)
        response = client.post("/api/v1/events", json={"model_id": 1, "event_type": "click"})
        counts = client.get("/api/v1/events/model/1/counts")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json()["event"]["durable"] is False
    assert counts.status_code == 200
    assert counts.headers["X-Degraded"] == "true"
    assert counts.json() == [{"event_type": "click", "cnt": 1}]


def test_metrics_endpoint(client):
    client.get("/api/v1/recommendations/1", params={"model": "graph"})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "recommendations_generated_total" in response.text
