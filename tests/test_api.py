"""End-to-end tests of the HTTP API over an ASGI transport."""
import httpx
import pytest
import pytest_asyncio

from helf.client.gateway import HttpSessionGateway
from helf.db.database import get_db
from helf.main import create_app
from helf.models.enums import SessionStatus
from helf.schemas.session import SessionSaveRequest, SessionUpdate
from helf.security import create_access_token

PLAN = {
    "plan": {
        "name": "Spring Block",
        "goal": "Squat 150",
        "weeks": [
            {"week_number": 1, "focus": "Volume", "sessions": [{"name": "Lower"}]},
            {"week_number": 2, "focus": "Intensity", "sessions": [{"name": "Lower"}]},
        ],
    }
}

WEEK = {
    "week": {
        "week_number": 1,
        "sessions": [
            {"name": "Lower A", "exercises": [{"name": "Back Squat", "target_sets": 3, "target_reps": 5}]},
        ],
    }
}


@pytest.fixture
def app(session_factory):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def bearer(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    response = await client.get("/plans/active", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"
    assert response.json()["meta"]["request_id"] == "req-42"
    assert response.json()["data"] is None


@pytest.mark.asyncio
async def test_plan_lifecycle(client):
    created = await client.post("/plans", json=PLAN)
    assert created.status_code == 201
    plan_id = created.json()["data"]["plan_id"]
    assert created.json()["meta"]["warnings"] == []

    week = await client.post(f"/plans/{plan_id}/weeks", json=WEEK)
    assert week.status_code == 201
    assert len(week.json()["data"]["session_ids"]) == 1

    active = (await client.get("/plans/active")).json()["data"]
    assert active["id"] == plan_id
    assert active["weeks"][0]["sessions"][0]["exercises"][0]["target_reps"] == "5"

    deleted = await client.delete(f"/plans/{plan_id}")
    assert deleted.status_code == 200
    assert deleted.json()["data"]["batch"]["succeeded"] is True
    assert (await client.get("/plans/active")).json()["data"] is None


@pytest.mark.asyncio
async def test_invalid_plan_body(client):
    response = await client.post("/plans", json={"plan": {"name": "No weeks", "weeks": []}})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_plan_of_other_user(client):
    plan_id = (await client.post("/plans", json=PLAN, headers=bearer(1))).json()["data"]["plan_id"]

    response = await client.delete(f"/plans/{plan_id}", headers=bearer(2))

    assert response.status_code == 404
    body = response.json()
    assert body["data"] is None
    assert body["errors"][0]["code"] == "NF_PLAN_001"


@pytest.mark.asyncio
async def test_invalid_token(client):
    response = await client.get("/sessions", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["errors"][0]["code"] == "AUTH_001"


@pytest.mark.asyncio
async def test_sessions_over_http_gateway(client, app):
    plan_id = (await client.post("/plans", json=PLAN)).json()["data"]["plan_id"]
    session_id = (await client.post(f"/plans/{plan_id}/weeks", json=WEEK)).json()["data"]["session_ids"][0]

    gateway = HttpSessionGateway("http://test", transport=httpx.ASGITransport(app=app))
    try:
        detail = await gateway.fetch_session(session_id)
        assert detail.session.week_number == 1
        squat = detail.exercises[0]
        squat.sets[0].weight = 120
        squat.sets[0].reps = 5

        result = await gateway.save_session(
            session_id,
            SessionSaveRequest(session=SessionUpdate(status=SessionStatus.COMPLETED), exercises=detail.exercises),
        )
        assert result.batch["succeeded"] is True

        saved = await gateway.fetch_session(session_id)
        assert saved.session.status == SessionStatus.COMPLETED
        assert saved.session.completed_date is not None
        assert saved.exercises[0].sets[0].weight == 120
        assert saved.session.name == "Lower A"
    finally:
        await gateway.close()


@pytest.mark.asyncio
async def test_next_session_and_listing(client):
    created = await client.post("/sessions", json={"name": "Ad hoc", "status": "planned"})
    assert created.status_code == 201
    session_id = created.json()["data"]["session_id"]

    listing = (await client.get("/sessions")).json()["data"]
    assert [s["id"] for s in listing] == [session_id]

    nxt = (await client.get("/sessions/next")).json()["data"]
    assert nxt["session"]["id"] == session_id


@pytest.mark.asyncio
async def test_session_from_plan(client):
    response = await client.post("/sessions/from-plan", json={
        "session": {"name": "Pull", "exercises": [{"name": "Chin Up", "target_sets": 2}]},
    })

    assert response.status_code == 201
    session_id = response.json()["data"]["session_ids"][0]
    detail = (await client.get(f"/sessions/{session_id}")).json()["data"]
    assert detail["session"]["status"] == "planned"
    assert len(detail["exercises"][0]["sets"]) == 2


@pytest.mark.asyncio
async def test_missing_session(client):
    response = await client.get("/sessions/999")
    assert response.status_code == 404
    assert response.json()["errors"][0]["code"] == "NF_SESSION_001"


@pytest.mark.asyncio
async def test_delete_session(client):
    session_id = (await client.post("/sessions", json={"name": "Oops"})).json()["data"]["session_id"]

    response = await client.delete(f"/sessions/{session_id}")

    assert response.status_code == 200
    assert response.json()["data"]["succeeded"] is True
    assert (await client.get(f"/sessions/{session_id}")).status_code == 404


@pytest.mark.asyncio
async def test_exercise_catalog(client):
    first = (await client.post("/exercises/resolve", json={"name": "Hip Thrust"})).json()["data"]
    again = (await client.post("/exercises/resolve", json={"name": "hip thrust"})).json()["data"]
    assert first == again

    exercise_id = first["exercise_id"]
    patched = await client.patch(f"/exercises/{exercise_id}", json={"variation": "Barbell"})
    assert patched.status_code == 200
    assert patched.json()["data"]["exercise"]["variation"] == "Barbell"

    listing = (await client.get("/exercises", params={"search": "thrust"})).json()["data"]
    assert [e["id"] for e in listing] == [exercise_id]

    missing = await client.patch("/exercises/999", json={"name": "x"})
    assert missing.status_code == 404
