from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
import yaml
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine, select

from uniflash.api.dependencies import (
    get_card_store,
    get_preferences_store,
    get_review_registry,
    get_session,
)
from uniflash.db.schemas import Flashcard, ReviewSession
from uniflash.main import app
from uniflash.services.card_store import SQLCardStore
from uniflash.services.preferences_service import INTERVAL_SETTINGS_KEY, PreferencesStore
from uniflash.services.review_engine import ReviewSessionRegistry


@pytest.fixture(name="engine")
def engine_fixture() -> Generator:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="preferences_path")
def preferences_path_fixture(tmp_path: Path) -> Path:
    return tmp_path / "preferences.yaml"


@pytest.fixture(name="registry")
def registry_fixture() -> ReviewSessionRegistry:
    return ReviewSessionRegistry()


@pytest.fixture(name="client")
def client_fixture(
    engine, preferences_path: Path, registry: ReviewSessionRegistry
) -> Generator[TestClient, None, None]:
    def override_get_session() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_card_store] = lambda: SQLCardStore(engine)
    app.dependency_overrides[get_preferences_store] = lambda: PreferencesStore(preferences_path)
    app.dependency_overrides[get_review_registry] = lambda: registry
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


def _seed_due_cards(engine, count: int, set_id=None, interval_days: int = 1) -> list[int]:
    ids = []
    with Session(engine) as session:
        for index in range(count):
            card = Flashcard(
                front=f"question {index}",
                back=f"answer {index}",
                set_id=set_id,
                interval_days=interval_days,
                next_review=datetime.now(timezone.utc) - timedelta(hours=count - index),
            )
            session.add(card)
            session.commit()
            session.refresh(card)
            ids.append(card.id)
    return ids


def _start(client: TestClient, **payload) -> dict:
    resp = client.post("/review/sessions", json=payload)
    assert resp.status_code == 201
    return resp.json()


def test_full_review_session_records_summary(
    client: TestClient, engine, registry: ReviewSessionRegistry
) -> None:
    ids = _seed_due_cards(engine, 3)
    state = _start(client, shuffle=False)
    token = state["token"]
    assert len(registry) == 1
    assert state["state"] == "answer_hidden"
    assert state["total"] == 3
    assert state["card"]["prompt"] == "question 0"
    assert state["card"]["answer"] is None

    for position in range(3):
        revealed = client.post(f"/review/sessions/{token}/reveal").json()
        assert revealed["card"]["id"] == ids[position]
        assert revealed["card"]["answer"] == f"answer {position}"
        state = client.post(f"/review/sessions/{token}/rate", json={"rating": "again"}).json()

    assert state["state"] == "finished"
    assert state["reviewed_count"] == 3
    assert state["summary"]["cards_reviewed"] == 3
    assert state["streak"] == {"current_streak": 1, "longest_streak": 1}
    assert len(registry) == 0
    assert client.get(f"/review/sessions/{token}").status_code == 404

    with Session(engine) as session:
        sessions = session.exec(select(ReviewSession)).all()
        assert len(sessions) == 1
        assert sessions[0].cards_reviewed == 3
        cards = session.exec(select(Flashcard)).all()
        now = datetime.now(timezone.utc)
        for card in cards:
            assert card.interval_days == 1
            assert card.last_reviewed is not None
            assert card.next_review.replace(tzinfo=timezone.utc) > now

    streak = client.get("/streak").json()
    assert streak["current_streak"] == 1


def test_no_due_cards_reports_all_caught_up(client: TestClient) -> None:
    state = _start(client)
    assert state["state"] == "empty"
    assert state["card"] is None
    assert client.get(f"/review/sessions/{state['token']}").status_code == 404


def test_rating_before_reveal_is_conflict(client: TestClient, engine) -> None:
    _seed_due_cards(engine, 1)
    token = _start(client)["token"]
    resp = client.post(f"/review/sessions/{token}/rate", json={"rating": "good"})
    assert resp.status_code == 409


def test_invalid_rating_is_rejected(client: TestClient, engine) -> None:
    _seed_due_cards(engine, 1)
    token = _start(client)["token"]
    client.post(f"/review/sessions/{token}/reveal")
    resp = client.post(f"/review/sessions/{token}/rate", json={"rating": "perfect"})
    assert resp.status_code == 422


def test_set_filter_limits_session(client: TestClient, engine) -> None:
    resp = client.post("/sets", json={"name": "Anatomy"})
    set_id = resp.json()["id"]
    _seed_due_cards(engine, 2)
    _seed_due_cards(engine, 1, set_id=set_id)

    assert _start(client, set_ids=[set_id])["total"] == 1
    assert _start(client, set_ids=[])["total"] == 3


def test_saved_policy_is_used_for_new_sessions(client: TestClient, engine) -> None:
    ids = _seed_due_cards(engine, 1, interval_days=5)
    policy = client.get("/preferences/interval-policy").json()
    assert policy["maxDays"] == 365
    policy["easy"] = {"value": 4, "unit": "multiplier"}
    assert client.put("/preferences/interval-policy", json=policy).status_code == 200

    token = _start(client)["token"]
    client.post(f"/review/sessions/{token}/reveal")
    client.post(f"/review/sessions/{token}/rate", json={"rating": "easy"})

    with Session(engine) as session:
        card = session.get(Flashcard, ids[0])
        assert card.interval_days == 20


def test_refresh_policy_mid_session(client: TestClient, engine) -> None:
    ids = _seed_due_cards(engine, 2, interval_days=3)
    token = _start(client)["token"]
    policy = client.get("/preferences/interval-policy").json()
    policy["good"] = {"value": 2, "unit": "multiplier"}
    client.put("/preferences/interval-policy", json=policy)
    client.post(f"/review/sessions/{token}/refresh-policy")
    client.post(f"/review/sessions/{token}/reveal")
    client.post(f"/review/sessions/{token}/rate", json={"rating": "good"})

    with Session(engine) as session:
        assert session.get(Flashcard, ids[0]).interval_days == 6


def test_broken_stored_policy_is_reported(client: TestClient, engine, preferences_path: Path) -> None:
    _seed_due_cards(engine, 1)
    preferences_path.write_text(
        yaml.safe_dump({INTERVAL_SETTINGS_KEY: {"good": {"value": 0, "unit": "days"}}}),
        encoding="utf-8",
    )
    resp = client.post("/review/sessions", json={})
    assert resp.status_code == 422


def test_auto_shuffle_preference_and_keyboard_hints(client: TestClient, engine) -> None:
    _seed_due_cards(engine, 2)
    client.patch("/preferences", json={"auto_shuffle_review": True, "show_keyboard_hints": False})
    state = _start(client)
    assert state["show_keyboard_hints"] is False
    assert state["total"] == 2


def test_session_actions(client: TestClient, engine) -> None:
    ids = _seed_due_cards(engine, 3)
    token = _start(client, shuffle=False)["token"]

    reversed_state = client.post(f"/review/sessions/{token}/reverse").json()
    assert reversed_state["reverse_mode"] is True
    assert reversed_state["card"]["prompt"] == "answer 0"

    flagged = client.post(f"/review/sessions/{token}/flag").json()
    assert flagged["card"]["is_flagged"] is True
    noted = client.put(f"/review/sessions/{token}/notes", json={"notes": "ask in tutorial"}).json()
    assert noted["card"]["notes"] == "ask in tutorial"

    opened = client.post(f"/review/sessions/{token}/slide/open").json()
    assert opened["slide_open"] is True
    closed = client.post(f"/review/sessions/{token}/slide/close").json()
    assert closed["slide_open"] is False

    shuffled = client.post(f"/review/sessions/{token}/shuffle").json()
    assert shuffled["index"] == 0
    assert shuffled["total"] == 3

    with Session(engine) as session:
        card = session.get(Flashcard, ids[0])
        assert card.is_flagged is True
        assert card.notes == "ask in tutorial"
        assert card.last_reviewed is None


def test_abandon_keeps_applied_ratings(client: TestClient, engine) -> None:
    _seed_due_cards(engine, 2)
    token = _start(client, shuffle=False)["token"]
    client.post(f"/review/sessions/{token}/reveal")
    client.post(f"/review/sessions/{token}/rate", json={"rating": "good"})

    assert client.delete(f"/review/sessions/{token}").status_code == 204
    assert client.get(f"/review/sessions/{token}").status_code == 404

    with Session(engine) as session:
        assert session.exec(select(ReviewSession)).all() == []
        reviewed = [card for card in session.exec(select(Flashcard)).all() if card.last_reviewed]
        assert len(reviewed) == 1
