from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from uniflash.api.dependencies import get_card_store, get_preferences_store, get_session
from uniflash.db.schemas import Flashcard, ReviewSession
from uniflash.main import app
from uniflash.services.card_store import SQLCardStore
from uniflash.services.preferences_service import PreferencesStore


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


@pytest.fixture(name="session")
def session_fixture(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(engine, session: Session, tmp_path: Path) -> Generator[TestClient, None, None]:
    def override_get_session() -> Generator[Session, None, None]:
        yield session

    preferences = PreferencesStore(tmp_path / "preferences.yaml")
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_preferences_store] = lambda: preferences
    app.dependency_overrides[get_card_store] = lambda: SQLCardStore(engine)
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


def _create_set(client: TestClient, name: str) -> int:
    resp = client.post("/sets", json={"name": name, "icon": "🧪", "color": "#22c55e"})
    assert resp.status_code == 201
    return resp.json()["id"]


def _create_card(client: TestClient, front: str, back: str, set_id=None) -> dict:
    resp = client.post("/flashcards", json={"front": front, "back": back, "set_id": set_id})
    assert resp.status_code == 201
    return resp.json()


def test_new_card_is_due_immediately(client: TestClient) -> None:
    before = datetime.now(timezone.utc)
    card = _create_card(client, "What is ATP?", "Energy currency of the cell")
    assert card["interval_days"] == 1
    assert card["last_reviewed"] is None
    assert card["is_flagged"] is False
    next_review = datetime.fromisoformat(card["next_review"].replace("Z", "+00:00"))
    assert before - timedelta(seconds=1) <= next_review <= datetime.now(timezone.utc)


def test_update_and_delete_card(client: TestClient) -> None:
    set_id = _create_set(client, "Biology")
    card = _create_card(client, "Cell", "Unit of life")

    resp = client.patch(f"/flashcards/{card['id']}", json={"back": "Basic unit of life", "set_id": set_id})
    assert resp.status_code == 200
    assert resp.json()["back"] == "Basic unit of life"
    assert resp.json()["set_id"] == set_id

    assert client.delete(f"/flashcards/{card['id']}").status_code == 204
    assert client.get(f"/flashcards/{card['id']}").status_code == 404


def test_card_with_unknown_set_is_rejected(client: TestClient) -> None:
    resp = client.post("/flashcards", json={"front": "a", "back": "b", "set_id": 42})
    assert resp.status_code == 404


def test_list_filters_and_search(client: TestClient) -> None:
    set_id = _create_set(client, "Chemistry")
    acid = _create_card(client, "Acid pH", "Below 7", set_id=set_id)
    base = _create_card(client, "Base pH", "Above 7", set_id=set_id)
    loose = _create_card(client, "Avogadro", "6.022e23")
    client.put(f"/flashcards/{base['id']}/flag", json={"is_flagged": True})

    everything = client.get("/flashcards").json()
    assert [card["id"] for card in everything] == [loose["id"], base["id"], acid["id"]]

    unassigned = client.get("/flashcards", params={"set_filter": "unassigned"}).json()
    assert [card["id"] for card in unassigned] == [loose["id"]]

    flagged = client.get("/flashcards", params={"set_filter": "flagged"}).json()
    assert [card["id"] for card in flagged] == [base["id"]]

    in_set = client.get("/flashcards", params={"set_filter": str(set_id), "search": "ACID"}).json()
    assert [card["id"] for card in in_set] == [acid["id"]]

    assert client.get("/flashcards", params={"set_filter": "nonsense"}).status_code == 400


def test_notes_endpoint(client: TestClient) -> None:
    card = _create_card(client, "Krebs cycle", "Citric acid cycle")
    resp = client.put(f"/flashcards/{card['id']}/notes", json={"notes": "lecture 5, slide 12"})
    assert resp.status_code == 200
    assert resp.json()["notes"] == "lecture 5, slide 12"
    assert resp.json()["interval_days"] == 1


def test_cloze_creates_one_card_per_deletion(client: TestClient) -> None:
    resp = client.post(
        "/flashcards/cloze",
        json={"source_text": "{{c1::Paris}} is the capital of {{c2::France}}, on the {{c1::Seine}}"},
    )
    assert resp.status_code == 201
    cards = resp.json()
    assert [card["cloze_number"] for card in cards] == [1, 2]
    assert cards[0]["front"] == "[...] is the capital of France, on the [...]"
    assert cards[0]["back"] == "Paris, Seine"
    assert cards[1]["front"] == "Paris is the capital of [...], on the Seine"
    assert cards[1]["extractions"] == [
        {"number": 1, "word": "Paris"},
        {"number": 2, "word": "France"},
        {"number": 1, "word": "Seine"},
    ]


def test_cloze_without_markers_is_rejected(client: TestClient) -> None:
    resp = client.post("/flashcards/cloze", json={"source_text": "plain sentence"})
    assert resp.status_code == 400


def test_set_stats_and_delete_unassigns_cards(client: TestClient, session: Session) -> None:
    set_id = _create_set(client, "Physics")
    due = _create_card(client, "F=ma", "Newton II", set_id=set_id)
    later = _create_card(client, "E=mc^2", "Mass-energy", set_id=set_id)
    record = session.get(Flashcard, later["id"])
    record.next_review = datetime.now(timezone.utc) + timedelta(days=3)
    session.add(record)
    session.commit()

    sets = client.get("/sets").json()
    assert sets[0]["total_cards"] == 2
    assert sets[0]["due_cards"] == 1

    assert client.delete(f"/sets/{set_id}").status_code == 204
    assert client.get(f"/flashcards/{due['id']}").json()["set_id"] is None
    assert client.get("/sets").json() == []


def test_set_from_flagged_and_unflag(client: TestClient) -> None:
    assert client.post("/sets/from-flagged", json={}).status_code == 400
    first = _create_card(client, "hard one", "answer")
    second = _create_card(client, "another", "answer")
    _create_card(client, "easy one", "answer")
    for card in (first, second):
        client.put(f"/flashcards/{card['id']}/flag", json={"is_flagged": True})

    resp = client.post("/sets/from-flagged", json={"name": "Tough"})
    assert resp.status_code == 201
    created = resp.json()
    assert created["total_cards"] == 2
    assert created["due_cards"] == 2
    listed = client.get("/sets").json()
    assert [(item["id"], item["due_cards"]) for item in listed] == [(created["id"], 2)]
    assert created["icon"] == "🚩"

    unflag = client.post(f"/sets/{created['id']}/unflag")
    assert unflag.json() == {"unflagged": 2}
    assert client.get("/flashcards", params={"set_filter": "flagged"}).json() == []


def test_dashboard_counts_today(client: TestClient, session: Session) -> None:
    _create_card(client, "one", "1")
    _create_card(client, "two", "2")
    session.add(ReviewSession(cards_reviewed=5, time_spent=240, created_at=datetime.now(timezone.utc)))
    session.add(
        ReviewSession(cards_reviewed=9, time_spent=600, created_at=datetime.now(timezone.utc) - timedelta(days=2))
    )
    session.commit()

    resp = client.get("/dashboard")
    assert resp.status_code == 200
    data = resp.json()
    assert data["due_count"] == 2
    assert data["cards_reviewed_today"] == 5
    assert data["time_spent_today"] == 240


def test_cloze_card_text_comes_from_source(client: TestClient) -> None:
    set_id = _create_set(client, "Geography")
    card = client.post("/flashcards/cloze", json={"source_text": "{{c1::Lima}} is in Peru"}).json()[0]

    resp = client.patch(f"/flashcards/{card['id']}", json={"front": "Where is Lima?"})
    assert resp.status_code == 400
    assert client.get(f"/flashcards/{card['id']}").json()["front"] == "[...] is in Peru"

    moved = client.patch(f"/flashcards/{card['id']}", json={"set_id": set_id})
    assert moved.status_code == 200
    assert moved.json()["set_id"] == set_id
