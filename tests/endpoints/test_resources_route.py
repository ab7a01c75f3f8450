import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.helpers.seed import add_branch, add_year, add_semester, add_resource

RESOURCES = "/api/resources"

@pytest.fixture
def context(db_session: Session):
    branch = add_branch(db_session, "CSE")
    other_branch = add_branch(db_session, "ECE", "Electronics")
    year = add_year(db_session, 2023)
    semester = add_semester(db_session, year, 1)
    add_resource(db_session, "DBMS Unit 1", subject="dbms", unit=1, branch=branch, year=year, semester=semester)
    add_resource(db_session, "DBMS Unit 2", subject="dbms", unit=2, branch=branch, year=year, semester=semester)
    add_resource(db_session, "DBMS Unit 3", subject="dbms", unit=3, branch=branch, year=year, semester=semester, deleted=True)
    add_resource(db_session, "DBMS ECE", subject="dbms", unit=1, branch=other_branch, year=year, semester=semester)
    add_resource(db_session, "Data Structures Unit 1", subject="data structures", branch=branch, year=year, semester=semester)
    return {"branch": branch, "year": year, "semester": semester}

def test_missing_required_parameters(client: TestClient):
    response = client.get(RESOURCES, params={"category": "notes"})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Missing required query parameters: category, subject"

def test_filters_by_legacy_context(client: TestClient, context):
    response = client.get(RESOURCES, params={
        "category": "Notes", "subject": "DBMS", "year": "3", "branch": "cse", "semester": "1"
    })
    assert response.status_code == 200
    rows = response.json()
    assert [r["name"] for r in rows] == ["DBMS Unit 1", "DBMS Unit 2"]
    first = rows[0]
    assert first["title"] == first["name"]
    assert first["branch"]["code"] == "CSE"
    assert first["year"]["batch_year"] == 2023
    assert first["semester"]["semester_number"] == 1
    assert first["url"].startswith("https://files.example.com/")

def test_filters_by_ids_and_unit(client: TestClient, context):
    response = client.get(RESOURCES, params={
        "category": "notes",
        "subject": "dbms",
        "unit": "2",
        "branch_id": context["branch"].id,
        "year_id": context["year"].id,
        "semester_id": context["semester"].id,
    })
    assert [r["name"] for r in response.json()] == ["DBMS Unit 2"]

def test_encoded_subject_is_decoded(client: TestClient, context):
    response = client.get(RESOURCES, params={"category": "notes", "subject": "Data%20Structures", "branch": "CSE"})
    assert [r["name"] for r in response.json()] == ["Data Structures Unit 1"]

def test_invalid_unit(client: TestClient):
    response = client.get(RESOURCES, params={"category": "notes", "subject": "dbms", "unit": "one"})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid unit number"

def test_invalid_year_number(client: TestClient):
    response = client.get(RESOURCES, params={"category": "notes", "subject": "dbms", "year": "9"})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid year number. Expected 1-4."

def test_repeat_lookup_is_cached(client: TestClient, context):
    params = {"category": "notes", "subject": "dbms", "branch": "CSE", "year": "3"}
    assert client.get(RESOURCES, params=params).headers["X-Cache"] == "MISS"
    assert client.get(RESOURCES, params=dict(reversed(list(params.items())))).headers["X-Cache"] == "HIT"
