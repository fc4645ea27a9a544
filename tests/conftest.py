"""Shared fixtures: a small mock data file and an API client bound to it."""

import json

import pytest
from fastapi.testclient import TestClient

import main
from repo_data import MockDataRepo
from service_health import HealthService
from service_stats import StatsService


@pytest.fixture
def mock_payload():
    return {
        "patients": [
            {"id": "p1", "name": "Ada Lovelace", "email": "ada@example.com", "createdAt": "2024-01-01T09:00:00Z"},
            {"id": "p2", "name": "Alan Turing", "email": "alan@example.com", "createdAt": "2024-01-03T09:00:00Z"},
            {"id": "p3", "name": "Grace Hopper", "email": "grace@example.com"},
        ],
        "records": [
            {"id": "r1", "patientId": "p1", "title": "Checkup", "date": "2024-01-02"},
            {"id": "r2", "patientId": "p2", "title": "X-ray", "date": "not a date"},
        ],
        "consents": [
            {"id": "c1", "patientId": "p1", "purpose": "Research", "status": "active",
             "createdAt": "2024-01-04T12:00:00Z"},
            {"id": "c2", "patientId": "p2", "purpose": "Insurance", "status": "pending",
             "createdAt": "2024-01-05T12:00:00Z"},
        ],
        "transactions": [
            {"id": "t1", "from": "0xAAA111", "to": "0xBBB222", "timestamp": "2024-01-06T08:00:00Z"},
        ],
    }


@pytest.fixture
def mock_file(tmp_path, mock_payload):
    path = tmp_path / "mock_data.json"
    path.write_text(json.dumps(mock_payload), encoding="utf-8")
    return path


@pytest.fixture
def repo(mock_file):
    return MockDataRepo(str(mock_file))


@pytest.fixture
def client(repo):
    main.app.dependency_overrides[main.get_health_service] = lambda: HealthService(repo)
    main.app.dependency_overrides[main.get_stats_service] = lambda: StatsService(repo)
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()
