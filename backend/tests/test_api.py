import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_reranker
from main import app
from services.cache import ResultCache
from services.embeddings import HashEmbedder
from services.reranker import RerankService
from services.sequence_store import CandidateRecord, InMemorySequenceStore

USER_EVENTS = [
    {"role": "backend intern", "organization": "Startup X", "period_label": "sophomore"},
    {"role": "SWE intern", "organization": "Google", "period_label": "junior"},
]


@pytest.fixture
def reranker(tables):
    embedder = HashEmbedder(dimension=32)
    texts = ["backend intern at Startup X (sophomore)", "SWE intern at Google (junior)"]
    store = InMemorySequenceStore([
        CandidateRecord(
            candidate_id="twin",
            events=[embedder.embed(t) for t in texts],
            organizations=["Startup X", "Google"],
            institutions=["University of Illinois Urbana-Champaign"],
        ),
        CandidateRecord(
            candidate_id="other",
            events=[embedder.embed("barista at Cafe")],
            organizations=["Cafe"],
        ),
    ])
    return RerankService(embedder, store, ResultCache(max_entries=4, ttl_seconds=60), tables)


@pytest.fixture
def client(reranker):
    with TestClient(app) as test_client:
        app.dependency_overrides[get_reranker] = lambda: reranker
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["embed_provider"] == "hash"
    assert data["cache_entries"] == 0


def test_rerank(client):
    body = {
        "userEvents": USER_EVENTS,
        "candidateIds": ["other", "twin"],
        "goal": {"target_organization": "Google"},
        "profile": {"institution": "UIUC"},
    }
    response = client.post("/rerank", json=body)
    assert response.status_code == 200
    data = response.json()
    assert data["cached"] is False
    assert data["correlationId"]
    assert set(data["timings"]) == {"embedMs", "scoreMs", "totalMs"}

    top = data["results"][0]
    assert top["candidateId"] == "twin"
    assert top["score"] >= 0.8
    assert top["alignment"] is None
    assert set(top["breakdown"]) == {
        "careerSimilarity", "institutionSimilarity", "organizationProximity", "blended",
    }

    again = client.post("/rerank", json=body).json()
    assert again["cached"] is True
    assert again["results"] == data["results"]


def test_rerank_with_alignment(client):
    body = {"userEvents": USER_EVENTS, "candidateIds": ["twin"], "includeAlignment": True}
    data = client.post("/rerank", json=body).json()
    path = data["results"][0]["alignment"]
    assert path[0] == {"userIndex": 0, "candidateIndex": 0, "pairDistance": pytest.approx(0.0, abs=1e-6)}
    assert path[-1]["userIndex"] == 1 and path[-1]["candidateIndex"] == 1


def test_rerank_accepts_snake_case_fields(client):
    body = {"user_events": USER_EVENTS, "candidate_ids": ["twin"], "top_n": 1}
    response = client.post("/rerank", json=body)
    assert response.status_code == 200
    assert len(response.json()["results"]) == 1


def test_rerank_rejects_duplicate_candidates(client):
    response = client.post("/rerank", json={"userEvents": USER_EVENTS, "candidateIds": ["twin", "twin"]})
    assert response.status_code == 422


def test_rerank_rejects_blank_event(client):
    response = client.post("/rerank", json={"userEvents": [{"role": "  "}], "candidateIds": ["twin"]})
    assert response.status_code == 422


def test_rerank_rejects_non_positive_gamma(client):
    response = client.post("/rerank", json={"userEvents": USER_EVENTS, "gamma": 0})
    assert response.status_code == 422


def test_embedding_failure_is_opaque(client, reranker):
    def boom(text):
        raise RuntimeError("secret stack detail")

    reranker.embedder._encode = boom
    response = client.post("/rerank", json={"userEvents": USER_EVENTS, "candidateIds": ["twin"]})
    assert response.status_code == 502
    data = response.json()
    assert data["error"] == "embedding_failed"
    assert data["correlationId"]
    assert "secret" not in response.text


def test_metrics(client):
    client.post("/rerank", json={"userEvents": USER_EVENTS, "candidateIds": ["twin"]})
    client.post("/rerank", json={"userEvents": USER_EVENTS, "candidateIds": ["twin"]})
    response = client.get("/metrics")
    assert response.status_code == 200
    assert response.json() == {"totalRequests": 2, "cacheHits": 1, "reranks": 1, "errors": 0}
