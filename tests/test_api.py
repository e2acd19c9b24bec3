"""
API tests: natural-language query, content edit workflow, recommendations,
listings, search, health and rate limiting
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from tripdesk.api.content_edit import act_on_edit
from tripdesk.errors import EditConflictError
from tripdesk.interfaces import EditStore, InMemoryListingRepository, MemoryStore, SearchCache
from tripdesk.main import create_app
from tripdesk.parsers import propose_edit
from tripdesk.schemas import ContentEditActionRequest, EditAction


def _preview(client, command="Decrease price by 2000", target_type="flight", target_id="FL001"):
    return client.post("/api/ai/content-edit", json={
        "targetType": target_type,
        "targetId": target_id,
        "naturalLanguageCommand": command,
        "userId": "supplier-1"
    })


# ============================================
# Service
# ============================================

def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["components"]["listings"]["backend"] == "memory"
    assert data["components"]["kv_store"]["status"] == "connected"


def test_health_degraded(test_settings, repository):
    class DownStore(MemoryStore):
        def ping(self):
            return False

    app = create_app(settings=test_settings, listing_repository=repository, kv_store=DownStore())
    with TestClient(app) as client:
        response = client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


# ============================================
# Natural-language query
# ============================================

def test_nl_query_non_stop_flights(client):
    response = client.post("/api/ai/nl-query", json={
        "naturalLanguage": "non-stop flights under 20000",
        "category": "flights"
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["id"].startswith("QUERY_")
    assert data["isSafe"] is True
    assert data["parsedQuery"]["filters"] == {"stops": 0, "maxPrice": 20000}
    assert data["resultsCount"] == 1
    assert [r["id"] for r in data["results"]] == ["FL001"]


def test_nl_query_sorted_hotels(client):
    response = client.post("/api/ai/nl-query", json={
        "naturalLanguage": "cheapest hotels",
        "category": "hotels"
    })

    assert response.status_code == 200
    results = response.json()["data"]["results"]
    assert [r["id"] for r in results] == ["HT002", "HT001", "HT003"]
    assert results[0]["pricePerNight"] == 4200


def test_nl_query_limit(client):
    response = client.post("/api/ai/nl-query", json={
        "naturalLanguage": "top 2 cheapest flights",
        "category": "flights"
    })

    assert response.json()["data"]["resultsCount"] == 2


def test_nl_query_not_understood(client):
    response = client.post("/api/ai/nl-query", json={
        "naturalLanguage": "show me something nice",
        "category": "activities"
    })

    assert response.status_code == 400
    assert response.json()["code"] == "COMMAND_NOT_UNDERSTOOD"


def test_nl_query_unsafe_limit_is_blocked(client):
    response = client.post("/api/ai/nl-query", json={
        "naturalLanguage": "top 500 flights",
        "category": "flights"
    })

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "UNSAFE_QUERY"
    assert body["error"] == "Unsafe query detected"


def test_nl_query_invalid_category(client):
    response = client.post("/api/ai/nl-query", json={
        "naturalLanguage": "cheapest trains",
        "category": "trains"
    })

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_nl_query_missing_fields(client):
    response = client.post("/api/ai/nl-query", json={"category": "flights"})

    assert response.status_code == 400


# ============================================
# Content edit workflow
# ============================================

def test_edit_preview(client):
    response = _preview(client)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Preview generated successfully. Review changes before applying."
    edit = body["data"]
    assert edit["id"].startswith("EDIT_")
    assert edit["status"] == "preview"
    assert edit["createdBy"] == "supplier-1"
    assert edit["changedFields"] == {"price": 2500}
    assert edit["changes"] == ["price"]
    assert edit["originalContent"]["price"] == 4500
    assert edit["proposedContent"] == {**edit["originalContent"], "price": 2500}


def test_edit_preview_does_not_touch_listing(client):
    _preview(client)

    assert client.get("/api/listings/flights/FL001").json()["data"]["price"] == 4500


def test_edit_preview_missing_listing(client):
    response = _preview(client, target_id="FL999")

    assert response.status_code == 404
    assert response.json()["error"] == "Item not found"


def test_edit_preview_not_understood(client):
    response = _preview(client, command="make it fancy")

    assert response.status_code == 400
    assert response.json()["error"] == "Could not parse command"


def test_edit_preview_invalid_target_type(client):
    response = _preview(client, target_type="train")

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_get_edit(client):
    edit_id = _preview(client).json()["data"]["id"]

    response = client.get(f"/api/ai/content-edit/{edit_id}")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "preview"
    assert client.get("/api/ai/content-edit/EDIT_unknown").status_code == 404


def test_apply_edit(client):
    edit_id = _preview(client).json()["data"]["id"]

    response = client.put("/api/ai/content-edit", json={
        "editId": edit_id, "action": "apply", "userId": "supplier-1"
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["action"] == "applied"
    assert data["appliedBy"] == "supplier-1"
    assert data["updatedItem"]["price"] == 2500
    assert client.get("/api/listings/flights/FL001").json()["data"]["price"] == 2500
    assert client.get(f"/api/ai/content-edit/{edit_id}").json()["data"]["status"] == "applied"


def test_apply_with_matching_echo(client):
    edit = _preview(client, command="add 5 seats", target_type="bus", target_id="BS001").json()["data"]

    response = client.put("/api/ai/content-edit", json={
        "editId": edit["id"],
        "action": "apply",
        "targetType": "bus",
        "targetId": "BS001",
        "changedFields": edit["changedFields"]
    })

    assert response.status_code == 200
    assert response.json()["data"]["updatedItem"]["availableSeats"] == 23


def test_apply_twice_conflicts(client):
    edit_id = _preview(client).json()["data"]["id"]
    client.put("/api/ai/content-edit", json={"editId": edit_id, "action": "apply"})

    response = client.put("/api/ai/content-edit", json={"editId": edit_id, "action": "apply"})

    assert response.status_code == 409
    assert response.json()["code"] == "EDIT_CONFLICT"


def test_apply_rejects_tampered_delta(client):
    edit_id = _preview(client).json()["data"]["id"]

    response = client.put("/api/ai/content-edit", json={
        "editId": edit_id,
        "action": "apply",
        "targetType": "flight",
        "targetId": "FL001",
        "changedFields": {"price": 1}
    })

    assert response.status_code == 409
    assert client.get("/api/listings/flights/FL001").json()["data"]["price"] == 4500


def test_apply_rejects_other_target(client):
    edit_id = _preview(client).json()["data"]["id"]

    response = client.put("/api/ai/content-edit", json={
        "editId": edit_id, "action": "apply", "targetId": "FL002"
    })

    assert response.status_code == 409


def test_apply_stale_preview_conflicts(client, repository):
    edit_id = _preview(client).json()["data"]["id"]
    repository.update("flight", "FL001", {"price": 5000})

    response = client.put("/api/ai/content-edit", json={"editId": edit_id, "action": "apply"})

    assert response.status_code == 409
    assert response.json()["details"] == {"staleFields": ["price"]}
    assert repository.get("flight", "FL001").price == 5000


def test_second_preview_of_same_listing_goes_stale(client):
    cheaper = _preview(client, command="decrease price by 1000").json()["data"]["id"]
    dearer = _preview(client, command="increase price by 5000").json()["data"]["id"]

    first = client.put("/api/ai/content-edit", json={"editId": cheaper, "action": "apply"})
    second = client.put("/api/ai/content-edit", json={"editId": dearer, "action": "apply"})

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["details"] == {"staleFields": ["price"]}
    assert client.get("/api/listings/flights/FL001").json()["data"]["price"] == 3500


class SlowRepository(InMemoryListingRepository):
    """Widens the window between reading a listing and writing it"""

    def get(self, listing_type, listing_id):
        time.sleep(0.05)
        return super().get(listing_type, listing_id)


def test_concurrent_applies_to_one_listing():
    repository = SlowRepository()
    edit_store = EditStore(MemoryStore())
    original = repository.get("flight", "FL001").to_record()
    edits = [
        propose_edit(command, original, "flight", "FL001")
        for command in ("decrease price by 1000", "increase price by 5000")
    ]
    for edit in edits:
        edit_store.save(edit)
    barrier = threading.Barrier(len(edits))

    def apply(edit):
        barrier.wait()
        try:
            act_on_edit(
                ContentEditActionRequest(edit_id=edit.id, action=EditAction.APPLY),
                repository=repository,
                edit_store=edit_store,
                search_cache=SearchCache(MemoryStore())
            )
            return "applied"
        except EditConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=len(edits)) as pool:
        outcomes = list(pool.map(apply, edits))

    assert sorted(outcomes) == ["applied", "conflict"]
    winner = edits[outcomes.index("applied")]
    assert repository.get("flight", "FL001").price == winner.changed_fields["price"]


def test_reject_edit(client):
    edit_id = _preview(client).json()["data"]["id"]

    response = client.put("/api/ai/content-edit", json={"editId": edit_id, "action": "reject"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Changes rejected. No modifications made."
    assert body["data"]["action"] == "rejected"
    assert body["data"]["rejectedBy"] == "anonymous"
    assert client.get("/api/listings/flights/FL001").json()["data"]["price"] == 4500

    again = client.put("/api/ai/content-edit", json={"editId": edit_id, "action": "apply"})
    assert again.status_code == 409


def test_rollback_not_supported(client):
    edit_id = _preview(client).json()["data"]["id"]

    response = client.put("/api/ai/content-edit", json={"editId": edit_id, "action": "rollback"})

    assert response.status_code == 501
    assert response.json()["code"] == "NOT_IMPLEMENTED"


def test_unknown_edit(client):
    response = client.put("/api/ai/content-edit", json={"editId": "EDIT_nope", "action": "apply"})

    assert response.status_code == 404
    assert response.json()["code"] == "EDIT_NOT_FOUND"


def test_invalid_action(client):
    response = client.put("/api/ai/content-edit", json={"editId": "EDIT_x", "action": "delete"})

    assert response.status_code == 400


# ============================================
# Recommendations
# ============================================

def test_recommendations(client):
    response = client.post("/api/ai/recommendations", json={"userId": "u1", "category": "flights"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Recommendations generated successfully"
    assert body["count"] == len(body["data"]) == 5
    scores = [r["score"] for r in body["data"]]
    assert scores == sorted(scores, reverse=True)
    first = body["data"][0]
    assert first["id"] == f"REC_{first['id'].split('_')[1]}_{first['itemId']}"
    assert first["reason"] == " • ".join(first["reasons"])
    assert 50 <= first["confidence"] <= 100
    assert first["item"]["id"] == first["itemId"]


def test_recommendations_price_range(client):
    response = client.post("/api/ai/recommendations", json={
        "userId": "u1",
        "category": "hotels",
        "context": {"maxPrice": 16000, "budget": 16000}
    })

    data = response.json()["data"]
    assert {r["itemId"] for r in data} == {"HT001", "HT002"}
    assert "💰 Well under budget" in data[0]["reasons"] or "💰 Well under budget" in data[1]["reasons"]


def test_recommendations_skip_sold_out(client, repository):
    repository.update("activity", "AC002", {"availableSpots": 0})

    response = client.post("/api/ai/recommendations", json={"userId": "u1", "category": "activities"})

    assert [r["itemId"] for r in response.json()["data"]] == ["AC001"]


def test_recommendations_invalid_category(client):
    response = client.post("/api/ai/recommendations", json={"userId": "u1", "category": "cars"})

    assert response.status_code == 400


# ============================================
# Listings
# ============================================

def test_list_listings(client):
    response = client.get("/api/listings/hotels", params={"minPrice": 5000})

    assert response.status_code == 200
    body = response.json()
    assert [h["id"] for h in body["data"]] == ["HT001", "HT003"]
    assert body["count"] == 2


def test_list_listings_limit_bounds(client):
    assert client.get("/api/listings/flights", params={"limit": 500}).status_code == 400
    assert len(client.get("/api/listings/flights", params={"limit": 2}).json()["data"]) == 2


def test_get_listing(client):
    response = client.get("/api/listings/buses/BS001")

    assert response.status_code == 200
    assert response.json()["data"]["listingType"] == "bus"
    assert client.get("/api/listings/buses/FL001").status_code == 404


NEW_HOTEL = {
    "name": "Sea Breeze", "location": "Calangute", "city": "Goa", "rating": 4.1,
    "pricePerNight": 3200, "amenities": ["Pool"], "roomType": "Deluxe",
    "availableRooms": 9, "checkIn": "14:00", "checkOut": "11:00",
}


def test_create_listing(client):
    response = client.post("/api/listings/hotels", json=NEW_HOTEL)

    assert response.status_code == 201
    created = response.json()["data"]
    assert created["id"] == "HT004"
    assert created["createdAt"]
    assert client.get("/api/listings/hotels/HT004").json()["data"]["name"] == "Sea Breeze"


def test_create_listing_invalid(client):
    response = client.post("/api/listings/hotels", json={**NEW_HOTEL, "rating": 9})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_LISTING"
    assert client.post("/api/listings/hotels", json={**NEW_HOTEL, "id": "HT1"}).status_code == 400


def test_update_listing(client):
    response = client.put("/api/listings/flights/FL001", json={"price": 3000})

    assert response.status_code == 200
    assert response.json()["data"]["price"] == 3000
    assert client.get("/api/listings/flights/FL001").json()["data"]["price"] == 3000


def test_update_listing_errors(client):
    assert client.put("/api/listings/flights/FL001", json={"id": "FL9"}).json()["code"] == "INVALID_EDIT"
    assert client.put("/api/listings/flights/FL001", json={}).status_code == 400
    assert client.put("/api/listings/flights/FL404", json={"price": 1}).status_code == 404


def test_update_listing_while_edit_is_applied(client, kv_store):
    kv_store.add("edit:lock:listing:flight:FL001", 1)

    response = client.put("/api/listings/flights/FL001", json={"price": 3000})

    assert response.status_code == 409
    assert response.json()["code"] == "EDIT_CONFLICT"


def test_delete_listing(client):
    response = client.delete("/api/listings/buses/BS002")

    assert response.status_code == 200
    assert response.json()["data"]["id"] == "BS002"
    assert client.get("/api/listings/buses/BS002").status_code == 404
    assert client.delete("/api/listings/buses/BS002").status_code == 404


# ============================================
# Search
# ============================================

def test_search_route(client):
    response = client.post("/api/search", json={"category": "flights", "from": "mumbai", "to": "delhi"})

    assert response.status_code == 200
    body = response.json()
    assert [f["id"] for f in body["data"]["results"]] == ["FL001"]
    assert body["data"]["filters"] == {"from": "mumbai", "to": "delhi"}
    assert body["count"] == 1
    assert body["cached"] is False


def test_search_price_range(client):
    response = client.post("/api/search", json={"category": "hotels", "priceRange": [1000, 5000]})

    assert [h["id"] for h in response.json()["data"]["results"]] == ["HT002"]


def test_search_sorted_by_departure(client):
    response = client.post("/api/search", json={
        "category": "buses", "departDate": "2025-03-15", "sortBy": "departure"
    })

    assert [b["id"] for b in response.json()["data"]["results"]] == ["BS003", "BS002", "BS001"]


def test_search_is_cached_until_a_write(client):
    payload = {"category": "flights", "from": "Mumbai", "to": "Delhi"}

    assert client.post("/api/search", json=payload).json()["cached"] is False
    assert client.post("/api/search", json=payload).json()["cached"] is True

    client.put("/api/listings/flights/FL001", json={"price": 3000})
    refreshed = client.post("/api/search", json=payload).json()

    assert refreshed["cached"] is False
    assert refreshed["data"]["results"][0]["price"] == 3000


def test_search_cache_cleared_by_applied_edit(client):
    payload = {"category": "flights", "from": "Mumbai", "to": "Delhi"}
    client.post("/api/search", json=payload)
    edit_id = _preview(client).json()["data"]["id"]

    client.put("/api/ai/content-edit", json={"editId": edit_id, "action": "apply"})
    refreshed = client.post("/api/search", json=payload).json()

    assert refreshed["cached"] is False
    assert refreshed["data"]["results"][0]["price"] == 2500


def test_search_invalid_request(client):
    response = client.post("/api/search", json={"category": "hotels", "priceRange": [5000, 1000]})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


# ============================================
# Rate limiting
# ============================================

def test_rate_limit(test_settings):
    test_settings.RATE_LIMIT_MAX_REQUESTS = 2
    app = create_app(
        settings=test_settings,
        listing_repository=InMemoryListingRepository(),
        kv_store=MemoryStore()
    )
    payload = {"naturalLanguage": "cheapest flights", "category": "flights"}

    with TestClient(app) as client:
        first = client.post("/api/ai/nl-query", json=payload)
        client.post("/api/ai/nl-query", json=payload)
        blocked = client.post("/api/ai/nl-query", json=payload)
        browse = client.get("/api/listings/flights")

    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert blocked.status_code == 429
    assert blocked.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert int(blocked.headers["Retry-After"]) >= 1
    assert browse.status_code == 200
