"""POST /estimate — auth gating, validation responses and estimates.

Invariants:
    - Auth is checked before the body: 401 wins over any validation failure
    - Validation failures are 400 with field "dish" and the specific message
    - Identical requests produce byte-identical bodies
"""

import pytest

from carbon_api.api.routes import estimate as estimate_routes
from carbon_api.core.domain_types import Estimate


async def test_estimate_requires_authentication(client):
    res = await client.post("/estimate", json={"dish": "Pasta"})
    assert res.status_code == 401
    assert res.headers["www-authenticate"] == 'Basic realm="Carbon Footprint API"'
    assert res.json()["error"] == "AuthenticationError"


@pytest.mark.parametrize("body", [{}, {"dish": ""}, {"dish": 5}, {"dish": "a" * 500}])
async def test_missing_auth_beats_invalid_body(client, body):
    res = await client.post("/estimate", json=body)
    assert res.status_code == 401


async def test_wrong_credentials_are_rejected(client, make_auth):
    res = await client.post(
        "/estimate", json={"dish": "Pasta"}, headers=make_auth("tester", "wrong"),
    )
    assert res.status_code == 401
    assert res.json() == {"error": "AuthenticationError", "message": "Invalid credentials"}
    assert "Basic" in res.headers["www-authenticate"]


async def test_chicken_biryani_scenario(client, auth):
    res = await client.post("/estimate", json={"dish": "Chicken Biryani"}, headers=auth)
    assert res.status_code == 200
    assert res.json() == {
        "dish": "Chicken Biryani",
        "estimated_carbon_kg": 4.2,
        "ingredients": [
            {"name": "Rice", "carbon_kg": 1.1},
            {"name": "Chicken", "carbon_kg": 2.5},
            {"name": "Spices", "carbon_kg": 0.2},
            {"name": "Oil", "carbon_kg": 0.4},
        ],
    }


@pytest.mark.parametrize(
    "dish, total", [("Garden salad", 0.4), ("Pasta", 0.8), ("chicken biryani", 4.2)],
)
async def test_estimate_totals(client, auth, dish, total):
    res = await client.post("/estimate", json={"dish": dish}, headers=auth)
    assert res.status_code == 200
    body = res.json()
    assert body["estimated_carbon_kg"] == total
    assert body["estimated_carbon_kg"] == round(
        sum(i["carbon_kg"] for i in body["ingredients"]), 2,
    )


async def test_empty_body_is_missing_dish(client, auth):
    res = await client.post("/estimate", json={}, headers=auth)
    assert res.status_code == 400
    assert res.json() == {
        "error": "ValidationError",
        "message": "Dish name is required",
        "field": "dish",
    }


async def test_no_body_at_all_is_missing_dish(client, auth):
    res = await client.post("/estimate", headers=auth)
    assert res.status_code == 400
    assert res.json()["field"] == "dish"


@pytest.mark.parametrize(
    "body, message",
    [
        ({"dish": 12}, "Dish name must be a string"),
        ({"dish": None}, "Dish name must be a string"),
        ({"dish": "   "}, "Dish name cannot be empty or whitespace"),
        ({"dish": "x" * 101}, "Dish name must be 100 characters or less"),
    ],
)
async def test_invalid_dish_messages(client, auth, body, message):
    res = await client.post("/estimate", json=body, headers=auth)
    assert res.status_code == 400
    assert res.json()["field"] == "dish"
    assert res.json()["message"] == message


async def test_dish_is_sanitized_before_estimation(client, auth):
    res = await client.post(
        "/estimate", json={"dish": "  <i>Tuna</i> salad "}, headers=auth,
    )
    assert res.status_code == 200
    assert res.json()["dish"] == "Tuna salad"


async def test_url_encoded_body_is_accepted(client, auth):
    res = await client.post("/estimate", data={"dish": "Salad"}, headers=auth)
    assert res.status_code == 200
    assert res.json()["estimated_carbon_kg"] == 0.4


async def test_malformed_json_is_rejected(client, auth):
    res = await client.post(
        "/estimate",
        content=b'{"dish": ',
        headers={**auth, "Content-Type": "application/json"},
    )
    assert res.status_code == 400
    assert res.json()["error"] == "MalformedBodyError"


async def test_body_over_10kb_is_rejected(client, auth):
    res = await client.post("/estimate", json={"dish": "x" * 11_000}, headers=auth)
    assert res.status_code == 413
    assert res.json()["error"] == "PayloadTooLargeError"
    assert res.json()["limit"] == 10 * 1024


async def test_chunked_body_is_cut_off_at_limit(client, auth):
    chunks_sent = []

    async def chunks():
        for _ in range(200):
            chunks_sent.append(1024)
            yield b"x" * 1024

    res = await client.post(
        "/estimate",
        content=chunks(),
        headers={**auth, "Content-Type": "application/json"},
    )
    assert res.status_code == 413
    assert res.json()["limit"] == 10 * 1024
    assert 10 * 1024 < res.json()["length"] <= 11 * 1024
    assert sum(chunks_sent) < 200 * 1024


async def test_repeated_requests_are_byte_identical(client, auth):
    bodies = [
        (await client.post("/estimate", json={"dish": "Chicken Biryani"}, headers=auth)).content
        for _ in range(5)
    ]
    assert len(set(bodies)) == 1


async def test_empty_estimate_is_estimation_error(client, auth, monkeypatch):
    monkeypatch.setattr(
        estimate_routes,
        "estimate_carbon_from_dish",
        lambda dish: Estimate(dish=dish, estimated_carbon_kg=0, ingredients=()),
    )
    res = await client.post("/estimate", json={"dish": "Air"}, headers=auth)
    assert res.status_code == 404
    assert res.json() == {
        "error": "EstimationError",
        "message": "Could not estimate carbon footprint for the given dish",
        "dish": "Air",
    }


async def test_get_estimate_is_route_miss(client, auth):
    res = await client.get("/estimate", headers=auth)
    assert res.status_code == 404
    assert res.json() == {"error": "NotFound", "message": "Cannot GET /estimate"}
