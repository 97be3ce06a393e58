"""
Natours Backend — Input Sanitizer Tests
=========================================

What we test:
    ✅ Operator keys ("$gt", "a.b") are dropped at any depth
    ✅ "<" becomes "&lt;" in values and keys
    ✅ Non-string scalars pass through untouched
    ✅ sanitize() is idempotent
    ✅ The stage cleans query, body and path params
    ✅ Router path params are sanitized once routing has matched
"""

from unittest.mock import MagicMock

import pytest

from natours.middleware.base import Continue
from natours.middleware.sanitize import SanitizeStage, escape_markup, is_operator_key, sanitize


@pytest.mark.parametrize(
    "key, expected",
    [
        ("$gt", True),
        ("$where", True),
        ("profile.email", True),
        ("email", False),
        ("price$", False),
        (3, False),
    ],
)
def test_is_operator_key(key, expected):
    assert is_operator_key(key) is expected


def test_escape_markup():
    assert escape_markup("<script>alert(1)</script>") == "&lt;script>alert(1)&lt;/script>"
    assert escape_markup("no markup") == "no markup"


class TestSanitize:
    def test_operator_injection_is_neutralized(self):
        payload = {"email": {"$gt": ""}, "password": "pass1234"}
        assert sanitize(payload) == {"email": {}, "password": "pass1234"}

    def test_nested_operator_keys_are_dropped(self):
        payload = {"filter": [{"price": {"$lt": 500}}, {"guide.name": "Leo"}]}
        assert sanitize(payload) == {"filter": [{"price": {}}, {}]}

    def test_markup_in_values_and_keys(self):
        payload = {"name": "<b>Tour</b>", "<img>": "x", "tags": ["<i>", "ok"]}
        assert sanitize(payload) == {
            "name": "&lt;b>Tour&lt;/b>",
            "&lt;img>": "x",
            "tags": ["&lt;i>", "ok"],
        }

    @pytest.mark.parametrize("value", [42, 4.5, True, None])
    def test_scalars_pass_through(self, value):
        assert sanitize({"v": value}) == {"v": value}

    def test_input_is_not_mutated(self):
        payload = {"email": {"$gt": ""}}
        sanitize(payload)
        assert payload == {"email": {"$gt": ""}}

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "<script>", "$ne": 1, "nested": {"a.b": 2, "c": ["<x>", {"$or": []}]}},
            ["<", "&lt;", {"<": "<<"}],
            "<<<",
        ],
    )
    def test_idempotent(self, payload):
        once = sanitize(payload)
        assert sanitize(once) == once


class TestSanitizeStage:
    @pytest.mark.asyncio
    async def test_cleans_query_body_and_params(self, context_factory):
        ctx = context_factory(
            "/api/v1/tours",
            "POST",
            query={"sort": "<price", "$where": "1"},
            params={"tour_id": "<abc>"},
        )
        ctx.body = {"name": "<h1>Tour</h1>", "price": {"$gt": 0}}

        outcome = await SanitizeStage().process(ctx)

        assert isinstance(outcome, Continue)
        assert ctx.query == {"sort": "&lt;price"}
        assert ctx.params == {"tour_id": "&lt;abc>"}
        assert ctx.body == {"name": "&lt;h1>Tour&lt;/h1>", "price": {}}

    @pytest.mark.asyncio
    async def test_repeated_query_values_stay_lists(self, context_factory):
        ctx = context_factory(query={"sort": ["<a", "b"]})
        await SanitizeStage().process(ctx)
        assert ctx.query == {"sort": ["&lt;a", "b"]}


class TestSanitizeHTTP:
    @pytest.mark.asyncio
    async def test_created_tour_stores_escaped_markup(self, client):
        payload = {
            "name": "The <b>Bold</b> Explorer",
            "duration": 3,
            "maxGroupSize": 8,
            "difficulty": "medium",
            "price": 250,
            "$where": "sleep(1000)",
        }

        response = await client.post("/api/v1/tours", json=payload)

        assert response.status_code == 201
        tour = response.json()["data"]["tour"]
        assert tour["name"] == "The &lt;b>Bold&lt;/b> Explorer"
        assert "$where" not in tour

    @pytest.mark.asyncio
    async def test_operator_in_query_is_dropped(self, client):
        response = await client.get("/api/v1/tours", params={"$where": "1", "difficulty": "easy"})

        assert response.status_code == 200
        names = [t["name"] for t in response.json()["data"]["tours"]]
        assert names == ["The Forest Hiker"]

    @pytest.mark.asyncio
    async def test_path_param_is_escaped_before_the_handler(self, client):
        response = await client.get("/api/v1/tours/<script>")

        assert response.status_code == 400
        assert response.json() == {"status": "fail", "message": "Invalid tour_id: &lt;script>."}

    @pytest.mark.asyncio
    async def test_path_params_land_on_the_context(self, app, client):
        seen = {}
        tours = MagicMock()
        tours.get_tour.side_effect = lambda tour_id: seen.setdefault("tour", {"id": str(tour_id)})
        app.state.tour_service = tours
        tour_id = "7d2b3a34-6a0e-4b8f-9c1d-2f4a5e6b7c8d"

        response = await client.get(f"/api/v1/tours/{tour_id}")

        assert response.status_code == 200
        assert seen == {"tour": {"id": tour_id}}
