"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from nutriscan.api.app import create_app
from tests.conftest import (
    VALID_TOKEN,
    FakeCompletionClient,
    FakeProductClient,
    make_product,
)

AUTH = {"Authorization": f"Bearer {VALID_TOKEN}"}
PROFILE = {
    "age": 30,
    "gender": "male",
    "height": 175,
    "weight": 70,
    "activityLevel": "moderately_active",
    "goalType": "maintain_weight",
}


def _client(container) -> TestClient:  # type: ignore[no-untyped-def]
    return TestClient(create_app(container))


def _onboarded_client(container) -> TestClient:  # type: ignore[no-untyped-def]
    client = _client(container)
    client.post("/api/auth/login", json={"token": VALID_TOKEN})
    response = client.post("/api/profile", json=PROFILE, headers=AUTH)
    assert response.status_code == 201
    return client


def test_health(container) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "nutriscan"}


def test_login_then_me(container) -> None:
    client = _client(container)

    login = client.post("/api/auth/login", json={"token": VALID_TOKEN})
    me = client.get("/api/auth/me", headers=AUTH)

    assert login.status_code == 200
    assert login.json()["isNewUser"] is True
    assert me.json()["user"]["email"] == "ada@example.com"


def test_missing_and_invalid_tokens_are_unauthorized(container) -> None:
    client = _client(container)

    missing = client.get("/api/profile")
    invalid = client.get("/api/profile", headers={"Authorization": "Bearer nope"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "Access denied. No token provided."}
    assert invalid.status_code == 401
    assert invalid.json() == {"error": "Invalid or expired token"}


def test_profile_onboarding_creates_goal(container) -> None:
    client = _client(container)
    client.post("/api/auth/login", json={"token": VALID_TOKEN})

    created = client.post("/api/profile", json=PROFILE, headers=AUTH)
    duplicate = client.post("/api/profile", json=PROFILE, headers=AUTH)
    goal = client.get("/api/goals", headers=AUTH)
    login = client.post("/api/auth/login", json={"token": VALID_TOKEN})

    assert created.status_code == 201
    body = created.json()
    assert body["profile"]["bmi"] == 22.9
    assert body["profile"]["bmiCategory"] == "normal"
    assert body["dailyGoal"]["targetCalories"] == 2556
    assert duplicate.status_code == 409
    assert goal.json()["dailyGoal"]["goalType"] == "maintain"
    assert login.json()["isNewUser"] is False


def test_profile_validation_error(container) -> None:
    client = _client(container)
    client.post("/api/auth/login", json={"token": VALID_TOKEN})

    response = client.post(
        "/api/profile", json={**PROFILE, "age": 500}, headers=AUTH
    )

    assert response.status_code == 422
    assert "age" in response.json()["error"]


def test_malformed_body_uses_error_envelope(container) -> None:
    client = _client(container)
    client.post("/api/auth/login", json={"token": VALID_TOKEN})

    response = client.post("/api/profile", json={"age": "old"}, headers=AUTH)

    assert response.status_code == 422
    assert response.json()["error"] == "Invalid request"


def test_stateless_goal_calculation(container) -> None:
    client = _client(container)

    ok = client.post(
        "/api/goals/calculate",
        json={
            "age": 30,
            "gender": "male",
            "height": 175,
            "weight": 70,
            "activityLevel": "moderately_active",
            "goalType": "lose",
        },
    )
    missing = client.post("/api/goals/calculate", json={"age": 30})

    assert ok.status_code == 200
    assert ok.json() == {
        "goalType": "lose",
        "targetCalories": 2056,
        "targetProtein": 154,
        "targetCarbs": 232,
        "targetFat": 57,
    }
    assert missing.status_code == 422


def test_goal_manual_update_and_recalculate(container) -> None:
    client = _onboarded_client(container)

    manual = client.put("/api/goals", json={"targetCalories": 2100}, headers=AUTH)
    recalculated = client.put(
        "/api/goals", json={"goalType": "gain", "recalculate": True}, headers=AUTH
    )
    preview = client.get("/api/goals/calculate?goalType=lose", headers=AUTH)

    assert manual.json()["dailyGoal"]["targetCalories"] == 2100
    assert manual.json()["dailyGoal"]["isAutoCalculated"] is False
    assert recalculated.json()["dailyGoal"]["targetCalories"] == 3056
    assert preview.json()["calculatedGoals"]["targetCalories"] == 2056


def test_manual_goal_requires_all_targets(container) -> None:
    client = _client(container)
    client.post("/api/auth/login", json={"token": VALID_TOKEN})

    response = client.post(
        "/api/goals",
        json={"autoCalculate": False, "targetCalories": 2000},
        headers=AUTH,
    )

    assert response.status_code == 422


def test_scan_log_and_daily_summary(
    container, product_client: FakeProductClient
) -> None:
    product = make_product()
    product_client.products[product.barcode] = product
    client = _onboarded_client(container)

    lookup = client.get(f"/api/food/barcode/{product.barcode}")
    logged = client.post(
        "/api/logs",
        json={"barcode": product.barcode, "amountConsumed": 330},
        headers=AUTH,
    )
    day = logged.json()["consumptionLog"]["date"]
    summary = client.get(f"/api/logs/daily-summary/{day}", headers=AUTH)
    listing = client.get(f"/api/logs?date={day}", headers=AUTH)

    assert lookup.json()["source"] == "openfoodfacts"
    assert lookup.json()["created"] is True
    assert logged.status_code == 201
    assert logged.json()["consumptionLog"]["nutrients"]["calories"] == 138.6
    body = summary.json()
    assert body["itemCount"] == 1
    assert body["summary"]["calories"] == 138.6
    assert body["goalComparison"]["calories"]["goal"] == 2556
    assert body["goalComparison"]["calories"]["percentage"] == 5
    assert listing.json()["pagination"]["total"] == 1


def test_log_update_and_delete(container, product_client: FakeProductClient) -> None:
    product = make_product()
    product_client.products[product.barcode] = product
    client = _onboarded_client(container)

    scanned = client.post(
        "/api/logs/scan", json={"barcode": product.barcode}, headers=AUTH
    )
    entry_id = scanned.json()["consumptionLog"]["id"]
    updated = client.put(
        f"/api/logs/{entry_id}", json={"amountConsumed": 200}, headers=AUTH
    )
    deleted = client.delete(f"/api/logs/{entry_id}", headers=AUTH)
    missing = client.get(f"/api/logs/{entry_id}", headers=AUTH)

    assert scanned.status_code == 201
    assert scanned.json()["source"] == "openfoodfacts"
    assert updated.json()["consumptionLog"]["nutrients"]["calories"] == 84.0
    assert deleted.status_code == 200
    assert missing.status_code == 404


def test_unknown_barcode_is_not_found(container) -> None:
    response = _client(container).get("/api/food/barcode/0000000000000")

    assert response.status_code == 404
    assert response.json() == {"error": "Food item not found"}


def test_external_search_failure_is_bad_gateway(
    container, product_client: FakeProductClient
) -> None:
    product_client.failures = 5

    response = _client(container).get("/api/food/search-external?q=cola")

    assert response.status_code == 502


def test_manual_food_crud(container) -> None:
    client = _onboarded_client(container)

    created = client.post(
        "/api/food",
        json={"barcode": "42", "name": "Oat Bar", "caloriesPer100g": 380},
        headers=AUTH,
    )
    updated = client.put(
        "/api/food/42", json={"proteinsPer100g": 9.5}, headers=AUTH
    )
    listing = client.get("/api/food?search=oat", headers=AUTH)

    assert created.status_code == 201
    assert created.json()["source"] == "manual"
    assert updated.json()["foodItem"]["proteinsPer100g"] == 9.5
    assert listing.json()["pagination"]["total"] == 1


def test_chat_and_question(
    container, completion_client: FakeCompletionClient
) -> None:
    completion_client.replies = ["Assistant: Try lentils.", "Fine in moderation."]
    client = _onboarded_client(container)

    chat = client.post(
        "/api/assistant/chat",
        json={
            "message": "Ideas for protein?",
            "context": "nutrition_assistant",
            "conversationHistory": [{"text": "Hi", "isUser": True}],
        },
        headers=AUTH,
    )
    question = client.post(
        "/api/assistant/nutrition-question",
        json={"question": "Is cola ok?", "productData": {"name": "Cola"}},
        headers=AUTH,
    )

    assert chat.json()["response"] == "Try lentils."
    assert chat.json()["context"] == "nutrition_assistant"
    assert chat.json()["isFallback"] is False
    assert "- Calories: 0/2556 kcal (0%)" in completion_client.prompts[0]
    assert question.json()["type"] == "nutrition_advice"
    assert question.json()["response"] == "Fine in moderation."


def test_recommendations_fall_back_when_model_fails(
    container, completion_client: FakeCompletionClient
) -> None:
    completion_client.error = RuntimeError("down")
    client = _onboarded_client(container)

    response = client.post(
        "/api/recommendations/generate",
        json={"productData": {"name": "Cola", "nutrition": {"sugar": 10.6}}},
        headers=AUTH,
    )

    body = response.json()
    assert response.status_code == 200
    assert body["source"] == "fallback"
    assert "warning" in body
    assert len(body["data"]["alternatives"]) == 3
    assert "healthScore" in body["data"]
