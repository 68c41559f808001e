"""
End-to-end API tests for /api/recipes.

Tests the full stack: HTTP request → transform → sensory normalization and
scoring → business-rule validation → RecipeInput → SQLite persistence → HTTP
response. The database is in-memory (see conftest.py).
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient


def _recipe_body(**overrides) -> dict:
    body = {
        "recipeName": "Morning V60",
        "isFavorite": False,
        "beanInfo": {
            "coffeeBeanBrand": "Onyx",
            "origin": "Ethiopia",
            "processingMethod": "Washed",
            "roastingLevel": "light",
        },
        "brewingParameters": {
            "brewingMethod": "pour-over",
            "grinderModel": "Comandante C40",
            "grinderUnit": "24",
            "waterTemperature": 93,
            "turbulence": [{"actionTime": "0:00", "actionDetails": "bloom", "volume": "45g"}],
        },
        "measurements": {"coffeeBeans": 15, "water": 250, "brewedCoffeeWeight": 220, "tds": 1.35},
        "sensationRecord": {"overallImpression": 8, "tastingNotes": "bergamot, peach"},
    }
    body.update(overrides)
    return body


async def _create(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/api/recipes", json=_recipe_body(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_recipe_fills_derived_measurements(client: AsyncClient) -> None:
    recipe = await _create(client)

    assert recipe["recipeId"]
    assert recipe["recipeName"] == "Morning V60"
    assert recipe["measurements"]["coffeeWaterRatio"] == 16.67
    # 1.35 × 220 / 15
    assert recipe["measurements"]["extractionYield"] == 19.8
    assert recipe["sensationRecord"]["evaluationSystem"] == "legacy"
    assert recipe["brewingParameters"]["turbulence"][0]["actionDetails"] == "bloom"


@pytest.mark.asyncio
async def test_create_generates_name_when_blank(client: AsyncClient) -> None:
    recipe = await _create(client, recipeName="")
    assert recipe["recipeName"].startswith("Ethiopia - ")


@pytest.mark.asyncio
async def test_create_sca_recipe_recomputes_final_score(client: AsyncClient) -> None:
    sca = {name: 8 for name in (
        "fragrance", "flavor", "aftertaste", "acidity", "body",
        "balance", "sweetness", "cleanCup", "uniformity", "overall",
    )}
    recipe = await _create(client, sensationRecord={
        "evaluationSystem": "traditional-sca",
        "traditionalSCA": {**sca, "taintDefects": 2, "finalScore": 1},
    })

    record = recipe["sensationRecord"]
    assert record["evaluationSystem"] == "traditional-sca"
    assert record["traditionalSCA"]["finalScore"] == 78.0


@pytest.mark.asyncio
async def test_create_cva_affective_recipe(client: AsyncClient) -> None:
    cva = {name: 9 for name in (
        "fragrance", "aroma", "flavor", "aftertaste", "acidity", "sweetness", "mouthfeel", "overall",
    )}
    recipe = await _create(client, sensationRecord={
        "cvaAffective": {**cva, "nonUniformCups": 1, "defectiveCups": 1},
    })

    record = recipe["sensationRecord"]
    assert record["evaluationSystem"] == "cva-affective"
    assert record["cvaAffective"]["cvaScore"] == 94.0


@pytest.mark.asyncio
async def test_quick_tasting_is_stored_as_legacy_with_payload(client: AsyncClient) -> None:
    quick = {"flavorIntensity": 10, "overallQuality": 7, "flavorAftertasteDescriptors": ["cocoa", "plum"]}
    created = await _create(client, sensationRecord={"evaluationSystem": "quick-tasting", "quickTasting": quick})

    fetched = (await client.get(f"/api/recipes/{created['recipeId']}")).json()
    record = fetched["sensationRecord"]
    assert record["evaluationSystem"] == "legacy"
    assert record["quickTasting"]["overallQuality"] == 7
    assert record["quickTasting"]["flavorAftertasteDescriptors"] == ["cocoa", "plum"]

    summaries = (await client.get("/api/recipes")).json()
    assert summaries[0]["evaluationSystem"] == "legacy"


@pytest.mark.asyncio
async def test_unknown_evaluation_system_is_stored_as_legacy(client: AsyncClient) -> None:
    recipe = await _create(client, sensationRecord={"evaluationSystem": "sca-2030", "overallImpression": 6})
    assert recipe["sensationRecord"]["evaluationSystem"] == "legacy"
    assert recipe["sensationRecord"]["overallImpression"] == 6


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_business_rule_violations_are_aggregated_into_one_400(client: AsyncClient) -> None:
    body = _recipe_body(
        recipeName="N" * 201,
        measurements={"coffeeBeans": 0, "water": 250},
        sensationRecord={"cvaDescriptive": {"fragranceAromaDescriptors": ["a", "b", "c", "d", "e", "f"]}},
    )
    response = await client.post("/api/recipes", json=body)

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    issues = [d["issue"] for d in error["details"]]
    assert issues == [
        "Field 'recipeName' is too long (201 chars, limit: 200)",
        "Coffee beans amount (measurements.coffeeBeans) is required and must be a positive number",
        "Fragrance + Aroma descriptors exceed limit (6/5)",
    ]
    assert (await client.get("/api/recipes/stats/count")).json() == {"count": 0}


@pytest.mark.asyncio
async def test_missing_required_sections_are_400_not_500(client: AsyncClient) -> None:
    response = await client.post("/api/recipes", json={"recipeName": "Empty"})
    assert response.status_code == 400
    assert len(response.json()["error"]["details"]) == 6


@pytest.mark.asyncio
async def test_off_model_defect_penalty_is_rejected(client: AsyncClient) -> None:
    response = await client.post("/api/recipes", json=_recipe_body(sensationRecord={
        "traditionalSCA": {"fragrance": 8, "faultDefects": 6},
    }))
    assert response.status_code == 400
    assert "Fault defects must be a multiple of 4" in response.json()["error"]["details"][0]["issue"]


@pytest.mark.asyncio
async def test_out_of_range_sensory_value_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/recipes", json=_recipe_body(sensationRecord={
        "traditionalSCA": {"fragrance": 5},
    }))
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "sensationRecord.traditionalSCA.fragrance"


@pytest.mark.asyncio
async def test_required_field_and_sensory_errors_reported_together(client: AsyncClient) -> None:
    response = await client.post("/api/recipes", json=_recipe_body(
        measurements={"coffeeBeans": 0, "water": 250},
        sensationRecord={"cvaAffective": {"fragrance": 12}},
    ))

    assert response.status_code == 400
    details = response.json()["error"]["details"]
    assert details[0] == {
        "field": None,
        "issue": "Coffee beans amount (measurements.coffeeBeans) is required and must be a positive number",
    }
    assert details[1]["field"] == "sensationRecord.cvaAffective.fragrance"
    assert len(details) == 2


@pytest.mark.asyncio
async def test_non_object_sensation_record_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/recipes", json=_recipe_body(sensationRecord="great"))
    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "sensationRecord"


@pytest.mark.asyncio
async def test_unknown_top_level_field_is_422(client: AsyncClient) -> None:
    response = await client.post("/api/recipes", json=_recipe_body(brewTimer=180))
    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "brewTimer"


# ---------------------------------------------------------------------------
# Read / update / favorite / delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_missing_recipe_is_404(client: AsyncClient) -> None:
    response = await client.get("/api/recipes/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_list_is_newest_first_and_filters_favorites(client: AsyncClient) -> None:
    first = await _create(client, recipeName="First")
    second = await _create(client, recipeName="Second", isFavorite=True)

    summaries = (await client.get("/api/recipes")).json()
    assert [s["recipeId"] for s in summaries] == [second["recipeId"], first["recipeId"]]
    assert summaries[0]["origin"] == "Ethiopia"
    assert summaries[0]["coffeeWaterRatio"] == 16.67

    favorites = (await client.get("/api/recipes", params={"favorites_only": True})).json()
    assert [s["recipeId"] for s in favorites] == [second["recipeId"]]

    assert (await client.get("/api/recipes/stats/count")).json() == {"count": 2}


@pytest.mark.asyncio
async def test_update_recipe_runs_the_same_pipeline(client: AsyncClient) -> None:
    created = await _create(client)
    body = {**created, "recipeName": "Evening V60", "sensationRecord": {"cvaAffective": {"overall": 9}}}

    response = await client.put(f"/api/recipes/{created['recipeId']}", json=body)
    assert response.status_code == 200, response.text
    updated = response.json()
    assert updated["recipeId"] == created["recipeId"]
    assert updated["recipeName"] == "Evening V60"
    assert updated["sensationRecord"]["evaluationSystem"] == "cva-affective"
    assert updated["sensationRecord"]["cvaAffective"]["cvaScore"] == 81.75


@pytest.mark.asyncio
async def test_update_rejects_over_long_name(client: AsyncClient) -> None:
    created = await _create(client)
    response = await client.put(
        f"/api/recipes/{created['recipeId']}",
        json=_recipe_body(recipeName="N" * 201),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_missing_recipe_is_404(client: AsyncClient) -> None:
    response = await client.put("/api/recipes/does-not-exist", json=_recipe_body())
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_favorite_toggle_and_set(client: AsyncClient) -> None:
    created = await _create(client)
    url = f"/api/recipes/{created['recipeId']}/favorite"

    assert (await client.patch(url)).json()["isFavorite"] is True
    assert (await client.patch(url)).json()["isFavorite"] is False
    assert (await client.patch(url, json={"isFavorite": True})).json()["isFavorite"] is True
    assert (await client.patch(url, json={"isFavorite": True})).json()["isFavorite"] is True


@pytest.mark.asyncio
async def test_delete_recipe(client: AsyncClient) -> None:
    created = await _create(client)

    response = await client.delete(f"/api/recipes/{created['recipeId']}")
    assert response.status_code == 204
    assert (await client.get(f"/api/recipes/{created['recipeId']}")).status_code == 404
    assert (await client.delete(f"/api/recipes/{created['recipeId']}")).status_code == 404
