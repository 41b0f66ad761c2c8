"""Food item and barcode lookup endpoints."""

from fastapi import APIRouter, Depends, Query, status

from nutriscan.api.dependencies import current_user, get_container
from nutriscan.api.responses import food_to_dict
from nutriscan.api.schemas import FoodCreateRequest, FoodFields
from nutriscan.containers import AppContainer
from nutriscan.services.foods import FoodLookup

router = APIRouter(prefix="/api/food", tags=["food"])


@router.get("/barcode/{barcode}")
async def lookup_barcode(
    barcode: str,
    auto_fetch: bool = Query(default=True, alias="autoFetch"),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return a food item, fetching it from Open Food Facts when unknown."""
    lookup = await container.food_service.lookup_barcode(barcode, auto_fetch)
    return _lookup_to_dict(lookup)


@router.get("/search-external")
async def search_external(
    q: str = "",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    result = await container.food_service.search_external(q, page, limit)
    return {
        "count": result.count,
        "page": result.page,
        "pageSize": result.page_size,
        "products": result.products,
    }


@router.post(
    "", status_code=status.HTTP_201_CREATED, dependencies=[Depends(current_user)]
)
async def create_food(
    body: FoodCreateRequest, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    lookup = await container.food_service.create_food(
        body.barcode,
        body.payload(),
        fetch_external=body.fetch_from_open_food_facts,
    )
    return _lookup_to_dict(lookup)


@router.get("", dependencies=[Depends(current_user)])
async def list_foods(
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    foods, total = container.food_service.list_foods(search, page, limit)
    return {
        "foodItems": [food_to_dict(food) for food in foods],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": -(-total // limit),
        },
    }


@router.put("/{barcode}", dependencies=[Depends(current_user)])
async def update_food(
    barcode: str, body: FoodFields, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    food = container.food_service.update_food(barcode, body.payload())
    return {
        "message": "Food item updated successfully",
        "foodItem": food_to_dict(food),
    }


@router.delete("/{barcode}", dependencies=[Depends(current_user)])
async def delete_food(
    barcode: str, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    container.food_service.delete_food(barcode)
    return {"message": "Food item deleted successfully"}


def _lookup_to_dict(lookup: FoodLookup) -> dict[str, object]:
    payload: dict[str, object] = {
        "foodItem": food_to_dict(lookup.food),
        "source": lookup.source,
        "created": lookup.created,
    }
    if lookup.warning:
        payload["warning"] = lookup.warning
    return payload
