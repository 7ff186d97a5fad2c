"""Carbon Estimate Routes — dish-name and image-upload estimation.

Invariants:
    - Dependency order per route: Basic auth → body decoding → validation → handler
    - Handlers only ever see sanitized, validated input
    - An estimate without ingredients is a 404 EstimationError, never an empty 200
"""

import logging

from fastapi import APIRouter, Depends

from carbon_api.api.auth import require_basic_auth
from carbon_api.api.request_body import read_image_upload, read_request_body
from carbon_api.core.domain_types import Estimate, UploadedImage
from carbon_api.core.errors import EstimationError
from carbon_api.core.estimation import (
    estimate_carbon_from_dish, estimate_carbon_from_image,
)
from carbon_api.core.validation import validate_dish_input, validate_image_upload

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Carbon"], dependencies=[Depends(require_basic_auth)])

_ERROR_RESPONSES = {
    400: {"description": "Invalid input"},
    401: {"description": "Missing or invalid credentials"},
    404: {"description": "Could not estimate carbon footprint"},
}

_DISH_REQUEST_BODY = {
    "required": True,
    "content": {
        "application/json": {
            "schema": {
                "type": "object",
                "required": ["dish"],
                "properties": {
                    "dish": {
                        "type": "string",
                        "maxLength": 100,
                        "description": "Name of the dish to estimate carbon footprint for",
                    },
                },
            },
        },
    },
}

_IMAGE_REQUEST_BODY = {
    "required": True,
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "required": ["image"],
                "properties": {
                    "image": {"type": "string", "format": "binary"},
                },
            },
        },
    },
}


async def validated_dish(body: dict = Depends(read_request_body)) -> str:
    return validate_dish_input(body)


async def validated_image(
    image: UploadedImage | None = Depends(read_image_upload),
) -> UploadedImage:
    return validate_image_upload(image)


@router.post(
    "/estimate",
    response_model=Estimate,
    summary="Estimate carbon footprint for a dish",
    responses=_ERROR_RESPONSES,
    openapi_extra={"requestBody": _DISH_REQUEST_BODY},
)
async def estimate_from_dish(dish: str = Depends(validated_dish)) -> Estimate:
    estimate = estimate_carbon_from_dish(dish)
    if not estimate.ingredients:
        raise EstimationError(
            "Could not estimate carbon footprint for the given dish", dish=dish,
        )
    logger.info(f"Estimated {estimate.estimated_carbon_kg} kg CO2e for {dish!r}")
    return estimate


@router.post(
    "/upload",
    response_model=Estimate,
    summary="Upload an image for carbon footprint estimation",
    responses=_ERROR_RESPONSES,
    openapi_extra={"requestBody": _IMAGE_REQUEST_BODY},
)
async def estimate_from_image(
    image: UploadedImage = Depends(validated_image),
) -> Estimate:
    estimate = estimate_carbon_from_image(image.content)
    if not estimate.ingredients:
        raise EstimationError(
            "Could not estimate carbon footprint from the provided image",
            suggestion="Please try with a clearer image of the food item",
        )
    logger.info(
        f"Estimated {estimate.estimated_carbon_kg} kg CO2e "
        f"from {image.filename!r} ({image.size} bytes)",
    )
    return estimate
