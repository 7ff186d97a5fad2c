"""Input Validation — dish-name and image-upload checks run before estimation.

Invariants:
    - All functions are PURE apart from writing the sanitized dish back into the body
    - First failing rule wins; each raises ValidationError naming its field
    - validate_image_upload never trusts the multipart reader's own checks

Design Decisions:
    - Raise ValidationError (not return dicts): the global handler renders one shape
      for validators and for everything else
"""

import re
from typing import Any, MutableMapping

from carbon_api.core.domain_types import UploadedImage
from carbon_api.core.errors import ValidationError

MAX_DISH_LENGTH = 100
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/jpg")
MAX_IMAGE_BYTES = 5 * 1024 * 1024

_HTML_TAG = re.compile(r"<[^>]*>?")

# typeof names: null, arrays and objects all report "object"
_JSON_TYPE_NAMES: dict[type, str] = {
    bool: "boolean",
    int: "number",
    float: "number",
    str: "string",
    list: "object",
    dict: "object",
    type(None): "object",
}


def json_type_name(value: Any) -> str:
    """typeof-style name of a decoded JSON value, as a JavaScript client reports it."""
    return _JSON_TYPE_NAMES.get(type(value), "object")


def text_length(value: str) -> int:
    """Length in UTF-16 code units, the way browsers count form input."""
    return len(value.encode("utf-16-le")) // 2


def sanitize_dish(value: str) -> str:
    """Strip HTML-tag-like substrings."""
    return _HTML_TAG.sub("", value)


def validate_dish_input(body: MutableMapping[str, Any]) -> str:
    """Validate body["dish"], store the sanitized value back and return it."""
    if "dish" not in body:
        raise ValidationError("Dish name is required", field="dish")

    dish = body["dish"]
    if not isinstance(dish, str):
        raise ValidationError(
            "Dish name must be a string",
            field="dish", received=json_type_name(dish),
        )

    trimmed = dish.strip()
    if not trimmed:
        raise ValidationError(
            "Dish name cannot be empty or whitespace", field="dish",
        )

    length = text_length(trimmed)
    if length > MAX_DISH_LENGTH:
        raise ValidationError(
            f"Dish name must be {MAX_DISH_LENGTH} characters or less",
            field="dish", maxLength=MAX_DISH_LENGTH, length=length,
        )

    body["dish"] = sanitize_dish(trimmed)
    return body["dish"]


def format_megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):.2f}MB"


def validate_image_upload(image: UploadedImage | None) -> UploadedImage:
    """Second line of defense for uploads: presence, MIME type, size."""
    if image is None:
        raise ValidationError("Image file is required", field="image")

    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Invalid file type. Only JPEG, JPG, and PNG are allowed",
            field="image", allowedTypes=list(ALLOWED_IMAGE_TYPES),
        )

    if image.size > MAX_IMAGE_BYTES:
        raise ValidationError(
            "File size too large. Maximum size is 5MB",
            field="image", maxSize="5MB", actualSize=format_megabytes(image.size),
        )

    return image
