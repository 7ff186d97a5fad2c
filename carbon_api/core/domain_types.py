"""Domain Types — estimate records and the uploaded-file descriptor.

Invariants:
    - Ingredient and Estimate are frozen: built once per request, never mutated
    - Estimate field order (dish, estimated_carbon_kg, ingredients) is the JSON order
    - UploadedImage holds the whole payload in memory (bounded by max_upload_bytes)
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class Ingredient(BaseModel):
    """A named component contributing a fixed carbon value."""
    model_config = ConfigDict(frozen=True)

    name: str
    carbon_kg: float = Field(description="Carbon footprint in kg CO2e")


class Estimate(BaseModel):
    """Carbon-footprint estimate returned to the client."""
    model_config = ConfigDict(frozen=True)

    dish: str = Field(description="Name of the dish")
    estimated_carbon_kg: float = Field(
        description="Estimated carbon footprint in kg CO2e",
    )
    ingredients: tuple[Ingredient, ...]


@dataclass(frozen=True)
class UploadedImage:
    """File extracted from a multipart request."""
    filename: str
    content_type: str
    size: int
    content: bytes
