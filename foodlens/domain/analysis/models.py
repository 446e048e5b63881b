"""
Domain models for food analysis.

Two families of models:
- Payload models: exactly what the model writes in its JSON reply (no ids)
- Result models: what a UI consumes (payload fields plus local ids)

AnalysisResultFactory is the only bridge between them.
"""

from __future__ import annotations

import uuid
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from foodlens.domain.analysis.colors import Rgba, parse_hex_color


# ═══════════════════════════════════════════════════════════
# PAYLOAD MODELS (wire format, strict)
# ═══════════════════════════════════════════════════════════


class MacroNutrientPayload(BaseModel):
    """One macronutrient entry as written by the model."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    name: str
    amount: int
    unit: str
    percentage: int = Field(..., description="Daily value %")
    icon: str = Field(..., description="Icon token (e.g. SF Symbol name)")
    color: str = Field(..., description="Hex-like colour token")


class VitaminPayload(BaseModel):
    """One vitamin entry as written by the model."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    name: str
    percentage: int = Field(..., description="Daily value %")
    benefit: str
    color: str = Field(..., description="Hex-like colour token")


class AnalysisPayload(BaseModel):
    """
    Nutrition analysis as written by the model.

    Field names match the JSON schema in the prompt exactly. Unknown keys
    (including any "id" the model might invent) are ignored.
    """

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    name: str
    description: str
    calories: int = Field(..., ge=0, description="Total kilocalories")
    macros: List[MacroNutrientPayload]
    vitamins: List[VitaminPayload]
    ingredients: List[str]
    allergies: List[str]


# ═══════════════════════════════════════════════════════════
# RESULT MODELS (what the presentation layer renders)
# ═══════════════════════════════════════════════════════════


class MacroNutrient(BaseModel):
    """
    Macronutrient with a local list-diffing id.

    Example:
        >>> macro = MacroNutrient(
        ...     name="Protein", amount=12, unit="g",
        ...     percentage=24, icon="fish.fill", color="FF6347",
        ... )
        >>> macro.rgba.red
        255
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, exclude=True)
    name: str
    amount: int
    unit: str
    percentage: int
    icon: str
    color: str

    @property
    def rgba(self) -> Rgba:
        """Parsed colour token."""
        return parse_hex_color(self.color)


class Vitamin(BaseModel):
    """Vitamin with a local list-diffing id."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, exclude=True)
    name: str
    percentage: int
    benefit: str
    color: str

    @property
    def rgba(self) -> Rgba:
        """Parsed colour token."""
        return parse_hex_color(self.color)


class AnalysisResult(BaseModel):
    """
    Complete nutrition analysis of one photo.

    Immutable: a new analysis always produces a new object. The ``id``
    fields exist only so a UI can key list views; they are excluded from
    serialisation and differ on every decode.

    Attributes:
        name: Food label
        description: Short description of the food
        calories: Total kilocalories
        macros: Macronutrients in model order
        vitamins: Vitamins in model order
        ingredients: Common ingredients in model order
        allergies: Common allergens (may be empty)
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, exclude=True)
    name: str
    description: str
    calories: int = Field(..., ge=0)
    macros: Tuple[MacroNutrient, ...] = ()
    vitamins: Tuple[Vitamin, ...] = ()
    ingredients: Tuple[str, ...] = ()
    allergies: Tuple[str, ...] = ()

    def to_wire(self) -> dict[str, object]:
        """Serialise back to the payload shape (no ids)."""
        return self.model_dump(mode="json")


# ═══════════════════════════════════════════════════════════
# FACTORY
# ═══════════════════════════════════════════════════════════


class AnalysisResultFactory:
    """Build result models from validated payloads, attaching fresh ids."""

    @staticmethod
    def create(payload: AnalysisPayload) -> AnalysisResult:
        """
        Convert a payload into an AnalysisResult.

        Every call generates new ids for the result and each nested entry.

        Example:
            >>> result = AnalysisResultFactory.create(payload)
            >>> result.id != AnalysisResultFactory.create(payload).id
            True
        """
        return AnalysisResult(
            id=uuid.uuid4(),
            name=payload.name,
            description=payload.description,
            calories=payload.calories,
            macros=tuple(
                MacroNutrient(
                    id=uuid.uuid4(),
                    name=m.name,
                    amount=m.amount,
                    unit=m.unit,
                    percentage=m.percentage,
                    icon=m.icon,
                    color=m.color,
                )
                for m in payload.macros
            ),
            vitamins=tuple(
                Vitamin(
                    id=uuid.uuid4(),
                    name=v.name,
                    percentage=v.percentage,
                    benefit=v.benefit,
                    color=v.color,
                )
                for v in payload.vitamins
            ),
            ingredients=tuple(payload.ingredients),
            allergies=tuple(payload.allergies),
        )
