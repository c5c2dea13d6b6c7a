"""Catalog domain models for foods and exercises."""

from dataclasses import dataclass
from enum import StrEnum


class UnitType(StrEnum):
    """Semantic units an entry quantity can be expressed in."""

    GRAMAS = "gramas"
    ML = "ml"
    UNIDADE = "unidade"
    FATIA = "fatia"
    COLHER_SOPA = "colher_sopa"
    COLHER_CHA = "colher_cha"
    XICARA = "xicara"
    COPO = "copo"
    PORCAO = "porcao"


@dataclass(frozen=True)
class UnitLabels:
    """Display labels for a unit type."""

    singular: str
    plural: str
    label: str


UNIT_LABELS: dict[UnitType, UnitLabels] = {
    UnitType.GRAMAS: UnitLabels("g", "g", "Gramas"),
    UnitType.ML: UnitLabels("ml", "ml", "Mililitros"),
    UnitType.UNIDADE: UnitLabels("unidade", "unidades", "Unidade"),
    UnitType.FATIA: UnitLabels("fatia", "fatias", "Fatia"),
    UnitType.COLHER_SOPA: UnitLabels(
        "colher de sopa", "colheres de sopa", "Colher de Sopa"
    ),
    UnitType.COLHER_CHA: UnitLabels("colher de cha", "colheres de cha", "Colher de Cha"),
    UnitType.XICARA: UnitLabels("xicara", "xicaras", "Xicara"),
    UnitType.COPO: UnitLabels("copo", "copos", "Copo"),
    UnitType.PORCAO: UnitLabels("porcao", "porcoes", "Porcao"),
}


@dataclass(frozen=True)
class NutrientProfile:
    """Nutrient values per 100 g of a food."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0


@dataclass(frozen=True)
class UnitMetadata:
    """Semantic unit a food is usually measured in."""

    unit_type: UnitType
    grams_per_unit: float | None


@dataclass(frozen=True)
class FoodItem:
    """A food from the catalog."""

    id: int
    name: str
    profile: NutrientProfile
    unit: UnitMetadata | None = None
    simplified_name: str | None = None


@dataclass(frozen=True)
class ExerciseItem:
    """An exercise from the catalog."""

    id: str
    name: str
    muscle_group: str | None = None
