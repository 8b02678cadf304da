"""Scan analysis capability and its mock implementation.

Real image models are external. `MockScanAnalyzer` picks results from fixed
catalogues with an injected `random.Random`, so a seeded instance always
returns the same sequence of results.
"""

import random
from typing import Any, Dict, Optional, Protocol

DEFAULT_NUTRITION = {"calories": 100.0, "protein": 5.0, "carbs": 15.0, "fat": 3.0}

BODY_RESULTS = [
    {"body_type": "Athletic", "fat_percent": 12.5, "muscle_percent": 45.2},
    {"body_type": "Average", "fat_percent": 18.3, "muscle_percent": 38.7},
    {"body_type": "Lean", "fat_percent": 8.2, "muscle_percent": 42.1},
]

SKIN_TYPES = ["Dry", "Oily", "Combination", "Sensitive", "Normal"]
SKIN_ISSUES = ["acne", "dark_spots", "wrinkles", "dryness", "oiliness"]
SKIN_RECOMMENDATIONS = [
    "Use a gentle cleanser twice daily",
    "Apply sunscreen with at least SPF 30",
    "Consider a moisturizer suitable for your skin type",
]

# per serving: kcal, protein g, carbs g, fat g
FOOD_CATALOGUE = {
    "Apple": (95, 0.5, 25, 0.3),
    "Banana": (105, 1.3, 27, 0.4),
    "Chicken Breast": (165, 31, 0, 3.6),
    "Salmon": (208, 20, 0, 13),
    "Rice": (206, 4.3, 45, 0.4),
    "Broccoli": (55, 3.7, 11, 0.6),
    "Pasta": (221, 8.1, 43, 1.3),
    "Bread": (79, 2.7, 15, 1),
    "Egg": (78, 6.3, 0.6, 5.3),
    "Yogurt": (149, 8.5, 11, 8),
    "Oatmeal": (158, 6, 27, 3.2),
    "Avocado": (234, 2.9, 12, 21),
}


class ScanAnalyzer(Protocol):
    """Capability the scan endpoints depend on."""

    def analyze_body(self, image_url: str) -> Dict[str, Any]:
        ...

    def analyze_face(self, image_url: str) -> Dict[str, Any]:
        ...

    def identify_food(self, image_url: str) -> Dict[str, Any]:
        ...


class MockScanAnalyzer:
    """Deterministic-when-seeded stand-in for the image analysis services."""

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng or random.Random(seed)

    def analyze_body(self, image_url: str) -> Dict[str, Any]:
        result = dict(self.rng.choice(BODY_RESULTS))
        result["confidence"] = 0.85
        result["analysis"] = f"Body composition analysis complete. Detected {result['body_type']} build."
        return result

    def analyze_face(self, image_url: str) -> Dict[str, Any]:
        return {
            "skin_type": self.rng.choice(SKIN_TYPES),
            "skin_issues": [issue for issue in SKIN_ISSUES if self.rng.random() > 0.6],
            "confidence": 0.78,
            "recommendations": list(SKIN_RECOMMENDATIONS),
        }

    def identify_food(self, image_url: str) -> Dict[str, Any]:
        """Return the identified food name and its per-serving nutrition."""
        name = self.rng.choice(sorted(FOOD_CATALOGUE))
        return nutrition_for(name)


def nutrition_for(food_name: str) -> Dict[str, Any]:
    """Look up a food in the catalogue, falling back to DEFAULT_NUTRITION."""
    values = FOOD_CATALOGUE.get(food_name)
    if values is None:
        return {"food_name": food_name, **DEFAULT_NUTRITION}
    calories, protein, carbs, fat = values
    return {
        "food_name": food_name,
        "calories": float(calories),
        "protein": float(protein),
        "carbs": float(carbs),
        "fat": float(fat),
    }
