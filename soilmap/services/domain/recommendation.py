"""
Domain service: soil amendment, fertilizer and crop suggestions.

A pure mapping from an area's channel averages to advice, driven by a fixed
threshold table.
"""
from dataclasses import dataclass

from soilmap.domain.models import AreaAverages, FertilizerSuggestion, Recommendation


@dataclass(frozen=True)
class ChannelThreshold:
    """Low/high bounds of a channel. Values strictly outside trigger advice."""
    low: float
    high: float

    def is_low(self, value: float) -> bool:
        return value < self.low

    def is_high(self, value: float) -> bool:
        return value > self.high


PH = ChannelThreshold(low=5.5, high=7.5)
NITROGEN = ChannelThreshold(low=20, high=40)
PHOSPHORUS = ChannelThreshold(low=15, high=30)
POTASSIUM = ChannelThreshold(low=100, high=200)
MOISTURE = ChannelThreshold(low=20, high=50)
TEMPERATURE = ChannelThreshold(low=15, high=30)

UREA = FertilizerSuggestion(
    formula="46-0-0",
    amount="20-30 kg per unit area",
    description="Urea to correct nitrogen deficiency",
)
PHOSPHATE = FertilizerSuggestion(
    formula="0-46-0",
    amount="10-20 kg per unit area",
    description="Triple superphosphate to correct phosphorus deficiency",
)
POTASSIUM_CHLORIDE = FertilizerSuggestion(
    formula="0-0-60",
    amount="10-20 kg per unit area",
    description="Potassium chloride to correct potassium deficiency",
)
BALANCED_NPK = FertilizerSuggestion(
    formula="15-15-15",
    amount="25-50 kg per unit area",
    description="Balanced compound fertilizer for combined N-P-K deficiency",
)

ACIDIC_SOIL_CROPS = ["cassava", "pineapple", "sweet potato", "tea"]
NEUTRAL_SOIL_CROPS = ["rice", "maize", "soybean", "leafy vegetables"]
ALKALINE_SOIL_CROPS = ["asparagus", "barley", "sugar beet", "cotton"]
DRY_SOIL_CROPS = ["cassava", "sorghum", "millet"]
WET_SOIL_CROPS = ["rice", "taro", "water spinach"]
COOL_CLIMATE_CROPS = ["cabbage", "broccoli", "lettuce"]
HOT_CLIMATE_CROPS = ["sorghum", "mung bean", "okra"]

GENERAL_CULTIVATION_ADVICE = "Soil conditions are suitable for general cultivation"
NO_SPECIFIC_CROP = "No specific crop recommended"


def _npk_deficient(averages: AreaAverages) -> bool:
    return (
        NITROGEN.is_low(averages.nitrogen)
        and PHOSPHORUS.is_low(averages.phosphorus)
        and POTASSIUM.is_low(averages.potassium)
    )


def _soil_advice(averages: AreaAverages) -> list[str]:
    advice = []

    if PH.is_low(averages.ph):
        advice.append(f"Soil is acidic (pH {averages.ph}): apply lime at about 1-2 t per unit area")
    elif PH.is_high(averages.ph):
        advice.append(f"Soil is alkaline (pH {averages.ph}): apply sulfur at about 50-100 kg per unit area")

    if NITROGEN.is_low(averages.nitrogen):
        advice.append(f"Nitrogen is low: apply urea fertilizer ({UREA.formula})")
    elif NITROGEN.is_high(averages.nitrogen):
        advice.append("Nitrogen is high: reduce nitrogen fertilizer use")
    if PHOSPHORUS.is_low(averages.phosphorus):
        advice.append(f"Phosphorus is low: apply phosphate fertilizer ({PHOSPHATE.formula})")
    elif PHOSPHORUS.is_high(averages.phosphorus):
        advice.append("Phosphorus is high: reduce phosphate fertilizer use")
    if POTASSIUM.is_low(averages.potassium):
        advice.append(f"Potassium is low: apply potassium chloride fertilizer ({POTASSIUM_CHLORIDE.formula})")
    elif POTASSIUM.is_high(averages.potassium):
        advice.append("Potassium is high: reduce potassium fertilizer use")
    if _npk_deficient(averages):
        advice.append(
            f"Nitrogen, phosphorus and potassium are all low: apply a balanced compound ({BALANCED_NPK.formula})"
        )

    if MOISTURE.is_low(averages.moisture):
        advice.append("Soil is dry: increase irrigation and add organic matter")
    elif MOISTURE.is_high(averages.moisture):
        advice.append("Soil is waterlogged: improve drainage")

    if TEMPERATURE.is_low(averages.temperature):
        advice.append("Soil is cold: prefer cold-tolerant crops")
    elif TEMPERATURE.is_high(averages.temperature):
        advice.append("Soil is hot: prefer heat-tolerant crops")

    return advice or [GENERAL_CULTIVATION_ADVICE]


def _fertilizers(averages: AreaAverages) -> list[FertilizerSuggestion]:
    fertilizers = []
    if NITROGEN.is_low(averages.nitrogen):
        fertilizers.append(UREA)
    if PHOSPHORUS.is_low(averages.phosphorus):
        fertilizers.append(PHOSPHATE)
    if POTASSIUM.is_low(averages.potassium):
        fertilizers.append(POTASSIUM_CHLORIDE)
    if _npk_deficient(averages):
        fertilizers.append(BALANCED_NPK)
    return fertilizers


def _crops(averages: AreaAverages) -> list[str]:
    lists = []

    if PH.is_low(averages.ph):
        lists.append(ACIDIC_SOIL_CROPS)
    elif PH.is_high(averages.ph):
        lists.append(ALKALINE_SOIL_CROPS)
    elif PH.low <= averages.ph <= PH.high:
        lists.append(NEUTRAL_SOIL_CROPS)

    if MOISTURE.is_low(averages.moisture):
        lists.append(DRY_SOIL_CROPS)
    elif MOISTURE.is_high(averages.moisture):
        lists.append(WET_SOIL_CROPS)

    if TEMPERATURE.is_low(averages.temperature):
        lists.append(COOL_CLIMATE_CROPS)
    elif TEMPERATURE.is_high(averages.temperature):
        lists.append(HOT_CLIMATE_CROPS)

    # dict keeps first-seen order
    crops = list(dict.fromkeys(crop for crop_list in lists for crop in crop_list))
    return crops or [NO_SPECIFIC_CROP]


def recommend(averages: AreaAverages) -> Recommendation:
    """
    Derive soil advice, fertilizers and crops from an area's averages.

    Args:
        averages: Channel averages of an area

    Returns:
        Recommendation with non-empty soil_advice and crops
    """
    return Recommendation(
        soil_advice=_soil_advice(averages),
        fertilizers=_fertilizers(averages),
        crops=_crops(averages),
    )
