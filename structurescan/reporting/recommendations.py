"""
Guidance text per defect category.

Category data lives in lookup tables; ``build_recommendations`` turns the
counts of a report into the ordered entries to render.
"""

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from structurescan.schemas.models import AssessmentReport, RecommendationEntry, Severity
from structurescan.utils.logger import setup_logger
from structurescan.utils.config import config, get_log_file

logger = setup_logger(__name__, level=config.log_level, log_file=get_log_file(), component="CATALOG")


# ============================================================================
# CATEGORIES
# ============================================================================

SERIOUS_CONCRETE_DAMAGE = "Serious Concrete Damage"
LARGE_CRACK = "Large Crack Found"
HAIRLINE_CRACK = "Small Hairline Crack/s"
PAINT_DAMAGE = "Paint Peeling or Flaking"
ALGAE_GROWTH = "Algae/Moss Growth"

# (label, report field, static severity) in rendering order
CATEGORIES: Tuple[Tuple[str, str, Severity], ...] = (
    (SERIOUS_CONCRETE_DAMAGE, "crack_high", Severity.HIGH),
    (LARGE_CRACK, "crack_moderate", Severity.MODERATE),
    (HAIRLINE_CRACK, "crack_low", Severity.LOW),
    (PAINT_DAMAGE, "paint", Severity.LOW),
    (ALGAE_GROWTH, "algae", Severity.MODERATE),
)


DEFAULT_GUIDANCE: Dict[str, Tuple[str, ...]] = {
    SERIOUS_CONCRETE_DAMAGE: (
        "Call a structural engineer or building expert within 2-3 days",
        "Take clear photos of the damaged area from different angles",
        "Check if you can see any metal bars (rebar) showing through",
        "Measure the damage - if deeper than 1 inch, it needs professional repair",
        "Tap around the area gently - if it sounds hollow, more concrete might be loose",
        "Look for what's causing it: water leaks, cracks, or drainage problems",
        "Professional will: remove damaged concrete, clean metal bars, fill with repair cement",
        "After repair: seal the surface to protect it from water and prevent future damage",
    ),
    LARGE_CRACK: (
        "Contact a structural engineer or building expert within 1-2 weeks",
        "Put markers on both sides of the crack to see if it's getting bigger",
        "Measure and photograph the crack - note how wide, how long, and where it is",
        "Check if doors or windows are sticking, or if floors are sloping",
        "Look for water problems: check gutters, downspouts, and drainage",
        "Notice the crack direction: straight up (settling), sideways (pressure), or diagonal (twisting)",
        "Expert may inject special material to fill the crack or strengthen the structure",
        "Fix the root cause: improve drainage, stabilize foundation, or reduce soil pressure",
        "Seal the crack after repair to keep water out and prevent freeze damage",
    ),
    HAIRLINE_CRACK: (
        "Check these cracks once or twice a year during regular building inspections",
        "Watch if the crack gets bigger over 6-12 months - mark the ends and take photos",
        "Fill the cracks during your next scheduled maintenance to stop water getting in",
        "Use flexible crack filler that works for indoor or outdoor use",
        "Make sure water drains properly away from your building",
        "If the crack grows wider than 2mm, call a building expert",
        "Keep notes and photos of where the crack is and what it looks like",
        "No need to worry - these small cracks are normal in concrete and brick buildings",
    ),
    PAINT_DAMAGE: (
        "Plan to repaint within 12-24 months during regular maintenance",
        "Find and fix the water problem FIRST: look for leaks, bad drainage, or humidity",
        "Proper fix: scrape off loose paint, clean the surface, apply primer, then paint",
        "Make sure the surface is completely dry before repainting",
        "Choose the right paint: mildew-resistant for bathrooms, weather-resistant for outside",
        "Add better airflow in damp areas (install fans or open windows more often)",
        "For outside: keep gutters clean, make sure wood isn't touching the ground",
        "Use bonding primer so new paint sticks properly",
        "Seal gaps and joints with good quality sealant after painting",
        "This is a cosmetic issue - no safety concerns, just maintenance needed",
    ),
    ALGAE_GROWTH: (
        "Clean the area within 1-2 months using algae remover or cleaning solution",
        "Cleaning: gently wash with garden hose and soft brush - avoid pressure washer",
        "Cleaning solutions: bleach mixed with water (50/50) OR vinegar solution",
        "Let the cleaning solution sit for 15-20 minutes, gently scrub, then rinse well",
        "Find and fix why it's wet: improve drainage, fix gutters, repair any roof leaks",
        "Cut back trees and bushes so more sunlight reaches the wall and air can flow",
        "Make sure ground slopes away from building so water runs off",
        "You can apply special coating to prevent algae from growing back",
        "Check again in 6-12 months to make sure the moisture problem is fixed",
        "If algae keeps coming back, apply breathable, water-repellent coating",
    ),
}

GENERIC_MAINTENANCE: Tuple[str, ...] = (
    "Continue regular maintenance schedule (annual or bi-annual inspections)",
    "Monitor during routine inspections for any emerging issues",
    "Maintain proper drainage and moisture control measures",
    "Keep gutters and downspouts clear and functional",
    "Ensure vegetation is trimmed back from building surfaces",
)


class RecommendationCatalog:
    """Maps a defect category label to its ordered guidance list."""

    def __init__(
        self,
        guidance: Optional[Mapping[str, Sequence[str]]] = None,
        fallback: Sequence[str] = GENERIC_MAINTENANCE,
    ):
        source = DEFAULT_GUIDANCE if guidance is None else guidance
        self._guidance = {label: tuple(actions) for label, actions in source.items()}
        self._fallback = tuple(fallback)

        empty = [label for label, actions in self._guidance.items() if not actions]
        if empty or not self._fallback:
            raise ValueError(f"Guidance lists must be non-empty (empty: {empty or ['fallback']})")

    def guidance_for(self, label: str) -> Tuple[str, ...]:
        """Exact, case-sensitive lookup; unknown labels get generic maintenance."""
        return self._guidance.get(label, self._fallback)

    @property
    def labels(self) -> List[str]:
        return list(self._guidance)

    @classmethod
    def from_yaml(cls, path: Path) -> "RecommendationCatalog":
        """
        Load a catalog from YAML.

        Expected layout::

            categories:
              "Serious Concrete Damage":
                - "..."
            fallback:
              - "..."

        Categories missing from the file keep their default guidance.

        Raises:
            ValueError: If the file is not laid out this way, or a guidance
                entry is not a list of strings
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Recommendation catalog must be a mapping: {path}")

        categories = data.get("categories") or {}
        if not isinstance(categories, dict):
            raise ValueError(f"'categories' must map labels to guidance lists: {path}")

        guidance = dict(DEFAULT_GUIDANCE)
        for label, actions in categories.items():
            guidance[label] = _guidance_list(label, actions)
        fallback = data.get("fallback")
        fallback = _guidance_list("fallback", fallback) if fallback is not None else GENERIC_MAINTENANCE

        logger.info(f"Loaded recommendation catalog from {path} ({len(guidance)} categories)")
        return cls(guidance, fallback)


def _guidance_list(name: str, actions) -> List[str]:
    if not isinstance(actions, list) or not all(isinstance(action, str) for action in actions):
        raise ValueError(f"Guidance for {name!r} must be a list of strings, got {actions!r}")
    return actions


def load_catalog(path: Optional[Path] = None) -> RecommendationCatalog:
    """Catalog from the configured YAML file, or the built-in one."""
    path = path or (Path(config.recommendations_file) if config.recommendations_file else None)
    if path is None:
        return RecommendationCatalog()
    return RecommendationCatalog.from_yaml(path)


def build_recommendations(report: AssessmentReport) -> List[RecommendationEntry]:
    """Entries for every non-zero defect category, in fixed category order."""
    entries = []
    for label, field_name, severity in CATEGORIES:
        count = getattr(report, field_name)
        if count > 0:
            entries.append(RecommendationEntry(label=label, count=count, severity=severity))
    return entries
