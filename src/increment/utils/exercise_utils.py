"""Exercise name matching and per-set string encoding."""

import re

ABBREVIATIONS = {
    "bb": "barbell",
    "db": "dumbbell",
    "kb": "kettlebell",
    "ohp": "overhead press",
    "rdl": "romanian deadlift",
}


def normalize_exercise_name(name: str) -> str:
    """Normalize an exercise name for loose comparison.

    Lowercases, collapses whitespace and expands common abbreviations, so
    "BB  Row" and "barbell row" compare equal.
    """
    normalized = re.sub(r"\s+", " ", name.lower().strip())

    if normalized in ABBREVIATIONS:
        return ABBREVIATIONS[normalized]

    for abbrev, full in ABBREVIATIONS.items():
        normalized = re.sub(rf"\b{abbrev}\b", full, normalized)

    return normalized


def names_match(left: str, right: str) -> bool:
    """Check if two exercise names refer to the same exercise."""
    return normalize_exercise_name(left) == normalize_exercise_name(right)


def _split_values(text: str | None) -> list[str]:
    if not text:
        return []
    return [part.strip() for part in text.split(",")]


def parse_set_strings(
    weights: str | None, reps: str | None
) -> list[tuple[float, int]]:
    """Decode comma-separated weight and rep targets into (weight, reps) pairs.

    "225, 225, 220" / "5, 5, 4" yields three pairs. The lists may differ in
    length; a missing or unparseable value becomes 0, and a position produces
    a pair as long as either side has text there.

    Args:
        weights: Comma-separated weights
        reps: Comma-separated repetition counts

    Returns:
        Ordered list of (weight, reps) pairs
    """
    weight_values = _split_values(weights)
    rep_values = _split_values(reps)

    pairs = []
    for i in range(max(len(weight_values), len(rep_values))):
        weight_text = weight_values[i] if i < len(weight_values) else ""
        rep_text = rep_values[i] if i < len(rep_values) else ""
        if not weight_text and not rep_text:
            continue

        try:
            weight = max(float(weight_text), 0.0)
        except ValueError:
            weight = 0.0
        try:
            rep_count = max(int(rep_text), 0)
        except ValueError:
            rep_count = 0

        pairs.append((weight, rep_count))

    return pairs


def _format_weight(weight: float) -> str:
    return str(int(weight)) if float(weight).is_integer() else str(weight)


def format_set_strings(pairs: list[tuple[float, int]]) -> tuple[str, str]:
    """Encode (weight, reps) pairs as comma-separated strings."""
    weights = ", ".join(_format_weight(weight) for weight, _ in pairs)
    reps = ", ".join(str(rep_count) for _, rep_count in pairs)
    return weights, reps
