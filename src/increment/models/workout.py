"""Workout history data models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from ..utils.dates import (
    format_datetime,
    format_optional_datetime,
    parse_datetime,
    parse_optional_datetime,
    utcnow,
)

# Names of the non-exercise workouts used to log body weight and photos
WEIGHT_UPDATE_NAME = "Weight Update"
PROGRESS_PHOTO_NAME = "Progress Photo"
ANCILLARY_WORKOUT_NAMES = (WEIGHT_UPDATE_NAME, PROGRESS_PHOTO_NAME)


def new_id() -> str:
    """Generate a fresh identity token."""
    return str(uuid.uuid4())


def is_valid_id(value: object) -> bool:
    """Check whether ``value`` is a well-formed identity token (a UUID string)."""
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


@dataclass
class WorkoutSet:
    """A single set of an exercise."""

    reps: int
    weight: float  # unit-less, shown as lbs
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        if self.reps < 0:
            raise ValueError(f"reps must be non-negative, got {self.reps}")
        if self.weight < 0:
            raise ValueError(f"weight must be non-negative, got {self.weight}")

    def to_dict(self) -> dict:
        return {"id": self.id, "reps": self.reps, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutSet":
        return cls(
            id=str(data["id"]),
            reps=int(data["reps"]),
            weight=float(data["weight"]),
        )


@dataclass
class ExerciseEntry:
    """An exercise performed within a workout.

    ``max_weight`` is a cache of the heaviest set; repositories refresh it on
    save and it is never edited directly.
    """

    name: str
    sets: list[WorkoutSet] = field(default_factory=list)
    template_id: str = field(default_factory=new_id)
    notes: str | None = None
    max_weight: float | None = None
    id: str = field(default_factory=new_id)

    def compute_max_weight(self) -> float | None:
        if not self.sets:
            return None
        return max(s.weight for s in self.sets)

    def refresh_max_weight(self) -> None:
        self.max_weight = self.compute_max_weight()

    def to_template(self) -> "ExerciseTemplate":
        """Encode this entry's sets as an editable template."""
        from ..utils.exercise_utils import format_set_strings
        from .user_profile import ExerciseTemplate

        weights, reps = format_set_strings([(s.weight, s.reps) for s in self.sets])
        return ExerciseTemplate(
            id=self.template_id,
            name=self.name,
            weight_string=weights or "0",
            reps_string=reps or "0",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "templateId": self.template_id,
            "name": self.name,
            "sets": [s.to_dict() for s in self.sets],
            "notes": self.notes,
            "maxWeight": self.max_weight,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseEntry":
        template_id = data.get("templateId")
        return cls(
            id=str(data["id"]),
            template_id=str(template_id) if template_id else new_id(),
            name=data["name"],
            sets=[WorkoutSet.from_dict(s) for s in data.get("sets", [])],
            notes=data.get("notes"),
            max_weight=data.get("maxWeight"),
        )


@dataclass
class Workout:
    """A logged workout (or ancillary weight/photo event) on a given day."""

    date: datetime
    name: str
    exercises: list[ExerciseEntry] = field(default_factory=list)
    notes: str | None = None
    duration: float | None = None  # seconds
    body_weight: float | None = None
    progress_photo_url: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime | None = field(default_factory=utcnow)
    updated_at: datetime | None = None

    @property
    def is_ancillary(self) -> bool:
        """True for weight-update and progress-photo records."""
        return any(name in self.name for name in ANCILLARY_WORKOUT_NAMES)

    @property
    def has_local_photo(self) -> bool:
        return bool(self.progress_photo_url) and self.progress_photo_url.startswith(
            "file:"
        )

    def refresh_max_weights(self) -> None:
        for exercise in self.exercises:
            exercise.refresh_max_weight()

    def to_dict(self) -> dict:
        """Convert to dictionary for local storage."""
        return {
            "id": self.id,
            "date": format_datetime(self.date),
            "name": self.name,
            "exercises": [e.to_dict() for e in self.exercises],
            "notes": self.notes,
            "duration": self.duration,
            "bodyWeight": self.body_weight,
            "progressPhotoURL": self.progress_photo_url,
            "createdAt": format_optional_datetime(self.created_at),
            "updatedAt": format_optional_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Workout":
        """Create from a local storage dictionary.

        Raises:
            AttributeError, KeyError, TypeError, ValueError: if the record is
                malformed
        """
        return cls(
            id=str(data["id"]),
            date=parse_datetime(data["date"]),
            name=data["name"],
            exercises=[ExerciseEntry.from_dict(e) for e in data.get("exercises", [])],
            notes=data.get("notes"),
            duration=data.get("duration"),
            body_weight=data.get("bodyWeight"),
            progress_photo_url=data.get("progressPhotoURL"),
            created_at=parse_optional_datetime(data.get("createdAt")),
            updated_at=parse_optional_datetime(data.get("updatedAt")),
        )

