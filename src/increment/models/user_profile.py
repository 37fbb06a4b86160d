"""User profile data models."""

from dataclasses import dataclass, field
from datetime import datetime

from ..utils.dates import format_datetime, parse_datetime, utcnow
from ..utils.exercise_utils import names_match, parse_set_strings
from .workout import ExerciseEntry, Workout, WorkoutSet, new_id


@dataclass
class ExerciseTemplate:
    """An exercise slot in a workout day, with optional per-set targets.

    Targets are either scalar (``weight`` x ``reps``) or comma-separated
    per-set strings such as "225, 225, 220" / "5, 5, 4".
    """

    name: str
    weight: float | None = None
    reps: int | None = None
    weight_string: str | None = None
    reps_string: str | None = None
    id: str = field(default_factory=new_id)

    def decode_sets(self) -> list[WorkoutSet]:
        """Build concrete sets from the template's targets."""
        if self.weight_string or self.reps_string:
            return [
                WorkoutSet(reps=reps, weight=weight)
                for weight, reps in parse_set_strings(
                    self.weight_string, self.reps_string
                )
            ]
        if self.weight is not None or self.reps is not None:
            return [
                WorkoutSet(reps=max(self.reps or 0, 0), weight=max(self.weight or 0.0, 0.0))
            ]
        return []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "weight": self.weight,
            "reps": self.reps,
            "weightString": self.weight_string,
            "repsString": self.reps_string,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseTemplate":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            weight=data.get("weight"),
            reps=data.get("reps"),
            weight_string=data.get("weightString"),
            reps_string=data.get("repsString"),
        )


@dataclass
class WorkoutDay:
    """One slot of the weekly split, e.g. "Push Day"."""

    name: str
    exercises: list[ExerciseTemplate] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def instantiate(self, when: datetime | None = None) -> Workout:
        """Create a new workout from this day's templates."""
        exercises = []
        for template in self.exercises:
            if not template.name.strip():
                continue
            entry = ExerciseEntry(
                name=template.name.strip(),
                template_id=template.id,
                sets=template.decode_sets(),
            )
            entry.refresh_max_weight()
            exercises.append(entry)

        return Workout(date=when or utcnow(), name=self.name, exercises=exercises)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "exercises": [e.to_dict() for e in self.exercises],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutDay":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            exercises=[ExerciseTemplate.from_dict(e) for e in data.get("exercises", [])],
        )


@dataclass
class ExerciseGoal:
    """Target weight for a named exercise."""

    exercise_name: str
    target_weight: float
    current_weight: float
    id: str = field(default_factory=new_id)

    @property
    def progress_percentage(self) -> float:
        """Progress toward the target as a percentage (0-100)."""
        if self.target_weight <= 0:
            return 0.0
        pct = self.current_weight / self.target_weight * 100
        return min(max(pct, 0.0), 100.0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "exerciseName": self.exercise_name,
            "targetWeight": self.target_weight,
            "currentWeight": self.current_weight,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseGoal":
        return cls(
            id=str(data["id"]),
            exercise_name=data["exerciseName"],
            target_weight=float(data["targetWeight"]),
            current_weight=float(data["currentWeight"]),
        )


@dataclass
class BodyWeightGoal:
    """Body weight target, either a loss or a gain from the starting weight."""

    target_weight: float
    current_weight: float
    starting_weight: float
    start_date: datetime
    target_date: datetime

    @property
    def is_weight_loss(self) -> bool:
        return self.target_weight < self.starting_weight

    @property
    def progress_percentage(self) -> float:
        """Distance covered toward the target as a percentage, capped at 100."""
        total_change = abs(self.target_weight - self.starting_weight)
        if total_change == 0:
            return 0.0
        current_change = abs(self.current_weight - self.starting_weight)
        return min(current_change / total_change * 100, 100.0)

    def to_dict(self) -> dict:
        return {
            "targetWeight": self.target_weight,
            "currentWeight": self.current_weight,
            "startingWeight": self.starting_weight,
            "startDate": format_datetime(self.start_date),
            "targetDate": format_datetime(self.target_date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BodyWeightGoal":
        return cls(
            target_weight=float(data["targetWeight"]),
            current_weight=float(data["currentWeight"]),
            starting_weight=float(data["startingWeight"]),
            start_date=parse_datetime(data["startDate"]),
            target_date=parse_datetime(data["targetDate"]),
        )


@dataclass
class UserProfile:
    """The signed-in user's profile, split, and goals."""

    name: str
    email: str
    bio: str = ""
    workout_split: list[WorkoutDay] = field(default_factory=list)
    goals: list[ExerciseGoal] = field(default_factory=list)
    body_weight_goal: BodyWeightGoal | None = None
    profile_image_url: str | None = None

    def goal_for(self, exercise_name: str) -> ExerciseGoal | None:
        """Find the goal for an exercise by loose name match."""
        for goal in self.goals:
            if names_match(goal.exercise_name, exercise_name):
                return goal
        return None

    def workout_day(self, name: str) -> WorkoutDay | None:
        for day in self.workout_split:
            if day.name == name:
                return day
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for local storage."""
        return {
            "name": self.name,
            "email": self.email,
            "bio": self.bio,
            "workoutSplit": [d.to_dict() for d in self.workout_split],
            "goals": [g.to_dict() for g in self.goals],
            "bodyWeightGoal": (
                self.body_weight_goal.to_dict() if self.body_weight_goal else None
            ),
            "profileImageURL": self.profile_image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        """Create from a local storage dictionary.

        Individual malformed days or goals are dropped rather than failing the
        whole profile.
        """
        workout_split = []
        for day in data.get("workoutSplit", []):
            try:
                workout_split.append(WorkoutDay.from_dict(day))
            except (AttributeError, KeyError, TypeError, ValueError):
                continue

        goals = []
        for goal in data.get("goals", []):
            try:
                goals.append(ExerciseGoal.from_dict(goal))
            except (AttributeError, KeyError, TypeError, ValueError):
                continue

        body_weight_goal = None
        if data.get("bodyWeightGoal"):
            try:
                body_weight_goal = BodyWeightGoal.from_dict(data["bodyWeightGoal"])
            except (AttributeError, KeyError, TypeError, ValueError):
                body_weight_goal = None

        return cls(
            name=data["name"],
            email=data["email"],
            bio=data.get("bio") or "",
            workout_split=workout_split,
            goals=goals,
            body_weight_goal=body_weight_goal,
            profile_image_url=data.get("profileImageURL"),
        )
