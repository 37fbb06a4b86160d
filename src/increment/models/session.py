"""Active session and crash-recovery snapshot models."""

from dataclasses import dataclass, field
from datetime import datetime

from ..utils.dates import format_datetime, parse_datetime, utcnow
from .workout import ExerciseEntry, Workout, WorkoutSet, is_valid_id, new_id


@dataclass
class ActiveSession:
    """The workout currently being performed and the template it came from."""

    workout: Workout | None = None
    selected_workout_day_name: str | None = None
    saved_at: datetime | None = None

    def clear(self) -> None:
        self.workout = None
        self.selected_workout_day_name = None
        self.saved_at = None


def _valid_or_new(value: object) -> str:
    return value if is_valid_id(value) else new_id()


@dataclass
class SnapshotSet:
    id: str
    weight: float
    reps: int

    def to_dict(self) -> dict:
        return {"id": self.id, "weight": self.weight, "reps": self.reps}

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotSet":
        return cls(id=data.get("id"), weight=float(data["weight"]), reps=int(data["reps"]))


@dataclass
class SnapshotExercise:
    id: str
    name: str
    sets: list[SnapshotSet] = field(default_factory=list)
    template_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sets": [s.to_dict() for s in self.sets],
            "templateId": self.template_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotExercise":
        return cls(
            id=data.get("id"),
            name=data["name"],
            sets=[SnapshotSet.from_dict(s) for s in data.get("sets", [])],
            template_id=data.get("templateId"),
        )


@dataclass
class SnapshotWorkout:
    """Minimal projection of the active workout."""

    workout_id: str
    workout_name: str
    start_time: datetime
    exercises: list[SnapshotExercise] = field(default_factory=list)

    @classmethod
    def from_workout(cls, workout: Workout) -> "SnapshotWorkout":
        return cls(
            workout_id=workout.id,
            workout_name=workout.name,
            start_time=workout.date,
            exercises=[
                SnapshotExercise(
                    id=exercise.id,
                    name=exercise.name,
                    template_id=exercise.template_id,
                    sets=[
                        SnapshotSet(id=s.id, weight=s.weight, reps=s.reps)
                        for s in exercise.sets
                    ],
                )
                for exercise in workout.exercises
            ],
        )

    def to_workout(self) -> Workout:
        """Rebuild a full workout graph.

        Stored identity tokens are kept; malformed ones are regenerated.
        """
        exercises = []
        for exercise in self.exercises:
            exercise_id = _valid_or_new(exercise.id)
            entry = ExerciseEntry(
                id=exercise_id,
                template_id=(
                    exercise.template_id
                    if is_valid_id(exercise.template_id)
                    else exercise_id
                ),
                name=exercise.name,
                sets=[
                    WorkoutSet(id=_valid_or_new(s.id), reps=s.reps, weight=s.weight)
                    for s in exercise.sets
                ],
            )
            entry.refresh_max_weight()
            exercises.append(entry)

        return Workout(
            id=_valid_or_new(self.workout_id),
            date=self.start_time,
            name=self.workout_name,
            exercises=exercises,
        )

    def to_dict(self) -> dict:
        return {
            "workoutName": self.workout_name,
            "exercises": [e.to_dict() for e in self.exercises],
            "startTime": format_datetime(self.start_time),
            "workoutId": self.workout_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotWorkout":
        return cls(
            workout_id=data.get("workoutId"),
            workout_name=data["workoutName"],
            start_time=parse_datetime(data["startTime"]),
            exercises=[SnapshotExercise.from_dict(e) for e in data.get("exercises", [])],
        )


@dataclass
class SessionSnapshot:
    """The document persisted for resume-where-you-left-off."""

    selected_workout_day_name: str | None = None
    current_workout: SnapshotWorkout | None = None
    saved_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "selectedWorkoutDayName": self.selected_workout_day_name,
            "currentWorkout": (
                self.current_workout.to_dict() if self.current_workout else None
            ),
            "savedAt": format_datetime(self.saved_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionSnapshot":
        current = data.get("currentWorkout")
        return cls(
            selected_workout_day_name=data.get("selectedWorkoutDayName"),
            current_workout=SnapshotWorkout.from_dict(current) if current else None,
            saved_at=parse_datetime(data["savedAt"]),
        )
