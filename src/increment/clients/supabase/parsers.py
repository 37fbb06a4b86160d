"""Row schemas and converters for the Supabase workouts/user_profiles tables."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError

from ...models.user_profile import (
    BodyWeightGoal,
    ExerciseGoal,
    ExerciseTemplate,
    UserProfile,
    WorkoutDay,
)
from ...models.workout import ExerciseEntry, Workout, WorkoutSet, new_id
from ...utils.dates import as_utc, format_datetime, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DecodeResult(Generic[T]):
    """Outcome of decoding one remote record: a value or an error message."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SetRow(BaseModel):
    id: str = Field(min_length=1)
    reps: int = Field(ge=0)
    weight: float = Field(ge=0)


class ExerciseRow(BaseModel):
    id: str = Field(min_length=1)
    template_id: str | None = None
    name: str
    sets: list[SetRow] = Field(default_factory=list)
    notes: str | None = None
    max_weight: float | None = None


class WorkoutRow(BaseModel):
    id: str = Field(min_length=1)
    user_id: str | None = None
    date: datetime
    name: str
    exercises: list[ExerciseRow] = Field(default_factory=list)
    notes: str | None = None
    duration: float | None = None
    body_weight: float | None = None
    progress_photo_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ExerciseTemplateRow(BaseModel):
    id: str = Field(min_length=1)
    name: str
    weight: float | None = None
    reps: int | None = None
    weight_string: str | None = None
    reps_string: str | None = None


class WorkoutDayRow(BaseModel):
    id: str = Field(min_length=1)
    name: str
    exercises: list[ExerciseTemplateRow] = Field(default_factory=list)


class ExerciseGoalRow(BaseModel):
    id: str = Field(min_length=1)
    exercise_name: str
    target_weight: float
    current_weight: float


class BodyWeightGoalRow(BaseModel):
    target_weight: float
    current_weight: float
    starting_weight: float
    start_date: datetime
    target_date: datetime


class ProfileRow(BaseModel):
    user_id: str | None = None
    name: str
    email: str
    bio: str | None = ""
    profile_image_url: str | None = None
    body_weight_goal: BodyWeightGoalRow | None = None
    goals: list[ExerciseGoalRow] = Field(default_factory=list)
    workout_split: list[WorkoutDayRow] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _error_summary(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


def _workout_from_row(row: WorkoutRow) -> Workout:
    exercises = []
    for ex in row.exercises:
        entry = ExerciseEntry(
            id=ex.id,
            template_id=ex.template_id or new_id(),
            name=ex.name,
            sets=[WorkoutSet(id=s.id, reps=s.reps, weight=s.weight) for s in ex.sets],
            notes=ex.notes,
        )
        entry.refresh_max_weight()
        exercises.append(entry)

    return Workout(
        id=row.id,
        date=as_utc(row.date),
        name=row.name,
        exercises=exercises,
        notes=row.notes,
        duration=row.duration,
        body_weight=row.body_weight,
        progress_photo_url=row.progress_photo_url,
        created_at=as_utc(row.created_at) if row.created_at else None,
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
    )


def decode_workout_row(data: object) -> DecodeResult[Workout]:
    """Validate and convert one ``workouts`` row."""
    try:
        row = WorkoutRow.model_validate(data)
    except ValidationError as exc:
        return DecodeResult(error=_error_summary(exc))
    return DecodeResult(value=_workout_from_row(row))


def decode_workout_rows(rows: list) -> list[Workout]:
    """Decode rows, skipping (and logging) any that fail validation."""
    workouts = []
    for data in rows:
        result = decode_workout_row(data)
        if result.ok:
            workouts.append(result.value)
        else:
            row_id = data.get("id") if isinstance(data, dict) else None
            logger.warning("Skipping malformed workout row %s: %s", row_id, result.error)
    return workouts


def decode_profile_row(data: object) -> DecodeResult[UserProfile]:
    """Validate and convert one ``user_profiles`` row."""
    try:
        row = ProfileRow.model_validate(data)
    except ValidationError as exc:
        return DecodeResult(error=_error_summary(exc))

    goal = row.body_weight_goal
    profile = UserProfile(
        name=row.name,
        email=row.email,
        bio=row.bio or "",
        profile_image_url=row.profile_image_url,
        goals=[
            ExerciseGoal(
                id=g.id,
                exercise_name=g.exercise_name,
                target_weight=g.target_weight,
                current_weight=g.current_weight,
            )
            for g in row.goals
        ],
        workout_split=[
            WorkoutDay(
                id=day.id,
                name=day.name,
                exercises=[
                    ExerciseTemplate(
                        id=t.id,
                        name=t.name,
                        weight=t.weight,
                        reps=t.reps,
                        weight_string=t.weight_string,
                        reps_string=t.reps_string,
                    )
                    for t in day.exercises
                ],
            )
            for day in row.workout_split
        ],
        body_weight_goal=(
            BodyWeightGoal(
                target_weight=goal.target_weight,
                current_weight=goal.current_weight,
                starting_weight=goal.starting_weight,
                start_date=as_utc(goal.start_date),
                target_date=as_utc(goal.target_date),
            )
            if goal
            else None
        ),
    )
    return DecodeResult(value=profile)


def workout_to_row(workout: Workout, user_id: str) -> dict:
    """Encode a workout as a ``workouts`` row."""
    now = utcnow()
    return {
        "id": workout.id,
        "user_id": user_id,
        "date": format_datetime(workout.date),
        "name": workout.name,
        "exercises": [
            {
                "id": ex.id,
                "template_id": ex.template_id,
                "name": ex.name,
                "sets": [{"id": s.id, "weight": s.weight, "reps": s.reps} for s in ex.sets],
                "notes": ex.notes,
                "max_weight": ex.compute_max_weight(),
            }
            for ex in workout.exercises
        ],
        "notes": workout.notes,
        "duration": workout.duration,
        "body_weight": workout.body_weight,
        "progress_photo_url": workout.progress_photo_url,
        "created_at": format_datetime(workout.created_at or now),
        "updated_at": format_datetime(now),
    }


def profile_to_row(profile: UserProfile, user_id: str) -> dict:
    """Encode a profile as a ``user_profiles`` row."""
    now = format_datetime(utcnow())
    goal = profile.body_weight_goal
    return {
        "user_id": user_id,
        "name": profile.name,
        "email": profile.email,
        "bio": profile.bio,
        "profile_image_url": profile.profile_image_url,
        "body_weight_goal": (
            {
                "target_weight": goal.target_weight,
                "current_weight": goal.current_weight,
                "starting_weight": goal.starting_weight,
                "start_date": format_datetime(goal.start_date),
                "target_date": format_datetime(goal.target_date),
            }
            if goal
            else None
        ),
        "goals": [
            {
                "id": g.id,
                "exercise_name": g.exercise_name,
                "target_weight": g.target_weight,
                "current_weight": g.current_weight,
            }
            for g in profile.goals
        ],
        "workout_split": [
            {
                "id": day.id,
                "name": day.name,
                "exercises": [
                    {
                        "id": t.id,
                        "name": t.name,
                        "weight": t.weight,
                        "reps": t.reps,
                        "weight_string": t.weight_string,
                        "reps_string": t.reps_string,
                    }
                    for t in day.exercises
                ],
            }
            for day in profile.workout_split
        ],
        "updated_at": now,
    }
