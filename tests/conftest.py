"""Pytest configuration and fixtures."""

import copy
import tempfile
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

import pytest

from increment.clients.base import NotAuthenticatedError, RemoteError
from increment.db.local_store import LocalStore
from increment.models.user_profile import (
    BodyWeightGoal,
    ExerciseGoal,
    ExerciseTemplate,
    UserProfile,
    WorkoutDay,
)
from increment.models.workout import ExerciseEntry, Workout, WorkoutSet

USER_ID = "8f14e45f-ceea-467f-a0e6-6f3c1c1b2a90"


class FakeGateway:
    """In-memory remote gateway with call recording and failure injection.

    Add an operation name (e.g. ``"upsert_workouts"``) to ``fail`` to make
    that operation raise ``RemoteError``.
    """

    def __init__(self, authenticated: bool = True, user_id: str = USER_ID):
        self.authenticated = authenticated
        self.user_id = user_id
        self.rows: dict[str, Workout] = {}
        self.profile: UserProfile | None = None
        self.uploads: dict[tuple[str, str], bytes] = {}
        self.deleted: list[str] = []
        self.upserted: list[list[str]] = []
        self.fail: set[str] = set()
        self.calls: Counter = Counter()

    def _enter(self, op: str) -> None:
        self.calls[op] += 1
        if not self.authenticated:
            raise NotAuthenticatedError()
        if op in self.fail:
            raise RemoteError(f"{op} failed")

    def add_rows(self, *workouts: Workout) -> None:
        for workout in workouts:
            self.rows[workout.id] = copy.deepcopy(workout)

    def is_authenticated(self) -> bool:
        return self.authenticated

    def current_user_id(self) -> str | None:
        return self.user_id if self.authenticated else None

    async def sign_in(self, email: str, password: str) -> str:
        self.calls["sign_in"] += 1
        if "sign_in" in self.fail:
            raise RemoteError("sign in failed")
        self.authenticated = True
        return self.user_id

    async def sign_out(self) -> None:
        self.calls["sign_out"] += 1
        self.authenticated = False

    async def fetch_all_workouts(self, user_id: str) -> list[Workout]:
        self._enter("fetch_all_workouts")
        workouts = [copy.deepcopy(w) for w in self.rows.values()]
        workouts.sort(key=lambda w: w.date, reverse=True)
        return workouts

    async def upsert_workouts(self, workouts: list[Workout]) -> None:
        self._enter("upsert_workouts")
        self.upserted.append([w.id for w in workouts])
        for workout in workouts:
            self.rows[workout.id] = copy.deepcopy(workout)

    async def delete_workout(self, workout_id: str) -> None:
        self._enter("delete_workout")
        self.deleted.append(workout_id)
        self.rows.pop(workout_id, None)

    async def fetch_profile(self, user_id: str) -> UserProfile | None:
        self._enter("fetch_profile")
        return copy.deepcopy(self.profile)

    async def upsert_profile(self, profile: UserProfile) -> None:
        self._enter("upsert_profile")
        self.profile = copy.deepcopy(profile)

    async def upload_binary(self, bucket: str, path: str, data: bytes) -> str:
        self._enter("upload_binary")
        self.uploads[(bucket, path)] = data
        return f"https://storage.example.com/{bucket}/{path}"


class CountingStore(LocalStore):
    """Local store that records every profile write."""

    def __init__(self, data_dir: Path | None = None):
        super().__init__(data_dir)
        self.profile_writes: list[UserProfile] = []

    async def write_profile(self, profile: UserProfile) -> None:
        self.profile_writes.append(copy.deepcopy(profile))
        await super().write_profile(profile)


@pytest.fixture
def data_dir():
    """Create a temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(data_dir):
    return LocalStore(data_dir)


@pytest.fixture
def counting_store(data_dir):
    return CountingStore(data_dir)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def offline_gateway():
    return FakeGateway(authenticated=False)


@pytest.fixture
def push_day():
    """A workout with one exercise and three sets."""
    return Workout(
        id="00000000-0000-4000-8000-000000000001",
        date=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        name="Push Day",
        exercises=[
            ExerciseEntry(
                name="Bench Press",
                sets=[
                    WorkoutSet(reps=5, weight=225),
                    WorkoutSet(reps=5, weight=225),
                    WorkoutSet(reps=4, weight=220),
                ],
            )
        ],
        created_at=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def leg_day():
    return Workout(
        id="00000000-0000-4000-8000-000000000002",
        date=datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc),
        name="Leg Day",
        exercises=[ExerciseEntry(name="Squat", sets=[WorkoutSet(reps=5, weight=315)])],
        created_at=datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_profile():
    """Create a sample user profile for testing."""
    return UserProfile(
        name="Test User",
        email="test@example.com",
        bio="Lifting things",
        workout_split=[
            WorkoutDay(
                name="Push Day",
                exercises=[
                    ExerciseTemplate(
                        name="Bench Press",
                        weight_string="225, 225, 220",
                        reps_string="5, 5, 4",
                    ),
                    ExerciseTemplate(name="Dips", weight=0, reps=12),
                ],
            ),
        ],
        goals=[ExerciseGoal(exercise_name="Bench Press", target_weight=315, current_weight=225)],
        body_weight_goal=BodyWeightGoal(
            target_weight=180,
            current_weight=195,
            starting_weight=200,
            start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            target_date=datetime(2024, 6, 1, tzinfo=timezone.utc),
        ),
    )
