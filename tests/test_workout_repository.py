"""Tests for the workout repository."""

import asyncio
import copy
from datetime import datetime, timedelta, timezone

import pytest

from increment.clients.base import PROGRESS_PHOTOS_BUCKET
from increment.db.local_store import LocalStore
from increment.models.workout import ExerciseEntry, Workout, WorkoutSet
from increment.services.workout_repository import (
    WorkoutRepository,
    find_duplicate_workouts,
    merge_workouts,
)


def _workout(id_suffix: str, name: str, when: datetime, created: datetime | None = None) -> Workout:
    return Workout(
        id=f"00000000-0000-4000-8000-{id_suffix:0>12}",
        date=when,
        name=name,
        created_at=created,
    )


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMergeWorkouts:
    """Tests for the local-wins merge."""

    def test_local_wins_on_identity(self, push_day, leg_day):
        remote_push = copy.deepcopy(push_day)
        remote_push.exercises[0].sets = remote_push.exercises[0].sets[:1]

        merged = merge_workouts([push_day], [leg_day, remote_push])

        assert [w.id for w in merged] == [leg_day.id, push_day.id]
        assert merged[1] is push_day
        assert len(merged[1].exercises[0].sets) == 3

    def test_local_only_appended(self, push_day, leg_day):
        merged = merge_workouts([push_day], [leg_day])
        assert [w.id for w in merged] == [leg_day.id, push_day.id]

    def test_idempotent(self, push_day, leg_day):
        remote = [leg_day, copy.deepcopy(push_day)]
        first = merge_workouts([push_day], remote)
        second = merge_workouts([push_day], remote)

        assert [w.to_dict() for w in first] == [w.to_dict() for w in second]
        assert len(merge_workouts(first, first)) == 2


class TestFindDuplicateWorkouts:
    """Tests for duplicate detection."""

    def test_keeps_most_recently_created(self):
        day = datetime(2024, 2, 1, 10, tzinfo=timezone.utc)
        older = _workout("10", "Pull Day", day, created=day)
        newer = _workout("11", "Pull Day", day + timedelta(hours=2), created=day + timedelta(hours=1))

        assert find_duplicate_workouts([older, newer]) == [older]

    def test_missing_created_at_is_oldest(self):
        day = datetime(2024, 2, 1, 10, tzinfo=timezone.utc)
        undated = _workout("10", "Pull Day", day)
        dated = _workout("11", "Pull Day", day, created=day)

        assert find_duplicate_workouts([undated, dated]) == [undated]

    def test_tie_keeps_first(self):
        day = datetime(2024, 2, 1, 10, tzinfo=timezone.utc)
        first = _workout("10", "Pull Day", day, created=day)
        second = _workout("11", "Pull Day", day, created=day)

        assert find_duplicate_workouts([first, second]) == [second]

    def test_different_day_or_name_not_duplicates(self):
        day = datetime(2024, 2, 1, 10, tzinfo=timezone.utc)
        workouts = [
            _workout("10", "Pull Day", day, created=day),
            _workout("11", "Push Day", day, created=day),
            _workout("12", "Pull Day", day + timedelta(days=1), created=day),
        ]
        assert find_duplicate_workouts(workouts) == []


class TestReconcile:
    """Tests for reconcile_with_remote."""

    @pytest.mark.asyncio
    async def test_local_wins_scenario(self, store, gateway, push_day, leg_day):
        remote_push = copy.deepcopy(push_day)
        remote_push.exercises[0].sets = remote_push.exercises[0].sets[:1]
        gateway.add_rows(remote_push, leg_day)
        await store.write_workouts([push_day])

        repo = WorkoutRepository(store, gateway)
        assert await repo.reconcile_with_remote()
        await repo.wait_for_background()

        by_id = {w.id: w for w in repo.workouts}
        assert set(by_id) == {push_day.id, leg_day.id}
        assert len(by_id[push_day.id].exercises[0].sets) == 3
        assert by_id[push_day.id].exercises[0].max_weight == 225

        stored = {w.id: w for w in await store.read_workouts()}
        assert len(stored[push_day.id].exercises[0].sets) == 3
        assert leg_day.id in stored
        assert len(gateway.rows[push_day.id].exercises[0].sets) == 3
        assert repo.last_error is None

    @pytest.mark.asyncio
    async def test_noop_when_not_authenticated(self, store, offline_gateway, push_day):
        await store.write_workouts([push_day])
        repo = WorkoutRepository(store, offline_gateway)

        assert not await repo.reconcile_with_remote()
        assert sum(offline_gateway.calls.values()) == 0
        assert repo.workouts == []

    @pytest.mark.asyncio
    async def test_cooldown(self, store, gateway, push_day):
        gateway.add_rows(push_day)
        clock = FakeClock()
        repo = WorkoutRepository(store, gateway, cooldown=30, clock=clock)

        assert await repo.reconcile_with_remote()
        clock.now += 10
        assert not await repo.reconcile_with_remote()
        assert len(gateway.upserted) == 1

        assert await repo.reconcile_with_remote(force_reload=True)
        assert len(gateway.upserted) == 2

        clock.now += 31
        assert await repo.reconcile_with_remote()
        assert len(gateway.upserted) == 3
        await repo.wait_for_background()

    @pytest.mark.asyncio
    async def test_cleanup_spawned_once(self, store, gateway, push_day):
        gateway.add_rows(push_day)
        repo = WorkoutRepository(store, gateway, cooldown=0)

        await repo.reconcile_with_remote()
        await repo.wait_for_background()
        await repo.reconcile_with_remote()
        await repo.wait_for_background()

        # one fetch per reconciliation plus a single cleanup fetch
        assert gateway.calls["fetch_all_workouts"] == 3

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_local(self, store, gateway, push_day, leg_day):
        gateway.add_rows(leg_day)
        gateway.fail.add("fetch_all_workouts")
        await store.write_workouts([push_day])
        repo = WorkoutRepository(store, gateway)

        assert not await repo.reconcile_with_remote()

        assert [w.id for w in repo.workouts] == [push_day.id]
        assert repo.last_error is not None
        await repo.wait_for_background()
        assert push_day.id in gateway.rows

    @pytest.mark.asyncio
    async def test_active_workout_survives_merge(self, store, gateway, push_day):
        await store.write_workouts([push_day])
        gateway.add_rows(push_day)
        repo = WorkoutRepository(store, gateway)
        await repo.load_local_first()

        live = copy.deepcopy(push_day)
        live.exercises[0].sets.append(WorkoutSet(reps=3, weight=230))
        repo.session.workout = live

        await repo.reconcile_with_remote()
        await repo.wait_for_background()

        assert repo.get(push_day.id) is live
        assert len(gateway.rows[push_day.id].exercises[0].sets) == 4

    @pytest.mark.asyncio
    async def test_local_photos_promoted(self, store, gateway, push_day):
        push_day.progress_photo_url = await store.write_photo(push_day.id, b"photo")
        await store.write_workouts([push_day])
        repo = WorkoutRepository(store, gateway)

        await repo.reconcile_with_remote()
        await repo.wait_for_background()

        url = repo.get(push_day.id).progress_photo_url
        assert url.startswith("https://")
        assert gateway.uploads[(PROGRESS_PHOTOS_BUCKET, f"users/{gateway.user_id}/workouts/{push_day.id}.jpg")] == b"photo"
        assert (await store.read_workouts())[0].progress_photo_url == url


class TestCleanupDuplicates:
    """Tests for duplicate cleanup."""

    @pytest.mark.asyncio
    async def test_only_newest_row_remains(self, store, gateway):
        day = datetime(2024, 2, 1, 9, tzinfo=timezone.utc)
        row10 = _workout("10", "Pull Day", day, created=day)
        row11 = _workout("11", "Pull Day", day + timedelta(hours=1), created=day + timedelta(minutes=5))
        gateway.add_rows(row10, row11)

        repo = WorkoutRepository(store, gateway)
        repo.workouts = [copy.deepcopy(row10), copy.deepcopy(row11)]

        deleted = await repo.cleanup_duplicates()

        assert deleted == [row10.id]
        assert list(gateway.rows) == [row11.id]
        assert [w.id for w in repo.workouts] == [row11.id]
        assert [w.id for w in await store.read_workouts()] == [row11.id]

    @pytest.mark.asyncio
    async def test_active_workout_kept_locally(self, store, gateway):
        day = datetime(2024, 2, 1, 9, tzinfo=timezone.utc)
        row10 = _workout("10", "Pull Day", day, created=day)
        row11 = _workout("11", "Pull Day", day, created=day + timedelta(minutes=5))
        gateway.add_rows(row10, row11)

        repo = WorkoutRepository(store, gateway)
        repo.workouts = [row10, copy.deepcopy(row11)]
        repo.session.workout = row10

        await repo.cleanup_duplicates()

        assert repo.get(row10.id) is row10

    @pytest.mark.asyncio
    async def test_offline_does_nothing(self, store, offline_gateway):
        repo = WorkoutRepository(store, offline_gateway)
        assert await repo.cleanup_duplicates() == []


class TestSaveAndActiveSession:
    """Tests for saving and the active session."""

    @pytest.mark.asyncio
    async def test_save_remote_failure_is_recorded(self, store, gateway, push_day):
        gateway.fail.add("upsert_workouts")
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day]

        await repo.save()

        assert [w.id for w in await store.read_workouts()] == [push_day.id]
        assert "save workouts" in repo.last_error
        assert push_day.exercises[0].max_weight == 225

    @pytest.mark.asyncio
    async def test_save_offline_is_local_only(self, store, offline_gateway, push_day):
        repo = WorkoutRepository(store, offline_gateway)
        repo.workouts = [push_day]

        await repo.save()

        assert len(await store.read_workouts()) == 1
        assert offline_gateway.calls["upsert_workouts"] == 0
        assert repo.last_error is None

    @pytest.mark.asyncio
    async def test_update_active_workout(self, store, gateway, push_day, leg_day):
        changed = []

        async def hook(workout):
            changed.append(workout.id)

        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day, leg_day]
        repo.on_active_workout_changed = hook

        edited = copy.deepcopy(push_day)
        edited.exercises[0].sets.append(WorkoutSet(reps=2, weight=235))
        await repo.update_active_workout(edited)

        assert repo.active_workout is edited
        assert repo.workouts[0] is edited
        assert len(repo.workouts) == 2
        assert edited.updated_at is not None
        assert changed == [push_day.id]
        assert len(gateway.rows[push_day.id].exercises[0].sets) == 4

    @pytest.mark.asyncio
    async def test_update_active_workout_appends_new(self, store, gateway, push_day):
        repo = WorkoutRepository(store, gateway)
        await repo.update_active_workout(push_day)

        assert repo.workouts == [push_day]

    def test_restore_prefers_exercise_workout(self, store, gateway):
        now = datetime.now(timezone.utc)
        weight = Workout(date=now, name="Weight Update")
        push = Workout(date=now, name="Push Day")
        old = Workout(date=now - timedelta(days=3), name="Leg Day")

        repo = WorkoutRepository(store, gateway)
        repo.workouts = [old, weight, push]

        assert repo.restore_active_workout(now) is push

    def test_restore_falls_back_to_ancillary(self, store, gateway):
        now = datetime.now(timezone.utc)
        weight = Workout(date=now, name="Weight Update")

        repo = WorkoutRepository(store, gateway)
        repo.workouts = [weight]

        assert repo.restore_active_workout(now) is weight

    def test_restore_keeps_existing_session(self, store, gateway, push_day):
        now = datetime.now(timezone.utc)
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [Workout(date=now, name="Pull Day")]
        repo.session.workout = push_day

        assert repo.restore_active_workout(now) is push_day

    def test_restore_nothing_today(self, store, gateway, push_day):
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day]

        assert repo.restore_active_workout(datetime.now(timezone.utc)) is None

    @pytest.mark.asyncio
    async def test_start_workout(self, store, gateway, sample_profile):
        day = sample_profile.workout_split[0]
        repo = WorkoutRepository(store, gateway)

        workout = await repo.start_workout(day)
        again = await repo.start_workout(day)

        assert again is workout
        assert repo.active_workout is workout
        assert repo.session.selected_workout_day_name == "Push Day"
        assert len(repo.workouts) == 1
        assert [s.weight for s in workout.exercises[0].sets] == [225, 225, 220]
        assert workout.id in gateway.rows


class TestDeleteWorkout:
    """Tests for delete_workout."""

    @pytest.mark.asyncio
    async def test_delete(self, store, gateway, push_day, leg_day):
        gateway.add_rows(push_day, leg_day)
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day, leg_day]
        repo.session.workout = push_day

        assert await repo.delete_workout(push_day.id)

        assert [w.id for w in repo.workouts] == [leg_day.id]
        assert repo.active_workout is None
        assert gateway.deleted == [push_day.id]
        assert push_day.id not in gateway.rows

    @pytest.mark.asyncio
    async def test_remote_failure_not_rolled_back(self, store, gateway, push_day):
        gateway.fail.add("delete_workout")
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day]

        assert await repo.delete_workout(push_day.id)

        assert repo.workouts == []
        assert await store.read_workouts() == []
        assert "delete workout" in repo.last_error

    @pytest.mark.asyncio
    async def test_unknown_id(self, store, gateway):
        repo = WorkoutRepository(store, gateway)
        assert not await repo.delete_workout("missing")
        assert gateway.calls["delete_workout"] == 0


class TestProgressPhotos:
    """Tests for progress photo upload."""

    @pytest.mark.asyncio
    async def test_upload_updates_workout_and_session(self, store, gateway, push_day):
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day]
        repo.session.workout = copy.deepcopy(push_day)

        url = await repo.upload_progress_photo(b"jpeg", push_day.id)

        assert url.startswith("https://")
        assert push_day.progress_photo_url == url
        assert repo.active_workout.progress_photo_url == url
        assert (await store.read_workouts())[0].progress_photo_url == url

    @pytest.mark.asyncio
    async def test_upload_failure_leaves_state(self, store, gateway, push_day):
        gateway.fail.add("upload_binary")
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day]

        assert await repo.upload_progress_photo(b"jpeg", push_day.id) is None

        assert push_day.progress_photo_url is None
        assert "upload progress photo" in repo.last_error
        assert not store.workouts_path.exists()

    @pytest.mark.asyncio
    async def test_offline_stores_file(self, store, offline_gateway, push_day):
        repo = WorkoutRepository(store, offline_gateway)
        repo.workouts = [push_day]

        url = await repo.upload_progress_photo(b"jpeg", push_day.id)

        assert url.startswith("file:")
        assert await store.read_photo(url) == b"jpeg"

    @pytest.mark.asyncio
    async def test_failed_log_progress_photo_adds_no_record(self, store, gateway):
        gateway.fail.add("upload_binary")
        repo = WorkoutRepository(store, gateway)

        assert await repo.log_progress_photo(b"jpeg") is None

        assert repo.workouts == []
        assert not store.workouts_path.exists()
        assert gateway.calls["upsert_workouts"] == 0

    @pytest.mark.asyncio
    async def test_log_progress_photo_offline(self, store, offline_gateway):
        repo = WorkoutRepository(store, offline_gateway)

        url = await repo.log_progress_photo(b"jpeg")

        assert url.startswith("file:")
        assert [w.progress_photo_url for w in await store.read_workouts()] == [url]

    @pytest.mark.asyncio
    async def test_log_progress_photo(self, store, gateway):
        repo = WorkoutRepository(store, gateway)
        url = await repo.log_progress_photo(b"jpeg")

        assert len(repo.workouts) == 1
        assert repo.workouts[0].name == "Progress Photo"
        assert repo.workouts[0].progress_photo_url == url


class TestAncillaryAndQueries:
    """Tests for body weight logging and history queries."""

    @pytest.mark.asyncio
    async def test_log_body_weight_reuses_todays_record(self, store, gateway):
        repo = WorkoutRepository(store, gateway)

        first = await repo.log_body_weight(190)
        second = await repo.log_body_weight(189.5)

        assert first is second
        assert len(repo.workouts) == 1
        assert repo.workouts[0].name == "Weight Update"
        assert repo.workouts[0].body_weight == 189.5

    @pytest.mark.asyncio
    async def test_log_body_weight_rejects_non_positive(self, store, gateway):
        repo = WorkoutRepository(store, gateway)
        with pytest.raises(ValueError):
            await repo.log_body_weight(0)

    def test_workouts_for_date(self, store, gateway, push_day, leg_day):
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day, leg_day]

        assert repo.workouts_for_date(push_day.date) == [push_day]
        assert len(repo.dates_with_workouts()) == 2

    def test_exercise_history(self, store, gateway, push_day):
        later = Workout(
            date=push_day.date + timedelta(days=7),
            name="Push Day",
            exercises=[
                ExerciseEntry(
                    name="bench  press",
                    template_id=push_day.exercises[0].template_id,
                    sets=[WorkoutSet(reps=5, weight=230)],
                )
            ],
        )
        other = Workout(
            date=push_day.date + timedelta(days=1),
            name="Pull Day",
            exercises=[ExerciseEntry(name="Row")],
        )
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day, other, later]

        by_template = repo.exercise_history(template_id=push_day.exercises[0].template_id)
        by_name = repo.exercise_history(name="Bench Press")

        assert [d for d, _ in by_template] == [later.date, push_day.date]
        assert [e for _, e in by_name] == [later.exercises[0], push_day.exercises[0]]
        with pytest.raises(ValueError):
            repo.exercise_history()

    @pytest.mark.asyncio
    async def test_reset(self, store, gateway, push_day):
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [push_day]
        repo.session.workout = push_day
        repo.last_error = "old"
        await repo.save()

        await repo.reset()

        assert repo.workouts == []
        assert repo.active_workout is None
        assert repo.last_error is None
        assert not store.workouts_path.exists()


class SlowStore(LocalStore):
    """Local store whose workout writes yield mid-write and record overlap."""

    def __init__(self, data_dir):
        super().__init__(data_dir)
        self.in_flight = 0
        self.max_in_flight = 0

    async def write_workouts(self, workouts):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            await super().write_workouts(workouts)
        finally:
            self.in_flight -= 1


class TestLocalWrites:
    """Tests for concurrent writers of the workouts file."""

    @pytest.mark.asyncio
    async def test_save_and_cleanup_take_turns(self, data_dir, gateway):
        day = datetime(2024, 2, 1, 9, tzinfo=timezone.utc)
        row10 = _workout("10", "Pull Day", day, created=day)
        row11 = _workout("11", "Pull Day", day, created=day + timedelta(minutes=5))
        gateway.add_rows(row10, row11)

        store = SlowStore(data_dir)
        repo = WorkoutRepository(store, gateway)
        repo.workouts = [copy.deepcopy(row10), copy.deepcopy(row11)]

        await asyncio.gather(repo.save(), repo.cleanup_duplicates())

        assert store.max_in_flight == 1
        assert [w.id for w in await store.read_workouts()] == [row11.id]
