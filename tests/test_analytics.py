"""Tests for analytics aggregation."""

from datetime import date, datetime

import pytest

from lift_ledger.models.exercises import Exercise
from lift_ledger.models.workout import ExerciseInput, ExerciseSet, SetInput, WorkoutExercise, WorkoutLog
from lift_ledger.services.analytics import (
    AnalyticsService,
    brzycki_one_rep_max,
    calculate_analytics,
    calculate_frequency_trends,
    calculate_muscle_group_distribution,
    calculate_personal_records,
    calculate_summary,
    calculate_volume_trends,
    calculate_weight_progress,
    day_of_week,
    js_round,
    prepare_logs,
    week_start,
)
from lift_ledger.services.snapshot import create_snapshot
from lift_ledger.services.workout_logging import WorkoutService

BENCH = Exercise("Bench Press", "Chest", "Barbell", id=1)
FLY = Exercise("Cable Fly", "Chest", "Cable", id=2)
ROW = Exercise("Barbell Row", "Back", "Barbell", id=3)


def _log(when: datetime, *entries: tuple[Exercise, list[tuple[int, float]]], log_id: int = 1) -> WorkoutLog:
    """Build a workout log from (exercise, [(reps, weight), ...]) entries."""
    exercises = []
    for order, (exercise, sets) in enumerate(entries, start=1):
        exercises.append(
            WorkoutExercise(
                workout_log_id=log_id,
                order=order,
                snapshot=create_snapshot(exercise, captured_at=when),
                original_exercise_id=exercise.id,
                sets=[
                    ExerciseSet(set_number=n, reps=reps, weight_kg=weight)
                    for n, (reps, weight) in enumerate(sets, start=1)
                ],
            )
        )
    return WorkoutLog(user_id="user-1", date=when, day_of_week=day_of_week(when.date()), exercises=exercises, id=log_id)


class TestHelpers:
    """Tests for rounding, 1RM and calendar helpers."""

    def test_js_round_half_up(self):
        assert js_round(2.5) == 3
        assert js_round(-2.5) == -2
        assert js_round(116.6666, 1) == 116.7

    def test_brzycki(self):
        """Test the Brzycki estimate and its edges."""
        assert brzycki_one_rep_max(100, 1) == 100
        assert brzycki_one_rep_max(100, 5) == pytest.approx(100 / 0.8888)
        assert js_round(brzycki_one_rep_max(100, 5)) == 113
        assert brzycki_one_rep_max(50, 40) == 50

    def test_week_starts_on_sunday(self):
        assert week_start(date(2024, 3, 6)) == date(2024, 3, 3)
        assert week_start(date(2024, 3, 3)) == date(2024, 3, 3)
        assert day_of_week(date(2024, 3, 3)) == 0


class TestPrepareLogs:
    """Tests for resolving and filtering logs."""

    def test_drops_zero_rep_sets(self):
        logs = [_log(datetime(2024, 3, 4), (BENCH, [(0, 100), (5, 100)]))]
        prepared = prepare_logs(logs)
        assert len(prepared[0].exercises[0].sets) == 1

    def test_filter_drops_emptied_logs(self):
        """Test filtered-out logs disappear entirely."""
        logs = [
            _log(datetime(2024, 3, 4), (BENCH, [(5, 100)]), log_id=1),
            _log(datetime(2024, 3, 5), (ROW, [(8, 60)]), log_id=2),
        ]
        assert len(prepare_logs(logs, muscle_group="Back")) == 1
        assert len(prepare_logs(logs, exercise_name="Bench Press")) == 1
        assert len(prepare_logs(logs, exercise_id=3)) == 1
        assert prepare_logs(logs, exercise_id=99) == []

    def test_unresolvable_exercise_skipped(self):
        """Test exercises with no snapshot or live row are dropped."""
        log = WorkoutLog(
            user_id="user-1",
            date=datetime(2024, 3, 4),
            day_of_week=1,
            exercises=[WorkoutExercise(workout_log_id=1, order=1, sets=[ExerciseSet(1, 5, 100)])],
        )
        prepared = prepare_logs([log])
        assert prepared[0].exercises == []


class TestAggregates:
    """Tests for the individual analytics views."""

    def test_volume_single_week(self):
        """Test two logs in one week share a bucket."""
        workouts = prepare_logs([
            _log(datetime(2024, 3, 4), (BENCH, [(10, 50)]), log_id=1),
            _log(datetime(2024, 3, 6), (BENCH, [(8, 60)]), log_id=2),
        ])
        assert calculate_volume_trends(workouts) == [{"week": "2024-03-03", "volume": 980}]

    def test_volume_omits_empty_weeks(self):
        workouts = prepare_logs([
            _log(datetime(2024, 3, 4), (BENCH, [(10, 50)]), log_id=1),
            _log(datetime(2024, 3, 20), (BENCH, [(10, 0)]), log_id=2),
        ])
        assert [v["week"] for v in calculate_volume_trends(workouts)] == ["2024-03-03"]

    def test_muscle_distribution(self):
        """Test set counts and percentages per muscle group."""
        workouts = prepare_logs([
            _log(datetime(2024, 3, 4), (BENCH, [(5, 100), (5, 100)]), (FLY, [(12, 20)]), (ROW, [(8, 60)])),
        ])
        assert calculate_muscle_group_distribution(workouts) == [
            {"name": "Chest", "value": 3, "percentage": 75},
            {"name": "Back", "value": 1, "percentage": 25},
        ]

    def test_weight_progress(self):
        """Test per-session maxima in date order, skipping weightless sessions."""
        workouts = prepare_logs([
            _log(datetime(2024, 3, 11), (BENCH, [(5, 105), (3, 110)]), log_id=2),
            _log(datetime(2024, 3, 4), (BENCH, [(5, 100)]), log_id=1),
            _log(datetime(2024, 3, 6), (BENCH, [(10, 0)]), log_id=3),
        ])
        progress = calculate_weight_progress(workouts)
        assert [(p["date"], p["weight"]) for p in progress["Bench Press"]] == [
            ("2024-03-04", 100),
            ("2024-03-11", 110),
        ]

    def test_weight_progress_one_point_per_session(self):
        """Test an exercise logged twice in one session plots its heavier top set once."""
        workouts = prepare_logs([
            _log(datetime(2026, 1, 5), (BENCH, [(5, 100)]), (BENCH, [(8, 80)])),
        ])
        progress = calculate_weight_progress(workouts)
        assert progress["Bench Press"] == [
            {"date": "2026-01-05", "weight": 100, "exercise_id": BENCH.id},
        ]

    def test_frequency_counts_distinct_days(self):
        """Test two sessions on one Monday count once."""
        workouts = prepare_logs([
            _log(datetime(2024, 3, 4, 7), (BENCH, [(5, 100)]), log_id=1),
            _log(datetime(2024, 3, 4, 19), (ROW, [(5, 60)]), log_id=2),
            _log(datetime(2024, 3, 10), (ROW, [(5, 60)]), log_id=3),
        ])
        frequency = calculate_frequency_trends(workouts)
        assert len(frequency) == 7
        assert frequency[0] == {"day": "Sunday", "count": 1}
        assert frequency[1] == {"day": "Monday", "count": 1}

    def test_personal_records(self):
        """Test the best Brzycki set per exercise, highest first."""
        workouts = prepare_logs([
            _log(datetime(2024, 3, 11), (BENCH, [(5, 100), (1, 110)]), (ROW, [(8, 60)]), log_id=2),
            _log(datetime(2024, 3, 4), (BENCH, [(5, 100)]), log_id=1),
        ])
        records = calculate_personal_records(workouts)

        assert [r["exercise_name"] for r in records] == ["Bench Press", "Barbell Row"]
        bench = records[0]
        assert (bench["weight"], bench["reps"], bench["one_rep_max"]) == (100, 5, 113)
        assert bench["date"] == "2024-03-11"

    def test_records_ignore_weightless_sets(self):
        workouts = prepare_logs([_log(datetime(2024, 3, 4), (BENCH, [(20, 0)]))])
        assert calculate_personal_records(workouts) == []

    def test_summary(self):
        """Test totals and weekly average across the span."""
        workouts = prepare_logs([
            _log(datetime(2024, 3, 18), (BENCH, [(5, 100)]), log_id=3),
            _log(datetime(2024, 3, 11), (ROW, [(10, 50)]), log_id=2),
            _log(datetime(2024, 3, 4), (BENCH, [(5, 100), (5, 100)]), log_id=1),
        ])
        summary = calculate_summary(workouts)

        assert summary["total_workouts"] == 3
        assert summary["total_sets"] == 4
        assert summary["total_volume"] == 2000
        assert summary["unique_exercises"] == 2
        assert summary["average_workouts_per_week"] == 1.5

    def test_summary_single_workout(self):
        workouts = prepare_logs([_log(datetime(2024, 3, 4), (BENCH, [(5, 100)]))])
        assert calculate_summary(workouts)["average_workouts_per_week"] == 0

    def test_empty(self):
        """Test every view handles no workouts."""
        result = calculate_analytics([])
        assert result["weight_progress"] == {}
        assert result["volume_trends"] == []
        assert result["muscle_group_distribution"] == []
        assert result["personal_records"] == []
        assert result["summary"]["total_workouts"] == 0


class TestAnalyticsService:
    """Tests for AnalyticsService against a database."""

    async def test_date_window_and_filter(self, db_path, make_exercise):
        bench = await make_exercise("Bench Press")
        row = await make_exercise("Barbell Row", muscle_group="Back")
        service = WorkoutService(db_path)
        await service.save_workout(
            "user-1",
            1,
            [
                ExerciseInput(exercise_id=bench.id, order=1, sets=[SetInput(1, 5, 100)]),
                ExerciseInput(exercise_id=row.id, order=2, sets=[SetInput(1, 8, 60)]),
            ],
            performed_at=datetime(2024, 3, 4, 18),
        )
        await service.save_workout(
            "user-1",
            1,
            [ExerciseInput(exercise_id=bench.id, order=1, sets=[SetInput(1, 5, 90)])],
            performed_at=datetime(2024, 1, 8, 18),
        )

        result = await AnalyticsService(db_path).get_analytics(
            "user-1",
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 31),
            muscle_group="Chest",
        )

        assert result["summary"]["total_workouts"] == 1
        assert list(result["weight_progress"]) == ["Bench Press"]

    async def test_other_users_excluded(self, db_path, make_exercise):
        bench = await make_exercise("Bench Press")
        await WorkoutService(db_path).save_workout(
            "user-2",
            1,
            [ExerciseInput(exercise_id=bench.id, order=1, sets=[SetInput(1, 5, 100)])],
        )
        result = await AnalyticsService(db_path).get_analytics("user-1")
        assert result["summary"]["total_workouts"] == 0
