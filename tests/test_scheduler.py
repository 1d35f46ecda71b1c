"""Tests for the FIFO what-if scheduler."""

from __future__ import annotations

import pytest

from mrtune.config import RED_SLOWSTART_KEY, Configuration
from mrtune.models import Counter, JobProfile, MapProfile, TaskKind, TaskPhase
from mrtune.scheduler import (
    CLEANUP_TASK_DURATION,
    HALF_HEARTBEAT_DELAY,
    FifoScheduler,
    SchedulerError,
    UnsupportedSchedulerError,
    create_scheduler,
    slow_start_count,
)
from tests.conftest import make_cluster, make_configuration, make_profile


class TestSlowStart:
    """Tests for the number of maps gating the reducers."""

    def test_default_fraction(self) -> None:
        assert slow_start_count(Configuration(), 8) == 1
        assert slow_start_count(Configuration(), 100) == 5

    def test_zero_fraction_waits_for_one_map(self) -> None:
        assert slow_start_count(Configuration({RED_SLOWSTART_KEY: 0.0}), 8) == 1

    def test_all_maps(self) -> None:
        assert slow_start_count(Configuration({RED_SLOWSTART_KEY: 1.0}), 8) == 8

    def test_out_of_range(self) -> None:
        with pytest.raises(SchedulerError):
            slow_start_count(Configuration({RED_SLOWSTART_KEY: 1.5}), 8)

    def test_no_maps(self) -> None:
        with pytest.raises(SchedulerError):
            slow_start_count(Configuration(), 0)


class TestCreateScheduler:
    """Tests for scheduler selection."""

    def test_basic(self, cluster) -> None:
        scheduler = create_scheduler("basic", cluster)
        assert isinstance(scheduler, FifoScheduler)
        assert scheduler.num_map_slots == 2
        assert scheduler.num_reduce_slots == 2

    def test_unsupported(self, cluster) -> None:
        with pytest.raises(UnsupportedSchedulerError, match="fair"):
            create_scheduler("fair", cluster)

    def test_unsupported_is_scheduler_error(self) -> None:
        assert issubclass(UnsupportedSchedulerError, SchedulerError)


@pytest.mark.e2e
class TestDetailedSchedule:
    """Detailed mode on 2 hosts with one map and one reduce slot each.

    Eight 10 s maps run in four waves of two; both reducers start once the
    first map finishes and shuffle until the last map is done.
    """

    def test_job_duration(self, profile, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(profile, conf)
        assert execution.duration == 62750.0

    def test_setup_and_cleanup(self, profile, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(profile, conf)
        (setup,) = execution.setup_tasks
        (cleanup,) = execution.cleanup_tasks
        assert (setup.start, setup.end) == (1500.0, 2500.0)
        # Cleanup follows the later of the two reducers
        last_reduce = max(t.end for t in execution.reduce_tasks)
        assert cleanup.start == last_reduce + HALF_HEARTBEAT_DELAY
        assert cleanup.end == cleanup.start + CLEANUP_TASK_DURATION

    def test_map_waves(self, profile, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(profile, conf)
        ends = [t.end for t in execution.map_tasks]
        assert len(ends) == 8
        assert ends[:2] == [13000.0, 15500.0]
        assert execution.last_map_end == 54500.0
        assert {t.attempt.host for t in execution.map_tasks} == {
            "rack_001_host_001",
            "rack_001_host_002",
        }

    def test_reducers_shuffle_until_last_map(self, profile, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(profile, conf)
        assert len(execution.reduce_tasks) == 2
        for task in execution.reduce_tasks:
            attempt = task.attempt
            assert attempt.start == 14500.0
            assert attempt.shuffle_end == 54750.0
            assert attempt.sort_end == 55750.0
            assert attempt.end == 60250.0

    def test_ordering_invariant(self, profile, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(profile, conf)
        for task in execution.all_tasks:
            assert task.start <= task.end
        for task in execution.reduce_tasks:
            a = task.attempt
            assert a.start <= a.shuffle_end <= a.sort_end <= a.end
        assert execution.end_time == max(t.end for t in execution.all_tasks)

    def test_task_ids(self, profile, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(profile, conf)
        first = execution.map_tasks[0]
        assert first.task_id == "virtual_task_test_0001_m_000000"
        assert first.attempt.attempt_id == "virtual_attempt_test_0001_m_000000_0"
        assert first.kind == TaskKind.MAP
        assert execution.reduce_tasks[1].task_id == "virtual_task_test_0001_r_000001"
        assert execution.cleanup_tasks[0].task_id == "virtual_task_test_0001_c_000000"

    def test_submission_time_shifts_everything(self, profile, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(profile, conf, submission_time=10000.0)
        assert execution.submission_time == 10000.0
        assert execution.duration == 62750.0
        assert execution.setup_tasks[0].start == 11500.0

    def test_largest_splits_first(self, conf) -> None:
        profile = JobProfile(
            job_id="job_order",
            map_profiles=[
                MapProfile(
                    task_id="small",
                    num_tasks=1,
                    counters={Counter.HDFS_BYTES_READ: 10},
                    timings={TaskPhase.MAP: 1000.0},
                ),
                MapProfile(
                    task_id="big",
                    input_index=1,
                    num_tasks=1,
                    counters={Counter.HDFS_BYTES_READ: 100},
                    timings={TaskPhase.MAP: 5000.0},
                ),
            ],
        )
        cluster = make_cluster(hosts_per_rack=1, reduce_slots=0)
        execution = FifoScheduler(cluster).schedule(profile, conf)
        # Big map first: 5000 ms plus the trailing half heartbeat
        assert execution.map_tasks[0].attempt.duration == 6500.0
        assert execution.map_tasks[1].attempt.duration == 2500.0


class TestMapOnly:
    """Tests for jobs without (or ignoring) reducers."""

    def test_map_only_profile(self, cluster, conf) -> None:
        execution = FifoScheduler(cluster).schedule(make_profile(num_reduces=0), conf)
        assert execution.reduce_tasks == ()
        assert execution.duration == 57000.0

    def test_ignore_reducers(self, profile, cluster, conf) -> None:
        scheduler = FifoScheduler(cluster)
        scheduler.ignore_reducers = True
        execution = scheduler.schedule(profile, conf)
        assert execution.reduce_tasks == ()
        assert execution.duration == 57000.0

    def test_ignore_reducers_needs_no_reduce_slots(self, profile, conf) -> None:
        scheduler = FifoScheduler(make_cluster(reduce_slots=0))
        scheduler.ignore_reducers = True
        assert scheduler.schedule_duration(profile, conf) > 0

    def test_fast_mode_map_only(self, cluster, conf) -> None:
        # Setup 4000 ms, four 13000 ms waves on one slot, cleanup 4000 ms
        duration = FifoScheduler(cluster).schedule_duration(make_profile(num_reduces=0), conf)
        assert duration == 60000.0


class TestFastSchedule:
    """Fast mode on the same job and cluster."""

    def test_job_duration(self, profile, cluster, conf) -> None:
        assert FifoScheduler(cluster).schedule_duration(profile, conf) == 67000.0

    def test_slow_start_after_all_maps(self, profile, cluster) -> None:
        conf = make_configuration({RED_SLOWSTART_KEY: 1.0})
        # Reducers wait for the last map at 56000 ms: 56000 + 9000 + 4000
        assert FifoScheduler(cluster).schedule_duration(profile, conf) == 69000.0

    def test_commits_slot_occupancy(self, profile, cluster, conf) -> None:
        scheduler = FifoScheduler(cluster)
        scheduler.schedule_duration(profile, conf)
        assert max(s.ready_at for s in scheduler.map_slots) == 56000.0
        assert max(s.ready_at for s in scheduler.reduce_slots) == 67000.0


class TestSlotState:
    """Tests for checkpoint and reset."""

    def test_second_job_waits_for_the_first(self, profile, cluster, conf) -> None:
        scheduler = FifoScheduler(cluster)
        first = scheduler.schedule_duration(profile, conf)
        second = scheduler.schedule_duration(profile, conf)
        assert second > first

    def test_reset_without_checkpoint_idles_cluster(self, profile, cluster, conf) -> None:
        scheduler = FifoScheduler(cluster)
        scheduler.schedule(profile, conf)
        scheduler.reset()
        assert all(s.ready_at == 0.0 for s in scheduler.map_slots)
        assert scheduler.schedule(profile, conf).duration == 62750.0

    def test_reset_restores_checkpoint(self, profile, cluster, conf) -> None:
        scheduler = FifoScheduler(cluster)
        scheduler.schedule_duration(profile, conf)
        scheduler.checkpoint()
        busy = scheduler.schedule_duration(profile, conf)
        scheduler.reset()
        assert scheduler.schedule_duration(profile, conf) == busy

    def test_detailed_mode_leaves_slots_busy(self, profile, cluster, conf) -> None:
        scheduler = FifoScheduler(cluster)
        execution = scheduler.schedule(profile, conf)
        assert max(s.ready_at for s in scheduler.reduce_slots) == execution.end_time


class TestSlotErrors:
    """Tests for clusters that cannot run the job."""

    def test_no_map_slots(self, profile, conf) -> None:
        scheduler = FifoScheduler(make_cluster(map_slots=0))
        with pytest.raises(SchedulerError, match="no map slots"):
            scheduler.schedule(profile, conf)
        with pytest.raises(SchedulerError, match="no map slots"):
            scheduler.schedule_duration(profile, conf)

    def test_no_reduce_slots(self, profile, conf) -> None:
        scheduler = FifoScheduler(make_cluster(reduce_slots=0))
        with pytest.raises(SchedulerError, match="no reduce slots"):
            scheduler.schedule(profile, conf)

    def test_reduce_job_without_maps(self, cluster, conf) -> None:
        with pytest.raises(SchedulerError):
            FifoScheduler(cluster).schedule(make_profile(num_maps=0), conf)


@pytest.mark.e2e
class TestTwoSlotsPerHost:
    """1 rack, 2 hosts, 2 map and 2 reduce slots each; 8 maps and 2 reducers."""

    def test_scenario(self, profile, conf) -> None:
        cluster = make_cluster(map_slots=2, reduce_slots=2)
        execution = FifoScheduler(cluster).schedule(profile, conf)

        # Two waves of four maps; the setup task delays one slot of the first
        starts = [t.start for t in execution.map_tasks]
        assert starts == [1500.0, 1500.0, 1500.0, 4000.0, 14500.0, 14500.0, 14500.0, 17000.0]
        assert execution.last_map_end == 28500.0

        # Reducers start once the first map finishes at 13000 ms
        assert len(execution.reduce_tasks) == 2
        for task in execution.reduce_tasks:
            assert task.start == 14500.0
            assert task.attempt.shuffle_end == 28750.0
            assert task.end == 34250.0

        (cleanup,) = execution.cleanup_tasks
        assert cleanup.start == 35750.0
        assert execution.duration == 36750.0
