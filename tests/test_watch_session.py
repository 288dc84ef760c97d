# -*- coding: utf-8 -*-
import pytest

from lms.managers.ProgressManager import ProgressManager
from lms.services.ProgressStore import ProgressStore
from lms.services.WatchSession import SessionRegistry, WatchSession, format_video_time


class ExplodingManager(ProgressManager):

    def record_tick(self, *args, **kwargs):
        raise RuntimeError("boom")


@pytest.fixture
def registry(app):
    return app.extensions['watch_sessions']


def test_start_registers_interval_job(app, add_videos, scheduler, clock):
    add_videos("JEE", 1)
    session = WatchSession("JEE-1", "u1", 600, scheduler=scheduler, clock=clock).start()

    func, options = scheduler.jobs["watch-u1-JEE-1"]
    assert options["trigger"] == "interval"
    assert options["seconds"] == 15
    assert options["max_instances"] == 1
    assert session.running is True
    session.stop()


def test_tick_reports_elapsed_wall_clock_time(app, add_videos, scheduler, clock):
    add_videos("JEE", 1)
    session = WatchSession("JEE-1", "u1", 600, initial_offset=120, scheduler=scheduler, clock=clock).start()

    clock.advance(15)
    session.tick()
    clock.advance(20)
    success, data, _ = session.tick()

    assert success is True
    assert data["current_time"] == 155
    assert session.percentage == 25
    assert ProgressStore.instance().get_progress("u1", "JEE-1").total_watch_time == 35
    session.stop()


def test_stop_is_idempotent_and_cancels_ticks(app, add_videos, scheduler, clock):
    add_videos("JEE", 1)
    session = WatchSession("JEE-1", "u1", 600, scheduler=scheduler, clock=clock).start()

    session.stop()
    session.stop()
    clock.advance(15)

    assert scheduler.jobs == {}
    assert session.tick() is None
    assert ProgressStore.instance().get_progress("u1", "JEE-1") is None


def test_context_manager_stops_on_error(app, add_videos, scheduler, clock):
    add_videos("JEE", 1)
    session = WatchSession("JEE-1", "u1", 600, scheduler=scheduler, clock=clock)

    with pytest.raises(ValueError):
        with session:
            assert "watch-u1-JEE-1" in scheduler.jobs
            raise ValueError("page closed")

    assert session.running is False
    assert scheduler.jobs == {}


def test_completion_stops_the_session(app, add_videos, scheduler, clock):
    add_videos("JEE", 1, duration=30)
    session = WatchSession("JEE-1", "u1", 30, scheduler=scheduler, clock=clock).start()

    clock.advance(15)
    session.tick()
    clock.advance(20)
    session.tick()

    assert session.completed is True
    assert session.running is False
    assert scheduler.jobs == {}
    assert session.status()["eligibility"]["eligible"] is True
    assert ProgressStore.instance().get_progress("u1", "JEE-1").current_time == 30


def test_tick_is_skipped_while_previous_write_in_flight(app, add_videos, scheduler, clock):
    add_videos("JEE", 1)
    session = WatchSession("JEE-1", "u1", 600, scheduler=scheduler, clock=clock).start()
    session._in_flight = True

    clock.advance(15)
    assert session.tick() is None

    session._in_flight = False
    clock.advance(15)
    success, data, _ = session.tick()
    # the skipped window is still counted by the next tick
    assert data["current_time"] == 30
    session.stop()


def test_tick_errors_do_not_stop_the_timer(app, scheduler, clock):
    session = WatchSession("JEE-1", "u1", 600, scheduler=scheduler, clock=clock,
                           progress_manager=ExplodingManager()).start()

    clock.advance(15)
    assert session.tick() is None
    assert session.running is True
    assert "watch-u1-JEE-1" in scheduler.jobs
    session.stop()


def test_scheduled_job_runs_inside_app_context(app, add_videos, scheduler, clock):
    add_videos("JEE", 1)
    session = WatchSession("JEE-1", "u1", 600, scheduler=scheduler, clock=clock, app=app).start()
    func, _ = scheduler.jobs["watch-u1-JEE-1"]

    clock.advance(15)
    func()

    assert ProgressStore.instance().get_progress("u1", "JEE-1").current_time == 15
    session.stop()


def test_registry_keeps_one_session_per_user(app, add_videos, registry, scheduler):
    add_videos("JEE", 2)
    first = registry.start_session("u1", "JEE-1", 600)
    second = registry.start_session("u1", "JEE-2", 600)

    assert first.running is False
    assert second.running is True
    assert list(scheduler.jobs) == ["watch-u1-JEE-2"]
    assert registry.get_session("u1") is second

    assert registry.stop_session("u1") is True
    assert registry.stop_session("u1") is False
    assert scheduler.jobs == {}


def test_registry_stop_all(app, add_videos, scheduler, clock):
    add_videos("JEE", 1)
    registry = SessionRegistry(scheduler=scheduler, clock=clock)
    registry.start_session("u1", "JEE-1", 600)
    registry.start_session("u2", "JEE-1", 600)

    registry.stop_all()

    assert scheduler.jobs == {}
    assert registry.get_session("u1") is None


@pytest.mark.parametrize("seconds, expected", [
    (0, "0:00"),
    (65, "1:05"),
    (330.7, "5:30"),
    (3723, "1:02:03"),
])
def test_format_video_time(seconds, expected):
    assert format_video_time(seconds) == expected
