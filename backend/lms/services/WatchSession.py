# -*- coding: utf-8 -*-
"""
观看会话 / Periodic watch-time sampler

A WatchSession owns one interval job on the APScheduler instance. Every tick
measures the wall-clock time since the previous tick and hands it to
ProgressManager. Watch time is inferred from elapsed time only, the player
position is not queried; the Clock can be swapped for a player-backed source.
"""
import logging
import threading
import time

from apscheduler.jobstores.base import JobLookupError

from lms.managers.Config import Config
from lms.managers.ProgressManager import ProgressManager
from lms.services.ProgressListener import ProgressListener
from lms.services.ProgressStore import compute_percentage

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_INTERVAL = 15


class MonotonicClock:
    """Seconds from an arbitrary origin, never goes backwards"""

    def now(self):
        return time.monotonic()


def format_video_time(seconds):
    """1:02:03 / 5:07"""
    seconds = int(seconds or 0)
    hours = seconds // 3600
    mins = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def sample_interval():
    interval = Config.get_value("progress", "sample_interval_seconds")
    return int(interval) if interval else DEFAULT_SAMPLE_INTERVAL


class WatchSession(ProgressListener):

    def __init__(self, video_id, user_id, total_duration, initial_offset=0.0,
                 scheduler=None, progress_manager=None, clock=None, interval=None, app=None):
        self.video_id = video_id
        self.user_id = user_id
        self.total_duration = total_duration
        self.initial_offset = float(initial_offset or 0.0)
        self.scheduler = scheduler
        self.progress_manager = progress_manager or ProgressManager.instance()
        self.clock = clock or MonotonicClock()
        self.interval = interval or sample_interval()
        self.app = app
        self.job_id = f"watch-{user_id}-{video_id}"

        self.running = False
        self.last_tick_time = None
        self._in_flight = False
        self._lock = threading.Lock()

        # 最近一次回调的状态，供前端轮询
        self.percentage = 0
        self.completed = False
        self.eligibility = None

    def __enter__(self):
        if not self.running:
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    def start(self):
        """开始计时，同一会话重复调用会替换之前的定时任务"""
        self.stop()
        self.progress_manager.seed(self.user_id, self.video_id, self.initial_offset)
        self.percentage = compute_percentage(self.initial_offset, self.total_duration)
        self.last_tick_time = self.clock.now()
        self.running = True
        if self.scheduler is not None:
            self.scheduler.add_job(
                id=self.job_id,
                func=self._run_job,
                trigger='interval',
                seconds=self.interval,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
        logger.info("Watch session %s started at %.0fs", self.job_id, self.initial_offset)
        return self

    def stop(self):
        """停止计时，可重复调用"""
        if not self.running:
            return
        self.running = False
        if self.scheduler is not None:
            try:
                self.scheduler.remove_job(self.job_id)
            except JobLookupError:
                pass
        self.progress_manager.forget(self.user_id, self.video_id)
        logger.info("Watch session %s stopped", self.job_id)

    def _run_job(self):
        if self.app is not None:
            with self.app.app_context():
                self.tick()
        else:
            self.tick()

    def tick(self):
        """
        一次采样；上一次采样还在写库时直接跳过本次
        :return: record_tick 的结果，跳过或出错时为 None
        """
        with self._lock:
            if not self.running or self._in_flight:
                logger.debug("Skip tick of %s", self.job_id)
                return None
            self._in_flight = True
        try:
            now = self.clock.now()
            elapsed = max(0.0, now - self.last_tick_time)
            result = self.progress_manager.record_tick(
                self.video_id, self.user_id, elapsed, self.total_duration, listener=self
            )
            self.last_tick_time = now
            if self.completed or result[1].get("completed"):
                self.stop()
            return result
        except Exception:
            # 定时任务不能因为单次采样出错而中断
            logger.exception("Tick of %s failed", self.job_id)
            return None
        finally:
            self._in_flight = False

    def on_progress_update(self, video_id, percentage):
        self.percentage = percentage

    def on_completion(self, video_id):
        self.completed = True
        logger.info("User %s completed video %s", self.user_id, video_id)

    def on_eligible(self, program_type, eligibility):
        self.eligibility = eligibility
        logger.info("User %s is eligible for the %s certificate", self.user_id, program_type)

    def status(self):
        return {
            "video_id": self.video_id,
            "running": self.running,
            "percentage": self.percentage,
            "completed": self.completed,
            "eligibility": self.eligibility.to_dict() if self.eligibility else None,
        }


class SessionRegistry:
    """每个用户同时只有一个观看会话"""

    def __init__(self, scheduler=None, progress_manager=None, clock=None, interval=None, app=None):
        self.scheduler = scheduler
        self.progress_manager = progress_manager
        self.clock = clock
        self.interval = interval
        self.app = app
        self._sessions = {}
        self._lock = threading.Lock()

    def start_session(self, user_id, video_id, total_duration, initial_offset=0.0):
        session = WatchSession(
            video_id, user_id, total_duration, initial_offset,
            scheduler=self.scheduler,
            progress_manager=self.progress_manager,
            clock=self.clock,
            interval=self.interval,
            app=self.app,
        )
        with self._lock:
            previous = self._sessions.pop(user_id, None)
            if previous is not None:
                previous.stop()
            self._sessions[user_id] = session.start()
        return session

    def stop_session(self, user_id):
        with self._lock:
            session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.stop()
        return True

    def get_session(self, user_id):
        return self._sessions.get(user_id)

    def stop_all(self):
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.stop()
