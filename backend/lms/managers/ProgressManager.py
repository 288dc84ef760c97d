# -*- coding: utf-8 -*-
"""
Progress Manager / 观看进度累加器

Combines the elapsed time reported by a WatchSession with the carried-over
position of the (user, video) pair, decides completion and persists the
result through ProgressStore. Writes are best effort: a failed write is logged,
the in-memory position is kept, and the next tick persists the larger value.
"""
import logging

from lms.managers.EligibilityManager import EligibilityManager
from lms.managers.VideoManager import VideoManager
from lms.models.typings import InvalidInput, PersistenceFailure
from lms.services.ProgressListener import ProgressListener
from lms.services.ProgressStore import ProgressStore, compute_percentage

logger = logging.getLogger(__name__)


class ProgressManager:
    _instance = None

    def __init__(self, store=None, eligibility_manager=None, video_manager=None):
        self.store = store or ProgressStore.instance()
        self.eligibility_manager = eligibility_manager or EligibilityManager(self.store)
        self.video_manager = video_manager or VideoManager.instance()
        # (user_id, video_id) -> {"current_time": float, "completed": bool}
        self._carry = {}

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def seed(self, user_id, video_id, offset=0.0, completed=False):
        """设置会话起点（续播位置或 0）"""
        self._carry[(user_id, video_id)] = {"current_time": float(offset or 0.0), "completed": bool(completed)}

    def forget(self, user_id, video_id):
        self._carry.pop((user_id, video_id), None)

    def _load_carry(self, user_id, video_id):
        key = (user_id, video_id)
        if key not in self._carry:
            record = self.store.get_progress(user_id, video_id)
            if record is None:
                self.seed(user_id, video_id)
            else:
                self.seed(user_id, video_id, record.current_time, record.completed)
        return self._carry[key]

    @staticmethod
    def _validate(video_id, user_id, elapsed_seconds, total_duration_seconds):
        if not video_id or not user_id:
            raise InvalidInput("video_id and user_id cannot be empty")
        if elapsed_seconds is None or elapsed_seconds < 0:
            raise InvalidInput(f"elapsed_seconds must be >= 0, got {elapsed_seconds}")
        if total_duration_seconds is None or total_duration_seconds <= 0:
            raise InvalidInput(f"total_duration_seconds must be > 0, got {total_duration_seconds}")

    def record_tick(self, video_id, user_id, elapsed_seconds, total_duration_seconds, listener=None):
        """
        记录一次采样
        :param elapsed_seconds: 距上次采样经过的秒数
        :param total_duration_seconds: 视频总时长（秒）
        :param listener: ProgressListener，接收进度/完成/资格回调
        :return: (success, data, message)
        """
        listener = listener or ProgressListener()
        try:
            self._validate(video_id, user_id, elapsed_seconds, total_duration_seconds)
        except InvalidInput as e:
            return False, {}, e.message

        state = self._load_carry(user_id, video_id)
        if state["completed"]:
            return False, self._tick_data(video_id, state, total_duration_seconds), "Video already completed"

        new_current_time = state["current_time"] + elapsed_seconds

        if new_current_time >= total_duration_seconds:
            return self._complete(video_id, user_id, total_duration_seconds, state, listener)

        # 写入失败也不回滚内存中的位置，下一次采样会写入更大的值
        state["current_time"] = new_current_time
        try:
            self.store.upsert_progress(user_id, video_id, {
                'current_time': new_current_time,
                'total_duration': total_duration_seconds,
                'completed': False,
            }, watch_time_increment=elapsed_seconds)
            success, message = True, "Progress saved"
        except PersistenceFailure as e:
            logger.warning(e.message)
            success, message = False, "Progress not saved, will retry on next tick"

        data = self._tick_data(video_id, state, total_duration_seconds)
        listener.on_progress_update(video_id, data["percentage"])
        return success, data, message

    def _complete(self, video_id, user_id, total_duration_seconds, state, listener):
        state["current_time"] = float(total_duration_seconds)
        try:
            self.store.upsert_progress(user_id, video_id, {
                'current_time': total_duration_seconds,
                'total_duration': total_duration_seconds,
                'completed': True,
            })
        except PersistenceFailure as e:
            # 完成状态未写入，保持未完成，下一次采样再次进入完成分支
            logger.warning(e.message)
            listener.on_progress_update(video_id, 100)
            return False, self._tick_data(video_id, state, total_duration_seconds), "Completion not saved, will retry on next tick"

        state["completed"] = True
        listener.on_progress_update(video_id, 100)
        listener.on_completion(video_id)

        data = self._tick_data(video_id, state, total_duration_seconds)
        eligibility = self._check_program_eligibility(user_id, video_id, listener)
        data["eligibility"] = eligibility.to_dict() if eligibility else None
        return True, data, "Video completed"

    def _check_program_eligibility(self, user_id, video_id, listener):
        success, video, msg = self.video_manager.get_video_info(video_id)
        if not success:
            logger.warning("Skip eligibility check for %s: %s", video_id, msg)
            return None
        program_type = video["program_type"]
        eligibility = self.eligibility_manager.evaluate(user_id, program_type)
        if eligibility.eligible:
            listener.on_eligible(program_type, eligibility)
        return eligibility

    @staticmethod
    def _tick_data(video_id, state, total_duration_seconds):
        return {
            "video_id": video_id,
            "current_time": state["current_time"],
            "percentage": compute_percentage(state["current_time"], total_duration_seconds),
            "completed": state["completed"],
        }

    def get_progress(self, user_id, video_id):
        """单个视频进度，没有记录时返回 None"""
        record = self.store.get_progress(user_id, video_id)
        return record.to_dict() if record else None

    def get_user_progress(self, user_id):
        return [record.to_dict() for record in self.store.list_progress_for_user(user_id)]
