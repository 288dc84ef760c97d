# -*- coding: utf-8 -*-
"""Certificate eligibility / 证书领取资格判定"""
import logging
import math
from dataclasses import dataclass, asdict

from sqlalchemy.exc import SQLAlchemyError

from lms.managers.Config import Config
from lms.services.ProgressStore import ProgressStore

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 80.0


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    completion_percentage: float
    completed_count: int
    total_count: int
    reason: str

    def to_dict(self):
        return asdict(self)


class EligibilityManager:
    _instance = None

    def __init__(self, store=None):
        self.store = store or ProgressStore.instance()

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @staticmethod
    def default_threshold():
        threshold = Config.get_value("certificate", "eligibility_threshold")
        return float(threshold) if threshold is not None else DEFAULT_THRESHOLD

    def evaluate(self, user_id, program_type, threshold=None):
        """
        Check whether the user finished enough videos of the program / 检查是否满足证书条件

        Pure read of persisted state, calling it twice without changes gives
        the same result.
        :param threshold: 完成度门槛（百分比），默认取配置 certificate.eligibility_threshold
        :return: EligibilityResult
        """
        if threshold is None:
            threshold = self.default_threshold()

        try:
            program_video_ids = set(self.store.list_content_ids_by_program(program_type))
            total_count = len(program_video_ids)

            # 没有视频时直接返回，避免除以 0
            if total_count == 0:
                return EligibilityResult(False, 0.0, 0, 0, "No videos available")

            completed_count = sum(
                1 for record in self.store.list_completed_progress_for_user(user_id)
                if record.video_id in program_video_ids
            )
        except SQLAlchemyError as e:
            logger.error("Failed to check eligibility of %s for %s: %s", user_id, program_type, e)
            return EligibilityResult(False, 0.0, 0, 0, f"Failed to check eligibility: {str(e)}")

        completion_percentage = round(completed_count / total_count * 100, 2)
        eligible = completion_percentage >= threshold

        if eligible:
            reason = "Meets criteria"
        else:
            needed = math.ceil(total_count * threshold / 100) - completed_count
            reason = f"Need {max(needed, 0)} more videos"

        return EligibilityResult(eligible, completion_percentage, completed_count, total_count, reason)
