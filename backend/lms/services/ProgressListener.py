# -*- coding: utf-8 -*-
"""进度回调接口 / Callbacks fired by ProgressManager towards the UI layer"""
import logging

logger = logging.getLogger(__name__)


class ProgressListener:
    """
    默认实现只写日志。WatchSession 继承本类，把最近一次的状态缓存下来，
    供 /video/watch-status 轮询
    """

    def on_progress_update(self, video_id, percentage):
        logger.debug("Progress of %s: %s%%", video_id, percentage)

    def on_completion(self, video_id):
        logger.info("Video %s completed", video_id)

    def on_eligible(self, program_type, eligibility):
        logger.info("Eligible for %s certificate (%.2f%%)", program_type, eligibility.completion_percentage)
