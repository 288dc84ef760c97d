# -*- coding: utf-8 -*-
"""Video Manager / 视频内容管理器"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from lms.models.database import db
from lms.models.VideoInfo import VideoInfo

logger = logging.getLogger(__name__)


class VideoManager:
    _instance = None

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def add_video(self, video_id, title, video_url, video_duration, program_type, description=''):
        """Add a video to a program / 新增视频"""
        if not all([video_id, title, video_url, program_type]):
            return False, {}, "video_id, title, video_url, program_type cannot be empty"
        try:
            video_duration = int(video_duration)
        except (TypeError, ValueError):
            return False, {}, "video_duration must be an integer number of seconds"
        if video_duration <= 0:
            return False, {}, "video_duration must be greater than 0"

        try:
            if VideoInfo.query.filter_by(video_id=video_id).first():
                return False, {}, "Video already exists"  # 视频已存在
            video = VideoInfo(
                video_id=video_id,
                title=title,
                description=description or '',
                video_url=video_url,
                video_duration=video_duration,
                program_type=program_type,
                views=0,
                is_active=True,
            )
            db.session.add(video)
            db.session.commit()
            logger.info("Video %s added to %s (%ss)", video_id, program_type, video_duration)
            return True, video.to_dict(), "Video added successfully"
        except SQLAlchemyError as e:
            db.session.rollback()
            return False, {}, f"Failed to add video: {str(e)}"

    def get_videos(self, program_type=None):
        """List active videos, optionally of one program / 获取视频列表"""
        query = VideoInfo.query.filter_by(is_active=True)
        if program_type:
            query = query.filter_by(program_type=program_type)
        return [video.to_dict() for video in query.order_by(VideoInfo.create_time.desc(), VideoInfo.id.desc()).all()]

    def get_video_info(self, video_id):
        """Get video basic info / 获取视频基础信息"""
        try:
            video = VideoInfo.query.filter_by(video_id=video_id, is_active=True).first()
            if not video:
                return False, {}, "Video not found"  # 视频不存在
            return True, video.to_dict(), "Retrieved successfully"  # 获取成功
        except SQLAlchemyError as e:
            return False, {}, f"Failed to retrieve: {str(e)}"  # 获取失败

    def increment_video_view(self, video_id):
        """播放次数 +1，失败不影响播放"""
        try:
            updated = VideoInfo.query.filter_by(video_id=video_id).update(
                {VideoInfo.views: VideoInfo.views + 1}
            )
            db.session.commit()
            return updated > 0
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("Failed to increment views of %s: %s", video_id, e)
            return False

    def delete_video(self, video_id):
        """Soft delete, progress records are kept / 软删除"""
        try:
            video = VideoInfo.query.filter_by(video_id=video_id, is_active=True).first()
            if not video:
                return False, "Video not found"
            video.is_active = False
            db.session.commit()
            return True, "Video deleted successfully"
        except SQLAlchemyError as e:
            db.session.rollback()
            return False, f"Failed to delete video: {str(e)}"
