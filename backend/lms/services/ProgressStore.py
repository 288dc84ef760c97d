# -*- coding: utf-8 -*-
"""
进度/证书存储层 / Persistence for progress records and certificates

All database access of the progress subsystem goes through this class, so the
managers never touch db.session directly. Write failures are rolled back and
surfaced as PersistenceFailure.
"""
import logging
import math
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from lms.models.database import db
from lms.models.Certificate import Certificate
from lms.models.VideoInfo import VideoInfo
from lms.models.VideoProgress import VideoProgress
from lms.models.typings import PersistenceFailure

logger = logging.getLogger(__name__)

PROGRESS_FIELDS = ('current_time', 'total_duration', 'completed')


def compute_percentage(current_time, total_duration):
    """min(100, floor(current_time / total_duration * 100))"""
    if not total_duration or total_duration <= 0:
        return 0
    return min(100, int(math.floor(current_time / total_duration * 100)))


class ProgressStore:
    _instance = None

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get_progress(self, user_id, video_id):
        """Return the record or None when the user never watched this video"""
        return db.session.get(VideoProgress, (user_id, video_id))

    def upsert_progress(self, user_id, video_id, fields, watch_time_increment=0):
        """
        合并写入进度：传入的字段覆盖，未传入的字段保留
        :param fields: current_time / total_duration / completed 的子集
        :param watch_time_increment: 累加到 total_watch_time 的秒数
        :return: 写入后的 VideoProgress
        """
        try:
            record = db.session.get(VideoProgress, (user_id, video_id))
            if record is None:
                record = VideoProgress(
                    user_id=user_id,
                    video_id=video_id,
                    current_time=0.0,
                    total_duration=fields.get('total_duration'),
                    completed=False,
                    total_watch_time=0.0,
                )
                db.session.add(record)

            for key in PROGRESS_FIELDS:
                if key in fields:
                    setattr(record, key, fields[key])

            # 百分比永远由 current_time/total_duration 推导
            record.percentage_watched = compute_percentage(record.current_time, record.total_duration)
            if watch_time_increment > 0:
                record.total_watch_time = (record.total_watch_time or 0.0) + watch_time_increment
            record.last_watched_at = datetime.now(timezone.utc)

            db.session.commit()
            return record
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceFailure(f"Failed to save progress for {user_id}/{video_id}: {str(e)}")

    def list_progress_for_user(self, user_id):
        return VideoProgress.query.filter_by(user_id=user_id).order_by(
            VideoProgress.last_watched_at.desc()
        ).all()

    def list_completed_progress_for_user(self, user_id):
        return VideoProgress.query.filter_by(user_id=user_id, completed=True).all()

    def list_content_ids_by_program(self, program_type):
        rows = db.session.query(VideoInfo.video_id).filter(
            VideoInfo.program_type == program_type,
            VideoInfo.is_active == True
        ).all()
        return [row.video_id for row in rows]

    def get_certificate(self, user_id, program_type):
        return Certificate.query.filter_by(user_id=user_id, program_type=program_type).first()

    def list_certificates_for_user(self, user_id):
        return Certificate.query.filter_by(user_id=user_id).order_by(
            Certificate.issue_date.desc(), Certificate.id.desc()
        ).all()

    def create_certificate(self, fields):
        """Insert a certificate record, returns the persisted row"""
        try:
            certificate = Certificate(status='issued', **fields)
            db.session.add(certificate)
            db.session.commit()
            logger.info("Certificate %s issued to %s", certificate.certificate_id, certificate.user_id)
            return certificate
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceFailure(f"Failed to create certificate: {str(e)}")
