# -*- coding: utf-8 -*-
"""用户视频观看进度记录模型 / Per (user, video) watch progress"""
from datetime import datetime, timezone

from lms.models.database import db


class VideoProgress(db.Model):
    __tablename__ = 'video_progress'

    # (user_id, video_id) 即主键，无需生成ID
    user_id = db.Column(db.String(128), primary_key=True, comment='用户ID')
    video_id = db.Column(db.String(64), primary_key=True, comment='视频ID')
    current_time = db.Column('current_time_seconds', db.Float, default=0.0, nullable=False, comment='当前观看位置（秒）')
    total_duration = db.Column(db.Float, nullable=False, comment='视频总时长（秒）')
    percentage_watched = db.Column(db.Integer, default=0, nullable=False, comment='观看百分比，由 current_time/total_duration 推导')
    completed = db.Column(db.Boolean, default=False, nullable=False, comment='是否看完')
    total_watch_time = db.Column(db.Float, default=0.0, nullable=False, comment='累计观看时长（只增不减）')
    last_watched_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), comment='最后观看时间')

    __table_args__ = (
        db.Index('idx_user_completed', 'user_id', 'completed'),
    )

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'video_id': self.video_id,
            'current_time': self.current_time,
            'total_duration': self.total_duration,
            'percentage_watched': self.percentage_watched,
            'completed': bool(self.completed),
            'total_watch_time': self.total_watch_time,
            'last_watched_at': self.last_watched_at.strftime("%Y-%m-%d %H:%M:%S") if self.last_watched_at else "",
        }
