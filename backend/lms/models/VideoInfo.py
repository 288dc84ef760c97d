# -*- coding: utf-8 -*-
"""视频内容模型 / Video content item"""
from datetime import datetime, timezone

from lms.models.database import db


class VideoInfo(db.Model):
    __tablename__ = 'video_info'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    video_id = db.Column(db.String(64), unique=True, nullable=False, comment='视频ID')
    title = db.Column(db.String(255), nullable=False, comment='视频标题')
    description = db.Column(db.Text, default='', comment='视频描述')
    video_url = db.Column(db.String(512), nullable=False, comment='播放地址')
    video_duration = db.Column(db.Integer, nullable=False, comment='视频时长（秒）')
    program_type = db.Column(db.String(64), nullable=False, index=True, comment='所属课程/项目')
    views = db.Column(db.Integer, default=0, nullable=False, comment='播放次数')
    is_active = db.Column(db.Boolean, default=True, comment='是否启用')
    create_time = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        comment='创建时间（UTC时区）'
    )

    def to_dict(self):
        return {
            'video_id': self.video_id,
            'title': self.title,
            'description': self.description or '',
            'video_url': self.video_url,
            'video_duration': self.video_duration,
            'program_type': self.program_type,
            'views': self.views or 0,
        }
