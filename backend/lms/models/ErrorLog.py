# -*- coding: utf-8 -*-
"""
@author yumu
@version 2.0.0
"""
from datetime import datetime, timezone

from lms.models.database import db


class ErrorLog(db.Model):
    """
    错误日志模型，CustomException 触发时自动写入
    """
    __tablename__ = 'error_log'
    error_log_id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    error_type = db.Column(db.String(64), nullable=True)
    error_event = db.Column(db.Text, nullable=True)
    error_time = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
