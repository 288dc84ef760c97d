# -*- coding: utf-8 -*-
"""结业证书模型 - 创建后不可修改"""
from lms.models.database import db


class Certificate(db.Model):
    __tablename__ = 'certificates'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True, comment='主键ID')
    user_id = db.Column(db.String(128), nullable=False, index=True, comment='用户ID')
    user_name = db.Column(db.String(128), nullable=False, comment='领取时的用户名快照')
    program_type = db.Column(db.String(64), nullable=False, comment='课程/项目')
    issue_date = db.Column(db.DateTime, server_default=db.func.now(), nullable=False, comment='颁发时间（服务器时间）')
    completion_percentage = db.Column(db.Float, nullable=False, comment='领取时的完成度快照')
    certificate_id = db.Column(db.String(128), unique=True, nullable=False, comment='证书编号 ORG-PROGRAM-毫秒时间戳')
    status = db.Column(db.String(20), default='issued', nullable=False, comment='证书状态: issued')

    __table_args__ = (
        db.UniqueConstraint('user_id', 'program_type', name='uk_user_program_certificate'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'program_type': self.program_type,
            'issue_date': self.issue_date.strftime("%Y-%m-%d %H:%M:%S") if self.issue_date else "",
            'completion_percentage': self.completion_percentage,
            'certificate_id': self.certificate_id,
            'status': self.status,
        }
