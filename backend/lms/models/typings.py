# -*- coding: utf-8 -*-
"""
@author yumu
@version 2.0.0
"""
import logging

from flask import has_app_context

from lms.models.ErrorLog import ErrorLog
from lms.models.database import db

logger = logging.getLogger(__name__)


class CustomException(Exception):
    """
    自定义的异常类的基类
    """

    def __init__(self, message):
        super().__init__(message)
        self.message = message
        self.record_error()

    def record_error(self):
        """
        触发异常自动记录到数据库中
        :return:
        """
        if not has_app_context():
            # 没有应用上下文时只写日志
            logger.warning("[%s] %s", type(self).__name__, self.message)
            return
        try:
            error = ErrorLog(error_type=type(self).__name__, error_event=self.message)
            db.session.add(error)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.warning("[%s] %s (无法记录到数据库: %s)", type(self).__name__, self.message, e)


class ConfigOperationException(CustomException):
    """
    配置文件操作异常类
    """
    pass


class DatabaseOperationException(CustomException):
    """
    数据库操作异常类
    """
    pass


class PersistenceFailure(DatabaseOperationException):
    """
    进度写入失败，下一次采样会带着更新后的值重试
    """
    pass


class DecoratorException(CustomException):
    """
    装饰器处理异常类
    """
    pass


class InvalidInput(CustomException):
    """
    参数非法（时长<=0、缺少ID等），在访问数据库之前抛出
    """
    pass


class NotEligible(CustomException):
    """
    未达到证书领取条件
    """
    pass
