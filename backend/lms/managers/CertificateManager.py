# -*- coding: utf-8 -*-
"""Certificate Manager / 结业证书管理器"""
import logging
import time

from lms.managers.Config import Config
from lms.managers.EligibilityManager import EligibilityManager
from lms.models.typings import InvalidInput, NotEligible, PersistenceFailure
from lms.services.ProgressStore import ProgressStore

logger = logging.getLogger(__name__)


class CertificateManager:
    _instance = None

    def __init__(self, store=None, eligibility_manager=None, clock=time.time):
        self.store = store or ProgressStore.instance()
        self.eligibility_manager = eligibility_manager or EligibilityManager(self.store)
        self.clock = clock

    @classmethod
    def instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def build_certificate_id(self, program_type):
        """ORG-PROGRAM-毫秒时间戳"""
        org = Config.get_value("certificate", "org_prefix") or "LAKSHYA"
        return f"{org}-{program_type.upper()}-{int(self.clock() * 1000)}"

    def issue(self, user_id, user_name, program_type):
        """
        Issue a certificate on explicit user request / 用户主动领取证书
        1. 已领取过该项目证书的，直接返回已有证书
        2. 重新判定资格，不信任之前的通知结果
        3. 生成证书编号并写入
        :return: (success, certificate dict, message)
        """
        try:
            if not user_id or not program_type:
                raise InvalidInput("user_id and program_type cannot be empty")

            existing = self.store.get_certificate(user_id, program_type)
            if existing:
                return True, existing.to_dict(), "Certificate already issued"

            eligibility = self.eligibility_manager.evaluate(user_id, program_type)
            if not eligibility.eligible:
                raise NotEligible(f"Not eligible for certificate: {eligibility.reason}")

            certificate = self.store.create_certificate({
                'user_id': user_id,
                'user_name': user_name or 'Student',
                'program_type': program_type,
                'completion_percentage': eligibility.completion_percentage,
                'certificate_id': self.build_certificate_id(program_type),
            })
            return True, certificate.to_dict(), "Certificate generated successfully"
        except (InvalidInput, NotEligible) as e:
            return False, {}, e.message
        except PersistenceFailure as e:
            # 并发领取时唯一约束冲突，另一请求已写入证书
            existing = self.store.get_certificate(user_id, program_type)
            if existing:
                return True, existing.to_dict(), "Certificate already issued"
            logger.error(e.message)
            return False, {}, "Failed to generate certificate"

    def get_user_certificates(self, user_id):
        """Newest first / 按颁发时间倒序"""
        return [certificate.to_dict() for certificate in self.store.list_certificates_for_user(user_id)]
