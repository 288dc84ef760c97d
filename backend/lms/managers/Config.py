# -*- coding: utf-8 -*-
"""
@author yumu
@version 2.0.0
"""
import json
import os

from lms.models.typings import ConfigOperationException

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
CONFIG_FILE = os.environ.get("LMS_CONFIG_FILE", os.path.join(ROOT_DIR, "config.json"))

SCHEDULER_API_ENABLED = False
SCHEDULER_TIMEZONE = "UTC"

# 配置文件缺省值，config.json 中没有的键回落到这里
DEFAULTS = {
    "database_uri": "sqlite:///lms.db",
    "jwt_secret_key": "change-me",
    "progress": {
        "sample_interval_seconds": 15,
        "resume_min_seconds": 30,
    },
    "certificate": {
        "eligibility_threshold": 80.0,
        "org_prefix": "LAKSHYA",
    },
}


class Config:
    _instance = None

    @classmethod
    def _get_instance(cls, config_file=None):
        if cls._instance is None:
            cls._instance = cls.__new__(cls)
            cls._instance.config_file = config_file or CONFIG_FILE
            cls._instance.config = {}
            cls._instance.config = cls.load_config()
        return cls._instance

    @classmethod
    def use_file(cls, config_file):
        """
        切换到指定配置文件并重新加载
        :param config_file: 配置文件路径
        :return: None
        """
        cls._instance = None
        cls._get_instance(config_file)

    @classmethod
    def load_config(cls):
        """
        加载配置文件
        :return: 配置文件，json形式
        """
        try:
            instance = cls._get_instance()
            if os.path.exists(instance.config_file):
                with open(instance.config_file, 'r', encoding='utf-8') as file:
                    return json.load(file)
            else:
                return {}
        except Exception as e:
            ConfigOperationException("读取配置文件出错" + ", ".join(str(arg) for arg in e.args))
            return {}

    @classmethod
    def get_value(cls, *args):
        """
        从配置文件中获取配置，针对多级key做了优化，文件中缺失时回落到 DEFAULTS
        :param args: 指定的key，可以为多级
        :return: 获取到的值
        """
        instance = cls._get_instance()
        for source in (instance.config, DEFAULTS):
            try:
                value = source
                for key in args:
                    value = value[key]
                return value
            except (KeyError, TypeError):
                continue
        ConfigOperationException("从配置文件中获取配置出错: " + ".".join(str(arg) for arg in args))
        return None
