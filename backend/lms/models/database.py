# -*- coding: utf-8 -*-
"""
@author yumu
@version 2.0.0
"""
from flask_sqlalchemy import SQLAlchemy

"""
Flask-SQLAlchemy 全局唯一 db 实例。所有模型与管理器均从此文件导入 db，
在 main.py 的 create_app 中调用 db.init_app(app) 完成初始化
"""
db = SQLAlchemy()
