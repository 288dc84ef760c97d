# -*- coding: utf-8 -*-
import atexit
import logging
import traceback
import weakref
from functools import wraps

import jwt
from flask import Blueprint, Flask, current_app, g, jsonify, request
from flask_apscheduler import APScheduler
from flask_cors import cross_origin

from lms.managers.CertificateManager import CertificateManager
from lms.managers.Config import Config, SCHEDULER_API_ENABLED, SCHEDULER_TIMEZONE
from lms.managers.EligibilityManager import EligibilityManager
from lms.managers.ProgressManager import ProgressManager
from lms.managers.VideoManager import VideoManager
from lms.models.database import db
from lms.models.typings import DecoratorException
from lms.services.WatchSession import SessionRegistry, format_video_time

logger = logging.getLogger("lms")

api = Blueprint('api', __name__)

# 进程退出时停止所有应用的观看会话
_registries = weakref.WeakSet()


@atexit.register
def _stop_watch_sessions():
    for registry in list(_registries):
        registry.stop_all()


def create_app(overrides=None, scheduler=None, clock=None):
    """
    创建 Flask 应用
    :param overrides: 覆盖 app.config 的键值，测试时用于切换数据库
    :param scheduler: 自定义调度器，默认使用 flask_apscheduler
    :param clock: 观看会话使用的时钟
    :return: app
    """
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = Config.get_value("database_uri")
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SCHEDULER_API_ENABLED'] = SCHEDULER_API_ENABLED
    app.config['SCHEDULER_TIMEZONE'] = SCHEDULER_TIMEZONE
    app.config['JWT_SECRET_KEY'] = Config.get_value("jwt_secret_key")
    if overrides:
        app.config.update(overrides)

    db.init_app(app)
    with app.app_context():
        db.create_all()

    if scheduler is None:
        scheduler = APScheduler()
        scheduler.init_app(app)
        scheduler.start()

    registry = SessionRegistry(scheduler=scheduler, clock=clock, app=app)
    app.extensions['watch_sessions'] = registry
    _registries.add(registry)

    app.register_blueprint(api)
    return app


def _sessions():
    return current_app.extensions['watch_sessions']


def _parse_flag(value, default=False):
    """JSON 布尔值或 "true"/"false"/"1"/"0" 字符串"""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def token_required(f):
    """
    鉴权，token 由外部身份服务签发，这里只做校验并取出 user_id
    :param f:
    :return: 用户ID
    """
    try:
        @wraps(f)
        def decorator(*args, **kwargs):
            token = None
            auth_header = request.headers.get('Authorization')

            if auth_header and auth_header.startswith('Bearer '):
                token = auth_header[7:]

            if not token:
                return jsonify({
                    "status": "error",
                    "data": {},
                    "message": "Token is missing!"
                }), 401

            try:
                decoded = jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=["HS256"])
                user_id = decoded['user_id']
            except Exception as e:
                return jsonify({
                    "status": "error",
                    "data": {},
                    "message": f"Invalid token: {str(e)}"
                }), 401

            g.user_name = decoded.get('user_name')
            g.role = decoded.get('role', 'student')
            return f(user_id, *args, **kwargs)

        return decorator
    except Exception as e:
        raise DecoratorException("token_required装饰器出错：" + ", ".join(str(arg) for arg in e.args))


def admin_required(f):
    """在 token_required 之后使用，要求 role == admin"""
    @wraps(f)
    def decorator(user_id, *args, **kwargs):
        if g.get('role') != 'admin':
            return jsonify({
                "status": "error",
                "data": {},
                "message": "Admin permission required"
            }), 403
        return f(user_id, *args, **kwargs)

    return decorator


@api.route('/', methods=['GET', 'POST'])
def index():
    return "ok"


@api.route('/video/list', methods=['GET'])
@cross_origin()
def get_video_list_api():
    """视频列表，可按 program_type 过滤（无需鉴权）"""
    program_type = request.args.get('program_type')
    return jsonify({
        "status": "success",
        "data": {"video_list": VideoManager.instance().get_videos(program_type)},
        "message": "Video list retrieved successfully"
    })


@api.route('/video/add', methods=['POST'])
@cross_origin()
@token_required
@admin_required
def add_video_api(user_id):
    request_data = request.get_json(force=True, silent=True) or {}
    success, video, msg = VideoManager.instance().add_video(
        video_id=request_data.get('video_id'),
        title=request_data.get('title'),
        video_url=request_data.get('video_url'),
        video_duration=request_data.get('video_duration'),
        program_type=request_data.get('program_type'),
        description=request_data.get('description', ''),
    )
    return jsonify({
        "status": "success" if success else "error",
        "data": video,
        "message": msg
    }), 200 if success else 400


@api.route('/video/delete', methods=['POST'])
@cross_origin()
@token_required
@admin_required
def delete_video_api(user_id):
    request_data = request.get_json(force=True, silent=True) or {}
    success, msg = VideoManager.instance().delete_video(request_data.get('video_id'))
    return jsonify({
        "status": "success" if success else "error",
        "data": {},
        "message": msg
    }), 200 if success else 404


@api.route('/video/start-watch', methods=['POST'])
@cross_origin()
@token_required
def start_watch_api(user_id):
    """
    开始观看：
    1. 播放次数 +1
    2. 读取已保存的进度，返回续播提示
    3. 启动观看会话（每个用户同时只有一个）
    请求参数：
    - video_id: 必传
    - resume: 可选，默认 true；false 表示从头开始
    """
    try:
        request_data = request.get_json(force=True, silent=True) or {}
        video_id = request_data.get('video_id')
        resume = _parse_flag(request_data.get('resume'), default=True)

        if not video_id:
            return jsonify({
                "status": "error",
                "data": {},
                "message": "video_id cannot be empty"
            }), 400

        video_manager = VideoManager.instance()
        success, video, msg = video_manager.get_video_info(video_id)
        if not success:
            return jsonify({
                "status": "error",
                "data": {},
                "message": msg
            }), 404
        video_manager.increment_video_view(video_id)

        saved = ProgressManager.instance().get_progress(user_id, video_id)
        resume_min = Config.get_value("progress", "resume_min_seconds") or 30
        can_resume = bool(saved and not saved['completed'] and saved['current_time'] > resume_min)

        if saved and saved['completed']:
            # 已看完的视频不再计时
            _sessions().stop_session(user_id)
            return jsonify({
                "status": "success",
                "data": {"video": video, "progress": saved, "tracking": False, "can_resume": False},
                "message": "Video already completed"
            })

        offset = saved['current_time'] if (saved and resume) else 0.0
        session = _sessions().start_session(user_id, video_id, video['video_duration'], offset)

        return jsonify({
            "status": "success",
            "data": {
                "video": video,
                "progress": saved,
                "tracking": True,
                "can_resume": can_resume,
                "resume_tip": f"You left off at {format_video_time(saved['current_time'])}" if can_resume else "",
                "session": session.status()
            },
            "message": "Watch session started"
        })
    except Exception as e:
        error_msg = f"Failed to start watch session: {str(e)}"
        logger.error(error_msg)
        traceback.print_exc()
        return jsonify({
            "status": "error",
            "data": {},
            "message": error_msg
        }), 500


@api.route('/video/stop-watch', methods=['POST'])
@cross_origin()
@token_required
def stop_watch_api(user_id):
    """关闭播放窗口/离开页面时调用，可重复调用"""
    stopped = _sessions().stop_session(user_id)
    return jsonify({
        "status": "success",
        "data": {"stopped": stopped},
        "message": "Watch session stopped" if stopped else "No active watch session"
    })


@api.route('/video/watch-status', methods=['GET'])
@cross_origin()
@token_required
def watch_status_api(user_id):
    session = _sessions().get_session(user_id)
    if session is None:
        return jsonify({
            "status": "error",
            "data": {},
            "message": "No active watch session"
        }), 404
    return jsonify({
        "status": "success",
        "data": session.status(),
        "message": "Watch status retrieved successfully"
    })


@api.route('/video/progress', methods=['GET'])
@cross_origin()
@token_required
def get_progress_api(user_id):
    """传 video_id 返回单个视频进度，否则返回该用户全部进度"""
    video_id = request.args.get('video_id')
    progress_manager = ProgressManager.instance()
    if video_id:
        progress = progress_manager.get_progress(user_id, video_id)
        return jsonify({
            "status": "success",
            "data": {"progress": progress},
            "message": "Progress retrieved successfully" if progress else "No progress yet"
        })
    return jsonify({
        "status": "success",
        "data": {"progress_list": progress_manager.get_user_progress(user_id)},
        "message": "Progress retrieved successfully"
    })


@api.route('/certificate/eligibility', methods=['GET'])
@cross_origin()
@token_required
def certificate_eligibility_api(user_id):
    program_type = request.args.get('program_type')
    if not program_type:
        return jsonify({
            "status": "error",
            "data": {},
            "message": "program_type cannot be empty"
        }), 400
    eligibility = EligibilityManager.instance().evaluate(user_id, program_type)
    return jsonify({
        "status": "success",
        "data": eligibility.to_dict(),
        "message": eligibility.reason
    })


@api.route('/certificate/claim', methods=['POST'])
@cross_origin()
@token_required
def claim_certificate_api(user_id):
    """用户主动领取证书，领取前重新判定资格"""
    request_data = request.get_json(force=True, silent=True) or {}
    program_type = request_data.get('program_type')
    user_name = g.get('user_name') or request_data.get('user_name') or 'Student'

    success, certificate, msg = CertificateManager.instance().issue(user_id, user_name, program_type)
    return jsonify({
        "status": "success" if success else "error",
        "data": {"certificate": certificate},
        "message": msg
    }), 200 if success else 400


@api.route('/certificate/list', methods=['GET'])
@cross_origin()
@token_required
def list_certificates_api(user_id):
    return jsonify({
        "status": "success",
        "data": {"certificates": CertificateManager.instance().get_user_certificates(user_id)},
        "message": "Certificates retrieved successfully"
    })


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(host='0.0.0.0', port=5000)
