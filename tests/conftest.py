# -*- coding: utf-8 -*-
import jwt
import pytest
from apscheduler.jobstores.base import JobLookupError

from lms.managers.CertificateManager import CertificateManager
from lms.managers.Config import Config
from lms.managers.EligibilityManager import EligibilityManager
from lms.managers.ProgressManager import ProgressManager
from lms.managers.VideoManager import VideoManager
from lms.models.database import db
from lms.services.ProgressStore import ProgressStore
from main import create_app

JWT_SECRET = "test-secret-key-for-the-progress-backend-0123456789"


class FakeScheduler:
    """Records interval jobs instead of running them"""

    def __init__(self):
        self.jobs = {}

    def add_job(self, id, func, **kwargs):
        self.jobs[id] = (func, kwargs)

    def remove_job(self, id, jobstore=None):
        if id not in self.jobs:
            raise JobLookupError(id)
        del self.jobs[id]


class ManualClock:

    def __init__(self, start=1000.0):
        self.value = start

    def now(self):
        return self.value

    def advance(self, seconds):
        self.value += seconds


def reset_singletons():
    for cls in (ProgressStore, ProgressManager, EligibilityManager, CertificateManager, VideoManager):
        cls._instance = None


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def app(scheduler, clock):
    Config._instance = None
    reset_singletons()
    app = create_app({
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'TESTING': True,
        'JWT_SECRET_KEY': JWT_SECRET,
    }, scheduler=scheduler, clock=clock)
    with app.app_context():
        yield app
        app.extensions['watch_sessions'].stop_all()
        db.session.remove()
        db.drop_all()
    reset_singletons()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def add_videos(app):
    def _add(program_type, count, duration=600, prefix=None):
        prefix = prefix or program_type
        video_ids = []
        for index in range(1, count + 1):
            video_id = f"{prefix}-{index}"
            success, _, msg = VideoManager.instance().add_video(
                video_id=video_id,
                title=f"{program_type} lecture {index}",
                video_url=f"https://videos.example.com/{video_id}.mp4",
                video_duration=duration,
                program_type=program_type,
            )
            assert success, msg
            video_ids.append(video_id)
        return video_ids
    return _add


@pytest.fixture
def complete_video(app):
    def _complete(user_id, video_id, duration=600):
        ProgressStore.instance().upsert_progress(user_id, video_id, {
            'current_time': duration,
            'total_duration': duration,
            'completed': True,
        })
    return _complete


def auth_header(user_id, user_name="Asha", role="student"):
    token = jwt.encode({"user_id": user_id, "user_name": user_name, "role": role}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
