# -*- coding: utf-8 -*-
from lms.managers.EligibilityManager import EligibilityManager
from lms.managers.VideoManager import VideoManager


def test_no_videos_is_never_eligible(app, complete_video):
    complete_video("u1", "orphan-1")

    result = EligibilityManager.instance().evaluate("u1", "JEE")

    assert result.eligible is False
    assert result.total_count == 0
    assert result.reason == "No videos available"


def test_four_of_five_meets_criteria(app, add_videos, complete_video):
    video_ids = add_videos("JEE", 5)
    for video_id in video_ids[:4]:
        complete_video("u1", video_id)

    result = EligibilityManager.instance().evaluate("u1", "JEE")

    assert result.eligible is True
    assert result.completion_percentage == 80.00
    assert result.completed_count == 4
    assert result.total_count == 5
    assert result.reason == "Meets criteria"


def test_three_of_five_needs_one_more(app, add_videos, complete_video):
    video_ids = add_videos("JEE", 5)
    for video_id in video_ids[:3]:
        complete_video("u1", video_id)

    result = EligibilityManager.instance().evaluate("u1", "JEE")

    assert result.eligible is False
    assert result.completion_percentage == 60.00
    assert result.reason == "Need 1 more videos"


def test_percentage_is_rounded_to_two_decimals(app, add_videos, complete_video):
    video_ids = add_videos("NEET", 9)
    for video_id in video_ids[:7]:
        complete_video("u1", video_id)

    result = EligibilityManager.instance().evaluate("u1", "NEET")

    assert result.completion_percentage == 77.78
    assert result.eligible is False
    # ceil(9 * 0.8) - 7
    assert result.reason == "Need 1 more videos"


def test_threshold_boundary(app, add_videos, complete_video):
    video_ids = add_videos("JEE", 4)
    for video_id in video_ids[:3]:
        complete_video("u1", video_id)
    manager = EligibilityManager.instance()

    assert manager.evaluate("u1", "JEE", threshold=75.0).eligible is True
    assert manager.evaluate("u1", "JEE", threshold=75.01).eligible is False


def test_only_counts_completed_videos_of_the_program(app, add_videos, complete_video):
    jee = add_videos("JEE", 2)
    neet = add_videos("NEET", 2)
    complete_video("u1", jee[0])
    complete_video("u1", neet[0])
    complete_video("u1", neet[1])
    complete_video("u2", jee[1])

    result = EligibilityManager.instance().evaluate("u1", "JEE")

    assert result.completed_count == 1
    assert result.total_count == 2
    assert result.completion_percentage == 50.0


def test_inactive_videos_do_not_count(app, add_videos, complete_video):
    video_ids = add_videos("JEE", 5)
    for video_id in video_ids[:3]:
        complete_video("u1", video_id)
    VideoManager.instance().delete_video(video_ids[4])

    result = EligibilityManager.instance().evaluate("u1", "JEE")

    assert result.total_count == 4
    assert result.completion_percentage == 75.0


def test_evaluate_is_idempotent(app, add_videos, complete_video):
    video_ids = add_videos("JEE", 5)
    for video_id in video_ids[:2]:
        complete_video("u1", video_id)
    manager = EligibilityManager.instance()

    assert manager.evaluate("u1", "JEE") == manager.evaluate("u1", "JEE")
