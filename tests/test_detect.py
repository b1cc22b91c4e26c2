import numpy as np
import cv2
import pytest
from sem_detector.core import DetectionAdapter, DetectionParams


class FakeVision:
    """Stands in for the vision module; returns canned circles."""
    COLOR_BGR2GRAY = 6
    COLOR_BGRA2GRAY = 10
    HOUGH_GRADIENT = 3
    NORM_MINMAX = 32

    def __init__(self, circles):
        self.circles = circles
        self.calls = []

    def cvtColor(self, img, code):
        return img[:, :, 0].copy()

    def GaussianBlur(self, img, ksize, sigma):
        return img

    def HoughCircles(self, img, method, dp, min_dist, param1, param2, minRadius, maxRadius):
        self.calls.append(dict(dp=dp, min_dist=min_dist, param1=param1, param2=param2,
                               min_radius=minRadius, max_radius=maxRadius))
        if not self.circles:
            return None
        return np.array([self.circles], np.float32)


def test_ids_follow_return_order():
    fake = FakeVision([(120, 60, 20.2), (40, 50, 9.8), (170, 140, 30.0)])
    ps = DetectionAdapter(fake).detect(np.zeros((200, 240), np.uint8), DetectionParams(min_area=0))
    assert [p.id for p in ps] == [1, 2, 3]
    assert [p.diameter for p in ps] == [40.0, 20.0, 60.0]
    assert (ps[0].x, ps[0].y) == (120.0, 60.0)


def test_min_area_filter_then_renumber():
    fake = FakeVision([(10, 10, 3), (50, 50, 10), (90, 90, 2), (120, 20, 4)])
    ps = DetectionAdapter(fake).detect(np.zeros((150, 150, 3), np.uint8), DetectionParams(min_area=30))
    # areas: 28, 314, 13, 50
    assert [(p.id, p.radius) for p in ps] == [(1, 10.0), (2, 4.0)]


def test_parameters_passed_to_transform():
    fake = FakeVision([])
    P = DetectionParams(min_radius=0, max_radius=500, circle_threshold=27)
    assert DetectionAdapter(fake).detect(np.zeros((20, 20), np.uint8), P) == []
    call = fake.calls[0]
    assert call["min_radius"] == 1 and call["max_radius"] == 100  # clamped
    assert call["param1"] == 100 and call["param2"] == 27
    assert call["min_dist"] == pytest.approx(0.5)


def test_detect_real_opencv(three_circles):
    P = DetectionParams(min_area=0)  # defaults: radius 9..38, threshold 27
    ps = DetectionAdapter(cv2).detect(three_circles, P)
    assert len(ps) == 3
    assert [p.id for p in ps] == [1, 2, 3]
    assert sorted(p.diameter for p in ps) == pytest.approx([20.0, 40.0, 60.0], abs=2.0)
    for cx, cy in [(40, 50), (120, 60), (170, 140)]:
        assert any(abs(p.x - cx) <= 2 and abs(p.y - cy) <= 2 for p in ps)
