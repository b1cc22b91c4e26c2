import numpy as np
import cv2
import pytest

from sem_detector.core import Particle, ParticleStore, InteractionController, EditorSettings


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def three_circles():
    # 240x200 dark background, bright discs r=10,20,30
    img = np.zeros((200, 240), np.uint8) + 20
    cv2.circle(img, (40, 50), 10, 220, -1)
    cv2.circle(img, (120, 60), 20, 220, -1)
    cv2.circle(img, (170, 140), 30, 220, -1)
    return img


@pytest.fixture
def store():
    s = ParticleStore()
    s.replace_all([
        Particle(1, 50.0, 50.0, 20.0),
        Particle(2, 150.0, 50.0, 30.0),
    ])
    return s


@pytest.fixture
def ctl(store):
    c = InteractionController(store=store, settings=EditorSettings())
    c.set_image_size(200, 100)
    c.set_view_size(200, 100)
    return c
