import threading
import types
import pytest
from sem_detector.core import VisionLoader, VisionStatus, VisionUnavailableError
from sem_detector.core.vision import REQUIRED_ATTRS


def _fake_cv(name="fakecv"):
    mod = types.ModuleType(name)
    for attr in REQUIRED_ATTRS:
        setattr(mod, attr, lambda *a, **k: None)
    return mod


def _importer(available, log=None, gate=None):
    def imp(name):
        if log is not None:
            log.append(name)
        if gate is not None:
            gate.wait(5)
        if name in available:
            return available[name]
        raise ImportError(name)
    return imp


def test_ready_on_primary():
    mod = _fake_cv("fakecv")
    loader = VisionLoader(importer=_importer({"cv2": mod}))
    assert loader.status is VisionStatus.PENDING
    assert loader.load_now() is VisionStatus.READY
    assert loader.capability() is mod


def test_single_fallback_attempt():
    mod = _fake_cv("fallback")
    log = []
    loader = VisionLoader(primary="cv2", fallback="cv_alt", importer=_importer({"cv_alt": mod}, log))
    assert loader.load_now() is VisionStatus.READY
    assert log == ["cv2", "cv_alt"]
    assert loader.capability() is mod


def test_failed_then_forced():
    log = []
    loader = VisionLoader(importer=_importer({}, log))
    assert loader.load_now() is VisionStatus.FAILED
    assert len(log) == 2
    assert not loader.is_usable
    with pytest.raises(VisionUnavailableError):
        loader.capability()
    assert loader.force() is VisionStatus.FORCED
    assert loader.is_usable
    with pytest.raises(VisionUnavailableError):
        loader.capability()


def test_timeout_forces_and_late_module_is_used():
    mod = _fake_cv("slowcv")
    gate = threading.Event()
    loader = VisionLoader(timeout=0.05, importer=_importer({"cv2": mod}, gate=gate))
    assert loader.wait() is VisionStatus.FORCED
    gate.set()
    loader._thread.join(5)
    assert loader.status is VisionStatus.FORCED
    assert loader.capability() is mod


def test_force_does_not_downgrade_ready():
    loader = VisionLoader(importer=_importer({"cv2": _fake_cv("cv")}))
    loader.load_now()
    assert loader.force() is VisionStatus.READY


def test_real_opencv_loads():
    loader = VisionLoader()
    assert loader.wait() is VisionStatus.READY
    assert hasattr(loader.capability(), "HoughCircles")


def test_module_without_detection_api_falls_back():
    good = _fake_cv("cv_alt")
    log = []
    loader = VisionLoader(fallback="cv_alt",
                          importer=_importer({"cv2": types.ModuleType("empty"), "cv_alt": good}, log))
    assert loader.load_now() is VisionStatus.READY
    assert log == ["cv2", "cv_alt"]
    assert loader.capability() is good


def test_incomplete_modules_fail():
    empty = types.ModuleType("empty")
    loader = VisionLoader(importer=_importer({"cv2": empty, "cv2.cv2": empty}))
    assert loader.load_now() is VisionStatus.FAILED
    assert "HoughCircles" in str(loader.error)
