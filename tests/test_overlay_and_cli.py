import numpy as np
import cv2
from sem_detector.core import Particle, draw_particles, draw_particles_with_ids
from sem_detector import cli


def test_draw_particles_outline_and_skip():
    img = np.zeros((100, 100), np.uint8)
    ps = [Particle(1, 50.0, 50.0, 20.0), Particle(2, 500.0, 50.0, 20.0)]
    out = draw_particles(cv2, img, ps)
    assert out.shape == (100, 100, 3)
    assert tuple(out[50, 70]) == (0, 255, 0)
    assert tuple(out[50, 50]) == (0, 255, 0)  # centre dot
    assert img.max() == 0  # input untouched


def test_selected_particle_highlighted():
    img = np.zeros((100, 100, 3), np.uint8)
    out = draw_particles_with_ids(cv2, img, [Particle(7, 50.0, 50.0, 20.0)], selected_id=7)
    assert tuple(out[50, 70]) == (0, 165, 255)


def test_cli_writes_csv_and_overlay(tmp_path, three_circles):
    src = tmp_path / "sample.png"
    cv2.imwrite(str(src), three_circles)
    out = tmp_path / "out"
    rc = cli.main([str(src), "--min-area", "0", "--known-pixels", "10", "--known-physical", "5", "--out", str(out)])
    assert rc == 0
    text = (out / "particles_sample.csv").read_text(encoding="utf-8")
    assert text.splitlines()[0] == "ID,X,Y,Diameter(px),Diameter(µm),Area(px²)"
    assert len(text.splitlines()) == 4
    assert (out / "annotated_sample.png").exists()


def test_cli_decode_failure(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"nope")
    assert cli.main([str(bad), "--out", str(tmp_path / "o")]) == 2
