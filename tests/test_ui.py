"""
Tests for the layer color map and texture upload.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ui.colors import VIEW_MODES, concentration_to_rgb, normalize

pygame = pytest.importorskip("pygame")

from ui.grid_view import _bilinear_upsample, draw_grid, update_texture


def test_normalize():
    np.testing.assert_allclose(normalize(np.array([[0.0, 2.0], [1.0, 4.0]])), [[0.0, 0.5], [0.25, 1.0]])
    assert not normalize(np.zeros((3, 3))).any()


@pytest.mark.parametrize("mode", VIEW_MODES)
def test_rgb_shape_and_extremes(mode):
    values = np.zeros((4, 5))
    values[2, 3] = 7.0
    rgb = concentration_to_rgb(values, mode)
    assert rgb.shape == (4, 5, 3)
    assert rgb.dtype == np.uint8
    assert tuple(rgb[0, 0]) == (0, 0, 0)
    assert tuple(rgb[2, 3]) == (255, 255, 255)


def test_update_texture_creates_and_reuses():
    values = np.zeros((3, 6))
    values[1, 4] = 1.0
    texture = update_texture(values, view_mode="bw")
    assert texture.get_size() == (6, 3)
    assert tuple(texture.get_at((4, 1)))[:3] == (255, 255, 255)
    assert tuple(texture.get_at((0, 0)))[:3] == (0, 0, 0)

    values[1, 4] = 0.0
    values[2, 0] = 5.0
    same = update_texture(values, texture, view_mode="bw")
    assert same is texture
    assert tuple(texture.get_at((0, 2)))[:3] == (255, 255, 255)
    assert tuple(texture.get_at((4, 1)))[:3] == (0, 0, 0)


def test_update_texture_size_mismatch_makes_new_surface():
    old = pygame.Surface((2, 2))
    new = update_texture(np.ones((4, 4)), old)
    assert new is not old
    assert new.get_size() == (4, 4)


def test_bilinear_upsample_shape():
    arr = np.arange(9, dtype=float).reshape(3, 3)
    out = _bilinear_upsample(arr, 2)
    assert out.shape == (6, 6)
    assert out[0, 0] == arr[0, 0]


def test_draw_grid_fills_rect():
    surface = pygame.Surface((40, 40))
    values = np.full((4, 4), 3.0)
    draw_grid(surface, pygame.Rect(0, 0, 40, 40), values, view_mode="bw", render_scale=1)
    assert tuple(surface.get_at((20, 20)))[:3] == (255, 255, 255)
