"""Left panel: one pollutant layer uploaded into a texture and scaled into the grid rect."""

import math

import pygame
import numpy as np

from ui.colors import concentration_to_rgb

BORDER_COLOR = (80, 80, 80)
BORDER_PX = 1
WIND_COLOR = (120, 200, 255)
WIND_ARROW_LEN = 40  # px at full strength


def _bilinear_upsample(arr: np.ndarray, scale: int) -> np.ndarray:
    """Upsample 2D array by scale using bilinear interpolation. Returns (nx*scale, ny*scale)."""
    nx, ny = arr.shape
    if scale <= 1:
        return arr
    H, W = nx * scale, ny * scale
    I = np.arange(H, dtype=np.float64)
    J = np.arange(W, dtype=np.float64)
    U = np.clip(I / scale, 0, nx - 1.001)
    V = np.clip(J / scale, 0, ny - 1.001)
    i0 = U.astype(np.int32)
    j0 = V.astype(np.int32)
    i1 = np.minimum(i0 + 1, nx - 1)
    j1 = np.minimum(j0 + 1, ny - 1)
    su = (U - i0).reshape(-1, 1)
    sv = (V - j0).reshape(1, -1)
    i0_ = i0[:, np.newaxis]
    j0_ = j0[np.newaxis, :]
    i1_ = i1[:, np.newaxis]
    j1_ = j1[np.newaxis, :]
    p00 = arr[i0_, j0_]
    p01 = arr[i0_, j1_]
    p10 = arr[i1_, j0_]
    p11 = arr[i1_, j1_]
    out = (1 - su) * (1 - sv) * p00 + (1 - su) * sv * p01 + su * (1 - sv) * p10 + su * sv * p11
    return out.astype(arr.dtype)


def update_texture(
    values: np.ndarray,
    texture: pygame.Surface | None = None,
    view_mode: str = "heat",
) -> pygame.Surface:
    """Copy a (rows=y, cols=x) layer into texture; a new Surface is created when none
    is given or its size does not match. Returns the texture that holds the image."""
    h, w = values.shape
    rgb = concentration_to_rgb(values, view_mode)
    img = pygame.image.frombytes(np.ascontiguousarray(rgb).tobytes(), (w, h), "RGB")
    if texture is None or texture.get_size() != (w, h):
        return img
    texture.blit(img, (0, 0))
    return texture


def draw_grid(
    surface: pygame.Surface,
    grid_rect: pygame.Rect,
    values: np.ndarray | None,
    view_mode: str = "heat",
    render_scale: int = 1,
) -> None:
    """Draw the layer into grid_rect. render_scale 2+ = bilinear upsample before the color map,
    then scale down to grid_rect for a smoother picture of the same tick."""
    if values is not None and values.size:
        scale = max(1, min(4, render_scale))
        data = _bilinear_upsample(values, scale) if scale > 1 else values
        texture = update_texture(data, view_mode=view_mode)
        if scale > 1:
            scaled = pygame.transform.smoothscale(texture, (grid_rect.width, grid_rect.height))
        else:
            scaled = pygame.transform.scale(texture, (grid_rect.width, grid_rect.height))
        surface.blit(scaled, grid_rect.topleft)
    pygame.draw.rect(surface, BORDER_COLOR, grid_rect, BORDER_PX)


def draw_wind_arrow(surface: pygame.Surface, grid_rect: pygame.Rect, wind_x: float, wind_y: float) -> None:
    """Arrow in the top-left corner; length proportional to wind strength. Grid y points down."""
    strength = math.hypot(wind_x, wind_y)
    if strength == 0:
        return
    cx, cy = grid_rect.x + WIND_ARROW_LEN + 8, grid_rect.y + WIND_ARROW_LEN + 8
    ux, uy = wind_x / strength, wind_y / strength
    length = WIND_ARROW_LEN * strength
    tip = (cx + ux * length, cy + uy * length)
    pygame.draw.line(surface, WIND_COLOR, (cx, cy), tip, 2)
    left = (tip[0] - 8 * ux + 5 * uy, tip[1] - 8 * uy - 5 * ux)
    right = (tip[0] - 8 * ux - 5 * uy, tip[1] - 8 * uy + 5 * ux)
    pygame.draw.polygon(surface, WIND_COLOR, [tip, left, right])
