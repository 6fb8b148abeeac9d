"""
Display-only normalization: map the current max of one pollutant layer to 1 so small
concentrations stay visible. "heat" uses a blackbody-style gradient (black through red,
orange, yellow to white); "haze" a dark-blue to white gradient; "bw" plain grayscale.
"""

import numpy as np

# Blackbody: dark red → red → orange → yellow → white
_HEAT_STOPS = np.array([
    [0.0, 0.0, 0.0], [0.25, 0.0, 0.0], [0.75, 0.08, 0.02], [1.0, 0.35, 0.0],
    [1.0, 0.75, 0.2], [1.0, 0.95, 0.7], [1.0, 1.0, 1.0],
], dtype=np.float64)
_HEAT_T = np.array([0.0, 0.12, 0.28, 0.45, 0.65, 0.85, 1.0], dtype=np.float64)

# Haze: pitch black → night blue → bright blue → white
_HAZE_STOPS = np.array([
    [0.0, 0.0, 0.0], [0.06, 0.08, 0.22], [0.12, 0.18, 0.45], [0.25, 0.4, 0.75],
    [0.5, 0.65, 0.95], [0.8, 0.9, 1.0], [1.0, 1.0, 1.0],
], dtype=np.float64)
_HAZE_T = np.array([0.0, 0.18, 0.38, 0.55, 0.72, 0.88, 1.0], dtype=np.float64)

VIEW_MODES = ("heat", "haze", "bw")


def _apply_gradient(t: np.ndarray, stops: np.ndarray, t_vals: np.ndarray) -> np.ndarray:
    """Map t in [0,1] to RGB via piecewise-linear stops. t 1D, returns (n, 3)."""
    t = np.clip(np.asarray(t, dtype=np.float64).reshape(-1), 0.0, 1.0)
    out = np.zeros((t.size, 3), dtype=np.float64)
    for i in range(len(t_vals) - 1):
        t0, t1 = t_vals[i], t_vals[i + 1]
        mask = (t >= t0) & (t < t1) if i < len(t_vals) - 2 else (t >= t0)
        s = np.where(mask, (t - t0) / max(1e-9, t1 - t0), 0.0)
        s1 = s[mask].reshape(-1, 1)
        out[mask] = s1 * stops[i + 1] + (1.0 - s1) * stops[i]
    return out


def normalize(values: np.ndarray) -> np.ndarray:
    """Scale to [0, 1] by the layer max; all-zero layers stay zero."""
    v_max = float(np.max(values)) if values.size else 0.0
    if v_max > 1e-12:
        return np.clip(values / v_max, 0.0, 1.0)
    return np.zeros_like(values, dtype=np.float64)


def concentration_to_rgb(values: np.ndarray, view_mode: str = "heat") -> np.ndarray:
    """Returns (rows, cols, 3) uint8 RGB for a 2D concentration layer."""
    t = normalize(values)
    h, w = t.shape
    if view_mode == "bw":
        rgb = np.stack([t, t, t], axis=-1)
    elif view_mode == "haze":
        rgb = _apply_gradient(t.reshape(-1), _HAZE_STOPS, _HAZE_T).reshape(h, w, 3)
    else:
        rgb = _apply_gradient(t.reshape(-1), _HEAT_STOPS, _HEAT_T).reshape(h, w, 3)
    rgb = np.clip(rgb, 0, 1)
    return (rgb * 255).astype(np.uint8)
