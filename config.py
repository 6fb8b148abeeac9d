"""Load/save simulation and UI parameters. Configs live in configs/ as {name}.json (+ optional .npz flat buffer)."""

import json
import logging
import re
from pathlib import Path

import numpy as np

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
LAST_FILE = CONFIG_DIR / "last.txt"

logger = logging.getLogger(__name__)

# In-memory index of config names so we avoid disk access for exists/dropdown.
_CONFIG_INDEX: set[str] = set()


def refresh_index() -> None:
    """Rebuild _CONFIG_INDEX from disk. Call at startup and after external changes."""
    global _CONFIG_INDEX
    _CONFIG_INDEX = set()
    if not CONFIG_DIR.exists():
        return
    for f in CONFIG_DIR.glob("*.json"):
        _CONFIG_INDEX.add(f.stem)


def _sanitize_name(name: str) -> str:
    s = (name or "").strip()
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"[\s-]+", "_", s).strip("_")
    return s[:64] or "unnamed"


def get_config_path(name: str) -> Path:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR / f"{_sanitize_name(name)}.json"


def get_state_path(name: str) -> Path:
    return CONFIG_DIR / f"{_sanitize_name(name)}.npz"


def list_configs() -> list[str]:
    """Saved config names, from in-memory index."""
    return sorted(_CONFIG_INDEX, key=str.lower)


def get_last_config() -> str | None:
    if not LAST_FILE.exists():
        return None
    try:
        raw = LAST_FILE.read_text().strip()
    except OSError:
        return None
    return raw or None


def set_last_config(name: str) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LAST_FILE.write_text(_sanitize_name(name))


def load_config(path: Path | str | None = None) -> dict:
    if path is not None:
        p = Path(path)
        if not p.exists():
            return _default_config()
        with open(p, "r") as f:
            return _merge_defaults(json.load(f))
    last = get_last_config()
    if last is None:
        return _default_config()
    p = get_config_path(last)
    if not p.exists():
        return _default_config()
    with open(p, "r") as f:
        return _merge_defaults(json.load(f))


def save_config(params: dict, name: str, tick_count: int = 0, state: dict | None = None) -> None:
    """Save config and optional state {'buffer': flat ndarray, 'tick_count': int}."""
    path = get_config_path(name)
    out = {**params, "tick_count": tick_count}
    with open(path, "w") as f:
        json.dump(out, f, indent=2)
    if state is not None:
        np.savez_compressed(
            get_state_path(name),
            buffer=np.asarray(state["buffer"], dtype=np.float64).reshape(-1),
            tick_count=np.int64(state["tick_count"]),
        )
    set_last_config(name)
    _CONFIG_INDEX.add(_sanitize_name(name))
    logger.info("Saved config %r to %s", name, path)


def load_state(name: str) -> dict | None:
    """Return {'buffer': flat ndarray, 'tick_count': int} or None."""
    p = get_state_path(name)
    if not p.exists():
        return None
    try:
        data = np.load(p, allow_pickle=False)
        return {
            "buffer": data["buffer"].copy(),
            "tick_count": int(data["tick_count"]),
        }
    except (KeyError, OSError, ValueError) as e:
        logger.warning("Could not read state file %s: %s", p, e)
        return None


def _default_config() -> dict:
    return {
        "grid_size": 64,
        "tick_interval": 1.0,
        "spill_over_borders": True,
        "diagonal_weight": 1.0,
        "world_extent": [1000.0, 1000.0],
        "wind": {"angle": 0.0, "strength": 0.0},
        "pollutants": [
            {"name": "smoke", "dispersion_rate": 0.5, "decay_rate": 0.02, "max_decay_per_tick": 0.5},
            {"name": "co2", "dispersion_rate": 0.2, "decay_rate": 0.0, "max_decay_per_tick": 0.0},
        ],
        "emission_amount": 100.0,
        "workers": None,
        "render_scale": 1,
        "view_mode": "heat",
        "view_pollutant": "smoke",
    }


def _merge_defaults(data: dict) -> dict:
    d = _default_config()
    if "wind" in data:
        d["wind"] = {**d["wind"], **data["wind"]}
    for k in (
        "grid_size", "tick_interval", "spill_over_borders", "diagonal_weight", "world_extent",
        "pollutants", "emission_amount", "workers", "render_scale", "view_mode",
        "view_pollutant", "tick_count",
    ):
        if k in data:
            d[k] = data[k]
    return d


def config_exists(name: str) -> bool:
    """Use in-memory index; no disk access."""
    return _sanitize_name(name) in _CONFIG_INDEX


def delete_config(name: str) -> None:
    """Remove config and state from disk and index. Clear last if this was last."""
    key = _sanitize_name(name)
    _CONFIG_INDEX.discard(key)
    p = get_config_path(name)
    if p.exists():
        p.unlink(missing_ok=True)
    sp = get_state_path(name)
    if sp.exists():
        sp.unlink(missing_ok=True)
    if get_last_config() == key and LAST_FILE.exists():
        LAST_FILE.unlink(missing_ok=True)
