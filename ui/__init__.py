"""UI: grid view (layer texture upload) and parameter panel."""

from ui.grid_view import draw_grid, draw_wind_arrow, update_texture
from ui.panel import ParamPanel
from ui.colors import concentration_to_rgb

__all__ = ["draw_grid", "draw_wind_arrow", "update_texture", "ParamPanel", "concentration_to_rgb"]
