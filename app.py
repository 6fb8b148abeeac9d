"""
App shell: display and main loop. A tick is requested every 1/tick_rate seconds
(independent of frame rate); the simulation drops requests that arrive while a tick is
still running. Clicking the grid queues an emission at the mapped cell.
"""

import logging

import pygame

import config
from pollution import GridMapping, PollutionSimulation, Wind
from ui.grid_view import draw_grid, draw_wind_arrow
from ui.panel import ParamPanel

logger = logging.getLogger(__name__)

TITLE = "Pollution"
WIDTH, HEIGHT = 960, 640
BACKGROUND = (0, 0, 0)
GRID_PANEL_WIDTH = 640  # left panel for grid; right panel for parameters


def build_simulation(cfg: dict, grid_rect: pygame.Rect) -> PollutionSimulation:
    """Simulation whose world space is the grid rect in screen pixels."""
    mapping = GridMapping(
        cfg["grid_size"],
        extent=(grid_rect.width / 2.0, grid_rect.height / 2.0),
        origin=grid_rect.center,
    )
    sim = PollutionSimulation.from_config(cfg, mapping=mapping)
    wind = cfg.get("wind", {})
    sim.set_wind(_angle_vector(wind.get("angle", 0.0)), wind.get("strength", 0.0))
    return sim


def _angle_vector(degrees: float) -> tuple[float, float]:
    w = Wind.from_angle(degrees, 1.0)
    return w.x, w.y


def run() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    pygame.init()
    screen = pygame.display.set_mode((WIDTH, HEIGHT))
    pygame.display.set_caption(TITLE)
    clock = pygame.time.Clock()
    config.refresh_index()

    grid_rect = pygame.Rect(0, 0, GRID_PANEL_WIDTH, HEIGHT)
    panel_rect = pygame.Rect(GRID_PANEL_WIDTH, 0, WIDTH - GRID_PANEL_WIDTH, HEIGHT)

    cfg = config.load_config()
    sim = build_simulation(cfg, grid_rect)
    last = config.get_last_config()
    state = config.load_state(last) if last else None
    if state is not None and not sim.load_buffer(state["buffer"]):
        logger.warning("Saved state for %r does not match the configured grid; starting empty", last)

    def do_restart() -> None:
        nonlocal sim, cfg
        cfg = panel.config_dict(cfg)
        sim.close()
        sim = build_simulation(cfg, grid_rect)

    def save_current_config() -> None:
        nonlocal cfg
        params = panel.get_params()
        name = (params.get("config_name") or "").strip() or "unnamed"
        sim.wait()
        cfg = panel.config_dict(cfg)
        # Grid size and pollutants belong to the running simulation until restart.
        saved = {**cfg, "grid_size": sim.grid_size}
        state = {"buffer": sim.read_buffer(), "tick_count": sim.tick_count}
        config.save_config(saved, name, tick_count=sim.tick_count, state=state)
        panel.set_selected_config(config._sanitize_name(name))

    def load_config_callback(name: str) -> None:
        nonlocal sim, cfg
        path = config.get_config_path(name)
        if not path.exists():
            return
        cfg = config.load_config(path)
        panel.apply_config(cfg)
        panel.params["config_name"] = name
        sim.close()
        sim = build_simulation(cfg, grid_rect)
        state = config.load_state(name)
        if state is not None:
            sim.load_buffer(state["buffer"])

    wind_cfg = cfg.get("wind", {})
    panel = ParamPanel(
        panel_rect,
        {
            "grid_size": cfg["grid_size"],
            "tick_rate": max(1, min(30, int(round(1.0 / cfg.get("tick_interval", 1.0))))),
            "wind_angle": wind_cfg.get("angle", 0.0),
            "wind_strength": wind_cfg.get("strength", 0.0),
            "emission": cfg.get("emission_amount", 100.0),
            "render_scale": cfg.get("render_scale", 1),
            "view_mode": cfg.get("view_mode", "heat"),
            "view_pollutant": cfg.get("view_pollutant"),
            "spill_over_borders": cfg.get("spill_over_borders", True),
            "pollutant_names": [p["name"] for p in cfg["pollutants"]],
            "config_name": last or "",
            "selected_config": last,
            "on_load_config": load_config_callback,
        },
        on_save=save_current_config,
        on_restart=do_restart,
    )

    tick_accum = 0.0
    running = True
    applied_wind = None

    while running:
        dt_ms = clock.tick(60)
        dt_s = dt_ms / 1000.0

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                break
            if panel.handle_event(event):
                continue
            if event.type == pygame.MOUSEBUTTONDOWN and grid_rect.collidepoint(event.pos):
                params = panel.get_params()
                if event.button in (1, 3) and params["view_pollutant"]:
                    amount = params["emission"] if event.button == 1 else -params["emission"]
                    sim.modify_at_location(event.pos, params["view_pollutant"], amount)

        params = panel.get_params()
        wind = (params["wind_angle"], params["wind_strength"])
        if wind != applied_wind:
            sim.set_wind(_angle_vector(wind[0]), wind[1])
            applied_wind = wind
        sim.spill_over_borders = params["spill_over_borders"]

        if not params["paused"]:
            tick_rate = max(1, min(30, params["tick_rate"]))
            sim.scheduler.tick_budget = 1.0 / tick_rate
            tick_accum += dt_s * tick_rate
            if tick_accum >= 1.0:
                # One request per frame at most; a busy simulation drops it.
                tick_accum = min(tick_accum - 1.0, 1.0)
                sim.request_tick()

        screen.fill(BACKGROUND)
        name = params["view_pollutant"]
        layer = sim.pollutant_layer(name) if name else None
        draw_grid(
            screen,
            grid_rect,
            None if layer is None else layer.copy(),
            view_mode=params.get("view_mode", "heat"),
            render_scale=params.get("render_scale", 1),
        )
        draw_wind_arrow(screen, grid_rect, sim.wind.x, sim.wind.y)
        panel.draw(
            screen,
            tick_count=sim.tick_count,
            dropped_ticks=sim.dropped_ticks,
            total=sim.total(name) if name else None,
        )
        panel.draw_tooltip(screen)
        pygame.display.flip()

    sim.close()
    pygame.quit()


if __name__ == "__main__":
    run()
