"""Right panel: live-updatable sliders (wind, tick rate, emission), play/pause, pollutant/view dropdowns, save/load configs."""

import pygame
from typing import Callable

import config
from ui import tooltips
from ui.colors import VIEW_MODES

FONT_SIZE = 16
TOOLTIP_FONT_SIZE = 19
TOOLTIP_SMALL_FONT_SIZE = 16
LABEL_COLOR = (200, 200, 200)
WARN_COLOR = (230, 170, 80)
SLIDER_COLOR = (100, 100, 100)
KNOB_COLOR = (180, 180, 180)
BUTTON_COLOR = (60, 60, 60)
BUTTON_HOVER = (80, 80, 80)

VIEW_MODE_LABELS = {"heat": "Heat", "haze": "Haze", "bw": "Black/white"}
DROP_W, DROP_H = 160, 18


class ParamPanel:
    """State: params dict; draw and handle events. Save and Restart callbacks."""

    def __init__(
        self,
        rect: pygame.Rect,
        initial: dict,
        on_save: Callable[[], None],
        on_restart: Callable[[], None],
    ) -> None:
        self.rect = rect
        self.params = {
            "grid_size": initial.get("grid_size", 64),
            "tick_rate": initial.get("tick_rate", 1),
            "wind_angle": initial.get("wind_angle", 0),
            "wind_strength": initial.get("wind_strength", 0.0),
            "emission": initial.get("emission", 100.0),
            "render_scale": initial.get("render_scale", 1),
            "view_mode": initial.get("view_mode", "heat"),
            "view_pollutant": initial.get("view_pollutant"),
            "spill_over_borders": initial.get("spill_over_borders", True),
            "config_name": initial.get("config_name", ""),
            "paused": True,
        }
        self.pollutant_names: list[str] = list(initial.get("pollutant_names", []))
        if self.params["view_pollutant"] not in self.pollutant_names and self.pollutant_names:
            self.params["view_pollutant"] = self.pollutant_names[0]
        self.on_save = on_save
        self.on_restart = on_restart
        self.on_load_config = initial.get("on_load_config")
        self._selected_config: str | None = initial.get("selected_config")
        self._font = None
        self._slider_rects: dict = {}
        self._button_rects: dict = {}
        self._dragging: str | None = None
        self._config_name_focus = False
        self._config_name_buffer = ""
        # Open dropdown key ("view_mode", "view_pollutant", "config") and its option rects.
        self._open_dropdown: str | None = None
        self._dropdown_rects: dict[str, pygame.Rect] = {}
        self._option_rects: list[tuple[str, object, pygame.Rect]] = []
        self._tooltip_rects: dict[str, pygame.Rect] = {}
        self._hover_tooltip_text = None
        self._tooltip_font = None
        self._tooltip_small_font = None

    def _ensure_font(self) -> pygame.font.Font:
        if self._font is None:
            self._font = pygame.font.Font(None, FONT_SIZE)
        return self._font

    def _ensure_tooltip_fonts(self) -> tuple[pygame.font.Font, pygame.font.Font]:
        if self._tooltip_font is None:
            self._tooltip_font = pygame.font.Font(None, TOOLTIP_FONT_SIZE)
            self._tooltip_small_font = pygame.font.Font(None, TOOLTIP_SMALL_FONT_SIZE)
        return self._tooltip_font, self._tooltip_small_font

    def get_params(self) -> dict:
        return self.params.copy()

    def draw(
        self,
        surface: pygame.Surface,
        tick_count: int = 0,
        dropped_ticks: int = 0,
        total: float | None = None,
    ) -> None:
        font = self._ensure_font()
        x, y = self.rect.x + 8, self.rect.y + 6
        line_h = 18
        gap = 4
        self._slider_rects.clear()
        self._button_rects.clear()
        self._tooltip_rects.clear()
        self._option_rects.clear()
        slider_w = self.rect.width - 16 - 44  # leave 44px for value text
        slider_h = 12

        surface.blit(font.render(f"Tick: {tick_count}", True, LABEL_COLOR), (x, y))
        if dropped_ticks:
            surface.blit(font.render(f"Dropped: {dropped_ticks}", True, WARN_COLOR), (x + 110, y))
        y += line_h
        if total is not None:
            surface.blit(font.render(f"Total: {total:.1f}", True, LABEL_COLOR), (x, y))
            y += line_h
        y += gap

        y = self._draw_dropdown(surface, font, "view_pollutant", "Pollutant", x, y,
                                [(n, n) for n in self.pollutant_names], self.params["view_pollutant"] or "—")
        y = self._draw_dropdown(surface, font, "view_mode", "View", x, y,
                                [(m, VIEW_MODE_LABELS[m]) for m in VIEW_MODES],
                                VIEW_MODE_LABELS.get(self.params["view_mode"], "Heat"))

        # Sliders: key, label, lo, hi, shown value, display string
        sliders = [
            ("grid_size", "Grid size (on restart)", 4, 256, self.params["grid_size"], str(self.params["grid_size"])),
            ("render_scale", "Render scale", 1, 4, self.params["render_scale"], str(self.params["render_scale"])),
            ("tick_rate", "Tick rate (1–30)", 1, 30, self.params["tick_rate"], str(self.params["tick_rate"])),
            ("wind_angle", "Wind angle", 0, 359, int(self.params["wind_angle"]), f"{int(self.params['wind_angle'])}°"),
            ("wind_strength", "Wind strength %", 0, 100, int(round(self.params["wind_strength"] * 100)),
             f"{int(round(self.params['wind_strength'] * 100))}%"),
            ("emission", "Emission", 1, 1000, int(self.params["emission"]), str(int(self.params["emission"]))),
        ]
        for key, text, lo, hi, value, value_str in sliders:
            row_y = y
            surface.blit(font.render(text, True, LABEL_COLOR), (x, y))
            y += line_h
            sr = _draw_slider(surface, x, y, slider_w, slider_h, value, lo, hi)
            _draw_slider_value(surface, font, x + slider_w + 4, y, value_str)
            self._slider_rects[key] = (sr, lo, hi)
            if key in tooltips.PARAM_TOOLTIPS:
                self._tooltip_rects[key] = pygame.Rect(x, row_y, self.rect.width - 16, line_h + slider_h + gap)
            y += slider_h + gap

        # Spill over borders: checked = mass leaving the grid is lost; unchecked = kept in the edge cell
        box = pygame.Rect(x, y + 2, 14, 14)
        pygame.draw.rect(surface, KNOB_COLOR if self.params["spill_over_borders"] else SLIDER_COLOR, box)
        pygame.draw.rect(surface, LABEL_COLOR, box, 1)
        surface.blit(font.render("Spill over borders", True, LABEL_COLOR), (x + 18, y + 2))
        self._button_rects["spill_over_borders"] = box.union(
            pygame.Rect(x, y, 18 + font.size("Spill over borders")[0], 18))
        y += 18 + gap

        # Start / Pause / Resume and Restart (side by side)
        btn_h = 26
        pause_rect = pygame.Rect(x, y, 100, btn_h)
        if self.params["paused"]:
            text = "Start" if tick_count == 0 else "Resume"
        else:
            text = "Pause"
        _draw_button(surface, font, pause_rect, text)
        self._button_rects["pause"] = pause_rect
        restart_rect = pygame.Rect(x + 104, y, 110, btn_h)
        _draw_button(surface, font, restart_rect, "Restart")
        self._button_rects["restart"] = restart_rect
        y += btn_h + gap

        y = self._draw_dropdown(surface, font, "config", "Config", x, y,
                                [(n, n) for n in config.list_configs()], self._selected_config or "—")

        # Name field, Save/Update config, and Delete config (when current config exists)
        surface.blit(font.render("Name", True, LABEL_COLOR), (x, y))
        y += line_h
        name_w = 140
        self._config_name_rect = pygame.Rect(x, y, name_w, 18)
        pygame.draw.rect(surface, SLIDER_COLOR, self._config_name_rect)
        display_name = self._config_name_buffer if self._config_name_focus else (self.params.get("config_name") or "")
        t = font.render(display_name[:24], True, LABEL_COLOR)
        surface.blit(t, (self._config_name_rect.x + 4, self._config_name_rect.y + 1))
        exists = display_name.strip() != "" and config.config_exists(display_name)
        save_btn_w = 120
        btn_rect = pygame.Rect(x + name_w + 6, y, save_btn_w, btn_h)
        _draw_button(surface, font, btn_rect, "Update config" if exists else "Save config")
        self._button_rects["save"] = btn_rect
        if exists:
            del_rect = pygame.Rect(x + name_w + 6 + save_btn_w + 6, y, 90, btn_h)
            _draw_button(surface, font, del_rect, "Delete config")
            self._button_rects["delete_config"] = del_rect

    def _draw_dropdown(self, surface, font, key: str, label: str, x: int, y: int,
                       options: list[tuple[object, str]], current: str) -> int:
        surface.blit(font.render(label, True, LABEL_COLOR), (x, y))
        y += 18
        rect = pygame.Rect(x, y, DROP_W, DROP_H)
        self._dropdown_rects[key] = rect
        pygame.draw.rect(surface, SLIDER_COLOR, rect)
        pygame.draw.polygon(surface, LABEL_COLOR, [(x + DROP_W - 12, y + 4), (x + DROP_W - 6, y + 4), (x + DROP_W - 9, y + 11)])
        surface.blit(font.render(str(current)[:24], True, LABEL_COLOR), (rect.x + 4, rect.y + 2))
        y += DROP_H + 4
        if self._open_dropdown == key:
            for value, text in options:
                opt_rect = pygame.Rect(x, y, DROP_W, DROP_H)
                hover = opt_rect.collidepoint(pygame.mouse.get_pos())
                pygame.draw.rect(surface, BUTTON_HOVER if hover else BUTTON_COLOR, opt_rect)
                surface.blit(font.render(text[:24], True, LABEL_COLOR), (opt_rect.x + 4, opt_rect.y + 2))
                self._option_rects.append((key, value, opt_rect))
                y += DROP_H + 1
            y += 4
        return y

    def update_hover_tooltip(self, pos: tuple[int, int]) -> None:
        self._hover_tooltip_text = None
        for key, r in self._tooltip_rects.items():
            if r.collidepoint(pos):
                self._hover_tooltip_text = tooltips.PARAM_TOOLTIPS.get(key)
                return

    def draw_tooltip(self, surface: pygame.Surface) -> None:
        tf, sf = self._ensure_tooltip_fonts()
        tooltips.draw_tooltip(surface, tf, sf, self._hover_tooltip_text, pygame.mouse.get_pos())

    def handle_event(self, event: pygame.event.Event) -> bool:
        """Returns True if event was consumed."""
        if event.type == pygame.MOUSEBUTTONDOWN:
            if not self.rect.collidepoint(event.pos):
                self._open_dropdown = None
                return False
            if getattr(self, "_config_name_rect", None) and self._config_name_rect.collidepoint(event.pos):
                self._config_name_focus = True
                self._config_name_buffer = self.params.get("config_name") or ""
                return True
            if self._config_name_focus:
                self._apply_config_name_buffer()
            self._config_name_focus = False
            for key, value, opt_rect in self._option_rects:
                if opt_rect.collidepoint(event.pos):
                    self._open_dropdown = None
                    if key == "config":
                        self._selected_config = value
                        if self.on_load_config:
                            self.on_load_config(value)
                    else:
                        self.params[key] = value
                    return True
            for key, rect in self._dropdown_rects.items():
                if rect.collidepoint(event.pos):
                    self._open_dropdown = None if self._open_dropdown == key else key
                    return True
            self._open_dropdown = None
            for key, (slider_rect, lo, hi) in self._slider_rects.items():
                if slider_rect.collidepoint(event.pos):
                    self._dragging = key
                    self._set_slider_value(key, event.pos, slider_rect, lo, hi)
                    return True
            for key, btn_rect in self._button_rects.items():
                if btn_rect.collidepoint(event.pos):
                    if key == "pause":
                        self.params["paused"] = not self.params["paused"]
                    elif key == "restart":
                        self.on_restart()
                    elif key == "spill_over_borders":
                        self.params["spill_over_borders"] = not self.params["spill_over_borders"]
                    elif key == "save":
                        if self._config_name_focus:
                            self._apply_config_name_buffer()
                        self.on_save()
                    elif key == "delete_config":
                        effective = (self.params.get("config_name") or "").strip() or "unnamed"
                        config.delete_config(effective)
                        if self._selected_config == config._sanitize_name(effective):
                            self._selected_config = None
                    return True
            return True
        if event.type == pygame.KEYDOWN and self._config_name_focus:
            if event.key == pygame.K_RETURN:
                self._config_name_focus = False
                self._apply_config_name_buffer()
            elif event.key == pygame.K_BACKSPACE:
                self._config_name_buffer = self._config_name_buffer[:-1]
            elif event.unicode and len(self._config_name_buffer) < 48:
                self._config_name_buffer += event.unicode
            return True
        if event.type == pygame.MOUSEBUTTONUP:
            self._dragging = None
        elif event.type == pygame.MOUSEMOTION:
            self.update_hover_tooltip(event.pos)
            if self._dragging is not None and self._dragging in self._slider_rects:
                sr, lo, hi = self._slider_rects[self._dragging]
                self._set_slider_value(self._dragging, event.pos, sr, lo, hi)
                return True
        return False

    def _apply_config_name_buffer(self) -> None:
        self.params["config_name"] = self._config_name_buffer.strip()[:64]
        self._config_name_buffer = ""

    def apply_config(self, cfg: dict) -> None:
        """Load a config dict into panel params (e.g. after loading a saved config)."""
        self.params["grid_size"] = cfg.get("grid_size", self.params["grid_size"])
        interval = cfg.get("tick_interval")
        if interval:
            self.params["tick_rate"] = max(1, min(30, int(round(1.0 / interval))))
        wind = cfg.get("wind", {})
        self.params["wind_angle"] = wind.get("angle", self.params["wind_angle"])
        self.params["wind_strength"] = wind.get("strength", self.params["wind_strength"])
        self.params["emission"] = cfg.get("emission_amount", self.params["emission"])
        self.params["spill_over_borders"] = cfg.get("spill_over_borders", True)
        self.params["render_scale"] = cfg.get("render_scale", self.params["render_scale"])
        self.params["view_mode"] = cfg.get("view_mode", self.params["view_mode"])
        self.pollutant_names = [p["name"] for p in cfg.get("pollutants", [])] or self.pollutant_names
        view = cfg.get("view_pollutant")
        self.params["view_pollutant"] = view if view in self.pollutant_names else (self.pollutant_names or [None])[0]

    def set_selected_config(self, name: str) -> None:
        """Called after save so dropdown shows the current config."""
        self._selected_config = name

    def _set_slider_value(self, key: str, pos: tuple[int, int], slider_rect: pygame.Rect, lo: int, hi: int) -> None:
        t = (pos[0] - slider_rect.x) / max(1, slider_rect.width - 8)
        t = max(0, min(1, t))
        val = int(lo + t * (hi - lo))
        if key == "wind_strength":
            self.params[key] = val / 100.0
        elif key == "emission":
            self.params[key] = float(val)
        else:
            self.params[key] = val

    def config_dict(self, base: dict) -> dict:
        """Panel state merged over base config (pollutants and other non-panel keys come from base)."""
        out = dict(base)
        out.update({
            "grid_size": self.params["grid_size"],
            "tick_interval": 1.0 / max(1, self.params["tick_rate"]),
            "wind": {"angle": self.params["wind_angle"], "strength": self.params["wind_strength"]},
            "emission_amount": self.params["emission"],
            "spill_over_borders": self.params["spill_over_borders"],
            "render_scale": self.params["render_scale"],
            "view_mode": self.params["view_mode"],
            "view_pollutant": self.params["view_pollutant"],
        })
        return out


def _draw_button(surface: pygame.Surface, font: pygame.font.Font, rect: pygame.Rect, text: str) -> None:
    color = BUTTON_HOVER if rect.collidepoint(pygame.mouse.get_pos()) else BUTTON_COLOR
    pygame.draw.rect(surface, color, rect)
    surface.blit(font.render(text, True, LABEL_COLOR), (rect.x + 6, rect.y + 4))


def _draw_slider(
    surface: pygame.Surface, x: int, y: int, w: int, h: int, value: int, vmin: int, vmax: int
) -> pygame.Rect:
    rect = pygame.Rect(x, y, w, h)
    pygame.draw.rect(surface, SLIDER_COLOR, rect)
    t = (value - vmin) / max(1, vmax - vmin)
    knob_x = x + 4 + int(t * (w - 8))
    pygame.draw.rect(surface, KNOB_COLOR, (knob_x, y, 8, h))
    return rect


def _draw_slider_value(
    surface: pygame.Surface, font: pygame.font.Font, x: int, y: int, value_str: str
) -> None:
    text = font.render(value_str, True, LABEL_COLOR)
    surface.blit(text, (x, y))
