"""
Interactive pygame window for the bacteria evolution simulation.

Left: the world (nutrient/toxicity layers + bacteria). Right: sliders for the
environment, starting population and speed. Below: population chart.

Keys: SPACE start/stop, S single step, R reset, N / T toggle nutrient /
toxicity layers, P toggle chart.

$ python -m bacteria_evolution.bacteria_pygame_ui
"""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pygame

from bacteria_evolution.plot_statistics import plot_population
from bacteria_evolution.presets import get_bacteria_preset, get_environment_preset
from bacteria_evolution.renderer import draw
from bacteria_evolution.simulation import DEFAULT_POPULATION, Simulation

# --- UI Constants ---
WIDTH, HEIGHT = 800, 600
PLOT_HEIGHT = 260
SIDE_PANEL_WIDTH = 380
WINDOW_HEIGHT = HEIGHT + PLOT_HEIGHT + 40
WINDOW_WIDTH = WIDTH + SIDE_PANEL_WIDTH
FPS = 30
PLOT_EVERY = 15  # frames between chart redraws

# Colors
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
GREEN = (0, 160, 0)
RED = (200, 0, 0)


class Slider:
    def __init__(self, x, y, w, label, minval, maxval, value, font, param_name, step=1.0):
        self.x = x
        self.y = y
        self.w = w
        self.rect = pygame.Rect(x, y, w, 36)
        self.label = label
        self.minval = minval
        self.maxval = maxval
        self.value = value
        self.font = font
        self.param_name = param_name
        self.step = step
        self.dragging = False

    def draw(self, screen):
        label_surf = self.font.render(f'{self.label}: {self.value:.2f}', True, BLACK)
        screen.blit(label_surf, (self.rect.x, self.rect.y))
        bar_y = self.rect.y + label_surf.get_height() + 8
        bar_height = 10
        bar_rect = pygame.Rect(self.rect.x, bar_y, self.rect.w, bar_height)
        pygame.draw.rect(screen, (180, 180, 255), bar_rect)
        pos = int((self.value - self.minval) / (self.maxval - self.minval) * self.rect.w)
        knob_w, knob_h = 14, 24
        handle_rect = pygame.Rect(self.rect.x + pos - knob_w // 2, bar_y + bar_height // 2 - knob_h // 2, knob_w, knob_h)
        pygame.draw.rect(screen, (80, 80, 200), handle_rect)

    def handle_event(self, event):
        """Returns True when the value changed."""
        if event.type == pygame.MOUSEBUTTONDOWN and self.rect.collidepoint(event.pos):
            self.dragging = True
            return self._set_from_x(event.pos[0])
        if event.type == pygame.MOUSEBUTTONUP:
            self.dragging = False
        elif event.type == pygame.MOUSEMOTION and self.dragging:
            return self._set_from_x(event.pos[0])
        return False

    def _set_from_x(self, px):
        relx = min(max(px - self.rect.x, 0), self.rect.w)
        raw_value = self.minval + (self.maxval - self.minval) * relx / self.rect.w
        # Snap to step size
        steps = round((raw_value - self.minval) / self.step)
        value = min(max(self.minval + steps * self.step, self.minval), self.maxval)
        changed = value != self.value
        self.value = value
        return changed


class SimulationUI:
    def __init__(self, env_preset="neutral", bacteria_preset="balanced", population=DEFAULT_POPULATION):
        self.sim = Simulation(
            environment_params={**get_environment_preset(env_preset), "width": WIDTH, "height": HEIGHT},
            initial_traits=get_bacteria_preset(bacteria_preset),
            initial_population=population,
        )
        self.snapshot = self.sim.snapshot()
        self.show_nutrients = True
        self.show_toxicity = True

    def tick(self):
        """One frame: run the controller `steps_per_tick` times."""
        for _ in range(self.sim.steps_per_tick):
            self.snapshot = self.sim.step()

    def single_step(self):
        was_running = self.sim.running
        self.sim.start()
        self.snapshot = self.sim.step()
        if not was_running:
            self.sim.pause()

    def reset(self):
        self.sim.pause()
        self.snapshot = self.sim.reset()

    def apply_slider(self, slider):
        name, value = slider.param_name, slider.value
        if name == "initial_population":
            self.sim.set_initial_population(int(value))
        elif name == "speed":
            self.sim.set_speed(value)
        elif name == "carrying_capacity":
            self.sim.set_environment_parameters(carrying_capacity=int(value))
        else:
            self.sim.set_environment_parameters({name: value})
        self.snapshot = self.sim.snapshot()


def plot_surface(snapshot):
    fig = plot_population(snapshot)
    fig.set_size_inches(WIDTH / 100, PLOT_HEIGHT / 100)
    fig.set_dpi(100)
    fig.canvas.draw()
    w, h = fig.canvas.get_width_height()
    img = pygame.image.frombuffer(bytes(fig.canvas.buffer_rgba()), (w, h), "RGBA")
    plt.close(fig)
    return img


def draw_text(screen, text, pos, font, color=BLACK):
    surf = font.render(text, True, color)
    screen.blit(surf, pos)


def main():
    pygame.init()
    screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
    pygame.display.set_caption('Bacteria Evolution (Pygame)')
    clock = pygame.time.Clock()
    font = pygame.font.SysFont(None, 22)
    ui = SimulationUI()
    world = pygame.Surface((WIDTH, HEIGHT))

    params = ui.sim.environment.params
    slider_gap = 52
    slider_x = WIDTH + 30
    slider_y = 10
    sliders = [
        Slider(slider_x, slider_y + i * slider_gap, 260, label, minv, maxv, val, font, pname, step)
        for i, (label, minv, maxv, val, pname, step) in enumerate([
            ('temperature', 0, 100, params.temperature, 'temperature', 1),
            ('pH', 0, 14, params.ph, 'ph', 0.1),
            ('nutrients', 0, 10, params.nutrients, 'nutrients', 0.1),
            ('toxicity', 0, 1, params.toxicity, 'toxicity', 0.01),
            ('antibiotics', 0, 1, params.antibiotics, 'antibiotics', 0.01),
            ('carrying-capacity', 50, 500, params.carrying_capacity, 'carrying_capacity', 10),
            ('initial-population', 0, 200, ui.sim.initial_population, 'initial_population', 1),
            ('speed', 0.5, 10, ui.sim.speed, 'speed', 0.5),
        ])
    ]
    stats_y = slider_y + len(sliders) * slider_gap + 10

    plot_visible = True
    plot_img = None
    frame = 0
    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                continue
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    ui.sim.toggle()
                elif event.key == pygame.K_s:
                    ui.single_step()
                elif event.key == pygame.K_r:
                    ui.reset()
                elif event.key == pygame.K_n:
                    ui.show_nutrients = not ui.show_nutrients
                elif event.key == pygame.K_t:
                    ui.show_toxicity = not ui.show_toxicity
                elif event.key == pygame.K_p:
                    plot_visible = not plot_visible
            for slider in sliders:
                if slider.handle_event(event):
                    ui.apply_slider(slider)
                    break

        if ui.sim.running:
            ui.tick()

        snap = ui.snapshot
        draw(world, snap, show_nutrients=ui.show_nutrients, show_toxicity=ui.show_toxicity)

        screen.fill(WHITE)
        screen.blit(world, (0, 0))
        for slider in sliders:
            slider.draw(screen)

        state = 'Running' if snap.running else 'Stopped'
        draw_text(screen, f'{state}  (SPACE start/stop, S step, R reset)', (slider_x, stats_y), font)
        draw_text(screen, f'Generation: {snap.generation}', (slider_x, stats_y + 28), font)
        draw_text(screen, f'Population: {snap.population}', (slider_x, stats_y + 52), font)
        draw_text(screen, f'Extinction events: {len(snap.statistics.extinction_events)}', (slider_x, stats_y + 76), font)
        draw_text(screen, f'Nutrients [N]: {"on" if ui.show_nutrients else "off"}', (slider_x, stats_y + 100), font, GREEN)
        draw_text(screen, f'Toxicity [T]: {"on" if ui.show_toxicity else "off"}', (slider_x, stats_y + 124), font, RED)

        if plot_visible:
            if plot_img is None or frame % PLOT_EVERY == 0:
                plot_img = plot_surface(snap)
            screen.blit(plot_img, (0, HEIGHT + 20))

        pygame.display.flip()
        clock.tick(FPS)
        frame += 1
    pygame.quit()


if __name__ == '__main__':
    main()
