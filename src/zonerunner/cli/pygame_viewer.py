from __future__ import annotations

import argparse
import importlib.metadata
import os
import platform
import sys
from typing import Any

from zonerunner.content.io import DEFAULT_MAP_PATH, MapFormatError, load_map_json
from zonerunner.sim.core import TICK_RATE_HZ, ZoneConfigurationError, ZoneSession
from zonerunner.sim.hash import map_hash, session_hash
from zonerunner.sim.phases import TurnPhase
from zonerunner.sim.player import Direction
from zonerunner.sim.world import EntityType, Position, TileKind

CELL_SIZE = 28
HUD_HEIGHT = 190
VIEWPORT_MARGIN = 12
DEFAULT_SEED = 7

TERRAIN_COLORS: dict[TileKind, tuple[int, int, int]] = {
    TileKind.FLOOR: (58, 58, 64),
    TileKind.WALL: (22, 22, 26),
}
ENTITY_COLORS: dict[EntityType, tuple[int, int, int]] = {
    EntityType.GRAVITATIONAL_ANOMALY: (120, 80, 200),
    EntityType.PHILOSOPHER_STONE: (230, 200, 90),
    EntityType.RUST_ANOMALY: (170, 90, 40),
    EntityType.PLAYER_START: (70, 140, 90),
    EntityType.EXIT: (80, 160, 255),
    EntityType.LAMP_POST: (240, 240, 200),
}
ITEM_COLOR = (140, 225, 255)
PLAYER_COLOR = (255, 243, 130)
CAPTURED_PLAYER_COLOR = (255, 90, 90)

pygame: Any | None = None


def _window_size(session: ZoneSession) -> tuple[int, int]:
    width = session.zone_map.width * CELL_SIZE + VIEWPORT_MARGIN * 2
    height = session.zone_map.height * CELL_SIZE + VIEWPORT_MARGIN * 2 + HUD_HEIGHT
    return max(width, 640), height


def _key_bindings(pygame_module: Any) -> dict[int, Direction]:
    return {
        pygame_module.K_w: Direction.NORTH,
        pygame_module.K_s: Direction.SOUTH,
        pygame_module.K_d: Direction.EAST,
        pygame_module.K_a: Direction.WEST,
    }


class SessionInputAdapter:
    """Keyboard adapter; the session remains the source of truth."""

    def __init__(self, session: ZoneSession, bindings: dict[int, Direction], keys: Any) -> None:
        self.session = session
        self.bindings = bindings
        self.keys = keys

    def handle_key(self, key: int) -> None:
        session = self.session
        phase = session.phase
        direction = self.bindings.get(key)

        if phase is TurnPhase.ENTERING_ZONE:
            if key in (self.keys.K_RETURN, self.keys.K_SPACE, self.keys.K_e):
                session.close_briefing()
        elif phase in (TurnPhase.EXITING_ZONE, TurnPhase.PLAYER_DEAD):
            if key in (self.keys.K_RETURN, self.keys.K_SPACE, self.keys.K_e):
                session.confirm()
        elif phase is TurnPhase.PLAYER_TURN:
            if direction is not None:
                session.apply_move(direction)
            elif key == self.keys.K_e:
                session.open_inspect()
            elif key == self.keys.K_TAB:
                session.open_inventory()
            elif key == self.keys.K_q:
                session.begin_bolt_throw()
        elif phase is TurnPhase.INSPECTING_ITEMS:
            if key == self.keys.K_ESCAPE:
                session.close_inspect()
            elif self.keys.K_1 <= key <= self.keys.K_9 and session.player is not None:
                session.pickup(session.player.position, key - self.keys.K_1)
        elif phase is TurnPhase.VIEWING_INVENTORY:
            if key in (self.keys.K_ESCAPE, self.keys.K_TAB):
                session.close_inventory()
            elif self.keys.K_1 <= key <= self.keys.K_9:
                session.drop(key - self.keys.K_1)
        elif phase is TurnPhase.THROWING_BOLT:
            if key == self.keys.K_ESCAPE:
                session.cancel_bolt_throw()
            elif direction is not None:
                session.throw_bolt(direction)


def _cell_rect(position: Position) -> Any:
    return pygame.Rect(
        VIEWPORT_MARGIN + position.x * CELL_SIZE,
        VIEWPORT_MARGIN + position.y * CELL_SIZE,
        CELL_SIZE,
        CELL_SIZE,
    )


def _draw_world(screen: Any, session: ZoneSession) -> None:
    zone_map = session.zone_map
    for y in range(zone_map.height):
        for x in range(zone_map.width):
            position = Position(x, y)
            rect = _cell_rect(position)
            tile = zone_map.grid.get_tile(x, y)
            pygame.draw.rect(screen, TERRAIN_COLORS[tile.kind], rect)
            pygame.draw.rect(screen, (35, 35, 40), rect, 1)
            entity_types = zone_map.entity_types_at(position)
            if entity_types:
                pygame.draw.rect(screen, ENTITY_COLORS[entity_types[0]], rect.inflate(-6, -6))
    for record in zone_map.iter_ground_items():
        pygame.draw.circle(screen, ITEM_COLOR, _cell_rect(record.position).center, 4)

    player = session.player
    if player is not None:
        color = CAPTURED_PLAYER_COLOR if player.is_captured else PLAYER_COLOR
        center = _cell_rect(player.position).center
        pygame.draw.circle(screen, color, center, CELL_SIZE // 3)
        pygame.draw.circle(screen, (15, 15, 15), center, CELL_SIZE // 3, 1)


def _hud_lines(session: ZoneSession) -> list[str]:
    player = session.player
    lines = [f"turn={session.turn_counter} | phase={session.phase.value}"]
    if player is not None:
        threshold = session.capacity.threshold(captured=player.is_captured)
        status = f"weight={player.carry_weight()}/{threshold}"
        if player.is_captured:
            status += f" | capture_timer={player.capture_timer}"
        if session.metal_detected():
            status += " | detector: BEEP"
        lines.append(status)

    if session.phase is TurnPhase.INSPECTING_ITEMS and player is not None:
        record = session.zone_map.ground_items_at(player.position)
        items = record.items if record is not None else []
        lines.append("pick up: " + ", ".join(f"{index + 1}={item.name}" for index, item in enumerate(items[:9])))
    elif session.phase is TurnPhase.VIEWING_INVENTORY and player is not None:
        items = player.inventory.items
        lines.append("drop: " + ", ".join(f"{index + 1}={item.name}" for index, item in enumerate(items[:9])))
    elif session.phase is TurnPhase.ENTERING_ZONE:
        lines.extend(f"contract: {contract.description}" for contract in session.contracts.contracts)
    elif session.phase is TurnPhase.EXITING_ZONE:
        lines.extend(
            f"{'[done]' if status.completed else '[open]'} {status.description}"
            for status in session.validate_contracts()
        )
    else:
        lines.append("WASD move | E inspect | TAB inventory | Q bolt | ESC close/quit")
    lines.extend(session.messages)
    return lines


def _draw_hud(screen: Any, session: ZoneSession, font: Any) -> None:
    y = VIEWPORT_MARGIN * 2 + session.zone_map.height * CELL_SIZE
    for line in _hud_lines(session):
        surface = font.render(line, True, (240, 240, 240))
        screen.blit(surface, (VIEWPORT_MARGIN, y))
        y += 20


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m zonerunner.cli.pygame_viewer",
        description="Run the Zone pygame viewer.",
    )
    parser.add_argument("--map-path", default=DEFAULT_MAP_PATH, help="Path to zone map JSON.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Master seed for the effect RNG stream.")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Force SDL dummy video driver for CI/testing and exit without opening a real window.",
    )
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        "[zonerunner.viewer] startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )
    for name in ("SDL_VIDEODRIVER", "SDL_AUDIODRIVER"):
        value = os.environ.get(name, "<unset>")
        print(f"[zonerunner.viewer] env {name}={value}")


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _build_viewer_session(map_path: str, seed: int) -> ZoneSession:
    zone_map = load_map_json(map_path)
    session = ZoneSession(zone_map, seed=seed)
    session.start()
    print(
        "[zonerunner.viewer] loaded "
        f"path={map_path} seed={seed} "
        f"map_hash={map_hash(zone_map)} "
        f"session_hash={session_hash(session)}"
    )
    return session


def run_pygame_viewer(
    map_path: str = DEFAULT_MAP_PATH,
    *,
    seed: int = DEFAULT_SEED,
    headless: bool = False,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print("[zonerunner.viewer] warning: headless mode active; no window will open.")

    _print_startup_banner()

    try:
        session = _build_viewer_session(map_path, seed)
    except (MapFormatError, ZoneConfigurationError) as exc:
        print(f"[zonerunner.viewer] failed to initialize session: {exc}", file=sys.stderr)
        return 1

    pygame_module = _ensure_pygame_imported()
    try:
        pygame_module.init()
    except pygame_module.error as exc:
        print(
            "[zonerunner.viewer] failed during pygame.init(): "
            f"{exc}. Hint: verify a working SDL video driver (set SDL_VIDEODRIVER=dummy for headless mode).",
            file=sys.stderr,
        )
        return 1

    window_size = _window_size(session)
    try:
        pygame_module.display.set_caption("Zone")
        screen = pygame_module.display.set_mode(window_size)
    except pygame_module.error as exc:
        print(
            "[zonerunner.viewer] failed during pygame.display.set_mode(...): "
            f"{exc}. Hint: GUI sessions require a valid display; use --headless or ZONERUNNER_HEADLESS=1.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    print(f"[zonerunner.viewer] display initialized: {pygame_module.display.get_driver()}, window size={window_size}")

    if headless:
        session.update()
        pygame_module.quit()
        return 0

    adapter = SessionInputAdapter(session, _key_bindings(pygame_module), pygame_module)
    font = pygame_module.font.SysFont("monospace", 16)
    clock = pygame_module.time.Clock()
    tick_seconds = 1.0 / TICK_RATE_HZ
    accumulator = 0.0
    running = True

    while running:
        accumulator += clock.tick(60) / 1000.0

        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN:
                if event.key == pygame_module.K_ESCAPE and session.phase is TurnPhase.PLAYER_TURN:
                    running = False
                else:
                    adapter.handle_key(event.key)

        while accumulator >= tick_seconds:
            session.update()
            accumulator -= tick_seconds

        screen.fill((17, 18, 25))
        _draw_world(screen, session)
        _draw_hud(screen, session, font)
        pygame_module.display.flip()

    print(f"[zonerunner.viewer] exit turn={session.turn_counter} session_hash={session_hash(session)}")
    pygame_module.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    headless = args.headless or _env_flag_enabled("ZONERUNNER_HEADLESS")
    raise SystemExit(run_pygame_viewer(map_path=args.map_path, seed=args.seed, headless=headless))


if __name__ == "__main__":
    main()
