import logging
import sys

import moderngl
import pygame

from springmass.config import SimConfig
from springmass.logging_config import setup_logging
from springmass.mesh.grid import pinned_indices
from springmass.renderer import Renderer
from springmass.simulation import ClothSimulation

logger = logging.getLogger(__name__)

CONTROLS = """
============================================================
Camera:
  Arrow Keys      - Rotate camera
  +/-             - Zoom in/out
Simulation:
  Space           - Pause/Resume physics
  R               - Reset cloth
  1 / 2           - Toggle pin of the first / second corner
  Esc             - Quit
============================================================"""


def main() -> None:
    setup_logging(logging.INFO)
    config = SimConfig.from_env()

    # 1. Physics
    sim = ClothSimulation(config)
    sim.initialize()
    pin_keys = dict(zip((pygame.K_1, pygame.K_2), pinned_indices(config.width)))

    # 2. Window + GL context
    width, height = 1000, 800
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_mode((width, height), pygame.OPENGL | pygame.DOUBLEBUF)
    pygame.display.set_caption("Spring-Mass Cloth")
    ctx = moderngl.create_context()

    renderer = Renderer(
        ctx,
        sim.ground,
        sim.obstacle,
        len(sim.particles),
        len(sim.springs),
        width,
        height,
    )

    running = True
    paused = False
    camera_rot = [0.3, 0.4]
    distance = 250.0
    frame_count = 0
    dt = 1.0 / config.fps

    print(CONTROLS)

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    paused = not paused
                    logger.info(f"Physics {'PAUSED' if paused else 'RESUMED'}")
                elif event.key == pygame.K_r:
                    sim.initialize()
                    logger.info("Simulation RESET")
                elif event.key in pin_keys:
                    sim.toggle_pin(pin_keys[event.key])

        # Continuous input
        keys = pygame.key.get_pressed()
        if keys[pygame.K_LEFT]:
            camera_rot[1] -= 0.03
        if keys[pygame.K_RIGHT]:
            camera_rot[1] += 0.03
        if keys[pygame.K_UP]:
            camera_rot[0] -= 0.03
        if keys[pygame.K_DOWN]:
            camera_rot[0] += 0.03
        if keys[pygame.K_EQUALS] or keys[pygame.K_PLUS]:
            distance = max(20.0, distance - 3.0)
        if keys[pygame.K_MINUS]:
            distance += 3.0

        # Physics update, then read state for this frame
        if not paused:
            sim.advance(dt)

        renderer.draw(
            sim.positions(),
            sim.segments(),
            sim.solver.fixed,
            camera_rot,
            distance,
        )
        pygame.display.flip()

        if frame_count % 30 == 0:
            status = "EXPLODED" if sim.is_exploded else ("paused" if paused else "running")
            pygame.display.set_caption(
                f"Spring-Mass Cloth - {status} | FPS:{clock.get_fps():.0f} | "
                f"Substeps:{config.substeps}"
            )

        clock.tick(config.fps)
        frame_count += 1

    logger.info("Shutting down...")
    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
