import numpy as np
from numpy.testing import assert_allclose
import pytest

from springmass.config import SimConfig
from springmass.mesh.grid import pinned_indices
from springmass.models import SpringKind
from springmass.simulation import ClothSimulation


def test_requires_initialize():
    sim = ClothSimulation(SimConfig(width=3, height=3))
    assert not sim.initialized
    with pytest.raises(RuntimeError):
        sim.advance(1 / 60)


def test_initialize_builds_pinned_cloth(small_config):
    sim = ClothSimulation(small_config)
    sim.initialize()
    w, h = small_config.width, small_config.height

    assert len(sim.particles) == w * h
    fixed = [p.index for p in sim.particles if p.fixed]
    assert fixed == list(pinned_indices(w))

    kinds = {kind: 0 for kind in SpringKind}
    for s in sim.springs:
        kinds[s.kind] += 1
    assert kinds[SpringKind.STRUCTURAL] == h * (w - 1) + w * (h - 1)
    assert kinds[SpringKind.SHEAR] == 4 * (w - 1) * (h - 1)
    assert kinds[SpringKind.BEND] == h * (w - 2) + w * (h - 2)


def test_reinitialize_resets_state(small_config):
    sim = ClothSimulation(small_config)
    sim.initialize()
    start = sim.positions()
    sim.toggle_pin(0)
    sim.advance(1 / 60)
    assert not np.allclose(sim.positions(), start)

    sim.initialize()
    assert sim.particles[0].fixed
    assert_allclose(sim.positions()[:, :2], start[:, :2])
    assert_allclose(sim.solver.vel, 0.0)


def test_cloth_hangs_from_pins(small_config):
    sim = ClothSimulation(small_config)
    sim.initialize()
    start = sim.positions()
    pins = list(pinned_indices(small_config.width))

    for _ in range(30):
        sim.advance(1 / 60)

    pos = sim.positions()
    assert not sim.is_exploded
    assert np.isfinite(pos).all()
    assert np.array_equal(pos[pins], start[pins])
    free = np.setdiff1d(np.arange(len(pos)), pins)
    assert pos[free, 1].mean() < start[free, 1].mean()


def test_toggle_pin_releases_corner(small_config):
    sim = ClothSimulation(small_config)
    sim.initialize()
    corner = pinned_indices(small_config.width)[1]
    y0 = sim.positions()[corner, 1]

    assert sim.toggle_pin(corner) is False
    for _ in range(10):
        sim.advance(1 / 60)
    assert sim.positions()[corner, 1] < y0

    with pytest.raises(IndexError):
        sim.toggle_pin(small_config.width * small_config.height)


@pytest.mark.slow
def test_default_cloth_drapes_without_penetrating_ground():
    config = SimConfig(seed=3)
    sim = ClothSimulation(config)
    sim.initialize()
    sim.toggle_pin(0)
    sim.toggle_pin(config.width - 1)

    for _ in range(240):
        sim.advance(1 / 60)
        assert sim.positions()[:, 1].min() >= -config.penetration_distance

    assert not sim.is_exploded
    segments = sim.segments()
    assert segments.shape == (len(sim.springs), 2, 3)


def test_obstacles_stay_in_sync_with_solver(small_config):
    sim = ClothSimulation(small_config)
    sim.initialize()
    with pytest.raises(AttributeError):
        sim.obstacle.center.y = 500.0  # type: ignore[misc]
    with pytest.raises(AttributeError):
        sim.ground.normal.x = 1.0  # type: ignore[misc]

    assert_allclose(sim.solver._center, tuple(sim.obstacle.center))
    assert_allclose(sim.solver._plane_n, tuple(sim.ground.normal))
    assert_allclose(np.linalg.norm(sim.solver._plane_n), 1.0)
