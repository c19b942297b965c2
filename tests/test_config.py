import pytest

from springmass.config import SimConfig
from springmass.models import Vector3


def test_defaults_match_reference_scene():
    config = SimConfig().validate()
    assert (config.width, config.height) == (20, 20)
    assert config.gravity == (0.0, -980.0, 0.0)
    assert config.substeps == 100
    assert config.ground().normal == Vector3(0.0, 1.0, 0.0)
    obstacle = config.obstacle()
    assert obstacle.center == Vector3(0.0, 30.0, -5.0)
    assert obstacle.radius == 30.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"width": 1},
        {"height": 0},
        {"spacing": 0.0},
        {"particle_mass": 0.0},
        {"particle_mass": -1.0},
        {"jitter": -0.1},
        {"substeps": 0},
        {"fps": 0},
        {"drag": -0.01},
        {"friction": -1.0},
        {"spring_damping": -0.5},
        {"contact_distance": -1e-3},
        {"penetration_distance": -1e-5},
        {"surface_epsilon": -1e-4},
        {"slow_speed": -30.0},
        {"restitution": 1.5},
        {"sphere_radius": 0.0},
        {"ground_normal": (0.0, 0.0, 0.0)},
    ],
)
def test_validate_rejects(overrides):
    with pytest.raises(ValueError):
        SimConfig().with_overrides(**overrides)


def test_config_is_frozen():
    config = SimConfig()
    with pytest.raises(AttributeError):
        config.substeps = 5  # type: ignore[misc]


def test_from_env_overrides():
    env = {
        "SPRINGMASS_SUBSTEPS": "200",
        "SPRINGMASS_GRAVITY": "0,-9.8,0",
        "SPRINGMASS_FRICTION": "0.5",
        "SPRINGMASS_SEED": "17",
        "UNRELATED": "x",
    }
    config = SimConfig.from_env(env)
    assert config.substeps == 200
    assert config.gravity == (0.0, -9.8, 0.0)
    assert config.friction == 0.5
    assert config.seed == 17
    assert config.width == 20


def test_from_env_reads_process_environment(monkeypatch):
    monkeypatch.setenv("SPRINGMASS_WIDTH", "8")
    assert SimConfig.from_env().width == 8


@pytest.mark.parametrize(
    "name,value",
    [
        ("SPRINGMASS_SUBSTEPS", "many"),
        ("SPRINGMASS_GRAVITY", "0,-9.8"),
        ("SPRINGMASS_SUBSTEPS", "0"),
    ],
)
def test_from_env_rejects_bad_values(name, value):
    with pytest.raises(ValueError):
        SimConfig.from_env({name: value})


def test_from_env_rejects_negative_contact_threshold():
    with pytest.raises(ValueError, match="slow_speed"):
        SimConfig.from_env({"SPRINGMASS_SLOW_SPEED": "-1"})
