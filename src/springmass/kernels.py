# kernels.py
"""
Numba kernels for the mass-spring cloth.

Per-particle kernels take 1-D views of length 3 (``x``, ``v``, ``f``) so the
same code serves a single :class:`~springmass.solver.Particle` handle and the
batch kernels below, which loop over rows of the solver arena. Nothing here
allocates: all vector math is written out component-wise.
"""

from numba import njit, prange  # type: ignore
import numpy as np

# Below this a spring direction or a sphere normal is treated as undefined
DEGENERATE_LENGTH = 1e-9


# ===============================
# PER-PARTICLE KERNELS
# ===============================


@njit(cache=True)  # type: ignore
def dot3(a: np.ndarray, b: np.ndarray) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


@njit(cache=True)  # type: ignore
def clear_force(f: np.ndarray) -> None:
    f[0] = 0.0
    f[1] = 0.0
    f[2] = 0.0


@njit(cache=True)  # type: ignore
def add_force(f: np.ndarray, force: np.ndarray) -> None:
    """Accumulate ``force``; pinned particles accumulate too."""
    f[0] += force[0]
    f[1] += force[1]
    f[2] += force[2]


@njit(cache=True)  # type: ignore
def step_particle(
    x: np.ndarray, v: np.ndarray, f: np.ndarray, mass: float, fixed: bool, dt: float
) -> None:
    """Semi-implicit Euler: velocity from force first, then position from the new velocity."""
    if fixed:
        v[0] = 0.0
        v[1] = 0.0
        v[2] = 0.0
        return
    scale = dt / mass
    for k in range(3):
        v[k] += f[k] * scale
        x[k] += v[k] * dt


@njit(cache=True)  # type: ignore
def is_contacting_plane(
    x: np.ndarray,
    v: np.ndarray,
    plane_p: np.ndarray,
    plane_n: np.ndarray,
    contact_distance: float,
    slow_speed: float,
) -> bool:
    dist = (
        (x[0] - plane_p[0]) * plane_n[0]
        + (x[1] - plane_p[1]) * plane_n[1]
        + (x[2] - plane_p[2]) * plane_n[2]
    )
    return dist < contact_distance and abs(dot3(v, plane_n)) < slow_speed


@njit(cache=True)  # type: ignore
def is_contacting_sphere(
    x: np.ndarray,
    v: np.ndarray,
    center: np.ndarray,
    radius: float,
    surface_epsilon: float,
    slow_speed: float,
) -> bool:
    dx = x[0] - center[0]
    dy = x[1] - center[1]
    dz = x[2] - center[2]
    dist = np.sqrt(dx * dx + dy * dy + dz * dz)
    if dist >= radius + surface_epsilon or dist < DEGENERATE_LENGTH:
        return False
    vn = (v[0] * dx + v[1] * dy + v[2] * dz) / dist
    return abs(vn) < slow_speed


@njit(cache=True)  # type: ignore
def _apply_friction(
    v: np.ndarray,
    f: np.ndarray,
    mass: float,
    nx: float,
    ny: float,
    nz: float,
    dt: float,
    friction: float,
) -> None:
    fn = f[0] * nx + f[1] * ny + f[2] * nz
    vn = v[0] * nx + v[1] * ny + v[2] * nz
    vtx = v[0] - vn * nx
    vty = v[1] - vn * ny
    vtz = v[2] - vn * nz
    vt_len = np.sqrt(vtx * vtx + vty * vty + vtz * vtz)

    # Coulomb friction against the tangential velocity, never strong enough
    # to reverse it inside one substep (static lock instead)
    ffx = 0.0
    ffy = 0.0
    ffz = 0.0
    if vt_len > 0.0:
        magnitude = friction * abs(fn)
        if magnitude * dt > vt_len * mass:
            scale = -mass / dt
            ffx = vtx * scale
            ffy = vty * scale
            ffz = vtz * scale
        else:
            scale = -magnitude / vt_len
            ffx = vtx * scale
            ffy = vty * scale
            ffz = vtz * scale

    # Friction in, normal component out
    f[0] += ffx - fn * nx
    f[1] += ffy - fn * ny
    f[2] += ffz - fn * nz


@njit(cache=True)  # type: ignore
def resolve_contact_plane(
    x: np.ndarray,
    v: np.ndarray,
    f: np.ndarray,
    mass: float,
    plane_p: np.ndarray,
    plane_n: np.ndarray,
    dt: float,
    friction: float,
    contact_distance: float,
    slow_speed: float,
) -> bool:
    if not is_contacting_plane(x, v, plane_p, plane_n, contact_distance, slow_speed):
        return False
    _apply_friction(v, f, mass, plane_n[0], plane_n[1], plane_n[2], dt, friction)
    return True


@njit(cache=True)  # type: ignore
def resolve_contact_sphere(
    x: np.ndarray,
    v: np.ndarray,
    f: np.ndarray,
    mass: float,
    center: np.ndarray,
    radius: float,
    dt: float,
    friction: float,
    surface_epsilon: float,
    slow_speed: float,
) -> bool:
    if not is_contacting_sphere(x, v, center, radius, surface_epsilon, slow_speed):
        return False
    dx = x[0] - center[0]
    dy = x[1] - center[1]
    dz = x[2] - center[2]
    dist = np.sqrt(dx * dx + dy * dy + dz * dz)
    _apply_friction(v, f, mass, dx / dist, dy / dist, dz / dist, dt, friction)
    return True


@njit(cache=True)  # type: ignore
def resolve_collision_plane(
    x: np.ndarray,
    v: np.ndarray,
    plane_p: np.ndarray,
    plane_n: np.ndarray,
    restitution: float,
    penetration_distance: float,
) -> bool:
    dist = (
        (x[0] - plane_p[0]) * plane_n[0]
        + (x[1] - plane_p[1]) * plane_n[1]
        + (x[2] - plane_p[2]) * plane_n[2]
    )
    vn = dot3(v, plane_n)
    if not (dist < penetration_distance and vn < 0.0):
        return False
    # v = vT - restitution * vN, then project back onto the surface
    bounce = (1.0 + restitution) * vn
    for k in range(3):
        v[k] -= bounce * plane_n[k]
        x[k] -= dist * plane_n[k]
    return True


@njit(cache=True)  # type: ignore
def resolve_collision_sphere(
    x: np.ndarray,
    v: np.ndarray,
    center: np.ndarray,
    radius: float,
    restitution: float,
    surface_epsilon: float,
) -> bool:
    dx = x[0] - center[0]
    dy = x[1] - center[1]
    dz = x[2] - center[2]
    dist = np.sqrt(dx * dx + dy * dy + dz * dz)
    if dist >= radius + surface_epsilon or dist < DEGENERATE_LENGTH:
        return False
    if v[0] * dx + v[1] * dy + v[2] * dz >= 0.0:
        return False
    nx = dx / dist
    ny = dy / dist
    nz = dz / dist
    bounce = (1.0 + restitution) * (v[0] * nx + v[1] * ny + v[2] * nz)
    v[0] -= bounce * nx
    v[1] -= bounce * ny
    v[2] -= bounce * nz
    # Position is left inside the sphere; only the plane projects penetration out
    return True


@njit(cache=True)  # type: ignore
def spring_force(
    xa: np.ndarray,
    va: np.ndarray,
    fa: np.ndarray,
    xb: np.ndarray,
    vb: np.ndarray,
    fb: np.ndarray,
    rest_length: float,
    stiffness: float,
    damping: float,
) -> None:
    """Damped Hooke force; ``fa`` and ``fb`` receive exact negatives of each other."""
    dx = xb[0] - xa[0]
    dy = xb[1] - xa[1]
    dz = xb[2] - xa[2]
    length = np.sqrt(dx * dx + dy * dy + dz * dz)
    if length < DEGENERATE_LENGTH:
        return
    ux = dx / length
    uy = dy / length
    uz = dz / length

    rel_v = (vb[0] - va[0]) * ux + (vb[1] - va[1]) * uy + (vb[2] - va[2]) * uz
    s = stiffness * (length - rest_length) + damping * rel_v

    fx = s * ux
    fy = s * uy
    fz = s * uz
    fa[0] += fx
    fa[1] += fy
    fa[2] += fz
    fb[0] -= fx
    fb[1] -= fy
    fb[2] -= fz


# ===============================
# BATCH KERNELS
# ===============================


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def apply_global_forces(
    force: np.ndarray,
    vel: np.ndarray,
    mass: np.ndarray,
    gravity: np.ndarray,
    drag: float,
) -> None:
    """Gravity ``m * g`` plus linear drag ``-drag * v`` on every particle."""
    for i in prange(len(force)):
        m = mass[i]
        for k in range(3):
            force[i, k] += m * gravity[k] - drag * vel[i, k]


def color_springs(
    spring_i: np.ndarray,
    spring_j: np.ndarray,
    num_points: int,
) -> list[np.ndarray]:
    """Returns list of arrays, each array is indices of springs sharing no particle."""
    colors = np.full(len(spring_i), -1, dtype=np.int32)
    neighbor_colors: list[set[int]] = [set() for _ in range(num_points)]

    for s in range(len(spring_i)):
        a, b = spring_i[s], spring_j[s]
        used = neighbor_colors[a] | neighbor_colors[b]
        c = 0
        while c in used:
            c += 1
        colors[s] = c
        neighbor_colors[a].add(c)
        neighbor_colors[b].add(c)

    if len(colors) == 0:
        return []
    num_colors = int(colors.max()) + 1
    return [np.where(colors == c)[0].astype(np.int32) for c in range(num_colors)]


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def accumulate_spring_group(
    pos: np.ndarray,
    vel: np.ndarray,
    force: np.ndarray,
    group: np.ndarray,  # indices INTO spring_i/spring_j for this color
    spring_i: np.ndarray,
    spring_j: np.ndarray,
    rest_lengths: np.ndarray,
    stiffness: np.ndarray,
    damping: float,
) -> None:
    """
    Spring forces for a single color group.
    Springs within a group share no particle, so prange has no write conflicts.
    """
    for k in prange(len(group)):
        s = group[k]
        a = spring_i[s]
        b = spring_j[s]
        spring_force(
            pos[a], vel[a], force[a], pos[b], vel[b], force[b],
            rest_lengths[s], stiffness[s], damping,
        )


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def resolve_contacts(
    pos: np.ndarray,
    vel: np.ndarray,
    force: np.ndarray,
    mass: np.ndarray,
    plane_p: np.ndarray,
    plane_n: np.ndarray,
    center: np.ndarray,
    radius: float,
    dt: float,
    friction: float,
    contact_distance: float,
    surface_epsilon: float,
    slow_speed: float,
) -> None:
    for i in prange(len(pos)):
        resolve_contact_plane(
            pos[i], vel[i], force[i], mass[i], plane_p, plane_n,
            dt, friction, contact_distance, slow_speed,
        )
        resolve_contact_sphere(
            pos[i], vel[i], force[i], mass[i], center, radius,
            dt, friction, surface_epsilon, slow_speed,
        )


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def integrate(
    pos: np.ndarray,
    vel: np.ndarray,
    force: np.ndarray,
    mass: np.ndarray,
    fixed: np.ndarray,
    dt: float,
) -> None:
    for i in prange(len(pos)):
        step_particle(pos[i], vel[i], force[i], mass[i], fixed[i], dt)


@njit(fastmath=True, cache=True, parallel=True)  # type: ignore
def resolve_collisions(
    pos: np.ndarray,
    vel: np.ndarray,
    plane_p: np.ndarray,
    plane_n: np.ndarray,
    center: np.ndarray,
    radius: float,
    restitution: float,
    penetration_distance: float,
    surface_epsilon: float,
) -> None:
    for i in prange(len(pos)):
        resolve_collision_plane(pos[i], vel[i], plane_p, plane_n, restitution, penetration_distance)
        resolve_collision_sphere(pos[i], vel[i], center, radius, restitution, surface_epsilon)
