# renderer.py
import math

import moderngl
import numpy as np

from springmass.models import Plane, Sphere
from springmass.types import PROJ, VEC, VIEW

VERTEX_SHADER = """
#version 330
uniform mat4 u_mvp;
uniform float u_point_size;
in vec3 in_position;
void main() {
    gl_Position = u_mvp * vec4(in_position, 1.0);
    gl_PointSize = u_point_size;
}
"""

FRAGMENT_SHADER = """
#version 330
uniform vec3 u_color;
out vec4 f_color;
void main() {
    f_color = vec4(u_color, 1.0);
}
"""

GROUND_COLOR = (0.25, 0.27, 0.3)
SPHERE_COLOR = (0.45, 0.55, 0.75)
SPRING_COLOR = (0.85, 0.85, 0.8)
PARTICLE_COLOR = (0.95, 0.35, 0.3)
PINNED_COLOR = (0.3, 0.95, 0.4)

# ------------------------
# Matrix helpers (row-major, column vectors)
# ------------------------


def perspective(fov_y: float, aspect: float, near: float, far: float) -> PROJ:
    f = 1.0 / np.tan(fov_y * 0.5)
    return np.array(
        [
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / (near - far), (2.0 * far * near) / (near - far)],
            [0.0, 0.0, -1.0, 0.0],
        ],
        dtype=np.float32,
    )


def rotation_x(angle: float) -> PROJ:
    c, s = np.cos(angle), np.sin(angle)
    return np.array(
        [
            [1, 0, 0, 0],
            [0, c, -s, 0],
            [0, s, c, 0],
            [0, 0, 0, 1],
        ],
        dtype=np.float32,
    )


def rotation_y(angle: float) -> PROJ:
    c, s = np.cos(angle), np.sin(angle)
    return np.array(
        [
            [c, 0, s, 0],
            [0, 1, 0, 0],
            [-s, 0, c, 0],
            [0, 0, 0, 1],
        ],
        dtype=np.float32,
    )


def translate(x: float, y: float, z: float) -> PROJ:
    m = np.eye(4, dtype=np.float32)
    m[0, 3] = x
    m[1, 3] = y
    m[2, 3] = z
    return m


# ------------------------
# Static geometry
# ------------------------


def plane_quad(plane: Plane, half_size: float = 200.0) -> VIEW:
    """Two triangles spanning a square of the plane around its anchor point."""
    n = plane.normal.to_array()
    helper = np.array([1.0, 0.0, 0.0]) if abs(n[0]) < 0.9 else np.array([0.0, 0.0, 1.0])
    u = np.cross(n, helper)
    u /= np.linalg.norm(u)
    v = np.cross(n, u)
    p = plane.point.to_array()
    c = [p + half_size * (su * u + sv * v) for su, sv in ((-1, -1), (1, -1), (1, 1), (-1, 1))]
    return np.array([c[0], c[1], c[2], c[0], c[2], c[3]], dtype="f4")


def sphere_wireframe(sphere: Sphere, rings: int = 12, segments: int = 24) -> VIEW:
    """Latitude and longitude circles as a GL_LINES vertex list."""
    c = sphere.center.to_array()
    r = sphere.radius
    lines: list[np.ndarray] = []

    def circle_point(phi: float, theta: float) -> np.ndarray:
        return c + r * np.array(
            [math.sin(phi) * math.cos(theta), math.cos(phi), math.sin(phi) * math.sin(theta)]
        )

    for ring in range(1, rings):
        phi = math.pi * ring / rings
        for s in range(segments):
            t0 = 2 * math.pi * s / segments
            t1 = 2 * math.pi * (s + 1) / segments
            lines += [circle_point(phi, t0), circle_point(phi, t1)]

    for s in range(segments):
        theta = 2 * math.pi * s / segments
        for ring in range(rings):
            p0 = math.pi * ring / rings
            p1 = math.pi * (ring + 1) / rings
            lines += [circle_point(p0, theta), circle_point(p1, theta)]

    return np.array(lines, dtype="f4")


# ------------------------
# Renderer
# ------------------------


class Renderer:
    def __init__(
        self,
        ctx: moderngl.Context,
        ground: Plane,
        obstacle: Sphere,
        num_particles: int,
        num_springs: int,
        width: int = 800,
        height: int = 600,
    ):
        self.ctx = ctx
        self.ctx.enable(moderngl.DEPTH_TEST | moderngl.PROGRAM_POINT_SIZE)

        self.width = width
        self.height = height
        self.target = np.array([0.0, 50.0, 0.0], dtype=np.float32)

        self.prog = self.ctx.program(vertex_shader=VERTEX_SHADER, fragment_shader=FRAGMENT_SHADER)

        # Static buffers
        self.ground_vao = self._static_vao(plane_quad(ground))
        self.sphere_vao = self._static_vao(sphere_wireframe(obstacle))

        # Dynamic buffers, rewritten every frame
        self.particle_vbo = self.ctx.buffer(reserve=max(1, num_particles) * 3 * 4, dynamic=True)
        self.particle_vao = self.ctx.vertex_array(
            self.prog, [(self.particle_vbo, "3f", "in_position")]
        )
        self.spring_vbo = self.ctx.buffer(reserve=max(1, num_springs) * 2 * 3 * 4, dynamic=True)
        self.spring_vao = self.ctx.vertex_array(self.prog, [(self.spring_vbo, "3f", "in_position")])

    def _static_vao(self, vertices: VIEW) -> moderngl.VertexArray:
        vbo = self.ctx.buffer(vertices.tobytes())
        return self.ctx.vertex_array(self.prog, [(vbo, "3f", "in_position")])

    # ------------------------
    # Draw
    # ------------------------

    def draw(
        self,
        positions: VEC,
        segments: VEC,
        fixed: np.ndarray,
        camera_rot: list[float],
        distance: float,
    ) -> None:
        self.ctx.clear(0.1, 0.1, 0.15, 1.0)

        mvp = self._get_mvp(camera_rot, distance)
        self.prog["u_mvp"].write(mvp.T.astype("f4").tobytes())  # type: ignore
        self.prog["u_point_size"].value = 6.0  # type: ignore

        self._set_color(GROUND_COLOR)
        self.ground_vao.render(moderngl.TRIANGLES)

        self._set_color(SPHERE_COLOR)
        self.sphere_vao.render(moderngl.LINES)

        if len(segments):
            self.spring_vbo.write(segments.astype("f4").tobytes())
            self._set_color(SPRING_COLOR)
            self.spring_vao.render(moderngl.LINES, vertices=2 * len(segments))

        if len(positions):
            self.particle_vbo.write(positions.astype("f4").tobytes())
            # Pinned particles first and larger; the regular pass fails the depth test there
            pinned = np.flatnonzero(fixed)
            if len(pinned):
                self.prog["u_point_size"].value = 10.0  # type: ignore
                self._set_color(PINNED_COLOR)
                for idx in pinned:
                    self.particle_vao.render(moderngl.POINTS, vertices=1, first=int(idx))
                self.prog["u_point_size"].value = 6.0  # type: ignore

            self._set_color(PARTICLE_COLOR)
            self.particle_vao.render(moderngl.POINTS, vertices=len(positions))

    def _set_color(self, color: tuple[float, float, float]) -> None:
        self.prog["u_color"].value = color  # type: ignore

    # ------------------------
    # Camera
    # ------------------------

    def _get_mvp(self, camera_rot: list[float], distance: float) -> PROJ:
        pitch, yaw = camera_rot
        tx, ty, tz = self.target

        view = (
            translate(0.0, 0.0, -distance)
            @ rotation_x(pitch)
            @ rotation_y(yaw)
            @ translate(-tx, -ty, -tz)
        )
        proj = perspective(np.radians(60.0), self.width / self.height, 1.0, 5000.0)
        return proj @ view
