"""Free-flying editor camera driven by mouse and keyboard state."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

_PITCH_LIMIT = 1.5
_ZOOM_FACTOR = 0.1


@dataclass
class CameraInput:
    """Input state for one camera update."""

    mouse_position: tuple[float, float] = (0.0, 0.0)
    left_button: bool = False
    middle_button: bool = False
    right_button: bool = False
    move_forward: bool = False
    move_backward: bool = False
    move_left: bool = False
    move_right: bool = False


def _quat_from_euler(pitch: float, yaw: float, roll: float = 0.0) -> np.ndarray:
    cx, cy, cz = math.cos(pitch / 2), math.cos(yaw / 2), math.cos(roll / 2)
    sx, sy, sz = math.sin(pitch / 2), math.sin(yaw / 2), math.sin(roll / 2)
    return np.array(
        [
            cx * cy * cz + sx * sy * sz,
            sx * cy * cz - cx * sy * sz,
            cx * sy * cz + sx * cy * sz,
            cx * cy * sz - sx * sy * cz,
        ]
    )


def _rotate(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    w, u = q[0], q[1:]
    uv = np.cross(u, v)
    uuv = np.cross(u, uv)
    return v + 2.0 * (w * uv + uuv)


class EditorCamera:
    """Perspective camera with orbit-style mouse controls and WASD movement."""

    def __init__(
        self,
        fov: float = 45.0,
        viewport_width: float = 1280.0,
        viewport_height: float = 720.0,
        near_clip: float = 0.1,
        far_clip: float = 100.0,
    ) -> None:
        self.fov = fov  # degrees
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.near_clip = near_clip
        self.far_clip = far_clip
        self.move_speed = 25.0
        self.rotation_speed = 0.3
        self.reset()

    def reset(self) -> None:
        """Return to the initial position and orientation."""
        self.position = np.array([0.0, 0.0, 5.0])
        self.focal_point = np.zeros(3)
        self.pitch = 0.0  # radians
        self.yaw = 0.0  # radians
        self.last_mouse_position = np.zeros(2)

    def update(self, seconds: float, inputs: CameraInput) -> None:
        """Apply one frame of mouse and keyboard input."""
        mouse = np.array(inputs.mouse_position, dtype=float)
        delta = mouse - self.last_mouse_position
        self.last_mouse_position = mouse

        if inputs.left_button:
            self._mouse_rotate(delta)
        elif inputs.middle_button:
            self._mouse_pan(delta)
        elif inputs.right_button:
            self._mouse_zoom(delta[1])

        move = np.zeros(3)
        if inputs.move_forward:
            move[2] = -1.0
        if inputs.move_backward:
            move[2] = 1.0
        if inputs.move_left:
            move[0] = -1.0
        if inputs.move_right:
            move[0] = 1.0

        move *= self.move_speed * seconds
        self.position = self.position + _rotate(self.rotation(), move)

    def view_matrix(self) -> np.ndarray:
        """Right-handed look-at matrix (column vectors)."""
        eye = self.position
        f = self.forward_direction()
        f = f / np.linalg.norm(f)
        s = np.cross(f, self.up_direction())
        s = s / np.linalg.norm(s)
        u = np.cross(s, f)
        return np.array(
            [
                [s[0], s[1], s[2], -np.dot(s, eye)],
                [u[0], u[1], u[2], -np.dot(u, eye)],
                [-f[0], -f[1], -f[2], np.dot(f, eye)],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )

    def projection_matrix(self) -> np.ndarray:
        """Right-handed perspective projection (column vectors, depth -1..1)."""
        aspect = self.viewport_width / self.viewport_height
        tan_half = math.tan(math.radians(self.fov) / 2.0)
        near, far = self.near_clip, self.far_clip
        proj = np.zeros((4, 4))
        proj[0, 0] = 1.0 / (aspect * tan_half)
        proj[1, 1] = 1.0 / tan_half
        proj[2, 2] = -(far + near) / (far - near)
        proj[2, 3] = -(2.0 * far * near) / (far - near)
        proj[3, 2] = -1.0
        return proj

    def rotation(self) -> np.ndarray:
        """Orientation quaternion as (w, x, y, z)."""
        return _quat_from_euler(self.pitch, self.yaw)

    def forward_direction(self) -> np.ndarray:
        return _rotate(self.rotation(), np.array([0.0, 0.0, -1.0]))

    def right_direction(self) -> np.ndarray:
        return _rotate(self.rotation(), np.array([1.0, 0.0, 0.0]))

    def up_direction(self) -> np.ndarray:
        return _rotate(self.rotation(), np.array([0.0, 1.0, 0.0]))

    def set_viewport_size(self, width: float, height: float) -> None:
        self.viewport_width = width
        self.viewport_height = height

    def pan_speed(self) -> tuple[float, float]:
        """Pan speed factors for x and y, depending on viewport size."""
        x = min(self.viewport_width / 1000.0, 2.4)
        x_factor = 0.0366 * (x * x) - 0.1778 * x + 0.3021
        y = min(self.viewport_height / 1000.0, 2.4)
        y_factor = 0.0366 * (y * y) - 0.1778 * y + 0.3021
        return x_factor, y_factor

    def _mouse_pan(self, delta: np.ndarray) -> None:
        x_speed, y_speed = self.pan_speed()
        self.position = self.position + self.right_direction() * delta[0] * x_speed
        self.position = self.position - self.up_direction() * delta[1] * y_speed

    def _mouse_rotate(self, delta: np.ndarray) -> None:
        self.pitch -= math.radians(delta[1]) * self.rotation_speed
        self.yaw -= math.radians(delta[0]) * self.rotation_speed
        self.pitch = min(max(self.pitch, -_PITCH_LIMIT), _PITCH_LIMIT)

    def _mouse_zoom(self, delta: float) -> None:
        self.position = self.position + self.forward_direction() * delta * _ZOOM_FACTOR