"""NumPy-backed math utilities: Vec3, Quaternion, Mat4 operations.

Provides lightweight wrappers and utility functions for 3D math.
Vectors are plain numpy arrays; quaternions are [x, y, z, w] arrays.
Matrices are 4x4 numpy arrays acting on column vectors (``M @ p``).

Euler angles are (x, y, z) radians.  ``euler_to_quaternion`` composes the
single-axis rotations as ``qz * qy * qx`` and ``quaternion_to_euler`` is its
closed-form inverse away from gimbal lock (``|y| = pi/2``).
"""

import math

import numpy as np
from numpy.typing import NDArray

# Type aliases
Vec3 = NDArray[np.float64]
Mat4 = NDArray[np.float64]
Quat = NDArray[np.float64]  # [x, y, z, w]

_AXIS_X = np.array([1.0, 0.0, 0.0])
_AXIS_Y = np.array([0.0, 1.0, 0.0])
_AXIS_Z = np.array([0.0, 0.0, 1.0])


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Vec3:
    return np.array([x, y, z], dtype=np.float64)


def as_vec3(v) -> Vec3:
    """Coerce any 3-element sequence to a float64 Vec3 (always a copy)."""
    arr = np.array(v, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {arr.shape}")
    return arr


def mat4_identity() -> Mat4:
    return np.eye(4, dtype=np.float64)


def mat4_from_quaternion(q: Quat) -> Mat4:
    """Convert quaternion [x,y,z,w] to 4x4 rotation matrix."""
    x, y, z, w = q
    m = np.eye(4, dtype=np.float64)
    m[0, 0] = 1 - 2 * (y * y + z * z)
    m[0, 1] = 2 * (x * y - z * w)
    m[0, 2] = 2 * (x * z + y * w)
    m[1, 0] = 2 * (x * y + z * w)
    m[1, 1] = 1 - 2 * (x * x + z * z)
    m[1, 2] = 2 * (y * z - x * w)
    m[2, 0] = 2 * (x * z - y * w)
    m[2, 1] = 2 * (y * z + x * w)
    m[2, 2] = 1 - 2 * (x * x + y * y)
    return m


def mat4_compose(position: Vec3, quaternion: Quat, scale: Vec3) -> Mat4:
    """Compose TRS matrix from position, quaternion rotation, and scale."""
    m = mat4_from_quaternion(quaternion)
    m[:3, 0] *= scale[0]
    m[:3, 1] *= scale[1]
    m[:3, 2] *= scale[2]
    m[0, 3] = position[0]
    m[1, 3] = position[1]
    m[2, 3] = position[2]
    return m


def transform_point(m: Mat4, p: Vec3) -> Vec3:
    """Transform a point by a 4x4 matrix."""
    v = np.array([p[0], p[1], p[2], 1.0], dtype=np.float64)
    r = m @ v
    return r[:3]


# Quaternion operations

def quat_identity() -> Quat:
    return np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)


def quat_from_axis_angle(axis: Vec3, angle: float) -> Quat:
    """Create quaternion from axis-angle."""
    half = angle / 2
    s = np.sin(half)
    a = normalize(axis)
    return np.array([a[0] * s, a[1] * s, a[2] * s, np.cos(half)], dtype=np.float64)


def quat_multiply(a: Quat, b: Quat) -> Quat:
    """Multiply two quaternions (a * b)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ], dtype=np.float64)


def quat_normalize(q: Quat) -> Quat:
    n = np.linalg.norm(q)
    if n < 1e-10:
        return quat_identity()
    return q / n


def quat_rotate_vec3(q: Quat, v: Vec3) -> Vec3:
    """Rotate a vector by a quaternion."""
    qv = q[:3]
    w = q[3]
    t = 2.0 * np.cross(qv, v)
    return v + w * t + np.cross(qv, t)


def quat_from_vectors(a: Vec3, b: Vec3) -> Quat:
    """Shortest-arc rotation taking direction *a* onto direction *b*.

    Both inputs are normalized first.  For antiparallel inputs the rotation
    is pi about an axis perpendicular to *a*.
    """
    u = normalize(np.asarray(a, dtype=np.float64))
    v = normalize(np.asarray(b, dtype=np.float64))
    d = float(np.dot(u, v))
    if d < -1.0 + 1e-9:
        axis = np.cross(u, _AXIS_X)
        if np.linalg.norm(axis) < 1e-6:
            axis = np.cross(u, _AXIS_Y)
        return quat_from_axis_angle(axis, math.pi)
    c = np.cross(u, v)
    return quat_normalize(np.array([c[0], c[1], c[2], 1.0 + d], dtype=np.float64))


# Euler conversions

def euler_to_quaternion(angles: Vec3) -> Quat:
    """Convert (x, y, z) Euler angles to a quaternion composed as Z * Y * X."""
    qx = quat_from_axis_angle(_AXIS_X, float(angles[0]))
    qy = quat_from_axis_angle(_AXIS_Y, float(angles[1]))
    qz = quat_from_axis_angle(_AXIS_Z, float(angles[2]))
    return quat_multiply(quat_multiply(qz, qy), qx)


def quaternion_to_euler(q: Quat) -> Vec3:
    """Extract (x, y, z) Euler angles from a quaternion built as Z * Y * X.

    The ``asin`` argument is clipped to [-1, 1] so rounding near gimbal
    lock cannot leave the domain.
    """
    x, y, z, w = (float(c) for c in q)
    rx = math.atan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y))
    ry = math.asin(clamp(2.0 * (w * y - z * x), -1.0, 1.0))
    rz = math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))
    return vec3(rx, ry, rz)


def clamp_euler(angles: Vec3, max_angle: float) -> Vec3:
    """Clamp each Euler axis independently to [-max_angle, max_angle].

    This is a box clamp: a rotation about a diagonal axis may still exceed
    *max_angle* in total.
    """
    return vec3(*(clamp(float(a), -max_angle, max_angle) for a in angles))


# Scalar / vector operations

def normalize(v: Vec3) -> Vec3:
    n = np.linalg.norm(v)
    if n < 1e-10:
        return np.zeros_like(v)
    return v / n


def clamp(value: float, lo: float, hi: float) -> float:
    return max(min(value, hi), lo)


def deg_to_rad(degrees: float) -> float:
    return degrees * np.pi / 180.0


def rad_to_deg(radians: float) -> float:
    return radians * 180.0 / np.pi
