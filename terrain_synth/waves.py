# terrain_synth/waves.py

"""
================================================================================
LIQUID WAVE STATE
================================================================================
This module describes the periodic Gerstner waves and transient ripple impulses
of a liquid surface, and evaluates the vertex displacement and analytic normal
they produce.

Data Contract:
---------------
- Inputs:
    - waves: A fixed set of Wave entries (direction, frequency, amplitude,
      speed, steepness).
    - positions: (..., 3) rest positions of the liquid mesh.
    - time: Elapsed time in seconds.
- Outputs:
    - displace_surface(): Displaced positions and unit normals, same shape.
    - ripple_contribution(): Signed ring height for each impulse/sample pair.
- Side Effects: WaveState.add_ripple() and evict_expired() mutate the ripple
  buffer of that WaveState only.
- Invariants: At most MAX_RIPPLES impulses are live; expired impulses always
  contribute exactly zero.
================================================================================
"""

import logging

import numpy as np

from . import config as DEFAULTS

logger = logging.getLogger(__name__)


class Wave:
    """A single directional Gerstner wave."""

    __slots__ = ("direction", "frequency", "amplitude", "speed", "steepness")

    def __init__(self, direction, frequency: float, amplitude: float, speed: float, steepness: float):
        direction = np.asarray(direction, dtype=np.float64)
        if direction.shape != (2,):
            raise ValueError(f"Wave direction must be a 2D vector, got shape {direction.shape}.")
        if not 0.0 <= steepness <= 1.0:
            raise ValueError(f"Wave steepness must be within [0, 1], got {steepness}.")
        direction.flags.writeable = False
        self.direction = direction
        self.frequency = float(frequency)
        self.amplitude = float(amplitude)
        self.speed = float(speed)
        self.steepness = float(steepness)

    @classmethod
    def from_config(cls, config: dict) -> "Wave":
        return cls(config['direction'], config['frequency'], config['amplitude'],
                   config['speed'], config['steepness'])

    def __repr__(self):
        return (f"Wave(direction={tuple(self.direction)}, frequency={self.frequency}, "
                f"amplitude={self.amplitude}, speed={self.speed}, steepness={self.steepness})")


def default_waves() -> list:
    """The editor's default four-wave liquid surface."""
    return [Wave.from_config(w) for w in DEFAULTS.DEFAULT_WAVES]


def displace_surface(waves, positions, time: float):
    """
    Applies the summed Gerstner waves to liquid rest positions.

    Each wave moves a point vertically by amplitude*sin(phase) and
    horizontally by steepness*amplitude*direction*cos(phase), with
    phase = dot(direction, xz)*frequency + speed*time. Tangent and binormal
    are accumulated from the analytic partial derivatives of every wave, and
    the normal is normalize(cross(binormal, tangent)).

    Args:
        waves: Iterable of Wave.
        positions: (..., 3) rest positions. Only x and z drive the phase.
        time (float): Elapsed time in seconds.

    Returns:
        tuple[np.ndarray, np.ndarray]: displaced positions and unit normals.
    """
    positions = np.asarray(positions, dtype=np.float64)
    x = positions[..., 0]
    z = positions[..., 2]

    displaced = positions.copy()
    tangent = np.zeros(positions.shape)
    tangent[..., 0] = 1.0
    binormal = np.zeros(positions.shape)
    binormal[..., 2] = 1.0

    for wave in waves:
        dx, dz = wave.direction
        phase = (dx * x + dz * z) * wave.frequency + wave.speed * time
        sin_val = np.sin(phase)
        cos_val = np.cos(phase)

        displaced[..., 0] += wave.steepness * wave.amplitude * dx * cos_val
        displaced[..., 1] += wave.amplitude * sin_val
        displaced[..., 2] += wave.steepness * wave.amplitude * dz * cos_val

        wa = wave.frequency * wave.amplitude
        tangent[..., 0] += 1.0 - wave.steepness * wa * dx * dx * sin_val
        tangent[..., 1] += wa * dx * cos_val
        tangent[..., 2] += -wave.steepness * wa * dx * dz * sin_val
        binormal[..., 0] += -wave.steepness * wa * dx * dz * sin_val
        binormal[..., 1] += wa * dz * cos_val
        binormal[..., 2] += 1.0 - wave.steepness * wa * dz * dz * sin_val

    normals = np.cross(binormal, tangent)
    normals /= np.linalg.norm(normals, axis=-1, keepdims=True)
    return displaced, normals


def ripple_contribution(dist, time_since_drop, strength):
    """
    Signed height of an expanding ripple ring at a given distance from its origin.

    Returns exactly 0 before the drop, after RIPPLE_LIFETIME_S, and outside
    the ring of half-width RIPPLE_WAVE_WIDTH around the current radius.
    Otherwise the magnitude is bounded by strength * RIPPLE_NORMAL_SCALE.
    Works element-wise on broadcastable arrays.
    """
    dist = np.asarray(dist, dtype=np.float64)
    time_since_drop = np.asarray(time_since_drop, dtype=np.float64)
    lifetime = DEFAULTS.RIPPLE_LIFETIME_S
    width = DEFAULTS.RIPPLE_WAVE_WIDTH

    current_radius = time_since_drop * DEFAULTS.RIPPLE_WAVE_SPEED
    dist_from_wave = np.abs(dist - current_radius)

    radial_sine = np.sin((current_radius - dist) * np.pi * DEFAULTS.RIPPLE_WAVE_FREQUENCY)
    fade = (1.0 - time_since_drop / lifetime) ** 2
    radial_fade = 1.0 - dist_from_wave / width
    value = radial_sine * fade * radial_fade * strength * DEFAULTS.RIPPLE_NORMAL_SCALE

    live = (time_since_drop >= 0.0) & (time_since_drop <= lifetime) & (dist_from_wave <= width)
    result = np.where(live, value, 0.0)
    return result if result.ndim else float(result)


def ripple_normal_perturbation(ripples, position_xz, time: float) -> np.ndarray:
    """
    Sums the outward radial push of every ripple at the given surface points.

    Args:
        ripples: (R, 4) array of [x, z, start_time, strength].
        position_xz: (..., 2) surface coordinates.
        time (float): Elapsed time in seconds.

    Returns:
        np.ndarray: (..., 3) perturbation vector with a zero Y component.
    """
    position_xz = np.asarray(position_xz, dtype=np.float64)
    perturbation = np.zeros(position_xz.shape[:-1] + (3,))

    for origin_x, origin_z, start_time, strength in np.asarray(ripples).reshape(-1, 4):
        offset = position_xz - (origin_x, origin_z)
        dist = np.linalg.norm(offset, axis=-1)
        amount = ripple_contribution(dist, time - start_time, strength)

        # A sample exactly on the origin has no outward direction.
        safe_dist = np.where(dist > 0.0, dist, 1.0)
        push = np.where(dist > 0.0, amount, 0.0) / safe_dist
        perturbation[..., 0] += offset[..., 0] * push
        perturbation[..., 2] += offset[..., 1] * push

    return perturbation


class WaveState:
    """
    Per-surface wave description plus a bounded buffer of live ripples.

    Ripples live in a fixed (MAX_RIPPLES, 4) array of [x, z, start_time,
    strength] with a live count, so the buffer never grows.
    """
    def __init__(self, waves=None, max_ripples: int = DEFAULTS.MAX_RIPPLES):
        waves = default_waves() if waves is None else list(waves)
        if len(waves) > DEFAULTS.MAX_WAVES:
            raise ValueError(f"A liquid surface supports at most {DEFAULTS.MAX_WAVES} waves, got {len(waves)}.")
        self.waves = tuple(waves)
        self.max_ripples = max_ripples
        self._ripples = np.zeros((max_ripples, 4))
        self._count = 0

    @property
    def ripple_count(self) -> int:
        return self._count

    @property
    def ripples(self) -> np.ndarray:
        """Read-only snapshot of the live ripples, shape (count, 4)."""
        snapshot = self._ripples[:self._count].copy()
        snapshot.flags.writeable = False
        return snapshot

    def add_ripple(self, x: float, z: float, strength: float, start_time: float) -> bool:
        """Records a new impulse. Returns False, dropping it, when the buffer is full."""
        if self._count >= self.max_ripples:
            logger.debug(f"Ripple buffer full ({self.max_ripples}); dropping impulse at ({x}, {z}).")
            return False
        self._ripples[self._count] = (x, z, start_time, strength)
        self._count += 1
        return True

    def evict_expired(self, time: float) -> int:
        """Removes impulses older than the ripple lifetime. Returns how many were removed."""
        live = self._ripples[:self._count]
        keep = (time - live[:, 2]) < DEFAULTS.RIPPLE_LIFETIME_S
        kept = live[keep]
        removed = self._count - len(kept)
        self._ripples[:len(kept)] = kept
        self._ripples[len(kept):self._count] = 0.0
        self._count = len(kept)
        return removed

    def displace(self, positions, time: float):
        """Displaced positions and analytic normals for this surface's waves."""
        return displace_surface(self.waves, positions, time)

    def normal_perturbation(self, position_xz, time: float) -> np.ndarray:
        return ripple_normal_perturbation(self.ripples, position_xz, time)
