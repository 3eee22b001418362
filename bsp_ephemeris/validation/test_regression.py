"""
Regression Tests Against SPICE
==============================

Comparison of the reader with the NAIF SPICE toolkit (through spiceypy) on
the synthetic kernels, and sanity checks on the DE440 kernels when they have
been downloaded.

Tests:
------
TestAgainstSpice
  - test_sanity_check_states             : verify states agree with spkez for every body pair
  - test_states_in_ecliptic_frame        : verify states in ECLIPJ2000 agree with spkez
  - test_inertial_rotations              : verify every built-in inertial rotation agrees with pxform
  - test_body_names                      : verify names and codes agree with bodn2c / bodc2n
  - test_coverage                        : verify objects and coverage agree with spkobj / spkcov

TestDE440
  - test_earth_sun_distance              : verify the Earth-Sun distance at J2000
  - test_moon_earth_distance             : verify the Moon-Earth distance over a month
  - test_de440_against_spice             : verify Moon relative to Earth agrees with spkez

Usage:
------
  python -m pytest bsp_ephemeris/validation/test_regression.py -v

  Download the DE440 kernels first with:
    python -m bsp_ephemeris.download.kernels
"""
import pytest
import numpy as np

from bsp_ephemeris.spice.frames         import INERTIAL_FRAMES, inertial_rotation
from bsp_ephemeris.spice.kernel_pool    import KernelPool
from bsp_ephemeris.spice.spk_reader     import SpkReader
from bsp_ephemeris.validation.synthetic import DAY, END_ET, ORBITS, START_ET


PAIRS = [
  (399, 0), (301, 399), (10, 399), (5, 301), (0, 10), (3, 5),
]
EPOCHS = np.linspace(START_ET, END_ET, 7)


@pytest.fixture
def spice():
  """The spiceypy module, with an empty kernel pool before and after the test."""
  spiceypy = pytest.importorskip("spiceypy")
  spiceypy.kclear()
  yield spiceypy
  spiceypy.kclear()


@pytest.fixture
def de440_kernel(spice_kernels_path):
  """Path to de440s.bsp (or de440.bsp), skipping when neither was downloaded."""
  for filename in ('de440s.bsp', 'de440.bsp'):
    filepath = spice_kernels_path / filename
    if filepath.is_file():
      return filepath
  pytest.skip("DE440 kernel not downloaded (python -m bsp_ephemeris.download.kernels)")


class TestAgainstSpice:
  """
  Tests comparing the reader with SPICE on the synthetic kernels.
  """

  def test_sanity_check_states(self, spice, planets_kernel, reader):
    spice.furnsh(str(planets_kernel))
    for target, observer in PAIRS:
      for et in EPOCHS:
        expected, expected_lt = spice.spkez(target, et, 'J2000', 'NONE', observer)
        state, light_time     = reader.get_state(target, et, 'J2000', observer)
        assert np.allclose(state[0:3], expected[0:3], rtol=1e-13, atol=1e-7)
        assert np.allclose(state[3:6], expected[3:6], rtol=1e-13, atol=1e-11)
        assert light_time == pytest.approx(expected_lt, rel=1e-12)

  def test_states_in_ecliptic_frame(self, spice, planets_kernel, reader):
    spice.furnsh(str(planets_kernel))
    for target, observer in PAIRS:
      expected, _ = spice.spkez(target, 2.5 * DAY, 'ECLIPJ2000', 'NONE', observer)
      state, _    = reader.get_state(target, 2.5 * DAY, 'ECLIPJ2000', observer)
      assert np.allclose(state, expected, rtol=1e-13, atol=1e-7)

  def test_inertial_rotations(self, spice):
    for from_id, from_name, _, _ in INERTIAL_FRAMES:
      for to_id, to_name, _, _ in INERTIAL_FRAMES:
        expected = np.array(spice.pxform(from_name, to_name, 0.0))
        assert np.allclose(inertial_rotation(from_id, to_id), expected, rtol=0.0, atol=1e-12), (from_name, to_name)

  def test_body_names(self, spice, bodies):
    for name in ('SSB', 'EARTH', 'MOON', 'EMB', 'JUPITER BARYCENTER', 'SUN', 'MARS', 'GOLDSTONE'):
      assert bodies.name_to_code(name) == spice.bodn2c(name), name
    for code in (0, 3, 5, 10, 199, 301, 399, 499, 599):
      assert bodies.code_to_name(code) == spice.bodc2n(code), code

  def test_coverage(self, spice, planets_kernel):
    objects = spice.spkobj(str(planets_kernel))
    assert KernelPool.spk_objects(planets_kernel) == {int(body) for body in objects} == set(ORBITS)

    for body in ORBITS:
      cover     = spice.spkcov(str(planets_kernel), body)
      intervals = [tuple(spice.wnfetd(cover, i)) for i in range(spice.wncard(cover))]
      assert KernelPool.spk_coverage(planets_kernel, body) == intervals


class TestDE440:
  """
  Sanity checks on the DE440 planetary ephemeris.
  """

  def test_earth_sun_distance(self, de440_kernel, bodies, frames):
    """
    Perihelion is on January 3rd, so at J2000 the distance is close to its minimum.
    """
    with KernelPool() as pool:
      pool.load(de440_kernel)
      reader = SpkReader(pool, bodies, frames)
      pos_vec = reader.get_position('EARTH', 0.0, 'J2000', 'SUN')
    assert np.linalg.norm(pos_vec) == pytest.approx(1.4710e8, rel=1e-3)

  def test_moon_earth_distance(self, de440_kernel, bodies, frames):
    with KernelPool() as pool:
      pool.load(de440_kernel)
      reader = SpkReader(pool, bodies, frames)
      states = reader.get_states('MOON', np.arange(0.0, 30.0 * DAY, 0.5 * DAY), 'J2000', 'EARTH')
    distances = np.linalg.norm(states[:, 0:3], axis=1)
    assert distances.min() > 3.5e5
    assert distances.max() < 4.1e5

  def test_de440_against_spice(self, spice, de440_kernel, bodies, frames):
    spice.furnsh(str(de440_kernel))
    with KernelPool() as pool:
      pool.load(de440_kernel)
      reader = SpkReader(pool, bodies, frames)
      for et in (-1.0e8, 0.0, 8.0e8):
        expected, _ = spice.spkez(301, et, 'J2000', 'NONE', 399)
        state, _    = reader.get_state(301, et, 'J2000', 399)
        assert np.allclose(state[0:3], expected[0:3], rtol=1e-12, atol=1e-6)
        assert np.allclose(state[3:6], expected[3:6], rtol=1e-12, atol=1e-9)
