"""
Unit Tests for BSP Loader Module
================================

Tests for celestial body ephemerides read from a folder of BSP files.

Tests:
------
TestEphemerisTree
  - test_sanity_check_load_body           : verify target, center and frame of a loaded body
  - test_root_is_solar_system_barycenter  : verify the root of the tree and its zero state
  - test_parents_and_children             : verify bodies are linked center -> targets
  - test_names_and_codes                  : verify aliases and codes select the same ephemeris
  - test_missing_body                     : verify BodyNotAvailableError for bodies absent from the files
  - test_missing_files                    : verify KernelFileError for a folder without BSP files
  - test_supported_names_filter           : verify only files matching the pattern are loaded

TestCoordinates
  - test_pv_coordinates_in_meters         : verify position [m] and velocity [m/s] relative to the center
  - test_pv_coordinates_other_frame       : verify an inertial output frame other than the segment frame
  - test_epoch_forms                      : verify ET, datetime, astropy Time and ISO string epochs agree

TestFrames
  - test_native_frame_icrf                : verify the segment frame and center are reported
  - test_native_frame_eme2000_requires_link : verify SpiceError for EME2000 without a linked tree
  - test_link_frames_trees                : verify bodies centered on the linked body report the root frame

TestGravitationalCoefficients
  - test_gravitational_coefficients       : verify GM values of the DE4xx bodies

Usage:
------
  python -m pytest bsp_ephemeris/validation/test_bsp_loader.py -v
"""
import pytest
import numpy as np

from astropy.time import Time as AstropyTime

from bsp_ephemeris.ephemeris.bsp_loader import BSPEphemerisLoader, EphemerisType, NativeFrame, SpiceJ2000Convention
from bsp_ephemeris.model.constants      import GRAVITATIONALPARAMETERS
from bsp_ephemeris.model.time_converter import et_to_utc
from bsp_ephemeris.spice.errors         import BodyNotAvailableError, KernelFileError, SpiceError
from bsp_ephemeris.validation.synthetic import DAY, eclip_to_j2000, orbit_state, write_planets_kernel


@pytest.fixture
def kernels_folder(tmp_path):
  """Folder holding the synthetic planets kernel."""
  folderpath = tmp_path / "spice_kernels"
  folderpath.mkdir()
  write_planets_kernel(folderpath / "planets.bsp")
  return folderpath


@pytest.fixture
def loader(kernels_folder, bodies, frames):
  """Loader over the synthetic kernels folder."""
  bsp_loader = BSPEphemerisLoader(data_folderpath=kernels_folder, bodies=bodies, frames=frames)
  yield bsp_loader
  bsp_loader.pool.clear()


class TestEphemerisTree:
  """
  Tests for the tree of ephemerides.
  """

  def test_sanity_check_load_body(self, loader):
    earth = loader.load_celestial_body_ephemeris('EARTH')
    assert earth.target_id   == 399
    assert earth.center_id   == 3
    assert earth.target_name == 'EARTH'
    assert earth.center_name == 'EARTH BARYCENTER'
    assert earth.frame_name  == 'J2000'
    assert not earth.is_root

    sun = loader.load_celestial_body_ephemeris('SUN')
    assert sun.frame_name == 'ECLIPJ2000'

  def test_root_is_solar_system_barycenter(self, loader):
    root = loader.load_celestial_body_ephemeris('SOLAR SYSTEM BARYCENTER')
    assert root.is_root
    assert root.target_id == 0
    assert root.parent is None
    assert root.frame_name == 'J2000'

    pos_vec, vel_vec = root.get_pv_coordinates(0.0)
    assert np.array_equal(pos_vec, np.zeros(3))
    assert np.array_equal(vel_vec, np.zeros(3))

  def test_parents_and_children(self, loader):
    earth = loader.load_celestial_body_ephemeris('EARTH')
    moon  = loader.load_celestial_body_ephemeris('MOON')
    root  = loader.load_celestial_body_ephemeris('SSB')

    assert earth.parent is moon.parent
    assert earth.parent.target_name == 'EARTH BARYCENTER'
    assert earth.parent.parent is root
    assert {child.target_name for child in earth.parent.children} == {'EARTH', 'MOON'}
    assert {child.target_name for child in root.children} == {'EARTH BARYCENTER', 'SUN', 'JUPITER BARYCENTER'}

  def test_names_and_codes(self, loader):
    earth = loader.load_celestial_body_ephemeris('EARTH')
    assert loader.load_celestial_body_ephemeris(' earth ') is earth
    assert loader.load_celestial_body_ephemeris('399')     is earth
    assert loader.load_celestial_body_ephemeris('EMB')     is earth.parent

  def test_missing_body(self, loader):
    with pytest.raises(BodyNotAvailableError, match="MARS"):
      loader.load_celestial_body_ephemeris('MARS')
    with pytest.raises(BodyNotAvailableError):
      loader.load_celestial_body_ephemeris('NOT A BODY')

  def test_missing_files(self, tmp_path):
    with pytest.raises(KernelFileError):
      BSPEphemerisLoader(data_folderpath=tmp_path).load_celestial_body_ephemeris('EARTH')
    with pytest.raises(KernelFileError):
      BSPEphemerisLoader(data_folderpath=tmp_path / "missing").load_celestial_body_ephemeris('EARTH')

  def test_supported_names_filter(self, kernels_folder, bodies, frames):
    with pytest.raises(KernelFileError, match="de440"):
      BSPEphemerisLoader(r'^de440.*\.bsp$', kernels_folder, bodies, frames).load_celestial_body_ephemeris('EARTH')

    loader = BSPEphemerisLoader(r'^planets\.bsp$', kernels_folder, bodies, frames)
    assert loader.load_celestial_body_ephemeris('MOON').target_id == 301
    assert len(loader.pool) == 1
    loader.pool.clear()


class TestCoordinates:
  """
  Tests for positions and velocities of ephemerides.
  """

  def test_pv_coordinates_in_meters(self, loader):
    moon = loader.load_celestial_body_ephemeris('MOON')
    for et in (-5.0 * DAY, 0.0, 3.3 * DAY):
      pos_vec, vel_vec = moon.get_pv_coordinates(et)
      expected = orbit_state(301, et) * 1000.0
      assert pos_vec.shape == (3,)
      assert np.allclose(pos_vec, expected[0:3], rtol=0.0, atol=1e-2)
      assert np.allclose(vel_vec, expected[3:6], rtol=0.0, atol=1e-6)

  def test_pv_coordinates_other_frame(self, loader):
    sun = loader.load_celestial_body_ephemeris('SUN')
    pos_vec, vel_vec = sun.get_pv_coordinates(DAY, 'J2000')
    expected = orbit_state(10, DAY) * 1000.0
    assert np.allclose(pos_vec, eclip_to_j2000(expected[0:3]), rtol=0.0, atol=1e-2)
    assert np.allclose(vel_vec, eclip_to_j2000(expected[3:6]), rtol=0.0, atol=1e-6)

  def test_epoch_forms(self, loader):
    earth = loader.load_celestial_body_ephemeris('EARTH')
    et    = 2.0 * DAY
    utc_dt = et_to_utc(et)

    pos_et, _ = earth.get_pv_coordinates(et)
    for epoch in (utc_dt, AstropyTime(utc_dt, scale='utc'), utc_dt.isoformat()):
      pos_vec, _ = earth.get_pv_coordinates(epoch)
      assert np.allclose(pos_vec, pos_et, rtol=0.0, atol=1.0)

    with pytest.raises(TypeError):
      earth.get_pv_coordinates([et])


class TestFrames:
  """
  Tests for native frames and the linking of frame trees.
  """

  def test_native_frame_icrf(self, loader):
    earth = loader.load_celestial_body_ephemeris('EARTH')
    assert earth.get_native_frame() == NativeFrame('EARTH BARYCENTER', 'J2000', SpiceJ2000Convention.ICRF)

  def test_native_frame_eme2000_requires_link(self, loader):
    earth = loader.load_celestial_body_ephemeris('EARTH')
    loader.set_spice_j2000_convention(SpiceJ2000Convention.EME2000)
    with pytest.raises(SpiceError, match="EME2000"):
      earth.get_native_frame()

    loader.link_frames_trees('SOLAR SYSTEM BARYCENTER', 'EME2000')
    assert earth.get_native_frame().frame_name == 'J2000'

  def test_link_frames_trees(self, loader):
    loader.set_spice_j2000_convention('EME2000')
    loader.link_frames_trees('SSB', 'EME2000')

    emb = loader.load_celestial_body_ephemeris('EARTH BARYCENTER')
    assert emb.get_native_frame() == NativeFrame('SOLAR SYSTEM BARYCENTER', 'EME2000', SpiceJ2000Convention.EME2000)

    sun = loader.load_celestial_body_ephemeris('SUN')
    assert sun.get_native_frame().frame_name == 'EME2000'

    moon = loader.load_celestial_body_ephemeris('MOON')
    assert moon.get_native_frame().frame_name == 'J2000'

    with pytest.raises(BodyNotAvailableError):
      loader.link_frames_trees('MARS', 'EME2000')


class TestGravitationalCoefficients:
  """
  Tests for the gravitational parameters of DE4xx bodies.
  """

  def test_gravitational_coefficients(self):
    assert BSPEphemerisLoader.get_loaded_gravitational_coefficient(EphemerisType.EARTH) == GRAVITATIONALPARAMETERS.EARTH
    assert BSPEphemerisLoader.get_loaded_gravitational_coefficient('SUN') == pytest.approx(1.32712440041e20, rel=1e-10)
    assert BSPEphemerisLoader.get_loaded_gravitational_coefficient(EphemerisType.MOON) == pytest.approx(4.9028e12, rel=1e-4)

    total = sum(
      BSPEphemerisLoader.get_loaded_gravitational_coefficient(body)
      for body in EphemerisType
      if body not in (EphemerisType.SOLAR_SYSTEM_BARYCENTER, EphemerisType.EARTH, EphemerisType.MOON)
    )
    assert BSPEphemerisLoader.get_loaded_gravitational_coefficient('SOLAR_SYSTEM_BARYCENTER') == pytest.approx(total)

    with pytest.raises(ValueError):
      BSPEphemerisLoader.get_loaded_gravitational_coefficient('CERES')
