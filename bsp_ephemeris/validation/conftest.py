"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for all validation tests.
"""
import pytest

from pathlib import Path

from bsp_ephemeris.spice.bodies         import BodyTable
from bsp_ephemeris.spice.frames         import FrameTable
from bsp_ephemeris.spice.kernel_pool    import KernelPool
from bsp_ephemeris.spice.spk_reader     import SpkReader
from bsp_ephemeris.spice.spk_writer     import SpkWriter
from bsp_ephemeris.validation.synthetic import add_orbit_segment, write_planets_kernel


@pytest.fixture(scope="session")
def spice_kernels_path():
  """Return path to the downloaded SPICE kernels."""
  return Path(__file__).parent.parent / "data" / "spice_kernels"


@pytest.fixture(scope="session")
def planets_kernel(tmp_path_factory):
  """Synthetic SPK file holding every orbit of the synthetic system."""
  return write_planets_kernel(tmp_path_factory.mktemp("kernels") / "planets.bsp")


@pytest.fixture(scope="session")
def planets_kernel_big_endian(tmp_path_factory):
  """The synthetic SPK file written in big-endian byte order."""
  return write_planets_kernel(tmp_path_factory.mktemp("kernels_be") / "planets_be.bsp", byte_order='>')


@pytest.fixture
def kernel_factory(tmp_path):
  """
  Write a synthetic SPK file from segment settings.

  Each segment is a dict of add_orbit_segment keyword arguments, including 'body'.
  """
  def write(filename, segments, comments=''):
    with SpkWriter(tmp_path / filename, internal_name=filename.upper(), comments=comments) as writer:
      for segment in segments:
        add_orbit_segment(writer, **segment)
    return tmp_path / filename

  return write


@pytest.fixture
def bodies():
  """Body table with the built-in definitions only."""
  return BodyTable()


@pytest.fixture
def frames():
  """Frame table with the built-in definitions only."""
  return FrameTable()


@pytest.fixture
def pool(planets_kernel):
  """Kernel pool holding the synthetic planets kernel."""
  kernel_pool = KernelPool()
  kernel_pool.load(planets_kernel)
  yield kernel_pool
  kernel_pool.clear()


@pytest.fixture
def reader(pool, bodies, frames):
  """State reader over the synthetic planets kernel."""
  return SpkReader(pool, bodies, frames)
