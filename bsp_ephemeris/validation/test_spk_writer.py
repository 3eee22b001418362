"""
Unit Tests for SPK Writer Module
================================

Tests for the fitting of Chebyshev records and the writing of SPK files.

Tests:
------
TestFitChebyshevSegment
  - test_sanity_check_shape             : verify (n_records, components, degree+1) for types 2 and 3
  - test_fit_reproduces_state           : verify fitted records evaluate back to the fitted function
  - test_invalid_data_type              : verify ValueError for a type other than 2 or 3

TestSpkWriter
  - test_written_file_is_readable       : verify a written file loads and evaluates
  - test_default_coverage               : verify the coverage defaults to the span of the records
  - test_segment_validation             : verify ValueError for bad types, intervals, names and shapes
  - test_invalid_byte_order             : verify ValueError for an unknown byte order
  - test_failed_block_writes_nothing    : verify no file is written when the with-block raises
  - test_long_internal_name_truncated   : verify the internal name is cut at 60 characters

Usage:
------
  python -m pytest bsp_ephemeris/validation/test_spk_writer.py -v
"""
import pytest
import numpy as np

from bsp_ephemeris.spice.daf            import DafFile
from bsp_ephemeris.spice.kernel_pool    import KernelPool
from bsp_ephemeris.spice.spk_writer     import SpkWriter, fit_chebyshev_segment
from bsp_ephemeris.validation.synthetic import DAY, orbit_state


def moon_states(epochs):
  return orbit_state(301, epochs)


class TestFitChebyshevSegment:
  """
  Tests for fit_chebyshev_segment.
  """

  def test_sanity_check_shape(self):
    assert fit_chebyshev_segment(moon_states, 0.0, DAY, 3, 10).shape == (3, 3, 11)
    assert fit_chebyshev_segment(moon_states, 0.0, DAY, 2, 7, data_type=3).shape == (2, 6, 8)

  def test_fit_reproduces_state(self, tmp_path):
    coefficients = fit_chebyshev_segment(moon_states, 0.0, DAY, 2, 13, data_type=3)
    filepath     = tmp_path / "moon.bsp"
    with SpkWriter(filepath) as writer:
      writer.add_chebyshev_segment(301, 3, 1, 3, 0.0, DAY, coefficients)

    with KernelPool() as pool:
      pool.load(filepath)
      for et in np.linspace(0.0, 2.0 * DAY, 17):
        state = pool.evaluate(pool.search_segment(301, et), et)
        assert np.allclose(state[0:3], orbit_state(301, et)[0:3], rtol=0.0, atol=1e-6)
        assert np.allclose(state[3:6], orbit_state(301, et)[3:6], rtol=0.0, atol=1e-10)

  def test_invalid_data_type(self):
    with pytest.raises(ValueError):
      fit_chebyshev_segment(moon_states, 0.0, DAY, 1, 5, data_type=13)


class TestSpkWriter:
  """
  Tests for SpkWriter.
  """

  def test_written_file_is_readable(self, tmp_path):
    coefficients = fit_chebyshev_segment(moon_states, -DAY, DAY, 2, 11)
    filepath     = tmp_path / "nested" / "moon.bsp"

    writer = SpkWriter(filepath, internal_name='MOON TEST', comments='one comment')
    writer.add_chebyshev_segment(301, 3, 1, 2, -DAY, DAY, coefficients, segment_id='MOON')
    assert writer.n_segments == 1
    assert writer.write() == filepath

    with DafFile(filepath) as daf:
      assert daf.internal_name   == 'MOON TEST'
      assert daf.read_comments() == 'one comment'
      summary = next(daf.summaries())
      assert summary.name     == 'MOON'
      assert summary.integers[0:4] == (301, 3, 1, 2)

  def test_default_coverage(self, tmp_path):
    coefficients = fit_chebyshev_segment(moon_states, 10.0, 100.0, 4, 3)
    filepath     = tmp_path / "span.bsp"
    with SpkWriter(filepath) as writer:
      writer.add_chebyshev_segment(301, 3, 1, 2, 10.0, 100.0, coefficients)
      writer.add_chebyshev_segment(301, 3, 1, 2, 10.0, 100.0, coefficients, start_et=50.0, end_et=250.0)

    with DafFile(filepath) as daf:
      summaries = list(daf.summaries())
    assert summaries[0].doubles == (10.0, 410.0)
    assert summaries[1].doubles == (50.0, 250.0)

  def test_segment_validation(self, tmp_path):
    writer       = SpkWriter(tmp_path / "bad.bsp")
    coefficients = np.zeros((2, 3, 5))

    with pytest.raises(ValueError, match="type"):
      writer.add_chebyshev_segment(301, 3, 1, 13, 0.0, DAY, coefficients)
    with pytest.raises(ValueError, match="Interval"):
      writer.add_chebyshev_segment(301, 3, 1, 2, 0.0, 0.0, coefficients)
    with pytest.raises(ValueError, match="exceeds"):
      writer.add_chebyshev_segment(301, 3, 1, 2, 0.0, DAY, coefficients, segment_id='X' * 41)
    with pytest.raises(ValueError, match="shape"):
      writer.add_chebyshev_segment(301, 3, 1, 3, 0.0, DAY, coefficients)
    with pytest.raises(ValueError, match="shape"):
      writer.add_chebyshev_segment(301, 3, 1, 2, 0.0, DAY, np.zeros((3, 5)))

    writer.add_chebyshev_segment(301, 3, 1, 2, 0.0, DAY, coefficients, segment_id='X' * 40)
    assert writer.n_segments == 1

  def test_invalid_byte_order(self, tmp_path):
    with pytest.raises(ValueError):
      SpkWriter(tmp_path / "bad.bsp", byte_order='=')

  def test_failed_block_writes_nothing(self, tmp_path):
    filepath = tmp_path / "never.bsp"
    with pytest.raises(RuntimeError):
      with SpkWriter(filepath) as writer:
        writer.add_chebyshev_segment(301, 3, 1, 2, 0.0, DAY, np.zeros((1, 3, 2)))
        raise RuntimeError("abort")
    assert not filepath.exists()

  def test_long_internal_name_truncated(self, tmp_path):
    filepath = tmp_path / "long.bsp"
    with SpkWriter(filepath, internal_name='N' * 80) as writer:
      writer.add_chebyshev_segment(301, 3, 1, 2, 0.0, DAY, np.zeros((1, 3, 2)))
    with DafFile(filepath) as daf:
      assert daf.internal_name == 'N' * 60
