"""
Unit Tests for Model Module
===========================

Tests for time conversions and constants.

Tests:
------
TestTimeConverter
  - test_sanity_check_j2000_epoch      : verify J2000 (TDB) expressed in UTC converts to ET zero
  - test_et_to_utc                     : verify ET zero converts back to 2000-01-01 11:58:55.816 UTC
  - test_round_trip                    : verify UTC -> ET -> UTC over several decades
  - test_precision_rounding            : verify the seconds are rounded to the requested precision
  - test_timezone_aware_datetime       : verify aware datetimes are converted to UTC first
  - test_epoch_to_et_forms             : verify numbers, datetimes, astropy Time and strings are accepted
  - test_epoch_to_et_rejects_others    : verify TypeError for unsupported epoch types

TestConstants
  - test_unit_conversions              : verify unit conversion factors
  - test_naif_ids                      : verify NAIF codes of DE4xx bodies
  - test_gravitational_parameters      : verify the barycenter GM is the sum of its parts

Usage:
------
  python -m pytest bsp_ephemeris/validation/test_model.py -v
"""
import pytest
import numpy as np

from datetime import datetime, timedelta, timezone

from astropy.time import Time as AstropyTime

from bsp_ephemeris.model.constants      import CONVERTER, GRAVITATIONALPARAMETERS, NAIFIDS, PHYSICALCONSTANTS
from bsp_ephemeris.model.time_converter import epoch_to_et, et_to_utc, time_to_et, utc_to_et


J2000_UTC = datetime(2000, 1, 1, 11, 58, 55, 816000)


class TestTimeConverter:
  """
  Tests for UTC/ET conversions.
  """

  def test_sanity_check_j2000_epoch(self):
    """
    At J2000, TDB - UTC = 32.184 s + 32 leap seconds, give or take the periodic TDB terms.
    """
    assert utc_to_et(J2000_UTC) == pytest.approx(0.0, abs=2e-3)
    assert time_to_et(AstropyTime('2000-01-01T12:00:00', scale='tdb')) == pytest.approx(0.0, abs=1e-9)

  def test_et_to_utc(self):
    utc_dt = et_to_utc(0.0, precision_seconds=3)
    assert utc_dt.tzinfo is None
    assert abs((utc_dt - J2000_UTC).total_seconds()) <= 2e-3

  def test_round_trip(self):
    for utc_dt in (
      datetime(1985, 7, 4, 0, 0, 0),
      datetime(2017, 1, 1, 0, 0, 0),
      datetime(2024, 2, 29, 23, 59, 59, 250000),
    ):
      assert et_to_utc(utc_to_et(utc_dt)) == utc_dt

  def test_precision_rounding(self):
    et     = utc_to_et(datetime(2010, 6, 1, 12, 0, 0, 123456))
    utc_dt = et_to_utc(et, precision_seconds=2)
    assert utc_dt.microsecond == 120000
    assert et_to_utc(et, precision_seconds=0).microsecond == 0
    assert et_to_utc(et, precision_seconds=9).microsecond == 123456

  def test_timezone_aware_datetime(self):
    naive = datetime(2020, 3, 1, 6, 0, 0)
    aware = datetime(2020, 3, 1, 8, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert utc_to_et(aware) == pytest.approx(utc_to_et(naive), abs=1e-9)
    assert utc_to_et(naive.replace(tzinfo=timezone.utc)) == pytest.approx(utc_to_et(naive), abs=1e-9)

  def test_epoch_to_et_forms(self):
    utc_dt = datetime(2025, 10, 1, 0, 0, 0)
    et     = utc_to_et(utc_dt)

    assert epoch_to_et(12.5)             == 12.5
    assert epoch_to_et(12)               == 12.0
    assert isinstance(epoch_to_et(12), float)
    assert epoch_to_et(np.float64(3.0))  == 3.0
    assert epoch_to_et(utc_dt)           == pytest.approx(et, abs=1e-6)
    assert epoch_to_et(AstropyTime(utc_dt, scale='utc')) == pytest.approx(et, abs=1e-6)
    assert epoch_to_et('2025-10-01T00:00:00')            == pytest.approx(et, abs=1e-6)

  def test_epoch_to_et_rejects_others(self):
    for epoch in (True, None, [0.0], {'et': 0.0}):
      with pytest.raises(TypeError):
        epoch_to_et(epoch)


class TestConstants:
  """
  Tests for the model constants.
  """

  def test_unit_conversions(self):
    assert CONVERTER.SEC_PER_DAY * CONVERTER.DAY_PER_JULIAN_CENTURY == 3155760000.0
    assert CONVERTER.M_PER_KM * CONVERTER.KM_PER_M == pytest.approx(1.0)
    assert CONVERTER.RAD_PER_ARCSEC * 3600.0 == pytest.approx(CONVERTER.RAD_PER_DEG)
    assert PHYSICALCONSTANTS.speed_of_light == pytest.approx(PHYSICALCONSTANTS.speed_of_light_km_per_sec * 1000.0)

  def test_naif_ids(self):
    assert NAIFIDS.SOLAR_SYSTEM_BARYCENTER == 0
    assert NAIFIDS.EARTH_MOON == 3
    assert NAIFIDS.SUN        == 10
    assert NAIFIDS.EARTH      == 399
    assert NAIFIDS.MOON       == 301

  def test_gravitational_parameters(self):
    parts = (
      GRAVITATIONALPARAMETERS.SUN, GRAVITATIONALPARAMETERS.MERCURY, GRAVITATIONALPARAMETERS.VENUS,
      GRAVITATIONALPARAMETERS.EARTH_MOON, GRAVITATIONALPARAMETERS.MARS, GRAVITATIONALPARAMETERS.JUPITER,
      GRAVITATIONALPARAMETERS.SATURN, GRAVITATIONALPARAMETERS.URANUS, GRAVITATIONALPARAMETERS.NEPTUNE,
      GRAVITATIONALPARAMETERS.PLUTO,
    )
    assert GRAVITATIONALPARAMETERS.SOLAR_SYSTEM_BARYCENTER == pytest.approx(sum(parts))
    assert GRAVITATIONALPARAMETERS.EARTH + GRAVITATIONALPARAMETERS.MOON == pytest.approx(
      GRAVITATIONALPARAMETERS.EARTH_MOON, rel=1e-9
    )
