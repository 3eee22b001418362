import numpy as np

from datetime import datetime, timedelta, timezone
from typing   import Union

from astropy      import units as u
from astropy.time import Time as AstropyTime, TimeDelta

from bsp_ephemeris.model.constants import TIMECONSTANTS


J2000_TDB = AstropyTime(TIMECONSTANTS.J2000_ISO, format='isot', scale=TIMECONSTANTS.TDB_SCALE)


def time_to_et(
  time : AstropyTime,
) -> float:
  """
  Convert an astropy Time in any scale to Ephemeris Time (ET) (TDB seconds past J2000).
  """
  return float((time.tdb - J2000_TDB).to_value(u.s))


def utc_to_et(
  utc_dt : datetime,
) -> float:
  """
  Convert a UTC datetime object to Ephemeris Time (ET) (seconds past J2000).

  Input:
  ------
    utc_dt : datetime
      The UTC datetime to convert. Naive datetimes are taken as UTC.

  Output:
  -------
    et_float : float
      The corresponding Ephemeris Time (ET) in seconds past J2000.
  """
  if utc_dt.tzinfo is not None:
    utc_dt = utc_dt.astimezone(timezone.utc).replace(tzinfo=None)
  et_float = time_to_et(AstropyTime(utc_dt, scale='utc'))
  return et_float


def et_to_utc(
  et                : float,
  precision_seconds : int = 6,
) -> datetime:
  """
  Convert Ephemeris Time (ET) to UTC datetime object.

  Input:
  ------
    et : float
      Ephemeris Time (ET) in seconds past J2000.
    precision_seconds : int
      Number of decimal places for the seconds component (0-6).

  Output:
  -------
    utc_dt : datetime
      UTC time as a naive datetime object.
  """
  # Ensure precision doesn't exceed 6 for datetime compatibility
  precision_seconds = min(max(int(precision_seconds), 0), 6)

  utc_time = (J2000_TDB + TimeDelta(float(et), format='sec')).utc
  utc_dt   = utc_time.to_datetime()

  step        = 10 ** (6 - precision_seconds)
  microsecond = int(round(utc_dt.microsecond / step)) * step
  return utc_dt.replace(microsecond=0) + timedelta(microseconds=microsecond)


def epoch_to_et(
  epoch : Union[float, int, datetime, AstropyTime, str],
) -> float:
  """
  Convert an epoch given in any supported form to Ephemeris Time (ET).

  Input:
  ------
    epoch : float | int | datetime | astropy.time.Time | str
      ET seconds past J2000, UTC datetime, astropy Time, or ISO UTC string.

  Output:
  -------
    et : float
      Ephemeris Time (ET) in seconds past J2000.
  """
  if isinstance(epoch, AstropyTime):
    return time_to_et(epoch)
  if isinstance(epoch, datetime):
    return utc_to_et(epoch)
  if isinstance(epoch, str):
    return time_to_et(AstropyTime(epoch, scale='utc'))
  if isinstance(epoch, (int, float, np.integer, np.floating)) and not isinstance(epoch, bool):
    return float(epoch)
  raise TypeError(f"Unsupported epoch type: {type(epoch).__name__}")
