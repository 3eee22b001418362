"""
Synthetic Kernels
=================

Analytic circular orbits and SPK files fitted to them, used as reference data
by the validation tests.

Bodies:
-------
  EARTH BARYCENTER (3)   around SSB (0)              J2000       type 2
  EARTH (399)            around EARTH BARYCENTER (3) J2000       type 2
  MOON (301)             around EARTH BARYCENTER (3) J2000       type 2
  SUN (10)               around SSB (0)              ECLIPJ2000  type 3
  JUPITER BARYCENTER (5) around SSB (0)              J2000       type 3
"""
import numpy as np

from pathlib import Path
from types   import SimpleNamespace
from typing  import Optional, Union

from bsp_ephemeris.model.constants  import CONVERTER
from bsp_ephemeris.spice.spk_writer import SpkWriter, fit_chebyshev_segment


DAY = CONVERTER.SEC_PER_DAY

START_ET = -10.0 * DAY
END_ET   =  10.0 * DAY
INTLEN   =   4.0 * DAY
DEGREE   = 13

ORBITS = {
  3   : SimpleNamespace(center=0, frame=1,  data_type=2, radius=1.496e8,  period=365.25  * DAY, phase=0.3),
  399 : SimpleNamespace(center=3, frame=1,  data_type=2, radius=4671.0,   period=27.32   * DAY, phase=1.0),
  301 : SimpleNamespace(center=3, frame=1,  data_type=2, radius=379700.0, period=27.32   * DAY, phase=1.0 + np.pi),
  10  : SimpleNamespace(center=0, frame=17, data_type=3, radius=7.0e5,    period=4332.59 * DAY, phase=2.0),
  5   : SimpleNamespace(center=0, frame=1,  data_type=3, radius=7.785e8,  period=4332.59 * DAY, phase=0.7),
}

COMMENTS = (
  "Synthetic planetary ephemeris\n"
  "Circular orbits fitted with Chebyshev polynomials\n"
  "Coverage: J2000 +/- 10 days"
)


def orbit_state(
  body   : int,
  epochs : Union[float, np.ndarray],
  offset : float = 0.0,
) -> np.ndarray:
  """
  State [km, km/s] of a body relative to its center, in its segment frame.

  Input:
  ------
    body : int
      NAIF code of a body of ORBITS.
    epochs : float | np.ndarray
      Epochs [s past J2000].
    offset : float
      Constant added to the x position [km].

  Output:
  -------
    states : np.ndarray
      Shape (6,) for a scalar epoch, (n, 6) otherwise.
  """
  orbit  = ORBITS[body]
  scalar = np.ndim(epochs) == 0
  epochs = np.atleast_1d(np.asarray(epochs, dtype=float))

  rate  = 2.0 * np.pi / orbit.period
  angle = orbit.phase + rate * epochs

  states = np.zeros((epochs.size, 6))
  states[:, 0] = orbit.radius * np.cos(angle) + offset
  states[:, 1] = orbit.radius * np.sin(angle)
  states[:, 3] = -orbit.radius * rate * np.sin(angle)
  states[:, 4] =  orbit.radius * rate * np.cos(angle)
  return states[0] if scalar else states


def add_orbit_segment(
  writer     : SpkWriter,
  body       : int,
  start_et   : float         = START_ET,
  end_et     : float         = END_ET,
  offset     : float         = 0.0,
  data_type  : Optional[int] = None,
  intlen     : float         = INTLEN,
  degree     : int           = DEGREE,
  segment_id : str           = '',
) -> None:
  """
  Fit the orbit of a body over an interval and queue it as a segment.
  """
  orbit     = ORBITS[body]
  data_type = orbit.data_type if data_type is None else data_type
  n_records = max(1, int(np.ceil((end_et - start_et) / intlen - 1.0e-9)))

  coefficients = fit_chebyshev_segment(
    lambda epochs: orbit_state(body, epochs, offset),
    init      = start_et,
    intlen    = intlen,
    n_records = n_records,
    degree    = degree,
    data_type = data_type,
  )
  writer.add_chebyshev_segment(
    target       = body,
    center       = orbit.center,
    frame        = orbit.frame,
    data_type    = data_type,
    init         = start_et,
    intlen       = intlen,
    coefficients = coefficients,
    start_et     = start_et,
    end_et       = end_et,
    segment_id   = segment_id or f"BODY {body}",
  )


def write_planets_kernel(
  filepath   : Union[str, Path],
  byte_order : str = '<',
) -> Path:
  """
  Write the SPK file holding every orbit of ORBITS over [START_ET, END_ET].
  """
  with SpkWriter(filepath, internal_name='SYNTHETIC PLANETS', byte_order=byte_order, comments=COMMENTS) as writer:
    for body in ORBITS:
      add_orbit_segment(writer, body)
  return Path(filepath)


def eclip_to_j2000(
  vec : np.ndarray,
) -> np.ndarray:
  """
  Express an ECLIPJ2000 vector in J2000 (rotation by the J2000 obliquity about x).
  """
  obliquity = 84381.448 * CONVERTER.RAD_PER_ARCSEC
  c, s = np.cos(obliquity), np.sin(obliquity)
  return np.array([
    vec[0],
    c * vec[1] - s * vec[2],
    s * vec[1] + c * vec[2],
  ])


def ssb_state_j2000(
  body : int,
  et   : float,
) -> np.ndarray:
  """
  State of a body relative to the solar system barycenter, in J2000.
  """
  state = np.zeros(6)
  while body != 0:
    leg = orbit_state(body, et)
    if ORBITS[body].frame == 17:
      leg = np.concatenate([eclip_to_j2000(leg[0:3]), eclip_to_j2000(leg[3:6])])
    state += leg
    body   = ORBITS[body].center
  return state
