"""
SPK State Computation
=====================

Geometric state of a target relative to an observer, assembled from the
segments of the loaded SPK files.

Algorithm:
----------
  1. Follow the target chain: target -> center -> center of center ... until
     the observer or the solar system barycenter is reached, or no segment
     covers the epoch.
  2. Follow the observer chain the same way until it meets a body of the
     target chain.
  3. Sum the legs of each chain, rotating between inertial frames where two
     consecutive legs use different frames, and subtract the observer part
     from the target part in the requested frame.
"""
import numpy as np

from typing import Optional, Union

from bsp_ephemeris.model.constants   import PHYSICALCONSTANTS, NAIFIDS
from bsp_ephemeris.spice.bodies      import BodyTable, get_body_table
from bsp_ephemeris.spice.errors      import InsufficientEphemerisDataError
from bsp_ephemeris.spice.frames      import FrameTable, get_frame_table, rotate_state
from bsp_ephemeris.spice.kernel_pool import KernelPool
from bsp_ephemeris.spice.spk_segment import SpkSegment


MAX_CHAIN_LEGS = 100


def _add_leg(
  accumulated_state : np.ndarray,
  accumulated_frame : Optional[int],
  leg_state         : np.ndarray,
  leg_frame         : int,
) -> tuple[np.ndarray, int]:
  """
  Add a leg to a chain sum. The sum is carried in the frame of the latest leg.
  """
  if accumulated_frame is None or accumulated_frame == leg_frame:
    return accumulated_state + leg_state, leg_frame
  return rotate_state(accumulated_state, accumulated_frame, leg_frame) + leg_state, leg_frame


def _express_in(
  state    : np.ndarray,
  frame    : Optional[int],
  frame_id : int,
) -> np.ndarray:
  if frame is None or frame == frame_id:
    return state
  return rotate_state(state, frame, frame_id)


class SpkReader:
  """
  States of bodies from the segments of a kernel pool.

  Methods
    get_state(target, epoch, frame, observer)
      State and one-way light time of target relative to observer
    get_position(target, epoch, frame, observer)
      Position of target relative to observer
    get_states(target, epochs, frame, observer)
      States at several epochs
    state_relative_to_center(segment, et)
      State of a segment target relative to the segment center
  """
  def __init__(
    self,
    pool   : KernelPool,
    bodies : Optional[BodyTable]  = None,
    frames : Optional[FrameTable] = None,
  ):
    self.pool   = pool
    self.bodies = bodies if bodies is not None else get_body_table()
    self.frames = frames if frames is not None else get_frame_table()

  def state_relative_to_center(
    self,
    segment : SpkSegment,
    et      : float,
  ) -> tuple[np.ndarray, int, int]:
    """
    State of a segment target relative to its center of motion.

    Output:
    -------
      state : np.ndarray (6,)
        Position [km] and velocity [km/s].
      frame : int
        ID of the segment frame.
      center : int
        NAIF code of the segment center.
    """
    return self.pool.evaluate(segment, et), segment.frame, segment.center

  def _next_leg(
    self,
    body : int,
    et   : float,
  ) -> Optional[tuple[np.ndarray, int, int]]:
    segment = self.pool.search_segment(body, et)
    if segment is None:
      return None
    return self.state_relative_to_center(segment, et)

  def _insufficient_data(
    self,
    target   : int,
    observer : int,
    et       : float,
  ) -> InsufficientEphemerisDataError:
    return InsufficientEphemerisDataError(
      f"Insufficient ephemeris data has been loaded to compute the state of "
      f"{self.bodies.describe(target)} relative to {self.bodies.describe(observer)} "
      f"at the ephemeris epoch {et}"
    )

  def get_state(
    self,
    target   : Union[str, int],
    epoch    : float,
    frame    : Union[str, int] = 'J2000',
    observer : Union[str, int] = NAIFIDS.SOLAR_SYSTEM_BARYCENTER,
  ) -> tuple[np.ndarray, float]:
    """
    Geometric state of a target relative to an observer.

    Input:
    ------
      target : str | int
        Target body name or NAIF code.
      epoch : float
        Epoch, TDB seconds past J2000.
      frame : str | int
        Reference frame name or ID of the output state.
      observer : str | int
        Observing body name or NAIF code.

    Output:
    -------
      state : np.ndarray (6,)
        Position [km] and velocity [km/s] of target relative to observer.
      light_time : float
        One-way light time between observer and target [s].
    """
    target_id   = self.bodies.resolve(target)
    observer_id = self.bodies.resolve(observer)
    frame_id    = self.frames.resolve(frame)
    et          = float(epoch)

    if target_id == observer_id:
      return np.zeros(6), 0.0

    # Target chain: chain_states[k] is the target relative to chain_bodies[k]
    chain_bodies = [target_id]
    chain_states = [(np.zeros(6), None)]
    body = target_id
    while body != observer_id and body != NAIFIDS.SOLAR_SYSTEM_BARYCENTER:
      leg = self._next_leg(body, et)
      if leg is None:
        break
      if len(chain_bodies) > MAX_CHAIN_LEGS:
        raise InsufficientEphemerisDataError(
          f"Chain of centers of {self.bodies.describe(target_id)} exceeds {MAX_CHAIN_LEGS} legs"
        )
      leg_state, leg_frame, body = leg
      chain_states.append(_add_leg(*chain_states[-1], leg_state, leg_frame))
      chain_bodies.append(body)

    # Observer chain, until it meets the target chain
    observer_state, observer_frame = np.zeros(6), None
    body  = observer_id
    legs  = 0
    while body not in chain_bodies and body != NAIFIDS.SOLAR_SYSTEM_BARYCENTER:
      leg = self._next_leg(body, et)
      if leg is None:
        break
      legs += 1
      if legs > MAX_CHAIN_LEGS:
        raise InsufficientEphemerisDataError(
          f"Chain of centers of {self.bodies.describe(observer_id)} exceeds {MAX_CHAIN_LEGS} legs"
        )
      leg_state, leg_frame, body = leg
      observer_state, observer_frame = _add_leg(observer_state, observer_frame, leg_state, leg_frame)

    if body not in chain_bodies:
      raise self._insufficient_data(target_id, observer_id, et)

    target_state, target_frame = chain_states[chain_bodies.index(body)]
    state = (
      _express_in(target_state,   target_frame,   frame_id)
      - _express_in(observer_state, observer_frame, frame_id)
    )
    light_time = float(np.linalg.norm(state[0:3])) / PHYSICALCONSTANTS.speed_of_light_km_per_sec
    return state, light_time

  def get_position(
    self,
    target   : Union[str, int],
    epoch    : float,
    frame    : Union[str, int] = 'J2000',
    observer : Union[str, int] = NAIFIDS.SOLAR_SYSTEM_BARYCENTER,
  ) -> np.ndarray:
    state, _ = self.get_state(target, epoch, frame, observer)
    return state[0:3]

  def get_states(
    self,
    target   : Union[str, int],
    epochs   : np.ndarray,
    frame    : Union[str, int] = 'J2000',
    observer : Union[str, int] = NAIFIDS.SOLAR_SYSTEM_BARYCENTER,
  ) -> np.ndarray:
    """
    States of a target relative to an observer at several epochs.

    Output:
    -------
      states : np.ndarray (n, 6)
        Position [km] and velocity [km/s] at each epoch.
    """
    epochs = np.atleast_1d(np.asarray(epochs, dtype=float))
    states = np.empty((epochs.size, 6))
    for i, et in enumerate(epochs):
      states[i], _ = self.get_state(target, et, frame, observer)
    return states
