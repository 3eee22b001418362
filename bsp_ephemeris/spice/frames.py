"""
Reference Frames
================

Reference frame names and ID codes, and rotations between the built-in
inertial frames.

Inertial frames:
----------------
  IDs 1 to 21. Each frame is defined relative to a base frame by a sequence
  of (angle [arcsec], axis) rotations; the product
    ROT(angle_1, axis_1) @ ROT(angle_2, axis_2) @ ...
  maps vectors from the base frame into the frame. ROT is a rotation of the
  coordinate axes, e.g. for axis 1:
    [[1,  0, 0],
     [0,  c, s],
     [0, -s, c]]

Non-inertial frames:
--------------------
  Built-in body-fixed PCK and TK frames come from data/frames.yaml; more can
  be defined through text kernels. They can be named and looked up but not
  used in state rotations.
"""
import numpy as np

from typing import Optional, Union

from bsp_ephemeris.spice.errors   import FrameTransformationError, TextKernelError, UnknownFrameError
from bsp_ephemeris.utility.loader import load_data_table


FRAMES_TABLE  = 'frames.yaml'
ARCSEC_TO_RAD = np.pi / (180.0 * 3600.0)

FRAME_CLASSES = {
  'INERTIAL' : 1,
  'PCK'      : 2,
  'CK'       : 3,
  'TK'       : 4,
  'DYNAMIC'  : 5,
  'SWITCH'   : 6,
}
INERTIAL_CLASS = FRAME_CLASSES['INERTIAL']

# id, name, base frame, rotations (angle [arcsec], axis)
INERTIAL_FRAMES = (
  ( 1, 'J2000',      None,     ()),
  ( 2, 'B1950',      'J2000',  ((1152.84248596724, 3), (-1002.26108439117, 2), (1153.04066200330, 3))),
  ( 3, 'FK4',        'B1950',  ((0.525, 3),)),
  ( 4, 'DE-118',     'B1950',  ((0.53155, 3),)),
  ( 5, 'DE-96',      'B1950',  ((0.4107, 3),)),
  ( 6, 'DE-102',     'B1950',  ((0.1359, 3),)),
  ( 7, 'DE-108',     'B1950',  ((0.4775, 3),)),
  ( 8, 'DE-111',     'B1950',  ((0.5880, 3),)),
  ( 9, 'DE-114',     'B1950',  ((0.5529, 3),)),
  (10, 'DE-122',     'B1950',  ((0.5316, 3),)),
  (11, 'DE-125',     'B1950',  ((0.5754, 3),)),
  (12, 'DE-130',     'B1950',  ((0.5247, 3),)),
  (13, 'GALACTIC',   'FK4',    ((1177200.0, 3), (225360.0, 1), (1016100.0, 3))),
  (14, 'DE-200',     'J2000',  ()),
  (15, 'DE-202',     'J2000',  ()),
  (16, 'MARSIAU',    'J2000',  ((324000.0, 3), (133610.4, 2), (-152348.4, 3))),
  (17, 'ECLIPJ2000', 'J2000',  ((84381.448, 1),)),
  (18, 'ECLIPB1950', 'B1950',  ((84404.836, 1),)),
  (19, 'DE-140',     'J2000',  ((1152.71013777252, 3), (-1002.25042010533, 2), (1153.75719544491, 3))),
  (20, 'DE-142',     'J2000',  ((1152.72061453864, 3), (-1002.25052830351, 2), (1153.74663857521, 3))),
  (21, 'DE-143',     'J2000',  ((1153.03919093833, 3), (-1002.24822382286, 2), (1153.42900222357, 3))),
)
N_INERTIAL = len(INERTIAL_FRAMES)


def axis_rotation(
  angle : float,
  axis  : int,
) -> np.ndarray:
  """
  Rotation of the coordinate axes about axis 1, 2 or 3.

  Input:
  ------
    angle : float
      Rotation angle [rad].
    axis : int
      Rotation axis (1, 2 or 3).

  Output:
  -------
    rot_mat : np.ndarray
      3x3 matrix such that: rotated_vec = rot_mat @ vec
  """
  if axis not in (1, 2, 3):
    raise ValueError(f"Rotation axis must be 1, 2 or 3, got {axis}")
  c, s = np.cos(angle), np.sin(angle)
  i, j = [(1, 2), (2, 0), (0, 1)][axis - 1]

  rot_mat = np.eye(3)
  rot_mat[i, i] =  c
  rot_mat[j, j] =  c
  rot_mat[i, j] =  s
  rot_mat[j, i] = -s
  return rot_mat


def _build_inertial_transforms() -> dict[int, np.ndarray]:
  """
  Matrices mapping J2000 vectors into each inertial frame.
  """
  ids_by_name = {name: frame_id for frame_id, name, _, _ in INERTIAL_FRAMES}
  transforms  = {}
  for frame_id, _, base, rotations in INERTIAL_FRAMES:
    rot_mat = np.eye(3)
    for angle, axis in rotations:
      rot_mat = rot_mat @ axis_rotation(angle * ARCSEC_TO_RAD, axis)
    if base is not None:
      rot_mat = rot_mat @ transforms[ids_by_name[base]]
    transforms[frame_id] = rot_mat
  return transforms


_J2000_TO_FRAME = _build_inertial_transforms()


def is_inertial(
  frame_id : int,
) -> bool:
  return 1 <= frame_id <= N_INERTIAL


def inertial_rotation(
  from_id : int,
  to_id   : int,
) -> np.ndarray:
  """
  Rotation matrix between two built-in inertial frames.

  Input:
  ------
    from_id : int
      ID of the frame vectors are expressed in.
    to_id : int
      ID of the frame to express them in.

  Output:
  -------
    rot_mat : np.ndarray
      3x3 matrix such that: to_vec = rot_mat @ from_vec
  """
  if not (is_inertial(from_id) and is_inertial(to_id)):
    raise FrameTransformationError(from_id, to_id)
  if from_id == to_id:
    return np.eye(3)
  return _J2000_TO_FRAME[to_id] @ _J2000_TO_FRAME[from_id].T


def rotate_state(
  state   : np.ndarray,
  from_id : int,
  to_id   : int,
) -> np.ndarray:
  """
  Express a position/velocity state in another inertial frame.

  Input:
  ------
    state : np.ndarray
      (6,) position and velocity, or (n, 6) states.
    from_id : int
      ID of the frame the state is expressed in.
    to_id : int
      ID of the target frame.

  Output:
  -------
    rotated_state : np.ndarray
      State in the target frame, same shape as the input.
  """
  state   = np.asarray(state, dtype=float)
  rot_mat = inertial_rotation(from_id, to_id)
  if from_id == to_id:
    return state.copy()

  rotated_state = np.empty_like(state)
  rotated_state[..., 0:3] = state[..., 0:3] @ rot_mat.T
  rotated_state[..., 3:6] = state[..., 3:6] @ rot_mat.T
  return rotated_state


class FrameTable:
  """
  Frame name/ID table.

  Methods
    name_to_id(name)
      ID of a frame name, 0 if unknown
    id_to_name(frame_id)
      Name of a frame ID, None if unknown
    frame_info(frame_id)
      (center, frame_class, class_id) of a frame
    frame_from_class(frame_class, class_id)
      (frame_id, name) of the frame with a given class and class ID
    resolve(name_or_id)
      ID of a frame name or ID, UnknownFrameError if impossible
    load_from_pool(pool)
      Add the frames defined by text kernels
  """
  def __init__(
    self,
    definitions : Optional[list] = None,
  ):
    if definitions is None:
      definitions = load_data_table(FRAMES_TABLE)['frames']

    self._builtin = {}  # frame_id -> (name, center, frame_class, class_id)
    for frame_id, name, _, _ in INERTIAL_FRAMES:
      self._builtin[frame_id] = (name, 0, INERTIAL_CLASS, frame_id)
    for name, frame_id, center, frame_class, class_id in definitions:
      self._builtin[int(frame_id)] = (name, int(center), self._class_code(frame_class), int(class_id))
    self._kernel = {}

  @staticmethod
  def _class_code(
    frame_class : Union[str, int],
  ) -> int:
    if isinstance(frame_class, str):
      if frame_class.upper() not in FRAME_CLASSES:
        raise ValueError(f"Unknown frame class '{frame_class}'")
      return FRAME_CLASSES[frame_class.upper()]
    return int(frame_class)

  def _definitions(self) -> dict:
    return {**self._builtin, **self._kernel}

  def name_to_id(
    self,
    name : str,
  ) -> int:
    key = name.strip().upper()
    for definitions in (self._kernel, self._builtin):
      for frame_id, (frame_name, _, _, _) in definitions.items():
        if frame_name.upper() == key:
          return frame_id
    return 0

  def id_to_name(
    self,
    frame_id : int,
  ) -> Optional[str]:
    definition = self._definitions().get(frame_id)
    return None if definition is None else definition[0]

  def frame_info(
    self,
    frame_id : int,
  ) -> Optional[tuple[int, int, int]]:
    definition = self._definitions().get(frame_id)
    return None if definition is None else definition[1:]

  def frame_from_class(
    self,
    frame_class : Union[str, int],
    class_id    : int,
  ) -> Optional[tuple[int, str]]:
    frame_class = self._class_code(frame_class)
    for frame_id, (name, _, defined_class, defined_class_id) in self._definitions().items():
      if defined_class == frame_class and defined_class_id == class_id:
        return frame_id, name
    return None

  def resolve(
    self,
    name_or_id : Union[str, int],
  ) -> int:
    if isinstance(name_or_id, (int, np.integer)) and not isinstance(name_or_id, bool):
      if int(name_or_id) not in self._definitions():
        raise UnknownFrameError(f"Unknown frame ID {name_or_id}")
      return int(name_or_id)
    frame_id = self.name_to_id(str(name_or_id))
    if frame_id == 0:
      raise UnknownFrameError(f"Unknown frame name '{name_or_id}'")
    return frame_id

  def load_from_pool(
    self,
    pool,
    bodies = None,
  ) -> int:
    """
    Add the frames defined in the text kernel pool.

    A frame is read from FRAME_<name> = <id> together with FRAME_<id>_NAME,
    FRAME_<id>_CLASS, FRAME_<id>_CLASS_ID and FRAME_<id>_CENTER.

    Input:
    ------
      pool : TextKernelPool
        Text kernel variables.
      bodies : BodyTable
        Table used to resolve centers given by name.

    Output:
    -------
      count : int
        Number of frames defined.
    """
    self._kernel = {}
    for variable in pool.names(r'FRAME_[^\d].*'):
      values = pool.get(variable)
      if len(values) != 1 or isinstance(values[0], str):
        continue
      frame_id = int(values[0])
      prefix   = f'FRAME_{frame_id}_'

      names = pool.get_str_values(prefix + 'NAME') if (prefix + 'NAME') in pool else None
      if names is None:
        raise TextKernelError(f"Frame {variable[6:]} ({frame_id}) has no {prefix}NAME")
      for required in ('CLASS', 'CLASS_ID', 'CENTER'):
        if prefix + required not in pool:
          raise TextKernelError(f"Frame {names[0]} ({frame_id}) has no {prefix}{required}")

      center = pool.get(prefix + 'CENTER')[0]
      if isinstance(center, str):
        center_code = bodies.string_to_code(center) if bodies is not None else None
        if center_code is None:
          raise TextKernelError(f"Center '{center}' of frame {names[0]} is not a known body")
        center = center_code

      self._kernel[frame_id] = (
        names[0],
        int(center),
        pool.get_int_values(prefix + 'CLASS')[0],
        pool.get_int_values(prefix + 'CLASS_ID')[0],
      )
    return len(self._kernel)


_default_table = None


def get_frame_table() -> FrameTable:
  """
  Shared table holding the built-in frames, created on first use.
  """
  global _default_table
  if _default_table is None:
    _default_table = FrameTable()
  return _default_table
