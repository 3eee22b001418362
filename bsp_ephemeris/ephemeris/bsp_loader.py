"""
BSP Celestial Body Ephemerides
==============================

Celestial body ephemerides read from the BSP files of a data folder.

Each body found as a segment target gets an ephemeris giving its position and
velocity relative to the segment center. Bodies are linked into a tree
(center -> targets) whose root is the top of the chain of centers, usually
the solar system barycenter.
"""
import numpy as np

from dataclasses import dataclass, field
from datetime    import datetime
from enum        import Enum
from pathlib     import Path
from typing      import Optional, Union

from astropy.time import Time as AstropyTime

from bsp_ephemeris.model.constants      import CONVERTER, GRAVITATIONALPARAMETERS
from bsp_ephemeris.model.time_converter import epoch_to_et
from bsp_ephemeris.spice.bodies         import BodyTable, get_body_table, normalize_name
from bsp_ephemeris.spice.errors         import BodyNotAvailableError, KernelFileError, SpiceError
from bsp_ephemeris.spice.frames         import FrameTable, get_frame_table
from bsp_ephemeris.spice.kernel_pool    import KernelPool
from bsp_ephemeris.spice.spk_reader     import SpkReader
from bsp_ephemeris.utility.loader       import DATA_FOLDERPATH, find_kernel_files


DEFAULT_BSP_SUPPORTED_NAMES = r'.*\.bsp$'
DEFAULT_DATA_FOLDERPATH     = DATA_FOLDERPATH / 'spice_kernels'
ROOT_FRAME_NAME             = 'J2000'


class EphemerisType(Enum):
  SOLAR_SYSTEM_BARYCENTER = 'SOLAR_SYSTEM_BARYCENTER'
  SUN                     = 'SUN'
  MERCURY                 = 'MERCURY'
  VENUS                   = 'VENUS'
  EARTH_MOON              = 'EARTH_MOON'
  EARTH                   = 'EARTH'
  MOON                    = 'MOON'
  MARS                    = 'MARS'
  JUPITER                 = 'JUPITER'
  SATURN                  = 'SATURN'
  URANUS                  = 'URANUS'
  NEPTUNE                 = 'NEPTUNE'
  PLUTO                   = 'PLUTO'


class SpiceJ2000Convention(Enum):
  """
  Realization of the SPICE J2000 frame at the root of the BSP tree.
  """
  EME2000 = 'EME2000'
  ICRF    = 'ICRF'


@dataclass(frozen=True)
class NativeFrame:
  """
  Frame in which an ephemeris is natively expressed.

  Attributes
    center_name : str
      Body at the origin of the frame
    frame_name : str
      Orientation of the frame (SPICE frame name, or the linked root frame)
    convention : SpiceJ2000Convention
      Realization of the J2000 frame at the root of the tree
  """
  center_name : str
  frame_name  : str
  convention  : SpiceJ2000Convention


@dataclass(eq=False)
class BSPCelestialBodyEphemeris:
  """
  Ephemeris of one body relative to the center of its BSP segment.

  Methods
    get_pv_coordinates(epoch, frame)
      Position [m] and velocity [m/s] relative to the center
    get_native_frame()
      Frame the ephemeris is expressed in
  """
  loader      : 'BSPEphemerisLoader'
  target_id   : int
  center_id   : int
  target_name : str
  center_name : str
  frame_name  : str
  parent      : Optional['BSPCelestialBodyEphemeris'] = field(default=None, repr=False)
  children    : list = field(default_factory=list, repr=False)

  @property
  def is_root(self) -> bool:
    return self.target_id == self.center_id

  def get_pv_coordinates(
    self,
    epoch : Union[float, datetime, AstropyTime],
    frame : Optional[Union[str, int]] = None,
  ) -> tuple[np.ndarray, np.ndarray]:
    """
    Position and velocity of the body relative to its segment center.

    Input:
    ------
      epoch : float | datetime | astropy.time.Time
        ET seconds past J2000, UTC datetime, or astropy Time.
      frame : str | int
        Output frame. Defaults to the segment frame; any other frame must be
        inertial.

    Output:
    -------
      pos_vec : np.ndarray (3,)
        Position [m].
      vel_vec : np.ndarray (3,)
        Velocity [m/s].
    """
    if self.is_root:
      return np.zeros(3), np.zeros(3)

    state, _ = self.loader.reader.get_state(
      target   = self.target_id,
      epoch    = epoch_to_et(epoch),
      frame    = self.frame_name if frame is None else frame,
      observer = self.center_id,
    )
    state = state * CONVERTER.M_PER_KM
    return state[0:3], state[3:6]

  def get_native_frame(self) -> NativeFrame:
    """
    Native frame of the ephemeris: the segment frame centered on the segment center.

    The root of the tree can only be realized as ICRF, unless the tree has
    been linked to a caller frame with link_frames_trees().
    """
    loader = self.loader
    if loader.body_link is not None and normalize_name(self.center_name) == loader.body_link:
      return NativeFrame(self.center_name, loader.root_frame_name, loader.convention)
    if loader.body_link is None and loader.convention == SpiceJ2000Convention.EME2000:
      raise SpiceError(
        "The EME2000 convention is not supported for the SPICE J2000 frame at the root "
        "of the BSP tree; link the tree to a root frame or use the ICRF convention"
      )
    return NativeFrame(self.center_name, self.frame_name, loader.convention)


class BSPEphemerisLoader:
  """
  Loader of celestial body ephemerides from BSP files.

  Methods
    load_celestial_body_ephemeris(name)
      Ephemeris of a body
    get_loaded_gravitational_coefficient(body)
      Gravitational parameter of a body [m³/s²]
    link_frames_trees(body_name, root_frame_name)
      Attach the BSP tree to a caller frame at a given body
  """
  def __init__(
    self,
    supported_names : str = DEFAULT_BSP_SUPPORTED_NAMES,
    data_folderpath : Optional[Union[str, Path]] = None,
    bodies          : Optional[BodyTable] = None,
    frames          : Optional[FrameTable] = None,
  ):
    self.supported_names = supported_names
    self.data_folderpath = Path(data_folderpath) if data_folderpath is not None else DEFAULT_DATA_FOLDERPATH
    self.bodies          = bodies if bodies is not None else get_body_table()
    self.frames          = frames if frames is not None else get_frame_table()
    self.pool            = KernelPool()
    self.reader          = SpkReader(self.pool, self.bodies, self.frames)
    self.ephemerides     = {}
    self.convention      = SpiceJ2000Convention.ICRF
    self.body_link       = None
    self.root_frame_name = 'ICRF'
    self._fed            = False

  def __repr__(self) -> str:
    return f"BSPEphemerisLoader('{self.supported_names}', '{self.data_folderpath}')"

  def _bsp_name(
    self,
    name : str,
  ) -> str:
    code = self.bodies.string_to_code(name)
    return self.bodies.code_to_string(code) if code is not None else normalize_name(name)

  def _feed(self) -> None:
    filepaths = find_kernel_files(self.data_folderpath, self.supported_names) if self.data_folderpath.is_dir() else []
    if not filepaths:
      raise KernelFileError(
        f"No BSP file matching '{self.supported_names}' found in {self.data_folderpath}"
      )
    for filepath in filepaths:
      self.load_file(filepath)
    self._fed = True

  def load_file(
    self,
    filepath : Union[str, Path],
  ) -> None:
    """
    Load a BSP file and add the bodies of its segments to the tree.
    """
    kernel = self.pool.load(filepath)
    for segment in kernel.segments:
      target_name = self.bodies.code_to_string(segment.target)
      self.ephemerides[target_name] = BSPCelestialBodyEphemeris(
        loader      = self,
        target_id   = segment.target,
        center_id   = segment.center,
        target_name = target_name,
        center_name = self.bodies.code_to_string(segment.center),
        frame_name  = self.frames.id_to_name(segment.frame) or str(segment.frame),
      )
    self._add_root()
    self._link_tree()

  def _add_root(self) -> None:
    if not self.ephemerides:
      return
    ephemeris = next(iter(self.ephemerides.values()))
    visited   = set()
    while ephemeris.center_name in self.ephemerides and ephemeris.center_name not in visited:
      visited.add(ephemeris.center_name)
      parent = self.ephemerides[ephemeris.center_name]
      if parent.is_root:
        return
      ephemeris = parent

    root_name = ephemeris.center_name
    self.ephemerides[root_name] = BSPCelestialBodyEphemeris(
      loader      = self,
      target_id   = ephemeris.center_id,
      center_id   = ephemeris.center_id,
      target_name = root_name,
      center_name = root_name,
      frame_name  = ROOT_FRAME_NAME,
    )

  def _link_tree(self) -> None:
    for ephemeris in self.ephemerides.values():
      ephemeris.parent   = None
      ephemeris.children = []
    for ephemeris in self.ephemerides.values():
      if ephemeris.is_root:
        continue
      parent = self.ephemerides.get(ephemeris.center_name)
      if parent is not None:
        ephemeris.parent = parent
        parent.children.append(ephemeris)

  def load_celestial_body_ephemeris(
    self,
    name : str,
  ) -> BSPCelestialBodyEphemeris:
    """
    Ephemeris of a body.

    Input:
    ------
      name : str
        Body name or NAIF code written as a string.

    Output:
    -------
      ephemeris : BSPCelestialBodyEphemeris
        Ephemeris of the body relative to its segment center.
    """
    bsp_name = self._bsp_name(name)
    if bsp_name not in self.ephemerides and not self._fed:
      self._feed()

    ephemeris = self.ephemerides.get(bsp_name)
    if ephemeris is None:
      raise BodyNotAvailableError(
        f"Body '{bsp_name}' is not available in the BSP files matching '{self.supported_names}'"
      )
    return ephemeris

  @staticmethod
  def get_loaded_gravitational_coefficient(
    body : EphemerisType,
  ) -> float:
    """
    Gravitational parameter [m³/s²] of a body, consistent with DE4xx ephemerides.
    """
    return getattr(GRAVITATIONALPARAMETERS, EphemerisType(body).name)

  def set_spice_j2000_convention(
    self,
    convention : SpiceJ2000Convention,
  ) -> None:
    self.convention = SpiceJ2000Convention(convention)

  def link_frames_trees(
    self,
    body_name       : str,
    root_frame_name : str = 'ICRF',
  ) -> None:
    """
    Attach the BSP tree to a caller frame: the frame centered on body_name
    becomes root_frame_name.
    """
    ephemeris            = self.load_celestial_body_ephemeris(body_name)
    self.root_frame_name = root_frame_name
    self.body_link       = normalize_name(ephemeris.target_name)
