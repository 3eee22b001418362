import yaml

from datetime import datetime
from pathlib  import Path
from types    import SimpleNamespace
from typing   import Optional, Union

from bsp_ephemeris.utility.loader      import resolve_kernel_paths
from bsp_ephemeris.utility.time_helper import parse_step, parse_time


DEFAULTS = {
  'kernels'        : None,
  'kernels_folder' : None,
  'text_kernels'   : None,
  'summary'        : False,
  'target'         : None,
  'observer'       : 'SOLAR SYSTEM BARYCENTER',
  'frame'          : 'J2000',
  'timespan'       : None,
  'step'           : 86400.0,
  'output_file'    : None,
  'plot_file'      : None,
  'log_file'       : None,
}


def load_config_file(
  config_filepath : Union[str, Path],
) -> dict:
  """
  Read run settings from a YAML file.

  Keys are the command-line argument names, with '-' or '_' separators
  (e.g. 'kernels-folder' or 'kernels_folder').

  Input:
  ------
    config_filepath : str | Path
      Path to the YAML file.

  Output:
  -------
    settings : dict
      Settings keyed like DEFAULTS, with timespan and step parsed.
  """
  config_filepath = Path(config_filepath).expanduser()
  if not config_filepath.is_file():
    raise FileNotFoundError(f"Configuration file not found: {config_filepath}")

  with open(config_filepath, 'r') as f:
    content = yaml.safe_load(f) or {}
  if not isinstance(content, dict):
    raise ValueError(f"Configuration file {config_filepath} must hold a mapping of settings")

  settings = {}
  for key, value in content.items():
    name = str(key).strip().lower().replace('-', '_')
    if name == 'plot':
      name = 'plot_file'
    if name not in DEFAULTS:
      raise ValueError(f"Unknown setting '{key}' in {config_filepath}")
    settings[name] = value

  # Single values are accepted where the command line takes several
  for name in ('kernels', 'text_kernels'):
    if isinstance(settings.get(name), str):
      settings[name] = [settings[name]]

  if settings.get('timespan') is not None:
    timespan = settings['timespan']
    if not isinstance(timespan, (list, tuple)) or len(timespan) != 2:
      raise ValueError(f"Setting 'timespan' in {config_filepath} must hold a start and an end time")
    settings['timespan'] = [
      value if isinstance(value, datetime) else parse_time(str(value))
      for value in timespan
    ]
  if settings.get('step') is not None:
    settings['step'] = parse_step(str(settings['step']))
  for name in ('target', 'observer', 'frame'):
    if settings.get(name) is not None:
      settings[name] = str(settings[name])

  return settings


def print_input_configuration(
  config : SimpleNamespace,
) -> None:
  """
  Print the input configuration in a formatted table.

  Input:
  ------
    config : SimpleNamespace
      Configuration object from build_config.
  """
  def fmt(value) -> str:
    if value is None:
      return "None"
    if isinstance(value, (list, tuple)):
      return ' '.join(str(v) for v in value) if value else "None"
    return str(value)

  timespan = (config.time_o_dt, config.time_f_dt) if config.time_o_dt is not None else None

  # Build configuration entries: (name, value, default)
  entries = [
    ('kernels',        config.kernels,        DEFAULTS['kernels']),
    ('kernels_folder', config.kernels_folder, DEFAULTS['kernels_folder']),
    ('text_kernels',   config.text_kernels,   DEFAULTS['text_kernels']),
    ('summary',        config.summary,        DEFAULTS['summary']),
    ('target',         config.target,         DEFAULTS['target']),
    ('observer',       config.observer,       DEFAULTS['observer']),
    ('frame',          config.frame,          DEFAULTS['frame']),
    ('timespan',       timespan,              DEFAULTS['timespan']),
    ('step',           config.step_s,         DEFAULTS['step']),
    ('output_file',    config.output_file,    DEFAULTS['output_file']),
    ('plot_file',      config.plot_file,      DEFAULTS['plot_file']),
    ('log_file',       config.log_file,       DEFAULTS['log_file']),
  ]

  headers = ['Argument', 'Value', 'Default', 'User Set']
  rows    = []
  for name, value, default in entries:
    rows.append([
      name,
      fmt(value),
      fmt(default),
      str(name in config.user_set),
    ])

  # Calculate column widths: max of header and all values, plus 4 for spacing
  min_spacing = 4
  col_widths  = []
  for col_idx in range(len(headers)):
    max_len = len(headers[col_idx])
    for row in rows:
      max_len = max(max_len, len(row[col_idx]))
    col_widths.append(max_len + min_spacing)

  print("\nInput Configuration")
  print("  " + "".join(h.ljust(col_widths[i]) for i, h in enumerate(headers)))
  print("  " + "".join(("-" * (col_widths[i] - min_spacing)).ljust(col_widths[i]) for i in range(len(headers))))
  for row in rows:
    print("  " + "".join(row[col_idx].ljust(col_widths[col_idx]) for col_idx in range(len(row))))


def print_paths(
  config : SimpleNamespace,
) -> None:
  """
  Print the kernel files and output paths of the run.
  """
  print("\nPaths and Files Setup")
  print(f"  Config Filepath  : {config.config_filepath}")
  print(f"  Kernel Filepaths : {len(config.kernel_filepaths)} file(s)")
  for filepath in config.kernel_filepaths:
    print(f"    {filepath}")
  print(f"  Text Kernel Filepaths : {len(config.text_kernel_filepaths)} file(s)")
  for filepath in config.text_kernel_filepaths:
    print(f"    {filepath}")
  print(f"  Output Filepath  : {config.output_filepath}")
  print(f"  Plot Filepath    : {config.plot_filepath}")
  print(f"  Log Filepath     : {config.log_filepath}")


def print_configuration(
  config : SimpleNamespace,
) -> None:
  """
  Print the complete configuration (input arguments and paths).
  """
  print_input_configuration(config)
  print_paths(config)


def _optional_path(
  value : Optional[str],
) -> Optional[Path]:
  return Path(value).expanduser() if value is not None else None


def build_config(
  kernels        : Optional[list]           = None,
  kernels_folder : Optional[str]            = None,
  text_kernels   : Optional[list]           = None,
  summary        : bool                     = False,
  target         : Optional[str]            = None,
  observer       : Optional[str]            = None,
  frame          : Optional[str]            = None,
  timespan       : Optional[list[datetime]] = None,
  step           : Optional[float]          = None,
  output_file    : Optional[str]            = None,
  plot_file      : Optional[str]            = None,
  log_file       : Optional[str]            = None,
  config_file    : Optional[str]            = None,
) -> SimpleNamespace:
  """
  Merge, validate and set up the run settings.

  Settings of the YAML config file replace the defaults; arguments that are
  not None (or True for summary) replace both.

  Input:
  ------
    kernels : list | None
      SPK files to load.
    kernels_folder : str | None
      Folder whose .bsp files are loaded.
    text_kernels : list | None
      Text kernels with body and frame definitions.
    summary : bool
      Print the kernel summaries.
    target, observer : str | None
      Bodies of the state table.
    frame : str | None
      Frame of the state table.
    timespan : list[datetime] | None
      UTC start and end of the state table.
    step : float | None
      Step of the state table [s].
    output_file, plot_file, log_file : str | None
      Output files.
    config_file : str | None
      YAML file of settings.

  Output:
  -------
    config : SimpleNamespace
      Configuration object.

  Raises:
  -------
    ValueError
      If no kernel is given, or the state table settings are incomplete.
  """
  cli_settings = {
    'kernels'        : kernels,
    'kernels_folder' : kernels_folder,
    'text_kernels'   : text_kernels,
    'summary'        : summary or None,
    'target'         : target,
    'observer'       : observer,
    'frame'          : frame,
    'timespan'       : timespan,
    'step'           : step,
    'output_file'    : output_file,
    'plot_file'      : plot_file,
    'log_file'       : log_file,
  }
  file_settings = load_config_file(config_file) if config_file is not None else {}

  settings = dict(DEFAULTS)
  user_set = set()
  for source in (file_settings, cli_settings):
    for name, value in source.items():
      if value is not None:
        settings[name] = value
        user_set.add(name)

  # Validate
  if not settings['kernels'] and settings['kernels_folder'] is None:
    raise ValueError("At least one SPK kernel is required: use --kernels or --kernels-folder.")
  if settings['target'] is not None and settings['timespan'] is None:
    raise ValueError("Argument --timespan is required with --target.")
  if settings['timespan'] is not None and settings['target'] is None:
    raise ValueError("Argument --target is required with --timespan.")

  time_o_dt, time_f_dt = settings['timespan'] if settings['timespan'] is not None else (None, None)
  delta_time_s = None
  if time_o_dt is not None:
    delta_time_s = (time_f_dt - time_o_dt).total_seconds()
    if delta_time_s < 0.0:
      raise ValueError(f"Timespan end {time_f_dt} is before its start {time_o_dt}.")

  # Nothing to tabulate: describe the kernels instead
  summary = bool(settings['summary']) or settings['target'] is None

  kernel_filepaths = resolve_kernel_paths(
    kernel_filepaths   = settings['kernels'],
    kernels_folderpath = settings['kernels_folder'],
  )
  if not kernel_filepaths:
    raise ValueError(f"No .bsp file found in {settings['kernels_folder']}.")

  return SimpleNamespace(
    # Settings as given, for print_configuration
    kernels        = settings['kernels'],
    kernels_folder = settings['kernels_folder'],
    text_kernels   = settings['text_kernels'],
    output_file    = settings['output_file'],
    plot_file      = settings['plot_file'],
    log_file       = settings['log_file'],
    user_set       = user_set,
    # Parsed and calculated values
    summary               = summary,
    target                = settings['target'],
    observer              = settings['observer'],
    frame                 = settings['frame'],
    time_o_dt             = time_o_dt,
    time_f_dt             = time_f_dt,
    delta_time_s          = delta_time_s,
    step_s                = float(settings['step']),
    kernel_filepaths      = kernel_filepaths,
    text_kernel_filepaths = [Path(filepath).expanduser() for filepath in settings['text_kernels'] or []],
    output_filepath       = _optional_path(settings['output_file']),
    plot_filepath         = _optional_path(settings['plot_file']),
    log_filepath          = _optional_path(settings['log_file']),
    config_filepath       = _optional_path(config_file),
  )
