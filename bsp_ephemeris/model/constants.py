class CONVERTER:
  # Time Conversions
  SEC_PER_DAY  = 86400.0                   # [seconds] per [day]
  SEC_PER_HOUR = 3600.0                    # [seconds] per [hour]
  SEC_PER_MIN  = 60.0                      # [seconds] per [minute]
  DAY_PER_JULIAN_CENTURY = 36525.0         # [days] per [julian century]

  # Distance Conversions
  M_PER_KM = 1000.0                        # [meters] per [kilometer]
  KM_PER_M = 1.0 / 1000.0                  # [kilometers] per [meter]
  M_PER_AU = 149597870700.0                # [meters] per [astronomical unit]

  # Angle Conversions
  RAD_PER_DEG    = 3.141592653589793 / 180.0            # [radian] per [degree]
  RAD_PER_ARCSEC = 3.141592653589793 / (180.0 * 3600.0) # [radian] per [arcsecond]

class PHYSICALCONSTANTS:
  speed_of_light            = 299792458.0   # Speed of light in vacuum [m/s]
  speed_of_light_km_per_sec = 299792.458    # Speed of light in vacuum [km/s]

class TIMECONSTANTS:
  J2000_JD    = 2451545.0                  # Julian date of J2000 (2000-01-01 12:00:00 TDB)
  J2000_ISO   = '2000-01-01T12:00:00'      # J2000 epoch, TDB scale
  TDB_SCALE   = 'tdb'

class NAIFIDS:
  """
  NAIF ID codes of the bodies handled by the ephemeris loader.
  Reference: https://naif.jpl.nasa.gov/pub/naif/toolkit_docs/C/req/naif_ids.html

  Notes:
  ------
  DE4xx ephemerides give barycenters (1-9) relative to the solar system
  barycenter, and planet centers (x99) relative to their system barycenter.
  """
  SOLAR_SYSTEM_BARYCENTER = 0

  # Barycenters
  MERCURY_BARYCENTER = 1
  VENUS_BARYCENTER   = 2
  EARTH_MOON         = 3    # Earth-Moon Barycenter
  MARS_BARYCENTER    = 4
  JUPITER_BARYCENTER = 5
  SATURN_BARYCENTER  = 6
  URANUS_BARYCENTER  = 7
  NEPTUNE_BARYCENTER = 8
  PLUTO_BARYCENTER   = 9

  # Sun, planets and the Moon
  SUN     = 10
  MERCURY = 199
  VENUS   = 299
  EARTH   = 399
  MOON    = 301
  MARS    = 499
  JUPITER = 599
  SATURN  = 699
  URANUS  = 799
  NEPTUNE = 899
  PLUTO   = 999

class GRAVITATIONALPARAMETERS:
  """
  Gravitational parameters [m³/s²] of the bodies of DE4xx ephemerides.
  """
  SUN        = 1.3271244004127942E+20
  MERCURY    = 2.2031868551400003E+13
  VENUS      = 3.2485859200000000E+14
  EARTH_MOON = 4.0350323562548019E+14
  EARTH      = 3.9860043550702266E+14
  MOON       = 4.9028001184575496E+12
  MARS       = 4.2828375815756102E+13
  JUPITER    = 1.2671276409999998E+17
  SATURN     = 3.7940584841799997E+16
  URANUS     = 5.7945563999999985E+15
  NEPTUNE    = 6.8365271005803989E+15
  PLUTO      = 9.7550000000000000E+11

  # Total mass of the solar system bodies above
  SOLAR_SYSTEM_BARYCENTER = (
    SUN + MERCURY + VENUS + EARTH_MOON + MARS + JUPITER + SATURN + URANUS + NEPTUNE + PLUTO
  )
