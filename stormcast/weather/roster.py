"""모니터링 대상 도시 목록입니다. / Default monitored city roster."""

from __future__ import annotations

from typing import List, Tuple

from .models import Location

MAJOR_US_CITIES: Tuple[Tuple[str, str, float, float], ...] = (
    ("New York", "NY", 40.7128, -74.0060),
    ("Los Angeles", "CA", 34.0522, -118.2437),
    ("Chicago", "IL", 41.8781, -87.6298),
    ("Houston", "TX", 29.7604, -95.3698),
    ("Phoenix", "AZ", 33.4484, -112.0740),
    ("Philadelphia", "PA", 39.9526, -75.1652),
    ("San Antonio", "TX", 29.4241, -98.4936),
    ("San Diego", "CA", 32.7157, -117.1611),
    ("Dallas", "TX", 32.7767, -96.7970),
    ("San Jose", "CA", 37.3382, -121.8863),
    ("Austin", "TX", 30.2672, -97.7431),
    ("Jacksonville", "FL", 30.3322, -81.6557),
    ("San Francisco", "CA", 37.7749, -122.4194),
    ("Columbus", "OH", 39.9612, -82.9988),
    ("Charlotte", "NC", 35.2271, -80.8431),
    ("Fort Worth", "TX", 32.7555, -97.3308),
    ("Indianapolis", "IN", 39.7684, -86.1581),
    ("Seattle", "WA", 47.6062, -122.3321),
    ("Denver", "CO", 39.7392, -104.9903),
    ("Boston", "MA", 42.3601, -71.0589),
    ("El Paso", "TX", 31.7619, -106.4850),
    ("Detroit", "MI", 42.3314, -83.0458),
    ("Nashville", "TN", 36.1627, -86.7816),
    ("Memphis", "TN", 35.1495, -90.0490),
    ("Portland", "OR", 45.5152, -122.6784),
    ("Oklahoma City", "OK", 35.4676, -97.5164),
    ("Las Vegas", "NV", 36.1699, -115.1398),
    ("Louisville", "KY", 38.2527, -85.7585),
    ("Baltimore", "MD", 39.2904, -76.6122),
    ("Milwaukee", "WI", 43.0389, -87.9065),
    ("Albuquerque", "NM", 35.0844, -106.6504),
    ("Tucson", "AZ", 32.2226, -110.9747),
    ("Fresno", "CA", 36.7378, -119.7871),
    ("Sacramento", "CA", 38.5816, -121.4944),
    ("Kansas City", "MO", 39.0997, -94.5786),
    ("Mesa", "AZ", 33.4152, -111.8315),
    ("Virginia Beach", "VA", 36.8529, -75.9780),
    ("Atlanta", "GA", 33.7490, -84.3880),
    ("Colorado Springs", "CO", 38.8339, -104.8214),
    ("Raleigh", "NC", 35.7796, -78.6382),
    ("Omaha", "NE", 41.2565, -95.9345),
    ("Miami", "FL", 25.7617, -80.1918),
    ("Oakland", "CA", 37.8044, -122.2711),
    ("Minneapolis", "MN", 44.9778, -93.2650),
    ("Tulsa", "OK", 36.1540, -95.9928),
    ("Cleveland", "OH", 41.4993, -81.6944),
    ("Wichita", "KS", 37.6872, -97.3301),
    ("Arlington", "TX", 32.7357, -97.1081),
    ("New Orleans", "LA", 29.9511, -90.0715),
    ("Bakersfield", "CA", 35.3733, -119.0187),
    ("Tampa", "FL", 27.9506, -82.4572),
)


def default_locations() -> List[Location]:
    """기본 도시 목록을 반환합니다. / Return the default city roster."""

    return [
        Location(latitude=lat, longitude=lon, city=city, state=state)
        for city, state, lat, lon in MAJOR_US_CITIES
    ]
