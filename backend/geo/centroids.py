"""
backend.geo.centroids — Country name → reference coordinate.

Every country is scored against one fixed point (roughly its geographic
centroid).  Museum records use free-text country labels, often historical
("Byzantine Egypt") or abbreviated ("USA"), so lookups fall back through a
fixed alias table before giving up.

Usage::

    from backend.geo.centroids import get_country_centroid
    get_country_centroid("USA")   # → Coordinate(lat=37.09, lng=-95.71)

A miss returns ``None``; callers treat that as "not playable", not a fault.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from backend.domain.models import Coordinate

COUNTRY_CENTROIDS: Dict[str, Tuple[float, float]] = {
    "Afghanistan": (33.94, 67.71),
    "Albania": (41.15, 20.17),
    "Algeria": (28.03, 1.66),
    "Andorra": (42.55, 1.60),
    "Angola": (-11.20, 17.87),
    "Argentina": (-38.42, -63.62),
    "Armenia": (40.07, 45.04),
    "Australia": (-25.27, 133.78),
    "Austria": (47.52, 14.55),
    "Azerbaijan": (40.14, 47.58),
    "Bahamas": (25.03, -77.40),
    "Bahrain": (25.93, 50.64),
    "Bangladesh": (23.68, 90.36),
    "Barbados": (13.19, -59.54),
    "Belarus": (53.71, 27.95),
    "Belgium": (50.50, 4.47),
    "Belize": (17.19, -88.50),
    "Benin": (9.31, 2.32),
    "Bhutan": (27.51, 90.43),
    "Bolivia": (-16.29, -63.59),
    "Bosnia and Herzegovina": (43.92, 17.68),
    "Botswana": (-22.33, 24.68),
    "Brazil": (-14.24, -51.93),
    "Brunei": (4.54, 114.73),
    "Bulgaria": (42.73, 25.49),
    "Burkina Faso": (12.24, -1.56),
    "Burundi": (-3.37, 29.92),
    "Cambodia": (12.57, 104.99),
    "Cameroon": (7.37, 12.35),
    "Canada": (56.13, -106.35),
    "Cape Verde": (16.00, -24.01),
    "Central African Republic": (6.61, 20.94),
    "Chad": (15.45, 18.73),
    "Chile": (-35.68, -71.54),
    "China": (35.86, 104.20),
    "Colombia": (4.57, -74.30),
    "Comoros": (-11.88, 43.87),
    "Costa Rica": (9.75, -83.75),
    "Côte d'Ivoire": (7.54, -5.55),
    "Croatia": (45.10, 15.20),
    "Cuba": (21.52, -77.78),
    "Cyprus": (35.13, 33.43),
    "Czech Republic": (49.82, 15.47),
    "Democratic Republic of the Congo": (-4.04, 21.76),
    "Denmark": (56.26, 9.50),
    "Djibouti": (11.83, 42.59),
    "Dominican Republic": (18.74, -70.16),
    "Ecuador": (-1.83, -78.18),
    "Egypt": (26.82, 30.80),
    "El Salvador": (13.79, -88.90),
    "England": (52.36, -1.17),
    "Equatorial Guinea": (1.65, 10.27),
    "Eritrea": (15.18, 39.78),
    "Estonia": (58.60, 25.01),
    "Eswatini": (-26.52, 31.47),
    "Ethiopia": (9.15, 40.49),
    "Fiji": (-16.58, 179.41),
    "Finland": (61.92, 25.75),
    "France": (46.23, 2.21),
    "French Polynesia": (-17.68, -149.41),
    "Gabon": (-0.80, 11.61),
    "Gambia": (13.44, -15.31),
    "Georgia": (42.32, 43.36),
    "Germany": (51.17, 10.45),
    "Ghana": (7.95, -1.02),
    "Greece": (39.07, 21.82),
    "Greenland": (71.71, -42.60),
    "Guatemala": (15.78, -90.23),
    "Guinea": (9.95, -9.70),
    "Guinea-Bissau": (11.80, -15.18),
    "Guyana": (4.86, -58.93),
    "Haiti": (18.97, -72.29),
    "Honduras": (15.20, -86.24),
    "Hong Kong": (22.40, 114.11),
    "Hungary": (47.16, 19.50),
    "Iceland": (64.96, -19.02),
    "India": (20.59, 78.96),
    "Indonesia": (-0.79, 113.92),
    "Iran": (32.43, 53.69),
    "Iraq": (33.22, 43.68),
    "Ireland": (53.41, -8.24),
    "Israel": (31.05, 34.85),
    "Italy": (41.87, 12.57),
    "Jamaica": (18.11, -77.30),
    "Japan": (36.20, 138.25),
    "Jordan": (30.59, 36.24),
    "Kazakhstan": (48.02, 66.92),
    "Kenya": (-0.02, 37.91),
    "Kiribati": (-3.37, -168.73),
    "Kosovo": (42.60, 20.90),
    "Kuwait": (29.31, 47.48),
    "Kyrgyzstan": (41.20, 74.77),
    "Laos": (19.86, 102.50),
    "Latvia": (56.88, 24.60),
    "Lebanon": (33.85, 35.86),
    "Lesotho": (-29.61, 28.23),
    "Liberia": (6.43, -9.43),
    "Libya": (26.34, 17.23),
    "Liechtenstein": (47.17, 9.56),
    "Lithuania": (55.17, 23.88),
    "Luxembourg": (49.82, 6.13),
    "Madagascar": (-18.77, 46.87),
    "Malawi": (-13.25, 34.30),
    "Malaysia": (4.21, 101.98),
    "Maldives": (3.20, 73.22),
    "Mali": (17.57, -4.00),
    "Malta": (35.94, 14.38),
    "Marshall Islands": (7.13, 171.18),
    "Mauritania": (21.01, -10.94),
    "Mauritius": (-20.35, 57.55),
    "Mexico": (23.63, -102.55),
    "Micronesia": (7.43, 150.55),
    "Moldova": (47.41, 28.37),
    "Monaco": (43.75, 7.41),
    "Mongolia": (46.86, 103.85),
    "Montenegro": (42.71, 19.37),
    "Morocco": (31.79, -7.09),
    "Mozambique": (-18.67, 35.53),
    "Myanmar": (21.91, 95.96),
    "Namibia": (-22.96, 18.49),
    "Nauru": (-0.52, 166.93),
    "Nepal": (28.39, 84.12),
    "Netherlands": (52.13, 5.29),
    "New Caledonia": (-20.90, 165.62),
    "New Zealand": (-40.90, 174.89),
    "Nicaragua": (12.87, -85.21),
    "Niger": (17.61, 8.08),
    "Nigeria": (9.08, 8.68),
    "North Korea": (40.34, 127.51),
    "North Macedonia": (41.61, 21.75),
    "Northern Ireland": (54.79, -6.49),
    "Norway": (60.47, 8.47),
    "Oman": (21.51, 55.92),
    "Pakistan": (30.38, 69.35),
    "Palau": (7.51, 134.58),
    "Palestine": (31.95, 35.23),
    "Panama": (8.54, -80.78),
    "Papua New Guinea": (-6.31, 143.96),
    "Paraguay": (-23.44, -58.44),
    "Peru": (-9.19, -75.02),
    "Philippines": (12.88, 121.77),
    "Poland": (51.92, 19.15),
    "Portugal": (39.40, -8.22),
    "Puerto Rico": (18.22, -66.59),
    "Qatar": (25.35, 51.18),
    "Republic of the Congo": (-0.23, 15.83),
    "Romania": (45.94, 24.97),
    "Russia": (61.52, 105.32),
    "Rwanda": (-1.94, 29.87),
    "Samoa": (-13.76, -172.10),
    "Saudi Arabia": (23.89, 45.08),
    "Scotland": (56.49, -4.20),
    "Senegal": (14.50, -14.45),
    "Serbia": (44.02, 21.01),
    "Seychelles": (-4.68, 55.49),
    "Sierra Leone": (8.46, -11.78),
    "Singapore": (1.35, 103.82),
    "Slovakia": (48.67, 19.70),
    "Slovenia": (46.15, 14.99),
    "Solomon Islands": (-9.65, 160.16),
    "Somalia": (5.15, 46.20),
    "South Africa": (-30.56, 22.94),
    "South Korea": (35.91, 127.77),
    "South Sudan": (6.88, 31.31),
    "Spain": (40.46, -3.75),
    "Sri Lanka": (7.87, 80.77),
    "Sudan": (12.86, 30.22),
    "Suriname": (3.92, -56.03),
    "Sweden": (60.13, 18.64),
    "Switzerland": (46.82, 8.23),
    "Syria": (34.80, 39.00),
    "Taiwan": (23.70, 120.96),
    "Tajikistan": (38.86, 71.28),
    "Tanzania": (-6.37, 34.89),
    "Thailand": (15.87, 100.99),
    "Timor-Leste": (-8.87, 125.73),
    "Togo": (8.62, 0.82),
    "Tonga": (-21.18, -175.20),
    "Trinidad and Tobago": (10.69, -61.22),
    "Tunisia": (33.89, 9.54),
    "Turkey": (38.96, 35.24),
    "Turkmenistan": (38.97, 59.56),
    "Tuvalu": (-7.11, 177.65),
    "Uganda": (1.37, 32.29),
    "Ukraine": (48.38, 31.17),
    "United Arab Emirates": (23.42, 53.85),
    "United Kingdom": (55.38, -3.44),
    "United States": (37.09, -95.71),
    "Uruguay": (-32.52, -55.77),
    "Uzbekistan": (41.38, 64.59),
    "Vanuatu": (-15.38, 166.96),
    "Vatican City": (41.90, 12.45),
    "Venezuela": (6.42, -66.59),
    "Vietnam": (14.06, 108.28),
    "Wales": (52.13, -3.78),
    "Yemen": (15.55, 48.52),
    "Zambia": (-13.13, 27.85),
    "Zimbabwe": (-19.02, 29.15),
}

# Whole-label aliases, matched case-insensitively.
COUNTRY_ALIASES: Dict[str, str] = {
    "usa": "United States",
    "u.s.a.": "United States",
    "us": "United States",
    "u.s.": "United States",
    "united states of america": "United States",
    "america": "United States",
    "hawaii": "United States",
    "uk": "United Kingdom",
    "u.k.": "United Kingdom",
    "great britain": "United Kingdom",
    "britain": "United Kingdom",
    "holland": "Netherlands",
    "the netherlands": "Netherlands",
    "persia": "Iran",
    "mesopotamia": "Iraq",
    "burma": "Myanmar",
    "siam": "Thailand",
    "ceylon": "Sri Lanka",
    "korea": "South Korea",
    "republic of korea": "South Korea",
    "zaire": "Democratic Republic of the Congo",
    "dr congo": "Democratic Republic of the Congo",
    "congo": "Republic of the Congo",
    "ivory coast": "Côte d'Ivoire",
    "cote d'ivoire": "Côte d'Ivoire",
    "czechia": "Czech Republic",
    "bohemia": "Czech Republic",
    "czechoslovakia": "Czech Republic",
    "macedonia": "North Macedonia",
    "swaziland": "Eswatini",
    "east timor": "Timor-Leste",
    "russian federation": "Russia",
    "soviet union": "Russia",
    "ussr": "Russia",
    "ottoman empire": "Turkey",
    "anatolia": "Turkey",
    "türkiye": "Turkey",
    "prussia": "Germany",
    "flanders": "Belgium",
    "tibet": "China",
    "viet nam": "Vietnam",
    "lao pdr": "Laos",
    "syrian arab republic": "Syria",
    "yugoslavia": "Serbia",
}

# Substring substitutions for historical / qualified labels, tried in order.
COUNTRY_SUBSTITUTIONS: List[Tuple[str, str]] = [
    ("USA", "United States"),
    ("U.K.", "United Kingdom"),
    ("UK", "United Kingdom"),
    ("Byzantine Egypt", "Egypt"),
    ("Ancient Egypt", "Egypt"),
    ("Roman Egypt", "Egypt"),
    ("Byzantine Empire", "Turkey"),
    ("Ancient Greece", "Greece"),
    ("Ancient Rome", "Italy"),
    ("Medieval Europe", "France"),
    ("Renaissance Italy", "Italy"),
    ("Colonial America", "United States"),
    ("British Empire", "United Kingdom"),
]

# Leading qualifiers the museum puts on uncertain attributions.
_QUALIFIERS = ("probably ", "possibly ", "present-day ", "modern ")

_LOWER_INDEX: Dict[str, str] = {name.lower(): name for name in COUNTRY_CENTROIDS}


def _lookup(name: str) -> Optional[str]:
    if name in COUNTRY_CENTROIDS:
        return name
    lowered = name.lower()
    if lowered in _LOWER_INDEX:
        return _LOWER_INDEX[lowered]
    alias = COUNTRY_ALIASES.get(lowered)
    if alias:
        return alias
    return None


def resolve_country_name(country: Optional[str]) -> Optional[str]:
    """Return the canonical table key for a free-text country label, or ``None``."""
    if not country:
        return None
    name = country.strip()
    if not name:
        return None

    hit = _lookup(name)
    if hit:
        return hit

    for old, new in COUNTRY_SUBSTITUTIONS:
        if old in name:
            hit = _lookup(name.replace(old, new).strip())
            if hit:
                return hit

    lowered = name.lower()
    for prefix in _QUALIFIERS:
        if lowered.startswith(prefix):
            return resolve_country_name(name[len(prefix):])
    return None


def get_country_centroid(country: Optional[str]) -> Optional[Coordinate]:
    """Reference coordinate for ``country`` (after alias resolution), or ``None``."""
    canonical = resolve_country_name(country)
    if canonical is None:
        return None
    lat, lng = COUNTRY_CENTROIDS[canonical]
    return Coordinate(lat=lat, lng=lng)


def known_countries() -> List[str]:
    return sorted(COUNTRY_CENTROIDS)
