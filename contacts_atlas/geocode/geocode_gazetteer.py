"""
Bundled gazetteer of country capitals and a few additional cities.

Country names are the French spellings used in the contact sheets; common
English names are accepted as aliases. All lookups are case and diacritic
insensitive.
"""

import re
import unicodedata
from typing import Dict, Mapping, NamedTuple, Optional, Tuple


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


# Country (French name) -> (capital, latitude, longitude)
COUNTRY_CAPITALS: Dict[str, Tuple[str, float, float]] = {
    "Afghanistan": ("Kaboul", 34.53, 69.17),
    "Afrique du Sud": ("Pretoria", -25.75, 28.19),
    "Albanie": ("Tirana", 41.33, 19.82),
    "Algérie": ("Alger", 36.75, 3.06),
    "Allemagne": ("Berlin", 52.52, 13.40),
    "Andorre": ("Andorre-la-Vieille", 42.51, 1.52),
    "Angola": ("Luanda", -8.84, 13.23),
    "Arabie saoudite": ("Riyad", 24.71, 46.68),
    "Argentine": ("Buenos Aires", -34.60, -58.38),
    "Arménie": ("Erevan", 40.18, 44.51),
    "Australie": ("Canberra", -35.28, 149.13),
    "Autriche": ("Vienne", 48.21, 16.37),
    "Azerbaïdjan": ("Bakou", 40.41, 49.87),
    "Bahreïn": ("Manama", 26.23, 50.59),
    "Bangladesh": ("Dacca", 23.81, 90.41),
    "Belgique": ("Bruxelles", 50.85, 4.35),
    "Bénin": ("Porto-Novo", 6.50, 2.60),
    "Biélorussie": ("Minsk", 53.90, 27.56),
    "Bolivie": ("La Paz", -16.50, -68.15),
    "Bosnie-Herzégovine": ("Sarajevo", 43.86, 18.41),
    "Brésil": ("Brasilia", -15.79, -47.88),
    "Bulgarie": ("Sofia", 42.70, 23.32),
    "Burkina Faso": ("Ouagadougou", 12.37, -1.52),
    "Cambodge": ("Phnom Penh", 11.56, 104.93),
    "Cameroun": ("Yaoundé", 3.85, 11.50),
    "Canada": ("Ottawa", 45.42, -75.70),
    "Chili": ("Santiago", -33.45, -70.67),
    "Chine": ("Pékin", 39.90, 116.41),
    "Chypre": ("Nicosie", 35.19, 33.38),
    "Colombie": ("Bogota", 4.71, -74.07),
    "Congo": ("Brazzaville", -4.26, 15.24),
    "Corée du Sud": ("Séoul", 37.57, 126.98),
    "Costa Rica": ("San José", 9.93, -84.08),
    "Côte d'Ivoire": ("Yamoussoukro", 6.83, -5.29),
    "Croatie": ("Zagreb", 45.81, 15.98),
    "Cuba": ("La Havane", 23.11, -82.37),
    "Danemark": ("Copenhague", 55.68, 12.57),
    "Égypte": ("Le Caire", 30.04, 31.24),
    "Émirats arabes unis": ("Abou Dabi", 24.45, 54.38),
    "Équateur": ("Quito", -0.18, -78.47),
    "Espagne": ("Madrid", 40.42, -3.70),
    "Estonie": ("Tallinn", 59.44, 24.75),
    "États-Unis": ("Washington", 38.91, -77.04),
    "Éthiopie": ("Addis-Abeba", 9.03, 38.74),
    "Finlande": ("Helsinki", 60.17, 24.94),
    "France": ("Paris", 48.86, 2.35),
    "Gabon": ("Libreville", 0.42, 9.47),
    "Géorgie": ("Tbilissi", 41.72, 44.79),
    "Ghana": ("Accra", 5.60, -0.19),
    "Grèce": ("Athènes", 37.98, 23.73),
    "Guatemala": ("Guatemala", 14.63, -90.51),
    "Guinée": ("Conakry", 9.64, -13.58),
    "Haïti": ("Port-au-Prince", 18.59, -72.31),
    "Hongrie": ("Budapest", 47.50, 19.04),
    "Inde": ("New Delhi", 28.61, 77.21),
    "Indonésie": ("Jakarta", -6.21, 106.85),
    "Irak": ("Bagdad", 33.31, 44.37),
    "Iran": ("Téhéran", 35.69, 51.39),
    "Irlande": ("Dublin", 53.35, -6.26),
    "Islande": ("Reykjavik", 64.15, -21.94),
    "Israël": ("Jérusalem", 31.77, 35.21),
    "Italie": ("Rome", 41.90, 12.50),
    "Japon": ("Tokyo", 35.68, 139.69),
    "Jordanie": ("Amman", 31.95, 35.93),
    "Kazakhstan": ("Astana", 51.17, 71.45),
    "Kenya": ("Nairobi", -1.29, 36.82),
    "Koweït": ("Koweït", 29.38, 47.99),
    "Lettonie": ("Riga", 56.95, 24.11),
    "Liban": ("Beyrouth", 33.89, 35.50),
    "Libye": ("Tripoli", 32.89, 13.19),
    "Lituanie": ("Vilnius", 54.69, 25.28),
    "Luxembourg": ("Luxembourg", 49.61, 6.13),
    "Madagascar": ("Antananarivo", -18.88, 47.51),
    "Malaisie": ("Kuala Lumpur", 3.14, 101.69),
    "Mali": ("Bamako", 12.64, -8.00),
    "Malte": ("La Valette", 35.90, 14.51),
    "Maroc": ("Rabat", 34.02, -6.83),
    "Maurice": ("Port-Louis", -20.16, 57.50),
    "Mauritanie": ("Nouakchott", 18.08, -15.98),
    "Mexique": ("Mexico", 19.43, -99.13),
    "Moldavie": ("Chisinau", 47.01, 28.86),
    "Monaco": ("Monaco", 43.73, 7.42),
    "Mongolie": ("Oulan-Bator", 47.89, 106.91),
    "Monténégro": ("Podgorica", 42.43, 19.26),
    "Népal": ("Katmandou", 27.72, 85.32),
    "Niger": ("Niamey", 13.51, 2.11),
    "Nigeria": ("Abuja", 9.08, 7.40),
    "Norvège": ("Oslo", 59.91, 10.75),
    "Nouvelle-Zélande": ("Wellington", -41.29, 174.78),
    "Pakistan": ("Islamabad", 33.68, 73.05),
    "Panama": ("Panama", 8.98, -79.52),
    "Paraguay": ("Asuncion", -25.26, -57.58),
    "Pays-Bas": ("Amsterdam", 52.37, 4.90),
    "Pérou": ("Lima", -12.05, -77.04),
    "Philippines": ("Manille", 14.60, 120.98),
    "Pologne": ("Varsovie", 52.23, 21.01),
    "Portugal": ("Lisbonne", 38.72, -9.14),
    "Qatar": ("Doha", 25.29, 51.53),
    "République démocratique du Congo": ("Kinshasa", -4.44, 15.27),
    "République tchèque": ("Prague", 50.08, 14.44),
    "Roumanie": ("Bucarest", 44.43, 26.10),
    "Royaume-Uni": ("Londres", 51.51, -0.13),
    "Russie": ("Moscou", 55.76, 37.62),
    "Rwanda": ("Kigali", -1.94, 30.06),
    "Sénégal": ("Dakar", 14.72, -17.47),
    "Serbie": ("Belgrade", 44.79, 20.45),
    "Singapour": ("Singapour", 1.35, 103.82),
    "Slovaquie": ("Bratislava", 48.15, 17.11),
    "Slovénie": ("Ljubljana", 46.06, 14.51),
    "Suède": ("Stockholm", 59.33, 18.07),
    "Suisse": ("Berne", 46.95, 7.45),
    "Syrie": ("Damas", 33.51, 36.29),
    "Taïwan": ("Taipei", 25.03, 121.57),
    "Tanzanie": ("Dodoma", -6.16, 35.75),
    "Tchad": ("N'Djamena", 12.13, 15.06),
    "Thaïlande": ("Bangkok", 13.76, 100.50),
    "Togo": ("Lomé", 6.13, 1.22),
    "Tunisie": ("Tunis", 36.81, 10.18),
    "Turquie": ("Ankara", 39.93, 32.86),
    "Ukraine": ("Kiev", 50.45, 30.52),
    "Uruguay": ("Montevideo", -34.90, -56.16),
    "Venezuela": ("Caracas", 10.48, -66.90),
    "Vietnam": ("Hanoï", 21.03, 105.85),
}

# Additional (city, country) pairs beyond the capitals
EXTRA_CITIES: Dict[Tuple[str, str], Tuple[float, float]] = {
    ("Liège", "Belgique"): (50.63, 5.57),
    ("Lyon", "France"): (45.76, 4.84),
    ("Marseille", "France"): (43.30, 5.37),
    ("Montréal", "Canada"): (45.50, -73.57),
    ("Toronto", "Canada"): (43.65, -79.38),
    ("Genève", "Suisse"): (46.20, 6.15),
    ("Zurich", "Suisse"): (47.38, 8.54),
}

# Alternate (mostly English) country names -> French name
COUNTRY_ALIASES: Dict[str, str] = {
    "belgium": "Belgique",
    "switzerland": "Suisse",
    "germany": "Allemagne",
    "italy": "Italie",
    "spain": "Espagne",
    "usa": "États-Unis",
    "us": "États-Unis",
    "united states": "États-Unis",
    "etats unis": "États-Unis",
    "united kingdom": "Royaume-Uni",
    "uk": "Royaume-Uni",
    "angleterre": "Royaume-Uni",
    "netherlands": "Pays-Bas",
    "hollande": "Pays-Bas",
}


def normalize_place(text: str) -> str:
    """Strip diacritics, lowercase, trim and collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", text or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"\s+", " ", stripped.strip().lower())


class Gazetteer:
    """
    Static lookup of capitals and curated cities.

    Instances are independent; tests can build one from their own tables.
    """

    def __init__(self,
                 countries: Mapping[str, Tuple[str, float, float]] = None,
                 cities: Mapping[Tuple[str, str], Tuple[float, float]] = None,
                 aliases: Mapping[str, str] = None):
        countries = COUNTRY_CAPITALS if countries is None else countries
        cities = EXTRA_CITIES if cities is None else cities
        aliases = COUNTRY_ALIASES if aliases is None else aliases

        self._country_names: Dict[str, str] = {}
        self._centers: Dict[str, Coordinates] = {}
        self._cities: Dict[Tuple[str, str], Coordinates] = {}

        for country, (capital, lat, lon) in countries.items():
            key = normalize_place(country)
            self._country_names[key] = key
            self._centers[key] = Coordinates(lat, lon)
            self._cities[(normalize_place(capital), key)] = Coordinates(lat, lon)

        for alias, country in aliases.items():
            self._country_names[normalize_place(alias)] = normalize_place(country)

        for (city, country), (lat, lon) in cities.items():
            self._cities[(normalize_place(city), normalize_place(country))] = Coordinates(lat, lon)

    def _country_key(self, country: str) -> Optional[str]:
        return self._country_names.get(normalize_place(country))

    def find_city(self, city: str, country: str) -> Optional[Coordinates]:
        """Exact (city, country) match against capitals and curated cities."""
        country_key = self._country_key(country)
        if country_key is None or not (city or "").strip():
            return None
        return self._cities.get((normalize_place(city), country_key))

    def country_center(self, country: str) -> Optional[Coordinates]:
        """Coordinates of the country's capital."""
        country_key = self._country_key(country)
        if country_key is None:
            return None
        return self._centers.get(country_key)

    def lookup(self, city: str, country: str) -> Optional[Coordinates]:
        """Best approximate position: the city when known, else the capital."""
        return self.find_city(city, country) or self.country_center(country)

    def __len__(self) -> int:
        return len(self._centers)
