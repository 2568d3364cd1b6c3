from __future__ import annotations

import json
from pathlib import Path

import pytest

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

BASE_COUNTRIES = [
    {
        "code": "TR",
        "iso_3166_1_alpha2": "TR",
        "iso_3166_1_alpha3": "TUR",
        "iso_3166_1_numeric": 792,
        "name": "Turkey",
        "name_local": "Türkiye",
        "capital_name": "Ankara",
        "capital_latitude": 39.93,
        "capital_longitude": 32.86,
        "latitude": 39.0,
        "longitude": 35.0,
        "continent": "Asia",
        "region": "Western Asia",
        "area_sq_km": 783562,
        "population": 80000000,
        "flag": "🇹🇷",
        "tld": ".tr",
        "is_landlocked": False,
        "borders": ["GR", "BG"],
        "languages": [{"iso_639_1": "tr", "iso_639_2": "tur", "iso_639_3": "tur", "name": "Turkish", "name_local": "Türkçe"}],
        "currency_code": "TRY",
        "currency_numeric": 949,
        "currency": "Turkish lira",
        "currency_local": "Türk lirası",
        "currency_symbol": "₺",
        "currency_subunit_value": 100,
        "currency_subunit_name": "Kuruş",
        "timezones": ["Europe/Istanbul"],
        "postal_code_format": "NNNNN",
        "postal_code_regex": "^\\d{5}$",
    },
    {
        "code": "US",
        "iso_3166_1_alpha2": "US",
        "iso_3166_1_alpha3": "USA",
        "iso_3166_1_numeric": 840,
        "name": "United States",
        "continent": "North America",
        "region": "Northern America",
        "area_sq_km": 9833520,
        "flag": "🇺🇸",
        "languages": [{"iso_639_1": "en", "iso_639_2": "eng", "iso_639_3": "eng", "name": "English", "name_local": "English"}],
        "currency_code": "USD",
        "currency": "US Dollar",
        "currency_symbol": "$",
    },
    {
        "code": "GB",
        "iso_3166_1_alpha2": "GB",
        "iso_3166_1_alpha3": "GBR",
        "name": "United Kingdom",
        "continent": "Europe",
        "region": "Northern Europe",
        "flag": "🇬🇧",
        "languages": [{"iso_639_1": "en", "iso_639_2": "eng", "iso_639_3": "eng", "name": "English (GB)", "name_local": "English"}],
        "currency_code": "GBP",
        "currency": "Pound Sterling",
        "currency_symbol": "£",
    },
    {"name": "Nowhere"},
]

BASE_LANGUAGES = [
    {"iso_639_1": "tr", "iso_639_2": "tur", "iso_639_3": "tur", "name": "Turkish", "name_local": "Türkçe"},
    {"iso_639_1": "en", "iso_639_2": "eng", "iso_639_3": "eng", "name": "English", "name_local": "English"},
    {"iso_639_1": "de", "iso_639_2": "deu", "iso_639_3": "deu", "name": "German", "name_local": "Deutsch"},
]

SECONDARY_COUNTRIES = [
    {
        "cca2": "TR",
        "cca3": "TUR",
        "ccn3": "792",
        "name": {"common": "Turkey", "official": "Republic of Türkiye", "native": {"tur": {"common": "Türkiye", "official": "Türkiye Cumhuriyeti"}}},
        "capital": ["Ankara"],
        "latlng": [39, 35],
        "region": "Asia",
        "subregion": "Western Asia",
        "currencies": {},
        "idd": {"root": "+9", "suffixes": ["0"]},
        "borders": ["USA"],
        "car": {"signs": ["TR"], "side": "right"},
        "timezones": ["UTC+03:00"],
    },
    {
        "cca2": "US",
        "cca3": "USA",
        "name": {"common": "United States", "official": "United States of America"},
        "capital": ["Washington D.C."],
        "latlng": [38, -97],
        "region": "Americas",
        "subregion": "North America",
        "population": 329484123,
        "currencies": {"USD": {"name": "United States dollar", "symbol": "$"}},
        "idd": {"root": "+1", "suffixes": ["201", "202"]},
        "car": {"signs": ["USA"], "side": "right"},
        "timezones": ["UTC-05:00"],
    },
    {
        "cca2": "GB",
        "cca3": "GBR",
        "name": {"common": "United Kingdom", "official": "United Kingdom of Great Britain and Northern Ireland"},
        "capital": ["London"],
        "currencies": {"GBP": {"name": "British pound", "symbol": "£"}},
        "idd": {"root": "+4", "suffixes": ["4"]},
        "car": {"signs": ["GB"], "side": "left"},
        "timezones": ["UTC"],
    },
    {"name": {"common": "No code"}},
]

POPULATION_CSV = """\
"Data Source","World Development Indicators",

"Last Updated Date","2024-06-28",

"Country Name","Country Code","Indicator Name","Indicator Code","2021","2022","2023",
"Turkiye","TUR","Population, total","SP.POP.TOTL","84775404","85341241","",
"United States","USA","Population, total","SP.POP.TOTL","331893745","333287557","334914895",
"World","WLD","Population, total","SP.POP.TOTL","7900000000","7950000000","8000000000",
"""

METADATA_CSV = """\
"Country Code","Region","IncomeGroup","SpecialNotes","TableName",
"TUR","Europe & Central Asia","Upper middle income","","Turkiye",
"USA","North America","High income","","United States",
"WLD","","","","World",
"""

PHONE_XML = """\
<phoneNumberMetadata>
  <territories>
    <territory id="TR" countryCode="90" internationalPrefix="00" nationalPrefix="0">
      <availableFormats>
        <numberFormat pattern="(\\d{3})(\\d{3})(\\d{4})" nationalPrefixFormattingRule="0$FG">
          <leadingDigits>5</leadingDigits>
          <format>$1 $2 $3</format>
        </numberFormat>
      </availableFormats>
      <generalDesc>
        <nationalNumberPattern>
          [2-58]\\d{9}|
          8\\d{10}
        </nationalNumberPattern>
      </generalDesc>
      <fixedLine>
        <possibleLengths national="10"/>
        <exampleNumber>2123456789</exampleNumber>
        <nationalNumberPattern>[2-4]\\d{9}</nationalNumberPattern>
      </fixedLine>
      <mobile>
        <possibleLengths national="10"/>
        <exampleNumber>5012345678</exampleNumber>
        <nationalNumberPattern>5\\d{9}</nationalNumberPattern>
      </mobile>
      <tollFree>
        <possibleLengths national="[10-11]"/>
        <exampleNumber>8001234567</exampleNumber>
        <nationalNumberPattern>800\\d{7}</nationalNumberPattern>
      </tollFree>
    </territory>
    <territory id="US" countryCode="1" internationalPrefix="011" nationalPrefix="1">
      <availableFormats>
        <numberFormat pattern="(\\d{3})(\\d{4})">
          <format>$1-$2</format>
          <intlFormat>NA</intlFormat>
        </numberFormat>
        <numberFormat pattern="(\\d{3})(\\d{3})(\\d{4})">
          <format>($1) $2-$3</format>
          <intlFormat>$1-$2-$3</intlFormat>
        </numberFormat>
      </availableFormats>
      <fixedLine>
        <possibleLengths national="10" localOnly="7"/>
        <exampleNumber>2015550123</exampleNumber>
      </fixedLine>
    </territory>
    <territory id="001" countryCode="800">
      <generalDesc><nationalNumberPattern>\\d{8}</nationalNumberPattern></generalDesc>
    </territory>
  </territories>
</phoneNumberMetadata>
"""

CLDR_FILES = {
    "cldr-localenames-full/main/en/territories.json": {
        "main": {"en": {"localeDisplayNames": {"territories": {"TR": "Türkiye", "US": "United States", "GB": "United Kingdom"}}}}
    },
    "cldr-localenames-full/main/tr/territories.json": {
        "main": {"tr": {"localeDisplayNames": {"territories": {"TR": "Türkiye"}}}}
    },
    "cldr-dates-full/main/tr/ca-gregorian.json": {
        "main": {
            "tr": {
                "dates": {
                    "calendars": {
                        "gregorian": {
                            "months": {"format": {"wide": {"1": "Ocak", "2": "Şubat"}}},
                            "dateFormats": {"short": "d.MM.y"},
                            "timeFormats": {"short": "HH:mm"},
                        }
                    }
                }
            }
        }
    },
    "cldr-dates-full/main/en/ca-gregorian.json": {
        "main": {"en": {"dates": {"calendars": {"gregorian": {"timeFormats": {"short": "h:mm a"}}}}}}
    },
    "cldr-numbers-full/main/tr/numbers.json": {
        "main": {
            "tr": {
                "numbers": {
                    "defaultNumberingSystem": "latn",
                    "symbols-numberSystem-latn": {"decimal": ",", "group": "."},
                    "currencyFormats-numberSystem-latn": {"standard": "¤#,##0.00"},
                }
            }
        }
    },
}

PRIMARY_AIRPORTS = {
    "LTFM": {"icao": "LTFM", "iata": "IST", "name": "Istanbul Airport", "city": "Istanbul", "state": "Istanbul", "country": "TR", "lat": 41.2753, "lon": 28.7519},
    "KAAA": {"icao": "KAAA", "iata": "", "name": "Alpha Field", "city": "Alpha", "state": "", "country": "US", "lat": 40.0, "lon": -75.0},
    "KBBB": {"icao": "KBBB", "iata": "BBB", "name": "Bravo Field", "city": "Bravo", "state": "Ohio", "country": "US", "lat": 41.0, "lon": -80.0},
    "XXXX": {"icao": "", "iata": "", "name": "No code strip", "country": "US", "lat": 1.0, "lon": 1.0},
}

SECONDARY_AIRPORTS_CSV = """\
"country_code","region_name","iata","icao","airport","latitude","longitude"
"TR","Istanbul","IST","LTFM","Istanbul Airport","41.2753","28.7519"
"US","Pennsylvania","AAB","","Alpha Municipal","40.001","-74.999"
"US","Ohio","CCC","","Charlie Strip","41.2","-80.2"
"GB","England","LHR","EGLL","London Heathrow","51.4706","-0.461941"
"""

OVERRIDE_GB = {"locale": {"drivingSide": "left", "paperSize": "A4"}, "basics": {"population": "lots", "motto": "x"}}


def write_json_file(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


def write_source_tree(data_dir: Path) -> Path:
    write_json_file(data_dir / "simplelocalize" / "countries.json", BASE_COUNTRIES)
    write_json_file(data_dir / "simplelocalize" / "languages.json", BASE_LANGUAGES)
    write_json_file(data_dir / "mledoze.json", SECONDARY_COUNTRIES)

    stats_dir = data_dir / "worldbankgroup"
    stats_dir.mkdir(parents=True, exist_ok=True)
    (stats_dir / "API_SP.POP.TOTL_DS2_en_csv_v2_1.csv").write_text(POPULATION_CSV, encoding="utf-8")
    (stats_dir / "Metadata_Country_API_SP.POP.TOTL_DS2_en_csv_v2_1.csv").write_text(METADATA_CSV, encoding="utf-8")

    phone_path = data_dir / "libphonenumber" / "PhoneNumberMetadata.xml"
    phone_path.parent.mkdir(parents=True, exist_ok=True)
    phone_path.write_text(PHONE_XML, encoding="utf-8")

    for relative, payload in CLDR_FILES.items():
        write_json_file(data_dir / "cldr" / "cldr-json" / relative, payload)

    write_json_file(data_dir / "airports.json", PRIMARY_AIRPORTS)
    (data_dir / "airports.csv").write_text(SECONDARY_AIRPORTS_CSV, encoding="utf-8")
    write_json_file(data_dir / "overrides" / "GB.json", OVERRIDE_GB)
    return data_dir


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    return write_source_tree(tmp_path / "data")


@pytest.fixture
def config_dir() -> Path:
    return CONFIG_DIR
