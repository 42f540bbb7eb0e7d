import importlib

import pytest


locations_mod = importlib.import_module("src.snapshots.locations")
errors = importlib.import_module("src.snapshots.errors")
LocationReference = locations_mod.LocationReference


LOCATIONS_CSV = """abbreviation,location,location_name,population
US,US,US,332000000
AL,01,Alabama,5024279
CA,06,California,39538223
NY,36,New York,
"""


class TextClient:
    def __init__(self, text):
        self.text = text
        self.calls = []

    def request_text(self, url, headers=None):
        self.calls.append(url)
        return self.text


def test_reference_keeps_leading_zeros_in_codes():
    reference = LocationReference.from_csv_text(LOCATIONS_CSV)

    assert "01" in reference
    assert reference.by_code("01").name == "Alabama"
    assert reference.by_code("36").population is None


def test_reference_loads_through_client():
    client = TextClient(LOCATIONS_CSV)
    reference = LocationReference.load(client, "https://example.com/locations.csv")

    assert len(reference) == 4
    assert client.calls == ["https://example.com/locations.csv"]


def test_resolve_wildcard_returns_all_locations_and_national():
    reference = LocationReference.from_csv_text(LOCATIONS_CSV)

    codes, needs_national = reference.resolve("*")

    assert codes == ["01", "06", "36", "US"]
    assert needs_national is True


def test_resolve_accepts_codes_and_abbreviations_case_insensitively():
    reference = LocationReference.from_csv_text(LOCATIONS_CSV)

    codes, needs_national = reference.resolve(["ca", "36", "Al"])

    assert codes == ["01", "06", "36"]
    assert needs_national is False


def test_resolve_single_national_request():
    reference = LocationReference.from_csv_text(LOCATIONS_CSV)

    codes, needs_national = reference.resolve(["us"])

    assert codes == ["US"]
    assert needs_national is True


@pytest.mark.parametrize("request_value", [[], ["ZZ"], [""], [6], None, 5])
def test_resolve_rejects_malformed_requests(request_value):
    reference = LocationReference.from_csv_text(LOCATIONS_CSV)

    with pytest.raises(errors.InvalidArgument):
        reference.resolve(request_value)


def test_picker_options_use_value_and_text():
    reference = LocationReference.from_csv_text(LOCATIONS_CSV)

    options = reference.picker_options()

    assert {"value": "06", "text": "California"} in options
    assert {"value": "US", "text": "US"} in options


def test_reference_requires_expected_columns():
    with pytest.raises(errors.InvalidArgument):
        LocationReference.from_csv_text("code,name\n01,Alabama\n")
