import pytest

from flightalert.errors import ValidationError
from flightalert.models import AircraftRecord, EnrichedFlight, MapBounds, Region, StateVector


class TestRegionPayload:

    def test_valid_payload(self):
        region = Region.from_payload({'center': {'lat': 40.7, 'lon': -74.0}, 'radiusMiles': 5})
        assert region.center.lat == 40.7
        assert region.center.lon == -74.0
        assert region.radius_miles == 5.0

    def test_radius_defaults_to_three_miles(self):
        region = Region.from_payload({'center': {'lat': 40.7, 'lon': -74.0}})
        assert region.radius_miles == 3.0

    @pytest.mark.parametrize('payload', [
        None,
        [],
        {},
        {'center': None},
        {'center': {'lat': 40.7}},
        {'center': {'lat': '40.7', 'lon': -74.0}},
        {'center': {'lat': True, 'lon': -74.0}},
    ])
    def test_missing_or_malformed_center(self, payload):
        with pytest.raises(ValidationError):
            Region.from_payload(payload)

    @pytest.mark.parametrize('lat,lon', [(91, 0), (-90.5, 0), (0, 180.1), (0, -181)])
    def test_out_of_range_coordinates(self, lat, lon):
        with pytest.raises(ValidationError) as excinfo:
            Region.from_payload({'center': {'lat': lat, 'lon': lon}, 'radiusMiles': 3})
        assert 'Invalid coordinates' in str(excinfo.value)

    @pytest.mark.parametrize('radius', [0, -1, 100.5, 'far', float('nan')])
    def test_invalid_radius(self, radius):
        with pytest.raises(ValidationError) as excinfo:
            Region.from_payload({'center': {'lat': 0, 'lon': 0}, 'radiusMiles': radius})
        assert 'Invalid radius' in str(excinfo.value)

    @pytest.mark.parametrize('lat,lon,radius', [(90, 180, 100), (-90, -180, 0.01)])
    def test_boundary_values_accepted(self, lat, lon, radius):
        Region.from_payload({'center': {'lat': lat, 'lon': lon}, 'radiusMiles': radius})

    def test_to_dict_uses_wire_names(self):
        region = Region.from_payload({'center': {'lat': 1, 'lon': 2}, 'radiusMiles': 4})
        assert region.to_dict() == {'center': {'lat': 1.0, 'lon': 2.0}, 'radiusMiles': 4.0}


class TestMapBounds:

    def test_from_args_parses_strings(self):
        bounds = MapBounds.from_args({'north': '34', 'south': '33', 'east': '-111', 'west': '-112.5'})
        assert bounds == MapBounds(north=34.0, south=33.0, east=-111.0, west=-112.5)

    @pytest.mark.parametrize('args', [
        {},
        {'north': '34', 'south': '33', 'east': '-111'},
        {'north': 'x', 'south': '33', 'east': '-111', 'west': '-112'},
        {'north': 'nan', 'south': '33', 'east': '-111', 'west': '-112'},
    ])
    def test_from_args_incomplete_is_none(self, args):
        assert MapBounds.from_args(args) is None

    def test_similarity_within_tolerance(self):
        a = MapBounds(north=34, south=33, east=-111, west=-112)
        assert a.is_similar(MapBounds(north=34.5, south=33.5, east=-110.5, west=-111.5), 1.0)
        assert a.is_similar(MapBounds(north=35, south=33, east=-111, west=-112), 1.0)
        assert not a.is_similar(MapBounds(north=36, south=33, east=-111, west=-112), 1.0)
        assert not a.is_similar(None, 1.0)


class TestStateVector:

    def test_short_row_rejected(self):
        assert StateVector.from_array(['abc123', 'TEST01']) is None

    def test_missing_icao24_rejected(self):
        row = [None] + [None] * 16
        assert StateVector.from_array(row) is None

    def test_row_without_trailing_fields(self):
        row = ['ABC123', ' TEST01 ', 'US', 1, 2, -111.7, 33.5, 1000.0, False, 100.0, 90.0, 0.0]
        sv = StateVector.from_array(row)
        assert sv.icao24 == 'abc123'
        assert sv.callsign == 'TEST01'
        assert sv.geo_altitude is None
        assert sv.squawk is None
        assert sv.has_position()

    def test_blank_callsign_is_none(self):
        row = ['abc123', '        ', 'US', 1, 2, None, None, None, True, None, None, None]
        sv = StateVector.from_array(row)
        assert sv.callsign is None
        assert not sv.has_position()


class TestAircraftRecord:

    def test_alias_spellings(self):
        record = AircraftRecord.from_json('A0B1C2', {
            'reg': 'N12345',
            'type': 'B738',
            'manufacturername': 'Boeing',
            'operatorcallsign': 'SOUTHWEST',
            'serialnumber': '36729',
        })
        assert record.icao24 == 'a0b1c2'
        assert record.registration == 'N12345'
        assert record.type_code == 'B738'
        assert record.manufacturer == 'Boeing'
        assert record.operator_callsign == 'SOUTHWEST'
        assert record.serial_number == '36729'

    def test_blank_values_become_none(self):
        record = AircraftRecord.from_json('a0b1c2', {'registration': '  ', 'model': ''})
        assert record.registration is None
        assert record.model is None

    def test_enriched_flight_merges_record(self, make_state):
        state = make_state('a0b1c2', 33.5, -111.7, callsign='SWA123')
        record = AircraftRecord.from_json('a0b1c2', {'registration': 'N12345', 'typecode': 'B738'})

        payload = EnrichedFlight(state=state, record=record, in_region=True).to_dict()

        assert payload['icao24'] == 'a0b1c2'
        assert payload['callsign'] == 'SWA123'
        assert payload['heading'] == 90.0
        assert payload['inRegion'] is True
        assert payload['registration'] == 'N12345'
        assert payload['typecode'] == 'B738'

    def test_enriched_flight_without_record(self, make_state):
        payload = EnrichedFlight(state=make_state('a0b1c2', 33.5, -111.7)).to_dict()
        assert 'registration' not in payload
        assert payload['inRegion'] is False
