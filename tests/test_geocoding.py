import os
import tempfile
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests
from geopy.exc import GeocoderServiceError

from cluster_map.geocoding import (
    ADDRESS_LAYOUT,
    NOMINATIM_SEARCH_URL,
    SEARCH_LAYOUT,
    GeopyGeocoder,
    NominatimSearchGeocoder,
    backfill_coordinates,
)


@pytest.fixture
def customer_csv():
    """Temporary customer export with two rows missing coordinates."""
    with tempfile.NamedTemporaryFile(suffix='.csv', delete=False) as temp:
        df = pd.DataFrame({
            'City': ['Denver', 'Atlantis', 'Chicago'],
            'State': ['CO', 'XX', 'IL'],
            'Country ': ['USA', 'USA', 'USA'],
            'New customer records': ['5', '1', '9'],
            'Latitude': ['', '', '41.88'],
            'Longitude': ['', '', '-87.63'],
        })
        df.to_csv(temp.name, index=False)
        temp_path = temp.name

    yield temp_path
    if os.path.exists(temp_path):
        os.unlink(temp_path)


def _fake_geocoder(answers):
    geocoder = MagicMock()
    geocoder.lookup.side_effect = lambda query: answers.get(query)
    return geocoder


class TestBackfillCoordinates:
    """Per-row geocoding with incremental saves."""

    def test_resolves_and_blanks(self, customer_csv):
        geocoder = _fake_geocoder({'Denver, CO, USA': ('39.74', '-104.99')})

        result = backfill_coordinates(customer_csv, geocoder, SEARCH_LAYOUT, delay=0, sleep=MagicMock())

        df = pd.read_csv(customer_csv, dtype=str, keep_default_na=False)
        assert (result.processed, result.resolved, result.failed, result.skipped) == (2, 1, 1, 1)
        assert df.loc[0, 'Latitude'] == '39.74'
        assert df.loc[0, 'Longitude'] == '-104.99'
        # No match: blanks are written and the row is not retried
        assert df.loc[1, 'Latitude'] == ''
        assert df.loc[2, 'Latitude'] == '41.88'

    def test_rows_with_coordinates_are_not_looked_up(self, customer_csv):
        geocoder = _fake_geocoder({})

        backfill_coordinates(customer_csv, geocoder, SEARCH_LAYOUT, sleep=MagicMock())

        queries = [call.args[0] for call in geocoder.lookup.call_args_list]
        assert queries == ['Denver, CO, USA', 'Atlantis, XX, USA']

    def test_waits_between_requests(self, customer_csv):
        sleep = MagicMock()

        backfill_coordinates(customer_csv, _fake_geocoder({}), SEARCH_LAYOUT, delay=1.5, sleep=sleep)

        sleep.assert_called_once_with(1.5)

    def test_saves_after_every_row(self, customer_csv):
        with patch('cluster_map.geocoding.save_csv') as save_csv:
            backfill_coordinates(customer_csv, _fake_geocoder({}), SEARCH_LAYOUT, sleep=MagicMock())

        assert save_csv.call_count == 2

    def test_address_layout_adds_missing_columns(self, customer_csv):
        geocoder = _fake_geocoder({})

        result = backfill_coordinates(customer_csv, geocoder, ADDRESS_LAYOUT, sleep=MagicMock())

        df = pd.read_csv(customer_csv, dtype=str, keep_default_na=False)
        assert 'Lat' in df.columns and 'Lon' in df.columns
        assert result.processed == 3

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            backfill_coordinates('nonexistent_file.csv', _fake_geocoder({}))


class TestNominatimSearchGeocoder:
    """Plain HTTP lookups against the search endpoint."""

    def test_first_hit_is_returned(self):
        session = MagicMock()
        session.get.return_value.json.return_value = [
            {'lat': '39.7392', 'lon': '-104.9903'},
            {'lat': '0', 'lon': '0'},
        ]
        geocoder = NominatimSearchGeocoder(user_agent='test-agent', session=session)

        assert geocoder.lookup('Denver, CO, USA') == ('39.7392', '-104.9903')
        args, kwargs = session.get.call_args
        assert args == (NOMINATIM_SEARCH_URL,)
        assert kwargs['params'] == {'format': 'json', 'q': 'Denver, CO, USA'}
        assert kwargs['headers'] == {'User-Agent': 'test-agent'}

    def test_empty_result(self):
        session = MagicMock()
        session.get.return_value.json.return_value = []

        assert NominatimSearchGeocoder(session=session).lookup('Atlantis') is None

    def test_error_object_is_a_miss(self):
        session = MagicMock()
        session.get.return_value.json.return_value = {'error': 'Unable to geocode'}

        assert NominatimSearchGeocoder(session=session).lookup('Atlantis') is None

    def test_hit_without_coordinates_is_a_miss(self):
        session = MagicMock()
        session.get.return_value.json.return_value = [{'display_name': 'Denver'}]

        assert NominatimSearchGeocoder(session=session).lookup('Denver') is None

    def test_error_object_does_not_stop_the_batch(self, customer_csv):
        session = MagicMock()
        session.get.return_value.json.side_effect = [
            {'error': 'Unable to geocode'},
            [{'lat': '41.0', 'lon': '-100.0'}],
        ]
        geocoder = NominatimSearchGeocoder(session=session)

        result = backfill_coordinates(customer_csv, geocoder, SEARCH_LAYOUT, sleep=MagicMock())

        df = pd.read_csv(customer_csv, dtype=str, keep_default_na=False)
        assert (result.processed, result.resolved, result.failed) == (2, 1, 1)
        assert df.loc[0, 'Latitude'] == ''
        assert df.loc[1, 'Latitude'] == '41.0'

    def test_request_error_is_a_miss(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError('offline')

        assert NominatimSearchGeocoder(session=session).lookup('Denver') is None

    def test_http_error_is_a_miss(self):
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError('429')

        assert NominatimSearchGeocoder(session=session).lookup('Denver') is None


class TestGeopyGeocoder:
    """Lookups through geopy's Nominatim client."""

    def test_location(self):
        client = MagicMock()
        client.geocode.return_value = MagicMock(latitude=41.88, longitude=-87.63)

        assert GeopyGeocoder(client=client).lookup('233 S Wacker Dr, Chicago, IL 60606') == ('41.88', '-87.63')

    def test_no_location(self):
        client = MagicMock()
        client.geocode.return_value = None

        assert GeopyGeocoder(client=client).lookup('nowhere') is None

    def test_service_error_is_a_miss(self):
        client = MagicMock()
        client.geocode.side_effect = GeocoderServiceError('unavailable')

        assert GeopyGeocoder(client=client).lookup('Denver') is None
