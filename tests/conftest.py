"""
Root conftest.py: sys.path, log file location and shared fixtures.
"""

import os
import sys
import tempfile

import pytest

# Add project root to sys.path so 'cluster_map' is importable without installing
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Keep test runs out of the real app.log
os.environ.setdefault('CLUSTER_MAP_LOG_FILE', os.path.join(tempfile.gettempdir(), 'cluster_map_tests.log'))

from cluster_map.models import CustomerRecord  # noqa: E402


class LinearProjector:
    """Test projector: 10 px per degree from (-130, 50); eastern hemisphere is unprojectable."""

    def project(self, lon, lat):
        if lon > 0:
            return None
        return ((lon + 130.0) * 10.0, (50.0 - lat) * 10.0)


@pytest.fixture
def linear_projector():
    return LinearProjector()


@pytest.fixture
def make_record():
    """Factory fixture: CustomerRecord with placeholder address fields."""
    def _make(lon, lat, value, city='Springfield', state='IL'):
        return CustomerRecord(address='1 Main St', state=state, city=city, value=value, lon=lon, lat=lat)
    return _make


@pytest.fixture
def us_records(make_record):
    """A handful of real US locations with customer counts."""
    return [
        make_record(-104.99, 39.74, 12, city='Denver', state='CO'),
        make_record(-104.82, 38.83, 4, city='Colorado Springs', state='CO'),
        make_record(-87.63, 41.88, 30, city='Chicago', state='IL'),
        make_record(-73.99, 40.73, 25, city='New York', state='NY'),
        make_record(-118.24, 34.05, 18, city='Los Angeles', state='CA'),
        make_record(-122.42, 37.77, 9, city='San Francisco', state='CA'),
        make_record(-149.90, 61.22, 2, city='Anchorage', state='AK'),
        make_record(-157.86, 21.31, 3, city='Honolulu', state='HI'),
        make_record(-0.13, 51.51, 7, city='London', state=''),
    ]
