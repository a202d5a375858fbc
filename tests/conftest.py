"""
Pytest configuration and shared fixtures for MGNREGA tracker tests.
"""

import pytest
from unittest.mock import Mock

from mgnrega_tracker.api_client import MGNREGAClient
from mgnrega_tracker.cache import ResponseCache


class FakeClock:
    """Controllable time source for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_record(fin_year='2023-2024', month='Jan', district='PATNA', state='BIHAR',
                district_code='1001', state_code='10', **fields):
    """Build a record shaped like the API's, with string-typed numeric fields."""
    record = {
        'fin_year': fin_year,
        'month': month,
        'state_code': state_code,
        'state_name': state,
        'district_code': district_code,
        'district_name': district,
        'Total_Individuals_Worked': '1000',
        'Average_Wage_rate_per_day_per_person': '230.5',
        'Number_of_Completed_Works': '50',
        'Women_Persondays': '400',
        'percentage_payments_gererated_within_15_days': '95.5',
        'Remarks': 'NA',
    }
    record.update({k: str(v) for k, v in fields.items()})
    return record


def make_response(records):
    """Wrap records in an API-shaped response body."""
    return {
        'title': 'District-wise MGNREGA Data at a Glance',
        'source': 'data.gov.in',
        'count': len(records),
        'total': len(records),
        'records': records,
    }


def mock_http_response(payload=None, status_code=200, json_error=None):
    """Mock requests.Response returning payload from .json()."""
    response = Mock()
    response.status_code = status_code
    response.reason = 'OK' if status_code < 400 else 'Error'
    response.text = '' if payload is None else str(payload)
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Fresh cache with a controllable clock."""
    return ResponseCache(ttl=1800, clock=clock)


@pytest.fixture
def client(cache):
    """Client with an isolated cache; patch client.session.get per test."""
    return MGNREGAClient(api_key='test_key', cache=cache)


@pytest.fixture
def district_records():
    """Records for one district across two financial years, deliberately unordered."""
    return [
        make_record('2023-2024', 'Jun', Total_Individuals_Worked='900'),
        make_record('2024-2025', 'May', Total_Individuals_Worked='1200'),
        make_record('2023-2024', 'Jan', Total_Individuals_Worked='1100'),
        make_record('2024-2025', 'Apr', Total_Individuals_Worked='1000'),
    ]


@pytest.fixture
def multi_district_records():
    """Records spanning several districts and states."""
    return [
        make_record(district='PATNA', state='BIHAR', district_code='1001'),
        make_record(district='GAYA', state='BIHAR', district_code='1002'),
        make_record(month='Feb', district='PATNA', state='BIHAR', district_code='9999'),
        make_record(district='INDORE', state='MADHYA PRADESH', district_code='1701', state_code='17'),
        make_record(fin_year='2024-2025', district='BHOPAL', state='MADHYA PRADESH',
                    district_code='1702', state_code='17'),
    ]


# Mock environment variables for testing
@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch, tmp_path):
    """Mock environment variables and run each test in a scratch directory."""
    monkeypatch.setenv('MGNREGA_API_KEY', 'env_key')
    monkeypatch.delenv('MGNREGA_API_BASE_URL', raising=False)
    monkeypatch.delenv('MGNREGA_MAX_RETRIES', raising=False)
    monkeypatch.setenv('OUTPUT_DIR', str(tmp_path / 'outputs'))
    monkeypatch.setenv('DEFAULT_CHART_THEME', 'plotly_white')
    monkeypatch.setenv('CHART_HEIGHT', '600')
    monkeypatch.setenv('CHART_WIDTH', '1000')
    monkeypatch.chdir(tmp_path)
