"""Tests for resolving Inference Service output."""

from datetime import datetime

import pytest
from models.schedule import ROLE_ADMIN, Professional
from scheduling.errors import UnresolvedReferenceError, ValidationError
from scheduling.resolution import (
    parse_requested_datetime,
    resolve_payment_extraction,
    resolve_scheduling_request,
)
from tests.conftest import NOW


@pytest.mark.parametrize('date_text, expected', [
    ('hoje', datetime(2030, 6, 1, 15, 30)),
    ('amanhã', datetime(2030, 6, 2, 15, 30)),
    ('Amanha', datetime(2030, 6, 2, 15, 30)),
    ('depois de amanhã', datetime(2030, 6, 3, 15, 30)),
    ('15/06', datetime(2030, 6, 15, 15, 30)),
    ('01/05', datetime(2031, 5, 1, 15, 30)),
    ('20/12/2030', datetime(2030, 12, 20, 15, 30)),
    ('2030-07-10', datetime(2030, 7, 10, 15, 30)),
    ('segunda-feira', datetime(2030, 6, 3, 15, 30)),
    ('sexta', datetime(2030, 6, 7, 15, 30)),
    ('sábado', datetime(2030, 6, 8, 15, 30)),
])
def test_parse_requested_datetime(date_text, expected):
    """Relative dates are resolved from a Saturday morning."""
    assert parse_requested_datetime(date_text, '15:30', now=NOW) == expected


def test_parse_requested_datetime_failures():
    assert parse_requested_datetime('qualquer dia', '15:30', now=NOW) is None
    assert parse_requested_datetime('31/02', '15:30', now=NOW) is None
    assert parse_requested_datetime('amanhã', 'de tarde', now=NOW) is None
    assert parse_requested_datetime('amanhã', '25:00', now=NOW) is None
    assert parse_requested_datetime('', '15:30', now=NOW) is None


@pytest.fixture
def team(professional):
    return [professional, Professional(username='carla', name='Carla Dias')]


class TestResolveSchedulingRequest:
    """Natural-language booking resolution."""

    def test_resolves_against_catalog(self, catalog, team):
        parsed = {
            'clientName': 'Maria',
            'services': ['manicure', 'PEDICURE'],
            'professionalName': 'ana souza',
            'date': 'amanhã',
            'time': '14:00'
        }
        resolved = resolve_scheduling_request(parsed, catalog, team, now=NOW)

        assert resolved.client_name == 'Maria'
        assert [service.name for service in resolved.services] == ['Manicure', 'Pedicure']
        assert resolved.professional_username == 'ana'
        assert resolved.start == datetime(2030, 6, 2, 14, 0)

        draft = resolved.to_draft('11987654321')
        assert draft.client_phone == '11987654321'
        assert draft.services == resolved.services

    def test_unknown_service(self, catalog, team):
        parsed = {'clientName': 'Maria', 'services': ['Manicure', 'Massagem'], 'date': 'hoje', 'time': '14:00'}
        with pytest.raises(UnresolvedReferenceError) as excinfo:
            resolve_scheduling_request(parsed, catalog, team, current_user=team[0], now=NOW)
        assert excinfo.value.names == ['Massagem']

    def test_unknown_professional(self, catalog, team):
        parsed = {
            'clientName': 'Maria',
            'services': ['Manicure'],
            'professionalName': 'Fernanda',
            'date': 'hoje',
            'time': '14:00'
        }
        with pytest.raises(UnresolvedReferenceError):
            resolve_scheduling_request(parsed, catalog, team, now=NOW)

    def test_missing_fields(self, catalog, team):
        with pytest.raises(ValidationError):
            resolve_scheduling_request({'clientName': 'Maria', 'services': []}, catalog, team, now=NOW)

    def test_unreadable_date(self, catalog, team):
        parsed = {'clientName': 'Maria', 'services': ['Manicure'], 'date': 'logo', 'time': '14:00'}
        with pytest.raises(ValidationError):
            resolve_scheduling_request(parsed, catalog, team, current_user=team[0], now=NOW)

    def test_professional_defaults(self, catalog, team, professional):
        parsed = {'clientName': 'Maria', 'services': ['Manicure'], 'date': 'hoje', 'time': '14:00'}

        resolved = resolve_scheduling_request(parsed, catalog, team, current_user=team[1], now=NOW)
        assert resolved.professional_username == 'carla'

        resolved = resolve_scheduling_request(parsed, catalog, [professional], now=NOW)
        assert resolved.professional_username == 'ana'

        admin = Professional(username='dani', name='Dani', role=ROLE_ADMIN)
        with pytest.raises(ValidationError):
            resolve_scheduling_request(parsed, catalog, team, current_user=admin, now=NOW)


class TestPaymentExtraction:
    """Receipt value checks."""

    def test_matching_value(self):
        check = resolve_payment_extraction({'value': 45}, 45.0)
        assert check.matches
        assert check.extracted_value == 45.0

    def test_brazilian_format(self):
        assert resolve_payment_extraction({'value': 'R$ 1.234,50'}, 1234.5).matches
        assert resolve_payment_extraction({'value': '45,00'}, 45.0).matches

    def test_separator_order(self):
        """The last separator marks the decimals."""
        check = resolve_payment_extraction({'value': '1,234.56'}, 1234.56)
        assert check.matches
        assert check.extracted_value == 1234.56
        assert resolve_payment_extraction({'value': '1234.56'}, 1234.56).matches

    def test_mismatch(self):
        check = resolve_payment_extraction({'value': 44.5}, 45.0)
        assert not check.matches
        assert check.total_due == 45.0

    def test_invalid_values(self):
        for parsed in ({}, {'value': None}, {'value': 'abc'}, {'value': True}, {'value': -10}):
            with pytest.raises(ValidationError):
                resolve_payment_extraction(parsed, 45.0)
