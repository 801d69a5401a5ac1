"""Tests for input validators."""

from datetime import date, datetime

from utils.validators import (
    format_phone_number,
    parse_date,
    phone_digits,
    same_phone,
    sanitize_input,
    to_e164,
    validate_datetime,
    validate_phone_number,
    validate_time,
)


def test_phone_validation():
    """Test phone number validation."""
    assert validate_phone_number('(11) 98765-4321') == True
    assert validate_phone_number('1134567890') == True
    assert validate_phone_number('+55 11 98765-4321') == True
    assert validate_phone_number('98765-4321') == False
    assert validate_phone_number('') == False


def test_phone_matching():
    assert phone_digits('(11) 98765-4321') == '11987654321'
    assert same_phone('(11) 98765-4321', '11987654321')
    assert not same_phone('', '')
    assert not same_phone('11987654321', '11987654322')


def test_phone_formatting():
    assert format_phone_number('11987654321') == '(11) 98765-4321'
    assert format_phone_number('1134567890') == '(11) 3456-7890'
    assert to_e164('(11) 98765-4321') == '+5511987654321'
    assert to_e164('+55 11 98765-4321') == '+5511987654321'
    assert to_e164('5511987654321') == '+5511987654321'


def test_time_and_date_validation():
    assert validate_time('09:30')
    assert validate_time('23:59')
    assert not validate_time('9:30')
    assert not validate_time('24:00')
    assert not validate_time(None)

    assert validate_datetime('2030-06-03T10:00:00') == datetime(2030, 6, 3, 10, 0)
    assert validate_datetime('2030-06-03T10:00:00Z').tzinfo is None
    assert validate_datetime('amanhã') is None
    assert parse_date('2030-06-03') == date(2030, 6, 3)
    assert parse_date('03/06/2030') is None


def test_sanitize_input():
    assert sanitize_input('  <script>Maria</script> ') == 'scriptMaria/script'
    assert sanitize_input('a' * 20, max_length=5) == 'aaaaa'
    assert sanitize_input(None) == ''
