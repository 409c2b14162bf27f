import pytest

from app.application.services.identity_service import (
    normalize_phone,
    validate_turkish_id_format,
    validate_user_data,
)


@pytest.mark.parametrize("identity_number", ["10000000146", "19090909018"])
def test_valid_identity_numbers(identity_number):
    assert validate_turkish_id_format(identity_number)


@pytest.mark.parametrize(
    "identity_number",
    [
        None,
        "",
        "1000000014",        # too short
        "100000001460",      # too long
        "00000000146",       # leading zero
        "1000000014a",       # non-digit
        "10000000156",       # bad 10th digit
        "10000000147",       # bad 11th digit
        "１0000000146",      # full-width digit
    ],
)
def test_invalid_identity_numbers(identity_number):
    assert not validate_turkish_id_format(identity_number)


def valid_fields(**overrides):
    fields = dict(
        first_name="Ayse",
        last_name="Yilmaz",
        email="a@x.com",
        phone_number="+905551110001",
        year_of_birth=1990,
        password="secret123",
        current_year=2024,
    )
    fields.update(overrides)
    return fields


def test_valid_user_data_has_no_errors():
    assert validate_user_data(**valid_fields()) == []


def test_each_bad_field_is_reported():
    errors = validate_user_data(
        **valid_fields(
            first_name="A",
            last_name=" ",
            email="not-an-email",
            phone_number="12345",
            year_of_birth=2020,
            password="123",
            identity_number="12345678901",
        )
    )
    assert errors == [
        "First name must be at least 2 characters",
        "Last name must be at least 2 characters",
        "Valid email address is required",
        "Valid Turkish phone number is required",
        "Age must be between 13 and 120 years",
        "Password must be at least 6 characters",
        "Invalid Turkish identity number format",
    ]


@pytest.mark.parametrize("year_of_birth, ok", [(2011, True), (2012, False), (1904, True), (1903, False)])
def test_age_bounds(year_of_birth, ok):
    errors = validate_user_data(**valid_fields(year_of_birth=year_of_birth))
    assert (errors == []) is ok


@pytest.mark.parametrize("phone_number", ["+905551110001", "905551110001", "+90 555 111 00 01"])
def test_accepted_phone_formats(phone_number):
    assert validate_user_data(**valid_fields(phone_number=phone_number)) == []


@pytest.mark.parametrize("phone_number", ["5551110001", "05551110001", "+9055511100011"])
def test_rejected_phone_formats(phone_number):
    assert validate_user_data(**valid_fields(phone_number=phone_number)) == ["Valid Turkish phone number is required"]


def test_password_is_optional():
    assert validate_user_data(**valid_fields(password=None)) == []


@pytest.mark.parametrize("phone_number", [" +90 555\t111 00 01 ", "905551110001", "+905551110001"])
def test_normalize_phone_to_canonical_form(phone_number):
    assert normalize_phone(phone_number) == "+905551110001"


def test_normalize_phone_leaves_invalid_input_alone():
    assert normalize_phone(" 555 111 ") == "555111"
