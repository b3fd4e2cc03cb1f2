from __future__ import annotations

import pytest

from gattkit.core.assigned import Flag
from gattkit.core.errors import SchemaValidationError
from gattkit.core.grammar import compile_advertisement


def _messages(exc: pytest.ExceptionInfo[SchemaValidationError]) -> list[str]:
    return [d.message for d in exc.value.diagnostics]


def test_parse_all_fields() -> None:
    schema = compile_advertisement(
        'flags: (GeneralDiscovery, LE_Only), services: Incomplete16(Battery, Custom("fe59")), '
        'short_name: "Hi", full_name: "Hello there",'
    )
    assert schema.flags is not None
    assert schema.flags.flags == (Flag.GeneralDiscovery, Flag.LE_Only)
    assert schema.services is not None
    assert schema.services.width == 16
    assert schema.services.complete is False
    assert [s.value for s in schema.services.services] == [0x180F, 0xFE59]
    assert schema.short_name == "Hi"
    assert schema.full_name == "Hello there"


def test_string_escapes() -> None:
    schema = compile_advertisement(r'full_name: "say \"hi\""')
    assert schema.full_name == 'say "hi"'


def test_duplicate_field_rejected() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement('short_name: "a", short_name: "b"')
    assert _messages(exc) == ["multiple short_names provided"]


def test_duplicate_flag_rejected() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement("flags: (GeneralDiscovery, GeneralDiscovery)")
    assert "identifiers must be unique" in _messages(exc)


def test_duplicate_service_rejected() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement("services: Complete16(HeartRate, HeartRate)")
    assert "identifiers must be unique" in _messages(exc)


def test_unknown_field_rejected() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement('appearance: "x"')
    assert _messages(exc) == ['unexpected advertisement field "appearance"']


def test_unknown_identifiers_rejected() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement(
            'flags: (Discoverable), services: Complete16(NotAService), short_name: "ok"'
        )
    assert _messages(exc) == ["expected flag identifier", "expected service identifier"]


def test_all_errors_are_collected_with_locations() -> None:
    text = 'flags: (Nope),\nservices: Complete64(Battery),\nshort_name: "a",\nshort_name: "b"'
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement(text, source="adv.txt")
    diagnostics = exc.value.diagnostics
    assert [d.message for d in diagnostics] == [
        "expected flag identifier",
        "expected service list",
        "multiple short_names provided",
    ]
    assert [d.location.line for d in diagnostics] == [1, 2, 4]
    assert str(diagnostics[0].location) == "adv.txt:1:9"


def test_bad_custom_uuid_rejected() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement('services: Complete128(Custom("xyz"))')
    assert "could not parse string literal as UUID" in _messages(exc)


def test_list_width_must_match() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement("services: Complete128(Battery)")
    assert any("cannot appear in a 128-bit list" in m for m in _messages(exc))


def test_32_bit_list_accepts_16_bit_and_32_bit_literals() -> None:
    schema = compile_advertisement('services: Complete32(Battery, Custom("0000fe59"))')
    assert schema.services is not None
    assert [s.width for s in schema.services.services] == [16, 32]


def test_empty_service_list_rejected() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement("services: Complete16()")
    assert "service list must not be empty" in _messages(exc)


def test_unterminated_string_reported() -> None:
    with pytest.raises(SchemaValidationError) as exc:
        compile_advertisement('short_name: "abc')
    assert "unterminated string literal" in _messages(exc)
