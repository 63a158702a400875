import pytest

from schoolhub.core.exceptions import InvalidClassIdError
from schoolhub.services.class_ids import format_class_id, parse_class_id


@pytest.mark.parametrize(
    ("raw", "section", "expected"),
    [
        ("5-A", None, (5, "A")),
        (" 12-c ", None, (12, "C")),
        ("7", "B", (7, "B")),
    ],
)
def test_parse_class_id(raw, section, expected):
    assert parse_class_id(raw, section) == expected


@pytest.mark.parametrize("raw", ["", "A-5", "5", "13-A", "0-A", "5-Z", "five-A"])
def test_malformed_class_id_is_rejected(raw):
    with pytest.raises(InvalidClassIdError) as exc_info:
        parse_class_id(raw)
    assert exc_info.value.status_code == 422
    assert exc_info.value.code == "invalid_class_id"


def test_format_class_id():
    assert format_class_id(5, "A") == "5-A"
