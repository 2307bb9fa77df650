import pytest

from todo_api.identifiers import OBJECT_ID_LENGTH, new_object_id, parse_object_id


def test_new_ids_are_well_formed_and_unique() -> None:
    ids = {new_object_id() for _ in range(200)}
    assert len(ids) == 200
    assert all(len(value) == OBJECT_ID_LENGTH and parse_object_id(value) == value for value in ids)


@pytest.mark.parametrize(
    "value",
    ["123", "", "g" * 24, "a" * 23, "a" * 25, " " + "a" * 23, None, 123, b"a" * 24],
)
def test_parse_rejects_malformed_ids(value) -> None:
    assert parse_object_id(value) is None


def test_parse_normalizes_case() -> None:
    assert parse_object_id("ABCDEF0123456789ABCDEF01") == "abcdef0123456789abcdef01"
