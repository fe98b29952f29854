import pytest

from flowprof.address import Address
from flowprof.errors import InputError


def test_parse_and_format() -> None:
    addr = Address.parse("[0, 8, 10]")
    assert addr.path == (0, 8, 10)
    assert str(addr) == "[0, 8, 10]"
    assert addr.to_list() == [0, 8, 10]
    assert len(addr) == 3


def test_parse_tolerates_spacing_and_empty() -> None:
    assert Address.parse("  [1,2 ,3] ") == Address((1, 2, 3))
    assert Address.parse("[]") == Address(())


@pytest.mark.parametrize(
    "text", ["0, 1", "[0, x]", "[0, -1]", "(0, 1)", "[0, ²]", "[0, ١]"]
)
def test_parse_rejects_malformed(text: str) -> None:
    with pytest.raises(InputError):
        Address.parse(text)


def test_coerce_forms() -> None:
    expected = Address((0, 1))
    assert Address.coerce([0, 1]) == expected
    assert Address.coerce({"addr": [0, 1]}) == expected
    assert Address.coerce(expected) is expected


def test_coerce_rejects_missing_addr_key() -> None:
    with pytest.raises(InputError, match="missing 'addr'"):
        Address.coerce({"address": [0]})


def test_elements_must_be_non_negative_ints() -> None:
    with pytest.raises(InputError, match="non-negative"):
        Address((0, -2))
    with pytest.raises(InputError, match="integer"):
        Address.of([0, True])


def test_ordering_is_lexicographic() -> None:
    addrs = [Address((0, 10)), Address((0, 2)), Address((0,)), Address((0, 2, 1))]
    assert sorted(addrs) == [
        Address((0,)),
        Address((0, 2)),
        Address((0, 2, 1)),
        Address((0, 10)),
    ]
