import pytest

from skyscout.errors import InvalidInputError
from skyscout.services.pair_expander import SearchPair, expand_pairs, expand_return_pairs


def test_cross_product_size_and_membership():
    origins = ["MXP", "LIN", "BGY"]
    destinations = ["BCN", "MAD"]

    pairs = expand_pairs(origins, destinations)

    assert len(pairs) == 6
    assert all(p.origin in origins and p.destination in destinations for p in pairs)


def test_outer_loop_is_origins():
    pairs = expand_pairs(["MXP", "LIN"], ["BCN", "MAD"])

    assert pairs == [
        SearchPair("MXP", "BCN"),
        SearchPair("MXP", "MAD"),
        SearchPair("LIN", "BCN"),
        SearchPair("LIN", "MAD"),
    ]


def test_return_pairs_are_swapped():
    pairs = expand_return_pairs(["MXP", "LIN"], ["BCN"])

    assert pairs == [SearchPair("BCN", "MXP"), SearchPair("BCN", "LIN")]


def test_duplicate_codes_produce_duplicate_pairs():
    assert expand_pairs(["MXP", "MXP"], ["BCN"]) == [SearchPair("MXP", "BCN")] * 2


@pytest.mark.parametrize("origins,destinations", [([], ["BCN"]), (["MXP"], [])])
def test_empty_list_is_invalid_input(origins, destinations):
    with pytest.raises(InvalidInputError):
        expand_pairs(origins, destinations)


def test_label():
    assert SearchPair("MXP", "BCN").label == "MXP->BCN"
