"""Pair expander — origin x destination search matrix."""

from dataclasses import dataclass

from skyscout.errors import InvalidInputError


@dataclass(frozen=True)
class SearchPair:
    origin: str
    destination: str

    @property
    def label(self) -> str:
        return f"{self.origin}->{self.destination}"


def expand_pairs(origins: list[str], destinations: list[str]) -> list[SearchPair]:
    """Cross product, outer loop over origins, inner over destinations."""
    if not origins:
        raise InvalidInputError("At least one origin airport is required")
    if not destinations:
        raise InvalidInputError("At least one destination airport is required")

    pairs = []
    for orig in origins:
        for dest in destinations:
            pairs.append(SearchPair(orig, dest))
    return pairs


def expand_return_pairs(origins: list[str], destinations: list[str]) -> list[SearchPair]:
    """Return-leg pairs: the swapped cross product, built fresh from the lists."""
    return [SearchPair(p.destination, p.origin) for p in expand_pairs(origins, destinations)]
