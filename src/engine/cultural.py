"""Cultural affinity resolver.

A country pair may match several tie tables at once (e.g. a shared
language and a trade bloc). The resolver returns the single strongest
multiplier, never the product. Same-country pairs get the domestic
multiplier.

Bilateral links are stored with a direction but matched both ways.
"""

from collections.abc import Sequence

import numpy as np

from src.models.calibration import AffinityGroup, CulturalTies

_NO_TIE = 1.0


class CulturalAffinityResolver:
    """Max-of-matches lookup over the cultural-tie tables."""

    def __init__(self, ties: CulturalTies) -> None:
        self._domestic = ties.domestic_multiplier

        groups: list[AffinityGroup] = [*ties.language_groups, *ties.regional_blocs]
        if ties.commonwealth is not None:
            groups.append(ties.commonwealth)
        self._groups = [(frozenset(g.members), g.multiplier) for g in groups]

        self._bilateral: dict[frozenset[str], float] = {}
        for link in ties.bilateral:
            key = frozenset((link.from_country, link.to_country))
            self._bilateral[key] = max(self._bilateral.get(key, _NO_TIE), link.multiplier)

    @property
    def domestic_multiplier(self) -> float:
        return self._domestic

    def multiplier(self, country_a: str, country_b: str) -> float:
        """Strongest tie multiplier between two ISO country codes."""
        if country_a == country_b:
            return self._domestic

        best = _NO_TIE
        for members, multiplier in self._groups:
            if country_a in members and country_b in members:
                best = max(best, multiplier)

        bilateral = self._bilateral.get(frozenset((country_a, country_b)))
        if bilateral is not None:
            best = max(best, bilateral)
        return best

    def multiplier_matrix(self, country_codes: Sequence[str]) -> np.ndarray:
        """n×n multiplier matrix for zones listed by country code.

        Resolved once per distinct country pair, then expanded by index.
        """
        distinct = sorted(set(country_codes))
        position = {code: i for i, code in enumerate(distinct)}
        m = len(distinct)

        by_country = np.ones((m, m), dtype=np.float64)
        for i, code_a in enumerate(distinct):
            for j in range(i, m):
                value = self.multiplier(code_a, distinct[j])
                by_country[i, j] = value
                by_country[j, i] = value

        idx = np.array([position[code] for code in country_codes], dtype=np.intp)
        return by_country[np.ix_(idx, idx)]
