"""Read-only model inputs — calibration constants, cultural ties, country economics."""

from pydantic import Field, model_validator

from src.models.common import CountryCode, GravityBase


class CalibrationConstants(GravityBase, frozen=True):
    """Gravity model constants and decade anchors.

    Every decade-keyed table must carry exactly the keys in ``decades``.
    """

    decades: list[int] = Field(..., min_length=1)
    world_passengers_millions: dict[int, float]

    alpha: float = Field(..., gt=0, description="AirMass exponent.")
    gamma: float = Field(..., gt=0, description="Distance decay exponent.")
    eta: float = Field(..., gt=0, description="Income elasticity of flying rate.")
    reference_gdp_per_capita: float = Field(..., gt=0)

    fly_propensity: dict[int, float]
    max_fly_rate: dict[int, float]

    min_distance_nm: float = Field(..., ge=0)
    max_distance_nm: float = Field(..., gt=0)
    min_effective_distance_nm: float = Field(..., gt=0)

    min_demand_threshold: int = Field(default=3, ge=0, le=100)
    min_air_mass: float = Field(default=0.01, ge=0)
    normalization_power: float = Field(default=0.25, gt=0)
    share_reference_year: int = 2000
    missing_gdp_fallback: float = Field(default=1000.0, gt=0)

    @model_validator(mode="after")
    def _check_tables(self) -> "CalibrationConstants":
        if self.decades != sorted(set(self.decades)):
            msg = f"decades must be strictly increasing, got {self.decades}"
            raise ValueError(msg)
        expected = set(self.decades)
        for name in ("world_passengers_millions", "fly_propensity", "max_fly_rate"):
            keys = set(getattr(self, name))
            if keys != expected:
                msg = f"{name} keys {sorted(keys)} != decades {sorted(expected)}"
                raise ValueError(msg)
        if self.min_distance_nm >= self.max_distance_nm:
            msg = "min_distance_nm must be below max_distance_nm"
            raise ValueError(msg)
        return self


class AffinityGroup(GravityBase, frozen=True):
    """A set of countries sharing a tie (language, commonwealth, trade bloc)."""

    name: str
    members: list[CountryCode]
    multiplier: float = Field(..., gt=0)


class BilateralLink(GravityBase, frozen=True):
    """Directional country-pair corridor. Lookup treats it as symmetric."""

    from_country: CountryCode
    to_country: CountryCode
    multiplier: float = Field(..., gt=0)


class CulturalTies(GravityBase, frozen=True):
    """All cultural-affinity override tables."""

    domestic_multiplier: float = Field(default=1.0, gt=0)
    language_groups: list[AffinityGroup] = Field(default_factory=list)
    commonwealth: AffinityGroup | None = None
    regional_blocs: list[AffinityGroup] = Field(default_factory=list)
    bilateral: list[BilateralLink] = Field(default_factory=list)


class CountryEconomics(GravityBase, frozen=True):
    """GDP per capita (2024 USD) by decade for one country."""

    name: str = ""
    gdp_per_capita: dict[int, float]
