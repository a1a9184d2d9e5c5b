"""Physical constants. Units: SI unless noted."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PhysicalConstants:
    """General constants that are not normally calibrated.

    Attributes:
        rho_w: Density of water [kg/m³]
        L_sl: Specific latent heat of fusion [J/kg]
        T_ref: 0°C in Kelvin [K]
        c_water: Volumetric heat capacity of liquid water [J/(m³·K)]
        c_ice: Volumetric heat capacity of ice [J/(m³·K)]
        c_mineral: Volumetric heat capacity of mineral soil [J/(m³·K)]
        c_air: Volumetric heat capacity of air [J/(m³·K)]
    """

    rho_w: float = 1000.0
    L_sl: float = 3.34e5
    T_ref: float = 273.15
    c_water: float = 4.2e6
    c_ice: float = 1.9e6
    c_mineral: float = 2.0e6
    c_air: float = 1.25e3

    @property
    def volumetric_latent_heat(self) -> float:
        """Latent heat of fusion per unit volume of water [J/m³]."""
        return self.rho_w * self.L_sl

    def celsius_to_kelvin(self, T: float) -> float:
        return T + self.T_ref
