"""Terrain generation configuration models."""

from enum import Enum

from pydantic import BaseModel, Field


class Season(str, Enum):
    """Season passed into climate synthesis."""

    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


SEASON_TEMPERATURE_MODIFIERS: dict[Season, float] = {
    Season.SPRING: 0.0,
    Season.SUMMER: 0.2,
    Season.AUTUMN: -0.1,
    Season.WINTER: -0.3,
}


class HeightConfig(BaseModel):
    """Height field synthesis parameters."""

    resolution: int = Field(default=64, ge=4, description="Grid cells per tile edge")
    tile_size: float = Field(default=100.0, gt=0, description="World units per tile edge")
    sea_level: float = Field(default=0.0, description="Sea level height")
    octaves: int = Field(default=6, ge=0, description="Number of octaves")
    frequency: float = Field(default=0.01, description="Base frequency (1/world units)")
    amplitude: float = Field(default=20.0, description="First octave amplitude")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    persistence: float = Field(default=0.5, description="Amplitude multiplier per octave")
    curve_exponent: float = Field(default=2.5, gt=0, description="Power curve exponent")
    height_min: float = Field(default=-10.0, description="Lowest height after shaping")
    height_range: float = Field(default=80.0, gt=0, description="Height span after shaping")


class ErosionConfig(BaseModel):
    """Hydraulic erosion droplet parameters."""

    droplets: int | None = Field(
        default=None, ge=0, description="Droplet count; None scales with resolution"
    )
    droplets_per_row: int = Field(
        default=4, ge=0, description="Droplets per grid row when droplets is None"
    )
    max_steps: int = Field(default=30, ge=0, description="Step cap per droplet")
    inertia: float = Field(default=0.8, description="Velocity retained per step")
    gravity: float = Field(default=4.0, description="Gradient contribution per step")
    capacity_factor: float = Field(default=0.01, description="Sediment capacity per speed*water")
    deposition_rate: float = Field(default=0.01, description="Fraction of excess deposited")
    erosion_rate: float = Field(default=0.01, description="Fraction of spare capacity eroded")
    evaporation_rate: float = Field(default=0.01, description="Water lost per step")
    min_water: float = Field(default=0.01, description="Droplet dies below this water")

    def droplet_count(self, resolution: int) -> int:
        """Number of droplets to run on a grid of the given resolution."""
        if self.droplets is not None:
            return self.droplets
        return resolution * self.droplets_per_row


class ClimateConfig(BaseModel):
    """Temperature, moisture and biome decision parameters."""

    season: Season = Field(default=Season.SPRING, description="Default season")
    latitude_rate: float = Field(
        default=0.0005, description="Temperature drop per world unit of |z|"
    )
    temperature_frequency: float = Field(default=0.002, description="Temperature noise frequency")
    temperature_noise_weight: float = Field(default=0.3, description="Temperature noise weight")
    moisture_frequency: float = Field(default=0.003, description="Moisture noise frequency")
    elevation_scale: float = Field(default=50.0, gt=0, description="Height normalizer for moisture")
    elevation_penalty: float = Field(default=0.2, description="Moisture lost per normalized height")
    proximity_frequency: float = Field(
        default=0.03, description="Frequency of the water proximity proxy"
    )
    proximity_weight: float = Field(default=0.3, description="Water proximity moisture bonus")
    lapse_scale: float = Field(
        default=100.0, gt=0, description="Height normalizer for adjusted temperature"
    )
    ocean_depth: float = Field(default=-4.0, description="Mean height below which a tile is ocean")
    mountain_height: float = Field(
        default=18.0, description="Mean height above which a tile is mountain"
    )
    mesa_height: float = Field(
        default=10.0, description="Mean height above which dry hot tiles are mesa"
    )
    corrupted_balance: float = Field(
        default=-0.5, description="Harmony minus dissonance below which tiles corrupt"
    )
    ethereal_balance: float = Field(
        default=1.6, description="Harmony minus dissonance above which tiles turn ethereal"
    )
    anomaly_threshold: float = Field(
        default=0.9, description="Cellular anomaly value that forces volcanic/crystal"
    )


class HydrologyConfig(BaseModel):
    """Water body, stream and river parameters."""

    water_threshold: float = Field(default=-1.0, description="Heights below this are wet")
    min_water_cells: int = Field(default=9, ge=1, description="Smallest water body in cells")
    lake_min_cells: int = Field(default=100, description="Bodies larger than this are lakes")
    pond_min_cells: int = Field(default=25, description="Bodies larger than this are ponds")
    swamp_lake_min_cells: int = Field(
        default=50, description="Swamp bodies larger than this are lakes, else ponds"
    )
    mountain_lake_min_depth: float = Field(
        default=3.0, description="Mountain bodies deeper than this on average are lakes"
    )
    mountain_lake_min_cells: int = Field(
        default=25, description="Mountain bodies larger than this are lakes"
    )

    stream_attempts: int = Field(default=3, description="Mountain stream attempts")
    stream_min_height: float = Field(default=10.0, description="Stream source minimum height")
    stream_max_steps: int = Field(default=20, description="Stream trace step cap")
    stream_min_vertices: int = Field(default=5, description="Streams need more vertices than this")
    spring_count: int = Field(default=2, description="Forest springs per tile")
    spring_radius: float = Field(default=2.0, description="Forest spring radius in cells")
    pool_radius: float = Field(default=4.0, description="Harmonic pool radius in cells")
    hot_spring_count: int = Field(default=3, description="Volcanic hot springs per tile")
    hot_spring_radius: float = Field(default=3.0, description="Hot spring base radius in cells")

    river_source_stride: int = Field(default=8, ge=1, description="Source sample grid stride")
    river_source_margin: int = Field(default=4, ge=1, description="Source grid margin")
    river_source_window: int = Field(default=3, ge=1, description="Local maximum window radius")
    river_min_elevation: float = Field(default=10.0, description="Minimum source height")
    river_probability: float = Field(default=0.3, description="Chance a source spawns a river")
    river_max_steps: int = Field(default=500, description="River trace step cap")
    river_min_waypoints: int = Field(default=10, description="Shorter traces are discarded")
    river_initial_width: float = Field(default=1.0, description="Width at the source")
    river_width_growth: float = Field(default=0.1, description="Width gained per step")
    river_initial_depth: float = Field(default=0.5, description="Depth at the source")
    river_depth_growth: float = Field(default=0.05, description="Depth gained per step")


class CaveConfig(BaseModel):
    """Cave system generation parameters."""

    density: float = Field(default=0.1, ge=0, description="Cave density")
    volume_divisor: float = Field(default=10000.0, gt=0, description="Volume per unit density")
    max_systems: int = Field(default=16, ge=0, description="Cave systems per tile cap")
    depth_min: float = Field(default=-50.0, description="Lowest cave origin height")
    depth_max: float = Field(default=50.0, description="Highest cave origin height")
    chamber_radius: tuple[float, float] = Field(
        default=(10.0, 30.0), description="Main chamber radius"
    )
    chamber_height: tuple[float, float] = Field(
        default=(5.0, 15.0), description="Main chamber height"
    )
    tunnel_count: tuple[int, int] = Field(default=(2, 5), description="Tunnels per system")
    tunnel_length: tuple[float, float] = Field(default=(20.0, 50.0), description="Tunnel length")
    tunnel_radius: tuple[float, float] = Field(
        default=(2.0, 5.0), description="Tunnel start radius"
    )
    tunnel_step: float = Field(default=2.0, gt=0, description="Tunnel step length")
    min_tunnel_radius: float = Field(default=1.0, description="Tunnel radius floor")
    end_chamber_probability: float = Field(default=0.5, description="Chance of an end chamber")
    end_chamber_radius: tuple[float, float] = Field(
        default=(5.0, 20.0), description="End chamber radius"
    )
    end_chamber_height: tuple[float, float] = Field(
        default=(3.0, 10.0), description="End chamber height"
    )
    influence_radius: float = Field(default=50.0, description="Distance a cave affects terrain")


class VegetationConfig(BaseModel):
    """Vegetation placement parameters."""

    grass_frequency: float = Field(default=0.1, description="Grass noise frequency")
    grass_noise_weight: float = Field(default=0.3, description="Grass noise weight")
    tree_count_scale: float = Field(default=20.0, description="Trees per unit density")
    flower_count_scale: float = Field(default=5.0, description="Flower clusters per unit density")
    bush_count_scale: float = Field(default=10.0, description="Bushes per unit density")
    attempts_per_instance: int = Field(default=3, ge=1, description="Placement attempts per target")
    tree_max_slope: float = Field(default=0.5, description="Steepest slope for trees")
    tree_min_height: float = Field(default=-1.0, description="Trees grow above this height")
    flower_min_height: float = Field(default=0.0, description="Flowers grow above this height")
    bush_min_height: float = Field(default=-0.5, description="Bushes grow above this height")


class FeatureConfig(BaseModel):
    """Feature and point-of-interest placement parameters."""

    max_features: int = Field(default=15, ge=0, description="Features per tile cap")
    min_distance: float = Field(default=5.0, description="Minimum spacing between features")
    placement_attempts: int = Field(default=10, description="Position attempts per feature")
    placement_margin: int = Field(default=5, description="Cells kept clear of the tile edge")
    water_search_radius: int = Field(default=3, description="Bridge water search radius")
    bridge_water_height: float = Field(
        default=-1.0, description="Bridges need a cell below this height nearby"
    )
    open_area_attempts: int = Field(default=20, description="Open area search attempts")
    open_area_margin: int = Field(default=10, description="Open area edge margin")
    open_area_radius: float = Field(default=15.0, description="Clearance around special features")
    celestial_harmony: float = Field(
        default=1.8, description="Harmony above which convergences appear"
    )
    celestial_probability: float = Field(default=0.3, description="Celestial convergence chance")
    nexus_harmony: float = Field(default=0.2, description="Harmony below which nexuses appear")
    nexus_probability: float = Field(default=0.4, description="Corruption nexus chance")
    unique_modulus: int = Field(
        default=100, ge=1, description="One tile in this many holds a unique"
    )


class TerrainConfig(BaseModel):
    """Complete tile generation configuration."""

    height: HeightConfig = Field(default_factory=HeightConfig)
    erosion: ErosionConfig = Field(default_factory=ErosionConfig)
    climate: ClimateConfig = Field(default_factory=ClimateConfig)
    hydrology: HydrologyConfig = Field(default_factory=HydrologyConfig)
    caves: CaveConfig = Field(default_factory=CaveConfig)
    vegetation: VegetationConfig = Field(default_factory=VegetationConfig)
    features: FeatureConfig = Field(default_factory=FeatureConfig)
