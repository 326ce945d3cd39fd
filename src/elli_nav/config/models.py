from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from elli_nav.domain.entities.geography import GeoBounds, GeoPoint


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


# ----------------- NAVIGATION ---------------------


class GeoPointModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class GeoBoundsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # one calibration for every plan; real deployments would calibrate per plan
    north_west: GeoPointModel = Field(
        default_factory=lambda: GeoPointModel(latitude=34.0529, longitude=-118.2445)
    )
    south_east: GeoPointModel = Field(
        default_factory=lambda: GeoPointModel(latitude=34.0520, longitude=-118.2425)
    )

    @model_validator(mode="after")
    def _check_corners(self):
        if self.north_west.latitude < self.south_east.latitude:
            raise ValueError("north_west latitude must be >= south_east latitude")
        if self.north_west.longitude > self.south_east.longitude:
            raise ValueError("north_west longitude must be <= south_east longitude")
        return self

    def to_bounds(self) -> GeoBounds:
        return GeoBounds(
            north_west=GeoPoint(self.north_west.latitude, self.north_west.longitude),
            south_east=GeoPoint(self.south_east.latitude, self.south_east.longitude),
        )


class NavigationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    bounds: GeoBoundsModel = Field(default_factory=GeoBoundsModel)
    arrival_threshold_px: float = 25.0
    marker_size_px: float = 20.0
    displacement_factor: float = 2.0  # re-request only after moving this many marker widths

    @field_validator("arrival_threshold_px", "marker_size_px", "displacement_factor")
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @property
    def displacement_threshold_px(self) -> float:
        return self.marker_size_px * self.displacement_factor


# ----------------- REASONING BACKEND ---------------------


class OpenAIReasoningModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["openai"] = "openai"
    model: str = "gpt-4o"
    api_key_env: str | None = "OPENAI_API_KEY"
    api_key_file: str | None = None
    timeout_s: float = Field(default=30.0, gt=0)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, gt=0)


class DisabledReasoningModel(BaseModel):
    """Every route falls back to the straight line."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["disabled"] = "disabled"


ReasoningUnion = Annotated[
    OpenAIReasoningModel | DisabledReasoningModel, Field(discriminator="kind")
]


# ----------------- LOCATION WATCH ---------------------


class WatchModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    initial_timeout_s: float = Field(default=10.0, gt=0)
    initial_max_age_s: float = Field(default=60.0, ge=0)
    watch_timeout_s: float = Field(default=15.0, gt=0)


# ----------------- PATH RUNNERS ---------------------


class InlineRunnerModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["inline"] = "inline"


class ThreadRunnerModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["thread"] = "thread"
    max_workers: int = Field(default=1, ge=1)


RunnerUnion = Annotated[InlineRunnerModel | ThreadRunnerModel, Field(discriminator="kind")]


# ------------------------------------------------------------------


class AppModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "elli"
    run_id: str = "local"
    navigation: NavigationModel = Field(default_factory=NavigationModel)
    reasoning: ReasoningUnion = Field(default_factory=OpenAIReasoningModel)
    watch: WatchModel = Field(default_factory=WatchModel)
    runner: RunnerUnion = Field(default_factory=ThreadRunnerModel)
    log: LogModel = LogModel()
