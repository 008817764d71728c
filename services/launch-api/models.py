import uuid
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def generate_id() -> str:
    return uuid.uuid4().hex


class LaunchModel(BaseModel):
    """Base for every payload: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Enumerations ---

CampaignType = Literal["Awareness", "Traffic", "Engagement", "Leads", "AppPromotion", "Sales"]
RedirectionType = Literal["LANDING_PAGE", "LEAD_FORM", "DEEPLINK"]
BudgetMode = Literal["CBO", "ABO"]
BudgetType = Literal["daily", "lifetime"]
Gender = Literal["All", "Male", "Female"]
PlacementPreset = Literal[
    "FEEDS_REELS",
    "STORIES_ONLY",
    "ALL_PLACEMENTS",
    "FACEBOOK_ONLY",
    "INSTAGRAM_ONLY",
    "FEED_ONLY",
    "REELS_ONLY",
    "CUSTOM",
]
CreativeFormat = Literal["Image", "Video"]
CreativeLabel = Literal["Static", "Video", "UGC", "Other"]
MediaType = Literal["image", "video"]
CopyMode = Literal["GLOBAL", "PER_CREATIVE", "VARIANT_MATRIX"]
DateFormat = Literal["MMYYYY", "MMDDYYYY", "YYYY-MM-DD", "DD/MM/YYYY"]
LocationStrategy = Literal["auto", "country", "region", "city", "custom"]

DEFAULT_CTA = "Learn More"

# CUSTOM resolves to BulkAudiencesConfig.custom_placements
PLACEMENT_PRESETS: dict[str, list[str]] = {
    "FEEDS_REELS": ["Feed", "Reels"],
    "STORIES_ONLY": ["Stories"],
    "ALL_PLACEMENTS": ["Feed", "Stories", "Reels", "Explore", "Messenger", "Search", "In-stream"],
    "FACEBOOK_ONLY": ["Facebook Feed", "Facebook Stories", "Facebook Reels", "Facebook Marketplace"],
    "INSTAGRAM_ONLY": ["Instagram Feed", "Instagram Stories", "Instagram Reels", "Instagram Explore"],
    "FEED_ONLY": ["Facebook Feed", "Instagram Feed"],
    "REELS_ONLY": ["Facebook Reels", "Instagram Reels"],
    "CUSTOM": [],
}

PLACEMENT_PRESET_LABELS: dict[str, str] = {
    "FEEDS_REELS": "Feeds + Reels",
    "STORIES_ONLY": "Stories",
    "ALL_PLACEMENTS": "All Placements",
    "FACEBOOK_ONLY": "Facebook",
    "INSTAGRAM_ONLY": "Instagram",
    "FEED_ONLY": "Feed",
    "REELS_ONLY": "Reels",
    "CUSTOM": "Custom",
}


# --- Campaign ---

class CampaignConfig(LaunchModel):
    name: str = Field(min_length=1)
    type: CampaignType
    objective: str | None = None
    redirection_type: RedirectionType
    redirection_url: str | None = None
    redirection_form_id: str | None = None
    redirection_deeplink: str | None = None
    budget_mode: BudgetMode = "CBO"
    budget_type: BudgetType = "daily"
    budget: float | None = Field(default=None, gt=0)
    start_date: str = "NOW"
    end_date: str | None = None
    url_params_override: str | None = None

    @field_validator(
        "objective", "redirection_url", "redirection_form_id",
        "redirection_deeplink", "end_date", "url_params_override",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_redirection_payload(self) -> "CampaignConfig":
        payload = {
            "LANDING_PAGE": self.redirection_url,
            "LEAD_FORM": self.redirection_form_id,
            "DEEPLINK": self.redirection_deeplink,
        }
        populated = [kind for kind, value in payload.items() if value]
        if populated != [self.redirection_type]:
            raise ValueError(
                f"redirection_type '{self.redirection_type}' requires exactly its own payload, "
                f"got: {', '.join(populated) or 'none'}"
            )
        return self


class PartialCampaign(LaunchModel):
    """Campaign fields as they stand mid-edit. Nothing is required."""
    name: str | None = None
    type: CampaignType | None = None
    objective: str | None = None
    redirection_type: RedirectionType | None = None
    redirection_url: str | None = None
    redirection_form_id: str | None = None
    redirection_deeplink: str | None = None
    budget_mode: BudgetMode | None = None
    budget_type: BudgetType | None = None
    budget: float | None = None
    start_date: str | None = None
    end_date: str | None = None
    url_params_override: str | None = None


# --- Audiences ---

class BroadAudience(LaunchModel):
    id: str = Field(default_factory=generate_id)
    type: Literal["BROAD"] = "BROAD"
    name: str


class InterestAudience(LaunchModel):
    id: str = Field(default_factory=generate_id)
    type: Literal["INTEREST"] = "INTEREST"
    name: str
    interests: list[str] = []


class LookalikeAudience(LaunchModel):
    id: str = Field(default_factory=generate_id)
    type: Literal["LOOKALIKE"] = "LOOKALIKE"
    name: str
    lookalike_source: str | None = None
    lookalike_percentages: list[float] = []


class CustomAudience(LaunchModel):
    id: str = Field(default_factory=generate_id)
    type: Literal["CUSTOM_AUDIENCE"] = "CUSTOM_AUDIENCE"
    name: str
    custom_audience_id: str | None = None


AudiencePreset = Annotated[
    Union[BroadAudience, InterestAudience, LookalikeAudience, CustomAudience],
    Field(discriminator="type"),
]


class GeoLocations(LaunchModel):
    countries: list[str] = []
    regions: list[str] = []
    cities: list[str] = []


class Demographics(LaunchModel):
    age_min: int = Field(default=18, ge=13, le=65)
    age_max: int = Field(default=65, ge=13, le=65)
    gender: Gender = "All"
    languages: list[str] = []

    @model_validator(mode="after")
    def check_age_range(self) -> "Demographics":
        if self.age_min > self.age_max:
            raise ValueError(f"age_min ({self.age_min}) cannot exceed age_max ({self.age_max})")
        return self


class BulkAudiencesConfig(LaunchModel):
    audiences: list[AudiencePreset] = []
    placement_presets: list[PlacementPreset] = ["ALL_PLACEMENTS"]
    custom_placements: list[str] = []
    geo_locations: GeoLocations = Field(default_factory=GeoLocations)
    demographics: Demographics = Field(default_factory=Demographics)
    optimization_event: str = "LINK_CLICK"
    budget_per_ad_set: float | None = Field(default=None, gt=0)
    budget_type: BudgetType | None = None

    @field_validator("audiences")
    @classmethod
    def unique_audience_ids(cls, v: list) -> list:
        ids = [a.id for a in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Audience preset ids must be unique")
        return v

    @field_validator("placement_presets")
    @classmethod
    def placement_presets_not_empty(cls, v: list) -> list:
        return v or ["ALL_PLACEMENTS"]

    def placements_for(self, preset: str) -> list[str]:
        if preset == "CUSTOM":
            return list(self.custom_placements)
        return list(PLACEMENT_PRESETS.get(preset, []))


# --- Creatives ---

class CreativeVersion(LaunchModel):
    url: str
    thumbnail: str | None = None
    media_type: MediaType | None = None


def format_from_media_type(mime: str) -> CreativeFormat:
    """'video/mp4' -> Video, anything else -> Image."""
    return "Video" if mime.lower().startswith("video") else "Image"


class Creative(LaunchModel):
    id: str = Field(default_factory=generate_id)
    name: str
    format: CreativeFormat
    label: CreativeLabel = "Static"
    feed_version: CreativeVersion | None = None
    story_version: CreativeVersion | None = None
    # Per-creative copy, overrides copy variants when any of the three is set
    headline: str | None = Field(default=None, max_length=255)
    primary_text: str | None = Field(default=None, max_length=2000)
    cta: str | None = Field(default=None, max_length=50)
    description: str | None = Field(default=None, max_length=255)

    @model_validator(mode="before")
    @classmethod
    def derive_format(cls, data: Any) -> Any:
        """Fill a missing format from the uploaded media type."""
        if not isinstance(data, dict) or data.get("format"):
            return data
        for key in ("feed_version", "feedVersion", "story_version", "storyVersion"):
            version = data.get(key)
            if isinstance(version, CreativeVersion):
                media_type = version.media_type
            elif isinstance(version, dict):
                media_type = version.get("media_type", version.get("mediaType"))
            else:
                media_type = None
            if media_type:
                return {**data, "format": format_from_media_type(media_type)}
        return data

    @model_validator(mode="after")
    def check_version_formats(self) -> "Creative":
        feed, story = self.feed_version, self.story_version
        if feed and story and feed.media_type and story.media_type and feed.media_type != story.media_type:
            raise ValueError(
                f"Creative '{self.name}' mixes {feed.media_type} feed and {story.media_type} story versions"
            )
        for version in (feed, story):
            if version and version.media_type and format_from_media_type(version.media_type) != self.format:
                raise ValueError(
                    f"Creative '{self.name}' is declared {self.format} but carries {version.media_type} media"
                )
        return self

    @property
    def feed_url(self) -> str:
        return self.feed_version.url if self.feed_version else ""

    @property
    def story_url(self) -> str:
        return self.story_version.url if self.story_version else ""

    @property
    def has_copy_override(self) -> bool:
        return bool(self.headline or self.primary_text or self.cta)


class CopyVariant(LaunchModel):
    id: str = Field(default_factory=generate_id)
    name: str
    headline: str = Field(min_length=1, max_length=255)
    primary_text: str = Field(min_length=1, max_length=2000)
    cta: str = Field(min_length=1, max_length=50)


class CopyBlock(LaunchModel):
    headline: str = ""
    primary_text: str = ""
    cta: str = DEFAULT_CTA
    description: str | None = None


class BulkCreativesConfig(LaunchModel):
    creatives: list[Creative] = []
    copy_mode: CopyMode = "GLOBAL"
    global_headline: str = ""
    global_primary_text: str = ""
    global_cta: str = Field(default=DEFAULT_CTA, alias="globalCTA")
    creative_copies: dict[str, CopyBlock] = {}
    copy_variants: list[CopyVariant] = []

    @model_validator(mode="before")
    @classmethod
    def map_legacy_flags(cls, data: Any) -> Any:
        """Accept the dashboard's sameCopyForAll / enableVariants booleans."""
        if not isinstance(data, dict) or "copy_mode" in data or "copyMode" in data:
            return data
        same = data.get("sameCopyForAll", data.get("same_copy_for_all"))
        variants = data.get("enableVariants", data.get("enable_variants"))
        if same is None and variants is None:
            return data
        data = dict(data)
        if same:
            data["copy_mode"] = "GLOBAL"
        elif variants:
            data["copy_mode"] = "VARIANT_MATRIX"
        else:
            data["copy_mode"] = "PER_CREATIVE"
        return data

    @property
    def same_copy_for_all(self) -> bool:
        return self.copy_mode == "GLOBAL"

    @property
    def enable_variants(self) -> bool:
        return self.copy_mode == "VARIANT_MATRIX"

    def global_copy(self) -> CopyBlock:
        return CopyBlock(
            headline=self.global_headline,
            primary_text=self.global_primary_text,
            cta=self.global_cta or DEFAULT_CTA,
        )

    def copy_for(self, creative_id: str) -> CopyBlock:
        if self.same_copy_for_all:
            return self.global_copy()
        copy = self.creative_copies.get(creative_id)
        if copy is None:
            return CopyBlock()
        return copy.model_copy(update={"cta": copy.cta or DEFAULT_CTA})


# --- Matrix ---

class MatrixDimensions(LaunchModel):
    """Generation toggles. Audiences and placements always expand."""
    audiences: bool = True  # accepted from older dashboards, never consulted
    placements: bool = True
    format_split: bool = False
    creatives: bool = False
    format_variants: bool = False
    copy_variants: bool = False


class AdDestination(LaunchModel):
    type: RedirectionType
    url: str | None = None
    form_id: str | None = None
    deeplink: str | None = None


class GeneratedAd(LaunchModel):
    id: str
    ad_set_id: str
    name: str
    format: CreativeFormat
    label: CreativeLabel
    creative_id: str
    creative_url: str
    creative_url_story: str | None = None
    headline: str
    primary_text: str
    cta: str
    description: str | None = None
    copy_variant_id: str | None = None
    destination: AdDestination
    final_url_with_params: str


class GeneratedAdSet(LaunchModel):
    id: str
    name: str
    audience: AudiencePreset
    placement_preset: PlacementPreset
    placements: list[str]
    format: CreativeFormat | None = None
    geo_locations: GeoLocations
    demographics: Demographics
    optimization_event: str
    budget: float | None = None
    budget_type: BudgetType | None = None
    ads: list[GeneratedAd]


class MatrixStats(LaunchModel):
    ad_sets: int
    ads_per_ad_set: int
    total_ads: int


class MatrixRequest(LaunchModel):
    campaign: CampaignConfig
    audiences: BulkAudiencesConfig
    creatives: BulkCreativesConfig
    dimensions: MatrixDimensions = Field(default_factory=MatrixDimensions)


class MatrixPreview(LaunchModel):
    ad_sets: list[GeneratedAdSet]
    stats: MatrixStats
    generated_ads: int
    soft_limit: int
    over_limit: bool


# --- Naming ---

class DateVariable(LaunchModel):
    format: DateFormat = "MMYYYY"


class LocationVariable(LaunchModel):
    strategy: LocationStrategy = "auto"


class NamingVariables(LaunchModel):
    date: DateVariable | None = None
    location: LocationVariable | None = None


class NamingConventionTemplate(LaunchModel):
    template: str
    variables: NamingVariables = Field(default_factory=NamingVariables)


class CampaignNameContext(LaunchModel):
    client_name: str | None = None
    subject: str | None = None
    campaign: PartialCampaign = Field(default_factory=PartialCampaign)
    audiences: BulkAudiencesConfig | None = None
    custom_variables: dict[str, str] = {}


class TemplateValidation(LaunchModel):
    valid: bool
    errors: list[str] = []
    variables: list[str] = []


class CampaignNameRequest(LaunchModel):
    convention: NamingConventionTemplate
    context: CampaignNameContext = Field(default_factory=CampaignNameContext)


class CampaignNameResponse(LaunchModel):
    name: str


class TemplateRequest(LaunchModel):
    template: str


class NamingConventionPreset(LaunchModel):
    name: str
    convention: NamingConventionTemplate


# --- Dynamic params ---

class DynamicParamsRequest(LaunchModel):
    text: str
    params: dict[str, str] = {}


class DynamicParamsResponse(LaunchModel):
    text: str
    has_params: bool
    params: list[str] = []


# --- Campaign validation ---

class CampaignValidation(LaunchModel):
    valid: bool
    errors: list[str] = []
    warnings: list[str] = []


class LaunchValidationRequest(LaunchModel):
    campaign: PartialCampaign
    audiences: BulkAudiencesConfig | None = None
    creatives: BulkCreativesConfig | None = None


class CampaignDefaults(LaunchModel):
    campaign_type: CampaignType
    objective: str
    default_redirection_type: RedirectionType
    allowed_redirection_types: list[RedirectionType]
    url_params: str
