"""
Matrix Engine — bulk ad set / ad expansion

Expands a sparse launch configuration into every ad set and ad that has
to be created on the ad platform.

Ad set axes (outer to inner):
  audience       — always expanded, one ad set per audience
  placement      — always expanded, one ad set per placement preset
  format split   — Image / Video ad sets when dimensions.format_split
  creative       — one ad set per creative when dimensions.creatives,
                   otherwise every creative shares the ad set

Ads inside an ad set: one per creative, multiplied by the copy variants
when dimensions.copy_variants is on and the creatives config is in
VARIANT_MATRIX mode. A creative carrying its own copy always yields a
single ad with that copy.

Combinations that end up without ads (format filter removed every
creative, creatives without media) are dropped. The engine never raises
on incomplete input; it just produces fewer ad sets.

calculate_matrix_stats() is the closed-form counterpart used for the
dashboard stat cards and soft-limit banner. It does not model the
pruning rules or the fallback copy used when variants are enabled but
none are defined, so its counts can differ from what generation produces.
"""

import logging

from dynamic_params import replace_dynamic_params
from models import (
    DEFAULT_CTA,
    PLACEMENT_PRESET_LABELS,
    AdDestination,
    BulkAudiencesConfig,
    BulkCreativesConfig,
    CampaignConfig,
    CopyBlock,
    CopyVariant,
    Creative,
    GeneratedAd,
    GeneratedAdSet,
    MatrixDimensions,
    MatrixPreview,
    MatrixStats,
    generate_id,
)

logger = logging.getLogger(__name__)

FORMAT_SPLIT_VALUES = ("Image", "Video")


# --- URL / destination ---

def build_final_url(campaign: CampaignConfig) -> str:
    base_url = campaign.redirection_url or ""
    params = (campaign.url_params_override or "").lstrip("?")
    if not params or not base_url:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{params}"


def build_destination(campaign: CampaignConfig) -> AdDestination:
    kind = campaign.redirection_type
    return AdDestination(
        type=kind,
        url=campaign.redirection_url if kind == "LANDING_PAGE" else None,
        form_id=campaign.redirection_form_id if kind == "LEAD_FORM" else None,
        deeplink=campaign.redirection_deeplink if kind == "DEEPLINK" else None,
    )


# --- Copy resolution ---

def _override_copy(creative: Creative) -> CopyBlock:
    return CopyBlock(
        headline=creative.headline or "",
        primary_text=creative.primary_text or "",
        cta=creative.cta or DEFAULT_CTA,
        description=creative.description,
    )


def _variant_copy(variant: CopyVariant, creative: Creative) -> CopyBlock:
    return CopyBlock(
        headline=variant.headline,
        primary_text=variant.primary_text,
        cta=variant.cta,
        description=creative.description,
    )


def resolve_ad_copies(
    creative: Creative,
    creatives: BulkCreativesConfig,
    active_variants: list[CopyVariant],
) -> list[tuple[CopyBlock, str | None]]:
    """(copy, copy_variant_id) pairs, one per ad to create for this creative.

    Precedence: creative's own copy > copy variants > global / per-creative copy.
    """
    if creative.has_copy_override:
        return [(_override_copy(creative), None)]

    if active_variants:
        return [(_variant_copy(v, creative), v.id) for v in active_variants]

    copy = creatives.copy_for(creative.id)
    if copy.description is None and creative.description:
        copy = copy.model_copy(update={"description": creative.description})
    return [(copy, None)]


def build_param_context(
    audience_name: str,
    placement_preset: str,
    creative: Creative,
    audiences: BulkAudiencesConfig,
) -> dict[str, str]:
    params = {
        "label": creative.label,
        "audience": audience_name,
        "placement": PLACEMENT_PRESET_LABELS.get(placement_preset, placement_preset),
    }
    geo = audiences.geo_locations
    if len(geo.countries) == 1:
        params["country"] = geo.countries[0]
    if len(geo.cities) == 1:
        params["city"] = geo.cities[0]
    return params


def _apply_params(copy: CopyBlock, params: dict[str, str]) -> CopyBlock:
    return CopyBlock(
        headline=replace_dynamic_params(copy.headline, params),
        primary_text=replace_dynamic_params(copy.primary_text, params),
        cta=copy.cta,
        description=replace_dynamic_params(copy.description, params) if copy.description else copy.description,
    )


def _create_ad(
    ad_set_id: str,
    creative: Creative,
    copy: CopyBlock,
    copy_variant_id: str | None,
    campaign: CampaignConfig,
) -> GeneratedAd:
    feed_url, story_url = creative.feed_url, creative.story_url
    return GeneratedAd(
        id=generate_id(),
        ad_set_id=ad_set_id,
        name=f"{creative.name} - {copy.headline}",
        format=creative.format,
        label=creative.label,
        creative_id=creative.id,
        creative_url=feed_url or story_url,
        creative_url_story=story_url or None,
        headline=copy.headline,
        primary_text=copy.primary_text,
        cta=copy.cta,
        description=copy.description,
        copy_variant_id=copy_variant_id,
        destination=build_destination(campaign),
        final_url_with_params=build_final_url(campaign),
    )


# --- Generation ---

def generate_ad_sets_from_matrix(
    campaign: CampaignConfig,
    audiences: BulkAudiencesConfig,
    creatives: BulkCreativesConfig,
    dimensions: MatrixDimensions,
) -> list[GeneratedAdSet]:
    if not audiences.audiences or not audiences.placement_presets or not creatives.creatives:
        return []

    active_variants = (
        list(creatives.copy_variants)
        if dimensions.copy_variants and creatives.enable_variants
        else []
    )
    format_splits = FORMAT_SPLIT_VALUES if dimensions.format_split else (None,)
    creative_groups = (
        [[c] for c in creatives.creatives]
        if dimensions.creatives
        else [list(creatives.creatives)]
    )
    is_abo = campaign.budget_mode == "ABO"

    ad_sets: list[GeneratedAdSet] = []

    for audience in audiences.audiences:
        for placement_preset in audiences.placement_presets:
            for format_filter in format_splits:
                for group in creative_groups:
                    if format_filter:
                        group = [c for c in group if c.format == format_filter]
                    if not group:
                        continue

                    ad_set_id = generate_id()
                    ads: list[GeneratedAd] = []

                    for creative in group:
                        if not creative.feed_url and not creative.story_url:
                            continue

                        params = build_param_context(audience.name, placement_preset, creative, audiences)
                        for copy, variant_id in resolve_ad_copies(creative, creatives, active_variants):
                            ads.append(_create_ad(
                                ad_set_id, creative, _apply_params(copy, params), variant_id, campaign,
                            ))

                    if not ads:
                        continue

                    name = f"{audience.name} - {placement_preset}"
                    if format_filter:
                        name = f"{name} - {format_filter}"

                    ad_sets.append(GeneratedAdSet(
                        id=ad_set_id,
                        name=name,
                        audience=audience,
                        placement_preset=placement_preset,
                        placements=audiences.placements_for(placement_preset),
                        format=format_filter,
                        geo_locations=audiences.geo_locations,
                        demographics=audiences.demographics,
                        optimization_event=audiences.optimization_event,
                        budget=audiences.budget_per_ad_set if is_abo else None,
                        budget_type=audiences.budget_type if is_abo else None,
                        ads=ads,
                    ))

    logger.debug(
        f"[MATRIX] Generated {len(ad_sets)} ad sets / "
        f"{sum(len(s.ads) for s in ad_sets)} ads for campaign '{campaign.name}'"
    )
    return ad_sets


# --- Statistics ---

def calculate_matrix_stats(
    audiences: list,
    placements: list,
    creatives: list,
    enable_variants: bool,
    copy_variants: list,
    dimensions: MatrixDimensions,
) -> MatrixStats:
    """Closed-form ad set / ad counts; an estimate of generation output."""
    audience_count = len(audiences) or 1
    placement_count = len(placements) or 1
    format_split_count = len(FORMAT_SPLIT_VALUES) if dimensions.format_split else 1
    copy_variant_count = len(copy_variants) if dimensions.copy_variants and enable_variants else 1

    creative_ad_set_multiplier = len(creatives) if dimensions.creatives else 1
    creatives_per_ad_set = 1 if dimensions.creatives else len(creatives)

    ad_sets = audience_count * placement_count * format_split_count * creative_ad_set_multiplier
    ads_per_ad_set = creatives_per_ad_set * copy_variant_count

    return MatrixStats(
        ad_sets=ad_sets,
        ads_per_ad_set=ads_per_ad_set,
        total_ads=ad_sets * ads_per_ad_set,
    )


def stats_for(
    audiences: BulkAudiencesConfig,
    creatives: BulkCreativesConfig,
    dimensions: MatrixDimensions,
) -> MatrixStats:
    return calculate_matrix_stats(
        audiences.audiences,
        audiences.placement_presets,
        creatives.creatives,
        creatives.enable_variants,
        creatives.copy_variants,
        dimensions,
    )


def exceeds_soft_limit(stats: MatrixStats, soft_limit: int) -> bool:
    return stats.total_ads > soft_limit


def build_matrix_preview(
    campaign: CampaignConfig,
    audiences: BulkAudiencesConfig,
    creatives: BulkCreativesConfig,
    dimensions: MatrixDimensions,
    soft_limit: int,
) -> MatrixPreview:
    """Dry-run bundle for the preview table: generated ad sets plus estimate."""
    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, dimensions)
    stats = stats_for(audiences, creatives, dimensions)
    over_limit = exceeds_soft_limit(stats, soft_limit)
    if over_limit:
        logger.info(f"[MATRIX] '{campaign.name}' estimates {stats.total_ads} ads, over soft limit {soft_limit}")
    return MatrixPreview(
        ad_sets=ad_sets,
        stats=stats,
        generated_ads=sum(len(s.ads) for s in ad_sets),
        soft_limit=soft_limit,
        over_limit=over_limit,
    )
