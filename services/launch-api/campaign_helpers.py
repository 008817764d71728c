"""
Campaign helpers — defaults, URL tracking and pre-generation validation.

The matrix engine trusts its input; these checks run first so the dashboard
can show readable errors before anything is generated.
"""

from models import (
    BulkAudiencesConfig,
    BulkCreativesConfig,
    CampaignDefaults,
    CampaignValidation,
    PartialCampaign,
)

CAMPAIGN_TYPE_TO_OBJECTIVE = {
    "Awareness": "OUTCOME_AWARENESS",
    "Traffic": "OUTCOME_TRAFFIC",
    "Engagement": "OUTCOME_ENGAGEMENT",
    "Leads": "OUTCOME_LEADS",
    "AppPromotion": "OUTCOME_APP_PROMOTION",
    "Sales": "OUTCOME_SALES",
}

LOW_BUDGET_THRESHOLD = 10
HIGH_BUDGET_THRESHOLD = 100


def get_default_redirection_type(campaign_type: str) -> str:
    if campaign_type == "Leads":
        return "LEAD_FORM"
    if campaign_type == "AppPromotion":
        return "DEEPLINK"
    return "LANDING_PAGE"


def get_allowed_redirection_types(campaign_type: str) -> list[str]:
    if campaign_type == "Leads":
        return ["LEAD_FORM", "LANDING_PAGE"]
    if campaign_type == "AppPromotion":
        return ["DEEPLINK", "LANDING_PAGE"]
    return ["LANDING_PAGE"]


def get_campaign_defaults(campaign_type: str) -> CampaignDefaults:
    return CampaignDefaults(
        campaign_type=campaign_type,
        objective=CAMPAIGN_TYPE_TO_OBJECTIVE[campaign_type],
        default_redirection_type=get_default_redirection_type(campaign_type),
        allowed_redirection_types=get_allowed_redirection_types(campaign_type),
        url_params=generate_url_params(),
    )


def generate_url_params(campaign_name: str | None = None, ad_set_name: str | None = None) -> str:
    """Meta URL tracking template; `{{...}}` tokens are filled in by the ad platform."""
    return (
        "visual={{ad.name}}"
        "&site_source_name={{site_source_name}}"
        "&placement={{placement}}"
        "&meta_campaign_id={{campaign.id}}"
        "&meta_adset_id={{adset.id}}"
        "&meta_ad_id={{ad.id}}"
        "&utm_source=facebook"
        "&utm_medium=paid_social"
        f"&utm_campaign={campaign_name or '{{campaign.name}}'}"
        f"&utm_content={ad_set_name or '{{adset.name}}'}"
    )


def validate_campaign_configuration(campaign: PartialCampaign) -> CampaignValidation:
    errors = []
    warnings = []

    if not campaign.name or not campaign.name.strip():
        errors.append("Campaign name is required")
    if not campaign.type:
        errors.append("Campaign type is required")
    if not campaign.redirection_type:
        errors.append("Redirection type is required")

    if campaign.type and campaign.redirection_type:
        allowed = get_allowed_redirection_types(campaign.type)
        if campaign.redirection_type not in allowed:
            errors.append(
                f"Redirection type {campaign.redirection_type} is not available for {campaign.type} "
                f"campaigns (allowed: {', '.join(allowed)})"
            )

    if campaign.redirection_type == "LANDING_PAGE" and not campaign.redirection_url:
        errors.append("A destination URL is required for LANDING_PAGE redirection")
    if campaign.redirection_type == "LEAD_FORM" and not campaign.redirection_form_id:
        warnings.append("No lead form selected")
    if campaign.redirection_type == "DEEPLINK" and not campaign.redirection_deeplink:
        errors.append("A deeplink is required for DEEPLINK redirection")

    if campaign.budget_mode != "ABO" and (not campaign.budget or campaign.budget <= 0):
        warnings.append("Campaign budget is missing or invalid")

    if not campaign.start_date:
        errors.append("Start date is required")

    if campaign.budget_type == "lifetime" and not campaign.end_date:
        warnings.append("Lifetime budget without an end date")

    return CampaignValidation(valid=not errors, errors=errors, warnings=warnings)


def validate_launch_inputs(
    campaign: PartialCampaign,
    audiences: BulkAudiencesConfig | None = None,
    creatives: BulkCreativesConfig | None = None,
) -> CampaignValidation:
    """Campaign checks plus the audience/creative checks generation relies on."""
    result = validate_campaign_configuration(campaign)
    errors = list(result.errors)
    warnings = list(result.warnings)

    if audiences is not None:
        if not audiences.audiences:
            errors.append("At least one audience is required")
        if not audiences.geo_locations.countries:
            errors.append("At least one country is required")
        if campaign.budget_mode == "ABO" and not audiences.budget_per_ad_set:
            errors.append("A budget per ad set is required for ABO campaigns")

    if creatives is not None:
        if not creatives.creatives:
            errors.append("At least one creative is required")
        for creative in creatives.creatives:
            if not creative.feed_url and not creative.story_url:
                errors.append(f"Creative '{creative.name}' has no feed or story media")
        if creatives.enable_variants and not creatives.copy_variants:
            errors.append("Copy variants are enabled but none are defined")
        if creatives.same_copy_for_all and not creatives.global_headline:
            warnings.append("Global headline is empty")

    return CampaignValidation(valid=not errors, errors=errors, warnings=warnings)


def suggest_campaign_improvements(campaign: PartialCampaign) -> list[str]:
    suggestions = []

    if campaign.budget and campaign.budget < LOW_BUDGET_THRESHOLD:
        suggestions.append(f"Very low budget (< {LOW_BUDGET_THRESHOLD}/day): expect limited delivery")

    if campaign.type == "Leads" and campaign.redirection_type == "LANDING_PAGE":
        suggestions.append("For lead volume, consider native lead forms (LEAD_FORM) over an external landing page")

    if campaign.budget and campaign.budget > HIGH_BUDGET_THRESHOLD and campaign.budget_mode == "CBO":
        suggestions.append(
            f"High budget (> {HIGH_BUDGET_THRESHOLD}/day): consider a cost cap bid strategy to control cost per result"
        )

    return suggestions
