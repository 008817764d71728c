"""
Campaign Naming — template-driven campaign names

Resolves a naming-convention template such as
`{{clientName}}_{{date}}_{{location}}_{{objective}}` against the campaign
being built. Supported variables:

  clientName, subject        — free text from the context
  date                       — campaign start date in the configured format
  location                   — derived from the audience geo selection
  objective, redirectionType — short codes (OUTCOME_LEADS -> LEAD, LANDING_PAGE -> LP)
  redirectionName            — slug taken from the redirection URL
  type, budget               — campaign type and budget
  <custom>                   — any key of context.custom_variables

Resolution never raises: anything left unresolved becomes "N/A".
Use validate_template() to reject malformed templates up front.
"""

import logging
import re
from datetime import date
from urllib.parse import urlsplit

from models import (
    BulkAudiencesConfig,
    CampaignNameContext,
    NamingConventionTemplate,
    TemplateValidation,
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

OBJECTIVE_SHORT = {
    "OUTCOME_AWARENESS": "AWARE",
    "OUTCOME_TRAFFIC": "TRAFFIC",
    "OUTCOME_ENGAGEMENT": "ENGAGE",
    "OUTCOME_LEADS": "LEAD",
    "OUTCOME_APP_PROMOTION": "APP",
    "OUTCOME_SALES": "SALES",
}

REDIRECTION_TYPE_SHORT = {
    "LANDING_PAGE": "LP",
    "LEAD_FORM": "LF",
    "DEEPLINK": "DL",
}


def format_date(value: date, fmt: str) -> str:
    month = f"{value.month:02d}"
    day = f"{value.day:02d}"
    year = str(value.year)

    if fmt == "MMDDYYYY":
        return f"{month}{day}{year}"
    if fmt == "YYYY-MM-DD":
        return f"{year}-{month}-{day}"
    if fmt == "DD/MM/YYYY":
        return f"{day}/{month}/{year}"
    return f"{month}{year}"


def _parse_start_date(start_date: str | None, today: date) -> date:
    if not start_date or start_date.upper() == "NOW":
        return today
    try:
        return date.fromisoformat(start_date[:10])
    except ValueError:
        logger.warning(f"[NAMING] Unparseable start date '{start_date}', using {today.isoformat()}")
        return today


def _level_label(values: list[str], singular: str | None, plural: str) -> str:
    if len(values) == 1 and values[0]:
        return f"{singular}-{values[0]}" if singular else values[0]
    return f"{plural}-{len(values)}"


def get_location(audiences: BulkAudiencesConfig | None, strategy: str = "auto") -> str:
    """Location token from the geo selection.

    auto picks the most specific non-empty level (cities > regions > countries).
    A single city/region is prefixed ("city-Nantes"), a single country is kept
    verbatim ("FR"), several values collapse to a count ("cities-3").
    """
    if audiences is None:
        return NOT_AVAILABLE

    geo = audiences.geo_locations
    levels = {
        "city": (geo.cities, "city", "cities"),
        "region": (geo.regions, "region", "regions"),
        "country": (geo.countries, None, "countries"),
    }

    if strategy == "auto":
        for level in ("city", "region", "country"):
            values, singular, plural = levels[level]
            if values:
                return _level_label(values, singular, plural)
        return NOT_AVAILABLE

    if strategy in levels:
        values, singular, plural = levels[strategy]
        if values:
            return _level_label(values, singular, plural)

    return NOT_AVAILABLE


def get_objective_short(objective: str | None) -> str:
    if not objective:
        return NOT_AVAILABLE
    return OBJECTIVE_SHORT.get(objective, objective)


def get_redirection_type_short(redirection_type: str | None) -> str:
    if not redirection_type:
        return NOT_AVAILABLE
    return REDIRECTION_TYPE_SHORT.get(redirection_type, redirection_type)


def extract_name_from_url(url: str | None) -> str:
    """Last path segment of the URL as a short slug, else the host label."""
    if not url:
        return NOT_AVAILABLE

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        logger.debug(f"[NAMING] Could not parse redirection URL '{url}'")
        return NOT_AVAILABLE

    if not parts.scheme or not hostname:
        return NOT_AVAILABLE

    segments = [s for s in parts.path.split("/") if s]
    if segments:
        slug = re.sub(r"[^a-zA-Z0-9-]", "", segments[-1])[:30]
        if slug:
            return slug

    host_label = hostname.replace("www.", "", 1).split(".")[0]
    return host_label or NOT_AVAILABLE


def _format_budget(budget: float | None) -> str:
    if budget is None:
        return NOT_AVAILABLE
    if float(budget).is_integer():
        return str(int(budget))
    return str(budget)


def _resolve_variables(
    template: str,
    context: CampaignNameContext,
    convention: NamingConventionTemplate,
    today: date,
) -> dict[str, str]:
    variables: dict[str, str] = {}
    campaign = context.campaign

    def used(name: str) -> bool:
        return f"{{{{{name}}}}}" in template

    if used("clientName"):
        variables["clientName"] = context.client_name or "Client"

    if used("date"):
        date_config = convention.variables.date
        fmt = date_config.format if date_config else "MMYYYY"
        variables["date"] = format_date(_parse_start_date(campaign.start_date, today), fmt)

    if used("subject"):
        variables["subject"] = context.subject or "Campaign"

    if used("location"):
        location_config = convention.variables.location
        strategy = location_config.strategy if location_config else "auto"
        variables["location"] = get_location(context.audiences, strategy)

    if used("objective"):
        variables["objective"] = get_objective_short(campaign.objective)

    if used("redirectionType"):
        variables["redirectionType"] = get_redirection_type_short(campaign.redirection_type)

    if used("redirectionName"):
        variables["redirectionName"] = extract_name_from_url(campaign.redirection_url)

    if used("type"):
        variables["type"] = campaign.type or NOT_AVAILABLE

    if used("budget"):
        variables["budget"] = _format_budget(campaign.budget)

    # Custom variables win over built-ins sharing a name
    for key, value in context.custom_variables.items():
        if used(key):
            variables[key] = value

    return variables


def generate_campaign_name(
    convention: NamingConventionTemplate,
    context: CampaignNameContext,
    today: date | None = None,
) -> str:
    variables = _resolve_variables(convention.template, context, convention, today or date.today())

    name = convention.template
    for key, value in variables.items():
        name = name.replace(f"{{{{{key}}}}}", value)

    return PLACEHOLDER_PATTERN.sub(NOT_AVAILABLE, name)


def extract_template_variables(template: str) -> list[str]:
    variables: list[str] = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        if name not in variables:
            variables.append(name)
    return variables


def validate_template(template: str) -> TemplateValidation:
    errors = []

    if not template or not template.strip():
        errors.append("Template cannot be empty")

    if template.count("{{") != template.count("}}"):
        errors.append("Template braces are unbalanced")

    if re.search(r"\{\{\s*\}\}", template):
        errors.append("Template contains empty variables")

    return TemplateValidation(
        valid=not errors,
        errors=errors,
        variables=extract_template_variables(template),
    )
