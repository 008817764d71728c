"""
Bulk Launch Matrix API — matrix preview, copy parameters, campaign naming

Endpoints:
  Matrix:
    POST /matrix/generate                     — Generated ad sets + ads
    POST /matrix/stats                        — Closed-form ad set / ad counts
    POST /matrix/preview                      — Dry run: ad sets, stats, soft-limit flag

  Dynamic parameters:
    POST /dynamic-params/replace              — Substitute {{param}} placeholders
    POST /dynamic-params/preview              — Substitute with the example values

  Naming:
    POST /naming/generate                     — Campaign name from a template
    POST /naming/validate                     — Template checks + referenced variables
    GET  /naming/conventions                  — Bundled naming-convention presets
    POST /naming/conventions/{name}/generate  — Campaign name from a preset

  Campaign:
    POST /campaign/validate                   — Pre-generation validation
    GET  /campaign/defaults/{campaign_type}   — Objective + redirection defaults
"""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from campaign_helpers import (
    get_campaign_defaults,
    suggest_campaign_improvements,
    validate_launch_inputs,
)
from campaign_naming import generate_campaign_name, validate_template
from config import LauncherConfig, load_naming_conventions
from dynamic_params import (
    extract_dynamic_params,
    get_preview_text,
    has_dynamic_params,
    replace_dynamic_params,
)
from matrix_engine import build_matrix_preview, generate_ad_sets_from_matrix, stats_for
from models import (
    CampaignDefaults,
    CampaignNameContext,
    CampaignNameRequest,
    CampaignNameResponse,
    CampaignType,
    CampaignValidation,
    DynamicParamsRequest,
    DynamicParamsResponse,
    GeneratedAdSet,
    LaunchValidationRequest,
    MatrixPreview,
    MatrixRequest,
    MatrixStats,
    NamingConventionPreset,
    TemplateRequest,
    TemplateValidation,
)

CONFIG = LauncherConfig.from_env()

logging.basicConfig(level=CONFIG.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bulk Launch Matrix API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Helpers ---

def _get_conventions() -> dict:
    try:
        return load_naming_conventions(CONFIG.naming_conventions_path)
    except FileNotFoundError:
        logger.warning(f"Naming conventions file not found: {CONFIG.naming_conventions_path}")
        return {}
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))


def _params_response(text: str) -> DynamicParamsResponse:
    return DynamicParamsResponse(
        text=text,
        has_params=has_dynamic_params(text),
        params=extract_dynamic_params(text),
    )


@app.get("/health")
def health():
    return {"status": "ok", "version": app.version, "soft_limit": CONFIG.soft_limit}


# --- Matrix ---

@app.post("/matrix/generate", response_model=list[GeneratedAdSet])
def generate_matrix(request: MatrixRequest):
    return generate_ad_sets_from_matrix(
        request.campaign, request.audiences, request.creatives, request.dimensions
    )


@app.post("/matrix/stats", response_model=MatrixStats)
def matrix_stats(request: MatrixRequest):
    return stats_for(request.audiences, request.creatives, request.dimensions)


@app.post("/matrix/preview", response_model=MatrixPreview)
def matrix_preview(request: MatrixRequest):
    return build_matrix_preview(
        request.campaign,
        request.audiences,
        request.creatives,
        request.dimensions,
        soft_limit=CONFIG.soft_limit,
    )


# --- Dynamic parameters ---

@app.post("/dynamic-params/replace", response_model=DynamicParamsResponse)
def replace_params(request: DynamicParamsRequest):
    return _params_response(replace_dynamic_params(request.text, request.params))


@app.post("/dynamic-params/preview", response_model=DynamicParamsResponse)
def preview_params(request: DynamicParamsRequest):
    return _params_response(get_preview_text(request.text))


# --- Naming ---

@app.post("/naming/generate", response_model=CampaignNameResponse)
def generate_name(request: CampaignNameRequest):
    return CampaignNameResponse(name=generate_campaign_name(request.convention, request.context))


@app.post("/naming/validate", response_model=TemplateValidation)
def validate_naming_template(request: TemplateRequest):
    return validate_template(request.template)


@app.get("/naming/conventions", response_model=list[NamingConventionPreset])
def list_conventions():
    return [
        NamingConventionPreset(name=name, convention=convention)
        for name, convention in _get_conventions().items()
    ]


@app.post("/naming/conventions/{name}/generate", response_model=CampaignNameResponse)
def generate_name_from_preset(name: str, context: CampaignNameContext):
    convention = _get_conventions().get(name)
    if convention is None:
        raise HTTPException(status_code=404, detail=f"Naming convention not found: {name}")
    return CampaignNameResponse(name=generate_campaign_name(convention, context))


# --- Campaign ---

@app.post("/campaign/validate", response_model=CampaignValidation)
def validate_campaign(request: LaunchValidationRequest):
    result = validate_launch_inputs(request.campaign, request.audiences, request.creatives)
    suggestions = suggest_campaign_improvements(request.campaign)
    if suggestions:
        result = result.model_copy(update={"warnings": result.warnings + suggestions})
    return result


@app.get("/campaign/defaults/{campaign_type}", response_model=CampaignDefaults)
def campaign_defaults(campaign_type: CampaignType):
    return get_campaign_defaults(campaign_type)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=CONFIG.port, reload=True)
