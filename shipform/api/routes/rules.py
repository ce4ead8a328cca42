"""API routes for countries, stage rules and validation.

These endpoints are stateless: they wrap the pure rule functions and
never touch the database. All endpoints use the /api/v1 prefix.
"""

from fastapi import APIRouter

from shipform.api.schemas import (
    CardRuleSetResponse,
    ClassifyRequest,
    ClassifyResponse,
    CountryResponse,
    FormDataRequest,
    PipelineRequest,
    PipelineResponse,
    StageStateResponse,
    ValidationResponse,
)
from shipform.services.country_classifier import classify, is_gulf, list_countries
from shipform.services.shipment_validator import validate_complete, validate_draft
from shipform.services.stage_rules import resolve_pipeline, resolve_stage

router = APIRouter(tags=["rules"])


@router.get("/countries", response_model=list[CountryResponse])
def get_countries() -> list[CountryResponse]:
    """List the static country table."""
    return [CountryResponse.model_validate(c) for c in list_countries()]


@router.post("/rules/classify", response_model=ClassifyResponse)
def classify_countries(data: ClassifyRequest) -> ClassifyResponse:
    """Derive the shipment type for a sender/receiver country pair."""
    return ClassifyResponse(
        shipment_type=classify(data.sender_country, data.receiver_country).value,
        sender_is_gulf=is_gulf(data.sender_country),
        receiver_is_gulf=is_gulf(data.receiver_country),
    )


@router.post("/rules/pipeline", response_model=PipelineResponse)
def get_pipeline(data: PipelineRequest) -> PipelineResponse:
    """Resolve all stages in order.

    When changed_field is given only the stages from the first one that
    depends on it are returned.
    """
    states = resolve_pipeline(data.form_data.model_dump(), data.changed_field)
    return PipelineResponse(
        stages=[StageStateResponse.model_validate(s.to_dict()) for s in states]
    )


@router.post("/rules/{stage}", response_model=CardRuleSetResponse)
def get_stage_rules(stage: str, data: FormDataRequest) -> CardRuleSetResponse:
    """Resolve the field rules for one stage.

    Args:
        stage: One of sender, receiver, package, service, options.
        data: Current form data.

    Returns:
        The stage's CardRuleSet. Unknown stages yield 404.
    """
    rules = resolve_stage(stage, data.form_data.model_dump())
    return CardRuleSetResponse.model_validate(rules.to_dict())


@router.post("/validate/draft", response_model=ValidationResponse)
def check_draft(data: FormDataRequest) -> ValidationResponse:
    """Run draft-mode validation."""
    return ValidationResponse(**validate_draft(data.form_data.model_dump()).to_dict())


@router.post("/validate/complete", response_model=ValidationResponse)
def check_complete(data: FormDataRequest) -> ValidationResponse:
    """Run complete-mode validation (the finalize rule set)."""
    return ValidationResponse(**validate_complete(data.form_data.model_dump()).to_dict())
