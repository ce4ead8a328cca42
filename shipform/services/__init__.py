"""Service layer for shipform.

Pure rule functions (classification, stage rules, pricing, validation)
plus the database-backed shipment and account services.
"""

from shipform.services.account_service import AccountService
from shipform.services.country_classifier import ShipmentType, classify, is_gulf
from shipform.services.rate_calculator import (
    RateBreakdown,
    RateCalculationInput,
    RateQuote,
    calculate_rate,
)
from shipform.services.shipment_service import ShipmentService
from shipform.services.shipment_validator import (
    ValidationResult,
    validate_complete,
    validate_draft,
)
from shipform.services.stage_rules import (
    CardRuleSet,
    FieldRule,
    Stage,
    StageState,
    resolve_pipeline,
    resolve_stage,
)

__all__ = [
    "ShipmentType",
    "classify",
    "is_gulf",
    "Stage",
    "FieldRule",
    "CardRuleSet",
    "StageState",
    "resolve_stage",
    "resolve_pipeline",
    "RateCalculationInput",
    "RateBreakdown",
    "RateQuote",
    "calculate_rate",
    "ValidationResult",
    "validate_draft",
    "validate_complete",
    "ShipmentService",
    "AccountService",
]
