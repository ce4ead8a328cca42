"""API route for rate quotes.

The same calculate_rate() used at finalize prices the live estimate.
"""

import logging

from fastapi import APIRouter

from shipform.api.schemas import RateQuoteResponse, RateRequest
from shipform.services.rate_calculator import RateCalculationInput, calculate_rate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rates", tags=["rates"])


@router.post("", response_model=RateQuoteResponse)
def quote_rate(data: RateRequest) -> RateQuoteResponse:
    """Price a shipment.

    Raises (via the app error handlers):
        404 if the service id is unknown.
        422 if the weight exceeds the service maximum.
    """
    quote = calculate_rate(RateCalculationInput(**data.model_dump()))
    logger.debug("Quoted %s at %.2f", data.service_id, quote.total_price)
    return RateQuoteResponse.model_validate(quote.to_dict())
