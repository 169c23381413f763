from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from loguru import logger

from ..deps import get_invoice_parser
from ...core.exceptions import (
    InvoiceParserError,
    ParsingFailed,
    ProviderNotConfigured,
    UnknownProviderError,
    UpstreamProviderError,
)
from ...models.invoice import ParsedInvoice
from ...services.invoice_parser import InvoiceParserService

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("/parse", response_model=ParsedInvoice, response_model_by_alias=True)
async def parse_invoice(
    file: UploadFile = File(...),
    parser: str = Query("azure", description="azure, gemini or openai"),
    service: InvoiceParserService = Depends(get_invoice_parser),
):
    """
    Parse an invoice image into the canonical invoice shape.

    The upload must be an image (multipart field "file"). Every attempt,
    including failed ones, is written to the API response log.
    """
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        return await service.parse_invoice(parser, content, file_name=file.filename)
    except UnknownProviderError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ProviderNotConfigured as e:
        raise HTTPException(status_code=503, detail=e.message)
    except ParsingFailed as e:
        raise HTTPException(status_code=422, detail=e.message)
    except UpstreamProviderError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except InvoiceParserError as e:
        logger.error(f"Invoice parsing failed: {e.message}")
        raise HTTPException(status_code=500, detail=f"Error processing the invoice: {e.message}")
