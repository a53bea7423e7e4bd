"""
Export endpoints.
Turn an already fetched stats result into a downloadable CSV or JSON file.
"""

from fastapi import APIRouter, status
from fastapi.responses import Response

from orgstats.api.models.responses import StatsResponse
from orgstats.core.logger import get_logger
from orgstats.utils.export import export_filename, to_csv, to_json

logger = get_logger(__name__)

router = APIRouter()


def _attachment(content: str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/stats/export/csv",
    status_code=status.HTTP_200_OK,
    summary="Export stats as CSV",
    response_class=Response,
    tags=["Export"],
)
async def export_csv(result: StatsResponse) -> Response:
    """Download the contributor list as CSV."""
    logger.info("CSV export requested", extra={"org": result.org, "rows": len(result.stats)})
    payload = result.model_dump(by_alias=True, exclude_none=True, mode="json")
    return _attachment(
        to_csv(payload), "text/csv; charset=utf-8", export_filename(result.org, "csv")
    )


@router.post(
    "/stats/export/json",
    status_code=status.HTTP_200_OK,
    summary="Export stats as JSON",
    response_class=Response,
    tags=["Export"],
)
async def export_json(result: StatsResponse) -> Response:
    """Download the full result object as pretty-printed JSON."""
    logger.info("JSON export requested", extra={"org": result.org, "rows": len(result.stats)})
    payload = result.model_dump(by_alias=True, exclude_none=True, mode="json")
    return _attachment(
        to_json(payload), "application/json", export_filename(result.org, "json")
    )
