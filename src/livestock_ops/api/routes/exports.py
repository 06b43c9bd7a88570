"""CSV and PDF download endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query
from fastapi.responses import Response

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.routes.payroll import pdf_response
from livestock_ops.api.schemas import ErrorResponse
from livestock_ops.services.export_service import ExportResult, ExportService

router = APIRouter(tags=["exports"])


def csv_response(result: ExportResult) -> Response:
    return Response(
        content=result.content,
        media_type=result.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.get(
    "/farms/{farm_id}/exports/attendance",
    response_class=Response,
    responses={403: {"model": ErrorResponse}},
)
async def export_attendance(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    start: Annotated[date, Query()],
    end: Annotated[date, Query()],
) -> Response:
    result = await ExportService(db).export_attendance_csv(user, farm_id, start, end)
    return csv_response(result)


@router.get(
    "/farms/{farm_id}/exports/payroll/{period_id}",
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
async def export_payroll(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    period_id: Annotated[UUID, Path()],
) -> Response:
    result = await ExportService(db).export_payroll_csv(user, period_id)
    return csv_response(result)


@router.get(
    "/farms/{farm_id}/exports/reports/{report_type}",
    response_class=Response,
    responses={400: {"model": ErrorResponse}},
)
async def export_report(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    report_type: Annotated[str, Path()],
    start: Annotated[date, Query()],
    end: Annotated[date, Query()],
) -> Response:
    """profit-loss, inventory, sales, feed or eggs report as CSV."""
    result = await ExportService(db).generate_export_data(user, report_type, farm_id, start, end)
    return csv_response(result)


@router.get(
    "/sales/{sale_id}/receipt",
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
async def sale_receipt(
    db: DbSession,
    user: CurrentUser,
    sale_id: Annotated[UUID, Path()],
) -> Response:
    content = await ExportService(db).sale_receipt_pdf(user, sale_id)
    return pdf_response(content, f"sales-receipt-{str(sale_id)[:8]}.pdf")
