from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fintrack.api.deps import get_db, verify_cron_secret
from fintrack.schemas.snapshots import CronCloseResponse, CronFailure
from fintrack.services.lifecycle import close_previous_month_for_all_users


router = APIRouter(prefix="/cron", tags=["cron"])


@router.post(
    "/monthly-snapshot",
    response_model=CronCloseResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def run_monthly_snapshot_cron(db: Session = Depends(get_db)) -> CronCloseResponse:
    result = close_previous_month_for_all_users(db, date.today())
    return CronCloseResponse(
        year=result.year,
        month=result.month,
        total_users=result.total_users,
        created=result.created,
        updated=result.updated,
        skipped=result.skipped,
        failed=result.failed,
        failures=[CronFailure(**row) for row in result.failures],
    )
