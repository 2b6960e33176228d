import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fleet_api.core.config import settings
from fleet_api.core.database import get_db
from fleet_api.core.pagination import Page, PageParams, page_params, paginate_list, paginated
from fleet_api.core.permissions import require_admin
from fleet_api.schemas.risk import (
    OverdueMaintenanceRow, OverdueQuarterlyControl, OverdueRequirementGroup, QuarterlyControlWithErrors,
    RiskIndicator, VehicleWithoutRecentKilometers, VehicleWithoutResponsible,
)
from fleet_api.services import risks

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/summary", response_model=List[RiskIndicator])
def get_summary(
    tolerance_days: int = Query(0, ge=0),
    days_without_update: int = Query(settings.RISK_DEFAULT_DAYS_WITHOUT_KILOMETERS, ge=0),
    db: Session = Depends(get_db),
):
    """Counts and severity of every risk indicator."""
    return risks.summary(db, tolerance_days=tolerance_days, days_without_update=days_without_update)


@router.get("/vehicles-without-responsible", response_model=Page[VehicleWithoutResponsible])
def get_vehicles_without_responsible(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    """Vehicles nobody is responsible for today."""
    rows = risks.vehicles_without_responsible(db, search=params.search)
    items, total = paginate_list(rows, params)
    return paginated(items, total, params)


@router.get("/overdue-maintenance-vehicles", response_model=Page[OverdueMaintenanceRow])
def get_overdue_maintenance_vehicles(
    tolerance_days: int = Query(0, ge=0),
    maintenance_id: Optional[uuid.UUID] = None,
    model_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """One row per overdue (vehicle, requirement) pair."""
    rows = risks.overdue_maintenance_rows(
        db, tolerance_days=tolerance_days, maintenance_id=maintenance_id, model_id=model_id, search=params.search
    )
    items, total = paginate_list(rows, params)
    return paginated(items, total, params)


@router.get("/overdue-maintenance", response_model=Page[OverdueRequirementGroup])
def get_overdue_maintenance(
    tolerance_days: int = Query(0, ge=0),
    maintenance_id: Optional[uuid.UUID] = None,
    model_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Overdue maintenance grouped by requirement."""
    groups = risks.overdue_maintenance_groups(
        db, tolerance_days=tolerance_days, maintenance_id=maintenance_id, model_id=model_id, search=params.search
    )
    items, total = paginate_list(groups, params)
    return paginated(items, total, params)


@router.get("/overdue-quarterly-controls", response_model=Page[OverdueQuarterlyControl])
def get_overdue_quarterly_controls(
    tolerance_days: int = Query(0, ge=0),
    year: Optional[int] = None,
    quarter: Optional[int] = Query(None, ge=1, le=4),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Controls past their delivery date that are unfilled or incomplete."""
    rows = risks.overdue_quarterly_controls(
        db, tolerance_days=tolerance_days, year=year, quarter=quarter, search=params.search
    )
    items, total = paginate_list(rows, params)
    return paginated(items, total, params)


@router.get("/quarterly-controls-with-errors", response_model=Page[QuarterlyControlWithErrors])
def get_quarterly_controls_with_errors(
    min_rejected_items: int = Query(1, ge=1),
    year: Optional[int] = None,
    quarter: Optional[int] = Query(None, ge=1, le=4),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Controls with rejected checklist items."""
    rows = risks.quarterly_controls_with_errors(
        db, min_rejected_items=min_rejected_items, year=year, quarter=quarter, search=params.search
    )
    items, total = paginate_list(rows, params)
    return paginated(items, total, params)


@router.get("/vehicles-without-recent-kilometers", response_model=Page[VehicleWithoutRecentKilometers])
def get_vehicles_without_recent_kilometers(
    days_without_update: int = Query(settings.RISK_DEFAULT_DAYS_WITHOUT_KILOMETERS, ge=0),
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Vehicles without an odometer reading in the last N days."""
    rows = risks.vehicles_without_recent_kilometers(db, days_without_update=days_without_update, search=params.search)
    items, total = paginate_list(rows, params)
    return paginated(items, total, params)
