"""Quarterly controls: checklist creation, the driver fill workflow and per-quarter generation."""
import logging
import uuid
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from fleet_api.core.database import get_or_404
from fleet_api.core.errors import bad_request, conflict, not_found
from fleet_api.models.enums import ControlItemStatus
from fleet_api.models.quarterly_control import QuarterlyControl, QuarterlyControlItem
from fleet_api.models.user import User
from fleet_api.models.vehicle import Vehicle
from fleet_api.schemas.quarterly_control import (
    ControlCreate, ControlFill, ControlUpdate, ControlWithItemsCreate, ItemInput,
)
from fleet_api.services import kilometers

logger = logging.getLogger(__name__)

DEFAULT_CHECKLIST = {
    "Motor y Fluidos": [
        "Nivel de aceite",
        "Nivel de refrigerante",
        "Sin pérdidas de fluidos",
        "Dirección y freno de mano operativos",
    ],
    "Luces y Señalización": [
        "Luces de posición",
        "Luces de freno",
        "Luces de giro / balizas",
        "Luces de retroceso",
        "Bocina",
    ],
    "Neumáticos y Carrocería": [
        "Estado de cubiertas",
        "Estado de espejos",
        "Estado del parabrisas",
        "Tapa de combustible",
        "Rueda de auxilio + accesorios",
    ],
    "Seguridad y Emergencia": [
        "Cinturones de seguridad",
        "Apoyacabezas",
        "Matafuego vigente",
        "Chaleco reflectivo",
        "Balizas y botiquín",
    ],
}


def default_items() -> List[ItemInput]:
    return [
        ItemInput(category=category, title=title)
        for category, titles in DEFAULT_CHECKLIST.items()
        for title in titles
    ]


def quarter_of(day: date) -> int:
    return (day.month - 1) // 3 + 1


def quarter_end(year: int, quarter: int) -> date:
    """Last day of the quarter."""
    if quarter == 4:
        return date(year, 12, 31)
    return date(year, quarter * 3 + 1, 1) - timedelta(days=1)


def _duplicate(vehicle_id, year: int, quarter: int):
    return conflict(
        f"Vehicle {vehicle_id} already has a control for {year} Q{quarter}",
        "duplicate-quarterly-control",
        "Duplicate Quarterly Control",
    )


def _exists(db: Session, vehicle_id, year: int, quarter: int, exclude_id=None) -> bool:
    query = db.query(QuarterlyControl.id).filter(
        QuarterlyControl.vehicle_id == vehicle_id,
        QuarterlyControl.year == year,
        QuarterlyControl.quarter == quarter,
    )
    if exclude_id is not None:
        query = query.filter(QuarterlyControl.id != exclude_id)
    return query.first() is not None


def create_control(db: Session, data: ControlCreate) -> QuarterlyControl:
    get_or_404(db, Vehicle, data.vehicle_id, "Vehicle")
    if data.filled_by is not None:
        get_or_404(db, User, data.filled_by, "User")
    if _exists(db, data.vehicle_id, data.year, data.quarter):
        raise _duplicate(data.vehicle_id, data.year, data.quarter)

    control = QuarterlyControl(**data.model_dump())
    db.add(control)
    db.commit()
    db.refresh(control)
    return control


def update_control(db: Session, control: QuarterlyControl, data: ControlUpdate) -> QuarterlyControl:
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("vehicle_id") is not None:
        get_or_404(db, Vehicle, update_data["vehicle_id"], "Vehicle")
    if update_data.get("filled_by") is not None:
        get_or_404(db, User, update_data["filled_by"], "User")

    vehicle_id = update_data.get("vehicle_id", control.vehicle_id)
    year = update_data.get("year", control.year)
    quarter = update_data.get("quarter", control.quarter)
    if _exists(db, vehicle_id, year, quarter, exclude_id=control.id):
        raise _duplicate(vehicle_id, year, quarter)

    for key, value in update_data.items():
        setattr(control, key, value)
    db.commit()
    db.refresh(control)
    return control


def create_with_items(db: Session, data: ControlWithItemsCreate) -> QuarterlyControl:
    """Create a control and its checklist in one transaction."""
    get_or_404(db, Vehicle, data.vehicle_id, "Vehicle")
    if _exists(db, data.vehicle_id, data.year, data.quarter):
        raise _duplicate(data.vehicle_id, data.year, data.quarter)

    items = data.items if data.items is not None else default_items()
    control = QuarterlyControl(
        vehicle_id=data.vehicle_id,
        year=data.year,
        quarter=data.quarter,
        intended_delivery_date=data.intended_delivery_date,
    )
    control.items = [
        QuarterlyControlItem(
            category=item.category,
            title=item.title,
            status=item.status.value,
            observations=item.observations,
        )
        for item in items
    ]
    db.add(control)
    db.commit()
    db.refresh(control)
    logger.info(f"Created quarterly control {control.id} with {len(items)} items")
    return control


def patch_with_items(
    db: Session, control: QuarterlyControl, data: ControlFill, user_id: uuid.UUID, now: Optional[datetime] = None
) -> QuarterlyControl:
    """
    Fill a control: log the odometer, stamp who filled it and when, update items.

    Everything is committed once at the end; any failure leaves the control untouched.
    """
    now = now or datetime.now()

    updates = []
    for item_update in data.items:
        item = db.get(QuarterlyControlItem, item_update.id)
        if item is None:
            raise not_found("Quarterly control item", item_update.id)
        if item.quarterly_control_id != control.id:
            raise bad_request(
                f"Item {item_update.id} does not belong to quarterly control {control.id}",
                "item-control-mismatch",
                "Item Does Not Belong To Control",
            )
        updates.append((item, item_update))

    reading = kilometers.add_reading(db, control.vehicle_id, user_id, now, data.kilometers)

    control.kilometers_log_id = reading.id
    control.filled_by = user_id
    control.filled_at = now.date()
    for item, item_update in updates:
        item.status = item_update.status.value
        item.observations = item_update.observations

    db.commit()
    db.refresh(control)
    logger.info(f"Quarterly control {control.id} filled by {user_id} at {data.kilometers} km")
    return control


def generate(
    db: Session, year: Optional[int] = None, quarter: Optional[int] = None, today: Optional[date] = None
) -> dict:
    """
    Create the default checklist for every vehicle for one quarter.

    Vehicles that already have a control for the period are skipped.
    """
    today = today or date.today()
    year = year or today.year
    quarter = quarter or quarter_of(today)
    delivery = quarter_end(year, quarter)

    existing = {
        row.vehicle_id
        for row in db.query(QuarterlyControl.vehicle_id).filter(
            QuarterlyControl.year == year, QuarterlyControl.quarter == quarter
        )
    }

    created = skipped = 0
    for vehicle in db.query(Vehicle).order_by(Vehicle.license_plate).all():
        if vehicle.id in existing:
            skipped += 1
            continue
        control = QuarterlyControl(
            vehicle_id=vehicle.id, year=year, quarter=quarter, intended_delivery_date=delivery
        )
        control.items = [
            QuarterlyControlItem(category=item.category, title=item.title, status=ControlItemStatus.PENDING.value)
            for item in default_items()
        ]
        db.add(control)
        created += 1

    db.commit()
    logger.info(f"Generated {created} quarterly controls for {year} Q{quarter} ({skipped} skipped)")
    return {
        "year": year,
        "quarter": quarter,
        "intended_delivery_date": delivery,
        "created": created,
        "skipped": skipped,
    }
