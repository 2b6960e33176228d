import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.pagination import Page, PageParams, apply_search, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user
from fleet_api.models.enums import ControlItemStatus
from fleet_api.models.quarterly_control import QuarterlyControl, QuarterlyControlItem
from fleet_api.schemas.quarterly_control import ItemCreate, ItemResponse, ItemUpdate

router = APIRouter()


@router.get("", response_model=Page[ItemResponse], dependencies=[Depends(require_user)])
def get_items(
    quarterly_control_id: Optional[uuid.UUID] = None,
    status: Optional[ControlItemStatus] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get checklist items."""
    query = db.query(QuarterlyControlItem)
    if quarterly_control_id:
        query = query.filter(QuarterlyControlItem.quarterly_control_id == quarterly_control_id)
    if status:
        query = query.filter(QuarterlyControlItem.status == status.value)
    query = apply_search(query, params.search, [QuarterlyControlItem.title, QuarterlyControlItem.category])
    items, total = paginate_query(query.order_by(QuarterlyControlItem.category, QuarterlyControlItem.title), params)
    return paginated(items, total, params)


@router.get("/{item_id}", response_model=ItemResponse, dependencies=[Depends(require_user)])
def get_item(item_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific checklist item."""
    return get_or_404(db, QuarterlyControlItem, item_id, "Quarterly control item")


@router.post("", response_model=ItemResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_item(item: ItemCreate, db: Session = Depends(get_db)):
    """Add an item to a control."""
    get_or_404(db, QuarterlyControl, item.quarterly_control_id, "Quarterly control")
    db_item = QuarterlyControlItem(
        quarterly_control_id=item.quarterly_control_id,
        category=item.category,
        title=item.title,
        status=item.status.value,
        observations=item.observations,
    )
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


@router.patch("/{item_id}", response_model=ItemResponse, dependencies=[Depends(require_admin)])
def update_item(item_id: uuid.UUID, item: ItemUpdate, db: Session = Depends(get_db)):
    """Update a checklist item."""
    db_item = get_or_404(db, QuarterlyControlItem, item_id, "Quarterly control item")
    update_data = item.model_dump(exclude_unset=True)
    if update_data.get("status") is not None:
        update_data["status"] = update_data["status"].value

    for key, value in update_data.items():
        setattr(db_item, key, value)

    db.commit()
    db.refresh(db_item)
    return db_item


@router.delete("/{item_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_item(item_id: uuid.UUID, db: Session = Depends(get_db)):
    """Remove a checklist item."""
    db_item = get_or_404(db, QuarterlyControlItem, item_id, "Quarterly control item")
    db.delete(db_item)
    db.commit()
    return Response(status_code=204)
