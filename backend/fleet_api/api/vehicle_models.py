import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.errors import conflict
from fleet_api.core.pagination import Page, PageParams, apply_search, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user
from fleet_api.models.vehicle import VehicleBrand, VehicleModel
from fleet_api.schemas.vehicle import ModelCreate, ModelResponse, ModelUpdate

router = APIRouter()


def _check_name(db: Session, name: str, exclude_id=None):
    query = db.query(VehicleModel.id).filter(VehicleModel.name == name)
    if exclude_id is not None:
        query = query.filter(VehicleModel.id != exclude_id)
    if query.first():
        raise conflict(f"Model '{name}' already exists", "duplicate-model", "Duplicate Model")


@router.get("", response_model=Page[ModelResponse], dependencies=[Depends(require_user)])
def get_models(
    brand_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get vehicle models."""
    query = db.query(VehicleModel)
    if brand_id:
        query = query.filter(VehicleModel.brand_id == brand_id)
    query = apply_search(query, params.search, [VehicleModel.name])
    items, total = paginate_query(query.order_by(VehicleModel.name), params)
    return paginated(items, total, params)


@router.get("/{model_id}", response_model=ModelResponse, dependencies=[Depends(require_user)])
def get_model(model_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific model."""
    return get_or_404(db, VehicleModel, model_id, "Vehicle model")


@router.post("", response_model=ModelResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_model(model: ModelCreate, db: Session = Depends(get_db)):
    """Create a model under an existing brand."""
    get_or_404(db, VehicleBrand, model.brand_id, "Vehicle brand")
    _check_name(db, model.name)
    db_model = VehicleModel(**model.model_dump())
    db.add(db_model)
    db.commit()
    db.refresh(db_model)
    return db_model


@router.patch("/{model_id}", response_model=ModelResponse, dependencies=[Depends(require_admin)])
def update_model(model_id: uuid.UUID, model: ModelUpdate, db: Session = Depends(get_db)):
    """Update a model."""
    db_model = get_or_404(db, VehicleModel, model_id, "Vehicle model")
    update_data = model.model_dump(exclude_unset=True)
    if update_data.get("brand_id") is not None:
        get_or_404(db, VehicleBrand, update_data["brand_id"], "Vehicle brand")
    if update_data.get("name") is not None:
        _check_name(db, update_data["name"], exclude_id=model_id)

    for key, value in update_data.items():
        setattr(db_model, key, value)

    db.commit()
    db.refresh(db_model)
    return db_model


@router.delete("/{model_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_model(model_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a model."""
    db_model = get_or_404(db, VehicleModel, model_id, "Vehicle model")
    db.delete(db_model)
    db.commit()
    return Response(status_code=204)
