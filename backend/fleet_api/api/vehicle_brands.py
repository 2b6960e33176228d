import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.errors import conflict
from fleet_api.core.pagination import Page, PageParams, apply_search, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user
from fleet_api.models.vehicle import VehicleBrand
from fleet_api.schemas.vehicle import BrandCreate, BrandResponse, BrandUpdate

router = APIRouter()


def _check_name(db: Session, name: str, exclude_id=None):
    query = db.query(VehicleBrand.id).filter(VehicleBrand.name == name)
    if exclude_id is not None:
        query = query.filter(VehicleBrand.id != exclude_id)
    if query.first():
        raise conflict(f"Brand '{name}' already exists", "duplicate-brand", "Duplicate Brand")


@router.get("", response_model=Page[BrandResponse], dependencies=[Depends(require_user)])
def get_brands(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    """Get vehicle brands."""
    query = apply_search(db.query(VehicleBrand), params.search, [VehicleBrand.name])
    items, total = paginate_query(query.order_by(VehicleBrand.name), params)
    return paginated(items, total, params)


@router.get("/{brand_id}", response_model=BrandResponse, dependencies=[Depends(require_user)])
def get_brand(brand_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific brand."""
    return get_or_404(db, VehicleBrand, brand_id, "Vehicle brand")


@router.post("", response_model=BrandResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_brand(brand: BrandCreate, db: Session = Depends(get_db)):
    """Create a brand."""
    _check_name(db, brand.name)
    db_brand = VehicleBrand(name=brand.name)
    db.add(db_brand)
    db.commit()
    db.refresh(db_brand)
    return db_brand


@router.patch("/{brand_id}", response_model=BrandResponse, dependencies=[Depends(require_admin)])
def update_brand(brand_id: uuid.UUID, brand: BrandUpdate, db: Session = Depends(get_db)):
    """Rename a brand."""
    db_brand = get_or_404(db, VehicleBrand, brand_id, "Vehicle brand")
    if brand.name is not None:
        _check_name(db, brand.name, exclude_id=brand_id)
        db_brand.name = brand.name
    db.commit()
    db.refresh(db_brand)
    return db_brand


@router.delete("/{brand_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_brand(brand_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a brand and its models."""
    db_brand = get_or_404(db, VehicleBrand, brand_id, "Vehicle brand")
    db.delete(db_brand)
    db.commit()
    return Response(status_code=204)
