from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_restaurant
from ..models import Restaurant
from ..schemas import RestaurantCreate, RestaurantUpdate, RestaurantOut, SuccessResponse

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


@router.get("", response_model=List[RestaurantOut])
def list_restaurants(db: Session = Depends(get_db)):
    return list(db.scalars(select(Restaurant).order_by(Restaurant.name)))


@router.get("/{restaurant_id}", response_model=RestaurantOut)
def get_restaurant(restaurant_id: str, db: Session = Depends(get_db)):
    return require_restaurant(db, restaurant_id)


@router.post("", response_model=RestaurantOut, status_code=201)
def create_restaurant(
    data: RestaurantCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    """Create a restaurant. A known tabelog_url returns the existing row instead."""
    if data.tabelog_url:
        existing = db.scalar(select(Restaurant).where(Restaurant.tabelog_url == data.tabelog_url))
        if existing:
            response.status_code = 200
            return existing

    restaurant = Restaurant(**data.model_dump())
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant


@router.put("/{restaurant_id}", response_model=RestaurantOut)
def update_restaurant(
    restaurant_id: str,
    data: RestaurantUpdate,
    db: Session = Depends(get_db),
):
    restaurant = require_restaurant(db, restaurant_id)
    if data.tabelog_url and data.tabelog_url != restaurant.tabelog_url:
        clash = db.scalar(select(Restaurant).where(Restaurant.tabelog_url == data.tabelog_url))
        if clash:
            raise HTTPException(status_code=409, detail="Another restaurant already uses this tabelog_url")

    for key, value in data.model_dump().items():
        setattr(restaurant, key, value)
    db.commit()
    db.refresh(restaurant)
    return restaurant


@router.patch("/{restaurant_id}/favorite", response_model=RestaurantOut)
def toggle_favorite(restaurant_id: str, db: Session = Depends(get_db)):
    restaurant = require_restaurant(db, restaurant_id)
    restaurant.is_favorite = not restaurant.is_favorite
    db.commit()
    db.refresh(restaurant)
    return restaurant


@router.delete("/{restaurant_id}", response_model=SuccessResponse)
def delete_restaurant(restaurant_id: str, db: Session = Depends(get_db)):
    """Delete a restaurant and, by cascade, its trip rows and availability results."""
    restaurant = require_restaurant(db, restaurant_id)
    db.delete(restaurant)
    db.commit()
    return SuccessResponse()
