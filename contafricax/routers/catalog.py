from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.orm_models import Category, Tag, Transaction, TransactionType, User, transaction_tags
from contafricax.schemas.catalog import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    TagCreate,
    TagOut,
    TagUpdate,
    check_report_group,
)
from contafricax.utils.auth import get_current_user, require_permission

router = APIRouter(tags=["catalog"])

_write = require_permission("manage_transactions")


def _commit_or_conflict(db: Session, detail: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from e


def _category_name_taken(db: Session, name: str, ttype: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Category.id).filter(
        func.lower(Category.name) == name.lower(), Category.type == ttype
    )
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    return q.first() is not None


# --- categories --------------------------------------------------------------


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(
    type: Optional[TransactionType] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    q = db.query(Category)
    if type:
        q = q.filter(Category.type == type.value)
    return q.order_by(Category.type, Category.name).all()


@router.post("/categories", status_code=status.HTTP_201_CREATED, response_model=CategoryOut)
def create_category(
    body: CategoryCreate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    if _category_name_taken(db, body.name, body.type.value):
        raise HTTPException(status_code=409, detail="Category already exists")
    c = Category(
        name=body.name,
        type=body.type.value,
        color=body.color,
        icon=body.icon,
        report_group=body.report_group.value,
    )
    db.add(c)
    _commit_or_conflict(db, "Category already exists")
    db.refresh(c)
    return c


@router.put("/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    body: CategoryUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    c = db.get(Category, category_id)
    if c is None:
        raise HTTPException(status_code=404, detail="Category not found")
    data = body.model_dump(exclude_unset=True)
    if data.get("name") and _category_name_taken(db, data["name"], c.type, exclude_id=c.id):
        raise HTTPException(status_code=409, detail="Category already exists")
    if data.get("report_group") is not None:
        try:
            check_report_group(TransactionType(c.type), data["report_group"])
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        data["report_group"] = data["report_group"].value
    for k, v in data.items():
        if k in ("name", "report_group") and v is None:
            continue
        setattr(c, k, v)
    _commit_or_conflict(db, "Category already exists")
    db.refresh(c)
    return c


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    c = db.get(Category, category_id)
    if c is None:
        raise HTTPException(status_code=404, detail="Category not found")
    used = db.query(func.count(Transaction.id)).filter(Transaction.category_id == c.id).scalar()
    if used:
        raise HTTPException(
            status_code=409,
            detail=f"Category is used by {used} transaction(s)",
        )
    db.delete(c)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- tags --------------------------------------------------------------------


def _tag_name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Tag.id).filter(func.lower(Tag.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(Tag.id != exclude_id)
    return q.first() is not None


@router.get("/tags", response_model=list[TagOut])
def list_tags(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return db.query(Tag).order_by(Tag.name).all()


@router.post("/tags", status_code=status.HTTP_201_CREATED, response_model=TagOut)
def create_tag(body: TagCreate, db: Session = Depends(get_db), _: User = Depends(_write)):
    if _tag_name_taken(db, body.name):
        raise HTTPException(status_code=409, detail="Tag already exists")
    t = Tag(name=body.name, color=body.color)
    db.add(t)
    _commit_or_conflict(db, "Tag already exists")
    db.refresh(t)
    return t


@router.put("/tags/{tag_id}", response_model=TagOut)
def update_tag(
    tag_id: int,
    body: TagUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(_write),
):
    t = db.get(Tag, tag_id)
    if t is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    data = body.model_dump(exclude_unset=True)
    if data.get("name"):
        if _tag_name_taken(db, data["name"], exclude_id=t.id):
            raise HTTPException(status_code=409, detail="Tag already exists")
        t.name = data["name"]
    if "color" in data:
        t.color = data["color"]
    _commit_or_conflict(db, "Tag already exists")
    db.refresh(t)
    return t


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(tag_id: int, db: Session = Depends(get_db), _: User = Depends(_write)):
    t = db.get(Tag, tag_id)
    if t is None:
        raise HTTPException(status_code=404, detail="Tag not found")
    # detach explicitly; sqlite only cascades link rows when foreign keys are enforced
    db.execute(transaction_tags.delete().where(transaction_tags.c.tag_id == t.id))
    db.delete(t)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
