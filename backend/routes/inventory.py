# backend/routes/inventory.py
from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.inventory import InventoryGroup, InventoryItem
from models.repair import RepairType, RepairTypeModel, WorkRegistration
from models.users import FeaturePermission
from schemas import inventory as schemas
from utils.audit import write_log
from utils.state_observer import publish_change
from utils.tokenJWT import permission_required, AuthContext

router = APIRouter(prefix="/inventory", tags=["Inventory"])

can_manage = permission_required(FeaturePermission.INVENTORY)


# ---- HELPERS ----
def stock_status(quantity: int, min_level: int) -> str:
    if quantity <= 0:
        return "out"
    if quantity <= min_level:
        return "low"
    return "ok"


def _item_or_404(db: Session, item_id: int) -> InventoryItem:
    item = db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item


def _group_or_404(db: Session, group_id: int) -> InventoryGroup:
    group = db.query(InventoryGroup).filter(InventoryGroup.id == group_id).first()
    if not group:
        raise HTTPException(status_code=404, detail="Inventory group not found")
    return group


# Price list entries created before stock was tracked get a row on first view
def _ensure_rows(db: Session) -> None:
    missing = db.query(RepairType).filter(~RepairType.inventory.has()).all()
    if missing:
        for rt in missing:
            rt.inventory = InventoryItem()
        db.commit()


# Group stock is the sum of its counted items
def _group_totals(items: List[InventoryItem]) -> Dict[int, int]:
    totals: Dict[int, int] = {}
    for item in items:
        if item.group_id is not None and not item.unlimited_stock:
            totals[item.group_id] = totals.get(item.group_id, 0) + (item.quantity or 0)
    return totals


def item_to_out(item: InventoryItem, totals: Dict[int, int]) -> schemas.InventoryItemResponse:
    if item.group is not None:
        quantity, min_level = totals.get(item.group_id, 0), item.group.min_stock_level
    else:
        quantity, min_level = item.quantity, item.min_stock_level
    return schemas.InventoryItemResponse(
        id=item.id,
        repair_type_id=item.repair_type_id,
        name=item.repair_type.name,
        price=item.repair_type.price,
        points=item.repair_type.points,
        quantity=item.quantity,
        min_stock_level=item.min_stock_level,
        purchase_price=item.purchase_price,
        group_id=item.group_id,
        group_name=item.group.name if item.group else None,
        unlimited_stock=bool(item.unlimited_stock),
        effective_quantity=quantity,
        effective_min_level=min_level,
        stock_status="ok" if item.unlimited_stock else stock_status(quantity, min_level),
    )


def group_to_out(group: InventoryGroup, totals: Dict[int, int]) -> schemas.InventoryGroupResponse:
    total = totals.get(group.id, 0)
    return schemas.InventoryGroupResponse(
        id=group.id,
        name=group.name,
        quantity=group.quantity,
        min_stock_level=group.min_stock_level,
        total_quantity=total,
        item_count=len(group.items),
        stock_status=stock_status(total, group.min_stock_level),
    )


def _all_items(db: Session) -> List[InventoryItem]:
    return (
        db.query(InventoryItem)
        .options(joinedload(InventoryItem.repair_type), joinedload(InventoryItem.group))
        .join(RepairType, InventoryItem.repair_type_id == RepairType.id)
        .order_by(RepairType.name)
        .all()
    )


def _single_item_out(db: Session, item: InventoryItem) -> schemas.InventoryItemResponse:
    return item_to_out(item, _group_totals(_all_items(db)))


# ---- ITEMS ----
@router.get("", response_model=schemas.InventoryOverview)
def inventory_overview(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    _ensure_rows(db)
    items = _all_items(db)
    groups = db.query(InventoryGroup).order_by(InventoryGroup.name).all()
    totals = _group_totals(items)

    # Grouped and unlimited items are reported through their group, or not at all
    counted = [i for i in items if i.group_id is None and not i.unlimited_stock]
    return {
        "items": [item_to_out(i, totals) for i in items],
        "groups": [group_to_out(g, totals) for g in groups],
        "low_stock_item_ids": [i.id for i in counted if i.quantity <= i.min_stock_level],
        "out_of_stock_item_ids": [i.id for i in counted if i.quantity <= 0],
        "low_stock_group_ids": [g.id for g in groups if totals.get(g.id, 0) <= g.min_stock_level],
        "out_of_stock_group_ids": [g.id for g in groups if totals.get(g.id, 0) <= 0],
    }


# New part: price list entry and stock row in one go
@router.post("", response_model=schemas.InventoryItemResponse, status_code=201)
def create_product(
    payload: schemas.InventoryProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    rt = RepairType(name=payload.name.strip(), price=payload.price, points=payload.points)
    rt.model_rows = [RepairTypeModel(model=m.value) for m in dict.fromkeys(payload.models)]
    rt.inventory = InventoryItem(
        quantity=payload.quantity,
        min_stock_level=payload.min_stock_level,
        purchase_price=payload.purchase_price,
    )
    db.add(rt)
    db.commit()
    db.refresh(rt)
    write_log(db, user_id=ctx.user_id, action="INVENTORY_CREATE", resource="inventory",
              request=request, meta={"repair_type_id": rt.id, "name": rt.name})
    publish_change(request, "repair_types")
    publish_change(request, "inventory")
    return _single_item_out(db, rt.inventory)


@router.put("/{item_id}", response_model=schemas.InventoryItemResponse)
def update_item(
    item_id: int,
    payload: schemas.InventoryItemUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    item = _item_or_404(db, item_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "quantity" in data:
        data["quantity"] = max(0, data["quantity"])
    for key, value in data.items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    write_log(db, user_id=ctx.user_id, action="INVENTORY_UPDATE", resource="inventory",
              request=request, meta={"id": item.id, **data})
    publish_change(request, "inventory")
    return _single_item_out(db, item)


# Book stock in or out; the count never goes below zero
@router.post("/{item_id}/adjust", response_model=schemas.InventoryItemResponse)
def adjust_stock(
    item_id: int,
    payload: schemas.StockAdjust,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    item = _item_or_404(db, item_id)
    new_quantity = item.quantity + payload.delta
    if payload.delta < 0 and new_quantity < 0:
        raise HTTPException(status_code=400, detail="Stock cannot go below zero")

    before = item.quantity
    item.quantity = new_quantity
    db.commit()
    db.refresh(item)
    write_log(db, user_id=ctx.user_id, action="STOCK_ADJUSTMENT", resource="inventory", request=request,
              meta={"id": item.id, "from": before, "to": new_quantity, "reason": payload.reason})
    publish_change(request, "inventory")
    return _single_item_out(db, item)


@router.put("/{item_id}/group", response_model=schemas.InventoryItemResponse)
def assign_group(
    item_id: int,
    payload: schemas.GroupAssign,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    item = _item_or_404(db, item_id)
    if payload.group_id is not None:
        _group_or_404(db, payload.group_id)
    item.group_id = payload.group_id
    db.commit()
    db.refresh(item)
    publish_change(request, "inventory")
    return _single_item_out(db, item)


# Removes the part from the price list as well, with its registrations
@router.delete("/{item_id}")
def delete_product(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    item = _item_or_404(db, item_id)
    rt = item.repair_type
    name = rt.name
    db.query(WorkRegistration).filter(WorkRegistration.repair_type_id == rt.id).delete(synchronize_session=False)
    db.delete(rt)
    db.commit()
    write_log(db, user_id=ctx.user_id, action="INVENTORY_DELETE", resource="inventory",
              request=request, meta={"id": item_id, "name": name})
    publish_change(request, "repair_types")
    publish_change(request, "inventory")
    return {"message": f"Product {name} deleted"}


# ---- GROUPS ----
@router.post("/groups", response_model=schemas.InventoryGroupResponse, status_code=201)
def create_group(
    payload: schemas.InventoryGroupCreate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    group = InventoryGroup(name=payload.name.strip(), min_stock_level=payload.min_stock_level)
    db.add(group)
    db.commit()
    db.refresh(group)
    publish_change(request, "inventory_groups")
    return group_to_out(group, {})


@router.put("/groups/{group_id}", response_model=schemas.InventoryGroupResponse)
def update_group(
    group_id: int,
    payload: schemas.InventoryGroupUpdate,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    group = _group_or_404(db, group_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "quantity" in data:
        data["quantity"] = max(0, data["quantity"])
    if "name" in data:
        data["name"] = data["name"].strip() or group.name
    for key, value in data.items():
        setattr(group, key, value)
    db.commit()
    db.refresh(group)
    publish_change(request, "inventory_groups")
    return group_to_out(group, _group_totals(group.items))


# Items in the group fall back to their own counts
@router.delete("/groups/{group_id}")
def delete_group(
    group_id: int,
    request: Request,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(can_manage),
):
    group = _group_or_404(db, group_id)
    name = group.name
    db.query(InventoryItem).filter(InventoryItem.group_id == group_id).update(
        {"group_id": None}, synchronize_session=False
    )
    db.delete(group)
    db.commit()
    publish_change(request, "inventory_groups")
    return {"message": f"Group {name} deleted"}
