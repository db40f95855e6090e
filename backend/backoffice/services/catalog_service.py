# Overview: Organization master data: branches, products, suppliers, customers.

from __future__ import annotations

from sqlalchemy import or_

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import Branch, Customer, Product, Supplier
from ..money import to_money
from . import audit_service
from .tenant_service import get_scoped

ENTITY_BRANCH = "BRANCH"
ENTITY_PRODUCT = "PRODUCT"
ENTITY_SUPPLIER = "SUPPLIER"
ENTITY_CUSTOMER = "CUSTOMER"

MAX_LOW_STOCK_THRESHOLD = 9999


def clean_text(value, field: str, *, min_length: int = 1, max_length: int = 255, required: bool = True):
    text = str(value).strip() if value is not None else ""
    if not text:
        if required:
            raise ValidationError(f"{field} is required", details={field: "required"})
        return None
    if len(text) < min_length or len(text) > max_length:
        raise ValidationError(
            f"{field} must be {min_length}-{max_length} characters",
            details={field: f"must be {min_length}-{max_length} characters"},
        )
    return text


def _threshold(value) -> int:
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        raise ValidationError("low_stock_threshold must be an integer", details={"low_stock_threshold": "integer"})
    if threshold < 0 or threshold > MAX_LOW_STOCK_THRESHOLD:
        raise ValidationError(
            f"low_stock_threshold must be 0-{MAX_LOW_STOCK_THRESHOLD}",
            details={"low_stock_threshold": f"must be 0-{MAX_LOW_STOCK_THRESHOLD}"},
        )
    return threshold


def create_branch(ctx, *, name, code, address=None) -> Branch:
    name = clean_text(name, "name", min_length=2, max_length=120)
    code = clean_text(code, "code", min_length=2, max_length=32).upper()
    if db.session.query(Branch.id).filter_by(org_id=ctx.org_id, code=code).first():
        raise ConflictError(f"Branch code {code} already exists")

    branch = Branch(org_id=ctx.org_id, name=name, code=code, address=clean_text(address, "address", required=False))
    db.session.add(branch)
    db.session.flush()
    audit_service.record_for(
        ctx, audit_service.ACTION_CREATE, ENTITY_BRANCH, branch.id,
        branch_id=branch.id, details={"code": code, "name": name},
    )
    return branch


def create_product(ctx, *, sku, name, unit="pcs", cost=0, price=0, low_stock_threshold=0) -> Product:
    sku = clean_text(sku, "sku", min_length=2, max_length=64).upper()
    if db.session.query(Product.id).filter_by(org_id=ctx.org_id, sku=sku).first():
        raise ConflictError(f"SKU {sku} already exists")

    product = Product(
        org_id=ctx.org_id,
        sku=sku,
        name=clean_text(name, "name", min_length=2, max_length=255),
        unit=clean_text(unit or "pcs", "unit", max_length=32),
        cost=to_money(cost, field="cost"),
        price=to_money(price, field="price"),
        low_stock_threshold=_threshold(low_stock_threshold),
    )
    db.session.add(product)
    db.session.flush()
    audit_service.record_for(
        ctx, audit_service.ACTION_CREATE, ENTITY_PRODUCT, product.id,
        details={"sku": sku, "cost": product.cost, "price": product.price},
    )
    return product


def update_product_pricing(ctx, product_id: int, *, cost=None, price=None, low_stock_threshold=None) -> Product:
    """Change cost/price/threshold. Existing documents keep the amounts they were created with."""
    product = get_scoped(Product, product_id, ctx.org_id, label="Product", lock=True)
    changes = {}
    if cost is not None:
        changes["cost"] = {"from": product.cost, "to": to_money(cost, field="cost")}
        product.cost = changes["cost"]["to"]
    if price is not None:
        changes["price"] = {"from": product.price, "to": to_money(price, field="price")}
        product.price = changes["price"]["to"]
    if low_stock_threshold is not None:
        changes["low_stock_threshold"] = {"from": product.low_stock_threshold, "to": _threshold(low_stock_threshold)}
        product.low_stock_threshold = changes["low_stock_threshold"]["to"]
    if not changes:
        raise ValidationError("Nothing to update", details={"product": "no fields supplied"})

    db.session.flush()
    audit_service.record_for(ctx, audit_service.ACTION_UPDATE, ENTITY_PRODUCT, product.id, details=changes)
    return product


def create_supplier(ctx, *, name, email=None, phone=None, address=None) -> Supplier:
    name = clean_text(name, "name", min_length=2, max_length=255)
    if db.session.query(Supplier.id).filter_by(org_id=ctx.org_id, name=name).first():
        raise ConflictError(f"Supplier {name} already exists")

    supplier = Supplier(
        org_id=ctx.org_id,
        name=name,
        email=clean_text(email, "email", required=False),
        phone=clean_text(phone, "phone", max_length=64, required=False),
        address=clean_text(address, "address", required=False),
    )
    db.session.add(supplier)
    db.session.flush()
    audit_service.record_for(ctx, audit_service.ACTION_CREATE, ENTITY_SUPPLIER, supplier.id, details={"name": name})
    return supplier


def create_customer(ctx, *, name, email=None, phone=None, address=None) -> Customer:
    customer = Customer(
        org_id=ctx.org_id,
        name=clean_text(name, "name", min_length=2, max_length=255),
        email=clean_text(email, "email", required=False),
        phone=clean_text(phone, "phone", max_length=64, required=False),
        address=clean_text(address, "address", required=False),
    )
    db.session.add(customer)
    db.session.flush()
    audit_service.record_for(
        ctx, audit_service.ACTION_CREATE, ENTITY_CUSTOMER, customer.id, details={"name": customer.name},
    )
    return customer


def list_products(org_id: int) -> list[Product]:
    return db.session.query(Product).filter_by(org_id=org_id).order_by(Product.name.asc()).all()


def list_branches(org_id: int) -> list[Branch]:
    return db.session.query(Branch).filter_by(org_id=org_id).order_by(Branch.id.asc()).all()


def list_customers(org_id: int, *, q: str | None = None) -> list[Customer]:
    """Newest first; ``q`` matches name, email or phone (case-insensitive)."""
    query = db.session.query(Customer).filter_by(org_id=org_id)
    term = (q or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    return query.order_by(Customer.created_at.desc(), Customer.id.desc()).all()


def list_suppliers(org_id: int) -> list[Supplier]:
    return db.session.query(Supplier).filter_by(org_id=org_id).order_by(Supplier.name.asc()).all()
