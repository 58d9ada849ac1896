# hangwa/services/customer.py

from datetime import datetime
from typing import Optional

from fastapi import Request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from hangwa.models.customer import Customer as CustomerModel
from hangwa.models.order import Order as OrderModel
from hangwa.schemas.customer import CustomerCreate, CustomerUpdate
from hangwa.services.spreadsheet import parse_customer_rows
from hangwa.services.trash import Trash
from hangwa.utils.errors import ConflictError, NotFoundError

customer_trash = Trash(CustomerModel, target="customer", label="고객")


async def read_customers_service(request: Request, search: Optional[str] = None) -> list[CustomerModel]:
    """
    Список клиентов (без корзины). search - подстрока имени или телефона.
    """
    db = request.state.db
    log = request.app.state.log

    query = select(CustomerModel).where(CustomerModel.is_deleted.is_(False))
    if search:
        pattern = f"%{search}%"
        query = query.where(
            CustomerModel.customer_name.like(pattern) | CustomerModel.customer_phone.like(pattern)
        )
    query = query.order_by(CustomerModel.last_order_date.desc(), CustomerModel.created_at.desc())

    result = await db.execute(query)
    customers = result.scalars().all()
    await log.log_info("customer", f"{len(customers)} клиентов загружено")
    return customers


async def read_customer_service(id: int, request: Request) -> CustomerModel:
    db = request.state.db
    result = await db.execute(select(CustomerModel).where(CustomerModel.id == id))
    customer = result.scalar_one_or_none()
    if customer is None:
        await request.app.state.log.log_error("customer", "Клиент не найден", {"id": id})
        raise NotFoundError("고객을 찾을 수 없습니다")
    return customer


async def _find_by_phone(db, phone: str) -> Optional[CustomerModel]:
    result = await db.execute(select(CustomerModel).where(CustomerModel.customer_phone == phone))
    return result.scalar_one_or_none()


async def create_customer_service(data: CustomerCreate, request: Request) -> CustomerModel:
    db = request.state.db
    log = request.app.state.log

    existing = await _find_by_phone(db, data.customer_phone)
    if existing is not None:
        detail = "휴지통에 같은 전화번호의 고객이 있습니다" if existing.is_deleted else "이미 등록된 전화번호입니다"
        raise ConflictError(detail, field="customerPhone")

    customer = CustomerModel(**data.model_dump())
    db.add(customer)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("이미 등록된 전화번호입니다", field="customerPhone")
    await db.refresh(customer)

    await log.log_info("customer", "Клиент создан", {"id": customer.id})
    return customer


async def update_customer_service(id: int, data: CustomerUpdate, request: Request) -> CustomerModel:
    db = request.state.db
    log = request.app.state.log

    customer = await read_customer_service(id, request)
    changes = data.model_dump(exclude_unset=True)

    new_phone = changes.get("customer_phone")
    if new_phone and new_phone != customer.customer_phone:
        other = await _find_by_phone(db, new_phone)
        if other is not None:
            raise ConflictError("이미 등록된 전화번호입니다", field="customerPhone")

    for key, value in changes.items():
        setattr(customer, key, value)
    customer.updated_at = datetime.now()

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("이미 등록된 전화번호입니다", field="customerPhone")
    await db.refresh(customer)

    await log.log_info("customer", "Клиент обновлён", {"id": id, "fields": list(changes)})
    return customer


async def register_order_customer(order: OrderModel, db) -> CustomerModel:
    """
    Побочный эффект оформления заказа: клиент с тем же телефоном
    получает +1 заказ и сумму, иначе создаётся новый.
    Коммит делает вызывающий код вместе с заказом.
    """
    customer = await _find_by_phone(db, order.customer_phone)
    now = datetime.now()
    if customer is None:
        customer = CustomerModel(
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            zip_code=order.zip_code,
            address1=order.address1,
            address2=order.address2,
            order_count=1,
            total_spent=order.total_amount,
            last_order_date=now,
            user_id=order.user_id,
        )
        db.add(customer)
    else:
        customer.customer_name = order.customer_name
        customer.zip_code = order.zip_code
        customer.address1 = order.address1
        customer.address2 = order.address2
        customer.order_count = (customer.order_count or 0) + 1
        customer.total_spent = (customer.total_spent or 0) + order.total_amount
        customer.last_order_date = now
        if order.user_id and not customer.user_id:
            customer.user_id = order.user_id
        customer.updated_at = now
    return customer


async def read_addresses_service(phone: str, request: Request) -> list[dict]:
    """Адресная книга клиента: разные адреса из его заказов, последние - первыми."""
    db = request.state.db

    result = await db.execute(
        select(
            OrderModel.zip_code,
            OrderModel.address1,
            OrderModel.address2,
            func.max(OrderModel.created_at).label("last_used"),
        )
        .where(OrderModel.customer_phone == phone, OrderModel.is_deleted.is_(False))
        .group_by(OrderModel.zip_code, OrderModel.address1, OrderModel.address2)
        .order_by(func.max(OrderModel.created_at).desc())
    )
    addresses = [
        {"zip_code": row.zip_code, "address1": row.address1, "address2": row.address2, "last_used": row.last_used}
        for row in result.all()
    ]

    customer = await _find_by_phone(db, phone)
    if customer is not None and customer.address1:
        known = {(a["zip_code"], a["address1"], a["address2"]) for a in addresses}
        if (customer.zip_code, customer.address1, customer.address2) not in known:
            addresses.append({
                "zip_code": customer.zip_code,
                "address1": customer.address1,
                "address2": customer.address2,
                "last_used": customer.last_order_date,
            })

    if not addresses:
        raise NotFoundError("등록된 주소가 없습니다")
    return addresses


async def refresh_stats_service(request: Request) -> int:
    """Пересчитывает order_count / total_spent / last_order_date по заказам."""
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(
        select(
            OrderModel.customer_phone,
            func.count(OrderModel.id),
            func.coalesce(func.sum(OrderModel.total_amount), 0),
            func.max(OrderModel.created_at),
        )
        .where(OrderModel.is_deleted.is_(False))
        .group_by(OrderModel.customer_phone)
    )
    stats = {phone: (count, total, last) for phone, count, total, last in result.all()}

    customers = (await db.execute(select(CustomerModel))).scalars().all()
    updated = 0
    for customer in customers:
        count, total, last = stats.get(customer.customer_phone, (0, 0, None))
        if (customer.order_count, customer.total_spent, customer.last_order_date) != (count, total, last):
            customer.order_count = count
            customer.total_spent = total
            customer.last_order_date = last
            updated += 1

    await db.commit()
    await log.log_info("customer", "Статистика клиентов пересчитана", {"updated": updated})
    return updated


async def upload_customers_service(content: bytes, request: Request) -> dict:
    """
    Импорт клиентов из CSV. Существующий телефон - обновление, новый - создание.
    Весь файл применяется одной транзакцией.
    """
    db = request.state.db
    log = request.app.state.log

    rows, errors = parse_customer_rows(content)
    created = updated = 0
    seen = {}
    for row in rows:
        phone = row["customer_phone"]
        customer = seen.get(phone) or await _find_by_phone(db, phone)
        if customer is None:
            customer = CustomerModel(order_count=0, total_spent=0, **row)
            db.add(customer)
            created += 1
        else:
            for key, value in row.items():
                setattr(customer, key, value)
            customer.updated_at = datetime.now()
            if phone not in seen:
                updated += 1
        seen[phone] = customer

    await db.commit()
    summary = {"created": created, "updated": updated, "skipped": len(errors), "errors": errors}
    await log.log_info("customer", "Импорт клиентов", summary)
    return summary
