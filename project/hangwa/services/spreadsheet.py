# hangwa/services/spreadsheet.py

"""
Табличный импорт клиентов и экспорт заказов (CSV, UTF-8 с BOM для Excel).
"""

import csv
import io
from typing import Iterable

from hangwa.models.order import Order, OrderStatus, PaymentStatus
from hangwa.utils.errors import ValidationError

# заголовок в файле -> поле клиента
CUSTOMER_COLUMNS = {
    "name": "customer_name",
    "customer_name": "customer_name",
    "고객명": "customer_name",
    "이름": "customer_name",
    "phone": "customer_phone",
    "customer_phone": "customer_phone",
    "전화번호": "customer_phone",
    "연락처": "customer_phone",
    "zip": "zip_code",
    "zip_code": "zip_code",
    "우편번호": "zip_code",
    "address": "address1",
    "address1": "address1",
    "주소": "address1",
    "address2": "address2",
    "상세주소": "address2",
    "notes": "notes",
    "메모": "notes",
}

STATUS_LABELS = {
    OrderStatus.pending.value: "주문접수",
    OrderStatus.preparing.value: "상품준비",
    OrderStatus.scheduled.value: "발송주문",
    OrderStatus.shipping.value: "배송중",
    OrderStatus.seller_shipped.value: "발송대기",
    OrderStatus.delivered.value: "발송완료",
}

PAYMENT_LABELS = {
    PaymentStatus.pending.value: "입금대기",
    PaymentStatus.confirmed.value: "입금완료",
    PaymentStatus.partial.value: "부분결제",
    PaymentStatus.refunded.value: "환불",
}

ORDER_EXPORT_HEADER = [
    "주문번호", "주문일", "고객명", "받는분", "전화번호", "주소", "상품",
    "주문금액", "실입금액", "할인금액", "입금상태", "주문상태", "발송상태",
    "예약발송일", "발송완료일", "매니저발송일", "원가합계", "순수익", "메모",
]


def parse_customer_rows(content: bytes) -> tuple[list[dict], list[str]]:
    """
    Разбирает CSV с клиентами.
    Возвращает (строки, ошибки); строка без имени или телефона попадает в ошибки.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("파일은 UTF-8 CSV 형식이어야 합니다", field="file")

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationError("파일에 헤더가 없습니다", field="file")

    mapping = {h: CUSTOMER_COLUMNS.get(h.strip().lower(), CUSTOMER_COLUMNS.get(h.strip())) for h in reader.fieldnames}
    if "customer_name" not in mapping.values() or "customer_phone" not in mapping.values():
        raise ValidationError("이름과 전화번호 열이 필요합니다", field="file")

    rows, errors = [], []
    for line_no, raw in enumerate(reader, start=2):
        row = {}
        for header, value in raw.items():
            field = mapping.get(header)
            if field and value is not None and value.strip():
                row[field] = value.strip()
        if not row.get("customer_name") or not row.get("customer_phone"):
            errors.append(f"{line_no}행: 이름과 전화번호는 필수입니다")
            continue
        rows.append(row)
    return rows, errors


def _products(order: Order) -> str:
    items = []
    if order.small_box_quantity:
        items.append(f"한과1호×{order.small_box_quantity}개")
    if order.large_box_quantity:
        items.append(f"한과2호×{order.large_box_quantity}개")
    if order.wrapping_quantity:
        items.append(f"보자기×{order.wrapping_quantity}개")
    return ", ".join(items)


def _date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def orders_to_csv(orders: Iterable[Order]) -> str:
    buffer = io.StringIO()
    buffer.write("\ufeff")
    writer = csv.writer(buffer)
    writer.writerow(ORDER_EXPORT_HEADER)
    for order in orders:
        writer.writerow([
            order.order_number,
            _date(order.created_at),
            order.customer_name,
            order.recipient_name or order.customer_name,
            order.customer_phone,
            f"{order.address1} {order.address2 or ''}".strip(),
            _products(order),
            order.total_amount,
            order.actual_paid_amount if order.actual_paid_amount is not None else order.total_amount,
            order.discount_amount or 0,
            PAYMENT_LABELS.get(order.payment_status, order.payment_status),
            STATUS_LABELS.get(order.status, order.status),
            "발송완료" if order.seller_shipped else "발송대기",
            _date(order.scheduled_date),
            _date(order.delivered_date),
            _date(order.seller_shipped_date),
            order.total_cost,
            order.net_profit,
            order.special_requests or "",
        ])
    return buffer.getvalue()
