# hangwa/services/pricing.py

"""
Расчёт стоимости заказа.

Все суммы - целые воны, дробей нет. Функции чистые: настройки передаются
параметром (PriceTable), чтобы один и тот же расчёт использовался при
создании, редактировании и проверке суммы, присланной клиентом.
"""

from dataclasses import dataclass
from typing import Mapping

from hangwa.models.settings import DEFAULT_SETTINGS


@dataclass(frozen=True)
class PriceTable:
    small_box_price: int
    large_box_price: int
    wrapping_price: int
    small_box_cost: int
    large_box_cost: int
    wrapping_cost: int
    shipping_fee: int
    free_shipping_threshold: int

    @classmethod
    def from_settings(cls, values: Mapping[str, str]) -> "PriceTable":
        """Строит таблицу из строк settings; отсутствующие ключи берутся по умолчанию."""
        def pick(key: str) -> int:
            raw = values.get(key)
            if raw is None or str(raw).strip() == "":
                return int(DEFAULT_SETTINGS[key][0])
            return int(raw)

        return cls(
            small_box_price=pick("smallBoxPrice"),
            large_box_price=pick("largeBoxPrice"),
            wrapping_price=pick("wrappingPrice"),
            small_box_cost=pick("smallBoxCost"),
            large_box_cost=pick("largeBoxCost"),
            wrapping_cost=pick("wrappingCost"),
            shipping_fee=pick("shippingFee"),
            free_shipping_threshold=pick("freeShippingThreshold"),
        )


@dataclass(frozen=True)
class Pricing:
    shipping_fee: int
    total_amount: int


@dataclass(frozen=True)
class CostBreakdown:
    total_cost: int
    net_profit: int


def shipping_fee_for(total_quantity: int, flat_fee: int, free_shipping_threshold: int) -> int:
    if total_quantity == 0:
        return 0
    if total_quantity >= free_shipping_threshold:
        return 0
    return flat_fee


def calculate_pricing(
    small_box_quantity: int,
    large_box_quantity: int,
    wrapping_quantity: int,
    prices: PriceTable,
    discount_amount: int = 0,
) -> Pricing:
    """
    Стоимость доставки и итоговая сумма заказа.

    total = small * smallPrice + large * largePrice + wrapping * wrappingPrice
            + shipping_fee - discount
    """
    for quantity in (small_box_quantity, large_box_quantity, wrapping_quantity, discount_amount):
        if quantity < 0:
            raise ValueError("quantities and discount must be non-negative")

    total_quantity = small_box_quantity + large_box_quantity
    shipping_fee = shipping_fee_for(total_quantity, prices.shipping_fee, prices.free_shipping_threshold)

    total_amount = (
        small_box_quantity * prices.small_box_price
        + large_box_quantity * prices.large_box_price
        + wrapping_quantity * prices.wrapping_price
        + shipping_fee
        - discount_amount
    )
    return Pricing(shipping_fee=shipping_fee, total_amount=total_amount)


def calculate_costs(
    small_box_quantity: int,
    large_box_quantity: int,
    wrapping_quantity: int,
    small_box_cost: int,
    large_box_cost: int,
    wrapping_cost: int,
    shipping_fee: int,
    revenue: int,
) -> CostBreakdown:
    """Себестоимость и чистая прибыль: revenue - себестоимость - доставка."""
    total_cost = (
        small_box_quantity * small_box_cost
        + large_box_quantity * large_box_cost
        + wrapping_quantity * wrapping_cost
    )
    return CostBreakdown(total_cost=total_cost, net_profit=revenue - total_cost - shipping_fee)
