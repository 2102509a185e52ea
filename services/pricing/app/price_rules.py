from __future__ import annotations

from uuid import UUID

from services.pricing.app.models import CatalogSnapshot, Category, PaymentMethod, PriceRule


def get_compatible_prices(
    catalog: CatalogSnapshot,
    category: Category,
    capacity: int,
    period_id: UUID,
    guests: int,
) -> list[PriceRule]:
    """
    Best-fit price rules for an accommodation, one per payment method.

    A rule fits when its people tier is reachable by the accommodation (tier <= capacity) and does not
    require more people than were requested (tier <= guests). Among fitting rules the largest tier wins;
    equal tiers keep catalog order.
    """
    best: dict[PaymentMethod, PriceRule] = {}
    for rule in catalog.rules_for(category, period_id):
        if rule.number_of_people > capacity or rule.number_of_people > guests:
            continue
        current = best.get(rule.payment_method)
        if current is None or rule.number_of_people > current.number_of_people:
            best[rule.payment_method] = rule
    return [best[m] for m in PaymentMethod if m in best]


def price_for_method(rules: list[PriceRule], payment_method: PaymentMethod) -> PriceRule | None:
    for rule in rules:
        if rule.payment_method == payment_method:
            return rule
    return None
