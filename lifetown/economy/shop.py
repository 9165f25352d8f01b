"""
lifetown/economy/shop.py

Customer side of the economy: which product a resident picks at a venue,
whether they are willing to pay for it, and where the money goes.
"""

import random

from loguru import logger

from lifetown.agents.catalog import SPENDING_RESERVE, first_match
from lifetown.agents.resident import Resident
from lifetown.economy.distributor import DistributionResult, distribute
from lifetown.world.blueprints import CONTRACEPTIVE_UNITS, Product

CONTRACEPTIVE_BUY_CHANCE = 0.8


def choose_product(rng: random.Random, resident: Resident, products) -> Product | None:
    """
    Picks among the products the resident can afford.
        promiscuous at the pharmacy → cheapest contraceptive (80%)
        money-loving / stingy       → cheapest
        generous                    → most expensive
        anyone else                 → random
    """
    affordable = [p for p in products if resident.money >= p.price]
    if not affordable:
        return None

    contraceptives = [p for p in affordable if p.id in CONTRACEPTIVE_UNITS]
    if contraceptives and resident.has_trait("promiscuous") and rng.random() < CONTRACEPTIVE_BUY_CHANCE:
        return min(contraceptives, key=lambda p: p.price)

    if resident.has_trait("money-loving") or resident.has_trait("stingy"):
        return min(affordable, key=lambda p: p.price)
    if resident.has_trait("generous"):
        return max(affordable, key=lambda p: p.price)
    return rng.choice(affordable)


def required_cash(resident: Resident, price: int) -> int:
    """Cash a resident wants on hand before spending `price`."""
    return int(price * first_match(resident.traits, SPENDING_RESERVE, 1.0))


def willing_to_pay(resident: Resident, price: int) -> bool:
    return resident.money >= required_cash(resident, price) and resident.money >= price


def record_sale(town, workplace, amount: int) -> DistributionResult | None:
    """
    Books money paid at a workplace: staffed and built → distributor,
    otherwise the town treasury. Revenue totals are tracked either way.
    """
    amount = int(amount)
    if workplace is None:
        town.treasury += amount
        return None
    result = None
    if workplace.is_built and workplace.staff:
        result = distribute(town, workplace, amount)
    else:
        town.treasury += amount
    workplace.total_revenue += amount
    return result


def purchase(town, resident: Resident, workplace, product: Product) -> bool:
    """Pays for `product` at `workplace`. Returns False if the resident can't pay."""
    if not resident.spend(product.price, product.name):
        return False
    record_sale(town, workplace, product.price)
    units = CONTRACEPTIVE_UNITS.get(product.id)
    if units:
        resident.contraceptives += units
    logger.debug(f"🛒 {resident.name} bought {product.name} for {product.price} at {workplace.id if workplace else 'street'}")
    return True
