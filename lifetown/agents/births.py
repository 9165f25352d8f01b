"""
lifetown/agents/births.py

Pregnancies coming due. Checked every game hour.

When the due time arrives the carrier decides between an abortion and
a delivery. Either happens at the hospital if it's built and the carrier
can pay; otherwise at home, for free. A delivery adds a one-year-old
child to the town, named after a parent and carrying some of their
traits.
"""

from loguru import logger

from lifetown.agents.factory import CHILD_MAX_AGE, child_name, new_resident
from lifetown.agents.resident import Parents, Resident
from lifetown.agents.traits import inherit_traits
from lifetown.economy.shop import record_sale
from lifetown.world.blueprints import ABORTION_COST, DELIVERY_COST

UNHAPPY = 40
POOR = 1000
POOR_ABORTION_CHANCE = 0.5


def check_pregnancies(town) -> list[Resident]:
    """Resolves every pregnancy that is due. Returns the children born."""
    born = []
    for carrier in list(town.residents.values()):
        if carrier.pregnancy is None or town.now < carrier.pregnancy.due_time:
            continue
        if wants_abortion(town, carrier):
            perform_abortion(town, carrier)
        else:
            born.append(perform_delivery(town, carrier))
    return born


def wants_abortion(town, carrier: Resident) -> bool:
    if carrier.happiness < UNHAPPY:
        return True
    return carrier.money < POOR and town.rng.random() < POOR_ABORTION_CHANCE


def _hospital_visit(town, carrier: Resident, cost: int) -> bool:
    hospital = town.workplaces.get("hospital")
    if hospital is None or not hospital.is_built or carrier.money < cost:
        return False
    carrier.spend(cost, "hospital")
    record_sale(town, hospital, cost)
    return True


def perform_abortion(town, carrier: Resident):
    if _hospital_visit(town, carrier, ABORTION_COST):
        town.log.emit(f"🏥 {carrier.name} had an abortion at the hospital, paying {ABORTION_COST}.", "event")
    else:
        town.log.emit(f"⚠️ {carrier.name} ended the pregnancy at home...", "event")
    carrier.pregnancy = None


def perform_delivery(town, carrier: Resident) -> Resident:
    other_id = carrier.pregnancy.other_parent_id
    other = town.residents.get(other_id) if other_id else None
    other_name = other.name if other else "unknown"

    if _hospital_visit(town, carrier, DELIVERY_COST):
        town.log.emit(f"🏥 {carrier.name} gave birth at the hospital, paying {DELIVERY_COST}.", "event")
    else:
        town.log.emit(f"⚠️ {carrier.name} gave birth at home...", "event")

    taken = {r.name for r in town.residents.values()}
    child = new_resident(
        town.rng,
        town.catalog,
        child_name(town.rng, carrier, other, taken),
        town.now,
        age=1,
        max_age=CHILD_MAX_AGE,
        traits=inherit_traits(town.rng, town.catalog, carrier, other),
    )
    child.parents = Parents(mother_id=carrier.id, father_id=other_id)

    town.add_resident(child)
    town.graph.set_family(carrier, child)
    carrier.children.append(child.id)
    if other is not None:
        town.graph.set_family(other, child)
        other.children.append(child.id)

    carrier.pregnancy = None
    town.log.emit(f"👶 {child.name} was born! Mother: {carrier.name}, other parent: {other_name}.", "event")
    logger.info(f"👶 Birth: {child.name} ({', '.join(child.traits) or 'no traits'})")
    town.request_save()
    return child
