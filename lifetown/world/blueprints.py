"""
lifetown/world/blueprints.py

Static workplace blueprints. A Workplace is the live, mutable
instance of one of these; the blueprint itself never changes at runtime.

Effects drive venue behaviour in the decision engine:
    romance       → confession bonus, affection bonus
    chaos         → fights, affairs, drinks
    ntr           → intimacy, affairs
    marriage      → proposals
    fun           → extra happiness when resting
    medical       → births and abortions
    contraceptive → pharmacy stock
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: int


@dataclass(frozen=True)
class Blueprint:
    id: str
    name: str
    cost: int
    description: str
    effect: str
    open_hour: int
    close_hour: int
    roles: tuple[str, ...] = ()
    closed_days: tuple[int, ...] = ()
    products: tuple[Product, ...] = field(default_factory=tuple)

    @property
    def is_24_hour(self) -> bool:
        return self.open_hour == 0 and self.close_hour == 24

    def product(self, product_id: str) -> Product | None:
        return next((p for p in self.products if p.id == product_id), None)


# Ids of things people drink at the bar, and which ones hit harder
DRINK_IDS = {"star_beer", "starglow_beer", "battle_beer", "turia_beer", "gin_tonic", "cuba_libre"}
COCKTAIL_IDS = {"gin_tonic", "cuba_libre"}

# Pharmacy stock: product id → units added to a resident's supply
CONTRACEPTIVE_UNITS = {
    "birth_control_pills": 20,
    "contraceptive_patch": 1,
    "condoms": 12,
}

ABORTION_COST = 1000
DELIVERY_COST = 3000
CHURCH_ENTRY_FEE = 200
CHURCH_MARRIAGE_FEE = 300


BLUEPRINTS: tuple[Blueprint, ...] = (
    Blueprint(
        id="park", name="🌳 Central Park", cost=200,
        description="Free to enjoy, good for dates", effect="romance",
        open_hour=0, close_hour=24,
    ),
    Blueprint(
        id="bar", name="🍺 Late-Night Bar", cost=500,
        description="Drinks flow, judgement doesn't", effect="chaos",
        open_hour=18, close_hour=2, roles=("owner", "chef", "waiter"), closed_days=(0,),
        products=(
            Product("star_beer", "Star Beer", 15),
            Product("starglow_beer", "Starglow Beer", 15),
            Product("battle_beer", "Battle Beer", 18),
            Product("turia_beer", "Turia Beer", 18),
            Product("gin_tonic", "Gin & Tonic", 56),
            Product("cuba_libre", "Cuba Libre", 56),
        ),
    ),
    Blueprint(
        id="hotel", name="🏩 Budget Hotel", cost=800,
        description="You know what it's for", effect="ntr",
        open_hour=0, close_hour=24, roles=("receptionist", "housekeeper"),
        products=(
            Product("single_room", "Single Room", 50),
            Product("double_room", "Double Room", 120),
            Product("king_bed", "King Bed Room", 210),
            Product("executive_room", "Executive Room", 350),
            Product("suite", "Suite", 670),
        ),
    ),
    Blueprint(
        id="church", name="⛪ Wedding Chapel", cost=1200,
        description="Sacred ground", effect="marriage",
        open_hour=8, close_hour=20, roles=("priest",),
    ),
    Blueprint(
        id="cinema", name="🎬 Cinema", cost=400,
        description="Cheers people up fast", effect="fun",
        open_hour=10, close_hour=24, roles=("ticket clerk",),
        products=(
            Product("action_film", "Action Film", 50),
            Product("hero_film", "Superhero Film", 40),
            Product("family_film", "Family Film", 20),
            Product("premium_anime", "Premium Anime", 35),
        ),
    ),
    Blueprint(
        id="footshop", name="💆 Mysterious Foot Spa", cost=600,
        description="Not really about feet", effect="ntr",
        open_hour=0, close_hour=24, roles=("owner",),
    ),
    Blueprint(
        id="hospital", name="🏥 Hospital", cost=1500,
        description="Deliveries and abortions", effect="medical",
        open_hour=0, close_hour=24, roles=("doctor", "nurse"),
    ),
    Blueprint(
        id="pharmacy", name="💊 Pharmacy", cost=800,
        description="Contraceptives on the shelf", effect="contraceptive",
        open_hour=8, close_hour=22, roles=("pharmacist",),
        products=(
            Product("birth_control_pills", "Birth Control Pills", 103),
            Product("contraceptive_patch", "Contraceptive Patch", 75),
            Product("condoms", "Condoms", 40),
        ),
    ),
)
