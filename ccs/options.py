"""Product option catalogue and pricing."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Sequence

from .constants import BASE_PRICE, PRODUCT_PRICES


class InvalidOptionError(ValueError):
    """Raised when an option value is not part of the catalogue."""


@dataclass(frozen=True)
class Option:
    label: str
    value: str
    description: Optional[str] = None
    price: int = 0
    swatch: Optional[str] = None


COLORS = (
    Option("Black", "black", swatch="#18181b"),
    Option("Blue", "blue", swatch="#172554"),
    Option("Rose", "rose", swatch="#4c0519"),
    Option("Green", "green", swatch="#052e16"),
    Option("Orange", "orange", swatch="#c2410c"),
)

MODELS = (
    Option("iPhone X", "iphonex"),
    Option("iPhone 11", "iphone11"),
    Option("iPhone 12", "iphone12"),
    Option("iPhone 13", "iphone13"),
    Option("iPhone 14", "iphone14"),
    Option("iPhone 15", "iphone15"),
    Option("iPhone 16", "iphone16"),
)

MATERIALS = (
    Option("Silicone", "silicone", price=PRODUCT_PRICES["material"]["silicone"]),
    Option(
        "Soft Polycarbonate",
        "polycarbonate",
        description="Scratch resistant coating",
        price=PRODUCT_PRICES["material"]["polycarbonate"],
    ),
)

FINISHES = (
    Option("Smooth Finish", "smooth", price=PRODUCT_PRICES["finish"]["smooth"]),
    Option(
        "Textured Finish",
        "textured",
        description="Grippy soft texture",
        price=PRODUCT_PRICES["finish"]["textured"],
    ),
)

CATALOGUE: Dict[str, Sequence[Option]] = {
    "color": COLORS,
    "model": MODELS,
    "material": MATERIALS,
    "finish": FINISHES,
}


def find_option(field_name: str, value: Optional[str]) -> Option:
    """Return the catalogue entry for ``value`` or raise ``InvalidOptionError``."""
    choices = CATALOGUE.get(field_name)
    if choices is None:
        raise InvalidOptionError(f"Unknown option field '{field_name}'")
    for option in choices:
        if option.value == value:
            return option
    raise InvalidOptionError(f"'{value}' is not a valid {field_name}")


@dataclass(frozen=True)
class CaseOptions:
    """The four selections that describe a case besides its image."""

    color: str
    model: str
    material: str
    finish: str

    @classmethod
    def default(cls) -> "CaseOptions":
        return cls(
            color=COLORS[0].value,
            model=MODELS[0].value,
            material=MATERIALS[0].value,
            finish=FINISHES[0].value,
        )

    def validate(self) -> "CaseOptions":
        for field_name, value in asdict(self).items():
            find_option(field_name, value)
        return self

    def labels(self) -> Dict[str, str]:
        return {name: find_option(name, value).label for name, value in asdict(self).items()}

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @property
    def price(self) -> int:
        return calculate_price(self.material, self.finish)


def calculate_price(material: Optional[str], finish: Optional[str]) -> int:
    """Total price in cents for a material/finish pair."""
    price = BASE_PRICE
    if material:
        price += find_option("material", material).price
    if finish:
        price += find_option("finish", finish).price
    return price


def format_price(cents: int) -> str:
    return f"${cents / 100:,.2f}"
