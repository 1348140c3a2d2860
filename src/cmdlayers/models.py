"""Typed domain models for cmdlayers."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from cmdlayers.errors import ValidationError


class Domain(str, Enum):
    """Parameter domains selected by the master-layer commands."""

    SET = "set"
    READ = "read"
    SET_MIN = "setmin"
    MIN = "min"
    SET_MAX = "setmax"
    MAX = "max"

    @property
    def read_only(self) -> bool:
        """Whether values in this domain are measured rather than configured."""
        return self in _READ_ONLY_DOMAINS

    @property
    def prompt_label(self) -> str:
        """Name shown by the parameter layer while this domain is selected."""
        return _PROMPT_LABELS[self]

    @property
    def descriptor(self) -> str:
        """Fixed-width row label used by the report table."""
        return _DESCRIPTORS[self]


_READ_ONLY_DOMAINS = frozenset((Domain.READ, Domain.MIN, Domain.MAX))
_PROMPT_LABELS = {
    Domain.SET: "Set",
    Domain.READ: "Actual",
    Domain.SET_MIN: "Set min limit",
    Domain.MIN: "Actual min",
    Domain.SET_MAX: "Set max limit",
    Domain.MAX: "Actual max",
}
_DESCRIPTORS = {
    Domain.SET: "Set        ",
    Domain.READ: "Actual     ",
    Domain.SET_MIN: "Set MInimum",
    Domain.MIN: "Act.MInimum",
    Domain.SET_MAX: "Set MAximum",
    Domain.MAX: "Act.Maximum",
}


class Quantity(str, Enum):
    """Physical quantities tracked for every domain."""

    VOLTAGE = "volt"
    AMPERAGE = "amp"
    SPEED = "speed"

    @property
    def label(self) -> str:
        return _QUANTITY_LABELS[self]

    @property
    def unit(self) -> str:
        return _QUANTITY_UNITS[self]

    @property
    def integral(self) -> bool:
        """Speed is stored as whole revolutions per minute."""
        return self is Quantity.SPEED

    def coerce(self, value: float | int) -> float | int:
        """Convert a parsed payload value to this quantity's storage type."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{self.label} must be numeric, got {value!r}")
        if self.integral:
            if isinstance(value, float) and not value.is_integer():
                raise ValidationError(f"{self.label} must be a whole number, got {value}")
            return int(value)
        return float(value)


_QUANTITY_LABELS = {
    Quantity.VOLTAGE: "Volt",
    Quantity.AMPERAGE: "Amps",
    Quantity.SPEED: "Rpm",
}
_QUANTITY_UNITS = {
    Quantity.VOLTAGE: "V",
    Quantity.AMPERAGE: "A",
    Quantity.SPEED: "Rpm",
}

DEFAULT_VALUES: dict[Quantity, tuple[float | int, ...]] = {
    #                  Set    Read  SetMin  Min  SetMax   Max
    Quantity.VOLTAGE: (10.99, 4.5, 5.5, 6.5, 12.56, 12.88),
    Quantity.AMPERAGE: (0.12, 7.9, 8.0, 9.9, 10.12, 12.34),
    Quantity.SPEED: (0, 1, 2, 3, 4, 5),
}


class Outcome(str, Enum):
    """Result of feeding one line to a dispatcher."""

    OK = "ok"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class Settings:
    """Interactive style of one command layer."""

    prompt_enabled: bool = False
    echo_enabled: bool = False

    def copy(self) -> "Settings":
        return replace(self)


def _require_domain(domain: Any) -> Domain:
    if not isinstance(domain, Domain):
        raise ValidationError(f"Invalid domain: {domain!r}")
    return domain


def _require_quantity(quantity: Any) -> Quantity:
    if not isinstance(quantity, Quantity):
        raise ValidationError(f"Invalid quantity: {quantity!r}")
    return quantity


@dataclass
class VariableStore:
    """Current value of every quantity in every domain.

    The slot layout is fixed at construction: one slot per (quantity, domain)
    pair. Slots are addressed only through Domain and Quantity members.
    """

    values: dict[Quantity, dict[Domain, float | int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for quantity in Quantity:
            slots = self.values.setdefault(quantity, {})
            for domain in Domain:
                slots.setdefault(domain, quantity.coerce(0))
        unknown = set(self.values) - set(Quantity)
        if unknown:
            raise ValidationError(f"Unknown quantities: {sorted(map(str, unknown))}")

    @classmethod
    def with_defaults(cls) -> "VariableStore":
        """Create a store seeded with the stock demo values."""
        return cls(
            values={
                quantity: {
                    domain: quantity.coerce(value)
                    for domain, value in zip(Domain, defaults)
                }
                for quantity, defaults in DEFAULT_VALUES.items()
            }
        )

    def get(self, quantity: Quantity, domain: Domain) -> float | int:
        return self.values[_require_quantity(quantity)][_require_domain(domain)]

    def set(self, quantity: Quantity, domain: Domain, value: float | int) -> float | int:
        """Write one slot and return the stored (coerced) value."""
        quantity = _require_quantity(quantity)
        domain = _require_domain(domain)
        stored = quantity.coerce(value)
        self.values[quantity][domain] = stored
        return stored

    def reset_domain(self, domain: Domain) -> None:
        """Zero every quantity in one domain, leaving other domains untouched."""
        domain = _require_domain(domain)
        for quantity in Quantity:
            self.values[quantity][domain] = quantity.coerce(0)

    def row(self, domain: Domain) -> dict[Quantity, float | int]:
        """Return all quantities for one domain, in Quantity order."""
        domain = _require_domain(domain)
        return {quantity: self.values[quantity][domain] for quantity in Quantity}


@dataclass
class Profile:
    """In-memory profile (runtime configuration) model."""

    transport: str = "console"
    serial_port: str | None = None
    baud_rate: int = 115200
    report_period_seconds: int = 1
    reporting: bool = False
    prompt: bool = True
    echo: bool = False
    log_file: str | None = None
    debug: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Profile":
        """Create profile model from dict payload, filling defaults."""
        defaults = cls()
        return cls(
            transport=str(payload.get("transport", defaults.transport)),
            serial_port=payload.get("serial_port"),
            baud_rate=int(payload.get("baud_rate", defaults.baud_rate)),
            report_period_seconds=int(
                payload.get("report_period_seconds", defaults.report_period_seconds)
            ),
            reporting=bool(payload.get("reporting", defaults.reporting)),
            prompt=bool(payload.get("prompt", defaults.prompt)),
            echo=bool(payload.get("echo", defaults.echo)),
            log_file=payload.get("log_file"),
            debug=bool(payload.get("debug", defaults.debug)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize profile model to dict payload."""
        return {
            "transport": self.transport,
            "serial_port": self.serial_port,
            "baud_rate": self.baud_rate,
            "report_period_seconds": self.report_period_seconds,
            "reporting": self.reporting,
            "prompt": self.prompt,
            "echo": self.echo,
            "log_file": self.log_file,
            "debug": self.debug,
        }
