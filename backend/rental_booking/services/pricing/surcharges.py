"""Option surcharge table.

Every bookable domain owns one ``OptionKind -> SurchargeRule`` map. A rule is
either charged per duration unit (``PerUnit``) or once (``Fixed``). The table
is versioned and loaded once per process, either from the built-in defaults
below or from the JSON file named by ``SURCHARGE_TABLE_PATH``::

    {
      "version": "2024-06",
      "rules": {
        "vehicle_rental": {"insurance": {"mode": "per_unit", "amount": "15"}},
        "moving_service": {"packing": {"mode": "fixed", "amount": "200"}}
      }
    }
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from ...core.config import settings
from ...models.booking_kind import BookingKind
from ...models.option_kind import OptionKind
from .errors import InvalidPricingInput, SurchargeConfigError, UnknownOptionKind
from .money import parse_amount, quantize_money

logger = logging.getLogger(__name__)


class SurchargeMode(str, enum.Enum):
    PER_UNIT = "per_unit"
    FIXED = "fixed"


@dataclass(frozen=True)
class SurchargeRule:
    mode: SurchargeMode
    amount: Decimal

    def contribution(self, duration_units: int) -> Decimal:
        if self.mode is SurchargeMode.PER_UNIT:
            return quantize_money(self.amount * duration_units)
        return quantize_money(self.amount)


def PerUnit(amount: Any) -> SurchargeRule:
    return SurchargeRule(SurchargeMode.PER_UNIT, quantize_money(amount))


def Fixed(amount: Any) -> SurchargeRule:
    return SurchargeRule(SurchargeMode.FIXED, quantize_money(amount))


OptionRules = Mapping[OptionKind, SurchargeRule]


@dataclass(frozen=True)
class SurchargeTable:
    version: str
    rules: Mapping[BookingKind, OptionRules]

    def rules_for(self, kind: BookingKind) -> OptionRules:
        return self.rules.get(BookingKind(kind), {})


OPTION_LABELS: Dict[OptionKind, str] = {
    OptionKind.INSURANCE: "Insurance",
    OptionKind.GPS: "GPS",
    OptionKind.CHILD_SEAT: "Child seat",
    OptionKind.ADDITIONAL_DRIVER: "Additional driver",
    OptionKind.UNLIMITED_MILEAGE: "Unlimited mileage",
    OptionKind.PACKING: "Packing",
    OptionKind.UNPACKING: "Unpacking",
    OptionKind.FURNITURE: "Furniture disassembly",
    OptionKind.DELIVERY: "Home delivery",
    OptionKind.SETUP: "Furniture setup",
    OptionKind.MOVING_KIT: "Moving kit",
}

DEFAULT_SURCHARGE_TABLE = SurchargeTable(
    version="2024-01",
    rules={
        BookingKind.VEHICLE_RENTAL: {
            OptionKind.INSURANCE: PerUnit(15),
            OptionKind.GPS: PerUnit(8),
            OptionKind.CHILD_SEAT: Fixed(25),
            OptionKind.ADDITIONAL_DRIVER: PerUnit(10),
            OptionKind.UNLIMITED_MILEAGE: PerUnit(12),
        },
        BookingKind.MOVING_SERVICE: {
            OptionKind.INSURANCE: Fixed(50),
            OptionKind.PACKING: Fixed(200),
            OptionKind.UNPACKING: Fixed(150),
            OptionKind.FURNITURE: Fixed(100),
            OptionKind.DELIVERY: Fixed(80),
            OptionKind.SETUP: Fixed(120),
            OptionKind.MOVING_KIT: Fixed(75),
        },
        BookingKind.PRODUCT_ORDER: {
            OptionKind.DELIVERY: Fixed(0),
        },
    },
)


def _parse_rule(kind: str, option: str, raw: Any) -> SurchargeRule:
    if not isinstance(raw, Mapping):
        raise SurchargeConfigError(f"Rule for {kind}.{option} must be an object")
    try:
        mode = SurchargeMode(str(raw.get("mode", "")).strip().lower())
    except ValueError:
        raise SurchargeConfigError(
            f"Rule for {kind}.{option} has an unknown mode: {raw.get('mode')!r}"
        )
    try:
        amount = quantize_money(parse_amount(raw.get("amount")))
    except InvalidPricingInput:
        raise SurchargeConfigError(f"Rule for {kind}.{option} needs a numeric amount")
    if amount < 0:
        raise SurchargeConfigError(f"Rule for {kind}.{option} needs a non-negative amount")
    return SurchargeRule(mode, amount)


def parse_surcharge_table(data: Mapping[str, Any]) -> SurchargeTable:
    version = str(data.get("version") or "").strip()
    if not version:
        raise SurchargeConfigError("Surcharge table is missing a version")
    raw_rules = data.get("rules")
    if not isinstance(raw_rules, Mapping):
        raise SurchargeConfigError("Surcharge table 'rules' must be an object")

    rules: Dict[BookingKind, Dict[OptionKind, SurchargeRule]] = {}
    for kind_name, options in raw_rules.items():
        try:
            kind = BookingKind(kind_name)
        except ValueError:
            raise SurchargeConfigError(f"Unknown booking kind in surcharge table: {kind_name!r}")
        if not isinstance(options, Mapping):
            raise SurchargeConfigError(f"Options for {kind_name} must be an object")
        kind_rules: Dict[OptionKind, SurchargeRule] = {}
        for option_name, raw in options.items():
            option = OptionKind.lookup(option_name)
            if option is None:
                raise SurchargeConfigError(f"Unknown option in surcharge table: {option_name!r}")
            if option in kind_rules:
                raise SurchargeConfigError(f"Option {option.value} is listed twice for {kind_name}")
            kind_rules[option] = _parse_rule(kind_name, option_name, raw)
        rules[kind] = kind_rules
    return SurchargeTable(version=version, rules=rules)


def load_surcharge_table(path: Optional[Union[str, Path]] = None) -> SurchargeTable:
    """Read the table from ``path``; without a path return the built-in defaults."""
    if not path:
        return DEFAULT_SURCHARGE_TABLE
    file_path = Path(path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SurchargeConfigError(f"Cannot read surcharge table {file_path}: {exc}")
    except json.JSONDecodeError as exc:
        raise SurchargeConfigError(f"Surcharge table {file_path} is not valid JSON: {exc}")
    if not isinstance(data, Mapping):
        raise SurchargeConfigError("Surcharge table must be a JSON object")
    table = parse_surcharge_table(data)
    logger.info("Loaded surcharge table %s from %s", table.version, file_path)
    return table


_SURCHARGE_TABLE: Optional[SurchargeTable] = None


def get_surcharge_table() -> SurchargeTable:
    """Return the process-wide surcharge table, loading it on first use."""
    global _SURCHARGE_TABLE
    if _SURCHARGE_TABLE is None:
        _SURCHARGE_TABLE = load_surcharge_table(settings.SURCHARGE_TABLE_PATH or None)
    return _SURCHARGE_TABLE


def reset_surcharge_table() -> None:
    """Forget the cached table so the next lookup reloads it."""
    global _SURCHARGE_TABLE
    _SURCHARGE_TABLE = None


def parse_option_flags(
    flags: Union[Mapping[str, Any], Iterable[Union[str, OptionKind]], None],
) -> FrozenSet[OptionKind]:
    """Turn ``{"insurance": true, "gps": false}`` or a list of names into a set.

    Different spellings of one option collapse onto a single kind.
    """
    if not flags:
        return frozenset()
    if isinstance(flags, Mapping):
        names = [name for name, enabled in flags.items() if enabled]
    elif isinstance(flags, str):
        names = [flags]
    else:
        names = list(flags)
    selected = set()
    for name in names:
        option = OptionKind.lookup(name)
        if option is None:
            raise UnknownOptionKind(str(name))
        selected.add(option)
    return frozenset(selected)
