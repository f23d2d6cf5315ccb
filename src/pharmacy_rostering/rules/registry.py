from __future__ import annotations

from typing import Sequence, Tuple, Type

from pharmacy_rostering.rules.availability import AvailabilityRule
from pharmacy_rostering.rules.base import BuildCtxProto, Rule, RuleSpec
from pharmacy_rostering.rules.consecutive_days import ConsecutiveDaysRule
from pharmacy_rostering.rules.coverage import CoverageRule
from pharmacy_rostering.rules.decision_variables import VariablesRule
from pharmacy_rostering.rules.double_booking import NoDoubleBookingRule
from pharmacy_rostering.rules.fairness import FairnessRule

RuleTemplate = Tuple[Type[Rule], int, dict[str, float]]

VARIABLES_RULE_TEMPLATE: RuleTemplate = (VariablesRule, 0, {})
AVAILABILITY_RULE_TEMPLATE: RuleTemplate = (AvailabilityRule, 10, {})
COVERAGE_RULE_TEMPLATE: RuleTemplate = (CoverageRule, 20, {})
NO_DOUBLE_BOOKING_RULE_TEMPLATE: RuleTemplate = (NoDoubleBookingRule, 30, {})
CONSECUTIVE_DAYS_RULE_TEMPLATE: RuleTemplate = (
    ConsecutiveDaysRule,
    40,
    {
        "consec_days_before_penalty": 5,
        "scaler": 2.0,
    },
)
FAIRNESS_RULE_TEMPLATE: RuleTemplate = (
    FairnessRule,
    90,
    {
        "base": 1.4,
        "scale": 1.0,
        "max_deviation_hours": 8,
        "excess_weight": 1.0,
        "hourly_shortfall_weight": 1.0,
    },
)
_DEFAULT_RULE_TEMPLATES: list[RuleTemplate] = [
    VARIABLES_RULE_TEMPLATE,
    AVAILABILITY_RULE_TEMPLATE,
    COVERAGE_RULE_TEMPLATE,
    NO_DOUBLE_BOOKING_RULE_TEMPLATE,
    CONSECUTIVE_DAYS_RULE_TEMPLATE,
    FAIRNESS_RULE_TEMPLATE,
]

# Rule classes by name, so callers can enable or tune rules from plain config
RULE_REGISTRY: dict[str, Type[Rule]] = {
    cls.name: cls for cls, _, _ in _DEFAULT_RULE_TEMPLATES
}

# Without these the model can violate a hard constraint or be unbounded
REQUIRED_RULES: tuple[Type[Rule], ...] = (
    VariablesRule,
    AvailabilityRule,
    CoverageRule,
    NoDoubleBookingRule,
    ConsecutiveDaysRule,
)


def default_rule_specs() -> list[RuleSpec]:
    """Return fresh copies of the default rule specifications."""
    return [
        RuleSpec(cls=cls, order=order, settings=dict(settings))
        for cls, order, settings in _DEFAULT_RULE_TEMPLATES
    ]


def normalize_rule_specs(
    rules: Sequence[RuleSpec | Type[Rule] | str] | None,
) -> list[RuleSpec]:
    """Turn user-provided rules (specs, classes or registry names) into RuleSpec objects."""
    if rules is None:
        return default_rule_specs()

    normalized: list[RuleSpec] = []
    for item in rules:
        if isinstance(item, RuleSpec):
            normalized.append(item)
        elif isinstance(item, type) and issubclass(item, Rule):
            normalized.append(RuleSpec(cls=item))
        elif isinstance(item, str):
            if item not in RULE_REGISTRY:
                raise ValueError(
                    f"Unknown rule {item!r}; known rules: " + ", ".join(RULE_REGISTRY)
                )
            normalized.append(RuleSpec(cls=RULE_REGISTRY[item]))
        else:
            raise TypeError(
                "Rules must be RuleSpec instances, Rule subclasses or rule names; "
                f"got {type(item)!r}"
            )

    present = {spec.cls for spec in normalized if spec.enabled}
    missing = [cls.__name__ for cls in REQUIRED_RULES if cls not in present]
    if missing:
        raise ValueError(
            "Hard-constraint rules cannot be disabled or omitted: " + ", ".join(missing)
        )
    return normalized


def build_sequence(
    model: BuildCtxProto,
    rules: Sequence[RuleSpec | Type[Rule] | str] | None = None,
) -> list[Rule]:
    """Instantiate enabled rules sorted by (order, registration index)."""
    specs = normalize_rule_specs(rules)
    indexed = [
        (spec.order if spec.order is not None else spec.cls.order, i, spec)
        for i, spec in enumerate(specs)
        if spec.enabled
    ]
    indexed.sort(key=lambda item: (item[0], item[1]))
    return [spec.cls(model, **spec.settings) for _, _, spec in indexed]
