import math

from pharmacy_rostering.rules.base import Rule
from pharmacy_rostering.rules.helpers import ensure_total_minutes


class FairnessRule(Rule):
    """
    Penalise how far each person lands from their own target hours.

    Target hours come from StaffMember.target_hours(period_days), i.e. the
    weekly minimum scaled to the period. Deviations are measured in whole
    hours (rounded up) on each side of the target.

    Fairness settings (RuleSpec):
      • base (>1.0):
          exponential growth factor for the shortfall. Example: base=1.4 means
          the 1st, 2nd, 3rd hours below target add 1.4¹≈1.4, 1.4²≈1.96,
          1.4³≈2.74 penalty units on top of the earlier hours.
      • scale (>=0):
          linear multiplier applied to every tier.
      • max_deviation_hours (int):
          clamps the AddElement lookup; hour max+1 onwards reuses the last tier.
      • excess_weight (>=0):
          linear cost per hour above target. Keeps work from piling onto one
          person once everybody has reached their minimum.
      • hourly_shortfall_weight (>=0):
          hourly staff (Timanställd) have no guaranteed hours, so their
          shortfall is only charged linearly at this weight.
    """

    order = 90
    name = "Fairness"

    def __init__(self, model, **settings):
        super().__init__(model, **settings)
        self.base = float(self.setting("base", 1.4))
        self.scale = float(self.setting("scale", 1.0))
        self.max_deviation_hours = int(self.setting("max_deviation_hours", 8))
        self.excess_weight = float(self.setting("excess_weight", 1.0))
        self.hourly_shortfall_weight = float(
            self.setting("hourly_shortfall_weight", 1.0)
        )
        if self.base <= 1.0:
            raise ValueError(
                "Fairness base must be > 1.0 to enable exponential growth of penalties"
            )
        if self.scale < 0 or self.excess_weight < 0 or self.hourly_shortfall_weight < 0:
            raise ValueError("Fairness weights must be >= 0")
        if self.max_deviation_hours < 1:
            raise ValueError("max_deviation_hours must be >= 1")

    def penalty_table(self) -> list[int]:
        """Cumulative cost of being k hours short, for k = 0..max_deviation_hours."""
        table = [0]
        cumulative = 0
        for k in range(1, self.max_deviation_hours + 1):
            cumulative += int(round(self.scale * (self.base**k)))
            table.append(cumulative)
        return table

    def contribute_objective(self):
        ctx, M = self.model, self.model.m
        if not ctx.staff:
            return []

        horizon_minutes = int(ctx.period_days) * 24 * 60
        table = self.penalty_table()
        excess_w = int(round(self.excess_weight))
        hourly_w = int(round(self.hourly_shortfall_weight))

        if ctx.cfg.VERBOSE:
            print(
                f"Fairness: Base={self.base}, Scale={self.scale}, "
                f"Max Dev={self.max_deviation_hours}h\n"
                f"Max shortfall penalty per person: {table[-1]:,}"
            )

        get_total = ensure_total_minutes(self, horizon_minutes)
        cap_constant = M.new_constant(self.max_deviation_hours)

        terms = []
        for e, member in enumerate(ctx.staff):
            T_e = get_total(e)
            target = int(round(member.target_hours(ctx.period_days) * 60))
            hour_ub = max(math.ceil(target / 60), int(ctx.period_days) * 24) + 1

            # 60·sh ≥ target − T_e and 60·ex ≥ T_e − target: minimisation drives
            # both down to the rounded-up hour distance on the relevant side.
            shortfall = M.new_int_var(0, hour_ub, f"short_h_e{e}")
            excess = M.new_int_var(0, hour_ub, f"excess_h_e{e}")
            M.add(60 * shortfall >= target - T_e)
            M.add(60 * excess >= T_e - target)

            if excess_w > 0:
                terms.append(excess_w * excess)

            if member.expects_under_target:
                if hourly_w > 0:
                    terms.append(hourly_w * shortfall)
                continue

            terms.append(shortfall)
            capped = M.new_int_var(0, self.max_deviation_hours, f"short_cap_e{e}")
            M.add_min_equality(capped, [shortfall, cap_constant])
            penalty = M.new_int_var(0, table[-1], f"fair_penalty_e{e}")
            M.add_element(capped, table, penalty)
            terms.append(penalty)

        return terms
