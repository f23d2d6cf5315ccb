from pharmacy_rostering.rules.base import Rule


class AvailabilityRule(Rule):
    """Keep staff off shifts on their unavailable dates"""

    order = 10
    name = "Availability"

    def add_hard(self):
        ctx, m = self.model, self.model.m
        for (e, s), var in ctx.x.items():
            if not ctx.staff[e].is_available(ctx.slots[s].date):
                m.add(var == 0)

    def report_descriptors(self):
        ctx = self.model
        blocked = sum(
            1
            for (e, s) in ctx.x
            if not ctx.staff[e].is_available(ctx.slots[s].date)
        )
        return [{"type": "availability", "name": self.name, "blocked_pairs": blocked}]
