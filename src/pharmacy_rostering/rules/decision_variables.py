from pharmacy_rostering.rules.base import Rule


class VariablesRule(Rule):
    """Define decision variables"""

    order = 0
    name = "Variables"

    def declare_vars(self):
        ctx = self.model
        m = ctx.m
        # Assignment: staff e works unit slot s (role-matching pairs only)
        ctx.x = {
            (e, s): m.new_bool_var(f"x_e{e}_s{s}")
            for s, slot in enumerate(ctx.slots)
            for e, member in enumerate(ctx.staff)
            if member.role is slot.role
        }
        # Slot left unfilled
        ctx.u = {s: m.new_bool_var(f"u_s{s}") for s in range(len(ctx.slots))}
        # Day on/off
        ctx.z = {
            (e, d): m.new_bool_var(f"z_e{e}_d{d}")
            for e in range(len(ctx.staff))
            for d in range(ctx.period_days)
        }
