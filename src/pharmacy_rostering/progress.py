from ortools.sat.python import cp_model


class MinimalProgress(cp_model.CpSolverSolutionCallback):
    """
    Solution callback that records (wall_time, objective, bound) for every
    improving solution and, when verbose, prints a progress line at most
    every `log_every_sec` seconds.
    """

    def __init__(
        self, time_limit_sec: float, log_every_sec: float = 5.0, verbose: bool = True
    ):
        super().__init__()
        self.time_limit = (
            float(time_limit_sec) if time_limit_sec and time_limit_sec > 0 else None
        )
        self.log_every = float(log_every_sec)
        self.verbose = verbose
        self.last_time = -1.0
        self.sols = 0
        self._best_field_width = 0
        self.history: list[tuple[float, float, float]] = []

        self.has_performed_initial_print = False

    def on_solution_callback(self):
        self.sols += 1
        now = self.wall_time
        best = self.objective_value
        bound = self.best_objective_bound
        self.history.append((now, best, bound))

        if not self.verbose:
            return
        if not self.has_performed_initial_print:
            print(
                "\nbest: total penalty of the best schedule found so far "
                "(each unfilled shift costs a large fixed amount)\n"
                "bound: lowest total penalty the solver has not ruled out\n"
            )
            self.has_performed_initial_print = True

        if self.last_time < 0 or (now - self.last_time) >= self.log_every:
            best_str = f"{best:,.0f}"
            self._best_field_width = max(self._best_field_width, len(best_str))
            best_field = best_str.ljust(self._best_field_width)

            if self.time_limit:
                pct_val = min(100.0, 100.0 * now / self.time_limit)
                pct_field = f"{pct_val:6.2f}%"
            else:
                pct_field = "  n/a "
            print(
                f"[{now:5.1f}s] pct of time limit={pct_field} | best={best_field} | "
                f"bound={bound:,.0f} | sols={self.sols:<5.0f}",
                flush=True,
            )
            self.last_time = now

    def solution_history(self) -> list[tuple[float, float, float]]:
        """Return collected (wall_time, best_obj, best_bound) tuples."""
        return list(self.history)
