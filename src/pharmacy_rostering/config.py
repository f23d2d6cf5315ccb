from dataclasses import dataclass
from typing import Literal

Strategy = Literal["cpsat", "greedy"]


@dataclass
class Config:

    ### ENGINE ###

    # "cpsat" optimises with OR-Tools (greedy result as hint and fallback),
    # "greedy" runs the reference heuristic only
    STRATEGY: Strategy = "cpsat"

    ### OPENING HOURS ###

    # Used for every weekday when a request carries no pharmacyHours at all
    DEFAULT_OPEN_TIME: str = "09:00"
    DEFAULT_CLOSE_TIME: str = "18:00"

    ### SHIFT SHAPE ###

    # Lunch is only carved out of shifts at least this long
    LUNCH_MIN_SHIFT_HOURS: float = 5.0

    ### SOFT PENALTIES ###

    # Cost of leaving one unit slot unfilled; must dominate fairness terms
    UNFILLED_PENALTY: int = 10_000

    # Deviation from target hours (either side) tolerated before a fairness warning
    FAIRNESS_TOLERANCE_HOURS: float = 4.0

    # A role is "overstaffed" when available > required + OVERSTAFF_MARGIN
    OVERSTAFF_MARGIN: int = 1

    ### SOLVER SETUP ###

    # Wall-clock safety net only. Keep it well above DETERMINISTIC_TIME_LIMIT:
    # if it fires first the result depends on machine speed and load
    TIME_LIMIT_SEC: float = 120.0
    DETERMINISTIC_TIME_LIMIT: float = 5.0
    NUM_PARALLEL_WORKERS: int = 1
    LOG_SOLUTIONS_FREQUENCY_SECONDS: float = 5.0

    # RANDOM SEED
    SEED: int = 0

    # Print precheck, progress and summary lines
    VERBOSE: bool = False

    def validate(self):
        """
        Validate the Config object has sensible values before solving.
        """
        if self.STRATEGY not in ("cpsat", "greedy"):
            raise ValueError("STRATEGY must be 'cpsat' or 'greedy'.")
        for attr in ("DEFAULT_OPEN_TIME", "DEFAULT_CLOSE_TIME"):
            val = getattr(self, attr)
            parts = val.split(":") if isinstance(val, str) else []
            if len(parts) < 2 or not all(p.isdigit() for p in parts):
                raise ValueError(f"{attr} must look like 'HH:MM'.")
        if self.LUNCH_MIN_SHIFT_HOURS < 0:
            raise ValueError("LUNCH_MIN_SHIFT_HOURS must be non-negative.")
        if self.UNFILLED_PENALTY <= 0:
            raise ValueError("UNFILLED_PENALTY must be > 0.")
        if self.FAIRNESS_TOLERANCE_HOURS < 0:
            raise ValueError("FAIRNESS_TOLERANCE_HOURS must be non-negative.")
        if self.OVERSTAFF_MARGIN < 0:
            raise ValueError("OVERSTAFF_MARGIN must be non-negative.")
        if self.TIME_LIMIT_SEC <= 0.0:
            raise ValueError("TIME_LIMIT_SEC must be > 0.")
        if self.DETERMINISTIC_TIME_LIMIT <= 0.0:
            raise ValueError("DETERMINISTIC_TIME_LIMIT must be > 0.")
        if self.TIME_LIMIT_SEC < self.DETERMINISTIC_TIME_LIMIT:
            raise ValueError(
                "TIME_LIMIT_SEC must be >= DETERMINISTIC_TIME_LIMIT so the "
                "deterministic limit ends the search."
            )
        if self.NUM_PARALLEL_WORKERS <= 0:
            raise ValueError("NUM_PARALLEL_WORKERS must be > 0.")


cfg = Config()
