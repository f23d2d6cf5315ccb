from .config import Config, cfg
from .input_data import GenerationRequest, RequestError, build_request
from .main import generate_schedule, run_solver

__all__ = [
    "Config",
    "cfg",
    "GenerationRequest",
    "RequestError",
    "build_request",
    "generate_schedule",
    "run_solver",
]
