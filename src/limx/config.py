# -----------------------------------------------------------------------------
# Configuration
# Purpose:
#   Fixed numeric tolerances used by every probe, plus runtime settings loaded
#   from the environment (.env supported via python-dotenv).
# -----------------------------------------------------------------------------

from __future__ import annotations
import os
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Values below this magnitude count as zero; above LARGE as infinite
ZERO_TOL = 1e-10
LARGE = 1e10
# Two probes closer than this are considered converged
CONVERGENCE_TOL = 1e-6
LATERAL_DELTA = 1e-4
# Stand-in for ±∞ when a single evaluation "at infinity" is needed
INFINITY_SURROGATE = 1e10

# One-sided limits further apart than this are a jump
JUMP_TOL = 1e-4

# Step sizes for one-sided numeric probing at a finite point
FALLBACK_STEPS = tuple(10.0 ** -k for k in range(1, 9))
# Magnitudes used when walking toward ±∞
INFINITY_PROBES = tuple(10.0 ** k for k in range(1, 9))
# Magnitudes used to judge growth/decay at ±∞
TENDENCY_PROBES = (1e4, 1e7, INFINITY_SURROGATE)
# Decades used to recognize slow unbounded growth (log x) at ±∞
GROWTH_PROBES = tuple(10.0 ** k for k in range(4, 11))
# Successive gaps may shrink by at most this factor and still count as steady
GAP_RATIO = 0.999

# Large values at a finite point count as finite when neighbours agree within
# CONTINUITY_TOL (relative), sampled CONTINUITY_STEP away (relative to |a|)
CONTINUITY_STEP = 1e-7
CONTINUITY_TOL = 1e-3

LHOPITAL_MAX_ITERATIONS = 3
LHOPITAL_CONVERGING_MAX_ITERATIONS = 5

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "data", "fundamental_limits.yaml")
DEFAULT_EXAMPLES_PATH = os.path.join(os.path.dirname(__file__), "data", "examples.yaml")


class Settings(BaseModel):
    log_level: str = "INFO"
    log_json: bool = False
    lhopital_max_iterations: int = Field(default=LHOPITAL_MAX_ITERATIONS, ge=1)
    catalog_path: str = DEFAULT_CATALOG_PATH
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @staticmethod
    def from_env() -> "Settings":
        """Build settings from LIMX_* and API_HOST/API_PORT environment variables (after loading .env)."""
        load_dotenv()
        return Settings(
            log_level=os.getenv("LIMX_LOG_LEVEL", "INFO"),
            log_json=os.getenv("LIMX_LOG_JSON", "false").strip().lower() in ("1", "true", "yes"),
            lhopital_max_iterations=int(os.getenv("LIMX_LHOPITAL_MAX_ITERATIONS", str(LHOPITAL_MAX_ITERATIONS))),
            catalog_path=os.getenv("LIMX_CATALOG_PATH", DEFAULT_CATALOG_PATH),
            api_host=os.getenv("API_HOST", "127.0.0.1"),
            api_port=int(os.getenv("API_PORT", "8000")),
        )
