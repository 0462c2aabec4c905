"""Centralized configuration for gpnls.

This module defines the default values used by the genetic programming
engine, the nonlinear least-squares adapter and the experiment driver.

Configuration can be overridden via:
- CLI flags (see cli/app.py)
- Environment variables (prefixed with GPNLS_)
- Explicit ``GPConfig`` arguments
"""

import os

VERSION = "1.0.0"

# Tree shape limits
GP_MIN_DEPTH = int(os.getenv("GPNLS_MIN_DEPTH", "1"))
GP_MAX_DEPTH = int(os.getenv("GPNLS_MAX_DEPTH", "5"))
GP_MAX_SIZE = int(
    os.getenv("GPNLS_MAX_SIZE", "25")
)  # true number of nodes (weighted variables count as 3)

# Evolutionary loop
GP_POP_SIZE = int(os.getenv("GPNLS_POP_SIZE", "50"))
GP_GENERATIONS = int(os.getenv("GPNLS_GENERATIONS", "50"))
GP_MUTATION_RATE = float(os.getenv("GPNLS_MUTATION_RATE", "0.25"))
GP_INIT_METHOD = os.getenv("GPNLS_INIT_METHOD", "PTC2")  # grow, full, ramped, PTC2

# Nonlinear least squares
NLS_MAX_ITER = int(
    os.getenv("GPNLS_NLS_MAX_ITER", "7")
)  # hard cap on residual evaluations per fit

# Parallelism (thread workers for per-individual work)
N_JOBS = int(os.getenv("GPNLS_N_JOBS", "1"))

# Experiment driver
TRAIN_SIZE = float(os.getenv("GPNLS_TRAIN_SIZE", "0.7"))
REPETITIONS = int(os.getenv("GPNLS_REPETITIONS", "30"))

LOG_LEVEL = os.getenv("GPNLS_LOG_LEVEL", "WARNING")
