DEFAULTS = {
    "threads": 3,
    "step_limit": None,
    "progress_every": 5_000_000,
    "progress_milestones": (10_000, 100_000, 1_000_000),
    "log_level": "INFO",
}
