DEFAULT_CONFIG = {
    # -----------------------------
    # QUALITY SCORE WEIGHTS
    # -----------------------------
    # Must be non-negative; rescaled (with a warning) if they
    # do not sum to 1.0 within 0.01.
    "weights": {
        "mortality": 0.30,
        "readmission": 0.25,
        "infection": 0.25,
        "patient_exp": 0.20,
    },

    # -----------------------------
    # CLUSTERING
    # -----------------------------
    "clustering": {
        "k": 4,              # int >= 2 or "auto" (silhouette recommendation)
        "max_k": 10,
        "n_init": 25,
        "max_iter": 100,
    },

    # -----------------------------
    # REPRODUCIBILITY
    # -----------------------------
    "seed": 123,

    # -----------------------------
    # UPSTREAM CLEANING
    # -----------------------------
    "cleaning": {
        "outlier_multiplier": 3.0,
        "impute_method": "median",   # median | mean
    },

    # -----------------------------
    # AGGREGATION
    # -----------------------------
    "aggregation": {
        "top_n": 10,
    },

    # -----------------------------
    # OUTPUT CONTROL
    # -----------------------------
    "report": {
        "precision": 2,      # display rounding, applied at write time only
        "plots": False,
    },

    "output_dir": "runs",
}
