from __future__ import annotations

import os


class Settings:
    # Where tollgate_config.yaml is looked up
    REPO_ROOT: str = os.getenv("TOLLGATE_REPO_ROOT", ".")

    # Default for the CLI's --data-dir; empty means "use persistence.data_dir"
    DATA_DIR: str = os.getenv("TOLLGATE_DATA_DIR", "")


settings = Settings()
