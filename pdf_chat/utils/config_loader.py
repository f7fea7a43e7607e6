import os
from pathlib import Path

import yaml


# will return the root directory of the package => pdf_chat
def _package_root() -> Path:
    # parents[1] climbs from pdf_chat/utils/ up to pdf_chat/
    return Path(__file__).resolve().parents[1]


def load_config(config_path: str | None = None) -> dict:

    env_path = os.getenv("CONFIG_PATH", None)

    if config_path is None:
        config_path = env_path or str(_package_root() / "config" / "config.yaml")

    path = Path(config_path)

    if not path.is_absolute():
        path = _package_root().parent / path
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at {path}")
    with open(path, "r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}
