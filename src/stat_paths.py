from pathlib import Path
import os

DATA_DIR = Path(os.getenv("FORT_DATA_DIR", ".")).resolve()


def data_path(name: str) -> Path:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR / name
