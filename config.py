import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()

# YAML file next to this module unless CONFIG_PATH says otherwise
CONFIG_PATH = os.getenv("CONFIG_PATH", str(Path(__file__).with_name("config.yml")))

cfg: dict = {}
if os.path.exists(CONFIG_PATH):
    with open(CONFIG_PATH, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

# Connections
DB_PATH = os.getenv("DB_PATH", "sqlite+aiosqlite:///db.sqlite3")
DB_ECHO = bool(cfg.get("db_echo", False))

# HTTP listener
HOST = os.getenv("HOST", cfg.get("host", "0.0.0.0"))
PORT = int(os.getenv("PORT", cfg.get("port", 8080)))

# Boards: fixed closed set of single-character codes
BOARDS = frozenset(str(b) for b in cfg.get("boards", ["b", "s", "g", "t"]))

CACHE_SIZE = int(cfg.get("cache_size", 1024))
LOG_LEVEL = os.getenv("LOG_LEVEL", cfg.get("log_level", "INFO")).upper()
