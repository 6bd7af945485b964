# -*- coding: utf-8 -*-
import os, yaml, pandas as pd

DEFAULT_CONFIG = "config.yml"


def load_config(path: str | None = None) -> dict:
    path = path or os.getenv("RCA_CONFIG", DEFAULT_CONFIG)
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def cfg_get(cfg: dict, dotted: str, default=None):
    """cfg_get(cfg, "triage.threshold", 0.3) — безопасный доступ к вложенным секциям."""
    cur = cfg or {}
    for part in dotted.split("."):
        if not isinstance(cur, dict) or part not in cur or cur[part] is None:
            return default
        cur = cur[part]
    return cur


def read_table_smart(path: str) -> pd.DataFrame:
    # TSV как в исходном датасете issues, иначе csv с "," или ";"
    if str(path).lower().endswith(".tsv"):
        return pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False)
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    if len(df.columns) == 1 and ";" in df.columns[0]:
        df = pd.read_csv(path, sep=";", dtype=str, keep_default_na=False)
    return df
