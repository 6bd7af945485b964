# -*- coding: utf-8 -*-
"""
Разметка новых issues областями (area).

    python -m src.label_issues --issues data/new-issues.tsv --report_csv reports/area_triage.csv
"""
import argparse, os, sys

import structlog
import yaml

from .logging_conf import setup_logging
from .classifier import JoblibClassifier
from .errors import LabelerError
from .reporting import CsvReporter, LogReporter, MultiReporter
from .sources import issue_source_from_config
from .triage import TriageOrchestrator, TriageSettings
from .utils import load_config, cfg_get

logger = structlog.get_logger(__name__)


def build_parser():
    ap = argparse.ArgumentParser(description="Label new issues with top-K areas")
    ap.add_argument("--config", type=str, default=os.getenv("RCA_CONFIG", "config.yml"))
    ap.add_argument("--model", type=str, default=None, help="путь к joblib-бандлу (иначе model.path)")
    ap.add_argument("--issues", type=str, default=None, help="TSV/CSV с issues (иначе data.issues_path или issue из конфига)")
    ap.add_argument("--threshold", type=float, default=None, help="порог рекомендации, по умолчанию 0.30")
    ap.add_argument("--top_k", type=int, default=None)
    ap.add_argument("--skip_errors", type=int, default=0, help="1 = не падать на ошибке одной issue")
    ap.add_argument("--report_csv", type=str, default=None)
    ap.add_argument("--diagnose", type=int, default=0, help="1 = сначала прогнать демо-issue")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        cfg = load_config(args.config) if os.path.exists(args.config) else {}
        base = TriageSettings.from_config(cfg)
        settings = TriageSettings(
            top_k=args.top_k if args.top_k is not None else base.top_k,
            threshold=args.threshold if args.threshold is not None else base.threshold,
            on_error="skip" if args.skip_errors else base.on_error,
        )
        model_path = args.model or cfg_get(cfg, "model.path", "models/area.joblib")
        csv_reporter = CsvReporter(args.report_csv) if args.report_csv else None
        orch = TriageOrchestrator(
            JoblibClassifier.load(model_path),
            settings,
            MultiReporter(LogReporter(), csv_reporter),
        )

        if args.diagnose:
            orch.diagnose()

        entries = orch.run(issue_source_from_config(cfg, args.issues))
        if csv_reporter is not None:
            csv_reporter.close()
    except (LabelerError, yaml.YAMLError, FileNotFoundError, RuntimeError) as e:
        logger.error("label_issues_failed", error=str(e), kind=type(e).__name__)
        return 1

    rec = sum(1 for e in entries if e.recommended)
    print(f"[label] recommended={rec} total={len(entries)} threshold={settings.threshold:.2f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
