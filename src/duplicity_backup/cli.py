from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .config import CoreConfig, load_config
from .errors import ConfigurationError, DuplicityError
from .executor import SubprocessExecutor
from .logger import configure_logging
from .orchestrator import BackupOrchestrator
from .results import VerifyOutcome
from .version import VersionGate

DEFAULT_CONFIG_PATH = "/etc/duplicity-backup/config.yaml"

VERIFY_EXIT_CODES = {
    VerifyOutcome.NO_CHANGES: 0,
    VerifyOutcome.IS_CHANGED: 1,
    VerifyOutcome.CORRUPT_DATA: 3,
    VerifyOutcome.NO_BACKUP_FOUND: 4,
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Duplicity backup orchestrator CLI.")
    parser.add_argument(
        "--config",
        default=os.getenv("DUPLICITY_BACKUP_CONFIG", DEFAULT_CONFIG_PATH),
        help="Path to configuration YAML file.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Log level (default INFO).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list-jobs", help="List jobs defined in the configuration.")
    commands.add_parser("version", help="Print the installed duplicity version.")

    run = commands.add_parser("run", help="Run backup jobs.")
    run.add_argument(
        "--job",
        action="append",
        help="Specific job name to run (can be specified multiple times). Runs all jobs when omitted.",
    )
    run.add_argument("--full", action="store_true", default=None, help="Force a full backup.")

    verify = commands.add_parser("verify", help="Verify the latest backup of a job.")
    verify.add_argument("--job", required=True)
    verify.add_argument(
        "--no-compare-data",
        dest="compare_data",
        action="store_false",
        default=None,
        help="Skip comparing file data with the source.",
    )

    listing = commands.add_parser("list", help="List the backups of a job.")
    listing.add_argument("--job", required=True)

    restore = commands.add_parser("restore", help="Restore a job's backup into an empty directory.")
    restore.add_argument("--job", required=True)
    restore.add_argument("--time", required=True, type=datetime.fromisoformat, help="ISO 8601 restore time.")
    restore.add_argument("--target", required=True, type=Path, help="Empty directory to restore into.")
    return parser.parse_args(argv)


def load_configuration(path: Path) -> CoreConfig:
    try:
        return load_config(path)
    except ConfigurationError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc


def list_jobs(config: CoreConfig) -> None:
    for job in config.jobs:
        print(job.name)


def run_jobs(orchestrator: BackupOrchestrator, job_names: Optional[List[str]], full: Optional[bool]) -> int:
    results = orchestrator.run(job_names, full=full)
    success = True

    for result in results:
        if result.success:
            logging.info(
                "Job %s succeeded in %.2fs",
                result.job_name,
                (result.completed_at - result.started_at).total_seconds(),
            )
        else:
            success = False
            logging.error("Job %s failed: %s", result.job_name, "; ".join(result.errors))

    return 0 if success else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    config = load_configuration(Path(args.config).expanduser())
    if args.command == "list-jobs":
        list_jobs(config)
        return 0

    orchestrator = BackupOrchestrator(config=config)
    try:
        return _dispatch(args, config, orchestrator)
    except (ConfigurationError, DuplicityError) as exc:
        logging.error("%s", exc)
        return 2


def _dispatch(args: argparse.Namespace, config: CoreConfig, orchestrator: BackupOrchestrator) -> int:
    if args.command == "version":
        executor = SubprocessExecutor(binary=config.binary, timeout=config.timeout_seconds)
        print(VersionGate(executor).get_version())
        return 0

    if args.command == "run":
        return run_jobs(orchestrator, args.job, args.full)

    if args.command == "verify":
        outcome = orchestrator.verify(args.job, compare_data=args.compare_data)
        logging.info("Verification of %s: %s", args.job, outcome.value)
        return VERIFY_EXIT_CODES[outcome]

    if args.command == "list":
        for entry in orchestrator.list_backups(args.job):
            print(f"{entry.kind.value}\t{entry.timestamp.isoformat()}")
        return 0

    result = orchestrator.restore(args.job, args.time, args.target)
    if not result.ok:
        logging.error("Restore of %s exited with code %s", args.job, result.exit_code)
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
