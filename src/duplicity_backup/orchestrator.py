from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .config import CoreConfig, JobConfig
from .errors import ConfigurationError, DuplicityError
from .executor import SubprocessExecutor
from .results import BackupEntry, OperationResult, VerifyOutcome
from .tool import Duplicity, RestoreTime

LOG = logging.getLogger(__name__)

ToolFactory = Callable[[CoreConfig, JobConfig], Duplicity]


@dataclass
class JobResult:
    job_name: str
    status: str
    started_at: datetime
    completed_at: datetime
    errors: List[str] = field(default_factory=list)
    verify_outcome: Optional[VerifyOutcome] = None

    @property
    def success(self) -> bool:
        return self.status == "success"


def create_tool(config: CoreConfig, job: JobConfig) -> Duplicity:
    executor = SubprocessExecutor(binary=config.binary, timeout=config.timeout_seconds)
    return Duplicity(job.source, job.destination, executor=executor)


class BackupOrchestrator:
    """Runs configured duplicity jobs and the single-job operations behind the CLI."""

    def __init__(self, config: CoreConfig, tool_factory: Optional[ToolFactory] = None) -> None:
        self._config = config
        self._tool_factory = tool_factory or create_tool

    def run(self, job_names: Optional[Sequence[str]] = None, full: Optional[bool] = None) -> List[JobResult]:
        results: List[JobResult] = []
        for job in self._select_jobs(job_names):
            results.append(self._run_job(job, full))
        return results

    def verify(self, job_name: str, compare_data: Optional[bool] = None) -> VerifyOutcome:
        job = self._config.get_job(job_name)
        tool = self.tool_for(job)
        return tool.verify(job.compare_data if compare_data is None else compare_data)

    def list_backups(self, job_name: str) -> List[BackupEntry]:
        return self.tool_for(self._config.get_job(job_name)).get_all_backups()

    def restore(self, job_name: str, time: RestoreTime, directory: Path) -> OperationResult:
        return self.tool_for(self._config.get_job(job_name)).restore(time, directory)

    def tool_for(self, job: JobConfig) -> Duplicity:
        tool = self._tool_factory(self._config, job)
        if job.passphrase is not None:
            passphrase = job.passphrase.resolve()
            if not passphrase:
                raise ConfigurationError(f"Passphrase for job '{job.name}' could not be resolved.")
            tool.set_passphrase(passphrase)
        if job.exclude:
            tool.set_excluded_subdirectories(job.exclude)
        for name, enabled in job.options.items():
            tool.set_option(name, enabled)
        return tool

    def _run_job(self, job: JobConfig, full: Optional[bool]) -> JobResult:
        started_at = datetime.now(timezone.utc)
        errors: List[str] = []
        outcome: Optional[VerifyOutcome] = None

        try:
            tool = self.tool_for(job)
            result = tool.execute(job.full if full is None else full)
            if not result.ok:
                errors.append(f"Backup exited with code {result.exit_code}")
            elif job.verify_after:
                outcome = tool.verify(job.compare_data)
                if outcome is not VerifyOutcome.NO_CHANGES:
                    errors.append(f"Verification reported {outcome.value}")
        except DuplicityError as exc:
            errors.append(str(exc))

        status = "failed" if errors else "success"
        if errors:
            LOG.error("Job %s failed: %s", job.name, "; ".join(errors))
        else:
            LOG.info("Job %s succeeded", job.name)
        return JobResult(
            job_name=job.name,
            status=status,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            errors=errors,
            verify_outcome=outcome,
        )

    def _select_jobs(self, job_names: Optional[Sequence[str]]) -> Iterable[JobConfig]:
        if job_names:
            name_set = set(job_names)
            missing = name_set - {job.name for job in self._config.jobs}
            if missing:
                missing_str = ", ".join(sorted(missing))
                raise ConfigurationError(f"Unknown job(s) requested: {missing_str}")
            return [job for job in self._config.jobs if job.name in name_set]
        return list(self._config.jobs)
