"""
Process execution seam

Everything that shells out to `claude` or `docker` goes through a
ProcessRunner so tests can substitute a scripted fake.
"""

import abc
import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Captured result of one external command"""

    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(abc.ABC):
    """Runs an argv and captures its output"""

    @abc.abstractmethod
    def run(self, argv: Sequence[str], timeout: Optional[float] = None) -> ProcessResult:
        """Run argv to completion. Never raises for a non-zero exit."""
        pass


class SubprocessRunner(ProcessRunner):
    """ProcessRunner backed by subprocess.run"""

    def run(self, argv: Sequence[str], timeout: Optional[float] = None) -> ProcessResult:
        logger.debug(f"Running: {' '.join(argv)}")
        try:
            completed = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                check=False,
                timeout=timeout,
            )
        except FileNotFoundError:
            return ProcessResult(stderr=f"{argv[0]}: command not found", returncode=127)
        except subprocess.TimeoutExpired:
            return ProcessResult(stderr=f"{argv[0]}: timed out after {timeout}s", returncode=124)

        if completed.returncode != 0:
            logger.debug(f"Exit {completed.returncode}: {completed.stderr.strip()}")
        return ProcessResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            returncode=completed.returncode,
        )
