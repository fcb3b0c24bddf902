#!/usr/bin/env python3
"""
Concurrent clone dispatcher.

Consumes a stream of RepoDescriptor values and clones each repository below a
destination directory, either one at a time or on a bounded thread pool.
"""

import logging
import shlex
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, as_completed, wait
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple, Union

from git import Git
from git.exc import CommandError

from .errors import DestinationNotEmptyError
from .models import CloneOutcome, CloneTask, DispatchResult, RepoDescriptor

logger = logging.getLogger(__name__)

CloneRunner = Callable[[CloneTask, Sequence[str]], CloneOutcome]


class GitCloneRunner:
    """Runs ``git clone`` through GitPython's command layer."""

    def __init__(self, timeout: Optional[float] = None, git: Optional[Git] = None):
        """
        Args:
            timeout: Seconds after which a clone is killed, None or 0 for no limit
            git: GitPython command wrapper, mostly useful for tests
        """
        self.timeout = timeout or None
        self.git = git or Git()

    def __call__(self, task: CloneTask, git_args: Sequence[str]) -> CloneOutcome:
        command = ["git", "clone", *git_args, task.source_url, str(task.destination_path)]
        try:
            self.git.execute(command, kill_after_timeout=self.timeout)
        except CommandError as e:
            # GitCommandNotFound carries no exit status
            exit_code = e.status if isinstance(e.status, int) else 1
            error = (e.stderr or str(e)).strip()
            return CloneOutcome(task, success=False, exit_code=exit_code, error=error)
        return CloneOutcome(task, success=True)


class CloneDispatcher:
    """Turns repository descriptors into clone tasks and executes them."""

    def __init__(
        self,
        destination: Union[str, Path],
        flatten: bool = False,
        git_args: Union[str, Sequence[str], None] = "",
        concurrency: int = 1,
        runner: Optional[CloneRunner] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            destination: Directory that receives the clones; must be empty or absent
            flatten: Put every repository directly below ``destination``
                instead of below its namespace path
            git_args: Extra ``git clone`` arguments, as a shell-style string or a list
            concurrency: Number of clones run at once; 1 or less runs them one
                by one and stops at the first failure
            runner: Callable performing one clone, defaults to GitCloneRunner
        """
        self.destination = Path(destination)
        self.flatten = flatten
        if isinstance(git_args, str):
            self.git_args: List[str] = shlex.split(git_args)
        else:
            self.git_args = list(git_args or [])
        self.concurrency = concurrency
        self.runner = runner or GitCloneRunner()

    def build_task(self, descriptor: RepoDescriptor) -> CloneTask:
        """Destination is dest/repo when flattening, else dest/namespace/repo."""
        if self.flatten or not descriptor.namespace_path:
            path = self.destination / descriptor.repo_name
        else:
            path = self.destination.joinpath(*descriptor.namespace_path.split('/'), descriptor.repo_name)
        return CloneTask(source_url=descriptor.clone_url, destination_path=path)

    def prepare_destination(self) -> None:
        """
        Make sure the destination directory exists and is empty.

        Raises:
            DestinationNotEmptyError: The destination already has contents, or
                is an existing file
        """
        if self.destination.exists():
            if not self.destination.is_dir() or any(self.destination.iterdir()):
                raise DestinationNotEmptyError(self.destination)
            return
        self.destination.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Created destination directory {self.destination}")

    def _claim(self, descriptor: RepoDescriptor, claimed: Set[Path]) -> Tuple[CloneTask, Optional[CloneOutcome]]:
        """
        Build the task for ``descriptor`` and reserve its destination.

        A destination already reserved in this run yields a failed outcome
        so no two clones write into the same directory.
        """
        task = self.build_task(descriptor)
        if task.destination_path in claimed:
            error = f"destination {task.destination_path} is already used by another repository"
            logger.error(f"✗ Skipping {task.source_url}: {error}")
            return task, CloneOutcome(task, success=False, exit_code=1, error=error)
        claimed.add(task.destination_path)
        return task, None

    def _run(self, task: CloneTask) -> CloneOutcome:
        try:
            task.destination_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            outcome = CloneOutcome(task, success=False, exit_code=1, error=str(e))
        else:
            logger.debug(f"Cloning {task.source_url} into {task.destination_path}")
            outcome = self.runner(task, self.git_args)

        if outcome.success:
            logger.info(f"✓ Cloned {task.source_url} -> {task.destination_path}")
        else:
            logger.error(
                f"✗ Failed to clone {task.source_url} (exit code {outcome.exit_code}): {outcome.error}"
            )
        return outcome

    def dispatch(self, descriptors: Iterable[RepoDescriptor]) -> DispatchResult:
        """
        Clone every repository of ``descriptors``.

        The destination is checked before anything is cloned. Descriptors are
        consumed lazily, so cloning starts while traversal is still running.

        Args:
            descriptors: Repository stream, typically a collector generator

        Returns:
            DispatchResult with one outcome per attempted clone

        Raises:
            DestinationNotEmptyError: Destination has contents
        """
        self.prepare_destination()
        if self.concurrency <= 1:
            return self._dispatch_sequential(descriptors)
        return self._dispatch_concurrent(descriptors)

    def _dispatch_sequential(self, descriptors: Iterable[RepoDescriptor]) -> DispatchResult:
        result = DispatchResult()
        claimed: Set[Path] = set()
        for descriptor in descriptors:
            task, outcome = self._claim(descriptor, claimed)
            if outcome is None:
                outcome = self._run(task)
            result.outcomes.append(outcome)
            if not outcome.success:
                logger.error("Stopping after the first failed clone")
                result.aborted = True
                break
        return result

    def _dispatch_concurrent(self, descriptors: Iterable[RepoDescriptor]) -> DispatchResult:
        result = DispatchResult()
        in_flight: Set[Future] = set()
        claimed: Set[Path] = set()

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            for descriptor in descriptors:
                task, collision = self._claim(descriptor, claimed)
                if collision is not None:
                    result.outcomes.append(collision)
                    continue
                # Keep at most `concurrency` clones queued or running
                if len(in_flight) >= self.concurrency:
                    done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                    result.outcomes.extend(future.result() for future in done)
                in_flight.add(executor.submit(self._run, task))

            for future in as_completed(in_flight):
                result.outcomes.append(future.result())

        return result
