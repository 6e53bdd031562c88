"""Tasks, the task container and execution ordering."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from .errors import BuildError, ConfigurationError, TaskError, UnknownConfigurationError

logger = logging.getLogger(__name__)

TaskAction = Callable[["Task"], None]


@dataclass
class Task:
    """A unit of work in the build.

    ``classpath`` and ``groovy_classpath`` hold configuration names;
    ``results`` is filled by the task actions while the task runs.
    """

    name: str
    type: str = "DefaultTask"
    group: Optional[str] = None
    description: Optional[str] = None
    depends_on: List[str] = field(default_factory=list)
    must_run_after: List[str] = field(default_factory=list)
    should_run_after: List[str] = field(default_factory=list)
    classpath: List[str] = field(default_factory=list)
    groovy_classpath: List[str] = field(default_factory=list)
    test_classes_dirs: List[str] = field(default_factory=list)
    source_dirs: List[str] = field(default_factory=list)
    system_properties: Dict[str, str] = field(default_factory=dict)
    classifier: Optional[str] = None
    actions: List[TaskAction] = field(default_factory=list)
    outcome: Optional[str] = None
    results: Dict[str, object] = field(default_factory=dict)

    def depends(self, *names: str) -> None:
        for name in names:
            if name not in self.depends_on:
                self.depends_on.append(name)

    def run_after(self, *names: str, strict: bool = True) -> None:
        """Order this task after ``names`` when they are scheduled too."""
        target = self.must_run_after if strict else self.should_run_after
        for name in names:
            if name not in target:
                target.append(name)

    def do_last(self, action: TaskAction) -> None:
        self.actions.append(action)


class TaskContainer:
    """Named tasks plus the ordering rules used to execute them.

    ``type_actions`` maps a task type to the action every task of that type
    performs; the build model supplies it.
    """

    def __init__(self, type_actions: Optional[Dict[str, TaskAction]] = None):
        self._tasks: Dict[str, Task] = {}
        self._type_actions = dict(type_actions or {})

    def create(self, name: str, task_type: str = "DefaultTask", **properties) -> Task:
        """Create a task; duplicate names are rejected."""
        if name in self._tasks:
            raise ConfigurationError(f"Task '{name}' already exists")
        task = Task(name=name, type=task_type, **properties)
        default_action = self._type_actions.get(task_type)
        if default_action is not None:
            task.actions.insert(0, default_action)
        self._tasks[name] = task
        logger.debug(
            "Task created",
            extra=extra_context(event="task_created", component="tasks", task=name, action=task_type),
        )
        return task

    def get(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownConfigurationError("Task", name) from None

    __getitem__ = get

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def with_type(self, task_type: str) -> List[Task]:
        return [task for task in self._tasks.values() if task.type == task_type]

    def execution_plan(self, requested: List[str]) -> List[Task]:
        """Order the requested tasks and everything they depend on.

        Dependencies run first (alphabetically among siblings, as the host
        tool does); ``must_run_after`` is honored between scheduled tasks and
        ``should_run_after`` is honored unless it would introduce a cycle.

        Raises:
            UnknownConfigurationError: If a task name does not exist.
            TaskError: On a dependency cycle.
        """
        included: Dict[str, Task] = {}
        pending = list(requested)
        while pending:
            task = self.get(pending.pop())
            if task.name in included:
                continue
            included[task.name] = task
            pending.extend(task.depends_on)

        order: List[Task] = []
        state: Dict[str, str] = {}

        def visit(task: Task, path: List[str]) -> None:
            if state.get(task.name) == "done":
                return
            if state.get(task.name) == "visiting":
                raise TaskError("Circular task dependency: " + " -> ".join(path + [task.name]))
            state[task.name] = "visiting"
            for dependency in sorted(task.depends_on):
                visit(self.get(dependency), path + [task.name])
            for predecessor in task.must_run_after:
                if predecessor in included:
                    visit(included[predecessor], path + [task.name])
            for predecessor in task.should_run_after:
                if predecessor in included and state.get(predecessor) != "visiting":
                    visit(included[predecessor], path + [task.name])
            state[task.name] = "done"
            order.append(task)

        for name in requested:
            visit(included[name], [])
        return order

    def run(self, requested: List[str]) -> List[Task]:
        """Execute the plan for ``requested``; the first failure stops the run."""
        plan = self.execution_plan(requested)
        logger.info("Executing tasks: %s", ", ".join(task.name for task in plan))
        for task in plan:
            with Timer() as timer:
                try:
                    for action in task.actions:
                        action(task)
                except BuildError:
                    task.outcome = "FAILED"
                    raise
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    task.outcome = "FAILED"
                    raise TaskError(f"Execution failed for task '{task.name}': {exc}") from exc
            task.outcome = "SUCCESS" if task.actions else "UP-TO-DATE"
            if is_debug_enabled(logger):
                logger.debug(
                    "Task finished",
                    extra=extra_context(
                        event="task_finished",
                        component="tasks",
                        task=task.name,
                        outcome=task.outcome,
                        duration_ms=timer.duration_ms(),
                    ),
                )
        return plan
