"""Source directory layout of a shared library repository.

Shared libraries keep Groovy sources in ``src`` and global variables in
``vars`` at the repository root, with unit and integration tests under
``test/``.
"""

from __future__ import annotations

import logging
import os
from typing import Tuple

from buildmodel.api import Build
from buildmodel.models import SourceSet
from buildmodel.tasks import Task
from constants import Constants

logger = logging.getLogger(__name__)

INTEGRATION_TEST = "integrationTest"
GENERATE_RETRIEVER_TASK = "generateLocalLibraryRetriever"


def generated_integration_sources(build: Build) -> str:
    return os.path.join(build.build_dir, Constants.GENERATED_INTEGRATION_SOURCES)


def _ensure_generated_dir(task: Task) -> None:
    target = task.source_dirs[0]
    os.makedirs(target, exist_ok=True)
    task.results["generated_dir"] = target


def setup_source_sets(build: Build) -> Tuple[SourceSet, SourceSet, SourceSet]:
    """Remap ``main`` and ``test`` and create ``integrationTest``.

    Returns:
        The ``(main, test, integrationTest)`` source sets.
    """
    build.set_java_compatibility(Constants.JAVA_COMPATIBILITY, Constants.JAVA_COMPATIBILITY)

    main = build.source_set("main")
    main.java.set_src_dirs([])
    main.groovy.set_src_dirs(["src", "vars"])
    main.resources.set_src_dirs(["resources"])

    unit = f"{Constants.TEST_ROOT_PATH}/unit"
    test = build.source_set("test")
    test.java.set_src_dirs([f"{unit}/java"])
    test.groovy.set_src_dirs([f"{unit}/groovy"])
    test.resources.set_src_dirs([f"{unit}/resources"])

    generated = generated_integration_sources(build)
    integration = f"{Constants.TEST_ROOT_PATH}/integration"
    integration_test = build.create_source_set(INTEGRATION_TEST)
    integration_test.java.set_src_dirs([f"{integration}/java"])
    integration_test.groovy.set_src_dirs([f"{integration}/groovy", generated])
    integration_test.resources.set_src_dirs([f"{integration}/resources"])

    # Writing the retriever source is out of scope; the task only prepares its directory
    generate = build.tasks.create(
        GENERATE_RETRIEVER_TASK,
        description="Generates a LibraryRetriever implementation for easier writing of integration tests",
        source_dirs=[generated],
    )
    generate.do_last(_ensure_generated_dir)
    build.tasks.get(integration_test.compile_task_name("groovy")).depends(GENERATE_RETRIEVER_TASK)

    logger.debug("Source sets configured: %s", ", ".join(s.name for s in (main, test, integration_test)))
    return main, test, integration_test
