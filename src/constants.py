"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    RESOLUTION_ERROR = 4
    CONFIGURATION_ERROR = 5


class ArtifactExtensions(Enum):
    """Artifact extensions the plugin cascade knows about.

    Args:
        Enum (string): File extension of a resolved artifact.
    """

    HPI = "hpi"
    JPI = "jpi"
    JAR = "jar"
    WAR = "war"
    POM = "pom"


class DefaultVersions(Enum):
    """Default versions for the shared library extension.

    Args:
        Enum (string): Default version strings.
    """

    PIPELINE_UNIT = "1.1"
    GROOVY = "2.4.11"
    CORE = "2.89.2"
    TEST_HARNESS = "2.33"
    WORKFLOW_API_PLUGIN = "2.24"
    WORKFLOW_BASIC_STEPS_PLUGIN = "2.6"
    WORKFLOW_CPS_PLUGIN = "2.42"
    WORKFLOW_DURABLE_TASK_STEP_PLUGIN = "2.17"
    WORKFLOW_GLOBAL_CPS_LIBRARY_PLUGIN = "2.9"
    WORKFLOW_JOB_PLUGIN = "2.16"
    WORKFLOW_MULTIBRANCH_PLUGIN = "2.16"
    WORKFLOW_STEP_API_PLUGIN = "2.14"
    WORKFLOW_SCM_STEP_PLUGIN = "2.6"
    WORKFLOW_SUPPORT_PLUGIN = "2.16"


class ConfigurationNames:  # pylint: disable=too-few-public-methods
    """Names of the dependency configurations declared by the plugin."""

    # Seed configuration, resolved first to find the plugin artifacts
    JENKINS_PLUGINS = "jenkinsPlugins"

    UNIT_TESTING_LIBRARIES = "jenkinsPipelineUnitTestLibraries"
    PLUGIN_HPIS_AND_JPIS = "jenkinsPluginHpisAndJpis"
    PLUGIN_LIBRARIES = "jenkinsPluginLibraries"
    CORE_LIBRARIES = "jenkinsCoreLibraries"
    TEST_LIBRARIES = "jenkinsTestLibraries"
    TEST_LIBRARIES_RUNTIME_ONLY = "jenkinsTestLibrariesRuntimeOnly"
    MAIN_COMPILE_ONLY_LIBRARIES = "jenkinsLibrariesMainCompileOnly"
    GROOVY = "sharedLibraryGroovy"
    IVY = "globalLibraryIvy"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    JENKINS_REPOSITORY_NAME = "JenkinsPublic"
    JENKINS_REPOSITORY_URL = "https://repo.jenkins-ci.org/public/"
    TEST_ROOT_PATH = "test"
    GENERATED_INTEGRATION_SOURCES = "generated-src/integrationTest"
    JAVA_COMPATIBILITY = "1.8"

    IVY_COORDINATES = "org.apache.ivy:ivy:2.4.0"
    GROOVY_CPS_GROUP = "com.cloudbees"
    GROOVY_CPS_MODULE = "groovy-cps"
    PIPELINE_UNIT_GROUP = "com.lesfurets"
    PIPELINE_UNIT_MODULE = "jenkins-pipeline-unit"

    PLUGIN_ARCHIVE_EXTENSIONS = frozenset(
        [ArtifactExtensions.HPI.value, ArtifactExtensions.JPI.value]
    )
    LIBRARY_EXTENSION = ArtifactExtensions.JAR.value
    POM_EXTENSION = ArtifactExtensions.POM.value
    WAR_EXTENSION = ArtifactExtensions.WAR.value

    VERIFICATION_GROUP = "verification"
    DOCUMENTATION_GROUP = "documentation"
    BUILD_GROUP = "build"
    CHECK_TASK_NAME = "check"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "SHAREDLIB_LOG_LEVEL"
    ENV_PREFIX = "SHAREDLIB_"
    CONFIG_SECTION = "sharedLibrary"
    OUTPUT_FORMATS = ["json", "csv"]
    COMMANDS = ["configurations", "resolve", "tasks", "run"]

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    DEFAULT_CACHE_DIR = "~/.cache/jenkins-sharedlib"
