"""Console and log format selection for the report CLI."""

import os
from enum import Enum
from typing import Literal


class OutputFormat(str, Enum):
    """How the summary is printed to the console."""
    AUTO = "auto"
    RICH = "rich"
    PLAIN = "plain"
    JSON = "json"


LogFormat = Literal["json", "console", "plain"]

ENV_VAR_NAME = "CONSOLE_OUTPUT_FORMAT"

CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "JENKINS_HOME", "GITLAB_CI", "TRAVIS")


def is_ci() -> bool:
    return any(name in os.environ for name in CI_ENV_VARS)


def get_output_format(cli_override: str | None = None) -> OutputFormat:
    """
    Get the output format with priority: CLI parameter > Environment variable > Default (auto).

    Unknown values at either level are ignored rather than rejected.
    """
    for candidate in (cli_override, os.environ.get(ENV_VAR_NAME)):
        if not candidate:
            continue
        try:
            return OutputFormat(candidate.lower())
        except ValueError:
            continue
    return OutputFormat.AUTO


def get_log_format(output_format: OutputFormat) -> LogFormat:
    """
    Map the console output format to a log renderer:

    - json -> json
    - plain -> plain (no colors)
    - rich -> console
    - auto -> console, or plain when running in CI
    """
    if output_format == OutputFormat.JSON:
        return "json"
    if output_format == OutputFormat.PLAIN:
        return "plain"
    if output_format == OutputFormat.AUTO and is_ci():
        return "plain"
    return "console"
