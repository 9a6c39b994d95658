# lander: Error taxonomy shared by the codec, tools, providers and orchestrator. Messages are user-safe by default;
# callers attach detail only where it cannot leak secrets (the deploy output is redacted before it gets here).

from typing import Optional


class LanderError(Exception):
    """Base class for every error the landing-page pipeline raises on purpose."""

    default_message = "Operation failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ProjectNotFound(LanderError):
    default_message = "Project not found"

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class InvalidProjectId(LanderError):
    default_message = "Project id is not a safe identifier"

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Invalid project id: {project_id!r}")


class NoMatchingSection(LanderError):
    default_message = "None of the supplied sections matched the document"


class NoChangesApplied(LanderError):
    default_message = "No changes applied - no supplied section matched the document"


class UrlExtractionFailed(LanderError):
    default_message = "Failed to extract deployment URL from Netlify response"

    def __init__(self, output: str) -> None:
        self.output = output
        super().__init__()


class DeploymentNotConfigured(LanderError):
    default_message = "NETLIFY_AUTH_TOKEN not configured. Please add it to the environment."


class DeployFailed(LanderError):
    default_message = "Netlify deploy failed"

    def __init__(self, exit_code: int, stderr: str) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Netlify deploy failed with exit code {exit_code}")


class ProviderRequestFailed(LanderError):
    default_message = "Model provider request failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TurnTimeout(LanderError):
    default_message = "Turn exceeded its time budget"


class MalformedToolArguments(LanderError):
    default_message = "Tool arguments are malformed"


class UnknownTool(LanderError):
    default_message = "Unknown tool"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")
