# lander: Reflective tool registry plus the four landing-page tools. Parameter schemas are derived from the
# function signatures; param_overrides carries descriptions and the camelCase wire name of each parameter.

import inspect
import pathlib
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, get_type_hints

from . import document
from .context import Context
from .deploy import deploy_directory, extract_deploy_url
from .errors import (
    DeploymentNotConfigured,
    MalformedToolArguments,
    NoChangesApplied,
    NoMatchingSection,
    ProjectNotFound,
    UrlExtractionFailed,
)
from .storage import INDEX_FILE, ProjectStore


@dataclass
class ToolContext:
    """Everything a tool may touch: the project store, deploy settings and the logging context."""
    store: ProjectStore
    ctx: Context
    netlify_auth_token: Optional[str] = None
    netlify_bin: str = "netlify"
    deploy_timeout: float = 60.0
    preview_prefix: str = "/preview"


@dataclass
class ToolSpec:
    name: str
    description: str
    fn: Callable
    schema: Dict[str, Any]
    # python parameter name -> wire name
    wire_names: Dict[str, str]
    human_message: str
    icon: str
    mutates_document: bool


# -----------------------------
# Reflection utilities and registry
# -----------------------------

_REGISTRY: Dict[str, ToolSpec] = {}

_type_map = {
    str: {"type": "string"},
    int: {"type": "integer"},
    bool: {"type": "boolean"},
    float: {"type": "number"},
}


def _unwrap_optional(ann: Any) -> Any:
    """Return T for Optional[T], otherwise ann unchanged."""
    if typing.get_origin(ann) is typing.Union:
        args = [a for a in typing.get_args(ann) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return ann


def _json_schema_for_annotation(ann: Any) -> Dict[str, Any]:
    """Map a Python annotation to a simple JSON Schema snippet."""
    return dict(_type_map.get(_unwrap_optional(ann), {"type": "string"}))


def _build_parameters_schema(fn: Callable, overrides: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    sig = inspect.signature(fn)
    hints = get_type_hints(fn)
    props: Dict[str, Any] = {}
    required: List[str] = []
    # Skip first arg (tool context)
    for p in list(sig.parameters.values())[1:]:
        ov = dict(overrides.get(p.name) or {})
        wire = ov.pop("name", p.name)
        schema = _json_schema_for_annotation(hints.get(p.name, str))
        schema.update({k: v for k, v in ov.items() if v is not None})
        props[wire] = schema
        if p.default is inspect.Parameter.empty:
            required.append(wire)
    return {"type": "object", "properties": props, "required": required}


def tool(
    name: str,
    description: str,
    *,
    human_message: str,
    icon: str = "🔧",
    mutates_document: bool = False,
    param_overrides: Optional[Dict[str, Dict[str, Any]]] = None,
):
    """Decorator to register a function as a tool with a reflective schema.

    lander: param_overrides allows per-parameter JSON Schema fields like description, plus "name" to rename the
    parameter on the wire (project_id -> projectId).
    """
    overrides = param_overrides or {}

    def _wrap(fn: Callable):
        params = list(inspect.signature(fn).parameters.values())[1:]
        _REGISTRY[name] = ToolSpec(
            name=name,
            description=description,
            fn=fn,
            schema=_build_parameters_schema(fn, overrides),
            wire_names={p.name: (overrides.get(p.name) or {}).get("name", p.name) for p in params},
            human_message=human_message,
            icon=icon,
            mutates_document=mutates_document,
        )
        return fn

    return _wrap


def get_tool(name: str) -> Optional[ToolSpec]:
    return _REGISTRY.get(name)


def list_tool_names() -> List[str]:
    return list(_REGISTRY.keys())


def discover_tools() -> List[Dict[str, Any]]:
    """Provider-neutral tool specs: name, description and JSON Schema parameters."""
    return [
        {"name": spec.name, "description": spec.description, "parameters": spec.schema}
        for spec in _REGISTRY.values()
    ]


def bind_arguments(spec: ToolSpec, args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map wire arguments onto the tool's Python keyword arguments.

    Unknown keys are dropped. A missing required parameter, or a value whose
    type does not match the annotation, raises MalformedToolArguments. JSON
    null counts as omitted for optional parameters.
    """
    if not isinstance(args, dict):
        raise MalformedToolArguments(f"{spec.name}: arguments must be an object")
    sig = inspect.signature(spec.fn)
    hints = get_type_hints(spec.fn)
    kwargs: Dict[str, Any] = {}
    for p in list(sig.parameters.values())[1:]:
        wire = spec.wire_names.get(p.name, p.name)
        value = args.get(wire)
        if value is None:
            if p.default is inspect.Parameter.empty:
                raise MalformedToolArguments(f"{spec.name}: missing required parameter: {wire}")
            continue
        expected = _unwrap_optional(hints.get(p.name, str))
        if expected in _type_map and not isinstance(value, expected):
            raise MalformedToolArguments(f"{spec.name}: parameter {wire} must be {_type_map[expected]['type']}")
        kwargs[p.name] = value
    return kwargs


async def call_tool(tc: ToolContext, name: str, args: Dict[str, Any]) -> Any:
    """Bind and invoke a registered tool, awaiting it when it is a coroutine function. Errors propagate."""
    spec = _REGISTRY[name]
    kwargs = bind_arguments(spec, args)
    if inspect.iscoroutinefunction(spec.fn):
        return await spec.fn(tc, **kwargs)
    return spec.fn(tc, **kwargs)


# -----------------------------
# Landing-page tools (typed, raw returns)
# -----------------------------

_PROJECT_ID = {"name": "projectId"}
_SITE_NAME = {"name": "siteName"}


# lander: Falsy sections count as "not supplied", matching how models fill optional fields with "".
def _supplied(value: Optional[str]) -> Optional[str]:
    return value if value else None


@tool(
    name="create_html",
    description=(
        "Creates a new landing page with HTML, CSS, and JavaScript. "
        "projectId is optional (auto-generated if not provided)."
    ),
    human_message="Creating landing page...",
    icon="🎨",
    mutates_document=True,
    param_overrides={
        "html": {"description": "HTML body content (required)"},
        "project_id": {**_PROJECT_ID, "description": "Optional project ID"},
        "css": {"description": "CSS styles (optional)"},
        "js": {"description": "JavaScript code (optional)"},
    },
)
def create_html(
    tc: ToolContext,
    html: str,
    project_id: Optional[str] = None,
    css: Optional[str] = None,
    js: Optional[str] = None,
) -> Dict[str, Any]:
    project_id = project_id or tc.store.new_project_id()
    page = document.render(html, css, js)
    path = tc.store.write(project_id, page)
    tc.ctx.log(f"Created project {project_id} ({len(page)} chars) at {path}")
    return {
        "projectId": project_id,
        "files": [INDEX_FILE],
        "message": f"✅ Created! Preview: {tc.preview_prefix}/{project_id}",
    }


@tool(
    name="edit_code",
    description="Edits an existing landing page. Only provide the sections you want to replace.",
    human_message="Updating code...",
    icon="✏️",
    mutates_document=True,
    param_overrides={
        "project_id": {**_PROJECT_ID, "description": "Project ID to edit"},
        "html": {"description": "New HTML body (optional)"},
        "css": {"description": "New CSS (optional)"},
        "js": {"description": "New JS (optional)"},
    },
)
def edit_code(
    tc: ToolContext,
    project_id: str,
    html: Optional[str] = None,
    css: Optional[str] = None,
    js: Optional[str] = None,
) -> Dict[str, Any]:
    current = tc.store.read(project_id)
    html, css, js = _supplied(html), _supplied(css), _supplied(js)
    if html is None and css is None and js is None:
        raise NoChangesApplied("No changes applied - provide at least one of html, css or js")
    try:
        result = document.patch(current, html=html, css=css, js=js)
    except NoMatchingSection as e:
        raise NoChangesApplied() from e
    tc.store.write(project_id, result.document)
    count = len(result.changed)
    tc.ctx.log(f"Saved {count} change(s) to {project_id}: {', '.join(result.changed)}")
    return {
        "projectId": project_id,
        "sectionsChanged": count,
        "files": [INDEX_FILE],
        "message": f"✅ Updated {count} section(s)!",
    }


@tool(
    name="get_code",
    description="Retrieves the current HTML, CSS, and JS code from a project.",
    human_message="Reading code...",
    icon="📖",
    param_overrides={"project_id": {**_PROJECT_ID, "description": "Project ID to read"}},
)
def get_code(tc: ToolContext, project_id: str) -> Dict[str, Any]:
    sections = document.parse(tc.store.read(project_id))
    return {"projectId": project_id, "html": sections.html, "css": sections.css, "js": sections.js}


@tool(
    name="deploy_to_netlify",
    description=(
        "Deploys a landing page to Netlify and returns the public URL. "
        "Use this when the user asks to deploy or publish the page."
    ),
    human_message="Deploying to Netlify...",
    icon="🚀",
    param_overrides={
        "project_id": {**_PROJECT_ID, "description": "Project ID to deploy (required)"},
        "site_name": {**_SITE_NAME, "description": "Optional Netlify site name"},
    },
)
async def deploy_to_netlify(tc: ToolContext, project_id: str, site_name: Optional[str] = None) -> Dict[str, Any]:
    if not tc.netlify_auth_token:
        raise DeploymentNotConfigured()
    if not tc.store.exists(project_id):
        raise ProjectNotFound(project_id)
    project_dir: pathlib.Path = tc.store.project_dir(project_id)
    tc.ctx.log(f"Deploying {project_id} from {project_dir}" + (f" to site {site_name}" if site_name else ""))
    result = await deploy_directory(
        project_dir,
        tc.netlify_auth_token,
        netlify_bin=tc.netlify_bin,
        site_name=site_name,
        timeout=tc.deploy_timeout,
    )
    try:
        url = extract_deploy_url(result.stdout)
    except UrlExtractionFailed as e:
        raise UrlExtractionFailed(tc.ctx.redact(e.output)) from None
    return {
        "projectId": project_id,
        "deployUrl": url,
        "message": f"🚀 Deployed successfully!\n\n📍 Live URL: {url}",
    }
