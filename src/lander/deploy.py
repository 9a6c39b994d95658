# lander: Netlify CLI shell-out. The CLI is an opaque external process; success is judged only by its exit code
# and by finding a public URL in its text output.

import asyncio
import os
import pathlib
import re
from typing import List, NamedTuple, Optional

from .errors import DeployFailed, TurnTimeout, UrlExtractionFailed

# Primary phrasing first, then the fallback the CLI prints on some versions.
DEPLOY_URL_PATTERNS = [
    re.compile(r"Website URL:\s+(https://\S+)"),
    re.compile(r"Live URL:\s+(https://\S+)"),
]


class CliOutput(NamedTuple):
    exit_code: int
    stdout: str
    stderr: str


def extract_deploy_url(output: str) -> str:
    """Return the first URL matched by DEPLOY_URL_PATTERNS (in order) or raise UrlExtractionFailed."""
    for pattern in DEPLOY_URL_PATTERNS:
        match = pattern.search(output or "")
        if match:
            return match.group(1)
    raise UrlExtractionFailed(output)


def build_deploy_command(netlify_bin: str, site_name: Optional[str] = None) -> List[str]:
    argv = [netlify_bin, "deploy", "--prod", "--dir", "."]
    if site_name:
        argv += ["--site", site_name]
    return argv


async def run_cli(argv: List[str], cwd: pathlib.Path, env: dict, timeout: float) -> CliOutput:
    """Run argv in cwd without a shell; kill it and raise TurnTimeout past the budget."""
    proc = await asyncio.create_subprocess_exec(
        *argv,
        cwd=str(cwd),
        env=env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise TurnTimeout(f"Netlify deploy exceeded {timeout:g}s")
    return CliOutput(
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=out.decode("utf-8", errors="replace"),
        stderr=err.decode("utf-8", errors="replace"),
    )


async def deploy_directory(
    project_dir: pathlib.Path,
    token: str,
    *,
    netlify_bin: str = "netlify",
    site_name: Optional[str] = None,
    timeout: float = 60.0,
) -> CliOutput:
    """
    Production-deploy project_dir with the netlify CLI.

    The token travels in NETLIFY_AUTH_TOKEN, never on the command line, so it
    does not show up in process listings or echoed commands.
    """
    env = dict(os.environ)
    env["NETLIFY_AUTH_TOKEN"] = token
    result = await run_cli(build_deploy_command(netlify_bin, site_name), project_dir, env, timeout)
    if result.exit_code != 0:
        raise DeployFailed(result.exit_code, result.stderr or result.stdout)
    return result
