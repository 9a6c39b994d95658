import pathlib
import sys

import uvicorn

from . import config
from .context import Context
from .server import create_app
from .settings import load_config


def main() -> None:
    """
    Lander server entrypoint.

    Usage:
        lander [--host HOST] [--port PORT] [root]

    Notes:
        - root holds the optional .lander/settings.yaml and, by default, the
          projects directory. The current directory is used when omitted.
        - OPENAI_API_KEY and/or ANTHROPIC_API_KEY select which models work;
          NETLIFY_AUTH_TOKEN enables deployment.
    """
    args = sys.argv[1:]

    if any(a in ("-h", "--help") for a in args):
        print("Usage: lander [--host HOST] [--port PORT] [root]")
        print("Environment:")
        print("  OPENAI_API_KEY, ANTHROPIC_API_KEY, NETLIFY_AUTH_TOKEN, LANDER_PROJECTS_DIR, HOST, PORT")
        return

    host = config.HOST
    port = config.PORT
    root_arg = None
    i = 0
    while i < len(args):
        a = args[i]
        if a in ("--host", "--port"):
            if i + 1 >= len(args):
                print(f"error: {a} requires a value")
                return
            value = args[i + 1]
            i += 2
        elif a.startswith("--host=") or a.startswith("--port="):
            a, value = a.split("=", 1)
            i += 1
        elif a.startswith("-"):
            print(f"error: unknown option: {a}")
            return
        else:
            # First non-flag is the root directory
            if root_arg is None:
                root_arg = a
            i += 1
            continue

        if a == "--host":
            host = value
        else:
            try:
                port = int(value)
            except ValueError:
                print(f"error: invalid port: {value}")
                return

    root = pathlib.Path(root_arg).resolve() if root_arg else pathlib.Path(".").resolve()
    cfg = load_config(root)
    ctx = Context(secrets=cfg.secrets())
    ctx.send_to_user(f"🚀 Lander listening on http://{host}:{port} (projects: {cfg.projects_dir})")
    if not cfg.netlify_auth_token:
        ctx.log("NETLIFY_AUTH_TOKEN not set; deploy_to_netlify will report it as not configured")
    uvicorn.run(create_app(cfg, ctx), host=host, port=port)


if __name__ == "__main__":
    main()
