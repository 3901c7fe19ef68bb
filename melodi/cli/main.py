from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List

from melodi.cli.client_cmds import register_client_commands
from melodi.core.exceptions import CatalogError
from melodi.core.normalization import NormalizerOptions, normalize_document, to_plain


def cmd_normalize(args: argparse.Namespace) -> int:
    """Normalize a local XML document and print it as JSON.

    Security notes:
    - The file is parsed with defusedxml (no entity expansion).

    """

    try:
        if args.path == "-":
            content = sys.stdin.buffer.read()
        else:
            with open(args.path, "rb") as f:
                content = f.read()
    except OSError as e:
        print(f"error: cannot read {args.path}: {e}", file=sys.stderr)
        return 2

    try:
        res = normalize_document(content, NormalizerOptions(max_depth=args.max_depth))
    except CatalogError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    out = to_plain(res.value)
    if args.with_root:
        out = {res.root_tag: out}
    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the normalizer API server.

    Security notes:
    - Bind to 127.0.0.1 by default (safer than 0.0.0.0).

    """

    try:
        import uvicorn
    except Exception as e:
        print(f"error: uvicorn is required to serve the API: {e}", file=sys.stderr)
        return 2

    try:
        from melodi.api.server import create_app
    except Exception as e:
        print(f"error: API server dependencies missing: {e}", file=sys.stderr)
        return 2

    app = create_app()
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    p = argparse.ArgumentParser(prog="melodi", description="Melodi Media catalog CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    np = sub.add_parser("normalize", help="Normalize an XML file and print JSON")
    np.add_argument("path", help="Path to XML file ('-' for stdin)")
    np.add_argument("--max-depth", type=int, default=None, help="Maximum element nesting depth")
    np.add_argument("--with-root", action="store_true", help="Wrap output under the root tag")
    np.set_defaults(func=cmd_normalize)

    sp = sub.add_parser("serve", help="Run the normalizer HTTP API")
    sp.add_argument("--host", default="127.0.0.1", help="Bind address")
    sp.add_argument("--port", type=int, default=8080, help="Bind port")
    sp.add_argument("--log-level", default="info", help="uvicorn log level")
    sp.set_defaults(func=cmd_serve)

    register_client_commands(sub)
    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    logging.basicConfig(level=os.environ.get("MELODI_LOG_LEVEL", "WARNING").upper())
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
