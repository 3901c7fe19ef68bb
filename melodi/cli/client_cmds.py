"""`melodi client ...` commands: talk to the Melodi Media catalog service.

Security notes:
- Treat service responses as untrusted.
- Credentials may come from flags or MELODI_* env vars; they are never printed.
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from datetime import date

from melodi.client import CatalogClient, ClientConfig, DownloadLinkResolver
from melodi.core.exceptions import CatalogError
from melodi.utils.json_safe import to_jsonable


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(to_jsonable(obj), indent=2, ensure_ascii=False))


def _config_from_args(args: argparse.Namespace) -> ClientConfig:
    """Env config, overridden by any flags given on the command line."""

    cfg = ClientConfig.from_env()
    overrides = {
        "endpoint": args.endpoint,
        "download_endpoint": getattr(args, "download_endpoint", None),
        "site_id": args.site_id,
        "username": args.username,
        "password": args.password,
        "max_depth": args.max_depth,
    }
    return dataclasses.replace(cfg, **{k: v for k, v in overrides.items() if v is not None})


def _run(args: argparse.Namespace, call) -> int:
    try:
        cfg = _config_from_args(args)
        result = call(cfg)
    except CatalogError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    _print_json(result)
    return 0


def cmd_client_content_types(args: argparse.Namespace) -> int:
    """List content types."""
    return _run(args, lambda cfg: CatalogClient.from_config(cfg).content_types())


def cmd_client_categories(args: argparse.Namespace) -> int:
    """List categories of a content type."""
    return _run(
        args,
        lambda cfg: CatalogClient.from_config(cfg).categories_for_content_type(
            args.content_type_id, exclusive=args.exclusive, adult=args.adult
        ),
    )


def cmd_client_content(args: argparse.Namespace) -> int:
    """List content of a category."""
    return _run(
        args,
        lambda cfg: CatalogClient.from_config(cfg).content_for_category(
            args.category_id, exclusive=args.exclusive, adult=args.adult
        ),
    )


def cmd_client_details(args: argparse.Namespace) -> int:
    """Show content details."""
    return _run(args, lambda cfg: CatalogClient.from_config(cfg).content_details(args.content_id))


def cmd_client_details_extended(args: argparse.Namespace) -> int:
    """Show extended content details."""
    return _run(
        args,
        lambda cfg: CatalogClient.from_config(cfg).content_details_extended(
            args.content_id, include_translations=not args.no_translations
        ),
    )


def cmd_client_new_content(args: argparse.Namespace) -> int:
    """List content added since a date."""
    return _run(
        args,
        lambda cfg: CatalogClient.from_config(cfg).new_content(
            args.content_type_id, args.start_date, exclusive=args.exclusive
        ),
    )


def cmd_client_download_link(args: argparse.Namespace) -> int:
    """Resolve a download link via the secondary service."""

    def call(cfg: ClientConfig) -> dict:
        link = DownloadLinkResolver.from_config(cfg).resolve(args.content_id)
        return to_jsonable(link) | {"ok": link.ok}

    return _run(args, call)


def register_client_commands(sub: argparse._SubParsersAction) -> None:
    """Register the `client` command."""

    client = sub.add_parser("client", help="Query the Melodi Media catalog service")
    client.add_argument("--endpoint", default=None, help="Catalog endpoint (MELODI_ENDPOINT)")
    client.add_argument("--site-id", default=None, help="Site id (MELODI_SITE_ID)")
    client.add_argument("--username", default=None, help="Username (MELODI_USERNAME)")
    client.add_argument("--password", default=None, help="Password (MELODI_PASSWORD)")
    client.add_argument(
        "--max-depth", type=int, default=None, help="Reject responses nested deeper than this"
    )
    csub = client.add_subparsers(dest="client_cmd", required=True)

    ct = csub.add_parser("content-types", help="List content types")
    ct.set_defaults(func=cmd_client_content_types)

    cat = csub.add_parser("categories", help="List categories of a content type")
    cat.add_argument("content_type_id", type=int)
    cat.add_argument("--exclusive", type=int, default=None, help="Exclusive filter (default 2)")
    cat.add_argument("--adult", action="store_true", default=None, help="Include adult categories")
    cat.set_defaults(func=cmd_client_categories)

    cc = csub.add_parser("content", help="List content of a category")
    cc.add_argument("category_id", type=int)
    cc.add_argument("--exclusive", type=int, default=None, help="Exclusive filter (default 2)")
    cc.add_argument("--adult", action="store_true", default=None, help="Include adult content")
    cc.set_defaults(func=cmd_client_content)

    d = csub.add_parser("details", help="Show content details")
    d.add_argument("content_id", type=int)
    d.set_defaults(func=cmd_client_details)

    dx = csub.add_parser("details-extended", help="Show extended content details")
    dx.add_argument("content_id", type=int)
    dx.add_argument("--no-translations", action="store_true", help="Skip translations")
    dx.set_defaults(func=cmd_client_details_extended)

    nc = csub.add_parser("new-content", help="List content added since a date")
    nc.add_argument("content_type_id", type=int)
    nc.add_argument(
        "--start-date", required=True, type=date.fromisoformat, help="ISO date, e.g. 2015-12-01"
    )
    nc.add_argument("--exclusive", type=int, default=None, help="Exclusive filter (default 2)")
    nc.set_defaults(func=cmd_client_new_content)

    dl = csub.add_parser("download-link", help="Resolve a download link")
    dl.add_argument("content_id", type=int)
    dl.add_argument(
        "--download-endpoint", default=None, help="Download service (MELODI_DOWNLOAD_ENDPOINT)"
    )
    dl.set_defaults(func=cmd_client_download_link)
