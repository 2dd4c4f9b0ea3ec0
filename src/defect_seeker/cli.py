from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from typing import Any

from defect_seeker.core.app import DefectApp, open_data_dir
from defect_seeker.core.errors import ActionNotPermittedError, DefectNotFoundError
from defect_seeker.core.permissions import require
from defect_seeker.core.query_state import PAGE_SIZE_CHOICES
from defect_seeker.core.sorting import SORT_KEYS
from defect_seeker.core.storage import resolve_data_dir
from defect_seeker.tools import defects as impl


def _print_page(page: dict[str, Any]) -> None:
    for e in page["entries"]:
        mark = "*" if e["id"] in page["selected"] else " "
        assignee = e["assignee"] or "Unassigned"
        print(f"{mark} {e['id']:<8} [{e['severity']:<8}] {e['status']:<11} {e['title']}  ({assignee})")
    if not page["entries"]:
        print("No defects match the current filters.")
    print(
        f"\nPage {page['page']} of {max(page['total_pages'], 1)}"
        f" - {page['total_count']} matching, {page['store_count']} total."
    )


def _confirm(count: int) -> bool:
    answer = input(f"Permanently delete {count} defect(s)? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def _select(app: DefectApp, ids: Sequence[str], whole_page: bool) -> None:
    if whole_page:
        impl.toggle_page_selection_impl(app)
    else:
        impl.toggle_selection_impl(app, defect_ids=ids)


def _cmd_list(app: DefectApp, args: argparse.Namespace) -> None:
    if args.reset:
        impl.reset_filters_impl(app)
    page = impl.list_defects_impl(
        app,
        status=args.status,
        severity=args.severity,
        search=args.search,
        reporter_id=args.reporter,
        assignee_id=args.assignee,
        start_date=args.start,
        end_date=args.end,
        sort_by=args.sort_by,
        sort_order=args.order,
        page=args.page,
        page_size=args.page_size,
    )
    _print_page(page)


def _cmd_show(app: DefectApp, args: argparse.Namespace) -> None:
    print(json.dumps(impl.get_defect_impl(app, defect_id=args.defect_id), indent=2))


def _cmd_predict(app: DefectApp, args: argparse.Namespace) -> None:
    out = asyncio.run(
        impl.predict_severity_impl(title=args.title, description=args.description, category=args.category)
    )
    print(f"{out['severity']}: {out['reasoning']}")


def _cmd_bulk_status(app: DefectApp, args: argparse.Namespace) -> None:
    _select(app, args.ids, args.page_all)
    out = impl.bulk_update_status_impl(app, status=args.status)
    print(f"Set {len(out['updated'])} defect(s) to {out['status']}.")


def _cmd_bulk_delete(app: DefectApp, args: argparse.Namespace) -> None:
    require(app.store.current_user, "delete_defect")
    _select(app, args.ids, args.page_all)
    confirm = args.yes or not app.view.selection or _confirm(len(app.view.selection))
    out = impl.bulk_delete_impl(app, confirm=confirm)
    print(f"Deleted {out['deleted']} defect(s).")


def _cmd_stats(app: DefectApp, args: argparse.Namespace) -> None:
    print(json.dumps(impl.dashboard_stats_impl(app), indent=2))


def _cmd_export(app: DefectApp, args: argparse.Namespace) -> None:
    out = asyncio.run(impl.export_defects_impl(app, path=args.path, fmt=args.fmt, scope=args.scope))
    print(f"Wrote {out['count']} defect(s) to {out['path']}.")


def _cmd_init(app: DefectApp, args: argparse.Namespace) -> None:
    app.store.save_all()
    where = resolve_data_dir(args.data_dir)
    print(f"Wrote {len(app.store.defects)} defect(s) and {len(app.store.users)} user(s) to {where}.")


def _cmd_login(app: DefectApp, args: argparse.Namespace) -> None:
    user = impl.login_impl(app, email=args.email)
    print(f"Signed in as {user['name']} ({user['role']}).")


def _cmd_logout(app: DefectApp, args: argparse.Namespace) -> None:
    impl.logout_impl(app)
    print("Signed out.")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Defect inventory: filter, sort, page and bulk-edit defects.")
    p.add_argument("--data-dir", default=None, help="State directory (default: $DEFECT_SEEKER_DATA_DIR or .defect_seeker)")
    sub = p.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="Show the current page; options update the persisted view")
    ls.add_argument("--status", default=None, help="Open, In Progress, Resolved, Closed, Reopened or All")
    ls.add_argument("--severity", default=None, help="Low, Medium, High, Critical or All")
    ls.add_argument("--search", default=None, help="Substring of title or id")
    ls.add_argument("--reporter", default=None, help="Reporter user id or All")
    ls.add_argument("--assignee", default=None, help="Assignee user id, 'unassigned' or All")
    ls.add_argument("--start", default=None, help="YYYY-MM-DD, inclusive ('' clears)")
    ls.add_argument("--end", default=None, help="YYYY-MM-DD, inclusive ('' clears)")
    ls.add_argument("--sort-by", choices=list(SORT_KEYS), default=None)
    ls.add_argument("--order", choices=["asc", "desc"], default=None)
    ls.add_argument("--page", type=int, default=None)
    ls.add_argument("--page-size", type=int, choices=PAGE_SIZE_CHOICES, default=None)
    ls.add_argument("--reset", action="store_true", help="Clear all filters first")
    ls.set_defaults(func=_cmd_list)

    show = sub.add_parser("show", help="Show one defect with comments")
    show.add_argument("defect_id")
    show.set_defaults(func=_cmd_show)

    pred = sub.add_parser("predict", help="Suggest a severity for a defect draft")
    pred.add_argument("title")
    pred.add_argument("description")
    pred.add_argument("--category", default="Functional")
    pred.set_defaults(func=_cmd_predict)

    bs = sub.add_parser("bulk-status", help="Set the status of defects on the current page")
    bs.add_argument("status")
    bs.add_argument("ids", nargs="*", help="Defect ids on the current page")
    bs.add_argument("--page-all", action="store_true", help="Select every row on the current page")
    bs.set_defaults(func=_cmd_bulk_status)

    bd = sub.add_parser("bulk-delete", help="Delete defects on the current page (Project Manager/Admin)")
    bd.add_argument("ids", nargs="*", help="Defect ids on the current page")
    bd.add_argument("--page-all", action="store_true", help="Select every row on the current page")
    bd.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    bd.set_defaults(func=_cmd_bulk_delete)

    st = sub.add_parser("stats", help="Dashboard counts and 7-day trend")
    st.set_defaults(func=_cmd_stats)

    ex = sub.add_parser("export", help="Export defects to CSV or JSON")
    ex.add_argument("path")
    ex.add_argument("--format", dest="fmt", choices=["csv", "json"], default="csv")
    ex.add_argument("--scope", choices=["view", "all"], default="view")
    ex.set_defaults(func=_cmd_export)

    ini = sub.add_parser("init", help="Write the current (or seed) dataset to the data directory")
    ini.set_defaults(func=_cmd_init)

    li = sub.add_parser("login", help="Sign in by email")
    li.add_argument("email")
    li.set_defaults(func=_cmd_login)

    lo = sub.add_parser("logout", help="Sign out")
    lo.set_defaults(func=_cmd_logout)
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    try:
        app = open_data_dir(args.data_dir)
        args.func(app, args)
    except DefectNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (ValueError, ActionNotPermittedError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
