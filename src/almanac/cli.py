"""Command-line front-end: `almanac entry tomorrow at 8pm notify 30m Take a Shower`."""

import argparse
import logging
import sys
from collections.abc import Callable
from datetime import time

from almanac.config import Settings, current_time, get_settings
from almanac.errors import AlmanacError, ItemNotFound, ParseError
from almanac.language.duration import parse_duration
from almanac.models import AllDayShape, CalendarItem, InstantShape, RecurringTask, Shape
from almanac.service import CalendarService
from almanac.settings import Preferences, load_preferences, save_preferences
from almanac.stores.calendar import CalendarStore

logger = logging.getLogger(__name__)

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def build_service(settings: Settings) -> CalendarService:
    return CalendarService(
        store=CalendarStore(settings.db_path),
        preferences=load_preferences(settings.data_path),
        clock=lambda: current_time(settings),
    )


def _parse_bool(text: str) -> bool:
    word = text.lower()
    if word in _TRUE:
        return True
    if word in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {text!r}")


def format_time(value: time, use_24h: bool) -> str:
    if use_24h:
        return value.strftime("%H:%M")
    hour = value.hour % 12 or 12
    suffix = "pm" if value.hour >= 12 else "am"
    return f"{hour}:{value.minute:02d}{suffix}"


def format_shape(shape: Shape, use_24h: bool) -> str:
    if isinstance(shape, AllDayShape):
        return "all day"
    if isinstance(shape, InstantShape):
        return format_time(shape.at, use_24h)
    return f"{format_time(shape.start, use_24h)}-{format_time(shape.end, use_24h)}"


def format_item(item: CalendarItem, use_24h: bool) -> str:
    ident = str(item.id) if item.id is not None else "-"
    marks = []
    if item.completed:
        marks.append("done")
    if item.notify is not None:
        marks.append(f"notify {item.notify}")
    if item.recurrence_id is not None:
        marks.append(f"recur {item.recurrence_id}#{item.sequence_index}")
    line = f"{ident:>5}  {item.date.isoformat()}  {format_shape(item.shape, use_24h):<15}  {item.detail}"
    if marks:
        line += f"  [{', '.join(marks)}]"
    return line


def format_task(task: RecurringTask, use_24h: bool) -> str:
    return (
        f"{task.id:>5}  every {task.interval}  from {task.template.date.isoformat()} "
        f"{format_shape(task.template, use_24h)}  {task.detail}  (next #{task.sequence_index + 1})"
    )


def format_details(item: CalendarItem, use_24h: bool) -> str:
    lines = [format_item(item, use_24h)]
    for key, value in sorted(item.fields.items()):
        lines.append(f"       {key}: {value}")
    return "\n".join(lines)


def _print_items(items: list[CalendarItem], use_24h: bool) -> None:
    for item in items:
        print(format_item(item, use_24h))


def _cmd_entry(service: CalendarService, args: argparse.Namespace) -> None:
    result = service.add_entry(" ".join(args.text))
    print(format_item(result.item, service.preferences.use_24h_time))
    if result.task is not None:
        print(format_task(result.task, service.preferences.use_24h_time))


def _cmd_list(service: CalendarService, args: argparse.Namespace) -> None:
    use_24h = service.preferences.use_24h_time
    if args.recur:
        for task in service.list_recurring():
            print(format_task(task, use_24h))
        return
    if args.all:
        items = service.list_items(include_completed=args.include_completed)
    else:
        items = service.today(include_completed=args.include_completed)
    _print_items(items, use_24h)


def _cmd_today(service: CalendarService, args: argparse.Namespace) -> None:
    _print_items(service.today(include_completed=args.include_completed), service.preferences.use_24h_time)


def _cmd_now(service: CalendarService, args: argparse.Namespace) -> None:
    items = service.now(args.well, include_completed=args.include_completed)
    _print_items(items, service.preferences.use_24h_time)


def _cmd_notify(service: CalendarService, args: argparse.Namespace) -> None:
    if args.ack:
        items = service.acknowledge(include_completed=args.include_completed)
    else:
        items = service.notifications(include_completed=args.include_completed)
    _print_items(items, service.preferences.use_24h_time)


def _cmd_search(service: CalendarService, args: argparse.Namespace) -> None:
    _print_items(service.search(" ".join(args.terms)), service.preferences.use_24h_time)


def _cmd_show(service: CalendarService, args: argparse.Namespace) -> None:
    use_24h = service.preferences.use_24h_time
    if args.recur:
        print(format_task(service.show_recurring(args.id), use_24h))
    else:
        print(format_details(service.show(args.id), use_24h))


def _cmd_complete(service: CalendarService, args: argparse.Namespace) -> None:
    print(format_item(service.complete(args.id), service.preferences.use_24h_time))


def _cmd_delete(service: CalendarService, args: argparse.Namespace) -> None:
    for ident in args.ids:
        if args.recur:
            task = service.delete_recurring(ident)
            print(f"deleted recurring task {task.id}")
        else:
            item = service.delete(ident)
            print(f"deleted item {item.id}")


def _cmd_edit(service: CalendarService, args: argparse.Namespace) -> None:
    use_24h = service.preferences.use_24h_time
    text = " ".join(args.text)
    if args.recur:
        result = service.edit_recurring(args.id, text)
        print(format_item(result.item, use_24h))
        if result.task is not None:
            print(format_task(result.task, use_24h))
        return
    print(format_item(service.edit(args.id, text), use_24h))


def _cmd_field(service: CalendarService, args: argparse.Namespace) -> None:
    item = service.set_field(args.id, args.key, args.value)
    print(format_details(item, service.preferences.use_24h_time))


Handler = Callable[[CalendarService, argparse.Namespace], None]

_HANDLERS: dict[str, Handler] = {
    "entry": _cmd_entry,
    "list": _cmd_list,
    "today": _cmd_today,
    "now": _cmd_now,
    "notify": _cmd_notify,
    "search": _cmd_search,
    "show": _cmd_show,
    "complete": _cmd_complete,
    "delete": _cmd_delete,
    "edit": _cmd_edit,
    "field": _cmd_field,
}


def _run_config(settings: Settings, args: argparse.Namespace) -> None:
    preferences = load_preferences(settings.data_path)
    if args.action == "set-24h-time":
        preferences = Preferences(use_24h_time=args.value, query_window=preferences.query_window)
        save_preferences(settings.data_path, preferences)
    elif args.action == "set-query-window":
        preferences = Preferences(use_24h_time=preferences.use_24h_time, query_window=args.value)
        save_preferences(settings.data_path, preferences)
    print(f"use_24h_time: {str(preferences.use_24h_time).lower()}")
    print(f"query_window: {preferences.query_window}")


def _serve(settings: Settings) -> None:
    import uvicorn

    uvicorn.run("almanac.main:app", host=settings.host, port=settings.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="almanac", description="Calendar driven by plain statements")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    commands = parser.add_subparsers(dest="command", required=True)

    entry = commands.add_parser("entry", aliases=["e"], help="Add an item or recurring task")
    entry.add_argument("text", nargs="+", help="e.g. tomorrow at 8pm notify 30m Take a Shower")

    listing = commands.add_parser("list", help="List items")
    listing.add_argument("--all", action="store_true", help="Every date, not only today")
    listing.add_argument("--include-completed", action="store_true", help="Include completed items")
    listing.add_argument("--recur", action="store_true", help="List recurring tasks instead")

    today = commands.add_parser("today", help="Items on today's date, completed ones included")
    today.set_defaults(include_completed=True)

    now = commands.add_parser("now", help="Items happening around now")
    now.add_argument("--well", type=parse_duration, default=None, help="Window width, e.g. 1h")
    now.add_argument("--include-completed", action="store_true", help="Include completed items")

    notify = commands.add_parser("notify", help="Reminders that are due")
    notify.add_argument("--ack", action="store_true", help="Mark the listed reminders as delivered")
    notify.add_argument("--include-completed", action="store_true", help="Include completed items")

    search = commands.add_parser("search", help="Find items, e.g. date 10/23 unfinished")
    search.add_argument("terms", nargs="+")

    show = commands.add_parser("show", help="Show one item")
    show.add_argument("id", type=int)
    show.add_argument("-r", "--recur", action="store_true", help="ID is a recurring task")

    complete = commands.add_parser("complete", aliases=["c"], help="Mark an item as done")
    complete.add_argument("id", type=int)

    delete = commands.add_parser("delete", aliases=["d"], help="Delete items")
    delete.add_argument("ids", nargs="+", type=int, metavar="id")
    delete.add_argument("-r", "--recur", action="store_true", help="IDs are recurring tasks, deleted with their items")

    edit = commands.add_parser("edit", help="Re-enter an item's timing and detail")
    edit.add_argument("id", type=int)
    edit.add_argument("-r", "--recur", action="store_true", help="ID is a recurring task")
    edit.add_argument("text", nargs="+")

    field = commands.add_parser("field", help="Set a free-form field on an item")
    field.add_argument("id", type=int)
    field.add_argument("key")
    field.add_argument("value")

    config = commands.add_parser("config", help="Show or change preferences")
    config_actions = config.add_subparsers(dest="action", required=True)
    config_actions.add_parser("show")
    set_24h = config_actions.add_parser("set-24h-time")
    set_24h.add_argument("value", type=_parse_bool)
    set_window = config_actions.add_parser("set-query-window")
    set_window.add_argument("value", type=parse_duration)

    commands.add_parser("serve", help="Run the HTTP API")
    return parser


_ALIASES = {"e": "entry", "c": "complete", "d": "delete"}


def run(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Run one command and return the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    settings = settings or get_settings()
    command = _ALIASES.get(args.command, args.command)

    try:
        if command == "config":
            _run_config(settings, args)
        elif command == "serve":
            _serve(settings)
        else:
            _HANDLERS[command](build_service(settings), args)
    except ParseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except ItemNotFound as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except AlmanacError as e:
        logger.error("%s", e)
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
