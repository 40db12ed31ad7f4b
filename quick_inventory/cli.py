#!/usr/bin/env python3
"""
Command-line interface for Quick Inventory
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import notifications
from .config import Settings, configure_logging, get_settings
from .errors import ConfirmationRequired
from .notifications import Notification
from .service import ExportResult, InventoryService

BACK_COMMAND = ":voltar"
SAVE_COMMAND = ":salvar"
QUIT_COMMAND = ":sair"


def print_notification(notification: Notification) -> int:
    """Print a notification and return the matching exit code."""
    marker = "✅" if notification.ok else "❌"
    print(f"{marker} {notification.message}")
    return 0 if notification.ok else 1


def confirm(question: str) -> bool:
    answer = input(f"{question} [s/N] ")
    return answer.strip().lower() in {"s", "sim", "y", "yes"}


def add_command(service: InventoryService) -> int:
    """Run the stepped wizard in the terminal until EOF or :sair."""
    wizard = service.wizard()
    print(f"Comandos: {BACK_COMMAND} volta um passo, {SAVE_COMMAND} salva o rascunho, "
          f"{QUIT_COMMAND} encerra")
    while True:
        prompt = wizard.prompt()
        if prompt.get("options"):
            print(f"   Sugestões: {', '.join(prompt['options'])}")
        default = f" [{prompt['value']}]" if prompt["value"] else ""
        try:
            answer = input(f"{prompt['title']}{default}: ").strip()
        except EOFError:
            print()
            return 0

        if answer == QUIT_COMMAND:
            return 0
        if answer == BACK_COMMAND:
            wizard.back()
            continue
        if answer == SAVE_COMMAND:
            print_notification(service.quick_add(wizard))
            continue

        notification = service.submit_step(wizard, answer or prompt["value"])
        if notification is not None:
            print_notification(notification)


def list_command(service: InventoryService) -> int:
    records = service.list_records()
    if not records:
        print("Nenhum item registrado.")
        return 0
    labels = [(spec.key, spec.label) for spec in service.fields]
    for index, record in enumerate(records):
        values = "  ".join(f"{label}: {record.value(key) or '-'}" for key, label in labels)
        print(f"[{index}] {values}")
    print(f"\n📦 Total: {len(records)} itens")
    return 0


def delete_command(service: InventoryService, index: int, assume_yes: bool = False) -> int:
    record = service.store.get(index)
    if record is None:
        return print_notification(notifications.error(notifications.ITEM_NOT_FOUND))
    question = notifications.removal_prompt(record.equipment_type, record.patrimony)
    if not assume_yes and not confirm(question):
        print("Cancelado.")
        return 1
    return print_notification(service.remove_at(index))


def clear_command(service: InventoryService, assume_yes: bool = False) -> int:
    try:
        return print_notification(service.clear(confirmed=assume_yes))
    except ConfirmationRequired as exc:
        print(f"⚠️  {exc.title}")
        print(f"   {exc.description}")
        if not confirm("Continuar?"):
            print("Cancelado.")
            return 1
    return print_notification(service.clear(confirmed=True))


def _save_export(result: ExportResult, output: Optional[Path]) -> int:
    if result.file is None:
        return print_notification(result.notification)
    target = Path(output) if output else Path.cwd() / result.file.filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(result.file.content)
    print_notification(result.notification)
    print(f"   {target}")
    return 0


def export_command(service: InventoryService, kind: str, output: Optional[Path] = None) -> int:
    if kind == "xlsx":
        return _save_export(service.export_xlsx(), output)
    return _save_export(service.export_csv(), output)


def backup_command(service: InventoryService, output: Optional[Path] = None) -> int:
    return _save_export(service.backup(), output)


def restore_command(service: InventoryService, file: Path) -> int:
    try:
        data = Path(file).read_bytes()
    except OSError as exc:
        print(f"❌ {exc}")
        return 1
    return print_notification(service.restore(data))


def import_command(service: InventoryService, file: Path) -> int:
    """Import a .csv, .json, .xlsx or .xls file, chosen by extension."""
    try:
        data = Path(file).read_bytes()
    except OSError as exc:
        print(f"❌ {exc}")
        return 1
    return print_notification(service.import_file(data, Path(file).name))


def serve_command(settings: Settings, host: str = "127.0.0.1", port: int = 5000) -> int:
    from .app import create_app

    app = create_app(settings=settings)
    print(f"🚀 {settings.app_name} em http://{host}:{port}/api/wizard")
    app.run(host=host, port=port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser_cli = argparse.ArgumentParser(
        prog="quick-inventory",
        description="Quick Inventory - offline equipment data entry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Register equipment one field at a time
  quick-inventory add

  # Export the spreadsheet with every derived sheet
  quick-inventory export xlsx -o inventario.xlsx

  # Save and restore a full backup
  quick-inventory backup -o backup.json
  quick-inventory restore backup.json
        """
    )
    parser_cli.add_argument("--storage", type=Path, help="JSON file holding the records")

    subparsers = parser_cli.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("add", help="Register items with the stepped wizard")
    subparsers.add_parser("list", help="List stored items, newest first")

    delete_parser = subparsers.add_parser("delete", help="Remove one item by position")
    delete_parser.add_argument("index", type=int, help="Position shown by the list command")
    delete_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    clear_parser = subparsers.add_parser("clear", help="Remove every item")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    export_parser = subparsers.add_parser("export", help="Export items as CSV or spreadsheet")
    export_parser.add_argument("format", choices=["csv", "xlsx"], help="Output format")
    export_parser.add_argument("--output", "-o", type=Path, help="Output file (default: dated name in the current directory)")

    backup_parser = subparsers.add_parser("backup", help="Write a JSON backup of every item")
    backup_parser.add_argument("--output", "-o", type=Path, help="Output file (default: dated name in the current directory)")

    restore_parser = subparsers.add_parser("restore", help="Restore items from a JSON backup")
    restore_parser.add_argument("file", type=Path, help="Backup file")

    import_parser = subparsers.add_parser("import", help="Import items from CSV, JSON or spreadsheet")
    import_parser.add_argument("file", type=Path, help="File to import")

    serve_parser = subparsers.add_parser("serve", help="Start the JSON API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", "-p", type=int, default=5000, help="Port number (default: 5000)")
    return parser_cli


def main(argv: Optional[List[str]] = None) -> int:
    parser_cli = build_parser()
    args = parser_cli.parse_args(argv)
    if not args.command:
        parser_cli.print_help()
        return 1

    settings = get_settings()
    if args.storage is not None:
        settings = settings.model_copy(update={"storage_path": args.storage})
    configure_logging(settings.log_level)

    if args.command == 'serve':
        return serve_command(settings, args.host, args.port)

    service = InventoryService.from_settings(settings)
    if args.command == 'add':
        return add_command(service)
    elif args.command == 'list':
        return list_command(service)
    elif args.command == 'delete':
        return delete_command(service, args.index, args.yes)
    elif args.command == 'clear':
        return clear_command(service, args.yes)
    elif args.command == 'export':
        return export_command(service, args.format, args.output)
    elif args.command == 'backup':
        return backup_command(service, args.output)
    elif args.command == 'restore':
        return restore_command(service, args.file)
    elif args.command == 'import':
        return import_command(service, args.file)
    parser_cli.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
