"""CLI entrypoint for the signed-arithmetic quiz."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable

from . import __version__
from .config import Settings, load_settings
from .errors import EmptyExportError, InvalidSelection, PersistenceError
from .feedback import ERROR_DETAILS, error_details
from .models import HistoryEntry
from .service import QuizService
from .storage import STORAGE_KINDS

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
logger = logging.getLogger(__name__)

MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
CLEAR_CONFIRMATION = "SI"


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(settings: Settings) -> QuizService:
    """Create the quiz service for the resolved settings."""
    return QuizService.from_settings(settings)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mathquiz", description="Práctica de sumas y restas con números negativos")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--data-dir", help="directory holding the saved history (env: MATHQUIZ_HOME)")
    parser.add_argument("--storage", choices=STORAGE_KINDS, help="history backend (env: MATHQUIZ_STORAGE)")
    parser.add_argument("--seed", type=int, help="random seed for reproducible questions (env: MATHQUIZ_SEED)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="log more details (repeat for debug)")

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("play", help="interactive quiz (default)")
    commands.add_parser("history", help="print the answer history")
    export_parser = commands.add_parser("export", help="export the history as CSV")
    export_parser.add_argument("--output", default=".", help="directory for the CSV file")
    clear_parser = commands.add_parser("clear", help="delete the whole history")
    clear_parser.add_argument("--yes", action="store_true", help="confirm deletion")
    import_parser = commands.add_parser("import", help="merge history entries from a JSON file")
    import_parser.add_argument("path", help="JSON array of history entries")
    return parser


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def run(argv: list[str] | None = None, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run the CLI application."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        settings = load_settings(data_dir=args.data_dir, storage=args.storage, seed=args.seed)
    except ValueError as exc:
        parser.error(str(exc))

    command = args.command or "play"
    try:
        service = _service(settings)
    except PersistenceError as exc:
        if command != "play":
            print_fn(f"No se pudo abrir el historial: {exc}")
            return 1
        logger.warning("History storage unavailable, playing without saving: %s", exc)
        service = QuizService.unsaved(settings, str(exc))

    try:
        if command == "history":
            _history_flow(service, print_fn)
            return 0
        if command == "export":
            return _export_command(service, args.output, print_fn)
        if command == "clear":
            return _clear_command(service, args.yes, print_fn)
        if command == "import":
            return _import_command(service, args.path, print_fn)
        return play_shell(service, input_fn, print_fn)
    finally:
        service.close()


def play_shell(service: QuizService, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run the interactive quiz loop."""
    if not service.persistent:
        print_fn("Aviso: no se pudo abrir el historial; las respuestas de esta sesión no se guardarán.")
    elif service.history_warning:
        print_fn("Aviso: no se pudo leer el historial guardado; se empieza con un historial vacío.")
    try:
        while True:
            _print_status(service, print_fn)
            print_fn(f"\n{service.question.text} = ?")
            for idx, value in enumerate(service.options, start=1):
                print_fn(f"{idx}) {value}")
            print_fn("n) Siguiente pregunta")
            print_fn("r) Reiniciar juego")
            print_fn("h) Historial")
            print_fn("e) Exportar historial")
            print_fn("c) Limpiar historial")
            print_fn("t) Consejos")
            print_fn("q) Salir")
            choice = input_fn("Elige: ").strip().lower()

            if choice.isdigit():
                _answer_flow(service, int(choice) - 1, print_fn)
            elif choice == "n":
                service.request_new_question()
            elif choice == "r":
                service.restart()
                print_fn("Juego reiniciado.")
            elif choice == "h":
                _history_flow(service, print_fn)
            elif choice == "e":
                _export_flow(service, input_fn, print_fn)
            elif choice == "c":
                _clear_flow(service, input_fn, print_fn)
            elif choice == "t":
                _tips_flow(input_fn, print_fn)
            elif choice in MENU_QUIT_COMMANDS:
                return 0
            else:
                print_fn("Opción no válida.")
    except QuitApp:
        return 0


def _print_status(service: QuizService, print_fn: PrintFn) -> None:
    state = service.state
    print_fn(f"\nPuntuación: {state.score} | Nivel: {state.level} | Correctas: {state.correct_count}")


def _answer_flow(service: QuizService, index: int, print_fn: PrintFn) -> None:
    """Answer the current question with the option at ``index``."""
    if not (0 <= index < len(service.options)):
        print_fn("Opción no válida.")
        return
    try:
        outcome = service.select_answer(service.options[index])
    except InvalidSelection as exc:
        print_fn(f"{exc} Pulsa n para la siguiente pregunta.")
        return

    print_fn(outcome.feedback.message)
    if outcome.feedback.explanation:
        print_fn(outcome.feedback.explanation)
    if outcome.leveled_up:
        print_fn(f"¡Subes al nivel {outcome.state.level}!")
    if not outcome.history_saved:
        print_fn("Aviso: la respuesta no se pudo guardar en el historial.")


def _history_flow(service: QuizService, print_fn: PrintFn) -> None:
    """Print the history table, newest first."""
    print_fn("\n=== Historial ===")
    entries = service.history
    if not entries:
        print_fn("Aún no hay respuestas registradas")
        return

    rows = [_history_row(entry) for entry in entries]
    headers = ("Fecha y Hora", "Pregunta", "Tu Respuesta", "Correcta", "Resultado", "Nivel")
    widths = [max(len(headers[col]), max(len(row[col]) for row in rows)) for col in range(len(headers))]
    header = " ".join(f"{title:<{widths[col]}}" for col, title in enumerate(headers))
    print_fn(header)
    print_fn("-" * len(header))
    for row in rows:
        print_fn(" ".join(f"{cell:<{widths[col]}}" for col, cell in enumerate(row)))

    stats = service.history_stats()
    print_fn(f"\nTotal: {stats.total} | Correctas: {stats.correct} | Incorrectas: {stats.incorrect}")
    print_fn(f"Precisión: {stats.accuracy:.1f}%")


def _history_row(entry: HistoryEntry) -> tuple[str, str, str, str, str, str]:
    return (
        entry.timestamp,
        entry.question_text,
        str(entry.user_answer),
        str(entry.correct_answer),
        "✅" if entry.is_correct else "❌",
        str(entry.level),
    )


def _export_flow(service: QuizService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Ask for a directory and write the CSV export there."""
    print_fn("\n=== Exportar historial ===")
    directory = input_fn("Carpeta de destino (vacío = actual): ").strip() or "."
    _export_command(service, directory, print_fn)


def _export_command(service: QuizService, directory: str, print_fn: PrintFn) -> int:
    try:
        path = service.export_history_to(directory)
    except EmptyExportError as exc:
        print_fn(str(exc))
        return 1
    except OSError as exc:
        print_fn(f"Exportación fallida: {exc}")
        return 1
    print_fn(f"Historial exportado a {path}")
    return 0


def _clear_flow(service: QuizService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Clear history after an explicit typed confirmation."""
    print_fn("¿Estás seguro de que quieres limpiar todo el historial?")
    confirmed = input_fn(f"Escribe {CLEAR_CONFIRMATION} para confirmar: ").strip() == CLEAR_CONFIRMATION
    _clear_command(service, confirmed, print_fn)


def _clear_command(service: QuizService, confirmed: bool, print_fn: PrintFn) -> int:
    try:
        cleared = service.clear_history(confirmed)
    except PersistenceError as exc:
        print_fn(f"No se pudo guardar el historial vacío: {exc}")
        return 1
    if not cleared:
        print_fn("Historial sin cambios.")
        return 1
    print_fn("Historial borrado.")
    return 0


def _import_command(service: QuizService, path: str, print_fn: PrintFn) -> int:
    try:
        added = service.import_history(path)
    except (OSError, ValueError, PersistenceError) as exc:
        print_fn(f"Importación fallida: {exc}")
        return 1
    print_fn(f"Entradas importadas: {added}")
    return 0


def _tips_flow(input_fn: InputFn, print_fn: PrintFn) -> None:
    """Show the longer explanation for one common-error category."""
    topics = list(ERROR_DETAILS)
    print_fn("\n=== Consejos ===")
    for idx, topic in enumerate(topics, start=1):
        print_fn(f"{idx}) {topic}")
    print_fn("b) Volver")
    print_fn("q) Salir")
    choice = input_fn("Elige un tema: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    if not choice.isdigit() or not (0 <= int(choice) - 1 < len(topics)):
        print_fn("Opción no válida.")
        return
    print_fn(error_details(topics[int(choice) - 1]))


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
