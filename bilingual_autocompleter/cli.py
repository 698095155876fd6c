"""
cli.py - interactive demo for the bilingual prediction engine
Features:
- Live completions for the last word typed, drawn from both dictionaries,
  the n-gram tables and the learned vocabulary
- Next-word predictions from the committed context
- Layout switching (qwerty / kannada / kannada_phonetic / kannada_custom)
- Weight readout and adjustment, custom abbreviations, store maintenance
- Uses Rich for tables and formatting
"""

import argparse
import sys
from typing import Callable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from bilingual_autocompleter.core.prediction_engine import PredictionEngine
from bilingual_autocompleter.core.script_detector import KeyboardLayout, suggestion_split
from bilingual_autocompleter.core.suggestion import Source, Suggestion
from bilingual_autocompleter.utils.config_manager import Config
from bilingual_autocompleter.utils.logger_utils import Log

COMMANDS = "/layout /next /context /reset /weights /abbr /prune /clear /quit"

_SOURCE_STYLE = {
    Source.EXACT_MATCH: "bold green",
    Source.USER_LEARNED: "green",
    Source.NGRAM: "magenta",
    Source.FREQUENCY: "yellow",
    Source.DICTIONARY: "white",
}


class CLI:
    """Command-line interface class to drive the engine the way a keyboard would."""

    def __init__(self,
                 engine: PredictionEngine,
                 layout: KeyboardLayout = KeyboardLayout.QWERTY,
                 console: Optional[Console] = None,
                 ask: Optional[Callable[..., str]] = None):
        self.engine = engine
        self.layout = layout
        self.console = console or Console()
        self._ask = ask or Prompt.ask
        self.running = True

    def run(self):
        """
        Main interactive loop:
        - every token but the last is committed as typed
        - the last token gets suggestions; pick a number, type a word, or Enter to keep it
        """
        self.console.rule("[bold magenta]Bilingual Autocompleter[/bold magenta]")
        self.console.print("[cyan]Type words to see completions. Pick a number to accept one.[/cyan]")
        self.console.print(f"Commands: {COMMANDS}\n")

        while self.running:
            try:
                line = self._ask(f"[green]{self.layout.value}[/green]", default="")
                if not line or not line.strip():
                    continue
                if line.startswith("/"):
                    self.handle_command(line.strip())
                    continue
                self.process_line(line)
            except (EOFError, KeyboardInterrupt):
                self._exit()
                break

    # COMMAND HANDLING -----------------------------------------------------------
    def handle_command(self, cmd: str):
        parts = cmd.split()
        name, args = parts[0], parts[1:]

        if name == "/quit":
            self._exit()
        elif name == "/layout":
            self._set_layout(args)
        elif name == "/next":
            self._show_next()
        elif name == "/context":
            self._show_context()
        elif name == "/reset":
            self.engine.reset_context()
            self.console.print("[yellow]Context cleared.[/yellow]")
        elif name == "/weights":
            self._weights(args)
        elif name == "/abbr":
            self._abbreviations(args)
        elif name == "/prune":
            self._prune()
        elif name == "/clear":
            self._clear()
        else:
            self.console.print(f"[red]Unknown command:[/red] {cmd}")

    # CORE INPUT PROCESSING -------------------------------------------------------
    def process_line(self, line: str):
        """
        Commit all complete tokens, then offer completions for the last one.
        Returns the committed words.
        """
        tokens = line.split()
        committed = []
        for tok in tokens[:-1]:
            self.engine.on_word_committed(tok)
            committed.append(tok)

        last = tokens[-1]
        suggestions = self.engine.get_suggestions(last, self.layout)
        if not suggestions:
            self.console.print("[dim](no suggestions)[/dim]")
            choice = last
        else:
            self.display_suggestions(suggestions, title=f"Completions for '{last}'")
            picked = self._ask("Pick # / override / Enter to keep", default="")
            choice = self._resolve_choice(picked, suggestions, last)

        # an expansion is a phrase: commit each word in order
        for word in choice.split():
            self.engine.on_word_committed(word)
            committed.append(word)
        self.console.print(f"[green]Committed:[/green] {choice}")
        return committed

    @staticmethod
    def _resolve_choice(picked: str, suggestions: Sequence[Suggestion], typed: str) -> str:
        picked = (picked or "").strip()
        if not picked:
            return typed
        if picked.isdigit() and 1 <= int(picked) <= len(suggestions):
            return suggestions[int(picked) - 1].word
        return picked

    # DISPLAY -------------------------------------------------------------------------
    def display_suggestions(self, suggestions: List[Suggestion], title: str = "Predictions"):
        table = Table(title=title, box=box.SIMPLE, show_edge=False)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Word", style="bold")
        table.add_column("Score", justify="right", style="magenta")
        table.add_column("Source", justify="left", style="dim")
        table.add_column("Script", justify="left", style="dim")

        for i, s in enumerate(suggestions, 1):
            row = s.to_dict()
            table.add_row(
                str(i),
                Text(row["word"], style=_SOURCE_STYLE.get(s.source, "white")),
                f"{row['score']:.2f}",
                row["source"],
                row["script"],
            )
        self.console.print(table)

    # COMMANDS ------------------------------------------------------------------------
    def _set_layout(self, args: List[str]):
        if not args:
            names = ", ".join(layout.value for layout in KeyboardLayout)
            self.console.print(f"Layout: [bold]{self.layout.value}[/bold]  (available: {names})")
            return
        self.layout = KeyboardLayout.from_name(args[0])
        split = suggestion_split(self.layout, self.engine.config.max_suggestions)
        self.console.print(f"[cyan]Layout set to {self.layout.value}[/cyan] "
                           f"[dim](kannada={split.kannada}, english={split.english})[/dim]")

    def _show_next(self):
        predictions = self.engine.get_next_word_predictions(self.layout)
        if not predictions:
            self.console.print("[dim](no next-word predictions)[/dim]")
            return
        self.display_suggestions(predictions, title="Next word")

    def _show_context(self):
        words = self.engine.context()
        self.console.print(Panel(
            f"window: {' '.join(words) or '(empty)'}\nlanguage: {self.engine.context_language().value}",
            title="Context",
            border_style="cyan",
        ))

    def _weights(self, args: List[str]):
        """/weights shows the scorer weights, /weights NAME DELTA adjusts one."""
        if len(args) == 2:
            try:
                self.engine.scorer.update_weight(args[0], float(args[1]))
                self.engine.clear_cache()
            except ValueError as e:
                self.console.print(f"[red]{escape(str(e))}[/red]")
                return
        elif args:
            self.console.print("[red]Usage:[/red] /weights [NAME DELTA]")
            return
        self.console.print(Panel(self.engine.scorer.weights_info(), title="Current Weights", border_style="cyan"))

    def _abbreviations(self, args: List[str]):
        """/abbr lists custom entries, /abbr SHORT EXPANSION... adds one, /abbr -SHORT removes it."""
        expander = self.engine.expander
        if not args:
            table = Table(title=f"Custom Abbreviations ({len(expander)} total)", box=box.MINIMAL)
            table.add_column("Abbreviation")
            table.add_column("Expansion")
            for abbr, expansion in sorted(expander.custom().items()):
                table.add_row(abbr, expansion)
            self.console.print(table)
            return
        if len(args) == 1 and args[0].startswith("-"):
            removed = expander.remove_custom(args[0][1:])
            self.console.print("[yellow]Removed.[/yellow]" if removed else "[dim](not found)[/dim]")
        elif len(args) >= 2 and expander.add_custom(args[0], " ".join(args[1:])):
            self.console.print(f"[cyan]Added:[/cyan] {args[0]} -> {' '.join(args[1:])}")
        else:
            self.console.print("[red]Usage:[/red] /abbr [SHORT EXPANSION... | -SHORT]")
            return
        self.engine.clear_cache()

    def _prune(self):
        store = self.engine.learning_store
        if store is None:
            self.console.print("[dim](learning store disabled)[/dim]")
            return
        removed = store.prune_old_entries()
        self.console.print(f"[yellow]Pruned:[/yellow] {removed}")

    def _clear(self):
        store = self.engine.learning_store
        if store is None:
            self.console.print("[dim](learning store disabled)[/dim]")
            return
        store.clear_all()
        self.engine.reset_context()
        self.console.print("[yellow]Learned vocabulary cleared.[/yellow]")

    # EXIT ------------------------------------------------------------------------------
    def _exit(self):
        self.console.rule("[red]Exiting[/red]")
        self.engine.shutdown()
        self.running = False


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bilingual-autocompleter",
                                description="Interactive Kannada + English word prediction demo.")
    p.add_argument("--config", default="config.json", help="JSON config file (created if missing)")
    p.add_argument("--layout", default=None, help="keyboard layout name, e.g. qwerty or kannada_phonetic")
    p.add_argument("--db", default=None, help="learning store path (':memory:' for a throwaway store)")
    p.add_argument("--log-level", default=None, help="log level for the log file")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = Config(args.config)
    if args.db is not None:
        cfg.data["db_path"] = args.db
    Log.configure(cfg.get("log_file"), args.log_level or cfg.get("log_level", "INFO"))

    console = Console()
    engine = PredictionEngine(cfg.engine_config())
    with console.status("[cyan]Loading dictionaries...[/cyan]"):
        ready = engine.initialize()
    if not ready:
        console.print("[red]Engine failed to start.[/red]")
        return 1

    layout = KeyboardLayout.from_name(args.layout or cfg.get("layout"))
    CLI(engine, layout=layout, console=console).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
