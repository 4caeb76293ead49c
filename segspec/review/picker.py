# CUI // SP-CTI
"""Terminal picker for accepting or rejecting dependencies.

Every fact starts selected. The review loop reads one command per line:

    <n> [<n> ...]   toggle items by number (1-based)
    k / up          move the cursor up
    j / down        move the cursor down
    t / space       toggle the item under the cursor
    a               select all
    n               select none
    <empty line>    confirm and generate
    q               quit without generating
"""

from typing import List, Optional, TextIO

from segspec.model.dependency import NetworkDependency

HELP_LINE = "up/down (k/j) navigate  t toggle  <n> toggle item  a all  n none  ENTER generate  q quit"


class Picker:
    """Selection state over a fixed list of dependencies."""

    def __init__(self, deps: List[NetworkDependency]):
        self._deps = list(deps)
        self._selected = [True] * len(self._deps)
        self.cursor = 0
        self.confirmed = False
        self.done = False

    def __len__(self) -> int:
        return len(self._deps)

    def is_selected(self, index: int) -> bool:
        return self._selected[index]

    def move(self, delta: int) -> None:
        if self._deps:
            self.cursor = max(0, min(len(self._deps) - 1, self.cursor + delta))

    def toggle(self, index: Optional[int] = None) -> None:
        index = self.cursor if index is None else index
        if 0 <= index < len(self._deps):
            self._selected[index] = not self._selected[index]

    def select_all(self) -> None:
        self._selected = [True] * len(self._deps)

    def select_none(self) -> None:
        self._selected = [False] * len(self._deps)

    def selected(self) -> List[NetworkDependency]:
        return [dep for dep, chosen in zip(self._deps, self._selected) if chosen]

    def handle(self, command: str) -> None:
        """Apply one line of input."""
        command = command.strip("\r\n")
        key = command.strip().lower()
        if key == "" and command != " ":
            self.confirmed = True
            self.done = True
        elif key in ("q", "quit"):
            self.done = True
        elif key in ("k", "up"):
            self.move(-1)
        elif key in ("j", "down"):
            self.move(1)
        elif key in ("t", "space") or command == " ":
            self.toggle()
        elif key == "a":
            self.select_all()
        elif key == "n":
            self.select_none()
        else:
            for token in key.replace(",", " ").split():
                if token.isdigit():
                    self.toggle(int(token) - 1)

    def render(self) -> str:
        lines = [f"segspec: {len(self._deps)} dependencies found ({len(self.selected())} selected)", ""]
        for i, dep in enumerate(self._deps):
            pointer = "> " if i == self.cursor else "  "
            checkbox = "[x]" if self._selected[i] else "[ ]"
            lines.append(
                f"{pointer}{i + 1:>3} {checkbox} {dep.source} -> {dep.target}:{dep.port}/{dep.protocol}"
                f"  [{dep.confidence}]  {dep.description}"
            )
        lines.extend(["", HELP_LINE])
        return "\n".join(lines) + "\n"


def run_picker(deps: List[NetworkDependency], stdin: TextIO,
               stdout: TextIO) -> Optional[List[NetworkDependency]]:
    """Run the review loop. Returns the accepted facts, or None if cancelled.

    End of input without a confirmation counts as a cancel.
    """
    picker = Picker(deps)
    while not picker.done:
        stdout.write(picker.render())
        stdout.write("> ")
        stdout.flush()
        line = stdin.readline()
        if line == "":
            break
        picker.handle(line)
    if not picker.confirmed:
        return None
    return picker.selected()
