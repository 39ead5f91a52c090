"""Start-up menu pages and joystick handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

from .framebuffer import Framebuffer

MAX_MENU_ITEMS = 4
MAX_PAGES = 4

UP_THRESHOLD = 3000
DOWN_THRESHOLD = 1000

_ITEM_TOP = 20
_ITEM_SPACING = 10
_ITEM_INDENT = 10


@dataclass
class Page:
    """One menu page: a title and up to four choices."""

    title: str
    items: tuple[str, ...]
    selected_index: int = 0
    saved_index: int | None = None

    def __post_init__(self) -> None:
        self.items = tuple(self.items)
        if not self.items:
            raise ValueError("a page needs at least one item")
        if len(self.items) > MAX_MENU_ITEMS:
            raise ValueError(f"a page holds at most {MAX_MENU_ITEMS} items")

    @property
    def item_count(self) -> int:
        return len(self.items)


def default_pages() -> list[Page]:
    """The welcome, generator, bias and ball-count pages."""
    return [
        Page("Bem-vindo!", ("Iniciar",)),
        Page("RNG", ("Simples", "Pico SDK")),
        Page("Enviesar?", ("Sem vies", "Esquerda", "Direita")),
        Page("Bolas", ("100", "200", "300", "400")),
    ]


class JoystickInput(NamedTuple):
    up: bool
    down: bool
    select: bool


class JoystickReader:
    """Turns raw joystick readings into menu input, one press per button push."""

    def __init__(self) -> None:
        self._held = False

    def read(self, jy: int, button_down: bool) -> JoystickInput:
        """Interpret a vertical axis reading and the button state."""
        if jy > UP_THRESHOLD:
            return JoystickInput(True, False, False)
        if jy < DOWN_THRESHOLD:
            return JoystickInput(False, True, False)
        if button_down and not self._held:
            self._held = True
            return JoystickInput(False, False, True)
        if not button_down:
            self._held = False
        return JoystickInput(False, False, False)


def draw_page(fb: Framebuffer, page: Page) -> None:
    """Draw a page's title and items, boxing the selected one."""
    fb.draw_string(fb.width // 4, 0, 1, page.title)
    for index, item in enumerate(page.items[:MAX_MENU_ITEMS]):
        y = _ITEM_TOP + index * _ITEM_SPACING
        if index == page.selected_index:
            fb.draw_empty_square(0, y - 2, fb.width - 1, _ITEM_SPACING)
        fb.draw_string(_ITEM_INDENT, y, 1, item)


class Menu:
    """Walks through the pages; selecting an item moves to the next page."""

    def __init__(self, pages: Sequence[Page] | None = None) -> None:
        self.pages = list(pages) if pages is not None else default_pages()
        if len(self.pages) > MAX_PAGES:
            raise ValueError(f"a menu holds at most {MAX_PAGES} pages")
        self.current_index = 0

    def finished(self) -> bool:
        """Whether every page has had an item selected."""
        return self.current_index >= len(self.pages)

    def current_page(self) -> Page:
        """The page being shown."""
        if self.finished():
            raise IndexError("the menu has no pages left")
        return self.pages[self.current_index]

    def handle_input(self, up: bool, down: bool, select: bool) -> None:
        """Apply one input; up wins over down, down over select."""
        page = self.current_page()
        if up:
            page.selected_index = (page.selected_index - 1) % page.item_count
        elif down:
            page.selected_index = (page.selected_index + 1) % page.item_count
        elif select:
            page.saved_index = page.selected_index
            self.current_index += 1

    def draw(self, fb: Framebuffer) -> None:
        """Draw the current page."""
        draw_page(fb, self.current_page())