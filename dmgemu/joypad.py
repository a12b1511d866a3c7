"""Joypad state and keyboard input."""

from __future__ import annotations

from enum import IntFlag
from functools import lru_cache
from typing import Any

from dmgemu.interrupts import Interrupt


class Key(IntFlag):
    """Bits of the joypad lines; each is shared by a button and a direction."""

    A_RIGHT = 1 << 0
    B_LEFT = 1 << 1
    SELECT_UP = 1 << 2
    START_DOWN = 1 << 3


SELECT_DPAD = 1 << 4
SELECT_BUTTONS = 1 << 5


@lru_cache(maxsize=None)
def _key_bindings() -> dict[int, tuple[Key, int]]:
    import pygame

    return {
        pygame.K_RIGHT: (Key.A_RIGHT, SELECT_DPAD),
        pygame.K_LEFT: (Key.B_LEFT, SELECT_DPAD),
        pygame.K_UP: (Key.SELECT_UP, SELECT_DPAD),
        pygame.K_DOWN: (Key.START_DOWN, SELECT_DPAD),
        pygame.K_z: (Key.A_RIGHT, SELECT_BUTTONS),
        pygame.K_x: (Key.B_LEFT, SELECT_BUTTONS),
        pygame.K_n: (Key.SELECT_UP, SELECT_BUTTONS),
        pygame.K_m: (Key.START_DOWN, SELECT_BUTTONS),
    }


class Joypad:
    """The P1 register and the pressed state of the eight keys (0 = pressed)."""

    def __init__(self, cpu: Any = None) -> None:
        self.cpu = cpu
        self.p1 = 0xCF  # 0xFF00
        self.dpad = 0xFF
        self.buttons = 0xFF

    def _request(self) -> None:
        self.cpu.interrupts.request_interrupt(Interrupt.JOYPAD)

    def key_down(self, key: int, select: int) -> None:
        """Mark a key as pressed and request the joypad interrupt."""
        if select == SELECT_DPAD:
            self.dpad &= ~int(key) & 0xFF
        else:
            self.buttons &= ~int(key) & 0xFF
        self._request()

    def key_up(self, key: int, select: int) -> None:
        """Mark a key as released and request the joypad interrupt."""
        if select == SELECT_DPAD:
            self.dpad = (self.dpad | int(key)) & 0xFF
        else:
            self.buttons = (self.buttons | int(key)) & 0xFF
        self._request()

    def step(self) -> None:
        """Handle at most one pending window event."""
        import pygame

        event = pygame.event.poll()
        if event.type == pygame.QUIT:
            self.cpu.ended = True
            return
        if event.type not in (pygame.KEYDOWN, pygame.KEYUP):
            return
        binding = _key_bindings().get(event.key)
        if binding is None:
            return
        key, select = binding
        if event.type == pygame.KEYDOWN:
            self.key_down(key, select)
        else:
            self.key_up(key, select)