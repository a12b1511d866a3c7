"""Picture processing unit: mode timing and scanline rendering."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any

from dmgemu.interrupts import Interrupt

SCREEN_WIDTH = 160
SCREEN_HEIGHT = 144

MODE_2_CHECK = 20
MODE_3_CHECK = 63
ROW_TIME = 114
FRAME_TIME = 17556

OAM_ENTRIES = 40
MAX_OBJECTS_PER_LINE = 10


@dataclass(frozen=True)
class Color:
    """An RGBA colour."""

    r: int
    g: int
    b: int
    a: int

    @property
    def rgba(self) -> bytes:
        """The colour as four bytes in frame-buffer order."""
        return bytes((self.r, self.g, self.b, self.a))


COLORS = (
    Color(255, 255, 255, 255),
    Color(192, 192, 192, 255),
    Color(96, 96, 96, 255),
    Color(0, 0, 0, 255),
)


@dataclass(frozen=True)
class SpriteObject:
    """One OAM entry."""

    y: int
    x: int
    tile_num: int
    flags: int


def _signed8(value: int) -> int:
    return value - 0x100 if value & 0x80 else value


class PPU:
    """LCD controller registers, mode state machine and frame buffer."""

    def __init__(self, cpu: Any = None) -> None:
        self.cpu = cpu
        self.lcdc = 0x91  # 0xFF40
        self.stat = 0x85  # 0xFF41
        self.scy = 0  # 0xFF42
        self.scx = 0  # 0xFF43
        self.ly = 0  # 0xFF44
        self.lyc = 0  # 0xFF45
        self.bgp = 0xFC  # 0xFF47
        self.obp0 = 0xFF  # 0xFF48
        self.obp1 = 0xFF  # 0xFF49
        self.wy = 0  # 0xFF4A
        self.wx = 0  # 0xFF4B
        self.frame_ready = False
        self.obj_queue: deque[SpriteObject] = deque()
        self.frame_buffer = bytearray(SCREEN_WIDTH * SCREEN_HEIGHT * 4)
        self.color_vals = bytearray(SCREEN_WIDTH)

    # helpers

    def _request(self, interrupt: Interrupt) -> None:
        self.cpu.interrupts.request_interrupt(interrupt)

    def _set_mode(self, mode: int) -> None:
        self.stat = (self.stat & 0xFC) | mode

    def _read8(self, add: int) -> int:
        return self.cpu.memory.read8(add & 0xFFFF)

    def _set_pixel(self, x: int, color: Color) -> None:
        offset = (self.ly * SCREEN_WIDTH + x) * 4
        self.frame_buffer[offset:offset + 4] = color.rgba

    def _bg_tile_address(self, tile_num: int) -> int:
        if self.lcdc & 0x10:
            return 0x8000 + tile_num * 16
        return 0x9000 + _signed8(tile_num) * 16

    def _tile_color(self, tile_addr: int, line: int, color_bit: int) -> int:
        data1 = self._read8(tile_addr + line * 2)
        data2 = self._read8(tile_addr + line * 2 + 1)
        return (((data2 >> color_bit) & 0x01) << 1) | ((data1 >> color_bit) & 0x01)

    @staticmethod
    def _palette_color(palette: int, color_num: int) -> Color:
        return COLORS[(palette >> (color_num * 2)) & 0x03]

    # state machine

    def compare_ly_lyc(self) -> None:
        """Update the coincidence bit of STAT and request its interrupt."""
        if self.ly == self.lyc:
            self.stat |= 0x04
            if self.stat & 0x40:
                self._request(Interrupt.STAT)
        else:
            self.stat &= 0xFB

    def _next_line(self) -> None:
        self.ly = (self.ly + 1) & 0xFF
        self.compare_ly_lyc()

    def step(self) -> None:
        """Advance the mode state machine according to the frame clock."""
        if not self.lcdc & 0x80:
            return
        timer = self.cpu.timer
        mode = self.stat & 0x03

        if mode == 2:  # OAM scan
            if timer.frame_clock % ROW_TIME >= MODE_2_CHECK:
                self.oam_scan()
                self._set_mode(3)
        elif mode == 3:  # drawing
            if timer.frame_clock % ROW_TIME >= MODE_3_CHECK:
                self.render_scanline()
                if self.ly == SCREEN_HEIGHT - 1:
                    self.frame_ready = True
                self._set_mode(0)
                if self.stat & 0x08:
                    self._request(Interrupt.STAT)
        elif mode == 0:  # HBlank
            if timer.frame_clock >= ROW_TIME * (self.ly + 1):
                self._next_line()
                if self.ly == SCREEN_HEIGHT:
                    self._set_mode(1)
                    if self.stat & 0x10:
                        self._request(Interrupt.STAT)
                    self._request(Interrupt.VBLANK)
                else:
                    self._set_mode(2)
                    if self.stat & 0x20:
                        self._request(Interrupt.STAT)
        else:  # VBlank
            if timer.frame_clock >= ROW_TIME * (self.ly + 1):
                self._next_line()
                if self.ly == 154:
                    self.ly = 0
                    self._set_mode(2)
                    if self.stat & 0x20:
                        self._request(Interrupt.STAT)

        timer.frame_clock %= FRAME_TIME

    def _object_height(self) -> int:
        return 16 if self.lcdc & 0x04 else 8

    def oam_scan(self) -> None:
        """Collect up to ten objects that overlap the current line."""
        self.obj_queue.clear()
        if not self.lcdc & 0x02:
            return
        oam = self.cpu.memory.oam
        height = self._object_height()
        line = self.ly + 16
        for i in range(OAM_ENTRIES):
            entry = oam[i * 4:i * 4 + 4]
            if entry[0] <= line < entry[0] + height:
                self.obj_queue.append(SpriteObject(*entry))
                if len(self.obj_queue) == MAX_OBJECTS_PER_LINE:
                    break

    # rendering

    def render_scanline(self) -> None:
        """Draw the current line into the frame buffer."""
        if self.ly >= SCREEN_HEIGHT:
            return
        if not self.lcdc & 0x01:
            self.render_blank_scanline()
        else:
            self.render_scanline_bg()
            self.render_scanline_window()
        self.render_scanline_obj()

    def render_blank_scanline(self) -> None:
        """Fill the current line with white."""
        start = self.ly * SCREEN_WIDTH * 4
        self.frame_buffer[start:start + SCREEN_WIDTH * 4] = b"\xff" * (SCREEN_WIDTH * 4)

    def render_scanline_bg(self) -> None:
        """Draw the background layer of the current line."""
        if not self.lcdc & 0x80:
            return
        bg_map = 0x9C00 if self.lcdc & 0x08 else 0x9800
        y = (self.ly + self.scy) & 0xFF
        tile_row = (y // 8) * 32
        line = y % 8

        for x in range(SCREEN_WIDTH):
            column = (self.scx + x) & 0xFF
            tile_num = self._read8(bg_map + tile_row + column // 8)
            tile_addr = self._bg_tile_address(tile_num)
            color_num = self._tile_color(tile_addr, line, 7 - column % 8)
            self.color_vals[x] = color_num
            self._set_pixel(x, self._palette_color(self.bgp, color_num))

    def render_scanline_window(self) -> None:
        """Draw the window layer of the current line, if visible."""
        if self.wx > 166 or self.wy > 143 or self.wy > self.ly:
            return
        if not self.lcdc & 0x20:
            return
        win_map = 0x9C00 if self.lcdc & 0x40 else 0x9800
        y = (self.ly - self.wy) & 0xFF
        tile_row = (y // 8) * 32
        line = y % 8

        if self.wx >= 7:
            first, last = self.wx - 7, SCREEN_WIDTH
        else:
            first, last = 0, SCREEN_WIDTH + self.wx - 7
        for x in range(first, last):
            column = (x - self.wx + 7) & 0xFF
            tile_num = self._read8(win_map + tile_row + column // 8)
            tile_addr = self._bg_tile_address(tile_num)
            color_num = self._tile_color(tile_addr, line, 7 - column % 8)
            if color_num:
                self.color_vals[x] = color_num
            self._set_pixel(x, self._palette_color(self.bgp, color_num))

    def render_scanline_obj(self) -> None:
        """Draw the objects found by the last OAM scan."""
        if not self.lcdc & 0x02:
            return
        height = self._object_height()
        while self.obj_queue:
            obj = self.obj_queue.popleft()
            if obj.x == 0 or obj.x >= 168:
                continue

            y = (self.ly - obj.y + 16) & 0xFF
            if obj.flags & 0x40:
                y = (height - y - 1) & 0xFF
            if height == 8:
                tile = obj.tile_num
            else:
                tile = (obj.tile_num & 0xFE) | (0x01 if y >= 8 else 0)
            tile_addr = 0x8000 + tile * 16
            palette = self.obp1 if obj.flags & 0x10 else self.obp0

            first = 8 - obj.x if obj.x < 8 else 0
            last = 8 if obj.x <= 160 else 168 - obj.x
            for k in range(first, last):
                color_bit = k if obj.flags & 0x20 else 7 - k
                color_num = self._tile_color(tile_addr, y % 8, color_bit)
                screen_x = obj.x - 8 + k
                if color_num == 0 or (obj.flags & 0x80 and self.color_vals[screen_x]):
                    continue
                self._set_pixel(screen_x, self._palette_color(palette, color_num))